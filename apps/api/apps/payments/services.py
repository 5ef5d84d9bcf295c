"""
Payment operations, reporting and payment-plan generation.
"""
import logging
from datetime import datetime, time, timedelta
from decimal import ROUND_DOWN, Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone

from apps.clinical.services import get_patient
from apps.core.dates import add_months
from apps.core.exceptions import BadRequestError, NotFoundError
from apps.core.observability import log_domain_event
from apps.payments.models import Payment, PaymentMethodChoices, PaymentStatusChoices
from apps.treatments.models import TreatmentPlan

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def _as_float(value):
    return float(value or 0)


def get_payment(payment_id):
    try:
        payment = Payment.objects.select_related('patient', 'treatment_plan').filter(id=payment_id).first()
    except DjangoValidationError:
        payment = None
    if payment is None:
        raise NotFoundError('Payment not found')
    return payment


def create_payment(data, created_by=None):
    payment = Payment.objects.create(created_by=created_by, **data)
    log_domain_event(
        'payment_created',
        entity_type='Payment',
        entity_id=payment.id,
        patient_id=str(payment.patient_id),
        amount=str(payment.amount),
        status=payment.status,
    )
    return payment


def update_payment(payment_id, data, actor=None):
    payment = get_payment(payment_id)
    for field, value in data.items():
        setattr(payment, field, value)
    payment.save()
    log_domain_event('payment_updated', entity_type='Payment', entity_id=payment.id, updated_fields=list(data))
    return payment


def update_payment_status(payment_id, status, paid_date=None, actor=None):
    """Setting PAID without a paid_date stamps it with now."""
    payment = get_payment(payment_id)
    payment.status = status
    if paid_date:
        payment.paid_date = paid_date
    elif status == PaymentStatusChoices.PAID:
        payment.paid_date = timezone.now()
    payment.save()
    log_domain_event('payment_status_updated', entity_type='Payment', entity_id=payment.id, new_status=status)
    return payment


def mark_paid(payment_id, paid_date=None, transaction_id=None, actor=None):
    payment = get_payment(payment_id)
    payment.status = PaymentStatusChoices.PAID
    payment.paid_date = paid_date or timezone.now()
    if transaction_id:
        payment.transaction_id = transaction_id
    payment.save()
    log_domain_event(
        'payment_marked_paid',
        entity_type='Payment',
        entity_id=payment.id,
        marked_by=str(actor.id) if actor else None,
    )
    return payment


def delete_payment(payment_id, actor=None):
    get_payment(payment_id).delete()
    log_domain_event(
        'payment_deleted',
        entity_type='Payment',
        entity_id=payment_id,
        deleted_by=str(actor.id) if actor else None,
    )


def list_patient_payments(patient_id, status=None):
    patient = get_patient(patient_id)
    queryset = patient.payments.select_related('treatment_plan', 'created_by')
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by('-created_at')


def get_plan_payments(plan_id):
    """
    Returns:
        (payments, summary) where summary carries amount and count per status.
    """
    try:
        plan = TreatmentPlan.objects.filter(id=plan_id).first()
    except DjangoValidationError:
        plan = None
    if plan is None:
        raise NotFoundError('Treatment plan not found')

    payments = list(plan.payments.select_related('created_by').order_by('-created_at'))

    def amount(status=None):
        return sum((p.amount for p in payments if status is None or p.status == status), Decimal('0'))

    def count(status):
        return sum(1 for p in payments if p.status == status)

    summary = {
        'totalAmount': _as_float(amount()),
        'paidAmount': _as_float(amount(PaymentStatusChoices.PAID)),
        'pendingAmount': _as_float(amount(PaymentStatusChoices.PENDING)),
        'overdueAmount': _as_float(amount(PaymentStatusChoices.OVERDUE)),
        'totalPayments': len(payments),
        'paidPayments': count(PaymentStatusChoices.PAID),
        'pendingPayments': count(PaymentStatusChoices.PENDING),
        'overduePayments': count(PaymentStatusChoices.OVERDUE),
    }
    return payments, summary


def get_payment_stats(now=None):
    now = now or timezone.now()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    counts = Payment.objects.aggregate(
        total=Count('id'),
        paid=Count('id', filter=Q(status=PaymentStatusChoices.PAID)),
        pending=Count('id', filter=Q(status=PaymentStatusChoices.PENDING)),
        overdue=Count('id', filter=Q(status=PaymentStatusChoices.OVERDUE)),
    )
    paid = Payment.objects.filter(status=PaymentStatusChoices.PAID)
    revenue = paid.aggregate(total=Sum('amount'), average=Avg('amount'))
    monthly = paid.filter(paid_date__gte=month_start).aggregate(total=Sum('amount'))

    return {
        'totalPayments': counts['total'],
        'paymentsByStatus': {
            'paid': counts['paid'],
            'pending': counts['pending'],
            'overdue': counts['overdue'],
            'cancelled': counts['total'] - counts['paid'] - counts['pending'] - counts['overdue'],
        },
        'revenue': {
            'total': _as_float(revenue['total']),
            'monthly': _as_float(monthly['total']),
            'average': _as_float(revenue['average']),
        },
    }


def get_method_stats():
    rows = (
        Payment.objects.filter(status=PaymentStatusChoices.PAID)
        .values('method')
        .annotate(count=Count('id'), total=Sum('amount'))
        .order_by('method')
    )
    return [
        {'method': row['method'], 'count': row['count'], 'totalAmount': _as_float(row['total'])}
        for row in rows
    ]


def overdue_queryset(now=None):
    now = now or timezone.now()
    return (
        Payment.objects.select_related('patient', 'treatment_plan')
        .filter(
            Q(status=PaymentStatusChoices.OVERDUE)
            | Q(status=PaymentStatusChoices.PENDING, due_date__lt=now)
        )
        .order_by('due_date')
    )


def get_upcoming_payments(days=7, now=None):
    now = now or timezone.now()
    return list(
        Payment.objects.select_related('patient', 'treatment_plan')
        .filter(
            status=PaymentStatusChoices.PENDING,
            due_date__gte=now,
            due_date__lte=now + timedelta(days=days),
        )
        .order_by('due_date')
    )


def generate_report(filters, generated_by=None):
    """
    Filters: startDate, endDate (applied only together, on created_at),
    patientId, treatmentPlanId, status.
    """
    queryset = Payment.objects.select_related('patient', 'treatment_plan')
    start, end = filters.get('startDate'), filters.get('endDate')
    if start and end:
        queryset = queryset.filter(created_at__date__gte=start, created_at__date__lte=end)
    if filters.get('patientId'):
        queryset = queryset.filter(patient_id=filters['patientId'])
    if filters.get('treatmentPlanId'):
        queryset = queryset.filter(treatment_plan_id=filters['treatmentPlanId'])
    if filters.get('status'):
        queryset = queryset.filter(status=filters['status'])

    summary = queryset.aggregate(count=Count('id'), total=Sum('amount'), average=Avg('amount'))
    payments = list(queryset.order_by('-created_at'))

    log_domain_event(
        'payment_report_generated',
        entity_type='Payment',
        period=f"{start or 'start'} to {end or 'end'}",
        total_payments=summary['count'],
        generated_by=str(generated_by.id) if generated_by else None,
    )
    return {
        'period': {
            'startDate': start or 'All time',
            'endDate': end or 'All time',
        },
        'summary': {
            'totalPayments': summary['count'],
            'totalAmount': _as_float(summary['total']),
            'averageAmount': _as_float(summary['average']),
        },
        'payments': payments,
        'generatedAt': timezone.now(),
        'generatedBy': str(generated_by.id) if generated_by else None,
    }


def split_amount(total_amount, number_of_payments):
    """
    Equal installments rounded down to the cent; the last one absorbs the remainder.
    """
    total = Decimal(str(total_amount)).quantize(CENT)
    installment = (total / number_of_payments).quantize(CENT, rounding=ROUND_DOWN)
    amounts = [installment] * number_of_payments
    amounts[-1] = total - installment * (number_of_payments - 1)
    return amounts


@transaction.atomic
def create_payment_plan(treatment_plan_id, total_amount, number_of_payments, first_payment_date=None, created_by=None):
    """
    Create N PENDING monthly installments for a treatment plan, atomically.

    Installment i is due on first_payment_date + i months.
    """
    if not treatment_plan_id or not total_amount or not number_of_payments:
        raise BadRequestError('Treatment plan ID, total amount, and number of payments are required')

    try:
        plan = TreatmentPlan.objects.filter(id=treatment_plan_id).first()
    except DjangoValidationError:
        plan = None
    if plan is None:
        raise NotFoundError('Treatment plan not found')

    first_date = first_payment_date or timezone.localdate()
    first_due = timezone.make_aware(datetime.combine(first_date, time.min))

    payments = []
    for index, amount in enumerate(split_amount(total_amount, number_of_payments)):
        payments.append(Payment.objects.create(
            patient_id=plan.patient_id,
            treatment_plan=plan,
            amount=amount,
            currency='EUR',
            method=PaymentMethodChoices.CASH,
            status=PaymentStatusChoices.PENDING,
            description=f'Payment {index + 1} of {number_of_payments} for treatment plan',
            due_date=add_months(first_due, index),
            created_by=created_by,
        ))

    log_domain_event(
        'payment_plan_created',
        entity_type='TreatmentPlan',
        entity_id=plan.id,
        number_of_payments=number_of_payments,
        total_amount=str(total_amount),
    )
    return payments
