"""
Tests for /api/payments: payments, reporting and payment plans.
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.payments import services
from apps.payments.models import Payment, PaymentStatusChoices

PAYMENTS_URL = '/api/payments/'


def make_payment(patient, amount, status=PaymentStatusChoices.PENDING, **extra):
    return Payment.objects.create(patient=patient, amount=Decimal(amount), status=status, **extra)


@pytest.mark.django_db
class TestPayments:

    def test_create_payment(self, doctor_client, patient, treatment_plan):
        response = doctor_client.post(PAYMENTS_URL, {
            'patient_id': str(patient.id),
            'treatment_plan_id': str(treatment_plan.id),
            'amount': '150.50',
            'currency': 'eur',
            'method': 'BANK_TRANSFER',
        }, format='json')

        assert response.status_code == 201
        payment = response.json()['data']['payment']
        assert payment['amount'] == '150.50'
        assert payment['currency'] == 'EUR'
        assert payment['status'] == 'PENDING'
        assert payment['treatment_plan']['title'] == 'Upper and lower braces'

    def test_amount_must_be_positive(self, doctor_client, patient):
        response = doctor_client.post(PAYMENTS_URL, {
            'patient_id': str(patient.id),
            'amount': '0.00',
        }, format='json')

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'amount'

    def test_plan_of_another_patient(self, doctor_client, other_patient, treatment_plan):
        response = doctor_client.post(PAYMENTS_URL, {
            'patient_id': str(other_patient.id),
            'treatment_plan_id': str(treatment_plan.id),
            'amount': '10.00',
        }, format='json')

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'treatment_plan_id'

    def test_assistant_reads_but_cannot_write(self, assistant_client, patient, payment):
        assert assistant_client.get(f'{PAYMENTS_URL}{payment.id}/').status_code == 200

        response = assistant_client.post(PAYMENTS_URL, {
            'patient_id': str(patient.id),
            'amount': '10.00',
        }, format='json')
        assert response.status_code == 403

    def test_status_paid_stamps_paid_date(self, doctor_client, payment):
        response = doctor_client.patch(
            f'{PAYMENTS_URL}{payment.id}/status/',
            {'status': 'PAID'},
            format='json',
        )

        assert response.status_code == 200
        payment.refresh_from_db()
        assert payment.status == PaymentStatusChoices.PAID
        assert payment.paid_date is not None

    def test_status_other_than_paid_keeps_paid_date_empty(self, doctor_client, payment):
        doctor_client.patch(f'{PAYMENTS_URL}{payment.id}/status/', {'status': 'CANCELLED'}, format='json')

        payment.refresh_from_db()
        assert payment.paid_date is None

    def test_mark_paid(self, doctor_client, payment):
        response = doctor_client.post(
            f'{PAYMENTS_URL}{payment.id}/mark-paid/',
            {'transaction_id': 'TX-991'},
            format='json',
        )

        assert response.status_code == 200
        payment.refresh_from_db()
        assert payment.status == PaymentStatusChoices.PAID
        assert payment.transaction_id == 'TX-991'

    def test_update_and_delete(self, doctor_client, payment):
        response = doctor_client.put(f'{PAYMENTS_URL}{payment.id}/', {'notes': 'Second visit'}, format='json')
        assert response.status_code == 200
        payment.refresh_from_db()
        assert payment.notes == 'Second visit'

        response = doctor_client.delete(f'{PAYMENTS_URL}{payment.id}/')
        assert response.status_code == 200
        assert not Payment.objects.filter(id=payment.id).exists()

    def test_unknown_payment(self, doctor_client):
        response = doctor_client.get(f'{PAYMENTS_URL}00000000-0000-0000-0000-000000000000/')

        assert response.status_code == 404
        assert response.json()['message'] == 'Payment not found'

    def test_patient_payments_filtered_by_status(self, doctor_client, patient, payment):
        make_payment(patient, '80.00', status=PaymentStatusChoices.PAID)

        response = doctor_client.get(f'{PAYMENTS_URL}patient/{patient.id}/?status=PAID')

        data = response.json()['data']
        assert [row['amount'] for row in data['payments']] == ['80.00']
        assert data['pagination']['total'] == 1

    def test_plan_payments_summary(self, doctor_client, patient, treatment_plan, payment):
        make_payment(patient, '100.00', status=PaymentStatusChoices.PAID, treatment_plan=treatment_plan)
        make_payment(patient, '50.00', status=PaymentStatusChoices.OVERDUE, treatment_plan=treatment_plan)

        response = doctor_client.get(f'{PAYMENTS_URL}treatment-plan/{treatment_plan.id}/')

        summary = response.json()['data']['summary']
        assert summary['totalAmount'] == 400.0
        assert summary['paidAmount'] == 100.0
        assert summary['pendingAmount'] == 250.0
        assert summary['overdueAmount'] == 50.0
        assert summary['totalPayments'] == 3
        assert summary['overduePayments'] == 1


@pytest.mark.django_db
class TestPaymentReporting:

    def test_stats(self, doctor_client, patient):
        make_payment(patient, '100.00', status=PaymentStatusChoices.PAID, paid_date=timezone.now())
        make_payment(patient, '300.00', status=PaymentStatusChoices.PAID, paid_date=timezone.now())
        make_payment(patient, '40.00')
        make_payment(patient, '20.00', status=PaymentStatusChoices.CANCELLED)

        response = doctor_client.get(f'{PAYMENTS_URL}stats/')

        stats = response.json()['data']['stats']
        assert stats['totalPayments'] == 4
        assert stats['paymentsByStatus'] == {'paid': 2, 'pending': 1, 'overdue': 0, 'cancelled': 1}
        assert stats['revenue'] == {'total': 400.0, 'monthly': 400.0, 'average': 200.0}

    def test_method_stats_only_count_paid(self, doctor_client, patient):
        make_payment(patient, '100.00', status=PaymentStatusChoices.PAID, method='CARD')
        make_payment(patient, '60.00', status=PaymentStatusChoices.PAID, method='CARD')
        make_payment(patient, '30.00', status=PaymentStatusChoices.PAID, method='CASH')
        make_payment(patient, '999.00', method='CASH')

        response = doctor_client.get(f'{PAYMENTS_URL}methods-stats/')

        rows = response.json()['data']['payment_methods']
        assert rows == [
            {'method': 'CARD', 'count': 2, 'totalAmount': 160.0},
            {'method': 'CASH', 'count': 1, 'totalAmount': 30.0},
        ]

    def test_overdue_includes_late_pending(self, doctor_client, patient):
        past = timezone.now() - timedelta(days=5)
        late = make_payment(patient, '10.00', due_date=past)
        flagged = make_payment(patient, '20.00', status=PaymentStatusChoices.OVERDUE)
        make_payment(patient, '30.00', due_date=timezone.now() + timedelta(days=5))

        response = doctor_client.get(f'{PAYMENTS_URL}overdue/')

        ids = {row['id'] for row in response.json()['data']['overdue_payments']}
        assert ids == {str(late.id), str(flagged.id)}

    def test_upcoming_window(self, doctor_client, patient):
        soon = make_payment(patient, '10.00', due_date=timezone.now() + timedelta(days=3))
        make_payment(patient, '20.00', due_date=timezone.now() + timedelta(days=20))

        response = doctor_client.get(f'{PAYMENTS_URL}upcoming/')
        ids = [row['id'] for row in response.json()['data']['upcoming_payments']]
        assert ids == [str(soon.id)]

        response = doctor_client.get(f'{PAYMENTS_URL}upcoming/?days=30')
        assert len(response.json()['data']['upcoming_payments']) == 2

    def test_report(self, doctor_client, doctor_user, patient, other_patient, payment):
        make_payment(other_patient, '50.00')

        response = doctor_client.get(f'{PAYMENTS_URL}report/?patientId={patient.id}')

        report = response.json()['data']['report']
        assert report['period'] == {'startDate': 'All time', 'endDate': 'All time'}
        assert report['summary'] == {'totalPayments': 1, 'totalAmount': 250.0, 'averageAmount': 250.0}
        assert report['generatedBy'] == str(doctor_user.id)
        assert [row['id'] for row in report['payments']] == [str(payment.id)]


@pytest.mark.django_db
class TestPaymentPlans:

    def test_split_amount_puts_remainder_last(self):
        assert services.split_amount(Decimal('1000'), 3) == [
            Decimal('333.33'),
            Decimal('333.33'),
            Decimal('333.34'),
        ]

    def test_create_plan_installments(self, doctor_client, patient, treatment_plan):
        response = doctor_client.post(f'{PAYMENTS_URL}payment-plan/', {
            'treatmentPlanId': str(treatment_plan.id),
            'totalAmount': '1000.00',
            'numberOfPayments': 3,
            'firstPaymentDate': '2026-01-31',
        }, format='json')

        assert response.status_code == 201
        assert response.json()['message'] == 'Payment plan created successfully with 3 payments'

        payments = list(Payment.objects.filter(treatment_plan=treatment_plan).order_by('due_date'))
        assert [p.amount for p in payments] == [Decimal('333.33'), Decimal('333.33'), Decimal('333.34')]
        assert [p.due_date for p in payments] == [
            datetime(2026, 1, 31, tzinfo=dt_timezone.utc),
            datetime(2026, 2, 28, tzinfo=dt_timezone.utc),
            datetime(2026, 3, 31, tzinfo=dt_timezone.utc),
        ]
        assert all(p.patient_id == patient.id for p in payments)
        assert all(p.status == PaymentStatusChoices.PENDING for p in payments)
        assert payments[0].description == 'Payment 1 of 3 for treatment plan'

    def test_total_must_cover_a_cent_per_installment(self, doctor_client, treatment_plan):
        response = doctor_client.post(f'{PAYMENTS_URL}payment-plan/', {
            'treatmentPlanId': str(treatment_plan.id),
            'totalAmount': '0.02',
            'numberOfPayments': 3,
        }, format='json')

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'totalAmount'
        assert not Payment.objects.filter(treatment_plan=treatment_plan).exists()

    def test_smallest_valid_plan(self, doctor_client, treatment_plan):
        response = doctor_client.post(f'{PAYMENTS_URL}payment-plan/', {
            'treatmentPlanId': str(treatment_plan.id),
            'totalAmount': '0.03',
            'numberOfPayments': 3,
        }, format='json')

        assert response.status_code == 201
        amounts = Payment.objects.filter(treatment_plan=treatment_plan).values_list('amount', flat=True)
        assert sorted(amounts) == [Decimal('0.01')] * 3

    def test_missing_fields(self, doctor_client, treatment_plan):
        response = doctor_client.post(f'{PAYMENTS_URL}payment-plan/', {
            'treatmentPlanId': str(treatment_plan.id),
        }, format='json')

        assert response.status_code == 400
        assert response.json()['message'] == 'Treatment plan ID, total amount, and number of payments are required'

    def test_unknown_plan(self, doctor_client):
        response = doctor_client.post(f'{PAYMENTS_URL}payment-plan/', {
            'treatmentPlanId': '00000000-0000-0000-0000-000000000000',
            'totalAmount': '300.00',
            'numberOfPayments': 2,
        }, format='json')

        assert response.status_code == 404
        assert Payment.objects.count() == 0
