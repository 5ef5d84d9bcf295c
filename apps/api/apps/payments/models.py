"""
Payment model - patient payments and payment-plan installments.
"""
import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class PaymentMethodChoices(models.TextChoices):
    CASH = 'CASH', 'Cash'
    CARD = 'CARD', 'Card'
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank Transfer'
    CHECK = 'CHECK', 'Check'
    INSURANCE = 'INSURANCE', 'Insurance'
    OTHER = 'OTHER', 'Other'


class PaymentStatusChoices(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'
    PARTIAL = 'PARTIAL', 'Partial'
    OVERDUE = 'OVERDUE', 'Overdue'
    CANCELLED = 'CANCELLED', 'Cancelled'
    REFUNDED = 'REFUNDED', 'Refunded'


class Payment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.CASCADE,
        related_name='payments'
    )
    treatment_plan = models.ForeignKey(
        'treatments.TreatmentPlan',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='payments'
    )

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, default='EUR')
    method = models.CharField(
        max_length=20,
        choices=PaymentMethodChoices.choices,
        default=PaymentMethodChoices.CASH
    )
    status = models.CharField(
        max_length=20,
        choices=PaymentStatusChoices.choices,
        default=PaymentStatusChoices.PENDING
    )
    description = models.CharField(max_length=500, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    due_date = models.DateTimeField(blank=True, null=True)
    paid_date = models.DateTimeField(blank=True, null=True)
    transaction_id = models.CharField(max_length=100, blank=True, null=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='created_payments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment'
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['patient'], name='idx_payment_patient'),
            models.Index(fields=['treatment_plan'], name='idx_payment_plan'),
            models.Index(fields=['status'], name='idx_payment_status'),
            models.Index(fields=['due_date'], name='idx_payment_due_date'),
        ]

    def __str__(self):
        return f"{self.amount} {self.currency} - {self.patient} ({self.status})"
