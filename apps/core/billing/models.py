from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.db.models.functions import Round
from django.utils import timezone

from apps.core.students.models import Student
from apps.core.utils.managers import BillManager


MAX_BILLING_DAY = 28


class FeeSettings(models.Model):
    SINGLETON_ID = 1

    spp_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    catering_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    billing_day = models.PositiveSmallIntegerField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'fee settings'
        verbose_name_plural = 'fee settings'
        constraints = [
            models.CheckConstraint(
                condition=Q(spp_amount__gte=0) & Q(catering_amount__gte=0),
                name='fee_settings_non_negative_amounts',
            ),
            models.CheckConstraint(
                condition=Q(billing_day__isnull=True) | (Q(billing_day__gte=1) & Q(billing_day__lte=MAX_BILLING_DAY)),
                name='fee_settings_billing_day_range',
            ),
        ]

    @classmethod
    def get_current(cls):
        return cls.objects.filter(pk=cls.SINGLETON_ID).first()

    @property
    def total_amount(self):
        return Decimal(self.spp_amount or 0) + Decimal(self.catering_amount or 0)

    def clean(self):
        super().clean()
        if self.spp_amount is None or self.spp_amount < 0:
            raise ValidationError({'spp_amount': 'SPP amount cannot be negative.'})
        if self.catering_amount is None or self.catering_amount < 0:
            raise ValidationError({'catering_amount': 'Catering amount cannot be negative.'})
        if self.billing_day is not None and not 1 <= self.billing_day <= MAX_BILLING_DAY:
            raise ValidationError({'billing_day': f'Billing day must be between 1 and {MAX_BILLING_DAY}.'})

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_ID
        super().save(*args, **kwargs)

    def __str__(self):
        return f"SPP {self.spp_amount} + Catering {self.catering_amount} (day {self.billing_day or '-'})"


class Bill(models.Model):
    STATUS_UNPAID = 'unpaid'
    STATUS_PAID = 'paid'
    STATUS_CHOICES = (
        (STATUS_UNPAID, 'Unpaid'),
        (STATUS_PAID, 'Paid'),
    )

    KIND_MONTHLY = 'monthly'
    KIND_MANUAL = 'manual'
    KIND_CHOICES = (
        (KIND_MONTHLY, 'Monthly'),
        (KIND_MANUAL, 'Manual'),
    )

    AMOUNT_FIELDS = ('spp_amount', 'catering_amount', 'total_amount')

    student = models.ForeignKey(
        Student,
        on_delete=models.PROTECT,
        related_name='bills',
    )
    kind = models.CharField(max_length=10, choices=KIND_CHOICES, default=KIND_MONTHLY)
    period_key = models.CharField(max_length=64)
    year = models.PositiveSmallIntegerField()
    month = models.PositiveSmallIntegerField()
    idempotency_key = models.CharField(max_length=128, unique=True)

    student_name = models.CharField(max_length=150, blank=True)
    student_nis = models.CharField(max_length=30, blank=True)
    student_class = models.CharField(max_length=20, blank=True)

    spp_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    catering_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_UNPAID)
    description = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    last_payment_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    version = models.PositiveIntegerField(default=0)

    objects = BillManager()

    class Meta:
        ordering = ['-year', '-month', 'created_at', 'id']
        constraints = [
            models.CheckConstraint(
                condition=Q(spp_amount__gte=0) & Q(catering_amount__gte=0) & Q(total_amount__gt=0),
                name='bill_positive_amounts',
            ),
            models.CheckConstraint(
                condition=Q(total_amount=Round(F('spp_amount') + F('catering_amount'), 2)),
                name='bill_total_is_sum',
            ),
            models.CheckConstraint(
                condition=Q(amount_paid__gte=0) & Q(amount_paid__lte=F('total_amount')),
                name='bill_amount_paid_within_total',
            ),
            models.CheckConstraint(
                condition=(
                    Q(status='paid', amount_paid__gte=F('total_amount'), paid_at__isnull=False)
                    | Q(status='unpaid', amount_paid__lt=F('total_amount'), paid_at__isnull=True)
                ),
                name='bill_status_matches_settlement',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'student_class']),
            models.Index(fields=['year', 'month', 'status']),
            models.Index(fields=['student', 'status']),
            models.Index(fields=['period_key']),
        ]

    @staticmethod
    def status_for(amount_paid, total_amount):
        if Decimal(amount_paid) >= Decimal(total_amount):
            return Bill.STATUS_PAID
        return Bill.STATUS_UNPAID

    @property
    def remaining_amount(self):
        remaining = Decimal(self.total_amount) - Decimal(self.amount_paid)
        return remaining if remaining > 0 else Decimal('0.00')

    @property
    def is_paid(self):
        return self.status == self.STATUS_PAID

    @property
    def is_partially_paid(self):
        # Derived only; the stored status stays two-valued.
        return self.status == self.STATUS_UNPAID and self.amount_paid > 0

    def amounts_changed(self, previous=None):
        if previous is None:
            previous = Bill.objects.filter(pk=self.pk).first()
        if previous is None:
            return False
        for field in self.AMOUNT_FIELDS:
            current = getattr(self, field)
            if current is None or Decimal(str(current)) != getattr(previous, field):
                return True
        return False

    def clean(self):
        super().clean()

        if self.spp_amount is None or self.spp_amount < 0:
            raise ValidationError({'spp_amount': 'SPP amount cannot be negative.'})
        if self.catering_amount is None or self.catering_amount < 0:
            raise ValidationError({'catering_amount': 'Catering amount cannot be negative.'})
        if Decimal(self.spp_amount) + Decimal(self.catering_amount) <= 0:
            raise ValidationError('Bill total must be greater than zero.')

        if self.month is not None and not 1 <= self.month <= 12:
            raise ValidationError({'month': 'Month must be between 1 and 12.'})

        if self.amount_paid is None or self.amount_paid < 0:
            raise ValidationError({'amount_paid': 'Paid amount cannot be negative.'})

        if not self.pk:
            return

        previous = Bill.objects.filter(pk=self.pk).first()
        if not previous:
            return

        if self.amounts_changed(previous):
            raise ValidationError('Bill amounts are fixed at creation and cannot be edited.')
        if self.amount_paid < previous.amount_paid:
            raise ValidationError({'amount_paid': 'Paid amount cannot decrease.'})
        if previous.status == self.STATUS_PAID and self.status != self.STATUS_PAID:
            raise ValidationError({'status': 'A paid bill cannot be reopened.'})

    def save(self, *args, **kwargs):
        if self._state.adding:
            self.total_amount = Decimal(self.spp_amount) + Decimal(self.catering_amount)
        elif self.amounts_changed():
            raise ValidationError('Bill amounts are fixed at creation and cannot be edited.')
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.student_nis or self.student_id} - {self.period_key} ({self.status})"


class GenerationRecord(models.Model):
    period_key = models.CharField(max_length=7, primary_key=True)
    year = models.PositiveSmallIntegerField()
    month = models.PositiveSmallIntegerField()
    count = models.PositiveIntegerField(default=0)
    generated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-year', '-month']

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError('Generation records are written once and never changed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError('Generation records cannot be deleted.')

    def __str__(self):
        return f"{self.period_key}: {self.count} bills"
