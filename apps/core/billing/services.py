from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from apps.core.students.models import Student

from .exceptions import AlreadyPaidError, ConflictError, NotFoundError, StoreUnavailableError, ValidationError
from .models import Bill, FeeSettings, GenerationRecord
from .utils import (
    bill_idempotency_key,
    chunked,
    manual_bill_tag,
    period_key_for,
    quantize,
    store_errors,
)

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 500

GENERATION_NOT_CONFIGURED = 'not_configured'
GENERATION_NOT_DUE = 'not_due'
GENERATION_ALREADY_DONE = 'already_generated'
GENERATION_NO_STUDENTS = 'no_students'
GENERATION_DONE = 'generated'


def _batch_size() -> int:
    size = int(getattr(settings, 'BILLING_BATCH_SIZE', MAX_BATCH_SIZE) or MAX_BATCH_SIZE)
    return max(1, min(size, MAX_BATCH_SIZE))


def _resolve_moment(now):
    """Return ``(moment, today)`` for an aware datetime, naive datetime or date."""
    if now is None:
        moment = timezone.now()
        return moment, timezone.localdate(moment)
    if isinstance(now, datetime):
        if timezone.is_aware(now):
            return now, timezone.localdate(now)
        return timezone.make_aware(now), now.date()
    if isinstance(now, date):
        return timezone.now(), now
    raise ValidationError(f"Unsupported date value: {now!r}.")


def _fee_snapshot(fee_settings: FeeSettings | None):
    if fee_settings is None:
        raise ValidationError('Fee settings are not configured.')

    spp = quantize(fee_settings.spp_amount)
    catering = quantize(fee_settings.catering_amount)
    if spp < 0 or catering < 0:
        raise ValidationError('Fee amounts cannot be negative.')
    if spp + catering <= 0:
        raise ValidationError('Fee settings total must be greater than zero.')
    return spp, catering


# Period gate

def should_generate(today: date, billing_day) -> bool:
    if not billing_day:
        return False
    return today.day >= int(billing_day)


def try_claim_period(period_key: str, *, year: int, month: int, count: int, generated_at=None) -> bool:
    """Create the generation marker for ``period_key`` unless it already exists."""
    with store_errors(f"claiming period {period_key}"):
        _, created = GenerationRecord.objects.get_or_create(
            period_key=period_key,
            defaults={
                'year': year,
                'month': month,
                'count': count,
                'generated_at': generated_at or timezone.now(),
            },
        )
    return created


# Bill generator

def _monthly_bill(student: Student, *, period_key, year, month, spp, catering, created_at) -> Bill:
    return Bill(
        student=student,
        kind=Bill.KIND_MONTHLY,
        period_key=period_key,
        year=year,
        month=month,
        idempotency_key=bill_idempotency_key(period_key, student.id),
        student_name=student.name,
        student_nis=student.nis,
        student_class=student.student_class,
        spp_amount=spp,
        catering_amount=catering,
        total_amount=spp + catering,
        amount_paid=Decimal('0.00'),
        status=Bill.STATUS_UNPAID,
        description=f"Tagihan Bulan {month}/{year}",
        created_at=created_at,
        paid_at=None,
    )


def _insert_chunk(chunk, *, period_key: str, chunk_number: int):
    try:
        with transaction.atomic():
            # Bills already written for the period by an earlier or concurrent
            # run hit the unique idempotency key and are skipped.
            Bill.objects.bulk_create(chunk, ignore_conflicts=True)
    except DatabaseError as exc:
        logger.error("Bill chunk %s for %s failed: %s", chunk_number, period_key, exc)
        raise StoreUnavailableError(
            f"Writing bill chunk {chunk_number} for {period_key} failed; rerun generation to resume."
        ) from exc
    logger.debug("Committed bill chunk %s for %s (%s rows)", chunk_number, period_key, len(chunk))


def generate_period_bills(*, year: int, month: int, fee_settings: FeeSettings | None = None, now=None):
    if not 1 <= int(month) <= 12:
        raise ValidationError('Month must be between 1 and 12.')

    if fee_settings is None:
        with store_errors('reading fee settings'):
            fee_settings = FeeSettings.get_current()
    spp, catering = _fee_snapshot(fee_settings)

    moment, _ = _resolve_moment(now)
    period_key = period_key_for(year, month)
    monthly_bills = Bill.objects.filter(kind=Bill.KIND_MONTHLY, period_key=period_key)

    with store_errors(f"loading students for {period_key}"):
        students = list(Student.objects.billable().order_by('id'))
        existing = monthly_bills.count()

    bills = [
        _monthly_bill(
            student,
            period_key=period_key,
            year=year,
            month=month,
            spp=spp,
            catering=catering,
            created_at=moment,
        )
        for student in students
    ]

    logger.info("Generating %s bills for %s", len(bills), period_key)
    for chunk_number, chunk in enumerate(chunked(bills, _batch_size()), start=1):
        _insert_chunk(chunk, period_key=period_key, chunk_number=chunk_number)

    with store_errors(f"counting bills for {period_key}"):
        count = monthly_bills.count()

    claimed = try_claim_period(
        period_key,
        year=year,
        month=month,
        count=count,
        generated_at=moment,
    )
    if not claimed:
        logger.info("Period %s was claimed by another run", period_key)

    created = count - existing
    logger.info("Bill generation for %s finished: %s new, %s total", period_key, created, count)
    return {
        'period_key': period_key,
        'created': created,
        'count': count,
        'claimed': claimed,
    }


def check_and_generate_bills(now=None):
    moment, today = _resolve_moment(now)
    period_key = period_key_for(today.year, today.month)

    with store_errors('reading fee settings'):
        fee_settings = FeeSettings.get_current()
    if fee_settings is None:
        logger.info("No fee settings found, skipping automatic billing.")
        return {'status': GENERATION_NOT_CONFIGURED, 'period_key': period_key}

    if not should_generate(today, fee_settings.billing_day):
        logger.info(
            "Not yet billing day. Today: %s, billing day: %s",
            today.day,
            fee_settings.billing_day or '-',
        )
        return {'status': GENERATION_NOT_DUE, 'period_key': period_key}

    with store_errors(f"checking period {period_key}"):
        already_generated = GenerationRecord.objects.filter(pk=period_key).exists()
        has_students = Student.objects.billable().exists()

    if already_generated:
        logger.info("Bills already generated for %s.", period_key)
        return {'status': GENERATION_ALREADY_DONE, 'period_key': period_key}

    if not has_students:
        logger.info("No active students found for %s.", period_key)
        return {'status': GENERATION_NO_STUDENTS, 'period_key': period_key}

    result = generate_period_bills(
        year=today.year,
        month=today.month,
        fee_settings=fee_settings,
        now=moment,
    )
    status = GENERATION_DONE if result['claimed'] else GENERATION_ALREADY_DONE
    return {'status': status, **result}


@transaction.atomic
def create_manual_bill(*, student_id, spp_amount, catering_amount, description='', tag=None, now=None) -> Bill:
    spp = quantize(spp_amount)
    catering = quantize(catering_amount)
    if spp < 0 or catering < 0:
        raise ValidationError('Bill amounts cannot be negative.')
    if spp + catering <= 0:
        raise ValidationError('Manual bill total must be greater than zero.')

    moment, today = _resolve_moment(now)
    tag = (tag or '').strip() or manual_bill_tag(moment)
    if len(tag) > 64:
        raise ValidationError({'tag': 'Bill tag cannot exceed 64 characters.'})

    with store_errors('creating a manual bill'):
        student = Student.objects.filter(pk=student_id).first()
        if student is None:
            raise NotFoundError(f"Student {student_id} does not exist.")

        bill = Bill(
            student=student,
            kind=Bill.KIND_MANUAL,
            period_key=tag,
            year=today.year,
            month=today.month,
            idempotency_key=bill_idempotency_key(tag, student.id),
            student_name=student.name,
            student_nis=student.nis,
            student_class=student.student_class,
            spp_amount=spp,
            catering_amount=catering,
            amount_paid=Decimal('0.00'),
            status=Bill.STATUS_UNPAID,
            description=(description or '').strip()[:255] or 'Tagihan Tambahan',
            created_at=moment,
        )
        try:
            with transaction.atomic():
                bill.save(force_insert=True)
        except IntegrityError as exc:
            logger.warning("Manual bill tag %s reused for student %s", tag, student.nis)
            raise ConflictError(f"Bill tag {tag} is already used for student {student.nis}.") from exc

    logger.info("Created manual bill %s for student %s (%s)", bill.pk, student.nis, bill.total_amount)
    return bill


# Payment ledger

def apply_payment(*, bill_id, amount, now=None) -> Bill:
    amount = quantize(amount)
    if amount <= 0:
        raise ValidationError('Payment amount must be greater than zero.')

    moment, _ = _resolve_moment(now)

    with store_errors(f"applying payment to bill {bill_id}"):
        with transaction.atomic():
            bill = Bill.objects.select_for_update().filter(pk=bill_id).first()
            if bill is None:
                raise NotFoundError(f"Bill {bill_id} does not exist.")

            if bill.status == Bill.STATUS_PAID:
                raise AlreadyPaidError(f"Bill {bill.pk} is already paid.")

            remaining = quantize(bill.total_amount - bill.amount_paid)
            if amount > remaining:
                raise ValidationError(f"Payment exceeds remaining balance ({remaining}).")

            new_paid = quantize(bill.amount_paid + amount)
            status = Bill.status_for(new_paid, bill.total_amount)
            changes = {
                'amount_paid': new_paid,
                'status': status,
                'last_payment_at': moment,
            }
            if status == Bill.STATUS_PAID:
                changes['paid_at'] = moment

            if not Bill.objects.update_versioned(bill.pk, bill.version, **changes):
                logger.warning("Stale version %s for bill %s", bill.version, bill.pk)
                raise ConflictError(f"Bill {bill.pk} was changed by another payment; reload and retry.")

        bill.refresh_from_db()

    logger.info(
        "Applied payment %s to bill %s: paid %s of %s (%s)",
        amount,
        bill.pk,
        bill.amount_paid,
        bill.total_amount,
        bill.status,
    )
    return bill
