import uuid
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError
from django.db.models import Sum

from .exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def to_decimal(value) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}.")
    try:
        amount = Decimal(str(value if value not in (None, '') else '0'))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}.")
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}.")
    return amount


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def sum_amount(queryset, field_name='total_amount') -> Decimal:
    value = queryset.aggregate(total=Sum(field_name)).get('total')
    return quantize(value)


def chunked(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


def period_key_for(year: int, month: int) -> str:
    return f"{int(year):04d}-{int(month):02d}"


def bill_idempotency_key(period_key: str, student_id) -> str:
    return f"{period_key}:{student_id}"


def manual_bill_tag(moment) -> str:
    return f"MANUAL_{int(moment.timestamp() * 1000)}_{uuid.uuid4().hex[:8]}"


@contextmanager
def store_errors(action):
    """Translate database failures inside the block into StoreUnavailableError.

    Integrity errors pass through untouched so callers can map them to a
    conflict.
    """
    try:
        yield
    except IntegrityError:
        raise
    except DatabaseError as exc:
        logger.error("Store failure while %s: %s", action, exc)
        raise StoreUnavailableError(f"Database unavailable while {action}.") from exc
