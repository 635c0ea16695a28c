from decimal import Decimal

from django.db.models import Count, F, Sum

from apps.core.students.models import CLASS_OPTIONS, Student

from .exceptions import NotFoundError, ValidationError
from .models import Bill
from .utils import quantize, store_errors, sum_amount

PERIOD_STATUS_ALL = 'all'
PERIOD_STATUS_FILTERS = (PERIOD_STATUS_ALL, Bill.STATUS_PAID)


def bill_row(bill: Bill) -> dict:
    return {
        'id': bill.pk,
        'student_id': bill.student_id,
        'student_name': bill.student_name,
        'student_nis': bill.student_nis,
        'student_class': bill.student_class,
        'kind': bill.kind,
        'period_key': bill.period_key,
        'year': bill.year,
        'month': bill.month,
        'description': bill.description,
        'spp_amount': bill.spp_amount,
        'catering_amount': bill.catering_amount,
        'total_amount': bill.total_amount,
        'amount_paid': bill.amount_paid,
        'remaining_amount': bill.remaining_amount,
        'status': bill.status,
        'is_partially_paid': bill.is_partially_paid,
        'created_at': bill.created_at,
        'last_payment_at': bill.last_payment_at,
        'paid_at': bill.paid_at,
    }


def arrears_report(class_filter=None):
    """Outstanding balance per student over every unpaid bill, whatever its period."""
    with store_errors('building the arrears report'):
        bills = list(
            Bill.objects.unpaid()
            .for_class(class_filter)
            .order_by('year', 'month', 'created_at', 'id')
        )

    students = {}
    grand_total = Decimal('0.00')
    for bill in bills:
        row = students.setdefault(bill.student_id, {
            'student_id': bill.student_id,
            'student_name': bill.student_name,
            'student_nis': bill.student_nis,
            'student_class': bill.student_class,
            'total_debt': Decimal('0.00'),
            'total_spp': Decimal('0.00'),
            'total_catering': Decimal('0.00'),
            'bills': [],
        })
        remaining = bill.remaining_amount
        row['total_debt'] = quantize(row['total_debt'] + remaining)
        row['total_spp'] = quantize(row['total_spp'] + bill.spp_amount)
        row['total_catering'] = quantize(row['total_catering'] + bill.catering_amount)
        row['bills'].append(bill_row(bill))
        grand_total += remaining

    rows = sorted(students.values(), key=lambda row: (row['student_name'].lower(), row['student_id']))
    return {
        'rows': rows,
        'grand_total': quantize(grand_total),
    }


def period_report(*, year, month, status=PERIOD_STATUS_ALL, class_filter=None):
    """Raw bill rows for one calendar month plus column totals."""
    status = (status or PERIOD_STATUS_ALL).strip().lower()
    if status not in PERIOD_STATUS_FILTERS:
        raise ValidationError(
            {'status': 'Period reports accept "all" or "paid"; use the arrears report for unpaid bills.'}
        )
    try:
        year = int(year)
        month = int(month)
    except (TypeError, ValueError):
        raise ValidationError('Year and month must be numbers.')
    if not 1 <= month <= 12:
        raise ValidationError({'month': 'Month must be between 1 and 12.'})

    queryset = Bill.objects.for_period(year, month).for_class(class_filter)
    if status == Bill.STATUS_PAID:
        queryset = queryset.paid()

    with store_errors(f"building the period report for {year}-{month:02d}"):
        bills = list(queryset.order_by('created_at', 'id'))
        totals = {
            'spp_amount': sum_amount(queryset, 'spp_amount'),
            'catering_amount': sum_amount(queryset, 'catering_amount'),
            'total_amount': sum_amount(queryset, 'total_amount'),
        }

    return {
        'year': year,
        'month': month,
        'status': status,
        'rows': [bill_row(bill) for bill in bills],
        'totals': totals,
    }


def student_bills(student_id):
    with store_errors(f"loading bills for student {student_id}"):
        if not Student.objects.filter(pk=student_id).exists():
            raise NotFoundError(f"Student {student_id} does not exist.")
        bills = list(
            Bill.objects.for_student(student_id).order_by('-year', '-month', '-created_at', '-id')
        )
    return [bill_row(bill) for bill in bills]


def dashboard_summary():
    with store_errors('building the dashboard summary'):
        unpaid = Bill.objects.unpaid()
        outstanding = unpaid.aggregate(total=Sum(F('total_amount') - F('amount_paid'))).get('total')
        unpaid_count = unpaid.count()
        total_students = Student.objects.count()
        per_class = list(Student.objects.order_by().values('student_class').annotate(total=Count('id')))

    class_counts = {option: 0 for option in CLASS_OPTIONS}
    for entry in per_class:
        if entry['student_class']:
            class_counts[entry['student_class']] = entry['total']

    return {
        'total_students': total_students,
        'unpaid_bills': unpaid_count,
        'total_unpaid_amount': quantize(outstanding),
        'class_counts': class_counts,
    }
