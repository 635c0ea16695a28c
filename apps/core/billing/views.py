from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .exceptions import (
    AlreadyPaidError,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from .forms import (
    BillPaymentForm,
    ManualBillForm,
    PeriodReportForm,
    ReportFilterForm,
)
from .reports import arrears_report, bill_row, dashboard_summary, period_report, student_bills
from .services import apply_payment, check_and_generate_bills, create_manual_bill


def _error(message, code, status):
    return JsonResponse({'error': message, 'code': code}, status=status)


def _form_error(form):
    return JsonResponse({'error': 'Invalid input.', 'code': 'invalid', 'fields': form.errors.get_json_data()}, status=400)


def _service_error(exc):
    if isinstance(exc, AlreadyPaidError):
        return _error('; '.join(exc.messages), 'already_paid', 400)
    if isinstance(exc, ValidationError):
        return _error('; '.join(exc.messages), 'invalid', 400)
    if isinstance(exc, NotFoundError):
        return _error(str(exc), 'not_found', 404)
    if isinstance(exc, ConflictError):
        return _error(str(exc), 'conflict', 409)
    return _error(str(exc), 'store_unavailable', 503)


SERVICE_ERRORS = (ValidationError, NotFoundError, ConflictError, StoreUnavailableError)


# Always the current local date; back-filling a period is done with the generate_bills command.
@csrf_exempt
@require_POST
def generate_bills(request):
    try:
        result = check_and_generate_bills()
    except SERVICE_ERRORS as exc:
        return _service_error(exc)
    return JsonResponse(result)


@csrf_exempt
@require_POST
def manual_bill_create(request):
    form = ManualBillForm(request.POST)
    if not form.is_valid():
        return _form_error(form)

    data = form.cleaned_data
    try:
        bill = create_manual_bill(
            student_id=data['student_id'],
            spp_amount=data['spp_amount'] or 0,
            catering_amount=data['catering_amount'] or 0,
            description=data['description'],
            tag=data['tag'],
        )
    except SERVICE_ERRORS as exc:
        return _service_error(exc)
    return JsonResponse({'bill': bill_row(bill)}, status=201)


@require_GET
def student_bill_list(request, student_id):
    try:
        rows = student_bills(student_id)
    except SERVICE_ERRORS as exc:
        return _service_error(exc)
    return JsonResponse({'student_id': student_id, 'bills': rows})


@csrf_exempt
@require_POST
def bill_pay(request, bill_id):
    form = BillPaymentForm(request.POST)
    if not form.is_valid():
        return _form_error(form)

    try:
        bill = apply_payment(bill_id=bill_id, amount=form.cleaned_data['amount'])
    except SERVICE_ERRORS as exc:
        return _service_error(exc)
    return JsonResponse({'bill': bill_row(bill)})


@require_GET
def arrears_report_view(request):
    form = ReportFilterForm(request.GET)
    if not form.is_valid():
        return _form_error(form)

    try:
        report = arrears_report(class_filter=form.cleaned_data['student_class'] or None)
    except SERVICE_ERRORS as exc:
        return _service_error(exc)
    return JsonResponse(report)


@require_GET
def period_report_view(request):
    form = PeriodReportForm(request.GET)
    if not form.is_valid():
        return _form_error(form)

    data = form.cleaned_data
    try:
        report = period_report(
            year=data['year'],
            month=data['month'],
            status=data['status'],
            class_filter=data['student_class'] or None,
        )
    except SERVICE_ERRORS as exc:
        return _service_error(exc)
    return JsonResponse(report)


@require_GET
def dashboard(request):
    try:
        summary = dashboard_summary()
    except SERVICE_ERRORS as exc:
        return _service_error(exc)
    return JsonResponse(summary)
