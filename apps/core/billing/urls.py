from django.urls import path

from .views import (
    arrears_report_view,
    bill_pay,
    dashboard,
    generate_bills,
    manual_bill_create,
    period_report_view,
    student_bill_list,
)

urlpatterns = [
    path('generate/', generate_bills, name='bill_generate_core'),

    path('bills/manual/', manual_bill_create, name='manual_bill_create_core'),
    path('bills/<int:bill_id>/pay/', bill_pay, name='bill_pay_core'),
    path('students/<int:student_id>/bills/', student_bill_list, name='student_bill_list_core'),

    path('reports/arrears/', arrears_report_view, name='arrears_report_core'),
    path('reports/period/', period_report_view, name='period_report_core'),
    path('dashboard/', dashboard, name='billing_dashboard_core'),
]
