from django.contrib import admin

from .models import Bill, FeeSettings, GenerationRecord


@admin.register(FeeSettings)
class FeeSettingsAdmin(admin.ModelAdmin):
    list_display = ('spp_amount', 'catering_amount', 'billing_day', 'updated_at')

    def has_add_permission(self, request):
        return not FeeSettings.objects.exists()


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = (
        'student_nis',
        'student_name',
        'student_class',
        'period_key',
        'total_amount',
        'amount_paid',
        'status',
        'paid_at',
    )
    list_filter = ('status', 'kind', 'student_class', 'year', 'month')
    search_fields = ('student_nis', 'student_name', 'period_key', 'description')
    readonly_fields = (
        'student',
        'kind',
        'period_key',
        'year',
        'month',
        'idempotency_key',
        'student_name',
        'student_nis',
        'student_class',
        'spp_amount',
        'catering_amount',
        'total_amount',
        'amount_paid',
        'status',
        'created_at',
        'last_payment_at',
        'paid_at',
        'version',
    )

    def has_add_permission(self, request):
        return False


@admin.register(GenerationRecord)
class GenerationRecordAdmin(admin.ModelAdmin):
    list_display = ('period_key', 'count', 'generated_at')
    readonly_fields = ('period_key', 'year', 'month', 'count', 'generated_at')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
