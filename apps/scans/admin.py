from django.contrib import admin
from django.utils.html import format_html

from .models import ScanLog


@admin.register(ScanLog)
class ScanLogAdmin(admin.ModelAdmin):
    """Read-only view of the scan audit trail"""

    list_display = ["scan_time", "ticket_code", "event", "operator", "result_display", "result_code", "fraud_risk_level"]
    list_filter = ["result", "result_code", "fraud_risk_level", "scan_time"]
    search_fields = ["ticket_code", "event__title", "operator__email"]
    date_hierarchy = "scan_time"

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("event", "operator")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def result_display(self, obj):
        color = "green" if obj.result == ScanLog.Result.VALID else "red"
        return format_html('<span style="color: {};">{}</span>', color, obj.get_result_display())

    result_display.short_description = "Result"
