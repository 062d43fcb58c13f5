"""Admin configuration for the metrics app."""
from django.contrib import admin

from .models import BusinessMetrics


@admin.register(BusinessMetrics)
class BusinessMetricsAdmin(admin.ModelAdmin):
    list_display = ("owner", "revenue", "expenses", "profit", "cash_flow", "last_applied_at")
    search_fields = ("owner__email",)
    readonly_fields = ("profit", "cash_flow", "last_applied_at")
    list_select_related = ("owner",)
