"""Admin configuration for the stock app."""
from django.contrib import admin

from .models import InventoryRecord


@admin.register(InventoryRecord)
class InventoryRecordAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "sku",
        "owner",
        "quantity",
        "reserved_quantity",
        "available_quantity",
        "reorder_point",
        "needs_restock",
        "last_restocked_at",
    )
    search_fields = ("product__name", "sku", "owner__email")
    readonly_fields = ("available_quantity", "needs_restock", "last_restocked_at")
    list_select_related = ("product", "owner")
