"""Admin configuration for the catalog app."""
from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "sku",
        "owner",
        "category",
        "cost_price",
        "selling_price",
        "is_active",
    )
    list_filter = ("is_active", "category")
    search_fields = ("name", "sku", "owner__email")
    list_select_related = ("owner",)
    list_editable = ("is_active",)
