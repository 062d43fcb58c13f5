"""Admin configuration for the ledger app."""
from django.contrib import admin

from .models import LedgerTransaction, ProductAllocation, Wallet


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ("owner", "balance", "updated_at")
    search_fields = ("owner__email",)
    readonly_fields = ("balance",)
    list_select_related = ("owner",)


@admin.register(LedgerTransaction)
class LedgerTransactionAdmin(admin.ModelAdmin):
    list_display = ("created_at", "owner", "transaction_type", "amount", "balance_after", "description")
    list_filter = ("transaction_type",)
    search_fields = ("owner__email", "description")
    list_select_related = ("owner",)
    readonly_fields = [f.name for f in LedgerTransaction._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ProductAllocation)
class ProductAllocationAdmin(admin.ModelAdmin):
    list_display = ("product", "owner", "allocated_budget", "used_budget", "updated_at")
    search_fields = ("product__name", "owner__email")
    list_select_related = ("product", "owner")
    readonly_fields = ("allocated_budget", "used_budget")
