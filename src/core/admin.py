"""Admin configuration for the core app."""
from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action", "entity_type", "entity_id", "actor")
    list_filter = ("action", "entity_type")
    search_fields = ("entity_id", "actor__email")
    readonly_fields = (
        "actor",
        "action",
        "entity_type",
        "entity_id",
        "before_json",
        "after_json",
        "created_at",
    )
    list_select_related = ("actor",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
