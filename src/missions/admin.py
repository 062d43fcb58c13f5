"""Admin configuration for the missions app."""
from django.contrib import admin

from .models import Mission


@admin.register(Mission)
class MissionAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "owner",
        "mission_type",
        "status",
        "event_source",
        "cost_to_solve",
        "deadline",
        "resolved_at",
    )
    list_filter = ("status", "event_source", "mission_type")
    search_fields = ("title", "owner__email", "location")
    list_select_related = ("owner",)
    date_hierarchy = "created_at"
    readonly_fields = (
        "owner",
        "title",
        "description",
        "mission_type",
        "status",
        "deadline",
        "cost_to_solve",
        "impact",
        "event_source",
        "location",
        "source_url",
        "dedup_key",
        "resolved_at",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
