from django.contrib import admin

from .models import Target


@admin.register(Target)
class TargetAdmin(admin.ModelAdmin):
    list_display = (
        "target_period",
        "period_type",
        "scope",
        "zone",
        "user",
        "product_type",
        "target_value",
        "target_offer_count",
    )
    list_filter = ("scope", "period_type", "product_type", "zone")
    search_fields = ("target_period", "zone__name", "user__name")
    list_select_related = ("zone", "user")
    readonly_fields = ("created_at", "updated_at")
