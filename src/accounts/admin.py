from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from zones.models import ZoneAssignment

from .models import User


class UserZoneInline(admin.TabularInline):
    model = ZoneAssignment
    fk_name = "user"
    extra = 0
    verbose_name = "zone assignment"
    verbose_name_plural = "zone assignments"


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Sales team members, with their zones edited inline."""

    list_display = ("email", "name", "short_form", "role", "zones", "is_active", "last_login")
    list_filter = ("role", "is_active", "service_zones")
    search_fields = ("email", "name", "short_form", "phone")
    ordering = ("name",)
    inlines = [UserZoneInline]
    actions = ("promote_to_zone_manager", "deactivate_users")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("name", "short_form", "phone", "role")}),
        (
            "Access",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Activity", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "name", "short_form", "role", "password1", "password2"),
            },
        ),
    )
    readonly_fields = ("date_joined", "last_login")

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("service_zones")

    @admin.display(description="Zones")
    def zones(self, obj):
        return ", ".join(zone.name for zone in obj.service_zones.all()) or "-"

    @admin.action(description="Promote to zone manager")
    def promote_to_zone_manager(self, request, queryset):
        updated = queryset.filter(role=User.Role.ZONE_USER).update(role=User.Role.ZONE_MANAGER)
        self.message_user(request, f"{updated} user(s) promoted.")

    @admin.action(description="Deactivate selected users")
    def deactivate_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} user(s) deactivated.")
