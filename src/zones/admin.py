from django.contrib import admin

from .models import ServiceZone, ZoneAssignment


class ZoneAssignmentInline(admin.TabularInline):
    model = ZoneAssignment
    extra = 0
    autocomplete_fields = ("user",)


@admin.register(ServiceZone)
class ServiceZoneAdmin(admin.ModelAdmin):
    list_display = ("name", "short_form", "user_count", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "short_form")
    inlines = [ZoneAssignmentInline]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("users")

    @admin.display(description="Users")
    def user_count(self, obj):
        return obj.users.count()
