"""Admin configuration for the customers app."""
from django.contrib import admin

from .models import Asset, Contact, Customer


class ContactInline(admin.TabularInline):
    model = Contact
    extra = 0
    fields = ("contact_person_name", "contact_number", "email", "is_primary", "is_active")


class AssetInline(admin.TabularInline):
    model = Asset
    extra = 0
    fields = ("asset_name", "machine_serial_number", "model", "is_active")


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = (
        "company_name",
        "location",
        "department",
        "zone",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "zone")
    search_fields = ("company_name", "location", "department")
    list_editable = ("is_active",)
    readonly_fields = ("id", "created_at", "updated_at")
    list_select_related = ("zone",)
    date_hierarchy = "created_at"
    inlines = [ContactInline, AssetInline]
    fieldsets = (
        (None, {
            "fields": ("company_name", "location", "department", "zone"),
        }),
        ("Status", {
            "fields": ("is_active",),
        }),
        ("Metadata", {
            "classes": ("collapse",),
            "fields": ("id", "created_by", "updated_by", "created_at", "updated_at"),
        }),
    )


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ("contact_person_name", "customer", "contact_number", "email", "is_primary", "is_active")
    list_filter = ("is_active", "is_primary")
    search_fields = ("contact_person_name", "customer__company_name", "email")
    list_select_related = ("customer",)


@admin.register(Asset)
class AssetAdmin(admin.ModelAdmin):
    list_display = ("asset_name", "machine_serial_number", "model", "customer", "is_active")
    list_filter = ("is_active",)
    search_fields = ("asset_name", "machine_serial_number", "customer__company_name")
    list_select_related = ("customer",)
