from django.contrib import admin

from .models import Offer, OfferActivity


class OfferActivityInline(admin.TabularInline):
    model = OfferActivity
    extra = 0
    fields = ("created_at", "kind", "from_status", "to_status", "from_stage", "to_stage", "notes", "user")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    list_display = (
        "offer_reference_number",
        "company",
        "product_type",
        "stage",
        "status",
        "zone",
        "assigned_to",
        "offer_value",
        "po_value",
        "offer_month",
    )
    list_filter = ("stage", "status", "priority", "product_type", "zone")
    search_fields = ("offer_reference_number", "company", "title", "customer__company_name")
    list_select_related = ("zone", "assigned_to", "customer")
    raw_id_fields = ("customer", "contact", "asset")
    readonly_fields = ("created_at", "updated_at")
    date_hierarchy = "created_at"
    inlines = [OfferActivityInline]
    fieldsets = (
        (None, {
            "fields": (
                "offer_reference_number",
                "offer_reference_date",
                "title",
                "description",
                "product_type",
                "lead",
            ),
        }),
        ("Customer", {
            "fields": ("customer", "contact", "asset", "company", "location", "department"),
        }),
        ("Funnel", {
            "fields": ("stage", "status", "priority", "zone", "assigned_to", "probability_percentage"),
        }),
        ("Values", {
            "fields": (
                "offer_value",
                "po_value",
                "offer_month",
                "po_expected_month",
                "po_received_month",
                "po_date",
            ),
        }),
        ("Metadata", {
            "classes": ("collapse",),
            "fields": ("remarks", "created_by", "updated_by", "created_at", "updated_at"),
        }),
    )


@admin.register(OfferActivity)
class OfferActivityAdmin(admin.ModelAdmin):
    list_display = ("offer", "kind", "from_stage", "to_stage", "from_status", "to_status", "user", "created_at")
    list_filter = ("kind", "to_stage", "to_status")
    search_fields = ("offer__offer_reference_number", "notes", "user__name")
    list_select_related = ("offer", "user")
    raw_id_fields = ("offer",)
    readonly_fields = ("created_at", "updated_at")
