"""Sales offers tracked through the funnel."""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class ProductType(models.TextChoices):
    RELOCATION = "RELOCATION", "Relocation"
    CONTRACT = "CONTRACT", "Contract"
    SPP = "SPP", "SPP"
    UPGRADE_KIT = "UPGRADE_KIT", "Upgrade kit"
    MIDLIFE_UPGRADE = "MIDLIFE_UPGRADE", "Midlife upgrade"
    RETROFIT_KIT = "RETROFIT_KIT", "Retrofit kit"
    BD_CHARGES = "BD_CHARGES", "BD charges"
    BD_SPARE = "BD_SPARE", "BD spare"
    OTHER = "OTHER", "Other"


class OfferStage(models.TextChoices):
    INITIAL = "INITIAL", "Initial"
    PROPOSAL_SENT = "PROPOSAL_SENT", "Proposal sent"
    NEGOTIATION = "NEGOTIATION", "Negotiation"
    FINAL_APPROVAL = "FINAL_APPROVAL", "Final approval"
    PO_RECEIVED = "PO_RECEIVED", "PO received"
    ORDER_BOOKED = "ORDER_BOOKED", "Order booked"
    WON = "WON", "Won"
    LOST = "LOST", "Lost"


class OfferStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    QUOTED = "QUOTED", "Quoted"
    NEGOTIATION = "NEGOTIATION", "Negotiation"
    WON = "WON", "Won"
    LOST = "LOST", "Lost"
    ON_HOLD = "ON_HOLD", "On hold"
    CANCELLED = "CANCELLED", "Cancelled"


class OfferPriority(models.TextChoices):
    LOW = "LOW", "Low"
    MEDIUM = "MEDIUM", "Medium"
    HIGH = "HIGH", "High"
    CRITICAL = "CRITICAL", "Critical"


# Stages whose value counts as booked business.
BOOKED_STAGES = (OfferStage.WON, OfferStage.PO_RECEIVED, OfferStage.ORDER_BOOKED)
CLOSED_STATUSES = (OfferStatus.CANCELLED, OfferStatus.LOST)


class OfferQuerySet(models.QuerySet):
    def booked(self):
        return self.filter(stage__in=BOOKED_STAGES)

    def open_pipeline(self):
        return self.exclude(status__in=CLOSED_STATUSES)

    def visible_to(self, user):
        """Offers a user may see: everything for admins, own zones otherwise."""
        if user.is_superuser or getattr(user, "is_admin", False):
            return self
        return self.filter(zone__in=user.service_zones.filter(is_active=True))


class Offer(TimeStampedModel):
    offer_reference_number = models.CharField(
        "offer reference number",
        max_length=100,
        unique=True,
    )
    offer_reference_date = models.DateField("offer reference date", null=True, blank=True)
    title = models.CharField("title", max_length=255, blank=True, default="")
    description = models.TextField("description", blank=True, default="")
    product_type = models.CharField(
        "product type",
        max_length=20,
        choices=ProductType.choices,
        null=True,
        blank=True,
        db_index=True,
    )
    lead = models.CharField("lead", max_length=100, blank=True, default="")
    registration_date = models.DateField("registration date", null=True, blank=True)

    # Snapshot of the customer data as it appeared on the source sheet.
    company = models.CharField("company", max_length=255, blank=True, default="")
    location = models.CharField("location", max_length=255, blank=True, default="")
    department = models.CharField("department", max_length=255, blank=True, default="")
    contact_person_name = models.CharField("contact person", max_length=255, blank=True, default="")
    contact_number = models.CharField("contact number", max_length=50, blank=True, default="")
    email = models.CharField("email", max_length=255, blank=True, default="")
    machine_serial_number = models.CharField("machine serial number", max_length=255, blank=True, default="")

    status = models.CharField(
        "status",
        max_length=20,
        choices=OfferStatus.choices,
        default=OfferStatus.OPEN,
        db_index=True,
    )
    stage = models.CharField(
        "stage",
        max_length=20,
        choices=OfferStage.choices,
        default=OfferStage.INITIAL,
        db_index=True,
    )
    priority = models.CharField(
        "priority",
        max_length=10,
        choices=OfferPriority.choices,
        default=OfferPriority.MEDIUM,
    )

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="offers",
        verbose_name="customer",
    )
    contact = models.ForeignKey(
        "customers.Contact",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="offers",
        verbose_name="contact",
    )
    asset = models.ForeignKey(
        "customers.Asset",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="offers",
        verbose_name="asset",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="offers_assigned",
        verbose_name="assigned to",
    )
    zone = models.ForeignKey(
        "zones.ServiceZone",
        on_delete=models.PROTECT,
        related_name="offers",
        verbose_name="zone",
    )

    offer_value = models.DecimalField(
        "offer value", max_digits=14, decimal_places=2, null=True, blank=True,
    )
    po_value = models.DecimalField(
        "PO value", max_digits=14, decimal_places=2, null=True, blank=True,
    )
    probability_percentage = models.PositiveSmallIntegerField(
        "probability (%)",
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    offer_month = models.CharField("offer month", max_length=7, blank=True, default="", db_index=True)
    po_expected_month = models.CharField("PO expected month", max_length=7, blank=True, default="", db_index=True)
    po_received_month = models.CharField("PO received month", max_length=7, blank=True, default="")
    po_date = models.DateField("PO date", null=True, blank=True)
    remarks = models.TextField("remarks", blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="offers_created",
        verbose_name="created by",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="offers_updated",
        verbose_name="updated by",
    )

    objects = OfferQuerySet.as_manager()

    class Meta:
        verbose_name = "offer"
        verbose_name_plural = "offers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["zone", "stage"]),
            models.Index(fields=["assigned_to", "stage"]),
        ]

    def __str__(self):
        return self.offer_reference_number

    @property
    def is_booked(self):
        return self.stage in BOOKED_STAGES

    @property
    def booked_value(self) -> Decimal:
        return booked_value(self.po_value, self.offer_value)


def booked_value(po_value, offer_value) -> Decimal:
    """PO value when one was recorded, the offered value otherwise."""
    if po_value:
        return Decimal(po_value)
    if offer_value:
        return Decimal(offer_value)
    return Decimal("0")


class OfferActivity(TimeStampedModel):
    """Change log of an offer: status and stage moves, and free-text notes."""

    class Kind(models.TextChoices):
        STATUS_CHANGE = "STATUS_CHANGE", "Status change"
        NOTE = "NOTE", "Note"

    offer = models.ForeignKey(
        Offer,
        on_delete=models.CASCADE,
        related_name="activities",
        verbose_name="offer",
    )
    kind = models.CharField("kind", max_length=20, choices=Kind.choices)
    from_status = models.CharField("from status", max_length=20, choices=OfferStatus.choices, blank=True, default="")
    to_status = models.CharField("to status", max_length=20, choices=OfferStatus.choices, blank=True, default="")
    from_stage = models.CharField("from stage", max_length=20, choices=OfferStage.choices, blank=True, default="")
    to_stage = models.CharField("to stage", max_length=20, choices=OfferStage.choices, blank=True, default="")
    notes = models.TextField("notes", blank=True, default="")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="offer_activities",
        verbose_name="user",
    )

    class Meta:
        verbose_name = "offer activity"
        verbose_name_plural = "offer activities"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["offer", "created_at"]),
        ]

    def __str__(self):
        return f"{self.offer_id} {self.kind}"
