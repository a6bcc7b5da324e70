"""Models for the customers app."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel

DEFAULT_CONTACT_NAME = "Default Contact"


class Customer(TimeStampedModel):
    """A customer company. ``company_name`` is the natural key used by imports."""

    company_name = models.CharField("company name", max_length=255, db_index=True)
    location = models.CharField("location", max_length=255, blank=True, default="")
    department = models.CharField("department", max_length=255, blank=True, default="")
    zone = models.ForeignKey(
        "zones.ServiceZone",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="customers",
        verbose_name="zone",
    )
    is_active = models.BooleanField("active", default=True, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="customers_created",
        verbose_name="created by",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="customers_updated",
        verbose_name="updated by",
    )

    class Meta:
        verbose_name = "customer"
        verbose_name_plural = "customers"
        ordering = ["company_name"]

    def __str__(self):
        return self.company_name


class Contact(TimeStampedModel):
    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="contacts",
        verbose_name="customer",
    )
    contact_person_name = models.CharField("contact person", max_length=255)
    contact_number = models.CharField("contact number", max_length=50, blank=True, default="")
    email = models.EmailField("email", blank=True, default="")
    is_primary = models.BooleanField("primary", default=False)
    is_active = models.BooleanField("active", default=True, db_index=True)

    class Meta:
        verbose_name = "contact"
        verbose_name_plural = "contacts"
        ordering = ["customer", "-is_primary", "contact_person_name"]
        indexes = [
            models.Index(fields=["customer", "contact_person_name"]),
        ]

    def __str__(self):
        return f"{self.contact_person_name} ({self.customer})"


class Asset(TimeStampedModel):
    """A machine installed at a customer site."""

    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="assets",
        verbose_name="customer",
    )
    asset_name = models.CharField("asset name", max_length=255)
    machine_serial_number = models.CharField("machine serial number", max_length=255, db_index=True)
    model = models.CharField("model", max_length=255, blank=True, default="")
    is_active = models.BooleanField("active", default=True, db_index=True)

    class Meta:
        verbose_name = "asset"
        verbose_name_plural = "assets"
        ordering = ["customer", "asset_name"]

    def __str__(self):
        return f"{self.asset_name} [{self.machine_serial_number}]"
