"""Service zones and the users assigned to them."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class ServiceZone(TimeStampedModel):
    """A geographic sales region (WEST, SOUTH, NORTH, EAST)."""

    name = models.CharField("name", max_length=50, unique=True)
    short_form = models.CharField("short form", max_length=10, blank=True, default="")
    description = models.TextField("description", blank=True, default="")
    is_active = models.BooleanField("active", default=True, db_index=True)
    users = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="ZoneAssignment",
        related_name="service_zones",
        blank=True,
        verbose_name="users",
    )

    class Meta:
        verbose_name = "service zone"
        verbose_name_plural = "service zones"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ZoneAssignment(TimeStampedModel):
    """Links a user to a service zone."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="zone_assignments",
        verbose_name="user",
    )
    zone = models.ForeignKey(
        ServiceZone,
        on_delete=models.CASCADE,
        related_name="assignments",
        verbose_name="zone",
    )

    class Meta:
        verbose_name = "zone assignment"
        verbose_name_plural = "zone assignments"
        constraints = [
            models.UniqueConstraint(fields=["user", "zone"], name="uniq_zone_assignment"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.zone}"
