"""Zone and user sales targets. Actuals are computed at read time."""
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from core.models import TimeStampedModel
from offers.models import ProductType


class Target(TimeStampedModel):
    """
    A value (and optional offer count) to reach in a month or a year.

    A target belongs either to a service zone or to a user, never both.
    ``target_period`` is ``YYYY-MM`` for monthly targets and ``YYYY`` for
    yearly ones.
    """

    class Scope(models.TextChoices):
        ZONE = "ZONE", "Zone"
        USER = "USER", "User"

    class PeriodType(models.TextChoices):
        MONTHLY = "MONTHLY", "Monthly"
        YEARLY = "YEARLY", "Yearly"

    scope = models.CharField("scope", max_length=10, choices=Scope.choices, db_index=True)
    zone = models.ForeignKey(
        "zones.ServiceZone",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="targets",
        verbose_name="zone",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="targets",
        verbose_name="user",
    )
    period_type = models.CharField(
        "period type",
        max_length=10,
        choices=PeriodType.choices,
        default=PeriodType.MONTHLY,
    )
    target_period = models.CharField("target period", max_length=7, db_index=True)
    product_type = models.CharField(
        "product type",
        max_length=20,
        choices=ProductType.choices,
        null=True,
        blank=True,
    )
    target_value = models.DecimalField("target value", max_digits=14, decimal_places=2)
    target_offer_count = models.PositiveIntegerField("target offer count", null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="targets_created",
        verbose_name="created by",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="targets_updated",
        verbose_name="updated by",
    )

    class Meta:
        verbose_name = "target"
        verbose_name_plural = "targets"
        ordering = ["-target_period", "scope"]
        constraints = [
            models.UniqueConstraint(
                fields=["zone", "target_period", "period_type", "product_type"],
                condition=Q(scope="ZONE"),
                name="uniq_zone_target_period",
            ),
            models.UniqueConstraint(
                fields=["user", "target_period", "period_type", "product_type"],
                condition=Q(scope="USER"),
                name="uniq_user_target_period",
            ),
        ]

    def __str__(self):
        owner = self.zone if self.scope == self.Scope.ZONE else self.user
        return f"{owner} {self.target_period} ({self.get_period_type_display()})"

    def clean(self):
        from targets.engine import TargetPerformanceEngine

        if self.scope == self.Scope.ZONE:
            if self.zone_id is None or self.user_id is not None:
                raise ValidationError("A zone target needs a zone and no user.")
        elif self.scope == self.Scope.USER:
            if self.user_id is None or self.zone_id is not None:
                raise ValidationError("A user target needs a user and no zone.")
        try:
            TargetPerformanceEngine.period_bounds(self.target_period, self.period_type)
        except ValueError as exc:
            raise ValidationError({"target_period": str(exc)})
        if self.target_value is not None and self.target_value < 0:
            raise ValidationError({"target_value": "Target value cannot be negative."})
