"""Read-time performance of targets against booked offers.

Actuals are never stored: every call aggregates the offers created in the
target period that reached a booked stage (WON, PO_RECEIVED, ORDER_BOOKED).
The PO value is preferred over the offered value, and offers without a
positive value are ignored.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from django.utils import timezone

from offers.models import BOOKED_STAGES, Offer, booked_value

if TYPE_CHECKING:
    from targets.models import Target

logger = logging.getLogger("offerfunnel")

MONTHLY_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")
YEARLY_PERIOD_RE = re.compile(r"^(\d{4})$")
MIN_YEAR = 1900
MAX_YEAR = 2100


class TargetPerformanceEngine:
    """Compute actuals and achievement for targets."""

    # ------------------------------------------------------------------
    # Periods
    # ------------------------------------------------------------------

    @staticmethod
    def period_bounds(period: str, period_type: str) -> tuple[datetime, datetime]:
        """
        Return the ``[start, end)`` datetimes covered by a target period.

        Raises ``ValueError`` for a malformed period or a year outside
        1900-2100.
        """
        period = (period or "").strip()
        if period_type == "MONTHLY":
            match = MONTHLY_PERIOD_RE.match(period)
            if not match:
                raise ValueError(f"Invalid monthly period '{period}', expected YYYY-MM.")
            year, month = int(match.group(1)), int(match.group(2))
            if not 1 <= month <= 12:
                raise ValueError(f"Invalid month in period '{period}'.")
        elif period_type == "YEARLY":
            match = YEARLY_PERIOD_RE.match(period)
            if not match:
                raise ValueError(f"Invalid yearly period '{period}', expected YYYY.")
            year, month = int(match.group(1)), None
        else:
            raise ValueError(f"Unknown period type '{period_type}'.")

        if not MIN_YEAR <= year <= MAX_YEAR:
            raise ValueError(f"Year {year} is outside {MIN_YEAR}-{MAX_YEAR}.")

        tz = timezone.get_current_timezone()
        if month is None:
            start = datetime(year, 1, 1, tzinfo=tz)
            end = datetime(year + 1, 1, 1, tzinfo=tz)
        else:
            start = datetime(year, month, 1, tzinfo=tz)
            end = datetime(year + (month == 12), month % 12 + 1, 1, tzinfo=tz)
        return start, end

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def actuals(self, target: Target) -> dict:
        start, end = self.period_bounds(target.target_period, target.period_type)
        offers = Offer.objects.booked().filter(created_at__gte=start, created_at__lt=end)
        if target.scope == target.Scope.ZONE:
            offers = offers.filter(zone_id=target.zone_id)
        else:
            offers = offers.filter(assigned_to_id=target.user_id)
        if target.product_type:
            offers = offers.filter(product_type=target.product_type)

        total = Decimal("0")
        count = 0
        for po_value, offer_value in offers.values_list("po_value", "offer_value"):
            value = booked_value(po_value, offer_value)
            if value > 0:
                total += value
                count += 1
        return {"actual_value": total, "actual_offer_count": count}

    def performance(self, target: Target) -> dict:
        actual = self.actuals(target)
        target_value = target.target_value or Decimal("0")
        achievement = (
            round(float(actual["actual_value"] / target_value * 100), 2)
            if target_value > 0 else 0.0
        )
        count_achievement = None
        if target.target_offer_count:
            count_achievement = round(
                actual["actual_offer_count"] / target.target_offer_count * 100, 2
            )
        return {
            "target_id": target.pk,
            "scope": target.scope,
            "zone_id": target.zone_id,
            "user_id": target.user_id,
            "target_period": target.target_period,
            "period_type": target.period_type,
            "product_type": target.product_type,
            "target_value": target_value,
            "target_offer_count": target.target_offer_count,
            **actual,
            "achievement": achievement,
            "offer_count_achievement": count_achievement,
        }

    def dashboard(self, period: str, period_type: str) -> dict:
        """All targets of a period with their actuals, split by scope."""
        from targets.models import Target

        self.period_bounds(period, period_type)
        targets = (
            Target.objects
            .filter(target_period=period, period_type=period_type)
            .select_related("zone", "user")
        )
        zone_rows = []
        user_rows = []
        for target in targets:
            row = self.performance(target)
            if target.scope == Target.Scope.ZONE:
                row["zone_name"] = target.zone.name if target.zone else ""
                zone_rows.append(row)
            else:
                row["user_name"] = target.user.name if target.user else ""
                user_rows.append(row)

        logger.debug(
            "Target dashboard %s/%s: %d zone, %d user target(s)",
            period, period_type, len(zone_rows), len(user_rows),
        )
        total_target = sum((r["target_value"] for r in zone_rows), Decimal("0"))
        total_actual = sum((r["actual_value"] for r in zone_rows), Decimal("0"))
        return {
            "period": period,
            "period_type": period_type,
            "zones": zone_rows,
            "users": user_rows,
            "totals": {
                "target_value": total_target,
                "actual_value": total_actual,
                "achievement": (
                    round(float(total_actual / total_target * 100), 2)
                    if total_target > 0 else 0.0
                ),
            },
        }
