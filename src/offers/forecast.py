"""Yearly forecast roll-up: expected PO value against booked PO value and zone targets."""
from __future__ import annotations

import calendar
from collections import defaultdict
from decimal import Decimal

from django.db.models import Q

from offers.models import BOOKED_STAGES, CLOSED_STATUSES, Offer
from zones.models import ServiceZone

ZERO = Decimal("0")

QUARTERS = (
    ("Q1", ("01", "02", "03")),
    ("Q2", ("04", "05", "06")),
    ("Q3", ("07", "08", "09")),
    ("Q4", ("10", "11", "12")),
)


def _percent(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return round(float(part / whole * 100), 2)


def _month_of(period: str) -> str | None:
    parts = (period or "").split("-")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1][:2]


def forecast_summary(year: int) -> dict:
    """
    Build the forecast summary for ``year``.

    Forecast comes from offers whose ``po_expected_month`` falls in the year
    and that are neither cancelled nor lost. Actuals come from booked offers
    by ``po_received_month``, falling back to ``po_date``. Targets are the
    monthly zone targets of the year.
    """
    from targets.models import Target

    prefix = f"{year}-"
    zones = list(ServiceZone.objects.order_by("name").values("id", "name", "short_form"))

    forecast_index = defaultdict(lambda: defaultdict(lambda: {"value": ZERO, "count": 0}))
    product_totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    forecast_offers = (
        Offer.objects
        .filter(po_expected_month__startswith=prefix)
        .exclude(status__in=CLOSED_STATUSES)
        .values("zone_id", "po_expected_month", "offer_value", "product_type")
    )
    for row in forecast_offers:
        month = _month_of(row["po_expected_month"])
        if not month:
            continue
        value = row["offer_value"] or ZERO
        bucket = forecast_index[month][row["zone_id"]]
        bucket["value"] += value
        bucket["count"] += 1
        if row["product_type"]:
            product_totals[row["product_type"]] += value

    actual_index = defaultdict(lambda: defaultdict(lambda: ZERO))
    actual_offers = (
        Offer.objects
        .filter(stage__in=BOOKED_STAGES)
        .filter(Q(po_received_month__startswith=prefix) | Q(po_date__year=year))
        .values("zone_id", "po_received_month", "po_date", "po_value")
    )
    for row in actual_offers:
        period = row["po_received_month"]
        if not period and row["po_date"]:
            period = row["po_date"].strftime("%Y-%m")
        if not period or not period.startswith(prefix):
            continue
        actual_index[_month_of(period)][row["zone_id"]] += row["po_value"] or ZERO

    month_targets: dict[str, Decimal] = defaultdict(lambda: ZERO)
    monthly_targets = Target.objects.filter(
        scope=Target.Scope.ZONE,
        period_type=Target.PeriodType.MONTHLY,
        target_period__startswith=prefix,
    ).values("target_period", "target_value")
    for row in monthly_targets:
        month = _month_of(row["target_period"])
        if month:
            month_targets[month] += row["target_value"] or ZERO

    monthly = []
    annual_forecast = ZERO
    annual_actual = ZERO
    for number in range(1, 13):
        month = f"{number:02d}"
        by_zone = {}
        forecast_sum = ZERO
        offer_count = 0
        for zone in zones:
            bucket = forecast_index[month].get(zone["id"], {"value": ZERO, "count": 0})
            by_zone[zone["name"]] = bucket["value"]
            forecast_sum += bucket["value"]
            offer_count += bucket["count"]
        actual_sum = sum(actual_index[month].values(), ZERO)

        # Months without any activity are left out.
        if forecast_sum <= 0 and actual_sum <= 0:
            continue
        annual_forecast += forecast_sum
        annual_actual += actual_sum
        monthly.append({
            "month": number,
            "month_name": calendar.month_name[number],
            "forecast": forecast_sum,
            "offer_count": offer_count,
            "actual": actual_sum,
            "target": month_targets[month],
            "variance": forecast_sum - actual_sum,
            "achievement": _percent(actual_sum, forecast_sum),
            "by_zone": by_zone,
        })

    forecast_by_month = {f"{row['month']:02d}": row["forecast"] for row in monthly}
    quarters = []
    for label, months in QUARTERS:
        target = sum((month_targets[m] for m in months), ZERO)
        forecast = sum((forecast_by_month.get(m, ZERO) for m in months), ZERO)
        deviation = float((forecast - target) / target * 100) if target > 0 else 0.0
        quarters.append({
            "quarter": label,
            "target": target,
            "forecast": forecast,
            "deviation_percent": round(deviation, 2),
        })

    return {
        "year": year,
        "zones": zones,
        "monthly": monthly,
        "totals": {
            "annual_forecast": annual_forecast,
            "annual_actual": annual_actual,
            "variance": annual_forecast - annual_actual,
            "achievement": _percent(annual_actual, annual_forecast),
        },
        "product_type_totals": [
            {"product_type": product_type, "total": total}
            for product_type, total in product_totals.items()
        ],
        "quarters": quarters,
    }
