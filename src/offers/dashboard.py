"""Funnel dashboard: counts and values over the offers a user can see."""
from __future__ import annotations

from decimal import Decimal

from django.db.models import Avg, Count, Q, Sum

from offers.models import BOOKED_STAGES, OfferStage, OfferStatus, booked_value

ZERO = Decimal("0")
RECENT_LIMIT = 5


def _rate(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def offer_dashboard(offers) -> dict:
    """
    Summarize an ``OfferQuerySet`` that is already scoped to the caller.

    - ``open``: not cancelled or lost and not yet booked; its value is the
      pipeline value.
    - ``won``: booked stages, valued at the PO value, else the offer value.
    - ``lost``: status or stage LOST.
    """
    totals = offers.aggregate(
        count=Count("id"),
        value=Sum("offer_value"),
        average=Avg("offer_value"),
    )
    pipeline = offers.open_pipeline().exclude(stage=OfferStage.LOST).exclude(stage__in=BOOKED_STAGES)
    pipeline_totals = pipeline.aggregate(count=Count("id"), value=Sum("offer_value"))

    won_count = 0
    won_value = ZERO
    for po_value, offer_value in offers.booked().values_list("po_value", "offer_value"):
        won_count += 1
        won_value += booked_value(po_value, offer_value)
    lost_count = offers.filter(Q(status=OfferStatus.LOST) | Q(stage=OfferStage.LOST)).count()

    stage_counts = {
        row["stage"]: row
        for row in offers.order_by().values("stage").annotate(count=Count("id"), value=Sum("offer_value"))
    }
    by_stage = [
        {
            "stage": stage.value,
            "count": stage_counts.get(stage.value, {}).get("count", 0),
            "value": stage_counts.get(stage.value, {}).get("value") or ZERO,
        }
        for stage in OfferStage
    ]

    zone_rows = (
        offers.order_by()
        .values("zone_id", "zone__name")
        .annotate(count=Count("id"), value=Sum("offer_value"))
        .order_by("zone__name")
    )
    by_zone = [
        {
            "zone_id": row["zone_id"],
            "zone_name": row["zone__name"],
            "count": row["count"],
            "value": row["value"] or ZERO,
        }
        for row in zone_rows
    ]

    recent = [
        {
            "id": offer.pk,
            "offer_reference_number": offer.offer_reference_number,
            "company": offer.company,
            "stage": offer.stage,
            "status": offer.status,
            "offer_value": offer.offer_value,
        }
        for offer in offers.order_by("-created_at", "-id")[:RECENT_LIMIT]
    ]

    total_count = totals["count"]
    return {
        "total_offers": total_count,
        "total_value": totals["value"] or ZERO,
        "average_offer_value": (totals["average"] or ZERO).quantize(Decimal("0.01")),
        "open_offers": pipeline_totals["count"],
        "pipeline_value": pipeline_totals["value"] or ZERO,
        "won_offers": won_count,
        "won_value": won_value,
        "lost_offers": lost_count,
        "win_rate": _rate(won_count, won_count + lost_count),
        "conversion_rate": _rate(won_count, total_count),
        "by_stage": by_stage,
        "by_zone": by_zone,
        "recent_offers": recent,
    }
