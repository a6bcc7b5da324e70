"""Domain services for offers: status moves, notes and reference numbers."""

from __future__ import annotations

import logging
import re

from django.conf import settings
from django.db import transaction

from offers.models import Offer, OfferActivity

logger = logging.getLogger("offerfunnel")

PRODUCT_CODES = {
    "SPP": "SPP",
    "CONTRACT": "CON",
    "RELOCATION": "REL",
    "UPGRADE_KIT": "UPG",
}
SEQUENCE_RE = re.compile(r"(\d{5})$")


def change_offer_status(
    offer: Offer,
    user,
    *,
    status: str | None = None,
    stage: str | None = None,
    notes: str = "",
) -> OfferActivity:
    """Move an offer to a new status and/or stage and record the move."""
    from_status, from_stage = offer.status, offer.stage
    with transaction.atomic():
        if status:
            offer.status = status
        if stage:
            offer.stage = stage
        offer.updated_by = user
        offer.save(update_fields=["status", "stage", "updated_by", "updated_at"])
        activity = OfferActivity.objects.create(
            offer=offer,
            kind=OfferActivity.Kind.STATUS_CHANGE,
            from_status=from_status,
            to_status=offer.status,
            from_stage=from_stage,
            to_stage=offer.stage,
            notes=notes or "",
            user=user,
        )
    logger.info(
        "Offer %s moved %s/%s -> %s/%s by %s",
        offer.offer_reference_number,
        from_status,
        from_stage,
        offer.status,
        offer.stage,
        getattr(user, "email", user),
    )
    return activity


def add_offer_note(offer: Offer, user, content: str) -> OfferActivity:
    return OfferActivity.objects.create(
        offer=offer,
        kind=OfferActivity.Kind.NOTE,
        notes=content,
        user=user,
    )


def product_code(product_type: str) -> str:
    """Three-letter code for a product type (``CONTRACT`` -> ``CON``)."""
    if product_type in PRODUCT_CODES:
        return PRODUCT_CODES[product_type]
    letters = re.sub(r"[^A-Za-z]", "", product_type or "").upper()[:3]
    return letters or "GEN"


def user_initials(user) -> str:
    if user.short_form:
        return user.short_form.strip().upper()
    parts = (user.name or "").split()
    if len(parts) >= 2:
        return (parts[0][0] + parts[1][0]).upper()
    if parts:
        return parts[0][:2].upper()
    return "XX"


def next_offer_reference(zone, product_type: str, user) -> str:
    """
    Next company-wide reference, e.g. ``KRIND/W/CON/YO00008``.

    The five-digit sequence runs across every zone, product and user.
    """
    prefix = settings.OFFER_REFERENCE_COMPANY_PREFIX
    highest = 0
    references = Offer.objects.filter(
        offer_reference_number__startswith=f"{prefix}/",
    ).values_list("offer_reference_number", flat=True)
    for reference in references:
        match = SEQUENCE_RE.search(reference)
        if match:
            highest = max(highest, int(match.group(1)))
    zone_code = (zone.short_form or "X").strip().upper()
    return f"{prefix}/{zone_code}/{product_code(product_type)}/{user_initials(user)}{highest + 1:05d}"
