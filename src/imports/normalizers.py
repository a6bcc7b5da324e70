"""
Field normalizers for spreadsheet values.

Every function here is total: bad input yields ``None``, a default or
zero, never an exception. The one exception is ``require_period``, which
validates a value right before it is stored.
"""
from __future__ import annotations

import hashlib
import logging
import math
import re
import secrets
import string
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from offers.models import OfferStage, ProductType

logger = logging.getLogger("offerfunnel.imports")

# Spellings found in the sales workbooks.
PRODUCT_TYPE_ALIASES = {
    "RELOCATION": ProductType.RELOCATION,
    "Relocation": ProductType.RELOCATION,
    "CONTRACT": ProductType.CONTRACT,
    "Contract": ProductType.CONTRACT,
    "Ccontarct": ProductType.CONTRACT,
    "Contarct": ProductType.CONTRACT,
    "SPP": ProductType.SPP,
    "spp": ProductType.SPP,
    "MLU": ProductType.MIDLIFE_UPGRADE,
    "Midlife Upgrade": ProductType.MIDLIFE_UPGRADE,
    "RETROFIT": ProductType.RETROFIT_KIT,
    "Retrofit kit": ProductType.RETROFIT_KIT,
    "Upgrade": ProductType.UPGRADE_KIT,
    "Upgrade kit": ProductType.UPGRADE_KIT,
    "BD Charges": ProductType.BD_CHARGES,
    "BD Spare": ProductType.BD_SPARE,
}

MONTHS = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

# First keyword found wins, so the order matters.
STAGE_KEYWORDS = (
    ("WON", OfferStage.WON),
    ("ORDER", OfferStage.ORDER_BOOKED),
    ("PO", OfferStage.PO_RECEIVED),
    ("FINAL", OfferStage.FINAL_APPROVAL),
    ("NEGOTIATION", OfferStage.NEGOTIATION),
    ("PROPOSAL", OfferStage.PROPOSAL_SENT),
)

REFERENCE_ALPHABET = string.digits + string.ascii_uppercase
NON_NUMERIC_RE = re.compile(r"[^0-9.]")
PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def clean_text(value) -> str:
    """Stringify and trim a cell value; ``None`` becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def normalize_product_type(raw) -> str | None:
    """
    Map a free-text product type to a ``ProductType`` value.

    Empty input gives ``None``; unknown non-empty input gives ``OTHER``.
    """
    text = clean_text(raw)
    if not text:
        return None
    if text in PRODUCT_TYPE_ALIASES:
        return PRODUCT_TYPE_ALIASES[text].value
    if text in ProductType.values:
        return text
    logger.warning("Unknown product type '%s', using %s", text, ProductType.OTHER.value)
    return ProductType.OTHER.value


def convert_month_to_period(raw, year: int | None = None) -> str | None:
    """Turn a month name such as ``"Sept"`` into ``"2025-09"``.

    Strings that already contain a hyphen are assumed to be periods and
    returned unchanged.
    """
    if not raw or not isinstance(raw, str):
        return None
    if "-" in raw:
        return raw
    month = MONTHS.get(raw.strip().lower())
    if month is None:
        return None
    if year is None:
        year = settings.OFFER_IMPORT_YEAR
    return f"{year}-{month:02d}"


def infer_stage(raw) -> str:
    text = clean_text(raw).upper()
    if not text:
        return OfferStage.INITIAL.value
    for keyword, stage in STAGE_KEYWORDS:
        if keyword in text:
            return stage.value
    return OfferStage.INITIAL.value


def parse_amount(raw) -> Decimal:
    """Parse a money cell such as ``"₹1,00,000"``; anything unreadable is zero."""
    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    if isinstance(raw, (int, Decimal)):
        return Decimal(raw)
    if isinstance(raw, float):
        return Decimal(str(raw)) if math.isfinite(raw) else Decimal("0")
    cleaned = NON_NUMERIC_RE.sub("", str(raw))
    if not cleaned:
        return Decimal("0")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def parse_probability(raw, default: int | None = None) -> int | None:
    """
    Parse a win probability into a whole percentage between 0 and 100.

    Fractions such as ``0.4`` are read as 40%.
    """
    if raw is None or isinstance(raw, bool):
        return default
    text = clean_text(raw).rstrip("%").strip()
    try:
        value = Decimal(text)
    except InvalidOperation:
        return default
    if not value.is_finite():
        return default
    if 0 < value <= 1:
        value *= 100
    percent = int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(100, percent))


def generate_reference_number(prefix: str) -> str:
    """``PREFIX-<epoch ms>-<6 random base36 chars>``. Not guaranteed unique."""
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(6))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def derive_reference_number(prefix: str, *parts) -> str:
    """``PREFIX-<12 hex chars>`` hashed from ``parts``; the same row always gets the same reference."""
    key = "|".join(clean_text(part).lower() for part in parts)
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:12].upper()
    return f"{prefix}-{digest}"


def require_period(raw, year: int | None = None) -> str:
    """
    Like ``convert_month_to_period`` but only accepts results that fit a
    ``YYYY-MM`` column. Blank or unknown months still give ``""``.

    Raises ``ValueError`` for a passed-through value such as ``"2025-09-15"``.
    """
    period = convert_month_to_period(raw, year)
    if not period:
        return ""
    period = period.strip()
    if not PERIOD_RE.match(period):
        raise ValueError(f"Invalid month '{raw}' (expected YYYY-MM)")
    return period
