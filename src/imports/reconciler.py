"""
Zone reconciliation between the consolidated spreadsheet export and the database.

For every active zone the spreadsheet total is compared with the database
total, offers missing from the database (by reference number) are imported,
and the residual difference is classified. The missing set is recomputed
from the database on every run, so running it twice imports nothing new.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from accounts.models import User
from core.logging import SUCCESS
from customers.models import Customer
from customers.services import get_or_create_default_contact
from offers.models import Offer, OfferPriority, OfferStatus, booked_value
from zones.models import ServiceZone

from .exceptions import MissingAdminUser
from .normalizers import (
    clean_text,
    infer_stage,
    normalize_product_type,
    parse_amount,
    parse_probability,
    require_period,
)

logger = logging.getLogger("offerfunnel.imports")

ZERO = Decimal("0")
DEFAULT_PROBABILITY = 10


class MatchQuality(enum.Enum):
    PERFECT = "PERFECT"
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    REMAINING = "REMAINING"

    @classmethod
    def classify(cls, percent_difference: float) -> "MatchQuality":
        if percent_difference < 1:
            return cls.PERFECT
        if percent_difference < 5:
            return cls.EXCELLENT
        if percent_difference < 10:
            return cls.GOOD
        return cls.REMAINING


def percent_difference(sheet_total: Decimal, db_total: Decimal) -> float:
    """Absolute difference as a percentage of the spreadsheet total."""
    if sheet_total <= 0:
        return 0.0
    return float(abs(db_total - sheet_total) / sheet_total * 100)


@dataclass
class ZoneReport:
    zone_id: int
    zone_name: str
    sheet_rows: int = 0
    sheet_total: Decimal = ZERO
    db_total_before: Decimal = ZERO
    db_total_after: Decimal = ZERO
    missing: int = 0
    imported: int = 0
    invalid: int = 0
    conflicts: int = 0
    failed: int = 0
    booked_count: int = 0
    booked_value: Decimal = ZERO
    errors: list[str] = field(default_factory=list)

    @property
    def percent_before(self) -> float:
        return percent_difference(self.sheet_total, self.db_total_before)

    @property
    def percent_after(self) -> float:
        return percent_difference(self.sheet_total, self.db_total_after)

    @property
    def quality(self) -> MatchQuality:
        return MatchQuality.classify(self.percent_after)

    def as_dict(self) -> dict:
        return {
            "zone_id": self.zone_id,
            "zone_name": self.zone_name,
            "sheet_rows": self.sheet_rows,
            "sheet_total": str(self.sheet_total),
            "db_total_before": str(self.db_total_before),
            "db_total_after": str(self.db_total_after),
            "percent_before": round(self.percent_before, 2),
            "percent_after": round(self.percent_after, 2),
            "quality": self.quality.value,
            "missing": self.missing,
            "imported": self.imported,
            "invalid": self.invalid,
            "conflicts": self.conflicts,
            "failed": self.failed,
            "booked_count": self.booked_count,
            "booked_value": str(self.booked_value),
            "errors": list(self.errors),
        }


@dataclass
class ReconciliationReport:
    zones: list[ZoneReport] = field(default_factory=list)

    @property
    def sheet_total(self) -> Decimal:
        return sum((z.sheet_total for z in self.zones), ZERO)

    @property
    def db_total(self) -> Decimal:
        return sum((z.db_total_after for z in self.zones), ZERO)

    @property
    def booked_value(self) -> Decimal:
        return sum((z.booked_value for z in self.zones), ZERO)

    @property
    def imported(self) -> int:
        return sum(z.imported for z in self.zones)

    @property
    def percent_difference(self) -> float:
        return percent_difference(self.sheet_total, self.db_total)

    @property
    def quality(self) -> MatchQuality:
        return MatchQuality.classify(self.percent_difference)

    def as_dict(self) -> dict:
        return {
            "zones": [z.as_dict() for z in self.zones],
            "sheet_total": str(self.sheet_total),
            "db_total": str(self.db_total),
            "booked_value": str(self.booked_value),
            "imported": self.imported,
            "percent_difference": round(self.percent_difference, 2),
            "quality": self.quality.value,
        }


class ZoneReconciler:
    """Bring each zone's database offers in line with the spreadsheet rows."""

    def __init__(self, admin: User | None = None, year: int | None = None):
        self.admin = admin
        self.year = year

    def run(self, rows: list[dict]) -> ReconciliationReport:
        admin = self.admin or User.objects.admins().order_by("id").first()
        if admin is None:
            raise MissingAdminUser()
        self.admin = admin
        logger.info("Using admin user ID: %s", admin.pk)

        report = ReconciliationReport()
        handled: set[str] = set()
        for zone in ServiceZone.objects.filter(is_active=True).order_by("id"):
            report.zones.append(self.reconcile_zone(zone, rows, handled))
        logger.log(
            SUCCESS,
            "Reconciliation complete: %d offer(s) imported, overall difference %.1f%% (%s)",
            report.imported,
            report.percent_difference,
            report.quality.value,
        )
        return report

    def reconcile_zone(self, zone: ServiceZone, rows: list[dict], handled: set[str]) -> ZoneReport:
        logger.info("=== PROCESSING %s ZONE ===", zone.name.upper())
        zone_rows = [
            row for row in rows
            if clean_text(row.get("zone")).lower() == zone.name.lower()
        ]
        result = ZoneReport(zone_id=zone.pk, zone_name=zone.name, sheet_rows=len(zone_rows))
        result.sheet_total = sum((parse_amount(row.get("offerValue")) for row in zone_rows), ZERO)
        result.db_total_before = self._db_total(zone)

        db_references = set(
            Offer.objects.filter(zone=zone).values_list("offer_reference_number", flat=True)
        )
        missing = [
            row for row in zone_rows
            if clean_text(row.get("offerReferenceNumber")) not in db_references
        ]
        result.missing = len(missing)
        logger.info("Missing offers for %s: %d", zone.name, len(missing))

        for row in missing:
            reference = clean_text(row.get("offerReferenceNumber"))
            company = clean_text(row.get("companyName"))
            if not reference or not company:
                result.invalid += 1
                logger.warning("Skipping %s - missing required data", reference or "<no reference>")
                continue
            if reference in handled or Offer.objects.filter(offer_reference_number=reference).exists():
                result.conflicts += 1
                logger.warning("Skipping %s - reference already used outside %s", reference, zone.name)
                continue
            handled.add(reference)
            try:
                with transaction.atomic():
                    offer = self._import_row(row, zone, reference, company)
            except Exception as exc:
                result.failed += 1
                result.errors.append(f"{reference}: {exc}")
                logger.error("Failed to import %s: %s", reference, exc)
                continue
            result.imported += 1
            logger.log(SUCCESS, "Imported: %s - %s - %s", reference, company, offer.offer_value)

        result.db_total_after = self._db_total(zone)
        for po_value, offer_value in Offer.objects.filter(zone=zone).booked().values_list("po_value", "offer_value"):
            result.booked_count += 1
            result.booked_value += booked_value(po_value, offer_value)

        logger.info(
            "%s: imported %d, difference %.1f%% -> %.1f%% (%s)",
            zone.name,
            result.imported,
            result.percent_before,
            result.percent_after,
            result.quality.value,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _db_total(zone: ServiceZone) -> Decimal:
        total = Offer.objects.filter(zone=zone).aggregate(total=Sum("offer_value"))["total"]
        return total or ZERO

    def _import_row(self, row: dict, zone: ServiceZone, reference: str, company: str) -> Offer:
        expected_month = require_period(row.get("poExpectedMonth") or row.get("expectedMonth"), self.year)
        customer = Customer.objects.filter(company_name=company).order_by("id").first()
        if customer is None:
            customer = Customer.objects.create(
                company_name=company,
                location=clean_text(row.get("location")),
                department=clean_text(row.get("department")),
                zone=zone,
                created_by=self.admin,
                updated_by=self.admin,
            )
        contact, _ = get_or_create_default_contact(customer)

        value = parse_amount(row.get("offerValue"))
        order_value = parse_amount(row.get("orderValue"))
        return Offer.objects.create(
            offer_reference_number=reference,
            title=f"{company} - {reference}",
            customer=customer,
            contact=contact,
            zone=zone,
            company=company,
            location=clean_text(row.get("location")),
            department=clean_text(row.get("department")),
            contact_person_name=clean_text(row.get("contactPersonName") or row.get("contactPerson")),
            contact_number=clean_text(row.get("contactNumber")),
            email=clean_text(row.get("email")),
            machine_serial_number=clean_text(row.get("machineSerialNumber")),
            product_type=normalize_product_type(row.get("productType")),
            stage=infer_stage(row.get("stage")),
            status=OfferStatus.OPEN,
            priority=OfferPriority.MEDIUM,
            offer_value=value,
            po_value=order_value if order_value > 0 else None,
            probability_percentage=parse_probability(row.get("probability"), default=DEFAULT_PROBABILITY),
            po_expected_month=expected_month,
            created_by=self.admin,
            updated_by=self.admin,
        )
