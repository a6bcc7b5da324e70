"""
Offer importer: turns normalized rows into Contact, Asset and Offer records.

Each row is resolved first (customer, assignee, zone). Only when all three
resolve is anything written, and the writes of one row share a single
transaction so a failure never leaves an orphaned contact or asset behind.
"""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Callable, Sequence

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.logging import SUCCESS
from customers.models import Customer
from customers.services import (
    get_or_create_asset,
    get_or_create_contact,
    get_or_create_default_contact,
)
from offers.models import Offer, OfferPriority, OfferStatus

from .normalizers import (
    derive_reference_number,
    infer_stage,
    normalize_product_type,
    parse_amount,
    parse_probability,
    require_period,
)
from .readers import OfferRow
from .resolver import EntityResolver

logger = logging.getLogger("offerfunnel.imports")

ERROR_PREVIEW_LIMIT = 10


@dataclass
class ImportStats:
    total: int = 0
    imported: int = 0
    skipped: int = 0
    already_present: int = 0
    contacts_created: int = 0
    assets_created: int = 0
    customers_linked: int = 0
    users_linked: int = 0
    zones_linked: int = 0
    product_types_normalized: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        if not self.total:
            return 0.0
        return self.imported / self.total * 100

    def error_preview(self, limit: int = ERROR_PREVIEW_LIMIT) -> tuple[list[str], int]:
        """First ``limit`` error messages and how many more were left out."""
        return self.errors[:limit], max(0, len(self.errors) - limit)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["success_rate"] = round(self.success_rate, 2)
        return data

    def log_summary(self, log: logging.Logger = logger) -> None:
        log.log(SUCCESS, "=== INTEGRATION COMPLETE ===")
        log.info("Total offers processed: %d", self.total)
        log.info("Successfully imported: %d", self.imported)
        log.info("Skipped offers: %d (%d already present)", self.skipped, self.already_present)
        log.info("Contacts created: %d", self.contacts_created)
        log.info("Assets created: %d", self.assets_created)
        log.info("Customers linked: %d", self.customers_linked)
        log.info("Users linked: %d", self.users_linked)
        log.info("Zones linked: %d", self.zones_linked)
        log.info("Product types normalized: %d", self.product_types_normalized)
        preview, remaining = self.error_preview()
        if preview:
            log.error("=== ERRORS ===")
            for message in preview:
                log.error(message)
            if remaining:
                log.warning("... and %d more errors", remaining)
        log.log(SUCCESS, "Success rate: %.2f%%", self.success_rate)


class OfferImporter:
    """Import ``OfferRow`` objects in fixed-size batches."""

    def __init__(
        self,
        resolver: EntityResolver,
        *,
        reference_prefix: str = "EXCEL",
        batch_size: int | None = None,
        batch_delay: float | None = None,
        year: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.resolver = resolver
        self.reference_prefix = reference_prefix
        self.batch_size = max(1, batch_size or settings.OFFER_IMPORT_BATCH_SIZE)
        self.batch_delay = settings.OFFER_IMPORT_BATCH_DELAY if batch_delay is None else batch_delay
        self.year = year or settings.OFFER_IMPORT_YEAR
        self.sleep = sleep
        self.stats = ImportStats()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, rows: Sequence[OfferRow]) -> ImportStats:
        self.stats.total += len(rows)
        batch_count = (len(rows) + self.batch_size - 1) // self.batch_size
        for number, start in enumerate(range(0, len(rows), self.batch_size), start=1):
            batch = rows[start:start + self.batch_size]
            logger.info("Processing batch %d/%d (%d offers)", number, batch_count, len(batch))
            for row in batch:
                self.import_row(row)
            if number < batch_count and self.batch_delay > 0:
                self.sleep(self.batch_delay)
        return self.stats

    def import_row(self, row: OfferRow) -> Offer | None:
        """Import one row. Every call counts the row as imported or skipped."""
        label = row.source_id or row.offer_reference_number or row.company_name

        customer_id = self.resolver.find_customer_id(row.company_name)
        if not customer_id:
            return self._skip(f"Offer {label}: Customer not found - {row.company_name}")
        user_id = self.resolver.find_user_id(row.assigned_user)
        if not user_id:
            return self._skip(f"Offer {label}: User not found - {row.assigned_user}")
        zone_id = self.resolver.find_zone_id(row.zone)
        if not zone_id:
            return self._skip(f"Offer {label}: Zone not found - {row.zone}")

        reference = row.offer_reference_number or self._derive_reference(row)
        try:
            if Offer.objects.filter(offer_reference_number=reference).exists():
                self.stats.skipped += 1
                self.stats.already_present += 1
                logger.info("Offer %s already imported, skipping", reference)
                return None
            with transaction.atomic():
                offer, contact_created, asset_created = self._create_offer(
                    row, reference, customer_id, user_id, zone_id,
                )
        except Exception as exc:
            self.stats.skipped += 1
            self.stats.errors.append(f"Offer {label}: {exc}")
            logger.error("Failed to import offer %s: %s", label, exc)
            return None

        self.stats.imported += 1
        self.stats.customers_linked += 1
        self.stats.users_linked += 1
        self.stats.zones_linked += 1
        self.stats.contacts_created += int(contact_created)
        self.stats.assets_created += int(asset_created)
        if offer.product_type and offer.product_type != row.product_type:
            self.stats.product_types_normalized += 1
        logger.log(SUCCESS, "Imported offer: %s (%s)", offer.offer_reference_number, row.company_name)
        return offer

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _skip(self, message: str) -> None:
        self.stats.skipped += 1
        self.stats.errors.append(message)
        logger.warning(message)
        return None

    def _derive_reference(self, row: OfferRow) -> str:
        """Stable reference for a row that carries none, so re-runs find it again."""
        return derive_reference_number(
            self.reference_prefix,
            row.source_id,
            row.company_name,
            row.assigned_user,
            row.zone,
            row.product_type,
            row.offer_value,
            row.month,
        )

    def _create_offer(self, row: OfferRow, reference: str, customer_id: int, user_id: int, zone_id: int):
        offer_month = require_period(row.month, self.year)
        po_expected_month = require_period(row.expected_month, self.year)
        customer = Customer.objects.get(pk=customer_id)

        if row.contact_person:
            contact, contact_created = get_or_create_contact(
                customer,
                row.contact_person,
                contact_number=row.contact_number,
                email=row.email,
            )
        else:
            contact, contact_created = get_or_create_default_contact(customer)

        asset = None
        asset_created = False
        if row.machine_serial_number:
            asset, asset_created = get_or_create_asset(
                customer,
                row.machine_serial_number,
                asset_name=f"Asset {row.machine_serial_number}",
                model=row.department or "Not Specified",
            )

        product_type = normalize_product_type(row.product_type)
        order_value = parse_amount(row.order_value)
        today = timezone.localdate()
        offer = Offer.objects.create(
            offer_reference_number=reference,
            offer_reference_date=today,
            title=f"{row.company_name} - {product_type or 'Offer'}",
            description=row.remarks or f"Offer for {product_type or 'unspecified product'}",
            product_type=product_type,
            lead=row.lead,
            registration_date=today,
            company=row.company_name,
            location=row.location,
            department=row.department,
            contact_person_name=row.contact_person,
            contact_number=row.contact_number,
            email=row.email,
            machine_serial_number=row.machine_serial_number,
            status=OfferStatus.OPEN,
            stage=infer_stage(row.stage),
            priority=OfferPriority.MEDIUM,
            customer=customer,
            contact=contact,
            asset=asset,
            assigned_to_id=user_id,
            zone_id=zone_id,
            offer_value=parse_amount(row.offer_value),
            po_value=order_value if order_value > 0 else None,
            probability_percentage=parse_probability(row.probability),
            offer_month=offer_month,
            po_expected_month=po_expected_month,
            remarks=row.remarks,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        return offer, contact_created, asset_created
