"""Celery tasks wrapping the import pipeline for the API."""
from __future__ import annotations

import logging
from pathlib import Path

from celery import shared_task
from django.conf import settings

logger = logging.getLogger("offerfunnel.imports")


def processed_path(filename: str) -> Path:
    return Path(settings.OFFER_DATA_DIR) / "processed" / filename


@shared_task
def integrate_processed_offers(*, path: str | None = None, matcher: str = "containment") -> dict:
    """Import ``all-offers.json`` and return the import statistics."""
    from imports.importer import OfferImporter
    from imports.readers import OfferRow, load_json_rows
    from imports.resolver import EntityResolver, get_matcher

    source = Path(path) if path else processed_path("all-offers.json")
    records = load_json_rows(source)
    resolver = EntityResolver.from_database(customer_matcher=get_matcher(matcher))
    importer = OfferImporter(resolver, reference_prefix="EXCEL")
    stats = importer.run([OfferRow.from_processed(r) for r in records])
    stats.log_summary()
    return stats.as_dict()


@shared_task
def reconcile_zones(*, path: str | None = None) -> dict:
    """Run the zone reconciliation over ``comprehensive-data.json``."""
    from imports.readers import load_json_rows
    from imports.reconciler import ZoneReconciler

    source = Path(path) if path else processed_path("comprehensive-data.json")
    rows = load_json_rows(source, key="allOffers")
    report = ZoneReconciler().run(rows)
    return report.as_dict()
