"""Shared plumbing for the import commands."""
from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import connections

from imports.exceptions import ImportPipelineError

logger = logging.getLogger("offerfunnel.imports")


def format_amount(value) -> str:
    """Indian digit grouping: 1234567 -> ₹12,34,567."""
    amount = Decimal(value or 0).quantize(Decimal("1"))
    sign = "-" if amount < 0 else ""
    digits = str(abs(amount))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}{settings.CURRENCY_SYMBOL}{digits}"


class PipelineCommand(BaseCommand):
    """Runs ``run()`` and turns pipeline errors into a non-zero exit."""

    def processed_file(self, options, name: str) -> Path:
        data_dir = Path(options.get("data_dir") or settings.OFFER_DATA_DIR)
        return data_dir / "processed" / name

    def handle(self, *args, **options):
        try:
            self.run(**options)
        except ImportPipelineError as exc:
            logger.error("%s", exc)
            raise CommandError(str(exc)) from exc
        finally:
            for connection in connections.all():
                if not connection.in_atomic_block:
                    connection.close()

    def run(self, **options):
        raise NotImplementedError
