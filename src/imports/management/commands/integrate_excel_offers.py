from pathlib import Path

from imports.importer import OfferImporter
from imports.readers import OfferRow, load_json_rows
from imports.resolver import MATCHERS, EntityResolver, get_matcher

from ._base import PipelineCommand, logger


class Command(PipelineCommand):
    help = "Import offers from processed/all-offers.json, linking them to existing customers, users and zones"

    def add_arguments(self, parser):
        parser.add_argument("--file", help="Path to all-offers.json (default: <OFFER_DATA_DIR>/processed/all-offers.json)")
        parser.add_argument("--data-dir", dest="data_dir", help="Override OFFER_DATA_DIR")
        parser.add_argument("--batch-size", dest="batch_size", type=int, help="Offers per batch")
        parser.add_argument("--delay", type=float, help="Seconds to wait between batches")
        parser.add_argument("--matcher", choices=sorted(MATCHERS), default="containment")

    def run(self, **options):
        logger.info("Starting Excel offers integration...")
        path = Path(options["file"]) if options.get("file") else self.processed_file(options, "all-offers.json")
        records = load_json_rows(path)
        logger.info("Loaded %d offers from Excel", len(records))

        resolver = EntityResolver.from_database(customer_matcher=get_matcher(options["matcher"]))
        importer = OfferImporter(
            resolver,
            reference_prefix="EXCEL",
            batch_size=options.get("batch_size"),
            batch_delay=options.get("delay"),
        )
        stats = importer.run([OfferRow.from_processed(r) for r in records])
        stats.log_summary()

        self.stdout.write(self.style.SUCCESS(
            f"Excel integration completed: {stats.imported}/{stats.total} imported, "
            f"{stats.skipped} skipped ({stats.success_rate:.2f}%)"
        ))
