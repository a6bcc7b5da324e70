from pathlib import Path

from imports.readers import load_json_rows
from imports.reconciler import ZoneReconciler

from ._base import PipelineCommand, format_amount, logger


class Command(PipelineCommand):
    help = "Import offers missing from each zone and report how closely the database matches the spreadsheet"

    def add_arguments(self, parser):
        parser.add_argument("--file", help="Path to comprehensive-data.json")
        parser.add_argument("--data-dir", dest="data_dir", help="Override OFFER_DATA_DIR")

    def run(self, **options):
        logger.info("=== FIXING ALL ZONE DISCREPANCIES ===")
        path = Path(options["file"]) if options.get("file") else self.processed_file(options, "comprehensive-data.json")
        rows = load_json_rows(path, key="allOffers")
        report = ZoneReconciler().run(rows)

        for zone in report.zones:
            self.stdout.write(f"\n{zone.zone_name}:")
            self.stdout.write(
                f"  Spreadsheet: {format_amount(zone.sheet_total)}  "
                f"Database: {format_amount(zone.db_total_before)} -> {format_amount(zone.db_total_after)}"
            )
            self.stdout.write(
                f"  Difference: {zone.percent_before:.1f}% -> {zone.percent_after:.1f}%  "
                f"[{zone.quality.value}]"
            )
            self.stdout.write(
                f"  Imported {zone.imported}, invalid {zone.invalid}, "
                f"conflicts {zone.conflicts}, failed {zone.failed}"
            )
            self.stdout.write(
                f"  Booked: {zone.booked_count} offers -> {format_amount(zone.booked_value)}"
            )

        self.stdout.write("\n=== FINAL ASSESSMENT ===")
        self.stdout.write(f"Total spreadsheet value: {format_amount(report.sheet_total)}")
        self.stdout.write(f"Total database value: {format_amount(report.db_total)}")
        self.stdout.write(f"Total booked value: {format_amount(report.booked_value)}")
        self.stdout.write(self.style.SUCCESS(
            f"Overall difference {report.percent_difference:.1f}% [{report.quality.value}], "
            f"{report.imported} offers imported"
        ))
