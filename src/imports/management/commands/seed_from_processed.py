from imports.exceptions import SourceFileNotFound
from imports.importer import OfferImporter
from imports.readers import CustomerRow, OfferRow, load_json_rows
from imports.resolver import EntityResolver
from imports.seeding import seed_customers, seed_users, seed_zones

from ._base import PipelineCommand, logger


class Command(PipelineCommand):
    help = "Seed zones, users, customers and offers from the processed JSON exports"

    def add_arguments(self, parser):
        parser.add_argument("--data-dir", dest="data_dir", help="Override OFFER_DATA_DIR")
        parser.add_argument("--password", help="Password for newly created users")

    def run(self, **options):
        logger.info("Starting seed from processed data...")
        zones = seed_zones()
        users = seed_users(password=options.get("password"))

        customers = 0
        customer_path = self.processed_file(options, "customers.json")
        try:
            records = load_json_rows(customer_path)
        except SourceFileNotFound:
            logger.warning("Customers file not found, skipping customer seeding")
        else:
            customers = seed_customers(CustomerRow.from_processed(r) for r in records)

        imported = 0
        offer_path = self.processed_file(options, "all-offers.json")
        try:
            records = load_json_rows(offer_path)
        except SourceFileNotFound:
            logger.warning("Offers file not found, skipping offer seeding")
        else:
            importer = OfferImporter(EntityResolver.from_database(), reference_prefix="OF")
            stats = importer.run([OfferRow.from_processed(r) for r in records])
            stats.log_summary()
            imported = stats.imported

        self.stdout.write(self.style.SUCCESS(
            f"Seed complete: {zones} zones, {users} users, {customers} customers, {imported} offers"
        ))
