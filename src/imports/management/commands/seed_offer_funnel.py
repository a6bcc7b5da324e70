from imports.importer import OfferImporter
from imports.readers import extract_customer_rows, offer_rows_from_workbook, read_workbook
from imports.resolver import EntityResolver
from imports.seeding import seed_customers, seed_users, seed_zones

from ._base import PipelineCommand, logger


class Command(PipelineCommand):
    help = "Seed the database from the sales workbook (one sheet per salesperson, optional Customer sheet)"

    def add_arguments(self, parser):
        parser.add_argument("--workbook", required=True, help="Path to the .xlsx workbook")
        parser.add_argument("--password", help="Password for newly created users")

    def run(self, **options):
        logger.info("Starting database seed...")
        workbook = read_workbook(options["workbook"])

        zones = seed_zones()
        users = seed_users(password=options.get("password"))
        customers = seed_customers(extract_customer_rows(workbook))

        importer = OfferImporter(EntityResolver.from_database(), reference_prefix="OF")
        stats = importer.run(offer_rows_from_workbook(workbook))
        stats.log_summary()

        self.stdout.write(self.style.SUCCESS(
            f"Seed complete: {zones} zones, {users} users, {customers} customers, "
            f"{stats.imported} offers ({stats.skipped} skipped)"
        ))
