from decimal import Decimal

import pytest

from customers.models import Asset, Contact
from imports.importer import ImportStats, OfferImporter
from imports.readers import OfferRow
from imports.resolver import EntityResolver
from offers.models import Offer


def _row(**fields):
    record = {
        "offerReferenceNumber": "OF-1",
        "companyName": "Acme",
        "productType": "Ccontarct",
        "offerValue": "₹1,00,000",
        "assignedUser": "Yogesh",
        "zone": "WEST",
    }
    record.update(fields)
    return OfferRow.from_processed(record)


def _importer(**kwargs):
    kwargs.setdefault("batch_delay", 0)
    return OfferImporter(EntityResolver.from_database(), **kwargs)


@pytest.mark.django_db
class TestOfferImporter:
    def test_example_row_becomes_one_contract_offer(self, customer, west, zone_user):
        importer = _importer()

        stats = importer.run([_row()])

        assert stats.imported == 1
        assert stats.skipped == 0
        offer = Offer.objects.get(offer_reference_number="OF-1")
        assert offer.product_type == "CONTRACT"
        assert offer.offer_value == Decimal("100000")
        assert offer.zone == west
        assert offer.customer == customer
        assert offer.assigned_to == zone_user
        assert offer.created_by == zone_user
        assert offer.status == "OPEN"
        assert offer.priority == "MEDIUM"
        assert offer.stage == "INITIAL"
        assert stats.product_types_normalized == 1
        assert (stats.customers_linked, stats.users_linked, stats.zones_linked) == (1, 1, 1)

    def test_rerun_writes_nothing(self, customer, west, zone_user):
        rows = [
            _row(contactPerson="Mr. Rao", machineSerialNumber="SN-1"),
            _row(offerReferenceNumber="OF-2", contactPerson="Mr. Rao", machineSerialNumber="SN-1"),
        ]
        first = _importer().run(rows)
        counts = (Offer.objects.count(), Contact.objects.count(), Asset.objects.count())

        second = _importer().run(rows)

        assert first.imported == 2
        assert first.contacts_created == 1
        assert first.assets_created == 1
        assert counts == (2, 1, 1)
        assert (Offer.objects.count(), Contact.objects.count(), Asset.objects.count()) == counts
        assert second.imported == 0
        assert second.skipped == 2
        assert second.already_present == 2
        assert second.errors == []

    def test_rerun_without_reference_writes_nothing(self, customer, west, zone_user):
        rows = [
            _row(offerReferenceNumber="", month="Jan"),
            _row(offerReferenceNumber="", month="Feb", offerValue="50,000"),
        ]
        first = _importer().run(rows)
        references = set(Offer.objects.values_list("offer_reference_number", flat=True))

        second = _importer().run(rows)

        assert first.imported == 2
        assert len(references) == 2
        assert Offer.objects.count() == 2
        assert set(Offer.objects.values_list("offer_reference_number", flat=True)) == references
        assert second.imported == 0
        assert second.already_present == 2
        assert second.errors == []

    def test_existence_check_failure_skips_only_that_row(self, customer, west, zone_user, monkeypatch):
        importer = _importer()
        real_filter = Offer.objects.filter

        def flaky_filter(*args, **kwargs):
            if kwargs.get("offer_reference_number") == "OF-1":
                raise RuntimeError("connection reset")
            return real_filter(*args, **kwargs)

        monkeypatch.setattr(Offer.objects, "filter", flaky_filter)
        stats = importer.run([_row(), _row(offerReferenceNumber="OF-2")])

        assert stats.imported == 1
        assert stats.skipped == 1
        assert stats.errors == ["Offer OF-1: connection reset"]
        assert list(Offer.objects.values_list("offer_reference_number", flat=True)) == ["OF-2"]

    def test_unresolved_customer_skips_without_writes(self, customer, west, zone_user):
        stats = _importer().run([_row(companyName="Zenith Motors", contactPerson="Mr. Rao")])

        assert stats.imported == 0
        assert stats.skipped == 1
        assert stats.errors == ["Offer OF-1: Customer not found - Zenith Motors"]
        assert Contact.objects.count() == 0
        assert Offer.objects.count() == 0

    def test_unresolved_zone_skips_before_dependents(self, customer, west, zone_user):
        stats = _importer().run([_row(zone="NORTH", contactPerson="Mr. Rao", machineSerialNumber="SN-1")])

        assert stats.skipped == 1
        assert stats.errors == ["Offer OF-1: Zone not found - NORTH"]
        assert Contact.objects.count() == 0
        assert Asset.objects.count() == 0

    def test_unresolved_user(self, customer, west, zone_user):
        stats = _importer().run([_row(assignedUser="Pankaj")])
        assert stats.errors == ["Offer OF-1: User not found - Pankaj"]

    def test_empty_product_type_is_stored_as_null(self, customer, west, zone_user):
        stats = _importer().run([_row(productType="")])

        assert stats.imported == 1
        assert Offer.objects.get().product_type is None
        assert stats.product_types_normalized == 0

    def test_rows_without_contact_share_the_default_contact(self, customer, west, zone_user):
        _importer().run([_row(), _row(offerReferenceNumber="OF-2")])

        contacts = Contact.objects.filter(customer=customer)
        assert contacts.count() == 1
        assert contacts.get().contact_person_name == "Default Contact"
        assert set(Offer.objects.values_list("contact_id", flat=True)) == {contacts.get().pk}

    def test_missing_reference_is_generated_with_prefix(self, customer, west, zone_user):
        _importer(reference_prefix="OF").run([_row(offerReferenceNumber="")])
        assert Offer.objects.get().offer_reference_number.startswith("OF-")

    def test_values_months_and_stage_are_normalized(self, customer, west, zone_user):
        _importer().run([
            _row(orderValue="95,000", probability=0.6, month="Jan", expectedMonth="Sept", stage="Order booked"),
        ])
        offer = Offer.objects.get()
        assert offer.po_value == Decimal("95000")
        assert offer.probability_percentage == 60
        assert offer.offer_month == "2025-01"
        assert offer.po_expected_month == "2025-09"
        assert offer.stage == "ORDER_BOOKED"

    @pytest.mark.parametrize("field", ["month", "expectedMonth"])
    def test_period_that_does_not_fit_yyyy_mm_skips_the_row(self, customer, west, zone_user, field):
        stats = _importer().run([_row(contactPerson="Mr. Rao", **{field: "2025-09-15"})])

        assert stats.imported == 0
        assert stats.skipped == 1
        assert stats.errors == ["Offer OF-1: Invalid month '2025-09-15' (expected YYYY-MM)"]
        assert Offer.objects.count() == 0
        assert Contact.objects.count() == 0

    def test_period_passthrough_is_kept(self, customer, west, zone_user):
        _importer().run([_row(month="2024-11")])
        assert Offer.objects.get().offer_month == "2024-11"

    def test_failed_write_rolls_back_the_whole_row(self, customer, west, zone_user, monkeypatch):
        def boom(**kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(Offer.objects, "create", boom)
        stats = _importer().run([_row(contactPerson="Mr. Rao", machineSerialNumber="SN-1")])

        assert stats.imported == 0
        assert stats.skipped == 1
        assert stats.errors == ["Offer OF-1: database went away"]
        assert stats.contacts_created == 0
        assert Contact.objects.count() == 0
        assert Asset.objects.count() == 0


class TestBatching:
    def test_sleeps_between_batches_only(self):
        sleeps = []
        importer = OfferImporter(
            EntityResolver({}, {}, {}),
            batch_size=10,
            batch_delay=0.5,
            sleep=sleeps.append,
        )
        rows = [OfferRow(source_id=str(i), company_name=f"Company {i}") for i in range(25)]

        stats = importer.run(rows)

        assert sleeps == [0.5, 0.5]
        assert stats.total == 25
        assert stats.imported + stats.skipped == stats.total

    def test_no_sleep_for_a_single_batch(self):
        sleeps = []
        importer = OfferImporter(EntityResolver({}, {}, {}), batch_size=10, batch_delay=1, sleep=sleeps.append)
        importer.run([OfferRow(source_id="1", company_name="Acme")])
        assert sleeps == []


class TestImportStats:
    def test_error_preview_caps_at_ten(self):
        stats = ImportStats(errors=[f"error {i}" for i in range(15)])
        preview, remaining = stats.error_preview()
        assert preview == [f"error {i}" for i in range(10)]
        assert remaining == 5

    def test_success_rate(self):
        assert ImportStats().success_rate == 0.0
        assert ImportStats(total=8, imported=6, skipped=2).success_rate == 75.0

    def test_as_dict_rounds_success_rate(self):
        data = ImportStats(total=3, imported=1, skipped=2).as_dict()
        assert data["success_rate"] == 33.33
        assert data["errors"] == []
