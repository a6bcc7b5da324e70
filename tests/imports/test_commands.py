import json
from io import StringIO

import openpyxl
import pytest
from django.core.management import CommandError, call_command

from accounts.models import User
from customers.models import Customer
from imports.management.commands._base import format_amount
from offers.models import Offer
from zones.models import ServiceZone


def _write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "value,expected",
    [
        (0, "₹0"),
        (999, "₹999"),
        (100000, "₹1,00,000"),
        (1234567, "₹12,34,567"),
        ("2500.4", "₹2,500"),
        (-1500, "-₹1,500"),
        (None, "₹0"),
    ],
)
def test_format_amount(value, expected):
    assert format_amount(value) == expected


@pytest.mark.django_db
class TestIntegrateExcelOffers:
    def test_imports_processed_offers(self, tmp_path, customer, west, zone_user):
        source = _write_json(tmp_path / "offers.json", [
            {"id": 1, "offerReferenceNumber": "OF-1", "companyName": "Acme", "productType": "Ccontarct",
             "offerValue": "₹1,00,000", "assignedUser": "Yogesh", "zone": "WEST"},
            {"id": 2, "offerReferenceNumber": "OF-2", "companyName": "Nobody", "assignedUser": "Yogesh",
             "zone": "WEST"},
        ])
        out = StringIO()

        call_command("integrate_excel_offers", file=str(source), delay=0, stdout=out)

        assert Offer.objects.filter(offer_reference_number="OF-1").exists()
        assert "1/2 imported, 1 skipped" in out.getvalue()

    def test_default_path_under_data_dir(self, tmp_path, customer, west, zone_user):
        _write_json(tmp_path / "processed" / "all-offers.json", [
            {"offerReferenceNumber": "OF-9", "companyName": "Acme", "assignedUser": "Yogesh", "zone": "WEST"},
        ])

        call_command("integrate_excel_offers", data_dir=str(tmp_path), stdout=StringIO())

        assert Offer.objects.filter(offer_reference_number="OF-9").exists()

    def test_missing_file_is_a_command_error(self, tmp_path):
        with pytest.raises(CommandError, match="Source file not found"):
            call_command("integrate_excel_offers", file=str(tmp_path / "nope.json"), stdout=StringIO())


@pytest.mark.django_db
class TestSeedFromProcessed:
    def test_seeds_everything_present(self, tmp_path):
        processed = tmp_path / "processed"
        _write_json(processed / "customers.json", [{"companyName": "Acme", "location": "Pune", "zone": "WEST"}])
        _write_json(processed / "all-offers.json", [
            {"offerReferenceNumber": "OF-1", "companyName": "Acme", "assignedUser": "Yogesh", "zone": "WEST"},
        ])
        out = StringIO()

        call_command("seed_from_processed", data_dir=str(tmp_path), password="pw-123456", stdout=out)

        assert ServiceZone.objects.count() == 4
        assert User.objects.get(email="yogesh@example.com").check_password("pw-123456")
        assert Customer.objects.get().company_name == "Acme"
        assert Offer.objects.get().assigned_to.name == "Yogesh"
        assert "1 customers, 1 offers" in out.getvalue()

    def test_missing_files_only_warn(self, tmp_path, caplog):
        out = StringIO()

        call_command("seed_from_processed", data_dir=str(tmp_path), stdout=out)

        assert "0 customers, 0 offers" in out.getvalue()
        assert "Customers file not found" in caplog.text


@pytest.mark.django_db
class TestSeedOfferFunnel:
    def test_seeds_from_workbook(self, tmp_path):
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        sheet = wb.create_sheet("Customer")
        sheet.append(["Name of the Customer", "Place", "Department", "Zone"])
        sheet.append(["Acme", "Pune", "Maintenance", "WEST"])
        sheet = wb.create_sheet("Rahul")
        sheet.append(["Name of the Customer", "Offer Reference Number", "Product Type", "Offer Value", "Month"])
        sheet.append(["Acme", "OF-100", "SPP", 50000, "Mar"])
        sheet.append(["Unknown Co", "OF-101", "SPP", 1000, "Mar"])
        path = tmp_path / "funnel.xlsx"
        wb.save(path)
        out = StringIO()

        call_command("seed_offer_funnel", workbook=str(path), stdout=out)

        offer = Offer.objects.get()
        assert offer.offer_reference_number == "OF-100"
        assert offer.assigned_to.name == "Rahul"
        assert offer.zone.name == "WEST"
        assert offer.offer_month == "2025-03"
        assert "1 offers (1 skipped)" in out.getvalue()

    def test_missing_workbook(self, tmp_path):
        with pytest.raises(CommandError):
            call_command("seed_offer_funnel", workbook=str(tmp_path / "missing.xlsx"), stdout=StringIO())


@pytest.mark.django_db
class TestFixZoneDiscrepancies:
    def test_prints_zone_report(self, tmp_path, west, admin_user, customer):
        source = _write_json(tmp_path / "comprehensive.json", {
            "allOffers": [
                {"offerReferenceNumber": "R-1", "companyName": "Acme", "offerValue": "100000", "zone": "WEST"},
            ],
        })
        out = StringIO()

        call_command("fix_zone_discrepancies", file=str(source), stdout=out)

        output = out.getvalue()
        assert "WEST:" in output
        assert "Imported 1, invalid 0, conflicts 0, failed 0" in output
        assert "=== FINAL ASSESSMENT ===" in output
        assert "Total spreadsheet value: ₹1,00,000" in output
        assert Offer.objects.filter(offer_reference_number="R-1").exists()

    def test_without_admin_fails(self, tmp_path, west):
        source = _write_json(tmp_path / "comprehensive.json", {"allOffers": []})
        with pytest.raises(CommandError, match="Admin user not found"):
            call_command("fix_zone_discrepancies", file=str(source), stdout=StringIO())

    def test_wrong_shape_fails(self, tmp_path, admin_user):
        source = _write_json(tmp_path / "comprehensive.json", [])
        with pytest.raises(CommandError):
            call_command("fix_zone_discrepancies", file=str(source), stdout=StringIO())
