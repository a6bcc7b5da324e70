"""
Readers for the sales workbook and the pre-processed JSON exports.

Column headers are matched through a normalized header map, so
``"Offer Reference Number"`` and ``"offerReferenceNumber"`` land on the
same field.
"""
from __future__ import annotations

import json
import logging
import unicodedata
from dataclasses import dataclass
from pathlib import Path

from django.conf import settings

import openpyxl

from .exceptions import InvalidSourceData, SourceFileNotFound
from .normalizers import clean_text

logger = logging.getLogger("offerfunnel.imports")

CUSTOMER_SHEET = "Customer"


def _normalize_header(value) -> str:
    """Normalize header labels so spaced, snake and camel case spellings agree."""
    cleaned = clean_text(value).lower()
    cleaned = unicodedata.normalize("NFKD", cleaned)
    cleaned = "".join(ch for ch in cleaned if not unicodedata.combining(ch))
    for ch in (" ", "-", "_", "/", "\\", ".", "(", ")", ":"):
        cleaned = cleaned.replace(ch, "")
    return cleaned


def _header_map(row: dict) -> dict:
    return {
        _normalize_header(key): key
        for key in row
        if key is not None and clean_text(key) != ""
    }


def _raw_value(row: dict, header_map: dict, *aliases: str):
    """Return the first non-empty raw value matching one of the aliases."""
    for alias in aliases:
        key = header_map.get(_normalize_header(alias))
        if key is None:
            continue
        raw = row.get(key)
        if raw is None or clean_text(raw) == "":
            continue
        return raw
    return None


def _row_value(row: dict, header_map: dict, *aliases: str) -> str:
    return clean_text(_raw_value(row, header_map, *aliases))


def _require_file(path) -> Path:
    path = Path(path)
    if not path.is_file():
        raise SourceFileNotFound(path)
    return path


# =========================================================================
# FILES
# =========================================================================

def read_workbook(path) -> dict[str, list[dict]]:
    """
    Read every sheet of an ``.xlsx`` workbook.

    Returns ``{sheet name: [row dict, ...]}`` where each row is keyed by the
    sheet's header row. Fully blank rows are dropped.
    """
    path = _require_file(path)
    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    sheets: dict[str, list[dict]] = {}
    try:
        for ws in wb.worksheets:
            rows = ws.iter_rows(values_only=True)
            header = next(rows, None)
            if header is None:
                sheets[ws.title] = []
                continue
            columns = [clean_text(cell) for cell in header]
            records = []
            for values in rows:
                record = {
                    column: value
                    for column, value in zip(columns, values)
                    if column
                }
                if all(clean_text(value) == "" for value in record.values()):
                    continue
                records.append(record)
            sheets[ws.title] = records
            logger.info("Read %d rows from sheet: %s", len(records), ws.title)
    finally:
        wb.close()
    return sheets


def load_json_rows(path, key: str | None = None) -> list[dict]:
    """Load a JSON array of objects, optionally found under ``key``."""
    path = _require_file(path)
    try:
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidSourceData(f"{path} is not valid JSON: {exc}") from exc

    if key is not None:
        if not isinstance(data, dict) or key not in data:
            raise InvalidSourceData(f"{path} has no '{key}' list")
        data = data[key]
    if not isinstance(data, list):
        raise InvalidSourceData(f"{path} does not contain a JSON array")
    if not all(isinstance(item, dict) for item in data):
        raise InvalidSourceData(f"{path} contains entries that are not objects")
    logger.info("Loaded %d records from %s", len(data), path.name)
    return data


# =========================================================================
# ROWS
# =========================================================================

@dataclass
class OfferRow:
    source_id: str
    offer_reference_number: str = ""
    company_name: str = ""
    location: str = ""
    department: str = ""
    contact_person: str = ""
    contact_number: str = ""
    email: str = ""
    machine_serial_number: str = ""
    product_type: str = ""
    offer_value: object = None
    order_value: object = None
    probability: object = None
    stage: str = ""
    lead: str = ""
    remarks: str = ""
    month: str = ""
    expected_month: str = ""
    assigned_user: str = ""
    zone: str = ""

    @classmethod
    def _from_mapping(cls, row: dict, *, source_id: str, assigned_user: str, zone: str) -> "OfferRow":
        headers = _header_map(row)
        return cls(
            source_id=source_id,
            offer_reference_number=_row_value(row, headers, "Offer Reference Number"),
            company_name=_row_value(row, headers, "Name of the Customer", "Company Name", "Company"),
            location=_row_value(row, headers, "Place", "Location"),
            department=_row_value(row, headers, "Department"),
            contact_person=_row_value(row, headers, "Contact Person", "Contact Person Name"),
            contact_number=_row_value(row, headers, "Contact Number"),
            email=_row_value(row, headers, "Email"),
            machine_serial_number=_row_value(row, headers, "Serial Number", "Machine Serial Number"),
            product_type=_row_value(row, headers, "Product Type"),
            offer_value=_raw_value(row, headers, "Offer Value"),
            order_value=_raw_value(row, headers, "Order Value", "PO Value"),
            probability=_raw_value(row, headers, "Probability", "Probability Percentage"),
            stage=_row_value(row, headers, "Stage", "Status"),
            lead=_row_value(row, headers, "Lead"),
            remarks=_row_value(row, headers, "Remarks"),
            month=_row_value(row, headers, "Month", "Offer Month"),
            expected_month=_row_value(
                row, headers, "Expected Month", "Expected PO Month", "PO Expected Month",
            ),
            assigned_user=assigned_user,
            zone=zone,
        )

    @classmethod
    def from_sheet_row(cls, row: dict, sheet_name: str, line: int | None = None) -> "OfferRow":
        """A row of a salesperson's sheet; the sheet name is the assignee."""
        headers = _header_map(row)
        zone = _row_value(row, headers, "Zone") or settings.OFFER_DEFAULT_ZONE
        source_id = f"{sheet_name}:{line}" if line is not None else sheet_name
        return cls._from_mapping(row, source_id=source_id, assigned_user=sheet_name, zone=zone)

    @classmethod
    def from_processed(cls, record: dict) -> "OfferRow":
        """A camelCase record from ``all-offers.json``."""
        headers = _header_map(record)
        return cls._from_mapping(
            record,
            source_id=_row_value(record, headers, "id") or _row_value(record, headers, "Offer Reference Number"),
            assigned_user=_row_value(record, headers, "Assigned User", "Assigned To", "User"),
            zone=_row_value(record, headers, "Zone"),
        )


@dataclass
class CustomerRow:
    company_name: str
    location: str = ""
    department: str = ""
    zone: str = ""

    @classmethod
    def from_sheet_row(cls, row: dict) -> "CustomerRow":
        headers = _header_map(row)
        return cls(
            company_name=_row_value(row, headers, "Name of the Customer", "Company Name", "Company"),
            location=_row_value(row, headers, "Place", "Location"),
            department=_row_value(row, headers, "Department"),
            zone=_row_value(row, headers, "Zone") or settings.OFFER_DEFAULT_ZONE,
        )

    @classmethod
    def from_processed(cls, record: dict) -> "CustomerRow":
        return cls.from_sheet_row(record)


def offer_rows_from_workbook(workbook: dict[str, list[dict]]) -> list[OfferRow]:
    """Offer rows of every salesperson sheet, in sheet order."""
    rows = []
    for sheet_name, records in workbook.items():
        if sheet_name == CUSTOMER_SHEET:
            continue
        for line, record in enumerate(records, start=2):
            rows.append(OfferRow.from_sheet_row(record, sheet_name, line))
    return rows


def extract_customer_rows(workbook: dict[str, list[dict]]) -> list[CustomerRow]:
    """
    Customers of a workbook: the ``Customer`` sheet when it has rows,
    otherwise the distinct companies named on the offer sheets.
    """
    if workbook.get(CUSTOMER_SHEET):
        rows = [CustomerRow.from_sheet_row(r) for r in workbook[CUSTOMER_SHEET]]
        return [r for r in rows if r.company_name]

    seen = {}
    for sheet_name, records in workbook.items():
        if sheet_name == CUSTOMER_SHEET:
            continue
        for record in records:
            customer = CustomerRow.from_sheet_row(record)
            if customer.company_name and customer.company_name not in seen:
                seen[customer.company_name] = customer
    logger.info("Extracted %d unique customers from offer sheets", len(seen))
    return list(seen.values())
