# sales_league/sheets_client.py
"""
Supplies connection and invoice rows from Google Sheets.

MODE=mock             built-in demo rows
MODE=public_csv       published CSV exports fetched over HTTP
MODE=service_account  Google Sheets API with a service account
"""
import csv
import io
import json
import logging
import time
from typing import Optional, List, Dict, Tuple

import gspread
import requests
from pydantic import BaseModel

from sales_league import config, mock_data
from sales_league.metrics import CompanyRow, InvoiceRow

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30

# Positional fallbacks when a header cannot be resolved
INVOICE_DEFAULT_POSITIONS = {"user_id": 0, "invoice_number": 1, "sales_amount": 2, "date": 3, "status_name": 4, "paid_date": 5}
COMPANY_DEFAULT_POSITIONS = {"user_id": 0, "company_id": 1, "company_name": 2, "contact_name": 3, "created_at": 4}


class SheetsError(Exception):
    pass


class SheetsConfigError(SheetsError):
    pass


class DealRow(BaseModel):
    user_id: str
    status: str
    completion_date: Optional[str] = None


class TTLCache:
    """Small expiring key-value cache for fetched row lists."""

    def __init__(self, default_ttl: float = 30.0):
        self.default_ttl = default_ttl
        self._entries: Dict[str, Tuple[float, object]] = {}

    def get(self, key: str):
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value, ttl: Optional[float] = None):
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (time.monotonic() + ttl, value)

    def invalidate(self, key: Optional[str] = None):
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)


row_cache = TTLCache(default_ttl=config.SHEETS_CONFIG["cache_ttl_seconds"])


# --- Header Resolution ---
def find_column_index(headers: List[str], variants: List[str]) -> int:
    """
    Index of the first header matching one of `variants` (case-insensitive).
    Exact matches win over partial ones; blank headers never match.
    """
    normalized = [str(h or "").lower().strip() for h in headers]
    wanted = [str(v).lower().strip() for v in variants if str(v).strip()]
    for idx, header in enumerate(normalized):
        if header and header in wanted:
            return idx
    for idx, header in enumerate(normalized):
        if header and any(v in header or header in v for v in wanted):
            return idx
    return -1


def resolve_columns(headers: List[str], aliases: Dict[str, List[str]]) -> Dict[str, int]:
    return {name: find_column_index(headers, variants) for name, variants in aliases.items()}


def _cell(row: List[str], idx: int, default_idx: Optional[int] = None) -> str:
    if idx < 0:
        if default_idx is None:
            return ""
        idx = default_idx
    return str(row[idx]) if idx < len(row) and row[idx] is not None else ""


def csv_to_rows(text: str) -> List[List[str]]:
    return [[cell.strip() for cell in row] for row in csv.reader(io.StringIO(text.strip()))]


def parse_company_row(row: List[str], columns: Dict[str, int]) -> CompanyRow:
    values = {name: _cell(row, columns.get(name, -1), default) for name, default in COMPANY_DEFAULT_POSITIONS.items()}
    return CompanyRow(**values)


def parse_invoice_row(row: List[str], columns: Dict[str, int]) -> InvoiceRow:
    def cell(name):
        return _cell(row, columns.get(name, -1), INVOICE_DEFAULT_POSITIONS.get(name))

    return InvoiceRow(
        user_id=cell("user_id").strip(),
        invoice_id=cell("invoice_number").strip(),
        invoice_amount=cell("sales_amount"),
        invoice_date=cell("date"),
        status=cell("status_name").strip(),
        paid_date=cell("paid_date").strip() or None,
        budget=cell("budget"),
        purchase_amount=cell("purchase_amount"),
    )


# --- Raw Fetchers ---
def fetch_csv_rows(url: str) -> List[List[str]]:
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        error_message = f"Error fetching CSV export {url}: {e}"
        if e.response is not None:
            error_message += f" | Status: {e.response.status_code}"
        logger.error(error_message)
        raise
    response.encoding = "utf-8"
    return csv_to_rows(response.text)


def _has_header(rows: List[List[str]]) -> bool:
    return bool(rows) and any(str(c).strip() for c in rows[0])


def fetch_worksheet_rows(spreadsheet_id: str, sheet_name: str) -> List[List[str]]:
    """
    Reads all values of a worksheet. Falls back to the first worksheet when the
    named one is missing, and to any non-empty worksheet when it is blank.
    """
    service_account_json = config.SHEETS_CONFIG["service_account_json"]
    if not service_account_json:
        raise SheetsConfigError("GOOGLE_SERVICE_ACCOUNT_JSON is required for MODE=service_account")

    client = gspread.service_account_from_dict(json.loads(service_account_json))
    spreadsheet = client.open_by_key(spreadsheet_id)
    try:
        worksheet = spreadsheet.worksheet(sheet_name)
    except gspread.exceptions.WorksheetNotFound:
        worksheet = spreadsheet.get_worksheet(0)
        logger.warning("Worksheet '%s' not found, using '%s'.", sheet_name, worksheet.title)

    rows = worksheet.get_all_values()
    if _has_header(rows):
        return rows

    for alternative in spreadsheet.worksheets():
        if alternative.title == worksheet.title:
            continue
        alt_rows = alternative.get_all_values()
        if _has_header(alt_rows):
            logger.warning("Worksheet '%s' is empty, using '%s'.", worksheet.title, alternative.title)
            return alt_rows
    return rows


def _source_rows(source: str) -> List[List[str]]:
    """Raw rows (header first) of the "connections" or "sales_funnel" source for the current mode."""
    settings = config.SHEETS_CONFIG
    mode = settings["mode"]
    if mode == "public_csv":
        url = settings["companies_csv_url"] if source == "connections" else settings["invoices_csv_url"]
        if not url:
            env_name = "PUBLIC_CSV_COMPANIES_URL" if source == "connections" else "PUBLIC_CSV_INVOICES_URL"
            raise SheetsConfigError(f"{env_name} is required for MODE=public_csv")
        return fetch_csv_rows(url)
    if mode == "service_account":
        if source == "connections":
            return fetch_worksheet_rows(settings["connections_spreadsheet_id"], settings["connections_sheet_name"])
        return fetch_worksheet_rows(settings["sales_funnel_spreadsheet_id"], settings["sales_funnel_sheet_name"])
    raise SheetsConfigError(f"Unknown MODE '{mode}'")


def _cached(cache: Optional[TTLCache], key: str, loader):
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s.", key)
            return cached
    value = loader()
    if cache is not None:
        cache.set(key, value)
    return value


# --- Typed Fetchers ---
def fetch_companies(cache: Optional[TTLCache] = row_cache) -> List[CompanyRow]:
    if config.SHEETS_CONFIG["mode"] == "mock":
        return [CompanyRow(**row) for row in mock_data.MOCK_COMPANIES]

    def load():
        rows = _source_rows("connections")
        if not rows:
            return []
        columns = resolve_columns(rows[0], config.CONNECTIONS_COLUMNS)
        companies = [parse_company_row(row, columns) for row in rows[1:]]
        logger.info("Loaded %d connection rows.", len(companies))
        return companies

    return _cached(cache, "companies", load)


def fetch_invoices(cache: Optional[TTLCache] = row_cache) -> List[InvoiceRow]:
    if config.SHEETS_CONFIG["mode"] == "mock":
        return [InvoiceRow(**row) for row in mock_data.MOCK_INVOICES]

    def load():
        rows = _source_rows("sales_funnel")
        if not rows:
            return []
        columns = resolve_columns(rows[0], config.SALES_FUNNEL_COLUMNS)
        invoices = [parse_invoice_row(row, columns) for row in rows[1:]]
        logger.info("Loaded %d invoice rows.", len(invoices))
        return invoices

    return _cached(cache, "invoices", load)


def fetch_deals_for_achievements() -> Tuple[List[DealRow], int]:
    """
    All deal rows (unfiltered) with manager, status and completion date, read fresh.
    Returns the rows and the number of data rows read.
    """
    if config.SHEETS_CONFIG["mode"] == "mock":
        deals = [
            DealRow(user_id=str(r["user_id"]).strip(), status=str(r["status"]).strip(), completion_date=r.get("paid_date"))
            for r in mock_data.MOCK_INVOICES
        ]
        return deals, len(deals)

    rows = _source_rows("sales_funnel")
    if not rows:
        return [], 0

    columns = resolve_columns(rows[0], config.ACHIEVEMENTS_JOB_COLUMNS)
    deals = []
    for row in rows[1:]:
        completion_date = _cell(row, columns["completion_date"])
        deals.append(DealRow(
            user_id=_cell(row, columns["manager"]).strip(),
            status=_cell(row, columns["status"]).strip(),
            completion_date=completion_date or None,
        ))
    return deals, len(rows) - 1
