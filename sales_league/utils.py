import re
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from sales_league import config

# These helpers are shared by the aggregators, the sheets client and the achievements job.

FULL_NAME_MIN_LENGTH = 10

_CURRENCY_MARKERS = re.compile(r"руб\.?|р\.?|₽", re.IGNORECASE)
_NUMBER_PREFIX = re.compile(r"[-+]?(\d+(\.\d*)?|\.\d+)")
_DAY_FIRST = re.compile(r"^(\d{1,2})[./](\d{1,2})[./](\d{4})$")
_YEAR_FIRST = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})")
_SERIAL = re.compile(r"^\d+(\.\d+)?$")
_TIME_SUFFIX = re.compile(r"[\sT]+\d{1,2}:\d{2}(:\d{2}(\.\d+)?)?\s*(Z|[+-]\d{2}:?\d{2})?$", re.IGNORECASE)
_SPREADSHEET_EPOCH = datetime(1899, 12, 30)


class RussianMonthsParserInfo(date_parser.parserinfo):
    """English month names plus Russian nominative, genitive and short forms ("5 марта 2025")."""
    MONTHS = [
        ("Jan", "January", "янв", "января", "январь"),
        ("Feb", "February", "фев", "февраля", "февраль"),
        ("Mar", "March", "мар", "марта", "март"),
        ("Apr", "April", "апр", "апреля", "апрель"),
        ("May", "мая", "май"),
        ("Jun", "June", "июн", "июня", "июнь"),
        ("Jul", "July", "июл", "июля", "июль"),
        ("Aug", "August", "авг", "августа", "август"),
        ("Sep", "Sept", "September", "сен", "сент", "сентября", "сентябрь"),
        ("Oct", "October", "окт", "октября", "октябрь"),
        ("Nov", "November", "ноя", "ноября", "ноябрь"),
        ("Dec", "December", "дек", "декабря", "декабрь"),
    ]


_DATE_PARSER_INFO = RussianMonthsParserInfo()


def user_id_matches(user_id: str, row_user_id: str) -> bool:
    """
    Loose identity match between a canonical user id and the id found in a row.

    Equal after trimming, or both look like full names (10+ chars) and one is a
    prefix of the other: "Иванов Иван" matches "Иванов Иван Иванович".
    Blank ids never match.
    """
    a = str(user_id or "").strip()
    b = str(row_user_id or "").strip()
    if not a or not b:
        return False
    if a == b:
        return True
    if len(a) >= FULL_NAME_MIN_LENGTH and len(b) >= FULL_NAME_MIN_LENGTH:
        return a.startswith(b) or b.startswith(a)
    return False


def is_excluded(user_id: str, excluded_user_ids: list[str]) -> bool:
    """Exclusion lists hold name fragments, so containment in either direction counts."""
    uid = str(user_id or "").strip()
    for excluded in excluded_user_ids or []:
        ex = str(excluded or "").strip()
        if ex and (ex in uid or uid in ex):
            return True
    return False


def parse_amount(value) -> float:
    """Parses money cells like "р.44 500,00" or "1 234,56 руб."; blank or garbage -> 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    s = _CURRENCY_MARKERS.sub("", str(value))
    s = re.sub(r"\s", "", s).replace(",", ".")
    match = _NUMBER_PREFIX.match(s)
    if not match:
        return 0.0
    return float(match.group(0))


def excel_serial_to_date(serial: float) -> Optional[datetime]:
    """Spreadsheet serial date (days since 1899-12-30) to datetime."""
    try:
        return _SPREADSHEET_EPOCH + timedelta(days=serial)
    except OverflowError:
        return None


def month_key(dt: datetime) -> str:
    return f"{dt.year}-{dt.month:02d}"


def month_key_from_date(raw) -> Optional[str]:
    """
    Normalizes a date cell to "YYYY-MM".
    Tries DD.MM.YYYY, YYYY-MM-DD, a spreadsheet serial number and finally a generic parse.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    # "13.01.2025 14:30" -> "13.01.2025", "2025-01-13T14:30" -> "2025-01-13"
    head = _TIME_SUFFIX.sub("", s)

    day_first = _DAY_FIRST.match(head)
    if day_first:
        month, year = int(day_first.group(2)), day_first.group(3)
        return f"{year}-{month:02d}" if 1 <= month <= 12 else None

    year_first = _YEAR_FIRST.match(head)
    if year_first:
        year, month = year_first.group(1), int(year_first.group(2))
        return f"{year}-{month:02d}" if 1 <= month <= 12 else None

    if _SERIAL.match(head):
        serial = float(head)
        dt = excel_serial_to_date(serial) if serial > 0 else None
        return month_key(dt) if dt else None

    try:
        return month_key(date_parser.parse(s, parserinfo=_DATE_PARSER_INFO))
    except (ValueError, OverflowError):
        return None


def min_month_key() -> str:
    return f"{config.ACHIEVEMENTS_MIN_YEAR}-01"


def ensure_timezone_aware(dt: datetime) -> datetime:
    """Ensures a datetime object is timezone-aware, assuming UTC if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def local_now(now: Optional[datetime] = None) -> datetime:
    """Current time in the company timezone; an explicit `now` is converted, not replaced."""
    tz = ZoneInfo(config.APP_TIMEZONE)
    if now is None:
        return datetime.now(tz)
    return ensure_timezone_aware(now).astimezone(tz)


def current_month_key(now: Optional[datetime] = None) -> str:
    return month_key(local_now(now))


def shift_month_key(key: str, months: int) -> str:
    year, month = key.split("-")
    shifted = datetime(int(year), int(month), 1) + relativedelta(months=months)
    return month_key(shifted)


def previous_month_key(now: Optional[datetime] = None) -> str:
    return shift_month_key(current_month_key(now), -1)
