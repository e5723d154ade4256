# sales_league/leaderboard.py
"""
Company-wide views over the invoices feed: month totals and "best employee"
podiums by margin. Excluded identities (management, test accounts) never count.
"""
from datetime import datetime
from typing import Optional, List, Dict

from pydantic import BaseModel

from sales_league import config
from sales_league.league import get_league
from sales_league.metrics import (
    CompanyRow, InvoiceRow, is_paid_deal, margin_rub, budget_or_amount, deal_month_key,
    get_companies_count, get_monthly_plan,
)
from sales_league.utils import (
    user_id_matches, is_excluded, min_month_key, local_now, current_month_key,
    previous_month_key, shift_month_key,
)

# How far back the previous-month podium streak is searched
STREAK_LOOKBACK_MONTHS = 24


class BestEmployee(BaseModel):
    user_id: str
    margin: float
    consecutive_months: Optional[int] = None


class EmployeeItem(BaseModel):
    user_id: str
    companies_count: int
    league_name: str
    league_color_hex: str
    badge_image_path: str


def _paid_rows(invoices: List[InvoiceRow], excluded_user_ids: List[str]):
    for inv in invoices:
        if not is_paid_deal(inv):
            continue
        if is_excluded(inv.user_id, excluded_user_ids):
            continue
        yield inv


# --- Company Totals ---
def compute_total_month_margin(invoices: List[InvoiceRow], month_key: str, excluded_user_ids: Optional[List[str]] = None) -> float:
    return sum(
        margin_rub(inv) for inv in _paid_rows(invoices, excluded_user_ids or [])
        if deal_month_key(inv) == month_key
    )


def compute_total_month_budget(invoices: List[InvoiceRow], month_key: str, excluded_user_ids: Optional[List[str]] = None) -> float:
    return sum(
        budget_or_amount(inv) for inv in _paid_rows(invoices, excluded_user_ids or [])
        if deal_month_key(inv) == month_key
    )


def compute_total_current_month_margin(invoices, excluded_user_ids=None, now: Optional[datetime] = None) -> float:
    return compute_total_month_margin(invoices, current_month_key(now), excluded_user_ids)


def compute_total_previous_month_margin(invoices, excluded_user_ids=None, now: Optional[datetime] = None) -> float:
    return compute_total_month_margin(invoices, previous_month_key(now), excluded_user_ids)


def compute_total_current_month_budget(invoices, excluded_user_ids=None, now: Optional[datetime] = None) -> float:
    return compute_total_month_budget(invoices, current_month_key(now), excluded_user_ids)


# --- Podiums ---
def _margin_by_user(invoices, user_ids, excluded_user_ids, month_filter) -> Dict[str, float]:
    """Sums margin per canonical user id; rows are mapped to the first id in `user_ids` they match."""
    by_user: Dict[str, float] = {}
    for inv in _paid_rows(invoices, excluded_user_ids or []):
        matched_id = next((uid for uid in user_ids if user_id_matches(uid, inv.user_id)), None)
        if not matched_id:
            continue
        key = deal_month_key(inv)
        if not key or not month_filter(key):
            continue
        by_user[matched_id] = by_user.get(matched_id, 0.0) + margin_rub(inv)
    return by_user


def _pick_best(by_user: Dict[str, float]) -> Optional[BestEmployee]:
    # Strictly greater: the first user seen keeps a tie. Zero margin never wins.
    best = None
    for user_id, margin in by_user.items():
        if margin > 0 and (best is None or margin > best.margin):
            best = BestEmployee(user_id=user_id, margin=margin)
    return best


def get_best_employee_for_month(
    invoices: List[InvoiceRow], month_key: str, user_ids: List[str], excluded_user_ids: Optional[List[str]] = None
) -> Optional[BestEmployee]:
    return _pick_best(_margin_by_user(invoices, user_ids, excluded_user_ids, lambda key: key == month_key))


def get_best_employee_by_previous_month_margin(
    invoices: List[InvoiceRow], user_ids: List[str], excluded_user_ids: Optional[List[str]] = None,
    now: Optional[datetime] = None,
) -> Optional[BestEmployee]:
    """
    Best employee of the last full month, plus how many months in a row
    (counting back from that month) the same person held the top spot.
    """
    cutoff = min_month_key()
    month_keys = []
    for i in range(1, STREAK_LOOKBACK_MONTHS + 1):
        key = shift_month_key(current_month_key(now), -i)
        if key < cutoff:
            break
        month_keys.append(key)
    if not month_keys:
        return None

    first = get_best_employee_for_month(invoices, month_keys[0], user_ids, excluded_user_ids)
    if not first:
        return None

    consecutive = 1
    for key in month_keys[1:]:
        best = get_best_employee_for_month(invoices, key, user_ids, excluded_user_ids)
        if not best or not user_id_matches(first.user_id, best.user_id):
            break
        consecutive += 1

    first.consecutive_months = consecutive
    return first


def get_best_employee_by_current_year_margin(
    invoices: List[InvoiceRow], user_ids: List[str], excluded_user_ids: Optional[List[str]] = None,
    now: Optional[datetime] = None,
) -> Optional[BestEmployee]:
    year_prefix = f"{local_now(now).year}-"
    return _pick_best(_margin_by_user(invoices, user_ids, excluded_user_ids, lambda key: key.startswith(year_prefix)))


# --- Employees ---
def list_employee_ids(companies: List[CompanyRow], excluded_user_ids: Optional[List[str]] = None) -> List[str]:
    excluded = config.EXCLUDED_FROM_EMPLOYEES if excluded_user_ids is None else excluded_user_ids
    user_ids = {c.user_id for c in companies if c.user_id}
    return sorted(uid for uid in user_ids if not is_excluded(uid, excluded))


def list_employees(companies: List[CompanyRow], excluded_user_ids: Optional[List[str]] = None) -> List[EmployeeItem]:
    employees = []
    for user_id in list_employee_ids(companies, excluded_user_ids):
        companies_count = get_companies_count(companies, user_id)
        league = get_league(companies_count)
        employees.append(EmployeeItem(
            user_id=user_id,
            companies_count=companies_count,
            league_name=league["name"],
            league_color_hex=league["color_hex"],
            badge_image_path=league["badge_image_path"],
        ))
    return employees


def get_department_plan(user_ids: List[str]) -> float:
    return sum(get_monthly_plan(uid) for uid in user_ids)
