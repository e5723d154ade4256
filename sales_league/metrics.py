# sales_league/metrics.py
"""
Per-salesperson metrics computed from the connections and invoices feeds.

Every function here is pure: rows in, numbers out. Rows are matched to a user
with `utils.user_id_matches`, so "Иванов Иван" and "Иванов Иван Иванович"
aggregate together.
"""
from datetime import datetime, timezone
from typing import Optional, List, Dict

from pydantic import BaseModel, field_validator

from sales_league import config
from sales_league.achievements_catalog import count_achievements
from sales_league.league import get_league, get_next_league, get_progress_to_next_league, get_hard_skills_rank
from sales_league.utils import user_id_matches, parse_amount, month_key_from_date, min_month_key, current_month_key

# --- Row Models ---
class CompanyRow(BaseModel):
    user_id: str = ""
    company_id: str = ""
    company_name: str = ""
    contact_name: str = ""
    created_at: str = ""


class InvoiceRow(BaseModel):
    user_id: str = ""
    invoice_id: str = ""
    invoice_amount: float = 0.0
    invoice_date: str = ""
    status: str = ""
    paid_date: Optional[str] = None
    budget: Optional[float] = None
    purchase_amount: Optional[float] = None
    company_id: Optional[str] = None
    company_name: Optional[str] = None

    @field_validator("invoice_amount", mode="before")
    @classmethod
    def _amount_or_zero(cls, value):
        return parse_amount(value)

    @field_validator("budget", "purchase_amount", mode="before")
    @classmethod
    def _optional_amount(cls, value):
        if value is None or str(value).strip() == "":
            return None
        return parse_amount(value)


# --- Result Models ---
class Totals(BaseModel):
    """
    conversion_total is the share of issued invoices that are paid, so it stays
    within [0, 1]. A paid deal without an invoice number adds to paid_total but
    not to conversion, which makes conversion (and the hard-skills rank built on
    it) lower than paid_total / issued_total when such rows exist.
    """
    issued_total: int
    paid_total: int
    conversion_total: float
    cancelled_count: int
    paid_sum_total: float
    budget_total: float
    total_margin: float


class BucketMetrics(BaseModel):
    bucket_id: str
    label: str
    issued_count_bucket: int
    paid_count_bucket: int
    conversion_bucket: float
    paid_sum_bucket: float
    avg_margin_bucket: Optional[float] = None
    budget_sum_bucket: float


class MonthlyStats(BaseModel):
    monthly_paid_count: int
    monthly_margin: float
    current_month_paid: int
    current_month_margin: float
    current_month_budget: float
    by_month: Dict[str, int]


class MetricsResult(BaseModel):
    user_id: str
    companies_count: int
    league: dict
    next_league: Optional[dict] = None
    progress_to_next_league: Optional[float] = None
    hard_skills_rank: dict
    totals: Totals
    buckets: List[BucketMetrics]
    cancelled: dict
    max_monthly_budget: Optional[float] = None
    max_monthly_paid_count: Optional[int] = None
    current_month_budget: float
    monthly_plan: float
    achievements_count: int
    updated_at: datetime


# --- Row Predicates ---
def has_invoice_issued(row: InvoiceRow) -> bool:
    """An invoice counts as issued once it has an invoice number."""
    return str(row.invoice_id or "").strip() != ""


def normalize_status(status: str) -> str:
    return " ".join(str(status or "").split())


def is_paid_deal(row: InvoiceRow) -> bool:
    s = normalize_status(row.status)
    return any(normalize_status(paid) == s for paid in config.PAID_DEAL_STATUSES)


def margin_rub(row: InvoiceRow) -> float:
    """Sales minus purchase, never negative; 0 when either side is missing."""
    sales, purchase = row.invoice_amount, row.purchase_amount
    if sales is None or sales <= 0 or purchase is None:
        return 0.0
    return max(0.0, sales - purchase)


def margin_percent(row: InvoiceRow) -> Optional[float]:
    sales, purchase = row.invoice_amount, row.purchase_amount
    if sales is None or sales <= 0 or purchase is None:
        return None
    return (sales - purchase) / sales * 100


def budget_or_amount(row: InvoiceRow) -> float:
    return row.budget if row.budget is not None else (row.invoice_amount or 0.0)


def deal_month_key(row: InvoiceRow) -> Optional[str]:
    """Month of completion, falling back to the invoice date."""
    return month_key_from_date(row.paid_date or row.invoice_date)


def conversion_rate(issued: List[InvoiceRow]) -> float:
    """Share of issued invoices that got paid; 0 when nothing was issued."""
    if not issued:
        return 0.0
    return sum(1 for i in issued if is_paid_deal(i)) / len(issued)


def _user_rows(invoices: List[InvoiceRow], user_id: str) -> List[InvoiceRow]:
    return [i for i in invoices if user_id_matches(user_id, i.user_id)]


# --- Connections ---
def get_companies_count(companies: List[CompanyRow], user_id: str) -> int:
    """Unique companies of the user that have a named contact."""
    with_contact = {
        c.company_id for c in companies
        if c.user_id == user_id and c.contact_name.strip() != ""
    }
    return len(with_contact)


# --- Totals ---
def compute_totals(invoices: List[InvoiceRow], user_id: str) -> Totals:
    user_invoices = _user_rows(invoices, user_id)
    issued = [i for i in user_invoices if has_invoice_issued(i)]
    paid = [i for i in user_invoices if is_paid_deal(i)]

    issued_total, paid_total = len(issued), len(paid)
    conversion_total = conversion_rate(issued)

    # A blank status is incomplete data, not a cancellation.
    cancelled = [
        i for i in user_invoices
        if has_invoice_issued(i) and not is_paid_deal(i) and str(i.status or "").strip() != ""
    ]

    return Totals(
        issued_total=issued_total,
        paid_total=paid_total,
        conversion_total=conversion_total,
        cancelled_count=len(cancelled),
        paid_sum_total=sum(i.invoice_amount for i in paid),
        budget_total=sum(budget_or_amount(i) for i in paid),
        total_margin=sum(margin_rub(i) for i in paid),
    )


# --- Buckets ---
def bucket_index(amount: float) -> int:
    """Index of the bucket holding `amount`; anything below the first bound lands in the first bucket."""
    for idx, bucket in enumerate(config.BUCKETS):
        if bucket["max"] is None or amount < bucket["max"]:
            return idx
    return len(config.BUCKETS) - 1


def aggregate_by_buckets(invoices: List[InvoiceRow], user_id: str) -> List[BucketMetrics]:
    grouped: List[List[InvoiceRow]] = [[] for _ in config.BUCKETS]
    for inv in _user_rows(invoices, user_id):
        grouped[bucket_index(inv.invoice_amount or 0.0)].append(inv)

    results = []
    for bucket, in_bucket in zip(config.BUCKETS, grouped):
        issued = [i for i in in_bucket if has_invoice_issued(i)]
        paid = [i for i in in_bucket if is_paid_deal(i)]
        margins = [m for m in (margin_percent(i) for i in paid) if m is not None]
        results.append(BucketMetrics(
            bucket_id=bucket["id"],
            label=bucket["label"],
            issued_count_bucket=len(issued),
            paid_count_bucket=len(paid),
            conversion_bucket=conversion_rate(issued),
            paid_sum_bucket=sum(i.invoice_amount for i in paid),
            avg_margin_bucket=sum(margins) / len(margins) if margins else None,
            budget_sum_bucket=sum(budget_or_amount(i) for i in paid),
        ))
    return results


# --- Monthly Series ---
def _paid_by_month(invoices: List[InvoiceRow], user_id: str) -> Dict[str, dict]:
    by_month: Dict[str, dict] = {}
    cutoff = min_month_key()
    for inv in _user_rows(invoices, user_id):
        if not is_paid_deal(inv):
            continue
        key = deal_month_key(inv)
        if not key or key < cutoff:
            continue
        acc = by_month.setdefault(key, {"count": 0, "margin": 0.0, "budget": 0.0})
        acc["count"] += 1
        acc["margin"] += margin_rub(inv)
        acc["budget"] += budget_or_amount(inv)
    return by_month


def compute_monthly_stats(invoices: List[InvoiceRow], user_id: str, now: Optional[datetime] = None) -> MonthlyStats:
    """
    Closed deals per calendar month (by completion date) since ACHIEVEMENTS_MIN_YEAR.
    monthly_paid_count / monthly_margin are the all-time monthly records.
    """
    by_month = _paid_by_month(invoices, user_id)
    current = by_month.get(current_month_key(now), {"count": 0, "margin": 0.0, "budget": 0.0})
    return MonthlyStats(
        monthly_paid_count=max((m["count"] for m in by_month.values()), default=0),
        monthly_margin=max((m["margin"] for m in by_month.values()), default=0.0),
        current_month_paid=current["count"],
        current_month_margin=current["margin"],
        current_month_budget=current["budget"],
        by_month={key: m["count"] for key, m in by_month.items()},
    )


def compute_max_monthly_budget(invoices: List[InvoiceRow], user_id: str) -> float:
    """Best single calendar month by budget (sum of sales)."""
    by_month = _paid_by_month(invoices, user_id)
    return max((m["budget"] for m in by_month.values()), default=0.0)


def get_closed_count_for_month(invoices: List[InvoiceRow], user_id: str, month_key: str) -> int:
    return compute_monthly_stats(invoices, user_id).by_month.get(month_key, 0)


# --- Plans ---
def _plan_key_matches(user_id: str, plan_key: str) -> bool:
    a, b = str(user_id or "").strip(), str(plan_key or "").strip()
    if not a or not b:
        return False
    if a == b:
        return True
    return len(a) >= 8 and len(b) >= 8 and (a.startswith(b) or b.startswith(a))


def get_monthly_plan(user_id: str) -> float:
    """Monthly budget plan in rubles; 0 means no plan."""
    if user_id in config.MONTHLY_PLANS:
        return config.MONTHLY_PLANS[user_id]
    for key, plan in config.MONTHLY_PLANS.items():
        if _plan_key_matches(user_id, key):
            return plan
    return 0


# --- Snapshot ---
def compute_metrics(
    companies: List[CompanyRow],
    invoices: List[InvoiceRow],
    user_id: str,
    now: Optional[datetime] = None,
) -> MetricsResult:
    companies_count = get_companies_count(companies, user_id)
    totals = compute_totals(invoices, user_id)
    monthly = compute_monthly_stats(invoices, user_id, now=now)
    max_monthly_budget = compute_max_monthly_budget(invoices, user_id)

    return MetricsResult(
        user_id=user_id,
        companies_count=companies_count,
        league=get_league(companies_count),
        next_league=get_next_league(companies_count),
        progress_to_next_league=get_progress_to_next_league(companies_count),
        hard_skills_rank=get_hard_skills_rank(totals.total_margin, totals.conversion_total * 100, totals.paid_total),
        totals=totals,
        buckets=aggregate_by_buckets(invoices, user_id),
        cancelled={"count": totals.cancelled_count},
        max_monthly_budget=max_monthly_budget if max_monthly_budget > 0 else None,
        max_monthly_paid_count=monthly.monthly_paid_count if monthly.monthly_paid_count > 0 else None,
        current_month_budget=monthly.current_month_budget,
        monthly_plan=get_monthly_plan(user_id),
        achievements_count=count_achievements(
            totals.paid_total, totals.budget_total, max_monthly_budget, monthly.monthly_paid_count
        ),
        updated_at=now or datetime.now(timezone.utc),
    )
