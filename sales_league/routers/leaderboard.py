from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sales_league import config
from sales_league.leaderboard import (
    BestEmployee, list_employee_ids, get_department_plan,
    compute_total_current_month_margin, compute_total_previous_month_margin, compute_total_current_month_budget,
    get_best_employee_by_previous_month_margin, get_best_employee_by_current_year_margin,
)
from sales_league.metrics import CompanyRow, InvoiceRow
from sales_league.routers.deps import get_companies, get_invoices
from sales_league.utils import current_month_key, previous_month_key

router = APIRouter()

# --- Pydantic Models ---
class LeaderboardResponse(BaseModel):
    current_month: str
    previous_month: str
    total_current_month_margin: float
    total_previous_month_margin: float
    total_current_month_budget: float
    department_plan: float
    best_previous_month: Optional[BestEmployee] = None
    best_current_year: Optional[BestEmployee] = None


def build_leaderboard(
    companies: List[CompanyRow], invoices: List[InvoiceRow], now: Optional[datetime] = None
) -> LeaderboardResponse:
    excluded = config.EXCLUDED_FROM_EMPLOYEES
    user_ids = list_employee_ids(companies, excluded)
    return LeaderboardResponse(
        current_month=current_month_key(now),
        previous_month=previous_month_key(now),
        total_current_month_margin=compute_total_current_month_margin(invoices, excluded, now=now),
        total_previous_month_margin=compute_total_previous_month_margin(invoices, excluded, now=now),
        total_current_month_budget=compute_total_current_month_budget(invoices, excluded, now=now),
        department_plan=get_department_plan(user_ids),
        best_previous_month=get_best_employee_by_previous_month_margin(invoices, user_ids, excluded, now=now),
        best_current_year=get_best_employee_by_current_year_margin(invoices, user_ids, excluded, now=now),
    )


@router.get("/leaderboard", response_model=LeaderboardResponse, tags=["Leaderboard"])
def get_leaderboard(
    companies: List[CompanyRow] = Depends(get_companies),
    invoices: List[InvoiceRow] = Depends(get_invoices),
):
    """Department-wide month totals and the best employees by margin."""
    return build_leaderboard(companies, invoices)
