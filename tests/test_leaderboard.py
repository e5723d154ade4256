from datetime import datetime, timezone

from sales_league import config
from sales_league.leaderboard import (
    compute_total_current_month_margin, compute_total_previous_month_margin, compute_total_current_month_budget,
    get_best_employee_for_month, get_best_employee_by_previous_month_margin,
    get_best_employee_by_current_year_margin, list_employee_ids, list_employees, get_department_plan,
)
from tests.conftest import FIXED_NOW, make_paid, make_invoice, make_companies

IVANOV = "Иванов Иван Петрович"
PETROV = "Петров Пётр Сергеевич"
BOSS = "Корецкий Андрей"
USERS = [IVANOV, PETROV]


def paid(user_id, margin, month, budget=None):
    return make_paid(user_id=user_id, amount=margin + 1_000, purchase=1_000, paid_date=f"{month}-15", budget=budget)


class TestMonthTotals:
    def test_current_and_previous_month(self):
        invoices = [
            paid(IVANOV, 10_000, "2025-06", budget=50_000),
            paid("Иванов Иван", 5_000, "2025-06"),
            paid(PETROV, 7_000, "2025-05"),
            make_invoice(user_id=IVANOV, invoice_id="x", amount=900_000, status="В работе"),
        ]
        assert compute_total_current_month_margin(invoices, [], now=FIXED_NOW) == 15_000
        assert compute_total_previous_month_margin(invoices, [], now=FIXED_NOW) == 7_000
        assert compute_total_current_month_budget(invoices, [], now=FIXED_NOW) == 50_000 + 6_000

    def test_excluded_identities_do_not_count(self):
        invoices = [paid(IVANOV, 10_000, "2025-06"), paid(BOSS, 1_000_000, "2025-06")]
        assert compute_total_current_month_margin(invoices, ["Корецкий"], now=FIXED_NOW) == 10_000


class TestBestEmployee:
    def test_strictly_largest_positive_margin(self):
        invoices = [paid(IVANOV, 10_000, "2025-05"), paid(PETROV, 12_000, "2025-05")]
        best = get_best_employee_for_month(invoices, "2025-05", USERS)
        assert best.user_id == PETROV
        assert best.margin == 12_000

    def test_rows_are_merged_under_canonical_id(self):
        invoices = [
            paid("Иванов Иван", 8_000, "2025-05"),
            paid(IVANOV, 8_000, "2025-05"),
            paid(PETROV, 12_000, "2025-05"),
        ]
        assert get_best_employee_for_month(invoices, "2025-05", USERS).user_id == IVANOV

    def test_tie_keeps_first_seen(self):
        invoices = [paid(PETROV, 5_000, "2025-05"), paid(IVANOV, 5_000, "2025-05")]
        assert get_best_employee_for_month(invoices, "2025-05", USERS).user_id == PETROV

    def test_zero_margin_never_wins(self):
        invoices = [make_paid(user_id=IVANOV, amount=10_000, purchase=None, paid_date="2025-05-03")]
        assert get_best_employee_for_month(invoices, "2025-05", USERS) is None

    def test_excluded_user_is_skipped(self):
        invoices = [paid(BOSS, 90_000, "2025-05"), paid(IVANOV, 1_000, "2025-05")]
        best = get_best_employee_for_month(invoices, "2025-05", USERS + [BOSS], ["Корецкий"])
        assert best.user_id == IVANOV


class TestPreviousMonthStreak:
    def test_counts_consecutive_months(self):
        invoices = [
            paid(IVANOV, 10_000, "2025-05"),
            paid(IVANOV, 10_000, "2025-04"),
            paid(IVANOV, 10_000, "2025-03"),
            paid(PETROV, 50_000, "2025-02"),
            paid(IVANOV, 10_000, "2025-01"),
            # current month is not part of the streak
            paid(PETROV, 99_000, "2025-06"),
        ]
        best = get_best_employee_by_previous_month_margin(invoices, USERS, now=FIXED_NOW)
        assert best.user_id == IVANOV
        assert best.margin == 10_000
        assert best.consecutive_months == 3

    def test_gap_month_ends_streak(self):
        invoices = [paid(IVANOV, 10_000, "2025-05"), paid(IVANOV, 10_000, "2025-03")]
        best = get_best_employee_by_previous_month_margin(invoices, USERS, now=FIXED_NOW)
        assert best.consecutive_months == 1

    def test_no_sales_last_month(self):
        invoices = [paid(IVANOV, 10_000, "2025-04")]
        assert get_best_employee_by_previous_month_margin(invoices, USERS, now=FIXED_NOW) is None

    def test_streak_stops_at_cutoff_year(self, monkeypatch):
        monkeypatch.setattr(config, "ACHIEVEMENTS_MIN_YEAR", 2024)
        invoices = [paid(IVANOV, 10_000, month) for month in ("2024-02", "2024-01", "2023-12", "2023-11")]
        now = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)
        best = get_best_employee_by_previous_month_margin(invoices, USERS, now=now)
        assert best.user_id == IVANOV
        assert best.consecutive_months == 2

    def test_no_full_month_after_cutoff(self, monkeypatch):
        monkeypatch.setattr(config, "ACHIEVEMENTS_MIN_YEAR", 2024)
        invoices = [paid(IVANOV, 10_000, "2023-12")]
        now = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)
        assert get_best_employee_by_previous_month_margin(invoices, USERS, now=now) is None


class TestYearToDate:
    def test_only_current_year_counts(self):
        invoices = [
            paid(PETROV, 100_000, "2024-12"),
            paid(IVANOV, 10_000, "2025-01"),
            paid(IVANOV, 10_000, "2025-06"),
            paid(PETROV, 15_000, "2025-03"),
        ]
        best = get_best_employee_by_current_year_margin(invoices, USERS, now=FIXED_NOW)
        assert best.user_id == IVANOV
        assert best.margin == 20_000
        assert best.consecutive_months is None


class TestEmployees:
    def test_list_is_sorted_and_excludes_management(self):
        companies = make_companies(PETROV, 2) + make_companies(IVANOV, 150) + make_companies(BOSS, 5)
        assert list_employee_ids(companies, ["Корецкий"]) == [IVANOV, PETROV]

        employees = {e.user_id: e for e in list_employees(companies, ["Корецкий"])}
        assert employees[IVANOV].companies_count == 150
        assert employees[IVANOV].league_name == "Silver"
        assert employees[PETROV].league_name == "Bronze"

    def test_department_plan_sums_individual_plans(self):
        assert get_department_plan(["Ружников Дмитрий Константинович", "Кадыров Никита Дмитриевич", "unknown"]) == 350_000
