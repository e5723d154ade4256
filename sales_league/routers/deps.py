from typing import List

from sales_league import sheets_client
from sales_league.achievements_store import AchievementStore, SqlAchievementStore
from sales_league.metrics import CompanyRow, InvoiceRow

# Shared dependencies, overridable in tests via app.dependency_overrides

def get_companies() -> List[CompanyRow]:
    return sheets_client.fetch_companies()

def get_invoices() -> List[InvoiceRow]:
    return sheets_client.fetch_invoices()

def get_store() -> AchievementStore:
    return SqlAchievementStore()
