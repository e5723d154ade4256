# sales_league/achievements_catalog.py
"""
Achievements catalog.
- monthly_sales: 5, 10, 20, 35, 50 closed deals in one month (persisted per month by the job)
- total_sales: lifetime closed deals, 5 ... 300 (persisted with month key "all")
- total_margin: lifetime sales budget, 100k ... 30M rubles
- max_monthly_budget: best single month budget, 50k ... 5M rubles
- max_monthly_sales: best single month closed deals, 1 ... 50

Ids are stored in user_achievements, so items may be added but never renamed or removed.
"""
from typing import Iterable, List, Literal

from pydantic import BaseModel

AchievementType = Literal["monthly_sales", "total_sales", "total_margin", "max_monthly_budget", "max_monthly_sales"]


class AchievementCatalogItem(BaseModel):
    id: str
    key: str
    title: str
    description: str
    threshold: int
    type: AchievementType


class AchievementStatus(AchievementCatalogItem):
    achieved: bool


MONTHLY_SALES_THRESHOLDS = [5, 10, 20, 35, 50]

TOTAL_SALES_THRESHOLDS = [
    5, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100,
    120, 140, 160, 180, 200, 220, 240, 260, 280, 300,
]

TOTAL_MARGIN_THRESHOLDS = [
    100_000, 250_000, 500_000, 750_000, 1_000_000, 1_500_000, 2_000_000, 2_500_000,
    3_000_000, 4_000_000, 5_000_000, 7_000_000, 10_000_000, 15_000_000, 20_000_000,
    25_000_000, 30_000_000,
]

MAX_MONTHLY_BUDGET_THRESHOLDS = [
    50_000, 75_000, 100_000, 150_000, 200_000, 250_000, 300_000, 400_000, 500_000,
    600_000, 750_000, 1_000_000, 1_250_000, 1_500_000, 2_000_000, 2_500_000,
    3_000_000, 4_000_000, 5_000_000,
]

MAX_MONTHLY_SALES_THRESHOLDS = [1, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50]


def format_rubles_title(rubles: float) -> str:
    if rubles >= 1_000_000:
        millions = rubles / 1_000_000
        return f"{int(millions)} млн ₽" if millions == int(millions) else f"{millions:.1f} млн ₽"
    return f"{rubles / 1_000:.0f} тыс. ₽"


def sales_word(count: int) -> str:
    if count == 1:
        return "продажа"
    if 2 <= count <= 4:
        return "продажи"
    return "продаж"


MONTHLY_SALES_CATALOG = [
    AchievementCatalogItem(
        id=f"ms-{t}", key=f"monthly_sales_{t}", title=f"{t} продаж",
        description=f"{t} закрытых сделок за месяц", threshold=t, type="monthly_sales",
    )
    for t in MONTHLY_SALES_THRESHOLDS
]

TOTAL_SALES_CATALOG = [
    AchievementCatalogItem(
        id=f"ts-{t}", key=f"total_sales_{t}", title=f"{t} продаж",
        description=f"{t} закрытых сделок всего", threshold=t, type="total_sales",
    )
    for t in TOTAL_SALES_THRESHOLDS
]

MARGIN_ACHIEVEMENTS_CATALOG = [
    AchievementCatalogItem(
        id=f"tm-{t}", key=f"total_margin_{t}", title=format_rubles_title(t),
        description=f"Сумма продаж {format_rubles_title(t)} и выше", threshold=t, type="total_margin",
    )
    for t in TOTAL_MARGIN_THRESHOLDS
]

MAX_MONTHLY_BUDGET_CATALOG = [
    AchievementCatalogItem(
        id=f"mmb-{t}", key=f"max_monthly_budget_{t}", title=format_rubles_title(t),
        description=f"Рекордная маржа (бюджет) в одном месяце: {format_rubles_title(t)} и выше",
        threshold=t, type="max_monthly_budget",
    )
    for t in MAX_MONTHLY_BUDGET_THRESHOLDS
]

MAX_MONTHLY_SALES_CATALOG = [
    AchievementCatalogItem(
        id=f"mms-{t}", key=f"max_monthly_sales_{t}", title=f"{t} {sales_word(t)} в месяц",
        description=f"{t} закрытых сделок в одном месяце", threshold=t, type="max_monthly_sales",
    )
    for t in MAX_MONTHLY_SALES_THRESHOLDS
]

# Families evaluated and persisted by the achievements job
ACHIEVEMENTS_CATALOG = MONTHLY_SALES_CATALOG + TOTAL_SALES_CATALOG

ALL_ACHIEVEMENTS = (
    ACHIEVEMENTS_CATALOG
    + MARGIN_ACHIEVEMENTS_CATALOG
    + MAX_MONTHLY_BUDGET_CATALOG
    + MAX_MONTHLY_SALES_CATALOG
)


def catalog_by_type(achievement_type: str) -> List[AchievementCatalogItem]:
    return [item for item in ALL_ACHIEVEMENTS if item.type == achievement_type]


def count_achievements(paid_count: float, budget_total: float, max_monthly_budget: float, max_monthly_sales: float) -> int:
    """Total stars earned across the lifetime and monthly-record families (monthly_sales excluded)."""
    return (
        sum(1 for t in TOTAL_SALES_THRESHOLDS if paid_count >= t)
        + sum(1 for t in TOTAL_MARGIN_THRESHOLDS if budget_total >= t)
        + sum(1 for t in MAX_MONTHLY_BUDGET_THRESHOLDS if max_monthly_budget >= t)
        + sum(1 for t in MAX_MONTHLY_SALES_THRESHOLDS if max_monthly_sales >= t)
    )


def merge_achievements_with_user_data(
    catalog: List[AchievementCatalogItem], user_achievements: Iterable
) -> List[AchievementStatus]:
    """Marks catalog items achieved from stored records; items without a record stay locked."""
    achieved_by_id = {ua.achievement_id: ua.achieved for ua in user_achievements}
    return [
        AchievementStatus(**item.model_dump(), achieved=achieved_by_id.get(item.id, False))
        for item in catalog
    ]
