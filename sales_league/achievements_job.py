# sales_league/achievements_job.py
"""
Achievements job: reads every deal, keeps the closed ones ("Имя статуса" equal
to the paid status), counts them per manager and month and per manager overall,
and upserts user_achievements. Safe to re-run: the same source rows always
produce the same achieved flags.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Tuple, Callable

from pydantic import BaseModel

from sales_league import config
from sales_league.achievements_catalog import ACHIEVEMENTS_CATALOG
from sales_league.achievements_store import AchievementRecord, AchievementStore, SqlAchievementStore
from sales_league.sheets_client import DealRow, fetch_deals_for_achievements
from sales_league.utils import month_key_from_date

logger = logging.getLogger(__name__)


class JobResult(BaseModel):
    rows_read: int = 0
    rows_filtered: int = 0
    achievements_updated: int = 0
    errors: List[str] = []


def count_closed_deals(deals: List[DealRow]) -> Tuple[Dict[Tuple[str, str], int], Dict[str, int]]:
    """
    Closed deals per (user, month) and per user. Rows with an unreadable
    completion date still count towards the lifetime total.
    """
    by_user_month: Dict[Tuple[str, str], int] = {}
    by_user: Dict[str, int] = {}
    for deal in deals:
        if not deal.user_id:
            continue
        month_key = month_key_from_date(deal.completion_date)
        if month_key:
            by_user_month[(deal.user_id, month_key)] = by_user_month.get((deal.user_id, month_key), 0) + 1
        by_user[deal.user_id] = by_user.get(deal.user_id, 0) + 1
    return by_user_month, by_user


def build_achievement_records(
    by_user_month: Dict[Tuple[str, str], int], by_user: Dict[str, int], now: datetime
) -> List[AchievementRecord]:
    records = []
    for (user_id, month_key), count in by_user_month.items():
        for item in ACHIEVEMENTS_CATALOG:
            if item.type != "monthly_sales":
                continue
            achieved = count >= item.threshold
            records.append(AchievementRecord(
                user_id=user_id, achievement_id=item.id, month_key=month_key,
                achieved=achieved, achieved_at=now if achieved else None,
            ))

    for user_id, total in by_user.items():
        for item in ACHIEVEMENTS_CATALOG:
            if item.type != "total_sales":
                continue
            achieved = total >= item.threshold
            records.append(AchievementRecord(
                user_id=user_id, achievement_id=item.id, month_key=config.LIFETIME_MONTH_KEY,
                achieved=achieved, achieved_at=now if achieved else None,
            ))
    return records


def run_achievements_job(
    store: Optional[AchievementStore] = None,
    fetch_deals: Optional[Callable[[], Tuple[List[DealRow], int]]] = None,
    now: Optional[datetime] = None,
) -> JobResult:
    """Never raises: failures are reported in `errors` alongside whatever was counted so far."""
    result = JobResult()
    try:
        store = store or SqlAchievementStore()
        deals, total_read = (fetch_deals or fetch_deals_for_achievements)()
        result.rows_read = total_read

        paid = [d for d in deals if str(d.status or "").strip() == config.PAID_STATUS]
        result.rows_filtered = len(paid)

        by_user_month, by_user = count_closed_deals(paid)
        records = build_achievement_records(by_user_month, by_user, now or datetime.now(timezone.utc))
        result.achievements_updated = store.upsert_batch(records)
    except Exception as e:
        logger.exception("Achievements job failed.")
        result.errors.append(str(e) or e.__class__.__name__)

    logger.info(
        "[achievements_job] rowsRead=%d rowsFiltered=%d achievementsUpdated=%d",
        result.rows_read, result.rows_filtered, result.achievements_updated,
    )
    return result


def get_user_achievements(user_id: str, month_key: str, store: Optional[AchievementStore] = None) -> List[AchievementRecord]:
    return (store or SqlAchievementStore()).get(user_id, month_key)
