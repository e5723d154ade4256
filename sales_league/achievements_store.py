# sales_league/achievements_store.py
"""
Storage for per-user achievement records.

Records are unique by (user_id, achievement_id, month_key). Only the
achievements job writes; the serving path reads.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict

from sales_league.models import UserAchievement

logger = logging.getLogger(__name__)


class AchievementRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    achievement_id: str
    month_key: str
    achieved: bool
    achieved_at: Optional[datetime] = None

    @property
    def key(self) -> tuple:
        return (self.user_id, self.achievement_id, self.month_key)


class AchievementStore(ABC):
    @abstractmethod
    def get(self, user_id: str, month_key: str) -> List[AchievementRecord]:
        ...

    @abstractmethod
    def upsert_batch(self, records: List[AchievementRecord]) -> int:
        """Insert-or-update by key; returns the number of distinct records written."""
        ...


def dedupe_records(records: List[AchievementRecord]) -> List[AchievementRecord]:
    """Collapses records sharing a key, the last one winning, keeping first-seen order."""
    by_key = {}
    for record in records:
        by_key[record.key] = record
    return list(by_key.values())


class SqlAchievementStore(AchievementStore):
    def __init__(self, session_factory=None):
        if session_factory is None:
            from sales_league.database import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def get(self, user_id: str, month_key: str) -> List[AchievementRecord]:
        db = self.session_factory()
        try:
            rows = (
                db.query(UserAchievement)
                .filter(UserAchievement.user_id == user_id, UserAchievement.month_key == month_key)
                .order_by(UserAchievement.id)
                .all()
            )
            return [AchievementRecord.model_validate(row) for row in rows]
        finally:
            db.close()

    def upsert_batch(self, records: List[AchievementRecord]) -> int:
        unique = dedupe_records(records)
        if not unique:
            return 0

        db = self.session_factory()
        try:
            user_ids = sorted({r.user_id for r in unique})
            existing = {
                (row.user_id, row.achievement_id, row.month_key): row
                for row in db.query(UserAchievement).filter(UserAchievement.user_id.in_(user_ids)).all()
            }
            inserted = 0
            for record in unique:
                row = existing.get(record.key)
                if row is None:
                    db.add(UserAchievement(
                        user_id=record.user_id,
                        achievement_id=record.achievement_id,
                        month_key=record.month_key,
                        achieved=record.achieved,
                        achieved_at=record.achieved_at,
                    ))
                    inserted += 1
                else:
                    row.achieved = record.achieved
                    row.achieved_at = record.achieved_at
            db.commit()
            logger.info("Upserted %d achievement records (%d new).", len(unique), inserted)
            return len(unique)
        except Exception:
            db.rollback()
            logger.exception("Failed to upsert achievement records.")
            raise
        finally:
            db.close()
