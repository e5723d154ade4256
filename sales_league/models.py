# sales_league/models.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

class UserAchievement(Base):
    __tablename__ = 'user_achievements'
    __table_args__ = (
        UniqueConstraint('user_id', 'achievement_id', 'month_key', name='uq_user_achievement_month'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    achievement_id = Column(String, nullable=False)
    # "YYYY-MM", or "all" for lifetime achievements
    month_key = Column(String(7), nullable=False, index=True)
    achieved = Column(Boolean, nullable=False, default=False)
    achieved_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
