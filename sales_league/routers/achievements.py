import logging
import re
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from sales_league import config
from sales_league.achievements_catalog import ACHIEVEMENTS_CATALOG, AchievementStatus, merge_achievements_with_user_data
from sales_league.achievements_job import run_achievements_job, get_user_achievements
from sales_league.achievements_store import AchievementStore
from sales_league.routers.deps import get_store
from sales_league.utils import current_month_key

logger = logging.getLogger(__name__)

router = APIRouter()

MONTH_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}$")

# --- Pydantic Models ---
class AchievementsResponse(BaseModel):
    user_id: str
    month: str
    achievements: List[AchievementStatus]


def resolve_month(month: Optional[str]) -> str:
    """Passes through "all" and YYYY-MM keys; anything else means the current month."""
    if month == config.LIFETIME_MONTH_KEY:
        return month
    if month and MONTH_KEY_PATTERN.match(month):
        return month
    return current_month_key()


@router.get("/achievements", response_model=AchievementsResponse, tags=["Achievements"])
def get_achievements(
    user_id: Optional[str] = None,
    month: Optional[str] = None,
    store: AchievementStore = Depends(get_store),
):
    """
    Achievement catalog for one user with `achieved` flags for the requested month.
    """
    if not user_id:
        raise HTTPException(status_code=400, detail="user_id is required")
    month_key = resolve_month(month)
    user_achievements = get_user_achievements(user_id, month_key, store=store)
    return AchievementsResponse(
        user_id=user_id,
        month=month_key,
        achievements=merge_achievements_with_user_data(ACHIEVEMENTS_CATALOG, user_achievements),
    )


@router.api_route("/cron/achievements", methods=["GET", "POST"], tags=["Jobs"])
def run_achievements_cron(request: Request, store: AchievementStore = Depends(get_store)):
    secret = config.CRON_SECRET
    if secret:
        auth_header = request.headers.get("authorization", "")
        token = re.sub(r"^Bearer\s+", "", auth_header, flags=re.IGNORECASE).strip()
        if token != secret:
            return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    result = run_achievements_job(store=store)
    if result.errors:
        logger.error("[achievements_job] errors: %s", result.errors)

    return {
        "ok": not result.errors,
        "rowsRead": result.rows_read,
        "rowsFiltered": result.rows_filtered,
        "achievementsUpdated": result.achievements_updated,
        "errors": result.errors,
    }
