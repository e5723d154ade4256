from typing import Optional

from sales_league import config


def _in_league(count: int, league: dict) -> bool:
    return count >= league["min"] and (league["max"] is None or count <= league["max"])


def _league_index(companies_count: int) -> int:
    for idx, league in enumerate(config.LEAGUES):
        if _in_league(companies_count, league):
            return idx
    return -1


def get_league(companies_count: int) -> dict:
    """League for a number of companies; the lowest league when nothing matches."""
    idx = _league_index(companies_count)
    return config.LEAGUES[idx] if idx >= 0 else config.LEAGUES[0]


def get_next_league(companies_count: int) -> Optional[dict]:
    """Next league up, or None when already in the top league."""
    idx = _league_index(companies_count)
    if idx < 0 or idx >= len(config.LEAGUES) - 1:
        return None
    return config.LEAGUES[idx + 1]


def get_progress_to_next_league(companies_count: int) -> Optional[float]:
    """Progress 0..1 towards the next league (1 = ready to move up). None for the top league."""
    current = get_league(companies_count)
    next_league = get_next_league(companies_count)
    if not next_league:
        return None
    span = next_league["min"] - current["min"]
    if span <= 0:
        return 1.0
    progress = (companies_count - current["min"]) / span
    return min(1.0, max(0.0, progress))


def get_hard_skills_rank(total_margin: float, conversion_percent: float, paid_count: int) -> dict:
    """
    Highest rank whose margin, conversion (%) and paid-count minimums are all met.
    The last rank has zero minimums and is the floor.
    """
    for rank in config.HARD_SKILLS_RANKS:
        if (
            total_margin >= rank["margin_min"]
            and conversion_percent >= rank["conversion_min"]
            and paid_count >= rank["paid_count_min"]
        ):
            return rank
    return config.HARD_SKILLS_RANKS[-1]
