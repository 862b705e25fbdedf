"""
City-level bookkeeping: districts and the news feed.

Districts heat up when the squad fails there and cool down when it
wins. News stories are a capped, most-recent-first feed.
"""

from __future__ import annotations

from ..state.schema import (
    District,
    DistrictStatus,
    GameState,
    Mission,
    NewsStory,
    Sentiment,
    clamp,
)
from .rules import DEFAULT_DISTRICTS, NEWS_LIMIT


def district_status(crime_level: int) -> DistrictStatus:
    if crime_level < 40:
        return DistrictStatus.STABLE
    if crime_level < 70:
        return DistrictStatus.RISING
    return DistrictStatus.CRITICAL


def seed_districts() -> list[District]:
    return [
        District(name=name, crime_level=level, status=district_status(level))
        for name, level in DEFAULT_DISTRICTS
    ]


def apply_district_outcome(state: GameState, mission: Mission, success: bool) -> None:
    """Shift the mission's district crime level. Works on a working copy."""
    if not mission.district_id:
        return
    district = state.get_district(mission.district_id)
    if district is None:
        return
    swing = 5 + mission.risk_level
    district.crime_level = clamp(
        district.crime_level + (-swing if success else swing), 0, 100
    )
    district.status = district_status(district.crime_level)


def publish_news(
    state: GameState,
    headline: str,
    summary: str,
    sentiment: Sentiment,
) -> None:
    state.recent_news.insert(0, NewsStory(
        headline=headline,
        summary=summary,
        sentiment=sentiment,
        day=state.day,
    ))
    del state.recent_news[NEWS_LIMIT:]
