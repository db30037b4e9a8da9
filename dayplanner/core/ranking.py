"""Score areas for an activity, preferences, crowding and proximity."""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Iterable, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from dayplanner.core.knowledge_base import AreaKnowledgeBase
from dayplanner.core.schemas import Area
from dayplanner.core.travel import AreaRef, TravelEstimator

logger = logging.getLogger(__name__)

TimeOfDay = Literal["morning", "afternoon", "evening", "night"]

ACTIVITY_MATCH_POINTS = 30
PREFERENCE_POINTS = 20
QUIET_BONUS = 25
CROWDED_PENALTY = -20
QUIET_SIGNALS = ("quiet", "non-crowded", "not crowded", "uncrowded", "peaceful", "calm")


class AreaSuitability(BaseModel):
    area: Area
    score: int
    reasons: Tuple[str, ...] = ()
    crowd_level: int
    travel_time_minutes: int

    model_config = ConfigDict(extra="forbid", frozen=True)


def time_of_day_for(moment: Union[time, datetime]) -> TimeOfDay:
    hour = moment.hour
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "night"


def is_weekend(day: Optional[date]) -> bool:
    return day is not None and day.weekday() >= 5


def crowd_level_for(area: Area, time_of_day: TimeOfDay, *, weekend: bool = False) -> int:
    """Crowd level for the time bucket; weekends always use the weekend bucket."""

    levels = area.crowd_levels
    if weekend:
        return levels.weekend
    if time_of_day == "morning":
        return levels.morning
    if time_of_day == "afternoon":
        return levels.afternoon
    return levels.evening


def wants_quiet(preferences: Iterable[str]) -> bool:
    return any(signal in pref.lower() for pref in preferences for signal in QUIET_SIGNALS)


def proximity_points(travel_minutes: int) -> Tuple[int, Optional[str]]:
    if travel_minutes <= 10:
        return 20, "Very close"
    if travel_minutes <= 20:
        return 10, "Nearby"
    if travel_minutes > 40:
        return -10, "Far away"
    return 0, None


class AreaSuitabilityRanker:
    """Additive area scoring; each factor is reported in ``reasons``."""

    def __init__(self, knowledge_base: AreaKnowledgeBase, travel_estimator: TravelEstimator) -> None:
        self.knowledge_base = knowledge_base
        self.travel_estimator = travel_estimator

    def score_area(
        self,
        area: Area,
        activity_type: str,
        preferences: Sequence[str],
        current_area: AreaRef,
        time_of_day: TimeOfDay,
        *,
        weekend: bool = False,
    ) -> AreaSuitability:
        score = 0
        reasons: List[str] = []
        activity = activity_type.strip().lower()

        if activity and any(
            tag.lower() in activity or activity in tag.lower() for tag in area.popular_for
        ):
            score += ACTIVITY_MATCH_POINTS
            reasons.append(f"Known for {activity_type}")

        for pref in preferences:
            needle = pref.strip().lower()
            if needle and any(needle in tag.lower() for tag in area.characteristics):
                score += PREFERENCE_POINTS
                reasons.append(f"Matches preference: {pref}")

        crowd_level = crowd_level_for(area, time_of_day, weekend=weekend)
        if wants_quiet(preferences):
            if crowd_level <= 2:
                score += QUIET_BONUS
                reasons.append("Low crowd levels")
            elif crowd_level >= 4:
                score += CROWDED_PENALTY
                reasons.append("High crowd levels")

        travel_minutes = self.travel_estimator.estimate(current_area, area).transit_minutes
        points, reason = proximity_points(travel_minutes)
        score += points
        if reason:
            reasons.append(reason)

        return AreaSuitability(
            area=area,
            score=score,
            reasons=tuple(reasons),
            crowd_level=crowd_level,
            travel_time_minutes=travel_minutes,
        )

    def rank(
        self,
        activity_type: str,
        preferences: Sequence[str],
        current_area: AreaRef,
        time_of_day: TimeOfDay,
        *,
        weekend: bool = False,
    ) -> List[AreaSuitability]:
        """Areas with a positive score, best first; ties keep knowledge-base order."""

        scored = [
            self.score_area(area, activity_type, preferences, current_area, time_of_day, weekend=weekend)
            for area in self.knowledge_base
        ]
        ranked = sorted((item for item in scored if item.score > 0), key=lambda item: -item.score)
        logger.debug(
            f"Ranked {len(ranked)} areas for '{activity_type}': "
            f"{[(item.area.name, item.score) for item in ranked[:5]]}"
        )
        return ranked
