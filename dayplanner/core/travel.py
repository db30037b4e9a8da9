"""Travel time estimation between areas.

Estimates come from, in priority order: the tuned pairwise table (both
directions), a short neighbor estimate, a longer cross-area estimate and,
when either area is unknown, a conservative city-wide default. Neighbors are
walked and tuned pairs may name their own mode; otherwise the fastest mode is
recommended. The estimator never raises.
"""
from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, Optional, Tuple, Union

from dayplanner.core.knowledge_base import AreaKnowledgeBase
from dayplanner.core.schemas import (
    MODE_PRIORITY,
    Area,
    LatLng,
    TransitDetails,
    TransportMode,
    TravelEstimate,
)

logger = logging.getLogger(__name__)

AreaRef = Union[Area, str, None]

# (walking, transit, driving) minutes
SAME_AREA_MINUTES: Tuple[int, int, int] = (5, 5, 5)
NEIGHBOR_MINUTES: Tuple[int, int, int] = (15, 8, 10)
# Adjacent areas are walked
NEIGHBOR_MODE = TransportMode.WALK
CROSS_AREA_MINUTES: Tuple[int, int, int] = (45, 25, 20)
UNKNOWN_AREA_MINUTES: Tuple[int, int, int] = (30, 20, 15)

# Roughly three times walking speed.
CYCLING_FACTOR = 1 / 3
EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: LatLng, destination: LatLng) -> float:
    """Great-circle distance in kilometres."""

    lat1, lon1 = math.radians(origin.lat), math.radians(origin.lng)
    lat2, lon2 = math.radians(destination.lat), math.radians(destination.lng)
    dlat, dlon = lat2 - lat1, lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def recommend_mode(
    minutes: Dict[TransportMode, Optional[int]],
    allowed: Optional[Iterable[TransportMode]] = None,
) -> TransportMode:
    """Pick the fastest mode; ties resolve walk < transit < driving < cycling."""

    allowed_modes = set(allowed) if allowed is not None else set(MODE_PRIORITY)
    options = [
        (value, MODE_PRIORITY.index(mode), mode)
        for mode, value in minutes.items()
        if value is not None and mode in allowed_modes
    ]
    if not options:
        return TransportMode.TRANSIT
    return min(options)[2]


def build_estimate(
    walking: int,
    transit: int,
    driving: int,
    *,
    cycling: Optional[int] = None,
    transit_details: Optional[TransitDetails] = None,
    allowed: Optional[Iterable[TransportMode]] = None,
    preferred_mode: Optional[TransportMode] = None,
    default_mode: Optional[TransportMode] = None,
) -> TravelEstimate:
    """Assemble an estimate.

    The recommended mode is ``preferred_mode`` when the city allows it, then the
    tier's ``default_mode``, then the fastest allowed mode.
    """

    allowed_modes = tuple(allowed) if allowed is not None else MODE_PRIORITY
    if preferred_mode is TransportMode.CYCLING and cycling is None:
        cycling = max(1, round(walking * CYCLING_FACTOR))

    minutes = {
        TransportMode.WALK: walking,
        TransportMode.TRANSIT: transit,
        TransportMode.DRIVING: driving,
        TransportMode.CYCLING: cycling,
    }
    if preferred_mode is not None and preferred_mode in allowed_modes and minutes[preferred_mode] is not None:
        mode = preferred_mode
    elif default_mode is not None and default_mode in allowed_modes:
        mode = default_mode
    else:
        mode = recommend_mode(minutes, allowed_modes)

    return TravelEstimate(
        walking_minutes=walking,
        transit_minutes=transit,
        driving_minutes=driving,
        cycling_minutes=cycling,
        recommended_mode=mode,
        transit_details=transit_details,
    )


class TravelEstimator:
    """Tiered travel estimator bound to one city's knowledge base."""

    def __init__(
        self,
        knowledge_base: AreaKnowledgeBase,
        *,
        transport_modes: Optional[Iterable[TransportMode]] = None,
    ) -> None:
        self.knowledge_base = knowledge_base
        self.transport_modes = tuple(transport_modes) if transport_modes else MODE_PRIORITY

    @staticmethod
    def _name(area: AreaRef) -> Optional[str]:
        if isinstance(area, Area):
            return area.name
        if isinstance(area, str) and area.strip():
            return area.strip()
        return None

    def estimate(
        self,
        from_area: AreaRef,
        to_area: AreaRef,
        preferred_mode: Optional[TransportMode] = None,
    ) -> TravelEstimate:
        """Return the estimate for travelling from ``from_area`` to ``to_area``."""

        origin, destination = self._name(from_area), self._name(to_area)
        details = None
        default_mode = None

        if origin is None or destination is None:
            minutes = UNKNOWN_AREA_MINUTES
        elif origin.lower() == destination.lower():
            minutes = SAME_AREA_MINUTES
        else:
            tuned = self.knowledge_base.tuned(origin, destination)
            if tuned is not None:
                minutes = (tuned.walking_minutes, tuned.transit_minutes, tuned.driving_minutes)
                details = tuned.transit_details
                default_mode = tuned.recommended_mode
            elif origin not in self.knowledge_base or destination not in self.knowledge_base:
                minutes = UNKNOWN_AREA_MINUTES
            elif self.knowledge_base.are_neighbors(origin, destination):
                minutes = NEIGHBOR_MINUTES
                default_mode = NEIGHBOR_MODE
            else:
                minutes = CROSS_AREA_MINUTES

        return build_estimate(
            *minutes,
            transit_details=details,
            allowed=self.transport_modes,
            preferred_mode=preferred_mode,
            default_mode=default_mode,
        )

    def travel_minutes(
        self,
        from_area: AreaRef,
        to_area: AreaRef,
        preferred_mode: Optional[TransportMode] = None,
    ) -> int:
        """Minutes of the recommended mode."""

        return self.estimate(from_area, to_area, preferred_mode).travel_minutes
