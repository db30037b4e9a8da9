"""Shared type aliases used across the planner modules."""
from __future__ import annotations

from typing import Annotated

from pydantic import Field, StringConstraints

Lat = Annotated[float, Field(ge=-90, le=90)]
Lon = Annotated[float, Field(ge=-180, le=180)]
Rating = Annotated[float, Field(ge=0, le=5)]
CrowdLevel = Annotated[int, Field(ge=1, le=5)]
Minutes = Annotated[int, Field(ge=0)]
PriceLevel = Annotated[int, Field(ge=0, le=4)]
TimeHHMM = Annotated[
    str,
    StringConstraints(
        pattern=r"^(?:[01]\d|2[0-3]):[0-5]\d$",
        strip_whitespace=True,
    ),
]
CitySlug = Annotated[
    str,
    StringConstraints(
        pattern=r"^[a-z][a-z0-9_-]*$",
        strip_whitespace=True,
        to_lower=True,
    ),
]
