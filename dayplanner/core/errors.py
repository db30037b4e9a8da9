"""Error taxonomy shared by the planning pipeline.

Per-entry failures (``ResolutionMiss`` and its subclasses, ``PlacementConflict``)
are contained by the pipeline and reported as dropped entries. ``ParseError``
turns into an empty request. ``UnknownCityError`` is the only failure that
aborts a request before planning starts.
"""
from __future__ import annotations


class PlannerError(Exception):
    """Base class for every error raised by the planner."""


class ParseError(PlannerError):
    """The request parser is unreachable or produced an unusable structure."""


class ResolutionMiss(PlannerError):
    """A location or venue could not be resolved for an entry."""


class NoResultsError(ResolutionMiss):
    """The venue search provider returned nothing usable."""


class ProviderTimeout(ResolutionMiss):
    """An external call exceeded the request deadline."""


class ProviderError(ResolutionMiss):
    """An external provider failed for a reason other than a timeout."""


class PlacementConflict(PlannerError):
    """An entry cannot be scheduled without breaking ordering or travel buffers."""


class UnknownCityError(PlannerError, LookupError):
    """No configuration exists for the requested city slug."""

    def __init__(self, slug: str) -> None:
        super().__init__(f"Unknown city '{slug}'")
        self.slug = slug


__all__ = [
    "PlannerError",
    "ParseError",
    "ResolutionMiss",
    "NoResultsError",
    "ProviderTimeout",
    "ProviderError",
    "PlacementConflict",
    "UnknownCityError",
]
