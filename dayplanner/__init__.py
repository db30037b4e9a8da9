"""Single-day itinerary planner."""

__version__ = "0.1.0"
