"""HTTP surface for the planner."""
