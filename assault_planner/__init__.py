"""
Deadly Assault Planner - Team Recommendation Engine

Enumerates legal teams from an owned roster, scores them against boss
encounters with a rule-based heuristic, and assigns non-overlapping teams
across three bosses.
"""

__version__ = "0.1.0"
