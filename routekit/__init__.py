"""
Routekit — smart routing, hybrid search and fallback decision core.

Scores candidates on weighted criteria, fuses ranked lists, and executes
ranked choices through circuit-breaker protected fallback chains. The
verticals package applies it to payments, notifications and the skill
catalog.
"""

__version__ = "0.1.0"
