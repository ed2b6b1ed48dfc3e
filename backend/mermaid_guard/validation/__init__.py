"""
Validation module for graph budgets, integrity and trust tiers.
"""

from .graph_validator import (
    GraphValidator,
    get_validation_summary,
    raise_on_errors,
    validate,
)
from .profile import ProfileContext, SafetyProfile, default_profile, summarize

__all__ = [
    "GraphValidator",
    "ProfileContext",
    "SafetyProfile",
    "default_profile",
    "get_validation_summary",
    "raise_on_errors",
    "summarize",
    "validate",
]
