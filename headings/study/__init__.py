"""
Study Module - learner progress and performance-weighted ordering.
"""

from .performance import (
    FocusSuggestion,
    HeadingPerformance,
    build_weighted_sequence,
    order_focus_headings,
    suggest_focus,
)
from .progress import ChallengeBest, ProgressSnapshot, ProgressTracker, TrialBest

__all__ = [
    "FocusSuggestion",
    "HeadingPerformance",
    "build_weighted_sequence",
    "order_focus_headings",
    "suggest_focus",
    "ChallengeBest",
    "ProgressSnapshot",
    "ProgressTracker",
    "TrialBest",
]
