"""
Performance-weighted heading ordering.

Turns practice history and mastery-challenge results into orderings for
the Focus and Optimize modes:
- order_focus_headings: weakest-first ordering of a chosen subset
- build_weighted_sequence: weakest-first ordering of all 36 headings
- suggest_focus: up to six headings to drill after a mastery challenge

Weakness score = average response time + 500 ms per mistake (higher is weaker).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from headings.core.compass import MASTER_SEQUENCE
from headings.core.reciprocal import base_heading
from headings.core.validator import FeedbackState

MISTAKE_PENALTY_MS = 500
UNKNOWN_FOCUS_SCORE = 9999
UNKNOWN_OPTIMIZE_SCORE = 5000
MASTERY_STATUS_SCORES = {
    FeedbackState.RED: 8000,
    FeedbackState.AMBER: 5000,
    FeedbackState.GREEN: 500,
}
FOCUS_SIZE = 6


class HeadingPerformance(BaseModel):
    """Running practice history for one heading."""

    avg_time_ms: float = Field(default=0.0, ge=0)
    mistakes: int = Field(default=0, ge=0)
    attempts: int = Field(default=0, ge=0)

    @property
    def weakness(self) -> float:
        return self.avg_time_ms + self.mistakes * MISTAKE_PENALTY_MS

    def record(self, time_ms: int, is_correct: bool) -> None:
        """Fold one response into the running average."""
        self.attempts += 1
        self.avg_time_ms += (time_ms - self.avg_time_ms) / self.attempts
        if not is_correct:
            self.mistakes += 1


def _status(result) -> FeedbackState:
    # HeadingResult-like objects carry .status; plain values are the status
    return FeedbackState(getattr(result, "status", result))


def order_focus_headings(
    headings: Iterable[str],
    practice: Mapping[str, HeadingPerformance],
) -> list[str]:
    """
    Order a Focus subset weakest-first.

    Without any practice data the subset keeps MASTER_SEQUENCE order.
    Headings with no history sort as very weak.
    """
    chosen = [base_heading(h) for h in headings]
    if not practice:
        wanted = set(chosen)
        return [h for h in MASTER_SEQUENCE if h in wanted]

    def score(h: str) -> float:
        perf = practice.get(h)
        return perf.weakness if perf else UNKNOWN_FOCUS_SCORE

    return sorted(chosen, key=score, reverse=True)


def build_weighted_sequence(
    practice: Mapping[str, HeadingPerformance],
    mastery_results: Mapping[str, object] | None = None,
) -> list[str]:
    """
    Order all 36 headings weakest-first for Optimize mode.

    Practice history wins; otherwise the mastery-challenge status is used
    (red 8000, amber 5000, green 500); otherwise 5000.
    """
    mastery_results = mastery_results or {}

    def score(h: str) -> float:
        perf = practice.get(h)
        if perf is not None:
            return perf.weakness
        result = mastery_results.get(h)
        if result is not None:
            return MASTERY_STATUS_SCORES[_status(result)]
        return UNKNOWN_OPTIMIZE_SCORE

    return sorted(MASTER_SEQUENCE, key=score, reverse=True)


@dataclass(frozen=True)
class FocusSuggestion:
    headings: list[str] = field(default_factory=list)
    too_many_red: bool = False


def suggest_focus(mastery_results: Mapping[str, object], limit: int = FOCUS_SIZE) -> FocusSuggestion:
    """
    Suggest headings to drill next, red first, then amber, then green.

    More than `limit` reds (or exactly `limit` reds plus any amber) means
    the learner should go back to Learn mode instead.
    """
    buckets: dict[FeedbackState, list[str]] = {state: [] for state in FeedbackState}
    for h in MASTER_SEQUENCE:
        result = mastery_results.get(h)
        if result is not None:
            buckets[_status(result)].append(h)

    red = buckets[FeedbackState.RED]
    amber = buckets[FeedbackState.AMBER]
    green = buckets[FeedbackState.GREEN]

    if len(red) > limit or (len(red) == limit and amber):
        return FocusSuggestion(headings=[], too_many_red=True)

    return FocusSuggestion(headings=(red + amber + green)[:limit])
