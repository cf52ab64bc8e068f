"""
Learner Progress Tracker.

In-memory bookkeeping a host persists between sessions:
- Per-level stability records (same green/amber/red rule as the Snowball)
- Rep statistics and streaks
- Deck, Snowball and practice history for resuming schedulers
- Best trial times and mastery-challenge scores

export_state() / import_state() move the whole snapshot as a base64 JSON
string; where it is stored is up to the host.
"""

from __future__ import annotations

import base64
import random
import time
from collections.abc import Iterable, Sequence
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from headings.core.reciprocal import base_heading
from headings.core.validator import LEVEL_TIME_LIMITS_MS, FeedbackState
from headings.delivery.deck import DeckEngine
from headings.delivery.snowball import STABILITY_THRESHOLD, SnowballScheduler, SnowballState
from headings.study.performance import HeadingPerformance

# =============================================================================
# Snapshot Models
# =============================================================================


class LevelRecord(BaseModel):
    stability: int = Field(default=0, ge=0)
    consecutive_greens: int = Field(default=0, ge=0)
    last_attempt: float = 0.0


class UserStats(BaseModel):
    total_reps: int = 0
    total_time_ms: int = 0
    best_streak: int = 0
    current_streak: int = 0


class DeckProgress(BaseModel):
    unlocked_count: int = Field(default=1, ge=1)
    mastered: list[str] = Field(default_factory=list)
    ever_mastered: list[str] = Field(default_factory=list)


class TrialBest(BaseModel):
    trial_id: str
    time_ms: int
    mistakes: int = 0
    headings_per_minute: float = 0.0


class ChallengeBest(BaseModel):
    score: float
    time_ms: int
    accuracy: float = Field(ge=0.0, le=1.0)
    total_responses: int = 0


def _empty_levels() -> dict[int, dict[str, LevelRecord]]:
    return {level: {} for level in LEVEL_TIME_LIMITS_MS}


class ProgressSnapshot(BaseModel):
    """Everything the tracker persists."""

    unlocked_index: int = Field(default=0, ge=0)
    levels: dict[int, dict[str, LevelRecord]] = Field(default_factory=_empty_levels)
    stats: UserStats = Field(default_factory=UserStats)
    deck_progress: DeckProgress = Field(default_factory=DeckProgress)
    snowball_states: dict[int, dict[str, Any]] = Field(default_factory=dict)
    trial_best_times: dict[str, TrialBest] = Field(default_factory=dict)
    challenge_bests: dict[str, ChallengeBest] = Field(default_factory=dict)
    practice_data: dict[str, HeadingPerformance] = Field(default_factory=dict)


# =============================================================================
# Progress Tracker
# =============================================================================


class ProgressTracker:
    """
    Accumulates learner progress across sessions.

    Not shared between concurrent sessions; each host owns one.
    """

    def __init__(self, snapshot: ProgressSnapshot | None = None):
        self._snapshot = snapshot or ProgressSnapshot()

    @property
    def snapshot(self) -> ProgressSnapshot:
        return self._snapshot.model_copy(deep=True)

    @property
    def stats(self) -> UserStats:
        return self._snapshot.stats

    @property
    def deck_progress(self) -> DeckProgress:
        return self._snapshot.deck_progress

    @property
    def practice_data(self) -> dict[str, HeadingPerformance]:
        return self._snapshot.practice_data

    @property
    def trial_best_times(self) -> dict[str, TrialBest]:
        return self._snapshot.trial_best_times

    @property
    def challenge_bests(self) -> dict[str, ChallengeBest]:
        return self._snapshot.challenge_bests

    def level_progress(self, level: int) -> dict[str, LevelRecord]:
        return self._snapshot.levels.setdefault(level, {})

    # =========================================================================
    # Recording
    # =========================================================================

    def record_result(
        self,
        level: int,
        heading: str,
        tier: FeedbackState | str,
        time_ms: int,
    ) -> LevelRecord:
        """
        Record one rep for a level.

        green extends the streak and counts toward stability, red resets
        both, amber leaves stability alone but still breaks the streak.
        """
        tier = FeedbackState(tier)
        heading = base_heading(heading)
        record = self.level_progress(level).setdefault(heading, LevelRecord())

        if tier is FeedbackState.GREEN:
            record.consecutive_greens += 1
            if record.consecutive_greens >= STABILITY_THRESHOLD:
                record.stability = STABILITY_THRESHOLD
        elif tier is FeedbackState.RED:
            record.stability = 0
            record.consecutive_greens = 0
        record.last_attempt = time.time()

        stats = self._snapshot.stats
        stats.total_reps += 1
        stats.total_time_ms += time_ms
        stats.current_streak = stats.current_streak + 1 if tier is FeedbackState.GREEN else 0
        stats.best_streak = max(stats.best_streak, stats.current_streak)

        self.record_practice(heading, time_ms, tier is not FeedbackState.RED)
        return record

    def record_practice(self, heading: str, time_ms: int, is_correct: bool) -> HeadingPerformance:
        heading = base_heading(heading)
        perf = self._snapshot.practice_data.setdefault(heading, HeadingPerformance())
        perf.record(time_ms, is_correct)
        return perf

    # =========================================================================
    # Scheduler persistence
    # =========================================================================

    def save_deck_progress(
        self,
        unlocked_count: int,
        mastered: Iterable[str] = (),
        ever_mastered: Iterable[str] = (),
    ) -> None:
        self._snapshot.deck_progress = DeckProgress(
            unlocked_count=max(1, unlocked_count),
            mastered=sorted(base_heading(h) for h in mastered),
            ever_mastered=sorted(base_heading(h) for h in ever_mastered),
        )

    def save_deck(self, engine: DeckEngine) -> None:
        """Save deck progress from a running engine (after an unlock, typically)."""
        self.save_deck_progress(engine.unlocked_count, engine.mastered, engine.ever_mastered)

    def restore_deck(
        self,
        sequence: Sequence[str] | None = None,
        rng: random.Random | None = None,
    ) -> DeckEngine:
        progress = self._snapshot.deck_progress
        return DeckEngine.restore(
            progress.unlocked_count,
            progress.mastered,
            progress.ever_mastered,
            sequence=sequence,
            rng=rng,
        )

    def save_snowball(self, level: int, scheduler: SnowballScheduler) -> None:
        state = scheduler.get_state()
        self._snapshot.snowball_states[level] = state.to_dict()
        self._snapshot.unlocked_index = max(self._snapshot.unlocked_index, state.unlocked_index)

    def restore_snowball(self, level: int, rng: random.Random | None = None) -> SnowballScheduler:
        data = self._snapshot.snowball_states.get(level)
        if data is None:
            return SnowballScheduler(rng=rng)
        return SnowballScheduler(SnowballState.from_dict(data), rng=rng)

    # =========================================================================
    # Best scores
    # =========================================================================

    def save_trial_result(self, key: str, result: TrialBest) -> bool:
        """Keep the faster trial; returns True if this one is the new best."""
        existing = self._snapshot.trial_best_times.get(key)
        if existing is not None and existing.time_ms <= result.time_ms:
            return False
        self._snapshot.trial_best_times[key] = result
        return True

    def save_challenge_best(self, mode: str, result: ChallengeBest) -> bool:
        """Keep the higher score (accuracy breaks ties); True if new best."""
        existing = self._snapshot.challenge_bests.get(mode)
        if existing is not None:
            if result.score < existing.score:
                return False
            if result.score == existing.score and result.accuracy <= existing.accuracy:
                return False
        self._snapshot.challenge_bests[mode] = result
        logger.info(f"New {mode} challenge best: {result.score:.1f}")
        return True

    # =========================================================================
    # Export / Import
    # =========================================================================

    def reset(self) -> None:
        self._snapshot = ProgressSnapshot()

    def export_state(self) -> str:
        payload = self._snapshot.model_dump_json()
        return base64.b64encode(payload.encode("utf-8")).decode("ascii")

    def import_state(self, data: str) -> bool:
        """
        Replace progress with an exported snapshot.

        Returns:
            False (leaving progress untouched) if the data is malformed
        """
        try:
            payload = base64.b64decode(data.encode("ascii"), validate=True)
            snapshot = ProgressSnapshot.model_validate_json(payload)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Rejected progress import: {e}")
            return False
        self._snapshot = snapshot
        return True
