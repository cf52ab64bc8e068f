"""
Single-pass training engines.

- TrialEngine: timed elimination run over a heading subset
- MasteryChallengeEngine: one scored pass over all 36 headings
- StageEngine: staged learning over cumulative 6-heading sets

All three keep a plain list as their queue; the head is the next heading.
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from headings.config import get_settings
from headings.core.compass import MASTER_SEQUENCE
from headings.core.reciprocal import base_heading
from headings.core.validator import FeedbackState

FAST_RESPONSE_MS = 1000

MASTERY_CHALLENGE_LIMIT_MS = 1200
MASTERY_CHALLENGE_VERBAL_LIMIT_MS = 1700
MASTERY_CHALLENGE_KEYPAD_LIMIT_MS = 3000


class TrainingGrade(str, Enum):
    """Coarse grade used by the trial and stage engines."""

    FAST = "fast"
    SLOW = "slow"
    WRONG = "wrong"


def grade_response(is_correct: bool, time_ms: int, time_limit_ms: int) -> TrainingGrade:
    """
    Grade a response by correctness and time.

    Timeouts (time_ms >= limit) count as wrong.
    """
    if not is_correct or time_ms >= time_limit_ms:
        return TrainingGrade.WRONG
    if time_ms < FAST_RESPONSE_MS:
        return TrainingGrade.FAST
    return TrainingGrade.SLOW


def _shuffled(headings: Iterable[str], rng: random.Random) -> list[str]:
    items = [base_heading(h) for h in headings]
    rng.shuffle(items)
    return items


# =============================================================================
# Trial Engine
# =============================================================================


class TrialEngine:
    """
    Timed elimination run.

    A fast answer removes the heading for good; slow or wrong answers put
    it back at a uniformly random position among the remaining headings.
    """

    def __init__(self, headings: Iterable[str], rng: random.Random | None = None):
        self._rng = rng or random.Random()
        self._queue = _shuffled(headings, self._rng)
        self._total = len(self._queue)
        self._mistakes = 0

    def draw_next(self) -> str:
        return self._queue[0]

    def record_result(self, heading: str, grade: TrainingGrade | str) -> int | None:
        """
        Apply a graded result.

        Returns:
            Reinsertion position, or None if the heading was removed
        """
        grade = TrainingGrade(grade)
        heading = base_heading(heading)
        if heading in self._queue:
            self._queue.remove(heading)

        if grade is TrainingGrade.FAST:
            if not self._queue:
                logger.info(f"Trial complete: {self._total} headings, {self._mistakes} mistakes")
            return None

        self._mistakes += 1
        position = self._rng.randint(0, len(self._queue))
        self._queue.insert(position, heading)
        return position

    def is_complete(self) -> bool:
        return not self._queue

    @property
    def remaining(self) -> int:
        return len(self._queue)

    @property
    def mistakes(self) -> int:
        return self._mistakes

    @property
    def total(self) -> int:
        return self._total


# =============================================================================
# Mastery Challenge Engine
# =============================================================================


@dataclass(frozen=True)
class ChallengeOutcome:
    """What a single challenge result did."""

    feedback: FeedbackState
    removed: bool
    position: int | None


@dataclass
class HeadingResult:
    """
    First-attempt status of a heading in a challenge.

    Later attempts can only worsen the status (green -> amber -> red).
    """

    status: FeedbackState
    time_ms: int
    mistakes: int = 0

    def to_dict(self) -> dict:
        return {"status": self.status.value, "time_ms": self.time_ms, "mistakes": self.mistakes}


_SEVERITY = {FeedbackState.GREEN: 0, FeedbackState.AMBER: 1, FeedbackState.RED: 2}


def hpm_score(total_responses: int, elapsed_ms: int, accuracy: float) -> float:
    """Headings per minute weighted by accuracy: (T / (E / 60000)) * A."""
    if elapsed_ms <= 0:
        return 0.0
    return (total_responses / (elapsed_ms / 60000)) * accuracy


class MasteryChallengeEngine:
    """
    One pass over all 36 headings.

    A heading leaves the queue only on a correct answer within the time
    limit. Anything else sends it back to a random position other than
    the front, so it is never repeated immediately.
    """

    def __init__(
        self,
        time_limit_ms: int = MASTERY_CHALLENGE_LIMIT_MS,
        rng: random.Random | None = None,
    ):
        """
        Initialize the challenge.

        Args:
            time_limit_ms: Green window (1200 tap, 1700 voice, 3000 keypad)
            rng: Random source (fresh instance if None)
        """
        self.time_limit_ms = time_limit_ms
        self.rng = rng or random.Random()
        self._queue = _shuffled(MASTER_SEQUENCE, self.rng)
        self._results: dict[str, HeadingResult] = {}
        self._total_responses = 0
        self._green_responses = 0
        self._response_time_ms = 0
        self._total_mistakes = 0

    @classmethod
    def for_mode(cls, mode: str = "tap", rng: random.Random | None = None) -> MasteryChallengeEngine:
        """Build a challenge with the configured green window for an input mode."""
        settings = get_settings()
        limits = {
            "tap": settings.mastery_challenge_limit_ms,
            "verbal": settings.mastery_challenge_verbal_limit_ms,
            "keypad": settings.mastery_challenge_keypad_limit_ms,
        }
        if mode not in limits:
            raise ValueError(f"Unknown challenge mode: {mode}")
        return cls(limits[mode], rng=rng)

    def draw_next(self) -> str:
        return self._queue[0]

    def record_result(
        self,
        heading: str,
        elapsed_ms: int,
        is_correct: bool,
        timed_out: bool = False,
    ) -> ChallengeOutcome:
        """
        Apply one response.

        Args:
            heading: Heading answered
            elapsed_ms: Response latency
            is_correct: Validator verdict (False is a miss at any latency)
            timed_out: No answer given; tracked as amber rather than red
        """
        heading = base_heading(heading)
        if heading in self._queue:
            self._queue.remove(heading)

        is_green = is_correct and elapsed_ms <= self.time_limit_ms
        self._track(heading, elapsed_ms, is_correct, is_green, timed_out)

        if is_green:
            self._green_responses += 1
            if not self._queue:
                logger.info(
                    f"Mastery challenge complete: {self._total_responses} responses, "
                    f"{self.first_time_correct_count}/36 first-try"
                )
            return ChallengeOutcome(feedback=FeedbackState.GREEN, removed=True, position=None)

        position = self.rng.randint(1, len(self._queue)) if self._queue else 0
        self._queue.insert(position, heading)
        return ChallengeOutcome(feedback=FeedbackState.RED, removed=False, position=position)

    def _track(
        self,
        heading: str,
        elapsed_ms: int,
        is_correct: bool,
        is_green: bool,
        timed_out: bool,
    ) -> None:
        self._total_responses += 1
        self._response_time_ms += elapsed_ms
        if not is_correct:
            self._total_mistakes += 1

        is_wrong = not is_correct and not timed_out
        if is_wrong:
            status = FeedbackState.RED
        elif is_green:
            status = FeedbackState.GREEN
        else:
            status = FeedbackState.AMBER

        existing = self._results.get(heading)
        if existing is None:
            self._results[heading] = HeadingResult(
                status=status, time_ms=elapsed_ms, mistakes=0 if is_correct else 1
            )
            return
        if _SEVERITY[status] > _SEVERITY[existing.status]:
            existing.status = status
        if not is_correct:
            existing.mistakes += 1

    def is_complete(self) -> bool:
        return not self._queue

    @property
    def remaining(self) -> int:
        return len(self._queue)

    @property
    def total_responses(self) -> int:
        return self._total_responses

    @property
    def green_responses(self) -> int:
        return self._green_responses

    @property
    def total_mistakes(self) -> int:
        return self._total_mistakes

    @property
    def response_time_ms(self) -> int:
        return self._response_time_ms

    @property
    def first_time_correct_count(self) -> int:
        return sum(1 for r in self._results.values() if r.status is FeedbackState.GREEN)

    def accuracy(self) -> float:
        """Green responses over all responses."""
        if not self._total_responses:
            return 0.0
        return self._green_responses / self._total_responses

    def first_attempt_accuracy(self) -> float:
        """Share of attempted headings whose status is still green."""
        if not self._results:
            return 0.0
        return self.first_time_correct_count / len(self._results)

    def score(self, elapsed_ms: int | None = None) -> float:
        """
        Speed/accuracy score for the run.

        Args:
            elapsed_ms: Total run time (summed response times if None)
        """
        if elapsed_ms is None:
            elapsed_ms = self._response_time_ms
        return hpm_score(self._total_responses, elapsed_ms, self.accuracy())

    def results(self) -> dict[str, HeadingResult]:
        """First-attempt results; on completion every heading is present."""
        results = dict(self._results)
        if self.is_complete():
            for h in MASTER_SEQUENCE:
                results.setdefault(h, HeadingResult(status=FeedbackState.GREEN, time_ms=0))
        return results


# =============================================================================
# Stage Engine
# =============================================================================

# 6 sets of 6 headings; each set holds three reciprocal pairs.
SETS: tuple[tuple[str, ...], ...] = (
    ("36", "18", "09", "27", "05", "23"),
    ("14", "32", "01", "19", "10", "28"),
    ("04", "22", "13", "31", "02", "20"),
    ("08", "26", "06", "24", "15", "33"),
    ("35", "17", "07", "25", "03", "21"),
    ("12", "30", "34", "16", "11", "29"),
)

# New set, then consolidate with everything before it.
STAGES: tuple[tuple[int, ...], ...] = (
    (0,),
    (1,),
    (0, 1),
    (2,),
    (0, 1, 2),
    (3,),
    (0, 1, 2, 3),
    (4,),
    (0, 1, 2, 3, 4),
    (5,),
    (0, 1, 2, 3, 4, 5),
)


def stage_headings(stage: int) -> list[str]:
    """All headings practiced in a stage (1-11)."""
    if stage < 1 or stage > len(STAGES):
        raise ValueError(f"Invalid stage: {stage}")
    return [h for idx in STAGES[stage - 1] for h in SETS[idx]]


def stage_sets_label(stage: int) -> str:
    """e.g. "Sets 1, 2, 3" """
    if stage < 1 or stage > len(STAGES):
        raise ValueError(f"Invalid stage: {stage}")
    return "Sets " + ", ".join(str(i + 1) for i in STAGES[stage - 1])


@dataclass(frozen=True)
class StageReport:
    heading: str
    reps: int
    mistakes: int
    slows: int
    first_try: bool


class StageEngine:
    """
    Staged learning over a fixed block of headings.

    fast -> mastered, back half of the queue
    slow -> stumbled, front half
    wrong -> unmastered, stumbled, immediate front
    """

    def __init__(self, stage: int, rng: random.Random | None = None):
        self.stage = stage
        self._headings = stage_headings(stage)
        self._rng = rng or random.Random()
        self._queue = list(self._headings)
        self._rng.shuffle(self._queue)

        self._mastered: set[str] = set()
        self._stumbled: set[str] = set()
        self._seen = {h: 0 for h in self._headings}
        self._mistakes = {h: 0 for h in self._headings}
        self._slows = {h: 0 for h in self._headings}
        self._total_mistakes = 0

    @property
    def total_headings(self) -> int:
        return len(self._headings)

    def draw_next(self) -> str:
        heading = self._queue[0]
        self._seen[heading] += 1
        return heading

    def record_result(self, heading: str, grade: TrainingGrade | str) -> int:
        """Apply a graded result; returns the reinsertion position."""
        grade = TrainingGrade(grade)
        heading = base_heading(heading)
        if heading in self._queue:
            self._queue.remove(heading)
        n = len(self._queue)

        if grade is TrainingGrade.FAST:
            self._mastered.add(heading)
            position = self._rng.randint(math.ceil(n / 2), n)
        elif grade is TrainingGrade.SLOW:
            self._stumbled.add(heading)
            self._slows[heading] += 1
            position = self._rng.randint(0, math.ceil(n / 2))
        else:
            self._mastered.discard(heading)
            self._stumbled.add(heading)
            self._mistakes[heading] += 1
            self._total_mistakes += 1
            position = 0

        self._queue.insert(position, heading)
        return position

    def is_complete(self) -> bool:
        return len(self._mastered) >= len(self._headings)

    @property
    def mastered_count(self) -> int:
        return len(self._mastered)

    @property
    def mastered(self) -> list[str]:
        return [h for h in self._headings if h in self._mastered]

    @property
    def total_mistakes(self) -> int:
        return self._total_mistakes

    @property
    def first_try_mastered_count(self) -> int:
        return len(self._headings) - len(self._stumbled)

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    def heading_report(self) -> list[StageReport]:
        return [
            StageReport(
                heading=h,
                reps=self._seen[h],
                mistakes=self._mistakes[h],
                slows=self._slows[h],
                first_try=h not in self._stumbled,
            )
            for h in self._headings
        ]
