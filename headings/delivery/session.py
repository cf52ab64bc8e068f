"""
Training Session Coordinator.

Drives one scheduler (Snowball or Deck) and the validator for a single
training level:

    get_next_heading() -> start_timer() -> submit_response(response)

Level 5 stimuli get a random ones digit appended; the scheduler only ever
sees the 2-digit base heading.

Sandwich retry: a red result forces the sequence
    failed heading -> a different heading -> failed heading
before normal scheduling resumes. Another red restarts it.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from loguru import logger

from headings.config import get_settings
from headings.core.validator import (
    PRECISION_LEVEL,
    FeedbackState,
    Response,
    ValidationResult,
    time_limit_for_level,
    validate_response,
)

if TYPE_CHECKING:
    from headings.study.progress import ProgressTracker


class HeadingScheduler(Protocol):
    """
    What TrainingSession needs from a scheduler.

    A scheduler may also offer draw_excluding(heading) for picking the
    sandwich distractor; otherwise draw_next() is retried.
    """

    def draw_next(self) -> str: ...

    def record_outcome(self, heading: str, result: ValidationResult, elapsed_ms: int) -> Any: ...

    def is_complete(self) -> bool: ...


class SandwichPhase(str, Enum):
    """Where the session is in the forced retry sequence."""

    NONE = "none"
    RETRY = "retry"  # next: the failed heading
    DIFFERENT = "different"  # next: any other heading
    FINAL_RETRY = "final_retry"  # next: the failed heading again, then done


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class TrainingSession:
    """
    One training session at one level.

    Not thread-safe; each session owns its scheduler.
    """

    def __init__(
        self,
        scheduler: HeadingScheduler,
        level: int,
        rng: random.Random | None = None,
        clock: Callable[[], int] | None = None,
        time_offset_ms: int | None = None,
        max_redraws: int | None = None,
        progress: ProgressTracker | None = None,
    ):
        """
        Initialize the session.

        Args:
            scheduler: SnowballScheduler or DeckEngine
            level: Training level 1-5
            rng: Random source for precision ones digits
            clock: Millisecond clock (monotonic if None)
            time_offset_ms: Input allowance for the validator
                (settings' keypad offset on level 2, else 0)
            max_redraws: Draw attempts for the sandwich distractor
            progress: Optional tracker that records every result
        """
        time_limit_for_level(level)
        settings = get_settings()

        self.scheduler = scheduler
        self.level = level
        self.progress = progress
        self._rng = rng or random.Random()
        self._clock = clock or _monotonic_ms
        if time_offset_ms is None:
            time_offset_ms = settings.level2_keypad_offset_ms if level == 2 else 0
        self.time_offset_ms = time_offset_ms
        self.max_redraws = max_redraws or settings.sandwich_max_redraws

        self.current_heading: str | None = None
        self.current_base_heading: str | None = None
        self.last_outcome: Any = None
        self._started_at: int | None = None

        self._phase = SandwichPhase.NONE
        self._forced_heading: str | None = None

    # =========================================================================
    # Presentation
    # =========================================================================

    def get_next_heading(self) -> str:
        """Choose the next stimulus, honoring any pending sandwich retry."""
        if self._phase is SandwichPhase.RETRY:
            base = self._forced_heading
            self._phase = SandwichPhase.DIFFERENT
        elif self._phase is SandwichPhase.DIFFERENT:
            base = self._draw_distractor()
            self._phase = SandwichPhase.FINAL_RETRY
        elif self._phase is SandwichPhase.FINAL_RETRY:
            base = self._forced_heading
            self._phase = SandwichPhase.NONE
            self._forced_heading = None
        else:
            base = self.scheduler.draw_next()

        self.current_base_heading = base
        if self.level == PRECISION_LEVEL:
            self.current_heading = f"{base}{self._rng.randint(0, 9)}"
        else:
            self.current_heading = base
        return self.current_heading

    def _draw_distractor(self) -> str:
        # Deck can skip the failed heading directly; weighted draws are retried
        draw_excluding = getattr(self.scheduler, "draw_excluding", None)
        if draw_excluding is not None:
            return draw_excluding(self._forced_heading)

        candidate = self.scheduler.draw_next()
        for _ in range(self.max_redraws - 1):
            if candidate != self._forced_heading:
                break
            candidate = self.scheduler.draw_next()
        return candidate

    def start_timer(self) -> None:
        self._started_at = self._clock()

    def elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return max(0, self._clock() - self._started_at)

    # =========================================================================
    # Responses
    # =========================================================================

    def submit_response(self, response: Response, elapsed_ms: int | None = None) -> ValidationResult:
        """
        Validate a response and feed the verdict to the scheduler.

        Args:
            response: Wedge id, keypad digits, or VoiceResponse
            elapsed_ms: Override for the measured time since start_timer()

        Returns:
            The ValidationResult for display
        """
        if self.current_heading is None:
            raise RuntimeError("submit_response() called before get_next_heading()")

        if elapsed_ms is None:
            elapsed_ms = self.elapsed_ms()
        result = validate_response(
            self.level,
            self.current_heading,
            response,
            elapsed_ms,
            time_offset_ms=self.time_offset_ms,
        )

        effective_ms = max(0, elapsed_ms - self.time_offset_ms)
        base = self.current_base_heading
        self.last_outcome = self.scheduler.record_outcome(base, result, effective_ms)
        if self.progress is not None:
            self.progress.record_result(self.level, base, result.tier, effective_ms)

        if result.tier is FeedbackState.RED:
            self._forced_heading = base
            self._phase = SandwichPhase.RETRY
            logger.debug(f"Sandwich retry armed for {base}")

        self._started_at = None
        return result

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def sandwich_phase(self) -> SandwichPhase:
        return self._phase

    @property
    def forced_heading(self) -> str | None:
        return self._forced_heading

    def is_complete(self) -> bool:
        return self._phase is SandwichPhase.NONE and self.scheduler.is_complete()
