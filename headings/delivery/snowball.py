"""
Stability-Gated Unlock Scheduler ("Snowball").

Headings enter the active set one at a time from MASTER_SEQUENCE. A new
heading is unlocked only when every active heading is stable, i.e. has
scored STABILITY_THRESHOLD consecutive green results.

Selection favors unstable material: with probability UNSTABLE_WEIGHT a
draw is made from the unstable subset (when it is non-empty), otherwise
from the whole active set.

Result handling:
- green: consecutive_greens += 1; stability saturates at the threshold
- amber: no change
- red: stability and consecutive_greens reset to 0
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from loguru import logger

from headings.core.compass import MASTER_SEQUENCE
from headings.core.reciprocal import base_heading
from headings.core.validator import FeedbackState, ValidationResult

STABILITY_THRESHOLD = 3
UNSTABLE_WEIGHT = 0.7


@dataclass
class QueueItem:
    """Per-heading stability state."""

    heading: str
    stability: int = 0
    consecutive_greens: int = 0
    last_result: FeedbackState | None = None

    @property
    def is_stable(self) -> bool:
        return self.stability >= STABILITY_THRESHOLD

    def to_dict(self) -> dict:
        return {
            "heading": self.heading,
            "stability": self.stability,
            "consecutive_greens": self.consecutive_greens,
            "last_result": self.last_result.value if self.last_result else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> QueueItem:
        last = data.get("last_result")
        return cls(
            heading=base_heading(data["heading"]),
            stability=int(data.get("stability", 0)),
            consecutive_greens=int(data.get("consecutive_greens", 0)),
            last_result=FeedbackState(last) if last else None,
        )


@dataclass
class SnowballState:
    """Serializable scheduler state: {active_queue, unlocked_index}."""

    active_queue: list[QueueItem] = field(default_factory=list)
    unlocked_index: int = 0

    def to_dict(self) -> dict:
        return {
            "active_queue": [item.to_dict() for item in self.active_queue],
            "unlocked_index": self.unlocked_index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SnowballState:
        return cls(
            active_queue=[QueueItem.from_dict(d) for d in data.get("active_queue", [])],
            unlocked_index=int(data.get("unlocked_index", 0)),
        )


class SnowballScheduler:
    """
    Weighted-random scheduler that snowballs through MASTER_SEQUENCE.

    Seeded with MASTER_SEQUENCE[0] only. Restoring from a saved state
    reproduces it verbatim and does not run the expansion check.
    """

    def __init__(
        self,
        state: SnowballState | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the scheduler.

        Args:
            state: Previously saved state (fresh start if None)
            rng: Random source (fresh instance if None)
        """
        self._rng = rng or random.Random()
        if state is None:
            self._queue = [QueueItem(heading=MASTER_SEQUENCE[0])]
            self._unlocked_index = 0
        else:
            self._queue = [
                QueueItem(
                    heading=item.heading,
                    stability=item.stability,
                    consecutive_greens=item.consecutive_greens,
                    last_result=item.last_result,
                )
                for item in state.active_queue
            ]
            self._unlocked_index = state.unlocked_index
        self._by_heading = {item.heading: item for item in self._queue}

    @classmethod
    def from_dict(cls, data: dict, rng: random.Random | None = None) -> SnowballScheduler:
        return cls(SnowballState.from_dict(data), rng=rng)

    # =========================================================================
    # Selection
    # =========================================================================

    def next_item(self) -> str:
        """Draw the next heading, favoring unstable items."""
        unstable = [item for item in self._queue if not item.is_stable]
        if unstable and self._rng.random() < UNSTABLE_WEIGHT:
            return self._rng.choice(unstable).heading
        return self._rng.choice(self._queue).heading

    def draw_next(self) -> str:
        return self.next_item()

    # =========================================================================
    # Results
    # =========================================================================

    def record_result(self, heading: str, tier: FeedbackState | str) -> bool:
        """
        Record a result and run the expansion check.

        Args:
            heading: The 2-digit heading that was answered
            tier: green / amber / red

        Returns:
            True if a new heading was unlocked by this result
        """
        tier = FeedbackState(tier)
        item = self._by_heading.get(base_heading(heading))
        if item is None:
            logger.warning(f"Snowball: ignoring result for inactive heading {heading}")
            return False

        if tier is FeedbackState.GREEN:
            item.consecutive_greens += 1
            if item.consecutive_greens >= STABILITY_THRESHOLD:
                item.stability = STABILITY_THRESHOLD
        elif tier is FeedbackState.RED:
            item.stability = 0
            item.consecutive_greens = 0

        item.last_result = tier
        logger.debug(
            f"Snowball {item.heading}: {tier.value} "
            f"(stability={item.stability}, greens={item.consecutive_greens})"
        )
        return self._check_expansion()

    def record_outcome(self, heading: str, result: ValidationResult, elapsed_ms: int) -> bool:
        """Feed a ValidationResult back (TrainingSession protocol)."""
        return self.record_result(heading, result.tier)

    def _check_expansion(self) -> bool:
        if not all(item.is_stable for item in self._queue):
            return False
        if self._unlocked_index >= len(MASTER_SEQUENCE) - 1:
            return False

        self._unlocked_index += 1
        heading = MASTER_SEQUENCE[self._unlocked_index]
        item = QueueItem(heading=heading)
        self._queue.append(item)
        self._by_heading[heading] = item
        logger.info(f"Snowball unlocked {heading} ({len(self._queue)}/{len(MASTER_SEQUENCE)})")
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def is_all_mastered(self) -> bool:
        """True when all 36 headings are active and stable."""
        return len(self._queue) == len(MASTER_SEQUENCE) and all(
            item.is_stable for item in self._queue
        )

    def is_complete(self) -> bool:
        return self.is_all_mastered()

    @property
    def active_queue(self) -> tuple[QueueItem, ...]:
        return tuple(self._queue)

    @property
    def unlocked_index(self) -> int:
        return self._unlocked_index

    @property
    def active_size(self) -> int:
        return len(self._queue)

    @property
    def stable_count(self) -> int:
        return sum(1 for item in self._queue if item.is_stable)

    def get_item(self, heading: str) -> QueueItem | None:
        return self._by_heading.get(base_heading(heading))

    def get_state(self) -> SnowballState:
        """Return a detached copy of the state for persistence."""
        return SnowballState(
            active_queue=[QueueItem(**vars(item)) for item in self._queue],
            unlocked_index=self._unlocked_index,
        )
