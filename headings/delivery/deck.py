"""
Latency-Banded Review Queue ("Deck").

Keeps an explicit queue of upcoming heading occurrences. Every answer
pulls the heading out of the queue and reinserts it at a position picked
from a band determined by correctness and response latency:

    Condition                                Tier    Reinsertion band
    ---------------------------------------  ------  ------------------------
    wrong, or elapsed > 2000                 red     0 (into penalty box)
    penalty box, elapsed <= 1000             green   [1, ceil(len/10)] (escape)
    penalty box, elapsed > 1000              amber   0
    1500 < elapsed <= 2000                   amber   [0, ceil(len/4)]
    1000 < elapsed <= 1500                   amber   [ceil(len/4), ceil(len/2)]
    elapsed <= 800                           green   [ceil(len/2), len]
    800 < elapsed <= 1000                    green   [ceil(len/4), ceil(len/2)]

Slow answers come back soon, fast answers drift to the back. Once every
unlocked heading has been mastered at least once, the next heading of the
source sequence is unlocked near the front of the queue.

The same engine runs over MASTER_SEQUENCE (Learn mode) or over any
caller-supplied ordering (Focus / Optimize modes).
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from headings.core.compass import MASTER_SEQUENCE
from headings.core.exceptions import InvalidHeading
from headings.core.reciprocal import base_heading
from headings.core.validator import FeedbackState, ValidationResult

RED_LIMIT_MS = 2000
FRONT_BAND_LIMIT_MS = 1500
MASTERY_LIMIT_MS = 1000
FAST_LIMIT_MS = 800


@dataclass(frozen=True)
class RecordOutcome:
    """What a single deck result did."""

    feedback: FeedbackState
    is_mastered: bool
    all_mastered: bool
    new_heading_unlocked: bool
    position: int


@dataclass(frozen=True)
class HeadingReport:
    """Per-heading counters for the results screen."""

    heading: str
    reps: int
    mistakes: int
    slows: int
    mastered: bool


@dataclass
class DeckState:
    """Full serializable deck state."""

    sequence: list[str]
    deck: list[str]
    queue: list[str]
    mastered: list[str] = field(default_factory=list)
    ever_mastered: list[str] = field(default_factory=list)
    penalty_box: list[str] = field(default_factory=list)
    unlock_index: int = 1
    seen: dict[str, int] = field(default_factory=dict)
    mistakes: dict[str, int] = field(default_factory=dict)
    slows: dict[str, int] = field(default_factory=dict)
    total_mistakes: int = 0

    def to_dict(self) -> dict:
        return {
            "sequence": list(self.sequence),
            "deck": list(self.deck),
            "queue": list(self.queue),
            "mastered": sorted(self.mastered),
            "ever_mastered": sorted(self.ever_mastered),
            "penalty_box": sorted(self.penalty_box),
            "unlock_index": self.unlock_index,
            "seen": dict(self.seen),
            "mistakes": dict(self.mistakes),
            "slows": dict(self.slows),
            "total_mistakes": self.total_mistakes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> DeckState:
        return cls(
            sequence=list(data["sequence"]),
            deck=list(data["deck"]),
            queue=list(data["queue"]),
            mastered=list(data.get("mastered", [])),
            ever_mastered=list(data.get("ever_mastered", [])),
            penalty_box=list(data.get("penalty_box", [])),
            unlock_index=int(data.get("unlock_index", len(data["deck"]))),
            seen={k: int(v) for k, v in data.get("seen", {}).items()},
            mistakes={k: int(v) for k, v in data.get("mistakes", {}).items()},
            slows={k: int(v) for k, v in data.get("slows", {}).items()},
            total_mistakes=int(data.get("total_mistakes", 0)),
        )


def _validated_sequence(sequence: Iterable[str]) -> tuple[str, ...]:
    headings = tuple(base_heading(h) for h in sequence)
    if not headings:
        raise ValueError("Deck sequence must contain at least one heading")
    if len(set(headings)) != len(headings):
        raise ValueError(f"Deck sequence contains duplicate headings: {headings}")
    return headings


class DeckEngine:
    """
    Position-reordering review queue over a source sequence.

    Starts with only sequence[0] unlocked; the deck grows one heading at a
    time through auto-unlock.
    """

    def __init__(
        self,
        sequence: Sequence[str] | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the engine.

        Args:
            sequence: Unlock order (MASTER_SEQUENCE if None)
            rng: Random source (fresh instance if None)
        """
        self._sequence = _validated_sequence(MASTER_SEQUENCE if sequence is None else sequence)
        self._rng = rng or random.Random()

        first = self._sequence[0]
        self._deck: list[str] = [first]
        self._queue: list[str] = [first]
        self._unlock_index = 1

        self._mastered: set[str] = set()
        self._ever_mastered: set[str] = set()
        self._penalty_box: set[str] = set()

        self._seen: dict[str, int] = {first: 0}
        self._mistakes: dict[str, int] = {first: 0}
        self._slows: dict[str, int] = {first: 0}
        self._total_mistakes = 0

    # =========================================================================
    # Construction paths
    # =========================================================================

    @classmethod
    def restore(
        cls,
        unlocked_count: int,
        mastered: Iterable[str] = (),
        ever_mastered: Iterable[str] = (),
        sequence: Sequence[str] | None = None,
        rng: random.Random | None = None,
    ) -> DeckEngine:
        """
        Rebuild a deck from saved progress.

        Unlocks the first `unlocked_count` headings of the sequence and
        queues shuffled unmastered headings ahead of shuffled mastered ones.
        """
        engine = cls(sequence, rng=rng)
        while len(engine._deck) < unlocked_count and engine._unlock_index < len(engine._sequence):
            engine._register(engine._sequence[engine._unlock_index])
            engine._unlock_index += 1

        deck = set(engine._deck)
        engine._mastered = {base_heading(h) for h in mastered} & deck
        engine._ever_mastered = ({base_heading(h) for h in ever_mastered} & deck) | engine._mastered

        unmastered = [h for h in engine._deck if h not in engine._mastered]
        done = [h for h in engine._deck if h in engine._mastered]
        engine._rng.shuffle(unmastered)
        engine._rng.shuffle(done)
        engine._queue = unmastered + done
        if not engine._queue:
            engine._queue = list(engine._deck)
            engine._rng.shuffle(engine._queue)

        logger.info(
            f"Deck restored: {len(engine._deck)} unlocked, {len(engine._mastered)} mastered"
        )
        return engine

    @classmethod
    def restore_all_unlocked(
        cls,
        ordered_sequence: Sequence[str],
        rng: random.Random | None = None,
    ) -> DeckEngine:
        """
        Create an engine with every heading unlocked, queued in the given order.

        Used when the caller has already sorted the sequence weakest-first.
        """
        engine = cls(ordered_sequence, rng=rng)
        while engine._unlock_index < len(engine._sequence):
            engine._register(engine._sequence[engine._unlock_index])
            engine._unlock_index += 1
        engine._queue = list(engine._sequence)
        return engine

    @classmethod
    def from_state(cls, state: DeckState, rng: random.Random | None = None) -> DeckEngine:
        """Restore an engine verbatim from get_state() output."""
        engine = cls(state.sequence, rng=rng)
        engine._deck = [base_heading(h) for h in state.deck]
        engine._queue = [base_heading(h) for h in state.queue]
        engine._unlock_index = state.unlock_index
        engine._mastered = set(state.mastered)
        engine._ever_mastered = set(state.ever_mastered)
        engine._penalty_box = set(state.penalty_box)
        engine._seen = {h: state.seen.get(h, 0) for h in engine._deck}
        engine._mistakes = {h: state.mistakes.get(h, 0) for h in engine._deck}
        engine._slows = {h: state.slows.get(h, 0) for h in engine._deck}
        engine._total_mistakes = state.total_mistakes
        return engine

    def _register(self, heading: str) -> None:
        self._deck.append(heading)
        self._seen[heading] = 0
        self._mistakes[heading] = 0
        self._slows[heading] = 0

    # =========================================================================
    # Drawing
    # =========================================================================

    def draw_next(self) -> str:
        """Peek the queue head and count it as seen (every call counts)."""
        heading = self._queue[0]
        self._seen[heading] = self._seen.get(heading, 0) + 1
        return heading

    def draw_excluding(self, exclude: str) -> str:
        """
        Draw the first queued heading other than `exclude`.

        Used for the sandwich distractor, where the failed heading may still
        sit at the head. Falls back to `exclude` when it is the only heading.
        """
        exclude = base_heading(exclude)
        heading = next((h for h in self._queue if h != exclude), exclude)
        self._seen[heading] = self._seen.get(heading, 0) + 1
        return heading

    def _random_position(self, low: int, high: int) -> int:
        high = min(high, len(self._queue))
        low = min(low, high)
        return self._rng.randint(low, high)

    # =========================================================================
    # Results
    # =========================================================================

    def record_result(self, heading: str, elapsed_ms: int, is_correct: bool) -> RecordOutcome:
        """
        Remove the answered heading and reinsert it by latency band.

        Args:
            heading: Heading that was answered (normally the queue head)
            elapsed_ms: Response latency
            is_correct: Validator verdict

        Returns:
            RecordOutcome describing tier, mastery and unlock effects

        Raises:
            InvalidHeading: If the heading is not unlocked in this deck
        """
        heading = base_heading(heading)
        if heading not in self._deck:
            raise InvalidHeading(heading)
        if self._queue[0] == heading:
            self._queue.pop(0)
        else:
            self._queue.remove(heading)

        n = len(self._queue)
        quarter = math.ceil(n / 4)
        half = math.ceil(n / 2)
        was_in_penalty = heading in self._penalty_box
        is_mastered = False

        if not is_correct or elapsed_ms > RED_LIMIT_MS:
            feedback = FeedbackState.RED
            self._mastered.discard(heading)
            self._penalty_box.add(heading)
            self._mistakes[heading] = self._mistakes.get(heading, 0) + 1
            self._total_mistakes += 1
            position = 0
        elif was_in_penalty:
            if elapsed_ms <= MASTERY_LIMIT_MS:
                feedback = FeedbackState.GREEN
                self._penalty_box.discard(heading)
                position = self._random_position(1, max(1, math.ceil(n / 10)))
            else:
                feedback = FeedbackState.AMBER
                self._slows[heading] = self._slows.get(heading, 0) + 1
                position = 0
        elif elapsed_ms > FRONT_BAND_LIMIT_MS:
            feedback = FeedbackState.AMBER
            self._slows[heading] = self._slows.get(heading, 0) + 1
            position = self._random_position(0, quarter)
        elif elapsed_ms > MASTERY_LIMIT_MS:
            feedback = FeedbackState.AMBER
            self._slows[heading] = self._slows.get(heading, 0) + 1
            position = self._random_position(quarter, half)
        else:
            feedback = FeedbackState.GREEN
            is_mastered = True
            self._mastered.add(heading)
            self._ever_mastered.add(heading)
            if elapsed_ms <= FAST_LIMIT_MS:
                position = self._random_position(half, n)
            else:
                position = self._random_position(quarter, half)

        self._queue.insert(position, heading)
        logger.debug(f"Deck {heading}: {feedback.value} in {elapsed_ms}ms -> position {position}/{n}")

        all_mastered = all(h in self._mastered or h in self._ever_mastered for h in self._deck)
        new_heading_unlocked = False
        if all_mastered and self._unlock_index < len(self._sequence):
            self.add_next_heading()
            new_heading_unlocked = True

        return RecordOutcome(
            feedback=feedback,
            is_mastered=is_mastered,
            all_mastered=all_mastered,
            new_heading_unlocked=new_heading_unlocked,
            position=position,
        )

    def record_outcome(self, heading: str, result: ValidationResult, elapsed_ms: int) -> RecordOutcome:
        """Feed a ValidationResult back (TrainingSession protocol)."""
        return self.record_result(heading, elapsed_ms, result.is_correct)

    def add_next_heading(self) -> str | None:
        """Unlock the next sequence heading near the front of the queue."""
        if self._unlock_index >= len(self._sequence):
            return None
        heading = self._sequence[self._unlock_index]
        self._register(heading)
        n = len(self._queue)
        position = min(self._rng.randint(1, max(1, math.ceil(n / 10))), n)
        self._queue.insert(position, heading)
        self._unlock_index += 1
        logger.info(f"Deck unlocked {heading} ({len(self._deck)}/{len(self._sequence)})")
        return heading

    # =========================================================================
    # Queries
    # =========================================================================

    def all_mastered(self) -> bool:
        """True when every unlocked heading is currently mastered."""
        return len(self._mastered) >= len(self._deck)

    def is_complete(self) -> bool:
        return self._unlock_index >= len(self._sequence) and self.all_mastered()

    def is_in_penalty_box(self, heading: str) -> bool:
        return base_heading(heading) in self._penalty_box

    @property
    def sequence(self) -> tuple[str, ...]:
        return self._sequence

    @property
    def deck(self) -> list[str]:
        return list(self._deck)

    @property
    def deck_size(self) -> int:
        return len(self._deck)

    @property
    def unlocked_count(self) -> int:
        return len(self._deck)

    @property
    def queue(self) -> list[str]:
        return list(self._queue)

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    @property
    def mastered_count(self) -> int:
        return len(self._mastered)

    @property
    def mastered(self) -> set[str]:
        return set(self._mastered)

    @property
    def ever_mastered(self) -> set[str]:
        return set(self._ever_mastered)

    @property
    def penalty_box(self) -> set[str]:
        return set(self._penalty_box)

    @property
    def total_mistakes(self) -> int:
        return self._total_mistakes

    def seen_counts(self) -> dict[str, int]:
        return dict(self._seen)

    def mistake_counts(self) -> dict[str, int]:
        return dict(self._mistakes)

    def slow_counts(self) -> dict[str, int]:
        return dict(self._slows)

    def heading_report(self) -> list[HeadingReport]:
        return [
            HeadingReport(
                heading=h,
                reps=self._seen.get(h, 0),
                mistakes=self._mistakes.get(h, 0),
                slows=self._slows.get(h, 0),
                mastered=h in self._mastered,
            )
            for h in self._deck
        ]

    def get_state(self) -> DeckState:
        return DeckState(
            sequence=list(self._sequence),
            deck=list(self._deck),
            queue=list(self._queue),
            mastered=sorted(self._mastered),
            ever_mastered=sorted(self._ever_mastered),
            penalty_box=sorted(self._penalty_box),
            unlock_index=self._unlock_index,
            seen=dict(self._seen),
            mistakes=dict(self._mistakes),
            slows=dict(self._slows),
            total_mistakes=self._total_mistakes,
        )
