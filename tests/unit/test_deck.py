"""
Unit tests for the latency-banded Deck engine.

Reinsertion positions are random, so band tests assert inclusive ranges
over many seeded trials; only the red and penalty-amber rules are exact.
"""

import math
import random

import pytest

from headings.core import MASTER_SEQUENCE, FeedbackState, InvalidHeading
from headings.delivery import DeckEngine, DeckState

# 11 headings -> 10 left in the queue after the head is removed
ELEVEN = list(MASTER_SEQUENCE[:11])


def _answer_head(engine: DeckEngine, elapsed_ms: int, is_correct: bool = True):
    heading = engine.draw_next()
    return heading, engine.record_result(heading, elapsed_ms, is_correct)


def _positions(elapsed_ms: int, trials: int = 200) -> set[int]:
    seen = set()
    for seed in range(trials):
        engine = DeckEngine.restore_all_unlocked(ELEVEN, rng=random.Random(seed))
        heading, outcome = _answer_head(engine, elapsed_ms)
        assert engine.queue.index(heading) == outcome.position
        seen.add(outcome.position)
    return seen


class TestConstruction:
    def test_starts_with_first_heading(self):
        engine = DeckEngine()
        assert engine.deck == ["36"]
        assert engine.queue == ["36"]
        assert engine.unlocked_count == 1
        assert engine.is_complete() is False

    def test_custom_sequence(self, short_sequence):
        engine = DeckEngine(short_sequence)
        assert engine.deck == ["04"]
        assert engine.sequence == tuple(short_sequence)

    def test_empty_sequence_raises(self):
        with pytest.raises(ValueError):
            DeckEngine([])

    def test_duplicate_sequence_raises(self):
        with pytest.raises(ValueError):
            DeckEngine(["04", "22", "04"])

    def test_invalid_heading_in_sequence(self):
        with pytest.raises(InvalidHeading):
            DeckEngine(["04", "40"])


class TestDrawNext:
    def test_peeks_without_removing(self, rng):
        engine = DeckEngine(rng=rng)
        assert engine.draw_next() == "36"
        assert engine.queue_length == 1

    def test_every_draw_counts_as_seen(self, rng):
        engine = DeckEngine.restore_all_unlocked(ELEVEN, rng=rng)
        engine.draw_next()
        engine.draw_next()
        assert engine.seen_counts()["36"] == 2
        engine.record_result("36", 500, True)
        assert engine.seen_counts()["36"] == 2

    def test_draw_excluding_skips_head(self, rng):
        engine = DeckEngine.restore_all_unlocked(["04", "22", "13"], rng=rng)
        assert engine.draw_excluding("04") == "22"
        assert engine.queue == ["04", "22", "13"]
        assert engine.seen_counts()["22"] == 1
        assert engine.seen_counts()["04"] == 0

    def test_draw_excluding_only_heading(self, rng):
        engine = DeckEngine(["04"], rng=rng)
        assert engine.draw_excluding("04") == "04"

    def test_answer_for_locked_heading_rejected(self, rng):
        """A heading outside the unlocked deck never enters the queue."""
        engine = DeckEngine(rng=rng)
        with pytest.raises(InvalidHeading):
            engine.record_result("07", 500, True)
        assert engine.queue == ["36"]
        assert engine.deck == ["36"]
        assert "07" not in engine.seen_counts()


class TestRedInvariant:
    """Wrong or >2000ms always goes to position 0 and loses mastery."""

    @pytest.mark.parametrize("elapsed_ms,is_correct", [(300, False), (2001, True), (5000, False)])
    def test_red_goes_to_front(self, rng, elapsed_ms, is_correct):
        engine = DeckEngine.restore_all_unlocked(ELEVEN, rng=rng)
        heading, outcome = _answer_head(engine, 500)
        assert heading in engine.mastered

        outcome = engine.record_result(heading, elapsed_ms, is_correct)
        assert outcome.feedback is FeedbackState.RED
        assert outcome.position == 0
        assert outcome.is_mastered is False
        assert engine.queue[0] == heading
        assert heading not in engine.mastered
        assert heading in engine.ever_mastered
        assert engine.is_in_penalty_box(heading)

    def test_red_counts_mistake(self, rng):
        engine = DeckEngine.restore_all_unlocked(ELEVEN, rng=rng)
        heading, _ = _answer_head(engine, 500, is_correct=False)
        assert engine.mistake_counts()[heading] == 1
        assert engine.total_mistakes == 1


class TestLatencyBands:
    """Inclusive band bounds for a queue of length 10 after removal."""

    def test_front_band(self):
        """1500 < elapsed <= 2000 -> [0, ceil(10/4)] = [0, 3]."""
        assert _positions(1800) <= {0, 1, 2, 3}
        assert _positions(2000) <= {0, 1, 2, 3}

    def test_middle_band(self):
        """1000 < elapsed <= 1500 -> [3, 5]."""
        assert _positions(1200) <= {3, 4, 5}
        assert _positions(1500) <= {3, 4, 5}

    def test_fast_band(self):
        """elapsed <= 800 -> [5, 10]."""
        seen = _positions(500)
        assert seen <= set(range(5, 11))
        assert len(seen) > 1

    def test_good_band(self):
        """800 < elapsed <= 1000 -> [3, 5], mastered."""
        assert _positions(900) <= {3, 4, 5}
        assert _positions(1000) <= {3, 4, 5}

    def test_slow_is_amber_not_mastered(self, rng):
        engine = DeckEngine.restore_all_unlocked(ELEVEN, rng=rng)
        heading, outcome = _answer_head(engine, 1600)
        assert outcome.feedback is FeedbackState.AMBER
        assert outcome.is_mastered is False
        assert heading not in engine.mastered
        assert engine.slow_counts()[heading] == 1

    def test_fast_is_green_mastered(self, rng):
        engine = DeckEngine.restore_all_unlocked(ELEVEN, rng=rng)
        heading, outcome = _answer_head(engine, 950)
        assert outcome.feedback is FeedbackState.GREEN
        assert outcome.is_mastered is True
        assert heading in engine.mastered
        assert heading in engine.ever_mastered


class TestPenaltyBox:
    def _penalized(self, seed: int = 0) -> tuple[DeckEngine, str]:
        engine = DeckEngine.restore_all_unlocked(ELEVEN, rng=random.Random(seed))
        heading, _ = _answer_head(engine, 400, is_correct=False)
        return engine, heading

    def test_slow_correct_stays_at_front(self):
        engine, heading = self._penalized()
        outcome = engine.record_result(heading, 1001, True)
        assert outcome.feedback is FeedbackState.AMBER
        assert outcome.position == 0
        assert engine.is_in_penalty_box(heading)

    def test_escape_near_front(self):
        """ceil(10/10) = 1, so the escape position is exactly 1."""
        for seed in range(20):
            engine, heading = self._penalized(seed)
            outcome = engine.record_result(heading, 1000, True)
            assert outcome.feedback is FeedbackState.GREEN
            assert outcome.position == 1
            assert outcome.is_mastered is False
            assert not engine.is_in_penalty_box(heading)
            assert heading not in engine.mastered

    def test_escape_band_scales_with_queue(self):
        sequence = list(MASTER_SEQUENCE[:31])
        for seed in range(50):
            engine = DeckEngine.restore_all_unlocked(sequence, rng=random.Random(seed))
            heading, _ = _answer_head(engine, 400, is_correct=False)
            outcome = engine.record_result(heading, 600, True)
            assert 1 <= outcome.position <= math.ceil(30 / 10)

    def test_wrong_in_penalty_stays_red(self):
        engine, heading = self._penalized()
        outcome = engine.record_result(heading, 300, False)
        assert outcome.feedback is FeedbackState.RED
        assert outcome.position == 0
        assert engine.mistake_counts()[heading] == 2


class TestAutoUnlock:
    def test_first_mastery_unlocks_next(self, rng):
        engine = DeckEngine(rng=rng)
        _, outcome = _answer_head(engine, 500)
        assert outcome.all_mastered is True
        assert outcome.new_heading_unlocked is True
        assert engine.deck == ["36", "18"]
        assert engine.queue == ["36", "18"]

    def test_no_unlock_while_unmastered(self, rng):
        engine = DeckEngine(rng=rng)
        _, outcome = _answer_head(engine, 1200)
        assert outcome.new_heading_unlocked is False
        assert engine.unlocked_count == 1

    def test_ever_mastered_keeps_gate_open(self, rng):
        """A regressed heading that was mastered once still counts for unlock."""
        engine = DeckEngine(rng=rng)
        engine.record_result("36", 500, True)
        engine.record_result("36", 500, False)
        outcome = engine.record_result("18", 500, True)
        assert "36" not in engine.mastered
        assert outcome.new_heading_unlocked is True
        assert engine.unlocked_count == 3

    def test_unlock_inserts_near_front(self):
        for seed in range(30):
            engine = DeckEngine.restore(20, mastered=MASTER_SEQUENCE[:20], rng=random.Random(seed))
            heading = engine.draw_next()
            engine.record_result(heading, 500, True)
            new_heading = MASTER_SEQUENCE[20]
            assert 1 <= engine.queue.index(new_heading) <= math.ceil(20 / 10)

    def test_complete_after_full_cycle(self, short_sequence, rng):
        engine = DeckEngine(short_sequence, rng=rng)
        for _ in range(500):
            if engine.is_complete():
                break
            _answer_head(engine, 500)
        assert engine.is_complete() is True
        assert engine.unlocked_count == len(short_sequence)
        assert engine.mastered == set(short_sequence)

    def test_single_heading_sequence(self, rng):
        engine = DeckEngine(["04"], rng=rng)
        _, outcome = _answer_head(engine, 500)
        assert outcome.position == 0
        assert outcome.new_heading_unlocked is False
        assert engine.is_complete() is True


class TestRestore:
    def test_unmastered_queued_first(self, rng):
        engine = DeckEngine.restore(5, mastered=["36", "18"], rng=rng)
        assert engine.unlocked_count == 5
        assert set(engine.queue[:3]) == {"09", "27", "05"}
        assert set(engine.queue[3:]) == {"36", "18"}
        assert engine.ever_mastered == {"36", "18"}

    def test_ever_mastered_restored(self, rng):
        engine = DeckEngine.restore(3, mastered=["36"], ever_mastered=["18"], rng=rng)
        assert engine.mastered == {"36"}
        assert engine.ever_mastered == {"36", "18"}

    def test_mastered_outside_deck_dropped(self, rng):
        engine = DeckEngine.restore(2, mastered=["36", "05"], rng=rng)
        assert engine.mastered == {"36"}

    def test_restore_all_unlocked_keeps_order(self, short_sequence, rng):
        ordered = list(reversed(short_sequence))
        engine = DeckEngine.restore_all_unlocked(ordered, rng=rng)
        assert engine.queue == ordered
        assert engine.deck_size == len(ordered)
        assert engine.draw_next() == ordered[0]

    def test_state_round_trip(self, rng):
        engine = DeckEngine.restore_all_unlocked(ELEVEN, rng=rng)
        _answer_head(engine, 400, is_correct=False)
        _answer_head(engine, 1200)
        data = engine.get_state().to_dict()

        restored = DeckEngine.from_state(DeckState.from_dict(data))
        assert restored.get_state().to_dict() == data
        assert restored.penalty_box == engine.penalty_box


class TestReporting:
    def test_heading_report(self, rng):
        engine = DeckEngine.restore_all_unlocked(["04", "22"], rng=rng)
        heading, _ = _answer_head(engine, 300, is_correct=False)
        report = {r.heading: r for r in engine.heading_report()}
        assert report[heading].reps == 1
        assert report[heading].mistakes == 1
        assert report[heading].mastered is False
