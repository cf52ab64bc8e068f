"""
Unit tests for the single-pass engines.

Tests:
- grade_response() fast/slow/wrong thresholds
- TrialEngine elimination
- MasteryChallengeEngine reinsertion, first-attempt tracking and score
- Stage tables and StageEngine reordering
"""

import random

import pytest

from headings.core import MASTER_SEQUENCE, FeedbackState
from headings.delivery import (
    SETS,
    STAGES,
    MasteryChallengeEngine,
    StageEngine,
    TrainingGrade,
    TrialEngine,
    grade_response,
    hpm_score,
    stage_headings,
)
from headings.delivery.engines import (
    MASTERY_CHALLENGE_KEYPAD_LIMIT_MS,
    MASTERY_CHALLENGE_VERBAL_LIMIT_MS,
    stage_sets_label,
)


class TestGradeResponse:
    @pytest.mark.parametrize(
        "is_correct,time_ms,expected",
        [
            (True, 999, TrainingGrade.FAST),
            (True, 1000, TrainingGrade.SLOW),
            (True, 1999, TrainingGrade.SLOW),
            (True, 2000, TrainingGrade.WRONG),
            (False, 100, TrainingGrade.WRONG),
        ],
    )
    def test_thresholds(self, is_correct, time_ms, expected):
        assert grade_response(is_correct, time_ms, 2000) is expected


class TestTrialEngine:
    def test_permutation_of_subset(self, rng):
        engine = TrialEngine(["04", "22", "13"], rng=rng)
        assert engine.total == 3
        assert engine.remaining == 3
        assert engine.draw_next() in {"04", "22", "13"}

    def test_fast_removes(self, rng):
        engine = TrialEngine(["04", "22"], rng=rng)
        heading = engine.draw_next()
        assert engine.record_result(heading, TrainingGrade.FAST) is None
        assert engine.remaining == 1
        assert engine.mistakes == 0

    def test_slow_and_wrong_reinsert(self, rng):
        engine = TrialEngine(["04", "22", "13", "31"], rng=rng)
        for grade in ("slow", "wrong"):
            heading = engine.draw_next()
            position = engine.record_result(heading, grade)
            assert 0 <= position <= 3
            assert engine.remaining == 4
        assert engine.mistakes == 2

    def test_completes_when_empty(self, rng):
        engine = TrialEngine(["04", "22", "13"], rng=rng)
        while not engine.is_complete():
            engine.record_result(engine.draw_next(), TrainingGrade.FAST)
        assert engine.remaining == 0


class TestMasteryChallenge:
    def test_queue_is_all_36(self, rng):
        engine = MasteryChallengeEngine(rng=rng)
        assert engine.remaining == 36
        assert engine.time_limit_ms == 1200

    def test_green_removes(self, rng):
        engine = MasteryChallengeEngine(rng=rng)
        heading = engine.draw_next()
        outcome = engine.record_result(heading, 900, True)
        assert outcome.feedback is FeedbackState.GREEN
        assert outcome.removed is True
        assert engine.remaining == 35

    def test_miss_never_reinserted_at_front(self):
        for seed in range(100):
            engine = MasteryChallengeEngine(rng=random.Random(seed))
            heading = engine.draw_next()
            outcome = engine.record_result(heading, 400, False)
            assert outcome.feedback is FeedbackState.RED
            assert outcome.position >= 1
            assert engine.draw_next() != heading
            assert engine.remaining == 36

    def test_slow_correct_is_a_miss(self, rng):
        engine = MasteryChallengeEngine(rng=rng)
        heading = engine.draw_next()
        outcome = engine.record_result(heading, 1201, True)
        assert outcome.removed is False
        assert engine.results()[heading].status is FeedbackState.AMBER

    def test_mode_limits(self, rng):
        verbal = MasteryChallengeEngine(MASTERY_CHALLENGE_VERBAL_LIMIT_MS, rng=rng)
        keypad = MasteryChallengeEngine(MASTERY_CHALLENGE_KEYPAD_LIMIT_MS, rng=rng)
        assert verbal.record_result(verbal.draw_next(), 1650, True).removed is True
        assert keypad.record_result(keypad.draw_next(), 2900, True).removed is True

    def test_for_mode_uses_configured_limits(self, rng):
        assert MasteryChallengeEngine.for_mode("tap", rng=rng).time_limit_ms == 1200
        assert MasteryChallengeEngine.for_mode("verbal", rng=rng).time_limit_ms == 1700
        assert MasteryChallengeEngine.for_mode("keypad", rng=rng).time_limit_ms == 3000

    def test_for_mode_unknown(self, rng):
        with pytest.raises(ValueError):
            MasteryChallengeEngine.for_mode("morse", rng=rng)

    def test_first_attempt_status_only_worsens(self, rng):
        engine = MasteryChallengeEngine(rng=rng)
        heading = engine.draw_next()
        engine.record_result(heading, 500, False)
        engine.record_result(heading, 500, True)
        result = engine.results()[heading]
        assert result.status is FeedbackState.RED
        assert result.mistakes == 1

    def test_timeout_tracked_as_amber(self, rng):
        engine = MasteryChallengeEngine(rng=rng)
        heading = engine.draw_next()
        engine.record_result(heading, 1200, False, timed_out=True)
        assert engine.results()[heading].status is FeedbackState.AMBER
        assert engine.total_mistakes == 1

    def test_last_heading_reinserted_alone(self, rng):
        engine = MasteryChallengeEngine(rng=rng)
        while engine.remaining > 1:
            engine.record_result(engine.draw_next(), 500, True)
        last = engine.draw_next()
        outcome = engine.record_result(last, 500, False)
        assert outcome.position == 0
        assert engine.draw_next() == last

    def test_full_pass_score(self):
        """score == (T / (E / 60000)) * greens / T."""
        rng = random.Random(42)
        engine = MasteryChallengeEngine(rng=rng)
        elapsed = 0
        while not engine.is_complete():
            heading = engine.draw_next()
            time_ms = rng.randint(400, 1500)
            correct = rng.random() < 0.85
            elapsed += time_ms
            engine.record_result(heading, time_ms, correct)

        total = engine.total_responses
        greens = engine.green_responses
        assert greens == 36
        assert total >= 36
        assert engine.accuracy() == pytest.approx(greens / total)
        assert engine.score(elapsed) == pytest.approx((total / (elapsed / 60000)) * (greens / total))
        assert engine.score() == pytest.approx(engine.score(engine.response_time_ms))

    def test_results_complete_after_pass(self, rng):
        engine = MasteryChallengeEngine(rng=rng)
        while not engine.is_complete():
            engine.record_result(engine.draw_next(), 600, True)
        results = engine.results()
        assert set(results) == set(MASTER_SEQUENCE)
        assert engine.first_time_correct_count == 36
        assert engine.first_attempt_accuracy() == 1.0

    def test_hpm_score_zero_elapsed(self):
        assert hpm_score(10, 0, 1.0) == 0.0
        assert hpm_score(36, 60000, 1.0) == pytest.approx(36.0)


class TestStages:
    def test_sets_cover_all_headings(self):
        headings = [h for s in SETS for h in s]
        assert len(headings) == 36
        assert set(headings) == set(MASTER_SEQUENCE)

    def test_stage_headings(self):
        assert stage_headings(1) == list(SETS[0])
        assert len(stage_headings(3)) == 12
        assert len(stage_headings(len(STAGES))) == 36

    @pytest.mark.parametrize("stage", [0, 12])
    def test_invalid_stage(self, stage):
        with pytest.raises(ValueError):
            stage_headings(stage)
        with pytest.raises(ValueError):
            stage_sets_label(stage)

    def test_sets_label(self):
        assert stage_sets_label(5) == "Sets 1, 2, 3"
        assert stage_sets_label(4) == "Sets 3"


class TestStageEngine:
    def test_wrong_goes_to_front(self, rng):
        engine = StageEngine(1, rng=rng)
        heading = engine.draw_next()
        assert engine.record_result(heading, TrainingGrade.WRONG) == 0
        assert engine.draw_next() == heading
        assert engine.total_mistakes == 1

    def test_fast_goes_to_back_half(self):
        for seed in range(30):
            engine = StageEngine(1, rng=random.Random(seed))
            heading = engine.draw_next()
            position = engine.record_result(heading, TrainingGrade.FAST)
            assert 3 <= position <= 5
            assert heading in engine.mastered

    def test_slow_goes_to_front_half(self):
        for seed in range(30):
            engine = StageEngine(1, rng=random.Random(seed))
            position = engine.record_result(engine.draw_next(), TrainingGrade.SLOW)
            assert 0 <= position <= 3
            assert engine.mastered_count == 0

    def test_wrong_unmasters(self, rng):
        engine = StageEngine(1, rng=rng)
        heading = engine.draw_next()
        engine.record_result(heading, "fast")
        engine.record_result(heading, "wrong")
        assert heading not in engine.mastered

    def test_completes_and_reports(self, rng):
        engine = StageEngine(2, rng=rng)
        stumbled = engine.draw_next()
        engine.record_result(stumbled, TrainingGrade.SLOW)
        for _ in range(200):
            if engine.is_complete():
                break
            engine.record_result(engine.draw_next(), TrainingGrade.FAST)
        assert engine.is_complete() is True
        assert engine.first_try_mastered_count == 5
        report = {r.heading: r for r in engine.heading_report()}
        assert report[stumbled].first_try is False
        assert report[stumbled].slows == 1
