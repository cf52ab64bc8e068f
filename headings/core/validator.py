"""
Response Validator.

Judges a learner response for any training level:
- Level 1: tap the wedge containing the stimulus heading
- Level 2: type the reciprocal on a keypad (zero padded, string compare)
- Levels 3-5: speak the reciprocal number and its compass direction
  (level 5 uses a 3-digit precision stimulus)

Then assigns a timing tier:
- red: incorrect
- amber: correct but slower than the level's limit ("Too Slow")
- green: correct within the limit
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from headings.core.compass import CompassDirection
from headings.core.exceptions import InvalidLevel
from headings.core.reciprocal import direction, reciprocal, reciprocal_with_ones, wedge_id

# Per-level response windows. The level 2 keypad offset is applied through
# validate_response(time_offset_ms=...), not folded into this table.
LEVEL_TIME_LIMITS_MS: dict[int, int] = {
    1: 2000,
    2: 2000,
    3: 1500,
    4: 1500,
    5: 1500,
}

LEVEL2_KEYPAD_OFFSET_MS = 500
PRECISION_LEVEL = 5
TOO_SLOW = "Too Slow"


class FeedbackState(str, Enum):
    """Timing tier of a judged response."""

    GREEN = "green"
    AMBER = "amber"
    RED = "red"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class VoiceResponse:
    """A parsed spoken answer: reciprocal digits plus compass direction."""

    number: str
    direction: CompassDirection | str

    @classmethod
    def from_dict(cls, data: dict) -> VoiceResponse:
        return cls(number=str(data["number"]), direction=data["direction"])


# Wedge id (level 1), keypad digits (level 2), or voice pair (levels 3-5)
Response = Union[int, str, VoiceResponse]


@dataclass(frozen=True)
class CorrectAnswer:
    """What the learner should have answered."""

    reciprocal: str
    direction: CompassDirection

    def to_dict(self) -> dict[str, str]:
        return {"reciprocal": self.reciprocal, "direction": self.direction.value}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single response."""

    is_correct: bool
    tier: FeedbackState
    correct_answer: CorrectAnswer
    feedback: str | None = field(default=None)

    def to_dict(self) -> dict:
        return {
            "is_correct": self.is_correct,
            "tier": self.tier.value,
            "feedback": self.feedback,
            "correct_answer": self.correct_answer.to_dict(),
        }


def _check_level(level: int) -> None:
    if level not in LEVEL_TIME_LIMITS_MS:
        raise InvalidLevel(level)


def time_limit_for_level(level: int) -> int:
    """Return the response window in ms for a level."""
    _check_level(level)
    return LEVEL_TIME_LIMITS_MS[level]


def get_correct_answer(stimulus: str, level: int) -> CorrectAnswer:
    """
    Build the correct-answer display for a stimulus.

    Level 5 always reciprocates with the ones digit; other levels accept
    either stimulus width.
    """
    _check_level(level)
    if level == PRECISION_LEVEL or len(stimulus) == 3:
        expected = reciprocal_with_ones(stimulus)
    else:
        expected = reciprocal(stimulus)
    return CorrectAnswer(reciprocal=expected, direction=direction(stimulus))


def _is_correct(level: int, stimulus: str, response: Response, answer: CorrectAnswer) -> bool:
    if level == 1:
        if isinstance(response, bool) or not isinstance(response, int):
            return False
        return response == wedge_id(stimulus)
    if level == 2:
        return isinstance(response, str) and response == answer.reciprocal
    # levels 3-5: both halves of the spoken pair must match
    if isinstance(response, dict):
        response = VoiceResponse.from_dict(response)
    if not isinstance(response, VoiceResponse):
        return False
    return response.number == answer.reciprocal and response.direction == answer.direction


def validate_response(
    level: int,
    stimulus: str,
    response: Response,
    elapsed_ms: int,
    time_offset_ms: int = 0,
) -> ValidationResult:
    """
    Validate a learner response.

    Args:
        level: Training level 1-5
        stimulus: Heading presented (2-digit, or 3-digit for level 5)
        response: Wedge id, keypad digit string, or VoiceResponse
        elapsed_ms: Milliseconds from stimulus to response
        time_offset_ms: Input-modality allowance subtracted from elapsed_ms
            before the tier check (keypad lookup time on level 2)

    Returns:
        ValidationResult, always carrying the correct answer

    Raises:
        InvalidLevel: If level is outside 1-5
        InvalidHeading: If the stimulus is not a valid heading
    """
    _check_level(level)
    answer = get_correct_answer(stimulus, level)

    if not _is_correct(level, stimulus, response, answer):
        return ValidationResult(is_correct=False, tier=FeedbackState.RED, correct_answer=answer)

    effective_ms = max(0, elapsed_ms - time_offset_ms)
    if effective_ms > LEVEL_TIME_LIMITS_MS[level]:
        return ValidationResult(
            is_correct=True,
            tier=FeedbackState.AMBER,
            correct_answer=answer,
            feedback=TOO_SLOW,
        )

    return ValidationResult(is_correct=True, tier=FeedbackState.GREEN, correct_answer=answer)
