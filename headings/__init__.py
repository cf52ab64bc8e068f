"""
Reciprocal Headings: adaptive trainer for aviation reciprocal-heading recall.

Given a compass heading (01-36), the learner answers with its reciprocal
and/or compass direction under a time limit. This package holds the
scheduling core: what to present next, how to judge the answer, and how
the outcome reshapes future presentation.
"""

from headings.core import (
    MASTER_SEQUENCE,
    CompassDirection,
    FeedbackState,
    InvalidFormat,
    InvalidHeading,
    InvalidLevel,
    ValidationResult,
    VoiceResponse,
    direction,
    reciprocal,
    reciprocal_with_ones,
    validate_response,
    wedge_id,
)
from headings.delivery import (
    DeckEngine,
    MasteryChallengeEngine,
    SnowballScheduler,
    TrainingSession,
    TrialEngine,
)

__version__ = "1.0.0"

__all__ = [
    "MASTER_SEQUENCE",
    "CompassDirection",
    "FeedbackState",
    "InvalidFormat",
    "InvalidHeading",
    "InvalidLevel",
    "ValidationResult",
    "VoiceResponse",
    "direction",
    "reciprocal",
    "reciprocal_with_ones",
    "validate_response",
    "wedge_id",
    "DeckEngine",
    "MasteryChallengeEngine",
    "SnowballScheduler",
    "TrainingSession",
    "TrialEngine",
]
