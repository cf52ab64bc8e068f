"""
Core Module - compass reference data, reciprocal arithmetic, validation.

Components:
- compass: static heading/wedge tables and the master unlock order
- reciprocal: reciprocal, precision reciprocal, direction and wedge lookups
- validator: per-level correctness and timing-tier judgment
- exceptions: input validation errors
"""

from headings.core.compass import (
    ALL_HEADINGS,
    GRID_PAIRS,
    HEADING_PACKETS,
    MASTER_SEQUENCE,
    TIMEOUT_WEDGE,
    WEDGE_DEFINITIONS,
    CompassDirection,
    HeadingPacket,
    WedgeDefinition,
)
from headings.core.exceptions import HeadingsError, InvalidFormat, InvalidHeading, InvalidLevel
from headings.core.reciprocal import (
    base_heading,
    direction,
    reciprocal,
    reciprocal_with_ones,
    wedge_id,
)
from headings.core.validator import (
    LEVEL_TIME_LIMITS_MS,
    CorrectAnswer,
    FeedbackState,
    ValidationResult,
    VoiceResponse,
    get_correct_answer,
    time_limit_for_level,
    validate_response,
)

__all__ = [
    # Reference data
    "ALL_HEADINGS",
    "GRID_PAIRS",
    "HEADING_PACKETS",
    "MASTER_SEQUENCE",
    "TIMEOUT_WEDGE",
    "WEDGE_DEFINITIONS",
    "CompassDirection",
    "HeadingPacket",
    "WedgeDefinition",
    # Errors
    "HeadingsError",
    "InvalidFormat",
    "InvalidHeading",
    "InvalidLevel",
    # Arithmetic
    "base_heading",
    "direction",
    "reciprocal",
    "reciprocal_with_ones",
    "wedge_id",
    # Validation
    "LEVEL_TIME_LIMITS_MS",
    "CorrectAnswer",
    "FeedbackState",
    "ValidationResult",
    "VoiceResponse",
    "get_correct_answer",
    "time_limit_for_level",
    "validate_response",
]
