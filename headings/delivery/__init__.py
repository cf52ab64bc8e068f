"""
Delivery: heading schedulers and training engines.

Components:
- SnowballScheduler: stability-gated unlock with weighted-random draw
- DeckEngine: latency-banded review queue (master order or custom sequence)
- TrialEngine / MasteryChallengeEngine / StageEngine: single-pass variants
- TrainingSession: validator + scheduler coordinator with sandwich retry
"""

from .deck import DeckEngine, DeckState, HeadingReport, RecordOutcome
from .engines import (
    SETS,
    STAGES,
    ChallengeOutcome,
    HeadingResult,
    MasteryChallengeEngine,
    StageEngine,
    TrainingGrade,
    TrialEngine,
    grade_response,
    hpm_score,
    stage_headings,
)
from .session import HeadingScheduler, SandwichPhase, TrainingSession
from .snowball import QueueItem, SnowballScheduler, SnowballState

__all__ = [
    # Snowball
    "SnowballScheduler",
    "SnowballState",
    "QueueItem",
    # Deck
    "DeckEngine",
    "DeckState",
    "RecordOutcome",
    "HeadingReport",
    # Single-pass engines
    "TrialEngine",
    "MasteryChallengeEngine",
    "StageEngine",
    "ChallengeOutcome",
    "HeadingResult",
    "TrainingGrade",
    "grade_response",
    "hpm_score",
    "stage_headings",
    "SETS",
    "STAGES",
    # Session
    "TrainingSession",
    "SandwichPhase",
    "HeadingScheduler",
]
