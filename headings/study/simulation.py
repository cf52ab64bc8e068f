"""
Simulated learner runs.

Drives a TrainingSession with synthetic personas instead of a UI:
- ace: always correct, fast (300-700ms)
- steady: mostly correct, moderate pace
- struggler: frequent misses and slow answers

This is an in-memory simulation (no UI/storage) used by the CLI and the
simulation tests to exercise schedulers end to end.
"""

from __future__ import annotations

import random
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from headings.core.compass import TIMEOUT_WEDGE
from headings.core.reciprocal import direction, reciprocal, wedge_id
from headings.core.validator import (
    FeedbackState,
    Response,
    VoiceResponse,
    get_correct_answer,
)
from headings.delivery.deck import DeckEngine
from headings.delivery.session import TrainingSession
from headings.delivery.snowball import SnowballScheduler
from headings.study.progress import ProgressTracker


@dataclass
class Persona:
    name: str
    accuracy: float
    time_range_ms: tuple[int, int]


PERSONAS: dict[str, Persona] = {
    "ace": Persona("ace", accuracy=1.0, time_range_ms=(300, 700)),
    "steady": Persona("steady", accuracy=0.9, time_range_ms=(600, 1400)),
    "struggler": Persona("struggler", accuracy=0.65, time_range_ms=(900, 2600)),
}

ENGINES: dict[str, Callable[[random.Random], object]] = {
    "snowball": lambda rng: SnowballScheduler(rng=rng),
    "deck": lambda rng: DeckEngine(rng=rng),
}


def correct_response(level: int, stimulus: str) -> Response:
    """The response a perfect learner gives at a level."""
    if level == 1:
        return wedge_id(stimulus)
    answer = get_correct_answer(stimulus, level)
    if level == 2:
        return answer.reciprocal
    return VoiceResponse(number=answer.reciprocal, direction=answer.direction)


def wrong_response(level: int, stimulus: str) -> Response:
    """A typical mistake: wrong wedge, or answering with the stimulus itself."""
    if level == 1:
        return (wedge_id(stimulus) + 1) % 8
    if level == 2:
        return stimulus
    # right number, opposite-side direction
    answer = get_correct_answer(stimulus, level)
    return VoiceResponse(number=answer.reciprocal, direction=direction(reciprocal(stimulus[:2])))


@dataclass
class SimulationReport:
    engine: str
    persona: str
    level: int
    turns: int = 0
    completed: bool = False
    tiers: Counter = field(default_factory=Counter)
    total_time_ms: int = 0
    unlocked: int = 0
    mastered: int = 0

    @property
    def accuracy(self) -> float:
        if not self.turns:
            return 0.0
        return 1 - self.tiers[FeedbackState.RED] / self.turns


def run_simulation(
    engine: str = "snowball",
    persona: str = "ace",
    level: int = 1,
    max_turns: int = 20000,
    rng: random.Random | None = None,
    progress: ProgressTracker | None = None,
) -> SimulationReport:
    """
    Run a persona through a session until the scheduler completes.

    Args:
        engine: "snowball" or "deck"
        persona: Key of PERSONAS
        level: Training level 1-5
        max_turns: Turn cap
        rng: Shared random source (drives scheduler and persona)
        progress: Optional tracker receiving every result
    """
    rng = rng or random.Random()
    profile = PERSONAS[persona]
    scheduler = ENGINES[engine](rng)
    session = TrainingSession(scheduler, level, rng=rng, progress=progress)
    report = SimulationReport(engine=engine, persona=persona, level=level)

    for _ in range(max_turns):
        stimulus = session.get_next_heading()
        elapsed = rng.randint(*profile.time_range_ms)
        if rng.random() < profile.accuracy:
            response = correct_response(level, stimulus)
        elif level == 1 and rng.random() < 0.2:
            response = TIMEOUT_WEDGE
        else:
            response = wrong_response(level, stimulus)

        result = session.submit_response(response, elapsed_ms=elapsed)
        report.turns += 1
        report.tiers[result.tier] += 1
        report.total_time_ms += elapsed

        if session.is_complete():
            report.completed = True
            break

    if isinstance(scheduler, SnowballScheduler):
        report.unlocked = scheduler.active_size
        report.mastered = scheduler.stable_count
    else:
        report.unlocked = scheduler.unlocked_count
        report.mastered = scheduler.mastered_count

    logger.info(
        f"Simulated {persona} on {engine} L{level}: {report.turns} turns, "
        f"{report.unlocked} unlocked, completed={report.completed}"
    )
    return report
