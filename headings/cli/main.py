"""
Headings CLI - reference lookups and simulated training runs.

Usage:
    headings reciprocal 04        # Reciprocal, direction and wedge
    headings table                # Full 36-heading reference table
    headings sequence             # Master unlock order and learning stages
    headings simulate --engine deck --persona steady
"""

from __future__ import annotations

import random
import sys
from typing import Annotated, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from headings.config import get_settings
from headings.core.compass import HEADING_PACKETS, MASTER_SEQUENCE
from headings.core.exceptions import HeadingsError
from headings.core.reciprocal import direction, reciprocal, reciprocal_with_ones, wedge_id
from headings.core.validator import FeedbackState
from headings.delivery.engines import STAGES, stage_headings, stage_sets_label
from headings.study.simulation import ENGINES, PERSONAS, run_simulation

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="headings",
    help="Reciprocal heading trainer - reference lookups and scheduler simulations",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

TIER_STYLES = {
    FeedbackState.GREEN: "green",
    FeedbackState.AMBER: "yellow",
    FeedbackState.RED: "red",
}


# =============================================================================
# Commands
# =============================================================================


@app.command("reciprocal")
def reciprocal_command(
    heading: Annotated[str, typer.Argument(help="2-digit heading (01-36) or 3-digit precision heading")],
) -> None:
    """Show the reciprocal and compass direction of a heading."""
    try:
        answer = reciprocal_with_ones(heading) if len(heading) == 3 else reciprocal(heading)
        compass = direction(heading)
        wedge = wedge_id(heading)
    except HeadingsError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e

    console.print(
        Panel(
            f"[bold]{heading}[/bold] -> [bold cyan]{answer}[/bold cyan]\n"
            f"Direction: {compass.value}  (wedge {wedge})",
            title="Reciprocal",
            expand=False,
        )
    )


@app.command("table")
def table_command() -> None:
    """Print the 36-heading reference table."""
    table = Table(title="Compass Reference")
    table.add_column("Heading", justify="center")
    table.add_column("Reciprocal", justify="center", style="cyan")
    table.add_column("Direction")
    table.add_column("Wedge", justify="right")

    for packet in HEADING_PACKETS.values():
        table.add_row(packet.id, packet.reciprocal, packet.direction.value, str(packet.wedge_id))

    console.print(table)


@app.command("sequence")
def sequence_command() -> None:
    """Print the master unlock order and the learning stages."""
    order = Table(title="Master Order")
    order.add_column("#", justify="right", style="dim")
    order.add_column("Heading", justify="center")
    order.add_column("Direction")
    for i, heading in enumerate(MASTER_SEQUENCE, start=1):
        order.add_row(str(i), heading, direction(heading).value)
    console.print(order)

    stages = Table(title="Learning Stages")
    stages.add_column("Stage", justify="right")
    stages.add_column("Sets")
    stages.add_column("Headings")
    for stage in range(1, len(STAGES) + 1):
        headings = stage_headings(stage)
        stages.add_row(str(stage), stage_sets_label(stage), f"{len(headings)}")
    console.print(stages)


@app.command("simulate")
def simulate_command(
    engine: Annotated[str, typer.Option("--engine", "-e", help="snowball or deck")] = "snowball",
    persona: Annotated[str, typer.Option("--persona", "-p", help="ace, steady or struggler")] = "ace",
    level: Annotated[int, typer.Option("--level", "-l", min=1, max=5, help="Training level")] = 1,
    max_turns: Annotated[Optional[int], typer.Option("--max-turns", help="Turn cap")] = None,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
) -> None:
    """Run a simulated learner through a training session."""
    if engine not in ENGINES:
        console.print(f"[red]Unknown engine: {engine}[/red] (choose from {', '.join(ENGINES)})")
        raise typer.Exit(code=1)
    if persona not in PERSONAS:
        console.print(f"[red]Unknown persona: {persona}[/red] (choose from {', '.join(PERSONAS)})")
        raise typer.Exit(code=1)

    settings = get_settings()
    seed = seed if seed is not None else settings.random_seed
    rng = random.Random(seed)

    report = run_simulation(
        engine=engine,
        persona=persona,
        level=level,
        max_turns=max_turns or settings.simulation_max_turns,
        rng=rng,
    )

    table = Table(title=f"Simulation: {persona} on {engine} (level {level})")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Turns", str(report.turns))
    table.add_row("Completed", "yes" if report.completed else "no")
    table.add_row("Unlocked", f"{report.unlocked}/36")
    table.add_row("Mastered", str(report.mastered))
    table.add_row("Accuracy", f"{report.accuracy:.0%}")
    for tier, style in TIER_STYLES.items():
        table.add_row(f"[{style}]{tier.value}[/{style}]", str(report.tiers[tier]))
    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
