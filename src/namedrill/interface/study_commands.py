"""Interactive terminal study sessions.

The terminal drives a StudySession synchronously: scoring holds are
realized with a plain sleep and the speed-mode countdown is caught up
against the clock before and after every answer.
"""

import logging
import random
import time
from collections.abc import Callable
from typing import Annotated

import typer

from namedrill.application.factory import get_deck_service
from namedrill.application.session import Attempt, Phase, StudySession
from namedrill.application.stats import MetricsCalculator
from namedrill.application.utils.common import now_ms
from namedrill.domain.models import StudyMode
from namedrill.interface._common import _resolve_with_overrides, cli_errors

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
Sleep = Callable[[float], None]


def study(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck name or id.")],
    mode: Annotated[
        StudyMode,
        typer.Option(
            "--mode",
            "-m",
            case_sensitive=False,
            help="flash: reveal the name. choice: pick the name. "
            "reverse: pick the face. speed: type names for 60 seconds.",
        ),
    ] = StudyMode.FLASH,
    seed: Annotated[
        int | None, typer.Option(help="Seed the shuffle for a reproducible session.")
    ] = None,
):
    """[bold green]Study[/bold green] a deck. Ctrl-C quits without finishing."""
    config = _resolve_with_overrides(ctx)
    service = get_deck_service(config)
    rng = random.Random(seed) if seed is not None else None

    with cli_errors():
        found = service.find_deck(deck)
        session = service.start_session(found.id, mode, rng=rng)

        try:
            run_session(session)
        except (typer.Abort, KeyboardInterrupt):
            session.quit()

    if session.outcome is None:
        typer.secho("\nSession abandoned.", fg="yellow")
        return

    summary = MetricsCalculator().summarize_session(session.outcome, service.get_deck(found.id))
    typer.echo("")
    typer.secho("Session complete!", bold=True)
    typer.echo(summary.headline)
    typer.echo(
        f"Accuracy: {summary.accuracy_percent}%  Correct: {summary.correct}/{summary.total}  "
        f"Time: {summary.time_label}"
    )
    typer.echo(f"Deck mastery: {summary.deck_mastery_percent}%")


def run_session(
    session: StudySession, clock: Clock = now_ms, sleep: Sleep | None = None
) -> None:
    """Play a session in the terminal until it completes or the user quits."""
    sleep = sleep or time.sleep
    if session.mode is StudyMode.FLASH:
        _run_flash(session, clock)
    elif session.mode.is_choice:
        _run_choice(session, clock, sleep)
    else:
        _run_speed(session, clock, sleep)


def _header(session: StudySession) -> None:
    state = session.state
    typer.echo("")
    typer.secho(f"[{state.index + 1}/{len(session.plan)}]", dim=True)


def _feedback(attempt: Attempt) -> None:
    if attempt.correct:
        typer.secho("Correct!", fg="green")
    else:
        typer.secho(f"Nope, that was {attempt.person.name}.", fg="red")


def _run_flash(session: StudySession, clock: Clock) -> None:
    while session.is_active:
        person = session.current()
        _header(session)
        typer.echo(f"Photo: {person.photo}")

        answer = typer.prompt(
            "Who is this? [Enter to reveal, q to quit]", default="", show_default=False
        )
        if answer.strip().lower() == "q":
            session.quit()
            return

        session.reveal(clock())
        typer.secho(person.name, bold=True)
        if person.notes:
            typer.echo(person.notes)

        got_it = typer.confirm("Got it?", default=True)
        session.grade(got_it, clock())


def _run_choice(session: StudySession, clock: Clock, sleep: Sleep) -> None:
    while session.is_active:
        person = session.current()
        choices = session.choices()
        _header(session)

        if session.mode is StudyMode.CHOICE:
            typer.echo(f"Photo: {person.photo}")
            typer.echo("Who is this?")
            labels = [c.name for c in choices]
        else:
            typer.secho(person.name, bold=True)
            typer.echo("Which face?")
            labels = [c.photo for c in choices]

        for i, label in enumerate(labels, start=1):
            typer.echo(f"  {i}. {label}")

        raw = typer.prompt(f"Choice [1-{len(choices)}, q to quit]")
        if raw.strip().lower() == "q":
            session.quit()
            return
        try:
            picked = int(raw)
        except ValueError:
            picked = 0
        if not 1 <= picked <= len(choices):
            typer.secho(f"Pick a number between 1 and {len(choices)}.", fg="yellow")
            continue

        attempt = session.choose(choices[picked - 1].id, clock())
        _feedback(attempt)
        sleep(attempt.delay_ms / 1000)
        session.advance(clock())


def _run_speed(session: StudySession, clock: Clock, sleep: Sleep) -> None:
    duration = session.timings.speed_duration_s
    typer.secho(f"Type as many names as you can in {duration}s!", bold=True)

    while True:
        session.catch_up(clock())
        if not session.is_active:
            break

        state = session.state
        person = session.current()
        typer.echo("")
        typer.secho(f"[{state.time_left_s}s] {state.correct}/{state.total}", dim=True)
        typer.echo(f"Photo: {person.photo}")
        guess = typer.prompt("Name", default="", show_default=False)

        session.catch_up(clock())
        if not session.is_active:
            typer.secho("Too late!", fg="yellow")
            break

        attempt = session.submit(guess, clock())
        _feedback(attempt)
        sleep(attempt.delay_ms / 1000)

        session.catch_up(clock())
        if session.state.phase is Phase.RESULT:
            session.advance(clock())

    typer.secho("Time's up!", bold=True)
