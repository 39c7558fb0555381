"""Deck and person management commands."""

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from namedrill.application.factory import get_deck_service
from namedrill.application.queue_builder import available_modes
from namedrill.application.scheduler import is_due, is_mastered
from namedrill.application.stats import MetricsCalculator
from namedrill.application.utils.common import now_ms
from namedrill.domain.constants import DEFAULT_DECK_EMOJI
from namedrill.interface._common import _resolve_with_overrides, cli_errors, find_person

PHOTO_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp"}

deck_app = typer.Typer(help="Create, inspect and delete decks.", no_args_is_help=True)
person_app = typer.Typer(help="Add and remove people in a deck.", no_args_is_help=True)


def _format_ts(ts: int | None) -> str:
    if ts is None:
        return "never"
    return datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d %H:%M")


# ---------------------------------------------------------------------------
# Decks
# ---------------------------------------------------------------------------


@deck_app.command("create")
def create(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Deck name.")],
    emoji: Annotated[
        str, typer.Option(help="Icon shown next to the deck.")
    ] = DEFAULT_DECK_EMOJI,
):
    """Create an empty deck."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    with cli_errors():
        deck = service.create_deck(name, emoji)
    typer.secho(f"Created {deck.emoji} {deck.name} ({deck.id})", fg="green")


@deck_app.command("list")
def list_decks(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List decks with their due count and mastery."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    calc = MetricsCalculator()
    now = now_ms()

    with cli_errors():
        summaries = [calc.summarize_deck(d, now) for d in service.list_decks()]

    if json_output:
        typer.echo(json.dumps([asdict(s) for s in summaries], indent=2, ensure_ascii=False))
        return

    if not summaries:
        typer.secho("No decks yet. Create one with 'namedrill deck create NAME'.", fg="yellow")
        return

    for s in summaries:
        noun = "person" if s.people_count == 1 else "people"
        typer.echo(
            f"{s.emoji} {s.name}  [{s.deck_id}]\n"
            f"    {s.people_count} {noun}  due: {s.due_count}  mastery: {s.mastery_percent}%"
        )


@deck_app.command("show")
def show(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck name or id.")],
):
    """Show a deck's progress and its people."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    now = now_ms()

    with cli_errors():
        found = service.find_deck(deck)

    summary = MetricsCalculator().summarize_deck(found, now)
    typer.secho(f"{found.emoji} {found.name}", bold=True)
    typer.echo(
        f"Created: {_format_ts(found.created_at)}  "
        f"Last studied: {_format_ts(found.last_studied)}"
    )
    typer.echo(
        f"People: {summary.people_count}  Due: {summary.due_count}  "
        f"Mastery: {summary.mastery_percent}% ({summary.mastered_count} of {summary.people_count})"
    )

    modes = available_modes(found.people, choice_count=service.choice_count)
    if modes:
        typer.echo(f"Modes: {', '.join(m.value for m in modes)}")
    else:
        typer.secho("Add at least 2 people to start studying.", fg="yellow")

    for p in found.people:
        flags = []
        if is_due(p, now):
            flags.append("due")
        if is_mastered(p):
            flags.append("mastered")
        suffix = f"  ({', '.join(flags)})" if flags else ""
        typer.echo(f"  - {p.name}  [{p.id}] {p.correct_count}/{p.total_count}{suffix}")


@deck_app.command("rename")
def rename(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck name or id.")],
    name: Annotated[str | None, typer.Option(help="New name.")] = None,
    emoji: Annotated[str | None, typer.Option(help="New icon.")] = None,
):
    """Rename a deck or change its icon."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    with cli_errors():
        found = service.find_deck(deck)
        updated = service.update_deck(found.id, name=name, emoji=emoji)
    typer.secho(f"Updated {updated.emoji} {updated.name}", fg="green")


@deck_app.command("delete")
def delete(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck name or id.")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation.")] = False,
):
    """Delete a deck and everyone in it."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    with cli_errors():
        found = service.find_deck(deck)
        if not force:
            typer.confirm(f'Delete "{found.name}"?', abort=True)
        service.delete_deck(found.id)
    typer.secho(f"Deleted {found.name}", fg="green")


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


@person_app.command("add")
def add(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck name or id.")],
    name: Annotated[str, typer.Argument(help="The person's name.")],
    photo: Annotated[str, typer.Option(help="Photo path or data URL.")],
    notes: Annotated[str | None, typer.Option(help="Optional memory hook.")] = None,
):
    """Add one person to a deck."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    with cli_errors():
        found = service.find_deck(deck)
        person = service.add_person(found.id, name, photo, notes)
    typer.secho(f"Added {person.name} to {found.name}", fg="green")


@person_app.command("import-photos")
def import_photos(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck name or id.")],
    paths: Annotated[
        list[Path], typer.Argument(help="Photo files or directories. Names come from file names.")
    ],
):
    """Batch add people from photos: 'jane_doe.jpg' becomes 'jane doe'."""
    service = get_deck_service(_resolve_with_overrides(ctx))

    photos: list[Path] = []
    for path in paths:
        if path.is_dir():
            photos.extend(
                sorted(p for p in path.iterdir() if p.suffix.lower() in PHOTO_SUFFIXES)
            )
        else:
            photos.append(path)

    with cli_errors():
        found = service.find_deck(deck)
        added = service.add_people_from_photos(found.id, photos)

    typer.secho(f"Added {len(added)} people to {found.name}", fg="green")
    for p in added:
        typer.echo(f"  - {p.name}")


@person_app.command("remove")
def remove(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck name or id.")],
    person: Annotated[str, typer.Argument(help="Person name or id.")],
):
    """Remove a person from a deck."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    with cli_errors():
        found = service.find_deck(deck)
        target = find_person(found, person)
        service.delete_person(found.id, target.id)
    typer.secho(f"Removed {target.name} from {found.name}", fg="green")
