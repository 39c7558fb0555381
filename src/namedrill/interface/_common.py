"""Helpers shared by the CLI command modules."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer

from namedrill.application.config import AppConfig, resolve_config
from namedrill.domain.errors import (
    BackupFormatError,
    DeckNotFoundError,
    EmptyCollectionError,
    InsufficientItemsError,
    NameDrillError,
    PersonNotFoundError,
)
from namedrill.domain.models import Deck, Person

logger = logging.getLogger(__name__)


def _resolve_with_overrides(ctx: typer.Context | None = None, **kwargs: Any) -> AppConfig:
    """Resolve config with global options from the root callback plus command overrides."""
    overrides: dict[str, Any] = {}
    if ctx is not None and isinstance(ctx.obj, dict):
        overrides.update(ctx.obj.get("overrides", {}))
    overrides.update(kwargs)
    return resolve_config(overrides)


def humanize_error(e: Exception) -> str:
    """Turn a domain error into a message a person can act on."""
    if isinstance(e, InsufficientItemsError):
        return (
            f"This mode needs at least {e.required} people and the deck has {e.available}. "
            "Add more people to unlock it."
        )
    if isinstance(e, EmptyCollectionError):
        return "This deck has no people yet. Add some with 'namedrill person add'."
    if isinstance(e, DeckNotFoundError):
        return f"No deck matches '{e.deck_id}'. Run 'namedrill deck list' to see your decks."
    if isinstance(e, PersonNotFoundError):
        return f"No person matches '{e.person_id}' in this deck."
    if isinstance(e, BackupFormatError):
        return f"Could not read deck data: {e}"
    return str(e)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Report recoverable errors in red and exit with status 1."""
    try:
        yield
    except (NameDrillError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(1) from e


def find_person(deck: Deck, ref: str) -> Person:
    """Find a person by id, or by case-insensitive name."""
    person = deck.find_person(ref)
    if person is not None:
        return person

    matches = [p for p in deck.people if p.name.lower() == ref.strip().lower()]
    if len(matches) > 1:
        raise ValueError(f"Several people are named '{ref}'; use the person id instead")
    if not matches:
        raise PersonNotFoundError(deck.id, ref)
    return matches[0]
