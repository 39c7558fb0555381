"""
JSON Deck Store: infrastructure adapter for a local deck file.

Implements DeckStore on top of a single UTF-8 JSON file. The file is read
on every call and rewritten atomically on every change.
"""

import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Any

from namedrill.domain.errors import DeckNotFoundError, PersonNotFoundError
from namedrill.domain.models import Deck, Person
from namedrill.domain.ports import DeckStore
from namedrill.infrastructure.records import dump_decks, load_decks

logger = logging.getLogger(__name__)

_READONLY_FIELDS = {"id", "people"}


class JsonDeckStore(DeckStore):
    def __init__(self, path: Path):
        self.path = Path(path)

    # ---------- Decks ----------

    def list_decks(self) -> list[Deck]:
        return self._load()

    def get_deck(self, deck_id: str) -> Deck:
        decks = self._load()
        return decks[self._deck_index(decks, deck_id)]

    def add_deck(self, deck: Deck) -> None:
        decks = self._load()
        decks.append(deck)
        self._save(decks)

    def update_deck(self, deck_id: str, fields: dict[str, Any]) -> Deck:
        _check_fields(fields)
        decks = self._load()
        idx = self._deck_index(decks, deck_id)
        decks[idx] = replace(decks[idx], **fields)
        self._save(decks)
        return decks[idx]

    def delete_deck(self, deck_id: str) -> None:
        decks = self._load()
        idx = self._deck_index(decks, deck_id)
        del decks[idx]
        self._save(decks)

    # ---------- People ----------

    def add_person(self, deck_id: str, person: Person) -> None:
        decks = self._load()
        deck = decks[self._deck_index(decks, deck_id)]
        deck.people.append(person)
        self._save(decks)

    def update_person(self, deck_id: str, person_id: str, fields: dict[str, Any]) -> Person:
        _check_fields(fields)
        decks = self._load()
        deck = decks[self._deck_index(decks, deck_id)]
        idx = self._person_index(deck, person_id)
        deck.people[idx] = replace(deck.people[idx], **fields)
        self._save(decks)
        return deck.people[idx]

    def delete_person(self, deck_id: str, person_id: str) -> None:
        decks = self._load()
        deck = decks[self._deck_index(decks, deck_id)]
        del deck.people[self._person_index(deck, person_id)]
        self._save(decks)

    def replace_all(self, decks: list[Deck]) -> None:
        self._save(decks)

    # ---------- File I/O ----------

    def _load(self) -> list[Deck]:
        if not self.path.exists():
            return []
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return []
        return load_decks(text)

    def _save(self, decks: list[Deck]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = dump_decks(decks)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"[store] Wrote {len(decks)} deck(s) to {self.path}")

    @staticmethod
    def _deck_index(decks: list[Deck], deck_id: str) -> int:
        for i, deck in enumerate(decks):
            if deck.id == deck_id:
                return i
        raise DeckNotFoundError(deck_id)

    @staticmethod
    def _person_index(deck: Deck, person_id: str) -> int:
        for i, person in enumerate(deck.people):
            if person.id == person_id:
                return i
        raise PersonNotFoundError(deck.id, person_id)


def _check_fields(fields: dict[str, Any]) -> None:
    blocked = _READONLY_FIELDS & fields.keys()
    if blocked:
        raise ValueError(f"Fields cannot be updated: {sorted(blocked)}")
