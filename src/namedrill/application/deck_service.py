"""
Deck Service: application layer orchestrator.

Coordinates the deck store, the SM-2 scheduler and the queue builder. The
scheduler and queue builder stay pure; this service reads snapshots from
the store, computes, and writes partial updates back.
"""

import logging
import random
from collections.abc import Callable, Iterable
from pathlib import Path

from namedrill.application.id_service import generate_deck_id, generate_person_id
from namedrill.application.queue_builder import SessionPlan, build_session_plan
from namedrill.application.scheduler import quality_for, review
from namedrill.application.session import SessionTimings, StudySession
from namedrill.application.utils.common import now_ms
from namedrill.application.utils.text import name_from_photo_path
from namedrill.domain.constants import (
    DEFAULT_CHOICE_COUNT,
    DEFAULT_DECK_EMOJI,
    DEFAULT_QUEUE_LIMIT,
)
from namedrill.domain.errors import DeckNotFoundError, PersonNotFoundError
from namedrill.domain.models import Deck, MemoryUpdate, Person, SessionOutcome, StudyMode
from namedrill.domain.ports import DeckStore
from namedrill.infrastructure.records import dump_decks, load_decks

logger = logging.getLogger(__name__)


def create_person(name: str, photo: str, now: int, notes: str | None = None) -> Person:
    """A new person, due immediately, with the initial SM-2 state."""
    return Person(
        id=generate_person_id(),
        name=name,
        photo=photo,
        notes=notes or None,
        next_review=now,
    )


class DeckService:
    """
    Application service for managing decks and running study sessions.

    Follows Dependency Inversion: depends on the DeckStore abstraction and
    takes its clock and random source as parameters.
    """

    def __init__(
        self,
        store: DeckStore,
        clock: Callable[[], int] = now_ms,
        rng: random.Random | None = None,
        queue_limit: int = DEFAULT_QUEUE_LIMIT,
        choice_count: int = DEFAULT_CHOICE_COUNT,
        timings: SessionTimings | None = None,
    ):
        self._store = store
        self._clock = clock
        self._rng = rng or random.Random()
        self.queue_limit = queue_limit
        self.choice_count = choice_count
        self.timings = timings or SessionTimings()

    @property
    def store(self) -> DeckStore:
        return self._store

    # ---------- Decks ----------

    def list_decks(self) -> list[Deck]:
        return self._store.list_decks()

    def get_deck(self, deck_id: str) -> Deck:
        return self._store.get_deck(deck_id)

    def find_deck(self, ref: str) -> Deck:
        """Look a deck up by id, or by case-insensitive name."""
        decks = self._store.list_decks()
        for deck in decks:
            if deck.id == ref:
                return deck
        matches = [d for d in decks if d.name.lower() == ref.strip().lower()]
        if len(matches) > 1:
            raise ValueError(f"Several decks are named '{ref}'; use the deck id instead")
        if not matches:
            raise DeckNotFoundError(ref)
        return matches[0]

    def create_deck(self, name: str, emoji: str = DEFAULT_DECK_EMOJI) -> Deck:
        name = name.strip()
        if not name:
            raise ValueError("Deck name cannot be empty")

        deck = Deck(id=generate_deck_id(), name=name, emoji=emoji, created_at=self._clock())
        self._store.add_deck(deck)
        logger.info(f"Created deck '{name}' ({deck.id})")
        return deck

    def update_deck(self, deck_id: str, name: str | None = None, emoji: str | None = None) -> Deck:
        fields: dict[str, str] = {}
        if name is not None:
            if not name.strip():
                raise ValueError("Deck name cannot be empty")
            fields["name"] = name.strip()
        if emoji is not None:
            fields["emoji"] = emoji
        return self._store.update_deck(deck_id, fields)

    def delete_deck(self, deck_id: str) -> None:
        self._store.delete_deck(deck_id)
        logger.info(f"Deleted deck {deck_id}")

    # ---------- People ----------

    def add_person(
        self, deck_id: str, name: str, photo: str, notes: str | None = None
    ) -> Person:
        name = name.strip()
        if not name:
            raise ValueError("Name cannot be empty")

        person = create_person(name, photo, self._clock(), notes.strip() if notes else None)
        self._store.add_person(deck_id, person)
        return person

    def add_people_from_photos(self, deck_id: str, paths: Iterable[Path]) -> list[Person]:
        """Batch add: one person per photo, named after its file name."""
        added = []
        for path in paths:
            name = name_from_photo_path(path)
            if not name:
                logger.warning(f"Skipping {path}: no usable name in file name")
                continue
            added.append(self.add_person(deck_id, name, str(path)))
        return added

    def update_person(
        self,
        deck_id: str,
        person_id: str,
        name: str | None = None,
        photo: str | None = None,
        notes: str | None = None,
    ) -> Person:
        fields = {
            k: v for k, v in {"name": name, "photo": photo, "notes": notes}.items() if v is not None
        }
        return self._store.update_person(deck_id, person_id, fields)

    def delete_person(self, deck_id: str, person_id: str) -> None:
        self._store.delete_person(deck_id, person_id)

    # ---------- Studying ----------

    def plan_session(
        self, deck_id: str, mode: StudyMode, rng: random.Random | None = None
    ) -> SessionPlan:
        deck = self._store.get_deck(deck_id)
        return build_session_plan(
            deck.people,
            mode,
            self._clock(),
            rng or self._rng,
            queue_limit=self.queue_limit,
            choice_count=self.choice_count,
        )

    def start_session(
        self, deck_id: str, mode: StudyMode, rng: random.Random | None = None
    ) -> StudySession:
        """
        Build a plan and wrap it in a StudySession whose answers are
        recorded with the scheduler and whose completion stamps the deck.
        """
        plan = self.plan_session(deck_id, mode, rng=rng)
        logger.info(f"Starting {mode.value} session on {deck_id} with {len(plan)} people")

        return StudySession(
            plan,
            started_at=self._clock(),
            timings=self.timings,
            on_attempt=lambda person, correct: self.record_answer(deck_id, person.id, correct),
            on_complete=lambda outcome: self.finish_session(deck_id, outcome),
        )

    def record_answer(self, deck_id: str, person_id: str, correct: bool) -> MemoryUpdate:
        """Apply one pass/fail answer to a person's stored memory state."""
        deck = self._store.get_deck(deck_id)
        person = deck.find_person(person_id)
        if person is None:
            raise PersonNotFoundError(deck_id, person_id)

        update = review(person, quality_for(correct), self._clock())
        self._store.update_person(deck_id, person_id, update.as_fields())
        logger.debug(
            f"[review] {person.name}: correct={correct} interval={update.interval} "
            f"ease={update.ease_factor:.2f}"
        )
        return update

    def finish_session(self, deck_id: str, outcome: SessionOutcome) -> Deck:
        return self._store.update_deck(deck_id, {"last_studied": self._clock()})

    # ---------- Backup ----------

    def export_data(self) -> str:
        return dump_decks(self._store.list_decks())

    def import_data(self, text: str) -> int:
        """
        Replace every deck with the contents of a backup.

        Raises:
            BackupFormatError: If the backup is malformed (nothing is changed).
        """
        decks = load_decks(text)
        self._store.replace_all(decks)
        logger.info(f"Imported {len(decks)} deck(s)")
        return len(decks)
