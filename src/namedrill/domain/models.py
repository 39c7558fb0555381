"""
Domain models for decks, people and study sessions.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .constants import INITIAL_EASE_FACTOR


class StudyMode(str, Enum):
    """
    The four ways a deck can be drilled.

    FLASH shows a photo and reveals the name; CHOICE shows a photo with
    name options; REVERSE shows a name with photo options; SPEED asks for
    the typed name against a countdown.
    """

    FLASH = "flash"
    CHOICE = "choice"
    REVERSE = "reverse"
    SPEED = "speed"

    @property
    def is_choice(self) -> bool:
        return self in (StudyMode.CHOICE, StudyMode.REVERSE)


@dataclass(frozen=True)
class MemoryUpdate:
    """
    Memory fields produced by one scheduler review.

    Attributes:
        interval: Days until the next review (0 after a failure).
        ease_factor: Interval growth rate, never below 1.3.
        repetitions: Consecutive successful recalls.
        next_review: Epoch ms when the person becomes due again.
        last_reviewed: Epoch ms of this answer.
        correct_count: Lifetime correct answers.
        total_count: Lifetime answers.
    """

    interval: int
    ease_factor: float
    repetitions: int
    next_review: int
    last_reviewed: int
    correct_count: int
    total_count: int

    def as_fields(self) -> dict[str, Any]:
        return {
            "interval": self.interval,
            "ease_factor": self.ease_factor,
            "repetitions": self.repetitions,
            "next_review": self.next_review,
            "last_reviewed": self.last_reviewed,
            "correct_count": self.correct_count,
            "total_count": self.total_count,
        }


@dataclass
class Person:
    """
    A learnable face/name pair and its SM-2 memory state.

    The memory fields are only ever changed through MemoryUpdate values
    computed by the scheduler.
    """

    id: str
    name: str
    photo: str  # Opaque image reference (path or data URL)
    notes: str | None = None

    # SM-2 memory state
    interval: int = 0
    ease_factor: float = INITIAL_EASE_FACTOR
    repetitions: int = 0
    next_review: int = 0
    last_reviewed: int | None = None

    # Lifetime counters
    correct_count: int = 0
    total_count: int = 0

    def apply(self, update: MemoryUpdate) -> "Person":
        """Return a copy of this person with the update applied."""
        return replace(self, **update.as_fields())


@dataclass
class Deck:
    """A named group of people, kept in insertion order."""

    id: str
    name: str
    emoji: str
    created_at: int
    last_studied: int | None = None
    people: list[Person] = field(default_factory=list)

    def find_person(self, person_id: str) -> Person | None:
        for person in self.people:
            if person.id == person_id:
                return person
        return None


@dataclass(frozen=True)
class AttemptResult:
    """A single answered item within a session."""

    person_id: str
    correct: bool
    time_ms: int


@dataclass(frozen=True)
class SessionOutcome:
    """
    Aggregate of one completed session.

    Only used to stamp the deck's last_studied time; never persisted.
    """

    total: int
    correct: int
    time_ms: int
    mode: StudyMode
