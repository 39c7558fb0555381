"""
Queue builder for study sessions.

Builds session plans by:
1. Selecting due people (or the whole deck when nothing is due)
2. Shuffling with an injected random source and capping the queue
3. Drawing shuffled distractor sets for the multiple-choice modes
"""

import logging
import random
from dataclasses import dataclass, field
from typing import TypeVar

from namedrill.application.scheduler import is_due
from namedrill.domain.constants import (
    DEFAULT_CHOICE_COUNT,
    DEFAULT_QUEUE_LIMIT,
    MIN_STUDY_SIZE,
)
from namedrill.domain.errors import EmptyCollectionError, InsufficientItemsError
from namedrill.domain.models import Person, StudyMode

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SessionPlan:
    """Result of queue building."""

    mode: StudyMode
    queue: list[Person]  # Presentation order
    # Option sets per queue position, choice modes only
    choices: list[list[Person]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.queue)

    def person_at(self, index: int) -> Person:
        """Person shown at a session index. Speed mode wraps around the queue."""
        if self.mode is StudyMode.SPEED:
            return self.queue[index % len(self.queue)]
        return self.queue[index]

    def choices_at(self, index: int) -> list[Person]:
        if not self.choices:
            return []
        return self.choices[index]


def shuffle(items: list[T], rng: random.Random) -> list[T]:
    """Return a shuffled copy; the input list is left untouched."""
    shuffled = list(items)
    rng.shuffle(shuffled)
    return shuffled


def build_queue(
    people: list[Person],
    mode: StudyMode,
    now: int,
    rng: random.Random,
    queue_limit: int = DEFAULT_QUEUE_LIMIT,
    choice_count: int = DEFAULT_CHOICE_COUNT,
) -> list[Person]:
    """
    Select and order the people to present in a session.

    Args:
        people: Every person in the deck.
        mode: Study mode.
        now: Current time in epoch ms, used for due selection.
        rng: Random source for shuffling.
        queue_limit: Maximum queue length for non-speed modes (default: 20)
        choice_count: Options per question in choice modes (default: 4)

    Returns:
        The ordered queue. Speed mode returns the whole deck shuffled.

    Raises:
        EmptyCollectionError: The deck has no people.
        InsufficientItemsError: A choice mode needs more people than the deck has.
    """
    if not people:
        raise EmptyCollectionError()

    if mode.is_choice and len(people) < choice_count:
        raise InsufficientItemsError(required=choice_count, available=len(people))

    if mode is StudyMode.SPEED:
        return shuffle(people, rng)

    due = [p for p in people if is_due(p, now)]
    pool = due if due else people
    logger.debug(f"[queue] mode={mode.value} due={len(due)} pool={len(pool)}")

    return shuffle(pool, rng)[:queue_limit]


def build_choices(
    correct: Person,
    people: list[Person],
    rng: random.Random,
    count: int = DEFAULT_CHOICE_COUNT,
) -> list[Person]:
    """
    Build a shuffled option set: the correct person plus count - 1 distractors.

    Distractors are drawn without replacement from the rest of the deck.
    """
    others = [p for p in people if p.id != correct.id]
    if len(others) < count - 1:
        raise InsufficientItemsError(required=count, available=len(others) + 1)

    distractors = rng.sample(others, count - 1)
    return shuffle([correct, *distractors], rng)


def build_session_plan(
    people: list[Person],
    mode: StudyMode,
    now: int,
    rng: random.Random,
    queue_limit: int = DEFAULT_QUEUE_LIMIT,
    choice_count: int = DEFAULT_CHOICE_COUNT,
) -> SessionPlan:
    """Build the queue and, for choice modes, the option set of every position."""
    queue = build_queue(
        people,
        mode,
        now,
        rng,
        queue_limit=queue_limit,
        choice_count=choice_count,
    )

    choices: list[list[Person]] = []
    if mode.is_choice:
        choices = [build_choices(person, people, rng, count=choice_count) for person in queue]

    return SessionPlan(mode=mode, queue=queue, choices=choices)


def available_modes(
    people: list[Person],
    choice_count: int = DEFAULT_CHOICE_COUNT,
) -> list[StudyMode]:
    """
    Modes a deck of this size can be studied in.

    Studying needs at least two people; the choice modes need choice_count.
    """
    if len(people) < MIN_STUDY_SIZE:
        return []

    return [
        mode
        for mode in StudyMode
        if not mode.is_choice or len(people) >= choice_count
    ]
