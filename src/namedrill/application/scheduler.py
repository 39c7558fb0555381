"""
SM-2 review scheduler.

Given a person's memory state and a recall quality, computes the next
interval, ease factor and due time. This is a pure computation module:
"now" is always passed in and the input person is never mutated.
"""

import math
from collections.abc import Iterable

from namedrill.domain.constants import (
    FIRST_INTERVAL,
    MASTERY_INTERVAL,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    MS_PER_DAY,
    PASS_THRESHOLD,
    QUALITY_FAIL,
    QUALITY_PASS,
    SECOND_INTERVAL,
)
from namedrill.domain.models import MemoryUpdate, Person


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (round() is banker's rounding)."""
    return math.floor(value + 0.5)


def clamp_quality(quality: int) -> int:
    return max(MIN_QUALITY, min(MAX_QUALITY, int(quality)))


def quality_for(correct: bool) -> int:
    """Collapse a pass/fail answer into the two qualities the study modes use."""
    return QUALITY_PASS if correct else QUALITY_FAIL


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """
    SM-2 ease update.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3.
    Applied on both success and failure.
    """
    miss = MAX_QUALITY - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def review(person: Person, quality: int, now: int) -> MemoryUpdate:
    """
    Compute the memory update for one answer.

    Args:
        person: Current memory state (not mutated).
        quality: Recall strength 0-5; out-of-range values are clamped.
        now: Current time in epoch milliseconds.

    Returns:
        A complete MemoryUpdate for the caller to persist.
    """
    quality = clamp_quality(quality)
    interval = person.interval
    repetitions = person.repetitions
    passed = quality >= PASS_THRESHOLD

    if passed:
        if repetitions == 0:
            interval = FIRST_INTERVAL
        elif repetitions == 1:
            interval = SECOND_INTERVAL
        else:
            interval = round_half_up(interval * person.ease_factor)
        repetitions += 1
    else:
        repetitions = 0
        interval = 0

    return MemoryUpdate(
        interval=interval,
        ease_factor=next_ease_factor(person.ease_factor, quality),
        repetitions=repetitions,
        next_review=now + interval * MS_PER_DAY,
        last_reviewed=now,
        correct_count=person.correct_count + (1 if passed else 0),
        total_count=person.total_count + 1,
    )


def is_due(person: Person, now: int) -> bool:
    return person.next_review <= now


def is_mastered(person: Person) -> bool:
    return person.interval >= MASTERY_INTERVAL


def due_count(people: Iterable[Person], now: int) -> int:
    return sum(1 for p in people if is_due(p, now))


def mastered_count(people: Iterable[Person]) -> int:
    return sum(1 for p in people if is_mastered(p))


def mastery_percent(people: list[Person]) -> int:
    """Share of mastered people as a whole percentage (0 for an empty deck)."""
    if not people:
        return 0
    return round_half_up(100 * mastered_count(people) / len(people))
