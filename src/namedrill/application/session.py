"""
Study session state machine.

A StudySession walks a SessionPlan one person at a time. Its state is a
frozen SessionState value that is replaced on every transition, so the
transition table can be tested without any rendering or timers:

    flash:          presenting --reveal--> revealed --grade--> presenting(i+1) | complete
    choice/reverse: presenting --choose--> scoring  --advance--> presenting(i+1) | complete
    speed:          presenting --submit--> result   --advance--> presenting(i+1)
                    tick() counts down once per second and forces complete at zero.

Timed holds (scoring/result) are not realized here: each answer reports the
delay the caller should wait before calling advance().
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from namedrill.application.queue_builder import SessionPlan
from namedrill.application.scheduler import quality_for
from namedrill.application.utils.text import is_typed_answer_correct
from namedrill.domain.constants import (
    CHOICE_CORRECT_DELAY_MS,
    CHOICE_WRONG_DELAY_MS,
    SPEED_CORRECT_DELAY_MS,
    SPEED_DURATION_S,
    SPEED_WRONG_DELAY_MS,
    TICK_INTERVAL_MS,
)
from namedrill.domain.errors import EmptyCollectionError, InvalidTransitionError
from namedrill.domain.models import AttemptResult, Person, SessionOutcome, StudyMode

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    PRESENTING = "presenting"
    REVEALED = "revealed"  # flash card flipped
    SCORING = "scoring"  # choice answer shown, waiting to advance
    RESULT = "result"  # speed answer shown, waiting to advance
    COMPLETE = "complete"
    ABANDONED = "abandoned"


ACTIVE_PHASES = frozenset({Phase.PRESENTING, Phase.REVEALED, Phase.SCORING, Phase.RESULT})


@dataclass(frozen=True)
class SessionTimings:
    """Pacing of timed transitions. Defaults match the web app."""

    choice_correct_ms: int = CHOICE_CORRECT_DELAY_MS
    choice_wrong_ms: int = CHOICE_WRONG_DELAY_MS
    speed_correct_ms: int = SPEED_CORRECT_DELAY_MS
    speed_wrong_ms: int = SPEED_WRONG_DELAY_MS
    speed_duration_s: int = SPEED_DURATION_S
    tick_ms: int = TICK_INTERVAL_MS

    def delay_for(self, mode: StudyMode, correct: bool) -> int:
        if mode.is_choice:
            return self.choice_correct_ms if correct else self.choice_wrong_ms
        if mode is StudyMode.SPEED:
            return self.speed_correct_ms if correct else self.speed_wrong_ms
        return 0


@dataclass(frozen=True)
class SessionState:
    mode: StudyMode
    phase: Phase = Phase.PRESENTING
    index: int = 0
    results: tuple[AttemptResult, ...] = ()
    selected_id: str | None = None
    last_correct: bool | None = None
    time_left_s: int | None = None  # Speed mode only
    started_at: int = 0
    item_started_at: int = 0
    outcome: SessionOutcome | None = None

    @property
    def is_active(self) -> bool:
        return self.phase in ACTIVE_PHASES

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def correct(self) -> int:
        return sum(1 for r in self.results if r.correct)


@dataclass(frozen=True)
class Attempt:
    """What one answer did: who was asked, whether it was right, how long to hold."""

    person: Person
    correct: bool
    quality: int
    delay_ms: int


AttemptCallback = Callable[[Person, bool], None]
CompleteCallback = Callable[[SessionOutcome], None]


class StudySession:
    """
    Controller owning the state of one study session.

    on_attempt is called for every answer (the caller records it with the
    scheduler); on_complete is called exactly once when the session
    completes. Quitting never produces an outcome.
    """

    def __init__(
        self,
        plan: SessionPlan,
        started_at: int,
        timings: SessionTimings | None = None,
        on_attempt: AttemptCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ):
        if not plan.queue:
            raise EmptyCollectionError()

        self.plan = plan
        self.timings = timings or SessionTimings()
        self._on_attempt = on_attempt
        self._on_complete = on_complete
        self.state = SessionState(
            mode=plan.mode,
            time_left_s=self.timings.speed_duration_s if plan.mode is StudyMode.SPEED else None,
            started_at=started_at,
            item_started_at=started_at,
        )

    @property
    def mode(self) -> StudyMode:
        return self.plan.mode

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    @property
    def outcome(self) -> SessionOutcome | None:
        return self.state.outcome

    def current(self) -> Person:
        return self.plan.person_at(self.state.index)

    def choices(self) -> list[Person]:
        return self.plan.choices_at(self.state.index)

    def progress(self) -> float:
        """Fraction of the session done, 0.0-1.0."""
        if self.mode is StudyMode.SPEED:
            duration = self.timings.speed_duration_s
            return (duration - (self.state.time_left_s or 0)) / duration
        return self.state.index / len(self.plan)

    # ---------- Transitions ----------

    def reveal(self, now: int) -> None:
        """Flip the flash card to show the name."""
        self._require("reveal", Phase.PRESENTING, modes=(StudyMode.FLASH,))
        self.state = replace(self.state, phase=Phase.REVEALED)

    def grade(self, correct: bool, now: int) -> Attempt:
        """Self-grade a revealed flash card ("Again" / "Got it") and move on."""
        self._require("grade", Phase.REVEALED, modes=(StudyMode.FLASH,))
        attempt = self._record(correct, now)
        self._next(now)
        return attempt

    def choose(self, person_id: str, now: int) -> Attempt:
        """Pick one of the offered choices. Enters scoring until advance()."""
        self._require("choose", Phase.PRESENTING, modes=(StudyMode.CHOICE, StudyMode.REVERSE))
        offered = self.choices()
        if offered and person_id not in {p.id for p in offered}:
            raise ValueError(f"{person_id} is not one of the offered choices")
        correct = person_id == self.current().id
        attempt = self._record(correct, now)
        self.state = replace(self.state, phase=Phase.SCORING, selected_id=person_id)
        return attempt

    def submit(self, guess: str, now: int) -> Attempt:
        """Submit a typed name in speed mode. Enters result until advance()."""
        self._require("submit", Phase.PRESENTING, modes=(StudyMode.SPEED,))
        correct = is_typed_answer_correct(guess, self.current().name)
        attempt = self._record(correct, now)
        self.state = replace(self.state, phase=Phase.RESULT)
        return attempt

    def advance(self, now: int) -> None:
        """End the scoring/result hold and present the next person (or complete)."""
        self._require("advance", Phase.SCORING, Phase.RESULT)
        self._next(now)

    def tick(self, now: int) -> None:
        """One countdown second in speed mode; completes the session at zero."""
        self._require("tick", *ACTIVE_PHASES, modes=(StudyMode.SPEED,))
        time_left = (self.state.time_left_s or 0) - 1
        self.state = replace(self.state, time_left_s=max(0, time_left))
        if time_left <= 0:
            self._complete(now)

    def catch_up(self, now: int) -> None:
        """Apply every countdown tick due by `now` (for callers without a timer)."""
        if self.mode is not StudyMode.SPEED:
            return
        elapsed_ticks = (now - self.state.started_at) // self.timings.tick_ms
        target = max(0, self.timings.speed_duration_s - elapsed_ticks)
        while self.is_active and (self.state.time_left_s or 0) > target:
            self.tick(now)

    def quit(self) -> None:
        """Abandon the session. No outcome is produced. Quitting twice is a no-op."""
        if not self.is_active:
            return
        logger.debug(f"[session] quit at index={self.state.index} phase={self.state.phase.value}")
        self.state = replace(self.state, phase=Phase.ABANDONED)

    # ---------- Internals ----------

    def _require(self, action: str, *phases: Phase, modes: tuple[StudyMode, ...] | None = None):
        if modes is not None and self.mode not in modes:
            raise InvalidTransitionError(f"Cannot {action} in {self.mode.value} mode")
        if self.state.phase not in phases:
            raise InvalidTransitionError(
                f"Cannot {action} while {self.state.phase.value} ({self.mode.value} mode)"
            )

    def _record(self, correct: bool, now: int) -> Attempt:
        person = self.current()
        if self._on_attempt:
            self._on_attempt(person, correct)

        result = AttemptResult(
            person_id=person.id,
            correct=correct,
            time_ms=now - self.state.item_started_at,
        )
        self.state = replace(
            self.state,
            results=(*self.state.results, result),
            last_correct=correct,
        )
        return Attempt(
            person=person,
            correct=correct,
            quality=quality_for(correct),
            delay_ms=self.timings.delay_for(self.mode, correct),
        )

    def _next(self, now: int) -> None:
        next_index = self.state.index + 1
        if self.mode is not StudyMode.SPEED and next_index >= len(self.plan):
            self._complete(now)
            return

        self.state = replace(
            self.state,
            phase=Phase.PRESENTING,
            index=next_index,
            selected_id=None,
            last_correct=None,
            item_started_at=now,
        )

    def _complete(self, now: int) -> None:
        if self.mode is StudyMode.SPEED:
            time_ms = self.timings.speed_duration_s * 1000
        else:
            time_ms = now - self.state.started_at

        outcome = SessionOutcome(
            total=self.state.total,
            correct=self.state.correct,
            time_ms=time_ms,
            mode=self.mode,
        )
        self.state = replace(self.state, phase=Phase.COMPLETE, outcome=outcome)
        logger.info(
            f"[session] {self.mode.value} complete: {outcome.correct}/{outcome.total} "
            f"in {outcome.time_ms} ms"
        )

        if self._on_complete:
            self._on_complete(outcome)
