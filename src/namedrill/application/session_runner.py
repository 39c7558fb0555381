"""
Asyncio driver for timed session transitions.

Arms the per-answer auto-advance delay and the speed-mode 1 Hz countdown
on the running event loop. There is at most one pending advance at a time,
and quitting or completing cancels every outstanding handle. A callback that
still fires re-checks the session before touching it.
"""

import asyncio
import logging
from collections.abc import Callable

from namedrill.application.session import Attempt, Phase, StudySession
from namedrill.application.utils.common import now_ms
from namedrill.domain.models import StudyMode

logger = logging.getLogger(__name__)


class SessionRunner:
    def __init__(
        self,
        session: StudySession,
        clock: Callable[[], int] = now_ms,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.session = session
        self._clock = clock
        self._loop = loop
        self._advance_handle: asyncio.TimerHandle | None = None
        self._tick_handle: asyncio.TimerHandle | None = None
        self._closed: asyncio.Future | None = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def has_pending_advance(self) -> bool:
        return self._advance_handle is not None

    def start(self) -> None:
        """Begin the session; speed mode starts its countdown here."""
        self._closed = self.loop.create_future()
        if self.session.mode is StudyMode.SPEED:
            self._arm_tick()

    # ---------- User actions ----------

    def reveal(self) -> None:
        self.session.reveal(self._clock())

    def grade(self, correct: bool) -> Attempt:
        attempt = self.session.grade(correct, self._clock())
        self._settle()
        return attempt

    def choose(self, person_id: str) -> Attempt:
        attempt = self.session.choose(person_id, self._clock())
        self._arm_advance(attempt.delay_ms)
        return attempt

    def submit(self, guess: str) -> Attempt:
        attempt = self.session.submit(guess, self._clock())
        self._arm_advance(attempt.delay_ms)
        return attempt

    def quit(self) -> None:
        self.session.quit()
        self._settle()

    async def wait_closed(self) -> Phase:
        """Wait until the session completes or is abandoned; returns the final phase."""
        if self._closed is None:
            raise RuntimeError("SessionRunner.start() has not been called")
        return await self._closed

    # ---------- Timers ----------

    def _arm_advance(self, delay_ms: int) -> None:
        self._cancel_advance()
        self._advance_handle = self.loop.call_later(delay_ms / 1000, self._on_advance)

    def _arm_tick(self) -> None:
        self._tick_handle = self.loop.call_later(
            self.session.timings.tick_ms / 1000, self._on_tick
        )

    def _on_advance(self) -> None:
        self._advance_handle = None
        if self.session.state.phase not in (Phase.SCORING, Phase.RESULT):
            logger.debug("[runner] stale advance ignored")
            return
        self.session.advance(self._clock())
        self._settle()

    def _on_tick(self) -> None:
        self._tick_handle = None
        if not self.session.is_active:
            return
        self.session.tick(self._clock())
        if self.session.is_active:
            self._arm_tick()
        else:
            self._settle()

    def _cancel_advance(self) -> None:
        if self._advance_handle is not None:
            self._advance_handle.cancel()
            self._advance_handle = None

    def _cancel_all(self) -> None:
        self._cancel_advance()
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    def _settle(self) -> None:
        """Tear down timers once the session has ended."""
        if self.session.is_active:
            return
        self._cancel_all()
        if self._closed is not None and not self._closed.done():
            self._closed.set_result(self.session.state.phase)
