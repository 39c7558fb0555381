import asyncio
import random

import pytest

from namedrill.application.queue_builder import build_session_plan
from namedrill.application.session import Phase, SessionTimings, StudySession
from namedrill.application.session_runner import SessionRunner
from namedrill.domain.models import StudyMode

FAST = SessionTimings(
    choice_correct_ms=10,
    choice_wrong_ms=20,
    speed_correct_ms=10,
    speed_wrong_ms=20,
    speed_duration_s=3,
    tick_ms=5,
)


@pytest.fixture
def people(make_person):
    return [make_person(f"Person {name}") for name in ("Ann", "Bob", "Cat", "Dan", "Eve")]


def _runner(people, mode, clock, timings=FAST, size=None):
    plan = build_session_plan(people[:size] if size else people, mode, clock(), random.Random(0))
    session = StudySession(plan, started_at=clock(), timings=timings)
    return SessionRunner(session, clock=clock)


@pytest.mark.asyncio
async def test_choice_auto_advances_after_delay(people, clock):
    runner = _runner(people, StudyMode.CHOICE, clock)
    runner.start()

    runner.choose(runner.session.current().id)
    assert runner.has_pending_advance
    assert runner.session.state.phase is Phase.SCORING

    await asyncio.sleep(0.1)

    assert runner.session.state.phase is Phase.PRESENTING
    assert runner.session.state.index == 1
    assert not runner.has_pending_advance


@pytest.mark.asyncio
async def test_quit_cancels_pending_advance(people, clock):
    runner = _runner(people, StudyMode.REVERSE, clock)
    runner.start()
    runner.choose(runner.session.current().id)

    runner.quit()
    await asyncio.sleep(0.05)

    assert runner.session.state.phase is Phase.ABANDONED
    assert runner.session.state.index == 0
    assert not runner.has_pending_advance
    assert await asyncio.wait_for(runner.wait_closed(), timeout=1) is Phase.ABANDONED


@pytest.mark.asyncio
async def test_choice_session_completes(people, clock):
    runner = _runner(people, StudyMode.CHOICE, clock)
    runner.start()

    for _ in range(len(people)):
        runner.choose(runner.session.current().id)
        await asyncio.sleep(0.05)

    assert await asyncio.wait_for(runner.wait_closed(), timeout=1) is Phase.COMPLETE
    assert runner.session.outcome.correct == len(people)


@pytest.mark.asyncio
async def test_flash_grade_completes_without_timers(people, clock):
    runner = _runner(people, StudyMode.FLASH, clock, size=2)
    runner.start()

    for _ in range(2):
        runner.reveal()
        runner.grade(True)

    assert runner.session.state.phase is Phase.COMPLETE
    assert await asyncio.wait_for(runner.wait_closed(), timeout=1) is Phase.COMPLETE


@pytest.mark.asyncio
async def test_speed_countdown_ends_session(people, clock):
    runner = _runner(people, StudyMode.SPEED, clock)
    runner.start()

    phase = await asyncio.wait_for(runner.wait_closed(), timeout=1)

    assert phase is Phase.COMPLETE
    assert runner.session.state.time_left_s == 0
    assert runner.session.outcome.time_ms == 3000


@pytest.mark.asyncio
async def test_countdown_during_result_hold_drops_the_advance(people, clock):
    timings = SessionTimings(speed_correct_ms=5000, speed_duration_s=1, tick_ms=5)
    runner = _runner(people, StudyMode.SPEED, clock, timings=timings)
    runner.start()

    runner.submit(runner.session.current().name)
    assert runner.has_pending_advance

    assert await asyncio.wait_for(runner.wait_closed(), timeout=1) is Phase.COMPLETE
    assert not runner.has_pending_advance
    assert runner.session.outcome.total == 1


@pytest.mark.asyncio
async def test_new_answer_replaces_pending_advance(people, clock):
    runner = _runner(people, StudyMode.SPEED, clock, timings=SessionTimings(speed_wrong_ms=5000))
    runner.start()
    runner.submit("zz")

    # Advance by hand; the armed callback must not advance a second time
    runner.session.advance(clock())
    runner.submit("zz")
    await asyncio.sleep(0.01)

    assert runner.session.state.index == 1
    runner.quit()


@pytest.mark.asyncio
async def test_wait_closed_requires_start(people, clock):
    runner = _runner(people, StudyMode.FLASH, clock)
    with pytest.raises(RuntimeError):
        await runner.wait_closed()
