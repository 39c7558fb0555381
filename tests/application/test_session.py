"""Transition tables of the study session state machine."""

import random
from unittest.mock import MagicMock

import pytest

from namedrill.application.queue_builder import SessionPlan, build_session_plan
from namedrill.application.session import Phase, SessionTimings, StudySession
from namedrill.domain.errors import EmptyCollectionError, InvalidTransitionError
from namedrill.domain.models import StudyMode


@pytest.fixture
def people(make_person):
    return [
        make_person("John Smith"),
        make_person("Ada Lovelace"),
        make_person("Grace Hopper"),
        make_person("Alan Turing"),
        make_person("Edsger Dijkstra"),
    ]


def _session(people, mode, now, **kwargs):
    plan = build_session_plan(people, mode, now, random.Random(3))
    return StudySession(plan, started_at=now, **kwargs)


def _wrong_choice(session):
    return next(p for p in session.choices() if p.id != session.current().id)


def test_empty_plan_rejected(now):
    with pytest.raises(EmptyCollectionError):
        StudySession(SessionPlan(mode=StudyMode.FLASH, queue=[]), started_at=now)


class TestFlash:
    def test_reveal_then_grade_walks_the_queue(self, people, now):
        on_attempt = MagicMock()
        on_complete = MagicMock()
        session = _session(
            people, StudyMode.FLASH, now, on_attempt=on_attempt, on_complete=on_complete
        )

        for i in range(len(people)):
            assert session.state.phase is Phase.PRESENTING
            assert session.state.index == i
            session.reveal(now)
            assert session.state.phase is Phase.REVEALED
            attempt = session.grade(i % 2 == 0, now + 1000 * (i + 1))
            assert attempt.delay_ms == 0

        assert session.state.phase is Phase.COMPLETE
        assert on_attempt.call_count == 5
        on_complete.assert_called_once_with(session.outcome)
        assert session.outcome.total == 5
        assert session.outcome.correct == 3
        assert session.outcome.time_ms == 5000

    def test_quality_reported_per_grade(self, people, now):
        session = _session(people, StudyMode.FLASH, now)

        session.reveal(now)
        assert session.grade(True, now).quality == 4
        session.reveal(now)
        assert session.grade(False, now).quality == 1

    def test_grade_before_reveal_is_rejected(self, people, now):
        session = _session(people, StudyMode.FLASH, now)
        with pytest.raises(InvalidTransitionError):
            session.grade(True, now)

    def test_choose_not_allowed_in_flash(self, people, now):
        session = _session(people, StudyMode.FLASH, now)
        with pytest.raises(InvalidTransitionError, match="flash mode"):
            session.choose(people[0].id, now)

    def test_progress(self, people, now):
        session = _session(people, StudyMode.FLASH, now)
        session.reveal(now)
        session.grade(True, now)
        assert session.progress() == pytest.approx(0.2)


@pytest.mark.parametrize("mode", [StudyMode.CHOICE, StudyMode.REVERSE])
class TestChoice:
    def test_correct_answer_holds_500ms(self, people, now, mode):
        session = _session(people, mode, now)
        person = session.current()

        attempt = session.choose(person.id, now)

        assert attempt.correct
        assert attempt.delay_ms == 500
        assert session.state.phase is Phase.SCORING
        assert session.state.selected_id == person.id
        assert session.state.last_correct is True

    def test_wrong_answer_holds_1500ms(self, people, now, mode):
        session = _session(people, mode, now)

        attempt = session.choose(_wrong_choice(session).id, now)

        assert not attempt.correct
        assert attempt.delay_ms == 1500

    def test_choice_outside_offered_options_rejected(self, people, now, mode):
        session = _session(people, mode, now)
        offered = {p.id for p in session.choices()}
        stranger = next(p for p in people if p.id not in offered)

        with pytest.raises(ValueError, match="not one of the offered choices"):
            session.choose(stranger.id, now)

        assert session.state.phase is Phase.PRESENTING
        assert session.state.results == ()

    def test_second_choice_while_scoring_rejected(self, people, now, mode):
        session = _session(people, mode, now)
        session.choose(session.current().id, now)

        with pytest.raises(InvalidTransitionError):
            session.choose(session.current().id, now)

    def test_advance_moves_to_next_and_clears_selection(self, people, now, mode):
        session = _session(people, mode, now)
        session.choose(session.current().id, now)

        session.advance(now + 500)

        assert session.state.phase is Phase.PRESENTING
        assert session.state.index == 1
        assert session.state.selected_id is None
        assert session.state.item_started_at == now + 500

    def test_advance_without_answer_rejected(self, people, now, mode):
        session = _session(people, mode, now)
        with pytest.raises(InvalidTransitionError):
            session.advance(now)

    def test_last_advance_completes(self, people, now, mode):
        on_complete = MagicMock()
        session = _session(people, mode, now, on_complete=on_complete)

        for i in range(len(people)):
            session.choose(session.current().id, now + i * 100)
            session.advance(now + i * 100 + 50)

        assert session.state.phase is Phase.COMPLETE
        assert session.outcome.correct == 5
        assert session.outcome.mode is mode
        on_complete.assert_called_once()


class TestSpeed:
    @pytest.fixture
    def session(self, people, now):
        return _session(people, StudyMode.SPEED, now)

    def test_starts_with_full_countdown(self, session):
        assert session.state.time_left_s == 60
        assert session.progress() == 0

    def test_prefix_answer_is_correct(self, session, now):
        name = session.current().name

        attempt = session.submit(name[:2].upper(), now)

        assert attempt.correct
        assert attempt.delay_ms == 300
        assert session.state.phase is Phase.RESULT

    def test_single_letter_is_wrong(self, session, now):
        attempt = session.submit(session.current().name[0], now)

        assert not attempt.correct
        assert attempt.delay_ms == 800

    def test_queue_wraps_after_last_person(self, session, people, now):
        first = session.current()
        for _ in range(len(people)):
            session.submit("nobody", now)
            session.advance(now)

        assert session.state.index == len(people)
        assert session.current() is first
        assert session.is_active

    def test_countdown_completes_session(self, session, now):
        session.submit(session.current().name, now)
        for _ in range(60):
            session.tick(now)

        assert session.state.phase is Phase.COMPLETE
        assert session.state.time_left_s == 0
        assert session.outcome.time_ms == 60_000
        assert session.outcome.total == 1
        assert session.outcome.correct == 1

    def test_advance_after_timeout_rejected(self, session, now):
        session.submit("x", now)
        for _ in range(60):
            session.tick(now)

        with pytest.raises(InvalidTransitionError):
            session.advance(now)

    def test_catch_up_applies_elapsed_ticks(self, session, now):
        session.catch_up(now + 2500)
        assert session.state.time_left_s == 58

        session.catch_up(now + 2500)
        assert session.state.time_left_s == 58

        session.catch_up(now + 61_000)
        assert session.state.phase is Phase.COMPLETE

    def test_tick_only_in_speed(self, people, now):
        session = _session(people, StudyMode.FLASH, now)
        with pytest.raises(InvalidTransitionError):
            session.tick(now)

    def test_custom_timings(self, people, now):
        timings = SessionTimings(speed_duration_s=2, speed_correct_ms=10)
        session = _session(people, StudyMode.SPEED, now, timings=timings)

        assert session.submit(session.current().name, now).delay_ms == 10
        session.tick(now)
        session.tick(now)
        assert session.outcome.time_ms == 2000


class TestQuit:
    def test_quit_abandons_without_outcome(self, people, now):
        on_complete = MagicMock()
        session = _session(people, StudyMode.CHOICE, now, on_complete=on_complete)
        session.choose(session.current().id, now)

        session.quit()

        assert session.state.phase is Phase.ABANDONED
        assert session.outcome is None
        on_complete.assert_not_called()

    def test_quit_twice_is_noop(self, people, now):
        session = _session(people, StudyMode.FLASH, now)
        session.quit()
        session.quit()
        assert session.state.phase is Phase.ABANDONED

    def test_no_transitions_after_quit(self, people, now):
        session = _session(people, StudyMode.SPEED, now)
        session.quit()

        with pytest.raises(InvalidTransitionError):
            session.submit("x", now)
        with pytest.raises(InvalidTransitionError):
            session.tick(now)

    def test_quit_after_complete_keeps_outcome(self, make_person, now):
        plan = SessionPlan(mode=StudyMode.FLASH, queue=[make_person()])
        session = StudySession(plan, started_at=now)
        session.reveal(now)
        session.grade(True, now)

        session.quit()

        assert session.state.phase is Phase.COMPLETE
        assert session.outcome is not None
