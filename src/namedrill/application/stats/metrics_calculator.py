"""
Metrics calculator for deck and session summaries.

This is a pure computation module with no I/O.
"""

from dataclasses import dataclass

from namedrill.application.scheduler import (
    due_count,
    mastered_count,
    mastery_percent,
    round_half_up,
)
from namedrill.domain.constants import ACCURACY_BANDS, ACCURACY_FALLBACK
from namedrill.domain.models import Deck, SessionOutcome, StudyMode


@dataclass
class DeckSummary:
    """
    Deck progress as shown on the dashboard.
    """

    deck_id: str
    name: str
    emoji: str
    people_count: int
    due_count: int
    mastered_count: int
    mastery_percent: int
    last_studied: int | None


@dataclass
class SessionSummary:
    """
    Result screen figures for a completed session.
    """

    mode: StudyMode
    total: int
    correct: int
    accuracy_percent: int
    time_label: str  # e.g. "42s"
    headline: str
    deck_mastery_percent: int


class MetricsCalculator:
    """
    Computes summaries from decks and session outcomes.

    Stateless and side-effect free.
    """

    def summarize_deck(self, deck: Deck, now: int) -> DeckSummary:
        return DeckSummary(
            deck_id=deck.id,
            name=deck.name,
            emoji=deck.emoji,
            people_count=len(deck.people),
            due_count=due_count(deck.people, now),
            mastered_count=mastered_count(deck.people),
            mastery_percent=mastery_percent(deck.people),
            last_studied=deck.last_studied,
        )

    def summarize_session(self, outcome: SessionOutcome, deck: Deck) -> SessionSummary:
        accuracy = self._compute_accuracy(outcome)
        return SessionSummary(
            mode=outcome.mode,
            total=outcome.total,
            correct=outcome.correct,
            accuracy_percent=accuracy,
            time_label=f"{round_half_up(outcome.time_ms / 1000)}s",
            headline=self._headline(accuracy),
            deck_mastery_percent=mastery_percent(deck.people),
        )

    def _compute_accuracy(self, outcome: SessionOutcome) -> int:
        """
        Correct answers as a whole percentage; 0 when nothing was attempted.
        """
        if outcome.total == 0:
            return 0
        return round_half_up(100 * outcome.correct / outcome.total)

    def _headline(self, accuracy: int) -> str:
        for threshold, message in ACCURACY_BANDS:
            if accuracy >= threshold:
                return message
        return ACCURACY_FALLBACK
