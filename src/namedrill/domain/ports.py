"""
Ports (interfaces) for deck persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any

from .models import Deck, Person


class DeckStore(ABC):
    """
    Port for reading and writing decks.

    The core never touches storage itself: it receives snapshots from the
    store and hands back partial-field updates for the caller to apply.

    Implementations:
        - JsonDeckStore: A single JSON file in the web app backup layout.
    """

    @abstractmethod
    def list_decks(self) -> list[Deck]:
        """Return a snapshot of every deck, in creation order."""
        pass

    @abstractmethod
    def get_deck(self, deck_id: str) -> Deck:
        """
        Return a snapshot of one deck.

        Raises:
            DeckNotFoundError: If no deck has the given id.
        """
        pass

    @abstractmethod
    def add_deck(self, deck: Deck) -> None:
        pass

    @abstractmethod
    def update_deck(self, deck_id: str, fields: dict[str, Any]) -> Deck:
        """
        Apply a partial update (e.g. {"last_studied": now}) to a deck.

        Returns:
            The updated deck snapshot.
        """
        pass

    @abstractmethod
    def delete_deck(self, deck_id: str) -> None:
        pass

    @abstractmethod
    def add_person(self, deck_id: str, person: Person) -> None:
        pass

    @abstractmethod
    def update_person(self, deck_id: str, person_id: str, fields: dict[str, Any]) -> Person:
        """
        Apply a partial update to one person.

        Raises:
            DeckNotFoundError: If the deck does not exist.
            PersonNotFoundError: If the person is not in the deck.
        """
        pass

    @abstractmethod
    def delete_person(self, deck_id: str, person_id: str) -> None:
        pass

    @abstractmethod
    def replace_all(self, decks: list[Deck]) -> None:
        """Replace the whole collection of decks (used by backup import)."""
        pass
