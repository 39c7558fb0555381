"""Exception hierarchy for NameDrill.

Every failure raised by the core is local and recoverable by the caller.
"""


class NameDrillError(Exception):
    """Base class for all NameDrill errors."""


class QueueBuildError(NameDrillError):
    """A session plan could not be built for the requested deck and mode."""


class EmptyCollectionError(QueueBuildError):
    def __init__(self, message: str = "Deck has no people to study."):
        super().__init__(message)


class InsufficientItemsError(QueueBuildError):
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient items: need at least {required} people, deck has {available}."
        )


class InvalidTransitionError(NameDrillError):
    """A session action was attempted in a phase that does not allow it."""


class DeckNotFoundError(NameDrillError):
    def __init__(self, deck_id: str):
        self.deck_id = deck_id
        super().__init__(f"Deck not found: {deck_id}")


class PersonNotFoundError(NameDrillError):
    def __init__(self, deck_id: str, person_id: str):
        self.deck_id = deck_id
        self.person_id = person_id
        super().__init__(f"Person {person_id} not found in deck {deck_id}")


class BackupFormatError(NameDrillError):
    """A deck file or backup could not be parsed."""
