# Domain Package
from .models import AttemptResult, Deck, MemoryUpdate, Person, SessionOutcome, StudyMode
from .ports import DeckStore

__all__ = [
    "AttemptResult",
    "Deck",
    "DeckStore",
    "MemoryUpdate",
    "Person",
    "SessionOutcome",
    "StudyMode",
]
