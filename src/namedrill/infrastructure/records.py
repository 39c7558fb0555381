"""
Serialized deck records.

The on-disk layout is the camelCase JSON array written by the NameDrill web
app's backup export, so backups move freely between the two.
"""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from namedrill.domain.constants import DEFAULT_DECK_EMOJI, INITIAL_EASE_FACTOR, MIN_EASE_FACTOR
from namedrill.domain.errors import BackupFormatError
from namedrill.domain.models import Deck, Person


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PersonRecord(_Record):
    id: str
    name: str
    photo: str
    notes: str | None = None
    interval: int = Field(default=0, ge=0)
    ease_factor: float = Field(default=INITIAL_EASE_FACTOR, ge=MIN_EASE_FACTOR)
    repetitions: int = Field(default=0, ge=0)
    next_review: int = 0
    last_reviewed: int | None = None
    correct_count: int = Field(default=0, ge=0)
    total_count: int = Field(default=0, ge=0)

    @classmethod
    def from_domain(cls, person: Person) -> "PersonRecord":
        return cls(
            id=person.id,
            name=person.name,
            photo=person.photo,
            notes=person.notes,
            interval=person.interval,
            ease_factor=person.ease_factor,
            repetitions=person.repetitions,
            next_review=person.next_review,
            last_reviewed=person.last_reviewed,
            correct_count=person.correct_count,
            total_count=person.total_count,
        )

    def to_domain(self) -> Person:
        return Person(**self.model_dump())


class DeckRecord(_Record):
    id: str
    name: str
    emoji: str = DEFAULT_DECK_EMOJI
    created_at: int
    last_studied: int | None = None
    people: list[PersonRecord] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, deck: Deck) -> "DeckRecord":
        return cls(
            id=deck.id,
            name=deck.name,
            emoji=deck.emoji,
            created_at=deck.created_at,
            last_studied=deck.last_studied,
            people=[PersonRecord.from_domain(p) for p in deck.people],
        )

    def to_domain(self) -> Deck:
        return Deck(
            id=self.id,
            name=self.name,
            emoji=self.emoji,
            created_at=self.created_at,
            last_studied=self.last_studied,
            people=[p.to_domain() for p in self.people],
        )


_decks_adapter = TypeAdapter(list[DeckRecord])


def dump_decks(decks: list[Deck]) -> str:
    records = [DeckRecord.from_domain(d) for d in decks]
    return _decks_adapter.dump_json(records, by_alias=True, indent=2).decode("utf-8")


def load_decks(text: str) -> list[Deck]:
    """
    Parse a backup/deck file.

    Raises:
        BackupFormatError: Not JSON, not an array of decks, or invalid fields.
    """
    try:
        records = _decks_adapter.validate_json(text)
    except ValidationError as e:
        raise BackupFormatError(f"Invalid deck data: {e.error_count()} error(s)\n{e}") from e
    return [r.to_domain() for r in records]
