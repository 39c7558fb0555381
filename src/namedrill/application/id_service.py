"""Service for generating stable NameDrill IDs."""

from ulid import ULID


def generate_id(prefix: str) -> str:
    """Generate a sortable, unique ID using ULID, e.g. 'deck_01J...'."""
    return f"{prefix}_{ULID()}"


def generate_deck_id() -> str:
    return generate_id("deck")


def generate_person_id() -> str:
    return generate_id("person")
