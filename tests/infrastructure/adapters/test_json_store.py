import json

import pytest

from namedrill.domain.constants import DEFAULT_DECK_EMOJI
from namedrill.domain.errors import BackupFormatError, DeckNotFoundError, PersonNotFoundError
from namedrill.domain.models import Deck, Person
from namedrill.infrastructure.adapters.json_store import JsonDeckStore

WEB_APP_BACKUP = """
[
  {
    "id": "1712345678901",
    "name": "Book club",
    "emoji": "📖",
    "createdAt": 1712345678901,
    "lastStudied": 1712399999999,
    "people": [
      {
        "id": "1712345679000abc",
        "name": "Ada Lovelace",
        "photo": "data:image/jpeg;base64,AAAA",
        "notes": "Brings scones",
        "interval": 6,
        "easeFactor": 2.36,
        "repetitions": 2,
        "nextReview": 1712900000000,
        "lastReviewed": 1712381600000,
        "correctCount": 3,
        "totalCount": 4
      },
      {
        "id": "1712345679001def",
        "name": "Alan Turing",
        "photo": "data:image/jpeg;base64,BBBB",
        "interval": 0,
        "easeFactor": 2.5,
        "repetitions": 0,
        "nextReview": 1712345679001,
        "correctCount": 0,
        "totalCount": 0
      }
    ]
  }
]
"""


@pytest.fixture
def deck(now):
    return Deck(id="deck_1", name="Team", emoji="🏢", created_at=now)


@pytest.fixture
def person(make_person):
    return make_person("Ann Lee")


def test_missing_file_is_empty(store):
    assert store.list_decks() == []
    assert not store.path.exists()


def test_blank_file_is_empty(store):
    store.path.write_text("  \n", encoding="utf-8")
    assert store.list_decks() == []


def test_add_deck_writes_camel_case(store, deck, person):
    store.add_deck(deck)
    store.add_person(deck.id, person)

    raw = json.loads(store.path.read_text(encoding="utf-8"))

    assert raw[0]["createdAt"] == deck.created_at
    assert raw[0]["people"][0]["easeFactor"] == 2.5
    assert raw[0]["people"][0]["nextReview"] == person.next_review
    assert "ease_factor" not in raw[0]["people"][0]


def test_reads_web_app_backup(tmp_path):
    path = tmp_path / "backup.json"
    path.write_text(WEB_APP_BACKUP, encoding="utf-8")

    decks = JsonDeckStore(path).list_decks()

    assert len(decks) == 1
    assert decks[0].last_studied == 1712399999999
    ada, alan = decks[0].people
    assert ada.ease_factor == 2.36
    assert ada.notes == "Brings scones"
    assert ada.correct_count == 3
    assert alan.notes is None
    assert alan.last_reviewed is None


def test_update_person_fields(store, deck, person):
    store.add_deck(deck)
    store.add_person(deck.id, person)

    updated = store.update_person(deck.id, person.id, {"interval": 6, "repetitions": 2})

    assert updated.interval == 6
    assert updated.name == person.name
    assert store.get_deck(deck.id).people[0] == updated


def test_update_rejects_identity_fields(store, deck, person):
    store.add_deck(deck)
    store.add_person(deck.id, person)

    with pytest.raises(ValueError):
        store.update_person(deck.id, person.id, {"id": "other"})
    with pytest.raises(ValueError):
        store.update_deck(deck.id, {"people": []})


def test_update_deck(store, deck):
    store.add_deck(deck)

    updated = store.update_deck(deck.id, {"last_studied": 42})

    assert updated.last_studied == 42
    assert store.get_deck(deck.id).last_studied == 42


def test_not_found(store, deck):
    store.add_deck(deck)

    with pytest.raises(DeckNotFoundError):
        store.get_deck("deck_missing")
    with pytest.raises(DeckNotFoundError):
        store.delete_deck("deck_missing")
    with pytest.raises(PersonNotFoundError):
        store.update_person(deck.id, "person_missing", {"interval": 1})
    with pytest.raises(PersonNotFoundError):
        store.delete_person(deck.id, "person_missing")


def test_delete(store, deck, person, now):
    other = Deck(id="deck_2", name="Other", emoji="📚", created_at=now)
    store.add_deck(deck)
    store.add_deck(other)
    store.add_person(deck.id, person)

    store.delete_person(deck.id, person.id)
    store.delete_deck(other.id)

    assert [d.id for d in store.list_decks()] == [deck.id]
    assert store.get_deck(deck.id).people == []


def test_replace_all(store, deck, now):
    store.add_deck(deck)
    fresh = Deck(
        id="deck_9",
        name="Fresh",
        emoji="📚",
        created_at=now,
        people=[Person(id="p9", name="Zed", photo="/z.jpg")],
    )

    store.replace_all([fresh])

    assert store.list_decks() == [fresh]


def test_save_leaves_no_temp_files(store, deck):
    store.add_deck(deck)
    store.update_deck(deck.id, {"name": "Renamed"})

    assert [p.name for p in store.path.parent.iterdir()] == [store.path.name]


def test_creates_parent_directories(tmp_path, deck):
    store = JsonDeckStore(tmp_path / "nested" / "dir" / "decks.json")
    store.add_deck(deck)
    assert store.path.exists()


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        '{"id": "deck_1"}',
        '[{"id": "d", "name": "n", "createdAt": 1, "people": [{"id": "p", "name": "x", '
        '"photo": "y", "easeFactor": 1.1}]}]',
    ],
)
def test_malformed_file(store, content):
    store.path.write_text(content, encoding="utf-8")
    with pytest.raises(BackupFormatError):
        store.list_decks()


def test_deck_without_emoji_gets_default(store):
    store.path.write_text('[{"id": "d1", "name": "Old", "createdAt": 1}]', encoding="utf-8")

    assert store.get_deck("d1").emoji == DEFAULT_DECK_EMOJI
