import itertools

import pytest

from namedrill.domain.models import Person
from namedrill.infrastructure.adapters.json_store import JsonDeckStore

NOW = 1_700_000_000_000  # 2023-11-14, epoch ms


class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, start: int = NOW):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_person():
    """Factory for people that are due at NOW unless told otherwise."""
    counter = itertools.count(1)

    def _make(name: str | None = None, **fields) -> Person:
        i = next(counter)
        defaults = {
            "id": f"p{i}",
            "name": name or f"Person {i}",
            "photo": f"/photos/{i}.jpg",
            "next_review": NOW,
        }
        defaults.update(fields)
        return Person(**defaults)

    return _make


@pytest.fixture
def store(tmp_path):
    return JsonDeckStore(tmp_path / "decks.json")


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and data files
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for var in (
        "NAMEDRILL_DATA_FILE",
        "NAMEDRILL_LOG_DIR",
        "NAMEDRILL_QUEUE_LIMIT",
        "NAMEDRILL_CHOICE_COUNT",
        "NAMEDRILL_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
