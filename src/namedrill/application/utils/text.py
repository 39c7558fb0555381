import re
from pathlib import Path

from namedrill.domain.constants import MIN_PREFIX_LEN

# ---------- Typed answers ----------


def normalize_answer(text: str) -> str:
    return text.strip().lower()


def is_typed_answer_correct(guess: str, name: str) -> bool:
    """Speed-mode matching: case-insensitive exact match, or a prefix of 2+ characters.

    "jo" matches "John", "JOHN" matches "john", "j" does not match anything.
    """
    guess = normalize_answer(guess)
    answer = name.lower()
    if guess == answer:
        return True
    return len(guess) >= MIN_PREFIX_LEN and answer.startswith(guess)


# ---------- Photo file names ----------

_SEPARATORS = re.compile(r"[-_]")


def name_from_photo_path(path: Path | str) -> str:
    """Derive a display name from a photo file name: 'jane_doe.jpg' -> 'jane doe'."""
    stem = Path(path).stem
    return _SEPARATORS.sub(" ", stem).strip()
