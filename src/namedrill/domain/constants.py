"""Centralized constants for NameDrill.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
MS_PER_DAY = 86_400_000

# ---------- SM-2 ----------
INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASS_THRESHOLD = 3
QUALITY_FAIL = 1
QUALITY_PASS = 4
FIRST_INTERVAL = 1  # days
SECOND_INTERVAL = 6  # days
MASTERY_INTERVAL = 7  # days

# ---------- Queue Builder ----------
DEFAULT_QUEUE_LIMIT = 20
DEFAULT_CHOICE_COUNT = 4
DEFAULT_DECK_EMOJI = "📚"
MIN_STUDY_SIZE = 2

# ---------- Session pacing ----------
SPEED_DURATION_S = 60
TICK_INTERVAL_MS = 1000
CHOICE_CORRECT_DELAY_MS = 500
CHOICE_WRONG_DELAY_MS = 1500
SPEED_CORRECT_DELAY_MS = 300
SPEED_WRONG_DELAY_MS = 800

# ---------- Typed answers ----------
MIN_PREFIX_LEN = 2

# ---------- Session results ----------
ACCURACY_BANDS = [
    (90, "Outstanding! You're a name master!"),
    (70, "Great job! Keep practicing!"),
    (50, "Good effort! Review will help."),
]
ACCURACY_FALLBACK = "Keep at it, practice makes perfect!"
