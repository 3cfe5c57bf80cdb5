"""
Point values and mastery thresholds.
Fixed business rules; not read from settings.
"""
from datetime import timedelta

# Point event types
WORD_CORRECT = "word_correct"
VERSE_ATTEMPT = "verse_attempt"
VERSE_ADDED = "verse_added"
MASTERY_ACHIEVED = "mastery_achieved"
DAILY_STREAK = "daily_streak"

EVENT_TYPES = (WORD_CORRECT, VERSE_ATTEMPT, VERSE_ADDED, MASTERY_ACHIEVED, DAILY_STREAK)

# Point system
POINTS = {
    "verse_added": 10,          # per new verse, at most VERSE_ADDED_DAILY_LIMIT per day
    "word_correct": 1,          # base points per correct word
    "streak_multiplier": 1,     # bonus per word already in the guess streak
    "attempt_word": 1,          # per correct word in a recorded attempt
    "mastery_achieved": 500,
    "daily_streak": 50,         # awarded for daily streaks longer than one day
}

VERSE_ADDED_DAILY_LIMIT = 3

# Mastery thresholds
MASTERY = {
    "min_attempts": 5,
    "consecutive_perfect": 3,
    "min_accuracy": 0.95,
}

PERFECT_ATTEMPT_COOLDOWN = timedelta(hours=24)

# Word-progress sentinel sent when the user presses "Reset"
RESET_WORD_INDEX = -1
RESET_WORD = "RESET"

POINT_HISTORY_DAYS = 30
