from collections import namedtuple
from datetime import timedelta

from app.gamification.mastery import find_perfect_window, get_mastery_progress, qualifies_for_mastery
from app.gamification.points import get_stats_row, points_breakdown
from app.progress.models import MasteredVerse
from app.progress.service import record_verse_attempt
from app.verses.models import Verse

from conftest import T0, add_verse

REF = "John 3:16"
Attempt = namedtuple("Attempt", "words_correct total_words")


def _newest_first(scores, total=5):
    """Build attempts from oldest-to-newest scores, returned newest first."""
    return [Attempt(score, total) for score in reversed(scores)]


def _record(db, user_id, scores, total=5):
    results = []
    for i, score in enumerate(scores):
        # A day apart so perfect attempts never hit the 24h cooldown
        results.append(record_verse_attempt(db, user_id, REF, score, total, T0 + timedelta(days=i)))
    return results


def test_needs_at_least_five_attempts():
    assert not qualifies_for_mastery(_newest_first([5, 5, 5, 5]))


def test_three_perfect_newest_attempts_qualify():
    assert qualifies_for_mastery(_newest_first([4, 5, 5, 5, 5]))


def test_accuracy_is_measured_up_to_the_perfect_window():
    # Newest first: 3,5,5,5,3 -> window starts at 1, accuracy 18/20 = 0.9
    attempts = _newest_first([3, 5, 5, 5, 3])
    assert find_perfect_window(attempts) == 1
    assert not qualifies_for_mastery(attempts)


def test_accuracy_at_threshold_qualifies():
    # Newest first: 4,5,5,5,3 -> window starts at 1, accuracy 19/20 = 0.95
    assert qualifies_for_mastery(_newest_first([3, 5, 5, 5, 4]))


def test_no_perfect_run_never_qualifies():
    assert find_perfect_window(_newest_first([5, 5, 4, 5, 5, 4])) == -1
    assert not qualifies_for_mastery(_newest_first([5, 5, 4, 5, 5, 4]))


def test_fifth_attempt_awards_mastery_once(db, user):
    add_verse(db, user)
    results = _record(db, user.id, [4, 5, 5, 5, 5])

    assert [r.mastered for r in results] == [False, False, False, False, True]

    stats = get_stats_row(db, user.id)
    assert stats.verses_mastered == 1
    assert points_breakdown(db, user.id)["mastery_achieved"] == 500

    status = db.query(Verse.status).filter(Verse.user_id == user.id, Verse.reference == REF).scalar()
    assert status == "mastered"

    # Still qualifying afterwards, but mastery is never awarded twice
    again = record_verse_attempt(db, user.id, REF, 5, 5, T0 + timedelta(days=5))
    assert again.mastered is False
    assert get_stats_row(db, user.id).verses_mastered == 1
    assert db.query(MasteredVerse).count() == 1


def test_total_points_match_the_ledger(db, user):
    add_verse(db, user)
    _record(db, user.id, [4, 5, 5, 5, 5])

    breakdown = points_breakdown(db, user.id)
    assert breakdown["verse_attempt"] == 24
    # Day one starts the streak at one, days two to five each earn 50
    assert breakdown["daily_streak"] == 200
    assert get_stats_row(db, user.id).total_points == sum(breakdown.values())


def test_low_accuracy_blocks_mastery(db, user):
    add_verse(db, user)
    results = _record(db, user.id, [3, 5, 5, 5, 3])

    assert not any(r.mastered for r in results)
    assert get_stats_row(db, user.id).verses_mastered == 0


def test_mastery_progress_summary(db, user):
    add_verse(db, user)
    _record(db, user.id, [2, 4, 5, 5])

    progress = get_mastery_progress(db, user.id, REF)
    assert progress["perfectAttemptsInRow"] == 2
    assert progress["totalAttempts"] == 4
    assert progress["isMastered"] is False
    assert progress["masteryDate"] is None
    assert [a["words_correct"] for a in progress["recordedAttempts"]] == [5, 5, 4, 2]
    assert progress["lastAttemptDate"].startswith("2026-03-05")


def test_mastery_progress_lists_at_most_ten_attempts(db, user):
    add_verse(db, user)
    _record(db, user.id, [1] * 12)

    progress = get_mastery_progress(db, user.id, REF)
    assert progress["totalAttempts"] == 12
    assert len(progress["recordedAttempts"]) == 10
