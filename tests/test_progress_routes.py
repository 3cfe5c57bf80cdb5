from datetime import timedelta

from fastapi.testclient import TestClient

from app.gamification.models import PointEvent, UserStats
from app.main import app
from app.progress.models import VerseAttempt

from conftest import T0, add_verse

REF = "John 3:16"


def _word(client, headers, index, word, correct, at=None, ref=REF):
    body = {"verse_reference": ref, "word_index": index, "word": word, "is_correct": correct}
    if at is not None:
        body["created_at"] = at.isoformat()
    return client.post("/progress/word", json=body, headers=headers)


def _attempt(client, headers, correct, total, at, path="/progress/attempt"):
    return client.post(
        path,
        json={"verse_reference": REF, "words_correct": correct, "total_words": total, "created_at": at.isoformat()},
        headers=headers,
    )


def test_word_progress_streak_and_points(client, db, user, headers):
    add_verse(db, user)
    responses = [_word(client, headers, i, w, True, T0) for i, w in enumerate(["For", "God", "so"])]

    assert all(r.status_code == 200 for r in responses)
    assert [r.json()["points_earned"] for r in responses] == [1, 2, 3]
    assert responses[-1].json() == {"success": True, "streak_length": 3, "points_earned": 3}


def test_incorrect_word_returns_zeros(client, db, user, headers):
    add_verse(db, user)
    _word(client, headers, 0, "For", True)
    resp = _word(client, headers, 1, "Dog", False)
    assert resp.json() == {"success": True, "streak_length": 0, "points_earned": 0}


def test_reset_sentinel_over_http(client, db, user, headers):
    add_verse(db, user)
    _word(client, headers, 0, "For", True)
    resp = _word(client, headers, -1, "RESET", False)
    assert resp.status_code == 200
    assert resp.json()["streak_length"] == 0

    stats = client.get("/gamification/stats", headers=headers).json()
    assert stats["current_verse_streak"] == 0
    assert stats["current_verse_reference"] is None


def test_word_on_unowned_verse_is_404(client, headers):
    resp = _word(client, headers, 0, "In", True, ref="Genesis 1:1")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Verse not found or unauthorized"}


def test_word_missing_fields_is_400(client, headers):
    resp = client.post("/progress/word", json={"verse_reference": REF}, headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields"}


def test_attempt_cooldown_is_429(client, db, user, headers):
    add_verse(db, user)
    assert _attempt(client, headers, 10, 10, T0).status_code == 200

    resp = _attempt(client, headers, 10, 10, T0 + timedelta(hours=2))
    assert resp.status_code == 429
    assert resp.json()["error"].endswith("Please try again in 22 hours.")


def test_verse_alias_records_attempts(client, db, user, headers):
    add_verse(db, user)
    resp = _attempt(client, headers, 6, 10, T0, path="/progress/verse")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "points_earned": 6, "mastered": False}


def test_attempt_rejects_more_correct_than_total(client, db, user, headers):
    add_verse(db, user)
    resp = _attempt(client, headers, 11, 10, T0)
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_mastery_over_http(client, db, user, headers):
    add_verse(db, user)
    results = [_attempt(client, headers, score, 5, T0 + timedelta(days=i)).json() for i, score in enumerate([4, 5, 5, 5, 5])]
    assert results[-1]["mastered"] is True
    assert results[-1]["points_earned"] == 5

    progress = client.get(f"/progress/mastery/{REF}", headers=headers).json()
    assert progress["isMastered"] is True
    assert progress["perfectAttemptsInRow"] == 4
    assert progress["totalAttempts"] == 5
    assert progress["masteryDate"] is not None

    verses = client.get("/verses", headers=headers).json()
    assert verses[0]["status"] == "mastered"


def test_explicit_verse_streak_reset(client, db, user, headers):
    add_verse(db, user)
    for i, w in enumerate(["For", "God"]):
        _word(client, headers, i, w, True)

    resp = client.post("/progress/verse-streak/reset", json={"verse_reference": REF}, headers=headers)
    assert resp.status_code == 200

    stats = client.get("/gamification/stats", headers=headers).json()
    streaks = {s["verse_reference"]: s for s in stats["verse_streaks"]}
    assert streaks[REF]["current_guess_streak"] == 0
    assert streaks[REF]["longest_guess_streak"] == 2


def test_unexpected_failure_mid_attempt_returns_500_and_writes_nothing(db, user, headers, monkeypatch):
    add_verse(db, user)

    def broken_mastery_check(*args, **kwargs):
        raise RuntimeError("mastery check failed")

    monkeypatch.setattr("app.progress.service.update_mastery", broken_mastery_check)
    client = TestClient(app, raise_server_exceptions=False)

    resp = _attempt(client, headers, 5, 5, T0)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}

    db.expire_all()
    assert db.query(VerseAttempt).count() == 0
    assert db.query(PointEvent).count() == 0
    assert db.query(UserStats).count() == 0
