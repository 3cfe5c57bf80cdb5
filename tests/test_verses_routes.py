from datetime import timedelta

from app.progress.models import MasteredVerse, VerseAttempt, VerseStreak, WordProgress
from app.progress.service import record_verse_attempt, record_word_progress

from conftest import T0


def _add(client, headers, reference, text="Some verse text"):
    return client.post("/verses", json={"reference": reference, "text": text}, headers=headers)


def test_add_and_list_verses(client, headers):
    resp = _add(client, headers, "John 3:16")
    assert resp.status_code == 201
    assert resp.json() == {"success": True, "points_earned": 10}

    verses = client.get("/verses", headers=headers).json()
    assert verses[0]["reference"] == "John 3:16"
    assert verses[0]["translation"] == "NIV"
    assert verses[0]["status"] == "not_started"


def test_duplicate_and_blank_verses_are_rejected(client, headers):
    _add(client, headers, "John 3:16")
    assert _add(client, headers, "John 3:16").status_code == 409
    assert _add(client, headers, "   ").status_code == 400
    assert client.post("/verses", json={"reference": "Psalm 1:1"}, headers=headers).status_code == 400


def test_verse_added_points_capped_per_day(client, headers):
    earned = [_add(client, headers, f"Psalm {i}:1").json()["points_earned"] for i in range(1, 5)]
    assert earned == [10, 10, 10, 0]

    stats = client.get("/gamification/stats", headers=headers).json()
    assert stats["points_breakdown"] == {"verse_added": 30}


def test_update_verse(client, headers):
    _add(client, headers, "John 3:16")
    assert client.put("/verses/John 3:16", json={"status": "in_progress"}, headers=headers).status_code == 204
    assert client.get("/verses", headers=headers).json()[0]["status"] == "in_progress"

    assert client.put("/verses/John 3:16", json={}, headers=headers).status_code == 400
    assert client.put("/verses/John 3:16", json={"status": "done"}, headers=headers).status_code == 400
    assert client.put("/verses/Mark 1:1", json={"text": "x"}, headers=headers).status_code == 404


def test_delete_verse_removes_practice_but_keeps_mastery(client, db, user, headers):
    _add(client, headers, "John 3:16")
    record_word_progress(db, user.id, "John 3:16", 0, "For", True, T0)
    for i, score in enumerate([4, 5, 5, 5, 5]):
        record_verse_attempt(db, user.id, "John 3:16", score, 5, T0 + timedelta(days=i))

    resp = client.delete("/verses/John 3:16", headers=headers)
    assert resp.status_code == 204

    assert client.get("/verses", headers=headers).json() == []
    assert db.query(WordProgress).count() == 0
    assert db.query(VerseAttempt).count() == 0
    assert db.query(VerseStreak).count() == 0
    assert db.query(MasteredVerse).count() == 1

    assert client.delete("/verses/John 3:16", headers=headers).status_code == 404


def test_assign_set_adds_missing_verses_only(client, headers):
    _add(client, headers, "Genesis 1:1")
    resp = client.post("/verses/assign-set", json={"verse_set": "childrens_verses"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["added"] == ["Psalm 119:105", "Proverbs 3:5"]
