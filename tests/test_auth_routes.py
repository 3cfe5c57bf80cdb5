from urllib.parse import parse_qs, urlparse

from app.auth.models import User, UserSession
from app.gamification.models import PointEvent
from app.verses.models import Verse

from conftest import auth_headers


def _request_link(client, email="new@example.com", verse_set=None):
    body = {"email": email}
    if verse_set:
        body["verse_set"] = verse_set
    resp = client.post("/auth/magic-link", json=body)
    assert resp.status_code == 200
    return resp.json()["magic_link"]


def _token_from_link(link: str) -> str:
    return parse_qs(urlparse(link).query)["token"][0]


def _sign_in(client, email="new@example.com", verse_set=None):
    token = _token_from_link(_request_link(client, email, verse_set))
    resp = client.get("/auth/verify", params={"token": token})
    assert resp.status_code == 200
    return resp.json()


def test_magic_link_sign_in_creates_user_with_starter_verses(client):
    data = _sign_in(client)
    assert data["email"] == "new@example.com"

    verses = client.get("/verses", headers=auth_headers(data["token"]))
    assert verses.status_code == 200
    assert {v["reference"] for v in verses.json()} == {"John 3:16", "Philippians 4:13", "Jeremiah 29:11"}


def test_childrens_verse_set_is_seeded(client):
    data = _sign_in(client, "kid@example.com", "childrens_verses")
    verses = client.get("/verses", headers=auth_headers(data["token"])).json()
    assert "Genesis 1:1" in {v["reference"] for v in verses}


def test_magic_link_is_single_use(client):
    token = _token_from_link(_request_link(client))
    assert client.get("/auth/verify", params={"token": token}).status_code == 200

    resp = client.get("/auth/verify", params={"token": token})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid or expired token"}


def test_verify_rejects_garbage_and_missing_token(client):
    assert client.get("/auth/verify", params={"token": "not-a-jwt"}).status_code == 401
    resp = client.get("/auth/verify")
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_magic_link_requires_valid_email(client):
    resp = client.post("/auth/magic-link", json={"email": "nope"})
    assert resp.status_code == 400

    resp = client.post("/auth/magic-link", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields"}


def test_email_is_normalized(client):
    first = _sign_in(client, "Mixed@Example.com")
    second = _sign_in(client, "mixed@example.com ")
    assert first["user_id"] == second["user_id"]


def test_protected_routes_need_a_bearer_token(client):
    resp = client.get("/verses")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}

    resp = client.get("/verses", headers=auth_headers("bogus"))
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid or expired session"}


def test_sign_out_ends_the_session(client):
    data = _sign_in(client)
    headers = auth_headers(data["token"])
    assert client.post("/auth/sign-out", headers=headers).status_code == 200
    assert client.get("/verses", headers=headers).status_code == 401


def test_delete_account_anonymizes_and_removes_history(client, db):
    data = _sign_in(client)
    headers = auth_headers(data["token"])
    client.post("/verses", json={"reference": "Psalm 23:1", "text": "The Lord is my shepherd"}, headers=headers)

    resp = client.delete("/auth/delete", headers=headers)
    assert resp.status_code == 200

    user = db.get(User, data["user_id"])
    assert user.email.startswith("deleted-")
    assert user.deleted_at is not None
    assert db.query(Verse).filter(Verse.user_id == user.id).count() == 0
    assert db.query(PointEvent).filter(PointEvent.user_id == user.id).count() == 0
    assert db.query(UserSession).filter(UserSession.user_id == user.id).count() == 0
    assert client.get("/verses", headers=headers).status_code == 401
