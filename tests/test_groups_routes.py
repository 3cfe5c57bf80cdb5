from datetime import timedelta

from app.admin.models import SuperAdmin
from app.core.clock import utcnow
from app.gamification.points import ensure_user_stats
from app.gamification.models import UserStats
from app.groups.models import GroupInvitation

from conftest import auth_headers, create_session, create_user


def _make_super_admin(db, user):
    db.add(SuperAdmin(user_id=user.id, is_active=True, created_at=utcnow()))
    db.commit()


def _create_group(client, headers, name="Morning Verses"):
    resp = client.post("/groups/create", json={"name": name, "description": "Weekday group"}, headers=headers)
    assert resp.status_code == 201
    return resp.json()["group"]["id"]


def _member(db, email):
    user = create_user(db, email)
    return user, auth_headers(create_session(db, user))


def _invite_and_join(client, group_id, headers, email, member_headers):
    code = client.post(f"/groups/{group_id}/invite", json={"email": email}, headers=headers).json()["invitation"]["code"]
    return client.post(f"/groups/{group_id}/join/{code}", headers=member_headers)


def test_regular_user_cannot_create_groups(client, headers):
    assert client.get("/groups/can-create", headers=headers).json() == {"can_create": False}
    resp = client.post("/groups/create", json={"name": "Nope"}, headers=headers)
    assert resp.status_code == 403


def test_enough_points_unlock_group_creation(client, db, user, headers):
    ensure_user_stats(db, user.id, utcnow(), total_points=5000)
    db.commit()
    assert client.get("/groups/can-create", headers=headers).json() == {"can_create": True}


def test_enough_mastered_verses_unlock_group_creation(client, db, user, headers):
    ensure_user_stats(db, user.id, utcnow())
    db.query(UserStats).filter(UserStats.user_id == user.id).update({"verses_mastered": 5})
    db.commit()
    assert client.get("/groups/can-create", headers=headers).json() == {"can_create": True}


def test_create_group_validates_name(client, db, user, headers):
    _make_super_admin(db, user)
    assert client.post("/groups/create", json={"name": "x"}, headers=headers).status_code == 400
    assert client.post("/groups/create", json={"name": "y" * 51}, headers=headers).status_code == 400

    _create_group(client, headers, "Morning Verses")
    resp = client.post("/groups/create", json={"name": "morning verses"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "A group with this name already exists"}


def test_creator_sees_group_and_is_leader(client, db, user, headers):
    _make_super_admin(db, user)
    group_id = _create_group(client, headers)

    mine = client.get("/groups/mine", headers=headers).json()
    assert [(g["id"], g["role"]) for g in mine] == [(group_id, "creator")]

    leaders = client.get(f"/groups/{group_id}/leaders", headers=headers).json()
    assert [m["user_id"] for m in leaders] == [user.id]


def test_invite_code_shape_and_join(client, db, user, headers):
    _make_super_admin(db, user)
    group_id = _create_group(client, headers)
    friend, friend_headers = _member(db, "friend@example.com")

    invitation = client.post(
        f"/groups/{group_id}/invite", json={"email": "friend@example.com"}, headers=headers
    ).json()["invitation"]
    code = invitation["code"]
    assert len(code) == 8
    assert code == code.upper()

    assert client.post(f"/groups/{group_id}/join/{code}", headers=friend_headers).status_code == 200
    members = client.get(f"/groups/{group_id}/members", headers=friend_headers).json()
    assert {m["user_id"] for m in members} == {user.id, friend.id}

    # Codes are single use
    assert client.post(f"/groups/{group_id}/join/{code}", headers=friend_headers).status_code == 404


def test_join_requires_matching_email(client, db, user, headers):
    _make_super_admin(db, user)
    group_id = _create_group(client, headers)
    _, other_headers = _member(db, "other@example.com")

    resp = _invite_and_join(client, group_id, headers, "friend@example.com", other_headers)
    assert resp.status_code == 403


def test_expired_invitation_is_rejected(client, db, user, headers):
    _make_super_admin(db, user)
    group_id = _create_group(client, headers)
    _, friend_headers = _member(db, "friend@example.com")
    code = client.post(f"/groups/{group_id}/invite", json={"email": "friend@example.com"}, headers=headers).json()[
        "invitation"
    ]["code"]

    db.query(GroupInvitation).filter(GroupInvitation.code == code).update(
        {"expires_at": utcnow() - timedelta(minutes=1)}
    )
    db.commit()

    assert client.post(f"/groups/{group_id}/join/{code}", headers=friend_headers).status_code == 404


def test_only_leaders_invite_and_promote(client, db, user, headers):
    _make_super_admin(db, user)
    group_id = _create_group(client, headers)
    friend, friend_headers = _member(db, "friend@example.com")
    _invite_and_join(client, group_id, headers, "friend@example.com", friend_headers)

    resp = client.post(f"/groups/{group_id}/invite", json={"email": "x@example.com"}, headers=friend_headers)
    assert resp.status_code == 403

    resp = client.post(f"/groups/{group_id}/leaders", json={"email": "friend@example.com"}, headers=headers)
    assert resp.status_code == 200
    leaders = client.get(f"/groups/{group_id}/leaders", headers=headers).json()
    assert {m["user_id"] for m in leaders} == {user.id, friend.id}

    resp = client.post(f"/groups/{group_id}/invite", json={"email": "x@example.com"}, headers=friend_headers)
    assert resp.status_code == 200


def test_update_my_membership(client, db, user, headers):
    _make_super_admin(db, user)
    group_id = _create_group(client, headers)

    resp = client.put(f"/groups/{group_id}/members/me", json={"display_name": "Sam"}, headers=headers)
    assert resp.status_code == 200
    members = client.get(f"/groups/{group_id}/members", headers=headers).json()
    assert members[0]["display_name"] == "Sam"


def test_group_stats(client, db, user, headers):
    _make_super_admin(db, user)
    group_id = _create_group(client, headers)
    client.post("/gamification/points", json={"event_type": "verse_added", "points": 40}, headers=headers)

    stats = client.get(f"/groups/{group_id}/stats", headers=headers).json()
    assert stats["total_members"] == 1
    assert stats["active_members"] == 1
    assert stats["total_points"] == 40
    assert stats["average_points_per_member"] == 40
    assert stats["top_performer"]["user_id"] == user.id
    assert stats["recent_activity"]["new_members_this_week"] == 1
    assert stats["recent_activity"]["points_earned_this_week"] == 40


def test_non_member_cannot_see_group(client, db, user, headers):
    _make_super_admin(db, user)
    group_id = _create_group(client, headers)
    _, outsider_headers = _member(db, "outsider@example.com")

    assert client.get(f"/groups/{group_id}/members", headers=outsider_headers).status_code == 403
    assert client.get(f"/groups/{group_id}/stats", headers=outsider_headers).status_code == 403
