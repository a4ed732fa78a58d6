import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.api.dependencies import get_identity, get_store
from app.db.identity import MemoryIdentityProvider
from app.db.memory_store import MemoryDocumentStore
from app.main import app


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200


async def test_requests_without_token_are_rejected(client):
    response = await client.get("/api/profiles/me")
    assert response.status_code == 401


async def test_register_then_login_requires_verified_email(client, identity, store):
    identity.auto_confirm = False

    response = await client.post(
        "/api/auth/register",
        json={"email": "new@university.edu", "password": "secret-pw", "full_name": "New Kid"},
    )
    assert response.status_code == 201
    user_id = response.json()["user_id"]
    profile = await store.get("profiles", user_id)
    assert profile["profile_complete"] is False
    assert profile["avatar_initial"] == "NK"

    response = await client.post(
        "/api/auth/login", json={"email": "new@university.edu", "password": "secret-pw"}
    )
    assert response.status_code == 403

    identity.confirm_email(user_id)
    response = await client.post(
        "/api/auth/login", json={"email": "new@university.edu", "password": "secret-pw"}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get(
        "/api/profiles/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200
    assert response.json()["name"] == "New Kid"


async def test_unverified_token_is_forbidden(client, identity, make_profile):
    identity.auto_confirm = False
    auth_user = await identity.sign_up("late@university.edu", "secret-pw", "Late Larry")
    await make_profile(id=auth_user.id, name="Late Larry")
    token = identity.issue_token(auth_user.id)

    response = await client.get(
        "/api/profiles/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 403


async def test_team_invitation_scenario(client, make_user):
    u1, h1 = await make_user(name="Uri One", skills=["Python"], interests=["AI"])
    u2, h2 = await make_user(name="Val Two", skills=["React"], interests=["AI"])

    response = await client.post("/api/teams", json={"name": "Alpha"}, headers=h1)
    assert response.status_code == 201
    team_id = response.json()["id"]
    assert len(response.json()["members"]) == 1
    assert (await client.get("/api/profiles/me", headers=h1)).json()["is_team_owner"] is True

    response = await client.post("/api/invitations", json={"to_user_id": u2.id}, headers=h1)
    assert response.status_code == 201
    response = await client.post("/api/invitations", json={"to_user_id": u2.id}, headers=h1)
    assert response.status_code == 409

    pending = (await client.get("/api/invitations", headers=h2)).json()
    assert len(pending) == 1
    invitation_id = pending[0]["id"]

    response = await client.post(f"/api/invitations/{invitation_id}/accept", headers=h2)
    assert response.status_code == 200

    team = (await client.get(f"/api/teams/{team_id}", headers=h1)).json()
    assert {m["id"] for m in team["members"]} == {u1.id, u2.id}
    me = (await client.get("/api/profiles/me", headers=h2)).json()
    assert me["team_status"] == "in-team"
    assert (await client.get("/api/invitations", headers=h2)).json() == []

    conversations = (await client.get("/api/conversations", headers=h2)).json()
    assert len(conversations) == 1
    assert set(conversations[0]["participant_ids"]) == {u1.id, u2.id}

    response = await client.post(f"/api/teams/{team_id}/leave", headers=h1)
    assert response.status_code == 409
    assert "transfer ownership" in response.json()["detail"]


async def test_recommendations_and_search(client, make_user):
    owner, h_owner = await make_user(name="Team Lead", skills=["Python"], interests=["AI"])
    seeker, h_seeker = await make_user(name="Sam Seeker", skills=["Python"], interests=["AI"])
    await client.post("/api/teams", json={"name": "Snakes"}, headers=h_owner)

    recommended = (await client.get("/api/teams/recommended", headers=h_seeker)).json()
    assert [(t["name"], t["score"]) for t in recommended] == [("Snakes", 3)]
    assert recommended[0]["common_skills"] == ["Python"]

    results = (
        await client.get(
            "/api/profiles/search",
            params={"skill": "Python", "team_status": "in-team"},
            headers=h_seeker,
        )
    ).json()
    assert [p["id"] for p in results] == [owner.id]

    response = await client.get(
        "/api/profiles/search", params={"team_status": "busy"}, headers=h_seeker
    )
    assert response.status_code == 400


async def test_profile_edit_and_onboarding(client, make_user):
    _, headers = await make_user(name="Edit Me", profile_complete=False)

    response = await client.post(
        "/api/profiles/me/onboarding",
        json={"title": "Engineer", "department": "CS", "year": 3, "skills": "Go, SQL"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["profile_complete"] is True
    assert response.json()["skills"] == ["Go", "SQL"]

    response = await client.patch(
        "/api/profiles/me",
        json={"about": "Hi there", "team_status": "in-team"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["about"] == "Hi there"
    assert response.json()["team_status"] == "looking"


async def test_direct_messages(client, make_user):
    a, ha = await make_user(name="Amy Ash")
    b, hb = await make_user(name="Bo Birch")

    response = await client.post(f"/api/conversations/direct/{b.id}", headers=ha)
    conversation_id = response.json()["conversation_id"]

    response = await client.post(
        f"/api/conversations/{conversation_id}/messages", json={"text": "hey"}, headers=ha
    )
    assert response.status_code == 200

    messages = (
        await client.get(f"/api/conversations/{conversation_id}/messages", headers=hb)
    ).json()
    assert [m["text"] for m in messages] == ["hey"]


async def test_delete_account(client, make_user, store, identity):
    user, headers = await make_user(name="Gone Soon")

    response = await client.delete("/api/profiles/me", headers=headers)

    assert response.status_code == 200
    assert await store.get("profiles", user.id) is None
    assert not identity.has_user(user.id)


async def test_delete_account_retry_after_identity_failure(
    client, make_user, store, identity
):
    user, headers = await make_user(name="Half Gone")
    delete_user = identity.delete_user

    async def broken_delete(user_id):
        raise RuntimeError("auth service unavailable")

    identity.delete_user = broken_delete
    with pytest.raises(RuntimeError):
        await client.delete("/api/profiles/me", headers=headers)
    assert await store.get("profiles", user.id) is None
    assert identity.has_user(user.id)

    identity.delete_user = delete_user
    response = await client.delete("/api/profiles/me", headers=headers)

    assert response.status_code == 200
    assert not identity.has_user(user.id)


async def test_non_text_tags_are_rejected(client, make_user):
    _, headers = await make_user(name="Tag Tester")

    response = await client.patch(
        "/api/profiles/me", json={"skills": [1]}, headers=headers
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/profiles/me/onboarding",
        json={"title": "Dev", "department": "CS", "year": 2, "interests": [None, 3]},
        headers=headers,
    )
    assert response.status_code == 422


@pytest.fixture
def sync_client():
    store = MemoryDocumentStore()
    identity = MemoryIdentityProvider(auto_confirm=True)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_identity] = lambda: identity
    # one portal for HTTP calls and websocket sessions so they share a loop
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def _register(client, email, name):
    client.post(
        "/api/auth/register",
        json={"email": email, "password": "secret-pw", "full_name": name},
    )
    response = client.post("/api/auth/login", json={"email": email, "password": "secret-pw"})
    token = response.json()["access_token"]
    me = client.get("/api/profiles/me", headers={"Authorization": f"Bearer {token}"})
    return me.json()["id"], token


def test_live_invitations_stream_snapshots(sync_client):
    _, owner_token = _register(sync_client, "owner@university.edu", "Owen Owner")
    invitee_id, invitee_token = _register(sync_client, "guest@university.edu", "Gia Guest")
    owner_headers = {"Authorization": f"Bearer {owner_token}"}
    sync_client.post("/api/teams", json={"name": "Alpha"}, headers=owner_headers)

    with sync_client.websocket_connect(
        f"/api/live/invitations?token={invitee_token}"
    ) as websocket:
        assert websocket.receive_json() == {"type": "snapshot", "items": []}

        sync_client.post(
            "/api/invitations", json={"to_user_id": invitee_id}, headers=owner_headers
        )
        frame = websocket.receive_json()
        assert [i["team_name"] for i in frame["items"]] == ["Alpha"]


def test_live_view_rejects_bad_token(sync_client):
    with pytest.raises(WebSocketDisconnect):
        with sync_client.websocket_connect("/api/live/invitations?token=nope") as websocket:
            websocket.receive_json()
