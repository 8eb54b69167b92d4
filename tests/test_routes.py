import pytest

from monster_arena.app import create_app
from monster_arena.sessions import BattleSessionManager

TEAMS = {"player_team": ["emberfang"], "ai_team": ["mossback"], "seed": 7}
STRIKE = {"type": "USE_ABILITY", "payload": {"abilityId": "basic_attack"}}


@pytest.fixture
def manager():
    return BattleSessionManager()


@pytest.fixture
def client(manager):
    app, _socketio = create_app({"TESTING": True, "ARENA_START_SWEEPER": False}, manager=manager)
    return app.test_client()


def as_user(user_id="u1"):
    return {"X-User-Id": user_id}


def create(client, user_id="u1"):
    resp = client.post("/api/battle/create", json=TEAMS, headers=as_user(user_id))
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["battle_id"]


def test_create_requires_user_header(client):
    resp = client.post("/api/battle/create", json=TEAMS)
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "UNAUTHORIZED_ACCESS"


def test_create_and_fetch(client):
    battle_id = create(client)
    active = client.get("/api/battle/active", headers=as_user()).get_json()
    assert active["state"]["id"] == battle_id
    assert active["state"]["log"] == ["Battle Started!"]

    session = client.get(f"/api/battle/{battle_id}", headers=as_user()).get_json()
    assert session["user_id"] == "u1"
    assert session["state"]["player_team"][0]["name"] == "Emberfang"


def test_second_create_conflicts(client):
    create(client)
    resp = client.post("/api/battle/create", json=TEAMS, headers=as_user())
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "BATTLE_ALREADY_IN_PROGRESS"


def test_bad_team_is_a_validation_error(client):
    resp = client.post("/api/battle/create", json={"player_team": [], "ai_team": ["mossback"]}, headers=as_user())
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_TEAM"


def test_turn_then_ai_turn(client):
    battle_id = create(client)
    resp = client.post(f"/api/battle/{battle_id}/turn", json=STRIKE, headers=as_user())
    assert resp.status_code == 200
    body = resp.get_json()
    # 120 power x 0.6 into 130 defense
    assert body["ability_results"][0]["damage"] == 31
    assert body["state"]["current_turn"] == "ai"

    resp = client.post(f"/api/battle/{battle_id}/ai-turn", headers=as_user())
    assert resp.status_code == 200
    assert resp.get_json()["state"]["current_turn"] == "player"


def test_rejected_turn_codes(client):
    battle_id = create(client)
    resp = client.post(
        f"/api/battle/{battle_id}/turn",
        json={"type": "USE_ABILITY", "payload": {"abilityId": "tidal_crash"}},
        headers=as_user(),
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "UNKNOWN_ABILITY"

    resp = client.post(f"/api/battle/{battle_id}/turn", json=["not", "an", "object"], headers=as_user())
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_ACTION"


def test_other_user_is_forbidden(client):
    battle_id = create(client)
    resp = client.get(f"/api/battle/{battle_id}", headers=as_user("u2"))
    assert resp.status_code == 403


def test_forfeit_then_turn_is_terminal(client):
    battle_id = create(client)
    resp = client.post(f"/api/battle/{battle_id}/forfeit", headers=as_user())
    body = resp.get_json()
    assert body["state"]["status"] == "defeat"
    assert body["end_result"]["winner"] == "ai"

    resp = client.post(f"/api/battle/{battle_id}/turn", json=STRIKE, headers=as_user())
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "BATTLE_ALREADY_ENDED"


def test_delete_abandons_and_removes(client):
    battle_id = create(client)
    resp = client.delete(f"/api/battle/{battle_id}", headers=as_user())
    assert resp.status_code == 200
    assert resp.get_json()["end_result"]["status"] == "abandoned"

    resp = client.get(f"/api/battle/{battle_id}", headers=as_user())
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "BATTLE_NOT_FOUND"


def test_stats(client):
    create(client)
    stats = client.get("/api/battle/stats").get_json()
    assert stats["active_sessions"] == 1
    assert stats["active_users"] == 1
