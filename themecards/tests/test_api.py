"""
Tests for API layer.

Tests:
- API service methods
- HTTP endpoints through FastAPI's TestClient
- Refused actions vs. HTTP errors
- WebSocket state push
"""

import json

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    ActionResponse,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    SessionResponse,
    SessionStatus,
)
from ..api.service import APIService
from ..errors import PlayerErrorCode
from ..themes import DATA_DIR
from .conftest import give_card


def _startup_document():
    with open(DATA_DIR / "startup.json", encoding="utf-8") as f:
        return json.load(f)


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        """Create a fresh API service."""
        return APIService()

    @pytest.fixture
    def session_id(self, service):
        response = service.create_session(
            CreateSessionRequest(theme_id="bigtech_worker", player_ids=["alice", "bob"], seed=11)
        )
        assert isinstance(response, SessionResponse)
        return response.session_id

    def test_create_session(self, service):
        """Creating a session deals the first turn."""
        response = service.create_session(CreateSessionRequest(
            theme_id="bigtech_worker",
            player_ids=["alice", "bob"],
            names={"alice": "Alice"},
            seed=11,
        ))

        assert response.status == SessionStatus.ACTIVE
        assert response.theme_id == "bigtech_worker"
        state = response.game_state
        assert state.current_player_id == "alice"
        assert state.seed == 11
        assert [p.name for p in state.players] == ["Alice", "bob"]
        assert len(state.players[0].hand) == 5
        assert {p.pool_id for p in state.pools} == {
            "promotion_slots", "project_opportunities", "mentor_slots",
        }

    def test_create_without_start(self, service):
        response = service.create_session(CreateSessionRequest(
            theme_id="startup", player_ids=["alice"], auto_start=False,
        ))
        assert response.status == SessionStatus.CREATED
        assert response.game_state is None

        state = service.get_game_state(response.session_id)
        assert isinstance(state, ErrorResponse)
        assert state.error_code == ErrorCode.VALIDATION_ERROR

        started = service.start_game(response.session_id, seed=5)
        assert started.success
        assert started.game_state.seed == 5

    def test_unknown_theme(self, service):
        response = service.create_session(CreateSessionRequest(theme_id="nope", player_ids=["a"]))
        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.UNKNOWN_THEME

    def test_too_many_players(self, service):
        response = service.create_session(
            CreateSessionRequest(theme_id="bigtech_worker", player_ids=["a", "b", "c", "d", "e"])
        )
        assert isinstance(response, ErrorResponse)
        assert response.details["player_error"] == PlayerErrorCode.TOO_MANY_PLAYERS.value
        assert service.list_sessions() == []

    def test_session_not_found(self, service):
        for response in (
            service.get_session("missing"),
            service.get_game_state("missing"),
            service.end_turn("missing"),
            service.get_events("missing"),
        ):
            assert isinstance(response, ErrorResponse)
            assert response.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_play_card_from_hand(self, service, session_id):
        state = service.get_game_state(session_id)
        card = next(c for c in state.players[0].hand if c.cost <= 5)

        response = service.play_card(session_id, "alice", card.instance_id)

        assert isinstance(response, ActionResponse)
        assert response.success
        assert response.events[0].event_type == "card_played"
        assert card.card_id in response.game_state.played_this_turn

    def test_statuses_in_player_info(self, service, session_id):
        session = service.session_manager.get_session(session_id)
        card = give_card(session.game_state, "alice", "mode_996")

        response = service.play_card(session_id, "alice", card.instance_id)

        assert "status_applied" in [e.event_type for e in response.events]
        statuses = response.game_state.players[0].statuses
        assert [(s.status_id, s.name, s.duration, s.stacks) for s in statuses] == [
            ("mode_996", "996 Mode", 3, 1),
        ]

    def test_refused_action(self, service, session_id):
        state = service.get_game_state(session_id)
        card = state.players[1].hand[0]

        response = service.play_card(session_id, "bob", card.instance_id)

        assert not response.success
        assert response.error_code == PlayerErrorCode.NOT_YOUR_TURN
        assert response.events == []
        assert response.game_state == service.get_game_state(session_id)

    def test_claim_and_contest(self, service, session_id):
        claim = service.claim(session_id, "project_opportunities", "bob")
        assert claim.success
        assert claim.winner_id == "bob"
        pools = {p.pool_id: p for p in claim.game_state.pools}
        assert pools["project_opportunities"].remaining == 2
        assert pools["project_opportunities"].claimed_by == {"bob": 1}

        contest = service.contest(session_id, "mentor_slots", ["alice", "bob"])
        assert contest.success
        # bob's project claim gave +3 influence
        assert contest.winner_id == "bob"

    def test_end_turn_and_events(self, service, session_id):
        response = service.end_turn(session_id)
        assert response.game_state.current_player_id == "bob"

        history = service.get_events(session_id)
        types = [e.event_type for e in history.events]
        assert types[0] == "card_drawn"
        assert "turn_ended" in types

        last_two = service.get_events(session_id, limit=2)
        assert len(last_two.events) == 2
        assert last_two.events == history.events[-2:]

    def test_combo_hint(self, service, session_id):
        response = service.combo_hint(session_id, "alice")
        assert response.player_id == "alice"
        if response.hint is not None:
            assert 0.0 <= response.hint.progress <= 1.0

    def test_end_session(self, service, session_id):
        assert service.end_session(session_id)
        assert service.list_sessions() == []
        assert service.get_session(session_id).error_code == ErrorCode.SESSION_NOT_FOUND

    def test_list_themes(self, service):
        response = service.list_themes()
        ids = {t.theme_id for t in response.themes}
        assert {"bigtech_worker", "startup"} <= ids
        assert response.count == len(response.themes)

    def test_validate_theme_document(self, service):
        assert service.validate_theme_document(_startup_document()).valid

        document = _startup_document()
        document["starting_deck"].append("ghost")
        response = service.validate_theme_document(document)
        assert not response.valid
        assert response.theme_id == "startup"
        assert any("ghost" in e for e in response.errors)


class TestHTTP:
    """Endpoints through the FastAPI app."""

    @pytest.fixture
    def client(self):
        return TestClient(create_app(APIService()))

    @pytest.fixture
    def session_id(self, client):
        response = client.post("/api/v1/sessions", json={
            "theme_id": "startup",
            "player_ids": ["alice", "bob"],
            "seed": 21,
        })
        assert response.status_code == 200
        return response.json()["session_id"]

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "themecards-engine"

    def test_openapi_schema(self, client):
        response = client.get("/openapi.json")
        assert response.status_code == 200
        assert "/api/v1/sessions/{session_id}/play" in response.json()["paths"]

    def test_list_themes(self, client):
        data = client.get("/api/v1/themes").json()
        assert data["count"] >= 2

    def test_validate_theme(self, client):
        document = _startup_document()
        document["cards"][0]["effects"][0]["type"] = "teleport"
        data = client.post("/api/v1/themes/validate", json=document).json()
        assert data["valid"] is False
        assert data["errors"]

    def test_create_session_unknown_theme(self, client):
        response = client.post("/api/v1/sessions", json={"theme_id": "nope", "player_ids": ["a"]})
        assert response.status_code == 404
        assert response.json()["error_code"] == "UNKNOWN_THEME"

    def test_create_session_bad_body(self, client):
        response = client.post("/api/v1/sessions", json={"theme_id": "startup", "player_ids": []})
        assert response.status_code == 422

    def test_session_not_found(self, client):
        response = client.get("/api/v1/sessions/missing/state")
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_play_card(self, client, session_id):
        state = client.get(f"/api/v1/sessions/{session_id}/state").json()
        card = min(state["players"][0]["hand"], key=lambda c: c["cost"])

        response = client.post(f"/api/v1/sessions/{session_id}/play", json={
            "player_id": "alice",
            "instance_id": card["instance_id"],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["events"][0]["event_type"] == "card_played"

    def test_refused_action_is_not_http_error(self, client, session_id):
        response = client.post(f"/api/v1/sessions/{session_id}/play", json={
            "player_id": "alice",
            "instance_id": "no-such-card",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "CARD_NOT_IN_HAND"

    def test_end_turn_and_advance_phase(self, client, session_id):
        data = client.post(f"/api/v1/sessions/{session_id}/advance-phase").json()
        assert data["game_state"]["phase"] == "action"

        data = client.post(f"/api/v1/sessions/{session_id}/end-turn").json()
        assert data["game_state"]["current_player_id"] == "bob"

    def test_start_twice(self, client, session_id):
        data = client.post(f"/api/v1/sessions/{session_id}/start").json()
        assert data["success"] is False
        assert data["error_code"] == "WRONG_PHASE"

    def test_reset(self, client, session_id):
        client.post(f"/api/v1/sessions/{session_id}/end-turn")
        data = client.post(f"/api/v1/sessions/{session_id}/reset").json()
        assert data["success"] is True
        assert data["game_state"]["current_player_id"] == "alice"

    def test_events_endpoint(self, client, session_id):
        data = client.get(f"/api/v1/sessions/{session_id}/events", params={"limit": 1}).json()
        assert len(data["events"]) == 1
        assert data["events"][0]["event_type"] == "phase_changed"

    def test_combo_hint_endpoint(self, client, session_id):
        response = client.get(f"/api/v1/sessions/{session_id}/combo-hint", params={"player_id": "alice"})
        assert response.status_code == 200
        assert response.json()["player_id"] == "alice"

    def test_end_session(self, client, session_id):
        data = client.delete(f"/api/v1/sessions/{session_id}").json()
        assert data["success"] is True
        assert session_id not in client.get("/api/v1/sessions").json()["sessions"]

    def test_websocket_state_on_connect(self, client, session_id):
        with client.websocket_connect(f"/api/v1/sessions/{session_id}/ws") as ws:
            message = ws.receive_json()
            assert message["type"] == "state_update"
            assert message["payload"]["session_id"] == session_id

            ws.send_text(json.dumps({"type": "ping"}))
            assert ws.receive_json() == {"type": "pong"}
