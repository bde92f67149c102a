"""Integration test: a full solo run driven through the HTTP API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from helldrafters.api.app import create_app
from helldrafters.api.runtime import ApiState
from helldrafters.config import Settings


@pytest.fixture
def client(tmp_path):
    """Create a test client whose autosaves land in ``tmp_path``."""

    def factory() -> ApiState:
        return ApiState(settings=Settings(data_dir=tmp_path, rng_seed="integration"))

    with TestClient(create_app(state_factory=factory)) as test_client:
        yield test_client


def _finish_phase(client: TestClient, session_id: str, view: dict) -> dict:
    """Answer whatever the run is waiting on until it is back on the dashboard."""

    for _ in range(50):
        phase = view["phase"]
        if phase == "DRAFT":
            intent = {
                "type": "DRAFT_PICK",
                "player_index": view["active_player"],
                "card_id": view["hand"][0],
            }
            draft = view["state"]["draft_state"]
            if draft["pending_stratagem"] is not None:
                intent = {
                    "type": "STRATAGEM_REPLACEMENT",
                    "player_index": view["active_player"],
                    "slot_index": 0,
                }
        elif phase == "EVENT":
            pending = view["state"]["event_state"]["pending_booster"]
            if pending is not None:
                intent = {
                    "type": "SELECT_EVENT_BOOSTER",
                    "player_index": 0,
                    "booster_id": pending["options"][0],
                }
            else:
                intent = {"type": "SKIP_EVENT", "player_index": 0}
        else:
            return view
        response = client.post(f"/sessions/{session_id}/intents", json=intent)
        assert response.status_code == 200
        assert response.json()["success"], response.json()["detail"]
        view = response.json()["session"]
    raise AssertionError("run did not settle")


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["autosave"] is True
    assert data["catalog_events"] >= 7


def test_api_docs_available(client):
    response = client.get("/openapi.json")
    assert response.status_code == 200
    assert response.json()["info"]["title"] == "Helldrafters Host API"


def test_solo_run_to_victory(client):
    response = client.post("/sessions", json={"player_names": ["Solo"]})
    assert response.status_code == 201
    view = response.json()
    session_id = view["session_id"]

    for difficulty in range(1, 10):
        assert view["difficulty"] == difficulty
        response = client.post(
            f"/sessions/{session_id}/missions",
            json={"success": True, "samples": {"common": 4, "rare": 2}},
        )
        assert response.status_code == 200
        view = _finish_phase(client, session_id, response.json()["session"])
        assert view["phase"] == "DASHBOARD"

    response = client.post(f"/sessions/{session_id}/missions", json={"success": True})
    final = response.json()
    assert final["detail"] == "victory"
    assert final["session"]["phase"] == "VICTORY"

    inventory = final["session"]["state"]["players"][0]["inventory"]
    assert len(inventory) > 3
    assert len(inventory) == len(set(inventory))
