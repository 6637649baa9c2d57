from __future__ import annotations

from fastapi.testclient import TestClient

from kibitz.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def _pvp_game(client: TestClient) -> dict:
    return client.post("/api/games", json={"options": {"mode": "pvp"}}).json()


def test_undo_without_moves_returns_400() -> None:
    client = _client()
    game_id = _pvp_game(client)["game_id"]

    r_undo = client.post(f"/api/games/{game_id}/undo")
    assert r_undo.status_code == 400
    body = r_undo.json()
    assert body["error"]["code"] == "bad_request"
    assert "no moves" in body["error"]["message"].lower()


def test_undo_restores_prior_state() -> None:
    client = _client()
    created = _pvp_game(client)
    game_id, start_fen = created["game_id"], created["fen"]

    r_move = client.post(f"/api/games/{game_id}/move", json={"from_square": "e2", "to_square": "e4"})
    assert r_move.status_code == 200
    assert " b " in r_move.json()["fen"]

    r_undo = client.post(f"/api/games/{game_id}/undo")
    assert r_undo.status_code == 200
    state = r_undo.json()
    assert state["fen"] == start_fen
    assert state["legal_moves"]
    assert state["last_move"] is None
    assert state["move_history"] == []
