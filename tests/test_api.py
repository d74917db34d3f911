import pytest
from fastapi.testclient import TestClient

from franchise_sim.api import app


@pytest.fixture
def client() -> TestClient:
    client = TestClient(app)
    response = client.post("/api/reset", json={"seed": 17})
    assert response.status_code == 200
    return client


def test_health() -> None:
    assert TestClient(app).get("/api/health").json() == {"status": "ok"}


def test_reset_opens_a_fresh_preseason(client: TestClient) -> None:
    status = client.get("/api/status").json()
    assert status["date"] == "2025-10-01"
    assert status["season"] == "2025-26"
    assert status["phase"] == "PRESEASON"
    assert status["days_until_next_phase"] == 9
    assert status["games_played"] == 0
    assert status["past_seasons"] == []

    rows = client.get("/api/standings").json()
    assert len(rows) == 10
    assert [row["rank"] for row in rows] == list(range(1, 11))
    assert all(row["gp"] == 0 for row in rows)


def test_advance_moves_the_calendar(client: TestClient) -> None:
    assert client.post("/api/advance", json={"days": 0}).status_code == 400

    body = client.post("/api/advance", json={"days": 10}).json()
    assert body["days"] == 10
    assert body["status"]["date"] == "2025-10-11"
    assert body["status"]["phase"] == "REGULAR"
    assert any(event["type"] == "season_transition" for event in body["events"])

    body = client.post("/api/advance", json={"days": 1}).json()
    assert body["games_played"] > 0
    assert body["skipped_games"] == 0
    assert body["status"]["games_played"] == body["games_played"]
    assert sum(row["gp"] for row in client.get("/api/standings").json()) == 2 * body["games_played"]


def test_lineup_endpoint(client: TestClient) -> None:
    team_id = client.get("/api/standings").json()[0]["team_id"]
    lineup = client.get(f"/api/teams/{team_id}/lineup").json()
    assert len(lineup["forward_lines"]) == 4
    assert all(len(line["players"]) == 3 for line in lineup["forward_lines"])
    assert [pair["weight"] for pair in lineup["defense_pairs"]] == [0.40, 0.35, 0.25]
    assert lineup["starting_goalie"]["position"] == "G"

    assert client.get("/api/teams/missing/lineup").status_code == 404


def test_upcoming_lookups(client: TestClient) -> None:
    team_id = client.get("/api/standings").json()[0]["team_id"]
    games = client.get("/api/games/upcoming", params={"team": team_id, "limit": 3}).json()
    assert 0 < len(games) <= 3
    assert all(not game["completed"] for game in games)
    assert client.get("/api/games/upcoming", params={"team": "missing"}).status_code == 404

    events = client.get("/api/events/upcoming", params={"limit": 5}).json()
    assert len(events) == 5
    assert events[0]["type"] == "season_transition"
    assert events[0]["date"] == "2025-10-10"


def test_bad_reset_keeps_current_franchise(client: TestClient) -> None:
    client.post("/api/advance", json={"days": 3})
    assert client.post("/api/reset", json={"team_count": 3}).status_code == 400
    assert client.post("/api/reset", json={"team_count": 40}).status_code == 400
    assert client.get("/api/status").json()["date"] == "2025-10-04"


def test_player_detail(client: TestClient) -> None:
    client.post("/api/advance", json={"days": 14})
    team_id = client.get("/api/standings").json()[0]["team_id"]
    lineup = client.get(f"/api/teams/{team_id}/lineup").json()

    center_id = lineup["forward_lines"][0]["players"][0]["player_id"]
    center = client.get(f"/api/players/{center_id}").json()
    assert center["position_name"] == "Center"
    assert center["games_played"] > 0
    assert center["time_on_ice_avg"] > 0
    assert 0.0 <= center["faceoff_pct"] <= 1.0

    goalie = client.get(f"/api/players/{lineup['starting_goalie']['player_id']}").json()
    assert goalie["position_name"] == "Goalie"
    assert goalie["wins"] + goalie["losses"] + goalie["ot_losses"] == goalie["games_played"]
    assert 0.0 <= goalie["save_pct"] <= 1.0

    assert client.get("/api/players/missing").status_code == 404


def test_advance_is_capped_at_one_year(client: TestClient) -> None:
    assert client.post("/api/advance", json={"days": 100000}).status_code == 422
    assert client.get("/api/status").json()["date"] == "2025-10-01"
    row = client.get("/api/standings").json()[0]
    assert row["win_pct"] == 0.0
