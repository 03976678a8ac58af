"""
API integration tests.
Uses TestClient to avoid starting a server; leagues run on a virtual clock that
tests advance through app.state.scheduler.
Requires: pip install httpx (for TestClient)
"""
from __future__ import annotations

import pytest

try:
    from fastapi.testclient import TestClient
    from starlette.websockets import WebSocketDisconnect
    HAS_HTTPX = True
except (ImportError, RuntimeError):
    HAS_HTTPX = False

pytestmark = pytest.mark.skipif(not HAS_HTTPX, reason="httpx required for TestClient")

from conftest import build_league
from season_sim.api import create_app
from season_sim.league_data import LeagueCatalog
from season_sim.models import SeasonState
from season_sim.services.timers import ManualTaskScheduler
from season_sim.simulation.schemas import Topic


@pytest.fixture
def client(test_config):
    catalog = LeagueCatalog([build_league(4, "alpha"), build_league(5, "beta")])
    app = create_app(catalog=catalog, config=test_config, scheduler_factory=ManualTaskScheduler, seed=5)
    with TestClient(app) as c:
        yield c


def _service(client):
    return client.app.state.service


def _run_until(client, predicate):
    assert client.app.state.scheduler.run_until(predicate, max_seconds=100_000)


def _until_running(client, league_id="alpha"):
    service = _service(client)
    _run_until(client, lambda: service.status(league_id).state == SeasonState.RUNNING_FIXTURE)


def _until_season_done(client, league_id="alpha"):
    service = _service(client)
    _run_until(client, lambda: len(service.season_history(league_id)) >= 1)


# ---------- Leagues ----------
def test_list_leagues(client):
    resp = client.get("/leagues")
    assert resp.status_code == 200
    data = resp.json()
    assert [lg["id"] for lg in data] == ["alpha", "beta"]
    assert data[0]["total_matchweeks"] == 6
    assert data[1]["total_matchweeks"] == 10
    assert data[0]["status"]["state"] == "WAITING_NEXT_FIXTURE"
    assert "teams" not in data[0]


def test_league_detail_and_status(client):
    resp = client.get("/leagues/alpha")
    assert resp.status_code == 200
    assert len(resp.json()["teams"]) == 4
    status = client.get("/leagues/alpha/status").json()
    assert status["season"] == 1
    assert status["current_matchweek"] == 0
    assert status["state_description"] == "Waiting for next fixture"


def test_team_detail(client):
    resp = client.get("/leagues/beta/teams/t5")
    assert resp.status_code == 200
    team = resp.json()
    assert team["name"] == "Team T5"
    assert len(team["players"]) == 4


@pytest.mark.parametrize("path", [
    "/leagues/nope",
    "/leagues/nope/status",
    "/leagues/nope/standings",
    "/leagues/alpha/teams/ghost",
    "/leagues/alpha/standings/ghost",
    "/leagues/alpha/fixtures/current",
    "/leagues/alpha/fixtures/99",
    "/leagues/nope/history",
    "/matches/not-a-match",
    "/statistics/nope/summary",
    "/statistics/alpha/teams/ghost",
    "/predictions/matches/not-a-match",
    "/predictions/head-to-head?league_id=alpha&home_team_id=t1&away_team_id=ghost",
])
def test_not_found(client, path):
    assert client.get(path).status_code == 404


# ---------- Standings and fixtures ----------
def test_standings_before_kick_off(client):
    data = client.get("/leagues/alpha/standings").json()
    assert data["live"] is False
    assert [row["position"] for row in data["standings"]] == [1, 2, 3, 4]
    assert all(row["played"] == 0 for row in data["standings"])
    row = client.get("/leagues/alpha/standings/t2").json()
    assert row["team_id"] == "t2"


def test_next_and_numbered_fixtures(client):
    nxt = client.get("/leagues/alpha/fixtures/next").json()
    assert nxt["matchweek"] == 1
    assert len(nxt["matches"]) == 2
    assert all(m["phase"] == "NOT_STARTED" for m in nxt["matches"])
    third = client.get("/leagues/beta/fixtures/3").json()
    assert third["matchweek"] == 3


def test_live_fixture_and_matches(client):
    _until_running(client, "alpha")
    _until_running(client, "beta")
    current = client.get("/leagues/alpha/fixtures/current").json()
    assert current["matchweek"] == 1
    assert current["live"] is True
    assert current["matches"][0]["phase_display"] == "First Half"
    assert len(client.get("/leagues/alpha/matches/live").json()) == 2
    assert len(client.get("/matches/live").json()) == 4
    assert client.get("/leagues/alpha/standings").json()["live"] is True
    assert client.get("/leagues/alpha/standings?live=false").json()["live"] is False

    match_id = current["matches"][0]["match_id"]
    detail = client.get(f"/matches/{match_id}").json()
    assert detail["events"][0]["type"] == "KICK_OFF"
    assert "significant_events" in detail


def test_completed_season(client):
    _until_season_done(client)
    completed = client.get("/leagues/alpha/matches/completed").json()
    assert len(completed) == 12
    assert all(m["phase"] == "FULL_TIME" for m in completed)
    history = client.get("/leagues/alpha/history").json()
    assert history[0]["season"] == 1
    assert history[0]["champion"]["team_id"] == history[0]["final_table"][0]["team_id"]


# ---------- Statistics and predictions ----------
def test_statistics(client):
    _until_season_done(client)
    summary = client.get("/statistics/alpha/summary").json()
    assert summary["total_matches"] == 12
    assert summary["home_wins"] + summary["away_wins"] + summary["draws"] == 12
    scorers = client.get("/statistics/alpha/top-scorers?limit=3").json()
    assert len(scorers) <= 3
    goals = [s["goals"] for s in scorers]
    assert goals == sorted(goals, reverse=True)
    team = client.get("/statistics/alpha/teams/t1").json()
    assert team["played"] == 6
    assert team["shots_on_target"] <= team["total_shots"]


def test_top_scorers_limit_validated(client):
    assert client.get("/statistics/alpha/top-scorers?limit=0").status_code == 422


def test_predictions(client):
    match_id = client.get("/leagues/alpha/fixtures/next").json()["matches"][0]["match_id"]
    pred = client.get(f"/predictions/matches/{match_id}").json()
    assert pred["match_id"] == match_id
    wp = pred["win_probability"]
    assert wp["home_win"] + wp["draw"] + wp["away_win"] == 100

    h2h = client.get("/predictions/head-to-head", params={
        "league_id": "alpha", "home_team_id": "t1", "away_team_id": "t2",
    }).json()
    assert (h2h["home_team_id"], h2h["away_team_id"]) == ("t1", "t2")
    assert client.get("/predictions/head-to-head?league_id=alpha").status_code == 422


# ---------- WebSocket ----------
def test_websocket_initial_state_then_updates(client):
    with client.websocket_connect("/ws/league/alpha") as ws:
        first = ws.receive_json()
        assert (first["type"], first["league_id"]) == ("season_state", "alpha")
        assert first["data"]["state"] == "WAITING_NEXT_FIXTURE"
        table = ws.receive_json()
        assert table["type"] == "standings"
        assert len(table["data"]["standings"]) == 4

        client.app.state.scheduler.advance(0)
        update = ws.receive_json()
        assert update["type"] == "season_state"
        assert update["data"]["state"] == "COUNTDOWN"
        tick = ws.receive_json()
        assert tick["type"] == "countdown"
        assert tick["data"]["seconds_remaining"] == 2


def test_websocket_unknown_league(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/league/nope") as ws:
            ws.receive_json()


class _Unserializable:
    def to_dict(self):
        return {"value": object()}


def test_websocket_closes_when_a_send_fails(client):
    publisher = _service(client).publisher
    baseline = publisher.subscriber_count
    with client.websocket_connect("/ws/league/alpha") as ws:
        ws.receive_json()
        ws.receive_json()
        publisher.publish(Topic.EVENT, "alpha", _Unserializable())
        with pytest.raises(WebSocketDisconnect) as excinfo:
            ws.receive_json()
        assert excinfo.value.code == 1011
    assert publisher.subscriber_count == baseline


def test_websocket_disconnect_unsubscribes(client):
    publisher = _service(client).publisher
    baseline = publisher.subscriber_count
    with client.websocket_connect("/ws/league/alpha") as ws:
        ws.receive_json()
        ws.receive_json()
        assert publisher.subscriber_count == baseline + 1
    assert publisher.subscriber_count == baseline
