"""
REST + WebSocket surface for the season simulator.
Thin wrappers around SimulationService queries; every unknown id is a 404.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable

from fastapi import Depends, FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from season_sim.config import LOG_LEVEL, SimulationConfig, configure_logging
from season_sim.league_data import LeagueCatalog
from season_sim.models import Fixture, League, Match
from season_sim.services.predictions import predict_match
from season_sim.services.simulation_service import SimulationService
from season_sim.services.statistics import league_summary, team_stats, top_scorers
from season_sim.services.timers import AsyncioTaskScheduler, TaskScheduler
from season_sim.simulation.schemas import Topic, snapshot_from_fixture, snapshot_from_match, standings_update

_log = logging.getLogger("season_sim.api")


# ---------- App factory ----------
def create_app(
    catalog: LeagueCatalog | None = None,
    config: SimulationConfig | None = None,
    scheduler_factory: Callable[[], TaskScheduler] | None = None,
    seed: int | None = None,
) -> FastAPI:
    """
    Build the app. The lifespan loads leagues (bundled data unless a catalog is given),
    starts every league on the scheduler and shuts everything down on exit.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if catalog is None:
            configure_logging(LOG_LEVEL)
        leagues = catalog if catalog is not None else LeagueCatalog.from_directory()
        scheduler = scheduler_factory() if scheduler_factory else AsyncioTaskScheduler(asyncio.get_running_loop())
        service = SimulationService(leagues, scheduler, config=config, seed=seed)
        service.start_all()
        app.state.scheduler = scheduler
        app.state.service = service
        try:
            yield
        finally:
            service.shutdown()

    app = FastAPI(
        title="Football Season Simulator API",
        description="Continuous league seasons simulated in compressed real time",
        version="0.1.0",
        lifespan=lifespan,
    )
    _register_routes(app)
    return app


def get_service(request: Request) -> SimulationService:
    return request.app.state.service


# ---------- Response helpers ----------
def _require_league(service: SimulationService, league_id: str) -> League:
    league = service.get_league(league_id)
    if league is None:
        raise HTTPException(status_code=404, detail=f"League not found: {league_id}")
    return league


def _fixture_or_404(fixture: Fixture | None, what: str) -> dict[str, Any]:
    if fixture is None:
        raise HTTPException(status_code=404, detail=f"No {what} fixture")
    return snapshot_from_fixture(fixture).to_dict()


def _match_detail(match: Match) -> dict[str, Any]:
    return {
        **snapshot_from_match(match).to_dict(),
        "events": [e.to_dict() for e in match.events],
        "significant_events": [e.to_dict() for e in match.significant_events()],
    }


def _register_routes(app: FastAPI) -> None:

    # ---------- Leagues ----------
    @app.get("/leagues")
    def list_leagues(service: SimulationService = Depends(get_service)) -> list[dict[str, Any]]:
        out = []
        for league in service.all_leagues():
            status = service.status(league.id)
            out.append({**league.to_dict(include_teams=False), "status": status.to_dict() if status else None})
        return out

    @app.get("/leagues/{league_id}")
    def get_league(league_id: str, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        league = _require_league(service, league_id)
        return {**league.to_dict(), "status": service.status(league_id).to_dict()}

    @app.get("/leagues/{league_id}/status")
    def get_status(league_id: str, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        _require_league(service, league_id)
        return service.status(league_id).to_dict()

    @app.get("/leagues/{league_id}/teams/{team_id}")
    def get_team(league_id: str, team_id: str, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        team = service.get_team(league_id, team_id)
        if team is None:
            raise HTTPException(status_code=404, detail=f"Team not found: {team_id}")
        return team.to_dict(include_players=True)

    @app.get("/leagues/{league_id}/standings")
    def get_standings(
        league_id: str,
        live: bool = Query(True, description="Include scores of matches in play"),
        service: SimulationService = Depends(get_service),
    ) -> dict[str, Any]:
        _require_league(service, league_id)
        status = service.status(league_id)
        is_live = live and service.current_fixture(league_id) is not None
        rows = service.standings(league_id, live=live)
        return standings_update(league_id, status.season, rows, live=is_live).to_dict()

    @app.get("/leagues/{league_id}/standings/{team_id}")
    def get_team_standing(
        league_id: str, team_id: str, service: SimulationService = Depends(get_service)
    ) -> dict[str, Any]:
        standing = service.team_standing(league_id, team_id)
        if standing is None:
            raise HTTPException(status_code=404, detail=f"Team not found: {team_id}")
        return standing.to_dict()

    @app.get("/leagues/{league_id}/fixtures/current")
    def get_current_fixture(league_id: str, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        _require_league(service, league_id)
        return _fixture_or_404(service.current_fixture(league_id), "current")

    @app.get("/leagues/{league_id}/fixtures/next")
    def get_next_fixture(league_id: str, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        _require_league(service, league_id)
        return _fixture_or_404(service.next_fixture(league_id), "next")

    @app.get("/leagues/{league_id}/fixtures/{matchweek}")
    def get_fixture(league_id: str, matchweek: int, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        _require_league(service, league_id)
        return _fixture_or_404(service.fixture(league_id, matchweek), f"matchweek {matchweek}")

    @app.get("/leagues/{league_id}/matches/live")
    def get_league_live_matches(
        league_id: str, service: SimulationService = Depends(get_service)
    ) -> list[dict[str, Any]]:
        _require_league(service, league_id)
        return [snapshot_from_match(m).to_dict() for m in service.live_matches(league_id)]

    @app.get("/leagues/{league_id}/matches/completed")
    def get_completed_matches(
        league_id: str, service: SimulationService = Depends(get_service)
    ) -> list[dict[str, Any]]:
        _require_league(service, league_id)
        return [snapshot_from_match(m).to_dict() for m in service.completed_matches(league_id)]

    @app.get("/leagues/{league_id}/history")
    def get_history(league_id: str, service: SimulationService = Depends(get_service)) -> list[dict[str, Any]]:
        _require_league(service, league_id)
        return [s.to_dict() for s in service.season_history(league_id)]

    # ---------- Matches ----------
    @app.get("/matches/live")
    def get_all_live_matches(service: SimulationService = Depends(get_service)) -> list[dict[str, Any]]:
        return [snapshot_from_match(m).to_dict() for m in service.live_matches()]

    @app.get("/matches/{match_id}")
    def get_match(match_id: str, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        match = service.find_match(match_id)
        if match is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return _match_detail(match)

    # ---------- Statistics ----------
    @app.get("/statistics/{league_id}/top-scorers")
    def get_top_scorers(
        league_id: str,
        limit: int = Query(10, ge=1, le=100),
        service: SimulationService = Depends(get_service),
    ) -> list[dict[str, Any]]:
        _require_league(service, league_id)
        return [p.to_dict() for p in top_scorers(service.completed_matches(league_id), limit)]

    @app.get("/statistics/{league_id}/teams/{team_id}")
    def get_team_stats(
        league_id: str, team_id: str, service: SimulationService = Depends(get_service)
    ) -> dict[str, Any]:
        standing = service.team_standing(league_id, team_id)
        if standing is None:
            raise HTTPException(status_code=404, detail=f"Team not found: {team_id}")
        return team_stats(standing, service.completed_matches(league_id)).to_dict()

    @app.get("/statistics/{league_id}/summary")
    def get_league_summary(league_id: str, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        _require_league(service, league_id)
        return league_summary(league_id, service.completed_matches(league_id)).to_dict()

    # ---------- Predictions ----------
    @app.get("/predictions/matches/{match_id}")
    def get_match_prediction(match_id: str, service: SimulationService = Depends(get_service)) -> dict[str, Any]:
        match = service.find_match(match_id)
        if match is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return predict_match(match.home_team, match.away_team, match_id=match.id).to_dict()

    @app.get("/predictions/head-to-head")
    def get_head_to_head(
        league_id: str = Query(...),
        home_team_id: str = Query(...),
        away_team_id: str = Query(...),
        service: SimulationService = Depends(get_service),
    ) -> dict[str, Any]:
        _require_league(service, league_id)
        home = service.get_team(league_id, home_team_id)
        away = service.get_team(league_id, away_team_id)
        if home is None or away is None:
            raise HTTPException(status_code=404, detail="Team not found")
        return predict_match(home, away).to_dict()

    # ---------- WebSocket: every published message for one league ----------
    @app.websocket("/ws/league/{league_id}")
    async def websocket_league(websocket: WebSocket, league_id: str):
        """
        Push { type, league_id, data } for every event, match state, table, fixture,
        season state and countdown message of the league. Late join: the current
        status and table are sent on connect.
        """
        service: SimulationService = websocket.app.state.service
        if service.get_league(league_id) is None:
            await websocket.close(code=4404)
            return
        await websocket.accept()
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        def on_message(topic: Topic, payload: Any) -> None:
            loop.call_soon_threadsafe(
                queue.put_nowait, {"type": topic.value, "league_id": league_id, "data": payload.to_dict()},
            )

        async def pump() -> None:
            while True:
                await websocket.send_json(await queue.get())

        async def drain() -> None:
            while True:
                await websocket.receive_text()

        unsubscribe = service.publisher.subscribe(on_message, league_id=league_id)
        tasks: list[asyncio.Task] = []
        try:
            status = service.status(league_id)
            await websocket.send_json({"type": Topic.SEASON_STATE.value, "league_id": league_id, "data": status.to_dict()})
            table = standings_update(
                league_id, status.season, service.standings(league_id),
                live=service.current_fixture(league_id) is not None,
            )
            await websocket.send_json({"type": Topic.STANDINGS.value, "league_id": league_id, "data": table.to_dict()})
            tasks = [asyncio.create_task(pump()), asyncio.create_task(drain())]
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    _log.warning("WebSocket for %s failed: %s", league_id, exc)
                    if websocket.client_state == WebSocketState.CONNECTED:
                        await websocket.close(code=1011)
        except WebSocketDisconnect:
            pass
        finally:
            unsubscribe()
            for task in tasks:
                task.cancel()


app = create_app()


# ---------- Run with: uvicorn season_sim.api:app --reload ----------
