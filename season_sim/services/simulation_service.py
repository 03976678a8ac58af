"""
Multi-league registry: one SeasonOrchestrator per catalog league, all sharing one
TaskScheduler, one EventPublisher and one StandingsService.

The league id -> orchestrator map is guarded by a lock so API-facing readers can
look leagues up while orchestrators run. Every query answers "not found" with
None or an empty list, never an exception.
"""
from __future__ import annotations

import logging
import threading

from season_sim.config import SimulationConfig
from season_sim.errors import InvalidLeagueError
from season_sim.league_data import LeagueCatalog
from season_sim.models import Fixture, League, Match, Standing, Team
from season_sim.simulation.emitter import EventPublisher
from season_sim.simulation.rng import SeededRNG
from season_sim.simulation.schemas import SeasonStatus, SeasonSummary
from .season_orchestrator import SeasonOrchestrator
from .standings_service import StandingsService
from .timers import TaskScheduler

_log = logging.getLogger("season_sim.service")


class SimulationService:
    """Starts every league and answers read queries about them."""

    def __init__(
        self,
        catalog: LeagueCatalog,
        scheduler: TaskScheduler,
        publisher: EventPublisher | None = None,
        config: SimulationConfig | None = None,
        seed: int | None = None,
        standings: StandingsService | None = None,
    ) -> None:
        self.catalog = catalog
        self.scheduler = scheduler
        self.publisher = publisher or EventPublisher()
        self.config = config or SimulationConfig.from_env()
        self.standings_service = standings or StandingsService()
        self._rng = SeededRNG(seed)
        self._orchestrators: dict[str, SeasonOrchestrator] = {}
        self._lock = threading.RLock()

    # ---------- Lifecycle ----------

    def start_league(self, league: League) -> SeasonOrchestrator | None:
        """Start one league. Returns None (and logs) if the league cannot be scheduled."""
        with self._lock:
            if league.id in self._orchestrators:
                return self._orchestrators[league.id]
        orchestrator = SeasonOrchestrator(
            league,
            standings=self.standings_service,
            publisher=self.publisher,
            scheduler=self.scheduler,
            config=self.config,
            rng=self._rng.spawn(),
        )
        try:
            orchestrator.start()
        except InvalidLeagueError as e:
            _log.warning("Skipping league %s: %s", league.id, e)
            return None
        with self._lock:
            self._orchestrators[league.id] = orchestrator
        return orchestrator

    def start_all(self) -> list[str]:
        """Start every catalog league. Returns the ids that started."""
        started = []
        for league in self.catalog.all_leagues():
            if self.start_league(league) is not None:
                started.append(league.id)
        _log.info("Simulation running for %d of %d leagues", len(started), len(self.catalog))
        return started

    def shutdown(self) -> None:
        with self._lock:
            orchestrators = list(self._orchestrators.values())
        for orchestrator in orchestrators:
            orchestrator.stop()
        self.scheduler.shutdown()

    # ---------- Lookups ----------

    def orchestrator(self, league_id: str) -> SeasonOrchestrator | None:
        with self._lock:
            return self._orchestrators.get(league_id)

    def league_ids(self) -> list[str]:
        with self._lock:
            return list(self._orchestrators)

    def all_leagues(self) -> list[League]:
        return [o.league for o in self._all()]

    def get_league(self, league_id: str) -> League | None:
        o = self.orchestrator(league_id)
        return o.league if o else None

    def get_team(self, league_id: str, team_id: str) -> Team | None:
        league = self.get_league(league_id)
        return league.get_team(team_id) if league else None

    def _all(self) -> list[SeasonOrchestrator]:
        with self._lock:
            return list(self._orchestrators.values())

    # ---------- Queries ----------

    def status(self, league_id: str) -> SeasonStatus | None:
        o = self.orchestrator(league_id)
        return o.status() if o else None

    def all_statuses(self) -> list[SeasonStatus]:
        return [o.status() for o in self._all()]

    def standings(self, league_id: str, live: bool = True) -> list[Standing]:
        """Live projection while a matchweek runs (unless live=False), committed table otherwise."""
        o = self.orchestrator(league_id)
        if o is None:
            return []
        return o.standings() if live else o.committed_standings()

    def team_standing(self, league_id: str, team_id: str) -> Standing | None:
        o = self.orchestrator(league_id)
        if o is None:
            return None
        return self.standings_service.team_standing(league_id, o.season, team_id)

    def current_fixture(self, league_id: str) -> Fixture | None:
        o = self.orchestrator(league_id)
        return o.current_fixture if o else None

    def next_fixture(self, league_id: str) -> Fixture | None:
        o = self.orchestrator(league_id)
        return o.next_fixture() if o else None

    def fixture(self, league_id: str, matchweek: int) -> Fixture | None:
        o = self.orchestrator(league_id)
        if o is None:
            return None
        for f in o.fixtures:
            if f.matchweek == matchweek:
                return f
        return None

    def live_matches(self, league_id: str | None = None) -> list[Match]:
        """Matches in play for one league, or across all leagues."""
        if league_id is not None:
            o = self.orchestrator(league_id)
            return o.live_matches() if o else []
        return [m for o in self._all() for m in o.live_matches()]

    def completed_matches(self, league_id: str) -> list[Match]:
        o = self.orchestrator(league_id)
        return o.completed_matches() if o else []

    def find_match(self, match_id: str) -> Match | None:
        for o in self._all():
            match = o.find_match(match_id)
            if match is not None:
                return match
        return None

    def season_history(self, league_id: str) -> list[SeasonSummary]:
        o = self.orchestrator(league_id)
        return o.history if o else []
