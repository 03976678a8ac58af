"""
Season orchestrator: one per league. Drives the season loop forever:

  initialize -> countdown -> run fixture (tick every engine) -> record results
             -> gap -> countdown -> ... -> season complete -> long gap -> initialize

Every delay is a deferred call on the shared TaskScheduler; nothing here sleeps.
State changes, countdown ticks, match events and tables are pushed through the
EventPublisher as immutable snapshots.
"""
from __future__ import annotations

import logging

from season_sim.config import SimulationConfig
from season_sim.errors import SeasonTransitionError
from season_sim.models import Fixture, League, Match, MatchEvent, SeasonState, Standing, is_goal
from season_sim.simulation.emitter import EventPublisher
from season_sim.simulation.event_generator import EventGenerator
from season_sim.simulation.match_engine import MatchEngine
from season_sim.simulation.rng import SeededRNG
from season_sim.simulation.schemas import (
    CountdownTick,
    LeagueEvent,
    SeasonStatus,
    SeasonSummary,
    Topic,
    row_from_standing,
    snapshot_from_fixture,
    snapshot_from_match,
    standings_update,
)
from .scheduling import generate_season_fixtures
from .standings_service import StandingsService
from .timers import TaskHandle, TaskScheduler

_log = logging.getLogger("season_sim.orchestrator")


# ---------- Valid transitions ----------

_VALID_TRANSITIONS: dict[SeasonState, set[SeasonState]] = {
    SeasonState.IDLE: {SeasonState.WAITING_NEXT_FIXTURE},
    SeasonState.WAITING_NEXT_FIXTURE: {SeasonState.COUNTDOWN, SeasonState.SEASON_COMPLETE},
    SeasonState.COUNTDOWN: {SeasonState.RUNNING_FIXTURE},
    SeasonState.RUNNING_FIXTURE: {SeasonState.WAITING_NEXT_FIXTURE, SeasonState.SEASON_COMPLETE},
    SeasonState.SEASON_COMPLETE: {SeasonState.WAITING_NEXT_SEASON},
    SeasonState.WAITING_NEXT_SEASON: {SeasonState.WAITING_NEXT_FIXTURE},
}


# ---------- SeasonOrchestrator ----------


class SeasonOrchestrator:
    """
    Owns the fixtures, engines and completed matches of one league's current season.
    Committed tables live in the shared StandingsService, keyed by (league, season).
    """

    def __init__(
        self,
        league: League,
        standings: StandingsService,
        publisher: EventPublisher,
        scheduler: TaskScheduler,
        config: SimulationConfig | None = None,
        rng: SeededRNG | None = None,
        first_season: int = 1,
    ) -> None:
        self.league = league
        self.standings_service = standings
        self.publisher = publisher
        self.scheduler = scheduler
        self.config = config or SimulationConfig.from_env()
        self.rng = rng or SeededRNG()

        self._state = SeasonState.IDLE
        self._season = first_season
        self._current_matchweek = 0
        self._fixtures: list[Fixture] = []
        self._current_fixture: Fixture | None = None
        self._engines: list[MatchEngine] = []
        self._completed: list[Match] = []
        self._history: list[SeasonSummary] = []
        self._ticker: TaskHandle | None = None
        self._pending: TaskHandle | None = None
        self._started = False
        self._stopped = False

    # ---------- Read-only state ----------

    @property
    def league_id(self) -> str:
        return self.league.id

    @property
    def state(self) -> SeasonState:
        return self._state

    @property
    def season(self) -> int:
        return self._season

    @property
    def current_matchweek(self) -> int:
        return self._current_matchweek

    @property
    def total_matchweeks(self) -> int:
        return len(self._fixtures) or self.league.total_matchweeks

    @property
    def fixtures(self) -> tuple[Fixture, ...]:
        return tuple(self._fixtures)

    @property
    def current_fixture(self) -> Fixture | None:
        """The matchweek being played, or None between matchweeks."""
        if self._state == SeasonState.RUNNING_FIXTURE:
            return self._current_fixture
        return None

    @property
    def history(self) -> list[SeasonSummary]:
        return list(self._history)

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def status(self) -> SeasonStatus:
        return SeasonStatus(
            league_id=self.league.id,
            league_name=self.league.name,
            state=self._state,
            season=self._season,
            current_matchweek=self._current_matchweek,
            total_matchweeks=self.total_matchweeks,
        )

    def next_fixture(self) -> Fixture | None:
        if self._current_matchweek < len(self._fixtures):
            return self._fixtures[self._current_matchweek]
        return None

    def live_matches(self) -> list[Match]:
        fixture = self.current_fixture
        if fixture is None:
            return []
        return [m for m in fixture.matches if m.is_live()]

    def completed_matches(self) -> list[Match]:
        return list(self._completed)

    def find_match(self, match_id: str) -> Match | None:
        for fixture in self._fixtures:
            for match in fixture.matches:
                if match.id == match_id:
                    return match
        return None

    def standings(self) -> list[Standing]:
        """Live projection while a matchweek is running, the committed table otherwise."""
        if self._state == SeasonState.RUNNING_FIXTURE:
            return self.standings_service.live_standings_for(self.league.id, self._season, self._current_fixture)
        return self.standings_service.standings_for(self.league.id, self._season)

    def committed_standings(self) -> list[Standing]:
        return self.standings_service.standings_for(self.league.id, self._season)

    # ---------- Lifecycle ----------

    def start(self) -> None:
        """Initialize the first season and schedule its first countdown immediately."""
        if self._started:
            raise SeasonTransitionError(f"League {self.league.id} already started")
        self._started = True
        self.initialize_season()
        self._pending = self.scheduler.call_later(0, self._start_countdown, name=f"{self.league.id}:countdown")

    def stop(self) -> None:
        """Cancel outstanding timers. Matches mid-simulation are left where they are."""
        self._stopped = True
        for handle in (self._ticker, self._pending):
            if handle is not None:
                handle.cancel()
        self._ticker = None
        self._pending = None
        _log.info("Stopped %s in season %d, matchweek %d", self.league.name, self._season, self._current_matchweek)

    def initialize_season(self) -> None:
        """Generate fixtures and zero the table for the current season number."""
        self._fixtures = generate_season_fixtures(self.league, self._season, self.rng.spawn())
        self._current_matchweek = 0
        self._current_fixture = None
        self._engines = []
        self._completed = []
        self.standings_service.initialize_season(self.league, self._season)
        _log.info(
            "Initialized season %d for %s: %d matchweeks",
            self._season, self.league.name, len(self._fixtures),
        )
        self._transition(SeasonState.WAITING_NEXT_FIXTURE)
        self._publish_standings(live=False)

    # ---------- Countdown ----------

    def _start_countdown(self) -> None:
        self._pending = None
        if self._stopped:
            return
        upcoming = self.next_fixture()
        if upcoming is None:
            self._complete_season()
            return
        self._transition(SeasonState.COUNTDOWN)
        _log.info(
            "Countdown to matchweek %d of season %d (%s): %ds",
            upcoming.matchweek, self._season, self.league.name, self.config.countdown_seconds,
        )
        self._countdown_step(upcoming, self.config.countdown_seconds)

    def _countdown_step(self, upcoming: Fixture, remaining: int) -> None:
        self._pending = None
        if self._stopped:
            return
        self.publisher.publish(
            Topic.COUNTDOWN,
            self.league.id,
            CountdownTick(
                league_id=self.league.id,
                matchweek=upcoming.matchweek,
                seconds_remaining=remaining,
                upcoming_fixture=snapshot_from_fixture(upcoming),
            ),
        )
        if remaining <= 0:
            self._run_next_fixture()
            return
        self._pending = self.scheduler.call_later(
            1.0,
            lambda: self._countdown_step(upcoming, remaining - 1),
            name=f"{self.league.id}:countdown",
        )

    # ---------- Running a matchweek ----------

    def _run_next_fixture(self) -> None:
        fixture = self.next_fixture()
        if fixture is None:
            self._complete_season()
            return
        self._current_fixture = fixture
        self._current_matchweek += 1
        self._transition(SeasonState.RUNNING_FIXTURE)
        _log.info(
            "Starting matchweek %d/%d of season %d for %s",
            self._current_matchweek, len(self._fixtures), self._season, self.league.name,
        )
        self.publisher.publish(Topic.FIXTURE, self.league.id, snapshot_from_fixture(fixture))

        self._engines = []
        for match in fixture.matches:
            engine_rng = self.rng.spawn()
            engine = MatchEngine(
                event_generator=EventGenerator(engine_rng),
                rng=engine_rng,
                timing=self.config.timing,
                on_event=self._on_match_event,
                on_state=self._on_match_state,
            )
            engine.start(match)
            self._engines.append(engine)

        if not self._engines:
            self._on_fixture_complete()
            return
        self._ticker = self.scheduler.call_every(
            self.config.timing.tick_interval_seconds,
            self._tick_all,
            name=f"{self.league.id}:ticker",
        )

    def _tick_all(self) -> None:
        if self._stopped:
            return
        any_running = False
        for engine in self._engines:
            if engine.tick():
                any_running = True
        if any_running:
            return
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        self._on_fixture_complete()

    def _on_fixture_complete(self) -> None:
        fixture = self._current_fixture
        _log.info("Matchweek %d of season %d complete for %s", self._current_matchweek, self._season, self.league.name)
        for match in fixture.matches:
            self.standings_service.record_result(self.league.id, self._season, match)
            self._completed.append(match)
        self._engines = []
        self._publish_standings(live=False)

        if self._current_matchweek >= len(self._fixtures):
            self._complete_season()
            return
        self._transition(SeasonState.WAITING_NEXT_FIXTURE)
        self._pending = self.scheduler.call_later(
            self.config.fixture_gap_seconds, self._start_countdown, name=f"{self.league.id}:fixture-gap",
        )

    # ---------- Season boundary ----------

    def _complete_season(self) -> None:
        self._transition(SeasonState.SEASON_COMPLETE)
        table = self.committed_standings()
        champion = table[0] if table and table[0].played > 0 else None
        summary = SeasonSummary(
            league_id=self.league.id,
            season=self._season,
            champion_team_id=champion.team_id if champion else None,
            champion_team_name=champion.team_name if champion else None,
            matches_played=len(self._completed),
            total_goals=sum(m.home_score + m.away_score for m in self._completed),
            final_table=tuple(row_from_standing(s) for s in table),
        )
        self._history.append(summary)
        _log.info(
            "Season %d complete for %s. Champion: %s",
            self._season, self.league.name, summary.champion_team_name or "none",
        )

        self._pending = self.scheduler.call_later(
            self.config.season_gap_seconds, self._begin_next_season, name=f"{self.league.id}:season-gap",
        )
        self._transition(SeasonState.WAITING_NEXT_SEASON)

    def _begin_next_season(self) -> None:
        self._pending = None
        if self._stopped:
            return
        self._season += 1
        self.initialize_season()
        self._pending = self.scheduler.call_later(
            self.config.fixture_gap_seconds, self._start_countdown, name=f"{self.league.id}:fixture-gap",
        )

    # ---------- Publishing ----------

    def _transition(self, new_state: SeasonState) -> None:
        allowed = _VALID_TRANSITIONS.get(self._state, set())
        if new_state not in allowed:
            raise SeasonTransitionError(
                f"Invalid transition for {self.league.id}: {self._state.value} -> {new_state.value}"
            )
        self._state = new_state
        self.publisher.publish(Topic.SEASON_STATE, self.league.id, self.status())

    def _publish_standings(self, live: bool) -> None:
        rows = self.standings() if live else self.committed_standings()
        self.publisher.publish(
            Topic.STANDINGS, self.league.id, standings_update(self.league.id, self._season, rows, live=live),
        )

    def _on_match_event(self, match: Match, event: MatchEvent) -> None:
        self.publisher.publish(Topic.EVENT, self.league.id, LeagueEvent(self.league.id, match.id, event))
        if is_goal(event.type) and self._state == SeasonState.RUNNING_FIXTURE:
            self._publish_standings(live=True)

    def _on_match_state(self, match: Match) -> None:
        self.publisher.publish(Topic.MATCH_STATE, self.league.id, snapshot_from_match(match))
