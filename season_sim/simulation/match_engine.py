"""
Match Engine: runs one match in compressed time.
Each tick advances a fractional simulated-minute counter; every whole minute crossed
is processed in order, so a slow tick never reorders or skips events.

Phases change on minute thresholds:
  raw minute > 45 + first-half stoppage  -> HALF_TIME, then SECOND_HALF kicks off at 46'
  second-half minute > 90 + stoppage     -> FULL_TIME
"""
from __future__ import annotations

import logging
from typing import Callable

from season_sim.config import MatchTiming
from season_sim.models import FootballEventType, Match, MatchEvent, MatchPhase
from .event_generator import EventGenerator
from .rng import SeededRNG

_log = logging.getLogger("season_sim.match_engine")

FIRST_HALF_STOPPAGE = (1, 3)
SECOND_HALF_STOPPAGE = (2, 5)


class MatchEngine:
    """
    Owns one Match for the duration of its simulation.
    Callers poll tick() at timing.tick_interval_ms; on_event fires per appended
    event in order, on_state fires once per tick after all minutes are processed.
    """

    def __init__(
        self,
        event_generator: EventGenerator | None = None,
        rng: SeededRNG | None = None,
        timing: MatchTiming | None = None,
        on_event: Callable[[Match, MatchEvent], None] | None = None,
        on_state: Callable[[Match], None] | None = None,
    ) -> None:
        self.rng = rng or SeededRNG()
        self.event_generator = event_generator or EventGenerator(self.rng)
        self.timing = timing or MatchTiming()
        self.on_event = on_event
        self.on_state = on_state
        self._match: Match | None = None
        self._elapsed = 0.0
        self._last_minute = 0
        self._stoppage_first = 0
        self._stoppage_second = 0
        self._running = False

    @property
    def match(self) -> Match | None:
        return self._match

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stoppage_time(self) -> tuple[int, int]:
        return self._stoppage_first, self._stoppage_second

    def start(self, match: Match) -> None:
        if match.phase != MatchPhase.NOT_STARTED:
            raise ValueError(f"Match {match.id} already started ({match.phase.value})")
        self._match = match
        self._elapsed = 0.0
        self._last_minute = 0
        self._stoppage_first = self.rng.randint(*FIRST_HALF_STOPPAGE)
        self._stoppage_second = self.rng.randint(*SECOND_HALF_STOPPAGE)
        self._running = True

        match.phase = MatchPhase.FIRST_HALF
        match.minute = 1
        match.additional_minutes = 0
        self._append(MatchEvent.simple(1, FootballEventType.KICK_OFF, "Match kicks off!"))
        self._publish_state()
        _log.info("Match started: %s vs %s", match.home_team.name, match.away_team.name)

    def tick(self) -> bool:
        """Advance simulated time by one tick. False once finished, or if never started."""
        if not self._running or self._match is None:
            return False
        self._elapsed += self.timing.minutes_per_tick
        current = int(self._elapsed)
        while self._last_minute < current and self._running:
            self._last_minute += 1
            self._process_minute(self._last_minute)
        self._publish_state()
        return self._running

    def _process_minute(self, raw_minute: int) -> None:
        match = self._match
        half = self.timing.half_time_minute
        full = self.timing.match_duration_minutes

        if match.phase == MatchPhase.FIRST_HALF:
            if raw_minute > half + self._stoppage_first:
                self._half_time()
                return
            minute, additional = _split(raw_minute, half)
        elif match.phase == MatchPhase.SECOND_HALF:
            # The transition minute itself is not played; 46' is the next one.
            second_half_minute = raw_minute - self._stoppage_first - 1
            if second_half_minute > full + self._stoppage_second:
                self._full_time()
                return
            minute, additional = _split(second_half_minute, full)
        else:
            return

        match.minute = minute
        match.additional_minutes = additional
        for event in self.event_generator.events_for_minute(match, minute, additional):
            self._append(event)

    def _half_time(self) -> None:
        match = self._match
        half = self.timing.half_time_minute
        match.phase = MatchPhase.HALF_TIME
        self._append(MatchEvent.simple(
            half, FootballEventType.HALF_TIME, f"Half Time: {match.score_display}", self._stoppage_first,
        ))
        match.phase = MatchPhase.SECOND_HALF
        match.minute = half + 1
        match.additional_minutes = 0
        self._append(MatchEvent.simple(half + 1, FootballEventType.SECOND_HALF_KICK_OFF, "Second half begins!"))

    def _full_time(self) -> None:
        match = self._match
        full = self.timing.match_duration_minutes
        self._append(MatchEvent.simple(
            full,
            FootballEventType.FULL_TIME,
            f"Full Time: {match.home_team.short_name} {match.score_display} {match.away_team.short_name}",
            self._stoppage_second,
        ))
        match.phase = MatchPhase.FULL_TIME
        match.minute = full
        match.additional_minutes = self._stoppage_second
        self._running = False
        _log.info(
            "Match finished: %s %d - %d %s",
            match.home_team.name, match.home_score, match.away_score, match.away_team.name,
        )

    def _append(self, event: MatchEvent) -> None:
        self._match.add_event(event)
        if self.on_event:
            self.on_event(self._match, event)

    def _publish_state(self) -> None:
        if self.on_state:
            self.on_state(self._match)


def _split(minute: int, boundary: int) -> tuple[int, int]:
    """45 + 2 -> (45, 2); 30 -> (30, 0)."""
    if minute > boundary:
        return boundary, minute - boundary
    return minute, 0
