"""
Run league seasons from the terminal. Goals, red cards, results and the table after
each matchweek are printed as they are published.

  season-sim --instant --seasons 2 --seed 7      # whole seasons on a virtual clock
  season-sim --league demo-premier --fast         # real time, compressed timings
"""
from __future__ import annotations

import argparse
import asyncio
import random
from pathlib import Path
from typing import Any

from season_sim.config import LOG_LEVEL, SimulationConfig, configure_logging
from season_sim.league_data import LeagueCatalog
from season_sim.models import FootballEventType, is_goal
from season_sim.services.simulation_service import SimulationService
from season_sim.services.timers import AsyncioTaskScheduler, ManualTaskScheduler
from season_sim.simulation.schemas import LeagueEvent, MatchSnapshot, StandingsUpdate, Topic


def _print_event(league_id: str, payload: LeagueEvent) -> None:
    event = payload.event
    if is_goal(event.type) or event.type == FootballEventType.RED_CARD:
        print(f"  [{league_id}] {event.display_time:>6}  {event.description}")


def _print_result(league_id: str, snap: MatchSnapshot) -> None:
    if snap.phase == "FULL_TIME":
        print(
            f"  [{league_id}] FT  {snap.home_team_short_name} {snap.home_score}-{snap.away_score} "
            f"{snap.away_team_short_name}"
        )


def _print_table(update: StandingsUpdate) -> None:
    print()
    print(f"  {update.league_id} season {update.season}")
    print("  " + "-" * 56)
    print(f"  {'#':>2}  {'Team':<24} {'P':>3} {'W':>3} {'D':>3} {'L':>3} {'GD':>4} {'Pts':>4}  Form")
    for r in update.rows:
        print(
            f"  {r.position:>2}  {r.team_name:<24} {r.played:>3} {r.won:>3} {r.drawn:>3} {r.lost:>3} "
            f"{r.goal_difference:>4} {r.points:>4}  {r.form}"
        )
    print()


def _on_message(topic: Topic, payload: Any) -> None:
    if topic == Topic.EVENT:
        _print_event(payload.league_id, payload)
    elif topic == Topic.MATCH_STATE:
        _print_result(payload.league_id, payload)
    elif topic == Topic.STANDINGS and not payload.live and any(r.played for r in payload.rows):
        _print_table(payload)


def _load_catalog(data_dir: Path | None, league_ids: list[str] | None) -> LeagueCatalog:
    catalog = LeagueCatalog.from_directory(data_dir)
    if not league_ids:
        return catalog
    leagues = []
    for league_id in league_ids:
        league = catalog.get_league(league_id)
        if league is None:
            raise SystemExit(f"Unknown league: {league_id}. Available: {[l.id for l in catalog.all_leagues()]}")
        leagues.append(league)
    return LeagueCatalog(leagues)


def _seasons_done(service: SimulationService, league_ids: list[str], seasons: int) -> bool:
    return all(len(service.season_history(league_id)) >= seasons for league_id in league_ids)


def _print_champions(service: SimulationService, league_ids: list[str]) -> None:
    print("=" * 60)
    for league_id in league_ids:
        league = service.get_league(league_id)
        for summary in service.season_history(league_id):
            print(
                f"  {league.name} season {summary.season}: {summary.champion_team_name or '-'}"
                f"  ({summary.matches_played} matches, {summary.total_goals} goals)"
            )
    print("=" * 60)


def run_instant(catalog: LeagueCatalog, config: SimulationConfig, seed: int, seasons: int) -> SimulationService:
    """Play `seasons` full seasons of every league on a virtual clock."""
    scheduler = ManualTaskScheduler()
    service = SimulationService(catalog, scheduler, config=config, seed=seed)
    service.publisher.subscribe(_on_message)
    started = service.start_all()
    if not started:
        raise SystemExit("No league could be started.")
    scheduler.run_until(lambda: _seasons_done(service, started, seasons))
    _print_champions(service, started)
    service.shutdown()
    return service


async def run_realtime(catalog: LeagueCatalog, config: SimulationConfig, seed: int, seasons: int) -> None:
    scheduler = AsyncioTaskScheduler(asyncio.get_running_loop())
    service = SimulationService(catalog, scheduler, config=config, seed=seed)
    done = asyncio.Event()
    service.publisher.subscribe(_on_message)
    started = service.start_all()
    if not started:
        raise SystemExit("No league could be started.")

    def on_state(topic: Topic, payload: Any) -> None:
        if _seasons_done(service, started, seasons):
            done.set()

    service.publisher.subscribe(on_state, topic=Topic.SEASON_STATE)
    try:
        await done.wait()
        _print_champions(service, started)
    finally:
        service.shutdown()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Simulate football league seasons.")
    parser.add_argument("--league", action="append", default=None, help="League id to run (repeatable; default all)")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for reproducibility")
    parser.add_argument("--instant", action="store_true", help="Run on a virtual clock with no real delays")
    parser.add_argument("--fast", action="store_true", help="Compressed real-time timings (seconds per match)")
    parser.add_argument("--seasons", type=int, default=1, help="Stop after this many completed seasons")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory of league JSON files")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level (default from SEASON_SIM_LOG_LEVEL)")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    if args.seasons < 1:
        parser.error("--seasons must be at least 1")
    seed = args.seed if args.seed is not None else random.randint(1, 2**31 - 1)
    catalog = _load_catalog(args.data_dir, args.league)
    config = SimulationConfig.fast() if args.fast else SimulationConfig.from_env()
    print(f"  Leagues: {', '.join(l.name for l in catalog.all_leagues())}  [seed={seed}]")

    if args.instant:
        run_instant(catalog, config, seed, args.seasons)
        return
    try:
        asyncio.run(run_realtime(catalog, config, seed, args.seasons))
    except KeyboardInterrupt:
        print("\n  Stopped.")


if __name__ == "__main__":
    main()
