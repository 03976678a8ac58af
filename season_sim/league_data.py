"""
League reference data: JSON files under the data directory, one league per file.
Parsed through pydantic models, then converted to the immutable domain records.

File shape (camelCase keys, snake_case also accepted):
  {"id", "name", "country", "logoUrl",
   "teams": [{"id", "name", "shortName", "badgeUrl",
              "strength": {"attack", "midfield", "defense", "goalkeeper"},
              "players": [{"id", "name", "position", "shirtNumber", "rating"}]}]}
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from season_sim.config import DATA_DIR
from season_sim.errors import LeagueDataError
from season_sim.models import League, Player, Position, Team, TeamStrength

_log = logging.getLogger("season_sim.league_data")


# ---------- File schema ----------
class StrengthData(BaseModel):
    attack: int = 70
    midfield: int = 70
    defense: int = 70
    goalkeeper: int = 70


class PlayerData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str
    position: Position
    shirt_number: int = Field(0, alias="shirtNumber")
    rating: int = 70

    @field_validator("position", mode="before")
    @classmethod
    def _upper_position(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


class TeamData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str
    short_name: str = Field("", alias="shortName")
    badge_url: str = Field("", alias="badgeUrl")
    strength: StrengthData = Field(default_factory=StrengthData)
    players: list[PlayerData] = Field(default_factory=list)


class LeagueData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str
    country: str = ""
    logo_url: str = Field("", alias="logoUrl")
    teams: list[TeamData] = Field(default_factory=list)

    def to_league(self) -> League:
        teams = tuple(
            Team(
                id=t.id,
                name=t.name,
                short_name=t.short_name or t.name[:3].upper(),
                badge_url=t.badge_url,
                strength=TeamStrength(
                    attack=t.strength.attack,
                    midfield=t.strength.midfield,
                    defense=t.strength.defense,
                    goalkeeper=t.strength.goalkeeper,
                ),
                players=tuple(
                    Player(id=p.id, name=p.name, position=p.position, shirt_number=p.shirt_number, rating=p.rating)
                    for p in t.players
                ),
            )
            for t in self.teams
        )
        return League(id=self.id, name=self.name, country=self.country, logo_url=self.logo_url, teams=teams)


# ---------- Loading ----------
def parse_league(raw: dict) -> League:
    try:
        return LeagueData.model_validate(raw).to_league()
    except ValidationError as e:
        raise LeagueDataError(f"Invalid league data: {e}") from e


def load_league_file(path: Path | str) -> League:
    """Load one league file. Raises LeagueDataError if unreadable or malformed."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise LeagueDataError(f"Cannot read league file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise LeagueDataError(f"League file {path} must hold a JSON object")
    try:
        return parse_league(raw)
    except LeagueDataError as e:
        raise LeagueDataError(f"{path.name}: {e}") from e


class LeagueCatalog:
    """Loaded leagues by id, in load order. Read-only after construction."""

    def __init__(self, leagues: list[League] | None = None) -> None:
        self._leagues: dict[str, League] = {}
        for league in leagues or []:
            if league.id in self._leagues:
                raise LeagueDataError(f"Duplicate league id: {league.id}")
            self._leagues[league.id] = league

    @classmethod
    def from_directory(cls, directory: Path | str | None = None) -> LeagueCatalog:
        """Every *.json file in the directory, sorted by name. Bad files are logged and skipped."""
        directory = Path(directory) if directory is not None else DATA_DIR
        leagues: list[League] = []
        seen: set[str] = set()
        if not directory.is_dir():
            _log.warning("League data directory not found: %s", directory)
            return cls()
        for path in sorted(directory.glob("*.json")):
            try:
                league = load_league_file(path)
            except LeagueDataError as e:
                _log.error("Skipping league file: %s", e)
                continue
            if league.id in seen:
                _log.error("Skipping %s: duplicate league id %s", path.name, league.id)
                continue
            seen.add(league.id)
            leagues.append(league)
            _log.info("Loaded league: %s with %d teams", league.name, league.team_count)
        return cls(leagues)

    def __len__(self) -> int:
        return len(self._leagues)

    def __contains__(self, league_id: object) -> bool:
        return league_id in self._leagues

    def all_leagues(self) -> list[League]:
        return list(self._leagues.values())

    def get_league(self, league_id: str) -> League | None:
        return self._leagues.get(league_id)

    def get_team(self, league_id: str, team_id: str) -> Team | None:
        league = self._leagues.get(league_id)
        if league is None:
            return None
        return league.get_team(team_id)
