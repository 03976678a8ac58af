"""
Tests for league reference data loading: bundled files, key aliases, validation
errors, directory scanning.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from conftest import build_league
from season_sim.errors import LeagueDataError
from season_sim.league_data import LeagueCatalog, load_league_file, parse_league
from season_sim.models import Position

BUNDLED = Path(__file__).resolve().parent.parent.parent / "data" / "leagues"


def _raw(league_id="mini", teams=None):
    return {
        "id": league_id,
        "name": "Mini League",
        "country": "Testland",
        "logoUrl": "/logo.png",
        "teams": teams if teams is not None else [
            {
                "id": "alpha", "name": "Alpha FC", "shortName": "ALP", "badgeUrl": "/a.png",
                "strength": {"attack": 82, "midfield": 75, "defense": 70, "goalkeeper": 77},
                "players": [
                    {"id": "a1", "name": "Keeper", "position": "goalkeeper", "shirtNumber": 1, "rating": 77},
                    {"id": "a9", "name": "Striker", "position": "Forward", "shirtNumber": 9, "rating": 81},
                ],
            },
            {"id": "beta", "name": "Beta Town"},
        ],
    }


def _write(directory: Path, name: str, content) -> Path:
    path = directory / name
    path.write_text(content if isinstance(content, str) else json.dumps(content), encoding="utf-8")
    return path


class TestParse:
    def test_camel_case_file(self):
        league = parse_league(_raw())
        assert (league.id, league.country, league.logo_url) == ("mini", "Testland", "/logo.png")
        alpha = league.get_team("alpha")
        assert (alpha.short_name, alpha.badge_url) == ("ALP", "/a.png")
        assert alpha.strength.attack == 82
        assert [p.position for p in alpha.players] == [Position.GOALKEEPER, Position.FORWARD]
        assert alpha.players[0].shirt_number == 1

    def test_defaults_for_sparse_team(self):
        beta = parse_league(_raw()).get_team("beta")
        assert beta.short_name == "BET"
        assert beta.players == ()
        assert beta.strength.overall() == 70

    def test_snake_case_keys_accepted(self):
        raw = _raw(teams=[{"id": "x", "name": "X Club", "short_name": "XCL", "badge_url": "/x.png"}])
        team = parse_league(raw).get_team("x")
        assert (team.short_name, team.badge_url) == ("XCL", "/x.png")

    def test_ratings_clamped(self):
        raw = _raw(teams=[{
            "id": "x", "name": "X",
            "strength": {"attack": 140, "midfield": -3},
            "players": [{"id": "p", "name": "P", "position": "DEFENDER", "rating": 250}],
        }])
        team = parse_league(raw).get_team("x")
        assert (team.strength.attack, team.strength.midfield) == (100, 1)
        assert team.players[0].rating == 100

    @pytest.mark.parametrize("bad", [
        {"name": "no id"},
        {"id": "", "name": "empty id"},
        {"id": "x", "name": "X", "teams": [{"id": "t", "name": "T", "players": [
            {"id": "p", "name": "P", "position": "SWEEPER"}]}]},
        {"id": "x", "name": "X", "teams": "nope"},
    ])
    def test_malformed_data_raises(self, bad):
        with pytest.raises(LeagueDataError):
            parse_league(bad)


class TestFiles:
    def test_bundled_leagues_load(self):
        catalog = LeagueCatalog.from_directory(BUNDLED)
        assert len(catalog) == 2
        assert "demo-premier" in catalog
        assert "demo-liga" in catalog
        assert catalog.get_league("demo-premier").team_count == 6
        assert catalog.get_league("demo-liga").team_count == 5
        assert catalog.get_team("demo-premier", "northgate-city").short_name == "NGC"

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(LeagueDataError):
            load_league_file(_write(tmp_path, "broken.json", "{not json"))
        with pytest.raises(LeagueDataError):
            load_league_file(_write(tmp_path, "list.json", [1, 2]))
        with pytest.raises(LeagueDataError):
            load_league_file(tmp_path / "missing.json")

    def test_directory_skips_bad_and_duplicate_files(self, tmp_path, caplog):
        _write(tmp_path, "a.json", _raw("one"))
        _write(tmp_path, "b.json", "{oops")
        _write(tmp_path, "c.json", _raw("one"))
        _write(tmp_path, "d.json", _raw("two"))
        _write(tmp_path, "notes.txt", "ignored")
        with caplog.at_level(logging.ERROR, logger="season_sim.league_data"):
            catalog = LeagueCatalog.from_directory(tmp_path)
        assert [lg.id for lg in catalog.all_leagues()] == ["one", "two"]
        assert len(caplog.records) == 2

    def test_missing_directory_is_empty_catalog(self, tmp_path):
        assert len(LeagueCatalog.from_directory(tmp_path / "nowhere")) == 0


class TestCatalog:
    def test_duplicate_ids_rejected(self):
        with pytest.raises(LeagueDataError):
            LeagueCatalog([build_league(2, "same"), build_league(3, "same")])

    def test_lookups(self):
        catalog = LeagueCatalog([build_league(2, "a"), build_league(4, "b")])
        assert [lg.id for lg in catalog.all_leagues()] == ["a", "b"]
        assert catalog.get_league("zzz") is None
        assert catalog.get_team("zzz", "t1") is None
        assert catalog.get_team("b", "t4").id == "t4"
        assert catalog.get_team("b", "t9") is None
