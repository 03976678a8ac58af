"""
Tests for the command-line runner in instant (virtual clock) mode.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from season_sim import run_season

BUNDLED = Path(__file__).resolve().parent.parent.parent / "data" / "leagues"


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(run_season, "configure_logging", lambda level: None)


def test_instant_season_prints_results_and_champion(capsys):
    run_season.main(["--instant", "--fast", "--seed", "7", "--league", "demo-liga", "--data-dir", str(BUNDLED)])
    out = capsys.readouterr().out
    assert "Leagues: Demo Liga  [seed=7]" in out
    assert " FT " in out
    assert "demo-liga season 1" in out
    assert "Demo Liga season 1: " in out
    assert "(20 matches," in out


def test_same_seed_same_output(capsys):
    argv = ["--instant", "--fast", "--seed", "3", "--league", "demo-liga", "--data-dir", str(BUNDLED)]
    run_season.main(argv)
    first = capsys.readouterr().out
    run_season.main(argv)
    assert capsys.readouterr().out == first


def test_unknown_league_exits():
    with pytest.raises(SystemExit):
        run_season.main(["--instant", "--league", "nope", "--data-dir", str(BUNDLED)])


def test_seasons_must_be_positive():
    with pytest.raises(SystemExit):
        run_season.main(["--instant", "--seasons", "0", "--data-dir", str(BUNDLED)])
