"""
Pytest fixtures for the pool grading test suite.
Each test gets a fresh app bound to an in-memory SQLite database.
"""

from datetime import datetime, timedelta

import pytest

from poolkeeper import create_app
from poolkeeper import db as _db
from poolkeeper.models import (
    Entry,
    Game,
    GameStatus,
    Pick,
    Pool,
    PoolType,
    Result,
    Team,
)

SEASON = 2024


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def teams(db):
    """Two teams: (home, away)"""
    home = Team(name="Chiefs", abbreviation="KC")
    away = Team(name="Bills", abbreviation="BUF")
    db.session.add_all([home, away])
    db.session.commit()
    return home, away


@pytest.fixture
def make_pool(db):
    def _make_pool(pool_type=PoolType.ATS, season=SEASON, name=None):
        pool = Pool(name=name or f"{pool_type.value} pool", type=pool_type, season=season)
        db.session.add(pool)
        db.session.commit()
        return pool

    return _make_pool


@pytest.fixture
def make_entry(db):
    def _make_entry(pool, name="Entry", season=None):
        entry = Entry(pool_id=pool.id, season=season or pool.season, name=name)
        db.session.add(entry)
        db.session.commit()
        return entry

    return _make_entry


@pytest.fixture
def make_game(db, teams):
    def _make_game(week=1, home=None, away=None, season=SEASON, status=GameStatus.FINAL):
        home = home or teams[0]
        away = away or teams[1]
        game = Game(
            season=season,
            week=week,
            home_team_id=home.id,
            away_team_id=away.id,
            kickoff=datetime(season, 9, 8, 17, 0) + timedelta(weeks=week - 1),
            status=status,
        )
        db.session.add(game)
        db.session.commit()
        return game

    return _make_game


@pytest.fixture
def make_result(db):
    def _make_result(game, home_score, away_score, status=GameStatus.FINAL):
        result = Result(
            game_id=game.id,
            home_score=home_score,
            away_score=away_score,
            status=status,
        )
        db.session.add(result)
        db.session.commit()
        return result

    return _make_result


@pytest.fixture
def make_pick(db):
    def _make_pick(entry, game, team, confidence=50):
        team_id = team if isinstance(team, int) else team.id
        pick = Pick(
            entry_id=entry.id, game_id=game.id, team_id=team_id, confidence=confidence
        )
        db.session.add(pick)
        db.session.commit()
        return pick

    return _make_pick
