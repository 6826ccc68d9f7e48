"""
Standings service

Folds current grades into per-entry standings. Standings are derived on every
read and never stored.
"""

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import joinedload

from poolkeeper import db
from poolkeeper.errors import NotFoundError, ValidationError, validate_required
from poolkeeper.models import (
    Entry,
    Game,
    Grade,
    Outcome,
    Pick,
    Pool,
    PoolType,
    Result,
    Team,
)
from poolkeeper.utils.performance import timer

logger = logging.getLogger(__name__)


class GradedPick(NamedTuple):
    """The slice of a pick the standings fold needs"""

    week: int
    outcome: Optional[Outcome]
    points: Optional[Decimal]


@dataclass
class Standing:
    entry_id: int
    entry_name: str = ""
    rank: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    voids: int = 0
    total_picks: int = 0
    total_points: Decimal = Decimal("0")
    win_percentage: float = 0.0
    is_eliminated: Optional[bool] = None
    eliminated_week: Optional[int] = None

    def to_dict(self):
        data = asdict(self)
        data["total_points"] = float(self.total_points)
        data["win_percentage"] = round(self.win_percentage, 4)
        return data


@dataclass
class WeeklyResult:
    week: int
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    voids: int = 0
    total_points: Decimal = Decimal("0")

    def to_dict(self):
        data = asdict(self)
        data["total_points"] = float(self.total_points)
        return data


@dataclass
class EntryDetail:
    entry: dict
    standing: Standing
    picks: List[dict] = field(default_factory=list)
    weekly_results: List[WeeklyResult] = field(default_factory=list)

    def to_dict(self):
        return {
            "entry": self.entry,
            "standing": self.standing.to_dict(),
            "picks": self.picks,
            "weekly_results": [week.to_dict() for week in self.weekly_results],
        }


@dataclass
class SurvivorWeekStats:
    """Pool-wide survivor picture as of the end of one week"""

    pool_id: int
    season: int
    week: int
    total_entries: int = 0
    survivors_remaining: int = 0
    entries_eliminated: int = 0
    survival_rate: float = 0.0
    team_pick_distribution: dict = field(default_factory=dict)
    eliminations_by_team: dict = field(default_factory=dict)
    top_pick_team: Optional[str] = None
    top_pick_percentage: float = 0.0

    def to_dict(self):
        data = asdict(self)
        data["survival_rate"] = round(self.survival_rate, 4)
        data["top_pick_percentage"] = round(self.top_pick_percentage, 2)
        return data


@dataclass
class SurvivorWinner:
    entry_id: int
    entry_name: str = ""
    rank: int = 0
    point_differential: int = 0

    def to_dict(self):
        return asdict(self)


def _tally(counter, outcome, points):
    """Add one graded pick to a Standing or WeeklyResult"""
    counter.total_points += points
    if outcome == Outcome.WIN:
        counter.wins += 1
    elif outcome == Outcome.LOSS:
        counter.losses += 1
    elif outcome == Outcome.PUSH:
        counter.pushes += 1
    elif outcome == Outcome.VOID:
        counter.voids += 1


def calculate_entry_standing(entry_id, graded_picks, pool_type, entry_name=""):
    """
    Fold an entry's picks into a Standing.

    Ungraded picks count toward total_picks only. For survivor pools the
    entry is eliminated by its first loss; eliminated_week is the earliest
    losing week.
    """
    standing = Standing(entry_id=entry_id, entry_name=entry_name)
    is_survivor = PoolType(pool_type) == PoolType.SURVIVOR

    if is_survivor:
        standing.is_eliminated = False

    for pick in graded_picks:
        standing.total_picks += 1
        if pick.outcome is None:
            continue

        _tally(standing, pick.outcome, Decimal(pick.points or 0))

        if is_survivor and pick.outcome == Outcome.LOSS:
            standing.is_eliminated = True
            if standing.eliminated_week is None or pick.week < standing.eliminated_week:
                standing.eliminated_week = pick.week

    decisive = standing.wins + standing.losses
    standing.win_percentage = standing.wins / decisive if decisive > 0 else 0.0

    return standing


def rank_standings(standings):
    """
    Sort by wins, win percentage, then total points (all descending) and
    assign 1-based ranks. Entry id ascending breaks any remaining tie.
    """
    ranked = sorted(
        standings,
        key=lambda s: (-s.wins, -s.win_percentage, -s.total_points, s.entry_id),
    )
    for position, standing in enumerate(ranked, start=1):
        standing.rank = position
    return ranked


def calculate_weekly_results(graded_picks):
    """Bucket an entry's picks by week, ascending"""
    weeks = {}
    for pick in graded_picks:
        week = weeks.setdefault(pick.week, WeeklyResult(week=pick.week))
        if pick.outcome is not None:
            _tally(week, pick.outcome, Decimal(pick.points or 0))
    return [weeks[week] for week in sorted(weeks)]


def rank_survivors(survivors):
    """Order surviving entries by point differential, then entry id"""
    ranked = sorted(survivors, key=lambda s: (-s.point_differential, s.entry_id))
    for position, survivor in enumerate(ranked, start=1):
        survivor.rank = position
    return ranked


class StandingsService:
    """Read-only aggregation of grades into ranked standings"""

    @timer
    def get_pool_standings(self, pool_id, season):
        """Get overall standings for a pool in a season"""
        return self._build_standings(pool_id, season)

    @timer
    def get_weekly_standings(self, pool_id, season, week):
        """Get standings for a pool counting only picks in one week"""
        validate_required(week, "week")
        return self._build_standings(pool_id, season, week=week)

    def _build_standings(self, pool_id, season, week=None):
        validate_required(pool_id, "pool_id")
        validate_required(season, "season")

        pool = db.session.get(Pool, pool_id)
        if not pool:
            raise NotFoundError("Pool not found", resource="pool")

        entries = (
            Entry.query.filter_by(pool_id=pool_id, season=season)
            .order_by(Entry.id)
            .all()
        )

        # One statement for every grade in the pool keeps the counters on a
        # single snapshot even while grading or overrides are committing
        query = (
            db.session.query(Pick.entry_id, Game.week, Grade.outcome, Grade.points)
            .join(Entry, Entry.id == Pick.entry_id)
            .join(Game, Game.id == Pick.game_id)
            .outerjoin(Grade, Grade.pick_id == Pick.id)
            .filter(Entry.pool_id == pool_id, Entry.season == season)
        )
        if week is not None:
            query = query.filter(Game.week == week)

        picks_by_entry = {}
        for row in query.order_by(Game.week, Pick.id).all():
            picks_by_entry.setdefault(row.entry_id, []).append(
                GradedPick(row.week, row.outcome, row.points)
            )

        standings = [
            calculate_entry_standing(
                entry.id, picks_by_entry.get(entry.id, []), pool.type, entry.name
            )
            for entry in entries
        ]

        return rank_standings(standings)

    @timer
    def get_entry_detail(self, entry_id, season):
        """
        Get detailed view of an entry's performance

        Returns:
            EntryDetail: entry summary, unranked standing, per-pick rows with
            matchup and grade, and per-week results
        """
        validate_required(entry_id, "entry_id")
        validate_required(season, "season")

        entry = db.session.get(Entry, entry_id)
        if not entry or entry.season != season:
            raise NotFoundError("Entry not found", resource="entry")

        rows = (
            db.session.query(Pick, Grade)
            .join(Game, Game.id == Pick.game_id)
            .outerjoin(Grade, Grade.pick_id == Pick.id)
            .filter(Pick.entry_id == entry.id)
            .options(joinedload(Pick.team), joinedload(Pick.game))
            .order_by(Game.week, Game.kickoff, Pick.id)
            .all()
        )

        graded_picks = [
            GradedPick(
                pick.game.week,
                grade.outcome if grade else None,
                grade.points if grade else None,
            )
            for pick, grade in rows
        ]

        standing = calculate_entry_standing(
            entry.id, graded_picks, entry.pool.type, entry.name
        )

        picks = [self._pick_detail(pick, grade) for pick, grade in rows]

        return EntryDetail(
            entry={**entry.to_dict(), "pool_type": entry.pool.type.value},
            standing=standing,
            picks=picks,
            weekly_results=calculate_weekly_results(graded_picks),
        )

    def _get_survivor_pool(self, pool_id, season):
        validate_required(pool_id, "pool_id")
        validate_required(season, "season")

        pool = db.session.get(Pool, pool_id)
        if not pool:
            raise NotFoundError("Pool not found", resource="pool")
        if not pool.is_survivor:
            raise ValidationError("Pool is not a survivor pool", field="pool_id")
        return pool

    @timer
    def get_survivor_stats(self, pool_id, season, week):
        """
        Survivor statistics for one week of a pool.

        Elimination is evaluated as of the end of ``week``: an entry counts as
        eliminated if it has a losing pick in that week or any earlier one.
        Pick distribution and eliminations are keyed by team abbreviation.

        Returns:
            SurvivorWeekStats
        """
        validate_required(week, "week")
        pool = self._get_survivor_pool(pool_id, season)

        entry_ids = [
            row.id
            for row in db.session.query(Entry.id)
            .filter_by(pool_id=pool.id, season=season)
            .all()
        ]

        rows = (
            db.session.query(Pick.entry_id, Game.week, Team.abbreviation, Grade.outcome)
            .join(Entry, Entry.id == Pick.entry_id)
            .join(Game, Game.id == Pick.game_id)
            .join(Team, Team.id == Pick.team_id)
            .outerjoin(Grade, Grade.pick_id == Pick.id)
            .filter(Entry.pool_id == pool.id, Entry.season == season)
            .filter(Game.week <= week)
            .all()
        )

        eliminated_in = {}
        for row in rows:
            if row.outcome == Outcome.LOSS:
                current = eliminated_in.get(row.entry_id)
                if current is None or row.week < current:
                    eliminated_in[row.entry_id] = row.week

        stats = SurvivorWeekStats(pool_id=pool.id, season=season, week=week)
        stats.total_entries = len(entry_ids)
        stats.entries_eliminated = len(eliminated_in)
        stats.survivors_remaining = stats.total_entries - stats.entries_eliminated
        if stats.total_entries:
            stats.survival_rate = stats.survivors_remaining / stats.total_entries

        for row in rows:
            if row.week != week:
                continue
            team = row.abbreviation
            stats.team_pick_distribution[team] = (
                stats.team_pick_distribution.get(team, 0) + 1
            )
            if row.outcome == Outcome.LOSS and eliminated_in.get(row.entry_id) == week:
                stats.eliminations_by_team[team] = (
                    stats.eliminations_by_team.get(team, 0) + 1
                )

        if stats.team_pick_distribution:
            team, count = min(
                stats.team_pick_distribution.items(),
                key=lambda item: (-item[1], item[0]),
            )
            stats.top_pick_team = team
            stats.top_pick_percentage = count / stats.total_entries * 100

        return stats

    @timer
    def get_survivor_winners(self, pool_id, season):
        """
        Entries still alive in a survivor pool, best first.

        Ties between survivors are broken by total point differential of
        their picks (picked score minus opponent score, voided picks
        excluded), then by entry id. Rank 1 is the pool winner.

        Returns:
            list[SurvivorWinner]: empty when every entry has been eliminated
        """
        pool = self._get_survivor_pool(pool_id, season)

        entries = (
            Entry.query.filter_by(pool_id=pool.id, season=season)
            .order_by(Entry.id)
            .all()
        )

        rows = (
            db.session.query(
                Pick.entry_id,
                Pick.team_id,
                Game.home_team_id,
                Result.home_score,
                Result.away_score,
                Grade.outcome,
            )
            .join(Entry, Entry.id == Pick.entry_id)
            .join(Game, Game.id == Pick.game_id)
            .outerjoin(Result, Result.game_id == Game.id)
            .outerjoin(Grade, Grade.pick_id == Pick.id)
            .filter(Entry.pool_id == pool.id, Entry.season == season)
            .all()
        )

        eliminated = set()
        differential = {}
        for row in rows:
            if row.outcome == Outcome.LOSS:
                eliminated.add(row.entry_id)
            if row.outcome in (None, Outcome.VOID):
                continue
            if row.home_score is None or row.away_score is None:
                continue
            margin = row.home_score - row.away_score
            if row.team_id != row.home_team_id:
                margin = -margin
            differential[row.entry_id] = differential.get(row.entry_id, 0) + margin

        survivors = [
            SurvivorWinner(
                entry_id=entry.id,
                entry_name=entry.name,
                point_differential=differential.get(entry.id, 0),
            )
            for entry in entries
            if entry.id not in eliminated
        ]

        return rank_survivors(survivors)

    @staticmethod
    def _pick_detail(pick, grade):
        game = pick.game
        return {
            "id": pick.id,
            "game_id": pick.game_id,
            "team_id": pick.team_id,
            "confidence": pick.confidence,
            "outcome": grade.outcome.value if grade else None,
            "points": float(grade.points) if grade else None,
            "week": game.week,
            "matchup": {
                "home_team": game.home_team.to_dict() if game.home_team else None,
                "away_team": game.away_team.to_dict() if game.away_team else None,
                "kickoff": game.kickoff.isoformat() if game.kickoff else None,
            },
            "team": pick.team.to_dict() if pick.team else None,
        }


standings_service = StandingsService()
