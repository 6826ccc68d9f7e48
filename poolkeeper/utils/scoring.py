"""
Scoring Engine for pool picks

This module holds the pure grading rules: given a pick's team, the game's
teams and the final result, it returns the outcome, points and provenance
details for one pick. Persistence lives in services/grading_service.py and
aggregation in services/standings_service.py.

Each pool type maps to a plain function in GRADERS. ATS, SU and SURVIVOR
share flat scoring (1 / 0.5 / 0); POINTS_PLUS scores the signed margin.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import NamedTuple, Optional

from poolkeeper.errors import ValidationError
from poolkeeper.models.enums import GameStatus, Outcome, PoolType

WIN_POINTS = Decimal("1.0")
PUSH_POINTS = Decimal("0.5")
ZERO_POINTS = Decimal("0")


class Matchup(NamedTuple):
    """Scores from the picked team's point of view"""

    picked_score: int
    opponent_score: int

    @property
    def margin(self) -> int:
        return abs(self.picked_score - self.opponent_score)

    @property
    def is_tie(self) -> bool:
        return self.picked_score == self.opponent_score

    @property
    def picked_won(self) -> bool:
        return self.picked_score > self.opponent_score


@dataclass(frozen=True)
class AutoGradeDetails:
    """Provenance written by the grading engine"""

    confidence_used: Optional[int] = None
    picked_score: Optional[int] = None
    opponent_score: Optional[int] = None
    margin: Optional[int] = None
    void_reason: Optional[str] = None

    def to_dict(self, graded_at=None) -> dict:
        data = {k: v for k, v in asdict(self).items() if v is not None}
        data["source"] = "auto"
        data["graded_at"] = (graded_at or datetime.now(timezone.utc)).isoformat()
        return data


@dataclass(frozen=True)
class OverrideDetails:
    """Provenance written by the override ledger"""

    override_reason: str
    original_outcome: str
    original_points: float
    overridden_at: str
    overridden_by: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["is_manual_override"] = True
        return data


OVERRIDE_DETAIL_KEYS = frozenset(
    ["is_manual_override"] + [name for name in OverrideDetails.__dataclass_fields__]
)


def merge_override_details(existing, override):
    """
    Merge override metadata into an existing details map.

    Auto-grade keys (and any unknown keys) from earlier writers are kept;
    previous override keys are replaced by the latest override. The full
    override history lives in the grade_overrides table.

    Args:
        existing: current Grade.details (may be None)
        override: OverrideDetails for the override being applied

    Returns:
        dict: a new details map
    """
    merged = {
        key: value
        for key, value in (existing or {}).items()
        if key not in OVERRIDE_DETAIL_KEYS
    }
    merged.update(override.to_dict())
    return merged


class PickGrade(NamedTuple):
    outcome: Outcome
    points: Decimal
    details: AutoGradeDetails


def _grade_flat(matchup, confidence):
    """ATS, SU and SURVIVOR: flat points, confidence is recorded but not used"""
    details = AutoGradeDetails(
        confidence_used=confidence,
        picked_score=matchup.picked_score,
        opponent_score=matchup.opponent_score,
        margin=matchup.margin,
    )
    if matchup.is_tie:
        return PickGrade(Outcome.PUSH, PUSH_POINTS, details)
    if matchup.picked_won:
        return PickGrade(Outcome.WIN, WIN_POINTS, details)
    return PickGrade(Outcome.LOSS, ZERO_POINTS, details)


def _grade_points_plus(matchup, confidence):
    """POINTS_PLUS: signed margin of victory, ties score nothing"""
    details = AutoGradeDetails(
        confidence_used=confidence,
        picked_score=matchup.picked_score,
        opponent_score=matchup.opponent_score,
        margin=matchup.margin,
    )
    if matchup.is_tie:
        return PickGrade(Outcome.PUSH, ZERO_POINTS, details)
    if matchup.picked_won:
        return PickGrade(Outcome.WIN, Decimal(matchup.margin), details)
    return PickGrade(Outcome.LOSS, -Decimal(matchup.margin), details)


GRADERS = {
    PoolType.ATS: _grade_flat,
    PoolType.SU: _grade_flat,
    PoolType.SURVIVOR: _grade_flat,
    PoolType.POINTS_PLUS: _grade_points_plus,
}


def resolve_matchup(team_id, home_team_id, away_team_id, home_score, away_score):
    """Orient the final score around the picked team"""
    if team_id == home_team_id:
        return Matchup(home_score, away_score)
    if team_id == away_team_id:
        return Matchup(away_score, home_score)
    raise ValidationError("Pick team does not match game teams", field="team_id")


def calculate_pick_grade(
    pool_type,
    team_id,
    confidence,
    home_team_id,
    away_team_id,
    home_score,
    away_score,
    result_status,
):
    """
    Grade a single pick.

    Returns:
        PickGrade: VOID/0 for cancelled games or missing scores, otherwise
        the outcome and points of the pool type's rule

    Raises:
        ValidationError: if the picked team plays in neither side of the game
    """
    if result_status == GameStatus.CANCELLED:
        return PickGrade(
            Outcome.VOID, ZERO_POINTS, AutoGradeDetails(void_reason="Game cancelled")
        )

    if home_score is None or away_score is None:
        return PickGrade(
            Outcome.VOID,
            ZERO_POINTS,
            AutoGradeDetails(void_reason="No final score available"),
        )

    matchup = resolve_matchup(
        team_id, home_team_id, away_team_id, home_score, away_score
    )
    return GRADERS[PoolType(pool_type)](matchup, confidence)


def calculate_pick_score(pick, result):
    """Convenience wrapper grading a Pick model against a Result model"""
    game = pick.game
    return calculate_pick_grade(
        pool_type=pick.entry.pool.type,
        team_id=pick.team_id,
        confidence=pick.confidence,
        home_team_id=game.home_team_id,
        away_team_id=game.away_team_id,
        home_score=result.home_score,
        away_score=result.away_score,
        result_status=result.status,
    )
