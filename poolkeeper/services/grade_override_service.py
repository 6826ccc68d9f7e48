"""
Grade override service

Manual, audited corrections of computed grades. Every override appends one
GradeOverride row with the grade's state before and after the change; those
rows are never updated or deleted.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import SQLAlchemyError

from poolkeeper import db
from poolkeeper.errors import (
    NotFoundError,
    ValidationError,
    translate_db_error,
    validate_required,
)
from poolkeeper.models import Game, Grade, GradeOverride, Outcome, Pick
from poolkeeper.utils.scoring import OverrideDetails, merge_override_details

logger = logging.getLogger(__name__)

MIN_REASON_LENGTH = 10


@dataclass
class OverrideStats:
    total_overrides: int = 0
    games_with_overrides: int = 0
    overrides_by_outcome: dict = field(
        default_factory=lambda: {outcome.value: 0 for outcome in Outcome}
    )

    def to_dict(self):
        return {
            "total_overrides": self.total_overrides,
            "games_with_overrides": self.games_with_overrides,
            "overrides_by_outcome": dict(self.overrides_by_outcome),
        }


def validate_override_reason(reason):
    """
    Reason must be a string of at least MIN_REASON_LENGTH characters once
    trimmed. Returns the trimmed reason.
    """
    if reason is not None and not isinstance(reason, str):
        raise ValidationError("Override reason must be text", field="reason")

    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Override reason is required", field="reason")

    if len(reason) < MIN_REASON_LENGTH:
        raise ValidationError(
            f"Override reason must be at least {MIN_REASON_LENGTH} characters",
            field="reason",
        )

    return reason


def coerce_outcome(value):
    validate_required(value, "outcome")
    if isinstance(value, Outcome):
        return value
    try:
        return Outcome(str(value).upper())
    except ValueError:
        raise ValidationError(
            f"Outcome must be one of {', '.join(o.value for o in Outcome)}",
            field="outcome",
        )


def coerce_points(value):
    validate_required(value, "points")
    if isinstance(value, bool):
        raise ValidationError("Points must be a number", field="points")
    try:
        points = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("Points must be a number", field="points")
    if not points.is_finite():
        raise ValidationError("Points must be a number", field="points")
    return points


def apply_override(grade, outcome, points, reason, actor, overridden_at):
    """
    Record an override for one grade and replace its outcome and points.

    Must be called inside the caller's transaction with the grade row locked.

    Returns:
        GradeOverride: the appended audit row
    """
    override = GradeOverride(
        pick_id=grade.pick_id,
        original_outcome=grade.outcome,
        original_points=grade.points,
        new_outcome=outcome,
        new_points=points,
        reason=reason,
        overridden_by=actor,
        overridden_at=overridden_at,
    )
    db.session.add(override)

    details = OverrideDetails(
        override_reason=reason,
        original_outcome=grade.outcome.value,
        original_points=float(grade.points),
        overridden_at=overridden_at.isoformat(),
        overridden_by=actor,
    )
    grade.details = merge_override_details(grade.details, details)
    grade.outcome = outcome
    grade.points = points

    db.session.flush()
    return override


class GradeOverrideService:
    """Manual corrections of grades, with an append-only audit trail"""

    def override_grade(self, pick_id, new_outcome, new_points, reason, overridden_by=None):
        """
        Override a specific pick's grade with manual intervention

        Args:
            pick_id: Pick whose grade is corrected
            new_outcome: Outcome (or its name) to set
            new_points: Points to set (any value Decimal accepts)
            reason: Human readable justification, at least 10 characters
            overridden_by: Optional actor identity

        Returns:
            Grade: the updated grade

        Raises:
            ValidationError: missing fields, bad outcome/points, short reason
            NotFoundError: the pick has no grade yet
        """
        validate_required(pick_id, "pick_id")
        outcome = coerce_outcome(new_outcome)
        points = coerce_points(new_points)
        reason = validate_override_reason(reason)

        try:
            grade = Grade.query.filter_by(pick_id=pick_id).with_for_update().first()
            if not grade:
                raise NotFoundError("Grade not found for this pick", resource="grade")

            override = apply_override(
                grade,
                outcome,
                points,
                reason,
                overridden_by,
                datetime.now(timezone.utc),
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise translate_db_error(e) from e
        except Exception:
            db.session.rollback()
            raise

        logger.info(
            f"Pick {pick_id} overridden {override.original_outcome.value} "
            f"{override.original_points} -> {outcome.value} {points} "
            f"by {overridden_by or 'unknown'}: {reason}"
        )
        return grade

    def bulk_override_game_picks(
        self, game_id, new_outcome, new_points, reason, overridden_by=None
    ):
        """
        Override every graded pick of a game in one transaction.

        Either all grades are overridden and audited, or none are.

        Returns:
            list[Grade]: updated grades ordered by pick id (empty when the game
            has no graded picks)
        """
        validate_required(game_id, "game_id")
        outcome = coerce_outcome(new_outcome)
        points = coerce_points(new_points)
        reason = validate_override_reason(reason)

        overridden_at = datetime.now(timezone.utc)
        updated = []
        try:
            grades = (
                Grade.query.join(Pick, Pick.id == Grade.pick_id)
                .filter(Pick.game_id == game_id)
                .order_by(Pick.id)
                .with_for_update(of=Grade)
                .all()
            )

            for grade in grades:
                apply_override(
                    grade, outcome, points, reason, overridden_by, overridden_at
                )
                updated.append(grade)

            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Bulk override for game {game_id} rolled back: {e}")
            raise translate_db_error(e) from e
        except Exception:
            db.session.rollback()
            raise

        if updated:
            logger.info(
                f"Bulk override of {len(updated)} picks for game {game_id} to "
                f"{outcome.value} {points} by {overridden_by or 'unknown'}: {reason}"
            )
        return updated

    def get_override_history(self, pick_id):
        """Get override history for a pick, oldest first"""
        validate_required(pick_id, "pick_id")

        return (
            GradeOverride.query.filter_by(pick_id=pick_id)
            .order_by(GradeOverride.overridden_at, GradeOverride.id)
            .all()
        )

    def get_override_stats(self, season, week=None):
        """
        Get override statistics for a season, optionally a single week

        Returns:
            OverrideStats: total overrides, distinct games touched and counts
            per new outcome
        """
        validate_required(season, "season")

        query = (
            db.session.query(GradeOverride.new_outcome, Pick.game_id)
            .join(Pick, Pick.id == GradeOverride.pick_id)
            .join(Game, Game.id == Pick.game_id)
            .filter(Game.season == season)
        )
        if week is not None:
            query = query.filter(Game.week == week)

        rows = query.all()

        stats = OverrideStats()
        stats.total_overrides = len(rows)
        stats.games_with_overrides = len({row.game_id for row in rows})
        for row in rows:
            stats.overrides_by_outcome[row.new_outcome.value] += 1

        return stats


grade_override_service = GradeOverrideService()
