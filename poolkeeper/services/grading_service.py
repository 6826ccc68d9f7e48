"""
Grading service

Turns a game's Result into one Grade per Pick. Grades are replaced in full on
every pass, so re-grading after a score correction is idempotent.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from poolkeeper import db
from poolkeeper.errors import (
    NotFoundError,
    PoolKeeperError,
    translate_db_error,
    validate_required,
)
from poolkeeper.models import Entry, Game, Grade, Pick, Result
from poolkeeper.utils.performance import timer
from poolkeeper.utils.scoring import calculate_pick_score

logger = logging.getLogger(__name__)


class GradingService:
    """Grades picks against final game results"""

    @timer
    def grade_game(self, game_id):
        """
        Grade all picks for a game based on its result.

        All grades for the game are written in a single transaction; a
        failure on any pick rolls back the whole invocation.

        Args:
            game_id: Game ID

        Returns:
            list[Grade]: one grade per pick, ordered by pick id

        Raises:
            NotFoundError: no Result exists for the game
            ValidationError: a pick references a team not playing in the game
        """
        validate_required(game_id, "game_id")

        grades = []
        try:
            result = Result.query.filter_by(game_id=game_id).first()
            if not result:
                raise NotFoundError("Game result not found", resource="result")

            picks = (
                Pick.query.filter_by(game_id=game_id)
                .options(joinedload(Pick.entry).joinedload(Entry.pool))
                .order_by(Pick.id)
                .all()
            )

            if not picks:
                logger.info(f"No picks to grade for game {game_id}")
                return []

            for pick in picks:
                grades.append(self._upsert_grade(pick, result))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Grading game {game_id} failed: {e}")
            raise translate_db_error(e) from e
        except Exception:
            db.session.rollback()
            raise

        logger.info(
            f"Graded {len(grades)} picks for game {game_id} ({result.game.matchup})"
        )
        return grades

    def _upsert_grade(self, pick, result):
        """Create or fully replace the grade for a single pick"""
        graded = calculate_pick_score(pick, result)

        # Row lock serialises a re-grade against a concurrent override
        grade = Grade.query.filter_by(pick_id=pick.id).with_for_update().first()

        details = graded.details.to_dict(graded_at=datetime.now(timezone.utc))

        if grade is None:
            grade = Grade(
                pick_id=pick.id,
                outcome=graded.outcome,
                points=graded.points,
                details=details,
            )
            db.session.add(grade)
        else:
            if grade.is_manual_override:
                logger.warning(
                    f"Re-grading pick {pick.id} replaces manual override "
                    f"({grade.outcome.value} {grade.points} -> "
                    f"{graded.outcome.value} {graded.points})"
                )
            grade.outcome = graded.outcome
            grade.points = graded.points
            grade.details = details

        db.session.flush()
        return grade

    def grade_pending_games(self, season=None):
        """
        Grade every game that has a result and at least one ungraded pick,
        and re-grade games whose result changed after their picks were graded.

        Errors are logged per game and do not stop the remaining games; the
        failed game is picked up again on the next run.

        Args:
            season: Optional season to restrict the scan to

        Returns:
            dict: game_id -> list of grades for each game graded successfully
        """
        ungraded = (
            db.session.query(Game.id)
            .join(Result, Result.game_id == Game.id)
            .join(Pick, Pick.game_id == Game.id)
            .outerjoin(Grade, Grade.pick_id == Pick.id)
            .filter(Grade.id.is_(None))
        )

        # A score correction bumps Result.updated_at past the grades it produced
        corrected = (
            db.session.query(Game.id)
            .join(Result, Result.game_id == Game.id)
            .join(Pick, Pick.game_id == Game.id)
            .join(Grade, Grade.pick_id == Pick.id)
            .group_by(Game.id, Result.updated_at)
            .having(Result.updated_at > func.min(Grade.updated_at))
        )

        if season is not None:
            ungraded = ungraded.filter(Game.season == season)
            corrected = corrected.filter(Game.season == season)

        game_ids = sorted(
            {row.id for row in ungraded.distinct().all()}
            | {row.id for row in corrected.all()}
        )

        graded = {}
        for game_id in game_ids:
            try:
                graded[game_id] = self.grade_game(game_id)
            except PoolKeeperError as e:
                logger.error(f"Could not grade game {game_id}: {e.message}")

        if game_ids:
            logger.info(f"Graded {len(graded)}/{len(game_ids)} pending games")
        return graded


grading_service = GradingService()
