from datetime import datetime, timezone

from poolkeeper import db

from .enums import GameStatus


class Result(db.Model):
    """Final (or cancelled) score of a game. Read-only to the grading engine."""

    __tablename__ = "results"

    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(
        db.Integer, db.ForeignKey("games.id"), nullable=False, unique=True
    )

    # Scores stay NULL until the game is final
    home_score = db.Column(db.Integer)
    away_score = db.Column(db.Integer)

    status = db.Column(db.Enum(GameStatus), nullable=False, default=GameStatus.FINAL)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<Result game_id={self.game_id} {self.away_score}-{self.home_score} {self.status}>"

    def to_dict(self):
        """Convert result to dictionary for API responses"""
        return {
            "id": self.id,
            "game_id": self.game_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "status": self.status.value if self.status else None,
        }
