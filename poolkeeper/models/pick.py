from datetime import datetime, timezone

from sqlalchemy.orm import validates

from poolkeeper import db
from poolkeeper.errors import ValidationError

MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100


class Pick(db.Model):
    __tablename__ = "picks"

    id = db.Column(db.Integer, primary_key=True)

    # Pick identification
    entry_id = db.Column(db.Integer, db.ForeignKey("entries.id"), nullable=False)
    game_id = db.Column(db.Integer, db.ForeignKey("games.id"), nullable=False)

    # Pick details
    team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    confidence = db.Column(db.Integer, nullable=False, default=50)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    team = db.relationship("Team", foreign_keys=[team_id])
    grade = db.relationship("Grade", backref="pick", uselist=False)

    # Constraints and indexes
    __table_args__ = (
        db.UniqueConstraint("entry_id", "game_id", name="unique_entry_game_pick"),
        db.CheckConstraint(
            f"confidence >= {MIN_CONFIDENCE} AND confidence <= {MAX_CONFIDENCE}",
            name="confidence_range",
        ),
        db.Index("idx_pick_entry", "entry_id"),
        db.Index("idx_pick_game", "game_id"),
    )

    def __repr__(self):
        return f'<Pick entry_id={self.entry_id} game_id={self.game_id} team={self.team.abbreviation if self.team else "TBD"}>'

    @validates("confidence")
    def validate_confidence(self, key, value):
        if value is None or not MIN_CONFIDENCE <= value <= MAX_CONFIDENCE:
            raise ValidationError(
                f"Confidence must be between {MIN_CONFIDENCE} and {MAX_CONFIDENCE}",
                field="confidence",
            )
        return value

    @property
    def week(self):
        """Get the week number from the associated game"""
        return self.game.week if self.game else None

    def to_dict(self):
        """Convert pick to dictionary for API responses"""
        return {
            "id": self.id,
            "entry_id": self.entry_id,
            "game_id": self.game_id,
            "team_id": self.team_id,
            "confidence": self.confidence,
            "week": self.week,
            "grade": self.grade.to_dict() if self.grade else None,
        }
