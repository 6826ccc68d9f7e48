from datetime import datetime, timezone

from poolkeeper import db

from .enums import Outcome


class Grade(db.Model):
    """Current outcome of a pick. One row per pick, replaced in place on re-grade."""

    __tablename__ = "grades"

    id = db.Column(db.Integer, primary_key=True)
    pick_id = db.Column(
        db.Integer, db.ForeignKey("picks.id"), nullable=False, unique=True
    )

    outcome = db.Column(db.Enum(Outcome), nullable=False)
    points = db.Column(db.Numeric(8, 2), nullable=False, default=0)

    # Provenance (auto-grade data and override metadata), see utils.scoring
    details = db.Column(db.JSON, nullable=False, default=dict)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<Grade pick_id={self.pick_id} {self.outcome.value if self.outcome else '?'} {self.points}>"

    @property
    def is_manual_override(self):
        return bool((self.details or {}).get("is_manual_override"))

    def to_dict(self):
        """Convert grade to dictionary for API responses"""
        return {
            "id": self.id,
            "pick_id": self.pick_id,
            "outcome": self.outcome.value if self.outcome else None,
            "points": float(self.points) if self.points is not None else None,
            "details": self.details or {},
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
