from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.orm import object_session

from poolkeeper import db
from poolkeeper.errors import ConflictError

from .enums import Outcome


class GradeOverride(db.Model):
    """
    Append-only audit record of a manual grade correction.

    Rows are inserted by the override service and never updated or deleted;
    the mapper events below reject any attempt to do so.
    """

    __tablename__ = "grade_overrides"

    id = db.Column(db.Integer, primary_key=True)
    pick_id = db.Column(db.Integer, db.ForeignKey("picks.id"), nullable=False)

    # Grade state immediately before and after the override
    original_outcome = db.Column(db.Enum(Outcome), nullable=False)
    original_points = db.Column(db.Numeric(8, 2), nullable=False)
    new_outcome = db.Column(db.Enum(Outcome), nullable=False)
    new_points = db.Column(db.Numeric(8, 2), nullable=False)

    reason = db.Column(db.String(500), nullable=False)
    overridden_by = db.Column(db.String(100), nullable=True)
    overridden_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    pick = db.relationship(
        "Pick", backref=db.backref("overrides", lazy="dynamic")
    )

    __table_args__ = (
        db.Index("idx_override_pick", "pick_id"),
        db.Index("idx_override_created", "overridden_at"),
    )

    def __repr__(self):
        return (
            f"<GradeOverride pick_id={self.pick_id} "
            f"{self.original_outcome.value}->{self.new_outcome.value}>"
        )

    def to_dict(self):
        """Convert override to dictionary for API responses"""
        return {
            "id": self.id,
            "pick_id": self.pick_id,
            "original_outcome": self.original_outcome.value,
            "original_points": float(self.original_points),
            "new_outcome": self.new_outcome.value,
            "new_points": float(self.new_points),
            "reason": self.reason,
            "overridden_by": self.overridden_by,
            "overridden_at": (
                self.overridden_at.isoformat() if self.overridden_at else None
            ),
        }


@event.listens_for(GradeOverride, "before_update")
def _reject_override_update(mapper, connection, target):
    session = object_session(target)
    if session is not None and not session.is_modified(
        target, include_collections=False
    ):
        return
    raise ConflictError(
        f"Grade override {target.id} is immutable and cannot be updated"
    )


@event.listens_for(GradeOverride, "before_delete")
def _reject_override_delete(mapper, connection, target):
    raise ConflictError(
        f"Grade override {target.id} is immutable and cannot be deleted"
    )
