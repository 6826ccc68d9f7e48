from datetime import datetime, timezone

from poolkeeper import db

from .enums import PoolType


class Pool(db.Model):
    __tablename__ = "pools"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)

    # Scoring regime; must not change once picks in this pool have been graded
    type = db.Column(db.Enum(PoolType), nullable=False)
    season = db.Column(db.Integer, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    entries = db.relationship("Entry", backref="pool", lazy="dynamic")

    __table_args__ = (db.Index("idx_pool_season", "season"),)

    def __repr__(self):
        return f"<Pool {self.name} {self.type.value if self.type else '?'} {self.season}>"

    @property
    def is_survivor(self):
        return self.type == PoolType.SURVIVOR

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value if self.type else None,
            "season": self.season,
        }
