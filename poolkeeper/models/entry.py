from datetime import datetime, timezone

from poolkeeper import db


class Entry(db.Model):
    __tablename__ = "entries"

    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(db.Integer, db.ForeignKey("pools.id"), nullable=False)
    season = db.Column(db.Integer, nullable=False)
    name = db.Column(db.String(100), nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    picks = db.relationship("Pick", backref="entry", lazy="dynamic")

    __table_args__ = (db.Index("idx_entry_pool_season", "pool_id", "season"),)

    def __repr__(self):
        return f"<Entry {self.name} pool_id={self.pool_id} season={self.season}>"

    def to_dict(self):
        return {
            "id": self.id,
            "pool_id": self.pool_id,
            "season": self.season,
            "name": self.name,
        }
