from datetime import datetime, timezone

from poolkeeper import db

from .enums import GameStatus


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)

    # Game identification
    season = db.Column(db.Integer, nullable=False)
    week = db.Column(db.Integer, nullable=False)

    # Teams
    home_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)

    # Game timing
    kickoff = db.Column(db.DateTime, nullable=False)

    # Game status
    status = db.Column(
        db.Enum(GameStatus), nullable=False, default=GameStatus.SCHEDULED
    )

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    picks = db.relationship("Pick", backref="game", lazy="dynamic")
    result = db.relationship(
        "Result", backref=db.backref("game", lazy="joined"), uselist=False
    )

    # Indexes
    __table_args__ = (
        db.Index("idx_game_season_week", "season", "week"),
        db.CheckConstraint("home_team_id != away_team_id", name="different_teams"),
    )

    def __repr__(self):
        return f'<Game {self.away_team.abbreviation if self.away_team else "TBD"} @ {self.home_team.abbreviation if self.home_team else "TBD"} Week {self.week}>'

    @property
    def matchup(self):
        """Short "AWY @ HOM" label used in logs and CLI output"""
        away = self.away_team.abbreviation if self.away_team else "TBD"
        home = self.home_team.abbreviation if self.home_team else "TBD"
        return f"{away} @ {home}"

    def to_dict(self):
        """Convert game to dictionary for API responses"""
        return {
            "id": self.id,
            "season": self.season,
            "week": self.week,
            "kickoff": self.kickoff.isoformat() if self.kickoff else None,
            "status": self.status.value if self.status else None,
            "home_team": self.home_team.to_dict() if self.home_team else None,
            "away_team": self.away_team.to_dict() if self.away_team else None,
        }
