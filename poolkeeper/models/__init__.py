from poolkeeper import db  # noqa: F401 - imported for model imports

from .entry import Entry
from .enums import GameStatus, Outcome, PoolType
from .game import Game
from .grade import Grade
from .grade_override import GradeOverride
from .pick import Pick
from .pool import Pool
from .result import Result
from .team import Team

__all__ = [
    "Team",
    "Game",
    "Result",
    "Pool",
    "Entry",
    "Pick",
    "Grade",
    "GradeOverride",
    "GameStatus",
    "Outcome",
    "PoolType",
]
