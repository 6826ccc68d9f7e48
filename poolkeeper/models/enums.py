import enum


class PoolType(str, enum.Enum):
    """Scoring regime of a pool; selects the grading rule for every pick"""

    ATS = "ATS"
    SU = "SU"
    POINTS_PLUS = "POINTS_PLUS"
    SURVIVOR = "SURVIVOR"


class Outcome(str, enum.Enum):
    WIN = "WIN"
    LOSS = "LOSS"
    PUSH = "PUSH"
    VOID = "VOID"


class GameStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    FINAL = "FINAL"
    CANCELLED = "CANCELLED"
