"""
Chess Puzzle Training Session Engine

Plays a user's puzzle set: sequences puzzles, validates moves against the
precomputed solution line, grades each solve, and emits the deltas that
persist progress and the payloads that trigger achievements.

Chess rules come from an injected rules engine (python-chess by default);
storage and achievement rules are external collaborators.
"""

from .models import (
    Puzzle,
    PuzzleRef,
    PuzzleSet,
    PreviousPuzzle,
    ThemeCount,
    UpdateDelta,
    UserProfile,
)
from .errors import (
    TrainerError,
    FetchFailure,
    PersistenceFailure,
    IllegalMove,
    InvalidSessionState,
)
from .board import ChessBoard, PlayedMove, RulesEngine
from .grading import compute_grade
from .move_validator import Classification, MoveValidator, MoveVerdict
from .progression import ProgressionTracker, PuzzleCommit, SetCommit
from .achievements import AchievementEvaluator, AchievementPayload
from .events import EventBus, EventKind, SessionEvent
from .session import SessionController, SessionState
from .api_client import TrainerApiClient
from .set_stats import current_run_stats, grade_band, overview_stats, progress_stats

__all__ = [
    # Types
    "Puzzle",
    "PuzzleRef",
    "PuzzleSet",
    "PreviousPuzzle",
    "ThemeCount",
    "UpdateDelta",
    "UserProfile",
    # Errors
    "TrainerError",
    "FetchFailure",
    "PersistenceFailure",
    "IllegalMove",
    "InvalidSessionState",
    # Board
    "ChessBoard",
    "PlayedMove",
    "RulesEngine",
    # Engine
    "compute_grade",
    "Classification",
    "MoveValidator",
    "MoveVerdict",
    "ProgressionTracker",
    "PuzzleCommit",
    "SetCommit",
    "AchievementEvaluator",
    "AchievementPayload",
    "EventBus",
    "EventKind",
    "SessionEvent",
    "SessionController",
    "SessionState",
    # HTTP
    "TrainerApiClient",
    # Review stats
    "current_run_stats",
    "grade_band",
    "overview_stats",
    "progress_stats",
]
