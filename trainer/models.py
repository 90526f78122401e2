"""
Training Data Types and Schemas

Defines the documents the session engine reads (puzzle sets, puzzles, user
profiles) and the update deltas it writes back. Wire names follow the
storage documents (camelCase, FEN/Moves/Themes) so the same dicts travel
unchanged between the backend and the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PuzzleRef:
    """
    One entry of a puzzle set: the per-user statistics for a single puzzle.

    Histories (mistakes, time_taken, grades) get one entry appended per solve.
    """
    # Set item identifier (unique within the set)
    id: str

    # External puzzle identifier used to fetch the puzzle body
    puzzle_id: str

    # Position within the set; the stable sort key for play order
    order: int

    played: bool = False
    count: int = 0
    mistakes: List[int] = field(default_factory=list)
    time_taken: List[float] = field(default_factory=list)
    grades: List[int] = field(default_factory=list)
    streak: int = 0

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "PuzzleId": self.puzzle_id,
            "order": self.order,
            "played": self.played,
            "count": self.count,
            "mistakes": list(self.mistakes),
            "timeTaken": list(self.time_taken),
            "grades": list(self.grades),
            "streak": self.streak,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PuzzleRef:
        return cls(
            id=str(data.get("_id", data.get("id"))),
            puzzle_id=str(data.get("PuzzleId", data.get("puzzle_id"))),
            order=int(data.get("order", 0)),
            played=bool(data.get("played", False)),
            count=int(data.get("count", 0) or 0),
            mistakes=list(data.get("mistakes") or []),
            time_taken=list(data.get("timeTaken") or []),
            grades=list(data.get("grades") or []),
            streak=int(data.get("streak", 0) or 0),
        )


@dataclass
class PuzzleSet:
    """
    An ordered collection of puzzles assigned to a user, replayable in cycles.

    Invariant: progression <= length. current_time returns to 0 exactly
    when a cycle completes.
    """
    id: str
    user_id: str = ""
    title: str = ""
    puzzles: List[PuzzleRef] = field(default_factory=list)

    # Accumulated seconds of the in-progress cycle
    current_time: float = 0.0

    # Puzzles completed in the current cycle
    progression: int = 0

    # Total puzzle count (defaults to len(puzzles))
    length: int = 0

    # Completed full passes and their total times
    cycles: int = 0
    times: List[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.length:
            self.length = len(self.puzzles)

    def unplayed(self) -> List[PuzzleRef]:
        """Puzzles still to play in this cycle, in set order."""
        # sorted() is stable, so equal orders keep their stored sequence
        return sorted((p for p in self.puzzles if not p.played), key=lambda p: p.order)

    def find(self, ref_id: str) -> Optional[PuzzleRef]:
        for ref in self.puzzles:
            if ref.id == ref_id:
                return ref
        return None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user": self.user_id,
            "title": self.title,
            "puzzles": [p.to_dict() for p in self.puzzles],
            "currentTime": self.current_time,
            "progression": self.progression,
            "length": self.length,
            "cycles": self.cycles,
            "times": list(self.times),
        }

    @classmethod
    def from_dict(cls, data: dict) -> PuzzleSet:
        return cls(
            id=str(data.get("_id", data.get("id"))),
            user_id=str(data.get("user", "") or ""),
            title=data.get("title", "") or "",
            puzzles=[PuzzleRef.from_dict(p) for p in data.get("puzzles", [])],
            current_time=float(data.get("currentTime", 0) or 0),
            progression=int(data.get("progression", 0) or 0),
            length=int(data.get("length", 0) or 0),
            cycles=int(data.get("cycles", 0) or 0),
            times=list(data.get("times") or []),
        )


@dataclass
class Puzzle:
    """
    A puzzle body, fetched lazily when the session reaches it.

    moves is the forced solution line in UCI, opponent first:
    [opponent, player, opponent, player, ...]
    """
    id: str
    fen: str
    moves: List[str]
    themes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "FEN": self.fen,
            "Moves": " ".join(self.moves),
            "Themes": list(self.themes),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Puzzle:
        moves = data.get("Moves", "")
        if isinstance(moves, str):
            moves = moves.split()
        return cls(
            id=str(data.get("id", data.get("_id", data.get("PuzzleId")))),
            fen=data["FEN"],
            moves=list(moves),
            themes=list(data.get("Themes") or []),
        )


@dataclass
class ThemeCount:
    title: str
    count: int = 0

    def to_dict(self) -> dict:
        return {"title": self.title, "count": self.count}


@dataclass
class UserProfile:
    """The slice of the user record the engine reads and updates."""
    id: str
    total_puzzle_solved: int = 0
    puzzle_solved_by_categories: List[ThemeCount] = field(default_factory=list)
    total_set_completed: int = 0
    is_sponsor: bool = False

    # Daily play streak, maintained outside the engine
    streak: int = 0

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "totalPuzzleSolved": self.total_puzzle_solved,
            "puzzleSolvedByCategories": [t.to_dict() for t in self.puzzle_solved_by_categories],
            "totalSetCompleted": self.total_set_completed,
            "isSponsor": self.is_sponsor,
            "streak": self.streak,
        }

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        return cls(
            id=str(data.get("_id", data.get("id"))),
            total_puzzle_solved=int(data.get("totalPuzzleSolved", 0) or 0),
            puzzle_solved_by_categories=[
                ThemeCount(title=t["title"], count=int(t.get("count", 0)))
                for t in data.get("puzzleSolvedByCategories", [])
            ],
            total_set_completed=int(data.get("totalSetCompleted", 0) or 0),
            is_sponsor=bool(data.get("isSponsor", False)),
            streak=int(data.get("streak", 0) or 0),
        )


@dataclass
class PreviousPuzzle:
    """One line of the in-session results summary."""
    puzzle_id: str
    grade: int

    def to_dict(self) -> dict:
        return {"PuzzleId": self.puzzle_id, "grade": self.grade}


@dataclass
class UpdateDelta:
    """
    A storage update: increments, appends and assignments keyed by field path.

    Paths:
    - "puzzles.$.<field>"       the targeted puzzle entry of a set
    - "puzzles.$[].played"      every puzzle entry of a set
    - "puzzleSolvedByCategories.<index>.count"   a user theme counter
    - "<field>"                 a top-level field
    """
    inc: Dict[str, float] = field(default_factory=dict)
    push: Dict[str, List[Any]] = field(default_factory=dict)
    assign: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.inc or self.push or self.assign)

    def to_dict(self) -> dict:
        data: Dict[str, dict] = {}
        if self.inc:
            data["$inc"] = dict(self.inc)
        if self.push:
            data["$push"] = {k: list(v) for k, v in self.push.items()}
        if self.assign:
            data["$set"] = dict(self.assign)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> UpdateDelta:
        return cls(
            inc=dict(data.get("$inc") or {}),
            push={k: list(v) for k, v in (data.get("$push") or {}).items()},
            assign=dict(data.get("$set") or {}),
        )
