"""
Move Validation

Classifies a player's move against the expected token of the solution line.
All board work goes through the injected RulesEngine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .board import PlayedMove, RulesEngine


class MoveVerdict(str, Enum):
    """
    Outcome of a submitted move.

    - ILLEGAL: not a legal move; the board is untouched
    - PROMOTION_PENDING: pawn reaches the last rank, a piece must be chosen first
    - CORRECT: matches the expected token, or delivers checkmate
    - INCORRECT: any other legal move; already undone on the board
    """
    ILLEGAL = "illegal"
    PROMOTION_PENDING = "promotion_pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class Classification:
    verdict: MoveVerdict
    move: Optional[PlayedMove] = None
    checkmate: bool = False

    @property
    def is_correct(self) -> bool:
        return self.verdict == MoveVerdict.CORRECT


def matches_token(move: PlayedMove, expected: str) -> bool:
    """from+to (+promotion piece) must equal the expected UCI token exactly."""
    return move.uci == expected.strip().lower()


class MoveValidator:
    """Checks player moves on one board."""

    def __init__(self, board: RulesEngine):
        self.board = board

    def classify(
        self,
        from_square: str,
        to_square: str,
        expected: str,
        promotion: Optional[str] = None,
    ) -> Classification:
        if promotion is None and self.board.needs_promotion_choice(from_square, to_square):
            return Classification(MoveVerdict.PROMOTION_PENDING)

        move = self.board.play(from_square, to_square, promotion)
        if move is None:
            return Classification(MoveVerdict.ILLEGAL)

        # Any mate ends the puzzle: several mating moves can be equally good
        checkmate = self.board.is_checkmate()
        if checkmate or matches_token(move, expected):
            return Classification(MoveVerdict.CORRECT, move=move, checkmate=checkmate)

        self.board.undo()
        return Classification(MoveVerdict.INCORRECT, move=move)
