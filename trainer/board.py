"""
Board Delegate

The session engine never implements chess rules. It talks to a narrow
RulesEngine interface (legal moves, apply, undo, check/checkmate, FEN) and
any concrete rules engine is injected. ChessBoard is the python-chess
implementation used by default.

Illegal moves never leave this module as errors: play() simply returns None.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

import chess

from .errors import IllegalMove

PROMOTION_PIECES = ("q", "r", "b", "n")


@dataclass(frozen=True)
class PlayedMove:
    """A move that was applied to the board."""
    uci: str
    from_square: str
    to_square: str
    promotion: Optional[str] = None
    captured: bool = False


class RulesEngine(Protocol):
    """Capabilities the session engine needs from a chess rules engine."""

    def fen(self) -> str: ...

    def turn(self) -> str: ...

    def legal_moves(self) -> List[str]: ...

    def needs_promotion_choice(self, from_square: str, to_square: str) -> bool: ...

    def play(
        self, from_square: str, to_square: str, promotion: Optional[str] = None
    ) -> Optional[PlayedMove]: ...

    def play_uci(self, token: str) -> Optional[PlayedMove]: ...

    def undo(self) -> None: ...

    def is_check(self) -> bool: ...

    def is_checkmate(self) -> bool: ...


BoardFactory = Callable[[str], RulesEngine]


def _color_name(color: chess.Color) -> str:
    return "white" if color == chess.WHITE else "black"


class ChessBoard:
    """RulesEngine backed by python-chess."""

    def __init__(self, fen: str = chess.STARTING_FEN):
        self._board = chess.Board(fen)

    def fen(self) -> str:
        return self._board.fen()

    def turn(self) -> str:
        return _color_name(self._board.turn)

    def legal_moves(self) -> List[str]:
        return [m.uci() for m in self._board.legal_moves]

    def needs_promotion_choice(self, from_square: str, to_square: str) -> bool:
        """True when a pawn reaching the last rank has several legal pieces to become."""
        try:
            src = chess.parse_square(from_square)
            dst = chess.parse_square(to_square)
        except ValueError:
            return False
        choices = [
            m for m in self._board.legal_moves
            if m.from_square == src and m.to_square == dst and m.promotion is not None
        ]
        return len(choices) > 1

    def play(
        self, from_square: str, to_square: str, promotion: Optional[str] = None
    ) -> Optional[PlayedMove]:
        try:
            return self._push(self._parse(from_square, to_square, promotion))
        except IllegalMove:
            return None

    def play_uci(self, token: str) -> Optional[PlayedMove]:
        try:
            move = chess.Move.from_uci(token)
            return self._push(move)
        except (ValueError, IllegalMove):
            return None

    def _parse(self, from_square: str, to_square: str, promotion: Optional[str]) -> chess.Move:
        try:
            src = chess.parse_square(from_square)
            dst = chess.parse_square(to_square)
        except ValueError as exc:
            raise IllegalMove(f"unknown square in {from_square}{to_square}") from exc

        piece_type = None
        if promotion:
            promotion = promotion.lower()
            if promotion not in PROMOTION_PIECES:
                raise IllegalMove(f"cannot promote to {promotion!r}")
            piece_type = chess.PIECE_SYMBOLS.index(promotion)
        return chess.Move(src, dst, promotion=piece_type)

    def _push(self, move: chess.Move) -> PlayedMove:
        if move not in self._board.legal_moves:
            raise IllegalMove(f"{move.uci()} is not legal in {self._board.fen()}")
        captured = self._board.is_capture(move)
        self._board.push(move)
        return PlayedMove(
            uci=move.uci(),
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
            captured=captured,
        )

    def undo(self) -> None:
        if self._board.move_stack:
            self._board.pop()

    def is_check(self) -> bool:
        return self._board.is_check()

    def is_checkmate(self) -> bool:
        return self._board.is_checkmate()
