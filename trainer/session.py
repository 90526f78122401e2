"""
Puzzle Training Session

SessionController plays one puzzle set pass for one user:

    Idle -> Loading -> AwaitingOpponentOpening -> AwaitingPlayerMove
         -> {AwaitingPromotionChoice | MistakeRegistered | AwaitingOpponentReply
             | PuzzleComplete} -> ... -> SetComplete | SessionEnded

Opponent moves are played by cancellable delayed tasks (purely for visual
pacing; zero delays are fine). Commits are queued and never block play.
Everything runs on one asyncio loop, so there is no locking; ordering is
what matters: a puzzle's statistics are read and committed before any
counter is reset for the next one.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from .achievements import AchievementEvaluator
from .board import BoardFactory, ChessBoard, RulesEngine
from .collaborators import AchievementChecker, PuzzleStore
from .commits import CommitQueue
from .config import Settings, get_settings
from .errors import FetchFailure, InvalidSessionState
from .events import EventBus, EventKind
from .models import PreviousPuzzle, Puzzle, PuzzleRef, PuzzleSet, UserProfile
from .move_validator import Classification, MoveValidator, MoveVerdict
from .progression import ProgressionTracker, PuzzleCommit
from .timer import SetClock

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    AWAITING_OPPONENT_OPENING = "awaiting_opponent_opening"
    AWAITING_PLAYER_MOVE = "awaiting_player_move"
    AWAITING_PROMOTION_CHOICE = "awaiting_promotion_choice"
    MISTAKE_REGISTERED = "mistake_registered"
    AWAITING_OPPONENT_REPLY = "awaiting_opponent_reply"
    PUZZLE_COMPLETE = "puzzle_complete"
    SET_COMPLETE = "set_complete"
    SESSION_ENDED = "session_ended"


S = SessionState

TERMINAL_STATES: FrozenSet[SessionState] = frozenset({S.SET_COMPLETE, S.SESSION_ENDED})

_PLAYER_OUTCOMES = {S.AWAITING_OPPONENT_REPLY, S.MISTAKE_REGISTERED, S.PUZZLE_COMPLETE}

TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    S.IDLE: frozenset({S.LOADING, S.SET_COMPLETE, S.SESSION_ENDED}),
    S.LOADING: frozenset({S.LOADING, S.AWAITING_OPPONENT_OPENING, S.SESSION_ENDED}),
    S.AWAITING_OPPONENT_OPENING: frozenset({S.AWAITING_PLAYER_MOVE, S.SESSION_ENDED}),
    S.AWAITING_PLAYER_MOVE: frozenset({S.AWAITING_PROMOTION_CHOICE, S.SESSION_ENDED} | _PLAYER_OUTCOMES),
    S.AWAITING_PROMOTION_CHOICE: frozenset({S.AWAITING_PLAYER_MOVE, S.SESSION_ENDED} | _PLAYER_OUTCOMES),
    S.MISTAKE_REGISTERED: frozenset({S.AWAITING_PLAYER_MOVE, S.SESSION_ENDED}),
    S.AWAITING_OPPONENT_REPLY: frozenset({S.AWAITING_PLAYER_MOVE, S.SESSION_ENDED}),
    S.PUZZLE_COMPLETE: frozenset({S.LOADING, S.SET_COMPLETE, S.SESSION_ENDED}),
    S.SET_COMPLETE: frozenset(),
    S.SESSION_ENDED: frozenset(),
}


@dataclass
class SessionContext:
    """Ephemeral per-session state. Never persisted."""
    queue: List[PuzzleRef] = field(default_factory=list)
    pointer: int = 0
    move_index: int = 0
    mistakes: int = 0
    total_mistakes: int = 0
    pending_promotion: Optional[Tuple[str, str]] = None
    solution_revealed: bool = False
    puzzle_started_at: float = 0.0
    committed: bool = False
    history: List[PreviousPuzzle] = field(default_factory=list)


class SessionController:
    def __init__(
        self,
        puzzle_set: PuzzleSet,
        user: UserProfile,
        store: PuzzleStore,
        checker: AchievementChecker,
        *,
        board_factory: BoardFactory = ChessBoard,
        settings: Optional[Settings] = None,
        events: Optional[EventBus] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = settings or get_settings()
        self.puzzle_set = puzzle_set
        self.user = user
        self.store = store
        self.board_factory = board_factory
        self.opening_delay = settings.opening_delay
        self.reply_delay = settings.reply_delay
        self.auto_advance = settings.auto_advance
        self.events = events or EventBus()
        self._clock = clock

        self.tracker = ProgressionTracker(
            puzzle_set,
            user,
            mistake_penalty=settings.mistake_penalty_seconds,
            completion_bonus=settings.set_completion_bonus_seconds,
        )
        self.achievements = AchievementEvaluator(checker, settings.fast_solve_seconds)
        self.commits = CommitQueue(self._report_error)
        self.set_clock = SetClock(
            puzzle_set.current_time,
            penalty_per_mistake=settings.mistake_penalty_seconds,
            clock=clock,
        )

        self.state = S.IDLE
        self.ctx = SessionContext()
        self.puzzle: Optional[Puzzle] = None
        self.board: Optional[RulesEngine] = None
        self.validator: Optional[MoveValidator] = None

        self._timer: Optional[asyncio.Task] = None
        self._generation = 0
        self._closed = False

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def current_ref(self) -> Optional[PuzzleRef]:
        if 0 <= self.ctx.pointer < len(self.ctx.queue):
            return self.ctx.queue[self.ctx.pointer]
        return None

    @property
    def move_index(self) -> int:
        return self.ctx.move_index

    @property
    def mistakes(self) -> int:
        return self.ctx.mistakes

    @property
    def total_mistakes(self) -> int:
        return self.ctx.total_mistakes

    @property
    def timer_sum(self) -> float:
        return self.tracker.timer_sum

    @property
    def history(self) -> List[PreviousPuzzle]:
        return list(self.ctx.history)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def clock_display(self) -> float:
        return self.set_clock.display(self.ctx.total_mistakes)

    def summary(self) -> dict:
        return {
            "set_id": self.puzzle_set.id,
            "solved": len(self.ctx.history),
            "total_mistakes": self.ctx.total_mistakes,
            "timer_sum": self.tracker.timer_sum,
            "history": [p.to_dict() for p in self.ctx.history],
        }

    # =========================================================================
    # State machine plumbing
    # =========================================================================

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise InvalidSessionState(f"cannot go from {self.state.value} to {new_state.value}")
        previous, self.state = self.state, new_state
        self.events.emit(EventKind.STATE_CHANGED, previous=previous, state=new_state)

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """Run callback after delay as a cancellable task; replaces any pending one."""
        self._cancel_timer()

        async def fire() -> None:
            await asyncio.sleep(max(0.0, delay))
            self._timer = None
            callback()

        self._timer = asyncio.get_running_loop().create_task(fire())

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _report_error(self, exc: Exception, context: str) -> None:
        if self._closed:
            logger.info("Ignoring %s failure after session end: %s", context, exc)
            return
        self.events.error(exc, context=context)

    def _emit_board(self, move=None) -> None:
        assert self.board is not None
        self.events.emit(
            EventKind.BOARD_UPDATED,
            fen=self.board.fen(),
            turn=self.board.turn(),
            check=self.board.is_check(),
            last_move=[move.from_square, move.to_square] if move else None,
            captured=bool(move and move.captured),
        )

    # =========================================================================
    # Loading
    # =========================================================================

    async def start(self) -> None:
        """Queue the unplayed puzzles in set order and load the first one."""
        if self.state != S.IDLE:
            raise InvalidSessionState(f"session already started ({self.state.value})")

        self.ctx.queue = self.puzzle_set.unplayed()
        if not self.ctx.queue:
            # Every puzzle of this cycle is already solved
            self._transition(S.SET_COMPLETE)
            self.events.emit(EventKind.SET_COMPLETE, set_id=self.puzzle_set.id, already_complete=True)
            return

        logger.info(
            "Starting set %s: %d of %d puzzles left",
            self.puzzle_set.id, len(self.ctx.queue), self.puzzle_set.length,
        )
        self.set_clock.start()
        await self._load_current()

    async def reload(self) -> None:
        """Request the current puzzle again after a failed fetch."""
        if self.state != S.LOADING:
            raise InvalidSessionState(f"nothing to reload in {self.state.value}")
        await self._load_current()

    async def _load_current(self) -> None:
        ref = self.current_ref
        if ref is None:
            raise InvalidSessionState("no puzzle left to load")

        self._transition(S.LOADING)
        self._generation += 1
        generation = self._generation

        try:
            puzzle = await self.store.fetch_puzzle(ref.puzzle_id)
            self._check_line(puzzle)
        except FetchFailure as exc:
            if generation == self._generation:
                logger.warning("Could not load puzzle %s: %s", ref.puzzle_id, exc)
                self._report_error(exc, f"fetch puzzle {ref.puzzle_id}")
            return

        # A newer load (or leave) superseded this one
        if generation != self._generation or self.state != S.LOADING:
            logger.debug("Discarding stale fetch of puzzle %s", ref.puzzle_id)
            return

        self._setup_puzzle(puzzle)

    def _check_line(self, puzzle: Puzzle) -> None:
        """A playable line alternates opponent/player, ends on a player move, and is legal."""
        moves = puzzle.moves
        if len(moves) < 2 or len(moves) % 2:
            raise FetchFailure(
                f"puzzle {puzzle.id} has {len(moves)} solution moves; "
                "expected an even number ending on a player move",
                resource_id=puzzle.id,
            )
        try:
            scratch = self.board_factory(puzzle.fen)
        except ValueError as exc:
            raise FetchFailure(f"puzzle {puzzle.id} has a bad FEN: {exc}", resource_id=puzzle.id) from exc
        for index, token in enumerate(moves):
            if scratch.play_uci(token) is None:
                raise FetchFailure(
                    f"puzzle {puzzle.id}: solution move {index} ({token}) is illegal",
                    resource_id=puzzle.id,
                )

    def _setup_puzzle(self, puzzle: Puzzle) -> None:
        self.puzzle = puzzle
        self.board = self.board_factory(puzzle.fen)
        self.validator = MoveValidator(self.board)

        ctx = self.ctx
        ctx.move_index = 0
        ctx.pending_promotion = None
        ctx.solution_revealed = False
        ctx.committed = False
        ctx.puzzle_started_at = self._clock()

        # The side to move in the FEN is the opponent; the player sits opposite
        orientation = "white" if self.board.turn() == "black" else "black"
        self.events.emit(EventKind.ORIENTATION, color=orientation, puzzle_id=puzzle.id)
        self._emit_board()

        self._transition(S.AWAITING_OPPONENT_OPENING)
        self._schedule(self.opening_delay, self._play_opponent_move)

    # =========================================================================
    # Moves
    # =========================================================================

    def _play_opponent_move(self) -> None:
        if self.state not in (S.AWAITING_OPPONENT_OPENING, S.AWAITING_OPPONENT_REPLY):
            return
        assert self.puzzle is not None and self.board is not None

        token = self.puzzle.moves[self.ctx.move_index]
        move = self.board.play_uci(token)
        if move is None:
            logger.error("Puzzle %s: solution move %s is not playable", self.puzzle.id, token)
            self._report_error(
                InvalidSessionState(f"solution move {token} of puzzle {self.puzzle.id} is illegal"),
                f"opponent move {token}",
            )
            return

        self.ctx.move_index += 1
        self._emit_board(move)
        self._transition(S.AWAITING_PLAYER_MOVE)

    def _expected_token(self) -> str:
        assert self.puzzle is not None
        return self.puzzle.moves[self.ctx.move_index]

    async def submit_move(self, from_square: str, to_square: str) -> Optional[Classification]:
        """Play a move for the player. Ignored (None) unless it is the player's turn."""
        if self.state != S.AWAITING_PLAYER_MOVE:
            logger.debug("Ignoring move %s%s in %s", from_square, to_square, self.state.value)
            return None
        assert self.validator is not None

        result = self.validator.classify(from_square, to_square, self._expected_token())
        if result.verdict == MoveVerdict.PROMOTION_PENDING:
            self.ctx.pending_promotion = (from_square, to_square)
            self._transition(S.AWAITING_PROMOTION_CHOICE)
            self.events.emit(
                EventKind.PROMOTION_REQUIRED,
                from_square=from_square,
                to_square=to_square,
                color=self.board.turn(),
            )
            return result

        await self._resolve(result)
        return result

    async def submit_promotion(self, piece: str) -> Optional[Classification]:
        """Finish a pending promotion with the chosen piece (q, r, b or n)."""
        if self.state != S.AWAITING_PROMOTION_CHOICE or self.ctx.pending_promotion is None:
            return None
        assert self.validator is not None

        from_square, to_square = self.ctx.pending_promotion
        result = self.validator.classify(from_square, to_square, self._expected_token(), promotion=piece)
        if result.verdict == MoveVerdict.ILLEGAL:
            return result

        self.ctx.pending_promotion = None
        await self._resolve(result)
        return result

    def cancel_promotion(self) -> None:
        if self.state == S.AWAITING_PROMOTION_CHOICE:
            self.ctx.pending_promotion = None
            self._transition(S.AWAITING_PLAYER_MOVE)

    async def _resolve(self, result: Classification) -> None:
        if result.verdict == MoveVerdict.CORRECT:
            await self._on_correct(result)
        elif result.verdict == MoveVerdict.INCORRECT:
            self._on_incorrect(result)

    async def _on_correct(self, result: Classification) -> None:
        assert self.puzzle is not None
        self.ctx.move_index += 1
        self.events.emit(EventKind.MOVE_CORRECT, move=result.move.uci, checkmate=result.checkmate)
        self._emit_board(result.move)

        if result.checkmate or self.ctx.move_index >= len(self.puzzle.moves):
            await self._complete_puzzle()
            return

        self._transition(S.AWAITING_OPPONENT_REPLY)
        self._schedule(self.reply_delay, self._play_opponent_move)

    def _on_incorrect(self, result: Classification) -> None:
        self.ctx.mistakes += 1
        self.ctx.total_mistakes += 1
        self._transition(S.MISTAKE_REGISTERED)
        self.events.emit(
            EventKind.MOVE_INCORRECT,
            move=result.move.uci,
            mistakes=self.ctx.mistakes,
            total_mistakes=self.ctx.total_mistakes,
        )
        self._transition(S.AWAITING_PLAYER_MOVE)

    def reveal_solution(self) -> Optional[str]:
        """Show the expected move. The current puzzle then counts as cheated."""
        if self.puzzle is None or self.is_terminal or self.state == S.LOADING:
            return None
        self.ctx.solution_revealed = True
        if self.ctx.move_index < len(self.puzzle.moves):
            return self.puzzle.moves[self.ctx.move_index]
        return None

    # =========================================================================
    # Completion
    # =========================================================================

    async def _complete_puzzle(self) -> None:
        self._transition(S.PUZZLE_COMPLETE)
        commit = self._commit_puzzle()
        self.events.emit(
            EventKind.PUZZLE_COMPLETE,
            puzzle_id=commit.puzzle_id,
            grade=commit.grade,
            mistakes=commit.mistakes,
            time_taken=commit.time_taken,
        )
        if self.auto_advance:
            await self.change_puzzle()
        else:
            self.pause_timer()

    def _commit_puzzle(self) -> Optional[PuzzleCommit]:
        """Commit the finished puzzle once; later calls are no-ops."""
        if self.ctx.committed:
            return None
        ref = self.current_ref
        if self.puzzle is None or ref is None or self.state != S.PUZZLE_COMPLETE:
            raise InvalidSessionState("no completed puzzle to commit")

        elapsed = max(0.0, self._clock() - self.ctx.puzzle_started_at)
        commit = self.tracker.commit_puzzle(
            ref,
            mistakes=self.ctx.mistakes,
            elapsed=elapsed,
            did_cheat=self.ctx.solution_revealed,
            themes=self.puzzle.themes,
        )
        self.ctx.committed = True
        self.ctx.history.append(PreviousPuzzle(puzzle_id=ref.puzzle_id, grade=commit.grade))
        logger.info(
            "Puzzle %s solved: grade %d, %d mistakes, %.2fs",
            ref.puzzle_id, commit.grade, commit.mistakes, commit.time_taken,
        )

        payload = self.achievements.build_payload(commit, elapsed, self.user)
        set_id = self.puzzle_set.id
        user_id = self.user.id

        async def write_puzzle() -> None:
            stored = await self.store.update_set_puzzle(set_id, commit.ref_id, commit.set_delta)
            if stored.grades and stored.grades[-1] != commit.grade:
                logger.warning(
                    "Store recorded grade %s for %s, expected %s",
                    stored.grades[-1], commit.ref_id, commit.grade,
                )

        async def write_user() -> None:
            await self.store.update_user(user_id, commit.user_delta)

        async def check_achievements() -> None:
            unlocked = await self.achievements.evaluate(payload)
            if self._closed:
                logger.debug("Session ended; dropping achievements %s", unlocked)
                return
            if unlocked:
                self.events.emit(EventKind.ACHIEVEMENTS_UNLOCKED, achievements=unlocked, url="/dashboard")

        self.commits.submit(f"puzzle commit {commit.ref_id}", write_puzzle)
        self.commits.submit(f"user commit {user_id}", write_user)
        self.commits.submit(f"achievement check {commit.ref_id}", check_achievements)
        return commit

    async def change_puzzle(self) -> None:
        """Commit the finished puzzle and move on to the next (or finish the set)."""
        if self.state != S.PUZZLE_COMPLETE:
            raise InvalidSessionState(f"no finished puzzle to advance from ({self.state.value})")

        self._commit_puzzle()
        self.ctx.mistakes = 0
        self.ctx.puzzle_started_at = self._clock()
        self.ctx.solution_revealed = False
        self.ctx.pointer += 1

        if self.ctx.pointer >= len(self.ctx.queue):
            self._complete_set()
            return

        self.resume_timer()
        await self._load_current()

    async def next_puzzle(self) -> bool:
        """Player command: advance if the current puzzle is done, otherwise ignore."""
        if self.state != S.PUZZLE_COMPLETE:
            return False
        await self.change_puzzle()
        return True

    def _complete_set(self) -> None:
        commit = self.tracker.commit_set()
        self.set_clock.pause()
        self._cancel_timer()

        async def write_set() -> None:
            await self.store.update_set(commit.set_id, commit.set_delta)

        async def write_user() -> None:
            await self.store.update_user(self.user.id, commit.user_delta)

        self.commits.submit(f"set commit {commit.set_id}", write_set)
        self.commits.submit(f"user commit {self.user.id}", write_user)

        logger.info("Set %s complete in %.2fs", commit.set_id, commit.total_time)
        self._transition(S.SET_COMPLETE)
        self.events.emit(
            EventKind.SET_COMPLETE,
            set_id=commit.set_id,
            total_time=commit.total_time,
            cycles=self.puzzle_set.cycles,
            history=[p.to_dict() for p in self.ctx.history],
        )

    # =========================================================================
    # Clock and exit
    # =========================================================================

    def pause_timer(self) -> None:
        self.set_clock.pause()
        self.events.emit(EventKind.TIMER, running=False, elapsed=self.clock_display)

    def resume_timer(self) -> None:
        self.set_clock.resume()
        self.events.emit(EventKind.TIMER, running=True, elapsed=self.clock_display)

    def leave(self, review: bool = False) -> None:
        """End the session; the unfinished puzzle is not committed."""
        if self.is_terminal:
            return
        self._cancel_timer()
        self._generation += 1
        self.set_clock.pause()
        self._transition(S.SESSION_ENDED)
        self._closed = True
        self.events.emit(
            EventKind.NAVIGATE,
            destination="review" if review else "dashboard",
            set_id=self.puzzle_set.id,
        )

    async def drain(self) -> None:
        """Wait for pending opponent moves and queued commits to finish."""
        while self._timer is not None and not self._timer.done():
            await asyncio.wait({self._timer})
        await self.commits.join()

    async def close(self) -> None:
        self._cancel_timer()
        await self.commits.close()
