"""
Achievement Evaluation Adapter

Unlock rules live outside the engine. This module only keeps the session
streaks, assembles the payload for a finished puzzle, and asks the external
checker which achievements it unlocked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .collaborators import AchievementChecker
from .models import ThemeCount, UserProfile
from .progression import PuzzleCommit

logger = logging.getLogger(__name__)

FAST_SOLVE_SECONDS = 5.0


@dataclass
class AchievementPayload:
    streak_mistakes: int
    streak_time: int
    completion_time: float
    completion_mistakes: int
    total_puzzle_solved: int
    themes: List[ThemeCount] = field(default_factory=list)
    total_set_solved: int = 0
    did_cheat: bool = False
    streak: int = 0
    is_sponsor: bool = False

    def to_dict(self) -> dict:
        return {
            "streakMistakes": self.streak_mistakes,
            "streakTime": self.streak_time,
            "completionTime": self.completion_time,
            "completionMistakes": self.completion_mistakes,
            "totalPuzzleSolved": self.total_puzzle_solved,
            "themes": [t.to_dict() for t in self.themes],
            "totalSetSolved": self.total_set_solved,
            "didCheat": self.did_cheat,
            "streak": self.streak,
            "isSponsor": self.is_sponsor,
        }


@dataclass
class SessionStreaks:
    """Streaks across the whole session, not per puzzle."""
    no_mistakes: int = 0
    fast: int = 0

    def record(self, mistakes: int, elapsed: float, fast_threshold: float) -> None:
        self.no_mistakes = self.no_mistakes + 1 if mistakes == 0 else 0
        self.fast = self.fast + 1 if elapsed < fast_threshold else 0


class AchievementEvaluator:
    def __init__(self, checker: AchievementChecker, fast_solve_seconds: float = FAST_SOLVE_SECONDS):
        self.checker = checker
        self.fast_solve_seconds = fast_solve_seconds
        self.streaks = SessionStreaks()

    def build_payload(self, commit: PuzzleCommit, elapsed: float, user: UserProfile) -> AchievementPayload:
        """Update the session streaks with this solve and assemble the payload.

        `user` must already include this solve (the tracker applies it locally).
        """
        self.streaks.record(commit.mistakes, elapsed, self.fast_solve_seconds)
        return AchievementPayload(
            streak_mistakes=self.streaks.no_mistakes,
            streak_time=self.streaks.fast,
            completion_time=commit.time_taken,
            completion_mistakes=commit.mistakes,
            total_puzzle_solved=user.total_puzzle_solved,
            themes=list(commit.theme_counts),
            total_set_solved=user.total_set_completed,
            did_cheat=commit.did_cheat,
            streak=user.streak,
            is_sponsor=user.is_sponsor,
        )

    async def evaluate(self, payload: AchievementPayload) -> List[str]:
        unlocked = await self.checker.check(payload.to_dict())
        if unlocked:
            logger.info("Unlocked achievements: %s", ", ".join(unlocked))
        return list(unlocked)
