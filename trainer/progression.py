"""
Progression Tracking

Turns a finished puzzle (or a finished cycle) into the update deltas the
store needs, and mirrors the same change onto the session's local copies of
the set and the user so play never depends on a write succeeding.

Per puzzle:
- stored time is truncated to two decimals; grading uses the stored time
- set totals use the unrounded time plus a fixed penalty per mistake
- the puzzle streak grows by one on a clean solve and drops to 0 otherwise

Per cycle:
- total time = time carried in from earlier sessions of the cycle
  + this session's penalised times + a one-second constant
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List

from .grading import compute_grade
from .models import PuzzleRef, PuzzleSet, ThemeCount, UpdateDelta, UserProfile

MISTAKE_PENALTY_SECONDS = 3.0
SET_COMPLETION_BONUS_SECONDS = 1.0


def truncate_time(seconds: float) -> float:
    """Truncate (not round) to two decimal places."""
    return math.floor(seconds * 100) / 100


@dataclass
class PuzzleCommit:
    """Everything produced by finishing one puzzle."""
    ref_id: str
    puzzle_id: str
    mistakes: int
    time_taken: float
    time_with_penalty: float
    grade: int
    streak: int
    did_cheat: bool
    set_delta: UpdateDelta
    user_delta: UpdateDelta
    theme_counts: List[ThemeCount] = field(default_factory=list)


@dataclass
class SetCommit:
    """Everything produced by finishing a full cycle."""
    set_id: str
    total_time: float
    set_delta: UpdateDelta
    user_delta: UpdateDelta


class ProgressionTracker:
    """
    Accumulates statistics for one session over one puzzle set.

    The tracker owns no I/O: callers send the returned deltas to the store.
    """

    def __init__(
        self,
        puzzle_set: PuzzleSet,
        user: UserProfile,
        *,
        mistake_penalty: float = MISTAKE_PENALTY_SECONDS,
        completion_bonus: float = SET_COMPLETION_BONUS_SECONDS,
    ):
        self.puzzle_set = puzzle_set
        self.user = user
        self.mistake_penalty = mistake_penalty
        self.completion_bonus = completion_bonus

        # Cycle time already banked by earlier sessions
        self.initial_set_time = puzzle_set.current_time
        self.timer_sum = 0.0
        self.solved = 0

    # -------------------------------------------------------------------------
    # Per puzzle
    # -------------------------------------------------------------------------

    def commit_puzzle(
        self,
        ref: PuzzleRef,
        *,
        mistakes: int,
        elapsed: float,
        did_cheat: bool,
        themes: List[str],
    ) -> PuzzleCommit:
        """Build the deltas for a solved puzzle and apply them locally."""
        # Read pre-commit state before anything is mutated
        prior_streak = ref.streak
        time_taken = truncate_time(elapsed)
        time_with_penalty = elapsed + self.mistake_penalty * mistakes
        grade = compute_grade(did_cheat, mistakes, time_taken, prior_streak)
        new_streak = prior_streak + 1 if mistakes == 0 else 0

        set_delta = UpdateDelta(
            inc={
                "puzzles.$.count": 1,
                "currentTime": time_with_penalty,
                "progression": 1,
            },
            push={
                "puzzles.$.mistakes": [mistakes],
                "puzzles.$.timeTaken": [time_taken],
                "puzzles.$.grades": [grade],
            },
            assign={
                "puzzles.$.played": True,
                "puzzles.$.streak": new_streak,
            },
        )
        user_delta = self.user_delta(themes)
        theme_counts = self.theme_counts(themes)

        self._apply_puzzle(ref, mistakes, time_taken, time_with_penalty, grade, new_streak)
        self._apply_user(themes)

        return PuzzleCommit(
            ref_id=ref.id,
            puzzle_id=ref.puzzle_id,
            mistakes=mistakes,
            time_taken=time_taken,
            time_with_penalty=time_with_penalty,
            grade=grade,
            streak=new_streak,
            did_cheat=did_cheat,
            set_delta=set_delta,
            user_delta=user_delta,
            theme_counts=theme_counts,
        )

    def _apply_puzzle(
        self,
        ref: PuzzleRef,
        mistakes: int,
        time_taken: float,
        time_with_penalty: float,
        grade: int,
        streak: int,
    ) -> None:
        ref.count += 1
        ref.mistakes.append(mistakes)
        ref.time_taken.append(time_taken)
        ref.grades.append(grade)
        ref.played = True
        ref.streak = streak

        s = self.puzzle_set
        s.progression = min(s.progression + 1, s.length)
        s.current_time += time_with_penalty

        self.timer_sum += time_with_penalty
        self.solved += 1

    # -------------------------------------------------------------------------
    # User stats
    # -------------------------------------------------------------------------

    def user_delta(self, themes: List[str]) -> UpdateDelta:
        """Increment known theme counters by index, push unseen themes with count 1."""
        delta = UpdateDelta(inc={"totalPuzzleSolved": 1})
        known = self.user.puzzle_solved_by_categories
        known_titles = {t.title for t in known}

        for index, theme in enumerate(known):
            if theme.title in themes:
                delta.inc[f"puzzleSolvedByCategories.{index}.count"] = 1

        new_themes = [
            {"title": t, "count": 1}
            for t in _unique(themes) if t not in known_titles
        ]
        if new_themes:
            delta.push["puzzleSolvedByCategories"] = new_themes
        return delta

    def theme_counts(self, themes: List[str]) -> List[ThemeCount]:
        """Per-theme solved counts as they will be once this solve is recorded."""
        previous = {t.title: t.count for t in self.user.puzzle_solved_by_categories}
        return [ThemeCount(title=t, count=previous.get(t, 0) + 1) for t in _unique(themes)]

    def _apply_user(self, themes: List[str]) -> None:
        self.user.total_puzzle_solved += 1
        known = {t.title: t for t in self.user.puzzle_solved_by_categories}
        for title in _unique(themes):
            if title in known:
                known[title].count += 1
            else:
                self.user.puzzle_solved_by_categories.append(ThemeCount(title=title, count=1))

    # -------------------------------------------------------------------------
    # Per set
    # -------------------------------------------------------------------------

    def commit_set(self) -> SetCommit:
        """Close the cycle: record its total time and reset for the next pass."""
        total_time = self.initial_set_time + self.timer_sum + self.completion_bonus

        set_delta = UpdateDelta(
            inc={"cycles": 1},
            push={"times": [total_time]},
            assign={
                "puzzles.$[].played": False,
                "currentTime": 0,
                "progression": 0,
            },
        )
        user_delta = UpdateDelta(inc={"totalSetCompleted": 1})

        s = self.puzzle_set
        s.cycles += 1
        s.times.append(total_time)
        for ref in s.puzzles:
            ref.played = False
        s.current_time = 0.0
        s.progression = 0
        self.user.total_set_completed += 1

        return SetCommit(
            set_id=s.id,
            total_time=total_time,
            set_delta=set_delta,
            user_delta=user_delta,
        )


def _unique(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out
