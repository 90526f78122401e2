"""
Grade Calculation

Deterministic 1-6 performance grade for a single solved puzzle.
Rules are checked top to bottom and the first match wins.
"""

from __future__ import annotations

# =============================================================================
# GRADE THRESHOLDS
# =============================================================================

MIN_GRADE = 1
MAX_GRADE = 6

MISTAKES_FAIL = 3        # this many mistakes or more is always a fail
SLOW_SECONDS = 20        # solves at or above this are "slow"
STEADY_SECONDS = 6       # solves at or above this are not "fast"
STREAK_FOR_TOP = 2       # clean solves in a row needed for the top grade


def compute_grade(
    did_cheat: bool,
    mistakes: int,
    time_taken: float,
    prior_streak: int = 0,
) -> int:
    """
    Grade a solve.

    Args:
        did_cheat: The solution was revealed before the puzzle was solved
        mistakes: Wrong moves played on this puzzle
        time_taken: Seconds spent on the puzzle
        prior_streak: The puzzle's clean-solve streak before this solve

    Returns:
        Integer grade in [1, 6]
    """
    if mistakes < 0:
        raise ValueError(f"mistakes must be >= 0, got {mistakes}")

    if did_cheat or mistakes >= MISTAKES_FAIL:
        return 1
    if mistakes == 2 or (mistakes == 1 and time_taken >= SLOW_SECONDS):
        return 2
    if mistakes == 1 or time_taken >= SLOW_SECONDS:
        return 3
    if time_taken >= STEADY_SECONDS:
        return 4
    if prior_streak < STREAK_FOR_TOP:
        return 5
    return MAX_GRADE
