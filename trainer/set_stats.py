"""
Set Review Statistics

Numbers shown on a set's review page: an overview, progress across cycles,
the in-progress cycle, and a colour band per puzzle from its average grade.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .models import PuzzleRef, PuzzleSet


@dataclass(frozen=True)
class ViewStat:
    """
    One stat block.

    direction is "up" when the change is an improvement (a faster cycle,
    fewer mistakes) and "down" otherwise; None when there is nothing to compare.
    """
    title: str
    stat: str
    change: Optional[str] = None
    direction: Optional[str] = None

    @property
    def has_change(self) -> bool:
        return self.direction is not None


def format_time(seconds: float) -> str:
    """Format seconds as m:ss or h:mm:ss."""
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def average_grade(ref: PuzzleRef) -> float:
    return _mean(ref.grades)


def grade_band(average: float) -> str:
    if average <= 0:
        return "unplayed"
    if average < 3:
        return "red"
    if average < 5:
        return "orange"
    return "green"


def puzzle_bands(puzzle_set: PuzzleSet) -> List[dict]:
    return [
        {"PuzzleId": ref.puzzle_id, "average": average_grade(ref), "band": grade_band(average_grade(ref))}
        for ref in sorted(puzzle_set.puzzles, key=lambda p: p.order)
    ]


def overview_stats(puzzle_set: PuzzleSet) -> List[ViewStat]:
    all_grades = [g for ref in puzzle_set.puzzles for g in ref.grades]
    best = min(puzzle_set.times) if puzzle_set.times else None
    return [
        ViewStat("Puzzles", str(puzzle_set.length)),
        ViewStat("Cycles completed", str(puzzle_set.cycles)),
        ViewStat("Best time", format_time(best) if best is not None else "-"),
        ViewStat("Average grade", f"{_mean(all_grades):.2f}" if all_grades else "-"),
    ]


def progress_stats(puzzle_set: PuzzleSet) -> List[ViewStat]:
    stats: List[ViewStat] = []
    times = puzzle_set.times
    if times:
        last = times[-1]
        if len(times) >= 2:
            previous = times[-2]
            stats.append(ViewStat(
                "Last cycle time",
                format_time(last),
                change=format_time(abs(last - previous)),
                direction="up" if last <= previous else "down",
            ))
        else:
            stats.append(ViewStat("Last cycle time", format_time(last)))

    all_mistakes = [m for ref in puzzle_set.puzzles for m in ref.mistakes]
    all_times = [t for ref in puzzle_set.puzzles for t in ref.time_taken]
    if all_mistakes:
        stats.append(ViewStat("Mistakes per puzzle", f"{_mean(all_mistakes):.2f}"))
    if all_times:
        stats.append(ViewStat("Time per puzzle", f"{_mean(all_times):.2f}s"))
    return stats


def current_run_stats(puzzle_set: PuzzleSet) -> List[ViewStat]:
    """Stats of the cycle in progress; empty when no time has been banked yet."""
    if puzzle_set.current_time <= 0:
        return []
    stats = [
        ViewStat("Progression", f"{puzzle_set.progression} / {puzzle_set.length}"),
        ViewStat("Time so far", format_time(puzzle_set.current_time)),
    ]
    if puzzle_set.progression:
        stats.append(ViewStat(
            "Time per puzzle",
            f"{puzzle_set.current_time / puzzle_set.progression:.2f}s",
        ))
    return stats
