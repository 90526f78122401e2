"""
Update delta application.

A delta is {"$inc": {path: n}, "$push": {path: [values]}, "$set": {path: value}},
applied in that order. Set paths:

    currentTime, progression, cycles, times, length
    puzzles.$.<field>      the targeted entry (count, mistakes, timeTaken,
                           grades, played, streak)
    puzzles.$[].<field>    every entry

User paths:

    totalPuzzleSolved, totalSetCompleted, streak, isSponsor
    puzzleSolvedByCategories               ($push only)
    puzzleSolvedByCategories.<i>.count     ($inc only)

Functions here only touch ORM attributes; committing is the caller's job.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from backend.db.models import PuzzleSet, PuzzleSetItem, User

OPERATORS = ("$inc", "$push", "$set")

SET_FIELDS = {
    "currentTime": "current_time",
    "progression": "progression",
    "cycles": "cycles",
    "times": "times",
    "length": "length",
}

ITEM_FIELDS = {
    "count": "count",
    "mistakes": "mistakes",
    "timeTaken": "time_taken",
    "grades": "grades",
    "played": "played",
    "streak": "streak",
}

USER_FIELDS = {
    "totalPuzzleSolved": "total_puzzle_solved",
    "totalSetCompleted": "total_set_completed",
    "streak": "streak",
    "isSponsor": "is_sponsor",
}

THEMES_PATH = "puzzleSolvedByCategories"


class DeltaError(ValueError):
    """The delta names an unknown operator or path, or targets nothing."""


def _check_operators(delta: dict) -> None:
    unknown = set(delta) - set(OPERATORS)
    if unknown:
        raise DeltaError(f"unknown operators: {', '.join(sorted(unknown))}")


def _set_targets(
    puzzle_set: PuzzleSet, path: str, item: Optional[PuzzleSetItem]
) -> List[Tuple[Any, str]]:
    if path.startswith("puzzles.$[]."):
        field = path[len("puzzles.$[]."):]
        if field not in ITEM_FIELDS:
            raise DeltaError(f"unknown puzzle field: {field}")
        return [(i, ITEM_FIELDS[field]) for i in puzzle_set.items]

    if path.startswith("puzzles.$."):
        field = path[len("puzzles.$."):]
        if field not in ITEM_FIELDS:
            raise DeltaError(f"unknown puzzle field: {field}")
        if item is None:
            raise DeltaError(f"{path} needs a target puzzle")
        return [(item, ITEM_FIELDS[field])]

    if path in SET_FIELDS:
        return [(puzzle_set, SET_FIELDS[path])]
    raise DeltaError(f"unknown set path: {path}")


def apply_set_delta(
    puzzle_set: PuzzleSet,
    delta: dict,
    item: Optional[PuzzleSetItem] = None,
) -> None:
    """Apply a set delta, optionally targeting one entry through puzzles.$."""
    _check_operators(delta)

    for path, amount in (delta.get("$inc") or {}).items():
        for target, attr in _set_targets(puzzle_set, path, item):
            setattr(target, attr, (getattr(target, attr) or 0) + amount)

    for path, values in (delta.get("$push") or {}).items():
        for target, attr in _set_targets(puzzle_set, path, item):
            setattr(target, attr, list(getattr(target, attr) or []) + list(values))

    for path, value in (delta.get("$set") or {}).items():
        for target, attr in _set_targets(puzzle_set, path, item):
            setattr(target, attr, value)

    # progression never runs past the set length
    length = puzzle_set.length or len(puzzle_set.items)
    puzzle_set.progression = max(0, min(puzzle_set.progression or 0, length))


def apply_user_delta(user: User, delta: dict) -> None:
    """Apply a user delta. Theme increments address the list as it was before any push."""
    _check_operators(delta)
    themes = [dict(t) for t in (user.puzzle_solved_by_categories or [])]

    for path, amount in (delta.get("$inc") or {}).items():
        if path in USER_FIELDS:
            attr = USER_FIELDS[path]
            setattr(user, attr, (getattr(user, attr) or 0) + amount)
            continue
        parts = path.split(".")
        if len(parts) == 3 and parts[0] == THEMES_PATH and parts[2] == "count" and parts[1].isdigit():
            index = int(parts[1])
            if index >= len(themes):
                raise DeltaError(f"no theme at index {index}")
            themes[index]["count"] = themes[index].get("count", 0) + amount
            continue
        raise DeltaError(f"unknown user path: {path}")

    for path, values in (delta.get("$push") or {}).items():
        if path != THEMES_PATH:
            raise DeltaError(f"cannot push to {path}")
        for value in values:
            if not isinstance(value, dict) or "title" not in value:
                raise DeltaError("theme entries need a title")
            themes.append({"title": value["title"], "count": value.get("count", 1)})

    for path, value in (delta.get("$set") or {}).items():
        if path not in USER_FIELDS:
            raise DeltaError(f"unknown user path: {path}")
        setattr(user, USER_FIELDS[path], value)

    user.puzzle_solved_by_categories = themes


def set_out(puzzle_set: PuzzleSet) -> dict:
    return {
        "_id": puzzle_set.id,
        "user": puzzle_set.user_id,
        "title": puzzle_set.title,
        "puzzles": [item_out(i) for i in puzzle_set.items],
        "currentTime": puzzle_set.current_time or 0,
        "progression": puzzle_set.progression or 0,
        "length": puzzle_set.length or len(puzzle_set.items),
        "cycles": puzzle_set.cycles or 0,
        "times": list(puzzle_set.times or []),
    }


def item_out(item: PuzzleSetItem) -> dict:
    return {
        "_id": item.id,
        "PuzzleId": item.puzzle_id,
        "order": item.order,
        "played": bool(item.played),
        "count": item.count or 0,
        "mistakes": list(item.mistakes or []),
        "timeTaken": list(item.time_taken or []),
        "grades": list(item.grades or []),
        "streak": item.streak or 0,
    }


def user_out(user: User) -> dict:
    return {
        "_id": user.id,
        "totalPuzzleSolved": user.total_puzzle_solved or 0,
        "puzzleSolvedByCategories": list(user.puzzle_solved_by_categories or []),
        "totalSetCompleted": user.total_set_completed or 0,
        "isSponsor": bool(user.is_sponsor),
        "streak": user.streak or 0,
    }
