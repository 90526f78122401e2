"""
Collaborator Interfaces

The engine's view of the outside world. Implementations raise FetchFailure
or PersistenceFailure from trainer.errors; anything else is a bug.
"""

from __future__ import annotations

from typing import List, Protocol

from .models import Puzzle, PuzzleRef, PuzzleSet, UpdateDelta, UserProfile


class PuzzleStore(Protocol):
    async def fetch_puzzle(self, puzzle_id: str) -> Puzzle: ...

    async def fetch_set(self, set_id: str) -> PuzzleSet: ...

    async def fetch_user(self, user_id: str) -> UserProfile: ...

    async def update_set_puzzle(self, set_id: str, ref_id: str, delta: UpdateDelta) -> PuzzleRef: ...

    async def update_set(self, set_id: str, delta: UpdateDelta) -> None: ...

    async def update_user(self, user_id: str, delta: UpdateDelta) -> None: ...


class AchievementChecker(Protocol):
    async def check(self, payload: dict) -> List[str]: ...
