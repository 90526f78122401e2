"""
HTTP client for the trainer backend and the achievement checker.

Every response has the shape {"success": bool, ...}. Transport errors,
non-2xx statuses and success=false all surface as FetchFailure (reads) or
PersistenceFailure (writes). Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Type

import httpx

from .config import get_settings
from .errors import FetchFailure, PersistenceFailure, TrainerError
from .models import Puzzle, PuzzleRef, PuzzleSet, UpdateDelta, UserProfile

logger = logging.getLogger(__name__)


class TrainerApiClient:
    """PuzzleStore + AchievementChecker over HTTP."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        achievements_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.achievements_url = achievements_url or settings.achievements_url
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
        )

    async def __aenter__(self) -> TrainerApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        failure: Type[TrainerError],
        resource_id: str,
        json: Optional[dict] = None,
    ) -> dict:
        try:
            resp = await self._client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            raise failure(f"{method} {url} failed: {exc}", resource_id=resource_id) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise failure(
                f"{method} {url} returned a non-JSON body (HTTP {resp.status_code})",
                resource_id=resource_id,
            ) from exc

        if resp.status_code >= 400 or not data.get("success", False):
            error = data.get("error") or data.get("detail") or f"HTTP {resp.status_code}"
            raise failure(f"{method} {url}: {error}", resource_id=resource_id)
        return data

    # ─── Reads ───

    async def fetch_puzzle(self, puzzle_id: str) -> Puzzle:
        data = await self._request(
            "GET", f"/api/puzzles/{puzzle_id}", failure=FetchFailure, resource_id=puzzle_id
        )
        return Puzzle.from_dict(data["puzzle"])

    async def fetch_set(self, set_id: str) -> PuzzleSet:
        data = await self._request("GET", f"/api/sets/{set_id}", failure=FetchFailure, resource_id=set_id)
        return PuzzleSet.from_dict(data["set"])

    async def fetch_user(self, user_id: str) -> UserProfile:
        data = await self._request("GET", f"/api/users/{user_id}", failure=FetchFailure, resource_id=user_id)
        return UserProfile.from_dict(data["user"])

    # ─── Writes ───

    async def update_set_puzzle(self, set_id: str, ref_id: str, delta: UpdateDelta) -> PuzzleRef:
        data = await self._request(
            "PATCH",
            f"/api/sets/{set_id}/puzzles/{ref_id}",
            failure=PersistenceFailure,
            resource_id=ref_id,
            json=delta.to_dict(),
        )
        return PuzzleRef.from_dict(data["puzzle"])

    async def update_set(self, set_id: str, delta: UpdateDelta) -> None:
        await self._request(
            "PATCH", f"/api/sets/{set_id}", failure=PersistenceFailure, resource_id=set_id, json=delta.to_dict()
        )

    async def update_user(self, user_id: str, delta: UpdateDelta) -> None:
        await self._request(
            "PATCH", f"/api/users/{user_id}", failure=PersistenceFailure, resource_id=user_id, json=delta.to_dict()
        )

    # ─── Achievements ───

    async def check(self, payload: dict) -> List[str]:
        try:
            resp = await self._client.post(self.achievements_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise FetchFailure(f"achievement check failed: {exc}") from exc
        return [str(a) for a in data.get("achievements", [])]
