"""
Puzzle set routes – read a set, apply per-puzzle and per-set deltas.

A rejected delta raises DeltaError before anything is committed; the app
turns it into a 400.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.db.models import PuzzleSet
from backend.db.session import get_db
from backend.deltas import apply_set_delta, item_out, set_out
from backend.schemas import DeltaIn

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(error: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "error": error})


async def _load_set(db: AsyncSession, set_id: str) -> Optional[PuzzleSet]:
    result = await db.execute(
        select(PuzzleSet).where(PuzzleSet.id == set_id).options(selectinload(PuzzleSet.items))
    )
    return result.scalar_one_or_none()


@router.get("/{set_id}")
async def get_set(set_id: str, db: AsyncSession = Depends(get_db)):
    """Full set document with every entry, in set order."""
    puzzle_set = await _load_set(db, set_id)
    if puzzle_set is None:
        return _not_found("Set not found")
    return {"success": True, "set": set_out(puzzle_set)}


@router.patch("/{set_id}/puzzles/{item_id}")
async def update_set_puzzle(
    set_id: str,
    item_id: str,
    body: DeltaIn,
    db: AsyncSession = Depends(get_db),
):
    """Apply a delta whose puzzles.$ paths target one entry; returns that entry."""
    puzzle_set = await _load_set(db, set_id)
    if puzzle_set is None:
        return _not_found("Set not found")
    item = next((i for i in puzzle_set.items if i.id == item_id), None)
    if item is None:
        return _not_found("Puzzle not found in set")

    apply_set_delta(puzzle_set, body.to_delta(), item)
    await db.commit()

    logger.info("Set %s: puzzle %s now has %d solves", set_id, item_id, item.count)
    return {"success": True, "puzzle": item_out(item)}


@router.patch("/{set_id}")
async def update_set(set_id: str, body: DeltaIn, db: AsyncSession = Depends(get_db)):
    """Apply a set-level delta (cycle completion, puzzles.$[] resets)."""
    puzzle_set = await _load_set(db, set_id)
    if puzzle_set is None:
        return _not_found("Set not found")

    apply_set_delta(puzzle_set, body.to_delta())
    await db.commit()

    logger.info("Set %s updated (cycle %d)", set_id, puzzle_set.cycles)
    return {"success": True}
