"""
Puzzle routes – fetch a puzzle body by id.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models import Puzzle
from backend.db.session import get_db

router = APIRouter()


def puzzle_out(p: Puzzle) -> dict:
    return {"id": p.id, "FEN": p.fen, "Moves": p.moves, "Themes": list(p.themes or [])}


@router.get("/{puzzle_id}")
async def get_puzzle(puzzle_id: str, db: AsyncSession = Depends(get_db)):
    """Puzzle body: FEN, space-separated solution moves, themes."""
    puzzle = await db.get(Puzzle, puzzle_id)
    if puzzle is None:
        return JSONResponse(status_code=404, content={"success": False, "error": "Puzzle not found"})
    return {"success": True, "puzzle": puzzle_out(puzzle)}
