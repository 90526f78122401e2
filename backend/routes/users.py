"""
User routes – read and update the training counters of a user.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models import User
from backend.db.session import get_db
from backend.deltas import apply_user_delta, user_out
from backend.schemas import DeltaIn

router = APIRouter()

USER_NOT_FOUND = {"success": False, "error": "User not found"}


@router.get("/{user_id}")
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await db.get(User, user_id)
    if user is None:
        return JSONResponse(status_code=404, content=USER_NOT_FOUND)
    return {"success": True, "user": user_out(user)}


@router.patch("/{user_id}")
async def update_user(user_id: str, body: DeltaIn, db: AsyncSession = Depends(get_db)):
    """Increment solved counters; push themes seen for the first time."""
    user = await db.get(User, user_id)
    if user is None:
        return JSONResponse(status_code=404, content=USER_NOT_FOUND)

    apply_user_delta(user, body.to_delta())
    await db.commit()
    return {"success": True, "user": user_out(user)}
