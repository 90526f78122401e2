"""
SQLAlchemy ORM Models

Puzzle sets are stored as one row per set plus one row per set entry.
History columns (mistakes, times, grades, theme counters) are JSON lists and
are always reassigned, never mutated in place, so changes are tracked.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class User(Base):
    """Trainer user with the counters the session engine updates."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    total_puzzle_solved = Column(Integer, default=0)
    total_set_completed = Column(Integer, default=0)
    puzzle_solved_by_categories = Column(JSON, default=list)  # [{"title", "count"}]
    is_sponsor = Column(Boolean, default=False)
    streak = Column(Integer, default=0)  # daily play streak
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    puzzle_sets = relationship("PuzzleSet", back_populates="user", cascade="all, delete-orphan")


class Puzzle(Base):
    """Puzzle body. moves is the space-separated UCI solution, opponent first."""

    __tablename__ = "puzzles"

    id = Column(String, primary_key=True)  # external (Lichess) puzzle id
    fen = Column(Text, nullable=False)
    moves = Column(Text, nullable=False)
    themes = Column(JSON, default=list)
    rating = Column(Integer, nullable=True)


class PuzzleSet(Base):
    __tablename__ = "puzzle_sets"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False, default="")
    current_time = Column(Float, default=0)
    progression = Column(Integer, default=0)
    length = Column(Integer, default=0)
    cycles = Column(Integer, default=0)
    times = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="puzzle_sets")
    items = relationship(
        "PuzzleSetItem",
        back_populates="puzzle_set",
        cascade="all, delete-orphan",
        order_by="PuzzleSetItem.order",
    )

    __table_args__ = (Index("ix_puzzle_sets_user", "user_id"),)


class PuzzleSetItem(Base):
    """One puzzle within a set, with its per-user history."""

    __tablename__ = "puzzle_set_items"

    id = Column(String, primary_key=True)
    set_id = Column(String, ForeignKey("puzzle_sets.id", ondelete="CASCADE"), nullable=False)
    puzzle_id = Column(String, ForeignKey("puzzles.id"), nullable=False)
    order = Column(Integer, nullable=False)
    played = Column(Boolean, default=False)
    count = Column(Integer, default=0)
    mistakes = Column(JSON, default=list)
    time_taken = Column(JSON, default=list)
    grades = Column(JSON, default=list)
    streak = Column(Integer, default=0)

    puzzle_set = relationship("PuzzleSet", back_populates="items")

    __table_args__ = (
        UniqueConstraint("set_id", "puzzle_id", name="uq_set_puzzle"),
        Index("ix_set_items_set", "set_id"),
    )
