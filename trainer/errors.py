"""
Trainer Error Taxonomy

Only InvalidSessionState is meant to propagate to callers. Fetch and
persistence failures are caught where the call is made, logged, and
published on the session's event bus.
"""

from __future__ import annotations


class TrainerError(Exception):
    """Base class for every error raised by the training engine."""


class FetchFailure(TrainerError):
    """A puzzle, set or user document could not be retrieved."""

    def __init__(self, message: str, *, resource_id: str | None = None):
        super().__init__(message)
        self.resource_id = resource_id


class PersistenceFailure(TrainerError):
    """A commit was rejected by the store or never reached it."""

    def __init__(self, message: str, *, resource_id: str | None = None):
        super().__init__(message)
        self.resource_id = resource_id


class IllegalMove(TrainerError):
    """A submitted move is not in the legal-move set of the side to move."""


class InvalidSessionState(TrainerError):
    """An operation was requested that the current session state forbids."""
