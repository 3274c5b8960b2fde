"""
Battle exceptions.
"""

from __future__ import annotations

from typing import Optional


class CombatError(Exception):
    """Base exception for the combat core."""


class ActionInvalid(CombatError):
    """
    Raised when a requested action cannot be performed right now.

    Recoverable: the caller asks the player for another action, the AI
    falls back to its next candidate.
    """

    def __init__(self, reason: str, actor_id: Optional[str] = None):
        self.reason = reason
        self.actor_id = actor_id
        message = f"{actor_id}: {reason}" if actor_id else reason
        super().__init__(message)


class ConfigurationError(CombatError):
    """Raised when combat cannot start or content is unusable."""
