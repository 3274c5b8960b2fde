"""
Component base class for data-only models.

Components are pure data containers with NO logic that mutates them.
All combat logic lives in the battle functions that take a state and
return a new one. This separation makes:
- Serialization trivial (a whole combat can be saved verbatim)
- Copy-on-write state transitions cheap to express
- Testing easier

Usage:
    class Health(Component):
        current: int
        max_hp: int
"""

from __future__ import annotations

from typing import ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict

C = TypeVar("C", bound="Component")


class Component(BaseModel):
    """
    Base class for all data models.

    Components are data-only containers using Pydantic for:
    - Automatic validation
    - JSON serialization
    - Type hints
    - Default values

    IMPORTANT: Do NOT add methods that modify state.
    State transitions belong to the battle modules.
    """

    model_config = ConfigDict(
        # Validate on assignment
        validate_assignment=True,
        # Reject unknown fields so saved states round-trip exactly
        extra='forbid',
    )

    # Class variable: type name (used in logs and saved payloads)
    _type_name: ClassVar[str] = ""

    @classmethod
    def get_type_name(cls) -> str:
        """Get the component type name."""
        return cls._type_name or cls.__name__

    def clone(self: C) -> C:
        """Create a deep copy of this component."""
        return self.model_copy(deep=True)
