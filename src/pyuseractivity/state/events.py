"""Normalized activity updates.

Every bus signal that survives payload resolution becomes one
:class:`ActivityUpdate`. Only the router applies them to the state layer.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActivityUpdate(BaseModel):
    """A resolved activity signal, ready to apply."""

    model_config = ConfigDict(frozen=True)

    descriptor: str = Field(..., description="Name of the descriptor that matched")
    element: str
    new_element: str | None = Field(default=None, description="Rename target, if any")
    active: bool
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("element")
    @classmethod
    def _element_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("element must be non-empty")
        return value

    @property
    def target_element(self) -> str:
        """Element the update applies to once any rename is done."""
        return self.new_element or self.element
