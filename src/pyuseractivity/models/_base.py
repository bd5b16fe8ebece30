"""Base model shared by every pyuseractivity data model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UserActivityBaseModel(BaseModel):
    """Frozen base model.

    Wire models ignore unknown keys so that a newer server can add fields
    without breaking older clients; configuration models override this with
    ``extra="forbid"``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
