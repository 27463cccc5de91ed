"""Common models shared across resources."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PoolModel(BaseModel):
    """Base model for all clusterpool models."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )
