"""Placement token model."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from clusterpool.models.common import PoolModel


class ClusterPlacement(PoolModel):
    """A cluster's position in its client's pool.

    ``slot`` is the reservation position in ``[0, limit)``. ``generation``
    counts successive occupants of the same slot and only ever grows.
    """

    model_config = ConfigDict(frozen=True)

    slot: int = Field(..., ge=0, description="Slot number within the pool")
    generation: int = Field(0, ge=0, description="Occupant generation for the slot")

    @property
    def token(self) -> str:
        """Label value, ``"{slot}-{generation}"``."""
        return f"{self.slot}-{self.generation}"

    @classmethod
    def parse(cls, token: str | None) -> ClusterPlacement | None:
        """Parse a label value back into a placement.

        Returns None for missing or malformed tokens.
        """
        if not token:
            return None
        slot, sep, generation = token.partition("-")
        if not sep or not slot.isdigit() or not generation.isdigit():
            return None
        return cls(slot=int(slot), generation=int(generation))

    def __str__(self) -> str:
        return self.token
