"""Random placement selection.

Concurrent allocators for the same client share no lock. Picking the new
cluster's slot at random makes it unlikely that two of them aim for the
same slot at the same time.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Protocol

from clusterpool.exceptions import ConfigurationError
from clusterpool.models.placement import ClusterPlacement


class RandomPlacementGenerator(Protocol):
    def random_placement(self, candidates: Sequence[ClusterPlacement]) -> ClusterPlacement: ...


class DefaultRandomPlacementGenerator:
    """Uniform choice over the candidates."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def random_placement(self, candidates: Sequence[ClusterPlacement]) -> ClusterPlacement:
        if not candidates:
            raise ConfigurationError("No placement candidates; is the pool limit 0?")
        return self._rng.choice(list(candidates))
