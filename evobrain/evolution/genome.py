"""
Representation of EvoBrain genomes.

A genome pairs the fitness score reported by the simulation with the
serialized network that earned it.  Genomes are the unit of selection: the
generation ranks them, copies the best and breeds the rest.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .network import SerializedNetwork


@dataclass(frozen=True)
class Genome:
    """Scored candidate solution."""

    score: float
    network: Optional[SerializedNetwork] = None

    @property
    def has_network(self) -> bool:
        return self.network is not None

    def without_network(self) -> "Genome":
        """Score-only form kept for old generations."""
        return Genome(score=self.score)
