"""
Multi-generation bookkeeping for EvoBrain runs.

``GenerationHistory`` keeps the generations of a run oldest first, decides
whether a population is the first of the run or bred from the previous one, and
applies the retention policy that bounds memory use.
"""

from __future__ import annotations

from typing import List, Tuple

from loguru import logger

from evobrain.exceptions import StateError

from .config import EngineConfig, RandomSource
from .generation import Generation
from .genome import Genome
from .network import NeuralNetwork, SerializedNetwork


class GenerationHistory:
    """Ordered generations of a run; the last one is being scored."""

    def __init__(self, config: EngineConfig, random: RandomSource) -> None:
        self.config = config
        self.random = random
        self._generations: List[Generation] = []

    def __len__(self) -> int:
        return len(self._generations)

    @property
    def generations(self) -> Tuple[Generation, ...]:
        return tuple(self._generations)

    @property
    def current(self) -> Generation:
        if not self._generations:
            raise StateError("No generation exists yet; produce the first population first.")
        return self._generations[-1]

    def reconfigure(self, config: EngineConfig, random: RandomSource) -> None:
        self.config = config
        self.random = random
        for generation in self._generations:
            generation.reconfigure(config, random)

    def clear(self) -> None:
        self._generations = []

    def _open_generation(self) -> None:
        self._generations.append(Generation(self.config, self.random))

    def produce_first_population(self) -> List[SerializedNetwork]:
        """Random networks for the configured topology, plus an empty generation."""

        input_size, hidden_sizes, output_size = self.config.network_topology
        population = [
            NeuralNetwork.build(
                input_size,
                hidden_sizes,
                output_size,
                self.random.unit,
                self.config.activation,
            ).to_serialized()
            for _ in range(self.config.population_size)
        ]
        self._open_generation()
        logger.debug(
            "Created first population of {} networks with topology {}",
            len(population),
            population[0].neurons_per_layer,
        )
        return population

    def produce_next_population(self) -> List[SerializedNetwork]:
        """Breed from the current generation and open a new one."""

        if not self._generations:
            raise StateError("No generation to breed from; call produce_first_population first.")
        population = self._generations[-1].generate_next_generation()
        self._open_generation()
        return population

    def record_score(self, genome: Genome) -> None:
        if not self._generations:
            raise StateError("No generation to record a score in; produce a population first.")
        self._generations[-1].add_genome(genome)

    def enforce_retention(self) -> None:
        """
        Apply the retention policy after a population was produced.

        With score-only retention the generation two back from the end loses its
        networks.  With a finite depth the oldest generations are dropped until
        at most ``history_depth + 1`` remain.
        """

        if self.config.score_only_after_depth and len(self._generations) >= 2:
            self._generations[-2].strip_networks()

        if not self.config.unbounded_history:
            limit = self.config.history_depth + 1
            excess = len(self._generations) - limit
            if excess > 0:
                del self._generations[:excess]
                logger.debug("Dropped {} old generation(s); {} retained", excess, len(self._generations))

    def best_scores(self) -> List[float]:
        """Best score of every retained generation that received scores."""
        return [generation.best.score for generation in self._generations if len(generation)]
