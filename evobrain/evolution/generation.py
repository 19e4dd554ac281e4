"""
A single evolutionary step: the ranked genomes of one population.

Genomes are inserted in rank order as the simulation reports scores, so the
best genome always sits at index 0.  Once every network has been scored the
generation is consumed exactly once by ``generate_next_generation``, which
builds the next population from elites, freshly randomised networks and bred
children.
"""

from __future__ import annotations

import math
from typing import Dict, Iterator, List, Tuple

import numpy as np
from loguru import logger

from evobrain.exceptions import InvariantViolation, ShapeError, StateError

from .config import EngineConfig, RandomSource
from .genome import Genome
from .network import SerializedNetwork

CROSSOVER_PROBABILITY = 0.5


class Generation:
    """Rank-ordered genomes plus the selection and breeding operators."""

    def __init__(self, config: EngineConfig, random: RandomSource) -> None:
        self.config = config
        self.random = random
        self._genomes: List[Genome] = []
        self.consumed = False

    def __len__(self) -> int:
        return len(self._genomes)

    def __iter__(self) -> Iterator[Genome]:
        return iter(self._genomes)

    @property
    def genomes(self) -> Tuple[Genome, ...]:
        return tuple(self._genomes)

    @property
    def best(self) -> Genome:
        if not self._genomes:
            raise StateError("Generation holds no genomes yet.")
        return self._genomes[0]

    def scores(self) -> List[float]:
        return [genome.score for genome in self._genomes]

    def _ranks_before(self, candidate: Genome, existing: Genome) -> bool:
        if self.config.descending:
            return candidate.score > existing.score
        return candidate.score < existing.score

    def add_genome(self, genome: Genome) -> None:
        """
        Insert ``genome`` while keeping the generation sorted.

        The genome goes right before the first existing genome it strictly
        beats, so equal scores keep their insertion order.
        """

        if self.consumed:
            raise StateError("Generation was already used to breed the next population.")
        if genome.network is None:
            raise ShapeError("Only genomes carrying a network can join a live generation.")
        if isinstance(genome.score, float) and math.isnan(genome.score):
            raise InvariantViolation(
                "A NaN score would leave the generation unsortable.",
                context={"score": genome.score},
            )
        if self._genomes:
            reference = self._genomes[0].network
            if reference is not None and reference.neurons_per_layer != genome.network.neurons_per_layer:
                raise ShapeError(
                    "Genome topology differs from the rest of the generation.",
                    context={
                        "expected": list(reference.neurons_per_layer),
                        "actual": list(genome.network.neurons_per_layer),
                    },
                )

        position = len(self._genomes)
        for index, existing in enumerate(self._genomes):
            if self._ranks_before(genome, existing):
                position = index
                break
        self._genomes.insert(position, genome)

    def reconfigure(self, config: EngineConfig, random: RandomSource) -> None:
        """Swap in a new configuration, re-ranking if the score order flipped."""
        if config.score_order != self.config.score_order:
            self._genomes.sort(key=lambda g: g.score, reverse=config.descending)
        self.config = config
        self.random = random

    def strip_networks(self) -> None:
        """Keep only the scores; the networks are dropped for good."""
        self._genomes = [genome.without_network() for genome in self._genomes]

    def summary(self) -> Dict[str, float]:
        scores = self.scores()
        if not scores:
            return {"count": 0}
        best = scores[0]
        worst = scores[-1]
        return {
            "count": len(scores),
            "best": float(best),
            "mean": float(np.mean(scores)),
            "worst": float(worst),
        }

    def pairing_schedule(self) -> Iterator[Tuple[int, int]]:
        """
        Endless ``(i, cursor)`` index pairs used for breeding.

        For cursor = 1, 2, ... every better genome ``i < cursor`` is paired with
        the genome at ``cursor``, starting over once the cursor reaches the
        second to last genome.  The cursor always gets to 1 so a two-genome
        generation still forms a pair, and a lone genome is bred with itself.
        """

        count = len(self._genomes)
        if count == 1:
            while True:
                yield 0, 0
        limit = max(count - 1, 2)
        cursor = 0
        while True:
            for index in range(cursor):
                yield index, cursor
            cursor += 1
            if cursor >= limit:
                cursor = 0

    def breed(self, parent_a: Genome, parent_b: Genome, child_count: int) -> List[SerializedNetwork]:
        """
        Produce ``child_count`` children of two parents.

        Each child starts as a copy of ``parent_a``'s network, takes every weight
        from ``parent_b`` with probability one half, then has every weight
        shifted by up to ``mutation_range`` with probability ``mutation_rate``.
        """

        network_a = parent_a.network
        network_b = parent_b.network
        if network_a is None or network_b is None:
            raise StateError("Cannot breed genomes whose networks were discarded.")
        if (
            network_a.neurons_per_layer != network_b.neurons_per_layer
            or len(network_a.weights) != len(network_b.weights)
        ):
            raise ShapeError(
                "Parents must share the same topology to breed.",
                context={
                    "parent_a": list(network_a.neurons_per_layer),
                    "parent_b": list(network_b.neurons_per_layer),
                },
            )

        rng = self.random.rng
        weights_a = np.asarray(network_a.weights, dtype=np.float64)
        weights_b = np.asarray(network_b.weights, dtype=np.float64)
        size = weights_a.shape[0]
        spread = self.config.mutation_range

        children = []
        for _ in range(max(1, child_count)):
            crossed = np.where(rng.random(size) < CROSSOVER_PROBABILITY, weights_b, weights_a)
            mutate = rng.random(size) < self.config.mutation_rate
            deltas = rng.uniform(-spread, spread, size)
            child_weights = np.where(mutate, crossed + deltas, crossed)
            children.append(SerializedNetwork(list(network_a.neurons_per_layer), child_weights.tolist()))
        return children

    def generate_next_generation(self) -> List[SerializedNetwork]:
        """
        Build the next population from this fully scored generation.

        Stages, in order and never beyond ``population_size``: copies of the top
        genomes, fresh random networks with the best genome's topology, then
        children bred along ``pairing_schedule``.
        """

        if not self._genomes:
            raise StateError("Cannot breed from an empty generation; report at least one score first.")
        if self.consumed:
            raise StateError("Generation was already used to breed the next population.")

        target = self.config.population_size
        population: List[SerializedNetwork] = []

        for genome in self._genomes[: self.config.elite_count]:
            if len(population) >= target:
                break
            population.append(genome.network.copy())
        elites = len(population)

        template = self._genomes[0].network
        for _ in range(self.config.random_count):
            if len(population) >= target:
                break
            population.append(template.randomized(self.random.unit))
        injected = len(population) - elites

        if len(population) < target:
            self._fill_with_children(population, target)

        if len(population) != target:
            raise InvariantViolation(
                f"Next population holds {len(population)} networks instead of {target}.",
                context={"expected": target, "actual": len(population)},
            )

        self.consumed = True
        logger.debug(
            "Bred next population: {} elites, {} random, {} children from {} genomes",
            elites,
            injected,
            target - elites - injected,
            len(self._genomes),
        )
        return population

    def _fill_with_children(self, population: List[SerializedNetwork], target: int) -> None:
        for first, second in self.pairing_schedule():
            children = self.breed(
                self._genomes[first],
                self._genomes[second],
                self.config.children_per_breeding_pair,
            )
            for child in children:
                population.append(child)
                if len(population) >= target:
                    return
