"""
Evolution engine: the facade a simulation talks to.

The engine owns the configuration, the random source and one
``GenerationHistory``.  A simulation loop asks for a generation of live
networks, evaluates them as its agents play, reports one score per network as
each agent's life ends, then asks for the next generation.  Everything is
synchronous; a host running the engine from several threads must serialise
access to it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from evobrain.exceptions import StateError
from evobrain.utils.config_loader import ConfigLike, ConfigLoader
from evobrain.utils.logger import ExperimentLogger

from .config import CONFIG_SCHEMA, EngineConfig, RandomSource
from .genome import Genome
from .history import GenerationHistory
from .network import NeuralNetwork


class EvolutionEngine:
    """Central coordinator for an EvoBrain neuroevolution run."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        logger: Optional[ExperimentLogger] = None,
        **options: Any,
    ) -> None:
        """Create a new evolutionary engine.

        Parameters
        ----------
        config : EngineConfig, optional
            Starting configuration; defaults to ``EngineConfig()``.
        logger : ExperimentLogger, optional
            Receives one summary per consumed generation.
        **options
            Overrides merged on top of ``config`` as with ``configure``.
        """
        base = (config or EngineConfig()).normalized()
        self._config = base.merged(options) if options else base
        self.logger = logger or ExperimentLogger()
        self.random = RandomSource.from_config(self._config)
        self.history = GenerationHistory(self._config, self.random)
        self.generation_index = 0

    @classmethod
    def from_config(
        cls,
        source: ConfigLike,
        overrides: Optional[Mapping[str, Any]] = None,
        **options: Any,
    ) -> "EvolutionEngine":
        """Build an engine from a YAML/JSON file, YAML string or mapping.

        ``options`` are applied after the loaded ``engine`` section and may hold
        values a config file cannot express, such as callables.
        """
        loaded = ConfigLoader(schema=CONFIG_SCHEMA).load(source, overrides=overrides)
        engine_options = loaded.section("engine")
        engine_options.update(options)
        return cls(logger=ExperimentLogger(**loaded.section("logging")), **engine_options)

    @property
    def options(self) -> EngineConfig:
        return self._config

    def configure(self, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> EngineConfig:
        """
        Merge ``options`` over the current configuration.

        Unset fields keep their current values.  The merged result is validated
        first; on ``ConfigurationError`` the previous configuration stays active.
        """

        updates: Dict[str, Any] = dict(options or {})
        updates.update(kwargs)
        new_config = self._config.merged(updates)
        if new_config.seed != self._config.seed or new_config.random_unit is not self._config.random_unit:
            self.random = RandomSource.from_config(new_config)
        self._config = new_config
        self.history.reconfigure(new_config, self.random)
        logger.debug("Engine reconfigured: {}", new_config.as_params())
        return new_config

    def next_generation(self) -> List[NeuralNetwork]:
        """Produce the next population as live networks ready for evaluation."""

        if len(self.history) == 0:
            population = self.history.produce_first_population()
        else:
            finished = self.history.current
            population = self.history.produce_next_population()
            self.logger.log_metrics(finished.summary(), step=self.generation_index - 1)

        networks = [
            NeuralNetwork.from_serialized(save, self._config.activation) for save in population
        ]
        self.history.enforce_retention()
        self.generation_index += 1
        return networks

    def report_score(self, network: NeuralNetwork, score: float) -> None:
        """Record the fitness ``network`` earned in the current generation."""
        self.history.record_score(Genome(score=float(score), network=network.to_serialized()))

    def best_genome(self) -> Genome:
        """Best genome of the most recent generation that received scores."""
        for generation in reversed(self.history.generations):
            if len(generation):
                return generation.best
        raise StateError("No scores have been reported yet.")

    def reset(self) -> None:
        """Forget every generation; the configuration is kept."""
        self.history.clear()
        self.generation_index = 0
        self.random = RandomSource.from_config(self._config)
        self.history.reconfigure(self._config, self.random)
