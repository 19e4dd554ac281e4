"""
Engine configuration and the seedable random source.

``EngineConfig`` is an explicit value handed to the engine at construction and
threaded to the history and every generation.  ``merged`` validates a set of
overrides before producing a new config, so a rejected override never leaves a
half-applied configuration behind.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from evobrain.exceptions import ConfigurationError

from .activations import Activation, resolve_activation, sigmoid
from .network import check_layer_size

Topology = Tuple[int, Tuple[int, ...], int]

DESCENDING = "descending"
ASCENDING = "ascending"
UNBOUNDED_HISTORY = None

# camelCase keys of the programmatic interface plus the original option names.
OPTION_ALIASES: Dict[str, str] = {
    "populationSize": "population_size",
    "population": "population_size",
    "elitismRate": "elitism_rate",
    "elitism": "elitism_rate",
    "randomInjectionRate": "random_injection_rate",
    "randomBehaviour": "random_injection_rate",
    "mutationRate": "mutation_rate",
    "mutationRange": "mutation_range",
    "networkTopology": "network_topology",
    "network": "network_topology",
    "historyDepth": "history_depth",
    "historic": "history_depth",
    "scoreOnlyAfterDepth": "score_only_after_depth",
    "lowHistoric": "score_only_after_depth",
    "scoreOrder": "score_order",
    "scoreSort": "score_order",
    "childrenPerBreedingPair": "children_per_breeding_pair",
    "nbChild": "children_per_breeding_pair",
    "randomUnit": "random_unit",
    "randomClamped": "random_unit",
}


def round_half_up(value: float) -> int:
    """Round halves away from zero for the non-negative counts used here."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class EngineConfig:
    """Hyperparameters guiding the neuroevolution run."""

    network_topology: Topology = (1, (1,), 1)
    population_size: int = 50
    elitism_rate: float = 0.2
    random_injection_rate: float = 0.2
    mutation_rate: float = 0.1
    mutation_range: float = 0.5
    history_depth: Optional[int] = 0
    score_only_after_depth: bool = False
    score_order: str = DESCENDING
    children_per_breeding_pair: int = 1
    activation: Activation = field(default=sigmoid, repr=False)
    random_unit: Optional[Callable[[], float]] = field(default=None, repr=False)
    seed: Optional[int] = None

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in dataclasses.fields(cls))

    @property
    def descending(self) -> bool:
        return self.score_order == DESCENDING

    @property
    def unbounded_history(self) -> bool:
        return self.history_depth is UNBOUNDED_HISTORY

    @property
    def elite_count(self) -> int:
        return round_half_up(self.elitism_rate * self.population_size)

    @property
    def random_count(self) -> int:
        return round_half_up(self.random_injection_rate * self.population_size)

    def merged(self, options: Mapping[str, Any]) -> "EngineConfig":
        """Return a validated copy with ``options`` applied on top."""

        updates: Dict[str, Any] = {}
        known = self.field_names()
        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(
                    f"Unknown engine option '{key}'.",
                    context={"option": key, "known": list(known)},
                )
            updates[name] = value
        return dataclasses.replace(self, **updates).normalized()

    def normalized(self) -> "EngineConfig":
        """Validate every field and coerce accepted spellings to canonical ones."""

        return dataclasses.replace(
            self,
            network_topology=_normalize_topology(self.network_topology),
            population_size=_normalize_count("population_size", self.population_size),
            elitism_rate=_normalize_rate("elitism_rate", self.elitism_rate),
            random_injection_rate=_normalize_rate("random_injection_rate", self.random_injection_rate),
            mutation_rate=_normalize_rate("mutation_rate", self.mutation_rate),
            mutation_range=_normalize_range(self.mutation_range),
            history_depth=_normalize_history_depth(self.history_depth),
            score_only_after_depth=_normalize_flag(self.score_only_after_depth),
            score_order=_normalize_score_order(self.score_order),
            children_per_breeding_pair=_normalize_count(
                "children_per_breeding_pair", self.children_per_breeding_pair
            ),
            activation=resolve_activation(self.activation),
            random_unit=_normalize_random_unit(self.random_unit),
            seed=_normalize_seed(self.seed),
        )

    def as_params(self) -> Dict[str, str]:
        """Flat string view suitable for experiment tracking."""
        return {
            "network_topology": str(self.network_topology),
            "population_size": str(self.population_size),
            "elitism_rate": str(self.elitism_rate),
            "random_injection_rate": str(self.random_injection_rate),
            "mutation_rate": str(self.mutation_rate),
            "mutation_range": str(self.mutation_range),
            "history_depth": "unbounded" if self.unbounded_history else str(self.history_depth),
            "score_only_after_depth": str(self.score_only_after_depth),
            "score_order": self.score_order,
            "children_per_breeding_pair": str(self.children_per_breeding_pair),
            "activation": getattr(self.activation, "__name__", repr(self.activation)),
            "seed": str(self.seed),
        }


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _normalize_topology(value: Any) -> Topology:
    if not isinstance(value, Sequence) or isinstance(value, str) or len(value) != 3:
        raise ConfigurationError(
            "network_topology must be (input_size, hidden_sizes, output_size).",
            context={"network_topology": repr(value)},
        )
    input_size, hidden_sizes, output_size = value
    if _is_int(hidden_sizes):
        hidden_sizes = (hidden_sizes,)
    if not isinstance(hidden_sizes, Sequence) or isinstance(hidden_sizes, str):
        raise ConfigurationError(
            "hidden_sizes must be a sequence of layer widths.",
            context={"hidden_sizes": repr(hidden_sizes)},
        )
    return (
        check_layer_size("input_size", input_size),
        tuple(check_layer_size(f"hidden_sizes[{i}]", size) for i, size in enumerate(hidden_sizes)),
        check_layer_size("output_size", output_size),
    )


def _normalize_count(name: str, value: Any) -> int:
    if not _is_int(value) or value < 1:
        raise ConfigurationError(f"{name} must be an integer >= 1, got {value!r}.", context={name: value})
    return int(value)


def _normalize_rate(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.floating, np.integer)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}.", context={name: value})
    rate = float(value)
    if not 0.0 <= rate <= 1.0:
        raise ConfigurationError(f"{name} must lie within [0, 1], got {rate}.", context={name: rate})
    return rate


def _normalize_range(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.floating, np.integer)):
        raise ConfigurationError(f"mutation_range must be a number, got {value!r}.")
    magnitude = float(value)
    if not math.isfinite(magnitude) or magnitude < 0.0:
        raise ConfigurationError(
            f"mutation_range must be a finite value >= 0, got {magnitude}.",
            context={"mutation_range": magnitude},
        )
    return magnitude


def _normalize_history_depth(value: Any) -> Optional[int]:
    if value is None or (_is_int(value) and value == -1):
        return UNBOUNDED_HISTORY
    if not _is_int(value) or value < 0:
        raise ConfigurationError(
            f"history_depth must be an integer >= 0 or None/-1 for unbounded, got {value!r}.",
            context={"history_depth": value},
        )
    return int(value)


def _normalize_flag(value: Any) -> bool:
    if not isinstance(value, (bool, np.bool_)):
        raise ConfigurationError(f"score_only_after_depth must be a boolean, got {value!r}.")
    return bool(value)


def _normalize_score_order(value: Any) -> str:
    if _is_int(value) and value in (-1, 1):
        return DESCENDING if value < 0 else ASCENDING
    if isinstance(value, str) and value.strip().lower() in (DESCENDING, ASCENDING):
        return value.strip().lower()
    raise ConfigurationError(
        f"score_order must be '{DESCENDING}' or '{ASCENDING}', got {value!r}.",
        context={"score_order": value},
    )


def _normalize_random_unit(value: Any) -> Optional[Callable[[], float]]:
    if value is not None and not callable(value):
        raise ConfigurationError(f"random_unit must be callable, got {value!r}.")
    return value


def _normalize_seed(value: Any) -> Optional[int]:
    if value is not None and not _is_int(value):
        raise ConfigurationError(f"seed must be an integer or None, got {value!r}.")
    return None if value is None else int(value)


class RandomSource:
    """
    All randomness consumed by the engine.

    Crossover and mutation draw from ``rng``; fresh weights come from
    ``unit()``, which defers to an injected ``random_unit`` when one is set and
    otherwise samples ``rng`` uniformly from [-1, 1].
    """

    def __init__(self, seed: Optional[int] = None, random_unit: Optional[Callable[[], float]] = None) -> None:
        self.rng = np.random.default_rng(seed)
        self._random_unit = random_unit

    @classmethod
    def from_config(cls, config: EngineConfig) -> "RandomSource":
        return cls(seed=config.seed, random_unit=config.random_unit)

    def unit(self) -> float:
        if self._random_unit is not None:
            return float(self._random_unit())
        return float(self.rng.uniform(-1.0, 1.0))


CONFIG_SCHEMA: Dict[str, frozenset] = {
    "engine": frozenset(EngineConfig.field_names()) | frozenset(OPTION_ALIASES),
    "logging": frozenset({"experiment_name", "tracking_uri", "use_mlflow"}),
}
