"""Top-level package exposing the EvoBrain neuroevolution engine."""

from .evolution import EngineConfig, EvolutionEngine, Genome, NeuralNetwork, SerializedNetwork
from .exceptions import ConfigurationError, EvoBrainError, InvariantViolation, ShapeError, StateError

__all__ = [
    "EngineConfig",
    "EvolutionEngine",
    "Genome",
    "NeuralNetwork",
    "SerializedNetwork",
    "ConfigurationError",
    "EvoBrainError",
    "InvariantViolation",
    "ShapeError",
    "StateError",
]
