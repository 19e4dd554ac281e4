"""Evolution module exports."""

from .activations import ACTIVATIONS, resolve_activation
from .config import EngineConfig, RandomSource
from .engine import EvolutionEngine
from .generation import Generation
from .genome import Genome
from .history import GenerationHistory
from .network import Layer, NeuralNetwork, Neuron, SerializedNetwork

__all__ = [
    "ACTIVATIONS",
    "resolve_activation",
    "EngineConfig",
    "RandomSource",
    "EvolutionEngine",
    "Generation",
    "Genome",
    "GenerationHistory",
    "Layer",
    "NeuralNetwork",
    "Neuron",
    "SerializedNetwork",
]
