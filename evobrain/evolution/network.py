"""
Layered feed-forward networks evolved by EvoBrain.

A network is an ordered list of layers, each an ordered list of neurons.  The
input layer's neurons carry no weights and simply hold the values fed to
``evaluate``; every later neuron owns one weight per neuron of the previous
layer.  Networks travel through the genetic operators in their serialized form:
the neuron count of every layer plus one flat list of weights laid out layer by
layer, neuron by neuron.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from evobrain.exceptions import ConfigurationError, ShapeError

from .activations import Activation, sigmoid

WeightInitializer = Callable[[], float]


def expected_weight_count(neurons_per_layer: Sequence[int]) -> int:
    """Number of weights implied by a per-layer neuron count."""
    previous = 0
    total = 0
    for size in neurons_per_layer:
        total += size * previous
        previous = size
    return total


@dataclass
class SerializedNetwork:
    """Flat description of a network: neurons per layer and all weights."""

    neurons_per_layer: List[int]
    weights: List[float] = field(default_factory=list)

    def copy(self) -> "SerializedNetwork":
        """Deep copy; the weight list is never shared between copies."""
        return SerializedNetwork(list(self.neurons_per_layer), list(self.weights))

    def validate(self) -> None:
        """Raise ``ShapeError`` unless the weight count matches the topology."""
        if not self.neurons_per_layer:
            raise ShapeError("Serialized network has no layers.")
        for index, size in enumerate(self.neurons_per_layer):
            if isinstance(size, bool) or not isinstance(size, (int, np.integer)) or size < 1:
                raise ShapeError(
                    f"Layer {index} must hold at least one neuron, got {size!r}.",
                    context={"neurons_per_layer": list(self.neurons_per_layer)},
                )
        expected = expected_weight_count(self.neurons_per_layer)
        if len(self.weights) != expected:
            raise ShapeError(
                f"Topology {list(self.neurons_per_layer)} needs {expected} weights, "
                f"got {len(self.weights)}.",
                context={"expected": expected, "actual": len(self.weights)},
            )

    def randomized(self, random_unit: WeightInitializer) -> "SerializedNetwork":
        """Same topology with every weight redrawn from ``random_unit``."""
        return SerializedNetwork(
            list(self.neurons_per_layer),
            [float(random_unit()) for _ in self.weights],
        )

    def to_dict(self) -> Dict[str, List[Any]]:
        return {"neurons": list(self.neurons_per_layer), "weights": list(self.weights)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SerializedNetwork":
        try:
            neurons = data["neurons"]
            weights = data["weights"]
        except KeyError as exc:
            raise ShapeError(f"Serialized network is missing the {exc.args[0]!r} field.") from exc
        save = cls([int(n) for n in neurons], [float(w) for w in weights])
        save.validate()
        return save


@dataclass
class Neuron:
    """A single unit; ``value`` is recomputed on every evaluation."""

    weights: np.ndarray
    value: float = 0.0


@dataclass
class Layer:
    """Ordered collection of neurons sharing the same fan-in."""

    index: int
    neurons: List[Neuron] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.neurons)

    @classmethod
    def populate(
        cls,
        index: int,
        neuron_count: int,
        input_count: int,
        weight_initializer: Optional[WeightInitializer] = None,
    ) -> "Layer":
        """Create ``neuron_count`` neurons with ``input_count`` weights each."""
        neurons = []
        for _ in range(neuron_count):
            if weight_initializer is None:
                weights = np.zeros(input_count, dtype=np.float64)
            else:
                weights = np.array(
                    [weight_initializer() for _ in range(input_count)], dtype=np.float64
                )
            neurons.append(Neuron(weights=weights))
        return cls(index=index, neurons=neurons)


def check_layer_size(name: str, size: Any) -> int:
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
        raise ConfigurationError(f"{name} must be an integer, got {size!r}.", context={name: size})
    if size < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {size}.", context={name: size})
    return int(size)


class NeuralNetwork:
    """Fixed-width feed-forward perceptron without biases."""

    def __init__(self, layers: Iterable[Layer], activation: Activation = sigmoid) -> None:
        self.layers: List[Layer] = list(layers)
        self.activation = activation

    @classmethod
    def build(
        cls,
        input_size: int,
        hidden_sizes: Sequence[int],
        output_size: int,
        weight_initializer: WeightInitializer,
        activation: Activation = sigmoid,
    ) -> "NeuralNetwork":
        """
        Generate a network with random weights.

        Layers are created left to right: the input layer with weightless
        neurons, one layer per hidden size, then the output layer.  Every weight
        is drawn from ``weight_initializer``.
        """

        sizes = [check_layer_size("input_size", input_size)]
        sizes.extend(check_layer_size(f"hidden_sizes[{i}]", size) for i, size in enumerate(hidden_sizes))
        sizes.append(check_layer_size("output_size", output_size))

        layers = []
        previous = 0
        for index, size in enumerate(sizes):
            layers.append(Layer.populate(index, size, previous, weight_initializer))
            previous = size
        return cls(layers, activation)

    @classmethod
    def from_serialized(
        cls,
        save: SerializedNetwork,
        activation: Activation = sigmoid,
    ) -> "NeuralNetwork":
        """Rebuild the layer structure from ``save`` and assign its weights."""

        save.validate()
        flat = np.asarray(save.weights, dtype=np.float64)
        layers = []
        previous = 0
        offset = 0
        for index, size in enumerate(save.neurons_per_layer):
            layer = Layer.populate(index, size, previous)
            for neuron in layer.neurons:
                neuron.weights = flat[offset : offset + previous].copy()
                offset += previous
            layers.append(layer)
            previous = size
        return cls(layers, activation)

    def to_serialized(self) -> SerializedNetwork:
        """Flatten the network into neuron counts plus one weight list."""
        neurons_per_layer = []
        weights: List[float] = []
        for layer in self.layers:
            neurons_per_layer.append(len(layer.neurons))
            for neuron in layer.neurons:
                weights.extend(neuron.weights.tolist())
        return SerializedNetwork(neurons_per_layer, weights)

    @property
    def topology(self) -> List[int]:
        return [len(layer.neurons) for layer in self.layers]

    @property
    def weight_count(self) -> int:
        return sum(len(neuron.weights) for layer in self.layers for neuron in layer.neurons)

    def copy(self) -> "NeuralNetwork":
        return NeuralNetwork.from_serialized(self.to_serialized(), self.activation)

    def evaluate(self, inputs: Sequence[float]) -> List[float]:
        """
        Feed ``inputs`` forward and return the output layer's values.

        The input vector must match the input layer exactly; it is never padded
        or truncated.
        """

        values = np.asarray(inputs, dtype=np.float64)
        input_layer = self.layers[0]
        if values.ndim != 1 or values.shape[0] != len(input_layer.neurons):
            raise ShapeError(
                f"Expected {len(input_layer.neurons)} inputs, got shape {values.shape}.",
                context={"expected": len(input_layer.neurons), "shape": values.shape},
            )

        for neuron, value in zip(input_layer.neurons, values):
            neuron.value = float(value)

        previous = values
        for layer in self.layers[1:]:
            for neuron in layer.neurons:
                neuron.value = float(self.activation(float(np.dot(previous, neuron.weights))))
            previous = np.array([neuron.value for neuron in layer.neurons], dtype=np.float64)

        return [neuron.value for neuron in self.layers[-1].neurons]

    def __repr__(self) -> str:
        return f"NeuralNetwork(topology={self.topology})"
