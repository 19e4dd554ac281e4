"""
Tests for the feed-forward network and its serialized form.
"""

import itertools
import math

import pytest

from evobrain.evolution.activations import identity, sigmoid
from evobrain.evolution.network import NeuralNetwork, SerializedNetwork, expected_weight_count
from evobrain.exceptions import ConfigurationError, ShapeError


def _counter():
    counter = itertools.count()
    return lambda: float(next(counter))


def test_build_creates_layers_with_matching_fan_in() -> None:
    """Every neuron should carry one weight per neuron of the previous layer."""
    network = NeuralNetwork.build(3, [4, 2], 1, _counter())
    assert network.topology == [3, 4, 2, 1]
    assert all(len(neuron.weights) == 0 for neuron in network.layers[0].neurons)
    for previous, layer in zip(network.layers, network.layers[1:]):
        for neuron in layer.neurons:
            assert len(neuron.weights) == len(previous.neurons)
    assert network.weight_count == 3 * 4 + 4 * 2 + 2 * 1


@pytest.mark.parametrize(
    "input_size, hidden, output_size",
    [(0, [2], 1), (2, [0], 1), (2, [2], 0), (-1, [], 1), (True, [2], 1), (2.0, [2], 1)],
)
def test_build_rejects_invalid_sizes(input_size, hidden, output_size) -> None:
    with pytest.raises(ConfigurationError):
        NeuralNetwork.build(input_size, hidden, output_size, _counter())


def test_serialized_weights_follow_layer_then_neuron_order() -> None:
    """The flat weight list concatenates neurons layer by layer."""
    network = NeuralNetwork.build(2, [3], 1, _counter())
    save = network.to_serialized()
    assert save.neurons_per_layer == [2, 3, 1]
    assert save.weights == [float(i) for i in range(9)]
    assert network.layers[1].neurons[1].weights.tolist() == [2.0, 3.0]
    assert network.layers[2].neurons[0].weights.tolist() == [6.0, 7.0, 8.0]


def test_round_trip_reproduces_weights_and_outputs() -> None:
    values = itertools.cycle([0.731, -0.12, 0.5, -0.999, 0.25])
    network = NeuralNetwork.build(3, [5, 4], 2, lambda: next(values))
    restored = NeuralNetwork.from_serialized(network.to_serialized())

    assert restored.topology == network.topology
    assert restored.to_serialized() == network.to_serialized()
    for inputs in ([0.0, 0.0, 0.0], [1.0, -2.5, 0.3], [10.0, 3.0, -7.0]):
        assert restored.evaluate(inputs) == network.evaluate(inputs)


def test_evaluate_is_weighted_sum_then_activation() -> None:
    save = SerializedNetwork([2, 1], [0.5, -0.25])
    network = NeuralNetwork.from_serialized(save, activation=identity)
    assert network.evaluate([2.0, 4.0]) == [0.0]
    assert network.evaluate([4.0, 2.0]) == [1.5]


def test_evaluate_propagates_through_hidden_layers() -> None:
    save = SerializedNetwork([1, 1, 1], [1.0, 2.0])
    network = NeuralNetwork.from_serialized(save, activation=sigmoid)
    (output,) = network.evaluate([0.0])
    assert output == pytest.approx(1.0 / (1.0 + math.exp(-1.0)))


def test_evaluate_is_deterministic() -> None:
    values = itertools.cycle([0.4, -0.8, 0.1])
    network = NeuralNetwork.build(2, [3], 2, lambda: next(values))
    first = network.evaluate([0.3, -0.7])
    second = network.evaluate([0.3, -0.7])
    assert first == second
    assert len(first) == 2


@pytest.mark.parametrize("inputs", [[1.0], [1.0, 2.0, 3.0], [], [[1.0, 2.0]]])
def test_evaluate_requires_exact_input_length(inputs) -> None:
    network = NeuralNetwork.build(2, [2], 1, _counter())
    with pytest.raises(ShapeError):
        network.evaluate(inputs)


def test_from_serialized_rejects_weight_count_mismatch() -> None:
    with pytest.raises(ShapeError) as err:
        NeuralNetwork.from_serialized(SerializedNetwork([2, 2, 1], [0.1] * 5))
    assert err.value.context == {"expected": 6, "actual": 5}


@pytest.mark.parametrize("neurons", [[], [2, 0, 1]])
def test_from_serialized_rejects_invalid_topology(neurons) -> None:
    with pytest.raises(ShapeError):
        NeuralNetwork.from_serialized(SerializedNetwork(neurons, []))


def test_expected_weight_count_ignores_input_layer() -> None:
    assert expected_weight_count([4]) == 0
    assert expected_weight_count([2, 3, 1]) == 9


def test_serialized_copy_does_not_share_weights() -> None:
    save = SerializedNetwork([1, 2], [0.1, 0.2])
    duplicate = save.copy()
    duplicate.weights[0] = 5.0
    duplicate.neurons_per_layer.append(3)
    assert save.weights == [0.1, 0.2]
    assert save.neurons_per_layer == [1, 2]


def test_randomized_keeps_topology_and_redraws_weights() -> None:
    save = SerializedNetwork([2, 2, 1], [0.0] * 6)
    fresh = save.randomized(lambda: 0.75)
    assert fresh.neurons_per_layer == [2, 2, 1]
    assert fresh.weights == [0.75] * 6
    assert save.weights == [0.0] * 6


def test_dict_form_uses_neurons_and_weights_keys() -> None:
    save = SerializedNetwork([1, 1], [0.5])
    data = save.to_dict()
    assert data == {"neurons": [1, 1], "weights": [0.5]}
    assert SerializedNetwork.from_dict(data) == save
    with pytest.raises(ShapeError):
        SerializedNetwork.from_dict({"neurons": [1, 1]})


def test_network_copy_is_independent() -> None:
    network = NeuralNetwork.build(1, [], 1, lambda: 0.5)
    duplicate = network.copy()
    duplicate.layers[1].neurons[0].weights[0] = -3.0
    assert network.to_serialized().weights == [0.5]
