"""
Scalar activation functions available to EvoBrain networks.

Any ``Callable[[float], float]`` can be used as an activation.  The registry
below only exists so configuration files can refer to the common ones by name.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Union

from evobrain.exceptions import ConfigurationError

Activation = Callable[[float], float]


def sigmoid(x: float) -> float:
    """Logistic activation, the default for EvoBrain networks."""
    # math.exp overflows for large negative inputs; the limit is 0.
    if x < -700.0:
        return 0.0
    return 1.0 / (1.0 + math.exp(-x))


def tanh(x: float) -> float:
    return math.tanh(x)


def relu(x: float) -> float:
    return max(0.0, x)


def identity(x: float) -> float:
    return x


def sin(x: float) -> float:
    return math.sin(math.pi * x)


def gauss(x: float) -> float:
    return math.exp(-(x * x) / 2.0)


ACTIVATIONS: Dict[str, Activation] = {
    "sigmoid": sigmoid,
    "tanh": tanh,
    "relu": relu,
    "identity": identity,
    "sin": sin,
    "gauss": gauss,
}


def resolve_activation(value: Union[str, Activation]) -> Activation:
    """Return the activation callable named by ``value`` or ``value`` itself when callable."""

    if callable(value):
        return value
    if isinstance(value, str):
        name = value.strip().lower()
        if name in ACTIVATIONS:
            return ACTIVATIONS[name]
        raise ConfigurationError(
            f"Unknown activation '{value}'. Available activations: {sorted(ACTIVATIONS)}",
            context={"activation": value},
        )
    raise ConfigurationError(
        f"Activation must be a callable or a registered name, got {type(value)!r}",
        context={"activation": repr(value)},
    )
