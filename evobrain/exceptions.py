"""
Centralised exception hierarchy for EvoBrain.

Every failure the engine reports is a typed exception raised synchronously to
the immediate caller.  Configuration and shape problems double as
``ValueError`` and state problems as ``RuntimeError`` so generic handlers in
host simulations keep working.
"""

from __future__ import annotations

from typing import Any


class EvoBrainError(Exception):
    """Base class for all EvoBrain specific exceptions."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(EvoBrainError, ValueError):
    """Raised for invalid topology sizes, rates or unknown options."""


class StateError(EvoBrainError, RuntimeError):
    """Raised when an operation needs a generation that does not exist yet."""


class ShapeError(EvoBrainError, ValueError):
    """Raised when weights or inputs do not match a network topology."""


class InvariantViolation(EvoBrainError, RuntimeError):
    """Raised when an internal invariant breaks; signals a programming defect."""


__all__ = [
    "EvoBrainError",
    "ConfigurationError",
    "StateError",
    "ShapeError",
    "InvariantViolation",
]
