"""Utility exports for EvoBrain."""

from .config_loader import ConfigLoader, LoadedConfig
from .logger import ExperimentLogger

__all__ = ["ConfigLoader", "LoadedConfig", "ExperimentLogger"]
