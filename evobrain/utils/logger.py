"""
Unified logging utilities that wrap Loguru and MLflow.

The `ExperimentLogger` gives the engine one place to report generation
summaries.  Metrics and parameters are forwarded to MLflow when it is
installed, while Loguru handles console output.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from loguru import logger

try:
    import mlflow
except ImportError:  # pragma: no cover - tracking is optional.
    mlflow = None  # type: ignore[assignment]


class ExperimentLogger:
    """Thin convenience wrapper around Loguru and MLflow."""

    def __init__(
        self,
        experiment_name: str = "evobrain",
        tracking_uri: Optional[str] = None,
        use_mlflow: bool = False,
    ) -> None:
        self.experiment_name = experiment_name
        self.tracking_uri = tracking_uri
        self.use_mlflow = use_mlflow and mlflow is not None
        self._active_run = False

    def _ensure_mlflow(self) -> None:
        """Configure the MLflow tracking URI and experiment."""
        if self.tracking_uri:
            mlflow.set_tracking_uri(self.tracking_uri)
        mlflow.set_experiment(self.experiment_name)

    @contextmanager
    def start_run(self, run_name: str, params: Optional[Dict[str, str]] = None) -> Iterator[None]:
        """
        Context manager that opens and closes an MLflow run while emitting log messages.

        Without MLflow the context still works, so callers can wrap a whole
        evolutionary run in it unconditionally.
        """

        logger.info("Starting EvoBrain run: {}", run_name)
        if self.use_mlflow:
            self._ensure_mlflow()
            with mlflow.start_run(run_name=run_name):
                self._active_run = True
                if params:
                    mlflow.log_params(params)
                try:
                    yield
                finally:
                    self._active_run = False
        else:
            yield
        logger.info("Completed EvoBrain run: {}", run_name)

    def log_params(self, params: Dict[str, str]) -> None:
        logger.debug("Params: {}", params)
        if self._active_run:
            mlflow.log_params(params)

    def log_metrics(self, metrics: Dict[str, float], step: Optional[int] = None) -> None:
        """Emit metrics to the console and to MLflow inside an active run."""
        logger.debug("Metrics@{}: {}", step if step is not None else "-", metrics)
        if self._active_run:
            mlflow.log_metrics(metrics, step=step)

    def log_message(self, message: str) -> None:
        """Log a simple info message."""
        logger.info(message)
