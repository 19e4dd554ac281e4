"""Tests for the experiment logger wrapper."""

from loguru import logger

from evobrain.utils.logger import ExperimentLogger


def test_start_run_without_mlflow_logs_boundaries() -> None:
    messages = []
    sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    try:
        tracker = ExperimentLogger("unit", use_mlflow=False)
        with tracker.start_run("smoke", params={"population_size": "4"}):
            tracker.log_metrics({"best": 1.0}, step=0)
            tracker.log_params({"seed": "1"})
            tracker.log_message("halfway")
    finally:
        logger.remove(sink_id)

    assert messages[0] == "Starting EvoBrain run: smoke"
    assert "halfway" in messages
    assert messages[-1] == "Completed EvoBrain run: smoke"
    assert any(message.startswith("Metrics@0") for message in messages)


def test_mlflow_is_opt_in() -> None:
    tracker = ExperimentLogger("unit")
    assert tracker.use_mlflow is False
