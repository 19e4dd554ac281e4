"""
Tests for generation history orchestration and retention.
"""

import pytest

from evobrain.evolution.config import EngineConfig, RandomSource
from evobrain.evolution.genome import Genome
from evobrain.evolution.history import GenerationHistory
from evobrain.exceptions import StateError


def _history(**options) -> GenerationHistory:
    config = EngineConfig(network_topology=(3, (4,), 2), population_size=6).merged(options)
    return GenerationHistory(config, RandomSource(seed=1))


def _score_all(history: GenerationHistory, population) -> None:
    for index, save in enumerate(population):
        history.record_score(Genome(score=float(index), network=save))


def _advance(history: GenerationHistory, population):
    _score_all(history, population)
    population = history.produce_next_population()
    history.enforce_retention()
    return population


def test_first_population_matches_configuration() -> None:
    history = _history()
    population = history.produce_first_population()
    assert len(population) == 6
    assert all(save.neurons_per_layer == [3, 4, 2] for save in population)
    assert all(len(save.weights) == 3 * 4 + 4 * 2 for save in population)
    assert all(-1.0 <= w <= 1.0 for save in population for w in save.weights)
    assert len(history) == 1
    assert len(history.current) == 0


def test_next_population_requires_a_first_one() -> None:
    history = _history()
    with pytest.raises(StateError):
        history.produce_next_population()
    assert len(history) == 0


def test_record_score_requires_a_generation() -> None:
    history = _history()
    population = _history().produce_first_population()
    with pytest.raises(StateError):
        history.record_score(Genome(score=1.0, network=population[0]))


def test_record_score_goes_to_latest_generation() -> None:
    history = _history(history_depth=None)
    population = history.produce_first_population()
    population = _advance(history, population)
    history.record_score(Genome(score=9.0, network=population[0]))
    assert history.current.scores() == [9.0]
    assert len(history.generations[0]) == 6


@pytest.mark.parametrize("depth", [0, 1, 2, 5])
def test_retention_bounds_history_length(depth) -> None:
    history = _history(history_depth=depth)
    population = history.produce_first_population()
    history.enforce_retention()
    for _ in range(8):
        population = _advance(history, population)
        assert len(history) <= depth + 1
    assert len(history) == depth + 1


def test_unbounded_history_keeps_everything() -> None:
    history = _history(history_depth=-1)
    population = history.produce_first_population()
    for _ in range(5):
        population = _advance(history, population)
    assert len(history) == 6


def test_score_only_retention_strips_two_back() -> None:
    history = _history(history_depth=None, score_only_after_depth=True)
    population = history.produce_first_population()
    history.enforce_retention()
    population = _advance(history, population)

    stripped, current = history.generations
    assert stripped.scores() == [5.0, 4.0, 3.0, 2.0, 1.0, 0.0]
    assert all(genome.network is None for genome in stripped)
    assert len(current) == 0

    population = _advance(history, population)
    older, previous, latest = history.generations
    assert all(genome.network is None for genome in older)
    assert all(genome.network is None for genome in previous)
    assert len(latest) == 0


def test_networks_are_kept_without_score_only_retention() -> None:
    history = _history(history_depth=None)
    population = history.produce_first_population()
    _advance(history, population)
    assert all(genome.network is not None for genome in history.generations[0])


def test_best_scores_skip_unscored_generations() -> None:
    history = _history(history_depth=None)
    population = history.produce_first_population()
    population = _advance(history, population)
    _advance(history, population)
    assert history.best_scores() == [5.0, 5.0]
