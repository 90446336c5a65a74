"""
Test configuration and fixtures for hmm_decoder.

This file contains pytest configuration and shared fixtures
for testing the hmm_decoder library.
"""

import itertools
import tempfile
from pathlib import Path

import numpy as np
import pytest

from hmm_decoder.config import reset_config
from hmm_decoder.hmm.model import construct_markov_model


@pytest.fixture(autouse=True)
def restore_default_config():
    """Keep global configuration changes from leaking between tests."""
    yield
    reset_config()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def coin_model():
    """Two coins: state 0 is fair, state 1 lands tails 75% of the time."""
    return construct_markov_model(
        initial=[0.5, 0.5],
        transition=[[0.75, 0.25],
                    [0.25, 0.75]],
        emission=[[0.5, 0.5],
                  [0.25, 0.75]]
    )


@pytest.fixture
def composition_model():
    """Coding (GC-rich) vs non-coding (uniform) nucleotide composition."""
    return construct_markov_model(
        initial=[0.5, 0.5],
        transition=[[0.98, 0.02],
                    [0.02, 0.98]],
        emission=[[0.18, 0.32, 0.32, 0.18],
                  [0.25, 0.25, 0.25, 0.25]]
    )


def random_model(n_states, n_observations, seed):
    """Random valid model with Dirichlet-distributed rows."""
    rng = np.random.default_rng(seed)
    initial = rng.dirichlet(np.ones(n_states))
    transition = rng.dirichlet(np.ones(n_states), size=n_states)
    emission = rng.dirichlet(np.ones(n_observations), size=n_states)
    return construct_markov_model(initial, transition, emission)


def joint_probability(model, path, observations):
    """Product of initial, transition and emission factors along a path."""
    prob = model.initial[path[0]] * model.emission[path[0], observations[0]]
    for t in range(1, len(path)):
        prob *= model.transition[path[t - 1], path[t]] * model.emission[path[t], observations[t]]
    return prob


def brute_force_map(model, observations):
    """Exhaustive search over all state paths; returns (best_path, best_prob)."""
    best_path, best_prob = None, -1.0
    for path in itertools.product(range(model.n_states), repeat=len(observations)):
        prob = joint_probability(model, path, observations)
        if prob > best_prob:
            best_path, best_prob = list(path), prob
    return best_path, best_prob


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture
def brute_force():
    """Exhaustive MAP search, for checking decoder optimality on small inputs."""
    return brute_force_map


@pytest.fixture
def make_random_model():
    """Factory for random valid models: make_random_model(n_states, n_observations, seed)."""
    return random_model
