"""Shared pytest fixtures for all test modules."""

from typing import List, Tuple

import numpy as np
import pandas as pd
import pytest


def pytest_configure(config):
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast unit tests")
    config.addinivalue_line("markers", "integration: end-to-end tests through the CLI")
    config.addinivalue_line("markers", "slow: statistical convergence tests")


def _repeat(counts) -> List[Tuple[str, ...]]:
    rows: List[Tuple[str, ...]] = []
    for labels, n in counts:
        rows.extend([labels] * n)
    return rows


@pytest.fixture
def two_by_two_rows() -> List[Tuple[str, str]]:
    """Ten rows with joint probabilities (0,0)=.3, (0,1)=.2, (1,0)=.1, (1,1)=.4."""
    return _repeat(
        [
            (("a0", "b0"), 3),
            (("a0", "b1"), 2),
            (("a1", "b0"), 1),
            (("a1", "b1"), 4),
        ]
    )


@pytest.fixture
def independent_rows() -> List[Tuple[str, str]]:
    """Eight rows where every observed joint probability equals its expectation."""
    return _repeat(
        [
            (("a", "x"), 1),
            (("a", "y"), 1),
            (("b", "x"), 3),
            (("b", "y"), 3),
        ]
    )


@pytest.fixture
def independent_rows_3d() -> List[Tuple[str, str, str]]:
    """One row per combination of three binary variables."""
    return [(a, b, c) for a in "ab" for b in "xy" for c in "uv"]


@pytest.fixture
def random_rows():
    """Factory for random categorical rows with given cardinalities."""

    def _make(cardinalities, n_obs=200, seed=0):
        rng = np.random.default_rng(seed)
        columns = [rng.integers(0, k, size=n_obs) for k in cardinalities]
        # every category observed at least once
        for col, k in zip(columns, cardinalities):
            col[:k] = np.arange(k)
        return [tuple(f"c{v}" for v in row) for row in zip(*columns)]

    return _make


@pytest.fixture
def survey_frame() -> pd.DataFrame:
    """Smoking/cancer style table with a continuous age column."""
    rng = np.random.default_rng(7)
    n = 300
    smoker = rng.choice(["yes", "no"], size=n, p=[0.4, 0.6])
    cancer_prob = np.where(smoker == "yes", 0.5, 0.1)
    cancer = np.where(rng.uniform(size=n) < cancer_prob, "yes", "no")
    age = rng.uniform(20, 80, size=n).round(1)
    return pd.DataFrame({"smoker": smoker, "cancer": cancer, "age": age})
