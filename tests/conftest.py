"""Shared fixtures for consensus PCA tests."""

import numpy as np
import pytest

from consensus_pca.datasets import load_iris, load_synthetic_blocks


@pytest.fixture(scope="session")
def iris():
    X, _ = load_iris()
    return X


@pytest.fixture
def synthetic_blocks():
    return load_synthetic_blocks(n=120, block_sizes=(3, 5, 2), rank=3, noise_std=0.05, seed=7)


@pytest.fixture
def low_rank():
    """Exact rank-2 data with 6 columns, no noise."""
    rng = np.random.default_rng(3)
    Z = rng.standard_normal((40, 2))
    A = rng.standard_normal((2, 6))
    return Z @ A
