# Author: Emrullah Erce Dutkan
"""
Dataset loading utilities for consensus PCA.

Available datasets:
- iris: Fisher's iris measurements (150 samples, 4 features), via sklearn
- synthetic: Multi-block data sharing a low-rank latent structure
- csv: Any numeric CSV file

Loaders return the data matrix together with a suggested block
partition (list of block widths), or None where no natural partition
exists.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import ConfigurationError


def load_iris() -> Tuple[np.ndarray, List[int]]:
    """
    Load the iris measurements from sklearn.

    The suggested partition groups the sepal and petal measurements.

    Returns:
        Tuple of (X, block_sizes) with X of shape (150, 4).

    Raises:
        ImportError: If sklearn is not available.
    """
    try:
        from sklearn.datasets import load_iris as sklearn_load_iris
    except ImportError:
        raise ImportError(
            "sklearn is required for loading the iris dataset. "
            "Install with: pip install scikit-learn"
        )

    data = sklearn_load_iris()
    return data.data.astype(np.float64), [2, 2]


def load_synthetic_blocks(
    n: int = 200,
    block_sizes: Sequence[int] = (5, 10, 5),
    rank: int = 3,
    noise_std: float = 0.1,
    seed: Optional[int] = 42
) -> Tuple[np.ndarray, List[int]]:
    """
    Generate blocks driven by a shared set of latent scores.

    Each block is Z @ A_b + noise, where Z (n x rank) is common to all
    blocks and A_b is a block-specific random mixing matrix.

    Args:
        n: Number of samples.
        block_sizes: Width of each block.
        rank: Number of shared latent variables.
        noise_std: Noise standard deviation.
        seed: Random seed.

    Returns:
        Tuple of (X, block_sizes) where X has shape (n, sum(block_sizes)).
    """
    rng = np.random.default_rng(seed)
    Z = rng.standard_normal((n, rank))
    # Decaying latent variance so components are well separated
    Z = Z * np.exp(-0.5 * np.arange(rank))

    blocks = []
    for size in block_sizes:
        A = rng.standard_normal((rank, size))
        blocks.append(Z @ A + noise_std * rng.standard_normal((n, size)))

    return np.hstack(blocks), list(block_sizes)


def load_csv(
    path: str,
    delimiter: str = ",",
    skip_header: Optional[bool] = None
) -> Tuple[np.ndarray, None]:
    """
    Load a numeric matrix from a CSV file.

    Empty cells are read as NaN and left for the model to reject.

    Args:
        path: Input CSV path.
        delimiter: Field delimiter.
        skip_header: Skip the first row. If None, the first row is skipped
            only when none of its cells parse as numbers.

    Returns:
        Tuple of (X, None).

    Raises:
        ConfigurationError: If the file is missing, empty, or has rows of
            different lengths.
    """
    try:
        first = np.atleast_1d(np.genfromtxt(path, delimiter=delimiter, max_rows=1))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}", operation="load") from e
    if first.size == 0:
        raise ConfigurationError(f"No data in {path}", operation="load")

    if skip_header is None:
        skip_header = bool(np.all(np.isnan(first)))

    try:
        # Rows with a different number of cells raise instead of being dropped
        X = np.genfromtxt(
            path,
            delimiter=delimiter,
            skip_header=int(skip_header),
            dtype=np.float64,
            invalid_raise=True
        )
    except ValueError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}", operation="load") from e

    if X.size == 0:
        raise ConfigurationError(f"No data rows in {path}", operation="load")
    return X.reshape(-1, first.size), None


def load_dataset(
    name: str,
    path: Optional[str] = None,
    n: Optional[int] = None,
    seed: Optional[int] = 42
) -> Tuple[np.ndarray, Optional[List[int]]]:
    """
    Load a dataset by name.

    Args:
        name: Dataset name ("iris", "synthetic", "csv").
        path: File path for "csv".
        n: Number of samples (for synthetic datasets).
        seed: Random seed.

    Returns:
        Tuple of (X, block_sizes) where block_sizes may be None.
    """
    if name == "iris":
        return load_iris()
    elif name == "synthetic":
        return load_synthetic_blocks(n=n or 200, seed=seed)
    elif name == "csv":
        if path is None:
            raise ConfigurationError("A path is required for the csv dataset", operation="load")
        return load_csv(path)
    else:
        raise ValueError(f"Unknown dataset: {name}")
