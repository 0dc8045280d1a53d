# Author: Emrullah Erce Dutkan
"""
Consensus PCA Engine

A library for consensus principal component analysis (CPCA) of
multi-block data:
- Per-block NIPALS scoring combined into shared superscores
- Block deflation with per-block loadings
- Fixed component count or residual-norm termination

This package provides the CPCA engine, its linear algebra helpers,
evaluation metrics against classical PCA, and reporting tools.
"""

from .cpca import CPCA, consensus_pca, ConsensusLoadings, BlockReconstruction
from .blocks import resolve_block_sizes, split_blocks, concatenate_blocks
from .linalg import nipals, NipalsResult, dominant_eigenvector
from .exceptions import (
    CPCAError,
    ConfigurationError,
    DegenerateBlockError,
    NumericalInstabilityError,
    ConvergenceError,
    NotFittedError
)
from .metrics import (
    explained_variance_by_block,
    explained_variance_ratio,
    batch_pca_reference,
    pca_agreement,
    subspace_distance,
    compute_all_metrics
)
from .datasets import load_dataset, load_iris, load_synthetic_blocks, load_csv
from .benchmark import BenchmarkConfig, run_benchmark, MethodResult
from .config import CPCAConfig, NipalsConfig, get_default_config

__version__ = "0.1.0"
__author__ = "Emrullah Erce Dutkan"

__all__ = [
    # Core algorithm
    "CPCA",
    "consensus_pca",
    "ConsensusLoadings",
    "BlockReconstruction",
    # Linear algebra and partitioning
    "nipals",
    "NipalsResult",
    "dominant_eigenvector",
    "resolve_block_sizes",
    "split_blocks",
    "concatenate_blocks",
    # Errors
    "CPCAError",
    "ConfigurationError",
    "DegenerateBlockError",
    "NumericalInstabilityError",
    "ConvergenceError",
    "NotFittedError",
    # Metrics
    "explained_variance_by_block",
    "explained_variance_ratio",
    "batch_pca_reference",
    "pca_agreement",
    "subspace_distance",
    "compute_all_metrics",
    # Datasets
    "load_dataset",
    "load_iris",
    "load_synthetic_blocks",
    "load_csv",
    # Benchmarking
    "BenchmarkConfig",
    "run_benchmark",
    "MethodResult",
    # Configuration
    "CPCAConfig",
    "NipalsConfig",
    "get_default_config",
]
