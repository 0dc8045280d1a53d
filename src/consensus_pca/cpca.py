# Author: Emrullah Erce Dutkan
"""
Consensus PCA (CPCA) for multi-block data.

CPCA summarizes several column blocks that share the same rows through a
single set of superscores, while keeping a loading vector per block and
component. Each component is found by:

1. Extracting the leading NIPALS score of every (deflated) block, scaled
   by 1/sqrt(block width), to form the block score matrix T.
2. Combining block scores into a consensus: w = T^T t, t = T w.
3. Normalizing the weight by the norm of the new superscore, then the
   superscore itself to unit norm.
4. Deflating every block by its loading p = X_b^T t: X_b <- X_b - t p^T.

The initial superscore of each component is either a vector of ones or
the dominant eigenvector of the residual cross-product X X^T. Fitting
stops after a fixed number of components, or once the residual Frobenius
norm falls below a tolerance.

With a single block and centered, scaled data the consensus loadings
reduce to classical PCA: the loading norms are the singular values of the
data and the normalized loadings its principal axes.
"""

from typing import List, Optional, Sequence, Union
from dataclasses import dataclass
import logging
import numbers

import numpy as np
from joblib import Parallel, delayed

from .blocks import block_offsets, concatenate_blocks, resolve_block_sizes, split_blocks
from .config import CPCAConfig, INIT_METHODS, STOP_CRITERIA, InitMethod, StopCriterion
from .exceptions import (
    ConfigurationError,
    ConvergenceError,
    NotFittedError,
    NumericalInstabilityError,
)
from .linalg import (
    NipalsResult,
    center_columns,
    dominant_eigenvector,
    frobenius_norm,
    nipals,
    normalize,
    scale_columns,
)


logger = logging.getLogger(__name__)


@dataclass
class ConsensusLoadings:
    """
    Loadings of a fitted CPCA model.

    Attributes:
        block_loadings: One (block width, K) matrix per block.
        super_loadings: Block loadings stacked row-wise, shape (C, K).
        eigenvalues: Norm of each super-loading column, in component order.
        eigenvectors: Super-loading columns divided by their norms, (C, K).
    """
    block_loadings: List[np.ndarray]
    super_loadings: np.ndarray
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray


@dataclass
class BlockReconstruction:
    """
    Per-block reconstruction from superscores and block loadings.

    Attributes:
        predicted_blocks: Reconstructed block matrices, (R, block width) each.
        relative_error: Scale-corrected relative residual norm per block.
    """
    predicted_blocks: List[np.ndarray]
    relative_error: np.ndarray


class CPCA:
    """
    Consensus principal component analysis.

    Attributes (after fit):
        data_: Preprocessed copy of the input, shape (R, C).
        block_sizes_: Width of each block.
        superscores_: Superscore matrix, shape (R, K).
        superweights_: K arrays of length n_blocks.
        loadings_: K lists of n_blocks loading vectors.
        residual_norms_: Frobenius norm of the residual after each component.
        n_components_: Number of components extracted (K).
    """

    def __init__(
        self,
        center: bool = True,
        scale: bool = False,
        method: InitMethod = "ones",
        blocks: Union[int, Sequence[int], None] = None,
        n_components: Optional[int] = None,
        stop: StopCriterion = "components",
        tolerance: float = 1e-10,
        max_components: Optional[int] = None,
        n_jobs: int = 1,
        nipals_tol: float = 1e-12,
        nipals_max_iter: int = 1000
    ):
        """
        Initialize the CPCA model.

        Args:
            center: Subtract column means before fitting.
            scale: Divide columns by their sample standard deviation.
            method: Initial superscore, "ones" or "evd".
            blocks: None for one block, a slice width, or block widths.
            n_components: Components to extract in "components" mode.
                Defaults to the number of columns.
            stop: "components" for a fixed count, "norm" to stop on the
                residual norm.
            tolerance: Residual Frobenius norm threshold for "norm" mode.
            max_components: Component cap for "norm" mode. Defaults to the
                number of columns.
            n_jobs: Threads used for per-block NIPALS. 1 runs inline,
                -1 uses all cores.
            nipals_tol: Relative NIPALS convergence tolerance.
            nipals_max_iter: Maximum NIPALS iterations per block.
        """
        self.center = center
        self.scale = scale
        self.method = method.lower() if isinstance(method, str) else method
        self.blocks = blocks
        self.n_components = n_components
        self.stop = stop
        self.tolerance = tolerance
        self.max_components = max_components
        self.n_jobs = n_jobs
        self.nipals_tol = nipals_tol
        self.nipals_max_iter = nipals_max_iter

    @classmethod
    def from_config(cls, config: CPCAConfig) -> "CPCA":
        """Build a model from a CPCAConfig."""
        return cls(
            center=config.center,
            scale=config.scale,
            method=config.method,
            blocks=config.blocks,
            n_components=config.n_components,
            stop=config.stop,
            tolerance=config.tolerance,
            max_components=config.max_components,
            n_jobs=config.n_jobs,
            nipals_tol=config.nipals.tol,
            nipals_max_iter=config.nipals.max_iter
        )

    def _validate(self, X: np.ndarray) -> List[int]:
        """Check options against the data and return the block widths."""
        if X.ndim != 2 or X.shape[0] < 1 or X.shape[1] < 1:
            raise ConfigurationError(
                f"Expected a non-empty 2-D matrix, got shape {X.shape}",
                operation="fit"
            )
        if not np.all(np.isfinite(X)):
            raise ConfigurationError("Data contains NaN or infinite values", operation="fit")

        n_columns = X.shape[1]

        if self.method not in INIT_METHODS:
            raise ConfigurationError(
                f"Unknown method: {self.method!r}, expected one of {INIT_METHODS}",
                operation="fit"
            )
        if self.stop not in STOP_CRITERIA:
            raise ConfigurationError(
                f"Unknown stop criterion: {self.stop!r}, expected one of {STOP_CRITERIA}",
                operation="fit"
            )

        if self.stop == "components" and self.n_components is not None:
            k = self.n_components
            if not isinstance(k, numbers.Integral) or isinstance(k, bool) or not 1 <= k <= n_columns:
                raise ConfigurationError(
                    f"n_components must be an int in [1, {n_columns}], got {k!r}",
                    operation="fit"
                )
        if self.stop == "norm":
            if not self.tolerance >= 0:
                raise ConfigurationError(
                    f"tolerance must be non-negative, got {self.tolerance}",
                    operation="fit"
                )
            cap = self.max_components
            if cap is not None and (not isinstance(cap, numbers.Integral) or isinstance(cap, bool) or cap < 1):
                raise ConfigurationError(
                    f"max_components must be a positive int, got {cap!r}",
                    operation="fit"
                )
        if self.n_jobs == 0:
            raise ConfigurationError("n_jobs must not be 0", operation="fit")

        return resolve_block_sizes(n_columns, self.blocks)

    def _initial_superscore(self, X: np.ndarray, component: int) -> np.ndarray:
        """Starting superscore for a component, unit norm."""
        if self.method == "evd":
            t = dominant_eigenvector(X @ X.T)
        else:
            t = np.ones(X.shape[0], dtype=np.float64)
        return normalize(t, operation="initial superscore", component=component)

    def _score_blocks(self, blocks: List[np.ndarray], component: int) -> List[NipalsResult]:
        """Leading NIPALS score of every block, in block order."""
        if self.n_jobs == 1 or len(blocks) == 1:
            return [
                nipals(b, self.nipals_tol, self.nipals_max_iter, block=i, component=component)
                for i, b in enumerate(blocks)
            ]
        return Parallel(n_jobs=self.n_jobs, prefer="threads")(
            delayed(nipals)(b, self.nipals_tol, self.nipals_max_iter, i, component)
            for i, b in enumerate(blocks)
        )

    def fit(self, X: np.ndarray) -> "CPCA":
        """
        Fit the model.

        Args:
            X: Data matrix of shape (n_samples, n_features). Not modified.

        Returns:
            self, for method chaining.

        Raises:
            ConfigurationError: Invalid options for this data.
            DegenerateBlockError: A block has no score left to extract.
            NumericalInstabilityError: A zero norm in a normalization.
            ConvergenceError: "norm" mode hit max_components first.
        """
        X = np.array(X, dtype=np.float64)
        sizes = self._validate(X)
        n_rows, n_columns = X.shape

        if self.center:
            X = center_columns(X)
        if self.scale:
            X = scale_columns(X)

        if self.stop == "norm":
            n_max = self.max_components if self.max_components is not None else n_columns
        else:
            n_max = self.n_components if self.n_components is not None else n_columns

        blocks = split_blocks(X, sizes)
        widths = np.sqrt(np.asarray(sizes, dtype=np.float64))

        logger.debug(
            "Fitting CPCA on %dx%d data, %d blocks %s, method=%s, stop=%s",
            n_rows, n_columns, len(sizes), sizes, self.method, self.stop
        )

        superscores: List[np.ndarray] = []
        superweights: List[np.ndarray] = []
        loadings: List[List[np.ndarray]] = []
        residual_norms: List[float] = []

        tsup = self._initial_superscore(X, 0)
        converged = False

        for k in range(n_max):
            results = self._score_blocks(blocks, k)
            T = np.empty((n_rows, len(blocks)), dtype=np.float64)
            for i, res in enumerate(results):
                T[:, i] = res.raw_score / widths[i]

            w = T.T @ tsup
            tsup = T @ w
            norm = frobenius_norm(tsup)
            if norm == 0.0 or not np.isfinite(norm):
                raise NumericalInstabilityError(
                    f"Superscore has norm {norm}",
                    component=k,
                    operation="superscore"
                )
            superweights.append(w / norm)
            tsup = tsup / norm
            superscores.append(tsup)

            # Deflation
            p = []
            for i in range(len(blocks)):
                g = blocks[i].T @ tsup
                blocks[i] = blocks[i] - np.outer(tsup, g)
                p.append(g)
            loadings.append(p)

            Xr = concatenate_blocks(blocks)
            residual = frobenius_norm(Xr)
            residual_norms.append(residual)
            logger.debug("Component %d: residual norm %.6g", k, residual)

            if self.stop == "norm" and residual <= self.tolerance:
                converged = True
                break
            if k + 1 < n_max:
                tsup = self._initial_superscore(Xr, k + 1)

        if self.stop == "norm" and not converged:
            raise ConvergenceError(
                f"Residual norm {residual_norms[-1]:.6g} still above tolerance "
                f"{self.tolerance} after {n_max} components",
                component=n_max - 1,
                operation="fit"
            )

        self.data_ = X
        self.block_sizes_ = sizes
        self.superscores_ = np.column_stack(superscores)
        self.superweights_ = superweights
        self.loadings_ = loadings
        self.residual_norms_ = np.asarray(residual_norms)
        self.n_components_ = len(superscores)

        logger.debug("CPCA fit complete with %d components", self.n_components_)
        return self

    def _check_fitted(self) -> None:
        if not hasattr(self, "superscores_"):
            raise NotFittedError("CPCA model is not fitted yet, call fit first")

    @property
    def n_blocks(self) -> int:
        """Number of blocks in the fitted partition."""
        self._check_fitted()
        return len(self.block_sizes_)

    def get_super_scores(self) -> np.ndarray:
        """Superscore matrix of shape (R, K), one column per component."""
        self._check_fitted()
        return self.superscores_.copy()

    def get_super_weights(self) -> List[np.ndarray]:
        """
        Super-weight vector of every component, each of length n_blocks.

        Weights are divided by the norm of the superscore they produce,
        not by their own norm, so they are not unit vectors: the block
        score matrix times the weight gives the unit superscore.
        """
        self._check_fitted()
        return [w.copy() for w in self.superweights_]

    def get_blocks(self) -> List[np.ndarray]:
        """Preprocessed data split into the fitted partition."""
        self._check_fitted()
        return split_blocks(self.data_, self.block_sizes_)

    def _block_loadings(self) -> List[np.ndarray]:
        return [
            np.column_stack([self.loadings_[k][i] for k in range(self.n_components_)])
            for i in range(len(self.block_sizes_))
        ]

    def _predicted_blocks(self) -> List[np.ndarray]:
        # Sum over components of t_k p_k^T, as one product per block
        return [self.superscores_ @ loading.T for loading in self._block_loadings()]

    def get_loadings(self) -> ConsensusLoadings:
        """
        Block loadings, super-loadings and their eigen-style decomposition.

        Each super-loading column's norm is reported as the eigenvalue of
        that component and the normalized column as its eigenvector. The
        order follows component index and is not re-sorted.

        Raises:
            NumericalInstabilityError: If a super-loading column is zero.
        """
        self._check_fitted()
        block_loadings = self._block_loadings()

        offsets = block_offsets(self.block_sizes_)
        super_loadings = np.zeros((offsets[-1], self.n_components_), dtype=np.float64)
        for i, loading in enumerate(block_loadings):
            super_loadings[offsets[i]:offsets[i + 1], :] = loading

        eigenvalues = np.linalg.norm(super_loadings, axis=0)
        eigenvectors = np.empty_like(super_loadings)
        for j in range(self.n_components_):
            eigenvectors[:, j] = normalize(
                super_loadings[:, j], operation="eigenvector", component=j
            )

        return ConsensusLoadings(
            block_loadings=block_loadings,
            super_loadings=super_loadings,
            eigenvalues=eigenvalues,
            eigenvectors=eigenvectors
        )

    def get_data_by_blocks(self) -> BlockReconstruction:
        """
        Reconstruct every block from all components and compare to the data.

        The error for block j is
            ||A_j - P_j * (||A_j|| / ||P_j||)|| / ||A_j||
        where A_j is the preprocessed block and P_j its reconstruction.

        Raises:
            NumericalInstabilityError: If a block or its reconstruction
                has zero norm.
        """
        self._check_fitted()
        predicted_blocks = self._predicted_blocks()
        actual_blocks = self.get_blocks()

        relative_error = []
        for j, (actual, predicted) in enumerate(zip(actual_blocks, predicted_blocks)):
            actual_norm = frobenius_norm(actual)
            predicted_norm = frobenius_norm(predicted)
            if actual_norm == 0.0 or predicted_norm == 0.0:
                raise NumericalInstabilityError(
                    "Cannot compare block with zero norm",
                    block=j,
                    operation="relative error"
                )
            factor = actual_norm / predicted_norm
            residual = actual - predicted * factor
            relative_error.append(frobenius_norm(residual) / actual_norm)

        return BlockReconstruction(
            predicted_blocks=predicted_blocks,
            relative_error=np.asarray(relative_error)
        )

    def reconstruct(self) -> np.ndarray:
        """Reconstruction of the preprocessed data, shape (R, C)."""
        self._check_fitted()
        return concatenate_blocks(self._predicted_blocks())


def consensus_pca(
    X: np.ndarray,
    blocks: Union[int, Sequence[int], None] = None,
    n_components: Optional[int] = None,
    center: bool = True,
    scale: bool = False,
    method: InitMethod = "ones",
    **kwargs
) -> CPCA:
    """
    Convenience function to fit CPCA on a dataset.

    Args:
        X: Data matrix of shape (n_samples, n_features).
        blocks: None, a slice width, or a sequence of block widths.
        n_components: Number of components.
        center: Center columns first.
        scale: Scale columns to unit variance.
        method: Initial superscore method.
        **kwargs: Any other CPCA option.

    Returns:
        Fitted CPCA model.
    """
    model = CPCA(
        center=center,
        scale=scale,
        method=method,
        blocks=blocks,
        n_components=n_components,
        **kwargs
    )
    return model.fit(X)
