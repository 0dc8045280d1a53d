# Author: Emrullah Erce Dutkan
"""
Dense linear algebra helpers for consensus PCA.

numpy arrays play the role of the matrix type: construction, column
access, submatrix slicing, transpose and products are plain numpy. This
module adds the pieces the CPCA loop needs on top of that:

- Column-wise centering and scaling
- Frobenius norm and guarded unit normalization
- Dominant eigenvector of a symmetric matrix
- Single-component NIPALS extraction

All helpers return new arrays and never modify their inputs.
"""

from typing import NamedTuple, Optional
import numpy as np

from .exceptions import DegenerateBlockError, NumericalInstabilityError


class NipalsResult(NamedTuple):
    """
    Leading component of a matrix found by NIPALS.

    Attributes:
        score: Unit-norm score direction, shape (n_rows,).
        singular_value: Norm of the raw score X @ weights.
        weights: Unit-norm weight (loading direction), shape (n_cols,).
        n_iter: Number of power iterations used.
    """
    score: np.ndarray
    singular_value: float
    weights: np.ndarray
    n_iter: int

    @property
    def raw_score(self) -> np.ndarray:
        """Score scaled back to X @ weights."""
        return self.score * self.singular_value


def center_columns(X: np.ndarray) -> np.ndarray:
    """Return a copy of X with every column shifted to zero mean."""
    X = np.asarray(X, dtype=np.float64)
    return X - np.mean(X, axis=0)


def scale_columns(X: np.ndarray) -> np.ndarray:
    """
    Return a copy of X with every column divided by its standard deviation.

    Uses the sample standard deviation (ddof=1), so a centered and scaled
    matrix has unit column variance in the unbiased sense.

    Raises:
        NumericalInstabilityError: If a column has zero standard deviation.
    """
    X = np.asarray(X, dtype=np.float64)
    ddof = 1 if X.shape[0] > 1 else 0
    std = np.std(X, axis=0, ddof=ddof)
    zero = np.flatnonzero(~(std > 0))
    if zero.size:
        raise NumericalInstabilityError(
            f"Cannot scale column {int(zero[0])}: standard deviation is zero",
            operation="scale"
        )
    return X / std


def frobenius_norm(X: np.ndarray) -> float:
    """Frobenius norm of a vector or matrix."""
    return float(np.linalg.norm(X))


def normalize(
    v: np.ndarray,
    operation: str = "normalize",
    component: Optional[int] = None,
    block: Optional[int] = None
) -> np.ndarray:
    """
    Scale v to unit Frobenius norm.

    Raises:
        NumericalInstabilityError: If the norm is zero or not finite.
    """
    norm = frobenius_norm(v)
    if norm == 0.0 or not np.isfinite(norm):
        raise NumericalInstabilityError(
            f"Cannot normalize vector with norm {norm}",
            component=component,
            block=block,
            operation=operation
        )
    return v / norm


def dominant_eigenvector(S: np.ndarray) -> np.ndarray:
    """
    Eigenvector of a symmetric matrix paired with its largest |eigenvalue|.

    Args:
        S: Symmetric matrix of shape (n, n).

    Returns:
        Eigenvector of shape (n,), unit norm as returned by eigh.
    """
    eigenvalues, eigenvectors = np.linalg.eigh(S)
    idx = int(np.argmax(np.abs(eigenvalues)))
    return eigenvectors[:, idx].copy()


def nipals(
    X: np.ndarray,
    tol: float = 1e-12,
    max_iter: int = 1000,
    block: Optional[int] = None,
    component: Optional[int] = None
) -> NipalsResult:
    """
    Extract the leading score of X with the NIPALS power iteration.

    The iteration starts from the column with the largest sum of squares
    and alternates:
        w = X^T t / ||X^T t||
        t = X w
    until the squared change in t falls below tol * max(1, ||t||^2) or
    max_iter is reached.

    Args:
        X: Data matrix of shape (n_rows, n_cols). Not modified.
        tol: Relative convergence tolerance on the score.
        max_iter: Maximum number of iterations.
        block: Block index, reported in errors.
        component: Component index, reported in errors.

    Returns:
        NipalsResult with a unit-norm score and its singular value.

    Raises:
        DegenerateBlockError: If X is all zeros or yields a zero or
            non-finite score.
    """
    X = np.asarray(X, dtype=np.float64)
    col_ss = np.sum(X ** 2, axis=0)
    if X.size == 0 or not np.all(np.isfinite(col_ss)) or np.max(col_ss) == 0.0:
        raise DegenerateBlockError(
            "Block is empty, all zero or not finite",
            component=component,
            block=block,
            operation="nipals"
        )

    t = X[:, int(np.argmax(col_ss))].copy()
    w = np.zeros(X.shape[1], dtype=np.float64)
    n_iter = 0

    for n_iter in range(1, max_iter + 1):
        w = X.T @ t
        w_norm = np.linalg.norm(w)
        if w_norm == 0.0 or not np.isfinite(w_norm):
            raise DegenerateBlockError(
                "NIPALS weight vanished",
                component=component,
                block=block,
                operation="nipals"
            )
        w = w / w_norm

        t_old = t
        t = X @ w
        diff = np.sum((t - t_old) ** 2)
        if diff <= tol * max(1.0, float(t @ t)):
            break

    singular_value = float(np.linalg.norm(t))
    if singular_value == 0.0 or not np.isfinite(singular_value):
        raise DegenerateBlockError(
            f"NIPALS score has norm {singular_value}",
            component=component,
            block=block,
            operation="nipals"
        )

    return NipalsResult(
        score=t / singular_value,
        singular_value=singular_value,
        weights=w,
        n_iter=n_iter
    )
