# Author: Emrullah Erce Dutkan
"""
Evaluation metrics for fitted CPCA models.

This module provides:

1. Explained variance per block and component, from the block loadings
2. A batch PCA reference computed by SVD
3. Agreement between CPCA consensus loadings and the PCA reference
4. Subspace distance between loading subspaces

Since every superscore has unit norm, the sum of squares removed from
block b by component k is exactly ||p_bk||^2, which is what the
explained variance figures are built on.
"""

from typing import Dict, Tuple
import numpy as np

from .cpca import CPCA


def explained_variance_by_block(model: CPCA) -> np.ndarray:
    """
    Fraction of each block's sum of squares explained by each component.

    Args:
        model: Fitted CPCA model.

    Returns:
        Array of shape (n_blocks, K). Rows of blocks with zero sum of
        squares are zero.
    """
    loadings = model.get_loadings().block_loadings
    blocks = model.get_blocks()

    ratios = np.zeros((len(blocks), model.n_components_), dtype=np.float64)
    for i, (block, loading) in enumerate(zip(blocks, loadings)):
        total = np.sum(block ** 2)
        if total > 0:
            ratios[i] = np.sum(loading ** 2, axis=0) / total
    return ratios


def explained_variance_ratio(model: CPCA) -> np.ndarray:
    """
    Fraction of the whole dataset's sum of squares explained per component.

    Returns:
        Array of length K.
    """
    total = np.sum(model.data_ ** 2)
    if total == 0:
        return np.zeros(model.n_components_, dtype=np.float64)
    super_loadings = model.get_loadings().super_loadings
    return np.sum(super_loadings ** 2, axis=0) / total


def batch_pca_reference(
    X: np.ndarray,
    k: int,
    center: bool = True,
    scale: bool = False
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute classical PCA by SVD.

    Args:
        X: Data matrix of shape (n_samples, d).
        k: Number of principal components.
        center: Center columns first.
        scale: Divide columns by their sample standard deviation.

    Returns:
        Tuple (singular_values, components) with singular values of shape
        (k,) in descending order and components of shape (d, k).
    """
    X = np.asarray(X, dtype=np.float64)

    if center:
        X = X - np.mean(X, axis=0)
    if scale:
        X = X / np.std(X, axis=0, ddof=1)

    try:
        _, s, Vt = np.linalg.svd(X, full_matrices=False)
    except np.linalg.LinAlgError:
        from scipy.linalg import svd
        _, s, Vt = svd(X, full_matrices=False, lapack_driver="gesvd")

    return s[:k].copy(), Vt[:k].T.copy()


def principal_angles(W1: np.ndarray, W2: np.ndarray) -> np.ndarray:
    """
    Principal angles (radians) between the column spaces of W1 and W2.

    Both inputs must have orthonormal columns.
    """
    s = np.linalg.svd(W1.T @ W2, compute_uv=False)
    return np.arccos(np.clip(s, 0, 1))


def subspace_distance(W_est: np.ndarray, W_ref: np.ndarray) -> float:
    """
    Mean sin of the principal angles between two loading subspaces.

    Inputs of shape (d, k) are orthonormalized by QR first.
    """
    if W_est.ndim == 1:
        W_est = W_est.reshape(-1, 1)
    if W_ref.ndim == 1:
        W_ref = W_ref.reshape(-1, 1)

    Q_est, _ = np.linalg.qr(W_est)
    Q_ref, _ = np.linalg.qr(W_ref)
    return float(np.mean(np.sin(principal_angles(Q_est, Q_ref))))


def pca_agreement(model: CPCA, X: np.ndarray) -> Dict[str, float]:
    """
    Compare consensus loadings of a fitted model with classical PCA.

    Only meaningful for single-block fits, where the two should coincide.

    Args:
        model: Fitted CPCA model.
        X: The raw data the model was fitted on.

    Returns:
        Dictionary with keys:
        - eigenvalue_error: Max relative difference of eigenvalues
        - loading_error: Max absolute difference of |eigenvectors|
        - orthogonality_error: Max deviation of V^T V from identity
        - subspace_error: Mean sin of principal angles
    """
    loadings = model.get_loadings()
    k = model.n_components_
    s_ref, V_ref = batch_pca_reference(X, k, center=model.center, scale=model.scale)

    V = loadings.eigenvectors
    nonzero = s_ref > 0
    eig_err = np.abs(loadings.eigenvalues[nonzero] - s_ref[nonzero]) / s_ref[nonzero]

    return {
        "eigenvalue_error": float(np.max(eig_err)) if eig_err.size else 0.0,
        "loading_error": float(np.max(np.abs(np.abs(V) - np.abs(V_ref)))),
        "orthogonality_error": float(np.max(np.abs(V.T @ V - np.eye(k)))),
        "subspace_error": subspace_distance(V, V_ref),
    }


def compute_all_metrics(model: CPCA) -> Dict[str, object]:
    """
    Summary metrics of a fitted model.

    Returns:
        Dictionary with keys:
        - n_components: Number of components
        - residual_norm: Residual Frobenius norm after the last component
        - relative_error: Per-block scale-corrected reconstruction error
        - explained_variance: Per-component explained variance ratio
        - explained_variance_by_block: (n_blocks, K) ratios
    """
    return {
        "n_components": model.n_components_,
        "residual_norm": float(model.residual_norms_[-1]),
        "relative_error": model.get_data_by_blocks().relative_error,
        "explained_variance": explained_variance_ratio(model),
        "explained_variance_by_block": explained_variance_by_block(model),
    }
