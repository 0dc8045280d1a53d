# Author: Emrullah Erce Dutkan
"""
Input/Output utilities for consensus PCA results.

This module provides functions for:
- Saving superscores, loadings and block errors of a fitted model
- Saving and loading benchmark results
- Saving and loading configurations
- Creating a text summary report
"""

from typing import List, Dict, Any, Optional, Sequence
import os
import csv
import json

from .cpca import CPCA
from .benchmark import MethodResult, results_to_dict, partition_label
from .metrics import explained_variance_by_block, explained_variance_ratio


def ensure_dir(path: str) -> None:
    """Create directory if it doesn't exist."""
    os.makedirs(path, exist_ok=True)


def _write_rows(path: str, fieldnames: List[str], rows: List[Dict[str, Any]]) -> None:
    ensure_dir(os.path.dirname(path) or ".")
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def save_superscores_csv(model: CPCA, path: str) -> None:
    """
    Save the superscore matrix to CSV, one row per observation.

    Args:
        model: Fitted CPCA model.
        path: Output CSV path.
    """
    scores = model.get_super_scores()
    fieldnames = [f"t{k}" for k in range(scores.shape[1])]
    rows = [dict(zip(fieldnames, row.tolist())) for row in scores]
    _write_rows(path, fieldnames, rows)


def save_loadings_csv(
    model: CPCA,
    path: str,
    feature_names: Optional[Sequence[str]] = None
) -> None:
    """
    Save super-loadings to CSV in long format.

    Columns: block, feature, component, loading, eigenvector

    Args:
        model: Fitted CPCA model.
        path: Output CSV path.
        feature_names: Optional names of the data columns.
    """
    loadings = model.get_loadings()
    n_features = loadings.super_loadings.shape[0]
    if feature_names is None:
        feature_names = [f"x{j}" for j in range(n_features)]

    block_of = []
    for i, size in enumerate(model.block_sizes_):
        block_of.extend([i] * size)

    rows = []
    for j in range(n_features):
        for k in range(model.n_components_):
            rows.append({
                "block": block_of[j],
                "feature": feature_names[j],
                "component": k,
                "loading": loadings.super_loadings[j, k],
                "eigenvector": loadings.eigenvectors[j, k]
            })

    _write_rows(path, ["block", "feature", "component", "loading", "eigenvector"], rows)


def save_block_errors_csv(model: CPCA, path: str) -> None:
    """
    Save per-block reconstruction error and explained variance to CSV.

    Args:
        model: Fitted CPCA model.
        path: Output CSV path.
    """
    errors = model.get_data_by_blocks().relative_error
    explained = explained_variance_by_block(model)

    rows = []
    for i, size in enumerate(model.block_sizes_):
        rows.append({
            "block": i,
            "width": size,
            "relative_error": float(errors[i]),
            "explained_variance": float(explained[i].sum())
        })

    _write_rows(path, ["block", "width", "relative_error", "explained_variance"], rows)


def save_results_csv(
    results: List[MethodResult],
    path: str
) -> None:
    """
    Save benchmark results to CSV.

    Args:
        results: List of MethodResult.
        path: Output CSV path.
    """
    rows = results_to_dict(results)
    if not rows:
        return
    _write_rows(path, list(rows[0].keys()), rows)


def load_results_csv(path: str) -> List[Dict[str, Any]]:
    """
    Load benchmark results from CSV.

    Args:
        path: Input CSV path.

    Returns:
        List of result dictionaries.
    """
    with open(path, "r") as f:
        reader = csv.DictReader(f)
        return list(reader)


def save_config(config: Dict[str, Any], path: str) -> None:
    """
    Save configuration to JSON.

    Args:
        config: Configuration dictionary.
        path: Output JSON path.
    """
    ensure_dir(os.path.dirname(path) or ".")

    with open(path, "w") as f:
        json.dump(config, f, indent=2, default=str)


def load_config(path: str) -> Dict[str, Any]:
    """
    Load configuration from JSON.

    Args:
        path: Input JSON path.

    Returns:
        Configuration dictionary.
    """
    with open(path, "r") as f:
        return json.load(f)


def create_summary_report(
    model: CPCA,
    config: Dict[str, Any],
    output_dir: Optional[str] = None
) -> str:
    """
    Create a summary report of a fit as text.

    Args:
        model: Fitted CPCA model.
        config: Configuration used.
        output_dir: Directory where results are saved, if any.

    Returns:
        Summary text.
    """
    loadings = model.get_loadings()
    errors = model.get_data_by_blocks().relative_error
    explained = explained_variance_ratio(model)

    lines = [
        "Consensus PCA Report",
        "=" * 40,
        "",
        "Configuration:",
        f"  Center: {config.get('center', 'N/A')}",
        f"  Scale: {config.get('scale', 'N/A')}",
        f"  Method: {config.get('method', 'N/A')}",
        f"  Stop: {config.get('stop', 'N/A')}",
        f"  Blocks: {partition_label(model.block_sizes_)}",
        f"  Components: {model.n_components_}",
        "",
        "Components:",
        "-" * 40
    ]

    for k in range(model.n_components_):
        lines.append(
            f"  {k:>3}  eigenvalue={loadings.eigenvalues[k]:.6f}  "
            f"explained={explained[k]:.4f}  residual={model.residual_norms_[k]:.3e}"
        )

    lines.extend(["", "Blocks:", "-" * 40])
    for i, size in enumerate(model.block_sizes_):
        lines.append(f"  block {i} (width {size}): relative error {errors[i]:.6f}")

    if output_dir:
        lines.extend([
            "",
            "-" * 40,
            f"Output files in: {output_dir}",
            "  - superscores.csv: Superscores per observation",
            "  - loadings.csv: Super-loadings and eigenvectors",
            "  - block_errors.csv: Reconstruction error per block",
            "  - config.json: Options used for the fit"
        ])

    return "\n".join(lines)
