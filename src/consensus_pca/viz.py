# Author: Emrullah Erce Dutkan
"""
Visualization utilities for consensus PCA.

This module provides plotting functions for:
- Superscore scatter plots
- Block loadings per component
- Explained variance per block and component
- Benchmark comparisons
"""

from typing import List, Optional, Dict, Sequence
import os

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .cpca import CPCA
from .benchmark import MethodResult
from .metrics import explained_variance_by_block


def setup_style() -> None:
    """Configure matplotlib style for clean plots."""
    plt.style.use("seaborn-v0_8-whitegrid")
    plt.rcParams.update({
        "figure.figsize": (10, 6),
        "font.size": 11,
        "axes.labelsize": 12,
        "axes.titlesize": 13,
        "legend.fontsize": 10,
        "lines.linewidth": 1.5,
        "lines.markersize": 6
    })


def _finish(fig: Figure, save_path: Optional[str], show: bool) -> Figure:
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    if show:
        plt.show()
    else:
        plt.close(fig)

    return fig


def plot_superscores(
    model: CPCA,
    components: Sequence[int] = (0, 1),
    labels: Optional[np.ndarray] = None,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """
    Scatter two superscores against each other.

    Args:
        model: Fitted CPCA model.
        components: Pair of component indices for the x and y axes.
        labels: Optional class labels used to color the points.
        title: Plot title.
        save_path: Path to save figure.
        show: Whether to display the plot.

    Returns:
        Matplotlib figure.
    """
    setup_style()
    fig, ax = plt.subplots()

    scores = model.get_super_scores()
    cx, cy = components
    y = scores[:, cy] if cy < scores.shape[1] else np.zeros(scores.shape[0])

    if labels is None:
        ax.scatter(scores[:, cx], y, s=20)
    else:
        for label in np.unique(labels):
            mask = labels == label
            ax.scatter(scores[mask, cx], y[mask], s=20, label=str(label))
        ax.legend(loc="best")

    ax.set_xlabel(f"Superscore {cx}")
    ax.set_ylabel(f"Superscore {cy}")
    ax.set_title(title or "Superscores")

    return _finish(fig, save_path, show)


def plot_block_loadings(
    model: CPCA,
    component: int = 0,
    feature_names: Optional[Sequence[str]] = None,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """
    Bar chart of one component's loadings, colored by block.

    Args:
        model: Fitted CPCA model.
        component: Component index.
        feature_names: Optional names of the data columns.
        title: Plot title.
        save_path: Path to save figure.
        show: Whether to display the plot.

    Returns:
        Matplotlib figure.
    """
    setup_style()
    fig, ax = plt.subplots()

    block_loadings = model.get_loadings().block_loadings
    colors = plt.cm.tab10.colors

    start = 0
    for i, loading in enumerate(block_loadings):
        x = np.arange(start, start + loading.shape[0])
        ax.bar(x, loading[:, component], color=colors[i % len(colors)], label=f"block {i}")
        start += loading.shape[0]

    if feature_names is not None:
        ax.set_xticks(np.arange(start))
        ax.set_xticklabels(feature_names, rotation=45, ha="right")

    ax.axhline(0, color="black", linewidth=0.8)
    ax.set_xlabel("Variable")
    ax.set_ylabel("Loading")
    ax.set_title(title or f"Block loadings, component {component}")
    ax.legend(loc="best")

    return _finish(fig, save_path, show)


def plot_explained_variance(
    model: CPCA,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """
    Stacked bars of the variance each component explains in each block.

    Args:
        model: Fitted CPCA model.
        title: Plot title.
        save_path: Path to save figure.
        show: Whether to display.

    Returns:
        Matplotlib figure.
    """
    setup_style()
    fig, ax = plt.subplots()

    ratios = explained_variance_by_block(model)
    n_blocks, n_components = ratios.shape
    x = np.arange(n_blocks)
    colors = plt.cm.viridis(np.linspace(0.2, 0.8, n_components))

    bottom = np.zeros(n_blocks)
    for k in range(n_components):
        ax.bar(x, ratios[:, k], 0.6, bottom=bottom, color=colors[k], label=f"t{k}")
        bottom += ratios[:, k]

    ax.set_xticks(x)
    ax.set_xticklabels([f"block {i}" for i in range(n_blocks)])
    ax.set_ylabel("Explained variance ratio")
    ax.set_ylim(0, 1.05)
    ax.set_title(title or "Explained variance by block")
    ax.legend(loc="best")

    return _finish(fig, save_path, show)


def plot_benchmark(
    results: List[MethodResult],
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """
    Bar charts comparing benchmark runs on error and runtime.

    Args:
        results: List of MethodResult.
        title: Plot title.
        save_path: Path to save figure.
        show: Whether to display.

    Returns:
        Matplotlib figure.
    """
    setup_style()
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))

    methods = [r.method for r in results]
    x = np.arange(len(methods))
    colors = plt.cm.viridis(np.linspace(0.2, 0.8, len(methods)))

    panels = [
        ("Mean relative error", [r.mean_relative_error for r in results]),
        ("Runtime (s)", [r.runtime_seconds for r in results]),
    ]

    for ax, (label, values) in zip(axes, panels):
        bars = ax.bar(x, values, 0.6, color=colors)
        ax.set_ylabel(label)
        ax.set_xticks(x)
        ax.set_xticklabels(methods, rotation=45, ha="right")

        for bar, val in zip(bars, values):
            ax.annotate(
                f"{val:.2e}",
                xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                xytext=(0, 3),
                textcoords="offset points",
                ha="center",
                va="bottom",
                fontsize=8
            )

    if title:
        fig.suptitle(title, fontsize=14)

    return _finish(fig, save_path, show)


def create_report_figures(
    model: CPCA,
    output_dir: str,
    labels: Optional[np.ndarray] = None
) -> Dict[str, str]:
    """
    Create all report figures for a fitted model and save them.

    Args:
        model: Fitted CPCA model.
        output_dir: Directory to save figures.
        labels: Optional class labels for the superscore plot.

    Returns:
        Dictionary mapping figure names to file paths.
    """
    os.makedirs(output_dir, exist_ok=True)

    paths = {}

    path = os.path.join(output_dir, "superscores.png")
    plot_superscores(model, labels=labels, save_path=path, show=False)
    paths["superscores"] = path

    path = os.path.join(output_dir, "block_loadings.png")
    plot_block_loadings(model, save_path=path, show=False)
    paths["block_loadings"] = path

    path = os.path.join(output_dir, "explained_variance.png")
    plot_explained_variance(model, save_path=path, show=False)
    paths["explained_variance"] = path

    return paths
