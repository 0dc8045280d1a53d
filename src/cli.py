# Author: Emrullah Erce Dutkan
"""
Command-line interface for consensus PCA.

Provides two main modes:
1. fit: Fit CPCA on a dataset, print a report and save results
2. benchmark: Compare initial superscore methods and block partitions

Usage examples:
    python -m src.cli --mode fit --dataset iris --scale --reports reports/ --plot
    python -m src.cli --mode fit --dataset iris --no-center --blocks 2 --components 4
    python -m src.cli --mode fit --dataset csv --csv data.csv --blocks 3,5,2 --stop norm
    python -m src.cli --mode benchmark --dataset synthetic --blocks 5,10,5 --reports reports/
"""

import argparse
import logging
import os
import sys
import time
from typing import List, Optional, Union

# Add src directory to path for imports
src_dir = os.path.dirname(os.path.abspath(__file__))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from consensus_pca.cpca import CPCA
from consensus_pca.blocks import describe_partition
from consensus_pca.datasets import load_dataset
from consensus_pca.exceptions import CPCAError
from consensus_pca.metrics import pca_agreement
from consensus_pca.benchmark import (
    BenchmarkConfig,
    run_benchmark,
    format_results_table
)
from consensus_pca.io import (
    ensure_dir,
    save_superscores_csv,
    save_loadings_csv,
    save_block_errors_csv,
    save_results_csv,
    save_config,
    create_summary_report
)
from consensus_pca.config import CPCAConfig, NipalsConfig, DEFAULT_REPORTS_DIR


def parse_blocks(blocks_str: Optional[str]) -> Union[int, List[int], None]:
    """Parse "2" as a slice width and "2,3,1" as explicit block widths."""
    if blocks_str is None:
        return None
    parts = [b.strip() for b in blocks_str.split(",") if b.strip()]
    if len(parts) == 1:
        return int(parts[0])
    return [int(b) for b in parts]


def build_config(args: argparse.Namespace) -> CPCAConfig:
    """Build a CPCAConfig from parsed arguments."""
    return CPCAConfig(
        center=not args.no_center,
        scale=args.scale,
        method=args.method,
        blocks=parse_blocks(args.blocks),
        n_components=args.components,
        stop=args.stop,
        tolerance=args.tolerance,
        max_components=args.max_components,
        n_jobs=args.n_jobs,
        nipals=NipalsConfig(tol=args.nipals_tol)
    )


def run_fit_mode(args: argparse.Namespace) -> None:
    """
    Fit CPCA on one dataset and report the result.
    """
    print("=" * 60)
    print(f"Consensus PCA on {args.dataset} dataset")
    print("=" * 60)

    X, suggested_blocks = load_dataset(args.dataset, path=args.csv, seed=args.seed)
    n, d = X.shape
    print(f"Loaded {n} samples with {d} features")

    config = build_config(args)
    if config.blocks is None and suggested_blocks is not None and args.use_dataset_blocks:
        config.blocks = suggested_blocks

    model = CPCA.from_config(config)

    start_time = time.time()
    model.fit(X)
    elapsed = time.time() - start_time

    print(f"Blocks: {describe_partition(model.block_sizes_)}")
    print(f"Fitted {model.n_components_} components in {elapsed:.3f}s")
    print()

    config_dict = config.to_dict()
    print(create_summary_report(model, config_dict, args.reports))

    if len(model.block_sizes_) == 1:
        agreement = pca_agreement(model, X)
        print()
        print("Agreement with batch PCA:")
        print(f"  Eigenvalue error: {agreement['eigenvalue_error']:.3e}")
        print(f"  Loading error: {agreement['loading_error']:.3e}")
        print(f"  Orthogonality error: {agreement['orthogonality_error']:.3e}")

    if args.reports:
        ensure_dir(args.reports)
        save_superscores_csv(model, os.path.join(args.reports, "superscores.csv"))
        save_loadings_csv(model, os.path.join(args.reports, "loadings.csv"))
        save_block_errors_csv(model, os.path.join(args.reports, "block_errors.csv"))
        save_config(config_dict, os.path.join(args.reports, "config.json"))
        print(f"\nReports saved to: {args.reports}/")

    if args.plot:
        from consensus_pca.viz import create_report_figures

        print("\nGenerating plots...")
        figure_dir = args.reports or DEFAULT_REPORTS_DIR
        for name, path in create_report_figures(model, figure_dir).items():
            print(f"  {name}: {path}")


def run_benchmark_mode(args: argparse.Namespace) -> None:
    """
    Compare CPCA configurations on one dataset.
    """
    print("=" * 60)
    print("Consensus PCA Benchmark")
    print("=" * 60)

    X, suggested_blocks = load_dataset(args.dataset, path=args.csv, seed=args.seed)
    print(f"Dataset: {args.dataset} ({X.shape[0]} x {X.shape[1]})")

    partitions = [None]
    blocks = parse_blocks(args.blocks)
    if blocks is not None:
        partitions.append(blocks)
    elif suggested_blocks is not None:
        partitions.append(suggested_blocks)

    config = BenchmarkConfig(
        methods=["ones", "evd"],
        partitions=partitions,
        n_components=args.components,
        center=not args.no_center,
        scale=args.scale,
        n_jobs=args.n_jobs,
        repeats=args.repeats
    )

    print("Running benchmark...")
    start_time = time.time()
    results = run_benchmark(X, config)
    print(f"\nBenchmark complete in {time.time() - start_time:.1f}s")
    print()

    print("Results Summary:")
    print("-" * 72)
    print(format_results_table(results))
    print()

    if args.reports:
        csv_path = os.path.join(args.reports, "benchmark.csv")
        save_results_csv(results, csv_path)
        print(f"Results saved to: {csv_path}")

    if args.plot:
        from consensus_pca.viz import plot_benchmark

        figure_dir = args.reports or DEFAULT_REPORTS_DIR
        ensure_dir(figure_dir)
        path = os.path.join(figure_dir, "benchmark.png")
        plot_benchmark(results, save_path=path, show=False)
        print(f"Plot saved to: {path}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Consensus PCA Engine: multi-block PCA with superscores",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Fit mode:
    python -m src.cli --mode fit --dataset iris --scale --plot

  Block partition by slice width or explicit widths:
    python -m src.cli --mode fit --dataset iris --no-center --blocks 2
    python -m src.cli --mode fit --dataset synthetic --blocks 5,10,5 --method evd

  Benchmark mode:
    python -m src.cli --mode benchmark --dataset synthetic --reports reports/
        """
    )

    parser.add_argument(
        "--mode",
        choices=["fit", "benchmark"],
        default="fit",
        help="Operation mode"
    )

    # Data arguments
    parser.add_argument(
        "--dataset",
        choices=["iris", "synthetic", "csv"],
        default="iris",
        help="Dataset to use"
    )
    parser.add_argument("--csv", type=str, default=None, help="CSV path for --dataset csv")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")

    # Model arguments
    parser.add_argument("--blocks", type=str, default=None,
                        help="Slice width (e.g. 2) or comma-separated block widths (e.g. 2,2)")
    parser.add_argument("--use-dataset-blocks", action="store_true",
                        help="Use the dataset's natural partition when --blocks is not given")
    parser.add_argument("--components", type=int, default=None, help="Number of components")
    parser.add_argument("--method", choices=["ones", "evd"], default="ones",
                        help="Initial superscore method")
    parser.add_argument("--no-center", action="store_true", help="Do not center columns")
    parser.add_argument("--scale", action="store_true", help="Scale columns to unit variance")
    parser.add_argument("--stop", choices=["components", "norm"], default="components",
                        help="Termination criterion")
    parser.add_argument("--tolerance", type=float, default=1e-10,
                        help="Residual norm threshold (--stop norm)")
    parser.add_argument("--max-components", type=int, default=None,
                        help="Component cap (--stop norm)")
    parser.add_argument("--nipals-tol", type=float, default=1e-12, help="NIPALS tolerance")
    parser.add_argument("--n-jobs", type=int, default=1, help="Threads for per-block NIPALS")

    # Benchmark arguments
    parser.add_argument("--repeats", type=int, default=3, help="Fits per configuration (benchmark)")

    # Output arguments
    parser.add_argument("--reports", type=str, default=None, help="Output directory for reports")
    parser.add_argument("--plot", action="store_true", help="Save plots")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s"
        )

    try:
        if args.mode == "fit":
            run_fit_mode(args)
        elif args.mode == "benchmark":
            run_benchmark_mode(args)
    except CPCAError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
