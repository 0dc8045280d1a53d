# Author: Emrullah Erce Dutkan
"""
Configuration management for consensus PCA fits.

This module provides dataclasses and utilities for managing fit and
benchmark options, with defaults that reproduce a classical PCA when no
block partition is given.
"""

from typing import List, Optional, Literal, Sequence, Union
from dataclasses import dataclass, field, asdict


InitMethod = Literal["ones", "evd"]
StopCriterion = Literal["components", "norm"]

INIT_METHODS = ("ones", "evd")
STOP_CRITERIA = ("components", "norm")


@dataclass
class NipalsConfig:
    """Configuration for the per-block NIPALS extraction."""
    tol: float = 1e-12
    max_iter: int = 1000


@dataclass
class CPCAConfig:
    """
    Complete configuration for a consensus PCA fit.

    blocks is either None (the whole dataset as one block), a slice
    width, or a sequence of block widths. n_components and
    max_components default to the number of columns when left as None.
    """
    center: bool = True
    scale: bool = False
    method: InitMethod = "ones"
    blocks: Union[int, List[int], None] = None
    n_components: Optional[int] = None

    # Termination
    stop: StopCriterion = "components"
    tolerance: float = 1e-10
    max_components: Optional[int] = None

    # Execution
    n_jobs: int = 1
    nipals: NipalsConfig = field(default_factory=NipalsConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "CPCAConfig":
        """Create from dictionary."""
        d = dict(d)
        if "nipals" in d and isinstance(d["nipals"], dict):
            d["nipals"] = NipalsConfig(**d["nipals"])
        if isinstance(d.get("blocks"), tuple):
            d["blocks"] = list(d["blocks"])
        return cls(**d)


def get_default_config() -> CPCAConfig:
    """Get default configuration: centered, unscaled, one block."""
    return CPCAConfig()


def get_correlation_config(blocks: Union[int, Sequence[int], None] = None) -> CPCAConfig:
    """Get configuration for correlation-based CPCA (centered and scaled)."""
    return CPCAConfig(
        center=True,
        scale=True,
        blocks=list(blocks) if isinstance(blocks, (list, tuple)) else blocks
    )


def get_norm_stop_config(tolerance: float = 1e-10) -> CPCAConfig:
    """Get configuration that stops once the residual norm drops below tolerance."""
    return CPCAConfig(stop="norm", tolerance=tolerance)


# Default output paths
DEFAULT_REPORTS_DIR = "reports"
