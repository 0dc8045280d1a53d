# Author: Emrullah Erce Dutkan
"""
Block partitioning of a data matrix into contiguous column groups.

A partition is described either by an explicit sequence of block widths
or by a single slice width. With a slice width W over C columns there are
ceil(C / W) blocks; all but the last have width W and the last one takes
whatever is left.
"""

from typing import List, Optional, Sequence, Union
import numbers

import numpy as np

from .exceptions import ConfigurationError


BlockSpec = Union[int, Sequence[int], None]


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def resolve_block_sizes(n_columns: int, blocks: BlockSpec = None) -> List[int]:
    """
    Turn a block specification into a list of block widths.

    Args:
        n_columns: Total number of columns in the data.
        blocks: None (one block), a slice width, or a sequence of widths.

    Returns:
        List of positive widths summing to n_columns.

    Raises:
        ConfigurationError: If the specification does not cover the
            columns exactly.
    """
    if blocks is None:
        return [n_columns]

    if _is_int(blocks):
        width = int(blocks)
        if width < 1 or width > n_columns:
            raise ConfigurationError(
                f"Slice width must be between 1 and {n_columns}, got {width}",
                operation="partition"
            )
        n_blocks = -(-n_columns // width)
        sizes = [width] * (n_blocks - 1)
        sizes.append(n_columns - width * (n_blocks - 1))
        return sizes

    try:
        sizes = list(blocks)
    except TypeError:
        raise ConfigurationError(
            f"Blocks must be an int or a sequence of ints, got {type(blocks).__name__}",
            operation="partition"
        )

    if not sizes:
        raise ConfigurationError("Block sequence is empty", operation="partition")

    for i, size in enumerate(sizes):
        if not _is_int(size) or size < 1:
            raise ConfigurationError(
                f"Block width must be a positive int, got {size!r}",
                block=i,
                operation="partition"
            )

    sizes = [int(s) for s in sizes]
    if sum(sizes) != n_columns:
        raise ConfigurationError(
            f"Block widths sum to {sum(sizes)} but data has {n_columns} columns",
            operation="partition"
        )
    return sizes


def block_offsets(sizes: Sequence[int]) -> List[int]:
    """Starting column of each block, plus the end column as the last entry."""
    return [0] + np.cumsum(sizes).astype(int).tolist()


def split_blocks(X: np.ndarray, sizes: Sequence[int]) -> List[np.ndarray]:
    """
    Split X column-wise into independent block copies.

    Args:
        X: Data matrix of shape (n_rows, sum(sizes)).
        sizes: Block widths.

    Returns:
        List of arrays, block i of shape (n_rows, sizes[i]).
    """
    offsets = block_offsets(sizes)
    if offsets[-1] != X.shape[1]:
        raise ConfigurationError(
            f"Block widths sum to {offsets[-1]} but data has {X.shape[1]} columns",
            operation="partition"
        )
    return [
        X[:, offsets[i]:offsets[i + 1]].copy()
        for i in range(len(sizes))
    ]


def concatenate_blocks(blocks: Sequence[np.ndarray]) -> np.ndarray:
    """Reassemble blocks side by side into one matrix."""
    return np.hstack(blocks)


def describe_partition(sizes: Sequence[int], names: Optional[Sequence[str]] = None) -> str:
    """One-line human readable description of a partition."""
    offsets = block_offsets(sizes)
    parts = []
    for i, size in enumerate(sizes):
        label = names[i] if names is not None else f"block{i}"
        parts.append(f"{label}[{offsets[i]}:{offsets[i + 1]}]")
    return ", ".join(parts)
