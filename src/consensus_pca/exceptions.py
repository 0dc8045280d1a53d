# Author: Emrullah Erce Dutkan
"""
Exception hierarchy for consensus PCA.

Every error raised by the engine derives from CPCAError and carries the
component index, block index and operation where they are known, so a
failed fit can be traced to the exact step that broke.
"""

from typing import Optional


class CPCAError(Exception):
    """Base class for all consensus PCA errors."""

    def __init__(
        self,
        message: str,
        component: Optional[int] = None,
        block: Optional[int] = None,
        operation: Optional[str] = None
    ):
        self.message = message
        self.component = component
        self.block = block
        self.operation = operation
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.component is not None:
            context.append(f"component={self.component}")
        if self.block is not None:
            context.append(f"block={self.block}")
        if self.operation is not None:
            context.append(f"operation={self.operation}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ConfigurationError(CPCAError, ValueError):
    """Invalid options or input shape, raised before any computation."""


class DegenerateBlockError(CPCAError):
    """A block produced a zero or non-finite NIPALS score."""


class NumericalInstabilityError(CPCAError, ArithmeticError):
    """Division by a zero (or non-finite) norm."""


class ConvergenceError(CPCAError):
    """Residual norm did not reach the tolerance within the component cap."""


class NotFittedError(CPCAError, AttributeError):
    """A result accessor was called before fit."""
