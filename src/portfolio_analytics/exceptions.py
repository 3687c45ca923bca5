"""Exceptions raised by the analysis routines."""

from typing import Iterable, Optional


class PortfolioError(Exception):
    """Base class for errors raised by portfolio_analytics."""


class DataSchemaError(PortfolioError):
    """
    Raised when an input table does not have the shape an analysis expects.

    Attributes:
        message: Error description
        source: Dataset or file the table came from
        missing: Required columns that were not found
    """

    def __init__(self, message: str, source: Optional[str] = None, missing: Iterable[str] = ()):
        self.message = message
        self.source = source
        self.missing = list(missing)

        parts = [message]
        if source:
            parts.append(f"Source: {source}")
        if self.missing:
            parts.append(f"Missing columns: {', '.join(self.missing)}")

        super().__init__("\n".join(parts))


class EstimationError(PortfolioError):
    """Raised when an optimizer fails to converge to a maximum likelihood estimate."""

    def __init__(self, message: str, model_name: Optional[str] = None):
        self.message = message
        self.model_name = model_name
        prefix = f"[{model_name}] " if model_name else ""
        super().__init__(f"{prefix}{message}")
