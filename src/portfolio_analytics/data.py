"""Loading and shaping the flat input tables used by the case studies."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd
import polars as pl
from loguru import logger
from numpy.typing import NDArray

from portfolio_analytics.exceptions import DataSchemaError

NULL_VALUES: list[str] = ["NA", ""]


def require_columns(df: pl.DataFrame, columns: Sequence[str], source: str) -> None:
    missing = [column for column in columns if column not in df.columns]
    if missing:
        raise DataSchemaError("Input table is missing required columns", source=source, missing=missing)


def load_csv(path: Path | str, columns: Optional[Sequence[str]] = None) -> pl.DataFrame:
    """Reads a CSV wholesale, treating "NA" and empty strings as nulls."""
    df = pl.read_csv(path, null_values=NULL_VALUES, infer_schema_length=10_000)
    if columns is not None:
        require_columns(df, columns, source=str(path))

    logger.info(f"Loaded {Path(path).name}: {df.shape[0]:,} rows x {df.shape[1]} columns")
    return df


def load_stata(path: Path | str, columns: Optional[Sequence[str]] = None) -> pl.DataFrame:
    """Reads a Stata ``.dta`` table through pandas and hands it over to polars."""
    df = pl.from_pandas(pd.read_stata(path))
    if columns is not None:
        require_columns(df, columns, source=str(path))

    logger.info(f"Loaded {Path(path).name}: {df.shape[0]:,} rows x {df.shape[1]} columns")
    return df


def drop_incomplete(df: pl.DataFrame, columns: Sequence[str]) -> pl.DataFrame:
    """Drops rows with a null in any of ``columns``."""
    cleaned = df.drop_nulls(subset=list(columns))
    lost = df.shape[0] - cleaned.shape[0]
    if lost:
        logger.info(f"Dropped {lost:,} incomplete rows ({lost / df.shape[0] * 100:.1f}%)")
    return cleaned


def add_dummies(df: pl.DataFrame, column: str, reference: Optional[str] = None) -> pl.DataFrame:
    """
    One-hot encodes ``column`` into ``{column}_{level}`` indicator columns.

    The ``reference`` level, if given, is left out so the indicators can sit
    next to an intercept in a design matrix.
    """
    require_columns(df, [column], source="add_dummies")
    encoded = df.to_dummies(columns=[column])

    if reference is not None:
        reference_column = f"{column}_{reference}"
        if reference_column not in encoded.columns:
            raise DataSchemaError(
                f"Reference level {reference!r} not found in column {column!r}",
                source="add_dummies",
                missing=[reference_column],
            )
        encoded = encoded.drop(reference_column)

    return encoded


def design_matrix(
    df: pl.DataFrame, columns: Sequence[str], intercept: bool = True
) -> tuple[NDArray[np.float64], list[str]]:
    """Builds a float design matrix (intercept first) and its column names."""
    require_columns(df, columns, source="design_matrix")

    X = df.select([pl.col(column).cast(pl.Float64) for column in columns]).to_numpy()
    names = list(columns)

    if intercept:
        X = np.column_stack([np.ones(X.shape[0]), X])
        names = ["intercept"] + names

    return X, names
