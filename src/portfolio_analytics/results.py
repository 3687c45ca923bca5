"""Persisting fitted estimates (joblib pickle plus a human-readable JSON sidecar)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import joblib
from loguru import logger


def save_estimates(obj: Any, name: str, output_dir: Path, metadata: Optional[dict[str, Any]] = None) -> Path:
    """
    Writes ``<name>.pkl`` and ``<name>_metadata.json`` to ``output_dir``.

    Returns:
        Path to the pickle
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    pickle_path = output_dir / f"{name}.pkl"
    joblib.dump(obj, pickle_path)
    with open(output_dir / f"{name}_metadata.json", "w") as f:
        json.dump(metadata or {}, f, indent=2, default=str)

    logger.info(f"Saved {name} to {pickle_path}")
    return pickle_path


def load_estimates(name: str, output_dir: Path) -> tuple[Any, dict[str, Any]]:
    output_dir = Path(output_dir)
    obj = joblib.load(output_dir / f"{name}.pkl")
    with open(output_dir / f"{name}_metadata.json") as f:
        metadata = json.load(f)
    return obj, metadata
