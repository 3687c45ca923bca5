from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

def resolve_project_root() -> Path:
    """PORTFOLIO_ROOT if set, else the source checkout, else the working directory."""
    override = os.getenv("PORTFOLIO_ROOT")
    if override:
        return Path(override)
    # parents[2] is only the repo root for an editable install
    source_root = Path(__file__).resolve().parents[2]
    if (source_root / "pyproject.toml").exists():
        return source_root
    return Path.cwd()


PROJECT_ROOT = resolve_project_root()

DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
FIGURES_DIR = PROJECT_ROOT / "figures"
MODELS_DIR = PROJECT_ROOT / "models"
LOG_DIR = PROJECT_ROOT / "logs"

# ---------------------------------------------------------------------------
# Datasets
# ---------------------------------------------------------------------------

BLUEPRINTY_FILE = RAW_DATA_DIR / "blueprinty.csv"
AIRBNB_FILE = RAW_DATA_DIR / "airbnb.csv"
KARLAN_LIST_FILE = RAW_DATA_DIR / "karlan_list_2007.dta"
CONJOINT_FILE = RAW_DATA_DIR / "conjoint_data.csv"
PENGUINS_FILE = RAW_DATA_DIR / "palmer_penguins.csv"

# ---------------------------------------------------------------------------
# Reproducibility and output
# ---------------------------------------------------------------------------

RANDOM_STATE: int = int(os.getenv("PORTFOLIO_RANDOM_STATE", "42"))
FIGURE_DPI: int = 300
