"""
Global configuration for covid_explorer.

Centralizes paths, schema/table names, and tunable parameters.
"""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: .../covid_explorer repo
PROJECT_ROOT = Path(__file__).resolve().parents[3]

# does not override variables already exported
load_dotenv(dotenv_path=PROJECT_ROOT / ".env", override=False, encoding="utf-8")


def _bool_env(name: str, default: bool) -> bool:
    """Read a boolean flag ('1', 'true', 'yes', 'on' are truthy)."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Data
DATA_DIR = PROJECT_ROOT / "data"
REPORTS_DIR = Path(os.getenv("REPORTS_DIR", PROJECT_ROOT / "reports"))
DUCKDB_PATH = Path(os.getenv("DUCKDB_PATH", DATA_DIR / "covid.duckdb"))

# Schemas
SCHEMA_SOURCE = os.getenv("SCHEMA_SOURCE", "raw")
SCHEMA_GOLD = os.getenv("SCHEMA_GOLD", "gold")

# Tables (without schema)
CASES_TABLE = os.getenv("CASES_TABLE", "covid_deaths")
VACCINATIONS_TABLE = os.getenv("VACCINATIONS_TABLE", "covid_vaccinations")
ROLLING_TABLE = os.getenv("ROLLING_TABLE", "percent_population_vaccinated_snapshot")
ROLLING_VIEW = os.getenv("ROLLING_VIEW", "percent_population_vaccinated")

# Parameters (can be overridden via env)
# Rows with continent IS NULL are continent/world aggregates ("World", "European Union").
EXCLUDE_AGGREGATE_ROWS = _bool_env("EXCLUDE_AGGREGATE_ROWS", True)
DEATH_RATE_LOCATION_PATTERN = os.getenv("DEATH_RATE_LOCATION_PATTERN", "%states%")
REPORT_TOP_N = int(os.getenv("REPORT_TOP_N", "10"))
