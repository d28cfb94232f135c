from __future__ import annotations

import logging
import os
from pathlib import Path

import duckdb as ddb
import pandas as pd

from covid_explorer.analysis.errors import DataQualityError
from covid_explorer.utils.config import DUCKDB_PATH

log = logging.getLogger(__name__)


def resolve_db_path() -> Path:
    path = Path(os.getenv("DUCKDB_PATH", DUCKDB_PATH))
    if not path.is_absolute():
        # ascend to repo root by pyproject.toml
        cur = Path.cwd()
        while cur != cur.parent and not (cur / "pyproject.toml").exists():
            cur = cur.parent
        path = cur / path
    return path


class SQLClient:
    """Minimal DuckDB read-only client over the warehouse file."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path) if db_path else resolve_db_path()
        if not self.db_path.exists():
            raise FileNotFoundError(f"DuckDB not found at {self.db_path}")
        self.con = ddb.connect(str(self.db_path), read_only=True)

    def df(self, sql: str, params: dict | None = None) -> pd.DataFrame:
        """
        Run a query and return the result as a DataFrame.

        Raises:
            DataQualityError: If a source value fails a strict numeric/date cast.
        """
        try:
            cur = self.con.execute(sql, params) if params else self.con.execute(sql)
            return cur.df()
        except ddb.ConversionException as exc:
            log.error("conversion_failed db=%s error=%s", self.db_path, exc)
            raise DataQualityError(f"Malformed source value: {exc}") from exc

    def close(self):
        self.con.close()

    def __enter__(self) -> "SQLClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
