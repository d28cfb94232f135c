"""
Materialization of the rolling vaccination result as named, queryable artifacts.

Two strategies over the same SELECT:
- eager: gold.<ROLLING_TABLE>, a stored snapshot rebuilt by `refresh_rolling_table`.
  The new snapshot is built in a temp table and swapped in within one
  transaction, so readers see the old or the new rows, never a mix.
- lazy: gold.<ROLLING_VIEW>, a view recomputed on every read.

Both are derived artifacts; recomputation is the only refresh mechanism.
"""
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional

import duckdb
import pandas as pd

from covid_explorer.analysis.errors import DataQualityError, DuplicateKeyError
from covid_explorer.analysis.schemas import RollingVaccinationRow
from covid_explorer.utils.config import (
    DUCKDB_PATH,
    EXCLUDE_AGGREGATE_ROWS,
    ROLLING_TABLE,
    ROLLING_VIEW,
    SCHEMA_GOLD,
)
from covid_explorer.utils.duck import connect
from covid_explorer.utils.io import frame_records, parse_records

from . import queries as Q
from .sql_client import SQLClient

log = logging.getLogger(__name__)

ARTIFACT_COLUMNS = [
    "continent",
    "location",
    "date",
    "population",
    "new_vaccinations",
    "rolling_people_vaccinated",
    "vaccination_percentage",
]


def _resolve(exclude_aggregates: Optional[bool]) -> bool:
    return EXCLUDE_AGGREGATE_ROWS if exclude_aggregates is None else exclude_aggregates


def check_unique_keys(con: duckdb.DuckDBPyConnection) -> None:
    """
    Reject source series with repeated (location, date) keys.

    Raises:
        DuplicateKeyError: Naming the first offending series.
    """
    for series, sql in (
        ("cases", Q.SQL_DUPLICATE_CASE_KEYS),
        ("vaccinations", Q.SQL_DUPLICATE_VACCINATION_KEYS),
    ):
        try:
            rows = con.execute(sql).fetchall()
        except duckdb.ConversionException as exc:
            raise DataQualityError(f"Malformed date in {series}: {exc}") from exc
        if rows:
            raise DuplicateKeyError(series, [(r[0], r[1]) for r in rows])


def refresh_rolling_table(
    con: duckdb.DuckDBPyConnection,
    *,
    exclude_aggregates: Optional[bool] = None,
) -> int:
    """
    Recompute the eager snapshot and swap it in atomically.

    Args:
        con: Writable DuckDB connection.
        exclude_aggregates: Drop continent-level rows (None = config default).

    Returns:
        Number of rows in the new snapshot.

    Raises:
        DuplicateKeyError: If a source series repeats a key.
        DataQualityError: If a source value fails a strict cast. The previous
            snapshot is left untouched.
    """
    t0 = time.perf_counter()
    check_unique_keys(con)
    select_sql = Q.rolling_vaccinations_sql(_resolve(exclude_aggregates))
    target = f"{SCHEMA_GOLD}.{ROLLING_TABLE}"
    tmp = f"{target}_tmp"

    con.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA_GOLD};")
    con.execute("BEGIN TRANSACTION;")
    try:
        con.execute(f"DROP TABLE IF EXISTS {tmp};")
        con.execute(f"CREATE TABLE {tmp} AS\n{select_sql};")
        con.execute(f"DROP TABLE IF EXISTS {target};")
        con.execute(f"ALTER TABLE {tmp} RENAME TO {ROLLING_TABLE};")
        con.execute("COMMIT;")
    except duckdb.ConversionException as exc:
        con.execute("ROLLBACK;")
        log.error("refresh_failed table=%s error=%s", target, exc)
        raise DataQualityError(f"Malformed source value: {exc}") from exc
    except Exception:
        con.execute("ROLLBACK;")
        raise

    n = con.execute(f"SELECT COUNT(*) FROM {target};").fetchone()[0]
    log.info("refresh_rolling_table table=%s rows=%d ms=%d", target, n, int((time.perf_counter() - t0) * 1000))
    return n


def create_rolling_view(
    con: duckdb.DuckDBPyConnection,
    *,
    exclude_aggregates: Optional[bool] = None,
) -> str:
    """
    Create or replace the lazy view; its rows are recomputed on every read.

    Returns:
        Fully-qualified view name.
    """
    check_unique_keys(con)
    target = f"{SCHEMA_GOLD}.{ROLLING_VIEW}"
    con.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA_GOLD};")
    con.execute(
        f"CREATE OR REPLACE VIEW {target} AS\n{Q.rolling_vaccinations_sql(_resolve(exclude_aggregates))};"
    )
    log.info("create_rolling_view view=%s", target)
    return target


def build_artifacts(db_path=DUCKDB_PATH, *, exclude_aggregates: Optional[bool] = None) -> Dict[str, int]:
    """
    Build both artifacts (eager table + lazy view) in the warehouse file.

    Returns:
        Mapping artifact name -> row count.
    """
    with connect(db_path, read_only=False, schema=SCHEMA_GOLD) as con:
        n_table = refresh_rolling_table(con, exclude_aggregates=exclude_aggregates)
        view = create_rolling_view(con, exclude_aggregates=exclude_aggregates)
        n_view = con.execute(f"SELECT COUNT(*) FROM {view};").fetchone()[0]
    return {ROLLING_TABLE: n_table, ROLLING_VIEW: n_view}


def read_artifact(
    sql: SQLClient,
    name: str = ROLLING_VIEW,
    *,
    location: Optional[str] = None,
) -> pd.DataFrame:
    """
    Read all rows of an artifact, or only the rows of one location.

    Args:
        sql: Read-only client.
        name: ROLLING_TABLE (eager snapshot) or ROLLING_VIEW (lazy).
        location: Optional location key.

    Returns:
        DataFrame with ARTIFACT_COLUMNS, ordered by location, date.
    """
    if name not in (ROLLING_TABLE, ROLLING_VIEW):
        raise ValueError(f"Unknown artifact: {name}")
    if name == ROLLING_VIEW:
        # the view reads live sources, so key integrity is re-checked at read time
        check_unique_keys(sql.con)

    cols = ", ".join(ARTIFACT_COLUMNS)
    query = f"SELECT {cols} FROM {SCHEMA_GOLD}.{name}"
    if location is None:
        return sql.df(f"{query} ORDER BY location, date;")
    return sql.df(f"{query} WHERE location = $location ORDER BY date;", {"location": location})


def rows_from_frame(df: pd.DataFrame) -> List[RollingVaccinationRow]:
    """Typed rows from an artifact DataFrame."""
    return parse_records(RollingVaccinationRow, frame_records(df))
