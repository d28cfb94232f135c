"""
Re-useable fixtures for tests.

`make_warehouse` writes the two source tables into a throwaway DuckDB file,
the way the external warehouse would have populated them.
"""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Callable, Iterable, Optional

import duckdb
import pandas as pd
import pytest

from covid_explorer.analysis.schemas import CaseRecord, VaccinationRecord
from covid_explorer.utils.config import CASES_TABLE, SCHEMA_SOURCE, VACCINATIONS_TABLE

START = dt.date(2021, 1, 1)


def day(offset: int) -> dt.date:
    return START + dt.timedelta(days=offset)


def case(
    location: str,
    offset: int,
    *,
    continent: Optional[str] = "Testcontinent",
    population: Optional[int] = 1000,
    total_cases: Optional[int] = None,
    new_cases: Optional[int] = None,
    total_deaths: Optional[int] = None,
    new_deaths: Optional[int] = None,
) -> CaseRecord:
    return CaseRecord(
        location=location,
        date=day(offset),
        continent=continent,
        population=population,
        total_cases=total_cases,
        new_cases=new_cases,
        total_deaths=total_deaths,
        new_deaths=new_deaths,
    )


def vac(location: str, offset: int, new_vaccinations: Optional[int]) -> VaccinationRecord:
    return VaccinationRecord(location=location, date=day(offset), new_vaccinations=new_vaccinations)


def write_sources(
    path: Path,
    cases: Iterable[CaseRecord],
    vaccinations: Iterable,
    *,
    vaccination_type: str = "BIGINT",
) -> None:
    """(Re)create the source tables. `vaccinations` may hold raw tuples for malformed data."""
    con = duckdb.connect(str(path))
    con.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA_SOURCE};")
    con.execute(
        f"""
        CREATE OR REPLACE TABLE {SCHEMA_SOURCE}.{CASES_TABLE} (
          location VARCHAR, date DATE, continent VARCHAR, population BIGINT,
          total_cases BIGINT, new_cases BIGINT, total_deaths BIGINT, new_deaths BIGINT
        );
        """
    )
    con.execute(
        f"""
        CREATE OR REPLACE TABLE {SCHEMA_SOURCE}.{VACCINATIONS_TABLE} (
          location VARCHAR, date DATE, new_vaccinations {vaccination_type}
        );
        """
    )
    case_rows = [
        (c.location, c.date, c.continent, c.population, c.total_cases, c.new_cases, c.total_deaths, c.new_deaths)
        for c in cases
    ]
    vac_rows = [
        (v.location, v.date, v.new_vaccinations) if isinstance(v, VaccinationRecord) else tuple(v)
        for v in vaccinations
    ]
    if case_rows:
        con.executemany(f"INSERT INTO {SCHEMA_SOURCE}.{CASES_TABLE} VALUES (?, ?, ?, ?, ?, ?, ?, ?)", case_rows)
    if vac_rows:
        con.executemany(f"INSERT INTO {SCHEMA_SOURCE}.{VACCINATIONS_TABLE} VALUES (?, ?, ?)", vac_rows)
    con.close()


@pytest.fixture(scope="session", autouse=True)
def pandas_terminal_width():
    pd.set_option("display.width", 120)
    pd.set_option("display.max_columns", 1000)


@pytest.fixture
def make_warehouse(tmp_path) -> Callable[..., Path]:
    path = tmp_path / "warehouse.duckdb"

    def _make(cases, vaccinations, **kwargs) -> Path:
        write_sources(path, cases, vaccinations, **kwargs)
        return path

    return _make


@pytest.fixture
def testland():
    """Scenario A: one location, population 1000, daily vaccinations [100, null, 50]."""
    cases = [case("Testland", i, total_cases=10 * (i + 1), new_cases=10) for i in range(3)]
    vaccinations = [vac("Testland", 0, 100), vac("Testland", 1, None), vac("Testland", 2, 50)]
    return cases, vaccinations


@pytest.fixture
def world_sample():
    """Two countries on two continents, plus a 'World' aggregate row set."""
    cases = [
        case("United States", 0, continent="North America", population=330, total_cases=10, new_cases=10, total_deaths=None, new_deaths=0),
        case("United States", 1, continent="North America", population=330, total_cases=20, new_cases=10, total_deaths=5, new_deaths=5),
        case("United States", 2, continent="North America", population=330, total_cases=33, new_cases=13, total_deaths=10, new_deaths=5),
        case("France", 0, continent="Europe", population=67, total_cases=0, new_cases=0, total_deaths=1, new_deaths=1),
        case("France", 1, continent="Europe", population=67, total_cases=4, new_cases=4, total_deaths=2, new_deaths=1),
        case("World", 0, continent=None, population=8000, total_cases=10, new_cases=10, total_deaths=1, new_deaths=1),
        case("World", 1, continent=None, population=8000, total_cases=24, new_cases=14, total_deaths=7, new_deaths=6),
    ]
    vaccinations = [
        vac("United States", 0, 3),
        vac("United States", 1, None),
        vac("United States", 2, 30),
        vac("France", 0, 7),
        vac("France", 1, 7),
        vac("World", 0, 10),
        vac("World", 1, 37),
    ]
    return cases, vaccinations
