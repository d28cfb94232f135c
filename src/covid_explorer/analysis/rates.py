"""
Rate calculator: numerator / denominator x 100, guarded against bad denominators.

Every rate in the project goes through `rate_pct` (Python) or `sql_rate_pct`
(DuckDB). Both return null when the denominator is zero, negative or missing,
so a location with population 0 or a day with 0 cases yields no rate instead
of an error.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, TypeVar

from covid_explorer.utils.config import EXCLUDE_AGGREGATE_ROWS

from .schemas import CaseRecord, DeathRateRow, InfectionRateRow

R = TypeVar("R")


def rate_pct(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """Return 100 * numerator / denominator, or None when the ratio is undefined."""
    if numerator is None or denominator is None or denominator <= 0:
        return None
    return 100.0 * numerator / denominator


def sql_rate_pct(numerator: str, denominator: str) -> str:
    """SQL fragment for `rate_pct` over two column expressions."""
    return (
        f"CASE WHEN {denominator} > 0 "
        f"THEN 100.0 * CAST({numerator} AS DOUBLE) / {denominator} "
        f"ELSE NULL END"
    )


def country_rows(records: Iterable[R], exclude_aggregates: Optional[bool] = None) -> List[R]:
    """
    Drop continent/world aggregate rows (continent is None) when requested.

    Args:
        records: Rows carrying a `continent` attribute.
        exclude_aggregates: Filter flag; None falls back to EXCLUDE_AGGREGATE_ROWS.
    """
    if exclude_aggregates is None:
        exclude_aggregates = EXCLUDE_AGGREGATE_ROWS
    if not exclude_aggregates:
        return list(records)
    return [r for r in records if getattr(r, "continent", None) is not None]


def death_rates(
    cases: Iterable[CaseRecord],
    *,
    location_contains: Optional[str] = None,
    exclude_aggregates: Optional[bool] = None,
) -> List[DeathRateRow]:
    """
    Death percentage (total_deaths / total_cases) per row, ordered by location, date.

    Args:
        cases: Case records.
        location_contains: Optional case-insensitive substring filter on location.
        exclude_aggregates: Drop continent-level rows (None = config default).
    """
    needle = location_contains.lower() if location_contains else None
    out = [
        DeathRateRow(
            location=c.location,
            date=c.date,
            total_cases=c.total_cases,
            total_deaths=c.total_deaths,
            death_percentage=rate_pct(c.total_deaths, c.total_cases),
        )
        for c in country_rows(cases, exclude_aggregates)
        if needle is None or needle in c.location.lower()
    ]
    return sorted(out, key=lambda r: (r.location, r.date))


def infection_rates(
    cases: Iterable[CaseRecord],
    *,
    exclude_aggregates: Optional[bool] = None,
) -> List[InfectionRateRow]:
    """Percent of population infected (total_cases / population) per row."""
    out = [
        InfectionRateRow(
            location=c.location,
            date=c.date,
            population=c.population,
            total_cases=c.total_cases,
            percent_population_infected=rate_pct(c.total_cases, c.population),
        )
        for c in country_rows(cases, exclude_aggregates)
    ]
    return sorted(out, key=lambda r: (r.location, r.date))
