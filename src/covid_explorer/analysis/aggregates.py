"""
Grouped aggregators over case records: max-per-group and sum-per-group.

Null counters never take part in a MAX or SUM. A group whose counter is null
on every row still appears in the output, with a None aggregate.
"""
from __future__ import annotations

from typing import Callable, Dict, Hashable, Iterable, List, Literal, Optional, TypeVar

from .rates import country_rows, rate_pct
from .schemas import CaseRecord, DeathCount, GlobalNumbers, InfectionSummary

R = TypeVar("R")
K = TypeVar("K", bound=Hashable)


def max_per_group(
    records: Iterable[R],
    key: Callable[[R], K],
    value: Callable[[R], Optional[int]],
) -> Dict[K, Optional[int]]:
    """
    Maximum non-null value per group, in first-seen group order.

    Returns:
        Mapping group -> max value (None if the group had only nulls).
    """
    out: Dict[K, Optional[int]] = {}
    for r in records:
        k = key(r)
        v = value(r)
        cur = out.setdefault(k, None)
        if v is not None and (cur is None or v > cur):
            out[k] = v
    return out


def sum_per_group(
    records: Iterable[R],
    key: Callable[[R], K],
    value: Callable[[R], Optional[int]],
) -> Dict[K, int]:
    """Sum of non-null values per group (0 for all-null groups)."""
    out: Dict[K, int] = {}
    for r in records:
        k = key(r)
        out[k] = out.get(k, 0) + (value(r) or 0)
    return out


def _desc_nulls_last(value: Optional[float]) -> tuple:
    return (value is None, -(value or 0))


def highest_infection_rates(
    cases: Iterable[CaseRecord],
    *,
    exclude_aggregates: Optional[bool] = None,
) -> List[InfectionSummary]:
    """
    Locations ranked by highest infection count relative to population.

    Groups by (location, population), mirroring the warehouse query.
    """
    maxima = max_per_group(
        country_rows(cases, exclude_aggregates),
        key=lambda c: (c.location, c.population),
        value=lambda c: c.total_cases,
    )
    out = [
        InfectionSummary(
            location=location,
            population=population,
            highest_infection_count=highest,
            percent_population_infected=rate_pct(highest, population),
        )
        for (location, population), highest in maxima.items()
    ]
    return sorted(out, key=lambda s: (*_desc_nulls_last(s.percent_population_infected), s.location))


def total_death_counts(
    cases: Iterable[CaseRecord],
    *,
    by: Literal["location", "continent"] = "location",
    exclude_aggregates: Optional[bool] = None,
) -> List[DeathCount]:
    """
    Highest cumulative death count per location or continent, ranked descending.

    Continent grouping always drops aggregate rows, since a null continent
    cannot name a group.
    """
    if by not in ("location", "continent"):
        raise ValueError(f"Unsupported grouping: {by!r}")
    if by == "continent":
        exclude_aggregates = True
    maxima = max_per_group(
        country_rows(cases, exclude_aggregates),
        key=lambda c: getattr(c, by),
        value=lambda c: c.total_deaths,
    )
    out = [DeathCount(group=g, total_death_count=v) for g, v in maxima.items()]
    return sorted(out, key=lambda d: (*_desc_nulls_last(d.total_death_count), d.group))


def global_numbers(
    cases: Iterable[CaseRecord],
    *,
    exclude_aggregates: Optional[bool] = None,
) -> GlobalNumbers:
    """Worldwide SUM(new_cases), SUM(new_deaths) and the resulting death percentage."""
    rows = country_rows(cases, exclude_aggregates)
    total_cases = sum_per_group(rows, key=lambda _: "world", value=lambda c: c.new_cases).get("world", 0)
    total_deaths = sum_per_group(rows, key=lambda _: "world", value=lambda c: c.new_deaths).get("world", 0)
    return GlobalNumbers(
        total_cases=total_cases,
        total_deaths=total_deaths,
        death_percentage=rate_pct(total_deaths, total_cases),
    )
