"""
Rolling accumulator: running vaccination totals per location.

Pipeline
--------
1) Inner-join case and vaccination records on (location, date).
2) Partition the joined rows by location.
3) Sort each partition by date (input order does not matter).
4) Fold a running sum of new_vaccinations (null counted as 0) over each partition.
5) Normalize the running sum by population (null when population <= 0).

Notes
-----
- Keys present in only one series are dropped by the join; they never show up
  in the output.
- A repeated (location, date) in either series is rejected with
  DuplicateKeyError before anything is computed.
- Negative daily corrections are passed through, so the running sum is only
  guaranteed non-decreasing when every daily figure is >= 0.
- Partitions share no state; each one is an independent sort + linear scan,
  O(N log N) overall.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from itertools import accumulate
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import DuplicateKeyError
from .rates import country_rows, rate_pct
from .schemas import CaseRecord, RollingVaccinationRow, VaccinationRecord

log = logging.getLogger(__name__)

JoinedRow = Tuple[CaseRecord, VaccinationRecord]


def _index_by_key(records: Iterable, series: str) -> Dict[tuple, object]:
    """Map (location, date) -> record, rejecting duplicate keys."""
    index: Dict[tuple, object] = {}
    dupes: List[tuple] = []
    for r in records:
        if r.key in index:
            dupes.append(r.key)
            continue
        index[r.key] = r
    if dupes:
        raise DuplicateKeyError(series, sorted(set(dupes)))
    return index


def join_on_key(
    cases: Iterable[CaseRecord],
    vaccinations: Iterable[VaccinationRecord],
) -> List[JoinedRow]:
    """
    Inner-join the two series on (location, date).

    Raises:
        DuplicateKeyError: If a key repeats within either series.
    """
    case_index = _index_by_key(cases, "cases")
    vac_index = _index_by_key(vaccinations, "vaccinations")
    return [(c, vac_index[k]) for k, c in case_index.items() if k in vac_index]


def partition_by_location(joined: Iterable[JoinedRow]) -> Dict[str, List[JoinedRow]]:
    """Group joined rows by location, each partition sorted by date ascending."""
    parts: Dict[str, List[JoinedRow]] = defaultdict(list)
    for row in joined:
        parts[row[0].location].append(row)
    return {loc: sorted(rows, key=lambda r: r[0].date) for loc, rows in parts.items()}


def running_totals(values: Sequence[Optional[int]]) -> List[int]:
    """Prefix sums of `values`, counting None as 0."""
    return list(accumulate((v or 0 for v in values), initial=0))[1:]


def rolling_vaccinations(
    cases: Iterable[CaseRecord],
    vaccinations: Iterable[VaccinationRecord],
    *,
    exclude_aggregates: Optional[bool] = None,
) -> List[RollingVaccinationRow]:
    """
    Running vaccination totals and coverage percentage per (location, date).

    Args:
        cases: Case/death records (source of continent and population).
        vaccinations: Vaccination records.
        exclude_aggregates: Drop continent-level rows from the output
            (None = EXCLUDE_AGGREGATE_ROWS from config).

    Returns:
        Rows ordered by location, then date.
    """
    # keys are checked for duplicates over the full series, aggregates included
    joined = join_on_key(cases, vaccinations)
    kept = {id(c) for c in country_rows([c for c, _ in joined], exclude_aggregates)}
    parts = partition_by_location(row for row in joined if id(row[0]) in kept)

    out: List[RollingVaccinationRow] = []
    for location in sorted(parts):
        rows = parts[location]
        totals = running_totals([v.new_vaccinations for _, v in rows])
        for (c, v), total in zip(rows, totals):
            out.append(
                RollingVaccinationRow(
                    continent=c.continent,
                    location=c.location,
                    date=c.date,
                    population=c.population,
                    new_vaccinations=v.new_vaccinations,
                    rolling_people_vaccinated=total,
                    vaccination_percentage=rate_pct(total, c.population),
                )
            )
    log.info("rolling_vaccinations rows=%d locations=%d", len(out), len(parts))
    return out
