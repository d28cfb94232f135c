"""
Central SQL definitions for the exploration queries.

Design goals
------------
- Cast every numeric source column strictly (CAST, never TRY_CAST): a
  non-numeric value must fail the query, not turn into NULL.
- Guard every division through `sql_rate_pct` (NULL when the denominator <= 0).
- Keep the "drop continent aggregate rows" predicate a parameter
  ($exclude_aggregates) instead of hard-coding it per query.
"""
from __future__ import annotations

from covid_explorer.analysis.rates import sql_rate_pct
from covid_explorer.utils.config import (
    CASES_TABLE,
    SCHEMA_SOURCE,
    VACCINATIONS_TABLE,
)

CASES = f"{SCHEMA_SOURCE}.{CASES_TABLE}"
VACCINATIONS = f"{SCHEMA_SOURCE}.{VACCINATIONS_TABLE}"


def _int(col: str) -> str:
    """
    Strict integer cast: non-numeric and fractional values both fail.

    A plain CAST(... AS BIGINT) rounds '12.5' to 13. Non-integral values are
    routed into a cast of unparseable text instead, so they raise the same
    ConversionException as non-numeric text. NULL stays NULL.
    """
    as_double = f"CAST({col} AS DOUBLE)"
    return (
        f"CASE WHEN {as_double} = CAST({as_double} AS BIGINT) THEN CAST({col} AS BIGINT) "
        f"ELSE CAST('non-integral value in {col}: ' || CAST({col} AS VARCHAR) AS BIGINT) END"
    )


def _deaths_cte(aggregate_filter: str) -> str:
    return f"""
deaths AS (
  SELECT
    location,
    CAST(date AS DATE) AS date,
    continent,
    {_int("population")} AS population,
    {_int("total_cases")} AS total_cases,
    {_int("new_cases")} AS new_cases,
    {_int("total_deaths")} AS total_deaths,
    {_int("new_deaths")} AS new_deaths
  FROM {CASES}
  WHERE {aggregate_filter}
)""".strip()


_VACCINATIONS_CTE = f"""
vaccinations AS (
  SELECT
    location,
    CAST(date AS DATE) AS date,
    {_int("new_vaccinations")} AS new_vaccinations
  FROM {VACCINATIONS}
)""".strip()

_PARAM_FILTER = "(NOT $exclude_aggregates OR continent IS NOT NULL)"
DEATHS_CTE = _deaths_cte(_PARAM_FILTER)


# -----------------------------
# Overview
# -----------------------------

SQL_AS_OF_DAY = f"""
SELECT MAX(CAST(date AS DATE)) AS as_of_day
FROM {CASES};
"""

SQL_CASE_OVERVIEW = f"""
WITH {DEATHS_CTE}
SELECT *
FROM deaths
ORDER BY location, date;
"""

SQL_CORE_COLUMNS = f"""
WITH {DEATHS_CTE}
SELECT location, date, total_cases, new_cases, total_deaths, population
FROM deaths
ORDER BY location, date;
"""

# -----------------------------
# Rates
# -----------------------------

# Likelihood of dying once infected, optionally narrowed by a location pattern
SQL_DEATH_RATES = f"""
WITH {DEATHS_CTE}
SELECT
  location,
  date,
  total_cases,
  total_deaths,
  {sql_rate_pct("total_deaths", "total_cases")} AS death_percentage
FROM deaths
WHERE location ILIKE $location_pattern
ORDER BY location, date;
"""

SQL_INFECTION_RATES = f"""
WITH {DEATHS_CTE}
SELECT
  location,
  date,
  population,
  total_cases,
  {sql_rate_pct("total_cases", "population")} AS percent_population_infected
FROM deaths
ORDER BY location, date;
"""

# -----------------------------
# Rankings
# -----------------------------

SQL_HIGHEST_INFECTION = f"""
WITH {DEATHS_CTE},
agg AS (
  SELECT location, population, MAX(total_cases) AS highest_infection_count
  FROM deaths
  GROUP BY location, population
)
SELECT
  location,
  population,
  highest_infection_count,
  {sql_rate_pct("highest_infection_count", "population")} AS percent_population_infected
FROM agg
ORDER BY percent_population_infected DESC NULLS LAST, location;
"""

SQL_DEATH_COUNT_BY_LOCATION = f"""
WITH {DEATHS_CTE}
SELECT location, MAX(total_deaths) AS total_death_count
FROM deaths
GROUP BY location
ORDER BY total_death_count DESC NULLS LAST, location;
"""

# A NULL continent cannot name a group, so aggregate rows are always dropped here.
SQL_DEATH_COUNT_BY_CONTINENT = f"""
WITH {_deaths_cte("continent IS NOT NULL")}
SELECT continent, MAX(total_deaths) AS total_death_count
FROM deaths
GROUP BY continent
ORDER BY total_death_count DESC NULLS LAST, continent;
"""

SQL_GLOBAL_NUMBERS = f"""
WITH {DEATHS_CTE},
agg AS (
  SELECT
    CAST(COALESCE(SUM(new_cases), 0) AS BIGINT)  AS total_cases,
    CAST(COALESCE(SUM(new_deaths), 0) AS BIGINT) AS total_deaths
  FROM deaths
)
SELECT
  total_cases,
  total_deaths,
  {sql_rate_pct("total_deaths", "total_cases")} AS death_percentage
FROM agg;
"""

# -----------------------------
# Key integrity
# -----------------------------

SQL_DUPLICATE_CASE_KEYS = f"""
SELECT location, CAST(date AS DATE) AS date, COUNT(*) AS n
FROM {CASES}
GROUP BY 1, 2
HAVING COUNT(*) > 1
ORDER BY 1, 2;
"""

SQL_DUPLICATE_VACCINATION_KEYS = f"""
SELECT location, CAST(date AS DATE) AS date, COUNT(*) AS n
FROM {VACCINATIONS}
GROUP BY 1, 2
HAVING COUNT(*) > 1
ORDER BY 1, 2;
"""

# -----------------------------
# Rolling vaccinations
# -----------------------------


def rolling_vaccinations_sql(exclude_aggregates: bool) -> str:
    """
    SELECT producing the rolling vaccination rows (no trailing semicolon).

    The aggregate-row filter is inlined as a literal so the statement can back
    a view or a CREATE TABLE AS, neither of which accepts parameters.
    """
    flag = "TRUE" if exclude_aggregates else "FALSE"
    return f"""
WITH {_deaths_cte(f"(NOT {flag} OR continent IS NOT NULL)")},
{_VACCINATIONS_CTE},
pop_vs_vac AS (
  SELECT
    d.continent,
    d.location,
    d.date,
    d.population,
    v.new_vaccinations,
    CAST(SUM(COALESCE(v.new_vaccinations, 0)) OVER (
      PARTITION BY d.location
      ORDER BY d.date
      ROWS BETWEEN UNBOUNDED PRECEDING AND CURRENT ROW
    ) AS BIGINT) AS rolling_people_vaccinated
  FROM deaths d
  JOIN vaccinations v
    ON d.location = v.location
   AND d.date = v.date
)
SELECT
  *,
  {sql_rate_pct("rolling_people_vaccinated", "population")} AS vaccination_percentage
FROM pop_vs_vac
ORDER BY location, date""".strip()


def latest_vaccination_sql(relation: str) -> str:
    """Last row per location of a rolling-vaccination artifact."""
    return f"""
SELECT location, date, rolling_people_vaccinated, vaccination_percentage
FROM {relation}
QUALIFY ROW_NUMBER() OVER (PARTITION BY location ORDER BY date DESC) = 1
ORDER BY vaccination_percentage DESC NULLS LAST, location;
""".strip()
