# src/covid_explorer/analysis/schemas.py
from __future__ import annotations

"""
Typed data models used across the metrics engine.

These Pydantic schemas define the contract between:
- the warehouse tables (case/death and vaccination time series),
- the in-memory analysis functions (rates, aggregates, rolling sums),
- and the report generation pipeline.

Numeric fields are validated on construction: a value that cannot be read as
a number raises, it is never silently turned into zero or null.
"""

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class CaseRecord(BaseModel):
    """
    One row of the case/death time series, keyed by (location, date).

    Attributes:
        location: Country (or aggregate such as 'World').
        date: Calendar date of the observation.
        continent: Continent name; None marks continent/world aggregate rows.
        population: Population of the location.
        total_cases: Cumulative confirmed cases.
        new_cases: Cases reported on this date.
        total_deaths: Cumulative deaths.
        new_deaths: Deaths reported on this date.
    """

    location: str = Field(..., description="Location name.")
    date: dt.date = Field(..., description="Observation date.")
    continent: Optional[str] = Field(None, description="Continent; None for aggregate rows.")
    population: Optional[int] = Field(None, description="Population of the location; None when unknown.")
    total_cases: Optional[int] = Field(None, description="Cumulative cases.")
    new_cases: Optional[int] = Field(None, description="New cases on this date.")
    total_deaths: Optional[int] = Field(None, description="Cumulative deaths.")
    new_deaths: Optional[int] = Field(None, description="New deaths on this date.")

    @property
    def key(self) -> tuple[str, dt.date]:
        return (self.location, self.date)


class VaccinationRecord(BaseModel):
    """
    One row of the vaccination time series, keyed by (location, date).

    Attributes:
        location: Location name, matching CaseRecord.location.
        date: Calendar date of the observation.
        new_vaccinations: Doses reported on this date; None means nothing reported.
    """

    location: str = Field(..., description="Location name.")
    date: dt.date = Field(..., description="Observation date.")
    new_vaccinations: Optional[int] = Field(None, description="New vaccinations on this date.")

    @property
    def key(self) -> tuple[str, dt.date]:
        return (self.location, self.date)


class RollingVaccinationRow(BaseModel):
    """
    Joined case/vaccination row with the running vaccination total.

    Attributes:
        rolling_people_vaccinated: Prefix sum of new_vaccinations (nulls as 0)
            over the location's rows up to and including this date.
        vaccination_percentage: rolling_people_vaccinated as percent of
            population; None when population is missing or not positive.
    """

    continent: Optional[str] = Field(None, description="Continent of the location.")
    location: str = Field(..., description="Location name.")
    date: dt.date = Field(..., description="Observation date.")
    population: Optional[int] = Field(None, description="Population of the location; None when unknown.")
    new_vaccinations: Optional[int] = Field(None, description="Reported daily vaccinations.")
    rolling_people_vaccinated: int = Field(..., description="Running total of vaccinations.")
    vaccination_percentage: Optional[float] = Field(
        None, description="Running total as percent of population."
    )


class DeathRateRow(BaseModel):
    """Likelihood of dying once infected, per (location, date), in percent."""

    location: str
    date: dt.date
    total_cases: Optional[int] = None
    total_deaths: Optional[int] = None
    death_percentage: Optional[float] = None


class InfectionRateRow(BaseModel):
    """Share of the population infected, per (location, date), in percent."""

    location: str
    date: dt.date
    population: Optional[int] = None
    total_cases: Optional[int] = None
    percent_population_infected: Optional[float] = None


class InfectionSummary(BaseModel):
    """
    Highest observed infection count for a location.

    Attributes:
        highest_infection_count: MAX(total_cases) over the location's rows.
        percent_population_infected: That maximum as percent of population.
    """

    location: str
    population: Optional[int] = None
    highest_infection_count: Optional[int] = None
    percent_population_infected: Optional[float] = None


class DeathCount(BaseModel):
    """Highest cumulative death count for a group (location or continent)."""

    group: str = Field(..., description="Location or continent name.")
    total_death_count: Optional[int] = Field(None, description="MAX(total_deaths) in the group.")


class GlobalNumbers(BaseModel):
    """Worldwide totals summed from daily figures."""

    total_cases: int = Field(0, description="SUM(new_cases).")
    total_deaths: int = Field(0, description="SUM(new_deaths).")
    death_percentage: Optional[float] = Field(None, description="Deaths as percent of cases.")


class VaccinationProgress(BaseModel):
    """Latest rolling vaccination figure for a location."""

    location: str
    date: dt.date
    rolling_people_vaccinated: int
    vaccination_percentage: Optional[float] = None


class ReportOutput(BaseModel):
    """
    Output payload returned by the report generator.

    Attributes:
        as_of_day: Last date present in the case series (YYYY-MM-DD).
        global_numbers: Worldwide totals.
        top_infection: Locations ranked by percent of population infected.
        top_deaths_location: Locations ranked by total deaths.
        deaths_continent: Continents ranked by total deaths.
        vaccination_progress: Latest rolling vaccination figure per location.
        report_md: Markdown-rendered full report.
    """

    as_of_day: Optional[str] = None
    global_numbers: GlobalNumbers
    top_infection: List[InfectionSummary] = Field(default_factory=list)
    top_deaths_location: List[DeathCount] = Field(default_factory=list)
    deaths_continent: List[DeathCount] = Field(default_factory=list)
    vaccination_progress: List[VaccinationProgress] = Field(default_factory=list)
    report_md: str = ""
