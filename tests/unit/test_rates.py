"""
Tests of covid_explorer.analysis.rates
"""

from __future__ import annotations

import pytest

from conftest import case
from covid_explorer.analysis.rates import (
    country_rows,
    death_rates,
    infection_rates,
    rate_pct,
    sql_rate_pct,
)


@pytest.mark.parametrize(
    "numerator, denominator, exp",
    (
        pytest.param(5, 20, 25.0, id="quarter"),
        pytest.param(0, 10, 0.0, id="zero-numerator"),
        pytest.param(150, 1000, 15.0, id="scenario-a"),
        pytest.param(7, 0, None, id="zero-denominator"),
        pytest.param(7, -3, None, id="negative-denominator"),
        pytest.param(None, 10, None, id="null-numerator"),
        pytest.param(7, None, None, id="null-denominator"),
    ),
)
def test_rate_pct(numerator, denominator, exp):
    res = rate_pct(numerator, denominator)
    if exp is None:
        assert res is None
    else:
        assert res == pytest.approx(exp)


def test_sql_rate_pct_guards_denominator():
    frag = sql_rate_pct("total_deaths", "total_cases")
    assert frag.startswith("CASE WHEN total_cases > 0")
    assert "ELSE NULL END" in frag


def test_death_rates_zero_cases_gives_null():
    cases = [
        case("United States", 0, total_cases=0, total_deaths=0),
        case("United States", 1, total_cases=50, total_deaths=1),
    ]
    res = death_rates(cases)
    assert [r.death_percentage for r in res] == [None, pytest.approx(2.0)]


def test_death_rates_location_filter_is_case_insensitive():
    cases = [
        case("United States", 0, total_cases=10, total_deaths=1),
        case("United Kingdom", 0, total_cases=10, total_deaths=2),
        case("Virgin Islands (States)", 0, total_cases=10, total_deaths=3),
    ]
    res = death_rates(cases, location_contains="STATES")
    assert [r.location for r in res] == ["United States", "Virgin Islands (States)"]


def test_infection_rates_zero_population_gives_null():
    cases = [
        case("Nowhere", 0, population=0, total_cases=3),
        case("Testland", 0, population=1000, total_cases=30),
    ]
    res = {r.location: r.percent_population_infected for r in infection_rates(cases)}
    assert res["Nowhere"] is None
    assert res["Testland"] == pytest.approx(3.0)


def test_country_rows_flag():
    rows = [case("France", 0), case("World", 0, continent=None)]
    assert [r.location for r in country_rows(rows, True)] == ["France"]
    assert [r.location for r in country_rows(rows, False)] == ["France", "World"]
