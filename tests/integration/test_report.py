"""
Integration tests of covid_explorer.report.generator
"""

from __future__ import annotations

import pytest

from conftest import case, vac
from covid_explorer.analysis.rolling import rolling_vaccinations
from covid_explorer.report import generator
from covid_explorer.report.generator import build_report, collect_vaccination_progress
from covid_explorer.utils.config import ROLLING_TABLE
from covid_explorer.warehouse.materialize import build_artifacts, read_artifact, rows_from_frame
from covid_explorer.warehouse.sql_client import SQLClient


def test_report_sections(make_warehouse, world_sample):
    path = make_warehouse(*world_sample)
    build_artifacts(path)

    with SQLClient(path) as sql:
        rpt = build_report(sql, top_n=5)

    assert rpt.as_of_day == "2021-01-03"
    assert rpt.global_numbers.total_cases == 37
    assert [s.location for s in rpt.top_infection] == ["United States", "France"]
    assert [d.group for d in rpt.deaths_continent] == ["North America", "Europe"]

    md = rpt.report_md
    assert md.startswith("# COVID-19 data exploration")
    assert "| United States | 330 | 33 | 10.00% |" in md
    assert "| North America | 10 |" in md
    assert "World" not in md


def test_report_top_n(make_warehouse, world_sample):
    path = make_warehouse(*world_sample)
    build_artifacts(path)

    with SQLClient(path) as sql:
        rpt = build_report(sql, top_n=1)

    assert len(rpt.top_infection) == 1
    assert len(rpt.top_deaths_location) == 1
    assert len(rpt.vaccination_progress) == 1


def test_vaccination_progress_without_view(make_warehouse, world_sample):
    path = make_warehouse(*world_sample)

    with SQLClient(path) as sql:
        progress = collect_vaccination_progress(sql)

    latest = {p.location: p for p in progress}
    assert latest["United States"].rolling_people_vaccinated == 33
    assert latest["United States"].vaccination_percentage == pytest.approx(10.0)
    assert latest["France"].rolling_people_vaccinated == 14


def _with_unknown_population(world_sample):
    cases, vaccinations = world_sample
    cases = cases + [
        case("Atlantis", 0, continent="Europe", population=None, total_cases=3, new_cases=3, total_deaths=0, new_deaths=0)
    ]
    return cases, vaccinations + [vac("Atlantis", 0, 2)]


def test_report_tolerates_missing_population(make_warehouse, world_sample):
    path = make_warehouse(*_with_unknown_population(world_sample))
    build_artifacts(path)

    with SQLClient(path) as sql:
        rpt = build_report(sql, top_n=5)

    assert [s.location for s in rpt.top_infection] == ["United States", "France", "Atlantis"]
    assert rpt.top_infection[-1].population is None
    assert "| Atlantis | n/a | 3 | n/a |" in rpt.report_md

    latest = {p.location: p for p in rpt.vaccination_progress}
    assert latest["Atlantis"].rolling_people_vaccinated == 2
    assert latest["Atlantis"].vaccination_percentage is None


def test_rows_from_frame_tolerates_missing_population(make_warehouse, world_sample):
    cases, vaccinations = _with_unknown_population(world_sample)
    path = make_warehouse(cases, vaccinations)
    build_artifacts(path)

    with SQLClient(path) as sql:
        res = rows_from_frame(read_artifact(sql, ROLLING_TABLE))
    assert res == rolling_vaccinations(cases, vaccinations)
    assert res[0].location == "Atlantis"
    assert res[0].population is None


def test_owned_client_is_closed(make_warehouse, world_sample, monkeypatch):
    path = make_warehouse(*world_sample)
    opened = []

    class TrackingClient(SQLClient):
        def __init__(self, db_path=None):
            super().__init__(path)
            self.closed = False
            opened.append(self)

        def close(self):
            super().close()
            self.closed = True

    monkeypatch.setattr(generator, "SQLClient", TrackingClient)
    rpt = build_report(top_n=2)

    assert rpt.as_of_day == "2021-01-03"
    assert len(opened) == 1
    assert opened[0].closed
