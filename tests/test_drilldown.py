from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from factories import NOW, make_candidate, make_client, make_job
from recruiterhub.schemas.filters import DateWindow, MetricSelector, UiFilters
from recruiterhub.services.drilldown import EntityCollections, resolve
from recruiterhub.services.filters import window_filter
from recruiterhub.services.metrics import aggregate


@pytest.fixture()
def collections() -> EntityCollections:
    return EntityCollections(
        candidates=[
            make_candidate(name="Asha Rao", recruiter_id="r1", recruiter_name="Priya", status="Joined"),
            make_candidate(name="Vikram Shah", recruiter_id="r1", recruiter_name="Priya", status="Submitted"),
            make_candidate(name="Meera Iyer", recruiter_id="r1", recruiter_name="Priya", status="Pending"),
            make_candidate(name="Rahul Nair", recruiter_id="r2", recruiter_name="Kiran", status="Offer"),
            make_candidate(
                name="Old Record",
                recruiter_id="r2",
                recruiter_name="Kiran",
                status="Rejected",
                created_at=NOW - timedelta(days=90),
            ),
            make_candidate(name="Undated", recruiter_id="r2", recruiter_name="Kiran", created_at=None),
        ],
        jobs=[
            make_job(position="Data Engineer", primary_recruiter="Priya", tat_deadline=NOW + timedelta(days=1)),
            make_job(position="QA Lead", primary_recruiter=None, tat_deadline=NOW - timedelta(days=2)),
            make_job(position="SRE", primary_recruiter=None, secondary_recruiter="Kiran"),
        ],
        clients=[
            make_client(company_name="Acme Corp", website="https://acme.test"),
            make_client(company_name="Globex", active=False),
        ],
    )


def test_resolve_all_equals_windowed_collection(collections):
    window = DateWindow(start=NOW - timedelta(days=30), end=NOW)
    selector = MetricSelector(kind="candidate")
    resolved = resolve(selector, collections, window=window, as_of=NOW)
    assert resolved == window_filter("candidate", collections.candidates, window)
    assert len(resolved) == aggregate(collections.candidates, [], [], window, as_of=NOW).total_candidates


def test_resolve_preserves_source_order(collections):
    resolved = resolve(MetricSelector(kind="candidate"), collections, as_of=NOW)
    assert [record.id for record in resolved] == [record.id for record in collections.candidates]


@pytest.mark.parametrize("outcome", ["submissions", "offers", "joined", "rejected", "pending"])
def test_recruiter_drilldown_matches_stats(collections, outcome):
    metrics = aggregate(collections.candidates, [], [], as_of=NOW)
    for stat in metrics.recruiter_stats:
        selector = MetricSelector(kind="candidate", metric=outcome, recruiter_id=stat.recruiter_id)
        assert len(resolve(selector, collections, as_of=NOW)) == getattr(stat, outcome)


def test_status_metric_matches_status_count(collections):
    metrics = aggregate(collections.candidates, [], [], as_of=NOW)
    for status, count in metrics.status_counts.items():
        selector = MetricSelector(kind="candidate", metric=status)
        assert len(resolve(selector, collections, as_of=NOW)) == count


def test_pending_without_recruiter_is_plain_status(collections):
    selector = MetricSelector(kind="candidate", metric="pending")
    assert [record.name for record in resolve(selector, collections, as_of=NOW)] == ["Meera Iyer"]


def test_search_is_case_insensitive(collections):
    resolved = resolve(MetricSelector(kind="candidate"), collections, UiFilters(search="ASHA RAO"), as_of=NOW)
    assert [record.name for record in resolved] == ["Asha Rao"]


def test_ui_filters_are_anded(collections):
    filters = UiFilters(search="a", status="Submitted", recruiter="priya")
    resolved = resolve(MetricSelector(kind="candidate"), collections, filters, as_of=NOW)
    assert [record.name for record in resolved] == ["Vikram Shah"]


def test_all_value_matches_everything(collections):
    filters = UiFilters(status="all", recruiter="all")
    assert len(resolve(MetricSelector(kind="candidate"), collections, filters, as_of=NOW)) == 6


def test_date_range_filter_excludes_undated(collections):
    filters = UiFilters(date_from=NOW - timedelta(days=30))
    resolved = resolve(MetricSelector(kind="candidate"), collections, filters, as_of=NOW)
    names = {record.name for record in resolved}
    assert "Old Record" not in names
    assert "Undated" not in names


def test_date_only_upper_bounds_include_that_day(collections):
    day = (NOW - timedelta(days=2)).date().isoformat()
    by_filter = resolve(MetricSelector(kind="candidate"), collections, UiFilters(date_to=day), as_of=NOW)
    by_window = resolve(MetricSelector(kind="candidate"), collections, window=DateWindow(end=day), as_of=NOW)
    expected = {"Asha Rao", "Vikram Shah", "Meera Iyer", "Rahul Nair", "Old Record"}
    assert {record.name for record in by_filter} == expected
    assert {record.name for record in by_window} == expected


def test_job_metrics(collections):
    assigned = resolve(MetricSelector(kind="job", metric="assigned"), collections, as_of=NOW)
    unassigned = resolve(MetricSelector(kind="job", metric="unassigned"), collections, as_of=NOW)
    assert [job.position for job in assigned] == ["Data Engineer", "SRE"]
    assert [job.position for job in unassigned] == ["QA Lead"]
    assert len(resolve(MetricSelector(kind="job", metric="expired"), collections, as_of=NOW)) == 1
    assert len(resolve(MetricSelector(kind="job", metric="unknown"), collections, as_of=NOW)) == 1


def test_job_recruiter_filter_checks_both_fields(collections):
    resolved = resolve(MetricSelector(kind="job"), collections, UiFilters(recruiter="Kiran"), as_of=NOW)
    assert [job.position for job in resolved] == ["SRE"]


def test_client_metrics_and_status_filter(collections):
    with_website = resolve(MetricSelector(kind="client", metric="with_website"), collections, as_of=NOW)
    assert [client.company_name for client in with_website] == ["Acme Corp"]
    inactive = resolve(MetricSelector(kind="client"), collections, UiFilters(status="inactive"), as_of=NOW)
    assert [client.company_name for client in inactive] == ["Globex"]


def test_unknown_filter_keys_are_rejected():
    with pytest.raises(ValidationError):
        UiFilters.model_validate({"search": "x", "owner": "me"})


def test_unknown_metric_is_rejected():
    with pytest.raises(ValidationError):
        MetricSelector(kind="job", metric="on_hold")


def test_recruiter_scope_only_for_candidates():
    with pytest.raises(ValidationError):
        MetricSelector(kind="client", recruiter_id="r1")


def test_invalid_ui_status_raises(collections):
    with pytest.raises(ValueError):
        resolve(MetricSelector(kind="candidate"), collections, UiFilters(status="On hold"), as_of=NOW)


def test_window_bounds_must_be_ordered():
    with pytest.raises(ValidationError):
        DateWindow(start=NOW, end=NOW - timedelta(days=1))
