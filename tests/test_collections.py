from __future__ import annotations

import asyncio
from datetime import timedelta

import httpx
import pytest
import pytest_asyncio

from factories import NOW
from recruiterhub.schemas.filters import MetricSelector
from recruiterhub.services.collections import CollectionClient, CollectionFetchError, load_collections
from recruiterhub.services.notifications import NotificationStore
from recruiterhub.services.reminders import BusReminderNotifier, ReminderScheduler
from recruiterhub.services.snapshot import DashboardClosed, DashboardSession

BASE_URL = "http://collections.test/api"


def _payload():
    return {
        "candidates": [
            {"_id": "c1", "name": "Asha Rao", "status": "Joined", "recruiterId": "r1", "createdAt": "2024-03-10T08:00:00Z"},
            {"_id": "c2", "name": "Vikram Shah", "status": "L1 Interview", "recruiterId": {"_id": "r2"}},
        ],
        "jobs": {"data": [{"_id": "j1", "jobCode": "JOB-1", "clientName": "Acme", "tatTime": "2024-03-20"}]},
        "clients": [{"_id": "cl1", "companyName": "Acme Corp", "dateAdded": "2024-03-01"}],
        "recruiters": [{"_id": "r1", "name": "Priya"}],
        "interviews": [
            {"_id": "i1", "candidateId": "c2", "candidateName": "Vikram Shah", "startTime": "2024-03-16T10:00:00Z"},
            {"_id": "i2", "startTime": "garbage"},
        ],
    }


def _transport(payload, *, failing=(), seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        if seen is not None:
            seen.append(request)
        if name in failing:
            return httpx.Response(502, json={"error": "upstream"})
        return httpx.Response(200, json=payload[name])

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_load_collections_parses_every_collection():
    seen: list[httpx.Request] = []
    client = CollectionClient(BASE_URL, token="secret", transport=_transport(_payload(), seen=seen))
    try:
        collections, interviews, notices = await load_collections(client)
    finally:
        await client.aclose()

    assert notices == []
    assert [candidate.status for candidate in collections.candidates] == ["Joined", "Interview"]
    assert collections.candidates[1].recruiter_id == "r2"
    assert collections.jobs[0].job_code == "JOB-1"
    assert collections.clients[0].company_name == "Acme Corp"
    assert collections.recruiters[0].name == "Priya"
    assert len(interviews) == 2
    assert {request.headers["Authorization"] for request in seen} == {"Bearer secret"}
    assert {request.url.path for request in seen} == {
        "/api/candidates",
        "/api/jobs",
        "/api/clients",
        "/api/recruiters",
        "/api/interviews",
    }


@pytest.mark.asyncio
async def test_one_failed_collection_does_not_block_the_rest():
    client = CollectionClient(BASE_URL, transport=_transport(_payload(), failing={"jobs"}))
    try:
        collections, _, notices = await load_collections(client)
    finally:
        await client.aclose()

    assert collections.jobs == []
    assert len(collections.candidates) == 2
    assert [notice.kind for notice in notices] == ["jobs"]
    assert "HTTP 502" in notices[0].message


@pytest.mark.asyncio
async def test_invalid_record_is_skipped_and_reported(caplog):
    payload = _payload()
    payload["candidates"].append({"_id": "c3", "name": "Unknown", "status": "On hold"})
    payload["candidates"].append({"_id": "c4", "status": "Joined"})
    client = CollectionClient(BASE_URL, transport=_transport(payload))
    reported: set[str] = set()
    try:
        with caplog.at_level("WARNING", logger="rh.snapshot"):
            collections, _, notices = await load_collections(client, reported=reported)
            await load_collections(client, reported=reported)
    finally:
        await client.aclose()

    assert [candidate.id for candidate in collections.candidates] == ["c1", "c2"]
    assert [(notice.kind, notice.failed, notice.skipped) for notice in notices] == [("candidates", False, 2)]
    invalid = [record for record in caplog.records if record.getMessage() == "collection_record_invalid"]
    assert len(invalid) == 2


@pytest.mark.asyncio
async def test_non_list_payload_is_an_error():
    client = CollectionClient(BASE_URL, transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True})))
    try:
        with pytest.raises(CollectionFetchError):
            await client.fetch("candidates")
    finally:
        await client.aclose()


@pytest_asyncio.fixture()
async def dashboard_factory(kv_storage, bus):
    created: list[DashboardSession] = []

    def _build(transport: httpx.AsyncBaseTransport) -> DashboardSession:
        dashboard = DashboardSession(
            CollectionClient(BASE_URL, transport=transport),
            NotificationStore(kv_storage, storage_key="rh:test-dashboard"),
            ReminderScheduler(BusReminderNotifier(bus), thresholds_minutes=[30], band_seconds=60),
            bus,
        )
        created.append(dashboard)
        return dashboard

    yield _build
    for dashboard in created:
        await dashboard.close()


@pytest.mark.asyncio
async def test_refresh_syncs_reminders_and_reports_failures(dashboard_factory):
    dashboard = dashboard_factory(_transport(_payload(), failing={"clients"}))
    await dashboard.start()
    await dashboard.feed.drain()

    assert [interview.id for interview in dashboard.collections.interviews] == ["i1"]
    assert [state.interview_id for state in dashboard.reminders.states()] == ["i1"]
    assert [notice.kind for notice in dashboard.notices] == ["clients"]
    assert dashboard.fetched_at is not None
    assert [item.kind for item in dashboard.store.items] == ["system"]

    metrics = dashboard.metrics(as_of=NOW)
    assert metrics.total_candidates == 2
    assert metrics.client_stats.total == 0


@pytest.mark.asyncio
async def test_second_refresh_publishes_changes(dashboard_factory):
    payload = _payload()
    dashboard = dashboard_factory(_transport(payload))
    await dashboard.start()
    await dashboard.feed.drain()
    assert dashboard.store.items == []

    payload["candidates"][1]["status"] = "Offer"
    payload["candidates"].append({"_id": "c3", "name": "Meera Iyer"})
    await dashboard.refresh()
    await dashboard.feed.drain()
    kinds = sorted(item.kind for item in dashboard.store.items)
    assert kinds == ["new_submission", "status_change"]


@pytest.mark.asyncio
async def test_recovered_collection_does_not_replay_its_records(dashboard_factory):
    payload = _payload()
    failing: set[str] = set()
    dashboard = dashboard_factory(_transport(payload, failing=failing))
    await dashboard.start()

    failing.update({"candidates", "interviews"})
    await dashboard.refresh()
    assert dashboard.collections.candidates == []
    assert [state.interview_id for state in dashboard.reminders.states()] == ["i1"]

    failing.clear()
    await dashboard.refresh()
    await dashboard.feed.drain()
    assert [item.kind for item in dashboard.store.items] == ["system"]
    assert len(dashboard.collections.candidates) == 2


@pytest.mark.asyncio
async def test_repeated_failure_is_announced_once(dashboard_factory):
    dashboard = dashboard_factory(_transport(_payload(), failing={"jobs"}))
    await dashboard.start()
    await dashboard.refresh()
    await dashboard.refresh()
    await dashboard.feed.drain()
    assert [notice.kind for notice in dashboard.notices] == ["jobs"]
    assert [item.kind for item in dashboard.store.items] == ["system"]


@pytest.mark.asyncio
async def test_fetch_in_flight_at_close_is_discarded(dashboard_factory):
    release = asyncio.Event()
    entered: list[str] = []
    payload = _payload()

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        entered.append(request.url.path)
        await release.wait()
        return httpx.Response(200, json=payload[request.url.path.rsplit("/", 1)[-1]])

    dashboard = dashboard_factory(httpx.MockTransport(slow_handler))
    pending = asyncio.create_task(dashboard.refresh())
    while len(entered) < len(payload):
        await asyncio.sleep(0)
    await dashboard.close()
    release.set()
    await pending
    assert dashboard.collections.candidates == []
    assert dashboard.fetched_at is None

    with pytest.raises(DashboardClosed):
        await dashboard.refresh()


@pytest.mark.asyncio
async def test_export_uses_current_snapshot(dashboard_factory):
    dashboard = dashboard_factory(_transport(_payload()))
    await dashboard.start()
    filename, content = dashboard.export(MetricSelector(kind="candidate", metric="joined"), as_of=NOW + timedelta(days=1))
    assert filename == "candidates-2024-03-16.csv"
    assert content.splitlines()[1].startswith("Asha Rao,")
