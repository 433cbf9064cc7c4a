from __future__ import annotations

from datetime import datetime

import httpx
import pytest
import pytest_asyncio

from recruiterhub.main import app
from recruiterhub.services.collections import CollectionClient
from recruiterhub.services.notifications import NotificationStore
from recruiterhub.services.reminders import BusReminderNotifier, ReminderScheduler
from recruiterhub.services.snapshot import DashboardSession

COLLECTIONS = {
    "candidates": [
        {"_id": "c1", "name": "Asha Rao", "status": "Joined", "recruiterId": "r1", "recruiterName": "Priya", "createdAt": "2024-03-10"},
        {"_id": "c2", "name": "Vikram Shah", "status": "Rejected", "recruiterId": "r1", "recruiterName": "Priya", "createdAt": "2024-03-11"},
        {"_id": "c3", "name": "Meera Iyer", "status": "Submitted", "recruiterId": "r2", "recruiterName": "Kiran", "createdAt": "2024-02-01"},
    ],
    "jobs": [
        {"_id": "j1", "jobCode": "JOB-1", "clientName": "Acme", "primaryRecruiter": "Priya", "date": "2024-03-01"},
        {"_id": "j2", "jobCode": "JOB-2", "clientName": "Globex", "date": "2024-03-02"},
    ],
    "clients": [{"_id": "cl1", "companyName": "Acme Corp", "website": "https://acme.test", "dateAdded": "2024-03-01"}],
    "recruiters": [],
    "interviews": [],
}


def _handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=COLLECTIONS[request.url.path.rsplit("/", 1)[-1]])


@pytest_asyncio.fixture()
async def client(kv_storage, bus):
    dashboard = DashboardSession(
        CollectionClient("http://collections.test/api", transport=httpx.MockTransport(_handler)),
        NotificationStore(kv_storage, storage_key="rh:test-api"),
        ReminderScheduler(BusReminderNotifier(bus), thresholds_minutes=[30], band_seconds=60),
        bus,
    )
    await dashboard.start()
    app.state.dashboard = dashboard
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as http:
        yield http
    await dashboard.close()
    app.state.dashboard = None


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_dashboard_metrics_and_window(client):
    response = await client.get("/ops/dashboard")
    assert response.status_code == 200
    metrics = response.json()["metrics"]
    assert metrics["total_candidates"] == 3
    assert metrics["success_rate_display"] == "33.33%"
    assert metrics["job_stats"] == {"total": 2, "assigned": 1, "unassigned": 1}

    windowed = await client.get("/ops/dashboard", params={"from": "2024-03-01", "to": "2024-03-10"})
    assert windowed.json()["metrics"]["total_candidates"] == 1

    bad = await client.get("/ops/dashboard", params={"from": "2024-03-10", "to": "2024-03-01"})
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_drilldown_matches_recruiter_stat(client):
    metrics = (await client.get("/ops/dashboard")).json()["metrics"]
    priya = next(stat for stat in metrics["recruiter_stats"] if stat["recruiter_id"] == "r1")

    response = await client.get("/ops/drilldown/candidates", params={"metric": "submissions", "recruiter_id": "r1"})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == priya["submissions"] == 2
    assert [item["name"] for item in body["items"]] == ["Asha Rao", "Vikram Shah"]

    searched = await client.get("/ops/drilldown/candidate", params={"search": "meera"})
    assert [item["id"] for item in searched.json()["items"]] == ["c3"]


@pytest.mark.asyncio
async def test_drilldown_rejects_bad_input(client):
    assert (await client.get("/ops/drilldown/recruiters")).status_code == 400
    assert (await client.get("/ops/drilldown/jobs", params={"metric": "on_hold"})).status_code == 400
    assert (await client.get("/ops/drilldown/clients", params={"recruiter": "Priya"})).status_code == 400
    assert (await client.get("/ops/drilldown/candidates", params={"date_from": "yesterday"})).status_code == 400


@pytest.mark.asyncio
async def test_export_download(client):
    response = await client.get("/ops/export/jobs", params={"metric": "unassigned"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="jobs-' in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0].startswith("Job Code,Client,Position")
    assert len(lines) == 2
    assert lines[1].startswith("JOB-2,Globex")


@pytest.mark.asyncio
async def test_notification_lifecycle(client):
    created = await client.post("/ops/notifications", json={"title": "Manual note", "level": "warning"})
    assert created.status_code == 201
    notification_id = created.json()["id"]
    await client.post("/ops/notifications", json={"title": "Second note"})

    listing = (await client.get("/ops/notifications")).json()
    assert listing["total"] == 2
    assert listing["unread_count"] == 2
    assert listing["items"][0]["title"] == "Second note"

    read = await client.post(f"/ops/notifications/{notification_id}/read")
    assert read.status_code == 200 and read.json()["read"] is True
    assert (await client.post("/ops/notifications/missing/read")).status_code == 404

    assert (await client.post("/ops/notifications/read-all")).json() == {"updated": 1, "unread_count": 0}
    assert (await client.delete(f"/ops/notifications/{notification_id}")).json()["deleted"] is True
    assert (await client.delete("/ops/notifications")).json() == {"deleted": 1}
    assert (await client.get("/ops/notifications")).json()["total"] == 0


@pytest.mark.asyncio
async def test_invalid_notification_payload(client):
    response = await client.post("/ops/notifications", json={"title": "", "kind": "unknown"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_refresh_and_reminders(client):
    refreshed = await client.post("/ops/dashboard/refresh")
    assert refreshed.status_code == 200
    assert refreshed.json()["notices"] == []
    assert (await client.get("/ops/reminders")).json() == []


@pytest.mark.asyncio
async def test_closed_dashboard_is_unavailable(client):
    await app.state.dashboard.close()
    response = await client.get("/ops/dashboard")
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_acknowledge_undelivered_reminder(client):
    async def failing_notify(event):
        raise RuntimeError("bus unavailable")

    dashboard = app.state.dashboard
    dashboard.reminders = ReminderScheduler(failing_notify, thresholds_minutes=[30], band_seconds=60)
    dashboard.reminders.sync_interviews([{"_id": "i1", "startTime": "2024-03-16T10:00:00"}])
    await dashboard.reminders.scan(datetime(2024, 3, 16, 9, 30))

    response = await client.post("/ops/reminders/i1/30/ack")
    assert response.status_code == 200
    assert response.json()["state"] == "consumed"
    assert (await client.post("/ops/reminders/i1/30/ack")).status_code == 404
    assert (await client.post("/ops/reminders/missing/30/ack")).status_code == 404
