"""
Tests for ticket endpoints: claiming, issuing, calling and status changes.
"""

import pytest
from httpx import AsyncClient

from queuedesk.models.status import TicketStatus


@pytest.mark.asyncio
async def test_claim_ticket(client: AsyncClient, make_counter):
    counter = await make_counter(name="Front Desk")

    response = await client.post("/api/v1/public/claim")
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["counter_id"] == counter.id
    assert data["counter_name"] == "Front Desk"
    assert data["number"] == 1
    assert data["status"] == "waiting"


@pytest.mark.asyncio
async def test_claim_without_counters(client: AsyncClient):
    response = await client.post("/api/v1/public/claim")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_issue_on_full_counter_is_too_many_requests(client: AsyncClient, make_counter):
    counter = await make_counter(max_queue=1)

    first = await client.post("/api/v1/tickets/", json={"counter_id": counter.id})
    assert first.status_code == 201

    second = await client.post("/api/v1/tickets/", json={"counter_id": counter.id})
    assert second.status_code == 429
    assert second.json()["status"] is False


@pytest.mark.asyncio
async def test_issue_unknown_counter(client: AsyncClient):
    response = await client.post("/api/v1/tickets/", json={"counter_id": 99999})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_release_ticket(client: AsyncClient, make_counter):
    await make_counter()
    ticket_id = (await client.post("/api/v1/public/claim")).json()["data"]["id"]

    response = await client.patch(f"/api/v1/public/release/{ticket_id}")
    assert response.status_code == 200

    again = await client.patch(f"/api/v1/public/release/{ticket_id}")
    assert again.status_code == 409

    detail = await client.get(f"/api/v1/tickets/{ticket_id}")
    assert detail.json()["data"]["status"] == "released"


@pytest.mark.asyncio
async def test_release_unknown_ticket(client: AsyncClient):
    response = await client.patch("/api/v1/public/release/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_call_then_skip(client: AsyncClient, make_counter, make_ticket):
    counter = await make_counter()
    first = await make_ticket(counter, 1)
    second = await make_ticket(counter, 2)

    called = await client.post(f"/api/v1/tickets/next/{counter.id}")
    assert called.status_code == 200
    assert called.json()["data"]["id"] == first.id
    assert called.json()["data"]["status"] == "called"

    skipped = await client.post(f"/api/v1/tickets/skip/{counter.id}")
    assert skipped.status_code == 200
    assert skipped.json()["data"]["id"] == second.id

    detail = await client.get(f"/api/v1/tickets/{first.id}")
    assert detail.json()["data"]["status"] == "skipped"


@pytest.mark.asyncio
async def test_call_next_on_empty_queue(client: AsyncClient, make_counter):
    counter = await make_counter()

    response = await client.post(f"/api/v1/tickets/next/{counter.id}")
    assert response.status_code == 200
    assert response.json()["data"] is None


@pytest.mark.asyncio
async def test_list_tickets_filters_by_counter(client: AsyncClient, make_counter, make_ticket):
    first = await make_counter(name="A")
    second = await make_counter(name="B")
    await make_ticket(first, 1)
    await make_ticket(second, 1)
    await make_ticket(second, 2)

    response = await client.get(f"/api/v1/tickets/?counter_id={second.id}&limit=1")
    assert response.status_code == 200
    data = response.json()
    assert [(t["counter_name"], t["number"]) for t in data["data"]] == [("B", 1)]
    assert data["pagination"] == {"total": 2, "current_page": 1, "per_page": 1, "total_page": 2}


@pytest.mark.asyncio
async def test_list_tickets_rejects_bad_paging(client: AsyncClient):
    response = await client.get("/api/v1/tickets/?page=0")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_ticket_status(client: AsyncClient, make_counter, make_ticket):
    counter = await make_counter()
    ticket = await make_ticket(counter, 1, TicketStatus.CALLED)

    response = await client.patch(f"/api/v1/tickets/{ticket.id}/status", json={"status": "done"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "done"

    reopen = await client.patch(f"/api/v1/tickets/{ticket.id}/status", json={"status": "waiting"})
    assert reopen.status_code == 409


@pytest.mark.asyncio
async def test_update_ticket_status_rejects_unknown_value(client: AsyncClient, make_counter, make_ticket):
    counter = await make_counter()
    ticket = await make_ticket(counter, 1)

    response = await client.patch(f"/api/v1/tickets/{ticket.id}/status", json={"status": "served"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_ticket(client: AsyncClient, make_counter, make_ticket):
    counter = await make_counter()
    waiting = await make_ticket(counter, 1)
    done = await make_ticket(counter, 2, TicketStatus.DONE)

    assert (await client.delete(f"/api/v1/tickets/{waiting.id}")).status_code == 200
    assert (await client.get(f"/api/v1/tickets/{waiting.id}")).status_code == 404
    assert (await client.delete(f"/api/v1/tickets/{done.id}")).status_code == 409


@pytest.mark.asyncio
async def test_ticket_metrics(client: AsyncClient, make_counter, make_ticket):
    counter = await make_counter()
    for number, status in enumerate(
        [TicketStatus.WAITING, TicketStatus.WAITING, TicketStatus.CALLED, TicketStatus.DONE], start=1
    ):
        await make_ticket(counter, number, status)

    response = await client.get("/api/v1/tickets/metrics")
    assert response.status_code == 200
    assert response.json()["data"] == {"waiting": 2, "called": 1, "processing": 0, "skipped": 0, "done": 1}


@pytest.mark.asyncio
async def test_health_and_request_id(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}
    assert response.headers["X-Request-ID"] == "abc123"
