"""Integration tests for /api/dashboard endpoints."""

from httpx import AsyncClient

from myescrow.dashboard.service import create_dispute
from myescrow.database import get_session
from tests.conftest import TEST_PASSWORD, bearer, signup_verified


async def _create(client: AsyncClient, **overrides) -> dict:
    body = {"title": "Site survey", "counterpart": "Acme", "amount": 150.00, **overrides}
    response = await client.post("/api/dashboard/escrows/create", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateEscrow:
    async def test_create_returns_reference(self, authed_client: AsyncClient):
        data = await _create(authed_client)
        assert data["success"] is True
        assert data["reference"] == "PO-0650"
        assert isinstance(data["escrowId"], int)
        assert "createdAt" in data

    async def test_invalid_payload(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/dashboard/escrows/create", json={
            "title": "X",
            "counterpart": "Acme",
            "amount": -5,
        })
        assert response.status_code == 400
        paths = {issue["path"] for issue in response.json()["issues"]}
        assert paths == {"title", "amount"}

    async def test_amount_rounding_to_zero(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/dashboard/escrows/create", json={
            "title": "Dust",
            "counterpart": "Acme",
            "amount": 0.001,
        })
        assert response.status_code == 400
        assert response.json()["error"] == "Amount must be at least $0.01."

    async def test_amount_above_limit(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/dashboard/escrows/create", json={
            "title": "Whale",
            "counterpart": "Acme",
            "amount": 1e17,
        })
        assert response.status_code == 400
        assert {issue["path"] for issue in response.json()["issues"]} == {"amount"}


class TestOverviewAndListing:
    async def test_empty_overview(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/dashboard/overview")
        assert response.status_code == 200
        data = response.json()
        assert [card["id"] for card in data["summaryMetrics"]] == ["held", "release", "disputes", "verified"]
        assert data["summaryMetrics"][0]["value"] == "$0.00"
        assert data["activeEscrows"] == []
        assert data["timelineEvents"] == []

    async def test_overview_shows_new_escrow(self, authed_client: AsyncClient):
        await _create(authed_client)
        data = (await authed_client.get("/api/dashboard/overview")).json()

        assert data["activeEscrows"] == [
            {
                "id": "PO-0650",
                "counterpart": "Acme",
                "amount": "$150.00",
                "stage": "Initial milestone",
                "due": "Awaiting approval",
                "status": "warning",
                "counterpartyApproved": False,
            }
        ]
        assert data["summaryMetrics"][0]["meta"] == "1 active contracts"
        event = data["timelineEvents"][0]
        assert event["title"] == "Acme escrow drafted"
        assert event["time"] == "Just now"
        assert event["status"] == "attention"

    async def test_escrow_listing(self, authed_client: AsyncClient):
        await _create(authed_client)
        await _create(authed_client, counterpart="Globex", amount=20)
        escrows = (await authed_client.get("/api/dashboard/escrows")).json()["escrows"]
        assert {e["id"] for e in escrows} == {"PO-0650", "PO-0651"}

    async def test_users_only_see_their_own_escrows(self, client: AsyncClient, mock_email_service):
        alice = await signup_verified(client, mock_email_service, email="alice@example.com", name="Alice")
        bob = await signup_verified(client, mock_email_service, email="bob@example.com", name="Bob")

        response = await client.post(
            "/api/dashboard/escrows/create",
            json={"title": "Site survey", "counterpart": "Acme", "amount": 10},
            headers=bearer(alice["token"]),
        )
        assert response.status_code == 201

        response = await client.get("/api/dashboard/escrows", headers=bearer(bob["token"]))
        assert response.json()["escrows"] == []


class TestEscrowActions:
    async def test_approve(self, authed_client: AsyncClient):
        await _create(authed_client)
        response = await authed_client.post("/api/dashboard/escrows/PO-0650/approve")
        assert response.status_code == 200
        assert response.json() == {"success": True, "escrowId": "PO-0650"}

    async def test_release_reports_timestamp(self, authed_client: AsyncClient):
        await _create(authed_client)
        response = await authed_client.post("/api/dashboard/escrows/PO-0650/release")
        assert response.status_code == 200
        data = response.json()
        assert data["escrowId"] == "PO-0650"
        assert "releasedAt" in data

    async def test_unknown_action_is_validation_error(self, authed_client: AsyncClient):
        await _create(authed_client)
        response = await authed_client.post("/api/dashboard/escrows/PO-0650/explode")
        assert response.status_code == 400
        assert response.json()["issues"][0]["path"] == "action"

    async def test_unknown_reference(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/dashboard/escrows/PO-4242/approve")
        assert response.status_code == 404
        assert response.json() == {"error": "Escrow not found."}

    async def test_foreign_escrow_is_not_found(self, client: AsyncClient, mock_email_service):
        alice = await signup_verified(client, mock_email_service, email="alice@example.com", name="Alice")
        bob = await signup_verified(client, mock_email_service, email="bob@example.com", name="Bob")
        await client.post(
            "/api/dashboard/escrows/create",
            json={"title": "Site survey", "counterpart": "Acme", "amount": 10},
            headers=bearer(alice["token"]),
        )

        response = await client.post("/api/dashboard/escrows/PO-0650/release", headers=bearer(bob["token"]))
        assert response.status_code == 404
        assert response.json() == {"error": "Escrow not found."}

        escrows = (await client.get("/api/dashboard/escrows", headers=bearer(alice["token"]))).json()["escrows"]
        assert escrows[0]["status"] == "warning"

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.post("/api/dashboard/escrows/PO-0650/approve")
        assert response.status_code == 401


class TestDisputeEndpoints:
    async def _seed_dispute(self, user_id: str) -> str:
        async for db in get_session():
            dispute = await create_dispute(
                db, user_id, title="Late delivery", owner_team="Acme", amount_cents=50_000, priority="high"
            )
            await db.commit()
            return dispute.reference
        raise AssertionError("no session")

    async def test_list_launch_resolve(self, client: AsyncClient, mock_email_service):
        owner = await signup_verified(client, mock_email_service)
        headers = bearer(owner["token"])
        reference = await self._seed_dispute(owner["user"]["id"])

        disputes = (await client.get("/api/dashboard/disputes", headers=headers)).json()["disputes"]
        assert disputes[0]["id"] == reference
        assert disputes[0]["amount"] == "$500.00 held"

        response = await client.post(f"/api/dashboard/disputes/{reference}/launch", headers=headers)
        assert response.status_code == 200
        assert response.json()["disputeId"] == reference
        assert "launchedAt" in response.json()
        assert "resolvedAt" not in response.json()

        response = await client.post(f"/api/dashboard/disputes/{reference}/resolve", headers=headers)
        assert response.status_code == 200
        assert "resolvedAt" in response.json()

        disputes = (await client.get("/api/dashboard/disputes", headers=headers)).json()["disputes"]
        assert disputes == []

        overview = (await client.get("/api/dashboard/overview", headers=headers)).json()
        assert overview["summaryMetrics"][2]["value"] == "0 cases"

    async def test_unknown_dispute(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/dashboard/disputes/DSP-0999/resolve")
        assert response.status_code == 404
        assert response.json() == {"error": "Dispute not found."}


class TestEndToEnd:
    async def test_signup_verify_login_create_release(self, client: AsyncClient, mock_email_service):
        await signup_verified(client, mock_email_service, email="flow@example.com")

        response = await client.post("/api/auth/login", json={"email": "flow@example.com", "password": TEST_PASSWORD})
        assert response.status_code == 200
        headers = bearer(response.json()["token"])

        response = await client.post(
            "/api/dashboard/escrows/create",
            json={"title": "Kitchen remodel", "counterpart": "Acme", "amount": 150},
            headers=headers,
        )
        assert response.status_code == 201
        reference = response.json()["reference"]

        overview = (await client.get("/api/dashboard/overview", headers=headers)).json()
        active = {e["id"]: e for e in overview["activeEscrows"]}
        assert active[reference]["amount"] == "$150.00"
        assert active[reference]["status"] == "warning"

        response = await client.post(f"/api/dashboard/escrows/{reference}/release", headers=headers)
        assert response.status_code == 200

        overview = (await client.get("/api/dashboard/overview", headers=headers)).json()
        released = {e["id"]: e for e in overview["activeEscrows"]}[reference]
        assert released["status"] == "success"
        assert released["counterpartyApproved"] is True
        assert overview["timelineEvents"][0]["title"] == f"Release approved for {reference}"

        escrows = (await client.get("/api/dashboard/escrows", headers=headers)).json()["escrows"]
        assert escrows[0]["status"] == "success"
        assert escrows[0]["counterpartyApproved"] is True
