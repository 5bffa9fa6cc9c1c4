"""Integration tests for the task, proof and stats endpoints."""

from datetime import datetime, timedelta, timezone

from eth_account.signers.local import LocalAccount
from httpx import AsyncClient


def task_body(**overrides) -> dict:
    body = {
        "title": "Read 30 pages",
        "description": "Finish chapter 3",
        "stakedAmount": 2.5,
        "deadline": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
    }
    body.update(overrides)
    return body


async def create_task(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    response = await client.post("/api/tasks", json=task_body(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestTasks:
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/tasks", json=task_body())
        assert response.status_code in (401, 403)

    async def test_create_and_list(self, client: AsyncClient, wallet: LocalAccount, auth_headers: dict[str, str]):
        created = await create_task(client, auth_headers)
        assert created["ownerIdentity"] == wallet.address.lower()
        assert created["status"] == "active"
        assert created["proofSubmitted"] is False
        assert created["stakedAmount"] == 2.5

        listed = await client.get("/api/tasks", headers=auth_headers)
        assert listed.status_code == 200
        assert [t["id"] for t in listed.json()] == [created["id"]]

        fetched = await client.get(f"/api/tasks/{created['id']}", headers=auth_headers)
        assert fetched.json()["title"] == "Read 30 pages"

    async def test_stake_must_be_positive(self, client: AsyncClient, auth_headers: dict[str, str]):
        response = await client.post("/api/tasks", json=task_body(stakedAmount=0), headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"detail": "Stake amount must be greater than zero"}

    async def test_deadline_must_be_future(self, client: AsyncClient, auth_headers: dict[str, str]):
        past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        response = await client.post("/api/tasks", json=task_body(deadline=past), headers=auth_headers)
        assert response.status_code == 400

    async def test_missing_title_is_rejected(self, client: AsyncClient, auth_headers: dict[str, str]):
        response = await client.post("/api/tasks", json=task_body(title=""), headers=auth_headers)
        assert response.status_code == 422

    async def test_other_users_task_is_hidden(
        self, client: AsyncClient, auth_headers: dict[str, str], other_wallet: LocalAccount, login
    ):
        created = await create_task(client, auth_headers)
        other_headers = {"Authorization": f"Bearer {await login(client, other_wallet)}"}
        response = await client.get(f"/api/tasks/{created['id']}", headers=other_headers)
        assert response.status_code == 404
        response = await client.post(
            f"/api/tasks/{created['id']}/proofs", json={"proofText": "mine"}, headers=other_headers
        )
        assert response.status_code == 404

    async def test_unknown_task(self, client: AsyncClient, auth_headers: dict[str, str]):
        response = await client.get("/api/tasks/does-not-exist", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"detail": "Task not found"}


class TestProofReview:
    async def test_full_lifecycle(
        self, client: AsyncClient, wallet: LocalAccount, auth_headers: dict[str, str], admin_headers: dict[str, str]
    ):
        task = await create_task(client, auth_headers)

        proof = await client.post(
            f"/api/tasks/{task['id']}/proofs", json={"proofText": "Done, notes attached"}, headers=auth_headers
        )
        assert proof.status_code == 201
        proof_id = proof.json()["id"]
        assert proof.json()["status"] == "pending"

        duplicate = await client.post(
            f"/api/tasks/{task['id']}/proofs", json={"proofText": "again"}, headers=auth_headers
        )
        assert duplicate.status_code == 409

        pending = await client.get("/api/admin/proofs/pending", headers=admin_headers)
        assert [p["id"] for p in pending.json()] == [proof_id]

        review = await client.post(
            f"/api/admin/proofs/{proof_id}/review", json={"approve": True, "notes": "great"}, headers=admin_headers
        )
        assert review.status_code == 200
        assert review.json()["status"] == "approved"
        assert review.json()["reviewNotes"] == "great"

        again = await client.post(
            f"/api/admin/proofs/{proof_id}/review", json={"approve": False}, headers=admin_headers
        )
        assert again.status_code == 409

        settled = await client.get(f"/api/tasks/{task['id']}", headers=auth_headers)
        assert settled.json()["status"] == "completed"
        assert settled.json()["proofSubmitted"] is True

        stats = (await client.get("/api/stats/me", headers=auth_headers)).json()
        assert stats["totalTasks"] == 1
        assert stats["completedTasks"] == 1
        assert stats["totalStaked"] == 2.5
        assert stats["totalReturned"] == 2.5
        assert stats["currentStreak"] == 1

        all_stats = (await client.get("/api/admin/stats", headers=admin_headers)).json()
        assert all_stats["stats"][wallet.address.lower()]["completedTasks"] == 1

    async def test_rejection_burns_stake(
        self, client: AsyncClient, auth_headers: dict[str, str], admin_headers: dict[str, str]
    ):
        task = await create_task(client, auth_headers, stakedAmount=1.25)
        proof = await client.post(f"/api/tasks/{task['id']}/proofs", json={"proofText": "x"}, headers=auth_headers)
        await client.post(f"/api/admin/proofs/{proof.json()['id']}/review", json={"approve": False},
                          headers=admin_headers)

        stats = (await client.get("/api/stats/me", headers=auth_headers)).json()
        assert stats["failedTasks"] == 1
        assert stats["totalBurned"] == 1.25
        assert stats["currentStreak"] == 0

        closed = await client.post(f"/api/tasks/{task['id']}/proofs", json={"proofText": "y"}, headers=auth_headers)
        assert closed.status_code == 409

    async def test_empty_proof(self, client: AsyncClient, auth_headers: dict[str, str]):
        task = await create_task(client, auth_headers)
        response = await client.post(f"/api/tasks/{task['id']}/proofs", json={}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"detail": "Please provide proof text or upload a file"}

    async def test_owner_can_list_proofs(self, client: AsyncClient, auth_headers: dict[str, str]):
        task = await create_task(client, auth_headers)
        await client.post(f"/api/tasks/{task['id']}/proofs", json={"proofText": "x"}, headers=auth_headers)
        proofs = await client.get(f"/api/tasks/{task['id']}/proofs", headers=auth_headers)
        assert len(proofs.json()) == 1


class TestAdminAccess:
    async def test_non_admin_forbidden(self, client: AsyncClient, auth_headers: dict[str, str]):
        for path in ("/api/admin/tasks", "/api/admin/proofs/pending", "/api/admin/stats"):
            response = await client.get(path, headers=auth_headers)
            assert response.status_code == 403
            assert response.json() == {"detail": "Admin privileges required"}

    async def test_admin_sees_all_tasks(
        self, client: AsyncClient, auth_headers: dict[str, str], admin_headers: dict[str, str]
    ):
        task = await create_task(client, auth_headers)
        response = await client.get("/api/admin/tasks", headers=admin_headers)
        assert [t["id"] for t in response.json()] == [task["id"]]

        visible = await client.get(f"/api/tasks/{task['id']}", headers=admin_headers)
        assert visible.status_code == 200

    async def test_review_unknown_proof(self, client: AsyncClient, admin_headers: dict[str, str]):
        response = await client.post("/api/admin/proofs/missing/review", json={"approve": True},
                                     headers=admin_headers)
        assert response.status_code == 404
        assert response.json() == {"detail": "Proof not found"}


class TestStatsEndpoint:
    async def test_new_user_has_zero_stats(self, client: AsyncClient, auth_headers: dict[str, str]):
        stats = (await client.get("/api/stats/me", headers=auth_headers)).json()
        assert stats["totalTasks"] == 0
        assert stats["totalStaked"] == 0
        assert stats["lastCompletedAt"] is None
