"""End-to-end tests for the HTTP API against the in-memory database."""

from uuid import uuid4

from httpx import AsyncClient

from tests.conftest import FakeUserDirectory, RecordingNotifier


async def _login(client: AsyncClient, user_id: str, email: str) -> dict[str, str]:
    response = await client.post(
        "/api/v1/internal/keys",
        json={"type": "login", "issuer_id": user_id, "subject": email},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['secret']}"}


class TestKeysAPI:
    async def test_issue_and_identify(self, client: AsyncClient) -> None:
        user_id = str(uuid4())
        headers = await _login(client, user_id, "alice@example.com")

        response = await client.post("/api/v1/keys", json={}, headers=headers)
        assert response.status_code == 201
        body = response.json()
        assert body["data"]["type"] == "api"
        assert body["data"]["issuer_id"] == user_id

        identity = await client.post("/api/v1/internal/identify", json={"token": body["secret"]})
        assert identity.status_code == 200
        assert identity.json() == {"id": user_id, "email": "alice@example.com"}

    async def test_revoked_key_no_longer_identifies(self, client: AsyncClient) -> None:
        headers = await _login(client, str(uuid4()), "alice@example.com")
        created = (await client.post("/api/v1/keys", json={}, headers=headers)).json()

        response = await client.delete(f"/api/v1/keys/{created['data']['id']}", headers=headers)
        assert response.status_code == 204

        response = await client.post("/api/v1/internal/identify", json={"token": created["secret"]})
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"

    async def test_missing_bearer_is_unauthorized(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/orgs", json={"name": "Acme"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error_code"] == "UNAUTHORIZED"

    async def test_garbage_token_is_unauthorized(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/orgs", headers={"Authorization": "Bearer not-a-key"}
        )

        assert response.status_code == 401


class TestOrgsAPI:
    async def test_create_view_and_authorize(
        self, client: AsyncClient, users: FakeUserDirectory
    ) -> None:
        alice = users.register("alice@example.com")
        headers = await _login(client, str(alice.id), alice.email)

        response = await client.post(
            "/api/v1/orgs", json={"name": "Acme", "metadata": {"tier": "gold"}}, headers=headers
        )
        assert response.status_code == 201
        org = response.json()["data"]
        assert org["owner_id"] == str(alice.id)

        listed = await client.get("/api/v1/orgs", headers=headers)
        assert listed.json()["meta"]["total"] == 1

        role = await client.get(f"/api/v1/internal/orgs/{org['id']}/members/{alice.id}/role")
        assert role.json() == {"role": "owner"}

        token = headers["Authorization"].removeprefix("Bearer ")
        allowed = await client.post(
            "/api/v1/internal/authorize",
            json={"token": token, "subject": "org", "object": org["id"], "action": "admin"},
        )
        assert allowed.status_code == 204

        denied = await client.post(
            "/api/v1/internal/authorize", json={"token": token, "subject": "root"}
        )
        assert denied.status_code == 403

    async def test_unknown_org_is_not_found(
        self, client: AsyncClient, users: FakeUserDirectory
    ) -> None:
        alice = users.register("alice@example.com")
        headers = await _login(client, str(alice.id), alice.email)

        response = await client.get(f"/api/v1/orgs/{uuid4()}", headers=headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "ORG_NOT_FOUND"

    async def test_delete_with_members_conflicts(
        self, client: AsyncClient, users: FakeUserDirectory
    ) -> None:
        alice = users.register("alice@example.com")
        bob = users.register("bob@example.com")
        headers = await _login(client, str(alice.id), alice.email)
        org_id = (await client.post("/api/v1/orgs", json={"name": "Acme"}, headers=headers)).json()[
            "data"
        ]["id"]

        added = await client.post(
            f"/api/v1/orgs/{org_id}/memberships",
            json={"members": [{"email": "BOB@example.com", "role": "editor"}]},
            headers=headers,
        )
        assert added.status_code == 201

        blocked = await client.delete(f"/api/v1/orgs/{org_id}", headers=headers)
        assert blocked.status_code == 409
        assert blocked.json()["error_code"] == "ORG_NOT_EMPTY"

        removed = await client.post(
            f"/api/v1/orgs/{org_id}/memberships/remove",
            json={"member_ids": [str(bob.id)]},
            headers=headers,
        )
        assert removed.status_code == 204

        deleted = await client.delete(f"/api/v1/orgs/{org_id}", headers=headers)
        assert deleted.status_code == 204

    async def test_invalid_body_is_validation_error(
        self, client: AsyncClient, users: FakeUserDirectory
    ) -> None:
        alice = users.register("alice@example.com")
        headers = await _login(client, str(alice.id), alice.email)

        response = await client.post("/api/v1/orgs", json={"name": ""}, headers=headers)

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_internal_owner_lookup(
        self, client: AsyncClient, users: FakeUserDirectory
    ) -> None:
        alice = users.register("alice@example.com")
        headers = await _login(client, str(alice.id), alice.email)
        org_id = (await client.post("/api/v1/orgs", json={"name": "Acme"}, headers=headers)).json()[
            "data"
        ]["id"]

        found = await client.get(f"/api/v1/internal/orgs/{org_id}/owner")
        missing = await client.get(f"/api/v1/internal/orgs/{uuid4()}/owner")

        assert found.status_code == 200
        assert found.json() == {"owner_id": str(alice.id)}
        assert missing.status_code == 404
        assert missing.json()["error_code"] == "ORG_NOT_FOUND"


class TestInvitesAPI:
    async def test_invite_accept_flow(
        self, client: AsyncClient, users: FakeUserDirectory, notifier: RecordingNotifier
    ) -> None:
        alice = users.register("alice@example.com")
        bob = users.register("bob@example.com")
        alice_headers = await _login(client, str(alice.id), alice.email)
        bob_headers = await _login(client, str(bob.id), bob.email)
        org_id = (
            await client.post("/api/v1/orgs", json={"name": "Acme"}, headers=alice_headers)
        ).json()["data"]["id"]

        created = await client.post(
            f"/api/v1/orgs/{org_id}/invites",
            json={"email": "bob@example.com", "role": "editor", "redirect_path": "/welcome"},
            headers=alice_headers,
        )
        assert created.status_code == 201
        invite = created.json()["data"]
        assert invite["invitee_id"] == str(bob.id)
        assert invite["state"] == "pending"
        assert notifier.org_invites[0][1] == "/welcome"

        duplicate = await client.post(
            f"/api/v1/orgs/{org_id}/invites",
            json={"invitee_id": str(bob.id), "role": "viewer"},
            headers=alice_headers,
        )
        assert duplicate.status_code == 409

        received = await client.get(f"/api/v1/users/{bob.id}/invites", headers=bob_headers)
        assert [i["id"] for i in received.json()["data"]] == [invite["id"]]

        accepted = await client.post(
            f"/api/v1/invites/{invite['id']}/accept", headers=bob_headers
        )
        assert accepted.status_code == 204

        member = await client.get(
            f"/api/v1/orgs/{org_id}/memberships/{bob.id}", headers=alice_headers
        )
        assert member.json()["data"]["role"] == "editor"

        again = await client.post(f"/api/v1/invites/{invite['id']}/decline", headers=bob_headers)
        assert again.status_code == 409

    async def test_invite_requires_one_invitee(
        self, client: AsyncClient, users: FakeUserDirectory
    ) -> None:
        alice = users.register("alice@example.com")
        headers = await _login(client, str(alice.id), alice.email)

        response = await client.post(
            f"/api/v1/orgs/{uuid4()}/invites", json={"role": "viewer"}, headers=headers
        )

        assert response.status_code == 422

    async def test_unregistered_email_gets_platform_invite(
        self, client: AsyncClient, users: FakeUserDirectory, notifier: RecordingNotifier
    ) -> None:
        alice = users.register("alice@example.com")
        headers = await _login(client, str(alice.id), alice.email)
        org_id = (await client.post("/api/v1/orgs", json={"name": "Acme"}, headers=headers)).json()[
            "data"
        ]["id"]

        created = await client.post(
            f"/api/v1/orgs/{org_id}/invites",
            json={"email": "dana@example.com", "role": "viewer"},
            headers=headers,
        )
        assert created.status_code == 201
        assert created.json()["data"]["invitee_id"] is None

        platform_invite, _, org_name = notifier.platform_invites[0]
        assert org_name == "Acme"

        validated = await client.post(
            f"/api/v1/internal/platform-invites/{platform_invite.id}/validate",
            json={"email": "dana@example.com"},
        )
        assert validated.status_code == 204

        dana = users.register("dana@example.com")
        activated = await client.post(
            f"/api/v1/internal/platform-invites/{platform_invite.id}/activate",
            json={"user_id": str(dana.id)},
        )
        assert activated.status_code == 200
        assert [i["invitee_id"] for i in activated.json()["data"]] == [str(dana.id)]


class TestPlatformRolesAPI:
    async def test_role_round_trip(self, client: AsyncClient) -> None:
        user_id = uuid4()

        assigned = await client.post(
            f"/api/v1/internal/users/{user_id}/role", json={"role": "admin"}
        )
        assert assigned.status_code == 201

        conflict = await client.post(
            f"/api/v1/internal/users/{user_id}/role", json={"role": "root"}
        )
        assert conflict.status_code == 409

        updated = await client.put(f"/api/v1/internal/users/{user_id}/role", json={"role": "root"})
        assert updated.status_code == 204
        assert (await client.get(f"/api/v1/internal/users/{user_id}/role")).json() == {
            "role": "root"
        }

        removed = await client.delete(f"/api/v1/internal/users/{user_id}/role")
        assert removed.status_code == 204
        assert (await client.get(f"/api/v1/internal/users/{user_id}/role")).json() == {"role": ""}

    async def test_unknown_role_rejected(self, client: AsyncClient) -> None:
        response = await client.put(
            f"/api/v1/internal/users/{uuid4()}/role", json={"role": "owner"}
        )

        assert response.status_code == 422
