"""
Integration tests for admin endpoints
"""
import pytest


@pytest.fixture
def alice(register_user):
    return register_user("alice@x.com", "secret1")


class TestAdminAccess:
    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/admin/keys"),
            ("post", "/admin/keys"),
            ("patch", "/admin/keys/1/toggle"),
            ("delete", "/admin/keys/1"),
            ("get", "/admin/users"),
        ],
    )
    def test_non_admin_is_forbidden(self, client, auth_headers, method, path):
        response = client.request(method, path, headers=auth_headers, json={"userId": 1})
        assert response.status_code == 403

    def test_anonymous_is_unauthorized(self, client):
        assert client.get("/admin/keys").status_code == 401


class TestAdminKeys:
    def test_create_key_for_user(self, client, admin_headers, alice):
        response = client.post(
            "/admin/keys", json={"userId": alice["user"]["id"]}, headers=admin_headers
        )
        assert response.status_code == 201
        data = response.json()
        assert data["user"] == {"id": alice["user"]["id"], "email": "alice@x.com"}
        assert data["key"].startswith("wp_")

        own = client.get("/keys", headers={"Authorization": f"Bearer {alice['token']}"})
        assert [k["id"] for k in own.json()] == [data["id"]]

    def test_create_key_for_unknown_user(self, client, admin_headers):
        response = client.post("/admin/keys", json={"userId": 9999}, headers=admin_headers)
        assert response.status_code == 404

    def test_list_all_keys(self, client, admin_headers, alice, register_user):
        bob = register_user("bob@y.com")
        for payload in (alice, bob):
            client.post(
                "/keys/generate", headers={"Authorization": f"Bearer {payload['token']}"}
            )
        response = client.get("/admin/keys", headers=admin_headers)
        assert response.status_code == 200
        assert [k["user"]["email"] for k in response.json()] == ["bob@y.com", "alice@x.com"]

    def test_toggle_key(self, client, admin_headers, api_key):
        off = client.patch(f"/admin/keys/{api_key['id']}/toggle", headers=admin_headers)
        assert off.json() == {"id": api_key["id"], "isActive": False}
        on = client.patch(f"/admin/keys/{api_key['id']}/toggle", headers=admin_headers)
        assert on.json() == {"id": api_key["id"], "isActive": True}

    def test_toggle_missing_key(self, client, admin_headers):
        assert client.patch("/admin/keys/9999/toggle", headers=admin_headers).status_code == 404

    def test_delete_key_keeps_logs(self, client, admin_headers, auth_headers, api_key, mailer):
        client.post(
            "/api/send-receipt",
            headers={"X-API-Key": api_key["key"]},
            json={"item": "Widget", "price": "15000", "recipientEmail": "bob@y.com"},
        )

        response = client.delete(f"/admin/keys/{api_key['id']}", headers=admin_headers)
        assert response.status_code == 204
        assert client.delete(f"/admin/keys/{api_key['id']}", headers=admin_headers).status_code == 404

        # The deleted key no longer authorizes anything
        again = client.post(
            "/api/send-receipt",
            headers={"X-API-Key": api_key["key"]},
            json={"item": "Widget", "price": "15000", "recipientEmail": "bob@y.com"},
        )
        assert again.status_code == 401

        logs = client.get("/logs", headers=auth_headers).json()
        assert len(logs) == 1
        assert logs[0]["apiKeyId"] is None
        assert logs[0]["apiKey"] == api_key["key"][:10] + "..."


class TestAdminUsers:
    def test_list_users_with_key_counts(self, client, admin_headers, alice):
        alice_headers = {"Authorization": f"Bearer {alice['token']}"}
        client.post("/keys/generate", headers=alice_headers)
        client.post("/keys/generate", headers=alice_headers)

        response = client.get("/admin/users", headers=admin_headers)
        assert response.status_code == 200
        users = {u["email"]: u for u in response.json()}
        assert users["alice@x.com"]["apiKeyCount"] == 2
        assert users["alice@x.com"]["role"] == "USER"
        assert users["admin@example.com"]["apiKeyCount"] == 0
        assert users["admin@example.com"]["role"] == "ADMIN"
