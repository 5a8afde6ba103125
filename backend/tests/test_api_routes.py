"""Integration tests for API routes."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import StorageError
from app.core.utils import account_id_from_email, parse_timestamp


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert parse_timestamp(data["now"]) is not None

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestRegisterEndpoint:
    def test_register_success(self, client, app):
        response = client.post("/register", json={"email": "a@x.com", "password": "pw1"})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert app.state.repository.load(account_id_from_email("a@x.com")) is not None

    def test_register_normalization_collision(self, client):
        client.post("/register", json={"email": "a@x.com", "password": "pw1"})
        response = client.post("/register", json={"email": "A@X.COM ", "password": "pw2"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Account already exists"

    @pytest.mark.parametrize(
        "body",
        [{}, {"email": "a@x.com"}, {"password": "pw"}, {"email": "", "password": "pw"}],
    )
    def test_register_missing_fields(self, client, body):
        response = client.post("/register", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Email and password required"

    def test_register_without_body(self, client):
        assert client.post("/register").status_code == 400

    def test_register_malformed_json(self, client):
        response = client.post(
            "/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400


class TestLoginEndpoint:
    def test_login_returns_token(self, client):
        client.post("/register", json={"email": "a@x.com", "password": "pw1"})
        response = client.post("/login", json={"email": "a@x.com", "password": "pw1"})

        assert response.status_code == 200
        assert isinstance(response.json()["token"], str)

    def test_wrong_password_and_unknown_user_look_identical(self, client):
        client.post("/register", json={"email": "a@x.com", "password": "pw1"})

        wrong = client.post("/login", json={"email": "a@x.com", "password": "wrong"})
        unknown = client.post("/login", json={"email": "nouser@x.com", "password": "x"})

        assert wrong.status_code == unknown.status_code == 400
        assert wrong.json() == unknown.json() == {"detail": "Invalid login"}

    def test_login_missing_fields(self, client):
        assert client.post("/login", json={"email": "a@x.com"}).status_code == 400


class TestAuthentication:
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("get", "/sync/download"),
            ("post", "/sync/upload"),
            ("post", "/sync/merge"),
            ("post", "/account/delete"),
        ],
    )
    def test_missing_token(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client):
        response = client.get("/sync/download", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_non_bearer_scheme(self, client):
        response = client.get("/sync/download", headers={"Authorization": "Basic YTpi"})
        assert response.status_code == 401

    def test_unauthenticated_malformed_json_is_400(self, client):
        # The body is parsed before the bearer dependency runs
        response = client.post(
            "/sync/upload",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_unauthenticated_bad_body_is_401(self, client):
        response = client.post("/sync/upload", json={"transactions": "x"})
        assert response.status_code == 401


class TestSyncEndpoints:
    def test_download_empty(self, client, auth_headers):
        response = client.get("/sync/download", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"transactions": []}

    def test_upload_then_download(self, client, auth_headers, sample_transactions):
        response = client.post("/sync/upload", json={"transactions": sample_transactions}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        data = client.get("/sync/download", headers=auth_headers).json()
        assert [t["id"] for t in data["transactions"]] == ["1", "2", "3"]
        assert data["transactions"][0] == sample_transactions[0]

    @pytest.mark.parametrize("body", [{}, {"transactions": "x"}, {"transactions": {"id": "1"}}, {"transactions": None}])
    def test_upload_not_an_array(self, client, auth_headers, body):
        response = client.post("/sync/upload", json=body, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "transactions must be an array"

    def test_merge_scenario(self, client, auth_headers):
        client.post(
            "/sync/upload",
            json={"transactions": [{"id": "1", "title": "Coffee", "amount": -3.5, "date": "2024-01-01T00:00:00Z"}]},
            headers=auth_headers,
        )
        response = client.post(
            "/sync/merge",
            json={
                "transactions": [
                    {"id": "1", "amount": -4.0, "date": "2024-02-01T00:00:00Z"},
                    {"id": "2", "title": "Gift", "amount": 50, "date": "2024-01-15T00:00:00Z"},
                ]
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [(t["id"], t["amount"], t["date"]) for t in data["transactions"]] == [
            ("1", -4.0, "2024-02-01T00:00:00Z"),
            ("2", 50.0, "2024-01-15T00:00:00Z"),
        ]

        downloaded = client.get("/sync/download", headers=auth_headers).json()["transactions"]
        assert downloaded == data["transactions"]

    def test_upload_huge_integer_amount_defaults_to_zero(self, client, auth_headers):
        body = '{"transactions": [{"id": "1", "amount": 1' + "0" * 400 + "}]}"
        response = client.post(
            "/sync/upload",
            content=body.encode("utf-8"),
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        stored = client.get("/sync/download", headers=auth_headers).json()["transactions"]
        assert [(t["id"], t["amount"]) for t in stored] == [("1", 0.0)]

    def test_merge_not_an_array(self, client, auth_headers):
        response = client.post("/sync/merge", json={"transactions": 1}, headers=auth_headers)
        assert response.status_code == 400

    def test_accounts_are_isolated(self, client, auth_headers, sample_transactions):
        client.post("/sync/upload", json={"transactions": sample_transactions}, headers=auth_headers)

        other = {"email": "b@x.com", "password": "pw"}
        client.post("/register", json=other)
        token = client.post("/login", json=other).json()["token"]

        response = client.get("/sync/download", headers={"Authorization": f"Bearer {token}"})
        assert response.json() == {"transactions": []}


class TestDeleteAccountEndpoint:
    def test_missing_confirm(self, client, app, auth_headers):
        response = client.post("/account/delete", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing confirm flag"
        assert app.state.repository.load(account_id_from_email("a@x.com")) is not None

    def test_confirm_must_be_boolean_true(self, client, auth_headers):
        response = client.post("/account/delete", json={"confirm": "true"}, headers=auth_headers)
        assert response.status_code == 400

    def test_delete_removes_record(self, client, app, auth_headers):
        response = client.post("/account/delete", json={"confirm": True}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert app.state.repository.load(account_id_from_email("a@x.com")) is None

        # The token now points at a missing account
        assert client.get("/sync/download", headers=auth_headers).status_code == 401

    def test_can_register_again_after_delete(self, client, auth_headers):
        client.post("/account/delete", json={"confirm": True}, headers=auth_headers)
        response = client.post("/register", json={"email": "a@x.com", "password": "new"})
        assert response.status_code == 200


class TestServerErrors:
    def test_storage_error_is_generic_500(self, client, app, auth_headers):
        with patch.object(
            app.state.repository,
            "save",
            side_effect=StorageError("disk full at /data/users/secret.json"),
        ):
            response = client.post("/sync/upload", json={"transactions": []}, headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"detail": "Server error"}

    def test_unexpected_error_is_generic_500(self, app, auth_headers):
        with TestClient(app, raise_server_exceptions=False) as client:
            with patch.object(
                app.state.sync_service,
                "download",
                side_effect=RuntimeError("boom"),
            ):
                response = client.get("/sync/download", headers=auth_headers)

        assert response.status_code == 500
        assert "boom" not in response.text

    def test_corrupt_record_on_login_is_500(self, client, app):
        client.post("/register", json={"email": "a@x.com", "password": "pw1"})
        path = app.state.settings.users_dir / f"{account_id_from_email('a@x.com')}.json"
        path.write_text("{", encoding="utf-8")

        response = client.post("/login", json={"email": "a@x.com", "password": "pw1"})

        assert response.status_code == 500
        assert response.json() == {"detail": "Server error"}


class TestBodyLimit:
    def test_oversized_body_rejected(self, client, app, auth_headers):
        filler = "x" * (app.state.settings.max_body_bytes + 1)
        response = client.post(
            "/sync/upload",
            json={"transactions": [{"title": filler}]},
            headers=auth_headers,
        )
        assert response.status_code == 413
