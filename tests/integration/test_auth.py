"""
Integration Tests for the built-in authentication.

Tests cover:
    - Login endpoint success and failure codes
    - Default authenticator on protected routes
    - Separate read/write/delete RouteConfigs
"""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from restpipe import RestApi, RouteConfig
from restpipe.auth import security
from tests.conftest import JWT_SECRET, PrivateWidget, Widget, bearer


class TestLogin:
    def test_login_returns_token(self, client: TestClient) -> None:
        resp = client.post("/api/login", json={"name": "admin", "password": "password"})

        assert resp.status_code == 200
        claims = security.decode_token(resp.json()["token"], JWT_SECRET)
        assert claims["id"] == 1

    def test_wrong_password_is_403(self, client: TestClient) -> None:
        resp = client.post("/api/login", json={"name": "admin", "password": "nope"})

        assert resp.status_code == 403
        assert resp.json() == {"detail": "Login failed"}

    def test_unknown_user_is_403(self, client: TestClient) -> None:
        assert client.post("/api/login", json={"name": "ghost", "password": "x"}).status_code == 403

    def test_malformed_body_is_422(self, client: TestClient) -> None:
        assert client.post("/api/login", content=b"{name").status_code == 422

    def test_non_object_body_is_422(self, client: TestClient) -> None:
        assert client.post("/api/login", json=["admin", "password"]).status_code == 422


class TestDefaultAuthenticator:
    def test_missing_token_is_401(self, api: RestApi, client: TestClient) -> None:
        api.add_default_routes(Widget, RouteConfig(use_default_auth=True))

        resp = client.get("/api/widgets")

        assert resp.status_code == 401
        assert resp.json() == {"detail": "Unauthorized"}

    def test_valid_token_is_accepted(self, api: RestApi, client: TestClient) -> None:
        api.add_default_routes(Widget, RouteConfig(use_default_auth=True))
        token = client.post("/api/login", json={"name": "user2", "password": "user2pass"}).json()["token"]

        resp = client.get("/api/widgets", headers=bearer(token))

        assert resp.status_code == 200
        assert len(resp.json()) == 3

    def test_principal_is_the_user(self, api: RestApi, client: TestClient, token_for) -> None:
        seen = []

        def authorize(req) -> bool:
            seen.append(req.principal)
            return True

        api.add_index_route(Widget, RouteConfig(use_default_auth=True, authorize=authorize))

        assert client.get("/api/widgets", headers=bearer(token_for(2))).status_code == 200
        assert seen[0].name == "user2"

    def test_bad_signature_is_401(self, api: RestApi, client: TestClient) -> None:
        api.add_default_routes(Widget, RouteConfig(use_default_auth=True))
        forged = security.build_token(1, "some-other-secret-of-reasonable-length")

        assert client.get("/api/widgets", headers=bearer(forged)).status_code == 401

    def test_expired_token_is_401(self, api: RestApi, client: TestClient) -> None:
        api.add_default_routes(Widget, RouteConfig(use_default_auth=True))
        stale = security.build_token(1, JWT_SECRET, issued_at=security.now_epoch_s() - 2 * security.TOKEN_TTL_S)

        assert client.get("/api/widgets", headers=bearer(stale)).status_code == 401

    def test_unknown_subject_is_401(self, api: RestApi, client: TestClient, token_for) -> None:
        api.add_default_routes(Widget, RouteConfig(use_default_auth=True))

        assert client.get("/api/widgets", headers=bearer(token_for(999))).status_code == 401

    def test_wrong_scheme_is_401(self, api: RestApi, client: TestClient, token_for) -> None:
        api.add_default_routes(Widget, RouteConfig(use_default_auth=True))

        resp = client.get("/api/widgets", headers={"Authorization": f"Token {token_for(1)}"})

        assert resp.status_code == 401

    def test_auth_failure_stops_before_persistence(self, api: RestApi, client: TestClient) -> None:
        api.add_default_routes(Widget, RouteConfig(use_default_auth=True))

        assert client.post("/api/widgets", json={"name": "sneaky"}).status_code == 401
        assert all(w.name != "sneaky" for w in _all_widgets(api))


def _all_widgets(api: RestApi) -> list[Widget]:
    return asyncio.run(api.store.list(Widget, "widgets"))


class TestReadWriteConfigs:
    def test_read_open_write_protected(self, api: RestApi, client: TestClient) -> None:
        api.add_default_routes(
            PrivateWidget,
            RouteConfig(uri_model_name="trwo_ro"),
            RouteConfig(use_default_auth=True, uri_model_name="trwo_ro"),
        )

        assert client.get("/api/trwo_ro").status_code == 200
        assert client.post("/api/trwo_ro", json={"name": "sqlinjector"}).status_code == 401
        assert client.delete("/api/trwo_ro/1").status_code == 401

    def test_only_delete_protected(self, api: RestApi, client: TestClient) -> None:
        api.add_default_routes(
            PrivateWidget,
            RouteConfig(uri_model_name="trwo_rw"),
            RouteConfig(uri_model_name="trwo_rw"),
            RouteConfig(use_default_auth=True, uri_model_name="trwo_rw"),
        )

        assert client.get("/api/trwo_rw").status_code == 200
        assert client.post("/api/trwo_rw", json={"name": "important widget"}).status_code == 200
        assert client.delete("/api/trwo_rw/1").status_code == 401
