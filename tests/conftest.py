"""Shared fixtures for workflow handler tests.

Provides an environment scrubbed of ``KINDE_WF_*`` variables, raw
runtime event factories, and a scripted ``httpx.MockTransport`` that
stands in for the Management API.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from kinde_workflows.billing.models import BillingAgreement, Organization, SubmissionResult
from kinde_workflows.management.client import ManagementAPIClient

TEST_DOMAIN = "https://tenant.example.com"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    """Keep host environment and any local .env file out of Settings."""
    for key in list(os.environ):
        if key.upper().startswith("KINDE_WF_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Raw runtime events
# ---------------------------------------------------------------------------


def make_auth_payload(
    *,
    is_new_user: bool = True,
    org_code: str | None = "org_1",
    user_id: str = "kp_user_1",
) -> dict[str, Any]:
    """Build a post-authentication payload shaped like the runtime's."""
    auth_url_params: dict[str, Any] = {}
    if org_code is not None:
        auth_url_params["orgCode"] = org_code
    return {
        "request": {"authUrlParams": auth_url_params, "ip": "203.0.113.7"},
        "context": {
            "auth": {"isNewUserRecordCreated": is_new_user, "connectionId": "conn_1"},
            "user": {"id": user_id},
        },
    }


def make_username_payload(username: Any) -> dict[str, Any]:
    return {"context": {"auth": {"suppliedUsername": username}}}


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


def make_organization(*agreements: tuple[str, str], code: str = "org_1") -> Organization:
    """Build an organization from ``(plan_code, agreement_id)`` pairs."""
    return Organization(
        code=code,
        billing_agreements=tuple(BillingAgreement(plan_code=p, agreement_id=a) for p, a in agreements),
    )


@pytest.fixture()
def mock_directory() -> AsyncMock:
    directory = AsyncMock()
    directory.get = AsyncMock(return_value=make_organization())
    return directory


@pytest.fixture()
def mock_sink() -> AsyncMock:
    sink = AsyncMock()
    sink.post = AsyncMock(side_effect=lambda submission: SubmissionResult(agreement_id=submission.agreement_id))
    return sink


# ---------------------------------------------------------------------------
# Management API transport
# ---------------------------------------------------------------------------


class FakeManagementAPI:
    """Records requests and answers from a ``(method, path) -> handler`` map.

    Handlers return an ``httpx.Response``.  Unknown routes answer 404.
    The token endpoint is pre-registered.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {
            ("POST", "/oauth2/token"): lambda _: httpx.Response(
                200, json={"access_token": "m2m-token", "expires_in": 86400, "token_type": "bearer"}
            ),
        }

    def route(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"errors": [{"code": "ROUTE_NOT_FOUND"}]})
        return route(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def fake_api() -> FakeManagementAPI:
    return FakeManagementAPI()


@pytest.fixture()
def auth_payload() -> Callable[..., dict[str, Any]]:
    return make_auth_payload


@pytest.fixture()
def username_payload() -> Callable[[Any], dict[str, Any]]:
    return make_username_payload


@pytest.fixture()
def organization() -> Callable[..., Organization]:
    return make_organization


@pytest.fixture()
def management_client(fake_api: FakeManagementAPI) -> ManagementAPIClient:
    """Management API client wired to :class:`FakeManagementAPI`."""
    return ManagementAPIClient(TEST_DOMAIN, "m2m-client", "m2m-secret", http_client=fake_api.client())
