# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for SessionFilter — one session lifecycle per HTTP exchange."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime
from types import SimpleNamespace
from typing import Any

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from tether.config.properties.session import SessionProperties
from tether.context.binder import current_session, retrieve_session
from tether.kernel.exceptions import SessionBackendException
from tether.session.adapters.memory import InMemorySessionStore
from tether.session.filter import SessionFilter
from tether.session.identifier import is_valid_session_id
from tether.session.session import Session, SessionState
from tether.web.adapters.starlette.filter_chain import WebFilterChainMiddleware

ALICE_ID = "abcd" * 8


class CountingStore(InMemorySessionStore):
    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        self.writes.append("save")
        await super().save(session_id, data, ttl)

    async def rename(self, old_id: str, new_id: str, data: dict[str, Any], ttl: int) -> None:
        self.writes.append("rename")
        await super().rename(old_id, new_id, data, ttl)


class FailingStore(InMemorySessionStore):
    def __init__(self, *failing: str) -> None:
        super().__init__()
        self.failing = set(failing)

    async def load(self, session_id: str) -> dict[str, Any]:
        if "load" in self.failing:
            raise SessionBackendException("store offline")
        return await super().load(session_id)

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        if "save" in self.failing:
            raise SessionBackendException("store offline")
        await super().save(session_id, data, ttl)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _whoami(request: Request) -> JSONResponse:
    session = retrieve_session(request)
    return JSONResponse({"user": session.get("user", None), "started": session.started})


async def _login(request: Request) -> JSONResponse:
    session = retrieve_session(request)
    session.set("role", "admin")
    session.regenerate_id()
    return JSONResponse({"id_during_request": session.id})


async def _logout(request: Request) -> PlainTextResponse:
    await retrieve_session(request).destroy()
    return PlainTextResponse("bye")


async def _boom(request: Request) -> PlainTextResponse:
    retrieve_session(request).set("visited", True)
    raise RuntimeError("handler failure")


async def _current(request: Request) -> JSONResponse:
    return JSONResponse({"same": current_session() is retrieve_session(request)})


async def _health(request: Request) -> PlainTextResponse:
    return PlainTextResponse("OK")


async def _escalate_then_fail(request: Request) -> PlainTextResponse:
    session = retrieve_session(request)
    session.set("role", "admin")
    session.regenerate_id()
    raise RuntimeError("failed after regenerate")


def _make_app(session_filter: SessionFilter) -> Starlette:
    return Starlette(
        routes=[
            Route("/", _whoami),
            Route("/login", _login),
            Route("/logout", _logout),
            Route("/boom", _boom),
            Route("/current", _current),
            Route("/health", _health),
            Route("/escalate", _escalate_then_fail),
        ],
        middleware=[Middleware(WebFilterChainMiddleware, filters=[session_filter])],
    )


def _client(store: InMemorySessionStore, **props: Any) -> TestClient:
    return TestClient(_make_app(SessionFilter(store, SessionProperties(**props))))


def _cookie_parts(header: str) -> dict[str, str]:
    first, *attributes = header.split("; ")
    name, _, value = first.partition("=")
    parts = {"__name__": name, "__value__": value}
    for attribute in attributes:
        key, _, val = attribute.partition("=")
        parts[key] = val
    return parts


def _seed(store: InMemorySessionStore, session_id: str, data: dict[str, Any]) -> None:
    asyncio.run(store.save(session_id, data, 900))


def _load(store: InMemorySessionStore, session_id: str) -> dict[str, Any]:
    return asyncio.run(store.load(session_id))


# ---------------------------------------------------------------------------
# Exchange scenarios
# ---------------------------------------------------------------------------


class TestFreshExchange:
    def test_issues_cookie_for_new_session(self):
        store = InMemorySessionStore()
        resp = _client(store).get("/")

        assert resp.status_code == 200
        cookie = _cookie_parts(resp.headers["set-cookie"])
        assert cookie["__name__"] == "id"
        assert is_valid_session_id(cookie["__value__"])
        assert cookie["Path"] == "/"
        assert cookie["SameSite"] == "Lax"
        assert "HttpOnly" in cookie
        assert "Secure" not in cookie

    def test_expiry_is_now_plus_timeout(self):
        store = InMemorySessionStore()
        before = datetime.now(UTC).replace(microsecond=0)
        resp = _client(store).get("/")

        expires = parsedate_to_datetime(_cookie_parts(resp.headers["set-cookie"])["Expires"])
        assert before + timedelta(seconds=899) <= expires <= datetime.now(UTC) + timedelta(seconds=901)

    def test_empty_session_is_persisted(self):
        store = InMemorySessionStore()
        resp = _client(store).get("/")
        session_id = _cookie_parts(resp.headers["set-cookie"])["__value__"]
        assert _load(store, session_id) == {}
        assert len(store) == 1


class TestReturningExchange:
    def test_loads_existing_data(self):
        store = InMemorySessionStore()
        _seed(store, ALICE_ID, {"user": "alice"})
        client = _client(store)
        client.cookies.set("id", ALICE_ID)

        resp = client.get("/")
        assert resp.json() == {"user": "alice", "started": True}
        assert _cookie_parts(resp.headers["set-cookie"])["__value__"] == ALICE_ID

    def test_malformed_cookie_gets_new_id(self):
        store = InMemorySessionStore()
        client = _client(store)
        client.cookies.set("id", "attacker-fixed-value")

        resp = client.get("/")
        issued = _cookie_parts(resp.headers["set-cookie"])["__value__"]
        assert issued != "attacker-fixed-value"
        assert is_valid_session_id(issued)


class TestDestroy:
    def test_logout_expires_cookie(self):
        store = InMemorySessionStore()
        _seed(store, ALICE_ID, {"user": "alice"})
        client = _client(store)
        client.cookies.set("id", ALICE_ID)

        resp = client.get("/logout")
        cookie = _cookie_parts(resp.headers["set-cookie"])
        assert cookie["__value__"] == ""
        assert cookie["Expires"] == "Thu, 01 Jan 1970 00:00:01 GMT"
        assert parsedate_to_datetime(cookie["Expires"]) < datetime.now(UTC)
        assert len(store) == 0


class TestRegeneration:
    def test_cookie_carries_post_close_id(self):
        store = InMemorySessionStore()
        client = _client(store)
        client.cookies.set("id", ALICE_ID)

        resp = client.get("/login")
        new_id = _cookie_parts(resp.headers["set-cookie"])["__value__"]
        assert resp.json()["id_during_request"] == ALICE_ID
        assert new_id != ALICE_ID
        assert is_valid_session_id(new_id)

    def test_new_id_loads_data(self):
        store = InMemorySessionStore()
        client = _client(store)
        client.cookies.set("id", ALICE_ID)
        new_id = _cookie_parts(client.get("/login").headers["set-cookie"])["__value__"]

        assert _load(store, new_id) == {"role": "admin"}
        assert _load(store, ALICE_ID) == {}


class TestHandlerFailure:
    def test_session_closed_when_handler_raises(self):
        store = InMemorySessionStore()
        client = TestClient(_make_app(SessionFilter(store)), raise_server_exceptions=False)
        client.cookies.set("id", ALICE_ID)

        resp = client.get("/boom")
        assert resp.status_code == 500
        assert _load(store, ALICE_ID) == {"visited": True}

    def test_handler_exception_propagates(self):
        client = _client(InMemorySessionStore())
        with pytest.raises(RuntimeError, match="handler failure"):
            client.get("/boom")

    async def test_session_closed_on_cancellation(self):
        store = InMemorySessionStore()
        session_filter = SessionFilter(store)
        request = SimpleNamespace(
            cookies={"id": ALICE_ID},
            url=SimpleNamespace(path="/", scheme="http"),
            state=SimpleNamespace(),
        )

        async def _cancelled(req: Any) -> Any:
            retrieve_session(req).set("seen", 1)
            raise asyncio.CancelledError

        with pytest.raises(asyncio.CancelledError):
            await session_filter.do_filter(request, _cancelled)
        assert await store.load(ALICE_ID) == {"seen": 1}
        assert not hasattr(request.state, "session")

    def test_regeneration_dropped_when_handler_raises(self):
        store = InMemorySessionStore()
        _seed(store, ALICE_ID, {"user": "alice"})
        client = TestClient(_make_app(SessionFilter(store)), raise_server_exceptions=False)
        client.cookies.set("id", ALICE_ID)

        resp = client.get("/escalate")
        assert resp.status_code == 500
        assert "set-cookie" not in resp.headers
        assert _load(store, ALICE_ID) == {"user": "alice", "role": "admin"}
        assert len(store) == 1

    async def test_destroy_then_raise_leaves_no_record(self):
        store = CountingStore()
        await store.save(ALICE_ID, {"user": "alice"}, 900)
        store.writes.clear()
        seen: list[Session] = []
        request = SimpleNamespace(
            cookies={"id": ALICE_ID},
            url=SimpleNamespace(path="/", scheme="http"),
            state=SimpleNamespace(),
        )

        async def _logout_then_fail(req: Any) -> Any:
            session = retrieve_session(req)
            seen.append(session)
            await session.destroy()
            raise RuntimeError("failed after destroy")

        with pytest.raises(RuntimeError, match="failed after destroy"):
            await SessionFilter(store).do_filter(request, _logout_then_fail)
        assert await store.exists(ALICE_ID) is False
        assert store.writes == []
        assert seen[0].state is SessionState.DESTROYED
        assert await seen[0].close() is False
        assert len(store) == 0


class TestCookieAttributes:
    def test_secure_on_https(self):
        store = InMemorySessionStore()
        client = TestClient(_make_app(SessionFilter(store)), base_url="https://testserver")
        resp = client.get("/")
        assert "Secure" in _cookie_parts(resp.headers["set-cookie"])

    def test_configured_name_path_and_same_site(self):
        store = InMemorySessionStore()
        resp = _client(store, cookie_name="sid", path="/app", same_site="strict", timeout=60).get("/")
        cookie = _cookie_parts(resp.headers["set-cookie"])
        assert cookie["__name__"] == "sid"
        assert cookie["Path"] == "/app"
        assert cookie["SameSite"] == "Strict"

    def test_excluded_path_has_no_session(self):
        store = InMemorySessionStore()
        session_filter = SessionFilter(store)
        session_filter.exclude_patterns = ["/health"]
        resp = TestClient(_make_app(session_filter)).get("/health")
        assert "set-cookie" not in resp.headers
        assert len(store) == 0


class TestContextBinding:
    def test_current_session_matches_request_binding(self):
        resp = _client(InMemorySessionStore()).get("/current")
        assert resp.json() == {"same": True}


class TestBackendFailures:
    def test_strict_start_failure_returns_503(self):
        client = _client(FailingStore("load"))
        client.cookies.set("id", ALICE_ID)

        resp = client.get("/")
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "SESSION_BACKEND_ERROR"
        assert "set-cookie" not in resp.headers

    def test_strict_close_failure_returns_503(self):
        resp = _client(FailingStore("save")).get("/")
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "SESSION_BACKEND_ERROR"
        assert "set-cookie" not in resp.headers

    def test_degraded_start_failure_serves_without_session(self):
        client = _client(FailingStore("load"), failure_mode="degraded")
        client.cookies.set("id", ALICE_ID)

        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json() == {"user": None, "started": False}
        assert "set-cookie" not in resp.headers

    def test_degraded_close_failure_keeps_response(self):
        resp = _client(FailingStore("save"), failure_mode="degraded").get("/")
        assert resp.status_code == 200
        assert "set-cookie" not in resp.headers


class TestSessionFilterDefaults:
    def test_default_properties(self):
        props = SessionFilter(InMemorySessionStore()).properties
        assert props.cookie_name == "id"
        assert props.timeout == 900
        assert props.same_site == "lax"
        assert props.path == "/"
        assert props.failure_mode == "strict"

    async def test_state_after_exchange_is_closed(self):
        store = InMemorySessionStore()
        seen: list[Session] = []

        async def _capture(req: Any) -> Any:
            seen.append(retrieve_session(req))
            return PlainTextResponse("ok")

        request = SimpleNamespace(
            cookies={},
            url=SimpleNamespace(path="/", scheme="http"),
            state=SimpleNamespace(),
        )
        response = await SessionFilter(store).do_filter(request, _capture)
        assert seen[0].state is SessionState.CLOSED
        assert response.headers["set-cookie"].startswith(f"id={seen[0].id};")
