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
"""Tests for the request context session binder."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from starlette.requests import Request

from tether.context.binder import attach_session, current_session, detach_session, retrieve_session
from tether.kernel.exceptions import SessionNotBoundException
from tether.session.adapters.memory import InMemorySessionStore
from tether.session.session import Session


def _request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": []})


class TestAttachRetrieve:
    def test_round_trip_on_starlette_request(self):
        request = _request()
        session = Session(InMemorySessionStore())
        attach_session(request, session)
        assert retrieve_session(request) is session
        assert request.state.session is session

    def test_plain_object_context(self):
        context = SimpleNamespace()
        session = Session(InMemorySessionStore())
        attach_session(context, session)
        assert context.session is session
        assert retrieve_session(context) is session

    def test_retrieve_without_attach_raises(self):
        with pytest.raises(SessionNotBoundException) as exc_info:
            retrieve_session(_request())
        assert exc_info.value.code == "SESSION_NOT_BOUND"

    def test_retrieve_never_creates_a_session(self):
        context = SimpleNamespace()
        with pytest.raises(SessionNotBoundException):
            retrieve_session(context)
        assert not hasattr(context, "session")


class TestCurrentSession:
    def test_attach_sets_current(self):
        session = Session(InMemorySessionStore())
        attach_session(SimpleNamespace(), session)
        assert current_session() is session

    def test_detach_clears_binding(self):
        context = SimpleNamespace()
        attach_session(context, Session(InMemorySessionStore()))
        detach_session(context)
        assert current_session() is None
        with pytest.raises(SessionNotBoundException):
            retrieve_session(context)

    def test_detach_without_binding_is_noop(self):
        detach_session(_request())
        assert current_session() is None
