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
"""SessionFilter — runs one session lifecycle per HTTP exchange."""

from __future__ import annotations

from typing import Any

import structlog

from tether.config.properties.session import SessionProperties
from tether.context.binder import attach_session, detach_session
from tether.kernel.exceptions import SessionBackendException
from tether.session.cookie import CookieDirective
from tether.session.ports.outbound import SessionStore
from tether.session.session import Session
from tether.web.errors import error_response
from tether.web.filters import OncePerRequestFilter
from tether.web.ports.filter import CallNext

logger = structlog.get_logger("tether.session")

_SECURE_SCHEMES = frozenset({"https", "wss"})


class SessionFilter(OncePerRequestFilter):
    """Manages server-side sessions via a configurable cookie.

    For every request: reads the session cookie, starts a :class:`Session`
    with it, binds the session to the request (``request.state.session``),
    calls the rest of the chain, closes the session and finally writes the
    resulting identifier back as a ``Set-Cookie`` header. A session that
    was destroyed during the exchange gets an expiring cookie instead.

    The session is closed on every exit path, including handler errors and
    cancellation. The cookie is computed after the close, so an identifier
    regenerated by the handler is the one sent to the client.
    """

    def __init__(
        self,
        store: SessionStore,
        properties: SessionProperties | None = None,
    ) -> None:
        self._store = store
        self._properties = properties or SessionProperties()

    @property
    def properties(self) -> SessionProperties:
        return self._properties

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session = Session(self._store, ttl=self._properties.timeout)
        inbound_id = getattr(request, "cookies", {}).get(self._properties.cookie_name)

        try:
            started = await session.start(inbound_id)
        except SessionBackendException as exc:
            if self._properties.failure_mode == "strict":
                logger.error("session_start_failed", path=request.url.path, error=str(exc))
                return error_response(request, exc)
            logger.warning("session_start_degraded", path=request.url.path, error=str(exc))
            return await self._call_without_session(request, session, call_next)

        if not started:
            raise RuntimeError("Session was already started before the SessionFilter ran")

        attach_session(request, session)
        try:
            response = await call_next(request)
        except BaseException:
            await self._close_after_failure(session)
            raise
        finally:
            detach_session(request)

        try:
            await session.close()
        except SessionBackendException as exc:
            if self._properties.failure_mode == "strict":
                logger.error("session_close_failed", path=request.url.path, error=str(exc))
                return error_response(request, exc)
            logger.warning("session_close_degraded", path=request.url.path, error=str(exc))
            return response

        response.headers.append("set-cookie", self._cookie_for(request, session).render())
        return response

    def _cookie_for(self, request: Any, session: Session) -> CookieDirective:
        props = self._properties
        secure = request.url.scheme in _SECURE_SCHEMES
        if session.id is None:
            return CookieDirective.expire(
                props.cookie_name, path=props.path, same_site=props.same_site, secure=secure
            )
        return CookieDirective.issue(
            props.cookie_name,
            session.id,
            props.timeout,
            path=props.path,
            same_site=props.same_site,
            secure=secure,
        )

    async def _call_without_session(self, request: Any, session: Session, call_next: CallNext) -> Any:
        """Degraded mode: the handler sees an unstarted session and no cookie is written.

        Writes to the session are ignored with a warning; handlers can test
        ``session.started`` to tell this case apart.
        """
        attach_session(request, session)
        try:
            return await call_next(request)
        finally:
            detach_session(request)

    async def _close_after_failure(self, session: Session) -> None:
        """Close after the downstream raised; the original error keeps propagating.

        A pending regeneration is dropped: no cookie will reach the client, so
        the data must stay under the identifier it already holds.
        """
        if session.cancel_regeneration():
            logger.warning("session_regeneration_dropped", session_id=(session.id or "")[:8])
        try:
            await session.close()
        except SessionBackendException as exc:
            logger.error("session_close_failed", session_id=(session.id or "")[:8], error=str(exc))
