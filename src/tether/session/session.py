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
"""Session — the per-client session lifecycle state machine."""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Any, cast

import structlog

from tether.session.identifier import generate_session_id, is_valid_session_id
from tether.session.ports.outbound import SessionIdGenerator, SessionStore

logger = structlog.get_logger("tether.session")

DEFAULT_TTL = 900  # 15 minutes


class SessionState(enum.Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    CLOSED = "closed"
    DESTROYED = "destroyed"


class Session:
    """In-memory view of one client's session data, persisted through a store.

    The lifecycle is ``start() -> set/get/... -> close()``, optionally ending in
    ``destroy()``. Lifecycle violations (starting twice, closing a session that
    is not started) are reported through ``False`` return values. Store
    failures propagate as :class:`~tether.kernel.exceptions.SessionBackendException`.

    Data can only be changed while the session is started. Outside that
    window ``get()`` returns the default, ``has()`` returns ``False`` and the
    mutators do nothing beyond logging a ``session_write_ignored`` warning.
    Code that must not lose writes should check ``started`` first.

    Args:
        store: Where the session data is loaded from and persisted to.
        ttl: Record lifetime in seconds, passed to the store on every write.
        id_generator: Identifier factory. Defaults to the store's own
            ``generate_id()`` when it has one, else :func:`generate_session_id`.
            Inbound identifiers are checked with the store's ``validate_id()``
            when it has one, else :func:`is_valid_session_id`.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        ttl: int = DEFAULT_TTL,
        id_generator: Callable[[], str] | None = None,
    ) -> None:
        validate_id: Callable[[Any], bool] = is_valid_session_id
        if isinstance(store, SessionIdGenerator):
            validate_id = store.validate_id
            if id_generator is None:
                id_generator = store.generate_id
        self._store = store
        self._ttl = ttl
        self._generate_id = id_generator or generate_session_id
        self._validate_id = validate_id
        self._id: str | None = None
        self._data: dict[str, Any] = {}
        self._state = SessionState.NOT_STARTED
        self._regeneration_pending = False
        self._is_new = False

    @property
    def id(self) -> str | None:
        """Current identifier; ``None`` once destroyed or before the first start."""
        return self._id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def ttl(self) -> int:
        return self._ttl

    @property
    def is_new(self) -> bool:
        """``True`` if the identifier was generated by the last ``start()``."""
        return self._is_new

    @property
    def regeneration_pending(self) -> bool:
        return self._regeneration_pending

    @property
    def started(self) -> bool:
        return self._state is SessionState.STARTED

    # -- lifecycle -----------------------------------------------------------

    async def start(self, session_id: str | None = None) -> bool:
        """Open the session, loading data for *session_id* from the store.

        A missing or malformed *session_id* is never trusted: a fresh
        identifier is generated and the session starts empty.

        Returns ``False`` without touching any state if already started.
        """
        if self._state is SessionState.STARTED:
            logger.warning("session_already_started", session_id=_short(self._id))
            return False

        if session_id is not None and self._validate_id(session_id):
            data = await self._store.load(session_id)
            is_new = False
        else:
            if session_id is not None:
                logger.info("session_id_rejected", reason="malformed")
            session_id = self._generate_id()
            data = {}
            is_new = True

        self._id = session_id
        self._data = dict(data)
        self._is_new = is_new
        self._regeneration_pending = False
        self._state = SessionState.STARTED
        logger.debug("session_started", session_id=_short(session_id), is_new=is_new)
        return True

    async def close(self) -> bool:
        """Persist the data and end the session, applying any pending regeneration.

        On a store failure the exception propagates and the session stays
        started with its old identifier, so the close can be retried.
        """
        if self._state is not SessionState.STARTED:
            return False
        session_id = cast(str, self._id)

        if self._regeneration_pending:
            new_id = self._generate_id()
            await self._store.rename(session_id, new_id, self._data, self._ttl)
            logger.info("session_id_regenerated", old_id=_short(session_id), new_id=_short(new_id))
            self._id = new_id
            self._regeneration_pending = False
        else:
            await self._store.save(session_id, self._data, self._ttl)

        self._state = SessionState.CLOSED
        logger.debug("session_closed", session_id=_short(self._id))
        return True

    async def destroy(self) -> None:
        """Delete the stored record and wipe all local state.

        Local state is cleared even if the store delete fails; the store
        error still propagates to the caller.
        """
        if self._state in (SessionState.NOT_STARTED, SessionState.DESTROYED):
            return

        session_id = self._id
        try:
            if session_id is not None:
                await self._store.delete(session_id)
        finally:
            self._data = {}
            self._id = None
            self._is_new = False
            self._regeneration_pending = False
            self._state = SessionState.DESTROYED
            logger.info("session_destroyed", session_id=_short(session_id))

    def regenerate_id(self) -> bool:
        """Request a new identifier, applied atomically at the next ``close()``.

        The data is kept. Returns ``False`` unless the session is started.
        """
        if self._state is not SessionState.STARTED:
            return False
        self._regeneration_pending = True
        return True

    def cancel_regeneration(self) -> bool:
        """Drop a pending ``regenerate_id()`` so the next ``close()`` keeps the current id.

        Returns ``True`` if a regeneration was pending.
        """
        pending = self._regeneration_pending
        self._regeneration_pending = False
        return pending

    # -- data access ---------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under *key*, or *default*."""
        if self._state is not SessionState.STARTED:
            return default
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if self._state is SessionState.STARTED:
            self._data[key] = value
        else:
            self._ignored_write("set", key)

    def unset(self, key: str) -> None:
        if self._state is SessionState.STARTED:
            self._data.pop(key, None)
        else:
            self._ignored_write("unset", key)

    def has(self, key: str) -> bool:
        return self._state is SessionState.STARTED and key in self._data

    def clear(self) -> None:
        """Remove every key. The identifier and state are kept."""
        if self._state is SessionState.STARTED:
            self._data.clear()
        else:
            self._ignored_write("clear")

    def keys(self) -> list[str]:
        if self._state is not SessionState.STARTED:
            return []
        return list(self._data)

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the session data."""
        if self._state is not SessionState.STARTED:
            return {}
        return dict(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def _ignored_write(self, operation: str, key: str | None = None) -> None:
        logger.warning("session_write_ignored", operation=operation, key=key, state=self._state.name)

    def __repr__(self) -> str:
        return f"Session(id={_short(self._id)!r}, state={self._state.name})"


def _short(session_id: str | None) -> str | None:
    """Truncate an identifier for logging."""
    return session_id[:8] if session_id else None
