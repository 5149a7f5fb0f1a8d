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
"""In-memory session store with TTL-based expiry."""

from __future__ import annotations

import asyncio
import copy
import time
from typing import Any


class InMemorySessionStore:
    """In-memory session store with TTL support and asyncio.Lock for safety.

    Records are deep-copied on the way in and out, so callers never share
    mutable state with the store. Suitable for development, testing, and
    single-process applications.
    """

    def __init__(self) -> None:
        self._store: dict[str, tuple[dict[str, Any], float]] = {}
        self._lock = asyncio.Lock()

    async def load(self, session_id: str) -> dict[str, Any]:
        """Retrieve session data. Returns an empty dict if missing or expired."""
        async with self._lock:
            data = self._get_live(session_id)
            return copy.deepcopy(data) if data is not None else {}

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        """Replace session data, expiring after *ttl* seconds."""
        async with self._lock:
            self._store[session_id] = (copy.deepcopy(data), time.monotonic() + ttl)

    async def delete(self, session_id: str) -> None:
        """Remove a session."""
        async with self._lock:
            self._store.pop(session_id, None)

    async def rename(self, old_id: str, new_id: str, data: dict[str, Any], ttl: int) -> None:
        """Move *data* to *new_id* and drop *old_id* under a single lock hold."""
        async with self._lock:
            self._store[new_id] = (copy.deepcopy(data), time.monotonic() + ttl)
            if old_id != new_id:
                self._store.pop(old_id, None)

    async def exists(self, session_id: str) -> bool:
        """Check if a session exists and is not expired."""
        async with self._lock:
            return self._get_live(session_id) is not None

    def __len__(self) -> int:
        now = time.monotonic()
        return sum(1 for _, expires_at in self._store.values() if expires_at >= now)

    def _get_live(self, session_id: str) -> dict[str, Any] | None:
        entry = self._store.get(session_id)
        if entry is None:
            return None

        data, expires_at = entry
        if time.monotonic() > expires_at:
            del self._store[session_id]
            return None
        return data
