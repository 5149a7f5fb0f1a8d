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
"""Redis-backed session store."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from redis.exceptions import RedisError

from tether.kernel.exceptions import SessionBackendException

logger = structlog.get_logger("tether.session.redis")

DEFAULT_KEY_PREFIX = "tether:session:"


class RedisSessionStore:
    """Session store backed by ``redis.asyncio``.

    Values are JSON-serialized before storage and expire through Redis'
    own ``EX`` TTL. Keys are prefixed (``tether:session:`` by default) for
    namespace isolation. Every Redis error is re-raised as
    :class:`SessionBackendException`.
    """

    def __init__(self, client: Any, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self._client = client
        self._key_prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    async def load(self, session_id: str) -> dict[str, Any]:
        """Retrieve and deserialize session data."""
        async with self._translate_errors("load", session_id):
            raw = await self._client.get(self._key(session_id))
        if raw is None:
            return {}

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SessionBackendException(
                "Stored session payload is not valid JSON",
                context={"operation": "load"},
            ) from exc
        if not isinstance(data, dict):
            raise SessionBackendException(
                "Stored session payload is not a JSON object",
                context={"operation": "load"},
            )
        return data

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        """Serialize and store session data with a TTL in seconds."""
        raw = json.dumps(data).encode()
        async with self._translate_errors("save", session_id):
            await self._client.set(self._key(session_id), raw, ex=ttl)

    async def delete(self, session_id: str) -> None:
        """Remove a session."""
        async with self._translate_errors("delete", session_id):
            await self._client.delete(self._key(session_id))

    async def rename(self, old_id: str, new_id: str, data: dict[str, Any], ttl: int) -> None:
        """Write *new_id* and delete *old_id* in one ``MULTI/EXEC`` transaction."""
        raw = json.dumps(data).encode()
        async with self._translate_errors("rename", old_id):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(self._key(new_id), raw, ex=ttl)
                if old_id != new_id:
                    pipe.delete(self._key(old_id))
                await pipe.execute()

    async def exists(self, session_id: str) -> bool:
        """Check whether a session exists."""
        async with self._translate_errors("exists", session_id):
            count = await self._client.exists(self._key(session_id))
        return bool(count > 0)

    async def stop(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()

    @asynccontextmanager
    async def _translate_errors(self, operation: str, session_id: str) -> AsyncIterator[None]:
        try:
            yield
        except RedisError as exc:
            logger.warning("session_store_failure", operation=operation, session_id=session_id[:8], error=str(exc))
            raise SessionBackendException(
                f"Redis session store failed during {operation}",
                context={"operation": operation},
            ) from exc
