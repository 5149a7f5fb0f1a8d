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
"""Session store protocols."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """Abstract session persistence interface.

    All session backends (in-memory, Redis, etc.) must implement this protocol.
    Any I/O failure must surface as
    :class:`~tether.kernel.exceptions.SessionBackendException`.

    Stores must tolerate concurrent calls for distinct identifiers. Two
    exchanges saving the same identifier resolve as last-write-wins.
    """

    async def load(self, session_id: str) -> dict[str, Any]:
        """Return the stored data, or an empty dict when nothing is stored."""
        ...

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        """Replace the stored data for *session_id*, expiring after *ttl* seconds."""
        ...

    async def delete(self, session_id: str) -> None:
        """Remove the record. Deleting a missing identifier is not an error."""
        ...

    async def rename(self, old_id: str, new_id: str, data: dict[str, Any], ttl: int) -> None:
        """Move a session to a new identifier in one step.

        *data* is written under *new_id* before *old_id* is deleted, so a
        failure can never leave the data absent under both identifiers.
        """
        ...


@runtime_checkable
class SessionIdGenerator(Protocol):
    """Optional store capability: identifiers in a store-specific format.

    A store implementing this replaces both the default generator and the
    default 32-hex-character format check used on inbound identifiers.
    """

    def generate_id(self) -> str: ...

    def validate_id(self, value: str) -> bool: ...
