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
"""Tether exception hierarchy.

All errors raised by the library derive from :class:`TetherException`, which
carries an optional error code and a context dict for structured error data.

Lifecycle-state violations (double ``start()``, ``close()`` without ``start()``)
are deliberately *not* exceptions: the session reports them through boolean
return values. Storage failures always raise.
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class TetherException(Exception):
    """Base exception for all Tether errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SESSION_BACKEND_ERROR").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Session Exceptions
# =============================================================================


class SessionException(TetherException):
    """Caller errors around session usage."""


class SessionNotBoundException(SessionException):
    """No session was attached to the exchange context being queried."""

    default_code = "SESSION_NOT_BOUND"


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(TetherException):
    """Infrastructure failures: storage, cache, network."""


class SessionBackendException(InfrastructureException):
    """A session store failed to read, write, rename or delete a record."""

    default_code = "SESSION_BACKEND_ERROR"
