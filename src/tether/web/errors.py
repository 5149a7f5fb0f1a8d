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
"""Structured JSON error responses for Tether exceptions."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from tether.kernel.exceptions import (
    InfrastructureException,
    SessionBackendException,
    SessionNotBoundException,
    TetherException,
)

# Exception -> HTTP status code mapping (most specific first)
_STATUS_MAP: dict[type, int] = {
    SessionBackendException: 503,
    SessionNotBoundException: 500,
    InfrastructureException: 502,
}


def _get_status_code(exc: Exception) -> int:
    for exc_type, status in _STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return status
    return 500


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Build the JSON error body for *exc*.

    Only :class:`TetherException` messages are exposed; anything else is
    reported as a generic internal error.
    """
    transaction_id = getattr(request.state, "transaction_id", str(uuid.uuid4()))
    timestamp = datetime.now(UTC).isoformat()

    if isinstance(exc, TetherException):
        status = _get_status_code(exc)
        body: dict[str, Any] = {
            "error": {
                "message": str(exc),
                "code": exc.code or type(exc).__name__,
                "transaction_id": transaction_id,
                "timestamp": timestamp,
                "status": status,
                "path": request.url.path,
            }
        }
        if exc.context:
            body["error"]["context"] = exc.context
    else:
        status = 500
        body = {
            "error": {
                "message": "Internal server error",
                "code": "INTERNAL_ERROR",
                "transaction_id": transaction_id,
                "timestamp": timestamp,
                "status": status,
                "path": request.url.path,
            }
        }

    return JSONResponse(body, status_code=status)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Starlette exception handler, e.g. ``exception_handlers={TetherException: global_exception_handler}``."""
    return error_response(request, exc)
