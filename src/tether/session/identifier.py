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
"""Session identifier generation and validation."""

from __future__ import annotations

import re
import secrets
from typing import Any

SESSION_ID_BYTES = 16

_SESSION_ID_RE = re.compile(r"[0-9a-fA-F]{32}")


def generate_session_id() -> str:
    """Return a fresh identifier: 16 CSPRNG bytes as 32 lowercase hex characters."""
    return secrets.token_bytes(SESSION_ID_BYTES).hex()


def is_valid_session_id(value: Any) -> bool:
    """Return ``True`` if *value* has the shape of a generated session identifier.

    Anything else (wrong type, wrong length, non-hex characters) must be
    treated by callers as if no identifier had been presented at all.
    """
    return isinstance(value, str) and _SESSION_ID_RE.fullmatch(value) is not None
