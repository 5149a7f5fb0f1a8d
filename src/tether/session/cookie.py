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
"""CookieDirective — the outbound ``Set-Cookie`` value carrying the session id."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from email.utils import format_datetime
from typing import Literal

SameSite = Literal["strict", "lax", "none"]

# One second past the epoch: an expiry every client treats as already past.
EXPIRED_AT = datetime(1970, 1, 1, 0, 0, 1, tzinfo=UTC)


@dataclass(frozen=True)
class CookieDirective:
    """A rendered-on-demand ``Set-Cookie`` header value.

    ``HttpOnly`` is always emitted. ``SameSite=None`` implies ``Secure``
    because browsers discard the combination otherwise.
    """

    name: str
    value: str
    expires: datetime
    path: str = "/"
    same_site: SameSite = "lax"
    secure: bool = False
    http_only: bool = True

    @classmethod
    def issue(
        cls,
        name: str,
        value: str,
        ttl: int,
        *,
        path: str = "/",
        same_site: SameSite = "lax",
        secure: bool = False,
        now: datetime | None = None,
    ) -> CookieDirective:
        """Directive storing *value* until now + *ttl* seconds."""
        now = now or datetime.now(UTC)
        return cls(
            name=name,
            value=value,
            expires=now + timedelta(seconds=ttl),
            path=path,
            same_site=same_site,
            secure=secure,
        )

    @classmethod
    def expire(
        cls,
        name: str,
        *,
        path: str = "/",
        same_site: SameSite = "lax",
        secure: bool = False,
    ) -> CookieDirective:
        """Directive instructing the client to drop the cookie immediately."""
        return cls(
            name=name,
            value="",
            expires=EXPIRED_AT,
            path=path,
            same_site=same_site,
            secure=secure,
        )

    @property
    def is_expired(self) -> bool:
        return self.expires <= datetime.now(UTC)

    def render(self) -> str:
        parts = [
            f"{self.name}={self.value}",
            f"Expires={format_datetime(self.expires.astimezone(UTC), usegmt=True)}",
            f"Path={self.path}",
            f"SameSite={self.same_site.capitalize()}",
        ]
        if self.secure or self.same_site == "none":
            parts.append("Secure")
        if self.http_only:
            parts.append("HttpOnly")
        return "; ".join(parts)

    def __str__(self) -> str:
        return self.render()
