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
"""Session subsystem configuration properties."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from tether.core.config import config_properties


@config_properties(prefix="tether.session")
class SessionProperties(BaseModel):
    """Configuration for the session subsystem (tether.session.*).

    Keys may be written in kebab-case (``cookie-name``) or snake_case.

    ``failure_mode`` decides what happens when the session store fails:
    ``strict`` answers the exchange with a 503 error response, ``degraded``
    serves the exchange without a session and leaves the client cookie alone.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    cookie_name: str = Field(default="id", alias="cookie-name", min_length=1)
    timeout: int = Field(default=900, gt=0)
    path: str = "/"
    same_site: Literal["strict", "lax", "none"] = Field(default="lax", alias="same-site")
    failure_mode: Literal["strict", "degraded"] = Field(default="strict", alias="failure-mode")
    store: Literal["memory", "redis"] = "memory"
    redis_url: str = Field(default="redis://localhost:6379/0", alias="redis-url")
    key_prefix: str = Field(default="tether:session:", alias="key-prefix")
