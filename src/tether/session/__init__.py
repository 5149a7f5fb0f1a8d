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
"""Tether Session — server-side session lifecycle with pluggable stores.

Import concrete store types from the adapter package::

    from tether.session.adapters.memory import InMemorySessionStore
    from tether.session.adapters.redis import RedisSessionStore
"""

from tether.session.cookie import CookieDirective
from tether.session.filter import SessionFilter
from tether.session.identifier import generate_session_id, is_valid_session_id
from tether.session.ports.outbound import SessionIdGenerator, SessionStore
from tether.session.session import Session, SessionState

__all__ = [
    "CookieDirective",
    "Session",
    "SessionFilter",
    "SessionIdGenerator",
    "SessionState",
    "SessionStore",
    "generate_session_id",
    "is_valid_session_id",
]
