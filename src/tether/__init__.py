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
"""Tether — storage-agnostic server-side sessions for ASGI applications."""

from tether.context.binder import attach_session, current_session, retrieve_session
from tether.core.config import Config
from tether.kernel.exceptions import SessionBackendException, SessionNotBoundException, TetherException
from tether.session import Session, SessionFilter, SessionState, SessionStore

__version__ = "0.1.0"

__all__ = [
    "Config",
    "Session",
    "SessionBackendException",
    "SessionFilter",
    "SessionNotBoundException",
    "SessionState",
    "SessionStore",
    "TetherException",
    "attach_session",
    "current_session",
    "retrieve_session",
]
