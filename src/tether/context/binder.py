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
"""Binds a :class:`~tether.session.session.Session` to a per-exchange context.

The context is any object carrying per-exchange state: a Starlette
``Request`` (bound on ``request.state``) or any plain attribute holder.
The most recently attached session is also tracked in a ``ContextVar`` so
code without access to the request can reach it for the current task.

Retrieving from a context that has no session raises
:class:`~tether.kernel.exceptions.SessionNotBoundException`; a session is
never created implicitly.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from tether.kernel.exceptions import SessionNotBoundException

if TYPE_CHECKING:
    from tether.session.session import Session

_ATTRIBUTE = "session"

_current_session_var: ContextVar[Session | None] = ContextVar("tether_current_session", default=None)


def _holder(context: Any) -> Any:
    state = getattr(context, "state", None)
    return state if state is not None else context


def attach_session(context: Any, session: Session) -> None:
    """Bind *session* to *context* and to the current task."""
    setattr(_holder(context), _ATTRIBUTE, session)
    _current_session_var.set(session)


def retrieve_session(context: Any) -> Session:
    """Return the session bound to *context*.

    Raises:
        SessionNotBoundException: If no session was attached.
    """
    session = getattr(_holder(context), _ATTRIBUTE, None)
    if session is None:
        raise SessionNotBoundException(
            "No session is bound to this context; is the SessionFilter installed?"
        )
    return session


def detach_session(context: Any) -> None:
    """Remove the binding from *context* and from the current task."""
    holder = _holder(context)
    if getattr(holder, _ATTRIBUTE, None) is not None:
        delattr(holder, _ATTRIBUTE)
    _current_session_var.set(None)


def current_session() -> Session | None:
    """Return the session attached in the current task, or ``None``."""
    return _current_session_var.get()
