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
"""Session subsystem wiring from configuration."""

from __future__ import annotations

import importlib

import structlog

from tether.config.properties.session import SessionProperties
from tether.core.config import Config
from tether.logging.port import LoggingPort
from tether.logging.structlog_adapter import StructlogAdapter
from tether.session.filter import SessionFilter
from tether.session.ports.outbound import SessionStore

logger = structlog.get_logger("tether.session.configuration")


def is_available(module: str) -> bool:
    """Return ``True`` if *module* can be imported."""
    try:
        importlib.import_module(module)
        return True
    except ImportError:
        return False


def logging_adapter(config: Config) -> LoggingPort:
    """Configure structlog from ``tether.logging.*`` and return the adapter."""
    adapter = StructlogAdapter()
    adapter.configure(config)
    return adapter


def session_properties(config: Config) -> SessionProperties:
    """Bind ``tether.session.*`` into :class:`SessionProperties`."""
    return config.bind(SessionProperties)


def session_store(config: Config) -> SessionStore:
    """Build the session store selected by ``tether.session.store``.

    Raises:
        ValueError: If ``redis`` is selected but ``redis.asyncio`` is not installed.
    """
    props = session_properties(config)

    if props.store == "redis":
        if not is_available("redis.asyncio"):
            raise ValueError("tether.session.store=redis requires the 'redis' package")

        import redis.asyncio as aioredis

        from tether.session.adapters.redis import RedisSessionStore

        client = aioredis.from_url(props.redis_url)  # type: ignore[no-untyped-call,unused-ignore]
        logger.info("session_store_configured", store="redis")
        return RedisSessionStore(client=client, key_prefix=props.key_prefix)

    from tether.session.adapters.memory import InMemorySessionStore

    return InMemorySessionStore()


def session_filter(config: Config, store: SessionStore | None = None) -> SessionFilter:
    """Build a :class:`SessionFilter` from configuration, creating the store if needed.

    A ``tether.logging`` section, when present, configures logging first so
    the store and filter log through it.
    """
    if config.get_section("tether.logging"):
        logging_adapter(config)
    props = session_properties(config)
    return SessionFilter(store=store if store is not None else session_store(config), properties=props)
