"""Application factory for the hypha FastAPI app.

This module exposes `create_app(config: Config) -> FastAPI` which performs
all setup (logging, server config bootstrap, storage and session store
composition, middleware and router registration). Nothing happens at
import time so tests can construct isolated apps.

To create an app for production or local runs:

    from hypha_lib.main import create_app, Config
    app = create_app(Config())

Routes that need the session depend on `hypha_lib.middleware.get_session`.
"""
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict

from fastapi import FastAPI

from hypha_lib.bootstrap import bootstrap_server
from hypha_lib.logging_config import configure_logging
from hypha_lib.session import (
    DEFAULT_COOKIE_NAME,
    FileLockProvider,
    KeyedLockProvider,
    LockProvider,
    SessionStore,
)
from hypha_lib.storage import create_storage

SESSION_CONFIG_KEYS = ('cookie_name', 'auto_start', 'strict_reads')


@dataclass(frozen=True)
class Config:
    data_dir: str = "data"
    storage_backend: str = "file"
    serializer: str = "pickle"
    cookie_name: str = DEFAULT_COOKIE_NAME
    # Sessions are only ever started by bootstrap_session; True is rejected
    auto_start: bool = False
    # Reject `Session.get` outside a lock instead of returning the snapshot
    strict_reads: bool = False

    def apply_server_config(self, server_cfg: Dict[str, Any]) -> "Config":
        """Return a copy with the `session` section of `server_cfg` applied.

        Only the session keys may be overridden; storage settings must be
        known before the server config can be read.
        """
        section = server_cfg.get('session') or {}
        if not isinstance(section, dict):
            raise ValueError("invalid server_config format: 'session' must be a mapping")
        overrides = {k: v for k, v in section.items() if k in SESSION_CONFIG_KEYS}
        return replace(self, **overrides)


def create_lock_provider(config: Config) -> LockProvider:
    """Pick the lock provider that matches the storage backend.

    File-backed sessions may be shared by several worker processes, so
    they lock with lock files; memory-backed sessions only live in this
    process and use an in-process keyed mutex.
    """
    if config.storage_backend == "file":
        return FileLockProvider(Path(config.data_dir) / "locks")
    return KeyedLockProvider()


def create_app(config: Config) -> FastAPI:
    """Create and return a configured FastAPI application."""
    logger = configure_logging(Path(config.data_dir) / 'config' / 'server_config.yml')

    # Server config lives in YAML so operators can edit it
    storage_yaml = create_storage(
        backend=config.storage_backend,
        serializer='yaml',
        data_dir=config.data_dir,
    )
    server_cfg = bootstrap_server(
        storage_yaml,
        logger,
        session_defaults={k: getattr(config, k) for k in SESSION_CONFIG_KEYS},
    )
    config = config.apply_server_config(server_cfg)

    session_storage = create_storage(
        backend=config.storage_backend,
        serializer=config.serializer,
        data_dir=config.data_dir,
    )
    locks = create_lock_provider(config)
    session_store = SessionStore(session_storage, locks)

    from hypha_lib.services import ServiceContainer

    container = ServiceContainer()
    container.register_singleton("config", config)
    container.register_singleton("server_config_storage", storage_yaml)
    container.register_singleton("session_storage", session_storage)
    container.register_singleton("session_locks", locks)
    container.register_singleton("session_store", session_store)

    app = FastAPI(title="Hypha Server")
    app.state.container = container

    from hypha_lib.middleware import SessionMiddleware
    app.add_middleware(SessionMiddleware, session_store=session_store, config=config)
    logger.info("Session storage: %s (%s), cookie %s", config.storage_backend, config.serializer, config.cookie_name)

    # Router registration: import routers here to avoid import-time side-effects
    from hypha_lib.server.api import router as server_router
    app.include_router(server_router, prefix='/api')

    return app
