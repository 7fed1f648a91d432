# =============================================================================
# File: sentinel/core/startup/infrastructure.py
# Description: Storage initialization (in-memory or PostgreSQL)
# =============================================================================

import logging
import pathlib
from typing import Optional

from sentinel.config.store_config import StoreBackend, get_store_config
from sentinel.core.app_state import ComponentOverrides
from sentinel.core.fastapi_types import FastAPI
from sentinel.infra.persistence import pg_client
from sentinel.infra.persistence.memory_directory import InMemoryDirectory
from sentinel.infra.persistence.memory_store import InMemoryRoomStore
from sentinel.infra.read_repos.directory_pg_repo import PostgresDirectory
from sentinel.infra.read_repos.room_pg_repo import PostgresRoomStore

logger = logging.getLogger("sentinel.startup.infrastructure")

SCHEMA_PATH = pathlib.Path(__file__).resolve().parents[2] / "infra" / "persistence" / "schema.sql"


async def initialize_storage(app: FastAPI, overrides: Optional[ComponentOverrides] = None) -> None:
    """
    Room store and directories.

    Overrides win; otherwise STORE_BACKEND picks the in-memory adapters or
    the asyncpg pool with the PostgreSQL adapters.
    """
    overrides = overrides or ComponentOverrides()
    config = get_store_config()

    store = overrides.room_store
    users = overrides.user_directory
    projects = overrides.project_directory

    needs_defaults = store is None or users is None or projects is None
    if needs_defaults and config.backend == StoreBackend.POSTGRES:
        await pg_client.init_db_pool(config)
        app.state.db_pool_owned = True
        logger.info("PostgreSQL pool initialized.")

        if config.run_schema:
            await pg_client.run_schema_from_file(SCHEMA_PATH)

        directory = PostgresDirectory()
        store = store or PostgresRoomStore()
        users = users or directory
        projects = projects or directory

    elif needs_defaults:
        logger.warning("STORE_BACKEND=memory: rooms and messages are lost on restart")
        directory = InMemoryDirectory()
        store = store or InMemoryRoomStore()
        users = users or directory
        projects = projects or directory

    app.state.room_store = store
    app.state.user_directory = users
    app.state.project_directory = projects

    logger.info(
        f"Storage ready: store={type(store).__name__}, "
        f"users={type(users).__name__}, projects={type(projects).__name__}"
    )


async def close_storage(app: FastAPI) -> None:
    if getattr(app.state, "db_pool_owned", False):
        await pg_client.close_db_pool()
        app.state.db_pool_owned = False
        logger.info("PostgreSQL pool closed.")
