"""
Schema initializer: create-if-absent, version stamp, forward migrations.

Runs once when a store is opened.
"""
import logging
from typing import Callable, Dict, Optional

from sqlalchemy import inspect, select, update
from sqlalchemy.engine import Connection, Engine

from pushstore.infrastructure.db.models import SchemaVersion
from pushstore.infrastructure.db.session import Base

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 1
SCHEMA_VERSION_ROW_ID = 1

# from_version -> step that upgrades the layout to from_version + 1
MigrationStep = Callable[[Connection], None]
MIGRATIONS: Dict[int, MigrationStep] = {}


class SchemaVersionError(RuntimeError):
    pass


def setup_schema(
    engine: Engine,
    current_version: int = CURRENT_SCHEMA_VERSION,
    migrations: Optional[Dict[int, MigrationStep]] = None,
) -> int:
    """
    Ensure the database has the required tables and a stamped version.

    Args:
        engine: engine bound to the database file
        current_version: layout revision this code expects
        migrations: upgrade steps (default: MIGRATIONS)

    Returns:
        Schema version after setup

    Raises:
        SchemaVersionError: stamp missing, newer than supported, or no step to upgrade it
    """
    if migrations is None:
        migrations = MIGRATIONS

    # write lock held from the start: concurrent openers wait on the busy timeout
    with engine.execution_options(begin_immediate=True).begin() as conn:
        if not inspect(conn).has_table(SchemaVersion.__tablename__):
            _setup_new_db(conn, current_version)
            return current_version

        version = conn.execute(
            select(SchemaVersion.version).where(SchemaVersion.id == SCHEMA_VERSION_ROW_ID)
        ).scalar_one_or_none()

        if version is None:
            raise SchemaVersionError("schemaVersion table exists but holds no version row")
        if version > current_version:
            raise SchemaVersionError(
                f"database schema version {version} is newer than supported version {current_version}"
            )
        if version == current_version:
            return version

        _migrate(conn, version, current_version, migrations)
    return current_version


def _setup_new_db(conn: Connection, version: int) -> None:
    """Tables, indexes and version stamp, inside the caller's transaction."""
    Base.metadata.create_all(conn)
    conn.execute(SchemaVersion.__table__.insert().values(id=SCHEMA_VERSION_ROW_ID, version=version))
    logger.info("Created web push database schema (version %d)", version)


def _migrate(conn: Connection, from_version: int, to_version: int, migrations: Dict[int, MigrationStep]) -> None:
    for version in range(from_version, to_version):
        step = migrations.get(version)
        if step is None:
            raise SchemaVersionError(f"no migration registered from schema version {version}")
        logger.info("Migrating web push database schema %d -> %d", version, version + 1)
        step(conn)

    conn.execute(
        update(SchemaVersion)
        .where(SchemaVersion.id == SCHEMA_VERSION_ROW_ID)
        .values(version=to_version)
    )
