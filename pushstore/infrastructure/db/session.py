"""
Database session management (SQLAlchemy, embedded SQLite file)
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for all ORM models
    """
    pass


def get_sqlite_url(filename: str) -> str:
    """Convert a filesystem path to an SQLAlchemy SQLite URL."""
    if filename.startswith("sqlite:"):
        return filename
    return f"sqlite:///{filename}"


def create_sqlite_engine(filename: str, busy_timeout: float = 5.0) -> Engine:
    """
    Create an engine for the database file at `filename` (created if absent).

    pysqlite's implicit transaction handling is disabled; BEGIN is emitted
    on every SQLAlchemy transaction, reads included. A connection or engine
    with execution option `begin_immediate=True` starts with BEGIN IMMEDIATE
    and holds the write lock from the first statement.
    """
    engine = create_engine(
        get_sqlite_url(filename),
        connect_args={"timeout": busy_timeout},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        if conn.get_execution_options().get("begin_immediate"):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def get_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to `engine`; objects stay readable after commit."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
