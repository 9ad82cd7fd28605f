"""Database engine factory.

Every SQLAlchemy Engine in Storefront comes from `make_engine`, so all
connections get the same backend-specific tuning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

    from sqlalchemy.engine import Engine

SQLITE_NAMES = {"sqlite", "sqlite+pysqlite"}

SQLITE_PRAGMAS = (
    "PRAGMA foreign_keys=ON;",
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA temp_store=MEMORY;",
)


def is_sqlite(url: str | URL) -> bool:
    """Return True if *url* points at a SQLite database."""
    return make_url(str(url)).get_backend_name() in SQLITE_NAMES


def is_sqlite_memory(url: str | URL) -> bool:
    """Return True if *url* is an in-memory SQLite database."""
    parsed = make_url(str(url))
    return parsed.get_backend_name() in SQLITE_NAMES and parsed.database in (
        None,
        "",
        ":memory:",
    )


def make_engine(url: str | URL, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy Engine for *url*.

    SQLite connections get foreign keys enforced, WAL journaling, NORMAL
    synchronous mode and in-memory temp storage. An in-memory SQLite database
    is shared by every connection of the engine, so a schema created on one
    connection is visible to the transactions opened later.

    Args:
        url: Database connection URL.
        echo: If True, log SQL statements.
    """
    if is_sqlite_memory(url):
        engine = create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(url, echo=echo)

    if is_sqlite(url):

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn: SQLiteConnection, conn_record):  # type: ignore #pylint: disable=W0613
            cur = dbapi_conn.cursor()
            for pragma in SQLITE_PRAGMAS:
                cur.execute(pragma)
            cur.close()

    return engine
