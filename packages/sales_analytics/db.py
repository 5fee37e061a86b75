"""SQLAlchemy access to the relational copy of the invoice export.

The hosted store keeps one row per invoice line in the ``ARINV`` table. This
package only reads it, as a fallback source for the dataset (see
:class:`~sales_analytics.sources.DatabaseDataSource`); the schema itself is
owned by the hosting application.

Usage
-----
from sales_analytics.db import session_scope

with session_scope() as s:
    s.execute(...)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import BigInteger, Integer, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

INVOICE_TABLE = "ARINV"

# Columns exported to CSV, in header order.
INVOICE_COLUMNS: tuple[str, ...] = (
    "TOTAL",
    "INV_DATE",
    "NAME",
    "TREE_DESCR",
    "ADDRESS1",
    "ADDRESS2",
    "CITY",
    "STATE",
    "ZIP",
)


class Base(DeclarativeBase):
    pass


class InvoiceLine(Base):
    """One invoice line; every business column is text, as in the export."""

    __tablename__ = INVOICE_TABLE

    # SQLite only auto-assigns rowid for INTEGER PRIMARY KEY.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    TOTAL: Mapped[str | None] = mapped_column(String, nullable=True)
    INV_DATE: Mapped[str | None] = mapped_column(String, nullable=True)
    NAME: Mapped[str | None] = mapped_column(String, nullable=True)
    TREE_DESCR: Mapped[str | None] = mapped_column(String, nullable=True)
    ADDRESS1: Mapped[str | None] = mapped_column(String, nullable=True)
    ADDRESS2: Mapped[str | None] = mapped_column(String, nullable=True)
    CITY: Mapped[str | None] = mapped_column(String, nullable=True)
    STATE: Mapped[str | None] = mapped_column(String, nullable=True)
    ZIP: Mapped[str | None] = mapped_column(String, nullable=True)


_ENGINES: dict[str, Engine] = {}
_SESSION_MAKERS: dict[str, sessionmaker[Session]] = {}


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the shared engine for ``database_url``, creating it on first use."""

    url = _database_url(database_url)
    engine = _ENGINES.get(url)
    if engine is None:
        engine = create_engine(url, pool_pre_ping=True)
        _ENGINES[url] = engine
        _SESSION_MAKERS[url] = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
    return engine


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new session bound to the shared engine."""

    get_engine(database_url=database_url)
    return _SESSION_MAKERS[_database_url(database_url)]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "INVOICE_TABLE",
    "INVOICE_COLUMNS",
    "Base",
    "InvoiceLine",
    "get_engine",
    "get_session",
    "session_scope",
]
