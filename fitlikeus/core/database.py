"""
SQL backing for the document store.

Every collection lives in one `documents` table keyed by
(collection, doc_id) with the document body as JSON. SQLite URLs (tests,
local dev) share a single connection; anything else gets a bounded pool.
"""
from contextlib import contextmanager
import logging
import os
from typing import Iterator, Optional

from sqlalchemy import Column, DateTime, Index, JSON, MetaData, String, Table, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from fitlikeus.core.config import settings

logger = logging.getLogger("fitlikeus")

metadata = MetaData()

POOL_SIZE = 5
MAX_OVERFLOW = 10
POOL_TIMEOUT = 30
POOL_RECYCLE = 1800

documents = Table(
    "documents",
    metadata,
    Column("collection", String(64), primary_key=True),
    Column("doc_id", String(200), primary_key=True),
    Column("data", JSON, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("idx_documents_collection", "collection"),
)


def get_database_url() -> Optional[str]:
    """TEST_DATABASE_URL wins over DATABASE_URL when set."""
    return os.getenv("TEST_DATABASE_URL") or settings.DATABASE_URL


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        pool_pre_ping=True,
    )


@contextmanager
def get_db_session(engine: Engine) -> Iterator[Session]:
    """Session that commits on success and rolls back on any error."""
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables(engine: Engine) -> None:
    """Idempotent: existing tables are left alone."""
    metadata.create_all(bind=engine)


def check_connection(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Database connection check failed: {e}")
        return False
    return True
