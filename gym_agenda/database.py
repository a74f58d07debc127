import logging
import os
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from .config import DATABASE_URL, TRANSACTION_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


class TransactionAbortedError(Exception):
    """A transaction kept conflicting with concurrent writers and ran out of attempts"""


class DocumentMissingError(Exception):
    """A document that is expected to always exist (e.g. a weekday) was not found"""


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # SQLite is used for local runs; FastAPI serves sync endpoints from a thread pool
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Test connections before using
        "pool_recycle": POOL_RECYCLE,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
    }


try:
    engine = create_engine(DATABASE_URL, echo=False, **_engine_kwargs(DATABASE_URL))
    logger.info("✅ Database engine created successfully")
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

# Slow query logging for performance monitoring
if ENABLE_QUERY_LOGGING:

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

    logger.info(f"📊 Slow query logging enabled (threshold: {SLOW_QUERY_THRESHOLD}s)")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_in_transaction(
    db: Session,
    operation: Callable[[Session], T],
    max_attempts: Optional[int] = None,
    name: str = "transaction",
) -> T:
    """
    Run ``operation`` as one optimistic-concurrency transaction.

    Every document row carries a version counter, so a write against a row that
    changed after it was read fails at flush with ``StaleDataError``; a racing
    insert of the same key fails with ``IntegrityError``. Either way the whole
    unit of work is rolled back and re-run from fresh reads. Any other error
    rolls back and propagates unchanged.
    """
    attempts = max_attempts or TRANSACTION_MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        # Start every attempt from the database state, not from cached objects
        db.expire_all()
        try:
            result = operation(db)
            db.commit()
            return result
        except (StaleDataError, IntegrityError) as e:
            db.rollback()
            logger.warning(f"⚠️ {name} conflicted (attempt {attempt}/{attempts}): {e}")
        except Exception:
            db.rollback()
            raise

    logger.error(f"❌ {name} aborted after {attempts} conflicting attempts")
    raise TransactionAbortedError(f"{name} aborted after {attempts} attempts")
