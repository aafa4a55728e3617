"""
Database Layer
==============
SQLAlchemy engine, sessions and health checks for the durable customer store.

Features:
- ✅ Pool settings per environment
- ✅ Retry with backoff when the database cannot be reached
- ✅ Rollback on error
- ✅ Health check
"""

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, QueuePool, StaticPool

from src.core import models
from src.core.config import config

logger = logging.getLogger(__name__)

CONNECTION_ERRORS = (OperationalError, DisconnectionError, DBAPIError)


# ═══════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════

class DatabaseConfig:
    """Pool sizes per environment, plus connection retry settings"""

    POOLS = {
        "production": {"pool_size": 20, "max_overflow": 20, "pool_timeout": 10, "pool_recycle": 1800},
        "development": {"pool_size": 5, "max_overflow": 10, "pool_timeout": 30, "pool_recycle": 3600},
    }

    MAX_RETRIES = 3
    RETRY_DELAY = 0.5  # seconds, doubled on every attempt


# ═══════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════

def get_engine_config(database_url: str) -> dict:
    """Keyword arguments for create_engine, by database kind and environment"""
    if database_url.startswith("sqlite"):
        engine_config = {
            "echo": config.DEBUG,
            "connect_args": {"check_same_thread": False},
        }
        # An in-memory database only lives as long as its single connection
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            engine_config["poolclass"] = StaticPool
        return engine_config

    if config.is_test:
        return {"poolclass": NullPool}

    pool = DatabaseConfig.POOLS["production" if config.is_production else "development"]
    return {
        "poolclass": QueuePool,
        "pool_pre_ping": True,
        "echo": config.DEBUG and not config.is_production,
        **pool,
    }


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, **get_engine_config(database_url))


def build_session_factory(bind: Engine) -> sessionmaker:
    # Records are read back after commit, so loaded values must stay usable
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


def create_tables(bind: Engine) -> None:
    """Creates the tables that do not exist yet"""
    models.Base.metadata.create_all(bind=bind)


engine = build_engine(config.DATABASE_URL)
SessionLocal = build_session_factory(engine)


# ═══════════════════════════════════════════════════════════
# SESSIONS
# ═══════════════════════════════════════════════════════════

def _connected_session(session_factory: sessionmaker, max_retries: int) -> Session:
    """Opens a session whose connection is already checked out, retrying on connection errors"""
    for attempt in range(1, max_retries + 1):
        db = session_factory()
        try:
            db.connection()
            return db
        except CONNECTION_ERRORS as e:
            db.close()
            if attempt == max_retries:
                logger.error(f"❌ Database unreachable after {max_retries} attempts: {e}")
                raise

            delay = DatabaseConfig.RETRY_DELAY * (2 ** (attempt - 1))
            logger.warning(
                f"⚠️ Database error (attempt {attempt}/{max_retries}). Retrying in {delay}s... Error: {e}"
            )
            time.sleep(delay)


@contextmanager
def session_scope(
    session_factory: Optional[sessionmaker] = None,
    max_retries: int = DatabaseConfig.MAX_RETRIES,
) -> Iterator[Session]:
    """
    Session for one unit of work

    - ✅ Retries while the database cannot be reached
    - ✅ Rolls back when the block raises
    """
    db = _connected_session(session_factory or SessionLocal, max_retries)
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ═══════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════

def check_database_health(session_factory: Optional[sessionmaker] = None) -> dict:
    """
    Runs SELECT 1 and times it

    Returns:
        dict: `healthy`, `timestamp` and the connection check with its latency
    """
    start = time.perf_counter()
    try:
        with session_scope(session_factory, max_retries=1) as db:
            db.execute(text("SELECT 1")).scalar()
    except Exception as e:
        logger.error(f"❌ Database health check failed: {e}")
        connection = {"status": "unhealthy", "error": str(e)}
    else:
        connection = {
            "status": "healthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
        }

    return {
        "healthy": connection["status"] == "healthy",
        "timestamp": time.time(),
        "checks": {"connection": connection},
    }
