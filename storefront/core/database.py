from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from storefront.core.config import settings
from storefront.core.errors import StorefrontError

logger = logging.getLogger(__name__)

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DB_ECHO,
    # sync routes run in a threadpool, so SQLite connections cross threads
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

if _is_sqlite:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()


def init_db() -> None:
    """Creates missing tables for the catalogue, carts and orders."""
    from storefront.models import cart_models, inventory_models, order_models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("[storefront] tables ensured", extra={"tables": sorted(Base.metadata.tables)})


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request (event consumers, scripts)."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db():
    """FastAPI dependency: one session per request, rolled back if the handler fails."""
    db = SessionLocal()
    try:
        yield db
    except (StorefrontError, HTTPException):
        # client errors, answered 4xx by the exception handlers
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("[storefront] db session rolled back due to exception")
        raise
    finally:
        db.close()
