"""
Database Connection and Session Management

This module stores meter session snapshots for the FastAPI application.
The core never touches storage; this is the collaborator that saves and
restores the (readout, selected row) pair per device.

Features:
- SQLite by default, any SQLAlchemy URL via DATABASE_URL
- Connection pooling for server databases
- Health checking
- Table creation on startup
"""

import os
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from contextlib import contextmanager

from sqlalchemy import create_engine, text, Column, String, Integer, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# =========================================
# Database Configuration
# =========================================

def get_database_url() -> str:
    """Get database URL from environment."""
    return os.getenv("DATABASE_URL", "sqlite:///./mof_calculator.db")


def create_db_engine(url: str):
    """
    Create the SQLAlchemy engine for a URL.

    SQLite connections are shared across FastAPI's worker threads, and an
    in-memory database must keep a single connection alive.
    """
    echo = os.getenv("SQL_ECHO", "false").lower() == "true"

    if url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
        echo=echo
    )


engine = create_db_engine(get_database_url())

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for ORM models
Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MeterSnapshotRecord(Base):
    """Last saved meter state for a device."""

    __tablename__ = "meter_snapshots"

    device_id = Column(String(64), primary_key=True)
    digits = Column(String(4), nullable=False, default="0000")
    selected_index = Column(Integer, nullable=False, default=2)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "digits": list(self.digits),
            "selected_index": self.selected_index,
            "updated_at": self.updated_at,
        }


# =========================================
# Dependency for FastAPI
# =========================================

def get_db():
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as db:
            db.execute(query)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# =========================================
# Database Operations
# =========================================

class DatabaseManager:
    """
    Manager class for database operations.

    Provides high-level methods for the snapshot operations used by the
    API endpoints.
    """

    def __init__(self, session: Optional[Session] = None):
        """
        Initialize with optional session.

        Args:
            session: SQLAlchemy session (creates new if None)
        """
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> Session:
        """Get or create session."""
        if self._session is None:
            self._session = SessionLocal()
        return self._session

    def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.session.rollback()
        self.close()

    def check_connection(self) -> bool:
        """Check if database connection is working."""
        try:
            self.session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    # =========================================
    # Snapshot Operations
    # =========================================

    def get_snapshot(self, device_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the stored snapshot for a device.

        Returns:
            Dictionary with digits, selected_index and updated_at, or None
        """
        try:
            record = self.session.get(MeterSnapshotRecord, device_id)
            return record.to_dict() if record else None

        except SQLAlchemyError as e:
            logger.error(f"Failed to get snapshot for {device_id}: {e}")
            return None

    def save_snapshot(self, device_id: str, digits: List[str], selected_index: int) -> Dict[str, Any]:
        """
        Insert or update the snapshot for a device.

        Args:
            device_id: Device identifier
            digits: Four digit characters
            selected_index: Selected CT row

        Returns:
            The stored snapshot
        """
        try:
            record = self.session.get(MeterSnapshotRecord, device_id)
            if record is None:
                record = MeterSnapshotRecord(device_id=device_id)
                self.session.add(record)

            record.digits = "".join(digits)
            record.selected_index = selected_index
            record.updated_at = utcnow()

            self.session.commit()
            self.session.refresh(record)
            return record.to_dict()

        except SQLAlchemyError as e:
            logger.error(f"Failed to save snapshot for {device_id}: {e}")
            self.session.rollback()
            raise

    def delete_snapshot(self, device_id: str) -> bool:
        """
        Delete the stored snapshot for a device.

        Returns:
            True if a snapshot was deleted
        """
        try:
            record = self.session.get(MeterSnapshotRecord, device_id)
            if record is None:
                return False

            self.session.delete(record)
            self.session.commit()
            return True

        except SQLAlchemyError as e:
            logger.error(f"Failed to delete snapshot for {device_id}: {e}")
            self.session.rollback()
            raise

    def list_devices(self) -> List[str]:
        """Device IDs with a stored snapshot."""
        try:
            rows = self.session.query(MeterSnapshotRecord.device_id).order_by(
                MeterSnapshotRecord.device_id
            )
            return [row[0] for row in rows]

        except SQLAlchemyError as e:
            logger.error(f"Failed to list devices: {e}")
            return []


# =========================================
# Utility Functions
# =========================================

def check_database_health() -> Dict[str, Any]:
    """
    Check database health and return status.

    Returns:
        Dictionary with health status information
    """
    try:
        with get_db_session() as db:
            db.execute(text("SELECT 1"))

            return {
                "status": "healthy",
                "connected": True,
                "dialect": engine.dialect.name,
                "snapshot_table_exists": engine.dialect.has_table(
                    db.connection(), MeterSnapshotRecord.__tablename__
                ),
            }

    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "connected": False,
            "error": str(e)
        }


def init_database():
    """
    Create database tables if they don't exist.

    Called on application startup.
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables verified")
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise
