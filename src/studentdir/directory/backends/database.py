"""Database connection manager and table for the local backend."""

from __future__ import annotations

import uuid
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, String, Text, create_engine, event, func
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from studentdir.directory.models import StudentRecord, StudentStatus

if TYPE_CHECKING:
    from sqlalchemy import Engine


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ManualStudent(Base):
    """Manually-added student row."""

    __tablename__ = "manual_students"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    added_by: Mapped[str] = mapped_column(String(255), nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __init__(
        self,
        name: str,
        email: str,
        added_by: str,
        added_at: datetime,
        id: str | None = None,
        notes: str | None = None,
        status: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.name = name
        self.email = email
        self.added_by = added_by
        self.added_at = added_at
        self.notes = notes
        self.status = status if status is not None else StudentStatus.ACTIVE.value

    def to_record(self) -> StudentRecord:
        """Convert the row to an immutable StudentRecord."""
        return StudentRecord.from_row(
            {
                "id": self.id,
                "name": self.name,
                "email": self.email,
                "notes": self.notes,
                "added_by": self.added_by,
                "added_at": self.added_at,
                "status": self.status,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )

    def __repr__(self) -> str:
        return f"<ManualStudent(id={self.id!r}, email={self.email!r}, status={self.status!r})>"


class Database:
    """Database connection manager.

    Manages SQLite database connections with WAL mode enabled for file databases.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory DB.
        """
        self.db_path = db_path
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def is_memory(self) -> bool:
        return self.db_path == ":memory:"

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if self.is_memory:
                # One shared connection, otherwise every session sees an empty DB
                self._engine = create_engine(
                    "sqlite:///:memory:",
                    echo=False,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._engine = create_engine(
                    f"sqlite:///{self.db_path}",
                    echo=False,
                    connect_args={"check_same_thread": False},
                )

            wal = not self.is_memory

            @event.listens_for(self._engine, "connect")
            def set_sqlite_pragma(dbapi_connection: object, _connection_record: object) -> None:
                cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
                if wal:
                    cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.session_factory()

    def close(self) -> None:
        """Close the database connection."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
