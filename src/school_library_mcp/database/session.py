"""
Store and session management for the School Library MCP Server.

``DatabaseManager`` is the lending store: it owns the SQLAlchemy engine (an
in-memory SQLite database unless configured otherwise), the session factory,
one id sequence per entity kind and the store lock.

Key considerations:
- Sessions are short-lived, one per resource read or tool call
- SQLite sessions share a single connection, so every session, read or
  write, holds the store lock from open to close
- Every command runs inside ``transaction()``, so its read-check-write
  sequence is one step and two borrows of the same book can never both
  succeed
- The manager is constructed explicitly (once per process, or once per
  test) and handed to the lending service
"""

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .schema import Base
from .schema import Book as BookDB
from .schema import BorrowRecord as BorrowRecordDB
from .schema import Student as StudentDB
from .seed import load_demo_data

logger = logging.getLogger(__name__)


class IdSequence:
    """
    Monotonic id allocator for one entity kind.

    Ids are never reused: deleting the newest book does not hand its id to
    the next one.
    """

    def __init__(self, name: str, start: int = 1):
        self.name = name
        self._next = start
        self._lock = threading.Lock()

    def reseed(self, max_existing: int | None) -> None:
        """Move the sequence past ``max_existing``. Never moves backwards."""
        with self._lock:
            self._next = max(self._next, (max_existing or 0) + 1)

    def allocate(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def peek(self) -> int:
        """The id the next ``allocate()`` call will return."""
        return self._next


class DatabaseManager:
    """
    Manages the lending store.

    This class provides:
    - Engine and session factory with proper scoping
    - Id sequences for books, students and borrow records
    - A store lock serialising sessions, making each command atomic
    - Schema creation and optional demo data
    """

    def __init__(self, database_url: str = "sqlite://"):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy database URL. Defaults to in-memory SQLite.
        """
        self.database_url = database_url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None
        self._lock = threading.RLock()

        self.book_ids = IdSequence("books")
        self.student_ids = IdSequence("students")
        self.record_ids = IdSequence("borrow_records")

    @property
    def engine(self) -> Engine:
        """
        Get or create the database engine.

        SQLite uses a StaticPool so every session shares the one in-memory
        database for the lifetime of the manager.
        """
        if self._engine is None:
            if self.database_url.startswith("sqlite"):
                self._engine = create_engine(
                    self.database_url,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                    echo=False,
                )
            else:
                self._engine = create_engine(
                    self.database_url,
                    pool_pre_ping=True,
                    echo=False,
                )

            logger.info("Database engine created: %s", self._engine.url)

        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for database operations.

        ```python
        with db_manager.session_scope() as session:
            book = session.get(Book, 2)
        # Session is automatically committed or rolled back
        ```

        The store lock is held until the session is closed: a commit or
        connection reset from one thread would otherwise end another
        thread's transaction on the shared connection.
        """
        with self._lock:
            session = self.session_factory()
            try:
                yield session
                session.commit()
                logger.debug("Database transaction committed successfully")
            except Exception:
                logger.debug("Database transaction rolled back")
                session.rollback()
                raise
            finally:
                session.close()

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """
        A ``session_scope()`` for a lending command.

        All lending commands run inside one, so their checks and writes are
        never interleaved with another command or a concurrent read.
        """
        with self.session_scope() as session:
            yield session

    def init_database(self, seed_demo_data: bool = False, drop_existing: bool = False) -> None:
        """
        Create the schema, optionally load demo data, then seed id sequences.

        Args:
            seed_demo_data: Load the sample catalog, roster and loans
            drop_existing: Drop all tables before creating them
        """
        engine = self.engine

        with self._lock:
            if drop_existing:
                logger.warning("Dropping all existing tables...")
                Base.metadata.drop_all(bind=engine)

            Base.metadata.create_all(bind=engine)

        if seed_demo_data:
            with self.transaction() as session:
                load_demo_data(session)

        self.sync_id_sequences()
        logger.info(
            "Database initialization complete (next ids: book=%d, student=%d, record=%d)",
            self.book_ids.peek(),
            self.student_ids.peek(),
            self.record_ids.peek(),
        )

    def sync_id_sequences(self) -> None:
        """Seed every id sequence from the largest id currently stored."""
        with self.session_scope() as session:
            self.book_ids.reseed(session.execute(select(func.max(BookDB.id))).scalar())
            self.student_ids.reseed(session.execute(select(func.max(StudentDB.id))).scalar())
            self.record_ids.reseed(
                session.execute(select(func.max(BorrowRecordDB.id))).scalar()
            )

    def verify_connection(self) -> bool:
        """Verify the database connection is working."""
        try:
            with self._lock, self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("Database connection failed")
            return False

    def close(self) -> None:
        """Dispose of the engine. The in-memory data is gone afterwards."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_db_manager(database_url: str | None = None) -> DatabaseManager:
    """
    Get the process-wide database manager.

    Args:
        database_url: Database URL (only used on first call)
    """
    global _db_manager  # noqa: PLW0603 - Singleton pattern for database manager

    if _db_manager is None:
        _db_manager = DatabaseManager(database_url or "sqlite://")

    return _db_manager


def reset_db_manager() -> None:
    """Close and forget the process-wide manager (useful for testing)."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is not None:
        _db_manager.close()
    _db_manager = None
