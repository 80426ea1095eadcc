"""
Database connection and session management for the dump ingest application.

This module provides utilities for connecting to the embedded SQLite database
and managing sessions with proper error handling.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union, cast

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src import settings

# Configure logging
logger = logging.getLogger("dumpingest.db")


def get_connection_string(db_path: Union[str, Path]) -> str:
    """
    Build a SQLAlchemy connection string for a SQLite database file.

    Args:
        db_path: Path to the SQLite database file, or ":memory:"

    Returns:
        SQLite connection string
    """
    if str(db_path) == ":memory:":
        return "sqlite://"
    return f"sqlite:///{Path(db_path)}"


class DatabaseManager:
    """
    Database connection manager for the dump ingest application.

    Owns the SQLAlchemy engine bound to one SQLite file. The parent directory
    of the file is created if it does not exist.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None, echo: bool = False):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the SQLite database file. Defaults to settings.SQLITE_DB_PATH.
            echo: Log emitted SQL statements
        """
        self.db_path = Path(db_path) if db_path is not None else settings.SQLITE_DB_PATH
        self._echo = echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker[Session]] = None

    def _initialize(self) -> None:
        """Create the engine and session factory."""
        if str(self.db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Initializing SQLite database connection")
        self._engine = create_engine(get_connection_string(self.db_path), echo=self._echo)
        self._sessionmaker = sessionmaker(bind=self._engine, expire_on_commit=False)
        logger.info(f"Database manager initialized for {self.db_path}")

    @property
    def engine(self) -> Engine:
        """
        Get the SQLAlchemy engine.

        Returns:
            Engine instance
        """
        if self._engine is None:
            self._initialize()
        return cast(Engine, self._engine)

    @property
    def sessionmaker(self) -> sessionmaker[Session]:
        """
        Get the SQLAlchemy session maker.

        Returns:
            sessionmaker instance
        """
        if self._sessionmaker is None:
            self._initialize()
        return cast(sessionmaker[Session], self._sessionmaker)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Get a database session as a context manager.

        Yields:
            Session: Database session

        Example:
            ```python
            with db_manager.session() as session:
                organizations = session.execute(select(Organization)).scalars().all()
            ```
        """
        session = self.sessionmaker()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {str(e)}")
            raise
        finally:
            session.close()

    def close(self) -> None:
        """
        Close the database connection pool.

        This method should be called once loading is finished.
        """
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database connection pool closed")
            self._engine = None
            self._sessionmaker = None
