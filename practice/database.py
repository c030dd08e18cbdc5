"""
Database setup and connection management for practice data.

This module handles:
- SQLAlchemy engine creation
- Session management
- Connection pooling configuration
- Database initialization
"""

from sqlalchemy import create_engine, event, inspect, pool, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Generator, Optional
import os

from loguru import logger
import dotenv

from practice.models import Base

dotenv.load_dotenv()

SQLITE_MEMORY_URL = "sqlite:///:memory:"


class DatabaseConfig:
    """Configuration for database connections"""

    def __init__(self, url: Optional[str] = None):
        # Fallback to in-memory SQLite for development and tests
        self.url = url or os.getenv("PRACTICE_DATABASE_URL") or SQLITE_MEMORY_URL

        # Connection pooling
        self.pool_size = int(os.getenv("DB_POOL_SIZE", "10"))
        self.max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "20"))
        self.pool_recycle = int(os.getenv("DB_POOL_RECYCLE", "1500"))

        # Echo SQL for debugging (set False in production)
        self.echo = os.getenv("DB_ECHO", "False").lower() == "true"

        # Seconds a file-backed SQLite connection waits for the write lock
        self.sqlite_busy_timeout = float(os.getenv("DB_SQLITE_BUSY_TIMEOUT", "30"))

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class DatabaseManager:
    """
    Manages database connections and session lifecycle.

    Usage:
        DatabaseManager.initialize()
        session = next(DatabaseManager.get_session())
    """

    _engine = None
    _SessionLocal = None

    @classmethod
    def initialize(cls, config: DatabaseConfig = None):
        """Initialize database engine and session factory, then create tables."""
        if cls._engine is not None:
            logger.warning("DatabaseManager already initialized")
            return

        if config is None:
            config = DatabaseConfig()

        logger.info("[DB] Initializing practice database...")

        cls._engine = cls._create_engine(config)
        cls._SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=cls._engine,
            expire_on_commit=False
        )

        cls.create_tables()
        logger.info(f"[DB] ✓ Practice database initialized ({cls._engine.dialect.name})")

    @classmethod
    def _create_engine(cls, config: DatabaseConfig):
        """Create SQLAlchemy engine with pooling"""
        if config.url == SQLITE_MEMORY_URL:
            # One shared connection, otherwise every session sees an empty database
            return create_engine(
                config.url,
                echo=config.echo,
                poolclass=pool.StaticPool,
                connect_args={"check_same_thread": False}
            )

        if config.is_sqlite:
            engine = create_engine(
                config.url,
                echo=config.echo,
                connect_args={"check_same_thread": False, "timeout": config.sqlite_busy_timeout}
            )
            cls._begin_immediate(engine)
            return engine

        return create_engine(
            config.url,
            poolclass=pool.QueuePool,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            echo=config.echo,
        )

    @staticmethod
    def _begin_immediate(engine):
        """
        Start every transaction with ``BEGIN IMMEDIATE``.

        pysqlite defers BEGIN until the first write, so two sessions could
        both run a read-then-write check before either takes the lock. SQLite
        has no row locks; taking the database write lock up front is what
        makes ``SELECT ... FOR UPDATE`` callers serialize here.
        """
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    @classmethod
    def create_tables(cls):
        """Create all tables if they don't exist (IDEMPOTENT)"""
        if cls._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        existing_tables = set(inspect(cls._engine).get_table_names())
        Base.metadata.create_all(bind=cls._engine, checkfirst=True)

        for table_name in Base.metadata.tables:
            if table_name not in existing_tables:
                logger.info(f"[DB] ✓ Created table: {table_name}")

    @classmethod
    def dispose(cls):
        """Release the engine so the next initialize() starts fresh."""
        if cls._engine is not None:
            cls._engine.dispose()
        cls._engine = None
        cls._SessionLocal = None

    @classmethod
    def session(cls) -> Session:
        """Open a plain session (scripts and tests)."""
        if cls._SessionLocal is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return cls._SessionLocal()

    @classmethod
    def get_session(cls) -> Generator[Session, None, None]:
        """
        FastAPI dependency for getting a database session.

        The request runs as one transaction: committed when the endpoint
        returns, rolled back when it raises.

        Usage in FastAPI:

        @router.post("/api/clients")
        async def create_client(db: Session = Depends(DatabaseManager.get_session)):
            ...
        """
        session = cls.session()
        try:
            yield session
            session.commit()
        except Exception as e:
            try:
                session.rollback()
            except SQLAlchemyError as rollback_error:
                logger.error(f"[DB] Rollback failed: {rollback_error}")
            logger.debug(f"[DB] Session rolled back: {type(e).__name__}")
            raise
        finally:
            session.close()

    @classmethod
    def health_check(cls) -> bool:
        """Check if database is healthy"""
        if cls._SessionLocal is None:
            return False
        try:
            session = cls._SessionLocal()
            try:
                session.execute(text("SELECT 1"))
            finally:
                session.close()
            return True
        except SQLAlchemyError as e:
            logger.error(f"[DB] ❌ Database health check failed: {e}")
            return False

