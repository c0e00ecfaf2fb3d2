"""
SQLAlchemy engine for the bulk process executor.
Handles connection pooling, health checks and SQLite fallback.
"""
import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from bulk_process.config import get_database_url, settings

logger = logging.getLogger(__name__)

# Global engine instance
_sync_engine = None


def get_sync_engine() -> Engine:
    """
    Get or create the synchronous SQLAlchemy engine with connection pooling.
    """
    global _sync_engine

    if _sync_engine is None:
        try:
            database_url = get_database_url()
            logger.info("Creating synchronous SQLAlchemy engine for database connection")

            is_sqlite = database_url.startswith("sqlite")

            if is_sqlite:
                _sync_engine = create_engine(
                    database_url,
                    echo=settings().DEBUG,
                    connect_args={
                        "check_same_thread": False,  # Allow SQLite in threads
                        "timeout": 20
                    }
                )
            else:
                _sync_engine = create_engine(
                    database_url,
                    pool_size=5,                    # Number of connections to maintain in pool
                    max_overflow=2,                 # Additional connections beyond pool_size
                    pool_pre_ping=True,             # Validate connections before use
                    pool_recycle=3600,              # Recycle connections after 1 hour
                    pool_timeout=30,                # Timeout for getting connection from pool
                    echo=settings().DEBUG,
                )

            @event.listens_for(_sync_engine, "engine_connect")
            def receive_engine_connect(conn):
                logger.debug("New database connection established")

            logger.info("✅ Synchronous SQLAlchemy engine created successfully")

        except Exception as e:
            logger.error(f"Failed to create synchronous SQLAlchemy engine: {e}")
            raise

    return _sync_engine


def healthcheck():
    """
    Perform a health check on the database connection.
    Raises exception if connection fails.
    """
    try:
        engine = get_sync_engine()
        with engine.connect() as conn:
            result = conn.execute(text("SELECT 1 as health_check"))
            row = result.fetchone()
            if row and row[0] == 1:
                logger.debug("✅ Database health check passed")
                return True
            else:
                raise RuntimeError("Health check query returned unexpected result")
    except Exception as e:
        logger.error(f"❌ Database health check failed: {e}")
        raise


def get_connection():
    """
    Get a database connection from the sync engine.
    Returns a connection object that should be used in a context manager.
    """
    engine = get_sync_engine()
    return engine.connect()


def test_connection():
    """
    Test the database connection and return connection info.
    """
    try:
        healthcheck()
        engine = get_sync_engine()
        return {
            "status": "connected",
            "dialect": engine.dialect.name,
            "database": engine.url.database or "memory",
        }
    except Exception as e:
        return {
            "status": "failed",
            "error": str(e)
        }


def close_engines():
    """
    Dispose the sync engine and all pooled connections.
    Should be called on application shutdown.
    """
    global _sync_engine

    if _sync_engine:
        try:
            _sync_engine.dispose()
            logger.info("Sync database engine closed successfully")
        except Exception as e:
            logger.error(f"Error closing sync database engine: {e}")
        finally:
            _sync_engine = None


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Testing database connection...")

    try:
        connection_info = test_connection()
        if connection_info["status"] == "connected":
            print("✅ Database connection successful!")
            print(f"Dialect: {connection_info['dialect']}")
            print(f"Database: {connection_info['database']}")
        else:
            print(f"❌ Database connection failed: {connection_info['error']}")
    finally:
        close_engines()
