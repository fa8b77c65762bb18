"""PostgreSQL-backed key-value store."""
import psycopg2
from psycopg2 import pool
from psycopg2.extras import Json
from typing import Optional, Any
import logging

from booktracker.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class PostgresStore:
    """Key-value slots in a PostgreSQL JSONB table with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        try:
            self.connection_pool = psycopg2.pool.SimpleConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            raise PersistenceError(f"Failed to create connection pool: {e}") from e

        logger.info("Database connection pool created successfully")

    def init_schema(self):
        """Create the key-value table if it doesn't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key VARCHAR(255) PRIMARY KEY,
                        value JSONB NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                conn.commit()
                logger.info("Database schema initialized successfully")
        except psycopg2.Error as e:
            conn.rollback()
            raise PersistenceError(f"Failed to initialize schema: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def get(self, key: str) -> Optional[Any]:
        """Get the stored value for a key, or None."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT value FROM kv_store WHERE key = %s", (key,))
                row = cur.fetchone()
                return row[0] if row else None  # JSONB is automatically deserialized
        except psycopg2.Error as e:
            raise PersistenceError(f"Failed to read key '{key}': {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def set(self, key: str, value: Any) -> None:
        """Overwrite the value for a key."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (key) DO UPDATE SET
                        value = EXCLUDED.value,
                        updated_at = CURRENT_TIMESTAMP
                """, (key, Json(value)))
                conn.commit()
                logger.info(f"Stored key '{key}'")
        except (psycopg2.Error, TypeError) as e:
            conn.rollback()
            raise PersistenceError(f"Failed to write key '{key}': {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
