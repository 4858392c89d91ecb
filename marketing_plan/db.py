"""Database layer for plans, interaction logs, and users.

Supports two backends:
- PostgreSQL (production, set DATABASE_URL)
- SQLite (local development and tests, default)

Uses raw SQL via psycopg2 (Postgres) or sqlite3 (SQLite). No ORM.

Thread-safety: Postgres uses a ThreadedConnectionPool. SQLite uses
per-call connections with check_same_thread=False, so calls can be
dispatched to worker threads from async code.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


def json_dumps(data: Any) -> Optional[str]:
    """Serialize data to a JSON string for storage. None stays NULL."""
    if data is None:
        return None
    return json.dumps(data, ensure_ascii=False, default=str)


def safe_json_loads(value: Any) -> Any:
    """Decode a stored JSON field, tolerating both storage styles.

    Postgres JSONB columns come back already parsed; TEXT columns come back
    as strings. A value that fails to decode is returned as None rather
    than failing the caller.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (dict, list)):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    try:
        return json.loads(value)
    except (TypeError, ValueError) as e:
        logger.warning(f"Stored JSON field could not be decoded ({len(str(value))} chars): {e}")
        return None


class Database:
    """Connection management and SQL execution for one configured backend."""

    def __init__(self, url: str = "", sqlite_path: Union[str, Path, None] = None):
        self.url = url or ""
        self.sqlite_path = Path(sqlite_path) if sqlite_path else Path("marketing_plans.db")
        self._pg_pool = None
        self._initialized = False

    @property
    def is_postgres(self) -> bool:
        return self.url.startswith("postgres")

    def _get_pg_pool(self):
        """Get or create the Postgres connection pool (lazy)."""
        if self._pg_pool is None:
            import psycopg2.pool

            self._pg_pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=5,
                dsn=self.url,
            )
            logger.info("PostgreSQL connection pool initialized (1-5 connections)")
        return self._pg_pool

    @contextmanager
    def connection(self):
        """Get a database connection (Postgres or SQLite).

        Usage:
            with db.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(...)
                conn.commit()
        """
        if self.is_postgres:
            pool = self._get_pg_pool()
            conn = pool.getconn()
            try:
                yield conn
            finally:
                pool.putconn(conn)
        else:
            conn = sqlite3.connect(str(self.sqlite_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            try:
                yield conn
            finally:
                conn.close()

    def execute(self, sql: str, params: tuple = (), fetch: str = "none") -> Any:
        """Execute a SQL statement.

        Args:
            sql: SQL statement (use %s placeholders; adapted for SQLite)
            params: Parameters tuple
            fetch: "none", "one", "all"

        Returns:
            None for "none", dict (or None) for "one", list[dict] for "all"
        """
        adapted_sql = sql if self.is_postgres else sql.replace("%s", "?")

        with self.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(adapted_sql, params)
            except Exception:
                conn.rollback()
                raise

            if fetch == "one":
                row = cursor.fetchone()
                conn.commit()
                if row is None:
                    return None
                if self.is_postgres:
                    columns = [desc[0] for desc in cursor.description]
                    return dict(zip(columns, row))
                return dict(row)
            elif fetch == "all":
                rows = cursor.fetchall()
                conn.commit()
                if self.is_postgres:
                    columns = [desc[0] for desc in cursor.description]
                    return [dict(zip(columns, row)) for row in rows]
                return [dict(row) for row in rows]

            conn.commit()
            return None

    def init(self) -> None:
        """Create tables if they don't exist."""
        if self._initialized:
            return

        if self.is_postgres:
            self._init_postgres()
        else:
            self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_sqlite()

        self._initialized = True
        backend = "PostgreSQL" if self.is_postgres else f"SQLite ({self.sqlite_path})"
        logger.info(f"Plan database initialized: {backend}")

    def close(self) -> None:
        if self._pg_pool is not None:
            self._pg_pool.closeall()
            self._pg_pool = None
            logger.info("PostgreSQL connection pool closed")

    def _init_postgres(self) -> None:
        """Create Postgres tables.

        businessContext/questionnaireResponses and the interaction payloads
        are native JSONB; analysis, content and metadata are stored as
        serialized text. Readers decode both styles.
        """
        ddl = """
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(100) PRIMARY KEY,
            email VARCHAR(320) NOT NULL UNIQUE,
            business_name VARCHAR(300),
            industry VARCHAR(100),
            marketing_consent BOOLEAN DEFAULT TRUE,
            profile_data JSONB DEFAULT '{}',
            created_at TIMESTAMP DEFAULT NOW()
        );

        CREATE TABLE IF NOT EXISTS plans (
            id VARCHAR(100) PRIMARY KEY,
            user_id VARCHAR(100) REFERENCES users(id) ON DELETE SET NULL,
            business_context JSONB NOT NULL DEFAULT '{}',
            questionnaire_responses JSONB NOT NULL DEFAULT '{}',
            claude_analysis TEXT,
            generated_content TEXT,
            status VARCHAR(20) NOT NULL DEFAULT 'in_progress',
            completion_percentage INTEGER NOT NULL DEFAULT 0,
            plan_metadata TEXT,
            created_at TIMESTAMP DEFAULT NOW(),
            updated_at TIMESTAMP DEFAULT NOW(),
            completed_at TIMESTAMP
        );

        CREATE INDEX IF NOT EXISTS idx_plans_user ON plans(user_id, created_at);

        CREATE TABLE IF NOT EXISTS claude_interactions (
            id VARCHAR(100) PRIMARY KEY,
            plan_id VARCHAR(100) NOT NULL REFERENCES plans(id) ON DELETE CASCADE,
            interaction_type VARCHAR(60) NOT NULL,
            prompt_data JSONB,
            claude_response JSONB,
            processing_time_ms INTEGER,
            created_at TIMESTAMP DEFAULT NOW()
        );

        CREATE INDEX IF NOT EXISTS idx_interactions_plan
            ON claude_interactions(plan_id, created_at);
        """
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(ddl)
            conn.commit()

    def _init_sqlite(self) -> None:
        """Create SQLite tables."""
        ddl = """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            business_name TEXT,
            industry TEXT,
            marketing_consent INTEGER DEFAULT 1,
            profile_data TEXT DEFAULT '{}',
            created_at TEXT
        );

        CREATE TABLE IF NOT EXISTS plans (
            id TEXT PRIMARY KEY,
            user_id TEXT REFERENCES users(id) ON DELETE SET NULL,
            business_context TEXT NOT NULL DEFAULT '{}',
            questionnaire_responses TEXT NOT NULL DEFAULT '{}',
            claude_analysis TEXT,
            generated_content TEXT,
            status TEXT NOT NULL DEFAULT 'in_progress',
            completion_percentage INTEGER NOT NULL DEFAULT 0,
            plan_metadata TEXT,
            created_at TEXT,
            updated_at TEXT,
            completed_at TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_plans_user ON plans(user_id, created_at);

        CREATE TABLE IF NOT EXISTS claude_interactions (
            id TEXT PRIMARY KEY,
            plan_id TEXT NOT NULL REFERENCES plans(id) ON DELETE CASCADE,
            interaction_type TEXT NOT NULL,
            prompt_data TEXT,
            claude_response TEXT,
            processing_time_ms INTEGER,
            created_at TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_interactions_plan
            ON claude_interactions(plan_id, created_at);
        """
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.executescript(ddl)
            conn.commit()
