"""Generic SQLite repository used by the journal stores"""

import sqlite3
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from Journal.errors import StoreUnavailableError


class SQLiteRepository:
    """
    Table-scoped helper around sqlite3.

    A connection is opened per operation so the repository can be shared
    across threads. Every sqlite3 error is logged and re-raised as
    StoreUnavailableError.
    """

    def __init__(self, db_path: str, table_name: str, primary_key: str = "id"):
        self.db_path = db_path
        self.table_name = table_name
        self.primary_key = primary_key

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _run(self, query: str, params: Iterable[Any] = (), fetch: bool = False):
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(query, tuple(params))
                if fetch:
                    return cursor.fetchall()
                conn.commit()
                return cursor
            finally:
                conn.close()
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            logger.error(f"SQLite error on {self.table_name}: {e}")
            raise StoreUnavailableError(f"{self.table_name}: {e}") from e

    def create_table(self, columns: Dict[str, str]) -> None:
        """Create the table from a column -> definition mapping"""
        definitions = ", ".join(f"{name} {definition}" for name, definition in columns.items())
        self._run(f"CREATE TABLE IF NOT EXISTS {self.table_name} ({definitions})")
        logger.debug(f"Table {self.table_name} ready")

    def insert(self, data: Dict[str, Any]) -> int:
        """Insert a row and return its rowid"""
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" * len(data))
        cursor = self._run(
            f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})",
            data.values(),
        )
        return cursor.lastrowid

    def get_by_id(self, row_id: Any) -> Optional[sqlite3.Row]:
        rows = self._run(
            f"SELECT * FROM {self.table_name} WHERE {self.primary_key} = ?", (row_id,), fetch=True
        )
        return rows[0] if rows else None

    def update(self, row_id: Any, data: Dict[str, Any]) -> int:
        """Update columns of one row, returning the number of rows changed"""
        assignments = ", ".join(f"{column} = ?" for column in data)
        cursor = self._run(
            f"UPDATE {self.table_name} SET {assignments} WHERE {self.primary_key} = ?",
            [*data.values(), row_id],
        )
        return cursor.rowcount

    def delete(self, row_id: Any) -> int:
        cursor = self._run(f"DELETE FROM {self.table_name} WHERE {self.primary_key} = ?", (row_id,))
        return cursor.rowcount

    def execute_query(self, query: str, params: Iterable[Any] = ()) -> List[sqlite3.Row]:
        """Run a SELECT and return all rows"""
        return self._run(query, params, fetch=True)

    def execute(self, query: str, params: Iterable[Any] = ()) -> int:
        """Run a write statement and return the affected row count"""
        return self._run(query, params).rowcount
