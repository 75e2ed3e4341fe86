"""Conversation stores: one versioned record per user"""

import sqlite3
import threading
from typing import Dict, Optional

from loguru import logger

from Journal.errors import StaleStateError
from Journal.models import ConversationRecord
from .Repository import SQLiteRepository
from ..models import ConversationModel, DatabaseSchema


class SQLiteConversationStore:
    """
    Durable conversation store.

    put() is conditional on the record's version unless force=True; a
    successful write bumps the version on the row and on the record.
    """

    def __init__(self, db_path: str = "journal.db"):
        self.repository = SQLiteRepository(
            db_path, DatabaseSchema.CONVERSATIONS_TABLE, primary_key="user_id"
        )

    def create_table(self) -> None:
        self.repository.create_table(DatabaseSchema.CONVERSATION_COLUMNS)

    def get(self, user_id: int) -> Optional[ConversationRecord]:
        row = self.repository.get_by_id(user_id)
        return ConversationModel.from_row(row) if row else None

    def put(self, record: ConversationRecord, force: bool = False) -> None:
        new_version = record.version + 1
        row = ConversationModel.to_row(record, new_version)

        if force:
            new_version = self._current_version(record.user_id) + 1
            row["version"] = new_version
            columns = ", ".join(row.keys())
            placeholders = ", ".join("?" * len(row))
            self.repository.execute(
                f"INSERT OR REPLACE INTO {DatabaseSchema.CONVERSATIONS_TABLE} ({columns}) VALUES ({placeholders})",
                row.values(),
            )
            record.version = new_version
            return

        if record.version == 0:
            try:
                self.repository.insert(row)
            except sqlite3.IntegrityError:
                raise StaleStateError(record.user_id, 0, self._current_version(record.user_id))
            record.version = new_version
            return

        changes = {key: value for key, value in row.items() if key != "user_id"}
        assignments = ", ".join(f"{column} = ?" for column in changes)
        updated = self.repository.execute(
            f"UPDATE {DatabaseSchema.CONVERSATIONS_TABLE} SET {assignments} "
            "WHERE user_id = ? AND version = ?",
            [*changes.values(), record.user_id, record.version],
        )
        if updated == 0:
            raise StaleStateError(record.user_id, record.version, self._current_version(record.user_id))
        record.version = new_version

    def delete(self, user_id: int) -> None:
        self.repository.delete(user_id)
        logger.debug(f"Conversation of user {user_id} deleted")

    def _current_version(self, user_id: int) -> int:
        row = self.repository.get_by_id(user_id)
        return row["version"] if row else 0


class InMemoryConversationStore:
    """Dict-backed store with the same versioning rules, for one process"""

    def __init__(self):
        self._records: Dict[int, dict] = {}
        self._lock = threading.Lock()

    def get(self, user_id: int) -> Optional[ConversationRecord]:
        with self._lock:
            payload = self._records.get(user_id)
        return ConversationRecord.from_dict(payload) if payload else None

    def put(self, record: ConversationRecord, force: bool = False) -> None:
        with self._lock:
            stored = self._records.get(record.user_id)
            current = stored["version"] if stored else 0
            if not force and current != record.version:
                raise StaleStateError(record.user_id, record.version, current)
            record.version = current + 1
            self._records[record.user_id] = record.to_dict()

    def delete(self, user_id: int) -> None:
        with self._lock:
            self._records.pop(user_id, None)
