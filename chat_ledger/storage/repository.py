"""
Repository pattern for data access.

Handles the two append-only relations kept by the chat client: the
conversation ``history`` and the ``usage_costs`` ledger. Writes are
committed immediately and fail loudly; reads degrade to an empty result
so the interactive loop keeps running.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .db import get_connection
from .models import HistoryTurn, Role, UsageRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def initialize_schema(conn: sqlite3.Connection) -> None:
    """Create the history and usage_costs tables if they don't exist.

    Both tables are append-only. No UPDATE or DELETE operations should
    ever be performed on them.

    Args:
        conn: Open SQLite connection
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            role TEXT NOT NULL,
            content TEXT NOT NULL,
            timestamp TEXT NOT NULL
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS usage_costs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            tokens_used INTEGER NOT NULL,
            model TEXT NOT NULL,
            cost REAL NOT NULL
        )
    """)
    conn.execute("CREATE INDEX IF NOT EXISTS idx_history_timestamp ON history(timestamp)")
    conn.commit()


class HistoryRepository:
    """Access to the conversation history log."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def append(
        self,
        role: str,
        content: str,
        timestamp: Optional[datetime] = None
    ) -> HistoryTurn:
        """Record a conversation turn.

        Args:
            role: ``user`` or ``assistant``
            content: Message text
            timestamp: Defaults to the current local time

        Returns:
            The stored turn with its assigned id

        Raises:
            ValueError: If role is not a known role
            sqlite3.Error: If the write fails
        """
        role = Role(role).value
        when = timestamp or datetime.now()
        stamp = _format_timestamp(when)
        cursor = self.conn.execute(
            "INSERT INTO history (role, content, timestamp) VALUES (?, ?, ?)",
            (role, content, stamp)
        )
        self.conn.commit()
        return HistoryTurn(
            id=cursor.lastrowid,
            role=role,
            content=content,
            timestamp=_parse_timestamp(stamp)
        )

    def recent_turns(self, limit: int = 5) -> List[HistoryTurn]:
        """Get the most recently appended turns, oldest first.

        Ordered by id so the window always ends with the latest turn,
        even when the local clock steps back.

        Returns an empty list if the history cannot be read.
        """
        try:
            cursor = self.conn.execute("""
                SELECT id, role, content, timestamp
                FROM history
                ORDER BY id DESC
                LIMIT ?
            """, (limit,))
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            logger.error("Failed to read recent history: %s", e)
            return []
        return [self._to_turn(row) for row in reversed(rows)]

    def turns_in_range(self, start: datetime, end: datetime) -> List[HistoryTurn]:
        """Get every turn whose timestamp falls within [start, end].

        Args:
            start: Inclusive lower bound
            end: Inclusive upper bound

        Returns:
            Turns in insertion order, empty if none match or the
            history cannot be read
        """
        try:
            cursor = self.conn.execute("""
                SELECT id, role, content, timestamp
                FROM history
                WHERE timestamp BETWEEN ? AND ?
                ORDER BY id ASC
            """, (_format_timestamp(start), _format_timestamp(end)))
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            logger.error("Failed to read history for %s - %s: %s", start, end, e)
            return []
        return [self._to_turn(row) for row in rows]

    @staticmethod
    def _to_turn(row) -> HistoryTurn:
        return HistoryTurn(
            id=row[0],
            role=row[1],
            content=row[2],
            timestamp=_parse_timestamp(row[3])
        )


class UsageRepository:
    """Access to the token usage cost ledger."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def append(
        self,
        tokens_used: int,
        model: str,
        cost: float,
        timestamp: Optional[datetime] = None
    ) -> UsageRecord:
        """Record the usage and cost of one API call.

        Raises:
            ValueError: If tokens_used or cost is negative
            sqlite3.Error: If the write fails
        """
        if tokens_used < 0:
            raise ValueError("tokens_used must be >= 0")
        if cost < 0:
            raise ValueError("cost must be >= 0")

        when = timestamp or datetime.now()
        stamp = _format_timestamp(when)
        cursor = self.conn.execute(
            "INSERT INTO usage_costs (timestamp, tokens_used, model, cost) VALUES (?, ?, ?, ?)",
            (stamp, tokens_used, model, cost)
        )
        self.conn.commit()
        return UsageRecord(
            id=cursor.lastrowid,
            timestamp=_parse_timestamp(stamp),
            tokens_used=tokens_used,
            model=model,
            cost=cost
        )

    def total_cost(self) -> float:
        """Sum of cost over every recorded call.

        Returns 0.0 when the ledger is empty or cannot be read.
        """
        try:
            row = self.conn.execute("SELECT SUM(cost) FROM usage_costs").fetchone()
        except sqlite3.Error as e:
            logger.error("Failed to read total cost: %s", e)
            return 0.0
        return float(row[0] or 0)


@dataclass
class ChatStore:
    """The database connection and the repositories built on it.

    Opened once at startup and closed once on exit.
    """
    conn: sqlite3.Connection
    history: HistoryRepository
    usage: UsageRepository
    closed: bool = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.conn.close()


def open_store(db_path: str = "chat_history.db") -> ChatStore:
    """Open the database, create the schema, and wire both repositories.

    Args:
        db_path: Path to SQLite database file

    Returns:
        A ready ChatStore
    """
    conn = get_connection(db_path)
    try:
        initialize_schema(conn)
    except Exception:
        conn.close()
        raise
    return ChatStore(
        conn=conn,
        history=HistoryRepository(conn),
        usage=UsageRepository(conn)
    )
