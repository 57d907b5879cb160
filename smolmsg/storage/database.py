"""Database schema and repository implementations."""

import sqlite3
import threading
from pathlib import Path
from typing import Iterator, Optional

from ..models.message import Author, Message


class DatabaseConnection:
    """Database connection and schema management."""

    SCHEMA_VERSION = "1.0"

    def __init__(self, db_path: Path):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        # sqlite3 connections are shared between scanner threads; writers hold this lock
        self.lock = threading.RLock()

    def connect(self) -> sqlite3.Connection:
        """
        Establish database connection.

        Returns:
            SQLite connection object
        """
        with self.lock:
            if self._conn is None:
                # Ensure parent directory exists
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

                self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
                self._conn.row_factory = sqlite3.Row

            return self._conn

    def execute_schema(self) -> None:
        """Create database tables if they don't exist."""
        conn = self.connect()

        with self.lock:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    id       BLOB NOT NULL PRIMARY KEY,
                    subject  TEXT,
                    fromaddr TEXT,
                    toaddr   TEXT,
                    body     TEXT,
                    isread   INTEGER
                ) WITHOUT ROWID
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS authors (
                    address  TEXT NOT NULL PRIMARY KEY,
                    name     TEXT NOT NULL
                ) WITHOUT ROWID
            """
            )

            conn.commit()

    def close(self) -> None:
        """Close database connection."""
        with self.lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


class MessageRepository:
    """Repository for indexed messages and their authors."""

    _SELECT = """
        SELECT messages.id, messages.subject, messages.fromaddr, messages.toaddr,
               authors.name AS fromname
        FROM messages
        LEFT JOIN authors ON authors.address = messages.fromaddr
    """

    def __init__(self, db: DatabaseConnection):
        """
        Initialize repository.

        Args:
            db: Database connection
        """
        self.db = db

    def put(self, message: Message) -> None:
        """
        Store a parsed message.

        The id is the primary key; a message that is already indexed is left
        as is. Absent authors are stored as NULL. The sender's display name
        is upserted: a non-empty name replaces the stored one, an empty name
        is only stored for a new address.

        Args:
            message: Parsed message with an id
        """
        if message.id is None:
            raise ValueError("cannot index a message without an id")

        conn = self.db.connect()

        with self.db.lock:
            try:
                conn.execute(
                    """
                    INSERT OR IGNORE INTO messages
                    (id, subject, fromaddr, toaddr, body) VALUES (?, ?, ?, ?, ?)
                """,
                    (
                        message.id,
                        message.subject,
                        message.sender.address if message.sender else None,
                        message.recipient.address if message.recipient else None,
                        message.body.decode("utf-8", errors="replace"),
                    ),
                )

                sender = message.sender
                if sender is not None and sender.name:
                    conn.execute(
                        "INSERT OR REPLACE INTO authors (address, name) VALUES (?, ?)",
                        (sender.address, sender.name),
                    )
                elif sender is not None:
                    conn.execute(
                        "INSERT OR IGNORE INTO authors (address, name) VALUES (?, '')",
                        (sender.address,),
                    )
            except sqlite3.Error:
                conn.rollback()
                raise

            conn.commit()

    def find_by_id(self, message_id: bytes) -> Optional[Message]:
        """
        Find a message by id.

        Args:
            message_id: 24-byte message id

        Returns:
            Message if found, None otherwise
        """
        conn = self.db.connect()

        with self.db.lock:
            cursor = conn.execute(self._SELECT + " WHERE messages.id = ?", (message_id,))
            row = cursor.fetchone()

        if row is None:
            return None

        return self._row_to_message(row)

    def find_latest(self) -> Optional[Message]:
        """Find the message with the highest id (the newest one)."""
        for message in self.list_recent(0, 1):
            return message
        return None

    def list_recent(self, offset: int = 0, limit: int = 20) -> Iterator[Message]:
        """
        List messages newest first.

        Ids start with the time field, so ordering by id orders by time.

        Args:
            offset: Number of messages to skip
            limit: Maximum number of messages

        Yields:
            Message instances (body not loaded)
        """
        conn = self.db.connect()

        with self.db.lock:
            cursor = conn.execute(
                self._SELECT + " ORDER BY messages.id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = cursor.fetchall()

        for row in rows:
            yield self._row_to_message(row)

    def count(self) -> int:
        conn = self.db.connect()

        with self.db.lock:
            return conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]

    def _row_to_message(self, row: sqlite3.Row) -> Message:
        """Convert database row to Message."""
        from ..services.codec.identifier import ID_SIZE, decode_time

        message_id = bytes(row["id"])
        if len(message_id) != ID_SIZE:
            raise ValueError(f"invalid id {message_id!r}")

        return Message(
            id=message_id,
            time=decode_time(message_id),
            subject=row["subject"] or "",
            sender=_author_or_none(row["fromaddr"], row["fromname"]),
            recipient=_author_or_none(row["toaddr"]),
        )


def _author_or_none(address: Optional[str], name: Optional[str] = None) -> Optional[Author]:
    if not address:
        return None
    return Author(address=address, name=name or "")
