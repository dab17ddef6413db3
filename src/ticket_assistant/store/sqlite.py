"""SQLite-backed read adapter for the ticket database."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from ticket_assistant.types import Comment, Ticket, TicketFilter, UserRef

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        username TEXT UNIQUE,
        name TEXT,
        email TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tickets (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL DEFAULT 'OPEN',
        priority TEXT NOT NULL DEFAULT 'MEDIUM',
        created_at TEXT NOT NULL,
        created_by_id TEXT REFERENCES users(id),
        assigned_to_id TEXT REFERENCES users(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS comments (
        id TEXT PRIMARY KEY,
        ticket_id TEXT NOT NULL REFERENCES tickets(id),
        author_id TEXT REFERENCES users(id),
        content TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
)

_TICKET_COLUMNS = (
    "id, title, description, status, priority, created_at, created_by_id, assigned_to_id"
)


class SqliteTicketRepository:
    """Reads tickets, users and comments from a SQLite file.

    Timestamps are stored as ISO-8601 text and ordered by their UTC instant,
    so mixed offsets and a trailing ``Z`` sort correctly. Query methods open
    the file read-only and never create it; ``ensure_schema`` is the one
    explicit setup step that writes.
    """

    def __init__(self, db_path: str | Path = "tickets.db") -> None:
        self._db_path = Path(db_path)

    @contextmanager
    def _connect(self, *, readonly: bool = True) -> Iterator[sqlite3.Connection]:
        if readonly:
            uri = f"{self._db_path.resolve().as_uri()}?mode=ro"
            conn = sqlite3.connect(uri, uri=True)
        else:
            conn = sqlite3.connect(self._db_path)
        with closing(conn):
            conn.row_factory = sqlite3.Row
            yield conn

    def ensure_schema(self) -> None:
        with self._connect(readonly=False) as conn:
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.commit()

    def find_recent(self, limit: int) -> list[Ticket]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_TICKET_COLUMNS} FROM tickets ORDER BY julianday(created_at) DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_ticket_from_row(row) for row in rows]

    def find_many(self, ticket_filter: TicketFilter, limit: int) -> list[Ticket]:
        clauses: list[str] = []
        params: list[Any] = []
        if ticket_filter.status:
            clauses.append("status = ?")
            params.append(ticket_filter.status)
        if ticket_filter.priority:
            clauses.append("priority = ?")
            params.append(ticket_filter.priority)
        if ticket_filter.search:
            # instr() is case-sensitive, unlike LIKE.
            clauses.append("(instr(title, ?) > 0 OR instr(description, ?) > 0)")
            params.extend([ticket_filter.search, ticket_filter.search])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_TICKET_COLUMNS} FROM tickets {where} LIMIT ?",
                (*params, limit),
            ).fetchall()
        return [_ticket_from_row(row) for row in rows]

    def find_by_id(self, ticket_id: str, include_relations: bool = False) -> Ticket | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_TICKET_COLUMNS} FROM tickets WHERE id = ?", (ticket_id,)
            ).fetchone()
            if row is None:
                return None
            ticket = _ticket_from_row(row)
            if include_relations:
                ticket.created_by = _load_user(conn, ticket.created_by_id)
                ticket.assigned_to = _load_user(conn, ticket.assigned_to_id)
        return ticket

    def find_comments(self, ticket_id: str) -> list[Comment]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT c.id, c.ticket_id, c.content, c.created_at,
                       u.id AS author_id, u.name AS author_name, u.email AS author_email
                FROM comments c
                LEFT JOIN users u ON u.id = c.author_id
                WHERE c.ticket_id = ?
                ORDER BY julianday(c.created_at) ASC
                """,
                (ticket_id,),
            ).fetchall()
        return [
            Comment(
                id=row["id"],
                ticket_id=row["ticket_id"],
                content=row["content"],
                created_at=_parse_timestamp(row["created_at"]),
                author=(
                    UserRef(id=row["author_id"], name=row["author_name"], email=row["author_email"])
                    if row["author_id"] is not None
                    else None
                ),
            )
            for row in rows
        ]


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on.
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _ticket_from_row(row: sqlite3.Row) -> Ticket:
    return Ticket(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        status=row["status"],
        priority=row["priority"],
        created_at=_parse_timestamp(row["created_at"]),
        created_by_id=row["created_by_id"],
        assigned_to_id=row["assigned_to_id"],
    )


def _load_user(conn: sqlite3.Connection, user_id: str | None) -> UserRef | None:
    if user_id is None:
        return None
    row = conn.execute("SELECT id, name, email FROM users WHERE id = ?", (user_id,)).fetchone()
    if row is None:
        return None
    return UserRef(id=row["id"], name=row["name"], email=row["email"])
