import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from ticket_assistant.store.sqlite import SqliteTicketRepository
from ticket_assistant.types import TicketFilter


@pytest.fixture
def repository(tmp_path) -> SqliteTicketRepository:
    db_path = tmp_path / "tickets.db"
    repo = SqliteTicketRepository(db_path)
    repo.ensure_schema()
    conn = sqlite3.connect(db_path)
    try:
        conn.executemany(
            "INSERT INTO users (id, username, name, email) VALUES (?, ?, ?, ?)",
            [
                ("u1", "admin", "Admin User", "admin@example.com"),
                ("u2", "hana", "Hana Sato", "hana@example.com"),
            ],
        )
        conn.executemany(
            "INSERT INTO tickets (id, title, description, status, priority, created_at, "
            "created_by_id, assigned_to_id) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                ("t1", "Printer jammed", "Floor 3 printer", "OPEN", "LOW", "2024-05-01T09:00:00+00:00", "u1", None),
                ("t2", "VPN disconnects", "Drops hourly", "IN_PROGRESS", "HIGH", "2024-05-01T10:00:00+00:00", "u1", "u2"),
                ("t3", "New monitor", "Request for printer cable", "CLOSED", "LOW", "2024-05-01T11:00:00+00:00", "u2", None),
            ],
        )
        conn.executemany(
            "INSERT INTO comments (id, ticket_id, author_id, content, created_at) VALUES (?, ?, ?, ?, ?)",
            [
                ("c2", "t2", "u2", "Router replaced", "2024-05-02T10:00:00+00:00"),
                ("c1", "t2", "u1", "Investigating", "2024-05-01T12:00:00+00:00"),
                ("c3", "t2", None, "Auto-closed reminder", "2024-05-03T10:00:00+00:00"),
            ],
        )
        conn.commit()
    finally:
        conn.close()
    return repo


def test_find_recent_newest_first(repository) -> None:
    assert [t.id for t in repository.find_recent(2)] == ["t3", "t2"]


def test_find_many_filters(repository) -> None:
    assert [t.id for t in repository.find_many(TicketFilter(priority="LOW"), 5)] == ["t1", "t3"]
    assert [t.id for t in repository.find_many(TicketFilter(status="OPEN", priority="LOW"), 5)] == ["t1"]
    assert [t.id for t in repository.find_many(TicketFilter(search="printer"), 5)] == ["t1", "t3"]
    assert [t.id for t in repository.find_many(TicketFilter(search="Printer"), 5)] == ["t1"]
    assert len(repository.find_many(TicketFilter(), 2)) == 2


def test_find_by_id_with_relations(repository) -> None:
    plain = repository.find_by_id("t2")
    full = repository.find_by_id("t2", include_relations=True)

    assert plain is not None and plain.created_by is None
    assert full.created_by.name == "Admin User"
    assert full.assigned_to.name == "Hana Sato"
    assert repository.find_by_id("missing") is None


def test_find_comments_oldest_first(repository) -> None:
    comments = repository.find_comments("t2")

    assert [c.id for c in comments] == ["c1", "c2", "c3"]
    assert comments[0].author.name == "Admin User"
    assert comments[2].author is None
    assert repository.find_comments("t1") == []


def _insert_tickets(db_path, rows) -> None:
    conn = sqlite3.connect(db_path)
    try:
        conn.executemany(
            "INSERT INTO tickets (id, title, description, status, priority, created_at) "
            "VALUES (?, ?, '', 'OPEN', 'MEDIUM', ?)",
            rows,
        )
        conn.commit()
    finally:
        conn.close()


def test_ordering_uses_the_utc_instant_across_offsets(tmp_path) -> None:
    db_path = tmp_path / "offsets.db"
    repo = SqliteTicketRepository(db_path)
    repo.ensure_schema()
    _insert_tickets(
        db_path,
        [
            # 01:00 UTC, but sorts after the next row as plain text.
            ("older", "Older", "2024-05-01T10:00:00+09:00"),
            ("newer", "Newer", "2024-05-01T05:00:00+00:00"),
        ],
    )
    conn = sqlite3.connect(db_path)
    try:
        conn.executemany(
            "INSERT INTO comments (id, ticket_id, content, created_at) VALUES (?, 'newer', ?, ?)",
            [
                ("late", "Second", "2024-05-01T05:30:00+00:00"),
                ("early", "First", "2024-05-01T14:00:00+09:00"),
            ],
        )
        conn.commit()
    finally:
        conn.close()

    assert [t.id for t in repo.find_recent(1)] == ["newer"]
    assert [t.id for t in repo.find_recent(2)] == ["newer", "older"]
    assert [c.id for c in repo.find_comments("newer")] == ["early", "late"]


def test_trailing_z_timestamps_are_parsed_as_utc(tmp_path) -> None:
    db_path = tmp_path / "zulu.db"
    repo = SqliteTicketRepository(db_path)
    repo.ensure_schema()
    _insert_tickets(
        db_path,
        [
            ("z1", "Zulu", "2024-05-01T05:00:00.000Z"),
            ("z2", "Offset", "2024-05-01T06:00:00.000+00:00"),
        ],
    )

    tickets = repo.find_recent(10)

    assert [t.id for t in tickets] == ["z2", "z1"]
    assert tickets[1].created_at == datetime(2024, 5, 1, 5, 0, tzinfo=timezone.utc)
    assert repo.find_by_id("z1").created_at.utcoffset() == timedelta(0)


def test_reads_never_create_the_database_file(tmp_path) -> None:
    db_path = tmp_path / "missing.db"
    repo = SqliteTicketRepository(db_path)

    with pytest.raises(sqlite3.OperationalError):
        repo.find_recent(5)
    assert not db_path.exists()
