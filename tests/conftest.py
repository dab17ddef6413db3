import os
from datetime import datetime, timedelta, timezone

import pytest

from ticket_assistant.store.repository import InMemoryTicketRepository
from ticket_assistant.types import Comment, Ticket, UserRef

# The API module builds an app from the environment at import time; keep it
# unconfigured regardless of the developer shell.
for _key in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY", "RAG_SERVICE_URL"):
    os.environ.pop(_key, None)

_BASE = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def make_ticket(ticket_id: str, title: str, *, minutes: int, **fields) -> Ticket:
    values = {
        "description": f"{title} details",
        "status": "OPEN",
        "priority": "MEDIUM",
    }
    values.update(fields)
    return Ticket(
        id=ticket_id,
        title=title,
        created_at=_BASE + timedelta(minutes=minutes),
        **values,
    )


@pytest.fixture
def ticket_repository() -> InMemoryTicketRepository:
    admin = UserRef(id="u-admin", name="Admin User", email="admin@example.com")
    agent = UserRef(id="u-agent", name="Hana Sato", email="hana@example.com")
    tickets = [
        make_ticket("t-1", "Printer jammed", minutes=0, priority="LOW", created_by_id="u-admin"),
        make_ticket(
            "t-2",
            "VPN disconnects",
            minutes=10,
            status="IN_PROGRESS",
            priority="HIGH",
            description="VPN drops every hour for the sales team",
            created_by_id="u-admin",
            assigned_to_id="u-agent",
        ),
        make_ticket("t-3", "Laptop battery", minutes=20, status="CLOSED"),
        make_ticket("t-4", "Email quota full", minutes=30, priority="URGENT"),
    ]
    comments = [
        Comment(id="c-2", ticket_id="t-2", content="Replaced router", created_at=_BASE + timedelta(hours=2), author=agent),
        Comment(id="c-1", ticket_id="t-2", content="Looking into it", created_at=_BASE + timedelta(hours=1), author=admin),
        Comment(id="c-3", ticket_id="t-1", content="Paper refilled", created_at=_BASE + timedelta(hours=3), author=agent),
    ]
    return InMemoryTicketRepository(tickets, comments, [admin, agent])
