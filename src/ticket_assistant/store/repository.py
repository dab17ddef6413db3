"""Read-only ticket repository contract and an in-memory adapter."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol

from ticket_assistant.types import Comment, Ticket, TicketFilter, UserRef


class TicketRepository(Protocol):
    """Queries the assistant needs from the ticket persistence layer."""

    def find_recent(self, limit: int) -> list[Ticket]:
        """Most recently created tickets, newest first."""

    def find_many(self, ticket_filter: TicketFilter, limit: int) -> list[Ticket]:
        """Tickets matching ``ticket_filter``, at most ``limit``."""

    def find_by_id(self, ticket_id: str, include_relations: bool = False) -> Ticket | None:
        """One ticket, optionally with creator/assignee resolved."""

    def find_comments(self, ticket_id: str) -> list[Comment]:
        """Comments of one ticket, oldest first, with authors resolved."""


def matches_filter(ticket: Ticket, ticket_filter: TicketFilter) -> bool:
    if ticket_filter.status and ticket.status != ticket_filter.status:
        return False
    if ticket_filter.priority and ticket.priority != ticket_filter.priority:
        return False
    if ticket_filter.search:
        return ticket_filter.search in ticket.title or ticket_filter.search in ticket.description
    return True


class InMemoryTicketRepository:
    """Dictionary-backed repository for tests and local prototyping."""

    def __init__(
        self,
        tickets: Iterable[Ticket] = (),
        comments: Iterable[Comment] = (),
        users: Iterable[UserRef] = (),
    ) -> None:
        self._tickets: dict[str, Ticket] = {ticket.id: ticket for ticket in tickets}
        self._comments: list[Comment] = list(comments)
        self._users: dict[str, UserRef] = {user.id: user for user in users}

    def find_recent(self, limit: int) -> list[Ticket]:
        ranked = sorted(self._tickets.values(), key=lambda t: t.created_at, reverse=True)
        return ranked[:limit]

    def find_many(self, ticket_filter: TicketFilter, limit: int) -> list[Ticket]:
        hits = [t for t in self._tickets.values() if matches_filter(t, ticket_filter)]
        return hits[:limit]

    def find_by_id(self, ticket_id: str, include_relations: bool = False) -> Ticket | None:
        ticket = self._tickets.get(ticket_id)
        if ticket is None or not include_relations:
            return ticket
        return replace(
            ticket,
            created_by=self._users.get(ticket.created_by_id or ""),
            assigned_to=self._users.get(ticket.assigned_to_id or ""),
        )

    def find_comments(self, ticket_id: str) -> list[Comment]:
        comments = [c for c in self._comments if c.ticket_id == ticket_id]
        return sorted(comments, key=lambda c: c.created_at)
