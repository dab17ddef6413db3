"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

TICKET_STATUSES = ("OPEN", "IN_PROGRESS", "CLOSED")
TICKET_PRIORITIES = ("LOW", "MEDIUM", "HIGH", "URGENT")


@dataclass(frozen=True, slots=True)
class Document:
    """A unit of retrievable text plus scalar metadata."""

    id: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


@dataclass(slots=True)
class Message:
    """One entry of a conversation history."""

    role: Role
    content: str | None

    @classmethod
    def from_raw(cls, role: str | None, content: str | None) -> "Message":
        """Map a client-side role name onto the two roles the model accepts."""
        mapped = Role.MODEL if role in ("assistant", "model") else Role.USER
        return cls(role=mapped, content=content)


@dataclass(slots=True)
class ToolCall:
    """A structured tool invocation requested by the model."""

    name: str
    args: dict[str, Any]
    call_id: str | None = None


@dataclass(slots=True)
class ToolResult:
    """Outcome of one tool call; failures are carried in ``payload``."""

    name: str
    payload: dict[str, Any]
    call_id: str | None = None
    latency_ms: float = 0.0

    @property
    def is_error(self) -> bool:
        return "error" in self.payload


@dataclass(slots=True)
class ModelResponse:
    """Text and/or tool calls returned by one generation round."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass(slots=True)
class UserRef:
    id: str
    name: str | None = None
    email: str | None = None


@dataclass(slots=True)
class Ticket:
    id: str
    title: str
    description: str
    status: str
    priority: str
    created_at: datetime
    created_by_id: str | None = None
    assigned_to_id: str | None = None
    created_by: UserRef | None = None
    assigned_to: UserRef | None = None


@dataclass(slots=True)
class Comment:
    id: str
    ticket_id: str
    content: str
    created_at: datetime
    author: UserRef | None = None


@dataclass(slots=True)
class TicketFilter:
    """Optional equality / substring constraints for ticket listing."""

    status: str | None = None
    priority: str | None = None
    search: str | None = None


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
    error: bool = False


def document_from_ticket(ticket: Ticket) -> Document:
    content = (
        f"Title: {ticket.title}\n"
        f"Description: {ticket.description}\n"
        f"Status: {ticket.status}\n"
        f"Priority: {ticket.priority}"
    )
    return Document(
        id=ticket.id,
        content=content,
        metadata={
            "id": ticket.id,
            "type": "ticket",
            "title": ticket.title,
            "description": ticket.description,
            "status": ticket.status,
            "priority": ticket.priority,
        },
    )
