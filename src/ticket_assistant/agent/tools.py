"""Read-only ticket query tools exposed to the model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from ticket_assistant.agent.registry import ToolRegistry, ToolSpec
from ticket_assistant.config import ConversationConfig
from ticket_assistant.store.repository import TicketRepository
from ticket_assistant.types import (
    TICKET_PRIORITIES,
    TICKET_STATUSES,
    Comment,
    Ticket,
    TicketFilter,
    UserRef,
)


class ListRecordsInput(BaseModel):
    status: str | None = Field(
        default=None, description=f"Filter by status ({', '.join(TICKET_STATUSES)})"
    )
    priority: str | None = Field(
        default=None, description=f"Filter by priority ({', '.join(TICKET_PRIORITIES)})"
    )
    search: str | None = Field(
        default=None, description="Search text in title or description"
    )


class TicketLookupInput(BaseModel):
    ticket_id: str = Field(min_length=1, description="The ID of the ticket")


def register_query_tools(
    registry: ToolRegistry,
    repository: TicketRepository,
    config: ConversationConfig | None = None,
) -> None:
    """Register the ticket query tools.

    Tools:
    - `list_records`: up to `list_limit` tickets matching optional filters.
    - `get_record_details`: one ticket with creator and assignee.
    - `get_record_comments`: a ticket's comments, oldest first.
    """

    limit = (config or ConversationConfig()).list_limit

    def _list_records(input_data: ListRecordsInput) -> dict[str, Any]:
        ticket_filter = TicketFilter(
            status=input_data.status,
            priority=input_data.priority,
            search=input_data.search,
        )
        tickets = repository.find_many(ticket_filter, limit)
        return {"tickets": [_ticket_summary(ticket) for ticket in tickets[:limit]]}

    def _get_record_details(input_data: TicketLookupInput) -> dict[str, Any]:
        ticket = repository.find_by_id(input_data.ticket_id, include_relations=True)
        if ticket is None:
            return {"error": "not found"}
        details = _ticket_summary(ticket)
        details["created_by"] = _user_payload(ticket.created_by)
        details["assigned_to"] = _user_payload(ticket.assigned_to)
        return {"ticket": details}

    def _get_record_comments(input_data: TicketLookupInput) -> dict[str, Any]:
        comments = repository.find_comments(input_data.ticket_id)
        return {"comments": [_comment_payload(comment) for comment in comments]}

    registry.register(
        ToolSpec(
            name="list_records",
            description="List tickets with optional filtering by status, priority, or search text.",
            args_schema=ListRecordsInput,
            handler=_list_records,
            error_message="Failed to list tickets",
            tags=["tickets"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_record_details",
            description="Get detailed information about a specific ticket by ID.",
            args_schema=TicketLookupInput,
            handler=_get_record_details,
            error_message="Failed to get ticket details",
            tags=["tickets"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_record_comments",
            description="Get comments for a specific ticket.",
            args_schema=TicketLookupInput,
            handler=_get_record_comments,
            error_message="Failed to get ticket comments",
            tags=["tickets", "comments"],
        )
    )


def _ticket_summary(ticket: Ticket) -> dict[str, Any]:
    return {
        "id": ticket.id,
        "title": ticket.title,
        "status": ticket.status,
        "priority": ticket.priority,
        "description": ticket.description,
        "created_at": ticket.created_at.isoformat(),
    }


def _user_payload(user: UserRef | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"name": user.name, "email": user.email}


def _comment_payload(comment: Comment) -> dict[str, Any]:
    return {
        "id": comment.id,
        "content": comment.content,
        "created_at": comment.created_at.isoformat(),
        "author": {"name": comment.author.name} if comment.author else None,
    }
