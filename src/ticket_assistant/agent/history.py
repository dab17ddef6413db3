"""Conversation history repair before it is handed to the model."""

from __future__ import annotations

from collections.abc import Iterable

from ticket_assistant.types import Message, Role


def sanitize_history(messages: Iterable[Message]) -> list[Message]:
    """Reduce ``messages`` to a strictly alternating user/model sequence.

    Entries with empty content are skipped. An entry whose role is not the
    one expected next is dropped rather than merged or reordered. A trailing
    user turn is removed because a new user turn always follows the history.
    """
    history: list[Message] = []
    expected = Role.USER
    for message in messages:
        if not message.content:
            continue
        if message.role is not expected:
            continue
        history.append(message)
        expected = Role.MODEL if expected is Role.USER else Role.USER

    if history and history[-1].role is Role.USER:
        history.pop()
    return history
