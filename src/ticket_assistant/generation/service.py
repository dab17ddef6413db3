"""Generation backends: LangChain chat models and a remote RAG endpoint."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

import httpx
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from ticket_assistant.errors import (
    GenerationQuotaExceeded,
    GenerationServiceError,
    is_quota_error,
)
from ticket_assistant.types import Message, ModelResponse, Role, ToolCall, ToolResult

logger = logging.getLogger(__name__)


class ChatSession(Protocol):
    """A multi-turn exchange with tool declarations bound."""

    def send(self, turn: str | Sequence[ToolResult]) -> ModelResponse:
        """Send a user turn or a batch of tool results; return the model reply."""


class GenerationService(Protocol):
    def start_chat(
        self,
        *,
        system_instruction: str,
        history: Sequence[Message],
        tools: Sequence[Any],
    ) -> ChatSession:
        """Open a chat seeded with an already-sanitized history."""


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str:
        """Single-shot completion for a fully rendered prompt."""


def translate_error(exc: Exception) -> GenerationServiceError:
    """Map a provider exception onto the generation error taxonomy."""
    if isinstance(exc, GenerationServiceError):
        return exc
    if is_quota_error(exc):
        return GenerationQuotaExceeded(str(exc))
    return GenerationServiceError(str(exc))


class LangChainChatSession:
    """Keeps the LangChain message list for one conversation."""

    def __init__(self, model: Any, messages: list[BaseMessage]) -> None:
        self._model = model
        self.messages = messages

    def send(self, turn: str | Sequence[ToolResult]) -> ModelResponse:
        if isinstance(turn, str):
            self.messages.append(HumanMessage(content=turn))
        else:
            self.messages.extend(_tool_message(result) for result in turn)

        try:
            reply = self._model.invoke(self.messages)
        except Exception as exc:
            raise translate_error(exc) from exc

        self.messages.append(reply)
        return _to_model_response(reply)


class LangChainGenerationService:
    """Generation service backed by any LangChain chat model.

    The model must support ``bind_tools`` when tools are passed (Gemini and
    OpenAI chat models both do).
    """

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    def start_chat(
        self,
        *,
        system_instruction: str,
        history: Sequence[Message],
        tools: Sequence[Any],
    ) -> LangChainChatSession:
        try:
            model = self.llm.bind_tools(list(tools)) if tools else self.llm
        except Exception as exc:
            raise translate_error(exc) from exc
        messages: list[BaseMessage] = [SystemMessage(content=system_instruction)]
        for message in history:
            content = message.content or ""
            if message.role is Role.USER:
                messages.append(HumanMessage(content=content))
            else:
                messages.append(AIMessage(content=content))
        return LangChainChatSession(model, messages)

    def generate(self, prompt: str) -> str:
        try:
            reply = self.llm.invoke(prompt)
        except Exception as exc:
            raise translate_error(exc) from exc
        return message_text(reply)


class RemoteRagGenerator:
    """Client for an HTTP text-generation endpoint.

    The endpoint receives the rendered prompt as the ``prompt`` query
    parameter of a POST request and answers with a JSON document.
    """

    def __init__(
        self,
        url: str,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.url = url
        self._client = client or httpx.Client(timeout=timeout)

    def generate(self, prompt: str) -> str:
        try:
            response = self._client.post(
                self.url,
                params={"prompt": prompt},
                headers={"Content-Type": "text/plain"},
            )
        except httpx.HTTPError as exc:
            raise GenerationServiceError(f"RAG service request failed: {exc}") from exc

        if response.status_code == 429:
            raise GenerationQuotaExceeded("RAG service responded with status: 429")
        if response.is_error:
            raise GenerationServiceError(
                f"RAG service responded with status: {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationServiceError("RAG service returned invalid JSON") from exc

        logger.debug("RAG service response: %r", data)
        if data is None:
            return ""
        if isinstance(data, str):
            return data
        return json.dumps(data, ensure_ascii=False)

    def close(self) -> None:
        self._client.close()


def message_text(message: Any) -> str:
    """Flatten a chat model reply into plain text."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("type", "text") == "text" and "text" in item:
                parts.append(str(item["text"]))
        return "".join(parts)
    return "" if content is None else str(content)


def _to_model_response(reply: Any) -> ModelResponse:
    tool_calls = [
        ToolCall(
            name=str(call.get("name", "")),
            args=dict(call.get("args") or {}),
            call_id=call.get("id"),
        )
        for call in getattr(reply, "tool_calls", None) or []
    ]
    return ModelResponse(text=message_text(reply), tool_calls=tool_calls)


def _tool_message(result: ToolResult) -> ToolMessage:
    return ToolMessage(
        content=json.dumps(result.payload, ensure_ascii=False, default=str),
        name=result.name,
        tool_call_id=result.call_id or result.name,
    )
