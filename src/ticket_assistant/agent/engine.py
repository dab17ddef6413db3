"""Bounded tool-calling conversation loop."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ticket_assistant.agent.history import sanitize_history
from ticket_assistant.agent.registry import ToolRegistry
from ticket_assistant.config import ConversationConfig
from ticket_assistant.errors import ValidationError
from ticket_assistant.generation.service import GenerationService
from ticket_assistant.obs.tracing import Timer, TraceStore
from ticket_assistant.prompts import build_system_instruction, resolve_locale
from ticket_assistant.types import Message, ToolCall, ToolResult, ToolTrace

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConversationResult:
    answer: str
    turns: int
    tool_traces: list[ToolTrace] = field(default_factory=list)
    trace_id: str | None = None


class ConversationEngine:
    """Drives one request/tool-dispatch/response exchange with the model.

    The loop runs at most ``config.max_turns`` tool rounds. When the bound is
    hit while the model still asks for tools, the text of the last reply is
    returned as-is (possibly empty). Tool calls within a round are executed
    sequentially in the order the model listed them.
    """

    def __init__(
        self,
        *,
        generation_service: GenerationService,
        tool_registry: ToolRegistry,
        config: ConversationConfig | None = None,
        trace_store: TraceStore | None = None,
    ) -> None:
        self.generation_service = generation_service
        self.tool_registry = tool_registry
        self.config = config or ConversationConfig()
        self.trace_store = trace_store

    def run(self, messages: Sequence[Message], *, locale: str = "en") -> ConversationResult:
        """Answer the newest message given the preceding conversation.

        Raises:
            ValidationError: ``messages`` is empty or the newest message has
                no content.
            GenerationServiceError: the model backend failed (including
                ``GenerationQuotaExceeded``).
        """
        if not messages:
            raise ValidationError("Messages array is required")
        new_turn = messages[-1].content
        if not new_turn:
            raise ValidationError("Last message content is missing")

        resolved = resolve_locale(locale)
        history = sanitize_history(messages[:-1])
        tool_traces: list[ToolTrace] = []

        with Timer() as timer:
            session = self.generation_service.start_chat(
                system_instruction=build_system_instruction(resolved),
                history=history,
                tools=self.tool_registry.as_langchain_tools(),
            )
            response = session.send(str(new_turn))

            turn = 0
            while turn < self.config.max_turns:
                if not response.tool_calls:
                    break
                calls = response.tool_calls
                results = [self.tool_registry.execute(call) for call in calls]
                tool_traces.extend(
                    _trace(call, result) for call, result in zip(calls, results, strict=True)
                )
                response = session.send(results)
                turn += 1

            if response.tool_calls:
                logger.warning(
                    "Stopped after %d tool round(s) with %d tool call(s) still pending",
                    turn,
                    len(response.tool_calls),
                )

        result = ConversationResult(answer=response.text, turns=turn, tool_traces=tool_traces)
        if self.trace_store is not None:
            record = self.trace_store.create_record(
                kind="chat",
                question=str(new_turn),
                answer=result.answer,
                locale=resolved,
                latency_ms=timer.elapsed_ms,
                turns=turn,
                tool_traces=tool_traces,
            )
            result.trace_id = record.trace_id
        return result


def _trace(call: ToolCall, result: ToolResult) -> ToolTrace:
    preview = json.dumps(result.payload, ensure_ascii=False, default=str)
    return ToolTrace(
        name=result.name,
        input_payload=call.args,
        output_preview=preview[:320],
        latency_ms=result.latency_ms,
        error=result.is_error,
    )
