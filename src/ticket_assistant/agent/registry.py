"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

import logging
from collections.abc import Callable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as ArgumentValidationError

from ticket_assistant.errors import ToolHandlerError
from ticket_assistant.types import ToolCall, ToolResult

logger = logging.getLogger(__name__)


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], dict[str, Any]]
    error_message: str | None = None
    tags: list[str] = Field(default_factory=list)

    def invoke(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = self.args_schema.model_validate(payload)
        return self.handler(data)


class ToolRegistry:
    """Maps tool names to validated handlers.

    ``execute`` is total: unknown names, invalid arguments and handler
    failures all come back as ``{"error": ...}`` payloads so the model can
    react to them.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def names(self) -> list[str]:
        return list(self._tools)

    def execute(self, call: ToolCall) -> ToolResult:
        start = perf_counter()
        payload = self._dispatch(call)
        latency_ms = (perf_counter() - start) * 1000.0
        logger.info("Tool %s args=%s latency=%.1fms", call.name, call.args, latency_ms)
        return ToolResult(
            name=call.name,
            payload=payload,
            call_id=call.call_id,
            latency_ms=latency_ms,
        )

    def as_langchain_tools(self) -> list[StructuredTool]:
        """Export tool declarations for ``bind_tools``."""
        tools: list[StructuredTool] = []
        for spec in self._tools.values():
            tools.append(
                StructuredTool.from_function(
                    name=spec.name,
                    description=spec.description,
                    args_schema=spec.args_schema,
                    func=self._build_function(spec),
                )
            )
        return tools

    def _build_function(self, spec: ToolSpec) -> Callable[..., dict[str, Any]]:
        def _callable(**kwargs: Any) -> dict[str, Any]:
            return self._dispatch(ToolCall(name=spec.name, args=kwargs))

        return _callable

    def _dispatch(self, call: ToolCall) -> dict[str, Any]:
        spec = self._tools.get(call.name)
        if spec is None:
            logger.warning("Unknown tool requested: %s", call.name)
            return {"error": f"Unknown tool: {call.name}"}

        try:
            return spec.invoke(call.args)
        except ArgumentValidationError as exc:
            logger.warning("Invalid arguments for %s: %s", call.name, exc)
            return {"error": f"Invalid arguments for {call.name}: {exc}"}
        except Exception as exc:
            logger.exception("Tool %s failed", call.name)
            error = ToolHandlerError(call.name, spec.error_message or str(exc))
            return error.to_payload()
