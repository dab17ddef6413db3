"""FastAPI entrypoint for chat, vector-search and trace endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ticket_assistant.agent.engine import ConversationEngine
from ticket_assistant.agent.registry import ToolRegistry
from ticket_assistant.agent.tools import register_query_tools
from ticket_assistant.config import Settings
from ticket_assistant.errors import GenerationServiceError, ValidationError, is_quota_error
from ticket_assistant.generation.factory import (
    create_chat_model,
    create_embedder,
    create_rag_generator,
)
from ticket_assistant.generation.service import LangChainGenerationService, TextGenerator
from ticket_assistant.obs.logs import configure_logging
from ticket_assistant.obs.tracing import TraceStore
from ticket_assistant.retrieval.orchestrator import RetrievalOrchestrator
from ticket_assistant.store.sqlite import SqliteTicketRepository
from ticket_assistant.types import Message

logger = logging.getLogger(__name__)


class ChatMessageIn(BaseModel):
    role: str = "user"
    content: str | None = None


class ChatRequest(BaseModel):
    messages: list[ChatMessageIn]
    locale: str = "en"


class VectorSearchRequest(BaseModel):
    message: str = Field(min_length=1)
    locale: str = "en"


def build_components(
    settings: Settings, trace_store: TraceStore
) -> tuple[ConversationEngine | None, RetrievalOrchestrator | None]:
    """Wire the engine and orchestrator from settings; None when unconfigured.

    Nothing here touches the database file. The schema is created separately
    with ``SqliteTicketRepository.ensure_schema`` when seeding.
    """
    repository = SqliteTicketRepository(settings.database_path)

    llm = create_chat_model(settings)
    generation = LangChainGenerationService(llm) if llm is not None else None

    engine: ConversationEngine | None = None
    if generation is not None:
        registry = ToolRegistry()
        register_query_tools(registry, repository, settings.conversation_config())
        engine = ConversationEngine(
            generation_service=generation,
            tool_registry=registry,
            config=settings.conversation_config(),
            trace_store=trace_store,
        )

    generator: TextGenerator | None = create_rag_generator(settings) or generation
    orchestrator: RetrievalOrchestrator | None = None
    if generator is not None:
        orchestrator = RetrievalOrchestrator(
            repository=repository,
            embedder=create_embedder(settings),
            generator=generator,
            config=settings.retrieval_config(),
            trace_store=trace_store,
        )
    return engine, orchestrator


def create_app(
    *,
    engine: ConversationEngine | None = None,
    orchestrator: RetrievalOrchestrator | None = None,
    trace_store: TraceStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the API.

    With ``settings`` the components are wired from configuration; otherwise
    the given ``engine``/``orchestrator`` are served as-is.
    """
    store = trace_store or TraceStore()
    if settings is not None:
        configure_logging(settings.log_level)
        engine, orchestrator = build_components(settings, store)

    app = FastAPI(title="Ticket Assistant", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "chat_configured": engine is not None,
            "vector_search_configured": orchestrator is not None,
            "trace_count": len(store.list_recent(limit=1000)),
        }

    @app.post("/chat")
    def chat(request: ChatRequest) -> Any:
        if engine is None:
            raise HTTPException(status_code=503, detail="Chat model is not configured")
        messages = [Message.from_raw(m.role, m.content) for m in request.messages]
        try:
            result = engine.run(messages, locale=request.locale)
        except ValidationError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except GenerationServiceError as exc:
            logger.error("Error in chat API: %s", exc)
            status = 429 if is_quota_error(exc) else 500
            return JSONResponse(
                status_code=status,
                content={"error": "Failed to process chat request", "details": str(exc)},
            )
        return {"content": result.answer, "turns": result.turns, "trace_id": result.trace_id}

    @app.post("/vector-search")
    def vector_search(request: VectorSearchRequest) -> dict[str, Any]:
        if orchestrator is None:
            raise HTTPException(status_code=503, detail="Vector search is not configured")
        return {"answer": orchestrator.answer(request.message, request.locale)}

    @app.get("/traces")
    def traces(limit: int = 20) -> dict[str, Any]:
        return {"items": [asdict(record) for record in store.list_recent(limit=limit)]}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return store.summary()

    return app


app = create_app(settings=Settings())
