"""Retrieval-augmented answering over the most recent tickets."""

from __future__ import annotations

import logging

from ticket_assistant.config import RetrievalConfig
from ticket_assistant.errors import is_quota_error
from ticket_assistant.generation.service import TextGenerator
from ticket_assistant.ingest.embedder import Embedder
from ticket_assistant.obs.tracing import Timer, TraceStore
from ticket_assistant.prompts import (
    NO_RESPONSE_GENERATED,
    Locale,
    build_rag_prompt,
    generic_error_message,
    no_records_message,
    quota_exceeded_message,
    resolve_locale,
)
from ticket_assistant.retrieval.vector_store import InMemoryVectorIndex
from ticket_assistant.store.repository import TicketRepository
from ticket_assistant.types import document_from_ticket

logger = logging.getLogger(__name__)


class RetrievalOrchestrator:
    """Answers a question from the single most similar recent ticket.

    Each call builds its own ``InMemoryVectorIndex`` and drops it on return,
    so concurrent calls share nothing but the injected collaborators. The
    index is rebuilt on every call; that is fine for tens of tickets and is
    the first thing to revisit if ``recent_limit`` grows.

    ``answer`` never raises: upstream failures come back as localized text.
    """

    def __init__(
        self,
        *,
        repository: TicketRepository,
        embedder: Embedder,
        generator: TextGenerator,
        config: RetrievalConfig | None = None,
        trace_store: TraceStore | None = None,
    ) -> None:
        self.repository = repository
        self.embedder = embedder
        self.generator = generator
        self.config = config or RetrievalConfig()
        self.trace_store = trace_store

    def answer(self, query: str, locale: str = "en") -> str:
        resolved = resolve_locale(locale)
        with Timer() as timer:
            answer = self._answer(query, resolved)
        if self.trace_store is not None:
            self.trace_store.create_record(
                kind="vector_search",
                question=query,
                answer=answer,
                locale=resolved,
                latency_ms=timer.elapsed_ms,
            )
        return answer

    def _answer(self, query: str, locale: Locale) -> str:
        try:
            tickets = self.repository.find_recent(self.config.recent_limit)
            if not tickets:
                return no_records_message(locale)

            documents = [document_from_ticket(ticket) for ticket in tickets]
            index = InMemoryVectorIndex.from_documents(documents, self.embedder)
            logger.info("Built vector index over %d tickets", len(index))

            results = index.similarity_search(query, self.config.top_k)
            context = "\n\n".join(doc.content for doc in results)
            logger.debug("Retrieved context for %r: %s", query, [doc.id for doc in results])

            prompt = build_rag_prompt(locale, context, query)
            generated = self.generator.generate(prompt)
        except Exception as exc:
            if is_quota_error(exc):
                logger.warning("Generation quota exceeded: %s", exc)
                return quota_exceeded_message(locale)
            logger.exception("Vector search failed")
            return generic_error_message(locale)

        return generated or NO_RESPONSE_GENERATED
