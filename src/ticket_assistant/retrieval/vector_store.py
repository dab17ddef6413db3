"""Append-only in-memory vector index with cosine-similarity search."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from math import sqrt

from ticket_assistant.errors import EmbeddingProviderError
from ticket_assistant.ingest.embedder import Embedder
from ticket_assistant.types import Document

logger = logging.getLogger(__name__)


class InMemoryVectorIndex:
    """Parallel lists of documents and their embeddings.

    An index is meant to be built, queried and dropped inside one request.
    It is never persisted and never shared, so it carries no locking.

    Invariants:
    - ``len(documents) == len(embeddings)`` at all times.
    - Every stored embedding has the same dimension.
    - Insertion order is preserved and breaks similarity ties.
    """

    def __init__(self, embedder: Embedder) -> None:
        self._embedder = embedder
        self._documents: list[Document] = []
        self._embeddings: list[list[float]] = []

    @classmethod
    def from_documents(
        cls, documents: Sequence[Document], embedder: Embedder
    ) -> "InMemoryVectorIndex":
        index = cls(embedder)
        index.add_documents(documents)
        return index

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> tuple[Document, ...]:
        return tuple(self._documents)

    @property
    def dimension(self) -> int | None:
        return len(self._embeddings[0]) if self._embeddings else None

    def add_documents(self, documents: Sequence[Document]) -> None:
        """Embed ``documents`` in one batch and append them.

        Raises:
            EmbeddingProviderError: the provider failed or returned vectors
                that do not fit the index. Nothing is appended in that case.
        """
        if not documents:
            return

        try:
            embeddings = self._embedder.embed_documents([doc.content for doc in documents])
        except Exception as exc:
            raise EmbeddingProviderError(f"Embedding provider failed: {exc}") from exc

        if len(embeddings) != len(documents):
            raise EmbeddingProviderError(
                f"Embedding provider returned {len(embeddings)} vectors "
                f"for {len(documents)} documents"
            )

        expected = self.dimension or (len(embeddings[0]) if embeddings else 0)
        if expected == 0:
            raise EmbeddingProviderError("Embedding provider returned empty vectors")
        for vector in embeddings:
            if len(vector) != expected:
                raise EmbeddingProviderError(
                    f"Embedding dimension mismatch: expected {expected}, got {len(vector)}"
                )

        self._documents.extend(documents)
        self._embeddings.extend(list(vector) for vector in embeddings)
        logger.debug("Indexed %d documents (total=%d)", len(documents), len(self._documents))

    def similarity_search(self, query: str, k: int = 1) -> list[Document]:
        return [doc for doc, _ in self.similarity_search_with_scores(query, k)]

    def similarity_search_with_scores(
        self, query: str, k: int = 1
    ) -> list[tuple[Document, float]]:
        """Return up to ``k`` documents ordered by descending cosine similarity."""
        if not self._documents or k <= 0:
            return []

        try:
            query_embedding = self._embedder.embed_query(query)
        except Exception as exc:
            raise EmbeddingProviderError(f"Embedding provider failed: {exc}") from exc

        if len(query_embedding) != self.dimension:
            raise EmbeddingProviderError(
                f"Query embedding dimension {len(query_embedding)} does not match "
                f"index dimension {self.dimension}"
            )

        scored = [
            (doc, cosine_similarity(query_embedding, embedding))
            for doc, embedding in zip(self._documents, self._embeddings, strict=True)
        ]
        # sorted() is stable, also with reverse=True, so ties keep insertion order.
        ranked = sorted(scored, key=lambda item: item[1], reverse=True)
        return ranked[:k]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b``; 0.0 if either has zero norm."""
    if len(a) != len(b):
        raise ValueError("vectors must have the same dimension")
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
