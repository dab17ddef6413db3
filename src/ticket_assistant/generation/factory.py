"""Builds provider clients from settings."""

from __future__ import annotations

import logging
from typing import Any

from ticket_assistant.config import Settings
from ticket_assistant.generation.service import RemoteRagGenerator
from ticket_assistant.ingest.embedder import Embedder, HashingEmbedder, LangChainEmbedder

logger = logging.getLogger(__name__)


def create_chat_model(settings: Settings) -> Any | None:
    """Return a LangChain chat model, or None when no API key is configured."""
    if settings.llm_provider == "openai":
        if settings.openai_api_key is None:
            return None
        from langchain_openai import ChatOpenAI

        logger.info("Chat model: openai/%s", settings.openai_model)
        return ChatOpenAI(
            model=settings.openai_model,
            temperature=0,
            api_key=settings.openai_api_key,
        )

    if settings.google_api_key is None:
        return None
    from langchain_google_genai import ChatGoogleGenerativeAI

    logger.info("Chat model: google/%s", settings.llm_model)
    return ChatGoogleGenerativeAI(
        model=settings.llm_model,
        temperature=0,
        google_api_key=settings.google_api_key.get_secret_value(),
    )


def create_embedder(settings: Settings) -> Embedder:
    """Gemini embeddings when a Google key is set, local hashing otherwise."""
    if settings.google_api_key is None:
        logger.info("Embedder: local hashing (no GOOGLE_API_KEY)")
        return HashingEmbedder()
    from langchain_google_genai import GoogleGenerativeAIEmbeddings

    logger.info("Embedder: google/%s", settings.embedding_model)
    return LangChainEmbedder(
        GoogleGenerativeAIEmbeddings(
            model=settings.embedding_model,
            google_api_key=settings.google_api_key.get_secret_value(),
        )
    )


def create_rag_generator(settings: Settings) -> RemoteRagGenerator | None:
    if not settings.rag_service_url:
        return None
    return RemoteRagGenerator(settings.rag_service_url, timeout=settings.rag_service_timeout)
