import pytest

from ticket_assistant.config import RetrievalConfig
from ticket_assistant.errors import GenerationQuotaExceeded, GenerationServiceError
from ticket_assistant.ingest.embedder import Embedder, HashingEmbedder
from ticket_assistant.obs.tracing import TraceStore
from ticket_assistant.prompts import (
    NO_RESPONSE_GENERATED,
    generic_error_message,
    no_records_message,
    quota_exceeded_message,
)
from ticket_assistant.retrieval.orchestrator import RetrievalOrchestrator
from ticket_assistant.store.repository import InMemoryTicketRepository


class RecordingGenerator:
    def __init__(self, reply: str = "generated", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class BrokenEmbedder(Embedder):
    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise RuntimeError("model download failed")

    def embed_query(self, text: str) -> list[float]:
        raise RuntimeError("model download failed")


def _orchestrator(repository, generator, embedder=None, **config) -> RetrievalOrchestrator:
    return RetrievalOrchestrator(
        repository=repository,
        embedder=embedder or HashingEmbedder(),
        generator=generator,
        config=RetrievalConfig(**config),
        trace_store=TraceStore(),
    )


@pytest.mark.parametrize(
    ("locale", "expected"),
    [
        ("en", "No tickets found in the database."),
        ("ja", "データベースにチケットが見つかりませんでした。"),
    ],
)
def test_empty_database_returns_fixed_message(locale, expected) -> None:
    generator = RecordingGenerator()

    answer = _orchestrator(InMemoryTicketRepository(), generator).answer("anything", locale)

    assert answer == expected
    assert answer == no_records_message(locale)
    assert generator.prompts == []


def test_prompt_contains_top1_context_and_question(ticket_repository) -> None:
    generator = RecordingGenerator(reply="The VPN ticket is in progress.")
    orchestrator = _orchestrator(ticket_repository, generator)

    answer = orchestrator.answer("VPN disconnects", "en")

    assert answer == "The VPN ticket is in progress."
    (prompt,) = generator.prompts
    assert prompt.startswith("You are an AI assistant for a ticket system.")
    assert "Context:\nTitle: VPN disconnects\nDescription: VPN drops every hour" in prompt
    assert "Status: IN_PROGRESS\nPriority: HIGH" in prompt
    assert prompt.endswith("Question: VPN disconnects")
    assert "Printer jammed" not in prompt


def test_japanese_template_selected(ticket_repository) -> None:
    generator = RecordingGenerator()

    _orchestrator(ticket_repository, generator).answer("プリンター", "ja")

    assert generator.prompts[0].startswith("あなたはチケットシステムのAIアシスタントです。")
    assert "質問: プリンター" in generator.prompts[0]


def test_only_recent_tickets_are_indexed(ticket_repository) -> None:
    generator = RecordingGenerator()

    _orchestrator(ticket_repository, generator, recent_limit=1).answer("Printer jammed", "en")

    # t-4 is the newest ticket and the only candidate
    assert "Title: Email quota full" in generator.prompts[0]


def test_question_is_inserted_literally(ticket_repository) -> None:
    generator = RecordingGenerator()
    question = r"what about {context} and $& or \1?"

    _orchestrator(ticket_repository, generator).answer(question, "en")

    assert generator.prompts[0].endswith(f"Question: {question}")
    assert generator.prompts[0].count("Title: ") == 1


def test_empty_generation_falls_back(ticket_repository) -> None:
    answer = _orchestrator(ticket_repository, RecordingGenerator(reply="")).answer("x", "en")

    assert answer == NO_RESPONSE_GENERATED == "No response generated."


@pytest.mark.parametrize("locale", ["en", "ja"])
def test_quota_and_generic_failures_map_to_distinct_messages(ticket_repository, locale) -> None:
    quota = _orchestrator(
        ticket_repository, RecordingGenerator(error=GenerationQuotaExceeded("429 Too Many Requests"))
    ).answer("x", locale)
    generic = _orchestrator(
        ticket_repository, RecordingGenerator(error=GenerationServiceError("500 upstream"))
    ).answer("x", locale)

    assert quota == quota_exceeded_message(locale)
    assert generic == generic_error_message(locale)
    assert quota != generic


def test_raw_provider_quota_marker_is_recognized(ticket_repository) -> None:
    error = RuntimeError("RESOURCE_EXHAUSTED: Quota exceeded for gemini")

    answer = _orchestrator(ticket_repository, RecordingGenerator(error=error)).answer("x", "ja")

    assert answer == "申し訳ありませんが、AIサービスの利用制限（クォータ）に達しました。しばらく待ってから再度お試しください。"


def test_embedding_failure_returns_generic_message(ticket_repository) -> None:
    generator = RecordingGenerator()

    answer = _orchestrator(ticket_repository, generator, embedder=BrokenEmbedder()).answer("x", "en")

    assert answer == "A system error occurred. Please wait a while and try again."
    assert generator.prompts == []


def test_unknown_locale_falls_back_to_english() -> None:
    answer = _orchestrator(InMemoryTicketRepository(), RecordingGenerator()).answer("x", "fr")

    assert answer == "No tickets found in the database."


def test_each_call_is_traced(ticket_repository) -> None:
    orchestrator = _orchestrator(ticket_repository, RecordingGenerator(reply="ok"))

    orchestrator.answer("VPN", "en")
    orchestrator.answer("Printer", "ja")

    records = orchestrator.trace_store.list_recent()
    assert [(r.kind, r.locale, r.answer) for r in records] == [
        ("vector_search", "en", "ok"),
        ("vector_search", "ja", "ok"),
    ]
