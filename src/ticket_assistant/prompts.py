"""Prompt templates and localized user-facing strings."""

from __future__ import annotations

from typing import Literal

Locale = Literal["en", "ja"]

NO_RESPONSE_GENERATED = "No response generated."

RAG_PROMPT_TEMPLATES: dict[Locale, str] = {
    "en": (
        "You are an AI assistant for a ticket system. Use the following context to "
        "answer the user's question. If you don't know the answer based on the "
        "context, honestly state that you cannot answer from the provided information."
        "\n\nContext:\n{context}\n\nQuestion: {question}"
    ),
    "ja": (
        "あなたはチケットシステムのAIアシスタントです。以下のコンテキストを使用して、"
        "ユーザーの質問に答えてください。もし答えがわからない場合は、正直に"
        "「提供された情報からは答えられません」と答えてください。"
        "\n\nコンテキスト:\n{context}\n\n質問: {question}"
    ),
}

_NO_RECORDS: dict[Locale, str] = {
    "en": "No tickets found in the database.",
    "ja": "データベースにチケットが見つかりませんでした。",
}

_QUOTA_EXCEEDED: dict[Locale, str] = {
    "en": (
        "Sorry, the AI service usage limit (quota) has been reached. "
        "Please wait a while and try again."
    ),
    "ja": (
        "申し訳ありませんが、AIサービスの利用制限（クォータ）に達しました。"
        "しばらく待ってから再度お試しください。"
    ),
}

_GENERIC_ERROR: dict[Locale, str] = {
    "en": "A system error occurred. Please wait a while and try again.",
    "ja": "システムエラーが発生しました。しばらく待ってから再度お試しください。",
}

_LANGUAGE_NAMES: dict[Locale, str] = {"en": "English", "ja": "Japanese"}

_SYSTEM_INSTRUCTION = """
You are a helpful assistant for a ticket system.
The user's current locale is '{locale}'.
You MUST answer all questions in {language}.

IMPORTANT: The ticket database may contain content in English or Japanese.
When using tools like 'list_records' with a search term, if the user asks in Japanese,
you should TRY to search using English keywords if the Japanese keywords might not match
the database content, and vice versa.
Your goal is to find the relevant information regardless of the language mismatch
between the query and the data.
""".strip()


def resolve_locale(value: str | None) -> Locale:
    """Anything other than ``"ja"`` falls back to English."""
    return "ja" if value == "ja" else "en"


def render_prompt(template: str, context: str, question: str) -> str:
    """Substitute ``{context}`` and ``{question}`` as plain text.

    Substituted values are never rescanned, so a question containing
    ``{context}`` (or regex replacement syntax) is inserted verbatim.
    """
    pieces = template.split("{context}")
    return context.join(piece.replace("{question}", question) for piece in pieces)


def build_rag_prompt(locale: Locale, context: str, question: str) -> str:
    return render_prompt(RAG_PROMPT_TEMPLATES[locale], context, question)


def build_system_instruction(locale: Locale) -> str:
    return _SYSTEM_INSTRUCTION.format(locale=locale, language=_LANGUAGE_NAMES[locale])


def no_records_message(locale: Locale) -> str:
    return _NO_RECORDS[locale]


def quota_exceeded_message(locale: Locale) -> str:
    return _QUOTA_EXCEEDED[locale]


def generic_error_message(locale: Locale) -> str:
    return _GENERIC_ERROR[locale]
