"""Request tracing and latency accounting."""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ticket_assistant.types import ToolTrace


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    kind: str
    question: str
    answer: str
    locale: str
    latency_ms: float
    turns: int = 0
    tool_traces: list[ToolTrace] = field(default_factory=list)


class TraceStore:
    """In-memory trace storage for API-level observability.

    Records are append-only; the store is the only object shared between
    requests and guards its dict with a lock.
    """

    def __init__(self, max_records: int = 1000) -> None:
        self._records: dict[str, TraceRecord] = {}
        self._max_records = max_records
        self._lock = threading.Lock()

    def create_record(
        self,
        *,
        kind: str,
        question: str,
        answer: str,
        locale: str,
        latency_ms: float,
        turns: int = 0,
        tool_traces: list[ToolTrace] | None = None,
    ) -> TraceRecord:
        record = TraceRecord(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            kind=kind,
            question=question,
            answer=answer,
            locale=locale,
            latency_ms=latency_ms,
            turns=turns,
            tool_traces=list(tool_traces or []),
        )
        with self._lock:
            self._records[record.trace_id] = record
            while len(self._records) > self._max_records:
                oldest = next(iter(self._records))
                del self._records[oldest]
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        with self._lock:
            records = list(self._records.values())
        return records[-limit:] if limit > 0 else []

    def summary(self) -> dict[str, float | int]:
        """Aggregate latency and tool usage for dashboard display."""
        with self._lock:
            records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "total_tool_calls": 0,
                "tool_errors": 0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        tool_traces = [trace for record in records for trace in record.tool_traces]

        return {
            "total_requests": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "total_tool_calls": len(tool_traces),
            "tool_errors": sum(1 for trace in tool_traces if trace.error),
        }


class Timer:
    """Simple context timer."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
