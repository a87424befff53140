"""
Per-batch reingest worker.

A worker owns one batch and one connection for its whole lifetime.
Failures are isolated at two levels:
- connection failure abandons only this batch
- a failed reingest call affects only that record; the loop continues
"""

import logging
import threading
import time
from dataclasses import dataclass, field

from opentelemetry import trace

from utils.db import BaseStoreConnection, ConnectionFailedError, QueryError
from utils.logging import ContextLogger
from utils.tracing import add_span_event, trace_operation

from .batching import Batch
from .config import IngestOptions
from .metrics import (
    REINGEST_ACTIVE_WORKERS,
    REINGEST_BATCH_TIME,
    REINGEST_BATCHES_PROCESSED,
    REINGEST_RECORDS_PROCESSED,
)
from .phases import ReingestPhase, enabled_phases

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordFailure:
    """A single failed reingest call."""

    record_id: int
    phase: str
    error: str


@dataclass
class BatchResult:
    """Outcome of one batch, returned to the pool instead of raised."""

    batch_number: int
    record_count: int
    succeeded: int = 0
    failures: list[RecordFailure] = field(default_factory=list)
    abandoned: bool = False
    error: str | None = None
    duration_seconds: float = 0.0

    @property
    def failed(self) -> int:
        return len(self.failures)

    def record_success(self, phase: str) -> None:
        self.succeeded += 1
        REINGEST_RECORDS_PROCESSED.labels(phase=phase, status="success").inc()

    def record_failure(self, record_id: int, phase: str, error: str) -> None:
        self.failures.append(RecordFailure(record_id=record_id, phase=phase, error=error))
        REINGEST_RECORDS_PROCESSED.labels(phase=phase, status="failed").inc()


def process_batch(
    options: IngestOptions,
    connection: BaseStoreConnection,
    batch: Batch,
    log: ContextLogger | None = None,
) -> BatchResult:
    """
    Run every enabled reingest phase over one batch.

    Args:
        options: Job configuration (shared by value, never mutated)
        connection: Unconnected connection owned by this worker
        batch: Record IDs to process
        log: Logger to report through; defaults to one bound to the batch

    Returns:
        BatchResult; this function does not raise for database errors
    """
    log = log or ContextLogger(__name__, batch_number=batch.number)
    result = BatchResult(batch_number=batch.number, record_count=len(batch))
    start_time = time.monotonic()

    REINGEST_ACTIVE_WORKERS.inc()
    try:
        with trace_operation(
            "reingest_batch",
            kind=trace.SpanKind.INTERNAL,
            batch_number=batch.number,
            record_count=len(batch),
        ) as span:
            try:
                connection.connect()
            except ConnectionFailedError as e:
                log.error(f"Abandoning batch {batch.number} ({len(batch)} records): {e}")
                add_span_event("batch_abandoned", error=str(e))
                result.abandoned = True
                result.error = str(e)
                REINGEST_BATCHES_PROCESSED.labels(status="abandoned").inc()
                return result

            try:
                log.info(
                    f"Thread {threading.current_thread().name} "
                    f"processing {len(batch)} records"
                )
                for phase in enabled_phases(options):
                    _run_phase(phase, options, connection, batch, result, log)
            finally:
                connection.disconnect()

            span.set_attribute("records_failed", result.failed)
            REINGEST_BATCHES_PROCESSED.labels(status="completed").inc()
            return result
    finally:
        result.duration_seconds = time.monotonic() - start_time
        REINGEST_BATCH_TIME.observe(result.duration_seconds)
        REINGEST_ACTIVE_WORKERS.dec()


def _run_phase(
    phase: ReingestPhase,
    options: IngestOptions,
    connection: BaseStoreConnection,
    batch: Batch,
    result: BatchResult,
    log: ContextLogger,
) -> None:
    statement = phase.statement_for(options)
    log = log.bind(phase=phase.name)

    try:
        prepared = connection.prepare(
            statement.name, statement.render(options), statement.arg_types
        )
    except QueryError as e:
        log.error(f"Cannot prepare {phase.name} reingest statement: {e}")
        for record_id in batch:
            result.record_failure(record_id, phase.name, str(e))
        return

    for record_id in batch:
        try:
            connection.execute_prepared(prepared, statement.bind(record_id, options))
        except QueryError as e:
            log.error(
                f"Error processing record: {record_id} {e}",
                record_id=record_id,
            )
            result.record_failure(record_id, phase.name, str(e))
            add_span_event("record_failed", record_id=record_id, phase=phase.name, error=str(e))
        else:
            result.record_success(phase.name)
