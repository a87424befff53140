"""
Parallel reingest engine.

Runs the whole flow for one job:

    build query -> discover IDs (bootstrap connection) -> disconnect
    -> partition into batches -> dispatch to the worker pool -> join

The bootstrap connection is closed before any worker connects, so a run
never holds more than ``max_threads`` connections at once.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from opentelemetry import trace

from utils.db import BaseStoreConnection
from utils.tracing import add_span_attributes, trace_operation

from .batching import partition_batches
from .config import IngestOptions
from .discovery import discover_record_ids
from .metrics import REINGEST_BATCHES_PROCESSED, REINGEST_RUN_TIME
from .pool import BoundedWorkerPool
from .query import build_discovery_query
from .worker import BatchResult, RecordFailure, process_batch

logger = logging.getLogger(__name__)


@dataclass
class ReingestSummary:
    """Aggregated outcome of a run."""

    total_records: int = 0
    batches: int = 0
    abandoned_batches: int = 0
    abandoned_records: int = 0
    succeeded: int = 0
    failures: list[RecordFailure] = field(default_factory=list)
    duration_seconds: float = 0.0
    timestamp: str = ""

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0 or self.abandoned_batches > 0

    def add(self, result: BatchResult) -> None:
        if result.abandoned:
            self.abandoned_batches += 1
            self.abandoned_records += result.record_count
        self.succeeded += result.succeeded
        self.failures.extend(result.failures)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_records": self.total_records,
            "batches": self.batches,
            "abandoned_batches": self.abandoned_batches,
            "abandoned_records": self.abandoned_records,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failures": [
                {"record_id": f.record_id, "phase": f.phase, "error": f.error}
                for f in self.failures
            ],
            "duration_seconds": self.duration_seconds,
            "timestamp": self.timestamp,
        }


class ReingestEngine:
    """
    Orchestrates a parallel reingest run.

    The template connection is used for discovery and then cloned, still
    unconnected, once per batch so each worker owns its own handle.
    """

    def __init__(self, options: IngestOptions, connection: BaseStoreConnection):
        """
        Args:
            options: Job configuration
            connection: Unconnected template connection
        """
        self.options = options
        self.connection = connection

    def run(self) -> ReingestSummary:
        """
        Discover records and reingest them.

        Returns:
            ReingestSummary for the run

        Raises:
            ConnectionFailedError: If the bootstrap connection fails
            QueryError: If the discovery query fails
        """
        if not self.options.any_phase_enabled:
            logger.warning("No reingest phases enabled; nothing to do")
            return self._finish(ReingestSummary(), datetime.now(timezone.utc))

        logger.info(f"Starting reingest run: {self.options.describe()}")

        sql = build_discovery_query(self.options)
        logger.debug(f"Discovery query: {sql}")

        self.connection.connect()
        try:
            pending = deque(discover_record_ids(self.connection, sql))
        finally:
            # Future DB interactions are per-worker.
            self.connection.disconnect()

        # The partitioner drains this queue in place; no other copy of the
        # IDs outlives discovery.
        return self.ingest_records(pending)

    def ingest_records(self, record_ids: Iterable[int]) -> ReingestSummary:
        """
        Partition ``record_ids`` and process the batches in parallel.

        A deque is drained in place; any other iterable is copied first.
        Blocks until every batch has finished. A batch whose worker raised
        instead of returning a result is counted as abandoned.
        """
        start_time = datetime.now(timezone.utc)
        summary = ReingestSummary()
        # batch number -> record count, for batches still owed a result
        outstanding: dict[int, int] = {}

        with trace_operation(
            "reingest_run",
            kind=trace.SpanKind.INTERNAL,
            max_workers=self.options.max_threads,
            batch_size=self.options.batch_size,
        ):
            with REINGEST_RUN_TIME.labels(worker_count=self.options.max_threads).time():
                pool = BoundedWorkerPool(self.options.max_threads)
                with pool:
                    for batch in partition_batches(record_ids, self.options.batch_size):
                        summary.total_records += len(batch)
                        outstanding[batch.number] = len(batch)
                        pool.submit(
                            process_batch,
                            self.options,
                            self.connection.clone(),
                            batch,
                        )
                    summary.batches = pool.submitted
                    results = pool.join()

                for result in results:
                    outstanding.pop(result.batch_number, None)
                    summary.add(result)

                for number, record_count in sorted(outstanding.items()):
                    logger.error(
                        f"Batch {number} ({record_count} records) produced no result; "
                        f"counting it as abandoned"
                    )
                    REINGEST_BATCHES_PROCESSED.labels(status="abandoned").inc()
                    summary.add(BatchResult(
                        batch_number=number,
                        record_count=record_count,
                        abandoned=True,
                        error="worker raised before returning a result",
                    ))

                add_span_attributes(
                    total_records=summary.total_records,
                    failed=summary.failed,
                    abandoned_batches=summary.abandoned_batches,
                )

        return self._finish(summary, start_time)

    def _finish(self, summary: ReingestSummary, start_time: datetime) -> ReingestSummary:
        end_time = datetime.now(timezone.utc)
        summary.duration_seconds = (end_time - start_time).total_seconds()
        summary.timestamp = end_time.isoformat()

        logger.info(
            f"Reingest complete: {summary.succeeded} calls succeeded, "
            f"{summary.failed} failed, "
            f"{summary.abandoned_batches} of {summary.batches} batches abandoned "
            f"({summary.total_records} records) "
            f"in {summary.duration_seconds:.2f}s"
        )
        return summary
