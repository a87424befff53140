"""
Prometheus metrics for reingest runs.

This module defines metrics to track worker activity, batch outcomes
and per-record reingest throughput.
"""

from prometheus_client import Counter, Gauge, Histogram

from utils.metrics import get_or_create_metric

REINGEST_RECORDS_PROCESSED = get_or_create_metric(
    lambda: Counter(
        "reingest_records_processed_total",
        "Total record reingest calls",
        ["phase", "status"],  # status: success, failed
    ),
    "reingest_records_processed",
)

REINGEST_BATCHES_PROCESSED = get_or_create_metric(
    lambda: Counter(
        "reingest_batches_processed_total",
        "Total batches handled by workers",
        ["status"],  # completed, abandoned
    ),
    "reingest_batches_processed",
)

REINGEST_RECORDS_DISCOVERED = get_or_create_metric(
    lambda: Gauge(
        "reingest_records_discovered",
        "Record IDs found by the most recent discovery query",
    ),
    "reingest_records_discovered",
)

REINGEST_ACTIVE_WORKERS = get_or_create_metric(
    lambda: Gauge(
        "reingest_active_workers",
        "Number of worker threads currently processing a batch",
    ),
    "reingest_active_workers",
)

REINGEST_BATCH_TIME = get_or_create_metric(
    lambda: Histogram(
        "reingest_batch_seconds",
        "Time to process a single batch",
        buckets=[0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600],
    ),
    "reingest_batch_seconds",
)

REINGEST_RUN_TIME = get_or_create_metric(
    lambda: Histogram(
        "reingest_run_seconds",
        "Total time for a reingest run",
        ["worker_count"],
        buckets=[1, 10, 60, 300, 900, 1800, 3600, 7200, 14400, 43200],
    ),
    "reingest_run_seconds",
)
