"""Identifier discovery over the bootstrap connection."""

import logging

from opentelemetry import trace

from utils.db import BaseStoreConnection
from utils.tracing import trace_operation

from .metrics import REINGEST_RECORDS_DISCOVERED

logger = logging.getLogger(__name__)


def discover_record_ids(connection: BaseStoreConnection, sql: str) -> list[int]:
    """
    Run the discovery query and return record IDs in store order.

    The full result set is materialized; no client-side sorting is done.

    Args:
        connection: Connected store connection
        sql: Discovery SQL from build_discovery_query()

    Returns:
        Ordered list of record IDs

    Raises:
        QueryError: If the connection is not established or the query fails
    """
    with trace_operation("reingest_discover_records", kind=trace.SpanKind.CLIENT) as span:
        rows = connection.query(sql)
        ids = [int(row[0]) for row in rows]
        span.set_attribute("record_count", len(ids))

    REINGEST_RECORDS_DISCOVERED.set(len(ids))
    logger.info(f"Found {len(ids)} record IDs to process")

    return ids
