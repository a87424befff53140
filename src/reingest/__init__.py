"""
Parallel reingest of Evergreen bibliographic records

Selects record IDs from the database and re-derives computed record data
(attributes, browse/search/facet/display entries) through stored
functions, spread over a bounded pool of worker threads.

Components:
- query / discovery: build and run the record ID query
- batching: split IDs into per-worker batches
- pool / worker: bounded thread pool and per-batch processing
- engine: the end-to-end run

Usage:
    from reingest.config import IngestOptions
    from reingest.engine import ReingestEngine
"""

__version__ = "1.0.0"
__all__ = ["config", "query", "discovery", "batching", "phases", "pool", "worker", "engine"]
