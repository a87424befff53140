"""
Utility modules for the reingest tool

Provides:
- db: single-owner PostgreSQL connections and layered settings
- logging: structured logging setup and context loggers
- tracing: OpenTelemetry spans
- metrics: Prometheus helpers and metrics HTTP server
- retry: backoff for transient database errors
- sql_safety: identifier and integer validation
"""

__version__ = "1.0.0"
__all__ = ["db", "logging", "tracing", "metrics", "retry", "sql_safety"]
