"""Discovery query construction."""

from utils.sql_safety import validate_integer_param, validate_schema_table

from .config import IngestOptions


def build_discovery_query(options: IngestOptions) -> str:
    """
    Build the SQL that selects the record IDs to reingest.

    Deleted records are always excluded. Bounds are validated integers and
    the table name a validated identifier, so direct formatting is safe.

    Args:
        options: Job configuration

    Returns:
        SQL text, e.g.
        ``SELECT id FROM biblio.record_entry WHERE NOT deleted AND id > 100
        AND id < 200 ORDER BY id``
    """
    validate_schema_table(options.record_table)

    filters = ["NOT deleted"]

    if options.min_id is not None:
        validate_integer_param(options.min_id, "min_id")
        filters.append(f"id > {options.min_id}")

    if options.max_id:
        validate_integer_param(options.max_id, "max_id", min_value=1)
        filters.append(f"id < {options.max_id}")

    if options.newest_first:
        order_by = "ORDER BY create_date DESC, id DESC"
    else:
        order_by = "ORDER BY id"

    return (
        f"SELECT id FROM {options.record_table} "
        f"WHERE {' AND '.join(filters)} {order_by}"
    )
