"""
Reingest phases and their stored-function statements.

Each phase is gated by its own IngestOptions flag and runs the same
per-batch pattern: prepare one statement per worker connection, then
execute it once per record. Only the attributes phase has two statement
shapes (all kinds vs. named kinds); the variant is chosen once per
worker, never per record.
"""

from dataclasses import dataclass
from typing import Any, Callable

from .config import IngestOptions


@dataclass(frozen=True)
class PhaseStatement:
    """
    One prepared-statement shape for a phase.

    ``sql`` uses $1..$n placeholders and a ``{table}`` slot for the
    record table. ``bind`` maps a record ID (and the options) to the
    positional parameters.
    """

    name: str
    arg_types: tuple[str, ...]
    sql: str
    bind: Callable[[int, IngestOptions], tuple[Any, ...]]

    def render(self, options: IngestOptions) -> str:
        return self.sql.format(table=options.record_table)


def _bind_id(record_id: int, options: IngestOptions) -> tuple[Any, ...]:
    return (record_id, record_id)


def _bind_id_and_attrs(record_id: int, options: IngestOptions) -> tuple[Any, ...]:
    return (record_id, record_id, list(options.attrs))


ATTRIBUTES_ALL = PhaseStatement(
    name="reingest_attrs_all",
    arg_types=("BIGINT", "BIGINT"),
    sql=(
        "SELECT metabib.reingest_record_attributes($1) "
        "FROM {table} WHERE id = $2"
    ),
    bind=_bind_id,
)

ATTRIBUTES_SCOPED = PhaseStatement(
    name="reingest_attrs_scoped",
    arg_types=("BIGINT", "BIGINT", "TEXT[]"),
    sql=(
        "SELECT metabib.reingest_record_attributes($1, $3) "
        "FROM {table} WHERE id = $2"
    ),
    bind=_bind_id_and_attrs,
)


def _field_entries_statement(name: str, keep: str) -> PhaseStatement:
    # metabib.reingest_metabib_field_entries(bib_id, skip_facet,
    # skip_display, skip_browse, skip_search): skip every stage but one
    skips = ", ".join(
        "FALSE" if stage == keep else "TRUE"
        for stage in ("facet", "display", "browse", "search")
    )
    return PhaseStatement(
        name=name,
        arg_types=("BIGINT", "BIGINT"),
        sql=(
            f"SELECT metabib.reingest_metabib_field_entries($1, {skips}) "
            "FROM {table} WHERE id = $2"
        ),
        bind=_bind_id,
    )


BROWSE_ENTRIES = _field_entries_statement("reingest_browse", "browse")
SEARCH_ENTRIES = _field_entries_statement("reingest_search", "search")
FACET_ENTRIES = _field_entries_statement("reingest_facets", "facet")
DISPLAY_ENTRIES = _field_entries_statement("reingest_display", "display")


@dataclass(frozen=True)
class ReingestPhase:
    """A named phase, its enabling flag and its statement selector."""

    name: str
    flag: str
    select: Callable[[IngestOptions], PhaseStatement]

    def enabled(self, options: IngestOptions) -> bool:
        return bool(getattr(options, self.flag))

    def statement_for(self, options: IngestOptions) -> PhaseStatement:
        return self.select(options)


def _select_attributes(options: IngestOptions) -> PhaseStatement:
    return ATTRIBUTES_SCOPED if options.scoped_attrs else ATTRIBUTES_ALL


# Execution order within a batch
PHASES: tuple[ReingestPhase, ...] = (
    ReingestPhase("attributes", "do_attrs", _select_attributes),
    ReingestPhase("browse", "do_browse", lambda options: BROWSE_ENTRIES),
    ReingestPhase("search", "do_search", lambda options: SEARCH_ENTRIES),
    ReingestPhase("facets", "do_facets", lambda options: FACET_ENTRIES),
    ReingestPhase("display", "do_display", lambda options: DISPLAY_ENTRIES),
)


def enabled_phases(options: IngestOptions) -> list[ReingestPhase]:
    """Phases switched on in ``options``, in execution order."""
    return [phase for phase in PHASES if phase.enabled(options)]
