"""
Job configuration for a reingest run.

IngestOptions is read once before dispatch and then handed to every
worker by value; it is frozen so no worker can change what another sees.
"""

import argparse
from dataclasses import dataclass, fields

from utils.sql_safety import validate_integer_param, validate_schema_table

DEFAULT_MAX_THREADS = 5
DEFAULT_BATCH_SIZE = 100
DEFAULT_RECORD_TABLE = "biblio.record_entry"

PHASE_FLAGS = ("do_browse", "do_attrs", "do_search", "do_facets", "do_display")


@dataclass(frozen=True)
class IngestOptions:
    """
    Settings for one reingest run.

    Attributes:
        max_threads: Worker pool size (>= 1)
        batch_size: Records per batch (>= 1)
        min_id: Only records with id above this value; None for no bound
        max_id: Only records with id below this value; None or 0 for no bound
        newest_first: Process newest records (by create_date) first
        attrs: Record attribute kinds to reingest; empty means all kinds
        do_browse, do_attrs, do_search, do_facets, do_display: Phase flags
        record_table: Table holding the records (schema.table)
    """

    max_threads: int = DEFAULT_MAX_THREADS
    batch_size: int = DEFAULT_BATCH_SIZE
    min_id: int | None = None
    max_id: int | None = None
    newest_first: bool = False
    attrs: tuple[str, ...] = ()
    do_browse: bool = False
    do_attrs: bool = False
    do_search: bool = False
    do_facets: bool = False
    do_display: bool = False
    record_table: str = DEFAULT_RECORD_TABLE

    def __post_init__(self):
        validate_integer_param(self.max_threads, "max_threads", min_value=1)
        validate_integer_param(self.batch_size, "batch_size", min_value=1)

        if self.min_id is not None:
            validate_integer_param(self.min_id, "min_id")
        if self.max_id is not None:
            validate_integer_param(self.max_id, "max_id")
        if self.min_id is not None and self.max_id and self.max_id <= self.min_id:
            raise ValueError(
                f"Invalid id range: max_id ({self.max_id}) must be greater "
                f"than min_id ({self.min_id})"
            )

        validate_schema_table(self.record_table)

        # Accept any iterable of names but always store a tuple
        attrs = tuple(self.attrs)
        for attr in attrs:
            if not isinstance(attr, str) or not attr.strip():
                raise ValueError(f"Invalid record attribute name: {attr!r}")
        object.__setattr__(self, "attrs", attrs)

    @property
    def scoped_attrs(self) -> bool:
        """Whether only the named attribute kinds are reingested."""
        return len(self.attrs) > 0

    @property
    def any_phase_enabled(self) -> bool:
        return any(getattr(self, flag) for flag in PHASE_FLAGS)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "IngestOptions":
        """
        Build options from parsed command-line arguments.

        Raises:
            ValueError: If any value fails validation
        """
        names = {f.name for f in fields(cls)}
        values = {
            name: getattr(args, name)
            for name in names
            if getattr(args, name, None) is not None
        }
        if "attrs" in values:
            values["attrs"] = tuple(values["attrs"])
        return cls(**values)

    def describe(self) -> str:
        enabled = [flag[3:] for flag in PHASE_FLAGS if getattr(self, flag)]
        return (
            f"threads={self.max_threads}, batch_size={self.batch_size}, "
            f"min_id={self.min_id}, max_id={self.max_id}, "
            f"newest_first={self.newest_first}, "
            f"phases={','.join(enabled) or 'none'}, "
            f"attrs={','.join(self.attrs) or 'all'}"
        )
