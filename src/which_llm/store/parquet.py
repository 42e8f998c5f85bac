"""
Columnar store writer
=====================

Rows for one table are loaded into an in-memory DuckDB table created from
the table's schema, exported once with ``COPY ... (FORMAT PARQUET)`` to a
hidden temp file in the target directory, then renamed over the final file.
Readers therefore see either the previous file or the complete new one.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable, Sequence
from uuid import uuid4

from which_llm.config.paths import ensure_dir
from which_llm.config.runtime_defaults import get_runtime_defaults
from which_llm.errors import StoreWriteError
from which_llm.merge.combiner import join_modalities
from which_llm.store.schema import (
    BENCHMARKS,
    LLMS,
    MODELS_DEV,
    TableDef,
    check_row_width,
    rows_for,
)
from which_llm.util.deps import quote_sql_identifier, quote_sql_string, require_duckdb
from which_llm.util.logging import log_structured_event
from which_llm.util.timing import timed

_WRITER_LOG = logging.getLogger("which_llm.store.parquet")
_MODALITY_CONVERTERS = {
    "input_modalities": join_modalities,
    "output_modalities": join_modalities,
}


def _temp_target(target: Path) -> Path:
    return target.with_name(f".{target.name}.{uuid4().hex}.tmp")


def write_table(
    table: TableDef,
    rows: Sequence[Sequence[Any]],
    directory: Path,
    *,
    compression: str | None = None,
) -> Path:
    """Create or replace ``<directory>/<table file>`` holding exactly ``rows``."""
    duckdb_module = require_duckdb("write_table()")
    if compression is None:
        compression = get_runtime_defaults().storage_defaults.default_parquet_compression
    directory = ensure_dir(Path(directory))
    target = directory / table.parquet_file
    tmp_target = _temp_target(target)
    placeholders = ", ".join("?" for _ in table.columns)
    insert_sql = f"INSERT INTO {quote_sql_identifier(table.name)} VALUES ({placeholders})"
    copy_sql = (
        f"COPY {quote_sql_identifier(table.name)} TO {quote_sql_string(str(tmp_target))} "
        f"(FORMAT PARQUET, COMPRESSION {compression.upper()})"
    )
    with timed() as timing:
        try:
            check_row_width(table, rows)
            con = duckdb_module.connect(database=":memory:")
            try:
                con.execute(table.create_table_sql())
                if rows:
                    con.executemany(insert_sql, [list(row) for row in rows])
                con.execute(copy_sql)
            finally:
                con.close()
            os.replace(tmp_target, target)
        except (duckdb_module.Error, OSError, ValueError) as exc:
            try:
                tmp_target.unlink()
            except FileNotFoundError:
                pass
            raise StoreWriteError(f"Failed to write table '{table.name}' to {target}: {exc}") from exc
    log_structured_event(
        _WRITER_LOG,
        logging.INFO,
        "parquet_written",
        table=table.name,
        path=str(target),
        rows=len(rows),
        compression=compression,
        seconds=round(timing["seconds"], 4),
    )
    return target


def write_unified(models: Iterable[Any], directory: Path) -> Path:
    return write_table(LLMS, rows_for(LLMS, models, converters=_MODALITY_CONVERTERS), directory)


def write_benchmarks(records: Iterable[Any], directory: Path) -> Path:
    return write_table(BENCHMARKS, rows_for(BENCHMARKS, records), directory)


def write_catalog(rows: Iterable[Any], directory: Path) -> Path:
    return write_table(MODELS_DEV, rows_for(MODELS_DEV, rows, converters=_MODALITY_CONVERTERS), directory)


def write_media(table: TableDef, records: Iterable[Any], directory: Path) -> Path:
    return write_table(table, rows_for(table, records), directory)
