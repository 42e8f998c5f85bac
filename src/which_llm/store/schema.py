"""
Table registry
==============

Every columnar table has a fixed name, file, column list, and the command
that produces it. ``llms`` and the five media tables are queryable; the two
raw per-source tables are written for traceability only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

from which_llm.util.deps import quote_sql_identifier


@dataclass(frozen=True)
class Column:
    name: str
    sql_type: str
    nullable: bool = True

    def ddl(self) -> str:
        suffix = "" if self.nullable else " NOT NULL"
        return f"{quote_sql_identifier(self.name)} {self.sql_type}{suffix}"


@dataclass(frozen=True)
class TableDef:
    name: str
    command: str
    parquet_file: str
    columns: tuple[Column, ...]
    user_facing: bool = True

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def create_table_sql(self) -> str:
        body = ", ".join(column.ddl() for column in self.columns)
        return f"CREATE TABLE {quote_sql_identifier(self.name)} ({body})"


def _varchar(name, nullable=True):
    return Column(name, "VARCHAR", nullable)


def _double(name):
    return Column(name, "DOUBLE")


def _boolean(name, nullable=True):
    return Column(name, "BOOLEAN", nullable)


def _bigint(name):
    return Column(name, "BIGINT")


_BENCHMARK_COLUMNS = (
    _varchar("id", False),
    _varchar("name", False),
    _varchar("slug", False),
    _varchar("creator", False),
    _varchar("creator_slug"),
    _varchar("release_date"),
    _double("intelligence"),
    _double("coding"),
    _double("math"),
    _double("mmlu_pro"),
    _double("gpqa"),
    _double("hle"),
    _double("livecodebench"),
    _double("scicode"),
    _double("math_500"),
    _double("aime"),
    _double("input_price"),
    _double("output_price"),
    _double("price"),
    _double("tps"),
    _double("latency"),
)

LLMS = TableDef(
    name="llms",
    command="which-llm refresh",
    parquet_file="llms.parquet",
    columns=_BENCHMARK_COLUMNS
    + (
        _boolean("reasoning"),
        _boolean("tool_call"),
        _boolean("structured_output"),
        _boolean("attachment"),
        _boolean("temperature"),
        _bigint("context_window"),
        _bigint("max_input_tokens"),
        _bigint("max_output_tokens"),
        _varchar("input_modalities"),
        _varchar("output_modalities"),
        _varchar("knowledge_cutoff"),
        _boolean("open_weights"),
        _varchar("last_updated"),
        _boolean("matched", False),
    ),
)

MEDIA_COLUMNS = (
    _varchar("id", False),
    _varchar("name", False),
    _varchar("slug", False),
    _varchar("creator", False),
    _double("elo"),
    Column("rank", "INTEGER"),
    _varchar("release_date"),
)


def _media_table(name: str) -> TableDef:
    return TableDef(
        name=name,
        command=f"which-llm {name.replace('_', '-')}",
        parquet_file=f"{name}.parquet",
        columns=MEDIA_COLUMNS,
    )


TEXT_TO_IMAGE = _media_table("text_to_image")
IMAGE_EDITING = _media_table("image_editing")
TEXT_TO_SPEECH = _media_table("text_to_speech")
TEXT_TO_VIDEO = _media_table("text_to_video")
IMAGE_TO_VIDEO = _media_table("image_to_video")

BENCHMARKS = TableDef(
    name="benchmarks",
    command="which-llm refresh",
    parquet_file="benchmarks.parquet",
    columns=_BENCHMARK_COLUMNS,
    user_facing=False,
)

MODELS_DEV = TableDef(
    name="models_dev",
    command="which-llm refresh",
    parquet_file="models_dev.parquet",
    columns=(
        _varchar("provider_id", False),
        _varchar("provider_name", False),
        _varchar("provider_env"),
        _varchar("provider_npm"),
        _varchar("provider_api"),
        _varchar("provider_doc"),
        _varchar("model_id", False),
        _varchar("model_name", False),
        _varchar("family"),
        _boolean("attachment"),
        _boolean("reasoning"),
        _boolean("tool_call"),
        _boolean("structured_output"),
        _boolean("temperature"),
        _varchar("knowledge"),
        _varchar("release_date"),
        _varchar("last_updated"),
        _boolean("open_weights"),
        _varchar("status"),
        _bigint("context_window"),
        _bigint("max_input_tokens"),
        _bigint("max_output_tokens"),
        _double("cost_input"),
        _double("cost_output"),
        _double("cost_cache_read"),
        _double("cost_cache_write"),
        _varchar("input_modalities"),
        _varchar("output_modalities"),
    ),
    user_facing=False,
)

USER_TABLES = (LLMS, TEXT_TO_IMAGE, IMAGE_EDITING, TEXT_TO_SPEECH, TEXT_TO_VIDEO, IMAGE_TO_VIDEO)
ALL_TABLES = USER_TABLES + (BENCHMARKS, MODELS_DEV)
_TABLES_BY_NAME = {table.name: table for table in ALL_TABLES}


def get_table_def(name: str) -> TableDef | None:
    return _TABLES_BY_NAME.get(str(name).lower())


def rows_for(
    table: TableDef,
    records: Iterable[Any],
    *,
    converters: Mapping[str, Callable[[Any], Any]] | None = None,
) -> list[tuple]:
    """Project records onto ``table``'s column order by attribute name."""
    converters = converters or {}
    getters = [(column.name, converters.get(column.name)) for column in table.columns]
    rows = []
    for record in records:
        row = []
        for name, convert in getters:
            value = getattr(record, name)
            row.append(convert(value) if convert is not None else value)
        rows.append(tuple(row))
    return rows


def check_row_width(table: TableDef, rows: Sequence[Sequence[Any]]) -> None:
    width = len(table.columns)
    for index, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"row {index} for table '{table.name}' has {len(row)} values, expected {width}")
