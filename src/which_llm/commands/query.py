from __future__ import annotations

from pathlib import Path

from which_llm.errors import ConfigError
from which_llm.output import NO_RESULTS, OutputFormat, render_rows
from which_llm.query.engine import QueryEngine, TableInfo


def format_tables_list(tables: list[TableInfo]) -> str:
    lines = ["Available tables:", ""]
    for table in tables:
        lines.append(f"  {table.name} {'(cached)' if table.exists else '(not cached)'}")
        lines.append("    Columns:")
        for column in table.columns:
            nullable = "NULL" if column.nullable else "NOT NULL"
            lines.append(f"      - {column.name} {column.sql_type} {nullable}")
        lines.append("")
    lines.append("To cache a table, run the corresponding command:")
    width = max(len(table.command) for table in tables) if tables else 0
    lines.extend(f"  {table.command.ljust(width)} -> {table.name}" for table in tables)
    return "\n".join(lines)


def run(
    directory: Path,
    sql: str | None,
    output_format: OutputFormat,
    *,
    list_tables: bool = False,
    engine: QueryEngine | None = None,
) -> str:
    engine = engine or QueryEngine(directory)
    if list_tables:
        return format_tables_list(engine.list_tables())
    if not sql or not sql.strip():
        raise ConfigError("Provide a SQL query or use --tables to list available tables.")
    result = engine.execute(sql)
    if result.is_empty():
        return NO_RESULTS
    return render_rows(result.columns, result.rows, output_format)
