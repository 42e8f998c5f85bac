"""
SQL over the cached tables
==========================

Each call opens a fresh in-memory DuckDB connection and registers every
referenced table as a view over its Parquet file, so user SQL runs unmodified
against plain table names::

    >>> engine = QueryEngine(cache_dir)
    >>> engine.execute("SELECT name, intelligence FROM llms ORDER BY intelligence DESC LIMIT 5")

Before any connection is opened the SQL is tokenised to find table names in
table position (after ``FROM``/``JOIN`` or a comma in a ``FROM`` list).
A referenced table whose file is missing fails with
:class:`~which_llm.errors.TableNotFoundError`, naming the command that
produces it. String literals, dollar-quoted text, quoted aliases, comments
and names bound by a ``WITH`` clause are never read as table references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import re
from typing import Any, Iterator, Sequence

from which_llm.config.runtime_defaults import get_runtime_defaults
from which_llm.errors import (
    QueryExecutionError,
    QuerySyntaxError,
    TableNotFoundError,
    UnresolvedIdentifierError,
)
from which_llm.store.schema import USER_TABLES, Column, TableDef
from which_llm.util.deps import quote_sql_identifier, quote_sql_string, require_duckdb
from which_llm.util.logging import log_structured_event
from which_llm.util.timing import timed

_QUERY_LOG = logging.getLogger("which_llm.query.engine")

_WORD_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*")
_TABLE_POSITION_KEYWORDS = frozenset({"from", "join"})
# Keywords that end a FROM list at the depth it was opened.
_FROM_LIST_TERMINATORS = frozenset(
    {
        "where",
        "group",
        "having",
        "order",
        "limit",
        "offset",
        "union",
        "intersect",
        "except",
        "window",
        "qualify",
        "on",
        "using",
        "select",
        "returning",
        "set",
    }
)


@dataclass(frozen=True)
class _Token:
    kind: str  # "word", "quoted", "punct"
    text: str


def _skip_quoted(sql: str, start: int, quote: str) -> int:
    """Return the index just past a quoted run, treating doubled quotes as escapes."""
    index = start + 1
    length = len(sql)
    while index < length:
        if sql[index] == quote:
            if index + 1 < length and sql[index + 1] == quote:
                index += 2
                continue
            return index + 1
        index += 1
    return length


def _tokenize(sql: str) -> Iterator[_Token]:
    index = 0
    length = len(sql)
    while index < length:
        char = sql[index]
        if char.isspace():
            index += 1
        elif sql.startswith("--", index):
            newline = sql.find("\n", index)
            index = length if newline < 0 else newline + 1
        elif sql.startswith("/*", index):
            end = sql.find("*/", index + 2)
            index = length if end < 0 else end + 2
        elif char == "'":
            index = _skip_quoted(sql, index, "'")
        elif sql.startswith("$$", index):
            end = sql.find("$$", index + 2)
            index = length if end < 0 else end + 2
        elif char == '"':
            end = _skip_quoted(sql, index, '"')
            yield _Token("quoted", sql[index + 1 : end - 1].replace('""', '"'))
            index = end
        else:
            word = _WORD_PATTERN.match(sql, index)
            if word is not None:
                yield _Token("word", word.group(0))
                index = word.end()
            else:
                yield _Token("punct", char)
                index += 1


def _is_punct(token: _Token | None, text: str) -> bool:
    return token is not None and token.kind == "punct" and token.text == text


def _is_word(token: _Token | None, *words: str) -> bool:
    return token is not None and token.kind == "word" and token.text.lower() in words


def _cte_names(tokens: Sequence[_Token]) -> set[str]:
    """Names bound by ``WITH name [(cols)] AS [[NOT] MATERIALIZED] (...)``."""
    names = set()
    for position, token in enumerate(tokens):
        if token.kind == "punct" or position == 0:
            continue
        previous = tokens[position - 1]
        if not (_is_word(previous, "with", "recursive") or _is_punct(previous, ",")):
            continue
        cursor = position + 1
        if cursor < len(tokens) and _is_punct(tokens[cursor], "("):
            depth = 0
            while cursor < len(tokens):
                if _is_punct(tokens[cursor], "("):
                    depth += 1
                elif _is_punct(tokens[cursor], ")"):
                    depth -= 1
                    if depth == 0:
                        break
                cursor += 1
            cursor += 1
        if cursor >= len(tokens) or not _is_word(tokens[cursor], "as"):
            continue
        cursor += 1
        while cursor < len(tokens) and _is_word(tokens[cursor], "not", "materialized"):
            cursor += 1
        if cursor < len(tokens) and _is_punct(tokens[cursor], "("):
            names.add(token.text.lower())
    return names


def referenced_tables(sql: str, known: Sequence[str]) -> list[str]:
    """Known table names that appear in table position, in first-seen order.

    Names shadowed by a common table expression are not table references.
    """
    tokens = list(_tokenize(sql))
    known_lower = {name.lower() for name in known} - _cte_names(tokens)
    found: list[str] = []
    depth = 0
    from_depths: list[int] = []
    expect_table = False
    for position, token in enumerate(tokens):
        lowered = token.text.lower()
        if token.kind == "punct":
            if token.text == "(":
                depth += 1
            elif token.text == ")":
                depth -= 1
                while from_depths and from_depths[-1] > depth:
                    from_depths.pop()
            elif token.text == "," and from_depths and from_depths[-1] == depth:
                expect_table = True
                continue
            expect_table = False
            continue
        if token.kind == "word" and lowered in _TABLE_POSITION_KEYWORDS:
            if not from_depths or from_depths[-1] != depth:
                from_depths.append(depth)
            expect_table = True
            continue
        if token.kind == "word" and lowered in _FROM_LIST_TERMINATORS:
            if from_depths and from_depths[-1] == depth:
                from_depths.pop()
            expect_table = False
            continue
        if expect_table:
            following = tokens[position + 1] if position + 1 < len(tokens) else None
            qualified_or_call = following is not None and following.kind == "punct" and following.text in ".("
            if not qualified_or_call and lowered in known_lower and lowered not in found:
                found.append(lowered)
        expect_table = False
    return found


def render_value(value: Any, precision: int = 2) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.{precision}f}"
    return str(value)


@dataclass
class QueryResult:
    columns: list[str]
    rows: list[list[str]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.rows

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class TableInfo:
    name: str
    exists: bool
    command: str
    columns: tuple[Column, ...]


class QueryEngine:
    def __init__(
        self,
        directory: Path,
        *,
        tables: Sequence[TableDef] = USER_TABLES,
        precision: int | None = None,
    ):
        self.directory = Path(directory)
        self.tables = tuple(tables)
        if precision is None:
            precision = get_runtime_defaults().query_defaults.default_float_display_precision
        self.precision = int(precision)

    def _table_path(self, table: TableDef) -> Path:
        return self.directory / table.parquet_file

    def _table(self, name: str) -> TableDef | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def check_tables(self, sql: str) -> list[TableDef]:
        """Resolve table references, failing on the first one without a file."""
        resolved = []
        for name in referenced_tables(sql, [table.name for table in self.tables]):
            table = self._table(name)
            if not self._table_path(table).exists():
                raise TableNotFoundError(table.name, table.command)
            resolved.append(table)
        return resolved

    def _register_view(self, duckdb_module, con, table: TableDef) -> None:
        path = self._table_path(table)
        try:
            con.execute(
                f"CREATE OR REPLACE VIEW {quote_sql_identifier(table.name)} AS "
                f"SELECT * FROM read_parquet({quote_sql_string(str(path))})"
            )
        except duckdb_module.Error as exc:
            raise QueryExecutionError(
                f"Cached table '{table.name}' at {path} cannot be read ({exc}). "
                f"Run '{table.command}' to rebuild it."
            ) from exc

    def _unregistered_table_in(self, message: str, registered: Sequence[str]) -> TableDef | None:
        """A known table with a file that a catalog error names but no view covers yet."""
        lowered = message.lower()
        for table in self.tables:
            if table.name in registered or not self._table_path(table).exists():
                continue
            if re.search(rf"\b{re.escape(table.name)}\b", lowered):
                return table
        return None

    def _missing_table_in(self, message: str) -> TableDef | None:
        lowered = message.lower()
        for table in self.tables:
            if re.search(rf"\b{re.escape(table.name)}\b", lowered) and not self._table_path(table).exists():
                return table
        return None

    def _translate_error(self, duckdb_module, exc: Exception) -> Exception:
        message = str(exc)
        if isinstance(exc, duckdb_module.ParserException):
            return QuerySyntaxError(message)
        if isinstance(exc, duckdb_module.CatalogException):
            missing = self._missing_table_in(message)
            if missing is not None:
                return TableNotFoundError(missing.name, missing.command)
            return UnresolvedIdentifierError(message)
        if isinstance(exc, duckdb_module.BinderException):
            return UnresolvedIdentifierError(message)
        return QueryExecutionError(message)

    def execute(self, sql: str) -> QueryResult:
        """Run ``sql`` with a view for every table it references.

        Only referenced tables are opened, so an unreadable file for some
        other table does not affect the query. A reference the table scan
        missed (schema-qualified names, for instance) surfaces as a catalog
        error; its view is then added and the statement retried.
        """
        resolved = self.check_tables(sql)
        duckdb_module = require_duckdb("QueryEngine.execute()")
        registered: list[str] = []
        with timed() as timing:
            con = duckdb_module.connect(database=":memory:")
            try:
                for table in resolved:
                    self._register_view(duckdb_module, con, table)
                    registered.append(table.name)
                while True:
                    try:
                        cursor = con.execute(sql)
                        description = cursor.description or []
                        raw_rows = cursor.fetchall() if description else []
                        break
                    except duckdb_module.CatalogException as exc:
                        late = self._unregistered_table_in(str(exc), registered)
                        if late is None:
                            raise self._translate_error(duckdb_module, exc) from exc
                        self._register_view(duckdb_module, con, late)
                        registered.append(late.name)
                    except duckdb_module.Error as exc:
                        raise self._translate_error(duckdb_module, exc) from exc
            finally:
                con.close()
        result = QueryResult(
            columns=[str(item[0]) for item in description],
            rows=[[render_value(value, self.precision) for value in row] for row in raw_rows],
        )
        log_structured_event(
            _QUERY_LOG,
            logging.DEBUG,
            "query_executed",
            views=",".join(registered),
            rows=len(result.rows),
            columns=len(result.columns),
            seconds=round(timing["seconds"], 4),
        )
        return result

    def list_tables(self) -> list[TableInfo]:
        return [
            TableInfo(
                name=table.name,
                exists=self._table_path(table).exists(),
                command=table.command,
                columns=table.columns,
            )
            for table in self.tables
        ]
