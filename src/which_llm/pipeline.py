"""
Fetch, merge and persist
========================

``refresh_all`` is the one place that talks to both sources: it fetches the
benchmarks and the capability catalog concurrently, writes both raw tables,
merges them and writes the unified ``llms`` table. Report commands call
:func:`load_llm_models`, which falls back to the previously written unified
table when no credential is configured.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from pathlib import Path

from which_llm.errors import AuthenticationError, CacheError, WhichLlmError
from which_llm.merge.combiner import merge_models, split_modalities
from which_llm.models.catalog import catalog_rows
from which_llm.models.records import MediaRecord
from which_llm.models.unified import UnifiedModel
from which_llm.service.artificial_analysis import ArtificialAnalysisClient
from which_llm.service.models_dev import ModelsDevClient
from which_llm.store.cache import Cache
from which_llm.store.parquet import write_benchmarks, write_catalog, write_media, write_unified
from which_llm.store.schema import LLMS, TableDef, get_table_def
from which_llm.util.deps import require_polars
from which_llm.util.logging import log_structured_event
from which_llm.util.timing import timed

_PIPELINE_LOG = logging.getLogger("which_llm.pipeline")
_FETCH_THREAD_PREFIX = "which-llm-fetch"
_UNIFIED_FIELDS = frozenset(UnifiedModel.__dataclass_fields__)
_MEDIA_FIELDS = frozenset(MediaRecord.__dataclass_fields__) - {"categories"}
MISSING_CREDENTIAL_MESSAGE = (
    "No API key configured. Run 'which-llm profile create <name> --api-key <key>' "
    "or set WHICH_LLM_API_KEY."
)


def refresh_all(
    api_key: str | None,
    cache: Cache,
    *,
    refresh: bool = True,
    aa_client: ArtificialAnalysisClient | None = None,
    models_dev_client: ModelsDevClient | None = None,
) -> list[UnifiedModel]:
    aa_client = aa_client or ArtificialAnalysisClient(api_key, cache)
    models_dev_client = models_dev_client or ModelsDevClient(cache)
    with timed() as timing:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix=_FETCH_THREAD_PREFIX) as executor:
            records_future = executor.submit(aa_client.fetch_llm_models, refresh=refresh)
            catalog_future = executor.submit(models_dev_client.fetch_catalog, refresh=refresh)
            records = records_future.result()
            catalog = catalog_future.result()
        write_benchmarks(records, cache.base_dir)
        write_catalog(catalog_rows(catalog), cache.base_dir)
        models = merge_models(records, catalog)
        write_unified(models, cache.base_dir)
    log_structured_event(
        _PIPELINE_LOG,
        logging.INFO,
        "refresh_complete",
        models=len(models),
        matched=sum(1 for model in models if model.matched),
        providers=len(catalog),
        seconds=round(timing["seconds"], 4),
    )
    return models


def _read_table_dicts(table: TableDef, directory: Path) -> list[dict] | None:
    path = Path(directory) / table.parquet_file
    if not path.exists():
        return None
    polars_module = require_polars("reading cached tables")
    try:
        return polars_module.read_parquet(path).to_dicts()
    except (polars_module.exceptions.PolarsError, OSError) as exc:
        raise CacheError(
            f"Cached table '{table.name}' at {path} cannot be read ({exc}). Run '{table.command}' to rebuild it."
        ) from exc


def read_cached_models(directory: Path) -> list[UnifiedModel] | None:
    rows = _read_table_dicts(LLMS, directory)
    if rows is None:
        return None
    models = []
    for row in rows:
        values = {key: value for key, value in row.items() if key in _UNIFIED_FIELDS}
        values["input_modalities"] = split_modalities(values.get("input_modalities"))
        values["output_modalities"] = split_modalities(values.get("output_modalities"))
        values["matched"] = bool(values.get("matched"))
        models.append(UnifiedModel(**values))
    return models


def read_cached_media(table: TableDef, directory: Path) -> list[MediaRecord] | None:
    rows = _read_table_dicts(table, directory)
    if rows is None:
        return None
    return [MediaRecord(**{key: value for key, value in row.items() if key in _MEDIA_FIELDS}) for row in rows]


def _serve_cached(loaded, error: WhichLlmError, *, table: str):
    if loaded is None:
        raise error
    log_structured_event(
        _PIPELINE_LOG,
        logging.WARNING,
        "hosted_fallback",
        table=table,
        error_type=type(error).__name__,
        error=str(error),
    )
    return loaded


def load_llm_models(api_key: str | None, cache: Cache, *, refresh: bool = False) -> list[UnifiedModel]:
    """Unified models for report commands.

    With a credential the sources are fetched (through the cache) and every
    table is rewritten. A failed fetch other than a rejected credential falls
    back to the last written table when one exists. Without a credential only
    the last written table is used.
    """
    if not api_key:
        cached = read_cached_models(cache.base_dir)
        if cached is None:
            raise AuthenticationError(MISSING_CREDENTIAL_MESSAGE)
        return cached
    try:
        return refresh_all(api_key, cache, refresh=refresh)
    except AuthenticationError:
        raise
    except WhichLlmError as exc:
        return _serve_cached(read_cached_models(cache.base_dir), exc, table=LLMS.name)


def load_media_models(
    api_key: str | None,
    cache: Cache,
    category: str,
    *,
    refresh: bool = False,
    include_categories: bool = False,
    client: ArtificialAnalysisClient | None = None,
) -> list[MediaRecord]:
    table = get_table_def(category)
    if table is None:
        raise KeyError(category)
    if not api_key and client is None:
        cached = read_cached_media(table, cache.base_dir)
        if cached is None:
            raise AuthenticationError(MISSING_CREDENTIAL_MESSAGE)
        return cached
    client = client or ArtificialAnalysisClient(api_key, cache)
    try:
        records = client.fetch_media_models(category, refresh=refresh, include_categories=include_categories)
    except AuthenticationError:
        raise
    except WhichLlmError as exc:
        return _serve_cached(read_cached_media(table, cache.base_dir), exc, table=table.name)
    write_media(table, records, cache.base_dir)
    return records
