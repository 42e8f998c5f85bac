"""
Command line entrypoint
=======================

Flags that select output or credentials are accepted before or after the
subcommand. Reported failures print ``Error: <message>`` to stderr and exit
with status 1.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from which_llm._version import VERSION
from which_llm.commands import cache as cache_command
from which_llm.commands import compare as compare_command
from which_llm.commands import cost as cost_command
from which_llm.commands import llms as llms_command
from which_llm.commands import media as media_command
from which_llm.commands import profile as profile_command
from which_llm.commands import query as query_command
from which_llm.config.paths import resolve_cache_dir
from which_llm.config.profiles import ProfileStore
from which_llm.errors import AuthenticationError, WhichLlmError
from which_llm.output import OutputFormat
from which_llm.pipeline import MISSING_CREDENTIAL_MESSAGE, load_llm_models, load_media_models, refresh_all
from which_llm.service.artificial_analysis import MEDIA_ENDPOINTS
from which_llm.store.cache import Cache
from which_llm.util.logging import configure_cli_logging

ATTRIBUTION = "Data provided by Artificial Analysis (https://artificialanalysis.ai)"
MODELS_DEV_ATTRIBUTION = "Capability data from models.dev (https://models.dev)"
QUERY_TIP = "Tip: Use 'which-llm query \"SELECT * FROM {table} WHERE ...\"' for advanced filtering"
_MEDIA_WITH_CATEGORIES = frozenset({"text_to_image", "text_to_video", "image_to_video"})
_GLOBAL_DEFAULTS = {
    "output_format": OutputFormat.TABLE,
    "refresh": False,
    "profile": None,
    "quiet": False,
    "verbose": 0,
    "subcommand_verbose": 0,
}


def _common_options(*, suppress: bool, verbose_dest: str = "verbose") -> argparse.ArgumentParser:
    """Flags shared by the top level and every subcommand.

    Subcommands parse into a fresh namespace that then overwrites the top
    level one, so the repeatable ``-v`` counts into ``verbose_dest`` and the
    two counts are added in :func:`main`.
    """
    default = argparse.SUPPRESS if suppress else None
    common = argparse.ArgumentParser(add_help=False)
    formats = common.add_mutually_exclusive_group()
    for fmt in OutputFormat:
        formats.add_argument(
            f"--{fmt.value}",
            dest="output_format",
            action="store_const",
            const=fmt,
            default=default,
            help=f"Render output as {fmt.value}.",
        )
    common.add_argument(
        "--refresh",
        action="store_true",
        default=default,
        help="Bypass the response cache and fetch fresh data.",
    )
    common.add_argument("--profile", default=default, help="Credential profile to use.")
    common.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Suppress attribution and tips.",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="count",
        dest=verbose_dest,
        default=default,
        help="Log progress to stderr (-vv for debug).",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options(suppress=True, verbose_dest="subcommand_verbose")
    parser = argparse.ArgumentParser(
        prog="which-llm",
        description="Query AI model benchmarks, pricing and capabilities from the terminal.",
        parents=[_common_options(suppress=True)],
    )
    parser.set_defaults(**_GLOBAL_DEFAULTS)
    parser.add_argument("--version", action="version", version=f"which-llm {VERSION}")
    commands = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    commands.add_parser(
        "refresh",
        parents=[common],
        help="Fetch both sources, merge them and rewrite the cached tables.",
    )

    llms = commands.add_parser("list", aliases=["llms"], parents=[common], help="List language models.")
    llms.add_argument("--model", "-m", help="Filter by model name or slug substring.")
    llms.add_argument("--creator", "-c", help="Filter by creator name or slug substring.")
    llms.add_argument(
        "--sort",
        "-s",
        help=f"Sort key: name, {', '.join(llms_command.SORT_KEYS)} (default: {llms_command.DEFAULT_SORT}).",
    )

    compare = commands.add_parser("compare", parents=[common], help="Compare models side by side.")
    compare.add_argument("models", nargs="+", help="Model name or slug search terms.")
    compare.add_argument("--all-metrics", dest="all_metrics", action="store_true", help="Include every benchmark.")

    cost = commands.add_parser("cost", parents=[common], help="Estimate token costs.")
    cost.add_argument("models", nargs="+", help="Model name or slug search terms.")
    cost.add_argument("--input", "-i", dest="input_tokens", required=True, help="Input tokens per request (e.g. 10k).")
    cost.add_argument("--output", "-o", dest="output_tokens", required=True, help="Output tokens per request (e.g. 1.5M).")
    cost.add_argument("--requests", "-r", type=int, default=1, help="Requests per period (default: 1).")
    cost.add_argument("--period", "-p", default="once", help="once, daily or monthly (default: once).")

    query = commands.add_parser("query", parents=[common], help="Run SQL against the cached tables.")
    query.add_argument("sql", nargs="?", help="SQL query, e.g. \"SELECT name FROM llms LIMIT 5\".")
    query.add_argument("--tables", action="store_true", help="List tables and their columns.")

    for category in MEDIA_ENDPOINTS:
        media = commands.add_parser(
            category.replace("_", "-"),
            parents=[common],
            help=f"List {category.replace('_', ' ')} models.",
        )
        media.set_defaults(media_category=category)
        if category in _MEDIA_WITH_CATEGORIES:
            media.add_argument("--categories", action="store_true", help="Show per-category scores.")

    profile = commands.add_parser("profile", parents=[common], help="Manage API key profiles.")
    profile_commands = profile.add_subparsers(dest="profile_command", metavar="ACTION", required=True)
    create = profile_commands.add_parser("create", help="Create or update a profile.")
    create.add_argument("name")
    create.add_argument("--api-key", dest="api_key", help="API key (prompted when omitted).")
    profile_commands.add_parser("list", help="List profiles.")
    default = profile_commands.add_parser("default", help="Set the default profile.")
    default.add_argument("name")
    delete = profile_commands.add_parser("delete", help="Delete a profile.")
    delete.add_argument("name")
    show = profile_commands.add_parser("show", help="Show a profile with its key masked.")
    show.add_argument("name", nargs="?")

    cache = commands.add_parser("cache", parents=[common], help="Inspect or clear the local cache.")
    cache_commands = cache.add_subparsers(dest="cache_command", metavar="ACTION", required=True)
    cache_commands.add_parser("clear", help="Remove cached responses and tables.")
    cache_commands.add_parser("status", help="Show cache location and size.")
    return parser


def _run_profile(args) -> str:
    store = ProfileStore()
    if args.profile_command == "create":
        return profile_command.create(store, args.name, args.api_key)
    if args.profile_command == "list":
        return profile_command.list_profiles(store)
    if args.profile_command == "default":
        return profile_command.set_default(store, args.name)
    if args.profile_command == "delete":
        return profile_command.delete(store, args.name)
    return profile_command.show(store, args.name)


def _run_data_command(args, cache: Cache) -> tuple[str, str | None]:
    """Commands that read model data; returns output and the table to hint at."""
    api_key = ProfileStore().resolve_api_key(args.profile)
    fmt = args.output_format
    if args.command == "refresh":
        if not api_key:
            raise AuthenticationError(MISSING_CREDENTIAL_MESSAGE)
        models = refresh_all(api_key, cache, refresh=True)
        matched = sum(1 for model in models if model.matched)
        return f"Refreshed {len(models)} models ({matched} matched with capability data).", "llms"
    if args.command in ("list", "llms"):
        models = load_llm_models(api_key, cache, refresh=args.refresh)
        text = llms_command.run(models, fmt, model=args.model, creator=args.creator, sort=args.sort)
        return text, "llms"
    if args.command == "compare":
        models = load_llm_models(api_key, cache, refresh=args.refresh)
        return compare_command.run(models, args.models, fmt, verbose=args.all_metrics), None
    if args.command == "cost":
        models = load_llm_models(api_key, cache, refresh=args.refresh)
        text = cost_command.run(
            models,
            args.models,
            fmt,
            input_tokens=args.input_tokens,
            output_tokens=args.output_tokens,
            requests=args.requests,
            period=args.period,
        )
        return text, None
    category = args.media_category
    show_categories = bool(getattr(args, "categories", False))
    records = load_media_models(
        api_key,
        cache,
        category,
        refresh=args.refresh,
        include_categories=show_categories,
    )
    return media_command.run(records, fmt, show_categories=show_categories), category


def _execute(args) -> tuple[str, bool, str | None]:
    if args.command == "profile":
        return _run_profile(args), False, None
    if args.command == "query":
        return query_command.run(resolve_cache_dir(), args.sql, args.output_format, list_tables=args.tables), False, None
    cache = Cache()
    if args.command == "cache":
        if args.cache_command == "clear":
            return cache_command.clear(cache), False, None
        return cache_command.status(cache), False, None
    text, hint = _run_data_command(args, cache)
    return text, True, hint


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_cli_logging((args.verbose or 0) + (args.subcommand_verbose or 0))
    try:
        text, attribute, hint = _execute(args)
    except WhichLlmError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(text)
    if attribute and not args.quiet:
        print()
        print(ATTRIBUTION)
        print(MODELS_DEV_ATTRIBUTION)
        if hint is not None:
            print()
            print(QUERY_TIP.format(table=hint))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
