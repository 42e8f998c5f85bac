"""Token cost estimates for one or more models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Sequence

from which_llm.commands.selection import find_models_by_names
from which_llm.errors import ConfigError, NotFoundError
from which_llm.models.unified import UnifiedModel
from which_llm.output import OutputFormat, render_json, render_rows
from which_llm.util.tokens import format_token_count, parse_tokens

DAYS_PER_MONTH = 30
TOKENS_PER_PRICE_UNIT = 1_000_000
COLUMNS = ("Model", "Input Cost", "Output Cost", "Total")


class Period(str, Enum):
    ONCE = "once"
    DAILY = "daily"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, raw: str) -> "Period":
        value = str(raw or "").strip().lower()
        aliases = {"once": cls.ONCE, "daily": cls.DAILY, "day": cls.DAILY, "monthly": cls.MONTHLY, "month": cls.MONTHLY}
        if value not in aliases:
            raise ConfigError(f"Invalid period '{raw}'. Use 'once', 'daily', or 'monthly'.")
        return aliases[value]


@dataclass(frozen=True)
class CostResult:
    name: str
    input_tokens: int
    output_tokens: int
    input_cost: float | None
    output_cost: float | None
    total_cost: float | None
    requests: int
    period: str
    period_cost: float | None
    monthly_cost: float | None


def format_cost(cost: float | None) -> str:
    if cost is None:
        return "N/A"
    if cost < 0.01:
        return f"${cost:.4f}"
    if cost < 1.0:
        return f"${cost:.3f}"
    return f"${cost:.2f}"


def calculate_cost(
    model: UnifiedModel,
    input_tokens: int,
    output_tokens: int,
    requests: int = 1,
    period: Period = Period.ONCE,
) -> CostResult:
    input_cost = None if model.input_price is None else input_tokens / TOKENS_PER_PRICE_UNIT * model.input_price
    output_cost = None if model.output_price is None else output_tokens / TOKENS_PER_PRICE_UNIT * model.output_price
    parts = [cost for cost in (input_cost, output_cost) if cost is not None]
    total_cost = sum(parts) if parts else None
    request_cost = None if total_cost is None else total_cost * requests
    if period is Period.DAILY:
        period_cost = request_cost
        monthly_cost = None if request_cost is None else request_cost * DAYS_PER_MONTH
    elif period is Period.MONTHLY:
        period_cost = monthly_cost = None if request_cost is None else request_cost * DAYS_PER_MONTH
    else:
        period_cost, monthly_cost = request_cost, None
    return CostResult(
        name=model.name,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        input_cost=input_cost,
        output_cost=output_cost,
        total_cost=total_cost,
        requests=requests,
        period=period.value,
        period_cost=period_cost,
        monthly_cost=monthly_cost,
    )


def _winner_flags(results: Sequence[CostResult]) -> list[bool]:
    totals = [result.total_cost for result in results if result.total_cost is not None]
    if len(results) < 2 or not totals:
        return [False] * len(results)
    lowest = min(totals)
    return [result.total_cost == lowest for result in results]


def _single_report(result: CostResult, period: Period) -> str:
    lines = [
        f"Model: {result.name}",
        "",
        "Cost per request:",
        f"  Input ({format_token_count(result.input_tokens)} tokens):    {format_cost(result.input_cost)}",
        f"  Output ({format_token_count(result.output_tokens)} tokens):   {format_cost(result.output_cost)}",
        f"  Total:                  {format_cost(result.total_cost)}",
    ]
    if result.requests > 1 or period is not Period.ONCE:
        lines.append("")
        if result.requests > 1 and period is Period.ONCE:
            lines.append(f"Cost for {result.requests} requests:    {format_cost(result.period_cost)}")
        if period is Period.DAILY:
            lines.append(f"Daily ({result.requests} requests):     {format_cost(result.period_cost)}")
            lines.append(f"Monthly (30 days):       {format_cost(result.monthly_cost)}")
        elif period is Period.MONTHLY:
            lines.append(f"Monthly:                 {format_cost(result.monthly_cost)}")
    return "\n".join(lines)


def _comparison_report(
    results: Sequence[CostResult],
    table: str,
    period: Period,
    input_tokens: int,
    output_tokens: int,
    requests: int,
    has_winner: bool,
) -> str:
    lines = [
        f"Cost Comparison ({format_token_count(input_tokens)} input / "
        f"{format_token_count(output_tokens)} output tokens per request)"
    ]
    if requests > 1:
        lines.append(f"Requests: {requests}")
    lines.extend(["", table])
    if has_winner:
        lines.extend(["", "* = lowest cost"])
    if period is Period.DAILY:
        lines.extend(["", f"Daily costs ({requests} requests):"])
        lines.extend(f"  {result.name}: {format_cost(result.period_cost)}" for result in results)
        lines.extend(["", "Monthly estimates (30 days):"])
        lines.extend(f"  {result.name}: {format_cost(result.monthly_cost)}" for result in results)
    elif period is Period.MONTHLY:
        lines.extend(["", f"Monthly costs ({requests} requests/day):"])
        lines.extend(f"  {result.name}: {format_cost(result.monthly_cost)}" for result in results)
    return "\n".join(lines)


def run(
    models: Sequence[UnifiedModel],
    searches: Sequence[str],
    output_format: OutputFormat,
    *,
    input_tokens: str,
    output_tokens: str,
    requests: int = 1,
    period: str = "once",
) -> str:
    parsed_input = parse_tokens(input_tokens)
    parsed_output = parse_tokens(output_tokens)
    parsed_period = Period.parse(period)
    if requests < 1:
        raise ConfigError("Request count must be at least 1")
    matched = find_models_by_names(models, searches)
    if not matched:
        raise NotFoundError(f"No models found matching: {', '.join(searches)}")
    results = [calculate_cost(model, parsed_input, parsed_output, requests, parsed_period) for model in matched]
    output_format = OutputFormat(output_format)
    if output_format is OutputFormat.JSON:
        return render_json([asdict(result) for result in results])
    winners = _winner_flags(results)
    rows = [
        [
            result.name,
            format_cost(result.input_cost),
            format_cost(result.output_cost),
            format_cost(result.total_cost) + (" *" if won else ""),
        ]
        for result, won in zip(results, winners)
    ]
    table = render_rows(COLUMNS, rows, output_format)
    if output_format in (OutputFormat.CSV, OutputFormat.PLAIN):
        return table
    if len(results) == 1:
        return _single_report(results[0], parsed_period)
    return _comparison_report(
        results, table, parsed_period, parsed_input, parsed_output, requests, any(winners)
    )
