import json

import pytest

from which_llm.commands import cost
from which_llm.commands.cost import Period, calculate_cost, format_cost
from which_llm.errors import ConfigError, NotFoundError
from which_llm.models.unified import UnifiedModel
from which_llm.output import OutputFormat


def _model(name, input_price=None, output_price=None, **extra):
    return UnifiedModel(
        id=name,
        name=name,
        slug=name.lower().replace(" ", "-"),
        creator="Acme",
        input_price=input_price,
        output_price=output_price,
        **extra,
    )


def test_single_request_cost():
    result = calculate_cost(_model("GPT", 2.5, 10.0), 1000, 500)

    assert result.input_cost == pytest.approx(0.0025)
    assert result.output_cost == pytest.approx(0.005)
    assert result.total_cost == pytest.approx(0.0075)
    assert result.period_cost == pytest.approx(0.0075)
    assert result.monthly_cost is None


def test_daily_and_monthly_periods():
    model = _model("GPT", 2.5, 10.0)

    daily = calculate_cost(model, 1000, 500, requests=100, period=Period.DAILY)
    monthly = calculate_cost(model, 1000, 500, requests=100, period=Period.MONTHLY)

    assert daily.period_cost == pytest.approx(0.75)
    assert daily.monthly_cost == pytest.approx(22.5)
    assert monthly.monthly_cost == pytest.approx(22.5)


def test_partial_pricing_uses_available_part():
    result = calculate_cost(_model("Half", input_price=2.0), 1_000_000, 1_000_000)

    assert result.input_cost == pytest.approx(2.0)
    assert result.output_cost is None
    assert result.total_cost == pytest.approx(2.0)


def test_missing_pricing_gives_no_total():
    result = calculate_cost(_model("Free"), 1000, 1000, requests=5, period=Period.DAILY)

    assert result.total_cost is None
    assert result.monthly_cost is None


@pytest.mark.parametrize(
    "raw, expected",
    [("once", Period.ONCE), ("DAILY", Period.DAILY), ("day", Period.DAILY), ("month", Period.MONTHLY)],
)
def test_period_parse(raw, expected):
    assert Period.parse(raw) is expected


def test_period_parse_rejects_unknown():
    with pytest.raises(ConfigError, match="Invalid period 'weekly'"):
        Period.parse("weekly")


@pytest.mark.parametrize(
    "value, expected",
    [(None, "N/A"), (0.0075, "$0.0075"), (0.5, "$0.500"), (22.5, "$22.50")],
)
def test_format_cost(value, expected):
    assert format_cost(value) == expected


def test_single_model_report_text():
    text = cost.run([_model("GPT", 2.5, 10.0)], ["GPT"], OutputFormat.TABLE, input_tokens="1k", output_tokens="500")

    assert "Model: GPT" in text
    assert "Input (1K tokens):" in text
    assert "Total:                  $0.0075" in text


def test_comparison_marks_lowest_total():
    models = [_model("Cheap Model", 1.0, 1.0), _model("Pricey Model", 10.0, 10.0)]

    text = cost.run(models, ["Model"], OutputFormat.MARKDOWN, input_tokens="1m", output_tokens="1m", period="daily")

    assert text.startswith("Cost Comparison (1.0M input / 1.0M output tokens per request)")
    assert "| Cheap Model | $1.00 | $1.00 | $2.00 * |" in text
    assert "* = lowest cost" in text
    assert "Monthly estimates (30 days):" in text


def test_json_output_is_list_of_results():
    text = cost.run([_model("GPT", 2.5, 10.0)], ["gpt"], OutputFormat.JSON, input_tokens="1000", output_tokens="500")

    (payload,) = json.loads(text)
    assert payload["name"] == "GPT"
    assert payload["total_cost"] == pytest.approx(0.0075)
    assert payload["period"] == "once"


def test_no_match_raises_not_found():
    with pytest.raises(NotFoundError, match="nothing"):
        cost.run([_model("GPT", 1.0, 1.0)], ["nothing"], OutputFormat.TABLE, input_tokens="1k", output_tokens="1k")


def test_invalid_request_count():
    with pytest.raises(ConfigError):
        cost.run([_model("GPT", 1.0, 1.0)], ["GPT"], OutputFormat.TABLE, input_tokens="1k", output_tokens="1k", requests=0)
