import pytest

from which_llm.errors import ResponseFormatError
from which_llm.models.catalog import catalog_rows, parse_catalog
from which_llm.models.records import BenchmarkRecord, MediaRecord, parse_envelope


def test_benchmark_record_flattens_nested_payload(llm_payload):
    record = BenchmarkRecord.from_payload(llm_payload["data"][0])

    assert record.id == "aa-o3-mini"
    assert record.creator == "OpenAI"
    assert record.creator_slug == "openai"
    assert record.intelligence == 62.9
    assert record.coding == 55.8
    assert record.math is None
    assert record.mmlu_pro == 0.79
    assert record.price == 1.93
    assert record.input_price == 1.1
    assert record.output_price == 4.4
    assert record.tps == 150.2
    assert record.latency == 12.5


def test_benchmark_record_optional_fields_are_independent(llm_payload):
    record = BenchmarkRecord.from_payload(llm_payload["data"][1])

    assert record.release_date is None
    assert record.intelligence is None
    assert record.input_price is None
    assert record.tps is None


def test_benchmark_record_ignores_non_numeric_scores():
    record = BenchmarkRecord.from_payload(
        {
            "id": "x",
            "name": "X",
            "slug": "x",
            "model_creator": {"name": "Acme"},
            "evaluations": {"artificial_analysis_intelligence_index": "n/a", "gpqa": True},
        }
    )

    assert record.intelligence is None
    assert record.gpqa is None
    assert record.creator_slug is None


@pytest.mark.parametrize("missing", ["id", "name", "slug"])
def test_benchmark_record_requires_identity_fields(llm_payload, missing):
    payload = dict(llm_payload["data"][0])
    del payload[missing]

    with pytest.raises(ResponseFormatError, match=missing):
        BenchmarkRecord.from_payload(payload)


def test_benchmark_record_requires_creator_name(llm_payload):
    payload = dict(llm_payload["data"][0], model_creator={"slug": "openai"})

    with pytest.raises(ResponseFormatError):
        BenchmarkRecord.from_payload(payload)


def test_parse_envelope_requires_data_list():
    assert parse_envelope({"data": []}) == []
    with pytest.raises(ResponseFormatError):
        parse_envelope({"models": []})
    with pytest.raises(ResponseFormatError):
        parse_envelope([])


def test_media_record_with_categories():
    record = MediaRecord.from_payload(
        {
            "id": "img-1",
            "name": "Imagen 4",
            "slug": "imagen-4",
            "model_creator": {"name": "Google"},
            "elo": 1101.5,
            "rank": 1,
            "ci95": "-5/+5",
            "appearances": 4000,
            "categories": [
                {"style_category": "Photorealistic", "elo": 1120.0, "appearances": 300},
                {"subject_matter_category": "People", "format_category": "Portrait", "elo": 1090},
                "garbage",
            ],
        }
    )

    assert record.rank == 1
    assert record.elo == 1101.5
    assert len(record.categories) == 2
    assert record.categories[0].label == "Photorealistic"
    assert record.categories[1].label == "People / Portrait"
    assert record.categories[1].elo == 1090.0


def test_parse_catalog_keeps_two_level_shape(catalog_payload):
    catalog = parse_catalog(catalog_payload)
    capability = catalog["openai"].models["o3-mini"]

    assert catalog["openai"].name == "OpenAI"
    assert catalog["openai"].env == ("OPENAI_API_KEY",)
    assert capability.tool_call is True
    assert capability.context_window == 200000
    assert capability.cost_cache_read == 0.55
    assert capability.cost_cache_write is None
    assert capability.output_modalities == ("text",)


def test_parse_catalog_missing_modalities_stay_absent():
    catalog = parse_catalog({"acme": {"models": {"m": {"name": "M"}}}})
    capability = catalog["acme"].models["m"]

    assert catalog["acme"].id == "acme"
    assert capability.id == "m"
    assert capability.input_modalities is None
    assert capability.tool_call is None


def test_parse_catalog_rejects_non_object_payload():
    with pytest.raises(ResponseFormatError):
        parse_catalog(["openai"])
    with pytest.raises(ResponseFormatError):
        parse_catalog({"openai": "nope"})


def test_catalog_rows_are_sorted_and_flat(catalog_payload):
    payload = dict(catalog_payload)
    payload["anthropic"] = {"name": "Anthropic", "models": {"b": {}, "a": {}}}

    rows = catalog_rows(parse_catalog(payload))

    assert [(row.provider_id, row.model_id) for row in rows] == [
        ("anthropic", "a"),
        ("anthropic", "b"),
        ("openai", "o3-mini"),
    ]
    assert rows[2].provider_env == "OPENAI_API_KEY"
    assert rows[2].provider_npm == "@ai-sdk/openai"
