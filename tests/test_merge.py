import logging

from which_llm.merge import combiner
from which_llm.merge.combiner import join_modalities, merge_models, split_modalities
from which_llm.merge.matcher import MatchResult
from which_llm.models.catalog import ModelCapability, parse_catalog
from which_llm.models.records import BenchmarkRecord, parse_envelope
from which_llm.models.unified import CAPABILITY_FIELDS


def _records(payload):
    return [BenchmarkRecord.from_payload(item) for item in parse_envelope(payload)]


def test_merge_matches_known_model_and_leaves_unknown_unmatched(llm_payload, catalog_payload):
    models = merge_models(_records(llm_payload), parse_catalog(catalog_payload))

    assert len(models) == 2
    matched, unmatched = models
    assert matched.slug == "o3-mini"
    assert matched.matched is True
    assert matched.tool_call is True
    assert matched.intelligence == 62.9
    assert unmatched.slug == "unknown-model"
    assert unmatched.matched is False
    assert unmatched.tool_call is None


def test_matched_fields_come_from_capability_entry(llm_payload, catalog_payload):
    catalog = parse_catalog(catalog_payload)
    capability = catalog["openai"].models["o3-mini"]

    model = merge_models(_records(llm_payload), catalog)[0]

    assert model.reasoning is capability.reasoning is True
    assert model.context_window == capability.context_window == 200000
    assert model.max_output_tokens == 100000
    assert model.max_input_tokens is None
    assert model.input_modalities == ("text",)
    assert model.knowledge_cutoff == capability.knowledge == "2024-10"
    assert model.open_weights is False
    assert model.input_price == 1.1


def test_unmatched_model_has_no_capability_fields(llm_payload):
    models = merge_models(_records(llm_payload), {})

    for model in models:
        assert model.matched is False
        assert all(getattr(model, name) is None for name in CAPABILITY_FIELDS)


def test_merge_is_total_over_inputs(llm_payload, catalog_payload):
    records = _records(llm_payload) * 3

    assert len(merge_models(records, parse_catalog(catalog_payload))) == len(records)
    assert merge_models([], parse_catalog(catalog_payload)) == []


def test_match_with_unknown_provider_still_merges(caplog, llm_payload):
    capability = ModelCapability(id="o3-mini", name="o3-mini", tool_call=True)

    def dangling_matcher(creator_slug, model_slug, catalog):
        return MatchResult(provider_id="ghost", model=capability)

    caplog.set_level(logging.WARNING, logger="which_llm.merge.combiner")
    models = merge_models(_records(llm_payload), {}, matcher=dangling_matcher)

    assert [model.matched for model in models] == [True, True]
    assert models[0].tool_call is True
    assert "merge_provider_missing" in caplog.text


def test_modalities_round_trip_through_text_column():
    assert split_modalities(join_modalities(("text", "image", "pdf"))) == ("text", "image", "pdf")
    assert join_modalities(None) is None
    assert split_modalities(None) is None
    assert split_modalities(join_modalities(())) == ()


def test_modality_token_with_delimiter_is_logged_not_fatal(caplog):
    caplog.set_level(logging.WARNING, logger=combiner._MERGE_LOG.name)

    joined = join_modalities(("text", "image,hd"))

    assert joined == "text,image,hd"
    assert "modality_token_contains_delimiter" in caplog.text
