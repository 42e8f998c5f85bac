from which_llm.merge.combiner import join_modalities, merge_models, split_modalities
from which_llm.merge.matcher import MatchResult, find_match, normalize_provider, strip_version_suffix

__all__ = [
    "MatchResult",
    "find_match",
    "join_modalities",
    "merge_models",
    "normalize_provider",
    "split_modalities",
    "strip_version_suffix",
]
