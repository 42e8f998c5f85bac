from which_llm.models.catalog import CapabilityProvider, ModelCapability, parse_catalog
from which_llm.models.records import BenchmarkRecord, MediaRecord
from which_llm.models.unified import UnifiedModel

__all__ = [
    "BenchmarkRecord",
    "CapabilityProvider",
    "MediaRecord",
    "ModelCapability",
    "UnifiedModel",
    "parse_catalog",
]
