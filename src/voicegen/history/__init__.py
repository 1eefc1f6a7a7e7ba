"""
Generation history for voicegen.

    - store.py: GenerationStore interface, in-memory and null implementations
"""
from .store import (
    GenerationDraft,
    GenerationRecord,
    GenerationStore,
    InMemoryGenerationStore,
    NullGenerationStore,
    RecordFilter,
)

__all__ = [
    "GenerationDraft",
    "GenerationRecord",
    "GenerationStore",
    "InMemoryGenerationStore",
    "NullGenerationStore",
    "RecordFilter",
]
