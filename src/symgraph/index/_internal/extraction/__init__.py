"""Symbol extraction over the shared CST vocabulary.

Extractors are registered per grammar variant. The Java grammar is the only
one built in; further grammars reuse ``SymbolExtractor`` when their CST
sticks to the shared node kinds, or register a subclass.
"""

from __future__ import annotations

from symgraph.core.errors import LanguageError
from symgraph.index._internal.extraction.extractor import (
    ExtractionResult,
    SymbolExtractor,
    extract,
)

# Grammar variant -> extractor class
EXTRACTORS: dict[str, type[SymbolExtractor]] = {"java": SymbolExtractor}


def get_extractor(
    grammar: str,
    *,
    include_locals: bool = True,
    include_references: bool = True,
) -> SymbolExtractor:
    """Fresh extractor for ``grammar``; extractors are single-use."""
    extractor_cls = EXTRACTORS.get(grammar)
    if extractor_cls is None:
        raise LanguageError.unsupported_language(grammar)
    return extractor_cls(include_locals=include_locals, include_references=include_references)


__all__ = [
    "EXTRACTORS",
    "ExtractionResult",
    "SymbolExtractor",
    "extract",
    "get_extractor",
]
