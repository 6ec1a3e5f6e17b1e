"""Identity resolution and record emission."""

from symgraph.index._internal.indexing.identity import assign_ids, descriptor, erase_type, fingerprint
from symgraph.index._internal.indexing.normalizer import emit, span_record, symbol_record

__all__ = [
    "assign_ids",
    "descriptor",
    "emit",
    "erase_type",
    "fingerprint",
    "span_record",
    "symbol_record",
]
