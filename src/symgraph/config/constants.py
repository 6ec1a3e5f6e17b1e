"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are output-contract and implementation limits.

For configurable values, see models.py (LimitsConfig, ExtractorConfig).
"""

# =============================================================================
# Output Contract
# =============================================================================

SCHEMA_VERSION = 1
"""Version of the emitted FileRecord schema. Bumped only on breaking change."""

# =============================================================================
# Parser Ceilings
# =============================================================================

MAX_DEPTH_CEILING = 192
"""Hard upper bound for LimitsConfig.max_depth.

Each nesting level costs a bounded number of interpreter frames in the
recursive-descent parser and the extractor walk; above this the default
interpreter recursion limit is no longer safe.
"""

# =============================================================================
# Doc comments
# =============================================================================

DOC_MAX_CHARS = 400
"""Doc comment text is truncated to this many characters in extensions.doc."""
