"""Name normalization, candidate index and tiered image matching"""

from .normalizer import normalize, tokenize, tokens_match

# Lazy import for index and matcher to avoid circular dependency
# Use: from image_reconciler.matching.matcher import match_entry
# Instead of: from image_reconciler.matching import match_entry

__all__ = [
    "normalize",
    "tokenize",
    "tokens_match",
]
