"""Name and filename normalization for image matching"""

import re
from functools import lru_cache
from typing import FrozenSet, Iterable, List, Optional, Tuple

# Separators commonly used in image filenames ("BelVita_Crunchy", "coca-cola")
SEPARATOR_RE = re.compile(r"[_\-.]+")
DISALLOWED_RE = re.compile(r"[^a-z0-9\s]")
WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_SHORT_TOKEN_LENGTH = 2
DEFAULT_STOP_WORDS: FrozenSet[str] = frozenset({"and", "the", "with", "for"})


def normalize(text: Optional[str]) -> str:
    """
    Turn a display name or filename into a canonical matching key.

    Lowercases, turns filename separators into spaces, strips everything
    outside ``[a-z0-9\\s]`` and collapses whitespace. Never raises; empty or
    punctuation-only input yields an empty string.

    Args:
        text: Display name or filename

    Returns:
        Normalized key
    """
    if not text:
        return ""

    value = str(text).lower()
    value = SEPARATOR_RE.sub(" ", value)
    value = DISALLOWED_RE.sub("", value)
    value = WHITESPACE_RE.sub(" ", value)

    return value.strip()


@lru_cache(maxsize=16384)
def _tokenize_cached(
    text: str, short_token_length: int, stop_words: FrozenSet[str]
) -> Tuple[str, ...]:
    tokens: List[str] = []
    for token in normalize(text).split(" "):
        if len(token) <= short_token_length:
            continue
        if token in stop_words or token in tokens:
            continue
        tokens.append(token)
    return tuple(tokens)


def tokenize(
    text: Optional[str],
    short_token_length: int = DEFAULT_SHORT_TOKEN_LENGTH,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> List[str]:
    """
    Split a name into matching tokens.

    Tokens of length ``short_token_length`` or less and stop words are
    discarded. Repeated tokens are kept once, in first-seen order.

    Args:
        text: Display name or filename
        short_token_length: Tokens this long or shorter are dropped
        stop_words: Connector words to drop

    Returns:
        List of tokens
    """
    if not text:
        return []
    return list(_tokenize_cached(str(text), short_token_length, frozenset(stop_words)))


def tokens_match(token_a: str, token_b: str) -> bool:
    """Two tokens match when equal or when one contains the other"""
    return token_a == token_b or token_a in token_b or token_b in token_a
