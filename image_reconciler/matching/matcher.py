"""Tiered catalog-entry-to-image matcher"""

from typing import AbstractSet, Callable, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from image_reconciler.matching.index import ImageIndex
from image_reconciler.matching.normalizer import normalize, tokenize, tokens_match
from image_reconciler.models.catalog import CatalogEntry, ImageDescriptor
from image_reconciler.models.configs import MatchingConfig
from image_reconciler.models.matching import DecisionOutcome, MatchDecision, MatchTier

# (score, candidate) pairs produced by a tier
ScoredCandidate = Tuple[float, ImageDescriptor]


def match_entry(
    entry: CatalogEntry,
    index: ImageIndex,
    already_claimed: AbstractSet[ImageDescriptor],
    settings: Optional[MatchingConfig] = None,
) -> MatchDecision:
    """
    Find the best image for a catalog entry.

    Tiers are tried in order (exact, token-subset, keyword-category) and the
    first tier that produces a qualifying candidate decides the outcome; a
    weaker tier is never consulted once a stronger tier has a hit. When the
    top candidate of the deciding tier is already claimed, no image is chosen.

    Args:
        entry: Catalog entry to match
        index: Candidate image index
        already_claimed: Images consumed earlier in the run
        settings: Matching thresholds and keyword table

    Returns:
        MatchDecision with outcome MATCHED or SKIPPED
    """
    settings = settings or MatchingConfig()
    entry_key = normalize(entry.name)

    if not entry_key:
        return _no_match(entry, "Name normalizes to an empty key")

    tiers: List[Tuple[MatchTier, Callable[[], List[ScoredCandidate]]]] = [
        (MatchTier.EXACT, lambda: _exact_candidates(entry_key, index)),
        (
            MatchTier.TOKEN_SUBSET,
            lambda: _token_subset_candidates(entry.name or "", index, settings),
        ),
        (
            MatchTier.KEYWORD_CATEGORY,
            lambda: _keyword_category_candidates(entry.name or "", entry_key, index, settings),
        ),
    ]

    for tier, find_candidates in tiers:
        scored = find_candidates()
        if not scored:
            continue

        ranked = rank_candidates(scored, entry_key, settings)
        score, best = ranked[0]

        if best in already_claimed:
            return _no_match(
                entry,
                f"Best {tier.value} candidate '{best.filename}' "
                f"(score {score:.2f}) is already claimed",
            )

        return MatchDecision(
            catalog_entry_id=entry.label,
            entry_position=entry.position,
            entry_name=entry.name,
            chosen_image=best,
            previous_image=entry.primary_image,
            tier=tier,
            score=round(score, 4),
            rationale=_rationale(tier, best, score, len(ranked)),
            outcome=DecisionOutcome.MATCHED,
        )

    return _no_match(entry, _near_miss_reason(entry_key, index))


def rank_candidates(
    scored: Sequence[ScoredCandidate], entry_key: str, settings: MatchingConfig
) -> List[ScoredCandidate]:
    """
    Order scored candidates deterministically.

    Highest score first; ties go to the candidate whose category keywords
    appear most often in the entry name, then to the lexicographically
    smallest filename, then to the smallest path.

    Args:
        scored: (score, candidate) pairs
        entry_key: Normalized entry name
        settings: Matching settings holding the keyword table

    Returns:
        Sorted list of (score, candidate) pairs
    """
    keywords_by_category = settings.keywords_by_category()

    def keyword_hits(candidate: ImageDescriptor) -> int:
        keywords = keywords_by_category.get(candidate.category.lower(), [])
        return sum(1 for keyword in keywords if keyword in entry_key)

    return sorted(
        scored,
        key=lambda item: (
            -item[0],
            -keyword_hits(item[1]),
            item[1].filename,
            str(item[1].absolute_path),
        ),
    )


def token_subset_score(
    tokens_a: Sequence[str], tokens_b: Sequence[str]
) -> float:
    """
    Score two token lists with the subset rule.

    Every token of the shorter list must match (equal, or substring in either
    direction) some token of the longer list; the score is then
    ``len(shorter) / max(len(a), len(b))``. Otherwise the score is 0.

    Args:
        tokens_a: Tokens of the first name
        tokens_b: Tokens of the second name

    Returns:
        Score between 0.0 and 1.0
    """
    if not tokens_a or not tokens_b:
        return 0.0

    shorter, longer = (tokens_a, tokens_b) if len(tokens_a) <= len(tokens_b) else (tokens_b, tokens_a)

    matched = sum(1 for token in shorter if any(tokens_match(token, other) for other in longer))
    if matched < len(shorter):
        return 0.0

    return matched / max(len(tokens_a), len(tokens_b))


def keyword_overlap_score(
    entry_tokens: Sequence[str],
    candidate: ImageDescriptor,
    category_keywords: Sequence[str],
    settings: MatchingConfig,
) -> float:
    """
    Score a category-restricted candidate by token overlap.

    An entry token counts when it matches a token of the image stem, a token
    of the image category, or a keyword of a rule that maps to that category.
    The count is divided by the larger of the entry and stem token counts.

    Args:
        entry_tokens: Tokens of the entry name
        candidate: Image in one of the keyword-mapped categories
        category_keywords: Keywords of the rules mapping to the candidate category
        settings: Tokenizer settings

    Returns:
        Score between 0.0 and 1.0
    """
    if not entry_tokens:
        return 0.0

    stem_tokens = _tokens(candidate.stem, settings)
    vocabulary = list(stem_tokens) + _tokens(candidate.category, settings) + list(category_keywords)

    matched = sum(
        1 for token in entry_tokens if any(tokens_match(token, word) for word in vocabulary)
    )

    return min(1.0, matched / max(len(entry_tokens), len(stem_tokens)))


def _exact_candidates(entry_key: str, index: ImageIndex) -> List[ScoredCandidate]:
    # Key collisions already went to the first-scanned image
    candidate = index.exact_lookup(entry_key)
    return [(1.0, candidate)] if candidate is not None else []


def _token_subset_candidates(
    name: str, index: ImageIndex, settings: MatchingConfig
) -> List[ScoredCandidate]:
    entry_tokens = _tokens(name, settings)
    if not entry_tokens:
        return []

    scored = []
    for candidate in index.all_candidates():
        score = token_subset_score(entry_tokens, _tokens(candidate.stem, settings))
        if score >= settings.token_subset_threshold:
            scored.append((score, candidate))
    return scored


def _keyword_category_candidates(
    name: str, entry_key: str, index: ImageIndex, settings: MatchingConfig
) -> List[ScoredCandidate]:
    categories = settings.categories_for_name(entry_key)
    if not categories:
        return []

    entry_tokens = _tokens(name, settings)
    keywords_by_category = settings.keywords_by_category()

    scored = []
    for candidate in index.candidates_in_categories(categories):
        score = keyword_overlap_score(
            entry_tokens,
            candidate,
            keywords_by_category.get(candidate.category.lower(), []),
            settings,
        )
        if score >= settings.keyword_threshold:
            scored.append((score, candidate))
    return scored


def _tokens(text: str, settings: MatchingConfig) -> List[str]:
    return tokenize(text, settings.short_token_length, settings.stop_words)


def _rationale(tier: MatchTier, best: ImageDescriptor, score: float, candidates: int) -> str:
    if tier == MatchTier.EXACT:
        reason = f"Exact name match with '{best.filename}'"
    elif tier == MatchTier.TOKEN_SUBSET:
        reason = f"Token-subset match with '{best.filename}' (score {score:.2f})"
    else:
        reason = (
            f"Keyword match in category '{best.category}' with '{best.filename}' "
            f"(score {score:.2f})"
        )

    if candidates > 1:
        reason += f", best of {candidates} candidates"
    return reason


def _near_miss_reason(entry_key: str, index: ImageIndex) -> str:
    candidates = list(index.all_candidates())
    if not candidates:
        return "No candidate images indexed"

    result = process.extractOne(
        entry_key,
        [candidate.normalized_key for candidate in candidates],
        scorer=fuzz.token_set_ratio,
    )
    if not result:
        return "No tier cleared its threshold"

    _, similarity, position = result
    return (
        "No tier cleared its threshold; closest candidate "
        f"'{candidates[position].filename}' ({similarity:.0f}% similar)"
    )


def _no_match(entry: CatalogEntry, reason: str) -> MatchDecision:
    return MatchDecision(
        catalog_entry_id=entry.label,
        entry_position=entry.position,
        entry_name=entry.name,
        chosen_image=None,
        previous_image=entry.primary_image,
        tier=MatchTier.NONE,
        score=0.0,
        rationale=reason,
        outcome=DecisionOutcome.SKIPPED,
    )
