"""Set-overlap similarity between token sets."""

from typing import AbstractSet


def jaccard_similarity(set_a: AbstractSet[str], set_b: AbstractSet[str]) -> float:
    """
    Jaccard index |A ∩ B| / |A ∪ B|, in [0, 1].

    Two empty sets score 0, not 1: no signal is never a perfect match.
    """
    if not set_a or not set_b:
        return 0.0

    intersection = len(set_a & set_b)
    union = len(set_a | set_b)
    return intersection / union


# Name used by callers that think in terms of token overlap
overlap = jaccard_similarity
