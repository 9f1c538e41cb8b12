"""
Relevance scoring for a single image candidate.

Four independently weighted signals are summed:

| Signal        | Default weight | Computation                                                      |
|---------------|----------------|------------------------------------------------------------------|
| filename      | 0.6            | Jaccard(URL path tokens, title+keyword tokens)                    |
| alt_caption   | 0.3            | Jaccard(alt text + caption tokens, title+keyword tokens)          |
| keyword       | 0.4            | share of raw keywords with a token on the image's URL/alt/tags    |
| resolution    | 0.1            | bonus for large images (threshold or scaled, see ResolutionPolicy) |

No upper clamp is applied; only relative ordering matters downstream.
"""

import re
from dataclasses import asdict, dataclass, field
from typing import AbstractSet, Any, Mapping, Optional, Sequence, Union
from urllib.parse import unquote, urlsplit

from viralnexus.contexts.selection.data_structures import ImageCandidate
from viralnexus.contexts.selection.similarity import jaccard_similarity
from viralnexus.contexts.selection.tokenizer import tokenize

_SEGMENT_SEPARATORS = re.compile(r"[-_]")

RESOLUTION_MODES = ("threshold", "scaled")


@dataclass(frozen=True)
class ScoringWeights:
    """Weights applied to each scoring signal."""

    filename: float = 0.6
    alt_caption: float = 0.3
    keyword: float = 0.4
    resolution: float = 0.1

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ResolutionPolicy:
    """
    How the resolution bonus is awarded.

    threshold: full bonus when width*height > min_pixels, nothing otherwise
    scaled:    bonus * min(width*height / cap_pixels, 1)
    """

    mode: str = "threshold"
    min_pixels: int = 100_000
    cap_pixels: int = 1_000_000

    def factor(self, pixels: Optional[int]) -> float:
        """Fraction of the resolution weight earned by an image of this size."""
        if not pixels:
            return 0.0
        if self.mode == "scaled":
            return min(pixels / self.cap_pixels, 1.0)
        return 1.0 if pixels > self.min_pixels else 0.0


@dataclass(frozen=True)
class ScoreBreakdown:
    """Weighted contribution of each signal to a candidate's score."""

    filename: float = 0.0
    alt_caption: float = 0.0
    keyword: float = 0.0
    resolution: float = 0.0
    url_tokens: frozenset = field(default_factory=frozenset)
    alt_tokens: frozenset = field(default_factory=frozenset)

    @property
    def total(self) -> float:
        return self.filename + self.alt_caption + self.keyword + self.resolution


def _path_segments(url: str) -> list[str]:
    """
    Split a URL into its non-empty path segments.

    Falls back to splitting the raw string on "/" when it is not an absolute URL
    or cannot be parsed.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        parts = None

    if parts is None or not parts.scheme or not parts.netloc:
        return [segment for segment in url.split("/") if segment]

    return [segment for segment in unquote(parts.path).split("/") if segment]


def extract_url_tokens(url: Optional[str]) -> set[str]:
    """
    Tokens from a URL's path.

    Each path segment is tokenized whole and again after splitting on "-" and "_",
    so "venezuela-crisis-2026.jpg" yields "venezuela", "crisis", "2026" and "jpg"
    alongside the hyphenated form.
    """
    if not url or not isinstance(url, str):
        return set()

    tokens: set[str] = set()
    for segment in _path_segments(url):
        tokens |= tokenize(segment)
        tokens |= tokenize(_SEGMENT_SEPARATORS.split(segment))
    return tokens


def extract_alt_tokens(candidate: ImageCandidate) -> set[str]:
    """Union of alt text and caption tokens."""
    return tokenize([candidate.alt_text, candidate.caption])


def _as_candidate(image: Union[ImageCandidate, Mapping, Any]) -> Optional[ImageCandidate]:
    if isinstance(image, ImageCandidate):
        return image
    return ImageCandidate.from_dict(image)


def score_breakdown(
    image: Union[ImageCandidate, Mapping],
    link_tokens: AbstractSet[str],
    keywords: Optional[Sequence[str]] = None,
    weights: Optional[ScoringWeights] = None,
    resolution: Optional[ResolutionPolicy] = None,
) -> ScoreBreakdown:
    """
    Score an image candidate signal by signal.

    Args:
        image: ImageCandidate, or a JSON-style image mapping
        link_tokens: Tokens of the record's title and keywords
        keywords: Raw keyword strings of the record
        weights: Signal weights (defaults to ScoringWeights())
        resolution: Resolution bonus policy (defaults to ResolutionPolicy())

    Returns:
        ScoreBreakdown; all zeros for an unusable candidate
    """
    candidate = _as_candidate(image)
    if candidate is None:
        return ScoreBreakdown()

    weights = weights or ScoringWeights()
    resolution = resolution or ResolutionPolicy()
    keywords = list(keywords or [])

    url_tokens = extract_url_tokens(candidate.url)
    alt_tokens = extract_alt_tokens(candidate)
    tag_tokens = tokenize(list(candidate.explicit_keywords))

    matched = 0
    match_surface = url_tokens | alt_tokens | tag_tokens
    for keyword in keywords:
        if tokenize(keyword) & match_surface:
            matched += 1
    keyword_ratio = matched / len(keywords) if keywords else 0.0

    return ScoreBreakdown(
        filename=jaccard_similarity(url_tokens, link_tokens) * weights.filename,
        alt_caption=jaccard_similarity(alt_tokens, link_tokens) * weights.alt_caption,
        keyword=keyword_ratio * weights.keyword,
        resolution=resolution.factor(candidate.pixels) * weights.resolution,
        url_tokens=frozenset(url_tokens),
        alt_tokens=frozenset(alt_tokens),
    )


def score_image(
    image: Union[ImageCandidate, Mapping],
    link_tokens: AbstractSet[str],
    keywords: Optional[Sequence[str]] = None,
    weights: Optional[ScoringWeights] = None,
    resolution: Optional[ResolutionPolicy] = None,
) -> float:
    """Total relevance score of one candidate (>= 0). Pure function of its inputs."""
    return score_breakdown(image, link_tokens, keywords, weights, resolution).total
