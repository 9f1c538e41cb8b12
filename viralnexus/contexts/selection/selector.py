"""
Preview image selection.

ImageSelector runs the full pipeline for one content record:

1. Validate the record (anything but a mapping yields the invalid-input placeholder)
2. Look up the cache (keyed by source URL, or a fingerprint of the record)
3. Tokenize title and keywords
4. Collect candidates: record images, page images, og:image, twitter:image, legacy thumbnail
5. Score every candidate
6. Rank by score, breaking near-ties by URL
7. Accept the top candidate if it clears the threshold, otherwise walk the fallback ladder
8. Cache and return

Usage:
    from viralnexus.contexts.selection import ImageSelector, SelectionCache

    selector = ImageSelector(cache=SelectionCache())
    result = selector.select_preview_image(link_json, page_meta, {"threshold": 0.1})
    result.to_dict()  # {"imageUrl": ..., "reason": "scored_match", "score": 0.42, ...}
"""

import math
from collections import Counter
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from viralnexus.contexts.selection.cache import CacheStats, SelectionCache
from viralnexus.contexts.selection.config import SelectorConfig
from viralnexus.contexts.selection.data_structures import (
    ContentRecord,
    ImageCandidate,
    PageMetadata,
    Provenance,
    ScoredCandidate,
    SelectionReason,
    SelectionResult,
)
from viralnexus.contexts.selection.diagnostics import DiagnosticSink, LoguruDiagnosticSink
from viralnexus.contexts.selection.exceptions import InvalidRecordError, SelectorConfigError
from viralnexus.contexts.selection.fallbacks import (
    DEFAULT_FALLBACK_LADDER,
    FallbackContext,
    FallbackStrategy,
    walk_ladder,
)
from viralnexus.contexts.selection.logger import _log_warning
from viralnexus.contexts.selection.placeholders import get_placeholder_image
from viralnexus.contexts.selection.scorer import score_image
from viralnexus.contexts.selection.tokenizer import tokenize


@dataclass(frozen=True)
class SelectionOptions:
    """Per-call overrides. None means "use the selector's config"."""

    threshold: Optional[float] = None
    use_cache: Optional[bool] = None
    debug_logging: Optional[bool] = None

    @classmethod
    def from_value(cls, value: Any) -> "SelectionOptions":
        """
        Accept None, SelectionOptions, or a dict using camelCase or snake_case keys.

        Options that cannot be read are logged and left unset, so the call falls
        back to the selector's config instead of failing.
        """
        if value is None:
            return cls()
        if isinstance(value, SelectionOptions):
            return value
        if not isinstance(value, Mapping):
            _log_warning(f"Ignoring selection options of type {type(value).__name__}")
            return cls()

        return cls(
            threshold=_threshold_option(value.get("threshold")),
            use_cache=_first_set(value, "useCache", "use_cache"),
            debug_logging=_first_set(value, "debugLogging", "debug_logging", "isDevelopment"),
        )


def _threshold_option(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        threshold = None
    if threshold is None or isinstance(value, bool) or not math.isfinite(threshold) or threshold < 0:
        _log_warning(f"Ignoring invalid threshold option {value!r}")
        return None
    return threshold


def _first_set(data: Mapping, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def link_tokens(record: ContentRecord) -> set[str]:
    """Token context of a record: title tokens united with each keyword's tokens."""
    return tokenize(record.title) | tokenize(list(record.keywords))


class ImageSelector:
    """
    Selects the most relevant preview image for content records.

    Attributes:
        config: Scoring weights, threshold and defaults for per-call options
        cache: Result cache (owned by the caller when passed in)
        diagnostics: Sink receiving debug traces when debug logging is enabled
        fallback_ladder: Ordered fallback strategies; must end with a placeholder rung
    """

    def __init__(
        self,
        config: Optional[SelectorConfig] = None,
        cache: Optional[SelectionCache] = None,
        diagnostics: Optional[DiagnosticSink] = None,
        fallback_ladder: Sequence[FallbackStrategy] = DEFAULT_FALLBACK_LADDER,
    ):
        if not fallback_ladder or fallback_ladder[-1].reason is not SelectionReason.FALLBACK_PLACEHOLDER:
            raise SelectorConfigError("Fallback ladder must end with the placeholder strategy")

        self.config = config or SelectorConfig()
        self.cache = cache if cache is not None else SelectionCache()
        self.diagnostics = diagnostics or LoguruDiagnosticSink()
        self.fallback_ladder = tuple(fallback_ladder)

    # =========================================================================
    # PIPELINE STEPS
    # =========================================================================

    def collect_candidates(
        self, record: ContentRecord, page_meta: Optional[PageMetadata] = None
    ) -> list[ImageCandidate]:
        """
        Gather candidates in fixed precedence order.

        Duplicate URLs across sources are kept; each source contributes independently.
        """
        candidates = list(record.image_candidates)

        if page_meta is not None:
            candidates.extend(page_meta.images)

        og_image = record.fallback_images.primary or (page_meta.og_image if page_meta else None)
        twitter_image = record.fallback_images.secondary or (
            page_meta.twitter_image if page_meta else None
        )
        if og_image:
            candidates.append(ImageCandidate(url=og_image, provenance=Provenance.META_TAG_OPEN_GRAPH))
        if twitter_image and twitter_image != og_image:
            candidates.append(ImageCandidate(url=twitter_image, provenance=Provenance.META_TAG_TWITTER))

        if record.legacy_thumbnail:
            candidates.append(
                ImageCandidate(url=record.legacy_thumbnail, provenance=Provenance.LEGACY_THUMBNAIL)
            )

        return candidates

    def score_candidates(
        self, candidates: Iterable[ImageCandidate], tokens: set[str], keywords: Sequence[str]
    ) -> list[ScoredCandidate]:
        return [
            ScoredCandidate(
                candidate,
                score_image(
                    candidate,
                    tokens,
                    keywords,
                    weights=self.config.weights,
                    resolution=self.config.resolution,
                ),
            )
            for candidate in candidates
        ]

    def rank_candidates(self, scored: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
        """
        Order candidates by descending score.

        Scores closer than tie_epsilon count as equal and the lexicographically
        smaller URL ranks first. Candidates are put in canonical (score, URL)
        order before the epsilon-aware sort so the result never depends on the
        order they were collected in.
        """
        epsilon = self.config.tie_epsilon

        def compare(a: ScoredCandidate, b: ScoredCandidate) -> int:
            if abs(a.score - b.score) < epsilon:
                return (a.url > b.url) - (a.url < b.url)
            return -1 if a.score > b.score else 1

        canonical = sorted(scored, key=lambda sc: (-sc.score, sc.url))
        return sorted(canonical, key=cmp_to_key(compare))

    # =========================================================================
    # SELECTION
    # =========================================================================

    def select_preview_image(
        self,
        record: Any,
        page_meta: Any = None,
        options: Union[None, SelectionOptions, Mapping] = None,
    ) -> SelectionResult:
        """
        Select the preview image for a content record.

        Args:
            record: ContentRecord, or a JSON-style mapping (see ContentRecord.from_dict)
            page_meta: Optional PageMetadata or mapping with images/ogImage/twitterImage
            options: Per-call overrides for threshold, use_cache and debug_logging

        Returns:
            SelectionResult; never raises for malformed records or candidates
        """
        opts = SelectionOptions.from_value(options)
        threshold = self.config.threshold if opts.threshold is None else opts.threshold
        use_cache = self.config.use_cache if opts.use_cache is None else bool(opts.use_cache)
        debug = self.config.debug_logging if opts.debug_logging is None else bool(opts.debug_logging)

        try:
            content = ContentRecord.from_dict(record)
        except InvalidRecordError as e:
            if debug:
                self.diagnostics.emit("invalid_input", error=str(e))
            return SelectionResult(
                image_url=get_placeholder_image(None),
                reason=SelectionReason.INVALID_INPUT,
                score=0.0,
                message="Invalid input",
            )

        cache_key = content.cache_key
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                if debug:
                    self.diagnostics.emit("cache_hit", key=cache_key, result=cached.to_dict())
                return cached

        result = self._select(content, PageMetadata.from_dict(page_meta), threshold, debug)

        if use_cache:
            result = self.cache.set(cache_key, result)
        return result

    def _select(
        self,
        record: ContentRecord,
        page_meta: Optional[PageMetadata],
        threshold: float,
        debug: bool,
    ) -> SelectionResult:
        tokens = link_tokens(record)
        candidates = self.collect_candidates(record, page_meta)
        ranked = self.rank_candidates(self.score_candidates(candidates, tokens, record.keywords))

        if debug:
            self.diagnostics.emit("tokens", link_tokens=tokens, keywords=list(record.keywords))
            self.diagnostics.emit(
                "candidates",
                count=len(candidates),
                by_provenance=dict(Counter(c.provenance.value for c in candidates)),
            )
            self.diagnostics.emit(
                "ranked",
                top=[
                    {"url": sc.url, "score": round(sc.score, 4), "provenance": sc.provenance.value}
                    for sc in ranked[:3]
                ],
            )

        if ranked and ranked[0].score >= threshold:
            best = ranked[0]
            result = SelectionResult(
                image_url=best.url,
                reason=SelectionReason.SCORED_MATCH,
                score=best.score,
                provenance=best.provenance,
            )
        else:
            ctx = FallbackContext(
                record=record,
                page_meta=page_meta,
                ranked=ranked,
                collected=candidates,
                threshold=threshold,
            )
            strategy, choice = walk_ladder(ctx, self.fallback_ladder)
            result = SelectionResult(
                image_url=choice.image_url,
                reason=strategy.reason,
                score=0.0,
                provenance=choice.provenance,
                message=choice.message,
            )

        if debug:
            self.diagnostics.emit("decision", **result.to_dict())
        return result

    # =========================================================================
    # CACHE ADMINISTRATION
    # =========================================================================

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()


def select_preview_image(
    record: Any,
    page_meta: Any = None,
    options: Union[None, SelectionOptions, Mapping] = None,
    cache: Optional[SelectionCache] = None,
    config: Optional[SelectorConfig] = None,
) -> SelectionResult:
    """
    One-shot selection. Pass a SelectionCache to reuse results across calls.
    """
    return ImageSelector(config=config, cache=cache).select_preview_image(record, page_meta, options)
