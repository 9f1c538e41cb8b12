"""
Fallback ladder for records where no candidate clears the relevance threshold.

The ladder is an ordered tuple of FallbackStrategy entries, evaluated in order;
the first strategy that resolves supplies the result. The placeholder strategy
always resolves, so walking DEFAULT_FALLBACK_LADDER never comes up empty.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from viralnexus.contexts.selection.data_structures import (
    ContentRecord,
    ImageCandidate,
    PageMetadata,
    Provenance,
    ScoredCandidate,
    SelectionReason,
)
from viralnexus.contexts.selection.placeholders import get_placeholder_image


@dataclass(frozen=True)
class FallbackContext:
    """Everything a fallback strategy may look at."""

    record: ContentRecord
    page_meta: Optional[PageMetadata]
    ranked: Sequence[ScoredCandidate]
    collected: Sequence[ImageCandidate]
    threshold: float

    @property
    def og_image(self) -> Optional[str]:
        if self.record.fallback_images.primary:
            return self.record.fallback_images.primary
        return self.page_meta.og_image if self.page_meta else None

    @property
    def twitter_image(self) -> Optional[str]:
        if self.record.fallback_images.secondary:
            return self.record.fallback_images.secondary
        return self.page_meta.twitter_image if self.page_meta else None


@dataclass(frozen=True)
class FallbackChoice:
    image_url: str
    provenance: Optional[Provenance] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class FallbackStrategy:
    """A named rung of the ladder: its result tag and how it resolves."""

    name: str
    reason: SelectionReason
    resolve: Callable[[FallbackContext], Optional[FallbackChoice]]


def _best_primary(ctx: FallbackContext) -> Optional[FallbackChoice]:
    # A primary candidate that scored exactly 0 carries no relevance signal
    for scored in ctx.ranked:
        if scored.provenance is Provenance.PRIMARY_SOURCE and scored.score > 0:
            return FallbackChoice(
                scored.url,
                Provenance.PRIMARY_SOURCE,
                f"Best primary image scored {scored.score:.4f}, below threshold {ctx.threshold}",
            )
    return None


def _og_image(ctx: FallbackContext) -> Optional[FallbackChoice]:
    if ctx.og_image:
        return FallbackChoice(ctx.og_image, Provenance.META_TAG_OPEN_GRAPH, "Using og:image")
    return None


def _twitter_image(ctx: FallbackContext) -> Optional[FallbackChoice]:
    if ctx.twitter_image:
        return FallbackChoice(ctx.twitter_image, Provenance.META_TAG_TWITTER, "Using twitter:image")
    return None


def _first_image(ctx: FallbackContext) -> Optional[FallbackChoice]:
    if ctx.collected:
        first = ctx.collected[0]
        return FallbackChoice(first.url, first.provenance, "Using first collected image")
    return None


def _placeholder(ctx: FallbackContext) -> Optional[FallbackChoice]:
    message = "No suitable image found" if ctx.collected else "No images available"
    return FallbackChoice(get_placeholder_image(ctx.record.category), None, message)


DEFAULT_FALLBACK_LADDER: tuple[FallbackStrategy, ...] = (
    FallbackStrategy("best_primary", SelectionReason.FALLBACK_PRIMARY_IMAGE, _best_primary),
    FallbackStrategy("og_image", SelectionReason.FALLBACK_OG_IMAGE, _og_image),
    FallbackStrategy("twitter_image", SelectionReason.FALLBACK_TWITTER_IMAGE, _twitter_image),
    FallbackStrategy("first_image", SelectionReason.FALLBACK_FIRST_IMAGE, _first_image),
    FallbackStrategy("placeholder", SelectionReason.FALLBACK_PLACEHOLDER, _placeholder),
)


def walk_ladder(
    ctx: FallbackContext, ladder: Sequence[FallbackStrategy] = DEFAULT_FALLBACK_LADDER
) -> tuple[FallbackStrategy, FallbackChoice]:
    """
    Evaluate strategies in order and return the first that resolves.

    Raises:
        LookupError: If no strategy resolves (only possible with a custom ladder
                     that lacks the placeholder rung)
    """
    for strategy in ladder:
        choice = strategy.resolve(ctx)
        if choice is not None:
            return strategy, choice
    raise LookupError("Fallback ladder exhausted without a result")
