"""
Data structures for the selection context.

Content records arrive as loosely-shaped JSON (keys in camelCase or snake_case,
keywords as a string or a list, images possibly null). ContentRecord.from_dict()
is the single boundary where that shape is validated and normalized; everything
downstream works with the typed structures defined here.
"""

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from viralnexus.contexts.selection.exceptions import InvalidRecordError


class Provenance(str, Enum):
    """Where an image candidate was collected from."""

    PRIMARY_SOURCE = "primary_source"
    PAGE_METADATA = "page_metadata"
    META_TAG_OPEN_GRAPH = "meta_og"
    META_TAG_TWITTER = "meta_twitter"
    LEGACY_THUMBNAIL = "legacy_thumbnail"


class SelectionReason(str, Enum):
    """Why a SelectionResult carries the image it does."""

    SCORED_MATCH = "scored_match"
    FALLBACK_PRIMARY_IMAGE = "fallback_primary_image"
    FALLBACK_OG_IMAGE = "fallback_og_image"
    FALLBACK_TWITTER_IMAGE = "fallback_twitter_image"
    FALLBACK_FIRST_IMAGE = "fallback_first_image"
    FALLBACK_PLACEHOLDER = "fallback_placeholder"
    INVALID_INPUT = "invalid_input"


def _first_present(data: Mapping, *keys: str) -> Any:
    """Return the value of the first key present with a non-None value."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _clean_url(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _clean_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _clean_dimension(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    # json.loads maps out-of-range numbers like 1e400 to inf
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number > 0 else None


def normalize_keywords(value: Any) -> list[str]:
    """
    Normalize a keyword field into a list of strings.

    A bare string becomes a one-element list; non-string entries are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [kw for kw in value if isinstance(kw, str) and kw.strip()]
    return []


@dataclass(frozen=True)
class ImageCandidate:
    """An image under consideration for a content record's preview."""

    url: str
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    explicit_keywords: tuple[str, ...] = ()
    width: Optional[int] = None
    height: Optional[int] = None
    provenance: Provenance = Provenance.PRIMARY_SOURCE

    @property
    def pixels(self) -> Optional[int]:
        if self.width and self.height:
            return self.width * self.height
        return None

    @classmethod
    def from_dict(
        cls, data: Any, provenance: Provenance = Provenance.PRIMARY_SOURCE
    ) -> Optional["ImageCandidate"]:
        """
        Build a candidate from a JSON-style image entry.

        Returns None for entries that cannot be used: non-mappings and entries
        without a usable URL string.
        """
        if not isinstance(data, Mapping):
            return None

        url = _clean_url(data.get("url"))
        if url is None:
            return None

        return cls(
            url=url,
            alt_text=_clean_text(_first_present(data, "altText", "alt_text", "alt")),
            caption=_clean_text(data.get("caption")),
            explicit_keywords=tuple(
                normalize_keywords(
                    _first_present(data, "explicitKeywords", "explicit_keywords", "keywords")
                )
            ),
            width=_clean_dimension(data.get("width")),
            height=_clean_dimension(data.get("height")),
            provenance=provenance,
        )


def _image_entries(raw: Any, provenance: Provenance) -> tuple[ImageCandidate, ...]:
    """Usable candidates from an image list; ImageCandidate entries pass through as-is."""
    if not isinstance(raw, (list, tuple)):
        return ()

    candidates = []
    for entry in raw:
        candidate = entry if isinstance(entry, ImageCandidate) else ImageCandidate.from_dict(entry, provenance)
        if candidate is not None:
            candidates.append(candidate)
    return tuple(candidates)


@dataclass(frozen=True)
class FallbackImages:
    """Ranked fallback URLs from external page metadata (og:image, twitter:image)."""

    primary: Optional[str] = None
    secondary: Optional[str] = None

    @classmethod
    def from_record(cls, data: Mapping) -> "FallbackImages":
        fallback = data.get("fallbackImages") or data.get("fallback_images")
        if isinstance(fallback, Mapping):
            return cls(
                primary=_clean_url(fallback.get("primary")),
                secondary=_clean_url(fallback.get("secondary")),
            )

        # Older records carry the meta tags directly
        meta = data.get("meta")
        if isinstance(meta, Mapping):
            return cls(
                primary=_clean_url(_first_present(meta, "ogImage", "og_image")),
                secondary=_clean_url(_first_present(meta, "twitterImage", "twitter_image")),
            )
        return cls()


@dataclass(frozen=True)
class PageMetadata:
    """Supplemental metadata scraped from the linked page."""

    images: tuple[ImageCandidate, ...] = ()
    og_image: Optional[str] = None
    twitter_image: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["PageMetadata"]:
        """Build page metadata from a JSON-style mapping; None for anything else."""
        if isinstance(data, PageMetadata):
            return data
        if not isinstance(data, Mapping):
            return None

        return cls(
            images=_image_entries(data.get("images"), Provenance.PAGE_METADATA),
            og_image=_clean_url(_first_present(data, "ogImage", "og_image")),
            twitter_image=_clean_url(_first_present(data, "twitterImage", "twitter_image")),
        )


@dataclass(frozen=True)
class ContentRecord:
    """
    A curated content item that needs a preview image.

    Read-only to the selector. Construct with from_dict() when the data comes
    from JSON so that keywords and image entries are normalized once.
    """

    source_url: Optional[str] = None
    title: Optional[str] = None
    keywords: tuple[str, ...] = ()
    image_candidates: tuple[ImageCandidate, ...] = ()
    fallback_images: FallbackImages = field(default_factory=FallbackImages)
    legacy_thumbnail: Optional[str] = None
    category: Optional[str] = None
    # Canonical JSON of the source mapping, used as cache key when source_url is absent
    fingerprint: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def cache_key(self) -> str:
        if self.source_url:
            return self.source_url
        if self.fingerprint is not None:
            return self.fingerprint
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: Any) -> "ContentRecord":
        """
        Validate and normalize a JSON-style content record.

        Unknown keys are ignored and missing optional fields default to empty.

        Raises:
            InvalidRecordError: If data is not a mapping
        """
        if isinstance(data, ContentRecord):
            return data
        if not isinstance(data, Mapping):
            raise InvalidRecordError("Content record must be a mapping", data)

        try:
            fingerprint = json.dumps(data, sort_keys=True, default=str)
        except (TypeError, ValueError):
            # Non-string keys or circular structures
            fingerprint = repr(sorted(data.items(), key=lambda kv: str(kv[0])))

        return cls(
            source_url=_clean_url(_first_present(data, "sourceUrl", "source_url", "url")),
            title=_clean_text(data.get("title")),
            keywords=tuple(normalize_keywords(data.get("keywords"))),
            image_candidates=_image_entries(
                _first_present(data, "imageCandidates", "image_candidates", "images"),
                Provenance.PRIMARY_SOURCE,
            ),
            fallback_images=FallbackImages.from_record(data),
            legacy_thumbnail=_clean_url(
                _first_present(data, "legacyThumbnail", "legacy_thumbnail", "thumbnail")
            ),
            category=_clean_text(data.get("category")),
            fingerprint=fingerprint,
        )

    def to_dict(self) -> dict:
        return {
            "sourceUrl": self.source_url,
            "title": self.title,
            "keywords": list(self.keywords),
            "imageCandidates": [
                {
                    "url": c.url,
                    "altText": c.alt_text,
                    "caption": c.caption,
                    "explicitKeywords": list(c.explicit_keywords),
                    "width": c.width,
                    "height": c.height,
                }
                for c in self.image_candidates
            ],
            "fallbackImages": {
                "primary": self.fallback_images.primary,
                "secondary": self.fallback_images.secondary,
            },
            "legacyThumbnail": self.legacy_thumbnail,
            "category": self.category,
        }


@dataclass(frozen=True)
class ScoredCandidate:
    """An image candidate together with its relevance score."""

    candidate: ImageCandidate
    score: float

    @property
    def url(self) -> str:
        return self.candidate.url

    @property
    def provenance(self) -> Provenance:
        return self.candidate.provenance


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of selecting a preview image; also the cached value."""

    image_url: Optional[str]
    reason: SelectionReason
    score: float = 0.0
    provenance: Optional[Provenance] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        """Flat JSON-compatible form: {imageUrl, reason, score, provenance?, message?}."""
        result = {
            "imageUrl": self.image_url,
            "reason": self.reason.value,
            "score": self.score,
        }
        if self.provenance is not None:
            result["provenance"] = self.provenance.value
        if self.message:
            result["message"] = self.message
        return result

    @classmethod
    def from_dict(cls, data: Mapping) -> "SelectionResult":
        """
        Rebuild a result from its to_dict() form.

        Raises:
            ValueError: On unknown reason/provenance tags
            KeyError: When reason is missing
        """
        provenance = data.get("provenance")
        return cls(
            image_url=data.get("imageUrl"),
            reason=SelectionReason(data["reason"]),
            score=float(data.get("score") or 0.0),
            provenance=Provenance(provenance) if provenance else None,
            message=data.get("message"),
        )
