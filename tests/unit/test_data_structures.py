"""
Unit tests for content record normalization.

Records arrive with camelCase or snake_case keys, keywords as a string or a
list, and image entries that may be null or missing a URL.
"""

import json

import pytest

from viralnexus.contexts.selection import (
    ContentRecord,
    ImageCandidate,
    InvalidRecordError,
    PageMetadata,
    Provenance,
    SelectionReason,
    SelectionResult,
)


@pytest.mark.unit
class TestImageCandidate:
    """Tests for ImageCandidate.from_dict()."""

    def test_alt_text_aliases(self):
        for key in ("alt", "altText", "alt_text"):
            candidate = ImageCandidate.from_dict({"url": "https://x.org/a.jpg", key: "A cat"})
            assert candidate.alt_text == "A cat"

    def test_missing_or_blank_url_rejected(self):
        assert ImageCandidate.from_dict({"alt": "no url"}) is None
        assert ImageCandidate.from_dict({"url": "   "}) is None
        assert ImageCandidate.from_dict({"url": 42}) is None
        assert ImageCandidate.from_dict(None) is None

    def test_url_stripped(self):
        assert ImageCandidate.from_dict({"url": "  https://x.org/a.jpg "}).url == "https://x.org/a.jpg"

    def test_dimensions(self):
        candidate = ImageCandidate.from_dict({"url": "https://x.org/a.jpg", "width": "800", "height": 600})

        assert candidate.pixels == 480_000

    def test_invalid_dimensions_ignored(self):
        candidate = ImageCandidate.from_dict(
            {"url": "https://x.org/a.jpg", "width": -5, "height": True}
        )

        assert candidate.width is None
        assert candidate.height is None
        assert candidate.pixels is None

    @pytest.mark.parametrize("width", [float("inf"), float("-inf"), float("nan"), "1e400", "inf"])
    def test_out_of_range_dimensions_ignored(self, width):
        candidate = ImageCandidate.from_dict({"url": "https://x.org/a.jpg", "width": width, "height": 10})

        assert candidate.width is None
        assert candidate.height == 10

    def test_json_overflow_dimension(self):
        """JSON numbers beyond float range decode to inf and are dropped."""
        data = json.loads('{"url": "https://x.org/a.jpg", "width": 1e400, "height": 10}')

        assert ImageCandidate.from_dict(data).pixels is None

    def test_explicit_keywords_string(self):
        candidate = ImageCandidate.from_dict({"url": "https://x.org/a.jpg", "keywords": "Election"})

        assert candidate.explicit_keywords == ("Election",)


@pytest.mark.unit
class TestContentRecord:
    """Tests for ContentRecord.from_dict()."""

    def test_camel_and_snake_case_equivalent(self):
        camel = ContentRecord.from_dict({
            "sourceUrl": "https://x.org/story",
            "imageCandidates": [{"url": "https://x.org/a.jpg"}],
            "legacyThumbnail": "https://x.org/t.jpg",
        })
        snake = ContentRecord.from_dict({
            "source_url": "https://x.org/story",
            "image_candidates": [{"url": "https://x.org/a.jpg"}],
            "legacy_thumbnail": "https://x.org/t.jpg",
        })

        assert camel == snake

    def test_link_json_shape(self):
        record = ContentRecord.from_dict({
            "url": "https://x.org/story",
            "title": "Story",
            "images": [{"url": "https://x.org/a.jpg"}],
            "thumbnail": "https://x.org/t.jpg",
            "category": "videos",
        })

        assert record.source_url == "https://x.org/story"
        assert record.image_candidates[0].provenance is Provenance.PRIMARY_SOURCE
        assert record.legacy_thumbnail == "https://x.org/t.jpg"
        assert record.category == "videos"

    def test_keyword_string_becomes_list(self):
        assert ContentRecord.from_dict({"keywords": "Venezuela"}).keywords == ("Venezuela",)

    def test_non_string_keywords_dropped(self):
        record = ContentRecord.from_dict({"keywords": ["Oil", None, 3, "", "Markets"]})

        assert record.keywords == ("Oil", "Markets")

    def test_null_image_entries_dropped(self):
        record = ContentRecord.from_dict({"images": [None, {"url": None}, {"url": "https://x.org/a.jpg"}]})

        assert [c.url for c in record.image_candidates] == ["https://x.org/a.jpg"]

    def test_candidate_instances_kept(self):
        existing = ImageCandidate(url="https://x.org/a.jpg", alt_text="Lava flow")
        record = ContentRecord.from_dict({"imageCandidates": [existing, {"url": "https://x.org/b.jpg"}]})

        assert record.image_candidates[0] is existing
        assert [c.url for c in record.image_candidates] == ["https://x.org/a.jpg", "https://x.org/b.jpg"]

    def test_images_not_a_list(self):
        assert ContentRecord.from_dict({"images": "https://x.org/a.jpg"}).image_candidates == ()

    def test_fallback_images_preferred_over_meta(self):
        record = ContentRecord.from_dict({
            "fallbackImages": {"primary": "https://x.org/og.jpg"},
            "meta": {"ogImage": "https://x.org/old-og.jpg", "twitterImage": "https://x.org/tw.jpg"},
        })

        assert record.fallback_images.primary == "https://x.org/og.jpg"
        assert record.fallback_images.secondary is None

    def test_meta_tags(self):
        record = ContentRecord.from_dict({"meta": {"og_image": "https://x.org/og.jpg"}})

        assert record.fallback_images.primary == "https://x.org/og.jpg"

    @pytest.mark.parametrize("data", [None, "record", 7, ["a"]])
    def test_non_mapping_rejected(self, data):
        with pytest.raises(InvalidRecordError) as exc_info:
            ContentRecord.from_dict(data)

        assert exc_info.value.received_type == type(data).__name__

    def test_cache_key_prefers_source_url(self):
        record = ContentRecord.from_dict({"url": "https://x.org/story", "title": "Story"})

        assert record.cache_key == "https://x.org/story"

    def test_cache_key_ignores_key_order(self):
        first = ContentRecord.from_dict({"title": "Story", "keywords": ["a1"], "category": "news"})
        second = ContentRecord.from_dict({"category": "news", "keywords": ["a1"], "title": "Story"})

        assert first.cache_key == second.cache_key

    def test_cache_key_differs_by_content(self):
        first = ContentRecord.from_dict({"title": "Story"})
        second = ContentRecord.from_dict({"title": "Other story"})

        assert first.cache_key != second.cache_key


@pytest.mark.unit
class TestPageMetadata:
    """Tests for PageMetadata.from_dict()."""

    def test_images_tagged_as_page_metadata(self):
        page_meta = PageMetadata.from_dict({"images": [{"url": "https://x.org/p.jpg"}, None]})

        assert len(page_meta.images) == 1
        assert page_meta.images[0].provenance is Provenance.PAGE_METADATA

    def test_candidate_instances_kept(self):
        existing = ImageCandidate(url="https://x.org/p.jpg", provenance=Provenance.PAGE_METADATA)

        assert PageMetadata.from_dict({"images": [existing]}).images == (existing,)

    def test_non_mapping(self):
        assert PageMetadata.from_dict(None) is None
        assert PageMetadata.from_dict(["https://x.org/p.jpg"]) is None


@pytest.mark.unit
class TestSelectionResult:
    """Tests for SelectionResult serialization."""

    def test_to_dict_omits_unset_fields(self):
        result = SelectionResult("https://x.org/a.jpg", SelectionReason.FALLBACK_OG_IMAGE)

        assert result.to_dict() == {
            "imageUrl": "https://x.org/a.jpg",
            "reason": "fallback_og_image",
            "score": 0.0,
        }

    def test_from_dict_restores_enums(self):
        data = {
            "imageUrl": "https://x.org/a.jpg",
            "reason": "scored_match",
            "score": 0.42,
            "provenance": "legacy_thumbnail",
        }

        result = SelectionResult.from_dict(data)

        assert result.reason is SelectionReason.SCORED_MATCH
        assert result.provenance is Provenance.LEGACY_THUMBNAIL
        assert result.to_dict() == data

    def test_from_dict_unknown_reason(self):
        with pytest.raises(ValueError):
            SelectionResult.from_dict({"imageUrl": "https://x.org/a.jpg", "reason": "lucky_guess"})
