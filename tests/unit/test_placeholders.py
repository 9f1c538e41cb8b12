"""Unit tests for category placeholder images."""

import pytest

from viralnexus.contexts.selection import PLACEHOLDER_IMAGES, get_placeholder_image


@pytest.mark.parametrize("category", sorted(PLACEHOLDER_IMAGES))
def test_known_categories(category):
    assert get_placeholder_image(category) == PLACEHOLDER_IMAGES[category]


def test_case_insensitive():
    assert get_placeholder_image(" Videos ") == PLACEHOLDER_IMAGES["videos"]


@pytest.mark.parametrize("category", [None, "", "podcasts", 12])
def test_unknown_category_defaults_to_news(category):
    assert get_placeholder_image(category) == PLACEHOLDER_IMAGES["news"]


def test_placeholders_distinct():
    assert len(set(PLACEHOLDER_IMAGES.values())) == len(PLACEHOLDER_IMAGES)
