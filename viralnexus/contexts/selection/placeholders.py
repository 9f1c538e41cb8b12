"""
Category placeholder images.

Used when no real candidate is usable. Unknown or absent categories fall back
to the DEFAULT_PLACEHOLDER_CATEGORY entry.
"""

from typing import Optional

PLACEHOLDER_BASE_URL = "https://placehold.co/250x150/ff4500/white"

PLACEHOLDER_IMAGES = {
    "news": f"{PLACEHOLDER_BASE_URL}?text=Breaking+News",
    "videos": f"{PLACEHOLDER_BASE_URL}?text=Video",
    "products": f"{PLACEHOLDER_BASE_URL}?text=Product",
    "tweets": f"{PLACEHOLDER_BASE_URL}?text=Tweet",
    "memes": f"{PLACEHOLDER_BASE_URL}?text=Meme",
    "tools": f"{PLACEHOLDER_BASE_URL}?text=Tool",
}

DEFAULT_PLACEHOLDER_CATEGORY = "news"


def get_placeholder_image(category: Optional[str] = None) -> str:
    """Placeholder URL for a category (case-insensitive), defaulting to news."""
    key = category.strip().lower() if isinstance(category, str) else ""
    return PLACEHOLDER_IMAGES.get(key, PLACEHOLDER_IMAGES[DEFAULT_PLACEHOLDER_CATEGORY])
