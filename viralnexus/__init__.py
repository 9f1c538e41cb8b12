"""
Viral Nexus - deterministic preview image selection for curated links

Picks the single most relevant preview image for a content record from its
candidate images, using token overlap between the record's title/keywords and
each image's URL, alt text and caption.

Architecture:
- Selection Context: Tokenization, similarity, scoring, ranking, fallback and caching
"""

__version__ = "0.1.0"
