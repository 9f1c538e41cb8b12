"""
Selection Context

Responsibilities:
- Normalizes titles, keywords, URLs and alt text into token sets
- Scores image candidates against a content record's title and keywords
- Ranks candidates deterministically and applies the fallback ladder
- Caches selection results per content record

Owns: Relevance scoring, ranking, fallback order, selection cache
Never: Fetches pages or images, renders previews, or persists content records
"""

from viralnexus.contexts.selection.cache import CacheStats, SelectionCache, SqliteSelectionStore
from viralnexus.contexts.selection.config import (
    DEFAULT_SELECTOR_CONFIG,
    SelectorConfig,
    load_selector_config,
)
from viralnexus.contexts.selection.data_structures import (
    ContentRecord,
    FallbackImages,
    ImageCandidate,
    PageMetadata,
    Provenance,
    ScoredCandidate,
    SelectionReason,
    SelectionResult,
)
from viralnexus.contexts.selection.diagnostics import CollectingDiagnosticSink, LoguruDiagnosticSink
from viralnexus.contexts.selection.exceptions import InvalidRecordError, SelectorConfigError
from viralnexus.contexts.selection.fallbacks import DEFAULT_FALLBACK_LADDER, FallbackStrategy
from viralnexus.contexts.selection.placeholders import PLACEHOLDER_IMAGES, get_placeholder_image
from viralnexus.contexts.selection.scorer import (
    ResolutionPolicy,
    ScoringWeights,
    extract_url_tokens,
    score_breakdown,
    score_image,
)
from viralnexus.contexts.selection.selector import (
    ImageSelector,
    SelectionOptions,
    link_tokens,
    select_preview_image,
)
from viralnexus.contexts.selection.similarity import jaccard_similarity, overlap
from viralnexus.contexts.selection.tokenizer import STOPWORDS, Tokenizer, tokenize

__all__ = [
    # Building blocks
    "tokenize",
    "Tokenizer",
    "STOPWORDS",
    "jaccard_similarity",
    "overlap",
    "extract_url_tokens",
    "score_image",
    "score_breakdown",
    "link_tokens",
    "get_placeholder_image",
    "PLACEHOLDER_IMAGES",
    # Orchestration
    "ImageSelector",
    "SelectionOptions",
    "select_preview_image",
    "DEFAULT_FALLBACK_LADDER",
    "FallbackStrategy",
    # Caching
    "SelectionCache",
    "SqliteSelectionStore",
    "CacheStats",
    # Configuration
    "SelectorConfig",
    "ScoringWeights",
    "ResolutionPolicy",
    "DEFAULT_SELECTOR_CONFIG",
    "load_selector_config",
    # Diagnostics
    "LoguruDiagnosticSink",
    "CollectingDiagnosticSink",
    # Data structures
    "ContentRecord",
    "ImageCandidate",
    "FallbackImages",
    "PageMetadata",
    "Provenance",
    "ScoredCandidate",
    "SelectionReason",
    "SelectionResult",
    # Exceptions
    "InvalidRecordError",
    "SelectorConfigError",
]
