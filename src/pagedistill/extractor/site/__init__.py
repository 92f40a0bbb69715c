"""Site-specific extractors keyed on stable structural anchors."""

from __future__ import annotations

from .base import AnchoredSiteExtractor, ExtractionMetadata, ExtractionResult, SiteExtractor
from .reddit import RedditExtractor

__all__ = [
    "AnchoredSiteExtractor",
    "ExtractionMetadata",
    "ExtractionResult",
    "SiteExtractor",
    "RedditExtractor",
    "default_site_extractors",
]


def default_site_extractors(config=None) -> list:
    """The site extractors the pipeline runs when none are injected."""
    return [RedditExtractor(config)]
