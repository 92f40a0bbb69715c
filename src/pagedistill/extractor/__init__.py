"""Extraction strategies used by the pipeline stages."""

from __future__ import annotations

from .presets import PRESETS, ContentTypePreset, get_preset, preset_for_url
from .readability_extractor import ReadabilitySummarizer
from .semantic import GatedCandidate, SemanticExtractor
from .site import AnchoredSiteExtractor, ExtractionMetadata, ExtractionResult, RedditExtractor, SiteExtractor

__all__ = [
    "ReadabilitySummarizer",
    "SemanticExtractor",
    "GatedCandidate",
    "ContentTypePreset",
    "PRESETS",
    "get_preset",
    "preset_for_url",
    "AnchoredSiteExtractor",
    "ExtractionMetadata",
    "ExtractionResult",
    "RedditExtractor",
    "SiteExtractor",
]
