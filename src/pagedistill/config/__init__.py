"""Configuration models and loaders."""

from __future__ import annotations

from .config import (
    Config,
    MetricsStoreConfig,
    MonitoringConfig,
    PipelineConfig,
    ReadabilitySettings,
    ScoringConfig,
    SemanticConfig,
    SiteExtractorConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "Config",
    "PipelineConfig",
    "ScoringConfig",
    "SemanticConfig",
    "SiteExtractorConfig",
    "ReadabilitySettings",
    "MetricsStoreConfig",
    "MonitoringConfig",
    "find_config_file",
    "load_config",
]
