"""
Configuration management for PageDistill using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Per-invocation pipeline configuration ---


class PipelineConfig(BaseModel):
    """Options for a single pipeline invocation. Never mutated mid-run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enable_site_specific: bool = Field(default=True, description="Try site-specific extractors first.")
    enable_semantic: bool = Field(default=True, description="Try semantic container lookup.")
    enable_readability: bool = Field(default=True, description="Try the readability-style summarizer.")
    enable_heuristic: bool = Field(default=True, description="Fall back to heuristic scoring.")
    min_quality_score: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Minimum quality score a gated stage must reach to be accepted.",
    )
    timeout_ms: int = Field(default=5000, ge=0, description="Global deadline in milliseconds. 0 disables it.")
    debug: bool = Field(default=False, description="Log per-stage decisions at info level.")

    @classmethod
    def resolve(
        cls,
        overrides: Union["PipelineConfig", Mapping[str, Any], None] = None,
        base: Optional["PipelineConfig"] = None,
    ) -> "PipelineConfig":
        """Build a config from ``base`` (or defaults) plus optional partial overrides."""
        base = base or cls()
        if overrides is None:
            return base
        if isinstance(overrides, cls):
            return overrides
        return cls.model_validate({**base.model_dump(), **dict(overrides)})

    def stage_enabled(self, stage: Any) -> bool:
        return bool(getattr(self, f"enable_{stage.name.lower()}"))


# --- Strategy configuration ---


class ScoringConfig(BaseModel):
    """Weights and keyword lists for the heuristic scoring engine."""

    positive_keywords: List[str] = Field(
        default_factory=lambda: [
            "content",
            "article",
            "body",
            "main",
            "story",
            "entry",
            "post",
            "text",
            "product",
            "detail",
            "overview",
            "spec",
            "datasheet",
        ]
    )
    negative_keywords: List[str] = Field(
        default_factory=lambda: [
            "nav",
            "menu",
            "header",
            "footer",
            "sidebar",
            "breadcrumb",
            "social",
            "share",
            "comment",
            "promo",
            "sponsor",
            "advert",
            "widget",
            "popup",
            "cookie",
            "related",
            "newsletter",
        ]
    )
    # Short tokens that only count as whole words (``ad`` must not match ``header``).
    negative_tokens: List[str] = Field(default_factory=lambda: ["ad", "ads"])
    tag_weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "main": 20,
            "article": 20,
            "section": 10,
            "div": 5,
            "nav": -50,
            "header": -50,
            "footer": -50,
            "aside": -50,
        }
    )
    positive_weight: float = 25
    negative_weight: float = -50
    min_text_length: int = Field(default=50, ge=0, description="Elements with less text score zero.")
    max_depth: int = Field(default=40, ge=1, description="Deepest element considered as a candidate.")
    removal_threshold: float = Field(default=0.0, description="Pruned subtrees score strictly below this.")
    link_density_limit: float = Field(default=0.3, ge=0, le=1)
    table_bonus: float = 30
    paragraph_bonus: float = 3
    heading_bonus: float = 3
    heading_cap: float = 10


class SemanticConfig(BaseModel):
    """Selectors tried, in priority order, by the semantic stage."""

    selectors: List[str] = Field(
        default_factory=lambda: ["article", "main", '[role="main"]', '[role="article"]'],
    )

    @field_validator("selectors")
    @classmethod
    def validate_selectors(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("selectors must contain at least one selector")
        return v


class SiteExtractorConfig(BaseModel):
    """Limits shared by site-specific extractors."""

    enabled: bool = True
    max_shadow_depth: int = Field(default=5, ge=0)
    min_quality_score: int = Field(default=60, ge=0, le=100)
    min_content_length: int = Field(default=100, ge=0)
    min_word_count: int = Field(default=50, ge=0)
    extra_noise_patterns: List[str] = Field(
        default_factory=list, description="Additional regexes removed from extracted text."
    )


class ReadabilitySettings(BaseModel):
    """Defaults for the readability-lxml summarizer."""

    min_text_length: int = Field(default=25, ge=0)
    retry_length: int = Field(default=250, ge=0)
    use_presets: bool = Field(default=True, description="Pick parameters from URL-based presets.")
    preset: Optional[str] = Field(default=None, description="Force a preset by name instead of matching the URL.")
    lenient_retry: bool = Field(default=True, description="Retry with relaxed thresholds on short output.")


class MetricsStoreConfig(BaseModel):
    """Session metrics ring buffer settings."""

    capacity: int = Field(default=100, ge=1)
    cache_ttl_seconds: float = Field(default=60.0, ge=0)


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics export."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: Optional[str] = Field(default=None, description="Path to log file. If None, logs to console.")
    prometheus_enabled: bool = Field(default=True, description="Record Prometheus collectors.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: Union[str, Path, None]) -> Optional[str]:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "PageDistill"
    version: str = "0.1.0"
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    semantic: SemanticConfig = Field(default_factory=SemanticConfig)
    site: SiteExtractorConfig = Field(default_factory=SiteExtractorConfig)
    readability: ReadabilitySettings = Field(default_factory=ReadabilitySettings)
    metrics: MetricsStoreConfig = Field(default_factory=MetricsStoreConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="PAGEDISTILL_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    paths_to_check = [
        current_dir / "pagedistill.yaml",
        current_dir / "pagedistill.yml",
    ]
    for path in paths_to_check:
        if path.exists():
            return path
    return None


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from ``path``, a discovered file, or defaults."""
    config_path = path or find_config_file()
    if config_path is None:
        log.info("No config file found. Using default settings.")
        return Config()
    try:
        log.info("Loading configuration from: %s", config_path)
        return Config.from_yaml(config_path)
    except ValidationError as e:
        log.error("Invalid configuration in '%s': %s", config_path, e)
        raise
