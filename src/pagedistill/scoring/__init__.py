"""Heuristic element scoring and copy-on-prune."""

from __future__ import annotations

from .engine import BLOCK_TAGS, ScoredCandidate, ScoringEngine, is_hidden

__all__ = ["ScoringEngine", "ScoredCandidate", "BLOCK_TAGS", "is_hidden"]
