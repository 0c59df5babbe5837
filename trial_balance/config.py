"""
Configuration module for the trial balance engine.

All tuneable parameters (column names, thresholds, paths, feature flags)
live here.  Nothing is hard-coded in business logic modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class IngestionConfig:
    """Controls header matching and the row audit."""

    # Column names every trial balance must carry.  Matching is
    # case-insensitive and ignores surrounding whitespace.
    required_columns: tuple[str, ...] = ("Particulars", "Debit", "Credit")

    # Maximum plausible absolute amount; anything larger is flagged as a
    # possible unit error but still accepted.
    max_absolute_value: float = 1e15

    # Emit a warning for every header that is not one of the required columns.
    warn_on_extra_columns: bool = True

    # rapidfuzz score (0-100) above which a missing-column issue suggests the
    # closest header that *is* present, e.g. "Credits" for "Credit".
    header_suggestion_threshold: float = 70.0


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level configuration aggregating all sub-configs."""

    ingestion: IngestionConfig = field(default_factory=IngestionConfig)

    # Logging level for the ingestion audit trail, as a number or a name
    log_level: Union[int, str] = logging.INFO

    # Optional path to a user-supplied lexicon JSON file
    # (``{"income": ["royalty"], ...}``) merged with the built-in keywords.
    custom_lexicon_path: Optional[Path] = None

    # When True the pipeline raises ``IngestionError`` on a failed run
    # instead of returning a failed ``PipelineOutput``.
    strict_mode: bool = False
