"""
Module: grading.config

Purpose:
    Configuration dataclass for the grading engine. Immutable, validated on
    construction.

Key Classes:
    - GradingConfig: Matching thresholds and response splitting

Used By:
    - grading.text / grading.tables / grading.engine
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# Free-text submissions hold one response per line or per semicolon
DEFAULT_SPLIT_PATTERN = r"\s*(?:\r?\n|;)\s*"


@dataclass(frozen=True)
class GradingConfig:
    """
    Settings for grading (immutable).

    Attributes:
        fuzzy_threshold: Minimum difflib ratio for a fuzzy table-cell match
            when the cell accepts equivalent phrasing
        split_pattern: Regex splitting one submitted string into responses
        allow_missing_unit: A numeric answer without its unit still matches
        max_workers: Thread pool size for grade_batch (None = executor default)

    Example:
        >>> GradingConfig(fuzzy_threshold=0.9).fuzzy_threshold
        0.9
    """

    fuzzy_threshold: float = 0.85
    split_pattern: str = DEFAULT_SPLIT_PATTERN
    allow_missing_unit: bool = True
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 < self.fuzzy_threshold <= 1.0:
            raise ValueError(f"fuzzy_threshold must be in (0, 1], got {self.fuzzy_threshold}")
        try:
            re.compile(self.split_pattern)
        except re.error as e:
            raise ValueError(f"Invalid split_pattern {self.split_pattern!r}: {e}") from e
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
