"""
Module: importer.config

Purpose:
    Configuration dataclass for the import pipeline. Provides immutable
    settings for validation strictness, concurrency and answer defaults.

Key Classes:
    - ImportConfig: Main configuration for importing raw questions

Used By:
    - importer.pipeline: Uses ImportConfig for batch settings
    - importer.transformer: Reads default_answer_marks
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ImportConfig:
    """
    Configuration for the question import pipeline.

    Attributes:
        strict_schema: Also validate against the bundled JSON Schema (default False)
        validate_first: Run structural validation before transforming (default True)
        max_workers: Thread count for batch imports; None lets the executor decide
        default_answer_marks: Marks for an answer that states none (default 1)
        run_diagnostics: Record linking warnings and derivation fallbacks (default True)
    """
    strict_schema: bool = False
    validate_first: bool = True
    max_workers: Optional[int] = None
    default_answer_marks: int = 1
    run_diagnostics: bool = True

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.default_answer_marks < 0:
            raise ValueError(f"default_answer_marks cannot be negative: {self.default_answer_marks}")
