"""
Schemas Package

JSON schema definition and structural validation of raw questions.
"""

from .validator import (
    validate,
    validate_paper,
    ValidationReport,
    PaperValidation,
)

__all__ = [
    "validate",
    "validate_paper",
    "ValidationReport",
    "PaperValidation",
]
