"""
Module: core.errors

Purpose:
    Exception types and non-fatal diagnostic records shared by the importer
    and the grading engine.

Key Classes:
    - EngineError: Base class for all engine exceptions
    - StructuralError: Raw question failed structural validation
    - TransformError: Canonical construction failed, carries a location path
    - SerializationError: Paper file or stored canonical data unreadable
    - LinkingWarning: Data-quality note about linked alternatives (not raised)
    - DerivationFallback: Note that format/requirement defaulted (not raised)

Used By:
    - core.schemas.validator
    - importer.transformer / importer.linker / importer.deriver
    - importer.pipeline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


class EngineError(Exception):
    """Base class for errors raised by the engine."""
    pass


class StructuralError(EngineError):
    """
    Raised when a raw question has structural defects.

    Carries every path-qualified message the validator collected, so a
    reviewer sees the complete defect list rather than the first problem.

    Attributes:
        errors: All validation messages for the question
        question_number: Source question number, if known
    """

    def __init__(
        self,
        errors: Sequence[str],
        *,
        question_number: Optional[str] = None,
    ):
        self.errors = list(errors)
        self.question_number = question_number
        prefix = f"Question {question_number}: " if question_number else ""
        super().__init__(prefix + "; ".join(self.errors))


class TransformError(EngineError):
    """
    Raised when a structurally valid part still fails during construction.

    Each recursion level re-wraps the error with its own location, so the
    message reads outermost-first ("Failed to process part 2: Failed to
    process subpart 1: ...") and ``path`` holds the same segments.

    Attributes:
        path: Location segments, outermost first (e.g. ("part 2", "subpart 1"))
    """

    def __init__(self, message: str, *, path: Tuple[str, ...] = ()):
        super().__init__(message)
        self.path = path

    @classmethod
    def wrap(cls, exc: Exception, segment: str) -> TransformError:
        """
        Add one location level to an underlying error.

        Args:
            exc: The error raised by the nested level
            segment: Location of the nested level, e.g. "part 2"

        Returns:
            New TransformError; callers should ``raise ... from exc``
        """
        inner_path = exc.path if isinstance(exc, TransformError) else ()
        return cls(f"Failed to process {segment}: {exc}", path=(segment,) + inner_path)


class SerializationError(EngineError):
    """
    Raised when a paper file or stored canonical data cannot be read.

    Attributes:
        path: File involved, if any
    """

    def __init__(self, message: str, *, path: str = ""):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class LinkingWarning:
    """Asymmetric or dangling ``linked_alternatives`` data. Recorded, never raised."""
    location: str
    message: str
    kind: str = "linking_warning"

    def __str__(self) -> str:
        return f"{self.location}: {self.message}" if self.location else self.message


@dataclass(frozen=True)
class DerivationFallback:
    """A format or requirement defaulted conservatively for lack of signal."""
    location: str
    message: str
    kind: str = "derivation_fallback"

    def __str__(self) -> str:
        return f"{self.location}: {self.message}" if self.location else self.message
