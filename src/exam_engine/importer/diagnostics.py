"""
Module: importer.diagnostics

Captures data-quality notes during import (linking warnings, derivation
fallbacks, skipped questions) and writes them as a JSONL report for review.

Structure:
- Each issue carries the question number and a human-readable location
- Reports are appended under a file lock so parallel importers can share one
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.errors import DerivationFallback, LinkingWarning
from .file_locking import locked_append_jsonl

logger = logging.getLogger(__name__)

Note = Union[LinkingWarning, DerivationFallback]


@dataclass(frozen=True)
class ImportIssue:
    """A single import issue with its location."""
    issue_type: str
    message: str
    location: str = ""
    question_number: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "issue_type": self.issue_type,
            "message": self.message,
        }
        if self.location:
            d["location"] = self.location
        if self.question_number is not None:
            d["question_number"] = self.question_number
        return d


class DiagnosticsCollector:
    """
    Thread-safe collector for import issues.

    One collector may be shared by every worker of a batch import.
    """

    def __init__(self):
        self._issues: List[ImportIssue] = []
        self._lock = threading.Lock()

    def record(self, note: Note, *, question_number: Optional[str] = None) -> None:
        """Record a LinkingWarning or DerivationFallback."""
        issue = ImportIssue(
            issue_type=note.kind,
            message=note.message,
            location=note.location,
            question_number=question_number,
        )
        with self._lock:
            self._issues.append(issue)

    def add_failure(self, question_number: Optional[str], message: str) -> None:
        """Record a question that was skipped."""
        issue = ImportIssue(
            issue_type="import_failure",
            message=message,
            question_number=question_number,
        )
        with self._lock:
            self._issues.append(issue)

    @property
    def issues(self) -> List[ImportIssue]:
        with self._lock:
            return list(self._issues)

    @property
    def issue_count(self) -> int:
        with self._lock:
            return len(self._issues)

    def summary_by_type(self) -> Dict[str, int]:
        summary: Dict[str, int] = {}
        for issue in self.issues:
            summary[issue.issue_type] = summary.get(issue.issue_type, 0) + 1
        return summary

    def to_dict(self) -> Dict[str, Any]:
        issues = self.issues
        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "total_issues": len(issues),
            "summary_by_type": self.summary_by_type(),
            "issues": [issue.to_dict() for issue in issues],
        }

    def save_report(self, path: Path) -> int:
        """
        Append one JSON line per issue to ``path``.

        Returns:
            Number of issues written
        """
        path = Path(path)
        stamp = datetime.now(timezone.utc).isoformat()
        records = [dict(issue.to_dict(), generated_at=stamp) for issue in self.issues]
        written = locked_append_jsonl(path, records)
        logger.info(f"Import diagnostics saved: {path} ({written} issue(s))")
        return written
