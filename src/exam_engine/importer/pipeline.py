"""
Module: importer.pipeline

Purpose:
    Batch import driver. Validates and transforms every question of a paper
    independently: a malformed question becomes an ImportFailure and the
    rest of the paper still imports.

Key Functions:
    - import_question(): Validate + transform one raw question
    - import_questions(): Many raw questions, optionally in parallel
    - import_paper(): Load a paper file, import it, save the diagnostics report

Dependencies:
    - concurrent.futures (std): Parallel transforms
    - core.schemas.validator, importer.transformer

Used By:
    - Host applications importing authoring JSON
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..core.errors import StructuralError, TransformError
from ..core.labels import extract_question_number
from ..core.models import Question
from ..core.schemas.validator import validate
from ..core.utils.serialization import load_paper_json
from .config import ImportConfig
from .diagnostics import DiagnosticsCollector
from .transformer import transform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportFailure:
    """
    A question that could not be imported.

    Attributes:
        index: 0-based position in the source list
        question_number: Source number, or index + 1 when absent
        message: Summary message
        errors: Every structural message, or the single transform message
    """
    index: int
    question_number: str
    message: str
    errors: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "question_number": self.question_number,
            "message": self.message,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class ImportResult:
    """Imported questions in source order plus the failures."""
    questions: Tuple[Question, ...] = ()
    failures: Tuple[ImportFailure, ...] = ()

    @property
    def imported_count(self) -> int:
        return len(self.questions)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


_Outcome = Union[Question, ImportFailure]


def _number_of(raw: Any, index: int) -> str:
    if isinstance(raw, dict):
        number = extract_question_number(raw.get("question_number"))
        if number:
            return number
    return str(index + 1)


def import_question(
    raw: Any,
    index: int,
    *,
    config: Optional[ImportConfig] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> Question:
    """
    Validate then transform one raw question.

    Raises:
        StructuralError: Validation found defects (all of them are attached)
        TransformError: Construction failed, with path context
    """
    config = config or ImportConfig()
    if config.validate_first:
        report = validate(raw, strict=config.strict_schema)
        if not report.valid:
            raise StructuralError(report.errors, question_number=_number_of(raw, index))
    return transform(raw, index, config=config, diagnostics=diagnostics)


def _import_one(
    raw: Any,
    index: int,
    config: ImportConfig,
    diagnostics: Optional[DiagnosticsCollector],
) -> _Outcome:
    number = _number_of(raw, index)
    try:
        return import_question(raw, index, config=config, diagnostics=diagnostics)
    except StructuralError as e:
        failure = ImportFailure(index, number, str(e), tuple(e.errors))
    except TransformError as e:
        failure = ImportFailure(index, number, f"Question {number}: {e}", (str(e),))
    except Exception as e:
        logger.debug(f"Unexpected error importing question {number}", exc_info=True)
        message = f"Question {number}: unexpected {type(e).__name__}: {e}"
        failure = ImportFailure(index, number, message, (message,))

    logger.warning(f"Skipping question {number}: {failure.message}")
    if diagnostics is not None:
        diagnostics.add_failure(number, failure.message)
    return failure


def import_questions(
    raw_questions: Sequence[Any],
    *,
    config: Optional[ImportConfig] = None,
    max_workers: Optional[int] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> ImportResult:
    """
    Import many raw questions; one bad question never stops the batch.

    Args:
        raw_questions: Raw question objects in paper order
        config: Import settings (defaults to ImportConfig())
        max_workers: Overrides config.max_workers; 1 forces sequential work
        diagnostics: Collector shared by all workers

    Returns:
        ImportResult with questions and failures, both in source order

    Example:
        >>> result = import_questions([good_q1, broken_q2, good_q3])
        >>> result.imported_count, [f.question_number for f in result.failures]
        (2, ['2'])
    """
    config = config or ImportConfig()
    if not config.run_diagnostics:
        diagnostics = None
    workers = max_workers if max_workers is not None else config.max_workers
    items = list(raw_questions)

    if len(items) > 1 and workers != 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(_import_one, raw, i, config, diagnostics)
                for i, raw in enumerate(items)
            ]
            outcomes: List[_Outcome] = [future.result() for future in futures]
    else:
        outcomes = [_import_one(raw, i, config, diagnostics) for i, raw in enumerate(items)]

    questions: List[Question] = []
    failures: List[ImportFailure] = []
    seen_ids = set()
    for i, outcome in enumerate(outcomes):
        if isinstance(outcome, ImportFailure):
            failures.append(outcome)
        elif outcome.id in seen_ids:
            message = f"Question {outcome.number}: duplicate question identifier {outcome.id}"
            logger.warning(f"Skipping question {outcome.number}: {message}")
            if diagnostics is not None:
                diagnostics.add_failure(outcome.number, message)
            failures.append(ImportFailure(i, outcome.number, message, (message,)))
        else:
            seen_ids.add(outcome.id)
            questions.append(outcome)

    logger.info(f"Imported {len(questions)}/{len(items)} question(s), {len(failures)} failure(s)")
    return ImportResult(questions=tuple(questions), failures=tuple(failures))


def import_paper(
    path: Path,
    *,
    config: Optional[ImportConfig] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
    report_path: Optional[Path] = None,
) -> ImportResult:
    """
    Import every question of a paper file.

    When ``report_path`` is given the diagnostics collected during the
    import are appended to it as JSONL.
    """
    config = config or ImportConfig()
    raw_questions = load_paper_json(Path(path))
    if diagnostics is None and report_path is not None:
        diagnostics = DiagnosticsCollector()

    result = import_questions(raw_questions, config=config, diagnostics=diagnostics)

    if report_path is not None and diagnostics is not None and config.run_diagnostics:
        diagnostics.save_report(Path(report_path))
    return result
