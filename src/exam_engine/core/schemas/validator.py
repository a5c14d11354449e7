"""
Structural Validation

Checks raw authoring JSON before it reaches the transformer.

Unlike a fail-fast validator, ``validate()`` walks the whole question and
returns every defect it finds, each with a human-readable location such as
"Part 2, Subpart 1 is missing marks". A reviewer fixing a paper sees the
full list in one pass.

``strict=True`` additionally runs the bundled JSON Schema through
jsonschema and appends its messages with their JSON path.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

import jsonschema

from ..errors import StructuralError
from ..models.answers import coerce_marks

logger = logging.getLogger(__name__)


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


@dataclass(frozen=True)
class ValidationReport:
    """
    Outcome of validating one raw question.

    Attributes:
        valid: True when no errors were found
        errors: Every path-qualified message, in document order
        question_number: Source question number, if readable
    """
    valid: bool
    errors: Tuple[str, ...] = ()
    question_number: Optional[str] = None

    def raise_for_errors(self) -> None:
        """Raise StructuralError carrying all messages when invalid."""
        if not self.valid:
            raise StructuralError(self.errors, question_number=self.question_number)


@dataclass(frozen=True)
class PaperValidation:
    """Envelope errors plus one report per question."""
    envelope_errors: Tuple[str, ...] = ()
    reports: Tuple[ValidationReport, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.envelope_errors and all(r.valid for r in self.reports)

    @property
    def error_count(self) -> int:
        return len(self.envelope_errors) + sum(len(r.errors) for r in self.reports)


# ─────────────────────────────────────────────────────────────────────────────
# Walkers
# ─────────────────────────────────────────────────────────────────────────────

def _where(*segments: str) -> str:
    return ", ".join(s for s in segments if s)


def _message(location: str, text: str, fallback_subject: str) -> str:
    """Join a location and a defect ("Part 2" + "is missing marks")."""
    return f"{location} {text}" if location else f"{fallback_subject} {text}"


@dataclass
class _Collector:
    errors: List[str] = field(default_factory=list)

    def add(self, location: str, text: str, subject: str = "Question") -> None:
        self.errors.append(_message(location, text, subject))


def _check_marks(node: dict, location: str, out: _Collector, *, allow_total: bool = False) -> None:
    keys = ("marks", "total_marks") if allow_total else ("marks",)
    present = [node.get(k) for k in keys if node.get(k) is not None]
    if not present:
        out.add(location, "is missing marks")
        return
    if coerce_marks(present[0]) is None:
        out.add(location, "has invalid marks (must be a non-negative number)")


def _check_answers(node: dict, location: str, out: _Collector) -> None:
    if "correct_answers" not in node or node["correct_answers"] is None:
        return
    answers = node["correct_answers"]
    if not isinstance(answers, list):
        out.add(location, "correct_answers must be an array")
        return
    for i, answer in enumerate(answers):
        answer_loc = _where(location, f"Answer {i + 1}")
        if not isinstance(answer, dict):
            out.add(answer_loc, "is invalid")
            continue
        text = answer.get("answer")
        if not isinstance(text, str) or not text.strip():
            out.add(answer_loc, "has empty answer text")
        if "marks" in answer and answer["marks"] is not None and coerce_marks(answer["marks"]) is None:
            out.add(answer_loc, "has invalid marks (must be a non-negative number)")
        variations = answer.get("acceptable_variations")
        if variations is not None and not isinstance(variations, (str, list)):
            out.add(answer_loc, "has invalid acceptable_variations (must be an array of strings)")


def _check_subpart(sub: Any, location: str, out: _Collector) -> None:
    if not isinstance(sub, dict):
        out.add(location, "is invalid")
        return
    _check_marks(sub, location, out)
    _check_answers(sub, location, out)


def _check_part(part: Any, location: str, out: _Collector) -> None:
    if not isinstance(part, dict):
        out.add(location, "is invalid")
        return
    _check_marks(part, location, out)
    _check_answers(part, location, out)

    subparts = part.get("subparts")
    if subparts is None:
        return
    if not isinstance(subparts, list):
        out.add(location, "subparts must be an array")
        return
    for j, sub in enumerate(subparts):
        _check_subpart(sub, _where(location, f"Subpart {j + 1}"), out)


def _is_complex(raw: dict) -> bool:
    return raw.get("type") == "complex" or raw.get("parts") not in (None, [])


def _question_number(raw: Any) -> Optional[str]:
    if isinstance(raw, dict) and raw.get("question_number") not in (None, ""):
        return str(raw["question_number"])
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def validate(raw: Any, *, strict: bool = False) -> ValidationReport:
    """
    Validate a raw question and collect every structural defect.

    Never raises for malformed input.

    Args:
        raw: One question from the authoring JSON
        strict: Also run the bundled JSON Schema

    Returns:
        ValidationReport with all messages

    Example:
        >>> report = validate({"marks": 2, "type": "complex",
        ...                    "parts": [{"marks": 1}, {}, "x"]})
        >>> report.errors
        ('Part 2 is missing marks', 'Part 3 is invalid')
    """
    out = _Collector()
    number = _question_number(raw)

    if not isinstance(raw, dict):
        out.errors.append("Question is not an object")
        return ValidationReport(valid=False, errors=tuple(out.errors), question_number=number)

    _check_marks(raw, "", out, allow_total=True)
    _check_answers(raw, "", out)

    parts = raw.get("parts")
    if _is_complex(raw):
        if not isinstance(parts, list):
            if parts is None:
                out.errors.append("Complex question must have at least one part")
            else:
                out.errors.append("Parts must be an array")
        elif not parts:
            out.errors.append("Complex question must have at least one part")
        else:
            for i, part in enumerate(parts):
                _check_part(part, f"Part {i + 1}", out)

    if strict:
        out.errors.extend(_schema_errors(raw))

    if out.errors:
        logger.debug(f"Question {number or '?'}: {len(out.errors)} structural error(s)")
    return ValidationReport(valid=not out.errors, errors=tuple(out.errors), question_number=number)


def _schema_errors(raw: dict) -> List[str]:
    """Messages from the bundled JSON Schema, prefixed with their JSON path."""
    schema = _load_schema("question")
    validator = jsonschema.Draft7Validator(schema)
    messages = []
    for error in sorted(validator.iter_errors(raw), key=lambda e: list(map(str, e.absolute_path))):
        path = ".".join(str(p) for p in error.absolute_path) or "<root>"
        messages.append(f"Schema: {path}: {error.message}")
    return messages


def validate_paper(paper: Any, *, strict: bool = False) -> PaperValidation:
    """
    Validate a paper envelope and each question in it.

    Accepts ``{"questions": [...]}`` or a bare list of questions.
    """
    if isinstance(paper, list):
        questions = paper
    elif isinstance(paper, dict):
        questions = paper.get("questions")
        if not isinstance(questions, list):
            return PaperValidation(envelope_errors=("Paper must contain a questions array",))
    else:
        return PaperValidation(envelope_errors=("Paper is not an object",))

    reports = tuple(validate(q, strict=strict) for q in questions)
    invalid = sum(1 for r in reports if not r.valid)
    if invalid:
        logger.info(f"Paper validation: {invalid}/{len(reports)} question(s) have structural errors")
    return PaperValidation(reports=reports)
