"""
Module: importer.transformer

Purpose:
    Builds one canonical Question from one raw authoring question. Parents
    are created before their children so every child identifier extends an
    existing parent identifier. Any failure below the question is re-raised
    with its location at every level:

        Failed to process part 2: Failed to process subpart 1: Answer 3 is not an object

Key Functions:
    - transform(): Raw question dict -> Question
    - normalize_correct_answer(): Legacy ``correct_answer`` -> answer objects
    - build_options(): Raw options -> McqOption tuple with inferred correctness

Dependencies:
    - core.labels, core.models
    - importer.linker, importer.deriver, importer.expectation

Used By:
    - importer.pipeline
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Set, Tuple

from ..core.errors import DerivationFallback, TransformError
from ..core.labels import (
    extract_question_number,
    next_part_label,
    part_identifier,
    question_identifier,
    resolve_part_label,
    resolve_subpart_label,
    subpart_identifier,
)
from ..core.models import (
    AnswerGroup,
    McqOption,
    Part,
    Question,
    QuestionKind,
    Subpart,
    TableTemplate,
)
from ..core.models.answers import MarkValue, coerce_marks
from ..core.models.formats import parse_format, parse_requirement
from .config import ImportConfig
from .deriver import CHOICE_TYPES, ResolvedTags, resolve_tags
from .diagnostics import DiagnosticsCollector
from .expectation import Level, detect_expectation, node_text
from .linker import link_alternatives

logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]")
_OPTION_PREFIX = re.compile(r"^\s*(option|answer)\s+", re.IGNORECASE)


@dataclass(frozen=True)
class _Context:
    """Per-question state shared by every level of one transform call."""
    number: str
    question_id: str
    config: ImportConfig
    diagnostics: Optional[DiagnosticsCollector]

    def location(self, *segments: str) -> str:
        return ", ".join((f"Question {self.number}",) + segments)

    def note(self, location: str, message: str) -> None:
        fallback = DerivationFallback(location=location, message=message)
        logger.debug(f"Derivation: {fallback}")
        if self.diagnostics is not None:
            self.diagnostics.record(fallback, question_number=self.number)


# ─────────────────────────────────────────────────────────────────────────────
# Answers and Options
# ─────────────────────────────────────────────────────────────────────────────

def normalize_correct_answer(value: Any, node_marks: Optional[MarkValue]) -> List[dict]:
    """
    Turn a legacy ``correct_answer`` string or list into answer objects.

    The node's marks are split evenly (rounded, at least 1) across the
    answers, each a standalone alternative.

    Example:
        >>> normalize_correct_answer(["oxygen", "nitrogen"], 4)
        [{'answer': 'oxygen', 'marks': 2, 'alternative_id': 1}, {'answer': 'nitrogen', 'marks': 2, 'alternative_id': 2}]
    """
    if isinstance(value, str):
        texts = [value]
    elif isinstance(value, list):
        texts = [v for v in value if isinstance(v, str)]
    else:
        return []
    texts = [t.strip() for t in texts if t.strip()]
    if not texts:
        return []
    share = max(1, round((node_marks or 0) / len(texts)))
    return [
        {"answer": text, "marks": share, "alternative_id": i}
        for i, text in enumerate(texts, 1)
    ]


def _raw_answers(raw: dict, marks: Optional[MarkValue], question_type: str) -> List[Any]:
    answers = raw.get("correct_answers")
    if answers is not None:
        if not isinstance(answers, list):
            raise TransformError("correct_answers must be an array")
        if answers:
            return answers
    if question_type in CHOICE_TYPES:
        return []
    return normalize_correct_answer(raw.get("correct_answer"), marks)


def _variants(value: Any) -> Set[str]:
    """Comparable spellings of an option label, option text or answer."""
    if value is None or isinstance(value, bool):
        return set()
    text = str(value).strip().lower()
    if not text:
        return set()
    bare = _OPTION_PREFIX.sub("", text)
    return {text, bare, _PUNCTUATION.sub("", bare).strip()} - {""}


def _correct_texts(raw: dict) -> Set[str]:
    found: Set[str] = set()
    answers = raw.get("correct_answers")
    if isinstance(answers, list):
        for answer in answers:
            if isinstance(answer, dict):
                found |= _variants(answer.get("answer"))
    fallback = raw.get("correct_answer")
    for value in fallback if isinstance(fallback, list) else [fallback]:
        found |= _variants(value)
    return found


def build_options(raw: dict, question_type: str) -> Tuple[McqOption, ...]:
    """
    Map raw options onto McqOptions.

    An option's ``is_correct`` flag wins; otherwise correctness is inferred
    by comparing the option's label and text with the correct answers.
    True/false questions without options get True and False.
    """
    raw_options = raw.get("options")
    if not raw_options and question_type == "tf":
        raw_options = [{"label": "True", "text": "True"}, {"label": "False", "text": "False"}]
    if not raw_options:
        return ()
    if not isinstance(raw_options, list):
        raise TransformError("options must be an array")

    correct = _correct_texts(raw)
    options = []
    for i, item in enumerate(raw_options):
        if isinstance(item, str):
            item = {"text": item}
        if not isinstance(item, dict):
            raise TransformError(f"Option {i + 1} is not an object")
        label = str(item.get("label") or item.get("option") or next_part_label(i).upper())
        text = str(item.get("text") or item.get("option_text") or "")
        flag = item.get("is_correct")
        if isinstance(flag, bool):
            is_correct = flag
        else:
            is_correct = bool(correct & (_variants(label) | _variants(text)))
        options.append(McqOption(label=label, text=text, is_correct=is_correct))

    labels = [o.label.lower() for o in options]
    if len(set(labels)) != len(labels):
        raise TransformError(f"Duplicate option labels: {[o.label for o in options]}")
    return tuple(options)


def _table(raw: dict) -> Optional[TableTemplate]:
    data = raw.get("table_template")
    if not data:
        return None
    if not isinstance(data, dict):
        raise TransformError("table_template is not an object")
    try:
        return TableTemplate.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise TransformError(f"Invalid table template: {e}") from e


def _node_type(raw: dict, inherited: str) -> str:
    own = raw.get("type")
    if isinstance(own, str) and own.strip():
        return own.strip().lower()
    return inherited


# ─────────────────────────────────────────────────────────────────────────────
# Node Content
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _Content:
    """Answers, options, table and tags shared by every node level."""
    groups: Tuple[AnswerGroup, ...]
    options: Tuple[McqOption, ...]
    table: Optional[TableTemplate]
    tags: ResolvedTags


def _content(
    raw: dict,
    marks: Optional[MarkValue],
    node_type: str,
    has_direct_answer: bool,
    location: str,
    ctx: _Context,
) -> _Content:
    options = build_options(raw, node_type)
    table = _table(raw)

    # Choice nodes are graded by option; their answers only mark the options
    answers = [] if options else _raw_answers(raw, marks, node_type)
    groups = link_alternatives(
        answers,
        location=location,
        diagnostics=ctx.diagnostics,
        question_number=ctx.number,
        default_marks=ctx.config.default_answer_marks,
    )
    if options and not any(o.is_correct for o in options):
        logger.warning(f"{location}: no option is marked correct")

    tags = resolve_tags(
        groups,
        explicit_format=parse_format(raw.get("answer_format")),
        explicit_requirement=parse_requirement(raw.get("answer_requirement")),
        question_type=node_type,
        text=node_text(raw),
        tabular=table is not None,
        has_direct_answer=has_direct_answer,
    )
    for message in tags.notes:
        ctx.note(location, message)
    return _Content(groups=groups, options=options, table=table, tags=tags)


def _optional_text(raw: dict, key: str) -> Optional[str]:
    value = raw.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _children(raw: dict, key: str) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TransformError(f"{key} must be an array")
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Levels
# ─────────────────────────────────────────────────────────────────────────────

def _transform_subpart(
    raw: Any,
    index: int,
    part_id: str,
    part_location: str,
    inherited_type: str,
    ctx: _Context,
) -> Subpart:
    if not isinstance(raw, dict):
        raise TransformError("Subpart is not an object")

    label = resolve_subpart_label(raw.get("subpart") or raw.get("part"), index)
    sub_id = subpart_identifier(part_id, label)
    location = f"{part_location}, Subpart {index + 1}"

    marks = coerce_marks(raw.get("marks"))
    if marks is None:
        raise TransformError("Subpart is missing marks")

    node_type = _node_type(raw, inherited_type)
    content = _content(raw, marks, node_type, True, location, ctx)
    return Subpart(
        id=sub_id,
        label=label,
        text=node_text(raw),
        marks=marks,
        answer_groups=content.groups,
        answer_format=content.tags.answer_format,
        answer_requirement=content.tags.answer_requirement,
        options=content.options,
        table_template=content.table,
        hint=_optional_text(raw, "hint"),
        explanation=_optional_text(raw, "explanation"),
    )


def _transform_part(raw: Any, index: int, inherited_type: str, ctx: _Context) -> Part:
    if not isinstance(raw, dict):
        raise TransformError("Part is not an object")

    label = resolve_part_label(raw.get("part"), index)
    part_id = part_identifier(ctx.question_id, label)
    location = ctx.location(f"Part {index + 1}")
    node_type = _node_type(raw, inherited_type)

    subparts = []
    for j, raw_sub in enumerate(_children(raw, "subparts")):
        try:
            subparts.append(_transform_subpart(raw_sub, j, part_id, location, node_type, ctx))
        except (TransformError, TypeError, ValueError) as e:
            raise TransformError.wrap(e, f"subpart {j + 1}") from e

    marks = coerce_marks(raw.get("marks"))
    if marks is None:
        if not subparts:
            raise TransformError("Part is missing marks")
        marks = sum(sub.marks for sub in subparts)

    expectation = detect_expectation(raw, level=Level.PART, has_children=bool(subparts))
    content = _content(raw, marks, node_type, expectation.has_direct_answer, location, ctx)
    has_direct = expectation.has_direct_answer or bool(content.groups)

    return Part(
        id=part_id,
        label=label,
        text=node_text(raw),
        marks=marks,
        has_direct_answer=has_direct,
        subparts=tuple(subparts),
        answer_groups=content.groups,
        answer_format=content.tags.answer_format,
        answer_requirement=content.tags.answer_requirement,
        options=content.options,
        table_template=content.table,
        hint=_optional_text(raw, "hint"),
        explanation=_optional_text(raw, "explanation"),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def transform(
    raw: Any,
    index: int,
    *,
    config: Optional[ImportConfig] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> Question:
    """
    Build a canonical Question from one raw question.

    Args:
        raw: Raw question object (ideally already structurally validated)
        index: 0-based position in the paper; number fallback is index + 1
        config: Import settings (defaults to ImportConfig())
        diagnostics: Optional collector for linking and derivation notes

    Returns:
        Question with parts, subparts, answer groups and derived tags

    Raises:
        TransformError: With path context for failures below the question

    Example:
        >>> q = transform({"question_number": "3", "marks": 1,
        ...                "question_description": "Name the gas.",
        ...                "correct_answers": [{"answer": "oxygen"}]}, 0)
        >>> q.id, q.answer_format.value
        ('q_3', 'single_word')
    """
    config = config or ImportConfig()
    if not isinstance(raw, dict):
        raise TransformError("Question is not an object")

    number = extract_question_number(raw.get("question_number")) or str(index + 1)
    raw_parts = _children(raw, "parts") or _children(raw, "subparts")
    declared_type = _node_type(raw, "complex" if raw_parts else "descriptive")
    kind = QuestionKind.COMPLEX if declared_type == "complex" or raw_parts else QuestionKind.SIMPLE
    if kind == QuestionKind.COMPLEX and not raw_parts:
        raise TransformError("Complex question has no parts")

    ctx = _Context(
        number=number,
        question_id=question_identifier(number),
        config=config,
        diagnostics=diagnostics if config.run_diagnostics else None,
    )
    child_type = "descriptive" if declared_type == "complex" else declared_type

    parts: List[Part] = []
    for i, raw_part in enumerate(raw_parts):
        try:
            parts.append(_transform_part(raw_part, i, child_type, ctx))
        except (TransformError, TypeError, ValueError) as e:
            raise TransformError.wrap(e, f"part {i + 1}") from e

    marks = coerce_marks(raw.get("marks", raw.get("total_marks")))
    if marks is None:
        marks = coerce_marks(raw.get("total_marks"))
    if marks is None:
        if not parts:
            raise TransformError("Question is missing marks")
        marks = sum(part.marks for part in parts)

    # A complex stem only answers through data it carries itself
    expectation = detect_expectation(raw, level=Level.QUESTION, has_children=bool(parts))
    expects_answer = expectation.has_direct_answer and kind == QuestionKind.SIMPLE
    content = _content(raw, marks, declared_type, expects_answer, ctx.location(), ctx)

    has_own_answer = bool(content.groups or content.options or content.table)
    if not has_own_answer and expects_answer:
        raise TransformError("Question has no correct answers, options or table")

    try:
        question = Question(
            id=ctx.question_id,
            number=number,
            kind=kind,
            text=node_text(raw),
            marks=marks,
            question_type=declared_type,
            parts=tuple(parts),
            answer_groups=content.groups,
            answer_format=content.tags.answer_format,
            answer_requirement=content.tags.answer_requirement,
            is_contextual_only=not has_own_answer,
            options=content.options,
            table_template=content.table,
            hint=_optional_text(raw, "hint"),
            explanation=_optional_text(raw, "explanation"),
            topic=_optional_text(raw, "topic"),
            subtopic=_optional_text(raw, "subtopic"),
            difficulty=_optional_text(raw, "difficulty"),
        )
    except ValueError as e:
        raise TransformError(str(e)) from e

    logger.debug(
        f"Transformed question {number}: {kind.value}, {len(parts)} part(s), "
        f"{question.answer_marks} answer mark(s)"
    )
    return question
