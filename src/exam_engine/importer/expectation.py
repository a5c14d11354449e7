"""
Module: importer.expectation

Purpose:
    Decides whether a question, part or subpart expects a direct answer or
    only sets context for its children. Data always wins over text: any
    answer present means an answer is expected. Text analysis is only
    consulted when the data is silent.

Key Functions:
    - detect_expectation(): Raw node -> AnswerExpectation
    - contextual_score() / question_score(): Text heuristics

Used By:
    - importer.transformer
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..core.models.formats import parse_format


class Level(str, Enum):
    QUESTION = "question"
    PART = "part"
    SUBPART = "subpart"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AnswerExpectation:
    """Whether a node expects an answer, and why."""
    has_direct_answer: bool
    confidence: str
    reason: str

    @property
    def is_contextual_only(self) -> bool:
        return not self.has_direct_answer


# Phrases that introduce material rather than ask for something
CONTEXTUAL_PATTERNS = [
    re.compile(r"^[A-Z][^.!?]*\.(?: [A-Z][^.!?]*\.)*$", re.IGNORECASE),
    re.compile(r"is (an?|the)", re.IGNORECASE),
    re.compile(r"are (a|the)", re.IGNORECASE),
    re.compile(r"shows?", re.IGNORECASE),
    re.compile(r"fig(?:ure)?\s*\d+\.\d+", re.IGNORECASE),
    re.compile(r"table\s*\d+\.\d+", re.IGNORECASE),
    re.compile(r"diagram", re.IGNORECASE),
    re.compile(r"^(here|this|these|the following)", re.IGNORECASE),
    re.compile(r"^(consider|observe|look at)", re.IGNORECASE),
    re.compile(r"as shown in", re.IGNORECASE),
    re.compile(r"is a(n)? (type of|kind of|example of)", re.IGNORECASE),
    re.compile(r"can be (produced|found|made|obtained)", re.IGNORECASE),
    re.compile(r"was discovered (in|by)", re.IGNORECASE),
    re.compile(r"(researchers|scientists|biologists?) (in|at|measured|studied)", re.IGNORECASE),
    re.compile(r"(are|is) caused by", re.IGNORECASE),
    re.compile(r"(performed|conducted) an experiment", re.IGNORECASE),
    re.compile(r"(found|located) in the", re.IGNORECASE),
]

# Phrases that ask for an answer
QUESTION_PATTERNS = [
    re.compile(r"\?$"),
    re.compile(r"^(what|when|where|why|how|which|who)", re.IGNORECASE),
    re.compile(r"^(name|state|describe|explain|calculate|define|suggest|give|identify)", re.IGNORECASE),
    re.compile(r"^(compare|contrast|discuss|evaluate|analyse|analyze)", re.IGNORECASE),
    re.compile(r"complete (table|the|fig)", re.IGNORECASE),
    re.compile(r"(describe|explain|state|name|give|suggest|calculate).+\.", re.IGNORECASE),
    re.compile(r"use (the )?data (in|from)", re.IGNORECASE),
    re.compile(r"support your answer", re.IGNORECASE),
    re.compile(r"show (your )?working", re.IGNORECASE),
]

_FIGURE_REFERENCE = re.compile(r"fig(?:ure)?\s*\d|table\s*\d|diagram", re.IGNORECASE)
_DECLARATIVE = re.compile(r"^[A-Z][^.]*\.$")
_IMPERATIVE = re.compile(r"^(calculate|explain|describe|state|name|define|suggest|identify|give|list)", re.IGNORECASE)
_COMPLETE = re.compile(r"complete|fill in", re.IGNORECASE)


def contextual_score(text: str) -> float:
    score = float(sum(1 for p in CONTEXTUAL_PATTERNS if p.search(text)))
    if len(text) < 50 and "?" not in text:
        score += 0.5
    if _FIGURE_REFERENCE.search(text):
        score += 1
    if "?" not in text and _DECLARATIVE.match(text.strip()):
        score += 0.5
    return score


def question_score(text: str) -> float:
    score = float(sum(1 for p in QUESTION_PATTERNS if p.search(text)))
    if "?" in text:
        score += 2
    if _IMPERATIVE.match(text):
        score += 1.5
    if _COMPLETE.search(text):
        score += 1
    return score


def _has_answer_data(raw: dict) -> bool:
    answers = raw.get("correct_answers")
    if isinstance(answers, list) and any(
        isinstance(a, dict) and a.get("answer") is not None for a in answers
    ):
        return True
    fallback = raw.get("correct_answer")
    if isinstance(fallback, str):
        return bool(fallback.strip())
    if isinstance(fallback, list):
        return any(isinstance(a, str) and a.strip() for a in fallback)
    return False


def node_text(raw: dict) -> str:
    for key in ("question_description", "question_text", "text", "description"):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def detect_expectation(
    raw: dict,
    *,
    level: Level = Level.QUESTION,
    has_children: bool = False,
) -> AnswerExpectation:
    """
    Decide whether a raw node expects a direct answer.

    Rules, first match wins:
        1. Subparts always expect an answer
        2. Answer data present -> expected
        3. Choice options or a table template -> expected
        4. An explicit has_direct_answer / is_contextual_only flag
        5. An explicit answer_format -> expected
        6. No text -> contextual only
        7. Children but no answers -> question wording decides
        8. Leaf with text -> expected, confidence from text scoring

    Example:
        >>> detect_expectation({"question_description": "Fig. 1.1 shows a cell."},
        ...                    level=Level.PART, has_children=True).has_direct_answer
        False
    """
    if level == Level.SUBPART:
        return AnswerExpectation(True, "high", "Subparts always require direct answers")

    if _has_answer_data(raw):
        return AnswerExpectation(True, "high", "Has correct answers")

    if raw.get("options") or raw.get("table_template"):
        return AnswerExpectation(True, "high", "Has options or a table template")

    explicit = _explicit_flag(raw)
    if explicit is not None:
        return AnswerExpectation(explicit, "high", "Explicit answer flag in source")

    if parse_format(raw.get("answer_format")) is not None:
        return AnswerExpectation(True, "high", "Has answer_format specified")

    text = node_text(raw)
    if not text:
        return AnswerExpectation(False, "high", "No question text provided")

    if has_children:
        if any(p.search(text) for p in QUESTION_PATTERNS):
            return AnswerExpectation(
                True, "medium", "Question wording present, answer assumed despite no answers"
            )
        return AnswerExpectation(False, "high", "Has children, no answers and no question wording")

    # A leaf with text is always answerable; the scores only grade confidence
    ctx, qst = contextual_score(text), question_score(text)
    confidence = "high" if qst > 2 and qst >= ctx else "medium"
    return AnswerExpectation(True, confidence, f"Leaf node with text, wording scores {qst} vs {ctx}")


def _explicit_flag(raw: dict) -> Optional[bool]:
    has_direct: Any = raw.get("has_direct_answer")
    if isinstance(has_direct, bool):
        return has_direct
    contextual: Any = raw.get("is_contextual_only")
    if isinstance(contextual, bool):
        return not contextual
    return None
