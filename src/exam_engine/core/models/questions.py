"""
Module: questions

Purpose:
    Provides the Question dataclass - the canonical output of the importer
    and the input of the grading engine. A question is either simple (its
    own answers) or complex (a tree of parts and subparts).

Key Functions:
    - Question.answer_marks: Cached property, calculated from answers
    - Question.iter_nodes(): Question, parts, and subparts in tree order
    - Question.find(node_id): Look up any node by identifier
    - Question.to_dict() / Question.from_dict(): Serialization

Dependencies:
    - dataclasses (std)
    - functools (std)
    - .parts, .answers, .formats, .tables

Used By:
    - importer.transformer
    - grading.engine
    - core.utils.serialization
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from .answers import AnswerGroup, MarkValue, McqOption, check_marks, groups_total_marks
from .formats import AnswerFormat, AnswerRequirement
from .parts import Part, Subpart
from .tables import TableTemplate

Node = Union["Question", Part, Subpart]


class QuestionKind(str, Enum):
    """Top-level shape of a question."""
    SIMPLE = "simple"    # Answers directly on the question
    COMPLEX = "complex"  # Answers live on parts/subparts

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Question:
    """
    Canonical question (immutable).

    Attributes:
        id: Stable identifier ``q_{number}``
        number: Source question number as a string
        kind: SIMPLE or COMPLEX
        text: Question stem
        marks: Marks stated by the source
        question_type: Source type tag (mcq, tf, descriptive, calculation, ...)
        parts: Parts of a complex question
        answer_groups: Answers of a simple question
        answer_format / answer_requirement: Derived or explicit tags
        is_contextual_only: Stem carries no answer of its own
        options: Choice options for mcq/tf questions
        table_template: Table to complete, if any
        hint / explanation: Optional learner-facing text
        topic / subtopic / difficulty: Classification passed through

    Invariants:
        - COMPLEX questions have at least one part
        - SIMPLE questions have answers, options, a table, or are contextual-only
        - Part ids extend the question id and part labels are unique

    Example:
        >>> from .answers import AnswerAlternative, AnswerGroup, Cardinality
        >>> group = AnswerGroup(Cardinality.STANDALONE, (AnswerAlternative(1, "Paris", 1),))
        >>> q = Question(id="q_1", number="1", kind=QuestionKind.SIMPLE,
        ...              text="Capital of France?", marks=1, answer_groups=(group,))
        >>> q.answer_marks
        1
    """

    id: str
    number: str
    kind: QuestionKind
    text: str
    marks: MarkValue
    question_type: str = "descriptive"
    parts: Tuple[Part, ...] = ()
    answer_groups: Tuple[AnswerGroup, ...] = ()
    answer_format: Optional[AnswerFormat] = None
    answer_requirement: Optional[AnswerRequirement] = None
    is_contextual_only: bool = False
    options: Tuple[McqOption, ...] = ()
    table_template: Optional[TableTemplate] = None
    hint: Optional[str] = None
    explanation: Optional[str] = None
    topic: Optional[str] = None
    subtopic: Optional[str] = None
    difficulty: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate question on construction."""
        if not self.id.startswith("q_"):
            raise ValueError(f"Question id must start with 'q_': {self.id!r}")
        check_marks(self.marks, f"Question {self.number}")

        if self.kind == QuestionKind.COMPLEX:
            if not self.parts:
                raise ValueError(f"Complex question {self.number} must have at least one part")
        else:
            if self.parts:
                raise ValueError(f"Simple question {self.number} cannot have parts")
            if not (
                self.answer_groups
                or self.options
                or self.table_template is not None
                or self.is_contextual_only
            ):
                raise ValueError(
                    f"Simple question {self.number} has no answers and is not contextual-only"
                )

        if self.is_contextual_only and self.answer_groups:
            raise ValueError(f"Question {self.number} is contextual-only but carries answer groups")

        labels = set()
        for part in self.parts:
            if not part.id.startswith(f"{self.id}-"):
                raise ValueError(f"Part {part.id!r} does not belong to question {self.id!r}")
            if part.label in labels:
                raise ValueError(f"Question {self.number} has duplicate part label {part.label!r}")
            labels.add(part.label)

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @cached_property
    def answer_marks(self) -> MarkValue:
        """
        Marks available from canonical answers across the whole tree.

        Differs from ``marks`` when the source total disagrees with its
        answers; grading always uses this value.
        """
        table = self.table_template.total_marks if self.table_template else 0
        own = groups_total_marks(self.answer_groups) + table
        return own + sum(part.answer_marks for part in self.parts)

    @cached_property
    def all_nodes(self) -> list:
        return list(self.iter_nodes())

    @property
    def is_choice(self) -> bool:
        return bool(self.options)

    # ─────────────────────────────────────────────────────────────────────────
    # Iteration / Query
    # ─────────────────────────────────────────────────────────────────────────

    def iter_nodes(self) -> Iterator[Node]:
        """The question, then each part followed by its subparts."""
        yield self
        for part in self.parts:
            yield from part.iter_all()

    def find(self, node_id: str) -> Optional[Node]:
        """
        Find a node by identifier.

        Args:
            node_id: Identifier like "q_1", "q_1-a" or "q_1-a-ii"

        Returns:
            Matching node or None
        """
        for node in self.all_nodes:
            if node.id == node_id:
                return node
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """
        Serialize to dictionary for JSON storage.

        Note: answer_marks is NOT stored.
        """
        d: Dict[str, Any] = {
            "id": self.id,
            "number": self.number,
            "kind": str(self.kind),
            "question_type": self.question_type,
            "text": self.text,
            "marks": self.marks,
            "is_contextual_only": self.is_contextual_only,
        }
        if self.parts:
            d["parts"] = [part.to_dict() for part in self.parts]
        if self.answer_groups:
            d["answer_groups"] = [g.to_dict() for g in self.answer_groups]
        if self.answer_format is not None:
            d["answer_format"] = str(self.answer_format)
        if self.answer_requirement is not None:
            d["answer_requirement"] = str(self.answer_requirement)
        if self.options:
            d["options"] = [o.to_dict() for o in self.options]
        if self.table_template is not None:
            d["table_template"] = self.table_template.to_dict()
        for key in ("hint", "explanation", "topic", "subtopic", "difficulty"):
            value = getattr(self, key)
            if value:
                d[key] = value
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        """Deserialize from dictionary."""
        fmt = data.get("answer_format")
        req = data.get("answer_requirement")
        table = data.get("table_template")
        return cls(
            id=data["id"],
            number=str(data["number"]),
            kind=QuestionKind(data["kind"]),
            text=data.get("text", ""),
            marks=data["marks"],
            question_type=data.get("question_type", "descriptive"),
            parts=tuple(Part.from_dict(p) for p in data.get("parts", [])),
            answer_groups=tuple(AnswerGroup.from_dict(g) for g in data.get("answer_groups", [])),
            answer_format=AnswerFormat(fmt) if fmt else None,
            answer_requirement=AnswerRequirement(req) if req else None,
            is_contextual_only=data.get("is_contextual_only", False),
            options=tuple(McqOption.from_dict(o) for o in data.get("options", [])),
            table_template=TableTemplate.from_dict(table) if table else None,
            hint=data.get("hint"),
            explanation=data.get("explanation"),
            topic=data.get("topic"),
            subtopic=data.get("subtopic"),
            difficulty=data.get("difficulty"),
        )

    def __repr__(self) -> str:
        return (
            f"Question({self.id!r}, kind={self.kind.value}, "
            f"marks={self.marks}, parts={len(self.parts)})"
        )
