"""
Module: parts

Purpose:
    Provides the Part and Subpart dataclasses - the immutable tree nodes
    below a complex question. A Part is a lettered item "(a)"; a Subpart is
    a roman item "(i)" beneath it. Either may carry its own answers.

Key Functions:
    - Part.iter_all(): Iterate over the part and its subparts
    - Part.find(node_id): Find a part or subpart by identifier
    - Part.answer_marks / Subpart.answer_marks: Calculated from answers
    - to_dict() / from_dict(): Serialization

Dependencies:
    - dataclasses (std)
    - .answers, .formats, .tables

Used By:
    - core.models.questions.Question
    - importer.transformer
    - grading.engine

A part whose text only introduces its subparts has
``has_direct_answer=False`` and no answer groups of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from .answers import AnswerGroup, MarkValue, McqOption, check_marks, groups_total_marks
from .formats import AnswerFormat, AnswerRequirement
from .tables import TableTemplate


def _optional_fields_to_dict(node: Union[Part, Subpart], d: Dict[str, Any]) -> Dict[str, Any]:
    """Append the answer-related fields shared by Part and Subpart."""
    if node.answer_groups:
        d["answer_groups"] = [g.to_dict() for g in node.answer_groups]
    if node.answer_format is not None:
        d["answer_format"] = str(node.answer_format)
    if node.answer_requirement is not None:
        d["answer_requirement"] = str(node.answer_requirement)
    if node.options:
        d["options"] = [o.to_dict() for o in node.options]
    if node.table_template is not None:
        d["table_template"] = node.table_template.to_dict()
    if node.hint:
        d["hint"] = node.hint
    if node.explanation:
        d["explanation"] = node.explanation
    return d


def _optional_fields_from_dict(data: dict) -> Dict[str, Any]:
    fmt = data.get("answer_format")
    req = data.get("answer_requirement")
    table = data.get("table_template")
    return {
        "answer_groups": tuple(AnswerGroup.from_dict(g) for g in data.get("answer_groups", [])),
        "answer_format": AnswerFormat(fmt) if fmt else None,
        "answer_requirement": AnswerRequirement(req) if req else None,
        "options": tuple(McqOption.from_dict(o) for o in data.get("options", [])),
        "table_template": TableTemplate.from_dict(table) if table else None,
        "hint": data.get("hint"),
        "explanation": data.get("explanation"),
    }


# ─────────────────────────────────────────────────────────────────────────────
# Subpart
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Subpart:
    """
    Roman-numeral item beneath a part.

    Attributes:
        id: Stable identifier ``{partId}-{romanLabel}``
        label: Roman label such as "ii"
        text: Subpart text
        marks: Marks stated by the source
        answer_groups: Canonical answers
        answer_format / answer_requirement: Derived or explicit tags
        options: Choice options, if the subpart is multiple choice
        table_template: Table to complete, if any
        hint / explanation: Optional learner-facing text
    """

    id: str
    label: str
    text: str
    marks: MarkValue
    answer_groups: Tuple[AnswerGroup, ...] = ()
    answer_format: Optional[AnswerFormat] = None
    answer_requirement: Optional[AnswerRequirement] = None
    options: Tuple[McqOption, ...] = ()
    table_template: Optional[TableTemplate] = None
    hint: Optional[str] = None
    explanation: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.label:
            raise ValueError(f"Subpart {self.id!r} has an empty label")
        if not self.id.endswith(f"-{self.label}"):
            raise ValueError(f"Subpart id {self.id!r} does not end with its label {self.label!r}")
        check_marks(self.marks, f"Subpart {self.id}")

    @property
    def answer_marks(self) -> MarkValue:
        """Marks available from answer groups and the table template."""
        table = self.table_template.total_marks if self.table_template else 0
        return groups_total_marks(self.answer_groups) + table

    def to_dict(self) -> dict:
        d = {"id": self.id, "label": self.label, "text": self.text, "marks": self.marks}
        return _optional_fields_to_dict(self, d)

    @classmethod
    def from_dict(cls, data: dict) -> Subpart:
        return cls(
            id=data["id"],
            label=data["label"],
            text=data.get("text", ""),
            marks=data["marks"],
            **_optional_fields_from_dict(data),
        )

    def __repr__(self) -> str:
        return f"Subpart({self.id!r}, marks={self.marks}, groups={len(self.answer_groups)})"


# ─────────────────────────────────────────────────────────────────────────────
# Part
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Part:
    """
    Lettered item of a complex question (immutable).

    The tree structure is:
        Question ("q_1")
        ├── Part ("q_1-a")
        │   ├── Subpart ("q_1-a-i")
        │   └── Subpart ("q_1-a-ii")
        └── Part ("q_1-b")

    Attributes:
        id: Stable identifier ``{questionId}-{label}``
        label: Letter label such as "b"
        text: Part text
        marks: Marks stated by the source
        has_direct_answer: False when the text only introduces subparts
        subparts: Child subparts in source order
        answer_groups: Canonical answers for the part itself

    Invariants:
        - has_direct_answer=False implies no answer groups
        - Subpart ids extend this part's id
        - Subpart labels are unique

    Example:
        >>> sub = Subpart("q_1-a-i", "i", "Name the gas.", 1)
        >>> part = Part("q_1-a", "a", "A gas is collected.", 1,
        ...             has_direct_answer=False, subparts=(sub,))
        >>> [node.id for node in part.iter_all()]
        ['q_1-a', 'q_1-a-i']
    """

    id: str
    label: str
    text: str
    marks: MarkValue
    has_direct_answer: bool = True
    subparts: Tuple[Subpart, ...] = ()
    answer_groups: Tuple[AnswerGroup, ...] = ()
    answer_format: Optional[AnswerFormat] = None
    answer_requirement: Optional[AnswerRequirement] = None
    options: Tuple[McqOption, ...] = ()
    table_template: Optional[TableTemplate] = None
    hint: Optional[str] = None
    explanation: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the part subtree on construction."""
        if not self.label:
            raise ValueError(f"Part {self.id!r} has an empty label")
        if not self.id.endswith(f"-{self.label}"):
            raise ValueError(f"Part id {self.id!r} does not end with its label {self.label!r}")
        check_marks(self.marks, f"Part {self.id}")

        if not self.has_direct_answer and self.answer_groups:
            raise ValueError(f"Part {self.id} has no direct answer but carries answer groups")

        labels = set()
        for sub in self.subparts:
            if not sub.id.startswith(f"{self.id}-"):
                raise ValueError(f"Subpart {sub.id!r} does not belong to part {self.id!r}")
            if sub.label in labels:
                raise ValueError(f"Part {self.id} has duplicate subpart label {sub.label!r}")
            labels.add(sub.label)

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_contextual_only(self) -> bool:
        return not self.has_direct_answer

    @property
    def answer_marks(self) -> MarkValue:
        """Marks available from this part's own answers plus its subparts."""
        table = self.table_template.total_marks if self.table_template else 0
        own = groups_total_marks(self.answer_groups) + table
        return own + sum(sub.answer_marks for sub in self.subparts)

    # ─────────────────────────────────────────────────────────────────────────
    # Iteration / Query
    # ─────────────────────────────────────────────────────────────────────────

    def iter_all(self) -> Iterator[Union[Part, Subpart]]:
        """This part, then its subparts in order."""
        yield self
        yield from self.subparts

    def find(self, node_id: str) -> Optional[Union[Part, Subpart]]:
        for node in self.iter_all():
            if node.id == node_id:
                return node
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "text": self.text,
            "marks": self.marks,
            "has_direct_answer": self.has_direct_answer,
        }
        if self.subparts:
            d["subparts"] = [sub.to_dict() for sub in self.subparts]
        return _optional_fields_to_dict(self, d)

    @classmethod
    def from_dict(cls, data: dict) -> Part:
        return cls(
            id=data["id"],
            label=data["label"],
            text=data.get("text", ""),
            marks=data["marks"],
            has_direct_answer=data.get("has_direct_answer", True),
            subparts=tuple(Subpart.from_dict(s) for s in data.get("subparts", [])),
            **_optional_fields_from_dict(data),
        )

    def __repr__(self) -> str:
        sub_str = f", subparts={len(self.subparts)}" if self.subparts else ""
        return f"Part({self.id!r}, marks={self.marks}{sub_str})"
