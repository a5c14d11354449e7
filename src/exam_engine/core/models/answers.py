"""
Module: answers

Purpose:
    Canonical answer types. An AnswerGroup bundles one or more
    AnswerAlternative values under a single cardinality, which is the only
    place grading reads "how many of these are needed" from.

Key Classes:
    - Cardinality: standalone / one_required / all_required / any_of
    - AnswerAlternative: One acceptable answer with its marks and flags
    - AnswerGroup: Alternatives plus cardinality, with calculated total_marks
    - AnswerContext: Optional label/type/value attached to an answer
    - McqOption: One option of a multiple-choice or true/false question

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.parts / core.models.questions
    - importer.linker (construction)
    - grading.text (matching)

Group membership is explicit: each alternative lists its siblings in
``linked_alternatives`` and the group holds the alternatives themselves, so
the relation is symmetric by construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

MarkValue = Union[int, float]


class Cardinality(str, Enum):
    """How many alternatives of a group must be matched."""
    STANDALONE = "standalone"      # Single alternative, graded on its own
    ONE_REQUIRED = "one_required"  # Any one of the group earns the marks
    ALL_REQUIRED = "all_required"  # Every alternative is expected
    ANY_OF = "any_of"              # Any K of N, K in AnswerGroup.required_count

    def __str__(self) -> str:
        return self.value


def check_marks(value: Any, what: str) -> None:
    """Raise ValueError unless value is a non-negative number (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{what} marks must be a number, got {value!r}")
    if value < 0:
        raise ValueError(f"{what} marks cannot be negative: {value}")


def coerce_marks(value: Any) -> Optional[MarkValue]:
    """
    Read a marks value from source JSON.

    Accepts numbers and numeric strings ("3", "1.5"); integral floats become
    ints. Returns None for anything else, including booleans and negatives.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or value != value or value < 0:
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Alternatives
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class AnswerContext:
    """Free-form context attached to an answer, e.g. a row label in a table."""
    label: Optional[str] = None
    type: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in (("label", self.label), ("type", self.type), ("value", self.value)) if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AnswerContext:
        return cls(label=data.get("label"), type=data.get("type"), value=data.get("value"))


@dataclass(frozen=True, slots=True)
class AnswerAlternative:
    """
    One acceptable answer.

    Attributes:
        index: 1-based position inside the question's answer list
        text: The literal answer
        marks: Marks awarded when this alternative is matched
        working: Optional marking guidance (not graded)
        accepts_equivalent_phrasing: Variations and punctuation-free matches count
        accepts_reverse_argument: The reversed word order also counts
        error_carried_forward: Marker may credit follow-through (informational)
        unit: Expected unit for numeric answers
        variations: Other literal strings accepted with equivalent phrasing
        linked_alternatives: Indices of the other members of the group
        marking_criteria: Free-text criteria for the marker
        context: Optional AnswerContext

    Example:
        >>> alt = AnswerAlternative(index=1, text="purple", marks=1)
        >>> alt.acceptable_texts
        ('purple',)
    """

    index: int
    text: str
    marks: MarkValue = 1
    working: Optional[str] = None
    accepts_equivalent_phrasing: bool = False
    accepts_reverse_argument: bool = False
    error_carried_forward: bool = False
    unit: Optional[str] = None
    variations: Tuple[str, ...] = ()
    linked_alternatives: Tuple[int, ...] = ()
    marking_criteria: Optional[str] = None
    context: Optional[AnswerContext] = None

    def __post_init__(self) -> None:
        if self.index < 1:
            raise ValueError(f"Alternative index must be 1-based, got {self.index}")
        if not self.text or not self.text.strip():
            raise ValueError(f"Alternative {self.index} has empty answer text")
        check_marks(self.marks, f"Alternative {self.index}")
        if self.index in self.linked_alternatives:
            raise ValueError(f"Alternative {self.index} cannot link to itself")

    @property
    def acceptable_texts(self) -> Tuple[str, ...]:
        """Literal text, plus variations when equivalent phrasing is allowed."""
        if self.accepts_equivalent_phrasing:
            return (self.text,) + tuple(v for v in self.variations if v and v.strip())
        return (self.text,)

    def to_dict(self) -> dict:
        d: Dict[str, Any] = {
            "index": self.index,
            "text": self.text,
            "marks": self.marks,
        }
        if self.working:
            d["working"] = self.working
        if self.accepts_equivalent_phrasing:
            d["accepts_equivalent_phrasing"] = True
        if self.accepts_reverse_argument:
            d["accepts_reverse_argument"] = True
        if self.error_carried_forward:
            d["error_carried_forward"] = True
        if self.unit:
            d["unit"] = self.unit
        if self.variations:
            d["variations"] = list(self.variations)
        if self.linked_alternatives:
            d["linked_alternatives"] = list(self.linked_alternatives)
        if self.marking_criteria:
            d["marking_criteria"] = self.marking_criteria
        if self.context is not None:
            d["context"] = self.context.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict) -> AnswerAlternative:
        context = data.get("context")
        return cls(
            index=data["index"],
            text=data["text"],
            marks=data.get("marks", 1),
            working=data.get("working"),
            accepts_equivalent_phrasing=data.get("accepts_equivalent_phrasing", False),
            accepts_reverse_argument=data.get("accepts_reverse_argument", False),
            error_carried_forward=data.get("error_carried_forward", False),
            unit=data.get("unit"),
            variations=tuple(data.get("variations", [])),
            linked_alternatives=tuple(data.get("linked_alternatives", [])),
            marking_criteria=data.get("marking_criteria"),
            context=AnswerContext.from_dict(context) if context else None,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Groups
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class AnswerGroup:
    """
    Alternatives graded together under one cardinality.

    Attributes:
        cardinality: How many alternatives must be matched
        alternatives: Ordered members (by index), at least one
        required_count: K for ANY_OF groups, 1 otherwise
        case_sensitive: Matching within this group respects case

    Invariants:
        - At least one alternative, indices unique
        - STANDALONE groups hold exactly one alternative
        - 1 <= required_count <= len(alternatives) for ANY_OF
        - Every member's linked_alternatives names exactly the other members

    Example:
        >>> a = AnswerAlternative(1, "purple", 1, linked_alternatives=(2,))
        >>> b = AnswerAlternative(2, "violet", 2, linked_alternatives=(1,))
        >>> AnswerGroup(Cardinality.ONE_REQUIRED, (a, b)).total_marks
        2
    """

    cardinality: Cardinality
    alternatives: Tuple[AnswerAlternative, ...]
    required_count: int = 1
    case_sensitive: bool = False

    def __post_init__(self) -> None:
        if not self.alternatives:
            raise ValueError("Answer group must contain at least one alternative")

        indices = [alt.index for alt in self.alternatives]
        if len(set(indices)) != len(indices):
            raise ValueError(f"Answer group has duplicate alternative indices: {indices}")

        if self.cardinality == Cardinality.STANDALONE and len(self.alternatives) != 1:
            raise ValueError(
                f"Standalone group must hold exactly one alternative, got {len(self.alternatives)}"
            )

        if self.cardinality == Cardinality.ANY_OF:
            if not 1 <= self.required_count <= len(self.alternatives):
                raise ValueError(
                    f"required_count {self.required_count} out of range for "
                    f"{len(self.alternatives)} alternatives"
                )
        elif self.required_count != 1:
            raise ValueError(f"required_count only applies to any_of groups ({self.cardinality})")

        members = set(indices)
        for alt in self.alternatives:
            if set(alt.linked_alternatives) != members - {alt.index}:
                raise ValueError(
                    f"Alternative {alt.index} links {list(alt.linked_alternatives)} "
                    f"but the group holds {sorted(members - {alt.index})}"
                )

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def indices(self) -> Tuple[int, ...]:
        return tuple(alt.index for alt in self.alternatives)

    @property
    def total_marks(self) -> MarkValue:
        """
        Maximum marks this group can earn.

        Calculated, never stored: sum for standalone/all_required, the best
        single alternative for one_required, the K best for any_of.
        """
        marks = [alt.marks for alt in self.alternatives]
        if self.cardinality == Cardinality.ONE_REQUIRED:
            return max(marks)
        if self.cardinality == Cardinality.ANY_OF:
            return sum(sorted(marks, reverse=True)[: self.required_count])
        return sum(marks)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: Dict[str, Any] = {
            "cardinality": str(self.cardinality),
            "alternatives": [alt.to_dict() for alt in self.alternatives],
        }
        if self.cardinality == Cardinality.ANY_OF:
            d["required_count"] = self.required_count
        if self.case_sensitive:
            d["case_sensitive"] = True
        return d

    @classmethod
    def from_dict(cls, data: dict) -> AnswerGroup:
        return cls(
            cardinality=Cardinality(data["cardinality"]),
            alternatives=tuple(AnswerAlternative.from_dict(a) for a in data["alternatives"]),
            required_count=data.get("required_count", 1),
            case_sensitive=data.get("case_sensitive", False),
        )

    def __repr__(self) -> str:
        return f"AnswerGroup({self.cardinality.value}, indices={list(self.indices)})"


def groups_total_marks(groups: Tuple[AnswerGroup, ...]) -> MarkValue:
    """Sum of total_marks across groups (0 for none)."""
    return sum(group.total_marks for group in groups)


# ─────────────────────────────────────────────────────────────────────────────
# Choice Options
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class McqOption:
    """One option of a multiple-choice or true/false question."""
    label: str
    text: str
    is_correct: bool = False

    def __post_init__(self) -> None:
        if not self.label or not self.label.strip():
            raise ValueError("Option label cannot be empty")

    def to_dict(self) -> dict:
        return {"label": self.label, "text": self.text, "is_correct": self.is_correct}

    @classmethod
    def from_dict(cls, data: dict) -> McqOption:
        return cls(
            label=data["label"],
            text=data.get("text", ""),
            is_correct=data.get("is_correct", False),
        )
