"""
Module: importer.deriver

Purpose:
    Derives answer_format and answer_requirement for a node from its answer
    groups, its type and its wording, and checks format/requirement pairs
    against a compatibility matrix. When nothing gives a signal the result
    is the conservative default, flagged as a fallback.

Key Functions:
    - derive_format(): Groups + wording -> FormatDerivation
    - derive_requirement(): Groups + format -> RequirementDerivation
    - check_compatibility(): (format, requirement) -> Compatibility
    - resolve_tags(): Explicit values first, derivation for the rest

Used By:
    - importer.transformer
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence

from ..core.models.answers import AnswerGroup, Cardinality
from ..core.models.formats import AnswerFormat, AnswerRequirement

F = AnswerFormat
R = AnswerRequirement

CHOICE_TYPES = frozenset({"mcq", "tf"})


@dataclass(frozen=True)
class FormatDerivation:
    value: AnswerFormat
    fallback: bool = False
    reason: str = ""


@dataclass(frozen=True)
class RequirementDerivation:
    value: AnswerRequirement
    fallback: bool = False
    reason: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Compatibility Matrix
# ─────────────────────────────────────────────────────────────────────────────

class Compatibility(str, Enum):
    COMPATIBLE = "compatible"
    SUBOPTIMAL = "suboptimal"
    INCOMPATIBLE = "incompatible"

    def __str__(self) -> str:
        return self.value


def _reqs(*values: AnswerRequirement) -> FrozenSet[AnswerRequirement]:
    return frozenset(values)


_ANY_N = (R.ANY_2_FROM, R.ANY_3_FROM)
_SEVERAL = (R.BOTH_REQUIRED, R.ANY_2_FROM, R.ANY_3_FROM, R.ALL_REQUIRED)

# Formats marked by hand; only not_applicable fits them
HAND_MARKED_FORMATS = frozenset({
    F.STRUCTURAL_DIAGRAM, F.DIAGRAM, F.GRAPH, F.AUDIO, F.FILE_UPLOAD, F.NOT_APPLICABLE,
})

# format -> suboptimal / incompatible requirement sets; anything unlisted is compatible
COMPATIBILITY_MATRIX: Dict[AnswerFormat, Dict[str, FrozenSet[AnswerRequirement]]] = {
    F.SINGLE_WORD: {
        "suboptimal": _reqs(R.ALTERNATIVE_METHODS),
        "incompatible": _reqs(*_SEVERAL),
    },
    F.SINGLE_LINE: {
        "suboptimal": _reqs(R.BOTH_REQUIRED),
        "incompatible": _reqs(*_ANY_N, R.ALL_REQUIRED),
    },
    F.TWO_ITEMS: {
        "suboptimal": _reqs(R.ACCEPTABLE_VARIATIONS),
        "incompatible": _reqs(R.SINGLE_CHOICE, R.ANY_ONE_FROM, R.NOT_APPLICABLE),
    },
    F.TWO_ITEMS_CONNECTED: {
        "suboptimal": _reqs(R.ALL_REQUIRED, R.ACCEPTABLE_VARIATIONS),
        "incompatible": _reqs(
            R.SINGLE_CHOICE, R.ANY_ONE_FROM, *_ANY_N, R.ALTERNATIVE_METHODS, R.NOT_APPLICABLE,
        ),
    },
    F.MULTI_LINE: {
        "suboptimal": _reqs(R.BOTH_REQUIRED),
        "incompatible": _reqs(R.SINGLE_CHOICE, R.NOT_APPLICABLE),
    },
    F.MULTI_LINE_LABELED: {
        "suboptimal": _reqs(R.ANY_ONE_FROM, R.ACCEPTABLE_VARIATIONS),
        "incompatible": _reqs(
            R.SINGLE_CHOICE, R.BOTH_REQUIRED, R.ALTERNATIVE_METHODS, R.NOT_APPLICABLE,
        ),
    },
    F.CALCULATION: {
        "suboptimal": _reqs(R.ANY_ONE_FROM),
        "incompatible": _reqs(*_SEVERAL, R.NOT_APPLICABLE),
    },
    F.EQUATION: {
        "suboptimal": _reqs(R.ANY_ONE_FROM),
        "incompatible": _reqs(*_SEVERAL, R.NOT_APPLICABLE),
    },
    F.CHEMICAL_STRUCTURE: {
        "suboptimal": _reqs(R.ALTERNATIVE_METHODS),
        "incompatible": _reqs(*_SEVERAL, R.ANY_ONE_FROM, R.NOT_APPLICABLE),
    },
    F.TABLE: {
        "suboptimal": _reqs(R.ACCEPTABLE_VARIATIONS),
        "incompatible": _reqs(
            R.SINGLE_CHOICE, R.BOTH_REQUIRED, R.ANY_ONE_FROM, *_ANY_N, R.ALTERNATIVE_METHODS,
        ),
    },
    F.TABLE_COMPLETION: {
        "suboptimal": _reqs(R.ACCEPTABLE_VARIATIONS),
        "incompatible": _reqs(
            R.SINGLE_CHOICE, R.BOTH_REQUIRED, R.ANY_ONE_FROM, *_ANY_N,
            R.ALTERNATIVE_METHODS, R.NOT_APPLICABLE,
        ),
    },
    F.CODE: {
        "suboptimal": _reqs(R.ACCEPTABLE_VARIATIONS),
        "incompatible": _reqs(*_SEVERAL, R.ANY_ONE_FROM, R.NOT_APPLICABLE),
    },
}
for _fmt in HAND_MARKED_FORMATS:
    COMPATIBILITY_MATRIX[_fmt] = {
        "suboptimal": _reqs(),
        "incompatible": _reqs(*(r for r in AnswerRequirement if r != R.NOT_APPLICABLE)),
    }


def check_compatibility(
    answer_format: Optional[AnswerFormat],
    requirement: Optional[AnswerRequirement],
) -> Compatibility:
    """
    Rate a format/requirement pair.

    Formats outside the matrix (free_text), missing values and pairs the
    matrix does not list are compatible.

    Example:
        >>> check_compatibility(AnswerFormat.SINGLE_WORD, AnswerRequirement.BOTH_REQUIRED).value
        'incompatible'
    """
    if answer_format is None or requirement is None:
        return Compatibility.COMPATIBLE
    rules = COMPATIBILITY_MATRIX.get(answer_format)
    if rules is None:
        return Compatibility.COMPATIBLE
    if requirement in rules["incompatible"]:
        return Compatibility.INCOMPATIBLE
    if requirement in rules["suboptimal"]:
        return Compatibility.SUBOPTIMAL
    return Compatibility.COMPATIBLE


def compatible_requirements(answer_format: AnswerFormat) -> List[AnswerRequirement]:
    """Requirements that are not incompatible with a format, in enum order."""
    rules = COMPATIBILITY_MATRIX.get(answer_format)
    if rules is None:
        return list(AnswerRequirement)
    return [r for r in AnswerRequirement if r not in rules["incompatible"]]


# ─────────────────────────────────────────────────────────────────────────────
# Format
# ─────────────────────────────────────────────────────────────────────────────

_CALCULATION_CUE = re.compile(r"\b(calculate|compute|work out)\b", re.IGNORECASE)
_EQUATION_CUE = re.compile(r"\b(equation|formula)\b", re.IGNORECASE)
_DRAW_CUE = re.compile(r"\b(draw|sketch|diagram)\b", re.IGNORECASE)
_LABEL_CUE = re.compile(r"\blabel", re.IGNORECASE)
_TABLE_CUE = re.compile(r"\bcomplete the table\b", re.IGNORECASE)
_GRAPH_CUE = re.compile(r"\b(graph|plot)\b", re.IGNORECASE)
_STRUCTURE_CUE = re.compile(r"\bstructure of\b.*\b(compound|molecule)\b", re.IGNORECASE)


def _keyword_format(text: str, question_type: str) -> Optional[FormatDerivation]:
    if question_type == "calculation" or _CALCULATION_CUE.search(text):
        return FormatDerivation(F.CALCULATION, reason="calculation wording")
    if _EQUATION_CUE.search(text):
        return FormatDerivation(F.EQUATION, reason="equation wording")
    if question_type == "diagram" or _DRAW_CUE.search(text):
        if _LABEL_CUE.search(text):
            return FormatDerivation(F.STRUCTURAL_DIAGRAM, reason="labelled drawing wording")
        return FormatDerivation(F.DIAGRAM, reason="drawing wording")
    if _GRAPH_CUE.search(text):
        return FormatDerivation(F.GRAPH, reason="graph wording")
    if _STRUCTURE_CUE.search(text):
        return FormatDerivation(F.CHEMICAL_STRUCTURE, reason="chemical structure wording")
    return None


def _single_value_format(texts: Sequence[str]) -> AnswerFormat:
    if all(len(t.split()) == 1 for t in texts):
        return F.SINGLE_WORD
    if all("\n" not in t for t in texts):
        return F.SINGLE_LINE
    return F.MULTI_LINE


def derive_format(
    answer_groups: Sequence[AnswerGroup],
    *,
    question_type: str = "descriptive",
    text: str = "",
    tabular: bool = False,
    has_direct_answer: bool = True,
    use_keywords: bool = True,
) -> FormatDerivation:
    """
    Derive the answer format of a node.

    Args:
        answer_groups: The node's canonical groups
        question_type: Source type tag (mcq, tf, calculation, ...)
        text: Node wording, scanned for cues
        tabular: Node has a table template or asks to complete a table
        has_direct_answer: False for context-only nodes
        use_keywords: Consult wording cues before answer counts

    Returns:
        FormatDerivation; ``fallback`` is True when defaulted to free_text
    """
    question_type = (question_type or "").lower()
    if question_type in CHOICE_TYPES:
        return FormatDerivation(F.NOT_APPLICABLE, reason="choice question")
    if not answer_groups and not has_direct_answer:
        return FormatDerivation(F.NOT_APPLICABLE, reason="no direct answer")

    if tabular or _TABLE_CUE.search(text):
        if not answer_groups or any(g.cardinality == Cardinality.ALL_REQUIRED for g in answer_groups):
            return FormatDerivation(F.TABLE_COMPLETION, reason="table to complete")
        return FormatDerivation(F.TABLE, reason="tabular answer")

    if use_keywords:
        cued = _keyword_format(text, question_type)
        if cued is not None:
            return cued

    if not answer_groups:
        return FormatDerivation(F.FREE_TEXT, fallback=True, reason="no answers or wording cues")

    alternatives = [alt for g in answer_groups for alt in g.alternatives]
    if len(answer_groups) == 1:
        group = answer_groups[0]
        if group.cardinality in (Cardinality.STANDALONE, Cardinality.ONE_REQUIRED):
            return FormatDerivation(
                _single_value_format([a.text for a in alternatives]),
                reason=f"single expected answer ({group.cardinality})",
            )
        if group.cardinality == Cardinality.ANY_OF:
            return FormatDerivation(F.MULTI_LINE, reason=f"any {group.required_count} of {len(alternatives)}")

    expected = sum(
        g.required_count if g.cardinality == Cardinality.ANY_OF
        else 1 if g.cardinality == Cardinality.ONE_REQUIRED
        else len(g.alternatives)
        for g in answer_groups
    )
    if expected == 1:
        return FormatDerivation(F.SINGLE_LINE, reason="one answer expected")
    if expected == 2:
        return FormatDerivation(F.TWO_ITEMS, reason="two answers expected")
    return FormatDerivation(F.MULTI_LINE_LABELED, reason=f"{expected} answers expected")


# ─────────────────────────────────────────────────────────────────────────────
# Requirement
# ─────────────────────────────────────────────────────────────────────────────

_ANY_OF_REQUIREMENT = {2: R.ANY_2_FROM, 3: R.ANY_3_FROM}
_METHOD_FORMATS = frozenset({F.CALCULATION, F.EQUATION, F.CODE})


def derive_requirement(
    answer_groups: Sequence[AnswerGroup],
    *,
    question_type: str = "descriptive",
    answer_format: Optional[AnswerFormat] = None,
    has_direct_answer: bool = True,
) -> RequirementDerivation:
    """
    Derive the answer requirement of a node.

    A one_required group never yields both_required; pairs of required
    answers yield both_required, larger sets all_required.
    """
    question_type = (question_type or "").lower()
    if question_type in CHOICE_TYPES:
        return RequirementDerivation(R.SINGLE_CHOICE, reason="choice question")
    if answer_format == F.NOT_APPLICABLE or (not answer_groups and not has_direct_answer):
        return RequirementDerivation(R.NOT_APPLICABLE, reason="no direct answer")
    if answer_format in HAND_MARKED_FORMATS:
        return RequirementDerivation(R.NOT_APPLICABLE, reason=f"{answer_format} is marked by hand")
    if answer_format == F.TABLE_COMPLETION:
        return RequirementDerivation(R.ALL_REQUIRED, reason="every cell required")

    if not answer_groups:
        return RequirementDerivation(R.SINGLE_CHOICE, fallback=True, reason="no answers to derive from")

    if len(answer_groups) == 1:
        group = answer_groups[0]
        if group.cardinality == Cardinality.ONE_REQUIRED:
            if answer_format in _METHOD_FORMATS:
                return RequirementDerivation(R.ALTERNATIVE_METHODS, reason="alternative working methods")
            return RequirementDerivation(R.ANY_ONE_FROM, reason="any one alternative")
        if group.cardinality == Cardinality.ANY_OF:
            mapped = _ANY_OF_REQUIREMENT.get(group.required_count)
            if mapped is not None:
                return RequirementDerivation(mapped, reason=f"any {group.required_count}")
            return RequirementDerivation(
                R.ALL_REQUIRED, fallback=True,
                reason=f"no requirement tag for any {group.required_count}",
            )
        if group.cardinality == Cardinality.STANDALONE:
            alt = group.alternatives[0]
            if alt.accepts_equivalent_phrasing and alt.variations:
                return RequirementDerivation(R.ACCEPTABLE_VARIATIONS, reason="variations accepted")
            return RequirementDerivation(R.SINGLE_CHOICE, reason="single expected answer")
        if len(group.alternatives) == 2:
            return RequirementDerivation(R.BOTH_REQUIRED, reason="linked pair")
        return RequirementDerivation(R.ALL_REQUIRED, reason="linked set")

    if len(answer_groups) == 2 and all(g.cardinality != Cardinality.ANY_OF for g in answer_groups):
        return RequirementDerivation(R.BOTH_REQUIRED, reason="two independent answers")
    return RequirementDerivation(R.ALL_REQUIRED, reason=f"{len(answer_groups)} independent answers")


# ─────────────────────────────────────────────────────────────────────────────
# Resolution
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ResolvedTags:
    """Final format/requirement pair plus notes about defaults and conflicts."""
    answer_format: AnswerFormat
    answer_requirement: AnswerRequirement
    notes: tuple = ()


def resolve_tags(
    answer_groups: Sequence[AnswerGroup],
    *,
    explicit_format: Optional[AnswerFormat] = None,
    explicit_requirement: Optional[AnswerRequirement] = None,
    question_type: str = "descriptive",
    text: str = "",
    tabular: bool = False,
    has_direct_answer: bool = True,
) -> ResolvedTags:
    """
    Explicit source values win; missing values are derived.

    A derived format picked from wording that clashes with the requirement is
    re-derived from the answers alone. Remaining conflicts and fallbacks are
    returned as notes for the diagnostics collector.
    """
    notes: List[str] = []
    fmt = (
        FormatDerivation(explicit_format, reason="explicit")
        if explicit_format is not None
        else derive_format(
            answer_groups, question_type=question_type, text=text,
            tabular=tabular, has_direct_answer=has_direct_answer,
        )
    )
    req = (
        RequirementDerivation(explicit_requirement, reason="explicit")
        if explicit_requirement is not None
        else derive_requirement(
            answer_groups, question_type=question_type,
            answer_format=fmt.value, has_direct_answer=has_direct_answer,
        )
    )

    if (
        explicit_format is None
        and check_compatibility(fmt.value, req.value) == Compatibility.INCOMPATIBLE
    ):
        plain = derive_format(
            answer_groups, question_type=question_type, text=text,
            tabular=tabular, has_direct_answer=has_direct_answer, use_keywords=False,
        )
        if check_compatibility(plain.value, req.value) != Compatibility.INCOMPATIBLE:
            fmt = plain

    if fmt.fallback:
        notes.append(f"answer_format defaulted to {fmt.value}: {fmt.reason}")
    if req.fallback:
        notes.append(f"answer_requirement defaulted to {req.value}: {req.reason}")
    if check_compatibility(fmt.value, req.value) == Compatibility.INCOMPATIBLE:
        notes.append(f"answer_format {fmt.value} is incompatible with answer_requirement {req.value}")

    return ResolvedTags(fmt.value, req.value, tuple(notes))
