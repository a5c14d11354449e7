"""
Module: core.labels

Purpose:
    Ordinal labels and stable identifiers for the question tree. Parts use
    letters (a, b, c), subparts use roman numerals (i, ii, iii). Labels
    present in the source always win over generated ones.

Key Functions:
    - next_subpart_label(index): Roman numeral from a fixed table
    - next_part_label(index): Letter label, multi-letter past "z"
    - normalize_label(raw): Canonical form of a source label
    - resolve_part_label() / resolve_subpart_label(): Source label or fallback
    - question_identifier() / part_identifier() / subpart_identifier()
    - parse_identifier(): Split an identifier into its components

Dependencies:
    - re (std)

Used By:
    - importer.transformer
    - grading.engine (submission keys)

Every function here is pure. Identifiers are stored by the host and keyed
into saved grading templates, so the same index must always produce the
same label.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional


ROMAN_NUMERALS: tuple[str, ...] = (
    "i", "ii", "iii", "iv", "v", "vi",
    "vii", "viii", "ix", "x", "xi", "xii",
)

_LABEL_PREFIX = re.compile(r"^\s*(sub\s*-?\s*part|part)\b\.?\s*", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_DIGITS = re.compile(r"\d+")
_IDENTIFIER = re.compile(r"^q_(\d+)(?:-([a-z0-9]+))?(?:-([a-z0-9]+))?$")


# ─────────────────────────────────────────────────────────────────────────────
# Ordinal Labels
# ─────────────────────────────────────────────────────────────────────────────

def next_subpart_label(index: int) -> str:
    """
    Roman numeral label for a 0-based subpart index.

    Args:
        index: 0-based position of the subpart

    Returns:
        "i".."xii" for indices 0-11, otherwise the 1-based integer string

    Example:
        >>> next_subpart_label(3)
        'iv'
        >>> next_subpart_label(12)
        '13'
    """
    if index < 0:
        raise ValueError(f"Label index cannot be negative: {index}")
    if index < len(ROMAN_NUMERALS):
        return ROMAN_NUMERALS[index]
    return str(index + 1)


def next_part_label(index: int) -> str:
    """
    Letter label for a 0-based part index.

    a..z for 0-25, then spreadsheet-style columns: aa, ab, ... az, ba, ...

    Example:
        >>> next_part_label(0), next_part_label(25), next_part_label(26)
        ('a', 'z', 'aa')
    """
    if index < 0:
        raise ValueError(f"Label index cannot be negative: {index}")
    label = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        label = chr(ord("a") + rem) + label
    return label


def normalize_label(raw: Any) -> str:
    """
    Canonical form of a source label.

    Lowercases, strips a leading "Part"/"Subpart" word, and removes anything
    that is not a letter or digit.

    Example:
        >>> normalize_label("(B)"), normalize_label("Part c"), normalize_label(" (iii) ")
        ('b', 'c', 'iii')
    """
    if raw is None:
        return ""
    text = _LABEL_PREFIX.sub("", str(raw))
    return _NON_ALNUM.sub("", text.lower())


def resolve_part_label(raw: Any, index: int) -> str:
    """Source part label if present, otherwise the generated letter."""
    return normalize_label(raw) or next_part_label(index)


def resolve_subpart_label(raw: Any, index: int) -> str:
    """Source subpart label if present, otherwise the generated roman numeral."""
    return normalize_label(raw) or next_subpart_label(index)


# ─────────────────────────────────────────────────────────────────────────────
# Stable Identifiers
# ─────────────────────────────────────────────────────────────────────────────

def extract_question_number(raw: Any) -> str:
    """
    Numeric part of a question number ("Question 4" -> "4", 7 -> "7").

    Returns an empty string when no digits are present.
    """
    if raw is None or isinstance(raw, bool):
        return ""
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    match = _DIGITS.search(str(raw))
    return match.group(0) if match else ""


def question_identifier(number: Any) -> str:
    """
    Stable identifier for a question.

    Example:
        >>> question_identifier("Question 3")
        'q_3'
    """
    digits = extract_question_number(number)
    if not digits:
        raise ValueError(f"Cannot derive a question identifier from {number!r}")
    return f"q_{digits}"


def part_identifier(question_id: str, label: str) -> str:
    """Stable identifier for a part: ``{questionId}-{label}``."""
    if not label:
        raise ValueError(f"Part of {question_id} has an empty label")
    return f"{question_id}-{label}"


def subpart_identifier(part_id: str, label: str) -> str:
    """Stable identifier for a subpart: ``{partId}-{romanLabel}``."""
    if not label:
        raise ValueError(f"Subpart of {part_id} has an empty label")
    return f"{part_id}-{label}"


def parse_identifier(identifier: str) -> Dict[str, str]:
    """
    Split an identifier into its components.

    Example:
        >>> parse_identifier("q_1-a-iii")
        {'question_number': '1', 'part_label': 'a', 'subpart_label': 'iii'}

    Returns:
        Empty dict when the identifier does not match the expected shape
    """
    match = _IDENTIFIER.match(identifier or "")
    if not match:
        return {}
    result = {"question_number": match.group(1)}
    if match.group(2):
        result["part_label"] = match.group(2)
    if match.group(3):
        result["subpart_label"] = match.group(3)
    return result


def identifier_level(identifier: str) -> Optional[str]:
    """Return "question", "part", "subpart", or None for malformed identifiers."""
    parsed = parse_identifier(identifier)
    if not parsed:
        return None
    if "subpart_label" in parsed:
        return "subpart"
    if "part_label" in parsed:
        return "part"
    return "question"
