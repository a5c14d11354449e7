"""
Module: tables

Purpose:
    Table-completion templates. A template is a grid with optional headers
    where some cells are locked (shown to the learner) and the rest are
    editable and carry an expected answer.

Key Classes:
    - CellType: locked / editable
    - TableCell: One cell keyed by (row, col)
    - TableTemplate: Grid with bounds checks and cell lookup

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.parts / core.models.questions
    - grading.tables

Submissions address cells by the string key ``"{row}-{col}"`` with 0-based
coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

from .answers import MarkValue, check_marks

MIN_ROWS, MAX_ROWS = 2, 50
MIN_COLUMNS, MAX_COLUMNS = 2, 20


class CellType(str, Enum):
    LOCKED = "locked"
    EDITABLE = "editable"

    def __str__(self) -> str:
        return self.value


def cell_key(row: int, col: int) -> str:
    """Submission key for a cell, e.g. ``cell_key(0, 1) == "0-1"``."""
    return f"{row}-{col}"


@dataclass(frozen=True, slots=True)
class TableCell:
    """
    One cell of a table template.

    Attributes:
        row, col: 0-based coordinates
        cell_type: LOCKED cells display locked_value and are never graded
        locked_value: Text shown in a locked cell
        expected_answer: Answer for an editable cell
        marks: Marks for an editable cell (default 1)
        case_sensitive: Compare with exact case
        accepts_equivalent_phrasing: Allow close fuzzy matches
        alternative_answers: Other accepted answers
    """

    row: int
    col: int
    cell_type: CellType = CellType.EDITABLE
    locked_value: Optional[str] = None
    expected_answer: Optional[str] = None
    marks: MarkValue = 1
    case_sensitive: bool = False
    accepts_equivalent_phrasing: bool = False
    alternative_answers: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.row < 0 or self.col < 0:
            raise ValueError(f"Cell coordinates cannot be negative: ({self.row}, {self.col})")
        check_marks(self.marks, f"Cell {self.key}")

    @property
    def key(self) -> str:
        return cell_key(self.row, self.col)

    @property
    def is_gradable(self) -> bool:
        """Editable and carrying a non-blank expected answer."""
        return (
            self.cell_type == CellType.EDITABLE
            and self.expected_answer is not None
            and bool(self.expected_answer.strip())
        )

    def to_dict(self) -> dict:
        d: Dict[str, Any] = {
            "row": self.row,
            "col": self.col,
            "cell_type": str(self.cell_type),
        }
        if self.cell_type == CellType.LOCKED:
            d["locked_value"] = self.locked_value
        else:
            d["expected_answer"] = self.expected_answer
            d["marks"] = self.marks
            d["case_sensitive"] = self.case_sensitive
            d["accepts_equivalent_phrasing"] = self.accepts_equivalent_phrasing
            if self.alternative_answers:
                d["alternative_answers"] = list(self.alternative_answers)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> TableCell:
        return cls(
            row=int(data["row"]),
            col=int(data["col"]),
            cell_type=CellType(data.get("cell_type", "editable")),
            locked_value=data.get("locked_value"),
            expected_answer=data.get("expected_answer"),
            marks=data.get("marks", 1),
            case_sensitive=data.get("case_sensitive", False),
            accepts_equivalent_phrasing=data.get("accepts_equivalent_phrasing", False),
            alternative_answers=tuple(data.get("alternative_answers", [])),
        )


@dataclass(frozen=True)
class TableTemplate:
    """
    Grid definition for a table-completion answer.

    Invariants:
        - MIN_ROWS <= rows <= MAX_ROWS, MIN_COLUMNS <= columns <= MAX_COLUMNS
        - headers has at most `columns` entries
        - Every cell is inside the grid and no coordinate appears twice

    Example:
        >>> t = TableTemplate(rows=2, columns=2, cells=(TableCell(0, 0, expected_answer="H2O"),))
        >>> t.total_marks
        1
    """

    rows: int
    columns: int
    headers: Tuple[str, ...] = ()
    cells: Tuple[TableCell, ...] = ()
    title: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if not MIN_ROWS <= self.rows <= MAX_ROWS:
            raise ValueError(f"Table rows must be between {MIN_ROWS} and {MAX_ROWS}, got {self.rows}")
        if not MIN_COLUMNS <= self.columns <= MAX_COLUMNS:
            raise ValueError(
                f"Table columns must be between {MIN_COLUMNS} and {MAX_COLUMNS}, got {self.columns}"
            )
        if len(self.headers) > self.columns:
            raise ValueError(f"Table has {len(self.headers)} headers but only {self.columns} columns")

        seen = set()
        for cell in self.cells:
            if cell.row >= self.rows or cell.col >= self.columns:
                raise ValueError(
                    f"Cell ({cell.row}, {cell.col}) is outside a {self.rows}x{self.columns} table"
                )
            if (cell.row, cell.col) in seen:
                raise ValueError(f"Duplicate cell at ({cell.row}, {cell.col})")
            seen.add((cell.row, cell.col))

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def iter_gradable(self) -> Iterator[TableCell]:
        """Editable cells with an expected answer, in row-major order."""
        for cell in sorted(self.cells, key=lambda c: (c.row, c.col)):
            if cell.is_gradable:
                yield cell

    def cell_at(self, row: int, col: int) -> Optional[TableCell]:
        for cell in self.cells:
            if cell.row == row and cell.col == col:
                return cell
        return None

    @property
    def total_marks(self) -> MarkValue:
        return sum(cell.marks for cell in self.iter_gradable())

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: Dict[str, Any] = {
            "rows": self.rows,
            "columns": self.columns,
            "headers": list(self.headers),
            "cells": [cell.to_dict() for cell in self.cells],
        }
        if self.title:
            d["title"] = self.title
        if self.description:
            d["description"] = self.description
        return d

    @classmethod
    def from_dict(cls, data: dict) -> TableTemplate:
        return cls(
            rows=int(data["rows"]),
            columns=int(data["columns"]),
            headers=tuple(data.get("headers") or ()),
            cells=tuple(TableCell.from_dict(c) for c in data.get("cells", [])),
            title=data.get("title"),
            description=data.get("description"),
        )
