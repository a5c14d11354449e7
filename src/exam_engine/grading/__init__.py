"""
Module: grading

Purpose:
    Compares learner submissions with canonical answers and produces
    GradingResults. Pure functions over immutable inputs; nothing is cached
    or written.

Key Functions:
    - grade(): Dispatch on the expected answer type
    - grade_question(): Whole canonical question
    - grade_batch(): Many submissions in parallel
    - grade_groups() / grade_table() / grade_choice(): Per answer shape

Key Classes:
    - GradingConfig: Matching settings
"""

from .choices import grade_choice
from .config import GradingConfig
from .engine import grade, grade_batch, grade_node, grade_question
from .tables import grade_table, match_cell
from .text import grade_groups, match_alternative, split_responses

__all__ = [
    "grade_choice",
    "GradingConfig",
    "grade",
    "grade_batch",
    "grade_node",
    "grade_question",
    "grade_table",
    "match_cell",
    "grade_groups",
    "match_alternative",
    "split_responses",
]
