"""
Module: grading.engine

Purpose:
    Entry points of the grading engine. ``grade`` dispatches on the type of
    the expected answer; ``grade_question`` grades a whole canonical question
    with a submission keyed by node id; ``grade_batch`` grades many
    submissions in parallel.

Key Functions:
    - grade(): Expected answer + submission -> GradingResult
    - grade_node(): One question/part/subpart
    - grade_question(): Whole question, feedback prefixed by node id
    - grade_batch(): Many (expected, submitted) pairs, order preserved

Dependencies:
    - concurrent.futures (std): Parallel batch grading

Used By:
    - Host applications marking learner submissions

Grading never raises because of submission content: missing, blank or
wrongly typed responses are scored as unanswered.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.models import (
    AnswerGroup,
    GradingResult,
    McqOption,
    Part,
    Question,
    Subpart,
    TableTemplate,
)
from .choices import grade_choice
from .config import GradingConfig
from .tables import grade_table
from .text import grade_groups

logger = logging.getLogger(__name__)

Expected = Union[TableTemplate, AnswerGroup, Sequence[AnswerGroup], Sequence[McqOption], Question]
Node = Union[Question, Part, Subpart]


def grade(
    expected: Expected,
    submitted: Any,
    *,
    config: Optional[GradingConfig] = None,
    marks: Optional[Any] = None,
) -> GradingResult:
    """
    Grade a submission against an expected answer.

    Args:
        expected: A TableTemplate, an AnswerGroup or a sequence of them,
            a sequence of McqOptions, or a whole Question
        submitted: Free text / sequence of responses, a {"row-col": value}
            mapping for tables, selected label(s) for choices, or a mapping
            of node id to submission for a Question
        config: Grading settings
        marks: Marks for a correct choice selection (choices only)

    Returns:
        New GradingResult

    Raises:
        TypeError: If ``expected`` is not a gradable answer type
    """
    config = config or GradingConfig()
    if isinstance(expected, Question):
        return grade_question(expected, submitted, config=config)
    if isinstance(expected, TableTemplate):
        return grade_table(expected, submitted, config=config)
    if isinstance(expected, AnswerGroup):
        expected = (expected,)

    items = tuple(expected)
    if not items:
        return GradingResult.empty()
    if all(isinstance(item, McqOption) for item in items):
        return grade_choice(items, submitted, marks=marks)
    if all(isinstance(item, AnswerGroup) for item in items):
        return grade_groups(items, submitted, config=config)
    raise TypeError(f"Cannot grade against {type(items[0]).__name__}")


def _prefixed(result: GradingResult, node_id: str) -> GradingResult:
    return replace(
        result,
        feedback=tuple(replace(f, unit_id=f"{node_id}:{f.unit_id}") for f in result.feedback),
    )


def grade_node(node: Node, submitted: Any, *, config: Optional[GradingConfig] = None) -> GradingResult:
    """
    Grade one node's own answers (not its children).

    A node with options is graded as a choice worth the node's marks. A node
    with both answer groups and a table takes a mapping submission for the
    table and the mapping's "text" entry for the groups.
    """
    config = config or GradingConfig()
    if node.options:
        return grade_choice(node.options, submitted, marks=node.marks)

    results: List[GradingResult] = []
    if node.table_template is not None:
        results.append(grade_table(node.table_template, submitted, config=config))
    if node.answer_groups:
        text = submitted
        if node.table_template is not None and isinstance(submitted, Mapping):
            text = submitted.get("text")
        elif isinstance(submitted, Mapping):
            text = None
        results.append(grade_groups(node.answer_groups, text, config=config))
    return GradingResult.combine(results)


def _is_gradable(node: Node) -> bool:
    return bool(node.options or node.answer_groups or node.table_template is not None)


def grade_question(
    question: Question,
    submission: Any,
    *,
    config: Optional[GradingConfig] = None,
) -> GradingResult:
    """
    Grade every answer-bearing node of a question.

    Args:
        question: Canonical question
        submission: Mapping of node id ("q_3", "q_3-a", "q_3-a-ii") to that
            node's submission; missing ids are unanswered
        config: Grading settings

    Returns:
        Combined GradingResult; feedback unit ids read "{node_id}:{unit}"

    Example:
        >>> result = grade_question(question, {"q_3-a": "violet", "q_3-b-i": "mitochondria"})
        >>> result.percentage
        50.0
    """
    config = config or GradingConfig()
    if not isinstance(submission, Mapping):
        submission = {}

    results = []
    for node in question.iter_nodes():
        if not _is_gradable(node):
            continue
        node_result = grade_node(node, submission.get(node.id), config=config)
        results.append(_prefixed(node_result, node.id))

    result = GradingResult.combine(results)
    logger.debug(f"Graded question {question.id}: {result!r}")
    return result


def grade_batch(
    items: Iterable[Tuple[Expected, Any]],
    *,
    config: Optional[GradingConfig] = None,
    max_workers: Optional[int] = None,
) -> List[GradingResult]:
    """
    Grade many (expected, submitted) pairs concurrently.

    Args:
        items: Pairs accepted by grade()
        config: Grading settings shared by every pair
        max_workers: Overrides config.max_workers; 1 forces sequential work

    Returns:
        Results in input order
    """
    config = config or GradingConfig()
    pairs = list(items)
    workers = max_workers if max_workers is not None else config.max_workers

    if len(pairs) > 1 and workers != 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(grade, expected, submitted, config=config) for expected, submitted in pairs]
            results = [future.result() for future in futures]
    else:
        results = [grade(expected, submitted, config=config) for expected, submitted in pairs]

    logger.info(f"Graded {len(results)} submission(s)")
    return results
