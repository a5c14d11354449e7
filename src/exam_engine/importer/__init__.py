"""
Module: importer

Purpose:
    Turns hand-authored exam-paper JSON into the canonical question tree.
    Validation runs first, then the transformer builds each question, linking
    alternative answers and deriving missing format/requirement tags.

Key Functions:
    - import_questions(): Batch import with per-question failure isolation
    - import_paper(): Import a paper JSON file
    - transform(): Single raw question -> canonical Question
    - link_alternatives(): Raw answers -> AnswerGroups

Key Classes:
    - ImportConfig: Import settings
    - ImportResult / ImportFailure: Batch output
    - DiagnosticsCollector: Linking warnings, fallbacks and failures

Dependencies:
    - jsonschema: Strict schema validation (via core.schemas)
    - portalocker: Locked diagnostics report writes

Used By:
    - Host applications importing authoring JSON
"""

from .config import ImportConfig
from .deriver import check_compatibility, derive_format, derive_requirement
from .diagnostics import DiagnosticsCollector, ImportIssue
from .expectation import detect_expectation
from .linker import check_symmetry, link_alternatives
from .pipeline import ImportFailure, ImportResult, import_paper, import_question, import_questions
from .transformer import transform

__all__ = [
    "ImportConfig",
    "check_compatibility",
    "derive_format",
    "derive_requirement",
    "DiagnosticsCollector",
    "ImportIssue",
    "detect_expectation",
    "check_symmetry",
    "link_alternatives",
    "ImportFailure",
    "ImportResult",
    "import_paper",
    "import_question",
    "import_questions",
    "transform",
]
