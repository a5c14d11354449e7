"""
Serialization Utilities

To/from JSON utilities for the canonical model and for raw paper files.

- ``serialize_*`` / ``deserialize_*`` wrap the models' ``to_dict`` and
  ``from_dict`` methods
- Calculated values (group totals, answer_marks) are never stored
- Canonical questions are stored one per line (JSONL)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List

from ..errors import SerializationError
from ..models.questions import Question

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Question Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_question(question: Question) -> dict[str, Any]:
    """
    Serialize a Question to a dictionary.

    Note:
        answer_marks and group totals are NOT included - they are always
        calculated on load.
    """
    return question.to_dict()


def deserialize_question(data: dict[str, Any]) -> Question:
    """
    Deserialize a canonical Question from a dictionary.

    Raises:
        SerializationError: If required keys are missing or an invariant fails
    """
    try:
        return Question.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        qid = data.get("id", "?") if isinstance(data, dict) else "?"
        raise SerializationError(f"Cannot deserialize question {qid}: {e}") from e


# ─────────────────────────────────────────────────────────────────────────────
# Raw Paper Files
# ─────────────────────────────────────────────────────────────────────────────

def load_paper_json(path: Path) -> List[Any]:
    """
    Load the raw questions of an authoring paper file.

    Accepts a ``{"questions": [...]}`` envelope or a bare JSON array.
    Questions are returned untouched; validation is the caller's job.

    Raises:
        FileNotFoundError: If file doesn't exist
        SerializationError: If the file is not JSON or has no questions array
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Paper file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Invalid JSON in {path.name}: {e}", path=str(path)) from e

    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        return data["questions"]
    raise SerializationError(f"{path.name} has no questions array", path=str(path))


# ─────────────────────────────────────────────────────────────────────────────
# JSONL Utilities
# ─────────────────────────────────────────────────────────────────────────────

def load_questions_jsonl(path: Path) -> list[Question]:
    """
    Load canonical questions from a JSONL file.

    Raises:
        FileNotFoundError: If file doesn't exist
        SerializationError: If any line cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Questions file not found: {path}")

    questions = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                data = json.loads(line)
                questions.append(deserialize_question(data))
            except (json.JSONDecodeError, SerializationError) as e:
                raise SerializationError(
                    f"Error parsing line {line_no}: {e}",
                    path=str(path),
                ) from e

    logger.debug(f"Loaded {len(questions)} question(s) from {path}")
    return questions


def save_questions_jsonl(questions: Iterable[Question], path: Path) -> None:
    """
    Save canonical questions to a JSONL file (one question per line).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        for question in questions:
            data = serialize_question(question)
            f.write(json.dumps(data, ensure_ascii=False))
            f.write("\n")
