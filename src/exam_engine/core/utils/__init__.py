"""
Utils Package

Serialization and utility functions.
"""

from .serialization import (
    serialize_question,
    deserialize_question,
    load_paper_json,
    load_questions_jsonl,
    save_questions_jsonl,
)

__all__ = [
    "serialize_question",
    "deserialize_question",
    "load_paper_json",
    "load_questions_jsonl",
    "save_questions_jsonl",
]
