import pytest
import sys
from pathlib import Path

# Add src to sys.path so we can import exam_engine
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())


# Common test fixtures
@pytest.fixture
def simple_raw_question() -> dict:
    """A simple descriptive question with one answer."""
    return {
        "question_number": "1",
        "type": "descriptive",
        "question_description": "Name the gas produced by photosynthesis.",
        "marks": 1,
        "correct_answers": [{"answer": "oxygen", "marks": 1}],
    }


@pytest.fixture
def colour_answers() -> list:
    """Four one_required alternatives linked to each other."""
    colours = ["purple", "violet", "lilac", "mauve"]
    return [
        {
            "answer": colour,
            "marks": 1,
            "alternative_id": i,
            "alternative_type": "one_required",
            "linked_alternatives": [j for j in range(1, 5) if j != i],
        }
        for i, colour in enumerate(colours, 1)
    ]


@pytest.fixture
def complex_raw_question(colour_answers) -> dict:
    """A complex question with a contextual part and answered subparts."""
    return {
        "question_number": "Question 3",
        "type": "complex",
        "question_description": "This question is about plant cells.",
        "marks": 4,
        "parts": [
            {
                "part": "a",
                "question_description": "State the colour of the solution.",
                "marks": 1,
                "correct_answers": colour_answers,
            },
            {
                "part": "(b)",
                "question_description": "Fig. 3.1 shows a plant cell.",
                "marks": 3,
                "subparts": [
                    {
                        "subpart": "i",
                        "question_description": "Name the organelle where respiration happens.",
                        "marks": 1,
                        "correct_answers": [{"answer": "mitochondria", "marks": 1}],
                    },
                    {
                        "subpart": "ii",
                        "question_description": "Give two features of the cell wall.",
                        "marks": 2,
                        "correct_answers": [
                            {"answer": "made of cellulose", "marks": 1},
                            {"answer": "fully permeable", "marks": 1},
                        ],
                    },
                ],
            },
        ],
    }
