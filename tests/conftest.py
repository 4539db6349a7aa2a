import random

import pytest

from mlt_exam.models import Question


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_exam.db")
    return db_path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def make_question():
    def _make(qid, domain="Hematology", subtopic="WBC Differential", correct_index=0, options=None):
        return Question(
            id=str(qid),
            stem=f"Question {qid}?",
            options=options or ["A", "B", "C", "D"],
            correct_index=correct_index,
            domain=domain,
            subtopic=subtopic,
            explanation=f"Because {qid}.",
        )
    return _make


@pytest.fixture
def two_domain_questions(make_question):
    """Six Clinical Chemistry questions followed by four Hematology questions."""
    chem = [make_question(f"c{i}", domain="Clinical Chemistry", subtopic="Enzymology") for i in range(6)]
    heme = [make_question(f"h{i}", domain="Hematology", subtopic="Hemostasis & Coagulation") for i in range(4)]
    return chem + heme
