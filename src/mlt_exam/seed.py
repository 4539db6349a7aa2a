"""Seed the question bank with the bundled sample questions."""
import json
from pathlib import Path

from mlt_exam.bank import add_question
from mlt_exam.db import get_connection
from mlt_exam.models import Question

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the bank already holds any questions."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
    conn.close()
    return count > 0


def load_sample_questions() -> list[dict]:
    data = json.loads((CONTENT_DIR / "questions.json").read_text())
    return data["questions"]


def seed_questions(db_path: str) -> int:
    """Insert sample questions from questions.json. Returns how many were added."""
    added = 0
    for i, q in enumerate(load_sample_questions(), 1):
        question = Question.from_dict({"id": f"seed-{i}", **q})
        add_question(db_path, question, source="seeded")
        added += 1
    return added


def seed_all(db_path: str) -> None:
    """Seed once; later calls are no-ops."""
    if is_seeded(db_path):
        return
    seed_questions(db_path)
