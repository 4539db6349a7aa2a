"""Question bank access and exam question-set preparation."""
import json
import logging
import random
import sqlite3
from datetime import datetime
from typing import Callable

from mlt_exam.config import (
    DIFFICULTY_CUTS, DOMAINS, SUBTOPICS, normalized_weights,
)
from mlt_exam.db import get_connection
from mlt_exam.errors import PersistenceFailure, ProviderUnavailable
from mlt_exam.models import Difficulty, Question

logger = logging.getLogger(__name__)


def _row_to_question(row) -> Question:
    return Question(
        id=str(row["id"]),
        stem=row["stem"],
        options=json.loads(row["options"]),
        correct_index=row["correct_index"],
        domain=row["domain"],
        subtopic=row["subtopic"] or "",
        difficulty=row["difficulty"],
        explanation=row["explanation"] or "",
        tags=json.loads(row["tags"] or "[]"),
        refs=json.loads(row["refs"] or "[]"),
    )


def fetch_active_questions(db_path: str, domain: str = None) -> list[Question]:
    """All active bank questions, optionally limited to one domain."""
    try:
        conn = get_connection(db_path)
        try:
            if domain:
                rows = conn.execute(
                    "SELECT * FROM questions WHERE active = 1 AND domain = ? ORDER BY id", (domain,)
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM questions WHERE active = 1 ORDER BY id").fetchall()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise ProviderUnavailable(f"Could not load the question bank: {e}") from e
    return [_row_to_question(r) for r in rows]


def add_question(db_path: str, question: Question, source: str = "imported") -> str:
    """Insert a new question; the bank assigns its id."""
    try:
        conn = get_connection(db_path)
        try:
            cursor = conn.execute(
                """INSERT INTO questions
                (stem, options, correct_index, explanation, domain, subtopic, difficulty, tags, refs, source, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (question.stem, json.dumps(list(question.options)), question.correct_index,
                 question.explanation, question.domain, question.subtopic, question.difficulty.value,
                 json.dumps(list(question.tags)), json.dumps(list(question.refs)), source,
                 datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Could not add question to the bank: {e}") from e
    return str(cursor.lastrowid)


def save_question(db_path: str, question: Question) -> None:
    """Persist an edited question in place."""
    conn = get_connection(db_path)
    cursor = conn.execute(
        """UPDATE questions SET stem=?, options=?, correct_index=?, explanation=?, domain=?,
        subtopic=?, difficulty=?, tags=?, refs=?, updated_at=? WHERE id=?""",
        (question.stem, json.dumps(list(question.options)), question.correct_index,
         question.explanation, question.domain, question.subtopic, question.difficulty.value,
         json.dumps(list(question.tags)), json.dumps(list(question.refs)),
         datetime.now().isoformat(), int(question.id)),
    )
    conn.commit()
    updated = cursor.rowcount
    conn.close()
    if not updated:
        raise KeyError(f"No question with id {question.id}")


def deactivate_question(db_path: str, question_id: str) -> None:
    conn = get_connection(db_path)
    conn.execute("UPDATE questions SET active = 0 WHERE id = ?", (int(question_id),))
    conn.commit()
    conn.close()


def get_bank_counts(db_path: str) -> dict:
    """Active question count per domain, in catalog order."""
    try:
        conn = get_connection(db_path)
        try:
            rows = conn.execute(
                "SELECT domain, COUNT(*) as total FROM questions WHERE active = 1 GROUP BY domain"
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise ProviderUnavailable(f"Could not count the question bank: {e}") from e
    counts = {r["domain"]: r["total"] for r in rows}
    return {d: counts.get(d, 0) for d in DOMAINS}


def select_exam_questions(questions: list, count: int, rng: random.Random = None) -> list:
    """Sample count questions without replacement from the bank."""
    if len(questions) < count:
        raise ProviderUnavailable(
            f"Not enough questions in the bank. Need {count}, but only have {len(questions)}."
        )
    rng = rng or random.Random()
    return rng.sample(list(questions), count)


def domain_question_counts(total: int, weights: dict = None) -> dict:
    """Questions per domain for a generated exam, skipping zero-weight domains."""
    weights = normalized_weights(weights)
    return {
        d: round(total * weights[d])
        for d in DOMAINS
        if weights.get(d, 0) > 0
    }


def pick_difficulty(rng: random.Random) -> Difficulty:
    roll = rng.random()
    if roll < DIFFICULTY_CUTS[0]:
        return Difficulty.EASY
    elif roll < DIFFICULTY_CUTS[1]:
        return Difficulty.MEDIUM
    return Difficulty.HARD


def generation_specs(total: int, rng: random.Random, weights: dict = None) -> list[dict]:
    specs = []
    for domain, n in domain_question_counts(total, weights).items():
        for _ in range(n):
            specs.append({
                "domain": domain,
                "subtopic": rng.choice(SUBTOPICS[domain]),
                "difficulty": pick_difficulty(rng),
            })
    return specs


def generate_exam_questions(
    generator: Callable[..., Question],
    total: int,
    rng: random.Random = None,
    language: str = "English",
    on_progress: Callable[[int, int, str], None] = None,
) -> list[Question]:
    """Ask the generator for one question per spec, keeping only valid results.

    The generator is called as generator(domain, subtopic, difficulty, language)
    and must return a Question. Failures are logged and dropped.
    """
    rng = rng or random.Random()
    specs = generation_specs(total, rng)
    questions = []
    for i, spec in enumerate(specs, 1):
        try:
            question = generator(spec["domain"], spec["subtopic"], spec["difficulty"], language)
        except Exception as e:
            logger.warning("Generation failed for %s: %s", spec["domain"], e)
            continue
        if not isinstance(question, Question):
            logger.warning("Generator returned %r for %s, dropping it", type(question).__name__, spec["domain"])
            continue
        questions.append(question)
        if on_progress:
            on_progress(i, len(specs), spec["domain"])
    if not questions:
        raise ProviderUnavailable("The generator produced no usable questions")
    logger.info("Generated %d of %d requested questions", len(questions), len(specs))
    return questions
