"""Deterministic scoring of a finished attempt."""
from dataclasses import dataclass

from mlt_exam.config import DEFAULT_POLICY


@dataclass(frozen=True)
class ScoreResult:
    correct_count: int
    question_count: int
    score_pct: float
    passed: bool


def is_correct(question, answer) -> bool:
    return answer is not None and answer == question.correct_index


def count_correct(questions, answers) -> int:
    return sum(1 for q, a in zip(questions, answers) if is_correct(q, a))


def score_percent(correct: int, total: int) -> float:
    if total == 0:
        return 0.0
    return 100 * correct / total


def score(attempt, pass_percentage: float = DEFAULT_POLICY.pass_percentage) -> ScoreResult:
    """Correct count, percentage and pass verdict. Unanswered slots never count."""
    correct = count_correct(attempt.questions, attempt.answers)
    total = len(attempt.questions)
    pct = score_percent(correct, total)
    return ScoreResult(
        correct_count=correct,
        question_count=total,
        score_pct=pct,
        passed=pct >= pass_percentage,
    )
