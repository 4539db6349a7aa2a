from mlt_exam.attempt import Attempt
from mlt_exam.scoring import count_correct, score, score_percent


def finished_attempt(questions, clock, rng, answer_for=None):
    attempt = Attempt(clock=clock, rng=rng)
    attempt.start(questions)
    for i, q in enumerate(attempt.questions):
        if answer_for:
            choice = answer_for(q)
            if choice is not None:
                attempt.select_answer(i, choice)
    return attempt.finish()


def test_no_answers_scores_zero_and_fails(make_question, clock, rng):
    attempt = finished_attempt([make_question(i) for i in range(5)], clock, rng)
    result = score(attempt)
    assert result.correct_count == 0
    assert result.score_pct == 0
    assert result.passed is False


def test_all_correct(make_question, clock, rng):
    attempt = finished_attempt([make_question(i) for i in range(4)], clock, rng,
                               answer_for=lambda q: q.correct_index)
    result = score(attempt)
    assert result.correct_count == 4
    assert result.score_pct == 100.0
    assert result.passed is True


def test_pass_threshold_is_inclusive(make_question, clock, rng):
    questions = [make_question(i, correct_index=0) for i in range(10)]
    right = {str(i) for i in range(6)}
    attempt = finished_attempt(questions, clock, rng,
                               answer_for=lambda q: 0 if q.id in right else 1)
    result = score(attempt, pass_percentage=60)
    assert result.score_pct == 60.0
    assert result.passed is True
    assert score(attempt, pass_percentage=61).passed is False


def test_score_is_within_bounds(make_question, clock, rng):
    attempt = finished_attempt([make_question(i) for i in range(7)], clock, rng,
                               answer_for=lambda q: 1 if q.id in ("1", "2") else 0)
    result = score(attempt)
    assert 0 <= result.score_pct <= 100
    assert result.correct_count <= result.question_count


def test_score_is_reproducible(make_question, clock, rng):
    attempt = finished_attempt([make_question(i) for i in range(3)], clock, rng,
                               answer_for=lambda q: 0)
    assert score(attempt) == score(attempt)


def test_helpers(make_question):
    qs = [make_question(1, correct_index=2), make_question(2, correct_index=0)]
    assert count_correct(qs, [2, None]) == 1
    assert score_percent(0, 0) == 0.0
