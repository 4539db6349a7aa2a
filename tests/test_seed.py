from mlt_exam.bank import fetch_active_questions
from mlt_exam.db import init_db
from mlt_exam.seed import is_seeded, load_sample_questions, seed_all, seed_questions


def test_is_seeded(tmp_db):
    init_db(tmp_db)
    assert not is_seeded(tmp_db)
    seed_questions(tmp_db)
    assert is_seeded(tmp_db)


def test_seed_questions_loads_every_sample(tmp_db):
    init_db(tmp_db)
    added = seed_questions(tmp_db)
    assert added == len(load_sample_questions())
    assert len(fetch_active_questions(tmp_db)) == added


def test_seed_all_idempotent(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    seed_all(tmp_db)  # second call should be no-op
    assert len(fetch_active_questions(tmp_db)) == len(load_sample_questions())


def test_sample_questions_cover_several_domains(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    domains = {q.domain for q in fetch_active_questions(tmp_db)}
    assert len(domains) >= 6
