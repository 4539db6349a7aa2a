import json

import pytest

from mlt_exam.bank import fetch_active_questions
from mlt_exam.db import init_db
from mlt_exam.errors import InvalidOperation
from mlt_exam.importer import import_file, parse_question, read_question_file

GOOD = {
    "stem": "Which stain is used for acid-fast bacilli?",
    "options": ["Gram", "Ziehl-Neelsen", "Giemsa", "Wright"],
    "correct_index": 1,
    "domain": "Microbiology",
    "subtopic": "Bacteriology",
}


def test_read_json_list(tmp_path):
    f = tmp_path / "qs.json"
    f.write_text(json.dumps([GOOD]))
    assert read_question_file(str(f)) == [GOOD]


def test_read_json_wrapped(tmp_path):
    f = tmp_path / "qs.json"
    f.write_text(json.dumps({"questions": [GOOD, GOOD]}))
    assert len(read_question_file(str(f))) == 2


def test_read_yaml(tmp_path):
    f = tmp_path / "qs.yaml"
    f.write_text(
        "questions:\n"
        "  - stem: Normal adult hemoglobin is mostly?\n"
        "    options: [HbA, HbF, HbS]\n"
        "    correct_index: 0\n"
        "    domain: Hematology\n"
        "    subtopic: RBC Morphology & Anemias\n"
    )
    records = read_question_file(str(f))
    assert records[0]["options"] == ["HbA", "HbF", "HbS"]


def test_read_unsupported_type(tmp_path):
    f = tmp_path / "notes.txt"
    f.write_text("hello")
    with pytest.raises(ValueError):
        read_question_file(str(f))


def test_parse_question_missing_field():
    with pytest.raises(InvalidOperation):
        parse_question({"stem": "x"}, "q1")


def test_import_file_skips_invalid_records(tmp_path, tmp_db):
    init_db(tmp_db)
    bad = dict(GOOD, correct_index=9)
    f = tmp_path / "mixed.json"
    f.write_text(json.dumps([GOOD, bad, dict(GOOD, domain="Cooking")]))
    result = import_file(tmp_db, str(f))
    assert result == {"filename": "mixed.json", "imported": 1, "rejected": [2, 3]}
    assert [q.stem for q in fetch_active_questions(tmp_db)] == [GOOD["stem"]]
