"""Import authored questions into the bank from JSON or YAML files."""
import json
import logging
from pathlib import Path

from mlt_exam.bank import add_question
from mlt_exam.errors import InvalidOperation
from mlt_exam.models import Question

logger = logging.getLogger(__name__)


def read_question_file(file_path: str) -> list[dict]:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text())
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text())
    else:
        raise ValueError(f"Unsupported question file type: {suffix or path.name}")
    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise ValueError(f"{path.name} does not contain a list of questions")
    return data


def parse_question(raw: dict, fallback_id: str) -> Question:
    """Build a validated Question from an authored record."""
    if not isinstance(raw, dict):
        raise InvalidOperation(f"Question {fallback_id} is not a mapping")
    try:
        return Question.from_dict({"id": raw.get("id", fallback_id), **raw})
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidOperation(f"Question {fallback_id} is malformed: {e}") from e


def import_file(db_path: str, file_path: str) -> dict:
    """Import every valid question in a file. Invalid records are skipped and reported."""
    records = read_question_file(file_path)
    imported, rejected = 0, []
    for i, raw in enumerate(records, 1):
        try:
            question = parse_question(raw, fallback_id=f"{Path(file_path).stem}-{i}")
        except InvalidOperation as e:
            logger.warning("Skipping question %d in %s: %s", i, file_path, e)
            rejected.append(i)
            continue
        add_question(db_path, question, source="imported")
        imported += 1
    return {"filename": Path(file_path).name, "imported": imported, "rejected": rejected}
