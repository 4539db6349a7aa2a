"""Data classes for the exam domain model."""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional

from mlt_exam.config import DOMAINS
from mlt_exam.errors import InvalidOperation


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class AttemptStatus(str, Enum):
    NOT_STARTED = "not-started"
    GENERATING = "generating"
    READY = "ready"
    IN_PROGRESS = "in-progress"
    FINISHED = "finished"


@dataclass(frozen=True)
class Question:
    id: str
    stem: str
    options: tuple
    correct_index: int
    domain: str
    subtopic: str
    difficulty: Difficulty = Difficulty.MEDIUM
    explanation: str = ""
    tags: tuple = ()
    refs: tuple = ()

    def __post_init__(self):
        # Lists are accepted for convenience and stored as tuples
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "refs", tuple(self.refs))
        object.__setattr__(self, "difficulty", Difficulty(self.difficulty))
        if not self.stem.strip():
            raise InvalidOperation(f"Question {self.id} has an empty stem")
        if len(self.options) < 2:
            raise InvalidOperation(f"Question {self.id} needs at least 2 options")
        if not 0 <= self.correct_index < len(self.options):
            raise InvalidOperation(
                f"Question {self.id}: correct_index {self.correct_index} "
                f"out of range for {len(self.options)} options"
            )
        if self.domain not in DOMAINS:
            raise InvalidOperation(f"Question {self.id}: unknown domain {self.domain!r}")

    def to_dict(self) -> dict:
        data = asdict(self)
        data["options"] = list(self.options)
        data["tags"] = list(self.tags)
        data["refs"] = list(self.refs)
        data["difficulty"] = self.difficulty.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=str(data["id"]),
            stem=data["stem"],
            options=data["options"],
            correct_index=int(data["correct_index"]),
            domain=data["domain"],
            subtopic=data.get("subtopic", ""),
            difficulty=data.get("difficulty", Difficulty.MEDIUM),
            explanation=data.get("explanation", ""),
            tags=data.get("tags", ()),
            refs=data.get("refs", ()),
        )


@dataclass(frozen=True)
class DomainPerformance:
    name: str
    count: int
    correct: int
    accuracy: float
    avg_time_sec: float
    bucket: str
    impact: Optional[int] = None  # weak domains only


@dataclass(frozen=True)
class SubtopicPerformance:
    name: str
    accuracy: float
    question_ids: tuple = ()


@dataclass(frozen=True)
class Recommendation:
    type: str
    title: str
    domain: str
    duration_min: int
    count: int


@dataclass(frozen=True)
class SrsPlan:
    daily_new: int
    review_min: int


@dataclass(frozen=True)
class AttemptReport:
    attempt_id: str
    score_pct: float
    passed: bool
    correct_count: int
    question_count: int
    time_total_sec: float
    tab_leave_count: int
    domains: tuple
    subtopics_weakest: tuple
    skipped_ids: tuple
    flagged_ids: tuple
    recommendations: tuple
    srs_plan: SrsPlan

    def to_dict(self) -> dict:
        """Plain JSON-ready dict (tuples become lists)."""
        data = asdict(self)
        for sub in data["subtopics_weakest"]:
            sub["question_ids"] = list(sub["question_ids"])
        for key in ("domains", "subtopics_weakest", "skipped_ids", "flagged_ids", "recommendations"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "AttemptReport":
        return cls(
            attempt_id=data["attempt_id"],
            score_pct=data["score_pct"],
            passed=data["passed"],
            correct_count=data["correct_count"],
            question_count=data["question_count"],
            time_total_sec=data["time_total_sec"],
            tab_leave_count=data["tab_leave_count"],
            domains=tuple(DomainPerformance(**d) for d in data["domains"]),
            subtopics_weakest=tuple(
                SubtopicPerformance(s["name"], s["accuracy"], tuple(s["question_ids"]))
                for s in data["subtopics_weakest"]
            ),
            skipped_ids=tuple(data["skipped_ids"]),
            flagged_ids=tuple(data["flagged_ids"]),
            recommendations=tuple(Recommendation(**r) for r in data["recommendations"]),
            srs_plan=SrsPlan(**data["srs_plan"]),
        )
