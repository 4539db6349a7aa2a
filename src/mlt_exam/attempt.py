"""Attempt state machine for a single timed exam session."""
import logging
import random
import time
import uuid
from typing import Callable, Optional

from mlt_exam.errors import InvalidOperation, ProviderUnavailable
from mlt_exam.models import AttemptStatus, Question
from mlt_exam.shuffle import fisher_yates

logger = logging.getLogger(__name__)

NO_ANSWER = None


def _is_index(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Attempt:
    """One exam session: question order, answers, flags, timing and violations.

    Mutations replace a single slot of the answer or flag list and are only
    accepted while the attempt is in progress. Once finished, the lists are
    frozen into tuples and every mutating call raises InvalidOperation.
    """

    def __init__(
        self,
        attempt_id: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.id = attempt_id or uuid.uuid4().hex
        self.status = AttemptStatus.NOT_STARTED
        self.questions: tuple = ()
        self.answers = []
        self.flags = []
        self.time_spent = []
        self.pointer = 0
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None
        self.violations = 0
        self._clock = clock
        self._rng = rng or random.Random()
        self._entered_at: Optional[float] = None

    # --- lifecycle ---

    def begin_preparation(self) -> None:
        self._require(AttemptStatus.NOT_STARTED, "begin_preparation")
        self.status = AttemptStatus.GENERATING

    def mark_ready(self) -> None:
        self._require(AttemptStatus.GENERATING, "mark_ready")
        self.status = AttemptStatus.READY

    def start(self, questions) -> None:
        if self.status not in (AttemptStatus.NOT_STARTED, AttemptStatus.READY):
            raise InvalidOperation(f"Cannot start an attempt that is {self.status.value}")
        questions = list(questions)
        if not questions:
            raise ProviderUnavailable("Cannot start an exam with no questions")
        self.questions = tuple(fisher_yates(questions, self._rng))
        count = len(self.questions)
        self.answers = [NO_ANSWER] * count
        self.flags = [False] * count
        self.time_spent = [0.0] * count
        self.pointer = 0
        self.violations = 0
        self.started_at = self._clock()
        self._entered_at = self.started_at
        self.status = AttemptStatus.IN_PROGRESS
        logger.info("Attempt %s started with %d questions", self.id, count)

    def finish(self, now: Optional[float] = None) -> "Attempt":
        """Freeze the attempt. Calling it again returns the same frozen state."""
        if self.status == AttemptStatus.FINISHED:
            return self
        self._require(AttemptStatus.IN_PROGRESS, "finish")
        now = self._clock() if now is None else now
        self._close_interval(now)
        self.answers = tuple(self.answers)
        self.flags = tuple(self.flags)
        self.time_spent = tuple(self.time_spent)
        self.finished_at = now
        self.status = AttemptStatus.FINISHED
        logger.info("Attempt %s finished after %.0fs", self.id, self.elapsed_seconds)
        return self

    # --- user operations ---

    def select_answer(self, pointer: int, option_index: int) -> None:
        self._require(AttemptStatus.IN_PROGRESS, "select_answer")
        self._check_pointer(pointer)
        option_count = len(self.questions[pointer].options)
        if not _is_index(option_index) or not 0 <= option_index < option_count:
            raise InvalidOperation(
                f"Option {option_index} out of range for question {pointer} "
                f"({option_count} options)"
            )
        self.answers[pointer] = option_index

    def toggle_flag(self, pointer: int) -> bool:
        self._require(AttemptStatus.IN_PROGRESS, "toggle_flag")
        self._check_pointer(pointer)
        self.flags[pointer] = not self.flags[pointer]
        return self.flags[pointer]

    def navigate(self, new_pointer: int) -> bool:
        """Move to new_pointer. Out-of-range targets are ignored."""
        self._require(AttemptStatus.IN_PROGRESS, "navigate")
        if not _is_index(new_pointer) or not 0 <= new_pointer < len(self.questions):
            return False
        if new_pointer != self.pointer:
            now = self._clock()
            self._close_interval(now)
            self.pointer = new_pointer
            self._entered_at = now
        return True

    def skip(self) -> bool:
        """Leave the current question unanswered and move to the next one."""
        return self.navigate(self.pointer + 1)

    def record_violation(self) -> int:
        self._require(AttemptStatus.IN_PROGRESS, "record_violation")
        self.violations += 1
        return self.violations

    # --- queries ---

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Question:
        self._require(AttemptStatus.IN_PROGRESS, "current_question")
        return self.questions[self.pointer]

    @property
    def is_active(self) -> bool:
        return self.status == AttemptStatus.IN_PROGRESS

    @property
    def is_finished(self) -> bool:
        return self.status == AttemptStatus.FINISHED

    @property
    def answered_count(self) -> int:
        return sum(1 for a in self.answers if a is not NO_ANSWER)

    @property
    def flagged_count(self) -> int:
        return sum(1 for f in self.flags if f)

    @property
    def elapsed_seconds(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.finished_at if self.finished_at is not None else self._clock()
        return max(0.0, end - self.started_at)

    # --- snapshots ---

    def to_snapshot(self) -> dict:
        return {
            "id": self.id,
            "status": self.status.value,
            "questions": [q.to_dict() for q in self.questions],
            "answers": list(self.answers),
            "flags": list(self.flags),
            "time_spent": list(self.time_spent),
            "pointer": self.pointer,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "violations": self.violations,
        }

    @classmethod
    def from_snapshot(cls, data: dict, clock: Callable[[], float] = time.time) -> "Attempt":
        attempt = cls(attempt_id=data["id"], clock=clock)
        attempt.questions = tuple(Question.from_dict(q) for q in data["questions"])
        count = len(attempt.questions)
        answers = list(data["answers"])
        flags = [bool(f) for f in data["flags"]]
        time_spent = [float(t) for t in data.get("time_spent", [0.0] * count)]
        if not len(answers) == len(flags) == len(time_spent) == count:
            raise InvalidOperation("Snapshot arrays do not match the question count")
        for i, answer in enumerate(answers):
            if answer is not NO_ANSWER and not 0 <= answer < len(attempt.questions[i].options):
                raise InvalidOperation(f"Snapshot answer {answer} invalid for question {i}")
        pointer = data["pointer"]
        if count and not 0 <= pointer < count:
            raise InvalidOperation(f"Snapshot pointer {pointer} out of range")
        attempt.answers = answers
        attempt.flags = flags
        attempt.time_spent = time_spent
        attempt.pointer = pointer
        attempt.started_at = data["started_at"]
        attempt.finished_at = data.get("finished_at")
        attempt.violations = int(data.get("violations", 0))
        attempt.status = AttemptStatus(data["status"])
        if attempt.status == AttemptStatus.IN_PROGRESS:
            attempt._entered_at = clock()
        elif attempt.status == AttemptStatus.FINISHED:
            attempt.answers = tuple(answers)
            attempt.flags = tuple(flags)
            attempt.time_spent = tuple(time_spent)
        return attempt

    # --- internals ---

    def _require(self, status: AttemptStatus, operation: str) -> None:
        if self.status != status:
            raise InvalidOperation(
                f"{operation} requires a {status.value} attempt, this one is {self.status.value}"
            )

    def _check_pointer(self, pointer: int) -> None:
        if not _is_index(pointer) or not 0 <= pointer < len(self.questions):
            raise InvalidOperation(f"Question pointer {pointer} out of range")

    def _close_interval(self, now: float) -> None:
        if self._entered_at is None:
            return
        self.time_spent[self.pointer] += max(0.0, now - self._entered_at)
        self._entered_at = None
