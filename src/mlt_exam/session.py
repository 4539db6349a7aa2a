"""Exam session: one attempt wired to its deadline, integrity and persistence.

Events are handled one at a time in the order they arrive. Every event
first samples the deadline, so an expired exam is finished before the
event is considered. Snapshot writes happen after each successful
mutation; a failed write is logged and the session continues in memory.
"""
import logging
import random
import time
from typing import Callable, Optional

from mlt_exam.analytics import build_report
from mlt_exam.attempt import Attempt
from mlt_exam.config import DEFAULT_POLICY, ExamPolicy
from mlt_exam.errors import Expired, PersistenceFailure
from mlt_exam.integrity import IntegrityMonitor
from mlt_exam.models import AttemptReport, AttemptStatus
from mlt_exam.persistence import SnapshotStore, resume_attempt
from mlt_exam.timer import DeadlineMonitor

logger = logging.getLogger(__name__)


class ExamSession:
    def __init__(
        self,
        attempt: Attempt,
        store: SnapshotStore,
        policy: ExamPolicy = DEFAULT_POLICY,
        clock: Callable[[], float] = time.time,
        on_warning: Optional[Callable[[int], None]] = None,
        on_report: Optional[Callable[[AttemptReport], None]] = None,
    ):
        self.attempt = attempt
        self.store = store
        self.policy = policy
        self.report: Optional[AttemptReport] = None
        self.persisted = True
        self.expired = False
        self._clock = clock
        self._on_report = on_report
        self.monitor = None
        self.integrity = None
        if attempt.is_active:
            self.monitor = DeadlineMonitor(
                attempt.started_at,
                policy.duration_seconds,
                on_expire=self._on_expire,
                warning_marks=policy.warning_marks_seconds,
                on_warning=on_warning,
            )
            self.integrity = IntegrityMonitor(attempt.record_violation)
        elif attempt.is_finished:
            self._finalize()

    @classmethod
    def start(
        cls,
        questions,
        store: SnapshotStore,
        policy: ExamPolicy = DEFAULT_POLICY,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
        **kwargs,
    ) -> "ExamSession":
        """Begin a fresh attempt, discarding whatever session the store held."""
        return cls._begin(Attempt(clock=clock, rng=rng), questions, store, policy, clock, **kwargs)

    @classmethod
    def prepare(
        cls,
        provider: Callable[[], list],
        store: SnapshotStore,
        policy: ExamPolicy = DEFAULT_POLICY,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
        on_status: Optional[Callable[[AttemptStatus], None]] = None,
        **kwargs,
    ) -> "ExamSession":
        """Build the question set with provider(), then begin the attempt.

        The attempt passes through generating and ready on its way to
        in-progress; on_status is told about each step. Errors from the
        provider propagate and the half-prepared attempt is dropped.
        """
        attempt = Attempt(clock=clock, rng=rng)
        attempt.begin_preparation()
        if on_status:
            on_status(attempt.status)
        questions = provider()
        attempt.mark_ready()
        if on_status:
            on_status(attempt.status)
        session = cls._begin(attempt, questions, store, policy, clock, **kwargs)
        if on_status:
            on_status(attempt.status)
        return session

    @classmethod
    def _begin(cls, attempt, questions, store, policy, clock, **kwargs) -> "ExamSession":
        attempt.start(questions)
        cls._clear_store(store)
        session = cls(attempt, store, policy=policy, clock=clock, **kwargs)
        session._persist()
        return session

    @classmethod
    def resume(
        cls,
        store: SnapshotStore,
        policy: ExamPolicy = DEFAULT_POLICY,
        clock: Callable[[], float] = time.time,
        **kwargs,
    ) -> Optional["ExamSession"]:
        """Reopen the stored attempt. A deadline that passed meanwhile finishes it."""
        try:
            attempt = resume_attempt(store, policy.duration_seconds, clock(), clock=clock)
        except PersistenceFailure as e:
            logger.warning("Could not resume stored attempt: %s", e)
            return None
        if attempt is None:
            return None
        session = cls(attempt, store, policy=policy, clock=clock, **kwargs)
        session.expired = attempt.is_finished
        return session

    # --- events ---

    def tick(self, now: Optional[float] = None) -> float:
        """Sample the deadline; returns seconds remaining."""
        if self.monitor is None:
            return 0.0
        return self.monitor.tick(self._clock() if now is None else now)

    def select_answer(self, option_index: int, pointer: Optional[int] = None) -> None:
        self._check_deadline()
        self.attempt.select_answer(self._pointer(pointer), option_index)
        self._persist()

    def toggle_flag(self, pointer: Optional[int] = None) -> bool:
        self._check_deadline()
        flagged = self.attempt.toggle_flag(self._pointer(pointer))
        self._persist()
        return flagged

    def navigate(self, new_pointer: int) -> bool:
        self._check_deadline()
        moved = self.attempt.navigate(new_pointer)
        if moved:
            self._persist()
        return moved

    def skip(self) -> bool:
        self._check_deadline()
        moved = self.attempt.skip()
        if moved:
            self._persist()
        return moved

    def visibility_changed(self, hidden: bool) -> int:
        """Feed the focus signal to the integrity monitor. Never blocks the exam."""
        self.tick()
        if self.integrity is None or not self.attempt.is_active:
            return self.attempt.violations
        before = self.attempt.violations
        count = self.integrity.observe(hidden)
        if count != before:
            self._persist()
        return count

    def finish(self) -> AttemptReport:
        self.tick()
        if self.report is not None:
            return self.report
        self.attempt.finish()
        return self._finalize()

    # --- internals ---

    def _pointer(self, pointer: Optional[int]) -> int:
        return self.attempt.pointer if pointer is None else pointer

    def _check_deadline(self) -> None:
        self.tick()
        if self.expired:
            raise Expired(f"Attempt {self.attempt.id} has ended")

    def _on_expire(self, deadline: float) -> None:
        logger.info("Time is up for attempt %s", self.attempt.id)
        self.expired = True
        self.attempt.finish(now=deadline)
        self._finalize()

    def _finalize(self) -> AttemptReport:
        self.report = build_report(self.attempt, self.policy)
        self._clear_store(self.store)
        if self._on_report:
            self._on_report(self.report)
        return self.report

    def _persist(self) -> None:
        try:
            self.store.save(self.attempt.to_snapshot())
            self.persisted = True
        except PersistenceFailure as e:
            self.persisted = False
            logger.warning("Snapshot not saved, continuing in memory: %s", e)

    @staticmethod
    def _clear_store(store: SnapshotStore) -> None:
        try:
            store.clear()
        except PersistenceFailure as e:
            logger.warning("Could not clear stored attempt: %s", e)
