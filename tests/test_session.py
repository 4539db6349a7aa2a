import pytest

from mlt_exam.config import ExamPolicy
from mlt_exam.errors import Expired, InvalidOperation, PersistenceFailure, ProviderUnavailable
from mlt_exam.models import AttemptStatus
from mlt_exam.persistence import MemorySnapshotStore
from mlt_exam.session import ExamSession

POLICY = ExamPolicy(duration_minutes=30, warning_marks_minutes=(10, 5, 1))


class BrokenStore(MemorySnapshotStore):
    def save(self, snapshot):
        raise PersistenceFailure("disk full")

    def clear(self):
        raise PersistenceFailure("disk full")


def new_session(questions, clock, rng, store=None, **kwargs):
    return ExamSession.start(questions, store or MemorySnapshotStore(), policy=POLICY,
                             clock=clock, rng=rng, **kwargs)


def test_start_persists_snapshot(make_question, clock, rng):
    store = MemorySnapshotStore()
    session = new_session([make_question(i) for i in range(3)], clock, rng, store)
    assert store.load()["id"] == session.attempt.id


def test_start_replaces_previous_session(make_question, clock, rng):
    store = MemorySnapshotStore()
    first = new_session([make_question(i) for i in range(3)], clock, rng, store)
    second = new_session([make_question(i) for i in range(3)], clock, rng, store)
    assert store.load()["id"] == second.attempt.id != first.attempt.id


def test_each_mutation_is_persisted(make_question, clock, rng):
    store = MemorySnapshotStore()
    session = new_session([make_question(i) for i in range(3)], clock, rng, store)
    session.select_answer(2)
    assert store.load()["answers"][0] == 2
    session.toggle_flag()
    assert store.load()["flags"][0] is True
    session.navigate(2)
    assert store.load()["pointer"] == 2


def test_invalid_option_leaves_snapshot_unchanged(make_question, clock, rng):
    store = MemorySnapshotStore()
    session = new_session([make_question(i) for i in range(3)], clock, rng, store)
    with pytest.raises(InvalidOperation):
        session.select_answer(4)
    assert store.load()["answers"] == [None, None, None]


def test_persistence_failure_does_not_abort(make_question, clock, rng):
    session = new_session([make_question(i) for i in range(3)], clock, rng, BrokenStore())
    session.select_answer(1)
    assert session.persisted is False
    assert session.attempt.answers[0] == 1
    report = session.finish()
    assert report.question_count == 3


def test_finish_clears_store_and_reports_once(make_question, clock, rng):
    store = MemorySnapshotStore()
    reports = []
    session = new_session([make_question(i) for i in range(3)], clock, rng, store,
                          on_report=reports.append)
    first = session.finish()
    second = session.finish()
    assert first is second
    assert reports == [first]
    assert store.load() is None


def test_deadline_finishes_session_once(make_question, clock, rng):
    reports = []
    session = new_session([make_question(i) for i in range(3)], clock, rng,
                          on_report=reports.append)
    clock.advance(POLICY.duration_seconds + 1)
    assert session.tick() == 0
    session.tick()
    assert session.expired
    assert len(reports) == 1
    assert reports[0].time_total_sec == POLICY.duration_seconds


def test_finish_after_deadline_is_treated_as_expiry(make_question, clock, rng):
    reports = []
    session = new_session([make_question(i) for i in range(3)], clock, rng,
                          on_report=reports.append)
    clock.advance(POLICY.duration_seconds + 7200)
    report = session.finish()
    assert session.expired
    assert report.time_total_sec == POLICY.duration_seconds
    assert reports == [report]


def test_operations_after_deadline_raise_expired(make_question, clock, rng):
    session = new_session([make_question(i) for i in range(3)], clock, rng)
    clock.advance(POLICY.duration_seconds)
    with pytest.raises(Expired):
        session.select_answer(0)
    assert session.report is not None
    assert session.attempt.answers == (None, None, None)


def test_time_warnings(make_question, clock, rng):
    warnings = []
    session = new_session([make_question(1)], clock, rng, on_warning=warnings.append)
    clock.advance(20 * 60)
    session.tick()
    clock.advance(5 * 60)
    session.tick()
    assert warnings == [600, 300]


def test_visibility_changes_count_hidden_transitions(make_question, clock, rng):
    store = MemorySnapshotStore()
    session = new_session([make_question(i) for i in range(2)], clock, rng, store)
    session.select_answer(1)
    for hidden in (True, False, True, False):
        session.visibility_changed(hidden)
    assert session.attempt.violations == 2
    assert store.load()["violations"] == 2
    assert session.attempt.answers[0] == 1
    session.select_answer(3)
    assert session.finish().tab_leave_count == 2


def test_visibility_after_finish_is_ignored(make_question, clock, rng):
    session = new_session([make_question(1)], clock, rng)
    session.finish()
    assert session.visibility_changed(True) == 0


def test_resume_restores_session(make_question, clock, rng):
    store = MemorySnapshotStore()
    session = new_session([make_question(i) for i in range(3)], clock, rng, store)
    session.select_answer(3)
    clock.advance(60)
    resumed = ExamSession.resume(store, policy=POLICY, clock=clock)
    assert resumed.attempt.id == session.attempt.id
    assert resumed.attempt.answers[0] == 3
    assert resumed.report is None
    assert resumed.tick() == POLICY.duration_seconds - 60


def test_resume_after_deadline_reports_expired(make_question, clock, rng):
    store = MemorySnapshotStore()
    reports = []
    new_session([make_question(i) for i in range(3)], clock, rng, store)
    clock.advance(POLICY.duration_seconds + 3600)
    resumed = ExamSession.resume(store, policy=POLICY, clock=clock, on_report=reports.append)
    assert resumed.expired
    assert resumed.report.time_total_sec == POLICY.duration_seconds
    assert reports == [resumed.report]
    assert store.load() is None
    assert ExamSession.resume(store, policy=POLICY, clock=clock) is None


def test_prepare_walks_through_preparation_states(make_question, clock, rng):
    store = MemorySnapshotStore()
    statuses = []
    session = ExamSession.prepare(
        lambda: [make_question(i) for i in range(3)], store, policy=POLICY,
        clock=clock, rng=rng, on_status=statuses.append,
    )
    assert statuses == [AttemptStatus.GENERATING, AttemptStatus.READY, AttemptStatus.IN_PROGRESS]
    assert session.attempt.is_active
    assert store.load()["id"] == session.attempt.id


def test_prepare_provider_failure_leaves_store_alone(make_question, clock, rng):
    store = MemorySnapshotStore()
    earlier = new_session([make_question(i) for i in range(3)], clock, rng, store)
    statuses = []

    def provider():
        raise ProviderUnavailable("bank is empty")

    with pytest.raises(ProviderUnavailable):
        ExamSession.prepare(provider, store, policy=POLICY, clock=clock, rng=rng,
                            on_status=statuses.append)
    assert statuses == [AttemptStatus.GENERATING]
    assert store.load()["id"] == earlier.attempt.id
