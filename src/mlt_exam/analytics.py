"""Performance analytics for a finished attempt.

Everything here is a pure function of the frozen attempt and the policy:
no clock reads, no randomness, no I/O. Grouping preserves the order in
which domains and subtopics are first seen in the attempt, and every sort
is stable, so ties keep that first-seen order.
"""
import math

from mlt_exam.config import DEFAULT_POLICY, ExamPolicy
from mlt_exam.errors import InvalidOperation
from mlt_exam.models import (
    AttemptReport, DomainPerformance, Recommendation, SrsPlan, SubtopicPerformance,
)
from mlt_exam.scoring import is_correct, score

WEAK = "weak"
MID = "mid"
GOOD = "good"
STRONG = "strong"


def classify_bucket(accuracy: float, policy: ExamPolicy = DEFAULT_POLICY) -> str:
    if accuracy < policy.weak_below:
        return WEAK
    elif accuracy < policy.mid_below:
        return MID
    elif accuracy < policy.good_below:
        return GOOD
    return STRONG


def calc_impact(accuracy: float, domain_count: int, total_count: int,
                policy: ExamPolicy = DEFAULT_POLICY) -> int:
    """Overall percentage points gained by lifting a domain to the impact target."""
    if total_count == 0:
        return 0
    gain = max(0.0, policy.impact_target - accuracy) * domain_count * 100 / total_count
    # Rounding first keeps float noise such as 28.000000000000004 from adding a point
    return math.ceil(round(gain, 9))


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def calc_srs_plan(question_count: int, elapsed_sec: float,
                  policy: ExamPolicy = DEFAULT_POLICY) -> SrsPlan:
    daily_new = _clamp(math.floor(question_count * policy.srs_new_ratio),
                       policy.srs_new_min, policy.srs_new_max)
    review_min = _clamp(math.floor(elapsed_sec / 60 * policy.srs_review_ratio),
                        policy.srs_review_min, policy.srs_review_max)
    return SrsPlan(daily_new=daily_new, review_min=review_min)


def get_domain_performance(attempt, policy: ExamPolicy = DEFAULT_POLICY) -> list[DomainPerformance]:
    stats = {}
    for question, answer, spent in zip(attempt.questions, attempt.answers, attempt.time_spent):
        entry = stats.setdefault(question.domain, {"count": 0, "correct": 0, "time": 0.0})
        entry["count"] += 1
        entry["correct"] += int(is_correct(question, answer))
        entry["time"] += spent or 0.0
    total = len(attempt.questions)
    results = []
    for name, s in stats.items():
        accuracy = s["correct"] / s["count"] if s["count"] else 0.0
        bucket = classify_bucket(accuracy, policy)
        results.append(DomainPerformance(
            name=name,
            count=s["count"],
            correct=s["correct"],
            accuracy=accuracy,
            avg_time_sec=s["time"] / s["count"] if s["count"] else 0.0,
            bucket=bucket,
            impact=calc_impact(accuracy, s["count"], total, policy) if bucket == WEAK else None,
        ))
    return results


def get_weakest_subtopics(attempt, policy: ExamPolicy = DEFAULT_POLICY) -> list[SubtopicPerformance]:
    """Lowest-accuracy subtopics, ties kept in first-seen order."""
    stats = {}
    for question, answer in zip(attempt.questions, attempt.answers):
        entry = stats.setdefault(question.subtopic, {"count": 0, "correct": 0, "ids": []})
        entry["count"] += 1
        entry["correct"] += int(is_correct(question, answer))
        entry["ids"].append(question.id)
    subtopics = [
        SubtopicPerformance(
            name=name,
            accuracy=s["correct"] / s["count"] if s["count"] else 0.0,
            question_ids=tuple(s["ids"]),
        )
        for name, s in stats.items()
    ]
    subtopics.sort(key=lambda s: s.accuracy)
    return subtopics[:policy.weakest_subtopics]


def get_recommendations(domains: list[DomainPerformance],
                        policy: ExamPolicy = DEFAULT_POLICY) -> list[Recommendation]:
    weak = [d for d in domains if d.bucket == WEAK]
    weak.sort(key=lambda d: d.impact or 0, reverse=True)
    return [
        Recommendation(
            type="drill",
            title=f"Intensive Practice: {d.name}",
            domain=d.name,
            duration_min=policy.drill_minutes,
            count=min(policy.drill_question_cap, d.count),
        )
        for d in weak[:policy.max_recommendations]
    ]


def build_report(attempt, policy: ExamPolicy = DEFAULT_POLICY) -> AttemptReport:
    """Derive the full report from a finished attempt."""
    if not attempt.is_finished:
        raise InvalidOperation("Reports can only be built from a finished attempt")
    result = score(attempt, policy.pass_percentage)
    domains = get_domain_performance(attempt, policy)
    elapsed = attempt.elapsed_seconds
    return AttemptReport(
        attempt_id=attempt.id,
        score_pct=result.score_pct,
        passed=result.passed,
        correct_count=result.correct_count,
        question_count=result.question_count,
        time_total_sec=elapsed,
        tab_leave_count=attempt.violations,
        domains=tuple(domains),
        subtopics_weakest=tuple(get_weakest_subtopics(attempt, policy)),
        skipped_ids=tuple(q.id for q, a in zip(attempt.questions, attempt.answers) if a is None),
        flagged_ids=tuple(q.id for q, f in zip(attempt.questions, attempt.flags) if f),
        recommendations=tuple(get_recommendations(domains, policy)),
        srs_plan=calc_srs_plan(result.question_count, elapsed, policy),
    )


def get_incorrect_items(attempt) -> list[tuple]:
    """(question, chosen index) for every answered but wrong question."""
    return [
        (q, a) for q, a in zip(attempt.questions, attempt.answers)
        if a is not None and a != q.correct_index
    ]


WEEK_TEMPLATE = [
    ("Monday", 0, "Review", 45, "Concept review + 10 practice questions"),
    ("Tuesday", 1, "Practice", 40, "Drill weak subtopics"),
    ("Wednesday", None, "Mixed Review", 35, "Flashcards + quick quiz"),
    ("Thursday", 0, "Review", 45, "Advanced practice questions"),
    ("Friday", None, "Comprehensive", 50, "Mixed domain practice test"),
    ("Saturday", None, "Review", 30, "Review flagged questions"),
    ("Sunday", None, "Assessment", 60, "Mini mock exam (50 questions)"),
]

TIME_TIPS = [
    "Focus on time management - you spent more time on easier questions",
    "Practice quick elimination of obviously wrong answers",
    "Set a target of 1.2 minutes per question on average",
]


def generate_study_plan(report: AttemptReport) -> dict:
    """Weekly plan built around the two weakest and one mid domain."""
    weak = [d for d in report.domains if d.bucket == WEAK]
    mid = [d for d in report.domains if d.bucket == MID]
    priorities = [
        {
            "domain": d.name,
            "reason": f"Low accuracy ({d.accuracy * 100:.1f}%) with high impact potential (+{d.impact} points)",
            "action": "Complete 20 practice questions focusing on weak subtopics",
        }
        for d in weak[:2]
    ] + [
        {
            "domain": d.name,
            "reason": f"Moderate performance ({d.accuracy * 100:.1f}%) - can be improved to strong",
            "action": "Review concepts and practice 15 targeted questions",
        }
        for d in mid[:1]
    ]
    week = []
    for day, slot, fallback, minutes, activity in WEEK_TEMPLATE:
        focus = fallback
        if slot is not None and slot < len(priorities):
            focus = priorities[slot]["domain"]
        week.append({"day": day, "focus": focus, "duration": minutes, "activity": activity})
    return {"priorities": priorities, "week_plan": week, "time_tips": list(TIME_TIPS)}
