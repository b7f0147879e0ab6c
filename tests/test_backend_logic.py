from __future__ import annotations

import math

import pytest

from btec_calc.backend_logic import (
    calculate_results,
    check_plan,
    cohort_statistics,
    missing_mandatory_units,
    next_boundary,
    orphaned_results,
    outstanding_units,
    points_for,
    resolve_boundary,
    target_requirements,
    unit_breakdown,
)
from btec_calc.models import Grade, GradeBoundary, ResultSummary, Student, StudentUnitResult
from btec_calc.reference_tables import GRADE_BOUNDARIES_1080, POINTS_TABLE


# ------------------------
# points_for
# ------------------------

@pytest.mark.parametrize("glh", sorted(POINTS_TABLE))
def test_unachieved_scores_zero(glh) -> None:
    assert points_for(glh, Grade.U) == 0


@pytest.mark.parametrize("glh", sorted(POINTS_TABLE))
def test_points_strictly_increase_with_grade(glh) -> None:
    p, m, d = (points_for(glh, g) for g in (Grade.P, Grade.M, Grade.D))
    assert 0 < p < m < d


def test_known_points_values() -> None:
    assert points_for(60, Grade.D) == 16
    assert points_for(90, Grade.P) == 9
    assert points_for(120, Grade.M) == 20


def test_unsupported_glh_scores_zero_for_every_grade() -> None:
    for grade in Grade:
        assert points_for(75, grade) == 0


def test_unknown_grade_symbol_scores_zero() -> None:
    assert points_for(60, "X") == 0
    assert points_for(60, "D") == 16


# ------------------------
# calculate_results
# ------------------------

def test_empty_results(two_unit_course, make_student) -> None:
    summary = calculate_results(make_student(), two_unit_course)
    assert summary == ResultSummary(
        total_points=0, current_glh=0, grade="U", ucas_points=0, mandatory_passed=True
    )


def test_distinction_and_pass(two_unit_course, make_student) -> None:
    student = make_student(
        StudentUnitResult("m1", Grade.D),
        StudentUnitResult("o1", Grade.P),
    )
    summary = calculate_results(student, two_unit_course)
    assert summary.total_points == 25
    assert summary.current_glh == 150
    assert summary.mandatory_passed is True
    assert summary.grade == "U"
    assert summary.ucas_points == 0


def test_mandatory_unachieved_fails(two_unit_course, make_student) -> None:
    student = make_student(
        StudentUnitResult("m1", Grade.U),
        StudentUnitResult("o1", Grade.D),
    )
    summary = calculate_results(student, two_unit_course)
    assert summary.total_points == 24
    assert summary.current_glh == 90
    assert summary.mandatory_passed is False


def test_optional_unachieved_does_not_fail(two_unit_course, make_student) -> None:
    student = make_student(StudentUnitResult("o1", Grade.U))
    assert calculate_results(student, two_unit_course).mandatory_passed is True


def test_missing_mandatory_result_is_lenient(two_unit_course, make_student) -> None:
    student = make_student(StudentUnitResult("o1", Grade.M))
    assert calculate_results(student, two_unit_course).mandatory_passed is True
    assert [u.id for u in missing_mandatory_units(student, two_unit_course)] == ["m1"]


def test_orphaned_result_is_ignored(two_unit_course, make_student) -> None:
    student = make_student(
        StudentUnitResult("gone", Grade.D),
        StudentUnitResult("m1", Grade.P),
    )
    summary = calculate_results(student, two_unit_course)
    assert summary.total_points == 6
    assert summary.current_glh == 60
    assert [r.unit_id for r in orphaned_results(student, two_unit_course)] == ["gone"]


def test_orphaned_unachieved_does_not_trip_mandatory(two_unit_course, make_student) -> None:
    student = make_student(StudentUnitResult("gone", Grade.U))
    assert calculate_results(student, two_unit_course).mandatory_passed is True


def test_string_grades_follow_the_same_rules(two_unit_course, make_student) -> None:
    student = make_student(StudentUnitResult("m1", "U"), StudentUnitResult("o1", "P"))
    assert student.results[0].grade is Grade.U
    summary = calculate_results(student, two_unit_course)
    assert summary.total_points == 9
    assert summary.current_glh == 90
    assert summary.mandatory_passed is False


def test_unknown_grade_symbol_rejected_on_result() -> None:
    with pytest.raises(ValueError):
        StudentUnitResult("m1", "A")


def test_mandatory_flag_is_never_restored(two_unit_course, make_student) -> None:
    student = make_student(
        StudentUnitResult("m1", Grade.U),
        StudentUnitResult("m1", Grade.D),
    )
    summary = calculate_results(student, two_unit_course)
    assert summary.mandatory_passed is False
    # duplicates are summed, not deduplicated
    assert summary.total_points == 16


def test_calculate_is_idempotent(esports_course, all_distinctions) -> None:
    first = calculate_results(all_distinctions, esports_course)
    second = calculate_results(all_distinctions, esports_course)
    assert first == second
    assert all_distinctions.results[0].grade is Grade.D


def test_all_distinctions_top_grade(esports_course, all_distinctions) -> None:
    summary = calculate_results(all_distinctions, esports_course)
    assert summary.total_points == 304
    assert summary.current_glh == 1140
    assert summary.grade == "D*D*D*"
    assert summary.ucas_points == 168


# ------------------------
# Boundaries
# ------------------------

@pytest.mark.parametrize(
    "points, grade, ucas",
    [(0, "U", 0), (89, "U", 0), (90, "PPP", 48), (149, "MMP", 80), (150, "MMM", 96),
     (259, "D*D*D", 160), (400, "D*D*D*", 168)],
)
def test_resolve_boundary(points, grade, ucas) -> None:
    assert resolve_boundary(points, GRADE_BOUNDARIES_1080) == (grade, ucas)


def test_boundary_resolution_is_monotonic() -> None:
    ucas = [resolve_boundary(p, GRADE_BOUNDARIES_1080)[1] for p in range(0, 320)]
    assert all(a <= b for a, b in zip(ucas, ucas[1:]))


def test_first_match_wins_in_table_order() -> None:
    rows = [GradeBoundary(10, "A", 2), GradeBoundary(5, "B", 1), GradeBoundary(0, "C", 0)]
    assert resolve_boundary(12, rows) == ("A", 2)
    assert resolve_boundary(7, rows) == ("B", 1)


def test_next_boundary() -> None:
    boundary, needed = next_boundary(85, GRADE_BOUNDARIES_1080)
    assert boundary.grade == "PPP"
    assert needed == 5
    assert next_boundary(260, GRADE_BOUNDARIES_1080) is None


# ------------------------
# Per-unit views and planning
# ------------------------

def test_unit_breakdown_follows_course_order(two_unit_course, make_student) -> None:
    student = make_student(StudentUnitResult("o1", Grade.M, locked=True))
    rows = unit_breakdown(student, two_unit_course)
    assert [r.unit.id for r in rows] == ["m1", "o1"]
    assert rows[0].grade is Grade.U and rows[0].recorded is False and rows[0].points == 0
    assert rows[1].locked is True and rows[1].points == 15


def test_outstanding_units(two_unit_course, make_student) -> None:
    student = make_student(StudentUnitResult("m1", Grade.P), StudentUnitResult("o1", Grade.U))
    assert [u.id for u in outstanding_units(student, two_unit_course)] == ["o1"]


def test_target_requirements(esports_course) -> None:
    student = Student("s2", "Sam", esports_course.id, (StudentUnitResult("u2", Grade.D),))
    req = target_requirements(student, esports_course, "PPP")
    assert req["summary"].total_points == 32
    assert req["points_needed"] == 58
    assert req["outstanding_glh"] == esports_course.declared_unit_glh - 120
    assert req["max_additional_points"] == 304 - 32
    assert req["achievable"] is True


def test_target_requirements_skips_locked_units(two_unit_course, make_student) -> None:
    student = make_student(StudentUnitResult("o1", Grade.U, locked=True))
    req = target_requirements(student, two_unit_course, "PPP")
    assert [u.id for u in req["open_units"]] == ["m1"]
    assert req["max_additional_points"] == 16
    assert req["achievable"] is False


def test_target_requirements_unknown_grade(two_unit_course, make_student) -> None:
    with pytest.raises(ValueError, match="Unknown target grade"):
        target_requirements(make_student(), two_unit_course, "ZZZ")


def test_check_plan_respects_locks(two_unit_course, make_student) -> None:
    student = make_student(StudentUnitResult("m1", Grade.P, locked=True))
    plan = check_plan(student, two_unit_course, {"m1": Grade.D, "o1": Grade.D}, target_grade="PPP")
    assert plan["summary"].total_points == 6 + 24
    assert plan["meets_target"] is False
    # input untouched
    assert student.results == (StudentUnitResult("m1", Grade.P, locked=True),)


def test_check_plan_without_target(two_unit_course, make_student) -> None:
    plan = check_plan(make_student(), two_unit_course, {"o1": "M"})
    assert plan["summary"].total_points == 15
    assert plan["meets_target"] is None


# ------------------------
# Cohort
# ------------------------

def test_cohort_statistics(esports_course, all_distinctions) -> None:
    failing = Student("s3", "Kai", esports_course.id, (StudentUnitResult("u1", Grade.U),))
    stats = cohort_statistics([all_distinctions, failing], esports_course)
    assert stats["count"] == 2
    assert stats["mean_points"] == pytest.approx(152.0)
    assert stats["max_points"] == 304.0
    assert stats["grade_counts"] == {"D*D*D*": 1, "U": 1}
    assert stats["mandatory_failures"] == 1


def test_cohort_statistics_empty(esports_course) -> None:
    stats = cohort_statistics([], esports_course)
    assert stats["count"] == 0
    assert math.isnan(stats["mean_points"])
