import logging
from collections import Counter
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .models import (
    Course,
    Grade,
    GradeBoundary,
    ResultSummary,
    Student,
    StudentUnitResult,
    UnitDefinition,
    UnitRow,
    UnitType,
)
from .reference_tables import GradingScheme, default_scheme

logger = logging.getLogger(__name__)


# ------------------------
# Core logic
# ------------------------
def points_for(glh: int, grade, scheme: Optional[GradingScheme] = None) -> int:
    """
    Points for one unit at the given size.
    Unknown GLH values and unknown grade symbols score 0.
    """
    scheme = scheme or default_scheme()
    mapping = scheme.points_table.get(glh)
    if mapping is None:
        return 0
    if not isinstance(grade, Grade):
        try:
            grade = Grade(grade)
        except ValueError:
            return 0
    return mapping.get(grade, 0)


def resolve_boundary(total_points: int, boundaries: Sequence[GradeBoundary]) -> Tuple[str, int]:
    """
    First row (highest threshold first) with min_points <= total_points.
    returns: (grade label, UCAS points)
    """
    for b in boundaries:
        if total_points >= b.min_points:
            return b.grade, b.ucas_points
    return "U", 0


def calculate_results(student: Student, course: Course,
                      scheme: Optional[GradingScheme] = None) -> ResultSummary:
    scheme = scheme or default_scheme()
    total_points = 0
    current_glh = 0
    mandatory_passed = True

    for res in student.results:
        unit = course.find_unit(res.unit_id)
        if unit is None:
            logger.debug("Student %s: result for unknown unit %r skipped", student.id, res.unit_id)
            continue

        total_points += points_for(unit.glh, res.grade, scheme)
        if res.grade is not Grade.U:
            current_glh += unit.glh

        # Only an explicit U on a mandatory unit trips the flag
        if unit.unit_type is UnitType.MANDATORY and res.grade is Grade.U:
            mandatory_passed = False

    grade, ucas = resolve_boundary(total_points, scheme.boundaries)

    return ResultSummary(
        total_points=total_points,
        current_glh=current_glh,
        grade=grade,
        ucas_points=ucas,
        mandatory_passed=mandatory_passed,
    )


# ------------------------
# Per-unit views
# ------------------------
def unit_breakdown(student: Student, course: Course,
                   scheme: Optional[GradingScheme] = None) -> List[UnitRow]:
    rows = []
    for unit in course.units:
        res = student.find_result(unit.id)
        grade = res.grade if res is not None else Grade.U
        rows.append(UnitRow(
            unit=unit,
            grade=grade,
            locked=bool(res is not None and res.locked),
            points=points_for(unit.glh, grade, scheme),
            recorded=res is not None,
        ))
    return rows


def missing_mandatory_units(student: Student, course: Course) -> List[UnitDefinition]:
    """Mandatory units with no recorded result. These do not affect mandatory_passed."""
    recorded = {r.unit_id for r in student.results}
    return [u for u in course.mandatory_units if u.id not in recorded]


def orphaned_results(student: Student, course: Course) -> List[StudentUnitResult]:
    return [r for r in student.results if course.find_unit(r.unit_id) is None]


# ------------------------
# Planning
# ------------------------
def next_boundary(total_points: int,
                  boundaries: Sequence[GradeBoundary]) -> Optional[Tuple[GradeBoundary, int]]:
    """
    The closest boundary above total_points and the points still needed for it.
    None when already at the top boundary.
    """
    above = None
    for b in boundaries:
        if b.min_points > total_points:
            above = b
        else:
            break
    if above is None:
        return None
    return above, above.min_points - total_points


def find_boundary(grade_label: str, boundaries: Sequence[GradeBoundary]) -> GradeBoundary:
    for b in boundaries:
        if b.grade == grade_label:
            return b
    labels = [b.grade for b in boundaries]
    raise ValueError(f"Unknown target grade {grade_label!r}. Expected one of {labels}.")


def outstanding_units(student: Student, course: Course) -> List[UnitDefinition]:
    """Course units without a passing result, in course order."""
    out = []
    for unit in course.units:
        res = student.find_result(unit.id)
        if res is None or res.grade is Grade.U:
            out.append(unit)
    return out


def target_requirements(student: Student, course: Course, target_grade: str,
                        scheme: Optional[GradingScheme] = None) -> dict:
    """
    How far the student is from target_grade.

    "max_additional_points" assumes every outstanding unit is achieved at D,
    except locked ones, which cannot change.
    """
    scheme = scheme or default_scheme()
    target = find_boundary(target_grade, scheme.boundaries)
    summary = calculate_results(student, course, scheme)

    points_needed = max(0, target.min_points - summary.total_points)

    remaining = outstanding_units(student, course)
    open_units = []
    for unit in remaining:
        res = student.find_result(unit.id)
        if res is not None and res.locked:
            continue
        open_units.append(unit)

    max_additional = sum(points_for(u.glh, Grade.D, scheme) for u in open_units)

    return {
        "summary": summary,
        "target_grade": target.grade,
        "target_min_points": target.min_points,
        "target_ucas_points": target.ucas_points,
        "points_needed": points_needed,
        "outstanding_glh": sum(u.glh for u in remaining),
        "open_units": open_units,
        "max_additional_points": max_additional,
        "achievable": points_needed <= max_additional,
    }


def check_plan(student: Student, course: Course, planned_grades: Mapping[str, Grade],
               target_grade: Optional[str] = None,
               scheme: Optional[GradingScheme] = None) -> dict:
    """
    Apply hypothetical grades {unit_id: grade} and recompute.
    Locked results keep their recorded grade.
    """
    scheme = scheme or default_scheme()

    results = list(student.results)
    for unit_id, grade in planned_grades.items():
        grade = Grade(grade)
        idx = next((i for i, r in enumerate(results) if r.unit_id == unit_id), None)
        if idx is None:
            results.append(StudentUnitResult(unit_id=unit_id, grade=grade))
        elif not results[idx].locked:
            results[idx] = StudentUnitResult(unit_id=unit_id, grade=grade, locked=False)

    planned = Student(id=student.id, name=student.name, course_id=student.course_id,
                      results=tuple(results))
    summary = calculate_results(planned, course, scheme)

    result = {
        "summary": summary,
        "planned_student": planned,
        "target_grade": target_grade,
        "meets_target": None,
    }
    if target_grade is not None:
        target = find_boundary(target_grade, scheme.boundaries)
        result["meets_target"] = summary.total_points >= target.min_points
    return result


# ------------------------
# Cohort view
# ------------------------
def cohort_statistics(students: Iterable[Student], course: Course,
                      scheme: Optional[GradingScheme] = None) -> dict:
    scheme = scheme or default_scheme()
    summaries = [calculate_results(s, course, scheme) for s in students]

    if not summaries:
        return {
            "count": 0,
            "mean_points": np.nan,
            "median_points": np.nan,
            "max_points": np.nan,
            "grade_counts": {},
            "mandatory_failures": 0,
        }

    points = np.array([s.total_points for s in summaries], dtype=float)
    grade_counts: Dict[str, int] = dict(Counter(s.grade for s in summaries))

    return {
        "count": len(summaries),
        "mean_points": float(np.mean(points)),
        "median_points": float(np.median(points)),
        "max_points": float(np.max(points)),
        "grade_counts": grade_counts,
        "mandatory_failures": sum(1 for s in summaries if not s.mandatory_passed),
    }
