from __future__ import annotations

import pytest

from btec_calc.course_catalog import INITIAL_COURSES
from btec_calc.models import (
    Course,
    Grade,
    Sector,
    Student,
    StudentUnitResult,
    UnitDefinition,
    UnitType,
)


@pytest.fixture()
def two_unit_course() -> Course:
    return Course(
        id="c_test",
        academic_year="2024-25",
        sector=Sector.COMPUTING,
        name="Computing",
        qualification="Level 3 National Extended Diploma",
        total_glh=1080,
        units=(
            UnitDefinition("m1", 1, "Principles of Computer Science", 60, UnitType.MANDATORY),
            UnitDefinition("o1", 2, "Website Development", 90, UnitType.OPTIONAL),
        ),
    )


@pytest.fixture()
def esports_course() -> Course:
    return INITIAL_COURSES[0]


@pytest.fixture()
def make_student():
    def _make(*results: StudentUnitResult, course_id: str = "c_test") -> Student:
        return Student(id="s1", name="Alex", course_id=course_id, results=tuple(results))
    return _make


@pytest.fixture()
def all_distinctions(esports_course: Course) -> Student:
    return Student(
        id="s_top",
        name="Top",
        course_id=esports_course.id,
        results=tuple(StudentUnitResult(u.id, Grade.D) for u in esports_course.units),
    )
