"""Copy-on-write edits to a student's unit results.

Every function returns a new Student and leaves its input untouched.
Locked results have been signed off and are not changed by grade edits.
"""

import logging
import random
import string
from dataclasses import replace
from typing import List

from .models import Course, Grade, Student, StudentUnitResult

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(length: int = 7) -> str:
    return "".join(random.choices(_ID_ALPHABET, k=length))


def _index_of(student: Student, unit_id: str) -> int:
    for i, r in enumerate(student.results):
        if r.unit_id == unit_id:
            return i
    return -1


def new_student(name: str, course: Course) -> Student:
    name = (name or "").strip()
    if not name:
        raise ValueError("Student name must not be blank.")
    results = tuple(StudentUnitResult(unit_id=u.id, grade=Grade.U, locked=False) for u in course.units)
    return Student(id=generate_id(), name=name, course_id=course.id, results=results)


def set_unit_grade(student: Student, unit_id: str, grade: Grade) -> Student:
    grade = Grade(grade)
    idx = _index_of(student, unit_id)
    results = list(student.results)

    if idx > -1:
        if results[idx].locked:
            logger.info("Student %s: unit %s is locked, grade not changed", student.id, unit_id)
            return student
        results[idx] = replace(results[idx], grade=grade)
    else:
        results.append(StudentUnitResult(unit_id=unit_id, grade=grade))

    return replace(student, results=tuple(results))


def toggle_lock(student: Student, unit_id: str) -> Student:
    idx = _index_of(student, unit_id)
    results = list(student.results)

    if idx > -1:
        results[idx] = replace(results[idx], locked=not results[idx].locked)
    else:
        # no result yet: sign off as U
        results.append(StudentUnitResult(unit_id=unit_id, grade=Grade.U, locked=True))

    return replace(student, results=tuple(results))


def add_unit(student: Student, unit_id: str) -> Student:
    if _index_of(student, unit_id) > -1:
        return student
    return replace(student, results=student.results + (StudentUnitResult(unit_id=unit_id),))


def remove_unit(student: Student, unit_id: str) -> Student:
    kept = tuple(r for r in student.results if r.unit_id != unit_id or r.locked)
    locked_kept = sum(1 for r in kept if r.unit_id == unit_id)
    if locked_kept:
        logger.info("Student %s: %d locked result(s) for unit %s kept", student.id, locked_kept, unit_id)
    return replace(student, results=kept)


def update_student(students: List[Student], updated: Student) -> List[Student]:
    return [updated if s.id == updated.id else s for s in students]
