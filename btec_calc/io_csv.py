from typing import Iterable, List, Optional, Tuple

import pandas as pd

from .backend_logic import calculate_results, unit_breakdown
from .models import Course, Grade, Student, StudentUnitResult
from .records import set_unit_grade, toggle_lock
from .reference_tables import GradingScheme

# ------------------------
# CSV helpers (UI-side)
# ------------------------

_COLUMN_SYNONYMS = {
    "unit": "unit_id",
    "unitid": "unit_id",
    "unit id": "unit_id",
    "result": "grade",
    "signed off": "locked",
}


def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    renames = {c: _COLUMN_SYNONYMS[c] for c in df.columns
               if c in _COLUMN_SYNONYMS and _COLUMN_SYNONYMS[c] not in df.columns}
    if renames:
        df = df.rename(columns=renames)
    return df


def read_csv_upload(uploaded_file) -> pd.DataFrame:
    df = pd.read_csv(uploaded_file)
    return _normalise_cols(df)


def validate_results_csv(df: pd.DataFrame) -> pd.DataFrame:
    required = {"unit_id", "grade"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}. Expected: Unit_ID, Grade.")
    cols = ["unit_id", "grade"] + (["locked"] if "locked" in df.columns else [])
    return df[cols].copy()


def _is_blank(value) -> bool:
    return value is None or pd.isna(value) or str(value).strip() == ""


def _parse_grade(value) -> Grade:
    if _is_blank(value):
        return Grade.U
    text = str(value).strip().upper()
    try:
        return Grade(text)
    except ValueError:
        raise ValueError(f"Unknown grade {value!r}. Expected one of U, P, M, D.") from None


def _parse_bool(value) -> bool:
    if pd.isna(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "y", "1", "locked"}
    return bool(value)


def parse_results(df: pd.DataFrame) -> List[StudentUnitResult]:
    """
    Blank grades are read as U (pending).
    """
    rows = []
    for _, row in df.iterrows():
        unit_id = row.get("unit_id")
        if _is_blank(unit_id):
            continue
        rows.append(StudentUnitResult(
            unit_id=str(unit_id).strip(),
            grade=_parse_grade(row.get("grade")),
            locked=_parse_bool(row.get("locked", False)),
        ))
    return rows


# ------------------------
# Tables for display / export
# ------------------------

def results_frame(student: Student, course: Course,
                  scheme: Optional[GradingScheme] = None) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Number": row.unit.number,
                "Unit": row.unit.name,
                "Type": row.unit.unit_type.value,
                "GLH": row.unit.glh,
                "Grade": row.grade.value,
                "Locked": row.locked,
                "Points": row.points,
            }
            for row in unit_breakdown(student, course, scheme)
        ],
        columns=["Number", "Unit", "Type", "GLH", "Grade", "Locked", "Points"],
    )


def apply_results_edits(student: Student, course: Course, before: pd.DataFrame,
                        edited: pd.DataFrame) -> Tuple[Student, List[str]]:
    """
    Fold edits made to a results_frame table back into the student.

    Rows follow course.units order. Lock changes are applied before grade
    changes, so unlocking and regrading in one edit works. Cleared grade
    cells are ignored.
    returns: (updated student, unit ids whose grade edit hit a locked result)
    """
    updated = student
    refused = []
    for idx, unit in enumerate(course.units):
        if bool(edited.at[idx, "Locked"]) != bool(before.at[idx, "Locked"]):
            updated = toggle_lock(updated, unit.id)

        new_grade = edited.at[idx, "Grade"]
        if _is_blank(new_grade) or new_grade == before.at[idx, "Grade"]:
            continue
        current = updated.find_result(unit.id)
        if current is not None and current.locked:
            refused.append(unit.id)
            continue
        updated = set_unit_grade(updated, unit.id, _parse_grade(new_grade))
    return updated, refused


def cohort_frame(students: Iterable[Student], course: Course,
                 scheme: Optional[GradingScheme] = None) -> pd.DataFrame:
    rows = []
    for s in students:
        summary = calculate_results(s, course, scheme)
        rows.append({
            "Student": s.name,
            "Points": summary.total_points,
            "GLH": summary.current_glh,
            "Grade": summary.grade,
            "UCAS": summary.ucas_points,
            "Mandatory passed": summary.mandatory_passed,
        })
    return pd.DataFrame(rows, columns=["Student", "Points", "GLH", "Grade", "UCAS", "Mandatory passed"])


def cohort_csv(students: Iterable[Student], course: Course,
               scheme: Optional[GradingScheme] = None) -> bytes:
    return cohort_frame(students, course, scheme).to_csv(index=False).encode("utf-8")
