"""BTEC unit grade aggregation: points, qualification grade and UCAS score."""

from .backend_logic import calculate_results, points_for, resolve_boundary
from .models import (
    Course,
    Grade,
    GradeBoundary,
    ResultSummary,
    Sector,
    Student,
    StudentUnitResult,
    UnitDefinition,
    UnitType,
)
from .reference_tables import GradingScheme, default_scheme, load_scheme

__all__ = [
    "Course",
    "Grade",
    "GradeBoundary",
    "GradingScheme",
    "ResultSummary",
    "Sector",
    "Student",
    "StudentUnitResult",
    "UnitDefinition",
    "UnitType",
    "calculate_results",
    "default_scheme",
    "load_scheme",
    "points_for",
    "resolve_boundary",
]
