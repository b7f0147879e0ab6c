from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


# ------------------------
# Enumerations
# ------------------------
class Grade(Enum):
    U = "U"
    P = "P"
    M = "M"
    D = "D"

    @property
    def rank(self) -> int:
        return _GRADE_RANK[self]

    @property
    def label(self) -> str:
        return "Pending / U" if self is Grade.U else self.value

    def __lt__(self, other):
        if not isinstance(other, Grade):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Grade):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Grade):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Grade):
            return NotImplemented
        return self.rank >= other.rank


_GRADE_RANK = {Grade.U: 0, Grade.P: 1, Grade.M: 2, Grade.D: 3}


class UnitType(Enum):
    MANDATORY = "Mandatory"
    OPTIONAL = "Optional"


class Sector(Enum):
    ESPORTS = "Esports"
    COMPUTING = "Computing"
    IT = "IT"
    BUSINESS = "Business"
    CREATIVE_MEDIA = "Creative Media"
    OTHER = "Other"


# ------------------------
# Course definitions
# ------------------------
@dataclass(frozen=True)
class UnitDefinition:
    id: str
    number: int
    name: str
    glh: int  # 60, 90 or 120 in the standard tables
    unit_type: UnitType

    @property
    def is_mandatory(self) -> bool:
        return self.unit_type is UnitType.MANDATORY


@dataclass(frozen=True)
class Course:
    id: str
    academic_year: str  # e.g. "2024-25"
    sector: Sector
    name: str
    qualification: str
    total_glh: int
    units: Tuple[UnitDefinition, ...] = ()

    def find_unit(self, unit_id: str) -> Optional[UnitDefinition]:
        for unit in self.units:
            if unit.id == unit_id:
                return unit
        return None

    @property
    def mandatory_units(self) -> Tuple[UnitDefinition, ...]:
        return tuple(u for u in self.units if u.unit_type is UnitType.MANDATORY)

    @property
    def optional_units(self) -> Tuple[UnitDefinition, ...]:
        return tuple(u for u in self.units if u.unit_type is UnitType.OPTIONAL)

    @property
    def declared_unit_glh(self) -> int:
        """Sum of unit GLH. Informational only; may differ from total_glh."""
        return sum(u.glh for u in self.units)


# ------------------------
# Student records
# ------------------------
@dataclass(frozen=True)
class StudentUnitResult:
    unit_id: str
    grade: Grade = Grade.U
    locked: bool = False  # signed off by the teacher

    def __post_init__(self):
        # accept "P" as well as Grade.P; unknown symbols raise ValueError
        object.__setattr__(self, "grade", Grade(self.grade))


@dataclass(frozen=True)
class Student:
    id: str
    name: str
    course_id: str
    results: Tuple[StudentUnitResult, ...] = field(default_factory=tuple)

    def find_result(self, unit_id: str) -> Optional[StudentUnitResult]:
        for result in self.results:
            if result.unit_id == unit_id:
                return result
        return None


# ------------------------
# Boundaries and outputs
# ------------------------
@dataclass(frozen=True)
class GradeBoundary:
    min_points: int
    grade: str
    ucas_points: int


@dataclass(frozen=True)
class ResultSummary:
    total_points: int
    current_glh: int
    grade: str
    ucas_points: int
    mandatory_passed: bool


@dataclass(frozen=True)
class UnitRow:
    """One line of the per-unit results table."""
    unit: UnitDefinition
    grade: Grade
    locked: bool
    points: int
    recorded: bool
