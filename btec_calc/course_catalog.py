from typing import Iterable, List, Tuple

from .models import Course, Sector, UnitDefinition, UnitType

VALID_GLH: Tuple[int, ...] = (60, 90, 120)

_M = UnitType.MANDATORY
_O = UnitType.OPTIONAL

INITIAL_ESPORTS_UNITS: Tuple[UnitDefinition, ...] = (
    # Mandatory
    UnitDefinition("u1", 1, "Introduction to Esports", 60, _M),
    UnitDefinition("u2", 2, "Esports Skills, Strategies and Analysis", 120, _M),
    UnitDefinition("u3", 3, "Enterprise and Entrepreneurship in the Esports Industry", 90, _M),
    UnitDefinition("u4", 4, "Health, Wellbeing and Fitness for Esports Players", 90, _M),
    UnitDefinition("u5", 5, "Esports Events", 120, _M),
    # Optional
    UnitDefinition("u6", 6, "Live-streamed Broadcasting", 60, _O),
    UnitDefinition("u7", 7, "Producing an Esports Brand", 60, _O),
    UnitDefinition("u8", 8, "Video Production", 60, _O),
    UnitDefinition("u9", 9, "Games Design", 60, _O),
    UnitDefinition("u10", 10, "Business Applications of Esports in Social Media", 60, _O),
    UnitDefinition("u11", 11, "Shoutcasting", 60, _O),
    UnitDefinition("u12", 12, "Esports Coaching", 60, _O),
    UnitDefinition("u13", 13, "Psychology for Esports Performance", 60, _O),
    UnitDefinition("u14", 14, "Nutrition for Esports Performance", 60, _O),
    UnitDefinition("u15", 15, "Ethical and Current Issues in Esports", 60, _O),
    UnitDefinition("u19", 19, "Customer Immersion Experiences", 60, _O),
)

INITIAL_COURSES: Tuple[Course, ...] = (
    Course(
        id="c_esports_1080",
        academic_year="2024-25",
        sector=Sector.ESPORTS,
        name="Esports",
        qualification="Level 3 National Extended Diploma",
        total_glh=1080,
        units=INITIAL_ESPORTS_UNITS,
    ),
)


def sort_courses(courses: Iterable[Course]) -> List[Course]:
    """Newest academic year first, then sector A-Z."""
    by_sector = sorted(courses, key=lambda c: c.sector.value)
    return sorted(by_sector, key=lambda c: c.academic_year or "", reverse=True)


def course_label(course: Course) -> str:
    return f"{course.academic_year} | {course.name} ({course.qualification})"
