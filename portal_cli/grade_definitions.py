"""
Grade definitions for the portal.

Grades are derived from a numeric score using inclusive lower bounds only:
there is no upper bound, so a score above 100 is still an A. Grade points
weight course units when a GPA is calculated.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from portal_cli.models import GradeType

DEFAULT_UNITS = 3


@dataclass
class GradeDefinition:
    """A grade letter, its point value and the lowest score that earns it."""

    grade: GradeType
    points: float
    description: str
    min_score: float


GRADE_DEFINITIONS: List[GradeDefinition] = [
    GradeDefinition(grade="A", points=5.0, description="Excellent", min_score=70),
    GradeDefinition(grade="B", points=4.0, description="Very Good", min_score=60),
    GradeDefinition(grade="C", points=3.0, description="Good", min_score=50),
    GradeDefinition(grade="D", points=2.0, description="Fair", min_score=40),
    GradeDefinition(grade="F", points=0.0, description="Fail", min_score=float("-inf")),
]

_GRADE_LOOKUP: Dict[str, GradeDefinition] = {
    grade_def.grade: grade_def for grade_def in GRADE_DEFINITIONS
}

# Highest threshold first so the first match wins
_SCORE_THRESHOLDS: List[Tuple[float, GradeType]] = sorted(
    ((grade_def.min_score, grade_def.grade) for grade_def in GRADE_DEFINITIONS),
    reverse=True,
)


def get_grade_definition(grade: str) -> Optional[GradeDefinition]:
    return _GRADE_LOOKUP.get(grade)


def get_grade_points(grade: str) -> float:
    """
    Get the point value for a grade letter.

    Unknown grades count as zero points, the same as an F.
    """
    grade_def = get_grade_definition(grade)
    return grade_def.points if grade_def else 0.0


def score_to_grade(score: float) -> GradeType:
    """
    Convert a numeric score to a grade letter.

    Args:
        score: The score to convert

    Returns:
        A for 70 and above, B for 60 and above, C for 50 and above,
        D for 40 and above, F otherwise
    """
    for min_score, grade in _SCORE_THRESHOLDS:
        if score >= min_score:
            return grade
    return "F"


def is_passing_grade(grade: str) -> bool:
    return get_grade_points(grade) > 0


def calculate_gpa(graded_units: Iterable[Tuple[str, float]]) -> float:
    """
    Units-weighted grade point average.

    Args:
        graded_units: (grade, units) pairs, one per result

    Returns:
        The weighted average, or 0.0 when the total units are zero
    """
    points = 0.0
    units = 0.0
    for grade, course_units in graded_units:
        points += get_grade_points(grade) * course_units
        units += course_units
    return points / units if units > 0 else 0.0


def format_gpa(gpa: float) -> str:
    return f"{gpa:.2f}"
