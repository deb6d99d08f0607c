"""
Marks to letter grade to grade point.

One boundary table is used everywhere a grade is produced (single-result
saves, batch uploads and previews). Lower bounds are inclusive and checked
top-down, first match wins.
"""
from decimal import Decimal, ROUND_HALF_UP

GRADE_BOUNDARIES = [
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "D"),
]
FAILING_GRADE = "F"

GRADE_POINTS = {
    "A+": 4.0, "A": 4.0, "A-": 3.7,
    "B+": 3.3, "B": 3.0, "B-": 2.7,
    "C+": 2.3, "C": 2.0,
    "D": 1.0, "F": 0.0,
}

# Worst to best, consistent with GRADE_BOUNDARIES.
GRADE_ORDER = [FAILING_GRADE] + [letter for _, letter in reversed(GRADE_BOUNDARIES)]


def percentage(marks_obtained, total_marks):
    """Percentage rounded to 2 decimals for storage; 0 when total_marks is not positive."""
    marks_obtained = float(marks_obtained)
    total_marks = float(total_marks)
    if total_marks <= 0:
        return 0.0
    return round_half_up(marks_obtained / total_marks * 100, 2)


def grade_for_percentage(pct):
    for lower_bound, letter in GRADE_BOUNDARIES:
        if pct >= lower_bound:
            return letter
    return FAILING_GRADE


def calculate_grade(marks_obtained, total_marks):
    return grade_for_percentage(percentage(marks_obtained, total_marks))


def grade_point(grade):
    return GRADE_POINTS.get(grade, 0.0)


def grade_rank(grade):
    return GRADE_ORDER.index(grade)


def is_passing(grade):
    return grade != FAILING_GRADE


def round_half_up(value, places=0):
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def display_percentage(part, whole):
    """Whole-number percentage for aggregates; 0 for an empty denominator."""
    if not whole:
        return 0
    return round_half_up(part / whole * 100)
