"""GPA, letter grade and class rank calculations.

Pure functions with no database access. Bands are checked from the highest
threshold down and the first match wins.
"""

import math
from collections.abc import Iterable, Sequence
from typing import Literal

from coachdesk.core.exceptions import InvalidGPAError, InvalidPercentageError

RankPolicy = Literal["first_match", "dense", "ordinal"]

# (minimum percentage, GPA)
GPA_BANDS: list[tuple[float, float]] = [
    (90, 5.0),
    (85, 4.5),
    (80, 4.0),
    (75, 3.5),
    (70, 3.0),
    (65, 2.5),
    (60, 2.0),
    (55, 1.5),
    (50, 1.0),
]

# (minimum GPA, letter grade)
LETTER_BANDS: list[tuple[float, str]] = [
    (5.0, "A+"),
    (4.5, "A"),
    (4.0, "A-"),
    (3.5, "B+"),
    (3.0, "B"),
    (2.5, "B-"),
    (2.0, "C+"),
    (1.5, "C"),
    (1.0, "D"),
]

FAILING_GRADE = "F"
MAX_GPA = 5.0

GRADE_DESCRIPTIONS: dict[str, dict[str, str]] = {
    "bn": {
        "A+": "অসাধারণ",
        "A": "চমৎকার",
        "A-": "খুব ভাল",
        "B+": "ভাল",
        "B": "মোটামুটি ভাল",
        "B-": "গড়ের উপরে",
        "C+": "গড়",
        "C": "চলনসই",
        "D": "দুর্বল",
        "F": "অকৃতকার্য",
    },
    "en": {
        "A+": "Outstanding",
        "A": "Excellent",
        "A-": "Very good",
        "B+": "Good",
        "B": "Fairly good",
        "B-": "Above average",
        "C+": "Average",
        "C": "Satisfactory",
        "D": "Weak",
        "F": "Fail",
    },
}

UNKNOWN_GRADE_DESCRIPTIONS: dict[str, str] = {
    "bn": "অজানা",
    "en": "Unknown",
}

DEFAULT_LOCALE = "bn"


def gpa_from_percentage(percentage: float) -> float:
    """Map a percentage in [0, 100] to a GPA point value."""
    if math.isnan(percentage) or percentage < 0 or percentage > 100:
        raise InvalidPercentageError(f"Percentage must be within [0, 100], got {percentage}")
    for minimum, gpa in GPA_BANDS:
        if percentage >= minimum:
            return gpa
    return 0.0


def grade_from_gpa(gpa: float) -> str:
    """Map a GPA in [0, 5] to a letter grade."""
    if math.isnan(gpa) or gpa < 0 or gpa > MAX_GPA:
        raise InvalidGPAError(f"GPA must be within [0, {MAX_GPA}], got {gpa}")
    for minimum, letter in LETTER_BANDS:
        if gpa >= minimum:
            return letter
    return FAILING_GRADE


def describe_grade(letter: str, locale: str = DEFAULT_LOCALE) -> str:
    """Get the human readable description of a letter grade.

    Unknown letters and unknown locales fall back to the locale's
    "unknown" text instead of raising.
    """
    table = GRADE_DESCRIPTIONS.get(locale)
    if table is None:
        return UNKNOWN_GRADE_DESCRIPTIONS[DEFAULT_LOCALE]
    return table.get(letter, UNKNOWN_GRADE_DESCRIPTIONS[locale])


def rank_of(
    student_gpa: float,
    all_gpas: Sequence[float],
    policy: RankPolicy = "first_match",
) -> int:
    """Get a student's 1-based rank among a cohort's GPAs.

    first_match: position of the first occurrence of the GPA in the list
    sorted descending, so tied students share the best position and the
    next distinct GPA skips past them (4.0, 4.0, 3.0 -> 1, 1, 3).
    dense: number of distinct higher GPAs plus one (4.0, 4.0, 3.0 -> 1, 1, 2).

    The ordinal policy needs a tie-break key and is only available
    through assign_ranks.
    """
    if student_gpa not in all_gpas:
        raise ValueError(f"GPA {student_gpa} is not part of the cohort")
    if policy == "first_match":
        ordered = sorted(all_gpas, reverse=True)
        return ordered.index(student_gpa) + 1
    if policy == "dense":
        return len({gpa for gpa in all_gpas if gpa > student_gpa}) + 1
    raise ValueError(f"Rank policy '{policy}' needs a tie-break key; use assign_ranks")


def assign_ranks(
    entries: Iterable[tuple[int, float, float]],
    policy: RankPolicy = "first_match",
) -> dict[int, int]:
    """Rank a whole cohort.

    entries are (student_id, gpa, final_percent) tuples. The ordinal policy
    gives every student a distinct rank, ordering ties by final percent
    (higher first) and then student id.
    """
    entries = list(entries)
    if policy == "ordinal":
        ordered = sorted(entries, key=lambda e: (-e[1], -e[2], e[0]))
        return {student_id: position for position, (student_id, _, _) in enumerate(ordered, start=1)}

    all_gpas = [gpa for _, gpa, _ in entries]
    return {student_id: rank_of(gpa, all_gpas, policy) for student_id, gpa, _ in entries}
