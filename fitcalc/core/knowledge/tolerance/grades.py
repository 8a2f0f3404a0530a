"""
ISO Tolerance Grades (IT01-IT18).

Grades are identified by their label: "01" (finer than 0), "0", "1" ... "18".
Labels are the keys of the reference index; ordering puts "01" immediately
before "0".
"""

from enum import Enum
from typing import Iterable, List, Optional, Union


class ITGrade(str, Enum):
    """ISO Standard Tolerance Grades."""

    IT01 = "01"
    IT0 = "0"
    IT1 = "1"
    IT2 = "2"
    IT3 = "3"
    IT4 = "4"
    IT5 = "5"
    IT6 = "6"
    IT7 = "7"
    IT8 = "8"
    IT9 = "9"
    IT10 = "10"
    IT11 = "11"
    IT12 = "12"
    IT13 = "13"
    IT14 = "14"
    IT15 = "15"
    IT16 = "16"
    IT17 = "17"
    IT18 = "18"


GRADE_LABELS: List[str] = [grade.value for grade in ITGrade]

FINEST_GRADE = ITGrade.IT01.value


def normalize_grade(value: Union[str, int, ITGrade]) -> Optional[str]:
    """
    Normalize a grade to its label, or None when it is not an IT grade.

    "01" stays "01"; other leading zeros are dropped ("07" -> "7").
    """
    if isinstance(value, ITGrade):
        return value.value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        label = str(value)
    else:
        text = str(value).strip().upper()
        if text.startswith("IT"):
            text = text[2:]
        if not text.isdigit():
            return None
        label = text if text == FINEST_GRADE else str(int(text))
    return label if label in GRADE_LABELS else None


def grade_sort_key(label: str) -> float:
    """Numeric sort key: "01" -> -0.5, "0" -> 0, "7" -> 7, unknown last."""
    if label == FINEST_GRADE:
        return -0.5
    try:
        return float(int(label))
    except ValueError:
        return float("inf")


def sort_grades(labels: Iterable[str]) -> List[str]:
    return sorted(set(labels), key=grade_sort_key)


__all__ = [
    "ITGrade",
    "GRADE_LABELS",
    "FINEST_GRADE",
    "normalize_grade",
    "grade_sort_key",
    "sort_grades",
]
