"""
Shift-code vocabulary and day classification.

Responsibility:
    Define the closed vocabulary of persisted shift codes and map every
    code to exactly one day category.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    - The vocabulary is closed: ``parse_shift_code`` rejects anything not
      listed, it never falls back to OFF or absence.
    - Every code maps to exactly one ``DayCategory``.
    - OFF is cost neutral: neither worked nor absent.
"""

from __future__ import annotations

from enum import Enum

from roster_kernel.exceptions import InvalidShiftCodeError


class ShiftCode(str, Enum):
    """Persisted shift codes (the tokens stored in roster entries)."""

    MORNING = "1"
    AFTERNOON = "2"
    EVENING = "3"
    NIGHT = "ดึก"
    OFF = "OFF"
    ABSENT = "ข"
    SICK_LEAVE = "ป"
    PERSONAL_LEAVE = "ก"
    VACATION = "พ"


class DayCategory(str, Enum):
    """Attendance category a day is classified into."""

    WORKED = "worked"
    OFF = "off"
    ABSENT = "absent"
    SICK_LEAVE = "sick_leave"
    PERSONAL_LEAVE = "personal_leave"
    VACATION = "vacation"


LEAVE_CATEGORIES: frozenset[DayCategory] = frozenset({
    DayCategory.SICK_LEAVE,
    DayCategory.PERSONAL_LEAVE,
    DayCategory.VACATION,
})

SHIFT_CATEGORIES: dict[ShiftCode, DayCategory] = {
    ShiftCode.MORNING: DayCategory.WORKED,
    ShiftCode.AFTERNOON: DayCategory.WORKED,
    ShiftCode.EVENING: DayCategory.WORKED,
    ShiftCode.NIGHT: DayCategory.WORKED,
    ShiftCode.OFF: DayCategory.OFF,
    ShiftCode.ABSENT: DayCategory.ABSENT,
    ShiftCode.SICK_LEAVE: DayCategory.SICK_LEAVE,
    ShiftCode.PERSONAL_LEAVE: DayCategory.PERSONAL_LEAVE,
    ShiftCode.VACATION: DayCategory.VACATION,
}

# Display labels used by the roster grid
SHIFT_LABELS: dict[ShiftCode, str] = {
    ShiftCode.MORNING: "กะเช้า",
    ShiftCode.AFTERNOON: "กะบ่าย",
    ShiftCode.EVENING: "กะดึก",
    ShiftCode.NIGHT: "ดึก",
    ShiftCode.OFF: "หยุด",
    ShiftCode.ABSENT: "ขาด",
    ShiftCode.SICK_LEAVE: "ลาป่วย",
    ShiftCode.PERSONAL_LEAVE: "ลากิจ",
    ShiftCode.VACATION: "พักร้อน",
}

VALID_SHIFT_CODES: tuple[str, ...] = tuple(code.value for code in ShiftCode)

WORKING_SHIFT_CODES: frozenset[ShiftCode] = frozenset(
    code for code, category in SHIFT_CATEGORIES.items()
    if category is DayCategory.WORKED
)


def parse_shift_code(raw: object) -> ShiftCode:
    """
    Validate a raw token against the vocabulary.

    Raises:
        InvalidShiftCodeError: if ``raw`` is not exactly one of the codes.
    """
    if isinstance(raw, ShiftCode):
        return raw
    if not isinstance(raw, str):
        raise InvalidShiftCodeError(raw, VALID_SHIFT_CODES)
    try:
        return ShiftCode(raw)
    except ValueError:
        raise InvalidShiftCodeError(raw, VALID_SHIFT_CODES) from None


def classify(code: ShiftCode | str) -> DayCategory:
    """Day category for a shift code (validates the code first)."""
    return SHIFT_CATEGORIES[parse_shift_code(code)]
