"""
Tests for the shift-code vocabulary and day classification.
"""

import pytest

from roster_kernel.domain.shift_codes import (
    SHIFT_CATEGORIES,
    SHIFT_LABELS,
    VALID_SHIFT_CODES,
    WORKING_SHIFT_CODES,
    DayCategory,
    ShiftCode,
    classify,
    parse_shift_code,
)
from roster_kernel.exceptions import InvalidInputError, InvalidShiftCodeError


class TestParseShiftCode:

    @pytest.mark.parametrize("raw", ["1", "2", "3", "ดึก", "OFF", "ข", "ป", "ก", "พ"])
    def test_every_vocabulary_code_parses(self, raw):
        assert parse_shift_code(raw).value == raw

    def test_enum_member_passes_through(self):
        assert parse_shift_code(ShiftCode.NIGHT) is ShiftCode.NIGHT

    @pytest.mark.parametrize("raw", ["X", "", "off", "4", " 1", None, 1])
    def test_unknown_code_rejected(self, raw):
        with pytest.raises(InvalidShiftCodeError) as exc_info:
            parse_shift_code(raw)
        assert exc_info.value.code == "INVALID_SHIFT_CODE"
        assert exc_info.value.valid_codes == VALID_SHIFT_CODES

    def test_unknown_code_is_invalid_input(self):
        with pytest.raises(InvalidInputError):
            parse_shift_code("LATE")


class TestClassify:

    def test_every_code_has_exactly_one_category(self):
        assert set(SHIFT_CATEGORIES) == set(ShiftCode)

    def test_every_code_has_a_label(self):
        assert set(SHIFT_LABELS) == set(ShiftCode)

    def test_working_codes(self):
        assert WORKING_SHIFT_CODES == {
            ShiftCode.MORNING, ShiftCode.AFTERNOON, ShiftCode.EVENING, ShiftCode.NIGHT,
        }

    def test_off_is_its_own_category(self):
        assert classify("OFF") is DayCategory.OFF

    def test_absence_and_leave(self):
        assert classify("ข") is DayCategory.ABSENT
        assert classify("ป") is DayCategory.SICK_LEAVE
        assert classify("ก") is DayCategory.PERSONAL_LEAVE
        assert classify("พ") is DayCategory.VACATION

    def test_classify_validates(self):
        with pytest.raises(InvalidShiftCodeError):
            classify("Z")
