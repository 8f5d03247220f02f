"""
Tests for utils/strings.py and utils/common.py

Parse-or-zero is the only numeric policy of the aggregation core, so every
malformed shape a sheet cell can take is pinned here.
"""
import math
import time
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.common import elapsed, percent, safe_ratio
from utils.strings import clean_amount, clean_text, normalize_whitespace, safe_float, safe_int


class TestSafeFloat:
    @pytest.mark.parametrize("value,expected", [
        ("12.5", 12.5),
        (" 1,250 ", 1250.0),
        ("١٢٣٫٥", 123.5),
        ("45 JD", 45.0),
        ("$7", 7.0),
        (3, 3.0),
        (True, 1.0),
    ])
    def test_parses(self, value, expected):
        assert safe_float(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "1.2.3", "--", float("nan"),
                                       float("inf"), [], {}])
    def test_malformed_is_zero(self, value):
        assert safe_float(value) == 0.0

    def test_custom_default(self):
        assert safe_float("n/a", default=-1.0) == -1.0

    def test_nbsp_thousands(self):
        assert safe_float("1\u00a0200") == 1200.0


class TestSafeInt:
    def test_truncates_float_text(self):
        assert safe_int("2015.0") == 2015

    def test_default(self):
        assert safe_int("unknown") == 0
        assert safe_int("unknown", default=7) == 7


class TestCleanAmount:
    def test_strips_free_text(self):
        assert clean_amount("300 دينار شهرياً") == 300.0

    def test_arabic_digits(self):
        assert clean_amount("٤٥٠ د.أ") == 450.0

    def test_numbers_and_none(self):
        assert clean_amount(275) == 275.0
        assert clean_amount(None) == 0.0
        assert clean_amount("بدون") == 0.0


class TestCleanText:
    def test_collapses_whitespace(self):
        assert normalize_whitespace("  مؤته   الجديدة ") == "مؤته الجديدة"

    def test_none_and_numbers(self):
        assert clean_text(None) == ""
        assert clean_text(2024) == "2024"


class TestRatios:
    def test_zero_denominator(self):
        assert safe_ratio(5, 0) == 0.0
        assert safe_ratio(5, 0.0) == 0.0
        assert percent(5, 0) == 0.0

    def test_never_nan(self):
        assert not math.isnan(safe_ratio(0, 0))

    def test_percent(self):
        assert percent(1, 4) == 25.0


class TestElapsed:
    def test_minutes_and_seconds(self):
        assert elapsed(time.time() - 135) == "2m 15s"

    def test_hours(self):
        assert elapsed(time.time() - 3930) == "1h 05m 30s"
