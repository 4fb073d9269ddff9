# -*- coding: utf-8 -*-
from datetime import date, datetime

import pytest

from utils.date_normalizer import DateNormalizer


@pytest.mark.parametrize("value, expected", [
    ("111/03/05", ("2022-03-05", "")),
    ("2024-3-5", ("2024-03-05", "")),
    ("2024.03.05 補件", ("2024-03-05", "補件")),
    ("99/1/2", ("2010-01-02", "")),
    (45000, ("2023-03-15", "")),
    ("45000", ("2023-03-15", "")),
    (datetime(2024, 3, 5, 10, 30), ("2024-03-05", "")),
    (date(2023, 12, 31), ("2023-12-31", "")),
])
def test_normalize(value, expected):
    assert DateNormalizer.normalize(value) == expected


def test_text_without_date_is_kept_as_note():
    assert DateNormalizer.normalize("未送件") == ("", "未送件")


def test_blank_values():
    assert DateNormalizer.normalize(None) == ("", "")
    assert DateNormalizer.normalize("  ") == ("", "")
    assert DateNormalizer.normalize(float("nan")) == ("", "")


def test_to_display():
    assert DateNormalizer.to_display("2024-03-05") == "2024/03/05"
    assert DateNormalizer.to_display("") == ""
