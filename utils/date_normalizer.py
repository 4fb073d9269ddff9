#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
日期正規化工具
將舊試算表中的各式日期（Excel 序號、日期儲存格、民國年字串）轉為 YYYY-MM-DD
"""

import re
from datetime import date, datetime
from typing import Any, Tuple

from openpyxl.utils.datetime import from_excel

from utils.data_cleaner import DataCleaner

EXCEL_SERIAL_PATTERN = re.compile(r'^\d{5}(\.\d+)?$')
DATE_PATTERN = re.compile(r'(\d{2,4})[-/.](\d{1,2})[-/.](\d{1,2})')

# 民國紀年：111 年以前（含二位數年份）一律視為民國年
ROC_YEAR_OFFSET = 1911
ROC_YEAR_THRESHOLD = 111


class DateNormalizer:
    """舊資料日期解析"""

    @staticmethod
    def format_date(value: date) -> str:
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"

    @staticmethod
    def normalize(value: Any) -> Tuple[str, str]:
        """
        解析單一儲存格的日期

        Args:
            value: 儲存格內容（datetime、Excel 序號或字串）

        Returns:
            Tuple[str, str]: (YYYY-MM-DD 或空字串, 日期以外的文字)

        Examples:
            "111/03/05"  -> ("2022-03-05", "")
            "2024.3.5 補件" -> ("2024-03-05", "補件")
            45000        -> ("2023-03-15", "")
        """
        if DataCleaner.is_blank(value):
            return '', ''

        if isinstance(value, (datetime, date)):
            return DateNormalizer.format_date(value), ''

        text = DataCleaner.clean_text(value)
        if not text:
            return '', ''

        if EXCEL_SERIAL_PATTERN.match(text):
            return DateNormalizer.format_date(from_excel(float(text))), ''

        match = DATE_PATTERN.search(text)
        if not match:
            return '', text

        year_text, month, day = match.groups()
        year = int(year_text)
        if len(year_text) == 3 or year < ROC_YEAR_THRESHOLD:
            year += ROC_YEAR_OFFSET

        note = text.replace(match.group(0), '', 1).strip()
        return f"{year:04d}-{int(month):02d}-{int(day):02d}", note

    @staticmethod
    def to_display(value: str) -> str:
        """匯出用：2024-03-05 -> 2024/03/05"""
        return str(value or '').replace('-', '/')
