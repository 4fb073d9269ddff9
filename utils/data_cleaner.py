# utils/data_cleaner.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
資料清理工具 - 處理匯入資料與表單數值的清理需求
統一處理換行符號移除、試算表空值與數值轉換
"""
import math
import re
from typing import Any, Optional, Union

Number = Union[int, float]


class DataCleaner:
    """統一的資料清理工具"""

    # 標題欄位中需要移除的空白（含不斷行空白與全形空白）
    HEADER_WHITESPACE = re.compile(r"[\s\u00A0\u3000]+")

    @staticmethod
    def is_blank(value: Any) -> bool:
        """判斷試算表儲存格是否為空（None、空字串、NaN）"""
        if value is None:
            return True
        if isinstance(value, float) and math.isnan(value):
            return True
        return isinstance(value, str) and value.strip() == ''

    @staticmethod
    def clean_cell(value: Any) -> Any:
        """試算表儲存格：空值一律轉為空字串，其餘原樣保留"""
        return '' if DataCleaner.is_blank(value) else value

    @staticmethod
    def clean_text(value: Any) -> str:
        """轉換為去除前後空白的字串，空值回傳空字串"""
        if DataCleaner.is_blank(value):
            return ''
        if isinstance(value, float) and value.is_integer():
            # 試算表把純數字欄位讀成浮點數，例如電話、發票號碼
            value = int(value)
        return str(value).strip()

    @staticmethod
    def clean_text_data(value: Any) -> Optional[str]:
        """
        清理文字資料，包含移除換行符號

        Args:
            value: 原始資料值

        Returns:
            清理後的字串，如果原始值為空則返回None
        """
        text = DataCleaner.clean_text(value)
        if not text or text.lower() in ['nan', 'none', 'null']:
            return None

        text = text.replace('\r\n', ' ').replace('\n', ' ').replace('\r', ' ')
        text = re.sub(r'\s+', ' ', text).strip()
        return text if text else None

    @staticmethod
    def normalize_header_key(key: Any) -> str:
        """移除標題中所有空白字元，例如「JDM 提報\\n日期」→「JDM提報日期」"""
        return DataCleaner.HEADER_WHITESPACE.sub('', str(key))

    @staticmethod
    def to_number(value: Any) -> Number:
        """
        轉換為數值，無法轉換或空值視為 0

        Args:
            value: 表單或試算表中的金額、數量

        Returns:
            int 或 float（整數值一律回傳 int）
        """
        if value is None:
            return 0
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            text = str(value).strip().replace(',', '')
            if not text:
                return 0
            try:
                number = float(text)
            except ValueError:
                return 0

        if math.isnan(number) or math.isinf(number):
            return 0
        return int(number) if number.is_integer() else number
