#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Excel 讀取器
從上傳的位元組內容讀取活頁簿，轉為純 Python 的列資料
"""

import logging
from io import BytesIO
from typing import Any, Dict, List

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    pd = None
    PANDAS_AVAILABLE = False

try:
    import openpyxl  # noqa: F401  pandas 讀取 xlsx 的引擎
    OPENPYXL_AVAILABLE = True
except ImportError:
    OPENPYXL_AVAILABLE = False

from utils.data_cleaner import DataCleaner
from .exceptions import ExcelDependencyError, ExcelReadError, ExcelSheetNotFoundError

logger = logging.getLogger(__name__)

Row = List[Any]


class ExcelReader:
    """Excel 讀取器"""

    def __init__(self):
        self._check_dependencies()

    def _check_dependencies(self) -> None:
        """檢查必要依賴，未就緒時不允許任何匯入"""
        if not PANDAS_AVAILABLE:
            raise ExcelDependencyError("pandas 不可用，無法讀取Excel檔案")
        if not OPENPYXL_AVAILABLE:
            raise ExcelDependencyError("openpyxl 不可用，無法讀取Excel檔案")

    def read_sheets(self, content: bytes) -> Dict[str, List[Row]]:
        """
        讀取所有工作表的原始列資料（不指定標題列）

        Args:
            content: xlsx 檔案內容

        Returns:
            Dict[str, List[Row]]: 依活頁簿順序排列的 {工作表名稱: 列資料}，空儲存格為 None

        Raises:
            ExcelReadError: 檔案無法解析
            ExcelSheetNotFoundError: 活頁簿沒有工作表
        """
        try:
            frames = pd.read_excel(
                BytesIO(content),
                sheet_name=None,
                header=None,
                dtype=object,
                engine='openpyxl'
            )
        except Exception as e:
            raise ExcelReadError(f"讀取 Excel 失敗: {e}") from e

        if not frames:
            raise ExcelSheetNotFoundError("活頁簿中沒有任何工作表")

        sheets = {str(name): self._frame_to_rows(df) for name, df in frames.items()}
        logger.info(f"✅ 成功讀取 Excel：{len(sheets)} 個工作表")
        return sheets

    def read_first_sheet(self, content: bytes) -> List[Row]:
        """讀取第一個工作表的原始列資料"""
        sheets = self.read_sheets(content)
        return next(iter(sheets.values()))

    def read_records(self, content: bytes) -> List[Dict[str, Any]]:
        """
        以第一列為標題讀取第一個工作表

        標題會移除所有空白字元；空白標題欄位與整列空白的資料列會略過。

        Returns:
            List[Dict[str, Any]]: 每列一筆 {標題: 儲存格值}
        """
        rows = self.read_first_sheet(content)
        if not rows:
            return []

        headers = [
            DataCleaner.normalize_header_key(h) if not DataCleaner.is_blank(h) else ''
            for h in rows[0]
        ]
        records = []
        for row in rows[1:]:
            if all(DataCleaner.is_blank(value) for value in row):
                continue
            record = {}
            for header, value in zip(headers, row):
                if header and not DataCleaner.is_blank(value):
                    record[header] = value
            records.append(record)
        return records

    @staticmethod
    def _frame_to_rows(df) -> List[Row]:
        """DataFrame 轉為列資料，NaN / NaT 一律轉為 None"""
        if df.empty:
            return []
        cleaned = df.astype(object).where(pd.notna(df), None)
        return cleaned.values.tolist()

    @staticmethod
    def get_dependency_status() -> Dict[str, bool]:
        """取得依賴狀態"""
        return {
            'pandas': PANDAS_AVAILABLE,
            'openpyxl': OPENPYXL_AVAILABLE
        }
