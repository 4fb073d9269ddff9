#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Excel寫入器 - 專責Excel檔案寫入功能
將 DataFrame 寫成活頁簿位元組內容，並套用標題列格式
"""

import logging
from io import BytesIO
from typing import Dict

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    PANDAS_AVAILABLE = False

try:
    from openpyxl.styles import Font, Alignment, PatternFill
    OPENPYXL_AVAILABLE = True
except ImportError:
    OPENPYXL_AVAILABLE = False

from .exceptions import ExcelWriteError, ExcelDependencyError

logger = logging.getLogger(__name__)


class ExcelWriter:
    """Excel寫入器類別"""

    INVALID_SHEET_CHARS = ['\\', '/', '*', '?', ':', '[', ']']

    def __init__(self):
        """初始化Excel寫入器"""
        self._check_dependencies()

    def _check_dependencies(self) -> None:
        """檢查必要依賴"""
        if not PANDAS_AVAILABLE:
            raise ExcelDependencyError("pandas 不可用，無法寫入Excel檔案")
        if not OPENPYXL_AVAILABLE:
            raise ExcelDependencyError("openpyxl 不可用，無法寫入Excel檔案")

    def write_workbook(self, sheets: Dict[str, "pd.DataFrame"], include_formatting: bool = True) -> bytes:
        """
        將多個 DataFrame 寫成一個活頁簿

        Args:
            sheets: {工作表名稱: DataFrame}
            include_formatting: 是否套用標題列格式與欄寬

        Returns:
            bytes: xlsx 檔案內容

        Raises:
            ExcelWriteError: 寫入失敗
        """
        if not sheets:
            raise ExcelWriteError("沒有工作表可寫入")

        buffer = BytesIO()
        try:
            with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
                for name, df in sheets.items():
                    sheet_name = self._sanitize_sheet_name(name)
                    df.to_excel(writer, sheet_name=sheet_name, index=False)
                    if include_formatting:
                        self._apply_formatting(writer.sheets[sheet_name], df)
        except Exception as e:
            error_msg = f"匯出Excel失敗: {str(e)}"
            logger.error(f"❌ {error_msg}")
            raise ExcelWriteError(error_msg) from e

        return buffer.getvalue()

    def _sanitize_sheet_name(self, name: str) -> str:
        """清理工作表名稱"""
        clean_name = str(name)
        for char in self.INVALID_SHEET_CHARS:
            clean_name = clean_name.replace(char, '_')

        # 限制長度
        return clean_name[:31] or 'Sheet1'

    def _apply_formatting(self, worksheet, df: "pd.DataFrame") -> None:
        """套用基本格式化：標題列、欄寬、凍結標題"""
        header_font = Font(bold=True, color='FFFFFF')
        header_fill = PatternFill(start_color='366092', end_color='366092', fill_type='solid')
        header_alignment = Alignment(horizontal='center', vertical='center')

        for col_num, column_title in enumerate(df.columns, 1):
            if not str(column_title).strip():
                # 區隔用的空白欄不上色
                continue
            cell = worksheet.cell(row=1, column=col_num)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment

        for column in worksheet.columns:
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            column_letter = column[0].column_letter
            worksheet.column_dimensions[column_letter].width = min(max_length + 2, 50)

        worksheet.freeze_panes = 'A2'

    @staticmethod
    def get_dependency_status() -> Dict[str, bool]:
        """取得依賴狀態"""
        return {
            'pandas': PANDAS_AVAILABLE,
            'openpyxl': OPENPYXL_AVAILABLE
        }
