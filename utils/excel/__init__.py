#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Excel處理模組初始化
提供統一的Excel讀寫功能導入介面
"""

from .excel_reader import ExcelReader
from .excel_writer import ExcelWriter

from .exceptions import (
    ExcelBaseException,
    ExcelReadError,
    ExcelSheetNotFoundError,
    ExcelWriteError,
    ExcelDependencyError
)

__all__ = [
    'ExcelReader',
    'ExcelWriter',

    'ExcelBaseException',
    'ExcelReadError',
    'ExcelSheetNotFoundError',
    'ExcelWriteError',
    'ExcelDependencyError',
]


def get_dependency_status():
    """便捷函數：取得依賴狀態（匯入匯出就緒檢查）"""
    status = ExcelReader.get_dependency_status()
    status['module_ready'] = all(status.values())
    return status
