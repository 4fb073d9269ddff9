#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Excel處理模組自訂例外類別
統一處理試算表讀寫的錯誤情況
"""


class ExcelBaseException(Exception):
    """Excel處理基礎例外類別"""
    pass


class ExcelReadError(ExcelBaseException):
    """Excel檔案無法解析（格式錯誤或檔案損毀）"""
    pass


class ExcelSheetNotFoundError(ExcelBaseException):
    """Excel活頁簿沒有任何工作表"""
    pass


class ExcelWriteError(ExcelBaseException):
    """Excel寫入失敗例外"""
    pass


class ExcelDependencyError(ExcelBaseException):
    """Excel依賴模組不可用例外（匯入匯出前的就緒檢查）"""
    pass
