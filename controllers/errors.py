#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
系統自訂例外類別
"""


class RepairCaseError(Exception):
    """修繕案件系統基礎例外類別"""
    pass


class ConfigurationError(RepairCaseError):
    """後端設定缺失或格式錯誤"""
    pass


class CaseNotFoundError(RepairCaseError):
    """找不到指定案件"""
    pass


class StationFilterLimitError(RepairCaseError):
    """站點篩選數量超過上限"""
    pass


class RepairTypeLockedError(RepairCaseError):
    """已有報價項目時不可變更契約類型"""
    pass


class ImportParseError(RepairCaseError):
    """匯入檔案解析失敗"""
    pass


class AuthError(RepairCaseError):
    """身分驗證失敗"""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code
        self.message = message or code
