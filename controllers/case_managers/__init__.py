#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
案件管理器模組
"""

from .case_data_manager import CaseDataManager
from .case_validator import CaseValidator
from .case_import_export import CaseImportExport
from .case_progress_manager import CaseProgressManager
from .master_data_manager import MasterDataManager

__all__ = [
    'CaseDataManager',
    'CaseValidator',
    'CaseImportExport',
    'CaseProgressManager',
    'MasterDataManager'
]
