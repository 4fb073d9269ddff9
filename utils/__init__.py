#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
工具模組
資料清理、日期正規化、案件清單監看與試算表讀寫
"""

from .data_cleaner import DataCleaner
from .date_normalizer import DateNormalizer
from .case_watcher import CaseListWatcher, WatcherState

__all__ = [
    'DataCleaner',
    'DateNormalizer',
    'CaseListWatcher',
    'WatcherState',
]

__version__ = '1.0.0'
