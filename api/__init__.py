#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
API 模組
捷運站修繕案件管理系統的 HTTP 介面
"""

__version__ = "1.0.0"
__title__ = "捷運站修繕案件管理API"
