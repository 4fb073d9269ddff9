#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
API Schemas 模組
統一管理所有API資料模型
"""

from .auth_schemas import LoginRequest, LoginResponse
from .case_schemas import (
    RepairCaseSchema,
    StatusTransitionRequest,
    StatusTransitionResponse,
    CalculationResponse,
    SaveCaseResponse,
    CaseListResponse,
)

__all__ = [
    'LoginRequest',
    'LoginResponse',
    'RepairCaseSchema',
    'StatusTransitionRequest',
    'StatusTransitionResponse',
    'CalculationResponse',
    'SaveCaseResponse',
    'CaseListResponse',
]
