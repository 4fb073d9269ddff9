#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
健康檢查路由模組
提供系統狀態檢查
"""

from datetime import datetime

from fastapi import APIRouter, Request
from sqlalchemy import text

from utils.excel import get_dependency_status

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    """資料庫連線與試算表模組就緒狀態"""
    database = request.app.state.database
    try:
        with database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database_status = "connected"
    except Exception as e:
        database_status = f"error: {e}"

    excel_status = get_dependency_status()
    healthy = database_status == "connected" and excel_status["module_ready"]
    return {
        "status": "healthy" if healthy else "degraded",
        "database": database_status,
        "database_info": database.get_database_info(),
        "excel": excel_status,
        "app_id": request.app.state.config.app_id,
        "time": datetime.now().isoformat(),
    }
