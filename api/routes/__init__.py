#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
API Routes 模組
統一管理所有API路由
"""

from .auth_routes import router as auth_router
from .case_routes import router as case_router
from .health_routes import router as health_router
from .import_routes import router as import_router, master_router

available_routers = [
    ("auth", auth_router),
    ("cases", case_router),
    ("import", import_router),
    ("master", master_router),
    ("health", health_router),
]

__all__ = ["available_routers", "register_routes"]


def register_routes(app):
    """
    註冊所有路由到FastAPI應用程式

    Args:
        app: FastAPI應用程式實例
    """
    for route_name, router in available_routers:
        app.include_router(router)
    return len(available_routers)
