# api/main.py
import logging
import os
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from api.database import Database
from api.routes import register_routes
from config.settings import BackendConfig
from controllers.case_controller import CaseController
from controllers.case_managers.case_data_manager import CaseDataManager
from controllers.errors import ConfigurationError
from controllers.login_controller import IdentityProvider, LoginController

logger = logging.getLogger(__name__)

APP_TITLE = "捷運站修繕案件管理系統 API"
APP_VERSION = "1.0.0"
CONFIG_ERROR_MESSAGE = "系統配置錯誤"


# Ensure operationId uniqueness
def gen_unique_id(route: APIRoute) -> str:
    tag = (route.tags[0] if route.tags else "default").lower()
    method = next(iter(route.methods)).lower()
    return f"{tag}_{route.path.strip('/').replace('/', '_')}_{method}"


def create_config_error_app(reason: str) -> FastAPI:
    """設定缺失時只提供靜態的錯誤回應，不建立任何連線"""
    app = FastAPI(title=APP_TITLE, version=APP_VERSION)
    app.state.config_error = reason

    @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def config_error(path: str):
        return JSONResponse(status_code=503, content={"detail": CONFIG_ERROR_MESSAGE})

    return app


def create_app(
    config: Optional[BackendConfig] = None,
    database: Optional[Database] = None,
    identity_provider: Optional[IdentityProvider] = None,
) -> FastAPI:
    """
    建立應用程式

    Args:
        config: 後端設定，None 則由環境變數讀取
        database: 資料庫（測試時可注入），None 則依 config.database_url 建立
        identity_provider: 身分驗證服務用戶端，None 則依 config 建立
    """
    if config is None:
        try:
            config = BackendConfig.from_env()
        except ConfigurationError as e:
            logger.error(f"❌ 系統配置錯誤: {e}")
            return create_config_error_app(str(e))

    database = database or Database.from_url(config.database_url)
    database.create_all()

    data_manager = CaseDataManager(database, config.app_id)
    provider = identity_provider or IdentityProvider.from_config(config)

    app = FastAPI(
        title=APP_TITLE,
        version=APP_VERSION,
        description="Metro-station repair case tracker",
        generate_unique_id_function=gen_unique_id,
    )
    app.state.config = config
    app.state.database = database
    app.state.case_controller = CaseController(data_manager, watch_interval=config.watch_interval)
    app.state.login_controller = LoginController(provider)

    register_routes(app)

    # ---- CORS ----
    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {
            "app": APP_TITLE,
            "version": app.version,
            "app_id": config.app_id,
            "time": datetime.now().isoformat(),
        }

    logger.info(f"✅ 應用程式已建立（app_id={config.app_id}）")
    return app
