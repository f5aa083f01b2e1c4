# backend/weather_dashboard/main.py
"""FastAPI 應用程式入口"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from weather_dashboard import __version__
from weather_dashboard.api.v1 import comparison, config, weather
from weather_dashboard.config import Settings, configure_logging, get_default_settings
from weather_dashboard.dependencies import get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """建立應用程式

    Args:
        settings: 應用程式設定，未提供時從環境變數載入
    """
    settings = settings or get_default_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="天氣預報轉發與歷史同期比較 API",
        version=__version__,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check(current: Settings = Depends(get_settings)):
        """健康檢查端點"""
        return {
            "status": "ok",
            "version": __version__,
            "api_url": current.api_url,
            "api_type": current.api_type.value,
        }

    # 註冊 API 路由
    app.include_router(
        weather.router,
        prefix="/api/v1/weather",
        tags=["weather"]
    )
    app.include_router(
        comparison.router,
        prefix="/api/v1/comparison",
        tags=["comparison"]
    )
    app.include_router(
        config.router,
        prefix="/api/v1/config",
        tags=["config"]
    )

    logger.info("API type: %s, API URL: %s", settings.api_type.value, settings.api_url)
    return app


app = create_app()
