# backend/weather_dashboard/api/v1/config.py
"""執行期設定 API 路由

設定存放於應用程式實例（app.state.settings），更新時以新實例整體替換。
回應一律不包含 API 金鑰。
"""

import logging

from fastapi import APIRouter, Depends, Request

from weather_dashboard.config import DEFAULT_API_URLS, Settings
from weather_dashboard.dependencies import get_settings
from weather_dashboard.schemas.weather import ConfigResponse, ConfigUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=ConfigResponse, summary="取得目前設定")
async def read_config(settings: Settings = Depends(get_settings)) -> ConfigResponse:
    """取得目前設定（不含 API 金鑰）"""
    return ConfigResponse(**settings.public_view())


@router.post("/", response_model=ConfigResponse, summary="更新執行期設定")
async def update_config(
    update: ConfigUpdate,
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ConfigResponse:
    """更新執行期設定，只變更有提供的欄位

    切換 API 類型但未提供端點時，改用該類型的預設端點。
    """
    changes = update.model_dump(exclude_none=True)
    if "api_type" in changes and "api_url" not in changes:
        changes["api_url"] = DEFAULT_API_URLS[changes["api_type"]]

    new_settings = settings.model_copy(update=changes)
    request.app.state.settings = new_settings
    logger.info("Configuration updated: %s", sorted(key for key in changes if key != "api_key"))

    return ConfigResponse(
        **new_settings.public_view(),
        message="Configuration updated successfully",
    )
