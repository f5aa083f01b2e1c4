# backend/weather_dashboard/dependencies.py
"""FastAPI 依賴注入"""

from fastapi import Depends, Request

from weather_dashboard.config import Settings
from weather_dashboard.services.weather_client import WeatherClient


def get_settings(request: Request) -> Settings:
    """取得應用程式持有的設定實例"""
    return request.app.state.settings


def get_weather_client(settings: Settings = Depends(get_settings)) -> WeatherClient:
    """以目前設定建立天氣 API 用戶端"""
    return WeatherClient(settings)
