"""應用程式設定模組

使用 pydantic-settings 管理應用程式配置，
支援從環境變數（前綴 WEATHER_）和 .env 檔案載入設定。

設定實例由應用程式持有（app.state.settings），並透過依賴注入傳入各路由，
不使用可在執行期被任意修改的模組層級全域物件。
"""

import logging
from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiType(str, Enum):
    """上游天氣 API 類型"""

    NWS = "nws"
    OPENWEATHER = "openweather"


# API 類型對應的預設端點
DEFAULT_API_URLS = {
    ApiType.NWS: "https://api.weather.gov",
    ApiType.OPENWEATHER: "https://api.openweathermap.org",
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """應用程式設定類別

    Attributes:
        app_name: 應用程式名稱
        api_type: 上游天氣 API 類型（nws 或 openweather）
        api_url: 上游天氣 API 端點
        api_key: OpenWeather API 金鑰（NWS 不需要）
        nws_user_agent: NWS 要求的 User-Agent 聯絡資訊
        request_timeout: 上游請求逾時秒數
        cache_duration_seconds: 回應快取秒數（僅回報，不在本服務內執行）
        rate_limit_window_ms: 限流視窗毫秒數（僅回報）
        rate_limit_max_requests: 限流視窗內最大請求數（僅回報）
        log_level: 日誌等級
        cors_origins: 允許的前端來源
    """

    app_name: str = "Weather Dashboard API"
    api_type: ApiType = ApiType.NWS
    api_url: str = DEFAULT_API_URLS[ApiType.NWS]
    api_key: str = ""
    nws_user_agent: str = "(weather-dashboard, contact@example.com)"
    request_timeout: float = Field(10.0, gt=0)
    cache_duration_seconds: int = Field(600, ge=0)
    rate_limit_window_ms: int = Field(15 * 60 * 1000, gt=0)
    rate_limit_max_requests: int = Field(50, gt=0)
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_prefix="WEATHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def public_view(self) -> dict:
        """回傳可公開的設定內容（不含 API 金鑰）"""
        return {
            "api_url": self.api_url,
            "api_type": self.api_type.value,
            "cache_duration_seconds": self.cache_duration_seconds,
            "rate_limit_window_ms": self.rate_limit_window_ms,
            "rate_limit_max_requests": self.rate_limit_max_requests,
        }


def configure_logging(level: str = "INFO") -> None:
    """初始化根日誌設定（應用程式與 CLI 啟動時呼叫一次）"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def get_default_settings() -> Settings:
    """從環境變數建立設定"""
    return Settings()
