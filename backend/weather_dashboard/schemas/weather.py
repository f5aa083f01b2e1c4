# backend/weather_dashboard/schemas/weather.py
"""天氣預報與 API 回應 Pydantic Schema 定義"""

from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

from weather_dashboard.config import ApiType
from weather_dashboard.schemas.comparison import CamelModel, ForecastDayInput

T = TypeVar("T")

PrecipitationType = Literal["rain", "snow", "sleet", "none"]
IconType = Literal["sun", "cloud", "rain", "snow"]

# NWS 不提供紫外線指數，預報日使用此預設值
DEFAULT_UV_INDEX = 5.0


class PrecipitationInfo(CamelModel):
    """降水資訊"""

    chance: float = Field(0, ge=0, le=100, description="降水機率 (%)")
    type: PrecipitationType = Field("none", description="降水類型")


class WindInfo(CamelModel):
    """風況資訊"""

    speed: float = Field(0, ge=0, description="平均風速 (mph)")
    direction: str = Field("N", description="風向")


class ForecastDay(CamelModel):
    """轉換後的單日預報"""

    id: str = Field(..., description="識別碼，如 day-0")
    day: str = Field(..., description="預報期間名稱，如 Monday")
    full_day: Optional[str] = Field(None, description="星期全名")
    date: str = Field(..., description="日期 (YYYY-MM-DD)")
    temp_high: float = Field(..., description="最高溫")
    temp_low: float = Field(..., description="最低溫")
    precipitation: PrecipitationInfo = Field(default_factory=PrecipitationInfo)
    uv_index: float = Field(DEFAULT_UV_INDEX, ge=0, description="紫外線指數")
    wind: WindInfo = Field(default_factory=WindInfo)
    dew_point: Optional[float] = None
    relative_humidity: Optional[float] = None
    pressure: Optional[float] = None
    visibility: Optional[float] = None
    icon: IconType = "cloud"
    short_forecast: Optional[str] = None
    detailed_forecast: Optional[str] = None

    def to_input(self) -> ForecastDayInput:
        """轉為比較引擎的輸入值"""
        return ForecastDayInput(
            temp_high=self.temp_high,
            precipitation_chance=self.precipitation.chance,
            uv_index=self.uv_index,
        )


class HourlyForecast(CamelModel):
    """轉換後的逐時預報"""

    id: str
    time: str = Field(..., description="時間 (HH:MM)")
    hour: int = Field(..., ge=0, le=23)
    temperature: float
    precipitation: PrecipitationInfo = Field(default_factory=PrecipitationInfo)
    wind: WindInfo = Field(default_factory=WindInfo)
    icon: IconType = "cloud"
    short_forecast: Optional[str] = None


class GridMetadata(CamelModel):
    """NWS 網格資訊"""

    grid_id: Optional[str] = None
    grid_x: Optional[int] = None
    grid_y: Optional[int] = None
    forecast_office: Optional[str] = None
    time_zone: Optional[str] = None


class LocationForecast(CamelModel):
    """單一地點的完整預報"""

    location: str = Field(..., description="地點名稱，如 Seattle, WA")
    daily: list[ForecastDay] = Field(default_factory=list)
    hourly: list[HourlyForecast] = Field(default_factory=list)
    metadata: Optional[GridMetadata] = None


class CurrentConditions(CamelModel):
    """OpenWeather 即時天氣摘要"""

    temperature: float
    description: str
    humidity: float
    wind_speed: float


class ConfigUpdate(BaseModel):
    """執行期設定更新（僅更新有提供的欄位）"""

    api_url: Optional[str] = None
    api_type: Optional[ApiType] = None
    api_key: Optional[str] = None
    cache_duration_seconds: Optional[int] = Field(None, ge=0)
    rate_limit_window_ms: Optional[int] = Field(None, gt=0)
    rate_limit_max_requests: Optional[int] = Field(None, gt=0)


class ConfigResponse(BaseModel):
    """目前設定（不含 API 金鑰）"""

    api_url: str
    api_type: ApiType
    cache_duration_seconds: int
    rate_limit_window_ms: int
    rate_limit_max_requests: int
    message: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """API 回應包裝"""

    success: bool = Field(True, description="請求是否成功")
    data: Optional[T] = Field(None, description="回應資料")
    error: Optional[str] = Field(None, description="錯誤訊息")

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "data": {},
                "error": None
            }
        }
