"""天氣 API 用戶端

轉發請求至上游天氣服務並把回應轉換成本地格式：
- National Weather Service (api.weather.gov)：points → forecast / hourly / gridpoints
- OpenWeather：即時天氣（僅單日）

NWS 回應以華氏提供；OpenWeather 以 metric 單位請求，
轉換時以明確的來源單位換算為華氏，讓下游比較引擎使用同一單位。
"""

import logging
import re
from datetime import datetime
from typing import Any, Optional

import httpx

from weather_dashboard.analytics.units import convert_temperature
from weather_dashboard.config import ApiType, Settings
from weather_dashboard.schemas.weather import (
    CurrentConditions,
    ForecastDay,
    GridMetadata,
    HourlyForecast,
    LocationForecast,
    PrecipitationInfo,
    WindInfo,
)
from weather_dashboard.utils.geo import parse_location, validate_coordinates

logger = logging.getLogger(__name__)


# 每次最多回傳的預報天數
MAX_FORECAST_DAYS = 7

# 缺少夜間時段時，最低溫以最高溫減去此值估計
FALLBACK_TEMP_SPREAD = 10

# 錯誤類型
INVALID_INPUT = "INVALID_INPUT"
INVALID_RESPONSE = "INVALID_RESPONSE"
MISSING_DATA = "MISSING_DATA"
SERVER_ERROR = "SERVER_ERROR"
NO_RESPONSE = "NO_RESPONSE"
TIMEOUT = "TIMEOUT"
CONFIG_ERROR = "CONFIG_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

# 錯誤類型對應的 HTTP 狀態碼
ERROR_STATUS_CODES = {
    INVALID_INPUT: 400,
    INVALID_RESPONSE: 502,
    MISSING_DATA: 502,
    NO_RESPONSE: 502,
    TIMEOUT: 504,
    CONFIG_ERROR: 500,
    UNKNOWN_ERROR: 500,
}


class WeatherError(Exception):
    """天氣 API 錯誤

    Attributes:
        message: 錯誤訊息
        error_type: 錯誤類型
        details: 附加資訊（如上游狀態碼）
    """

    def __init__(self, message: str, error_type: str = UNKNOWN_ERROR, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    @property
    def status_code(self) -> int:
        """對應的 HTTP 狀態碼；上游錯誤沿用上游狀態碼"""
        if self.error_type == SERVER_ERROR:
            return self.details.get("status", 502)
        return ERROR_STATUS_CODES.get(self.error_type, 500)


# ============================================================================
# 文字解析
# ============================================================================


def get_weather_type(forecast: Optional[str]) -> str:
    """由預報文字判斷降水類型（rain / snow / sleet / none）"""
    text = (forecast or "").lower()

    if "snow" in text or "flurries" in text:
        return "snow"
    if "sleet" in text or "ice" in text or "freezing" in text:
        return "sleet"
    if any(word in text for word in ("rain", "shower", "drizzle", "thunderstorm", "storm")):
        return "rain"
    return "none"


def parse_wind_speed(wind_speed: Optional[str]) -> float:
    """解析 NWS 風速字串

    "5 to 10 mph" 取平均 7.5；"10 mph" 為 10；無法解析為 0。
    """
    if not wind_speed:
        return 0

    numbers = [int(token) for token in re.findall(r"\d+", str(wind_speed))]
    if not numbers:
        return 0
    if len(numbers) >= 2:
        return (numbers[0] + numbers[1]) / 2
    return numbers[0]


def _icon_from_text(text: str) -> Optional[str]:
    if "rain" in text or "shower" in text:
        return "rain"
    if "snow" in text:
        return "snow"
    if "cloud" in text:
        return "cloud"
    if "sun" in text or "clear" in text:
        return "sun"
    return None


def get_icon_type(icon_url: Optional[str], short_forecast: Optional[str]) -> str:
    """由 NWS 圖示網址或預報文字決定顯示圖示，預設 cloud"""
    if icon_url:
        icon = _icon_from_text(icon_url.lower())
        if icon:
            return icon
    return _icon_from_text((short_forecast or "").lower()) or "cloud"


def _nested_value(data: dict, *keys: Any) -> Any:
    for key in keys:
        if isinstance(data, dict):
            data = data.get(key)
        elif isinstance(data, list) and isinstance(key, int) and 0 <= key < len(data):
            data = data[key]
        else:
            return None
    return data


def _grid_value(grid_data: dict, name: str, index: int) -> Optional[float]:
    return _nested_value(grid_data, name, "values", index, "value")


# ============================================================================
# 回應轉換
# ============================================================================


def build_daily_forecasts(
    periods: list[dict],
    grid_data: Optional[dict] = None,
    max_days: int = MAX_FORECAST_DAYS,
) -> list[ForecastDay]:
    """將 NWS 預報時段轉為逐日預報

    NWS 的時段日夜交替：每個白天時段與其後的夜間時段合併為一天，
    第一個時段若是夜間（如 Tonight）仍保留為一天。

    Args:
        periods: NWS forecast 的 properties.periods
        grid_data: NWS gridpoints 的 properties（可選）
        max_days: 最多天數

    Returns:
        逐日預報列表
    """
    grid_data = grid_data or {}
    days = []

    for i, period in enumerate(periods):
        if not period.get("isDaytime") and i > 0:
            continue

        next_period = periods[i + 1] if i + 1 < len(periods) else None
        night = next_period if next_period and not next_period.get("isDaytime") else None

        start = datetime.fromisoformat(period["startTime"])
        temp_high = period.get("temperature")
        if temp_high is None:
            raise WeatherError("NWS 預報時段缺少溫度", INVALID_RESPONSE)

        short_forecast = period.get("shortForecast")
        name = period.get("name") or f"{start:%A}"
        temp_low = night.get("temperature") if night else None
        if temp_low is None:
            temp_low = temp_high - FALLBACK_TEMP_SPREAD

        days.append(ForecastDay(
            id=f"day-{i}",
            day=name.replace(" Night", ""),
            full_day=f"{start:%A}",
            date=start.date().isoformat(),
            temp_high=temp_high,
            temp_low=temp_low,
            precipitation=PrecipitationInfo(
                chance=_nested_value(period, "probabilityOfPrecipitation", "value") or 0,
                type=get_weather_type(short_forecast),
            ),
            wind=WindInfo(
                speed=parse_wind_speed(period.get("windSpeed")),
                direction=period.get("windDirection") or "N",
            ),
            dew_point=_grid_value(grid_data, "dewpoint", i),
            relative_humidity=_grid_value(grid_data, "relativeHumidity", i),
            pressure=_grid_value(grid_data, "pressure", i),
            visibility=_grid_value(grid_data, "visibility", i),
            icon=get_icon_type(period.get("icon"), short_forecast),
            short_forecast=short_forecast,
            detailed_forecast=period.get("detailedForecast"),
        ))

        if len(days) >= max_days:
            break

    return days


def build_hourly_forecasts(periods: list[dict]) -> list[HourlyForecast]:
    """將 NWS 逐時預報時段轉為逐時預報"""
    hours = []
    for i, period in enumerate(periods):
        temperature = period.get("temperature")
        if temperature is None:
            logger.warning("Skipping hourly period %s without temperature", period.get("startTime"))
            continue

        start = datetime.fromisoformat(period["startTime"])
        short_forecast = period.get("shortForecast")
        hours.append(HourlyForecast(
            id=f"hour-{i}",
            time=f"{start:%H:%M}",
            hour=start.hour,
            temperature=temperature,
            precipitation=PrecipitationInfo(
                chance=_nested_value(period, "probabilityOfPrecipitation", "value") or 0,
                type=get_weather_type(short_forecast),
            ),
            wind=WindInfo(
                speed=parse_wind_speed(period.get("windSpeed")),
                direction=period.get("windDirection") or "N",
            ),
            icon=get_icon_type(period.get("icon"), short_forecast),
            short_forecast=short_forecast,
        ))
    return hours


def parse_current_conditions(payload: dict) -> CurrentConditions:
    """解析 OpenWeather /data/2.5/weather 回應（metric 單位）"""
    try:
        return CurrentConditions(
            temperature=payload["main"]["temp"],
            description=payload["weather"][0]["description"],
            humidity=payload["main"]["humidity"],
            wind_speed=payload["wind"]["speed"],
        )
    except (KeyError, IndexError, TypeError) as e:
        raise WeatherError("OpenWeather 回應格式不正確", INVALID_RESPONSE, {"missing": str(e)}) from e


def build_current_day(current: CurrentConditions, today: Optional[datetime] = None) -> ForecastDay:
    """以即時天氣建立單日預報

    OpenWeather 即時資料沒有降水機率與紫外線：以濕度代替降水機率，
    紫外線使用預設值。溫度由攝氏換算為華氏。
    """
    today = today or datetime.now()
    temp_high = convert_temperature(current.temperature, "C", "F")
    return ForecastDay(
        id="today",
        day="Today",
        full_day=f"{today:%A}",
        date=today.date().isoformat(),
        temp_high=temp_high,
        temp_low=temp_high - FALLBACK_TEMP_SPREAD,
        precipitation=PrecipitationInfo(
            chance=min(max(current.humidity, 0), 100),
            type=get_weather_type(current.description),
        ),
        wind=WindInfo(speed=current.wind_speed, direction="N"),
        icon=_icon_from_text(current.description.lower()) or "cloud",
        short_forecast=current.description,
        detailed_forecast=f"Today will have a high of {temp_high}°F with {current.description.lower()}.",
    )


# ============================================================================
# 用戶端
# ============================================================================


class WeatherClient:
    """上游天氣 API 用戶端

    Attributes:
        settings: 應用程式設定（API 類型、端點、金鑰、逾時）
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def nws_headers(self) -> dict[str, str]:
        """NWS 要求的請求標頭"""
        return {
            "User-Agent": self.settings.nws_user_agent,
            "Accept": "application/geo+json",
        }

    async def _get_json(
        self,
        url: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> dict:
        """送出 GET 請求並將 httpx 錯誤轉為 WeatherError"""
        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            logger.warning("Weather API request timed out: %s", url)
            raise WeatherError("上游請求逾時", TIMEOUT) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Weather API error %s for %s", status, url)
            raise WeatherError(
                f"Weather service error: {status}",
                SERVER_ERROR,
                {"status": status, "detail": _error_detail(e.response)},
            ) from e
        except httpx.RequestError as e:
            logger.error("No response from weather API %s: %s", url, e)
            raise WeatherError("上游服務沒有回應", NO_RESPONSE) from e
        except ValueError as e:
            raise WeatherError("上游回應不是有效的 JSON", INVALID_RESPONSE) from e

    def _check_endpoint(self, endpoint: str) -> str:
        """僅允許轉發至設定的 API 主機"""
        base = self.settings.api_url.rstrip("/")
        if not endpoint or not (endpoint == base or endpoint.startswith(base + "/")):
            raise WeatherError(f"不允許的端點: {endpoint}", INVALID_INPUT)
        return endpoint

    # ------------------------------------------------------------------
    # NWS
    # ------------------------------------------------------------------

    async def get_points(self, latitude: float, longitude: float) -> dict:
        """取得座標的 NWS 網格資訊"""
        if not validate_coordinates(latitude, longitude):
            raise WeatherError("座標無效：緯度須介於 -90 至 90，經度須介於 -180 至 180", INVALID_INPUT)
        url = f"{self.settings.api_url}/points/{latitude},{longitude}"
        return await self._get_json(url, headers=self.nws_headers)

    async def get_endpoint(self, endpoint: str) -> dict:
        """轉發 NWS 回傳的 forecast / stations 等端點"""
        return await self._get_json(self._check_endpoint(endpoint), headers=self.nws_headers)

    async def get_latest_observation(self, station_id: str) -> dict:
        """取得觀測站最新觀測"""
        if not station_id or not station_id.isalnum():
            raise WeatherError("觀測站代碼無效", INVALID_INPUT)
        url = f"{self.settings.api_url}/stations/{station_id}/observations/latest"
        return await self._get_json(url, headers=self.nws_headers)

    async def get_alerts(self, latitude: float, longitude: float) -> dict:
        """取得座標的有效警特報"""
        if not validate_coordinates(latitude, longitude):
            raise WeatherError("座標無效", INVALID_INPUT)
        url = f"{self.settings.api_url}/alerts/active"
        return await self._get_json(
            url, params={"point": f"{latitude},{longitude}"}, headers=self.nws_headers
        )

    async def get_gridpoints(self, office: str, grid_x: int, grid_y: int) -> dict:
        """取得 NWS 網格原始預報資料"""
        if not office or not office.isalnum():
            raise WeatherError("預報辦公室代碼無效", INVALID_INPUT)
        url = f"{self.settings.api_url}/gridpoints/{office}/{grid_x},{grid_y}"
        return await self._get_json(url, headers=self.nws_headers)

    async def _optional_properties(self, endpoint: Optional[str], label: str) -> dict:
        """取得可選的輔助資料；失敗時記錄警告並回傳空字典"""
        if not endpoint:
            return {}
        try:
            data = await self.get_endpoint(endpoint)
        except WeatherError as e:
            logger.warning("Error fetching %s: %s", label, e.message)
            return {}
        return data.get("properties") or {}

    async def get_nws_forecast(self, latitude: float, longitude: float) -> LocationForecast:
        """取得 NWS 完整預報

        1. 由 points 取得 forecast / hourly / gridpoints 端點
        2. 取得 forecast（必要）與 hourly、gridpoints（可選）
        3. 轉換為逐日與逐時預報
        """
        points = await self.get_points(latitude, longitude)
        properties = points.get("properties")
        if not properties:
            raise WeatherError("NWS Points API 回應格式不正確", INVALID_RESPONSE)

        forecast_url = properties.get("forecast")
        if not forecast_url:
            raise WeatherError("NWS 回應中找不到 forecast 端點", MISSING_DATA)

        forecast = await self.get_endpoint(forecast_url)
        periods = _nested_value(forecast, "properties", "periods")
        if not periods:
            raise WeatherError("NWS Forecast API 回應格式不正確", INVALID_RESPONSE)

        hourly = await self._optional_properties(properties.get("forecastHourly"), "hourly forecast")
        grid = await self._optional_properties(properties.get("forecastGridData"), "grid data")

        place = _nested_value(properties, "relativeLocation", "properties") or {}
        return LocationForecast(
            location=f"{place.get('city', 'Unknown')}, {place.get('state', 'Unknown')}",
            daily=build_daily_forecasts(periods, grid),
            hourly=build_hourly_forecasts(hourly.get("periods") or []),
            metadata=GridMetadata(
                grid_id=properties.get("gridId"),
                grid_x=properties.get("gridX"),
                grid_y=properties.get("gridY"),
                forecast_office=properties.get("forecastOffice"),
                time_zone=properties.get("timeZone"),
            ),
        )

    # ------------------------------------------------------------------
    # OpenWeather
    # ------------------------------------------------------------------

    async def get_current(self, location: str) -> CurrentConditions:
        """取得 OpenWeather 即時天氣（城市名稱或 "lat,lon"）"""
        if not location:
            raise WeatherError("必須提供地點", INVALID_INPUT)
        if not self.settings.api_key:
            raise WeatherError("尚未設定 Weather API 金鑰", CONFIG_ERROR)

        params = {"appid": self.settings.api_key, "units": "metric"}
        coords = parse_location(location)
        if coords:
            params["lat"], params["lon"] = coords
        elif "," in location:
            raise WeatherError("座標無效", INVALID_INPUT)
        else:
            params["q"] = location

        payload = await self._get_json(f"{self.settings.api_url}/data/2.5/weather", params=params)
        return parse_current_conditions(payload)

    async def get_location_forecast(self, location: str) -> LocationForecast:
        """依設定的 API 類型取得地點預報"""
        if self.settings.api_type == ApiType.NWS:
            coords = parse_location(location)
            if coords is None:
                raise WeatherError("NWS API 需要有效的座標 (lat,lon)", INVALID_INPUT)
            return await self.get_nws_forecast(*coords)

        current = await self.get_current(location)
        return LocationForecast(location=location, daily=[build_current_day(current)])


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "Unknown error"
    if isinstance(body, dict):
        return body.get("detail") or body.get("message") or "Unknown error"
    return "Unknown error"
