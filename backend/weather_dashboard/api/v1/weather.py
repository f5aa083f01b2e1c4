# backend/weather_dashboard/api/v1/weather.py
"""天氣 API 轉發路由

轉發至設定的上游天氣服務；上游錯誤狀態碼原樣回傳。
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from weather_dashboard.config import ApiType
from weather_dashboard.dependencies import get_weather_client
from weather_dashboard.schemas.weather import ApiResponse, CurrentConditions, LocationForecast
from weather_dashboard.services.weather_client import WeatherClient, WeatherError

router = APIRouter()


def _to_http_error(error: WeatherError) -> HTTPException:
    """將 WeatherError 轉為 HTTPException"""
    detail = error.message
    if error.details.get("detail"):
        detail = f"{error.message}: {error.details['detail']}"
    return HTTPException(status_code=error.status_code, detail=detail)


@router.get("/points", summary="取得 NWS 網格資訊")
async def get_points(
    latitude: float = Query(..., description="緯度"),
    longitude: float = Query(..., description="經度"),
    client: WeatherClient = Depends(get_weather_client),
) -> dict[str, Any]:
    """取得座標對應的 NWS 網格與預報端點"""
    try:
        return await client.get_points(latitude, longitude)
    except WeatherError as e:
        raise _to_http_error(e)


@router.get("/forecast", summary="轉發 NWS 預報端點")
async def get_forecast(
    endpoint: str = Query(..., description="points 回傳的 forecast / forecastHourly 網址"),
    client: WeatherClient = Depends(get_weather_client),
) -> dict[str, Any]:
    """轉發 NWS 預報端點"""
    try:
        return await client.get_endpoint(endpoint)
    except WeatherError as e:
        raise _to_http_error(e)


@router.get("/stations", summary="轉發 NWS 觀測站端點")
async def get_stations(
    endpoint: str = Query(..., description="points 回傳的 observationStations 網址"),
    client: WeatherClient = Depends(get_weather_client),
) -> dict[str, Any]:
    """轉發 NWS 觀測站列表端點"""
    try:
        return await client.get_endpoint(endpoint)
    except WeatherError as e:
        raise _to_http_error(e)


@router.get("/observations", summary="取得觀測站最新觀測")
async def get_observations(
    station_id: str = Query(..., alias="stationId", description="觀測站代碼，如 KSEA"),
    client: WeatherClient = Depends(get_weather_client),
) -> dict[str, Any]:
    """取得觀測站最新觀測"""
    try:
        return await client.get_latest_observation(station_id)
    except WeatherError as e:
        raise _to_http_error(e)


@router.get("/alerts", summary="取得有效警特報")
async def get_alerts(
    latitude: float = Query(..., description="緯度"),
    longitude: float = Query(..., description="經度"),
    client: WeatherClient = Depends(get_weather_client),
) -> dict[str, Any]:
    """取得座標的有效警特報"""
    try:
        return await client.get_alerts(latitude, longitude)
    except WeatherError as e:
        raise _to_http_error(e)


@router.get("/gridpoints", summary="取得 NWS 網格原始資料")
async def get_gridpoints(
    office: str = Query(..., description="預報辦公室代碼，如 SEW"),
    grid_x: int = Query(..., alias="gridX", ge=0),
    grid_y: int = Query(..., alias="gridY", ge=0),
    client: WeatherClient = Depends(get_weather_client),
) -> dict[str, Any]:
    """取得 NWS 網格原始預報資料"""
    try:
        return await client.get_gridpoints(office, grid_x, grid_y)
    except WeatherError as e:
        raise _to_http_error(e)


@router.get(
    "/current",
    response_model=ApiResponse[CurrentConditions],
    summary="取得 OpenWeather 即時天氣",
)
async def get_current(
    location: str = Query(..., description="城市名稱或座標 (lat,lon)"),
    client: WeatherClient = Depends(get_weather_client),
) -> ApiResponse[CurrentConditions]:
    """取得 OpenWeather 即時天氣（僅限 OpenWeather 模式）

    Raises:
        400: 目前使用 NWS 模式
    """
    if client.settings.api_type == ApiType.NWS:
        raise HTTPException(
            status_code=400,
            detail="此端點僅供 OpenWeather 使用，NWS 請改用 /points 與 /forecast",
        )
    try:
        current = await client.get_current(location)
    except WeatherError as e:
        raise _to_http_error(e)
    return ApiResponse(success=True, data=current)


@router.get(
    "/daily",
    response_model=ApiResponse[LocationForecast],
    summary="取得轉換後的逐日預報",
)
async def get_daily(
    location: str = Query(..., description="座標 (lat,lon)；OpenWeather 模式也可用城市名稱"),
    client: WeatherClient = Depends(get_weather_client),
) -> ApiResponse[LocationForecast]:
    """取得轉換後的逐日與逐時預報"""
    try:
        forecast = await client.get_location_forecast(location)
    except WeatherError as e:
        raise _to_http_error(e)
    return ApiResponse(success=True, data=forecast)
