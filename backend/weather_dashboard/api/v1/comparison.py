# backend/weather_dashboard/api/v1/comparison.py
"""歷史比較 API 路由"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import Field

from weather_dashboard.analytics.engine import compare_day, compare_forecast
from weather_dashboard.schemas.comparison import (
    CamelModel,
    ComparisonRequest,
    ComparisonResult,
    ForecastDayInput,
    HistoricalDayStat,
    TrendIndicator,
)
from weather_dashboard.schemas.weather import ApiResponse, LocationForecast
from weather_dashboard.dependencies import get_weather_client
from weather_dashboard.services import climatology
from weather_dashboard.services.climatology import UnknownCityError
from weather_dashboard.services.weather_client import WeatherClient, WeatherError
from weather_dashboard.utils.geo import parse_location

logger = logging.getLogger(__name__)

router = APIRouter()


class NearestCity(CamelModel):
    """最近城市"""

    city: str = Field(..., description="城市名稱")
    distance_km: float = Field(..., description="距離 (公里)")


class ForecastComparison(CamelModel):
    """即時預報與城市歷史基準的逐日比較"""

    city: str = Field(..., description="比較用的城市")
    forecast: LocationForecast = Field(..., description="轉換後的預報")
    comparisons: list[ComparisonResult] = Field(..., description="逐日比較結果")


def _get_city_name(city: str) -> str:
    """驗證城市並回傳標準名稱"""
    try:
        return climatology.get_city(city).name
    except UnknownCityError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/",
    response_model=ApiResponse[List[ComparisonResult]],
    summary="比較多日預報與歷史基準",
    description="預報日與歷史基準依位置一對一配對，回傳每日的異常、百分位與相似年份",
)
async def compare(request: ComparisonRequest) -> ApiResponse[List[ComparisonResult]]:
    """比較多日預報與歷史基準

    Raises:
        400: 預報日數與基準數量不一致
    """
    try:
        results = compare_forecast(request.forecast, request.baselines)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ApiResponse(success=True, data=results)


@router.get(
    "/cities",
    response_model=ApiResponse[List[str]],
    summary="列出內建氣候資料的城市",
)
async def list_cities() -> ApiResponse[List[str]]:
    """列出內建氣候資料的城市"""
    return ApiResponse(success=True, data=climatology.list_cities())


@router.get(
    "/cities/nearest",
    response_model=ApiResponse[NearestCity],
    summary="找出最近的城市",
)
async def get_nearest_city(
    latitude: float = Query(..., ge=-90, le=90, description="緯度"),
    longitude: float = Query(..., ge=-180, le=180, description="經度"),
) -> ApiResponse[NearestCity]:
    """找出離座標最近的內建城市"""
    city, distance = climatology.nearest_city(latitude, longitude)
    return ApiResponse(success=True, data=NearestCity(city=city, distance_km=distance))


@router.get(
    "/cities/{city}",
    response_model=ApiResponse[ComparisonResult],
    summary="以城市歷史基準比較單日預報",
    description="查詢指定日期的城市歷史基準，並與提供的預報值比較；無逐日紀錄時使用城市常年平均",
)
async def compare_city(
    city: str = Path(..., description="城市名稱", example="Seattle"),
    temp_high: float = Query(..., alias="tempHigh", description="預報最高溫 (°F)"),
    precipitation_chance: float = Query(
        ..., alias="precipitationChance", ge=0, le=100, description="降水機率 (0-100)"
    ),
    uv_index: float = Query(..., alias="uvIndex", ge=0, description="紫外線指數"),
    on: Optional[date] = Query(None, alias="date", description="日期 (YYYY-MM-DD)，預設今日"),
) -> ApiResponse[ComparisonResult]:
    """以城市歷史基準比較單日預報"""
    name = _get_city_name(city)
    baseline = climatology.get_day_stat(name, on or date.today())
    forecast = ForecastDayInput(
        temp_high=temp_high,
        precipitation_chance=precipitation_chance,
        uv_index=uv_index,
    )
    return ApiResponse(success=True, data=compare_day(forecast, baseline))


@router.get(
    "/cities/{city}/baseline",
    response_model=ApiResponse[HistoricalDayStat],
    summary="查詢城市的歷史基準",
)
async def get_city_baseline(
    city: str = Path(..., description="城市名稱", example="Seattle"),
    on: Optional[date] = Query(None, alias="date", description="日期 (YYYY-MM-DD)，預設今日"),
) -> ApiResponse[HistoricalDayStat]:
    """查詢城市在指定日期的歷史基準"""
    name = _get_city_name(city)
    return ApiResponse(success=True, data=climatology.get_day_stat(name, on or date.today()))


@router.get(
    "/cities/{city}/trends",
    response_model=ApiResponse[dict[str, TrendIndicator]],
    summary="查詢城市的氣候趨勢",
)
async def get_city_trends(
    city: str = Path(..., description="城市名稱", example="Seattle"),
) -> ApiResponse[dict[str, TrendIndicator]]:
    """查詢城市各項指標每 10 年的變化趨勢"""
    name = _get_city_name(city)
    return ApiResponse(success=True, data=climatology.get_trend_indicators(name))


@router.get(
    "/forecast",
    response_model=ApiResponse[ForecastComparison],
    summary="取得即時預報並與城市歷史基準比較",
)
async def compare_live_forecast(
    location: str = Query(..., description="座標 (lat,lon) 或城市名稱（OpenWeather）"),
    city: Optional[str] = Query(None, description="比較用城市，預設為離座標最近的城市"),
    client: WeatherClient = Depends(get_weather_client),
) -> ApiResponse[ForecastComparison]:
    """取得即時預報並逐日與城市歷史基準比較

    Raises:
        400: 無法決定比較用城市
        404: 查無城市
    """
    if city:
        name = _get_city_name(city)
    else:
        coords = parse_location(location)
        if coords is None:
            raise HTTPException(status_code=400, detail="未指定城市時必須提供座標 (lat,lon)")
        name, _ = climatology.nearest_city(*coords)

    try:
        forecast = await client.get_location_forecast(location)
    except WeatherError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    baselines = climatology.get_day_stats(
        name, [date.fromisoformat(day.date) for day in forecast.daily]
    )
    comparisons = compare_forecast([day.to_input() for day in forecast.daily], baselines)
    logger.info("Compared %d forecast days for %s against %s", len(comparisons), location, name)

    return ApiResponse(
        success=True,
        data=ForecastComparison(city=name, forecast=forecast, comparisons=comparisons),
    )
