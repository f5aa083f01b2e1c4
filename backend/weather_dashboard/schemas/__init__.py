# backend/weather_dashboard/schemas/__init__.py
"""Pydantic Schema 模組"""

from weather_dashboard.schemas.comparison import (
    AnomalyFlags,
    ComparisonRequest,
    ComparisonResult,
    ComparisonStats,
    ForecastDayInput,
    HistoricalDayStat,
    SimilarYear,
    TrendIndicator,
    ValueRange,
    YearlySample,
)
from weather_dashboard.schemas.weather import (
    ApiResponse,
    ConfigResponse,
    ConfigUpdate,
    ForecastDay,
    LocationForecast,
)

__all__ = [
    "AnomalyFlags",
    "ComparisonRequest",
    "ComparisonResult",
    "ComparisonStats",
    "ForecastDayInput",
    "HistoricalDayStat",
    "SimilarYear",
    "TrendIndicator",
    "ValueRange",
    "YearlySample",
    "ApiResponse",
    "ConfigResponse",
    "ConfigUpdate",
    "ForecastDay",
    "LocationForecast",
]
