"""統計比較模組

提供預報值與歷史基準的比較、溫度換算與歷史基準建立功能。
"""

from weather_dashboard.analytics.baseline import BaselineBuilder
from weather_dashboard.analytics.engine import (
    compare_day,
    compare_forecast,
    compute_z_score,
    derive_range,
    find_similar_year,
    format_trend,
    is_anomaly,
    percentile_rank,
)
from weather_dashboard.analytics.units import (
    TemperatureUnit,
    convert_temp,
    convert_temperature,
)

__all__ = [
    "BaselineBuilder",
    "compare_day",
    "compare_forecast",
    "compute_z_score",
    "derive_range",
    "find_similar_year",
    "format_trend",
    "is_anomaly",
    "percentile_rank",
    "TemperatureUnit",
    "convert_temp",
    "convert_temperature",
]
