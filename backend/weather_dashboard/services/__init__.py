"""服務模組

包含城市氣候資料與上游天氣 API 用戶端。
"""

from weather_dashboard.services.climatology import get_day_stat, get_trend_indicators
from weather_dashboard.services.weather_client import WeatherClient, WeatherError

__all__ = ["get_day_stat", "get_trend_indicators", "WeatherClient", "WeatherError"]
