"""城市氣候資料服務

內建四個城市的示範氣候資料（非真實歷史資料集）：
- 常年平均（最高/最低溫、降水機率、紫外線、風速）
- 每 10 年的趨勢值與極端年份
- Seattle 3 月 9 日至 15 日的逐日歷史基準

查詢指定日期的基準時，找不到逐日紀錄則以城市常年平均建立預設基準。
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from weather_dashboard.analytics.engine import format_trend
from weather_dashboard.schemas.comparison import HistoricalDayStat, TrendIndicator
from weather_dashboard.utils.geo import find_nearest

logger = logging.getLogger(__name__)


# 預設基準使用的標準差（與逐日紀錄的典型年際變異相當）
DEFAULT_TEMP_SD = 3.0
DEFAULT_PRECIP_SD = 12.0
DEFAULT_UV_SD = 0.8

# 趨勢欄位對應的顯示單位
TREND_UNITS = {
    "temp": "°F",
    "precip": "%",
    "uv": "",
    "wind": "mph",
}


class UnknownCityError(KeyError):
    """查無城市"""

    def __init__(self, city: str):
        super().__init__(city)
        self.city = city

    def __str__(self) -> str:
        return f"找不到城市 {self.city}"


@dataclass(frozen=True)
class CityClimate:
    """單一城市的氣候資料

    Attributes:
        name: 城市名稱
        state: 州別縮寫
        latitude: 緯度
        longitude: 經度
        averages: 常年平均值
        trends: 每 10 年變化量（temp °F、precip %、uv 指數、wind mph）
        extremes: 極端年份
        daily: 日期標籤（如 'Mar 9'）對應的逐日歷史基準
    """

    name: str
    state: str
    latitude: float
    longitude: float
    averages: dict[str, float]
    trends: dict[str, float]
    extremes: dict[str, int]
    daily: dict[str, HistoricalDayStat] = field(default_factory=dict)

    def default_day_stat(self) -> HistoricalDayStat:
        """以常年平均建立的預設基準（百分位由 mean ± SD 合成）"""
        return HistoricalDayStat(
            date=None,
            temp_mean=self.averages["temp_high"],
            temp_sd=DEFAULT_TEMP_SD,
            precip_mean=self.averages["precip_chance"],
            precip_sd=DEFAULT_PRECIP_SD,
            uv_mean=self.averages["uv_index"],
            uv_sd=DEFAULT_UV_SD,
        )


def _seattle_march() -> dict[str, HistoricalDayStat]:
    records = [
        HistoricalDayStat(
            date="Mar 9", temp_mean=47, temp_sd=3.2, precip_mean=68, precip_sd=12,
            uv_mean=3.2, uv_sd=0.8,
            temp_percentiles=(42, 44, 46, 47, 49, 51, 54),
            precip_percentiles=(45, 55, 62, 68, 74, 80, 88),
            yearly_data=(
                {"year": 2005, "temp": 45, "precip": 72},
                {"year": 2010, "temp": 46, "precip": 65},
                {"year": 2015, "temp": 48, "precip": 60},
                {"year": 2020, "temp": 49, "precip": 75},
            ),
        ),
        HistoricalDayStat(date="Mar 10", temp_mean=47.5, temp_sd=3.4, precip_mean=66,
                          precip_sd=11, uv_mean=3.3, uv_sd=0.7),
        HistoricalDayStat(date="Mar 11", temp_mean=48, temp_sd=3.1, precip_mean=64,
                          precip_sd=13, uv_mean=3.4, uv_sd=0.9),
        HistoricalDayStat(date="Mar 12", temp_mean=48.5, temp_sd=2.9, precip_mean=62,
                          precip_sd=14, uv_mean=3.6, uv_sd=0.8),
        HistoricalDayStat(date="Mar 13", temp_mean=49, temp_sd=3.0, precip_mean=60,
                          precip_sd=12, uv_mean=3.7, uv_sd=0.7),
        HistoricalDayStat(date="Mar 14", temp_mean=49.5, temp_sd=3.3, precip_mean=58,
                          precip_sd=10, uv_mean=3.8, uv_sd=0.9),
        HistoricalDayStat(date="Mar 15", temp_mean=50, temp_sd=3.5, precip_mean=56,
                          precip_sd=11, uv_mean=3.9, uv_sd=1.0),
    ]
    return {record.date: record for record in records}


CITY_CLIMATE: dict[str, CityClimate] = {
    "Seattle": CityClimate(
        name="Seattle", state="WA", latitude=47.6062, longitude=-122.3321,
        averages={"temp_low": 42, "temp_high": 52, "precip_chance": 70, "uv_index": 3, "wind_speed": 8},
        trends={"temp": -0.5, "precip": 1.8, "uv": 0.4, "wind": 0.3},
        extremes={"hottest": 2018, "coldest": 2008, "wettest": 2017, "driest": 2015, "windiest": 2014},
        daily=_seattle_march(),
    ),
    "Portland": CityClimate(
        name="Portland", state="OR", latitude=45.5152, longitude=-122.6784,
        averages={"temp_low": 45, "temp_high": 55, "precip_chance": 60, "uv_index": 4, "wind_speed": 7},
        trends={"temp": 0.4, "precip": 1.2, "uv": 0.5, "wind": 0.2},
        extremes={"hottest": 2021, "coldest": 2011, "wettest": 2017, "driest": 2014, "windiest": 2021},
    ),
    "San Francisco": CityClimate(
        name="San Francisco", state="CA", latitude=37.7749, longitude=-122.4194,
        averages={"temp_low": 50, "temp_high": 63, "precip_chance": 40, "uv_index": 5, "wind_speed": 12},
        trends={"temp": 0.7, "precip": -2.0, "uv": 0.6, "wind": 0.4},
        extremes={"hottest": 2022, "coldest": 2010, "wettest": 2019, "driest": 2013, "windiest": 2019},
    ),
    "Los Angeles": CityClimate(
        name="Los Angeles", state="CA", latitude=34.0522, longitude=-118.2437,
        averages={"temp_low": 55, "temp_high": 70, "precip_chance": 20, "uv_index": 7, "wind_speed": 6},
        trends={"temp": 0.9, "precip": -3.5, "uv": 0.8, "wind": -0.2},
        extremes={"hottest": 2023, "coldest": 2011, "wettest": 2010, "driest": 2022, "windiest": 2010},
    ),
}


def list_cities() -> list[str]:
    """取得所有城市名稱"""
    return list(CITY_CLIMATE)


def get_city(city: str) -> CityClimate:
    """取得城市氣候資料（名稱不分大小寫）

    Raises:
        UnknownCityError: 查無城市
    """
    for name, climate in CITY_CLIMATE.items():
        if name.lower() == city.strip().lower():
            return climate
    raise UnknownCityError(city)


def date_label(on: date) -> str:
    """日期標籤，如 'Mar 9'"""
    return f"{on:%b} {on.day}"


def get_day_stat(city: str, on: date) -> HistoricalDayStat:
    """取得城市在指定日期的歷史基準

    有逐日紀錄時回傳該紀錄，否則回傳以常年平均建立的預設基準。
    """
    climate = get_city(city)
    record = climate.daily.get(date_label(on))
    if record is None:
        logger.debug("No daily baseline for %s on %s, using city defaults", climate.name, on)
        return climate.default_day_stat()
    return record


def get_day_stats(city: str, dates: list[date]) -> list[HistoricalDayStat]:
    """取得多日的歷史基準（與多日預報依位置配對）"""
    return [get_day_stat(city, on) for on in dates]


def get_trend_indicators(city: str) -> dict[str, TrendIndicator]:
    """取得城市各項趨勢的顯示指標"""
    climate = get_city(city)
    return {
        metric: format_trend(value, TREND_UNITS.get(metric, ""))
        for metric, value in climate.trends.items()
    }


def nearest_city(latitude: float, longitude: float) -> Optional[tuple[str, float]]:
    """找出離座標最近的城市

    Returns:
        (城市名稱, 距離公里數)
    """
    places = {
        name: (climate.latitude, climate.longitude)
        for name, climate in CITY_CLIMATE.items()
    }
    return find_nearest(latitude, longitude, places)
