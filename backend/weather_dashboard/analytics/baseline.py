"""歷史基準建立器

從逐日觀測資料建立單一日曆日的 HistoricalDayStat：
- 以滑動視窗（預設 ±3 天）收集歷年同期資料，處理跨年邊界
- 計算最高溫、降水機率、紫外線的平均與樣本標準差
- 產生均勻分布於 0-100 的百分位斷點（預設 7 點）
- 每個年份取視窗平均作為一筆 YearlySample

觀測資料欄位：
- observed_date: 觀測日期
- temp_high: 當日最高溫
- precip_chance: 降水機率 (0-100)
- uv_index: 紫外線指數
"""

import logging

import numpy as np
import pandas as pd

from weather_dashboard.schemas.comparison import HistoricalDayStat, YearlySample

logger = logging.getLogger(__name__)


# ============================================================================
# 常數定義
# ============================================================================

REQUIRED_COLUMNS = ("observed_date", "temp_high", "precip_chance", "uv_index")

DEFAULT_WINDOW_DAYS = 3
DEFAULT_PERCENTILE_POINTS = 7

# 計算標準差的最少樣本數
MIN_SAMPLES = 2

# 以非閏年計算年中天數
REFERENCE_YEAR = 2023
DAYS_IN_YEAR = 365


def reference_date(month: int, day: int) -> pd.Timestamp:
    """取得非閏年參考日期（2/29 併入 2/28）"""
    if month == 2 and day == 29:
        day = 28
    return pd.Timestamp(year=REFERENCE_YEAR, month=month, day=day)


def day_label(month: int, day: int) -> str:
    """日期標籤，如 'Mar 9'"""
    return f"{pd.Timestamp(year=2024, month=month, day=day):%b} {day}"


def window_days_of_year(month: int, day: int, window_days: int) -> list[int]:
    """計算視窗內的年中天數（跨年時環繞）

    例如 1 月 1 日 ±3 天會包含 363, 364, 365, 1, 2, 3, 4。
    """
    target_doy = reference_date(month, day).dayofyear

    doys = []
    for offset in range(-window_days, window_days + 1):
        doy = target_doy + offset
        if doy < 1:
            doy += DAYS_IN_YEAR
        elif doy > DAYS_IN_YEAR:
            doy -= DAYS_IN_YEAR
        doys.append(doy)
    return doys


def compute_breakpoints(values: pd.Series, points: int = DEFAULT_PERCENTILE_POINTS) -> tuple[float, ...]:
    """計算均勻分布於 0-100 的百分位斷點"""
    quantiles = np.linspace(0.0, 1.0, points)
    return tuple(float(v) for v in values.quantile(quantiles))


def _spread(values: pd.Series, name: str) -> tuple[float, float]:
    mean = float(values.mean())
    sd = float(values.std())
    if not np.isfinite(sd) or sd <= 0:
        raise ValueError(f"{name} 歷史資料沒有變異，無法計算標準分數")
    return mean, sd


class BaselineBuilder:
    """歷史基準建立器

    Attributes:
        data: 含觀測資料的 DataFrame（已補上 year、day_of_year 欄位）
    """

    def __init__(self, data: pd.DataFrame):
        """初始化建立器

        Args:
            data: 含 REQUIRED_COLUMNS 欄位的 DataFrame

        Raises:
            ValueError: 缺少必要欄位
        """
        missing = [column for column in REQUIRED_COLUMNS if column not in data.columns]
        if missing:
            raise ValueError(f"觀測資料缺少欄位: {', '.join(missing)}")

        self.data = data.copy()
        self.data["observed_date"] = pd.to_datetime(self.data["observed_date"])
        self.data["year"] = self.data["observed_date"].dt.year
        day_of_year = self.data["observed_date"].dt.dayofyear
        # 閏年 2/29 起的天數往前挪一天（2/29 併入 2/28），讓各年同一日曆日對齊
        leap_shift = self.data["observed_date"].dt.is_leap_year & (day_of_year >= 60)
        self.data["day_of_year"] = day_of_year - leap_shift.astype(int)

    def window_data(self, month: int, day: int, window_days: int = DEFAULT_WINDOW_DAYS) -> pd.DataFrame:
        """取得歷年同期視窗內的觀測資料"""
        doys = window_days_of_year(month, day, window_days)
        return self.data[self.data["day_of_year"].isin(doys)]

    def get_day_stat(
        self,
        month: int,
        day: int,
        window_days: int = DEFAULT_WINDOW_DAYS,
        percentile_points: int = DEFAULT_PERCENTILE_POINTS,
    ) -> HistoricalDayStat:
        """建立指定日曆日的歷史基準

        Args:
            month: 月份 (1-12)
            day: 日期 (1-31)
            window_days: 視窗半徑天數
            percentile_points: 百分位斷點數量

        Returns:
            HistoricalDayStat

        Raises:
            ValueError: 樣本不足或資料沒有變異
        """
        window = self.window_data(month, day, window_days).dropna(
            subset=["temp_high", "precip_chance", "uv_index"]
        )
        label = day_label(month, day)

        if len(window) < MIN_SAMPLES:
            raise ValueError(f"{label} 的歷史樣本不足（{len(window)} 筆）")

        temp_mean, temp_sd = _spread(window["temp_high"], "最高溫")
        precip_mean, precip_sd = _spread(window["precip_chance"], "降水機率")
        uv_mean, uv_sd = _spread(window["uv_index"], "紫外線指數")

        yearly = (
            window.groupby("year")[["temp_high", "precip_chance"]]
            .mean()
            .sort_index()
        )
        yearly_data = tuple(
            YearlySample(year=int(year), temp=float(row.temp_high), precip=float(row.precip_chance))
            for year, row in yearly.iterrows()
        )

        logger.debug(
            "Built baseline for %s from %d samples across %d years",
            label, len(window), len(yearly_data),
        )

        return HistoricalDayStat(
            date=label,
            temp_mean=temp_mean,
            temp_sd=temp_sd,
            precip_mean=precip_mean,
            precip_sd=precip_sd,
            uv_mean=uv_mean,
            uv_sd=uv_sd,
            temp_percentiles=compute_breakpoints(window["temp_high"], percentile_points),
            precip_percentiles=compute_breakpoints(window["precip_chance"], percentile_points),
            yearly_data=yearly_data,
        )

    def get_range_stats(
        self,
        start: pd.Timestamp,
        days: int,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> list[HistoricalDayStat]:
        """建立連續多日的歷史基準（與多日預報依位置配對）"""
        dates = pd.date_range(start=start, periods=days, freq="D")
        return [self.get_day_stat(d.month, d.day, window_days) for d in dates]
