"""歷史比較引擎

將單日預報值與該日曆日的歷史統計基準比較，包括：
- 百分位排名（斷點線性內插）
- 標準分數（z-score）與異常判定
- 最相似歷史年份（正規化歐氏距離）
- 顯示用區間推導（mean ± 1.5·SD）
- 趨勢顯示指標

所有函式皆為純函式：不讀寫共享狀態、不做 I/O，
相同輸入必定得到相同輸出，可任意順序或平行呼叫。

四捨五入一律採「半數進位」（2.5 → 3、-2.5 → -2），
與前端顯示的捨入方式一致；Python 內建 round() 為銀行家捨入，不適用。
"""

import math
from bisect import bisect_right
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

import numpy as np

from weather_dashboard.schemas.comparison import (
    AnomalyFlags,
    ComparisonResult,
    ComparisonStats,
    ForecastDayInput,
    HistoricalDayStat,
    SimilarYear,
    TrendIndicator,
    ValueRange,
    YearlySample,
)


# ============================================================================
# 常數定義
# ============================================================================

# 無百分位資料時的中性預設值
NEUTRAL_PERCENTILE = 50

# 異常門檻（嚴格大於）
ANOMALY_Z_THRESHOLD = 1.5

# 顯示區間寬度（SD 倍數）
RANGE_SD_MULTIPLIER = 1.5

# 紫外線顯示下限
UV_DISPLAY_FLOOR = 1.0

# 相似年份的正規化尺度：約 10 度溫差與約 30 個百分點降水差的權重相當
TYPICAL_TEMPERATURE_RANGE = 10.0
TYPICAL_PRECIPITATION_RANGE = 30.0

# 相似度等級門檻（分數嚴格小於門檻）
SIMILARITY_THRESHOLDS = (
    (0.1, "very high"),
    (0.2, "high"),
    (0.3, "moderate"),
)

# 各指標的方向標籤 (高於平均, 其他)
DIRECTION_LABELS = {
    "temp": ("hot", "cold"),
    "precip": ("wet", "dry"),
    "uv": ("high", "low"),
}


# ============================================================================
# 捨入
# ============================================================================


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """半數進位捨入

    Args:
        value: 數值
        digits: 小數位數，0 時回傳 int

    Returns:
        捨入後的數值
    """
    if digits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# ============================================================================
# 百分位排名
# ============================================================================


def _as_breakpoints(breakpoints: Any) -> list[float]:
    if isinstance(breakpoints, (str, bytes, Mapping)):
        raise TypeError(f"百分位斷點必須是數值序列，收到 {type(breakpoints).__name__}")
    # 非可迭代物件會在此直接拋出 TypeError
    return [float(point) for point in breakpoints]


def percentile_rank(value: float, breakpoints: Optional[Sequence[float]]) -> int:
    """計算數值在歷史分布中的百分位排名

    N 個斷點將 0-100 均分為 N-1 段，找出包含 value 的區段後線性內插：
    例如 percentile_rank(50, [20, 40, 60, 80]) 為 50，
    percentile_rank(40, [20, 40, 60, 80]) 為 33。

    邊界情況：
    - 斷點為 None 或空序列：回傳 50
    - 低於最小斷點：回傳 0
    - 高於最大斷點：回傳 100
    - 等於最後一個斷點（含單一斷點）：回傳 100

    Args:
        value: 待排名的數值
        breakpoints: 遞增排序的百分位斷點，不會被修改

    Returns:
        0-100 的整數百分位

    Raises:
        TypeError: breakpoints 不是數值序列
    """
    if breakpoints is None:
        return NEUTRAL_PERCENTILE

    points = _as_breakpoints(breakpoints)
    if not points:
        return NEUTRAL_PERCENTILE

    if value < points[0]:
        return 0
    if value > points[-1]:
        return 100

    # 最後一個 <= value 的斷點；重複斷點時取最高的區段
    index = bisect_right(points, value) - 1
    if index >= len(points) - 1:
        return 100

    step = 100 / (len(points) - 1)
    lower, upper = points[index], points[index + 1]
    ratio = (value - lower) / (upper - lower)
    return round_half_up(index * step + ratio * step)


# ============================================================================
# 標準分數與異常判定
# ============================================================================


def compute_z_score(value: float, mean: float, sd: float) -> float:
    """計算標準分數（不捨入）

    SD 由呼叫端保證大於 0；HistoricalDayStat 已在驗證時拒絕非正值。
    """
    return (value - mean) / sd


def is_anomaly(z_score: float) -> bool:
    """|z| > 1.5 視為異常（恰好 1.5 不算）"""
    return abs(z_score) > ANOMALY_Z_THRESHOLD


def direction_label(metric: str, value: float, mean: float) -> str:
    """依 value - mean 的正負決定方向標籤

    與 z-score 符號無關；相等時歸入 cold / dry / low。

    Args:
        metric: "temp"、"precip" 或 "uv"
        value: 預報值
        mean: 歷史平均

    Returns:
        方向標籤
    """
    above, otherwise = DIRECTION_LABELS[metric]
    return above if value > mean else otherwise


# ============================================================================
# 最相似年份
# ============================================================================


def _as_sample(sample: Any) -> YearlySample:
    if isinstance(sample, YearlySample):
        return sample
    if isinstance(sample, Mapping):
        return YearlySample.model_validate(sample)
    raise TypeError(f"年份樣本必須是 YearlySample 或 mapping，收到 {type(sample).__name__}")


def classify_similarity(score: float) -> str:
    """將距離分數轉為相似度等級"""
    for threshold, label in SIMILARITY_THRESHOLDS:
        if score < threshold:
            return label
    return "low"


def find_similar_year(
    temp: float,
    precip: float,
    yearly_data: Optional[Sequence[Any]],
) -> SimilarYear:
    """找出溫度與降水最接近的歷史年份

    距離為正規化歐氏距離：
        sqrt(((temp - t) / 10)^2 + ((precip - p) / 30)^2)
    分數相同時取輸入順序中最先出現者。

    Args:
        temp: 預報溫度
        precip: 預報降水機率
        yearly_data: YearlySample 或 {year, temp, precip} mapping 的序列

    Returns:
        SimilarYear；無資料時為 year=None, similarity="unknown"
    """
    if isinstance(yearly_data, (str, bytes, Mapping)):
        raise TypeError("yearly_data 必須是年份樣本序列")
    if yearly_data is None or len(yearly_data) == 0:
        return SimilarYear(year=None, similarity="unknown")

    samples = [_as_sample(sample) for sample in yearly_data]
    temps = np.array([sample.temp for sample in samples], dtype=float)
    precips = np.array([sample.precip for sample in samples], dtype=float)

    scores = np.hypot(
        (temp - temps) / TYPICAL_TEMPERATURE_RANGE,
        (precip - precips) / TYPICAL_PRECIPITATION_RANGE,
    )
    # argmin 在相同分數時回傳第一個索引
    best = int(np.argmin(scores))

    return SimilarYear(
        year=samples[best].year,
        similarity=classify_similarity(float(scores[best])),
    )


# ============================================================================
# 顯示區間
# ============================================================================


def derive_range(
    mean: float,
    sd: float,
    digits: int = 0,
    floor: Optional[float] = None,
) -> ValueRange:
    """推導顯示用區間 mean ± 1.5·SD

    Args:
        mean: 歷史平均（即 avg）
        sd: 標準差
        digits: 捨入小數位數
        floor: 顯示下限，套用於區間內每個值

    Returns:
        ValueRange
    """
    spread = RANGE_SD_MULTIPLIER * sd
    values = {"min": mean - spread, "max": mean + spread, "avg": mean}

    rounded = {}
    for key, raw in values.items():
        display = round_half_up(raw, digits)
        if floor is not None:
            display = max(floor, display)
        rounded[key] = display
    return ValueRange(**rounded)


def derive_ranges(baseline: HistoricalDayStat) -> dict[str, ValueRange]:
    """推導溫度、降水、紫外線三個顯示區間"""
    return {
        "temp_range": derive_range(baseline.temp_mean, baseline.temp_sd),
        "precip_range": derive_range(baseline.precip_mean, baseline.precip_sd),
        "uv_range": derive_range(
            baseline.uv_mean, baseline.uv_sd, digits=1, floor=UV_DISPLAY_FLOOR
        ),
    }


# ============================================================================
# 單日與批次比較
# ============================================================================


def compare_day(
    forecast: ForecastDayInput, baseline: HistoricalDayStat
) -> ComparisonResult:
    """比較單日預報與歷史基準

    Args:
        forecast: 預報輸入值
        baseline: 同一日曆日的歷史統計

    Returns:
        ComparisonResult
    """
    temp_z = compute_z_score(forecast.temp_high, baseline.temp_mean, baseline.temp_sd)
    precip_z = compute_z_score(
        forecast.precipitation_chance, baseline.precip_mean, baseline.precip_sd
    )
    uv_z = compute_z_score(forecast.uv_index, baseline.uv_mean, baseline.uv_sd)

    stats = ComparisonStats(
        temp_z_score=round_half_up(temp_z, 1),
        precip_z_score=round_half_up(precip_z, 1),
        uv_z_score=round_half_up(uv_z, 1),
        temp_percentile=percentile_rank(forecast.temp_high, baseline.temp_breakpoints()),
        precip_percentile=percentile_rank(
            forecast.precipitation_chance, baseline.precip_breakpoints()
        ),
        similar_year=find_similar_year(
            forecast.temp_high, forecast.precipitation_chance, baseline.yearly_data
        ),
    )

    # 異常判定使用未捨入的 z-score
    anomalies = AnomalyFlags(
        temp=is_anomaly(temp_z),
        precip=is_anomaly(precip_z),
        uv=is_anomaly(uv_z),
        temp_type=direction_label("temp", forecast.temp_high, baseline.temp_mean),
        precip_type=direction_label(
            "precip", forecast.precipitation_chance, baseline.precip_mean
        ),
        uv_type=direction_label("uv", forecast.uv_index, baseline.uv_mean),
    )

    return ComparisonResult(**derive_ranges(baseline), stats=stats, anomalies=anomalies)


def compare_forecast(
    forecasts: Sequence[ForecastDayInput],
    baselines: Sequence[HistoricalDayStat],
) -> list[ComparisonResult]:
    """依位置一對一比較多日預報

    Raises:
        ValueError: 預報日數與基準數量不一致
    """
    if len(forecasts) != len(baselines):
        raise ValueError(
            f"預報日數 ({len(forecasts)}) 與歷史基準數量 ({len(baselines)}) 不一致"
        )
    return [compare_day(forecast, baseline) for forecast, baseline in zip(forecasts, baselines)]


# ============================================================================
# 趨勢指標
# ============================================================================


def format_trend(value: Any, unit: str = "") -> TrendIndicator:
    """將趨勢值轉為顯示指標

    正值為 up（warm）、負值為 down（cool），0 或無法解析為 neutral。
    字串輸入保留原始文字，如 format_trend("2.5", "mph") 的 label 為 "+2.5mph"。
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan

    text = value.strip() if isinstance(value, str) else f"{number:g}"

    if number > 0:
        return TrendIndicator(direction="up", label=f"+{text}{unit}", tone="warm")
    if number < 0:
        return TrendIndicator(direction="down", label=f"{text}{unit}", tone="cool")
    return TrendIndicator(direction="neutral", label="No change", tone="neutral")
