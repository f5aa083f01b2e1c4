# backend/weather_dashboard/schemas/comparison.py
"""歷史比較 Pydantic Schema 定義

欄位在 Python 端使用 snake_case，序列化（by_alias）與輸入時
同時接受前端使用的 camelCase 名稱（tempMean、yearlyData、tempZScore ...）。
所有模型皆為不可變（frozen），每次比較都由呼叫端資料重新建立。
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# 以 mean ± k·SD 合成百分位斷點時使用的倍數（共 7 點）
SYNTHETIC_PERCENTILE_SD_MULTIPLES = (-2.0, -1.0, -0.5, 0.0, 0.5, 1.0, 2.0)

Similarity = Literal["very high", "high", "moderate", "low", "unknown"]


class CamelModel(BaseModel):
    """camelCase 別名的共用基底"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class YearlySample(CamelModel):
    """單一歷史年份的觀測樣本"""

    year: int = Field(..., description="年份")
    temp: float = Field(..., description="當年同日最高溫")
    precip: float = Field(..., description="當年同日降水機率 (0-100)")


class HistoricalDayStat(CamelModel):
    """單一日曆日的歷史統計基準（跨年彙整）

    百分位斷點為選填：None 表示未提供，比較時由 mean ± SD 倍數合成；
    提供空序列則保留原樣（百分位計算會回退為 50）。
    """

    date: Optional[str] = Field(None, description="日期標籤，如 'Mar 9'")
    temp_mean: float = Field(..., description="歷史最高溫平均")
    temp_sd: float = Field(..., gt=0, alias="tempSD", description="歷史最高溫標準差")
    precip_mean: float = Field(..., description="降水機率平均 (0-100)")
    precip_sd: float = Field(..., gt=0, alias="precipSD", description="降水機率標準差")
    uv_mean: float = Field(..., description="紫外線指數平均")
    uv_sd: float = Field(..., gt=0, alias="uvSD", description="紫外線指數標準差")
    temp_percentiles: Optional[tuple[float, ...]] = Field(
        None, description="溫度百分位斷點（遞增，均勻分布於 0-100）"
    )
    precip_percentiles: Optional[tuple[float, ...]] = Field(
        None, description="降水百分位斷點（遞增，均勻分布於 0-100）"
    )
    yearly_data: tuple[YearlySample, ...] = Field((), description="各年份觀測樣本")

    @field_validator("temp_percentiles", "precip_percentiles")
    @classmethod
    def _check_ascending(cls, value):
        if value is None:
            return value
        if any(later < earlier for earlier, later in zip(value, value[1:])):
            raise ValueError("百分位斷點必須遞增排序")
        return value

    def temp_breakpoints(self) -> tuple[float, ...]:
        """取得溫度百分位斷點（未提供時合成）"""
        if self.temp_percentiles is None:
            return synthesize_percentiles(self.temp_mean, self.temp_sd)
        return self.temp_percentiles

    def precip_breakpoints(self) -> tuple[float, ...]:
        """取得降水百分位斷點（未提供時合成）"""
        if self.precip_percentiles is None:
            return synthesize_percentiles(self.precip_mean, self.precip_sd)
        return self.precip_percentiles


def synthesize_percentiles(mean: float, sd: float) -> tuple[float, ...]:
    """以 mean ± k·SD 合成 7 個百分位斷點"""
    return tuple(mean + k * sd for k in SYNTHETIC_PERCENTILE_SD_MULTIPLES)


class ForecastDayInput(CamelModel):
    """單日預報的比較輸入值"""

    temp_high: float = Field(..., description="預報最高溫")
    precipitation_chance: float = Field(..., ge=0, le=100, description="降水機率 (0-100)")
    uv_index: float = Field(..., ge=0, description="紫外線指數")


class ValueRange(CamelModel):
    """顯示用區間（mean ± 1.5·SD）"""

    min: float
    max: float
    avg: float


class SimilarYear(CamelModel):
    """最相似的歷史年份"""

    year: Optional[int] = Field(None, description="年份，無資料時為 None")
    similarity: Similarity = Field("unknown", description="相似度等級")


class ComparisonStats(CamelModel):
    """標準分數與百分位"""

    temp_z_score: float
    precip_z_score: float
    uv_z_score: float
    temp_percentile: int = Field(..., ge=0, le=100)
    precip_percentile: int = Field(..., ge=0, le=100)
    similar_year: SimilarYear


class AnomalyFlags(CamelModel):
    """異常旗標（|z| > 1.5）與方向"""

    temp: bool
    precip: bool
    uv: bool
    temp_type: Literal["hot", "cold"]
    precip_type: Literal["wet", "dry"]
    uv_type: Literal["high", "low"]


class ComparisonResult(CamelModel):
    """單日預報與歷史基準的比較結果"""

    temp_range: ValueRange
    precip_range: ValueRange
    uv_range: ValueRange
    stats: ComparisonStats
    anomalies: AnomalyFlags


class TrendIndicator(CamelModel):
    """趨勢顯示指標"""

    direction: Literal["up", "down", "neutral"]
    label: str
    tone: Literal["warm", "cool", "neutral"]


class ComparisonRequest(CamelModel):
    """批次比較請求：預報日與歷史基準依位置一對一配對"""

    forecast: list[ForecastDayInput] = Field(..., min_length=1)
    baselines: list[HistoricalDayStat] = Field(..., min_length=1)
