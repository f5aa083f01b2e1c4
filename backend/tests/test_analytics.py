"""歷史比較引擎測試"""

import numpy as np
import pandas as pd
import pytest

from weather_dashboard.analytics.engine import (
    compare_day,
    compare_forecast,
    compute_z_score,
    derive_range,
    direction_label,
    find_similar_year,
    format_trend,
    is_anomaly,
    percentile_rank,
    round_half_up,
)
from weather_dashboard.schemas.comparison import (
    ForecastDayInput,
    HistoricalDayStat,
    YearlySample,
)


YEARLY_DATA = [
    {"year": 2018, "temp": 70, "precip": 20},
    {"year": 2019, "temp": 65, "precip": 40},
    {"year": 2020, "temp": 60, "precip": 60},
    {"year": 2021, "temp": 55, "precip": 80},
]


@pytest.fixture
def seattle_baseline():
    """Seattle 3 月 9 日的歷史基準"""
    return HistoricalDayStat(
        date="Mar 9",
        temp_mean=47, temp_sd=3.2,
        precip_mean=68, precip_sd=12,
        uv_mean=3.2, uv_sd=0.8,
        temp_percentiles=[42, 44, 46, 47, 49, 51, 54],
        precip_percentiles=[45, 55, 62, 68, 74, 80, 88],
        yearly_data=[
            {"year": 2005, "temp": 45, "precip": 72},
            {"year": 2010, "temp": 46, "precip": 65},
            {"year": 2015, "temp": 48, "precip": 60},
            {"year": 2020, "temp": 49, "precip": 75},
        ],
    )


class TestRoundHalfUp:
    """測試半數進位捨入"""

    def test_rounds_half_away_from_bankers(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(-2.5) == -2

    def test_one_decimal(self):
        assert round_half_up(1.25, 1) == 1.3
        assert round_half_up(-2.333, 1) == -2.3


class TestPercentileRank:
    """測試百分位排名"""

    def test_empty_breakpoints_returns_neutral(self):
        """沒有百分位資料時回傳 50"""
        assert percentile_rank(75, []) == 50
        assert percentile_rank(-10, []) == 50
        assert percentile_rank(30, None) == 50

    def test_below_and_above_history(self):
        assert percentile_rank(10, [20, 40, 60, 80]) == 0
        assert percentile_rank(90, [20, 40, 60, 80]) == 100

    def test_values_in_range(self):
        assert percentile_rank(40, [20, 40, 60, 80]) == 33
        assert percentile_rank(50, [20, 40, 60, 80]) == 50
        assert percentile_rank(60, [20, 40, 60, 80]) == 67

    def test_interpolation(self):
        """區段內線性內插"""
        assert percentile_rank(30, [20, 40, 60, 80]) == 17
        assert percentile_rank(70, [20, 40, 60, 80]) == 83

    def test_boundaries_of_history(self):
        assert percentile_rank(20, [20, 40, 60, 80]) == 0
        assert percentile_rank(80, [20, 40, 60, 80]) == 100

    def test_single_breakpoint(self):
        """單一斷點：等於或高於都回傳 100"""
        assert percentile_rank(10, [20]) == 0
        assert percentile_rank(20, [20]) == 100
        assert percentile_rank(30, [20]) == 100

    def test_duplicate_breakpoints_do_not_crash(self):
        assert percentile_rank(40, [40, 40, 60]) == 50

    def test_does_not_mutate_input(self):
        breakpoints = [20, 40, 60, 80]
        percentile_rank(50, breakpoints)
        assert breakpoints == [20, 40, 60, 80]

    def test_accepts_tuple(self):
        assert percentile_rank(50, (20, 40, 60, 80)) == 50

    def test_rejects_non_sequence(self):
        """非序列輸入視為程式錯誤"""
        with pytest.raises(TypeError):
            percentile_rank(50, "20,40,60")
        with pytest.raises(TypeError):
            percentile_rank(50, 20)
        with pytest.raises(TypeError):
            percentile_rank(50, {"p50": 40})


class TestZScoreAndAnomaly:
    """測試標準分數與異常判定"""

    def test_compute_z_score(self):
        assert compute_z_score(56, 50, 4) == 1.5
        assert compute_z_score(44, 50, 4) == -1.5

    def test_anomaly_threshold_is_strict(self):
        """恰好 1.5 不算異常"""
        assert is_anomaly(1.5) is False
        assert is_anomaly(1.51) is True
        assert is_anomaly(-1.5) is False
        assert is_anomaly(-1.51) is True

    def test_direction_labels(self):
        assert direction_label("temp", 60, 50) == "hot"
        assert direction_label("temp", 40, 50) == "cold"
        assert direction_label("precip", 80, 50) == "wet"
        assert direction_label("precip", 20, 50) == "dry"
        assert direction_label("uv", 6, 4) == "high"
        assert direction_label("uv", 2, 4) == "low"

    def test_direction_tie_falls_to_else_branch(self):
        assert direction_label("temp", 50, 50) == "cold"
        assert direction_label("precip", 50, 50) == "dry"
        assert direction_label("uv", 4, 4) == "low"


class TestFindSimilarYear:
    """測試最相似年份搜尋"""

    def test_empty_or_missing_data(self):
        expected = {"year": None, "similarity": "unknown"}
        assert find_similar_year(70, 20, []).model_dump() == expected
        assert find_similar_year(70, 20, None).model_dump() == expected

    def test_exact_match(self):
        result = find_similar_year(70, 20, YEARLY_DATA)
        assert result.year == 2018
        assert result.similarity == "very high"

    def test_closest_match(self):
        assert find_similar_year(64, 42, YEARLY_DATA).year == 2019
        assert find_similar_year(62, 35, YEARLY_DATA).year == 2019

    def test_not_similar_to_any_year(self):
        assert find_similar_year(80, 90, YEARLY_DATA).similarity == "low"

    def test_similarity_bands(self):
        # 分數 0.0707 / 0.15 / 0.25，與 2018 比較
        assert find_similar_year(70.5, 21.5, YEARLY_DATA).similarity == "very high"
        assert find_similar_year(71.5, 20, YEARLY_DATA).similarity == "high"
        assert find_similar_year(72.5, 20, YEARLY_DATA).similarity == "moderate"

    def test_band_threshold_is_exclusive(self):
        """分數恰好 0.1 屬於 high"""
        assert find_similar_year(69, 20, YEARLY_DATA).similarity == "high"

    def test_temperature_weighs_more_than_precipitation(self):
        """10 度溫差與 30 個百分點降水差的權重相當"""
        data = [
            {"year": 2000, "temp": 60, "precip": 50},
            {"year": 2001, "temp": 54, "precip": 20},
        ]
        # 與 2000 相差 6 度 (0.6)；與 2001 相差 30 個百分點 (1.0)
        assert find_similar_year(54, 50, data).year == 2000

    def test_tie_keeps_first_occurrence(self):
        data = [
            {"year": 2001, "temp": 60, "precip": 50},
            {"year": 2002, "temp": 60, "precip": 50},
        ]
        assert find_similar_year(62, 50, data).year == 2001

    def test_accepts_yearly_sample_models(self):
        data = [YearlySample(year=2011, temp=50, precip=30)]
        assert find_similar_year(50, 30, data).year == 2011

    def test_rejects_non_sequence(self):
        with pytest.raises(TypeError):
            find_similar_year(70, 20, "2018")

    @pytest.mark.parametrize("yearly_data", ["", b"", {}, {"year": 2018}])
    def test_rejects_non_sequence_even_when_empty(self, yearly_data):
        """字串與 mapping 不論是否為空都拒絕"""
        with pytest.raises(TypeError):
            find_similar_year(70, 20, yearly_data)

    def test_accepts_array_like(self):
        """numpy 陣列與 pandas Series 直接使用"""
        assert find_similar_year(70, 20, np.array([], dtype=object)).similarity == "unknown"
        assert find_similar_year(70, 20, np.array(YEARLY_DATA, dtype=object)).year == 2018
        assert find_similar_year(64, 42, pd.Series(YEARLY_DATA)).year == 2019


class TestDeriveRange:
    """測試顯示區間推導"""

    def test_temperature_band(self):
        band = derive_range(50, 4)
        assert band.model_dump() == {"min": 44, "max": 56, "avg": 50}

    def test_rounds_to_integer(self):
        band = derive_range(47, 3.2)
        assert (band.min, band.max, band.avg) == (42, 52, 47)

    def test_uv_band_one_decimal(self):
        band = derive_range(3.2, 0.8, digits=1, floor=1.0)
        assert (band.min, band.max, band.avg) == (2.0, 4.4, 3.2)

    def test_uv_display_floor(self):
        """紫外線顯示值最低為 1"""
        band = derive_range(0.8, 0.4, digits=1, floor=1.0)
        assert band.min == 1.0
        assert band.avg == 1.0
        assert band.max == 1.4


class TestCompareDay:
    """測試單日比較"""

    def test_full_comparison(self, seattle_baseline):
        forecast = ForecastDayInput(temp_high=52, precipitation_chance=40, uv_index=5.2)
        result = compare_day(forecast, seattle_baseline)

        assert result.temp_range.model_dump() == {"min": 42, "max": 52, "avg": 47}
        assert result.precip_range.model_dump() == {"min": 50, "max": 86, "avg": 68}
        assert result.uv_range.model_dump() == {"min": 2.0, "max": 4.4, "avg": 3.2}

        assert result.stats.temp_z_score == 1.6
        assert result.stats.precip_z_score == -2.3
        assert result.stats.uv_z_score == 2.5
        assert result.stats.temp_percentile == 89
        assert result.stats.precip_percentile == 0
        assert result.stats.similar_year.year == 2015
        assert result.stats.similar_year.similarity == "low"

        assert result.anomalies.temp is True
        assert result.anomalies.precip is True
        assert result.anomalies.uv is True
        assert result.anomalies.temp_type == "hot"
        assert result.anomalies.precip_type == "dry"
        assert result.anomalies.uv_type == "high"

    def test_anomaly_boundary_uses_unrounded_z(self):
        baseline = HistoricalDayStat(
            temp_mean=50, temp_sd=4, precip_mean=50, precip_sd=10, uv_mean=5, uv_sd=1
        )

        at_threshold = compare_day(
            ForecastDayInput(temp_high=56, precipitation_chance=50, uv_index=5), baseline
        )
        assert at_threshold.stats.temp_z_score == 1.5
        assert at_threshold.anomalies.temp is False

        above = compare_day(
            ForecastDayInput(temp_high=56.04, precipitation_chance=50, uv_index=5), baseline
        )
        assert above.stats.temp_z_score == 1.5
        assert above.anomalies.temp is True

        below = compare_day(
            ForecastDayInput(temp_high=43.96, precipitation_chance=50, uv_index=5), baseline
        )
        assert below.anomalies.temp is True
        assert below.anomalies.temp_type == "cold"

    def test_synthesized_percentiles(self):
        """沒有百分位資料時以 mean ± SD 合成"""
        baseline = HistoricalDayStat(
            temp_mean=50, temp_sd=4, precip_mean=50, precip_sd=10, uv_mean=5, uv_sd=1
        )
        # 合成斷點 [42, 46, 48, 50, 52, 54, 58]，平均值位於第 50 百分位
        result = compare_day(
            ForecastDayInput(temp_high=50, precipitation_chance=50, uv_index=5), baseline
        )
        assert result.stats.temp_percentile == 50
        assert result.stats.precip_percentile == 50
        assert result.stats.similar_year.similarity == "unknown"
        assert result.anomalies.temp_type == "cold"

    def test_explicit_empty_percentiles(self):
        baseline = HistoricalDayStat(
            temp_mean=50, temp_sd=4, precip_mean=50, precip_sd=10, uv_mean=5, uv_sd=1,
            temp_percentiles=[],
        )
        result = compare_day(
            ForecastDayInput(temp_high=70, precipitation_chance=50, uv_index=5), baseline
        )
        assert result.stats.temp_percentile == 50

    def test_idempotent(self, seattle_baseline):
        """相同輸入得到相同結果"""
        forecast = ForecastDayInput(temp_high=49, precipitation_chance=70, uv_index=3)
        first = compare_day(forecast, seattle_baseline)
        second = compare_day(forecast, seattle_baseline)

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()


class TestCompareForecast:
    """測試多日比較"""

    def test_pairs_by_position(self, seattle_baseline):
        other = HistoricalDayStat(
            temp_mean=60, temp_sd=5, precip_mean=20, precip_sd=10, uv_mean=6, uv_sd=1
        )
        forecasts = [
            ForecastDayInput(temp_high=47, precipitation_chance=68, uv_index=3.2),
            ForecastDayInput(temp_high=60, precipitation_chance=20, uv_index=6),
        ]
        results = compare_forecast(forecasts, [seattle_baseline, other])

        assert len(results) == 2
        assert results[0].temp_range.avg == 47
        assert results[1].temp_range.avg == 60
        assert results[1].stats.temp_z_score == 0

    def test_length_mismatch(self, seattle_baseline):
        forecasts = [ForecastDayInput(temp_high=47, precipitation_chance=68, uv_index=3)] * 2
        with pytest.raises(ValueError):
            compare_forecast(forecasts, [seattle_baseline])


class TestFormatTrend:
    """測試趨勢指標"""

    def test_positive_trend(self):
        trend = format_trend(0.5, "°F")
        assert trend.direction == "up"
        assert trend.label == "+0.5°F"
        assert trend.tone == "warm"

    def test_negative_trend(self):
        trend = format_trend(-1.2, "%")
        assert trend.direction == "down"
        assert trend.label == "-1.2%"
        assert trend.tone == "cool"

    def test_no_change(self):
        trend = format_trend(0)
        assert trend.direction == "neutral"
        assert trend.label == "No change"

    def test_string_value_keeps_text(self):
        trend = format_trend("2.5", "mph")
        assert trend.direction == "up"
        assert trend.label == "+2.5mph"

    def test_invalid_value(self):
        trend = format_trend("not a number")
        assert trend.direction == "neutral"
        assert trend.label == "No change"
