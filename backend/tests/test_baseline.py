"""歷史基準建立器測試"""

import pandas as pd
import pytest

from weather_dashboard.analytics.baseline import (
    BaselineBuilder,
    day_label,
    window_days_of_year,
)
from weather_dashboard.analytics.engine import compare_day
from weather_dashboard.schemas.comparison import ForecastDayInput, YearlySample


def make_observations(years=range(2015, 2020), month=3, days=range(6, 13), center=9):
    """產生測試用逐日觀測資料

    每年的視窗平均：溫度 45 + k，降水 60 + 2k（k 為年份序號）
    """
    rows = []
    for k, year in enumerate(years):
        for d in days:
            offset = d - center
            rows.append({
                "observed_date": f"{year}-{month:02d}-{d:02d}",
                "temp_high": 45 + k + offset * 0.5,
                "precip_chance": 60 + 2 * k + offset,
                "uv_index": 3 + 0.1 * k + 0.1 * offset,
            })
    return pd.DataFrame(rows)


@pytest.fixture
def builder():
    data = make_observations()
    # 視窗外的極端值不應影響結果
    outliers = pd.DataFrame([
        {"observed_date": "2016-03-01", "temp_high": 90, "precip_chance": 0, "uv_index": 10},
        {"observed_date": "2017-03-20", "temp_high": 10, "precip_chance": 100, "uv_index": 0},
    ])
    return BaselineBuilder(pd.concat([data, outliers], ignore_index=True))


def test_day_label():
    assert day_label(3, 9) == "Mar 9"
    assert day_label(2, 29) == "Feb 29"


def test_window_wraps_year_boundary():
    """1 月 1 日的視窗包含前一年年底"""
    assert window_days_of_year(1, 1, 3) == [363, 364, 365, 1, 2, 3, 4]
    assert window_days_of_year(12, 31, 2) == [363, 364, 365, 1, 2]


class TestGetDayStat:
    """測試單日基準建立"""

    def test_summary_statistics(self, builder):
        stat = builder.get_day_stat(3, 9)

        assert stat.date == "Mar 9"
        assert stat.temp_mean == pytest.approx(47)
        assert stat.precip_mean == pytest.approx(64)
        assert stat.uv_mean == pytest.approx(3.2)
        assert stat.temp_sd > 0

    def test_percentile_breakpoints(self, builder):
        stat = builder.get_day_stat(3, 9)

        assert len(stat.temp_percentiles) == 7
        assert list(stat.temp_percentiles) == sorted(stat.temp_percentiles)
        assert stat.temp_percentiles[0] == pytest.approx(43.5)
        assert stat.temp_percentiles[-1] == pytest.approx(50.5)
        assert stat.temp_percentiles[3] == pytest.approx(47)

    def test_yearly_samples(self, builder):
        stat = builder.get_day_stat(3, 9)

        assert [sample.year for sample in stat.yearly_data] == [2015, 2016, 2017, 2018, 2019]
        assert stat.yearly_data[0] == YearlySample(year=2015, temp=45, precip=60)
        assert stat.yearly_data[-1] == YearlySample(year=2019, temp=49, precip=68)

    def test_custom_percentile_points(self, builder):
        stat = builder.get_day_stat(3, 9, percentile_points=5)
        assert len(stat.precip_percentiles) == 5

    def test_usable_by_engine(self, builder):
        """建立的基準可直接用於比較"""
        stat = builder.get_day_stat(3, 9)
        result = compare_day(
            ForecastDayInput(temp_high=47, precipitation_chance=64, uv_index=3.2), stat
        )

        assert result.stats.temp_z_score == 0
        assert result.stats.temp_percentile == 50
        assert result.stats.similar_year.year == 2017
        assert result.anomalies.temp is False

    def test_year_boundary_window(self):
        data = pd.DataFrame([
            {"observed_date": "2019-12-30", "temp_high": 40, "precip_chance": 50, "uv_index": 1},
            {"observed_date": "2020-01-02", "temp_high": 44, "precip_chance": 70, "uv_index": 2},
            {"observed_date": "2020-01-20", "temp_high": 90, "precip_chance": 0, "uv_index": 9},
        ])
        stat = BaselineBuilder(data).get_day_stat(1, 1)

        assert stat.temp_mean == pytest.approx(42)
        assert [sample.year for sample in stat.yearly_data] == [2019, 2020]

    def test_leap_year_alignment(self):
        """閏年 3 月 9 日與平年同日對齊"""
        data = pd.DataFrame([
            {"observed_date": "2020-03-09", "temp_high": 50, "precip_chance": 40, "uv_index": 3},
            {"observed_date": "2021-03-09", "temp_high": 54, "precip_chance": 60, "uv_index": 4},
        ])
        stat = BaselineBuilder(data).get_day_stat(3, 9, window_days=0)

        assert stat.temp_mean == pytest.approx(52)
        assert len(stat.yearly_data) == 2


class TestErrors:
    """測試錯誤處理"""

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="uv_index"):
            BaselineBuilder(pd.DataFrame({
                "observed_date": ["2020-03-09"],
                "temp_high": [50],
                "precip_chance": [40],
            }))

    def test_insufficient_samples(self):
        data = pd.DataFrame([
            {"observed_date": "2020-03-09", "temp_high": 50, "precip_chance": 40, "uv_index": 3},
        ])
        with pytest.raises(ValueError):
            BaselineBuilder(data).get_day_stat(3, 9)

    def test_no_variance(self):
        data = pd.DataFrame([
            {"observed_date": "2020-03-09", "temp_high": 50, "precip_chance": 40, "uv_index": 3},
            {"observed_date": "2021-03-09", "temp_high": 50, "precip_chance": 45, "uv_index": 4},
        ])
        with pytest.raises(ValueError):
            BaselineBuilder(data).get_day_stat(3, 9)

    def test_does_not_modify_input(self):
        data = make_observations(years=[2020])
        BaselineBuilder(data)
        assert list(data.columns) == ["observed_date", "temp_high", "precip_chance", "uv_index"]


def test_get_range_stats(builder):
    stats = builder.get_range_stats(pd.Timestamp("2024-03-08"), 3, window_days=1)

    assert [stat.date for stat in stats] == ["Mar 8", "Mar 9", "Mar 10"]
