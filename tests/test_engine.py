"""統計分析引擎測試"""

import numpy as np
import pandas as pd
import pytest


class TestComputeBasicStats:
    """測試基本統計計算"""

    def test_compute_basic_stats_normal_data(self):
        """測試正常數據的基本統計"""
        from presumpscot.analytics.engine import compute_basic_stats

        data = pd.Series([10.0, 15.0, 20.0, 25.0, 30.0])
        stats = compute_basic_stats(data)

        assert stats["mean"] == 20.0
        assert stats["median"] == 20.0
        assert "std_dev" in stats
        assert stats["percentile_10"] == 12.0
        assert stats["percentile_25"] == 15.0
        assert stats["percentile_75"] == 25.0

    def test_compute_basic_stats_with_nan(self):
        """測試含有 NaN 值的數據"""
        from presumpscot.analytics.engine import compute_basic_stats

        data = pd.Series([10.0, np.nan, 20.0, np.nan, 30.0])
        stats = compute_basic_stats(data)

        # 應該忽略 NaN 值
        assert stats["mean"] == 20.0
        assert stats["count"] == 3

    def test_compute_basic_stats_empty_series(self):
        """測試空數據"""
        from presumpscot.analytics.engine import compute_basic_stats

        stats = compute_basic_stats(pd.Series([], dtype=float))

        assert np.isnan(stats["mean"])
        assert stats["count"] == 0

    def test_summarize_by(self, analysis_data):
        """測試分組統計"""
        from presumpscot.analytics.engine import summarize_by

        table = summarize_by(analysis_data, "DO", "Site")

        assert table["Site"].tolist() == ["P-000", "P-050", "PI-020"]
        assert (table["count"] == 50).all()
        # 站點效應：P-050 最高，PI-020 最低
        assert table["mean"].iloc[1] > table["mean"].iloc[0] > table["mean"].iloc[2]


class TestStandardCompliance:
    """測試溶氧標準達成率"""

    def test_class_b(self):
        """測試 B 級：DO 與飽和度皆須達標"""
        from presumpscot.analytics.engine import compute_standard_compliance

        df = pd.DataFrame({
            "DO": [8.0, 6.5, 7.5, np.nan, 7.2, np.nan],
            "PctSat": [90.0, 80.0, 70.0, 80.0, np.nan, np.nan],
        })
        result = compute_standard_compliance(df, "B")

        # 第 1、4、5 筆達標；最後一筆不計入
        assert result["evaluated"] == 5
        assert result["meets"] == 3
        assert result["fraction"] == pytest.approx(0.6)

    def test_class_c_is_lower(self):
        """測試 C 級門檻較低"""
        from presumpscot.analytics.engine import compute_standard_compliance

        df = pd.DataFrame({"DO": [5.5, 6.0], "PctSat": [62.0, 70.0]})

        assert compute_standard_compliance(df, "B")["meets"] == 0
        assert compute_standard_compliance(df, "C")["meets"] == 2

    def test_unknown_class(self):
        """測試未知的水質分級"""
        from presumpscot.analytics.engine import compute_standard_compliance

        with pytest.raises(ValueError):
            compute_standard_compliance(pd.DataFrame({"DO": [8.0]}), "D")

    def test_no_observations(self):
        """測試沒有可判定的資料"""
        from presumpscot.analytics.engine import compute_standard_compliance

        result = compute_standard_compliance(pd.DataFrame({"DO": [np.nan]}), "A")

        assert result["evaluated"] == 0
        assert np.isnan(result["fraction"])


class TestBacteriaStats:
    """測試大腸桿菌統計"""

    def test_geometric_mean(self):
        """測試幾何平均"""
        from presumpscot.analytics.engine import geometric_mean

        assert geometric_mean(pd.Series([1.0, 10.0, 100.0])) == pytest.approx(10.0)
        assert geometric_mean(pd.Series([10.0, 0.0, np.nan])) == pytest.approx(10.0)
        assert np.isnan(geometric_mean(pd.Series([], dtype=float)))

    def test_compute_bacteria_stats(self):
        """測試超標比例與設限計數"""
        from presumpscot.analytics.engine import compute_bacteria_stats

        df = pd.DataFrame({
            "Ecoli": [1.0, 50.0, 300.0, 2419.6, np.nan],
            "Ecoli_LC": [True, False, False, False, False],
            "Ecoli_RC": [False, False, False, True, False],
        })
        stats = compute_bacteria_stats(df)

        assert stats["count"] == 4
        assert stats["exceed_fraction"] == 0.5
        assert stats["left_censored"] == 1
        assert stats["right_censored"] == 1

    def test_compute_bacteria_stats_empty(self):
        """測試沒有菌數資料"""
        from presumpscot.analytics.engine import compute_bacteria_stats

        stats = compute_bacteria_stats(pd.DataFrame({"Ecoli": [np.nan, np.nan]}))

        assert stats["count"] == 0
        assert np.isnan(stats["geometric_mean"])


class TestFiltering:
    """測試資料篩選"""

    def test_select_routine(self, observations):
        """測試排除重複樣本"""
        from presumpscot.analytics.engine import select_routine

        result = select_routine(observations)

        assert len(result) == len(observations) - 3
        assert (result["QC"] == "Routine").all()

    def test_average_duplicates(self, observations):
        """測試合併例行與重複樣本"""
        from presumpscot.analytics.engine import average_duplicates

        first = observations[observations["Site"] == "P-000"].iloc[0]
        result = average_duplicates(observations)

        assert len(result) == len(observations) - 3
        merged = result[(result["Site"] == "P-000") & (result["Date"] == first["Date"])]
        assert merged["DO"].item() == pytest.approx(first["DO"] + 0.05)
        assert (result["QC"] == "Routine").all()

    def test_exclude_years(self, observations):
        """測試排除年份"""
        from presumpscot.analytics.engine import exclude_years

        result = exclude_years(observations, [2009, 2010])

        assert set(result["Date"].dt.year) == {2011, 2012, 2013}
        assert len(exclude_years(observations, [])) == len(observations)

    def test_filter_months(self, cleaned_csv):
        """測試採樣季篩選並移除未使用的月份分類"""
        from presumpscot.analytics.engine import filter_months
        from presumpscot.pipeline.load import load_cleaned_csv

        result = filter_months(load_cleaned_csv(cleaned_csv), [6, 7])

        assert set(result["Date"].dt.month) == {6, 7}
        assert list(result["Month"].cat.categories) == ["Jun", "Jul"]

    def test_filter_sites(self, analysis_data):
        """測試移除樣本數不足的站點"""
        from presumpscot.analytics.engine import filter_sites

        sparse = analysis_data[
            (analysis_data["Site"] != "PI-020") | (analysis_data["Year"] == 2009)
        ]
        result = filter_sites(sparse, min_samples=20)

        assert list(result["Site"].cat.categories) == ["P-000", "P-050"]
        assert len(filter_sites(analysis_data, min_samples=51)) == 0


class TestWaterQualityAnalyzer:
    """測試站點分析器"""

    def test_sites_in_category_order(self, analysis_data):
        """測試站點依分類順序列出"""
        from presumpscot.analytics.engine import WaterQualityAnalyzer

        analyzer = WaterQualityAnalyzer(analysis_data)

        assert analyzer.sites == ["P-000", "P-050", "PI-020"]

    def test_get_site_summary(self, analysis_data):
        """測試站點摘要"""
        from presumpscot.analytics.engine import WaterQualityAnalyzer

        summary = WaterQualityAnalyzer(analysis_data).get_site_summary("P-050", klass="B")

        assert summary["sample_size"] == 50
        assert summary["years"] == 5
        assert summary["do"]["count"] == 50
        assert "pct_sat" in summary
        assert 0.0 <= summary["compliance"]["fraction"] <= 1.0
        assert summary["bacteria"]["count"] == 50

    def test_get_monthly_summary(self, analysis_data):
        """測試月份摘要"""
        from presumpscot.analytics.engine import WaterQualityAnalyzer

        analyzer = WaterQualityAnalyzer(analysis_data)
        may = analyzer.get_monthly_summary(5)
        september = analyzer.get_monthly_summary(9)

        assert may["sample_size"] == 30
        # 月份效應：溶氧隨季節下降
        assert may["avg_do"] > september["avg_do"]
        assert "avg_temperature" in may
        assert 0.0 <= may["below_class_c_ratio"] <= 1.0

    def test_get_monthly_summary_empty(self, analysis_data):
        """測試沒有資料的月份"""
        from presumpscot.analytics.engine import WaterQualityAnalyzer

        summary = WaterQualityAnalyzer(analysis_data).get_monthly_summary(1)

        assert summary["sample_size"] == 0
        assert np.isnan(summary["avg_do"])
