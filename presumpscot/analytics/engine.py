"""統計分析引擎

提供溶氧與細菌監測資料的篩選與統計計算功能，包括：
- 資料篩選（例行樣本、排除年份、採樣季、樣本數不足的站點）
- 基本統計量計算（mean, median, std_dev, percentiles）
- 緬因州溶氧標準達成率
- 大腸桿菌幾何平均與單次樣本超標比例
- 站點分析器（站點摘要、月份摘要）

溶氧標準（緬因州水質分級）：
- AA / A / B 級：DO >= 7.0 mg/L 且飽和度 >= 75%
- C 級：DO >= 5.0 mg/L 且飽和度 >= 60%
"""

from typing import Any, Iterable

import numpy as np
import pandas as pd


# ============================================================================
# 常數定義
# ============================================================================

# 各分級的 (最低 DO mg/L, 最低飽和度 %)
DO_STANDARDS = {
    "AA": (7.0, 75.0),
    "A": (7.0, 75.0),
    "B": (7.0, 75.0),
    "C": (5.0, 60.0),
}

# 大腸桿菌單次樣本標準 (MPN/100 mL)
ECOLI_SINGLE_SAMPLE_LIMIT = 236.0

# 平均重複樣本時取平均的欄位
AVERAGED_COLUMNS = ["Depth", "Temp", "DO", "PctSat", "PctSat_Calc", "Ecoli"]
FLAG_COLUMNS = ["Ecoli_LC", "Ecoli_RC", "Sat_Flag", "QC_Reconstructed"]


# ============================================================================
# 資料篩選
# ============================================================================


def _drop_unused_sites(df: pd.DataFrame) -> pd.DataFrame:
    if isinstance(df["Site"].dtype, pd.CategoricalDtype):
        df["Site"] = df["Site"].cat.remove_unused_categories()
    return df


def select_routine(df: pd.DataFrame) -> pd.DataFrame:
    """只保留例行樣本（排除 QC 重複樣本）"""
    return df[df["QC"] == "Routine"].copy()


def average_duplicates(df: pd.DataFrame) -> pd.DataFrame:
    """將例行樣本與重複樣本合併為單一觀測

    同站同日的數值欄位取平均，旗標欄位取 any，其餘欄位取第一筆。

    Args:
        df: 含 Routine 與 Duplicate 的 DataFrame

    Returns:
        每個 (Site, Date) 一筆的 DataFrame，QC 皆為 Routine
    """
    keys = ["Site", "Date"]
    agg = {}
    for col in df.columns:
        if col in keys:
            continue
        if col in AVERAGED_COLUMNS:
            agg[col] = "mean"
        elif col in FLAG_COLUMNS:
            agg[col] = "any"
        else:
            agg[col] = "first"

    result = df.groupby(keys, observed=True, sort=True).agg(agg).reset_index()
    result["QC"] = "Routine"
    return result


def exclude_years(df: pd.DataFrame, years: Iterable[int]) -> pd.DataFrame:
    """排除指定年份"""
    years = list(years)
    if not years:
        return df.copy()
    return df[~df["Date"].dt.year.isin(years)].copy()


def filter_months(df: pd.DataFrame, months: Iterable[int]) -> pd.DataFrame:
    """只保留指定月份（1-12）的資料"""
    result = df[df["Date"].dt.month.isin(list(months))].copy()
    if isinstance(result["Month"].dtype, pd.CategoricalDtype):
        result["Month"] = result["Month"].cat.remove_unused_categories()
    return result


def filter_sites(df: pd.DataFrame, min_samples: int) -> pd.DataFrame:
    """只保留 DO 觀測數達 min_samples 的站點

    Args:
        df: 輸入 DataFrame
        min_samples: 最少有效 DO 觀測數

    Returns:
        篩選後的 DataFrame，未使用的站點分類已移除
    """
    counts = df.groupby("Site", observed=True)["DO"].count()
    keep = counts[counts >= min_samples].index
    result = df[df["Site"].isin(keep)].copy()
    return _drop_unused_sites(result)


# ============================================================================
# 基本統計函式
# ============================================================================


def compute_basic_stats(data: pd.Series) -> dict[str, Any]:
    """計算基本統計量

    Args:
        data: 數值型 pandas Series

    Returns:
        包含統計量的字典：
        - mean: 平均值
        - median: 中位數
        - std_dev: 標準差
        - min: 最小值
        - max: 最大值
        - percentile_10: 第 10 百分位數
        - percentile_25: 第 25 百分位數
        - percentile_75: 第 75 百分位數
        - count: 有效資料筆數（排除 NaN）
    """
    # 移除 NaN 值
    clean_data = pd.to_numeric(data, errors="coerce").dropna()

    if len(clean_data) == 0:
        return {
            "mean": np.nan,
            "median": np.nan,
            "std_dev": np.nan,
            "min": np.nan,
            "max": np.nan,
            "percentile_10": np.nan,
            "percentile_25": np.nan,
            "percentile_75": np.nan,
            "count": 0,
        }

    return {
        "mean": float(clean_data.mean()),
        "median": float(clean_data.median()),
        "std_dev": float(clean_data.std()),
        "min": float(clean_data.min()),
        "max": float(clean_data.max()),
        "percentile_10": float(clean_data.quantile(0.10)),
        "percentile_25": float(clean_data.quantile(0.25)),
        "percentile_75": float(clean_data.quantile(0.75)),
        "count": len(clean_data),
    }


def summarize_by(df: pd.DataFrame, column: str, by: str) -> pd.DataFrame:
    """依分組計算基本統計量

    Args:
        df: 輸入 DataFrame
        column: 要統計的欄位
        by: 分組欄位（如 Site、Month、Year）

    Returns:
        每組一列的 DataFrame
    """
    rows = []
    for key, group in df.groupby(by, observed=True, sort=True):
        stats = compute_basic_stats(group[column])
        rows.append({by: key, **stats})
    return pd.DataFrame(rows)


def compute_standard_compliance(df: pd.DataFrame, klass: str = "B") -> dict[str, Any]:
    """計算溶氧標準達成率

    DO 與飽和度須同時達標；缺少其中一項時只判定另一項，兩者皆缺時不計入。

    Args:
        df: 含 DO、PctSat 欄位的 DataFrame
        klass: 水質分級（AA、A、B、C）

    Returns:
        包含 class、evaluated、meets、fraction 的字典
    """
    if klass not in DO_STANDARDS:
        raise ValueError(f"Unknown water quality class: {klass}")

    do_min, sat_min = DO_STANDARDS[klass]
    do = df["DO"]
    sat = df["PctSat"] if "PctSat" in df.columns else pd.Series(np.nan, index=df.index)

    evaluable = do.notna() | sat.notna()
    passes = ((do >= do_min) | do.isna()) & ((sat >= sat_min) | sat.isna())

    evaluated = int(evaluable.sum())
    meets = int((passes & evaluable).sum())

    return {
        "class": klass,
        "evaluated": evaluated,
        "meets": meets,
        "fraction": float(meets / evaluated) if evaluated > 0 else np.nan,
    }


def geometric_mean(data: pd.Series) -> float:
    """計算幾何平均（忽略缺失值與非正值）"""
    values = pd.to_numeric(data, errors="coerce").dropna()
    values = values[values > 0]
    if len(values) == 0:
        return np.nan
    return float(np.exp(np.log(values).mean()))


def compute_bacteria_stats(df: pd.DataFrame, limit: float = ECOLI_SINGLE_SAMPLE_LIMIT) -> dict[str, Any]:
    """計算大腸桿菌統計

    設限值以報告的偵測極限代入。

    Args:
        df: 含 Ecoli、Ecoli_LC、Ecoli_RC 欄位的 DataFrame
        limit: 單次樣本標準

    Returns:
        包含統計的字典：
        - count: 有效樣本數
        - geometric_mean: 幾何平均
        - exceed_fraction: 超過單次樣本標準的比例
        - left_censored / right_censored: 設限樣本數
    """
    ecoli = df["Ecoli"].dropna()

    if len(ecoli) == 0:
        return {
            "count": 0,
            "geometric_mean": np.nan,
            "exceed_fraction": np.nan,
            "left_censored": 0,
            "right_censored": 0,
        }

    valid = df.loc[ecoli.index]
    return {
        "count": len(ecoli),
        "geometric_mean": geometric_mean(ecoli),
        "exceed_fraction": float((ecoli > limit).sum() / len(ecoli)),
        "left_censored": int(valid.get("Ecoli_LC", pd.Series(False, index=valid.index)).sum()),
        "right_censored": int(valid.get("Ecoli_RC", pd.Series(False, index=valid.index)).sum()),
    }


# ============================================================================
# 站點分析器類別
# ============================================================================


class WaterQualityAnalyzer:
    """站點水質分析器

    提供以站點或月份為單位的摘要統計。

    Attributes:
        data: 包含觀測資料的 DataFrame
    """

    def __init__(self, data: pd.DataFrame):
        """初始化分析器

        Args:
            data: 清洗後的 DataFrame，必須包含 'Site'、'Date'、'DO' 欄位
        """
        self.data = data.copy()
        self.data["Date"] = pd.to_datetime(self.data["Date"])

        if "Year" not in self.data.columns:
            self.data["Year"] = self.data["Date"].dt.year
        self.data["month_number"] = self.data["Date"].dt.month

    @property
    def sites(self) -> list:
        """依分類順序（或字母順序）列出有資料的站點"""
        site = self.data["Site"]
        if isinstance(site.dtype, pd.CategoricalDtype):
            present = set(site.dropna())
            return [s for s in site.cat.categories if s in present]
        return sorted(site.dropna().unique())

    def get_site_summary(self, site: str, klass: str = "B") -> dict[str, Any]:
        """取得站點摘要統計

        Args:
            site: 站點代碼
            klass: 水質分級

        Returns:
            包含 DO、飽和度、標準達成率與細菌統計的字典
        """
        site_data = self.data[self.data["Site"] == site]

        result = {
            "site": site,
            "class": klass,
            "sample_size": len(site_data),
            "years": int(site_data["Year"].nunique()),
            "do": compute_basic_stats(site_data["DO"]),
        }

        if "PctSat" in site_data.columns:
            result["pct_sat"] = compute_basic_stats(site_data["PctSat"])

        result["compliance"] = compute_standard_compliance(site_data, klass)

        if "Ecoli" in site_data.columns:
            result["bacteria"] = compute_bacteria_stats(site_data)

        return result

    def get_monthly_summary(self, month: int) -> dict[str, Any]:
        """取得月份摘要統計

        Args:
            month: 月份 (1-12)

        Returns:
            包含月份摘要的字典
        """
        month_data = self.data[self.data["month_number"] == month]

        if len(month_data) == 0:
            return {
                "month": month,
                "sample_size": 0,
                "avg_do": np.nan,
                "avg_pct_sat": np.nan,
                "avg_temperature": np.nan,
            }

        result = {
            "month": month,
            "sample_size": len(month_data),
            "avg_do": float(month_data["DO"].mean()),
        }

        if "PctSat" in month_data.columns:
            result["avg_pct_sat"] = float(month_data["PctSat"].mean())

        if "Temp" in month_data.columns:
            result["avg_temperature"] = float(month_data["Temp"].mean())

        # 低於 C 級下限的比例
        do_floor = DO_STANDARDS["C"][0]
        valid_do = month_data["DO"].dropna()
        result["below_class_c_ratio"] = (
            float((valid_do < do_floor).sum() / len(valid_do)) if len(valid_do) > 0 else np.nan
        )

        return result
