"""站點摘要匯出

彙整各站點的溶氧、飽和度、標準達成率與細菌統計，
輸出供外部 GIS 製圖使用的 CSV。
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from presumpscot.analytics.engine import WaterQualityAnalyzer
from presumpscot.analytics.models import ModelResult, site_marginal_means
from presumpscot.config import Settings, settings as default_settings
from presumpscot.schemas.summary import SUMMARY_COLUMNS, SiteSummary


def build_site_summary(
    df: pd.DataFrame,
    settings: Optional[Settings] = None,
    mixed_result: Optional[ModelResult] = None,
) -> pd.DataFrame:
    """建立站點摘要表

    Args:
        df: 分析用 DataFrame（已篩選）
        settings: 分析設定（提供各站點的水質分級）
        mixed_result: DO 混合模型結果，提供站點邊際平均

    Returns:
        每站一列、欄位依 SUMMARY_COLUMNS 排列的 DataFrame
    """
    settings = settings or default_settings
    analyzer = WaterQualityAnalyzer(df)

    marginal = {}
    if mixed_result is not None:
        means = site_marginal_means(mixed_result, df)
        marginal = dict(zip(means["Site"], means["emmean"]))

    rows = []
    for site in analyzer.sites:
        stats = analyzer.get_site_summary(site, klass=settings.class_for_site(site))
        do = stats["do"]
        pct_sat = stats.get("pct_sat", {})
        bacteria = stats.get("bacteria", {})

        row = SiteSummary(
            site=site,
            water_class=stats["class"],
            years=stats["years"],
            n_do=do["count"],
            do_mean=do["mean"],
            do_median=do["median"],
            do_sd=do["std_dev"],
            do_min=do["min"],
            do_p10=do["percentile_10"],
            pct_sat_mean=pct_sat.get("mean"),
            pct_sat_median=pct_sat.get("median"),
            pct_sat_min=pct_sat.get("min"),
            meets_do_standard=stats["compliance"]["fraction"],
            do_marginal_mean=marginal.get(str(site)),
            n_ecoli=bacteria.get("count", 0),
            ecoli_geomean=bacteria.get("geometric_mean"),
            ecoli_exceed_fraction=bacteria.get("exceed_fraction"),
        )
        rows.append(row.model_dump(by_alias=True))

    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def export_site_summary(summary: pd.DataFrame, path: Union[str, Path]) -> Path:
    """寫出站點摘要 CSV（浮點數取到小數點後三位）"""
    path = Path(path)
    out = summary.copy()

    float_columns = out.select_dtypes(include=[np.floating]).columns
    out[float_columns] = out[float_columns].round(3)

    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, index=False)
    return path
