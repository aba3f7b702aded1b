"""探索性統計流程

讀取清洗後資料，執行完整的分析步驟：
1. 篩選（例行樣本、排除年份、採樣季、站點樣本數）
2. 直方圖與描述性圖表
3. DO 與飽和度的線性模型及混合效應模型
4. 匯出 GIS 站點摘要 CSV 與模型摘要

使用方式:
    presumpscot analyze data/processed/presumpscot_do_cleaned.csv
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from presumpscot.analytics import plots
from presumpscot.analytics.engine import (
    exclude_years,
    filter_months,
    filter_sites,
    select_routine,
)
from presumpscot.analytics.models import (
    RESPONSES,
    anova_table,
    fit_linear_model,
    fit_mixed_model,
    site_marginal_means,
)
from presumpscot.analytics.summary import build_site_summary, export_site_summary
from presumpscot.config import Settings, settings as default_settings
from presumpscot.pipeline.load import load_cleaned_csv


def prepare_analysis_data(df: pd.DataFrame, settings: Optional[Settings] = None) -> pd.DataFrame:
    """依設定篩選分析用資料"""
    settings = settings or default_settings

    result = select_routine(df)
    result = exclude_years(result, settings.excluded_years)
    result = filter_months(result, settings.season_months)
    result = filter_sites(result, settings.min_site_samples)

    if result.empty:
        raise ValueError("No observations left after filtering")

    return result


def fit_response_models(data: pd.DataFrame, response: str) -> dict:
    """擬合單一反應變數的 OLS 與混合效應模型

    兩個模型各自擬合，其中一個失敗時仍保留另一個。

    Returns:
        {"{response}_ols": ModelResult, "{response}_mixed": ModelResult}，失敗者不列入
    """
    models = {}

    try:
        ols = fit_linear_model(data, response)
    except ValueError as e:
        print(f"  略過 {response} OLS 模型: {e}")
    else:
        models[f"{response}_ols"] = ols
        print(f"  {response}: OLS R² = {ols.r_squared:.3f}, n = {ols.nobs:,}")

    try:
        mixed = fit_mixed_model(data, response)
    except ValueError as e:
        print(f"  略過 {response} 混合模型: {e}")
    else:
        models[f"{response}_mixed"] = mixed
        print(f"  {response}: 混合模型 n = {mixed.nobs:,}")

    return models


def write_model_report(results: dict, path: Path) -> Path:
    """將各模型的 statsmodels 摘要寫入文字檔"""
    sections = []
    for name, result in results.items():
        sections.append(f"{'=' * 70}\n{name}: {result.formula}\n{'=' * 70}")
        sections.append(result.summary_text())
        if result.kind == "ols":
            sections.append("Type II ANOVA\n" + anova_table(result).to_string())

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n\n".join(sections) + "\n", encoding="utf-8")
    return path


def run_analysis(
    cleaned_csv: Union[str, Path],
    output_dir: Union[str, Path],
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """執行探索性統計分析

    Args:
        cleaned_csv: 清洗後 CSV 路徑
        output_dir: 輸出目錄
        settings: 分析設定

    Returns:
        包含輸出檔案路徑（outputs）、模型結果（models）與摘要表（summary）的字典
    """
    settings = settings or default_settings
    output_dir = Path(output_dir)
    dpi = settings.figure_dpi

    print("=" * 60)
    print("Presumpscot 溶氧探索性分析")
    print("=" * 60)
    print(f"時間: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"資料: {cleaned_csv}")
    print()

    print("步驟 1/4: 載入並篩選資料...")
    df = load_cleaned_csv(cleaned_csv)
    data = prepare_analysis_data(df, settings)
    print(f"  {len(df):,} 筆 → 分析用 {len(data):,} 筆，{data['Site'].nunique()} 個站點")

    print("\n步驟 2/4: 繪製描述性圖表...")
    outputs = {
        "histograms": plots.plot_histograms(data, output_dir, dpi=dpi),
        "do_by_site": plots.plot_by_site(data, output_dir, "DO", settings.default_class, dpi=dpi),
        "pctsat_by_site": plots.plot_by_site(data, output_dir, "PctSat", dpi=dpi),
        "do_by_month": plots.plot_by_month(data, output_dir, "DO", dpi=dpi),
        "do_vs_temp": plots.plot_do_vs_temp(data, output_dir, dpi=dpi),
    }

    print("\n步驟 3/4: 擬合模型...")
    models = {}
    for response in RESPONSES:
        models.update(fit_response_models(data, response))

    outputs["model_report"] = write_model_report(models, output_dir / "model_summaries.txt")

    for response in RESPONSES:
        mixed = models.get(f"{response}_mixed")
        if mixed is not None:
            means = site_marginal_means(mixed, data)
            outputs[f"{response.lower()}_marginal_means"] = plots.plot_marginal_means(
                means, output_dir, response, observed=data, dpi=dpi
            )

    print("\n步驟 4/4: 匯出站點摘要...")
    summary = build_site_summary(data, settings, models.get("DO_mixed"))
    outputs["site_summary"] = export_site_summary(summary, output_dir / "site_summary.csv")

    print("\n已輸出:")
    for path in outputs.values():
        print(f"- {path}")

    return {"outputs": outputs, "models": models, "summary": summary}
