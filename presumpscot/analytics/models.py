"""統計模型模組

以 statsmodels 擬合描述性模型，比較站點、月份與年份對溶氧的影響：
- 線性模型：response ~ C(Site) + C(Month) + C(Year)
- 混合效應模型：response ~ C(Site) + C(Month)，年份為隨機截距
- 型 II 變異數分析表
- 站點邊際平均（在平衡的站點 × 月份（× 年份）網格上預測後平均）
"""

from dataclasses import dataclass, field
from itertools import product
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf


RESPONSES = ("DO", "PctSat")
LINEAR_TERMS = ("Site", "Month", "Year")
MIXED_TERMS = ("Site", "Month")
MIXED_GROUP = "Year"

# 擬合模型所需的最少完整觀測數
MIN_MODEL_ROWS = 10


@dataclass
class ModelResult:
    """模型擬合結果"""
    response: str
    kind: str  # "ols" 或 "mixed"
    formula: str
    nobs: int
    aic: float
    params: pd.Series
    pvalues: pd.Series
    fit: Any = field(repr=False)
    r_squared: Optional[float] = None
    terms: tuple = ()

    def summary_text(self) -> str:
        """回傳 statsmodels 的文字摘要"""
        return str(self.fit.summary())


def build_formula(response: str, terms: Sequence[str]) -> str:
    """組合模型公式，所有解釋變數皆視為類別變數"""
    return f"{response} ~ " + " + ".join(f"C({term})" for term in terms)


def prepare_model_frame(
    df: pd.DataFrame, response: str, columns: Sequence[str]
) -> pd.DataFrame:
    """取出完整觀測並移除未使用的分類

    Args:
        df: 輸入 DataFrame
        response: 反應變數（DO 或 PctSat）
        columns: 解釋變數與分組欄位

    Returns:
        只含模型欄位的 DataFrame
    """
    if response not in RESPONSES:
        raise ValueError(f"Unsupported response: {response}")

    missing = [col for col in (response, *columns) if col not in df.columns]
    if missing:
        raise ValueError(f"Missing model columns: {', '.join(missing)}")

    frame = df[[response, *columns]].dropna().copy()

    for col in columns:
        if isinstance(frame[col].dtype, pd.CategoricalDtype):
            frame[col] = frame[col].cat.remove_unused_categories()

    if len(frame) < MIN_MODEL_ROWS:
        raise ValueError(
            f"Not enough complete observations for {response} model: {len(frame)}"
        )

    return frame


def fit_linear_model(
    df: pd.DataFrame, response: str = "DO", terms: Sequence[str] = LINEAR_TERMS
) -> ModelResult:
    """擬合線性模型（OLS）

    Args:
        df: 分析用 DataFrame
        response: 反應變數
        terms: 類別型解釋變數

    Returns:
        ModelResult
    """
    terms = tuple(terms)
    frame = prepare_model_frame(df, response, terms)
    formula = build_formula(response, terms)

    fit = smf.ols(formula, data=frame).fit()

    return ModelResult(
        response=response,
        kind="ols",
        formula=formula,
        nobs=int(fit.nobs),
        aic=float(fit.aic),
        params=fit.params,
        pvalues=fit.pvalues,
        fit=fit,
        r_squared=float(fit.rsquared),
        terms=terms,
    )


def fit_mixed_model(
    df: pd.DataFrame,
    response: str = "DO",
    terms: Sequence[str] = MIXED_TERMS,
    group: str = MIXED_GROUP,
) -> ModelResult:
    """擬合混合效應模型

    固定效應為站點與月份，年份為隨機截距（REML 估計，AIC 因此為 NaN）。

    Args:
        df: 分析用 DataFrame
        response: 反應變數
        terms: 固定效應（類別型）
        group: 隨機截距分組欄位

    Returns:
        ModelResult
    """
    terms = tuple(terms)
    frame = prepare_model_frame(df, response, (*terms, group))

    if frame[group].nunique() < 2:
        raise ValueError(f"Mixed model needs at least two levels of {group}")

    formula = build_formula(response, terms)
    model = smf.mixedlm(formula, data=frame, groups=frame[group])
    fit = model.fit(reml=True)

    fe_params = fit.fe_params
    return ModelResult(
        response=response,
        kind="mixed",
        formula=f"{formula} + (1 | {group})",
        nobs=int(fit.nobs),
        aic=float(fit.aic),
        params=fe_params,
        pvalues=fit.pvalues.reindex(fe_params.index),
        fit=fit,
        terms=terms,
    )


def anova_table(result: ModelResult) -> pd.DataFrame:
    """計算型 II 變異數分析表（僅適用 OLS）"""
    if result.kind != "ols":
        raise ValueError("ANOVA table is only available for OLS fits")
    return sm.stats.anova_lm(result.fit, typ=2)


def _levels(series: pd.Series) -> list:
    if isinstance(series.dtype, pd.CategoricalDtype):
        return list(series.cat.categories)
    return sorted(series.unique())


def site_marginal_means(result: ModelResult, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
    """計算站點邊際平均

    在模型所用各類別水準的平衡網格上預測（混合模型只用固定效應），
    再依站點取平均。

    Args:
        result: fit_linear_model 或 fit_mixed_model 的結果
        df: 用於決定水準的資料，預設為模型擬合資料

    Returns:
        含 Site、emmean 欄位的 DataFrame
    """
    if "Site" not in result.terms:
        raise ValueError("Model does not include a Site term")

    frame = df if df is not None else result.fit.model.data.frame
    model_frame = result.fit.model.data.frame

    levels = {}
    for term in result.terms:
        fitted = _levels(model_frame[term])
        wanted = set(frame[term].dropna())
        levels[term] = [level for level in fitted if level in wanted]

    grid = pd.DataFrame(list(product(*levels.values())), columns=list(levels))
    for term in result.terms:
        if isinstance(model_frame[term].dtype, pd.CategoricalDtype):
            grid[term] = pd.Categorical(grid[term], categories=model_frame[term].cat.categories)

    grid["emmean"] = np.asarray(result.fit.predict(grid), dtype=float)

    means = grid.groupby("Site", observed=True, sort=True)["emmean"].mean().reset_index()
    means["Site"] = means["Site"].astype(str)
    return means
