"""圖表輸出

以 matplotlib 產生靜態 PNG 圖表：
- 溶氧、飽和度、水溫直方圖
- 各站點與各月份的箱形圖
- 溶氧對水溫散佈圖（附理論飽和曲線）
- 站點邊際平均圖
"""

from pathlib import Path
from typing import Optional, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from presumpscot.analytics.engine import DO_STANDARDS
from presumpscot.utils.oxygen import oxygen_saturation


AXIS_LABELS = {
    "DO": "Dissolved Oxygen (mg/L)",
    "PctSat": "Percent Saturation (%)",
    "Temp": "Water Temperature (°C)",
}


def _save(fig, path: Path, dpi: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return path


def _groups(df: pd.DataFrame, column: str, by: str) -> tuple[list, list]:
    labels, values = [], []
    for key, group in df.groupby(by, observed=True, sort=True):
        data = group[column].dropna()
        if len(data) > 0:
            labels.append(str(key))
            values.append(data.to_numpy())
    return labels, values


def plot_histograms(
    df: pd.DataFrame,
    output_dir: Path,
    columns: Sequence[str] = ("DO", "PctSat", "Temp"),
    bins: int = 30,
    dpi: int = 150,
) -> Path:
    """繪製數值欄位直方圖"""
    columns = [col for col in columns if col in df.columns]
    fig, axes = plt.subplots(1, len(columns), figsize=(5 * len(columns), 4), squeeze=False)

    for ax, col in zip(axes[0], columns):
        ax.hist(df[col].dropna(), bins=bins, color="steelblue", edgecolor="white")
        ax.set_xlabel(AXIS_LABELS.get(col, col))
        ax.set_ylabel("Count")

    return _save(fig, Path(output_dir) / "histograms.png", dpi)


def plot_by_site(
    df: pd.DataFrame, output_dir: Path, column: str = "DO", klass: str = "B", dpi: int = 150
) -> Path:
    """繪製各站點箱形圖，並標示分級標準"""
    labels, values = _groups(df, column, "Site")

    fig, ax = plt.subplots(figsize=(max(8, len(labels) * 0.6), 5))
    if values:
        ax.boxplot(values)
        ax.set_xticks(range(1, len(labels) + 1))
        ax.set_xticklabels(labels)
    ax.set_xlabel("Site")
    ax.set_ylabel(AXIS_LABELS.get(column, column))
    ax.tick_params(axis="x", rotation=90)

    if column == "DO":
        ax.axhline(DO_STANDARDS[klass][0], color="firebrick", linestyle="--", label=f"Class {klass}")
        ax.legend()

    return _save(fig, Path(output_dir) / f"{column.lower()}_by_site.png", dpi)


def plot_by_month(df: pd.DataFrame, output_dir: Path, column: str = "DO", dpi: int = 150) -> Path:
    """繪製各月份箱形圖"""
    labels, values = _groups(df, column, "Month")

    fig, ax = plt.subplots(figsize=(8, 5))
    if values:
        ax.boxplot(values)
        ax.set_xticks(range(1, len(labels) + 1))
        ax.set_xticklabels(labels)
    ax.set_xlabel("Month")
    ax.set_ylabel(AXIS_LABELS.get(column, column))

    return _save(fig, Path(output_dir) / f"{column.lower()}_by_month.png", dpi)


def plot_do_vs_temp(df: pd.DataFrame, output_dir: Path, dpi: int = 150) -> Path:
    """繪製溶氧對水溫散佈圖，疊加 100% 飽和曲線"""
    fig, ax = plt.subplots(figsize=(7, 5))
    ax.scatter(df["Temp"], df["DO"], s=8, alpha=0.5, color="steelblue")

    temps = df["Temp"].dropna()
    if len(temps) > 0:
        grid = np.linspace(temps.min(), temps.max(), 100)
        ax.plot(grid, oxygen_saturation(grid), color="black", label="100% saturation")
        ax.legend()

    ax.set_xlabel(AXIS_LABELS["Temp"])
    ax.set_ylabel(AXIS_LABELS["DO"])

    return _save(fig, Path(output_dir) / "do_vs_temp.png", dpi)


def plot_marginal_means(
    means: pd.DataFrame,
    output_dir: Path,
    response: str = "DO",
    observed: Optional[pd.DataFrame] = None,
    dpi: int = 150,
) -> Path:
    """繪製站點邊際平均，可疊加觀測平均"""
    fig, ax = plt.subplots(figsize=(max(8, len(means) * 0.6), 5))
    positions = np.arange(len(means))

    ax.plot(positions, means["emmean"], "o", color="firebrick", label="Model")
    if observed is not None:
        raw = observed.groupby("Site", observed=True)[response].mean()
        ax.plot(
            positions,
            [raw.get(site, np.nan) for site in means["Site"]],
            "s",
            color="gray",
            alpha=0.7,
            label="Observed",
        )
        ax.legend()

    ax.set_xticks(positions)
    ax.set_xticklabels(means["Site"], rotation=90)
    ax.set_xlabel("Site")
    ax.set_ylabel(AXIS_LABELS.get(response, response))

    return _save(fig, Path(output_dir) / f"{response.lower()}_marginal_means.png", dpi)
