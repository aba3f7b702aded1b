"""資料載入模組

負責原始試算表的讀取，以及清洗後 CSV 的寫出與讀回：
- 讀取志工監測的 Excel 活頁簿（或 CSV 匯出檔）
- 以固定格式寫出清洗後資料
- 讀回 CSV 時還原日期、布林與分類欄位
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Union

import numpy as np
import pandas as pd


MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# 清洗後 CSV 的欄位順序
CLEANED_COLUMNS = [
    "Site",
    "Date",
    "Time",
    "DateTime",
    "Year",
    "Month",
    "DOY",
    "QC",
    "QC_Reconstructed",
    "Depth",
    "Temp",
    "DO",
    "PctSat",
    "PctSat_Calc",
    "Sat_Flag",
    "Ecoli",
    "Ecoli_LC",
    "Ecoli_RC",
]

BOOL_COLUMNS = ["QC_Reconstructed", "Sat_Flag", "Ecoli_LC", "Ecoli_RC"]

SITE_PATTERN = re.compile(r"^([A-Z]+)[^0-9]*([0-9]+(?:\.[0-9]+)?)?")


def site_sort_key(site: str) -> tuple:
    """站點排序鍵

    站點代碼形如 P-000、PI-020：先依字母前綴，再依河道里程數字排序。
    """
    match = SITE_PATTERN.match(str(site).upper())
    if not match:
        return ("~", np.inf, str(site))
    prefix, number = match.groups()
    return (prefix, float(number) if number else np.inf, str(site))


def order_sites(sites: Iterable[str]) -> list[str]:
    """依 site_sort_key 排序並去重"""
    return sorted(set(sites), key=site_sort_key)


def load_raw_workbook(path: Union[str, Path], sheet_name: Union[str, int] = 0) -> pd.DataFrame:
    """讀取原始監測資料

    Args:
        path: Excel 活頁簿（.xlsx）或 CSV 檔案路徑
        sheet_name: 工作表名稱或索引

    Returns:
        未經轉型的原始 DataFrame（空白列已移除）
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workbook not found: {path}")

    if path.suffix.lower() == ".csv":
        df = pd.read_csv(path, dtype=object)
    else:
        df = pd.read_excel(path, sheet_name=sheet_name, engine="openpyxl", dtype=object)

    df = df.dropna(how="all").reset_index(drop=True)

    if df.empty:
        raise ValueError("No valid data found")

    return df


def write_cleaned_csv(df: pd.DataFrame, path: Union[str, Path]) -> Path:
    """寫出清洗後資料

    日期以 ISO 格式輸出，DateTime 精確到分鐘。

    Args:
        df: 清洗後的 DataFrame
        path: 輸出檔案路徑

    Returns:
        輸出檔案路徑
    """
    path = Path(path)
    out = df.copy()

    if "Date" in out.columns:
        out["Date"] = pd.to_datetime(out["Date"]).dt.strftime("%Y-%m-%d")
    if "DateTime" in out.columns:
        out["DateTime"] = pd.to_datetime(out["DateTime"]).dt.strftime("%Y-%m-%d %H:%M")

    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, index=False)
    return path


def load_cleaned_csv(path: Union[str, Path]) -> pd.DataFrame:
    """讀回清洗後 CSV

    還原：
    - Date / DateTime 為 datetime64
    - 布林旗標欄位
    - Month 為有序分類（Jan..Dec）
    - Site 為依河道順序排列的有序分類

    Args:
        path: 清洗後 CSV 路徑

    Returns:
        可直接用於分析的 DataFrame
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Cleaned data not found: {path}")

    df = pd.read_csv(path, dtype={"Site": str, "Time": str, "QC": str, "Month": str})

    missing = [col for col in ("Site", "Date", "DO") if col not in df.columns]
    if missing:
        raise ValueError(f"Cleaned data is missing columns: {', '.join(missing)}")

    df["Date"] = pd.to_datetime(df["Date"])
    if "DateTime" in df.columns:
        df["DateTime"] = pd.to_datetime(df["DateTime"], errors="coerce")
    if "Time" in df.columns:
        df["Time"] = df["Time"].fillna("")

    for col in BOOL_COLUMNS:
        if col in df.columns:
            df[col] = df[col].map(lambda v: str(v).strip().lower() == "true")

    if "Year" not in df.columns:
        df["Year"] = df["Date"].dt.year
    if "Month" not in df.columns:
        df["Month"] = df["Date"].dt.month.map(lambda m: MONTH_LABELS[m - 1])

    df["Month"] = pd.Categorical(df["Month"], categories=MONTH_LABELS, ordered=True)
    df["Site"] = pd.Categorical(
        df["Site"], categories=order_sites(df["Site"].dropna()), ordered=True
    )

    return df
