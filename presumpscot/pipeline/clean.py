"""數據清洗模組

處理 Presumpscot River Watch 志工監測資料的清洗工作：
- 統一欄位命名，捨棄天氣、棲地等描述性欄位
- 標準化日期與採樣時間
- 解析設限（<、>）的大腸桿菌數值
- 重建缺漏的 QA/QC 重複樣本標記
- 套用一次性人工修正並移除超出合理範圍的異常值
- 以水溫計算理論飽和度，檢查溶氧飽和度紀錄
"""
from __future__ import annotations

import datetime as dt
import re
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np
import pandas as pd

from presumpscot.config import Correction, Settings, settings as default_settings
from presumpscot.pipeline.load import (
    CLEANED_COLUMNS,
    MONTH_LABELS,
    load_raw_workbook,
    write_cleaned_csv,
)
from presumpscot.utils.oxygen import percent_saturation


# 原始欄位名稱 → 標準化欄位名稱（歷年表頭寫法不一）
COLUMN_MAPPING = {
    "Site": "Site",
    "Site ID": "Site",
    "Site Code": "Site",
    "Station": "Site",
    "Date": "Date",
    "Sample Date": "Date",
    "Time": "Time",
    "Sample Time": "Time",
    "QC": "QC",
    "QC Type": "QC",
    "Sample Type": "QC",
    "QA/QC": "QC",
    "Depth": "Depth",
    "Depth (m)": "Depth",
    "Sample Depth (m)": "Depth",
    "Temp": "Temp",
    "Water Temp": "Temp",
    "Water Temp (°C)": "Temp",
    "Water Temp (C)": "Temp",
    "Water Temperature (C)": "Temp",
    "Temp (C)": "Temp",
    "DO": "DO",
    "DO (mg/L)": "DO",
    "DO (mg/l)": "DO",
    "Dissolved Oxygen (mg/L)": "DO",
    "PctSat": "PctSat",
    "DO (% Sat)": "PctSat",
    "DO % Sat": "PctSat",
    "% Saturation": "PctSat",
    "% Sat": "PctSat",
    "Percent Saturation": "PctSat",
    "Ecoli": "Ecoli",
    "E. coli": "Ecoli",
    "E.coli": "Ecoli",
    "E. coli (MPN/100mL)": "Ecoli",
    "E. coli (MPN/100 mL)": "Ecoli",
    "E. coli (#/100 mL)": "Ecoli",
}

REQUIRED_COLUMNS = ["Site", "Date", "DO"]
OPTIONAL_COLUMNS = ["Time", "QC", "Depth", "Temp", "PctSat", "Ecoli"]
NUMERIC_COLUMNS = ["Depth", "Temp", "DO", "PctSat"]

# 合理數值範圍（含端點）
VALID_RANGES = {
    "Temp": (-2, 40),       # 水溫 °C
    "DO": (0, 20),          # 溶氧 mg/L
    "PctSat": (0, 200),     # 飽和度 %
    "Depth": (0, 30),       # 採樣深度 m
    "Ecoli": (0, 1e6),      # 大腸桿菌 MPN/100 mL
}

# DO 與飽和度欄位互換的判定門檻
TRANSPOSED_THRESHOLD = 25.0

# Colilert Quanti-Tray/2000 未稀釋時的最大可報告值
ECOLI_UPPER_LIMIT = 2419.6

QC_LABELS = {
    "r": "Routine",
    "routine": "Routine",
    "sample": "Routine",
    "grab": "Routine",
    "d": "Duplicate",
    "dup": "Duplicate",
    "duplicate": "Duplicate",
    "qc": "Duplicate",
    "fd": "Duplicate",
    "field dup": "Duplicate",
    "field duplicate": "Duplicate",
}

CENSORED_PATTERN = re.compile(r"^([<>])?\s*=?\s*(\d+(?:\.\d*)?|\.\d+)$")
TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?\s*([AaPp][Mm])?$")


def _normalize_header(header) -> str:
    return re.sub(r"\s+", " ", str(header)).strip()


def rename_columns(df: pd.DataFrame) -> pd.DataFrame:
    """統一欄位命名

    表頭先去除多餘空白再比對 COLUMN_MAPPING（不分大小寫），
    只保留可辨識的欄位；描述性欄位（天氣、棲地、流量、採樣者、備註等）一律捨棄。
    多個來源欄位對應同一標準欄位時（不同年份的表頭寫法），
    以第一個欄位為主，缺值再依序由其後的欄位補上。

    Args:
        df: 原始 DataFrame

    Returns:
        只含標準化欄位的 DataFrame（副本）
    """
    lookup = {key.lower(): value for key, value in COLUMN_MAPPING.items()}

    sources: dict[str, list[int]] = {}
    for position, column in enumerate(df.columns):
        canonical = lookup.get(_normalize_header(column).lower())
        if canonical:
            sources.setdefault(canonical, []).append(position)

    missing = [col for col in REQUIRED_COLUMNS if col not in sources]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    merged = {}
    for canonical, positions in sources.items():
        series = df.iloc[:, positions[0]]
        for position in positions[1:]:
            series = series.combine_first(df.iloc[:, position])
        merged[canonical] = series.rename(canonical)

    result = pd.DataFrame(merged, index=df.index)

    for col in OPTIONAL_COLUMNS:
        if col not in result.columns:
            result[col] = np.nan

    site = result["Site"].where(result["Site"].notna(), "")
    result["Site"] = site.astype(str).str.strip().str.upper()

    return result


def parse_time_value(value) -> str:
    """將採樣時間轉為 HH:MM 字串

    支援 datetime.time、完整時間戳記、Excel 日分數（0-1）以及
    "8:30"、"08:30:00"、"1:15 PM" 等字串；無法解析時回傳空字串。
    """
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, (dt.datetime, dt.time)):
        return f"{value.hour:02d}:{value.minute:02d}"
    if isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
        if np.isnan(value) or not 0 <= value < 1:
            return ""
        hours, minutes = divmod(int(round(float(value) * 24 * 60)), 60)
        return f"{hours % 24:02d}:{minutes:02d}"

    match = TIME_PATTERN.match(str(value).strip())
    if not match:
        return ""

    hours, minutes, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
    if meridiem:
        if not 1 <= hours <= 12:
            return ""
        hours = hours % 12 + (12 if meridiem.lower() == "pm" else 0)
    if hours > 23 or minutes > 59:
        return ""
    return f"{hours:02d}:{minutes:02d}"


def standardize_dates(df: pd.DataFrame) -> pd.DataFrame:
    """標準化日期與時間欄位

    - Date 轉為 datetime64 並截到日
    - 移除沒有日期或站點的資料列
    - Time 轉為 HH:MM，DateTime 由兩者合成
    - 衍生 Year、Month（有序分類）、DOY

    Args:
        df: 已完成欄位命名的 DataFrame

    Returns:
        日期欄位已標準化的 DataFrame（副本）
    """
    result = df.copy()
    result["Date"] = pd.to_datetime(result["Date"], format="mixed", errors="coerce").dt.normalize()

    result = result[result["Date"].notna() & (result["Site"] != "")].copy()

    result["Time"] = result["Time"].map(parse_time_value).astype(str)
    offsets = pd.to_timedelta(
        result["Time"].map(lambda t: f"{t}:00" if t else None), errors="coerce"
    )
    result["DateTime"] = result["Date"] + offsets

    result["Year"] = result["Date"].dt.year.astype(int)
    result["Month"] = pd.Categorical(
        result["Date"].dt.month.map(lambda m: MONTH_LABELS[m - 1]),
        categories=MONTH_LABELS,
        ordered=True,
    )
    result["DOY"] = result["Date"].dt.dayofyear.astype(int)

    return result


def parse_censored_value(value) -> tuple[float, bool, bool]:
    """解析可能設限的菌數

    Args:
        value: 原始儲存格內容，如 "<10"、">2419.6"、"35.5" 或數值

    Returns:
        (數值, 左設限, 右設限)；空白或無法解析時為 (nan, False, False)
    """
    if value is None or isinstance(value, bool):
        return (np.nan, False, False)

    if isinstance(value, (int, float, np.number)):
        if np.isnan(value):
            return (np.nan, False, False)
        number = float(value)
        return (number, False, number == ECOLI_UPPER_LIMIT)

    text = str(value).strip().replace(",", "")
    match = CENSORED_PATTERN.match(text)
    if not match:
        return (np.nan, False, False)

    sign, digits = match.groups()
    number = float(digits)
    left = sign == "<"
    right = sign == ">" or (not left and number == ECOLI_UPPER_LIMIT)
    return (number, left, right)


def parse_bacteria_column(df: pd.DataFrame, column: str = "Ecoli") -> pd.DataFrame:
    """解析大腸桿菌欄位

    產生數值欄位與左右設限旗標（{column}_LC、{column}_RC）。

    Args:
        df: 輸入 DataFrame
        column: 菌數欄位名稱

    Returns:
        解析後的 DataFrame（副本）
    """
    result = df.copy()

    if column not in result.columns:
        result[column] = np.nan

    parsed = result[column].map(parse_censored_value)
    result[column] = parsed.map(lambda p: p[0]).astype(float)
    result[f"{column}_LC"] = parsed.map(lambda p: p[1]).astype(bool)
    result[f"{column}_RC"] = parsed.map(lambda p: p[2]).astype(bool)

    return result


def normalize_qc_label(value) -> Optional[str]:
    """將紀錄的 QC 標記對應為 Routine / Duplicate，無法辨識時回傳 None"""
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return None
    return QC_LABELS.get(str(value).strip().lower())


def normalize_qc_flags(df: pd.DataFrame) -> pd.DataFrame:
    """統一 QC 欄位內容"""
    result = df.copy()
    if "QC" not in result.columns:
        result["QC"] = None
    result["QC"] = result["QC"].map(normalize_qc_label).astype(object)
    return result


def reconstruct_qc_flags(df: pd.DataFrame) -> pd.DataFrame:
    """重建缺漏的 QC 標記

    部分年份未記錄 QC 類型。依 Date、Site、Time 與原始順序排序後，
    重複樣本會緊接在同站同日的例行樣本之後：
    - 同組已有 Routine 紀錄時，缺漏者皆為 Duplicate
    - 否則該組第一筆缺漏者為 Routine，其餘為 Duplicate

    Args:
        df: 已執行 normalize_qc_flags 的 DataFrame

    Returns:
        依 Date、Site、Time 排序且 QC 完整的 DataFrame，
        並新增 QC_Reconstructed 欄位標示推定的標記
    """
    result = df.copy()
    result["_order"] = np.arange(len(result))
    result = result.sort_values(["Date", "Site", "Time", "_order"], kind="mergesort")

    keys = [result["Site"], result["Date"]]
    missing = result["QC"].isna()
    has_routine = (result["QC"] == "Routine").groupby(keys).transform("any")

    result["QC_Reconstructed"] = False
    if missing.any():
        gaps = result[missing]
        gap_rank = gaps.groupby([gaps["Site"], gaps["Date"]]).cumcount()
        inferred = np.where(has_routine[missing] | (gap_rank > 0), "Duplicate", "Routine")
        result.loc[missing, "QC"] = inferred
        result.loc[missing, "QC_Reconstructed"] = True

    return result.drop(columns="_order").reset_index(drop=True)


def clean_numeric_column(
    df: pd.DataFrame, column: str, valid_range: Optional[tuple[float, float]] = None
) -> pd.DataFrame:
    """清洗數值欄位：轉為數值並移除超出範圍的異常值

    Args:
        df: 輸入 DataFrame
        column: 要清洗的欄位名稱
        valid_range: (最小值, 最大值)，預設取 VALID_RANGES

    Returns:
        清洗後的 DataFrame（副本）
    """
    result = df.copy()
    min_val, max_val = valid_range or VALID_RANGES[column]

    result[column] = pd.to_numeric(result[column], errors="coerce")
    result.loc[(result[column] < min_val) | (result[column] > max_val), column] = np.nan

    return result


def swap_transposed_oxygen(df: pd.DataFrame) -> pd.DataFrame:
    """修正 DO 與飽和度填反的紀錄"""
    result = df.copy()
    mask = (result["DO"] > TRANSPOSED_THRESHOLD) & (result["PctSat"] < TRANSPOSED_THRESHOLD)
    result.loc[mask, ["DO", "PctSat"]] = result.loc[mask, ["PctSat", "DO"]].to_numpy()
    return result


def apply_corrections(
    df: pd.DataFrame, corrections: Optional[Iterable[Correction]] = None
) -> pd.DataFrame:
    """套用資料修正

    依序執行：
    1. 數值欄位轉型
    2. DO / 飽和度互換修正
    3. 移除超出 VALID_RANGES 的數值
    4. 設定檔中的一次性人工修正（找不到對應資料列時報錯），修正值不再檢查

    Args:
        df: 輸入 DataFrame
        corrections: 人工修正清單

    Returns:
        修正後的 DataFrame（副本）
    """
    result = df.copy()

    for col in NUMERIC_COLUMNS:
        result[col] = pd.to_numeric(result[col], errors="coerce")

    result = swap_transposed_oxygen(result)

    for col in VALID_RANGES:
        if col in result.columns:
            result = clean_numeric_column(result, col)

    for correction in corrections or []:
        if correction.column not in result.columns:
            raise ValueError(f"Unknown column in correction: {correction.column}")
        mask = (result["Site"] == correction.site.upper()) & (
            result["Date"] == pd.Timestamp(correction.sample_date)
        )
        if not mask.any():
            raise ValueError(
                f"Correction matched no rows: {correction.site} {correction.sample_date}"
            )
        value = np.nan if correction.value is None else correction.value
        result.loc[mask, correction.column] = value

    return result


def check_saturation(
    df: pd.DataFrame, tolerance: float = 15.0, fill_missing: bool = False
) -> pd.DataFrame:
    """以水溫計算理論飽和度並檢查紀錄值

    新增 PctSat_Calc（計算值）與 Sat_Flag（紀錄值與計算值相差超過 tolerance 個百分點）。

    Args:
        df: 輸入 DataFrame
        tolerance: 容許差異（百分點）
        fill_missing: 是否以計算值補上缺失的 PctSat

    Returns:
        新增檢查欄位的 DataFrame（副本）
    """
    result = df.copy()
    calculated = percent_saturation(result["DO"], result["Temp"])

    result["PctSat_Calc"] = calculated.round(1)
    result["Sat_Flag"] = ((result["PctSat"] - calculated).abs() > tolerance).astype(bool)

    if fill_missing:
        fill = result["PctSat"].isna() & calculated.notna()
        result.loc[fill, "PctSat"] = calculated[fill].round(1)

    return result


def order_columns(df: pd.DataFrame) -> pd.DataFrame:
    """依 CLEANED_COLUMNS 排列欄位，其餘欄位放在最後"""
    ordered = [col for col in CLEANED_COLUMNS if col in df.columns]
    extra = [col for col in df.columns if col not in ordered]
    return df[ordered + extra]


def clean_dataframe(df: pd.DataFrame, settings: Optional[Settings] = None) -> pd.DataFrame:
    """對原始 DataFrame 執行完整清洗流程"""
    settings = settings or default_settings

    result = rename_columns(df)
    result = standardize_dates(result)
    result = parse_bacteria_column(result)
    result = normalize_qc_flags(result)
    result = reconstruct_qc_flags(result)
    result = apply_corrections(result, settings.corrections)
    result = check_saturation(
        result,
        tolerance=settings.saturation_tolerance,
        fill_missing=settings.fill_missing_pctsat,
    )

    return order_columns(result)


def clean_workbook(
    path: Union[str, Path],
    output_path: Optional[Path] = None,
    settings: Optional[Settings] = None,
) -> pd.DataFrame:
    """讀取並清洗原始活頁簿

    Args:
        path: 原始活頁簿路徑
        output_path: 清洗後 CSV 輸出路徑（可選）
        settings: 分析設定，預設使用全域設定

    Returns:
        清洗後的 DataFrame
    """
    settings = settings or default_settings
    path = Path(path)

    print(f"Processing: {path.name}")
    raw = load_raw_workbook(path, settings.raw_sheet)
    print(f"  原始資料: {len(raw):,} 列, {len(raw.columns)} 欄")

    cleaned = clean_dataframe(raw, settings)

    if cleaned.empty:
        raise ValueError("No valid data found")

    print(f"\n總計 {len(cleaned):,} 筆記錄")
    print(f"日期範圍: {cleaned['Date'].min():%Y-%m-%d} ~ {cleaned['Date'].max():%Y-%m-%d}")
    print(f"重複樣本: {(cleaned['QC'] == 'Duplicate').sum():,} 筆"
          f"（推定 {cleaned['QC_Reconstructed'].sum():,} 筆）")

    if output_path:
        write_cleaned_csv(cleaned, output_path)
        print(f"已儲存至: {output_path}")

    return cleaned


def get_data_quality_report(df: pd.DataFrame) -> dict:
    """
    產生資料品質報告

    Args:
        df: 清洗後的 DataFrame

    Returns:
        包含筆數、QC 與設限統計以及各欄位缺失率的字典
    """
    group_sizes = df.groupby(["Site", "Date"], observed=True).size()

    report = {
        "total_rows": len(df),
        "sites": int(df["Site"].nunique()),
        "years": sorted(int(y) for y in df["Date"].dt.year.unique()),
        "duplicates": int((df["QC"] == "Duplicate").sum()),
        "reconstructed_flags": int(df.get("QC_Reconstructed", pd.Series(dtype=bool)).sum()),
        "qc_groups_over_two": int((group_sizes > 2).sum()),
        "censored_left": int(df.get("Ecoli_LC", pd.Series(dtype=bool)).sum()),
        "censored_right": int(df.get("Ecoli_RC", pd.Series(dtype=bool)).sum()),
        "columns": {},
    }

    for col in df.columns:
        missing_count = df[col].isna().sum()
        missing_pct = (missing_count / len(df)) * 100 if len(df) > 0 else 0
        report["columns"][col] = {
            "missing_count": int(missing_count),
            "missing_percentage": round(missing_pct, 2),
            "dtype": str(df[col].dtype),
        }

    return report
