"""測試共用 fixtures"""

import datetime as dt

import numpy as np
import pandas as pd
import pytest

from presumpscot.pipeline.load import MONTH_LABELS


SITE_EFFECTS = {"P-000": 0.0, "P-050": 1.0, "PI-020": -1.0}
YEAR_EFFECTS = {2009: 0.3, 2010: -0.2, 2011: 0.5, 2012: -0.4, 2013: 0.1}


def make_observations(seed: int = 42) -> pd.DataFrame:
    """建立合成的清洗後資料：3 站 × 5 年 × 5 月 × 每月 2 次"""
    rng = np.random.default_rng(seed)
    rows = []

    for site, site_effect in SITE_EFFECTS.items():
        for year, year_effect in YEAR_EFFECTS.items():
            for month in range(5, 10):
                for day in (5, 20):
                    temp = 12 + 2.5 * (month - 5) + rng.normal(0, 1)
                    do = 10 - 0.5 * (month - 5) + site_effect + year_effect + rng.normal(0, 0.3)
                    rows.append({
                        "Site": site,
                        "Date": pd.Timestamp(year=year, month=month, day=day),
                        "Time": "08:30",
                        "QC": "Routine",
                        "Depth": 0.5,
                        "Temp": round(temp, 1),
                        "DO": round(do, 2),
                        "PctSat": round(do * 10 + rng.normal(0, 2), 1),
                        "Ecoli": round(float(rng.lognormal(4, 1)), 1),
                        "Ecoli_LC": False,
                        "Ecoli_RC": False,
                    })

    df = pd.DataFrame(rows)

    # 每站加入一筆重複樣本
    duplicates = df.groupby("Site").head(1).copy()
    duplicates["QC"] = "Duplicate"
    duplicates["DO"] = duplicates["DO"] + 0.1
    df = pd.concat([df, duplicates], ignore_index=True)

    df["DateTime"] = df["Date"] + pd.Timedelta(hours=8, minutes=30)
    df["Year"] = df["Date"].dt.year
    df["Month"] = df["Date"].dt.month.map(lambda m: MONTH_LABELS[m - 1])
    df["DOY"] = df["Date"].dt.dayofyear
    df["QC_Reconstructed"] = False

    return df.sort_values(["Date", "Site", "QC"], ascending=[True, True, False]).reset_index(drop=True)


@pytest.fixture
def raw_frame():
    """模擬原始試算表（表頭寫法不一、含描述性欄位）"""
    return pd.DataFrame({
        "Site ID": [" p-000", "P-000", "P-000", "PI-020", "PI-020", "P-150", None],
        "Sample  Date": [
            "2009-06-01", "2009-06-01", "2009-07-01",
            "2009-06-01", "2009-06-01", "6/15/2019", "2009-06-02",
        ],
        "Sample Time": ["08:30", "08:35", "9:15 AM", dt.time(7, 45), 0.5, "", "10:00"],
        "QC Type": [None, None, "R", "Routine", "Dup", None, None],
        "Water Temp (°C)": [20.0, 20.1, 22.0, 18.0, 18.0, 15.0, 19.0],
        "DO (mg/L)": [8.5, 8.6, 7.9, 9.0, 9.1, 85.0, 8.0],
        "DO (% Sat)": [93.0, 94.0, 90.0, 95.0, 96.0, 8.4, 90.0],
        "E. coli (MPN/100mL)": ["<1", "2.0", ">2419.6", "35", 40, "", "10"],
        "Weather": ["Sunny", "Sunny", "Rain", "Cloudy", "Cloudy", "Sunny", "Sunny"],
        "Habitat": ["Riffle"] * 7,
    })


@pytest.fixture
def observations():
    """合成的清洗後資料"""
    return make_observations()


@pytest.fixture
def cleaned_csv(tmp_path, observations):
    """寫出合成的清洗後 CSV"""
    from presumpscot.pipeline.load import write_cleaned_csv

    return write_cleaned_csv(observations, tmp_path / "cleaned.csv")


@pytest.fixture
def analysis_data(cleaned_csv):
    """讀回並篩選後的分析用資料"""
    from presumpscot.analytics.engine import filter_months, select_routine
    from presumpscot.pipeline.load import load_cleaned_csv

    df = load_cleaned_csv(cleaned_csv)
    return filter_months(select_routine(df), [5, 6, 7, 8, 9])
