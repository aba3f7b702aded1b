"""應用程式設定模組

使用 pydantic-settings 管理分析流程配置，
支援從環境變數（PRESUMPSCOT_ 前綴）和 .env 檔案載入設定。
"""

from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 專案根目錄（presumpscot 套件的上一層）
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"


class Correction(BaseModel):
    """單筆人工資料修正

    Attributes:
        site: 站點代碼
        sample_date: 採樣日期
        column: 要修正的欄位（標準化後名稱）
        value: 修正後的值，None 代表設為缺失
    """

    site: str
    sample_date: date
    column: str
    value: Optional[float] = None


class Settings(BaseSettings):
    """分析流程設定類別

    Attributes:
        data_dir: 資料目錄路徑
        raw_workbook: 原始 Excel 檔案路徑
        raw_sheet: 原始資料所在工作表
        cleaned_csv: 清洗後 CSV 路徑
        output_dir: 分析輸出目錄（圖表、摘要 CSV）
        excluded_years: 分析時排除的年份
        season_months: 分析使用的採樣季月份
        min_site_samples: 站點納入分析所需的最少 DO 觀測數
        site_classes: 站點水質分級（未列出者使用 default_class）
        default_class: 預設水質分級
        corrections: 一次性人工資料修正
        saturation_tolerance: 飽和度檢查容許誤差（百分點）
        fill_missing_pctsat: 是否以計算值補上缺失的飽和度
        figure_dpi: 圖表輸出解析度
    """

    data_dir: Path = DATA_DIR
    raw_workbook: Path = DATA_DIR / "raw" / "Presumpscot_WQ_Data_2009-2019.xlsx"
    raw_sheet: str | int = 0
    cleaned_csv: Path = DATA_DIR / "processed" / "presumpscot_do_cleaned.csv"
    output_dir: Path = DATA_DIR / "output"

    excluded_years: list[int] = Field(default_factory=list)
    season_months: list[int] = Field(default_factory=lambda: [5, 6, 7, 8, 9])
    min_site_samples: int = 20

    site_classes: dict[str, str] = Field(default_factory=dict)
    default_class: str = "B"

    corrections: list[Correction] = Field(default_factory=list)
    saturation_tolerance: float = 15.0
    fill_missing_pctsat: bool = False

    figure_dpi: int = 150

    model_config = SettingsConfigDict(
        env_prefix="PRESUMPSCOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def class_for_site(self, site: str) -> str:
        """取得站點的水質分級"""
        return self.site_classes.get(site, self.default_class)


# 全域設定實例
settings = Settings()
