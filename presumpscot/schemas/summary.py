# presumpscot/schemas/summary.py
"""站點摘要 Pydantic Schema 定義

GIS 製圖用的摘要 CSV 每列對應一個 SiteSummary，欄位別名即 CSV 欄位名稱。
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SiteSummary(BaseModel):
    """單一站點的摘要統計"""

    site: str = Field(..., alias="Site", description="站點代碼")
    water_class: str = Field(..., alias="Class", description="水質分級")
    years: int = Field(..., alias="Years", ge=0, description="有資料的年數")
    n_do: int = Field(..., alias="N_DO", ge=0, description="有效 DO 觀測數")
    do_mean: Optional[float] = Field(None, alias="DO_Mean", description="DO 平均 (mg/L)")
    do_median: Optional[float] = Field(None, alias="DO_Median", description="DO 中位數 (mg/L)")
    do_sd: Optional[float] = Field(None, alias="DO_SD", description="DO 標準差 (mg/L)")
    do_min: Optional[float] = Field(None, alias="DO_Min", description="DO 最小值 (mg/L)")
    do_p10: Optional[float] = Field(None, alias="DO_P10", description="DO 第 10 百分位數 (mg/L)")
    pct_sat_mean: Optional[float] = Field(None, alias="PctSat_Mean", description="飽和度平均 (%)")
    pct_sat_median: Optional[float] = Field(None, alias="PctSat_Median", description="飽和度中位數 (%)")
    pct_sat_min: Optional[float] = Field(None, alias="PctSat_Min", description="飽和度最小值 (%)")
    meets_do_standard: Optional[float] = Field(
        None, alias="Meets_DO_Standard", ge=0, le=1, description="溶氧標準達成比例"
    )
    do_marginal_mean: Optional[float] = Field(
        None, alias="DO_Marginal_Mean", description="混合模型站點邊際平均 (mg/L)"
    )
    n_ecoli: int = Field(0, alias="N_Ecoli", ge=0, description="有效大腸桿菌樣本數")
    ecoli_geomean: Optional[float] = Field(
        None, alias="Ecoli_GeoMean", description="大腸桿菌幾何平均 (MPN/100 mL)"
    )
    ecoli_exceed_fraction: Optional[float] = Field(
        None, alias="Ecoli_Exceed_Fraction", ge=0, le=1, description="超過單次樣本標準的比例"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def nan_to_none(cls, value):
        """NaN 一律視為缺失值"""
        if isinstance(value, float) and value != value:
            return None
        return value


SUMMARY_COLUMNS = [info.alias for info in SiteSummary.model_fields.values()]
