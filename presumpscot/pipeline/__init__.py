"""資料處理流程模組

包含原始資料清洗、載入與探索性分析流程。
"""

from presumpscot.pipeline.clean import clean_workbook, get_data_quality_report
from presumpscot.pipeline.load import load_cleaned_csv, load_raw_workbook, write_cleaned_csv

__all__ = [
    "clean_workbook",
    "get_data_quality_report",
    "load_cleaned_csv",
    "load_raw_workbook",
    "write_cleaned_csv",
]
