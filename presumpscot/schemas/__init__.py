"""Pydantic Schema 模組"""

from presumpscot.schemas.summary import SUMMARY_COLUMNS, SiteSummary

__all__ = ["SUMMARY_COLUMNS", "SiteSummary"]
