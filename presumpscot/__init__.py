"""Presumpscot River Watch 溶氧與細菌監測資料分析"""

__version__ = "0.1.0"
