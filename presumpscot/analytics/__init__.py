"""統計分析模組

提供監測資料的描述性統計與模型分析功能。
"""

from presumpscot.analytics.engine import (
    compute_basic_stats,
    compute_bacteria_stats,
    compute_standard_compliance,
    WaterQualityAnalyzer,
)
from presumpscot.analytics.models import (
    fit_linear_model,
    fit_mixed_model,
    site_marginal_means,
)

__all__ = [
    "compute_basic_stats",
    "compute_bacteria_stats",
    "compute_standard_compliance",
    "WaterQualityAnalyzer",
    "fit_linear_model",
    "fit_mixed_model",
    "site_marginal_means",
]
