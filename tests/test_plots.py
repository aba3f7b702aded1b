"""圖表輸出測試"""

import pytest


def test_descriptive_plots(tmp_path, analysis_data):
    """測試描述性圖表輸出 PNG"""
    from presumpscot.analytics import plots

    paths = [
        plots.plot_histograms(analysis_data, tmp_path),
        plots.plot_by_site(analysis_data, tmp_path, "DO"),
        plots.plot_by_site(analysis_data, tmp_path, "PctSat"),
        plots.plot_by_month(analysis_data, tmp_path, "DO"),
        plots.plot_do_vs_temp(analysis_data, tmp_path),
    ]

    assert [p.name for p in paths] == [
        "histograms.png",
        "do_by_site.png",
        "pctsat_by_site.png",
        "do_by_month.png",
        "do_vs_temp.png",
    ]
    for path in paths:
        assert path.exists()
        assert path.stat().st_size > 0


def test_plot_marginal_means(tmp_path, analysis_data):
    """測試邊際平均圖"""
    from presumpscot.analytics import plots
    from presumpscot.analytics.models import fit_mixed_model, site_marginal_means

    means = site_marginal_means(fit_mixed_model(analysis_data, "DO"))
    path = plots.plot_marginal_means(means, tmp_path / "figures", "DO", observed=analysis_data)

    assert path.name == "do_marginal_means.png"
    assert path.exists()
