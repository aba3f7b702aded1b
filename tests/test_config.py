"""設定模組測試"""

import datetime as dt


def test_default_settings():
    """測試預設值"""
    from presumpscot.config import Settings

    settings = Settings()

    assert settings.season_months == [5, 6, 7, 8, 9]
    assert settings.excluded_years == []
    assert settings.default_class == "B"
    assert settings.cleaned_csv.name.endswith(".csv")


def test_settings_from_environment(monkeypatch):
    """測試以環境變數覆寫設定"""
    from presumpscot.config import Settings

    monkeypatch.setenv("PRESUMPSCOT_MIN_SITE_SAMPLES", "5")
    monkeypatch.setenv("PRESUMPSCOT_EXCLUDED_YEARS", "[2009, 2017]")
    monkeypatch.setenv("PRESUMPSCOT_SITE_CLASSES", '{"P-000": "C"}')
    monkeypatch.setenv(
        "PRESUMPSCOT_CORRECTIONS",
        '[{"site": "P-110", "sample_date": "2014-08-12", "column": "DO", "value": 7.2}]',
    )

    settings = Settings()

    assert settings.min_site_samples == 5
    assert settings.excluded_years == [2009, 2017]
    assert settings.class_for_site("P-000") == "C"
    assert settings.class_for_site("P-050") == "B"
    assert settings.corrections[0].sample_date == dt.date(2014, 8, 12)
    assert settings.corrections[0].value == 7.2
