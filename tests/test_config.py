from __future__ import annotations

from pathlib import Path

import pytest

from opsdash import config


@pytest.fixture()
def fresh_settings():
    config.get_settings.cache_clear()
    yield config.get_settings
    config.get_settings.cache_clear()


def test_defaults(monkeypatch, fresh_settings) -> None:
    for name in ("OPSDASH_DEAL_CSV_URL", "OPSDASH_CLO_CSV_URL", "OPSDASH_CACHE_DIR", "OPSDASH_HTTP_TIMEOUT", "OPSDASH_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    settings = fresh_settings()
    assert settings.deal_csv_url == config.DEAL_CSV_URL
    assert settings.http_timeout == config.HTTP_TIMEOUT_SECONDS
    assert settings.password == ""


def test_environment_overrides(monkeypatch, tmp_path, fresh_settings) -> None:
    monkeypatch.setenv("OPSDASH_CLO_CSV_URL", "https://example.test/clo.csv")
    monkeypatch.setenv("OPSDASH_CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("OPSDASH_HTTP_TIMEOUT", "5")
    settings = fresh_settings()
    assert settings.clo_csv_url == "https://example.test/clo.csv"
    assert settings.cache_dir == Path(tmp_path)
    assert settings.http_timeout == 5.0
    assert config.get_datasets()["clo"].url == "https://example.test/clo.csv"


def test_bad_timeout_raises(monkeypatch, fresh_settings) -> None:
    monkeypatch.setenv("OPSDASH_HTTP_TIMEOUT", "soon")
    with pytest.raises(RuntimeError):
        fresh_settings()


def test_dataset_registry() -> None:
    datasets = config.build_datasets(config.Settings())
    assert list(datasets) == ["deal", "clo"]
    assert datasets["deal"].column_aliases["Associate"] == "associate"
