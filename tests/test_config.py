from __future__ import annotations

import logging

import pytest

from config import StorageSettings, WatermarkConfig, get_numeric
from errors import ConfigError
from layout import compute_geometry


def test_get_numeric_uses_default_when_unset(monkeypatch) -> None:
    monkeypatch.delenv("WM_TEST_VALUE", raising=False)
    assert get_numeric("WM_TEST_VALUE", 7) == 7


def test_get_numeric_parses_value(monkeypatch) -> None:
    monkeypatch.setenv("WM_TEST_VALUE", " 0.25 ")
    assert get_numeric("WM_TEST_VALUE", 1.0) == 0.25


def test_get_numeric_warns_on_invalid_value(monkeypatch, caplog) -> None:
    monkeypatch.setenv("WM_TEST_VALUE", "lots")
    with caplog.at_level(logging.WARNING, logger="config"):
        assert get_numeric("WM_TEST_VALUE", 90) == 90
    assert "WM_TEST_VALUE" in caplog.text


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "NaN", "Infinity"])
def test_get_numeric_rejects_non_finite_values(monkeypatch, caplog, raw: str) -> None:
    monkeypatch.setenv("WM_TEST_VALUE", raw)
    with caplog.at_level(logging.WARNING, logger="config"):
        assert get_numeric("WM_TEST_VALUE", 0.10) == 0.10
    assert "Non-finite" in caplog.text


def test_non_finite_ratios_keep_watermarking_working(monkeypatch) -> None:
    monkeypatch.setenv("FONT_HEIGHT_RATIO", "nan")
    monkeypatch.setenv("CHAR_SPACING_X_RATIO", "inf")

    config = WatermarkConfig.from_env()

    assert config.font_height_ratio == 0.10
    assert config.char_spacing_x_ratio == 1.1
    g = compute_geometry(800, 600, 2, config)
    assert (g.columns, g.rows) == (21, 26)


def test_get_numeric_rejects_out_of_range(monkeypatch, caplog) -> None:
    monkeypatch.setenv("WM_TEST_VALUE", "300")
    with caplog.at_level(logging.WARNING, logger="config"):
        assert get_numeric("WM_TEST_VALUE", 46, minimum=0, maximum=255) == 46
    assert "Out of range" in caplog.text


def test_watermark_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("FONT_HEIGHT_RATIO", "0.2")
    monkeypatch.setenv("WATERMARK_COLOR_A", "128")
    monkeypatch.setenv("SHADOW_COLOR_R", "12")
    monkeypatch.setenv("GLOBAL_OFFSET_Y_RATIO", "-1.2")
    monkeypatch.setenv("JPEG_QUALITY", "0")

    config = WatermarkConfig.from_env()

    assert config.font_height_ratio == 0.2
    assert config.watermark_color == (255, 255, 255, 128)
    assert config.shadow_color == (12, 0, 0, 46)
    assert config.global_offset_y_ratio == -1.2
    # out of range, default kept
    assert config.jpeg_quality == 90


def test_watermark_config_is_immutable() -> None:
    config = WatermarkConfig()
    with pytest.raises(AttributeError):
        config.jpeg_quality = 10  # type: ignore[misc]


def test_storage_settings_are_mandatory(monkeypatch) -> None:
    monkeypatch.setenv("MINIO_ENDPOINT", "http://minio:9000")
    monkeypatch.delenv("MINIO_ACCESS_KEY", raising=False)
    monkeypatch.delenv("MINIO_SECRET_KEY", raising=False)
    with pytest.raises(ConfigError, match="MINIO_ACCESS_KEY"):
        StorageSettings.from_env()


def test_storage_endpoint_scheme(monkeypatch) -> None:
    monkeypatch.setenv("MINIO_ENDPOINT", "minio:9000/")
    monkeypatch.setenv("MINIO_ACCESS_KEY", "key")
    monkeypatch.setenv("MINIO_SECRET_KEY", "secret")
    monkeypatch.setenv("MINIO_SECURE", "true")

    settings = StorageSettings.from_env()

    assert settings.endpoint == "https://minio:9000"
    assert settings.secure
