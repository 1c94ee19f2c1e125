import pytest
from pydantic import ValidationError
from wbc.config import models as config_models
from wbc.config.models import AppConfig, GeneralConfig, UiConfig

def test_valid_config():
    data = {
        "general": {
            "threads": 4,
            "quality": 90,
            "lossless": True,
        },
        "ui": {"enabled": False},
        "input_dir": "/photos",
        "output_dir": "/photos_webp",
    }
    config = AppConfig(**data)
    assert config.general.threads == 4
    assert config.general.quality == 90
    assert config.general.lossless is True
    assert config.ui.enabled is False
    assert config.input_dir == "/photos"

def test_invalid_threads():
    with pytest.raises(ValidationError):
        GeneralConfig(threads=0)

@pytest.mark.parametrize("quality", [-1, 101])
def test_invalid_quality(quality):
    with pytest.raises(ValidationError):
        GeneralConfig(quality=quality)

def test_invalid_ui_refresh():
    with pytest.raises(ValidationError):
        UiConfig(refresh_per_second=0)

def test_config_defaults(monkeypatch):
    monkeypatch.setattr(config_models.os, "cpu_count", lambda: 4)
    config = AppConfig()
    assert config.general.threads == 8
    assert config.general.quality == 80
    assert config.general.lossless is False
    assert config.general.log_path is None
    assert config.general.debug is False
    assert config.ui.enabled is True
    assert config.ui.refresh_per_second == 4
    assert config.input_dir is None
    assert config.output_dir is None

@pytest.mark.parametrize("cpus,expected", [(1, 1), (None, 1), (2, 4), (16, 32)])
def test_default_thread_count(monkeypatch, cpus, expected):
    monkeypatch.setattr(config_models.os, "cpu_count", lambda: cpus)
    assert config_models.default_thread_count() == expected

def test_to_settings():
    settings = GeneralConfig(threads=3, quality=42, lossless=True).to_settings()
    assert settings.max_concurrency == 3
    assert settings.quality == 42
    assert settings.lossless is True
