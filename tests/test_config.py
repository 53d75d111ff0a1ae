"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from provisio.core.config import load_app_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.container.auto_register is True
    assert settings.container.single_flight is True
    assert settings.logging.level == "INFO"


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "PROVISIO_CONTAINER__AUTO_REGISTER=false\nPROVISIO_LOGGING__LEVEL=DEBUG\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.container.auto_register is False
    assert settings.logging.level == "DEBUG"


def test_environment_overrides_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Process environment wins over values from the env file."""

    env_file = tmp_path / "test.env"
    env_file.write_text("PROVISIO_LOGGING__LEVEL=DEBUG\n", encoding="utf-8")
    monkeypatch.setenv("PROVISIO_LOGGING__LEVEL", "WARNING")

    settings = load_app_settings(env_file=env_file)
    assert settings.logging.level == "WARNING"


def test_environment_ignored_when_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROVISIO_CONTAINER__SINGLE_FLIGHT", "false")

    settings = load_app_settings(include_environment=False)
    assert settings.container.single_flight is True


def test_trace_resolution_from_env_file(tmp_path: Path) -> None:
    env_file = tmp_path / "trace.env"
    env_file.write_text("PROVISIO_LOGGING__TRACE_RESOLUTION=true\n", encoding="utf-8")

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.logging.trace_resolution is True
