"""
Test conftest — isolate EDGESCHED_* environment variables so that
Settings tests are not affected by the developer's or CI environment.
"""
import os

import pytest


@pytest.fixture(autouse=True)
def _clean_edgesched_env(monkeypatch):
    """Remove EDGESCHED_* env vars for every test so Settings() behaves as
    if only config.yaml and defaults are present unless the test sets them.
    Also disables .env file loading so local developer .env files don't
    leak into tests."""
    for var in [k for k in os.environ if k.startswith("EDGESCHED_")]:
        monkeypatch.delenv(var, raising=False)

    import edgesched.config.settings as settings_module
    from pydantic_settings import SettingsConfigDict
    patched_config = SettingsConfigDict(
        env_prefix="EDGESCHED_",
        env_file=None,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )
    monkeypatch.setattr(settings_module.Settings, "model_config", patched_config)
