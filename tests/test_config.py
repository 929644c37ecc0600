"""
Environment-driven configuration.
"""

import pytest

from preview_bot.config import (
    MIB,
    REQUIRED_VARS,
    _safe_int,
    _split_list,
    load_config,
    validate_required_env,
)
from preview_bot.exceptions import ConfigurationError

OPTIONAL_VARS = (
    "PREVIEW_MAX_MEDIA_MB",
    "PREVIEW_ALLOWED_TYPES",
    "PREVIEW_EMBED_WAIT_S",
    "TEST_PAGE_ADDR",
    "OBS_ENABLE_PROMETHEUS",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for var in REQUIRED_VARS + OPTIONAL_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = load_config()
    assert config["PREVIEW_EXTRACTORS"] == []
    assert config["PREVIEW_MAX_MEDIA_BYTES"] == 500 * MIB
    assert config["PREVIEW_ALLOWED_TYPES"] == ["video/mp4", "image/jpeg", "image/png", "image/gif"]
    assert config["PREVIEW_EMBED_WAIT_S"] == 3.0
    assert config["TEST_PAGE_ADDR"] == ""
    assert config["OBS_ENABLE_PROMETHEUS"] is False
    assert config["LOG_LEVEL"] == "INFO"


def test_pipeline_settings(clean_env):
    clean_env.setenv(
        "PREVIEW_EXTRACTORS", "cobalt://cobalt.local?key=abc fastdl://fastdl.local:8080"
    )
    clean_env.setenv("PREVIEW_DESTINATION", "fs:///srv/media?server=127.0.0.1:8080")
    clean_env.setenv("PREVIEW_PUBLIC_URL", " https://media.example/ ")
    clean_env.setenv("PREVIEW_MAX_MEDIA_MB", "25")
    clean_env.setenv("OBS_ENABLE_PROMETHEUS", "true")

    config = load_config()
    assert config["PREVIEW_EXTRACTORS"] == [
        "cobalt://cobalt.local?key=abc",
        "fastdl://fastdl.local:8080",
    ]
    assert config["PREVIEW_DESTINATION"] == "fs:///srv/media?server=127.0.0.1:8080"
    assert config["PREVIEW_PUBLIC_URL"] == "https://media.example/"
    assert config["PREVIEW_MAX_MEDIA_BYTES"] == 25 * MIB
    assert config["OBS_ENABLE_PROMETHEUS"] is True


def test_url_values_keep_fragments(clean_env):
    clean_env.setenv("PREVIEW_DESTINATION", "b2://id:se#cret@bucket")
    assert load_config()["PREVIEW_DESTINATION"] == "b2://id:se#cret@bucket"


def test_malformed_number_falls_back(clean_env):
    clean_env.setenv("PREVIEW_MAX_MEDIA_MB", "lots")
    assert load_config()["PREVIEW_MAX_MEDIA_BYTES"] == 500 * MIB


def test_non_positive_size_rejected(clean_env):
    clean_env.setenv("PREVIEW_MAX_MEDIA_MB", "0")
    with pytest.raises(ConfigurationError):
        load_config()


def test_negative_wait_rejected(clean_env):
    clean_env.setenv("PREVIEW_EMBED_WAIT_S", "-1")
    with pytest.raises(ConfigurationError):
        load_config()


def test_validate_required_env_lists_missing(clean_env):
    clean_env.setenv("DISCORD_TOKEN", "token")
    clean_env.setenv("PREVIEW_EXTRACTORS", "cobalt://c")
    with pytest.raises(ConfigurationError) as exc_info:
        validate_required_env()
    assert "PREVIEW_DESTINATION" in str(exc_info.value)
    assert "PREVIEW_PUBLIC_URL" in str(exc_info.value)
    assert "DISCORD_TOKEN" not in str(exc_info.value)


def test_validate_required_env_passes(clean_env):
    for var in REQUIRED_VARS:
        clean_env.setenv(var, "set")
    validate_required_env()


def test_helpers():
    assert _safe_int("42  # comment", "1", "X") == 42
    assert _safe_int(None, "7", "X") == 7
    assert _split_list(" a, b\n c ,,") == ["a", "b", "c"]
    assert _split_list("") == []
