from __future__ import annotations

import pytest

from gemini_review.config import load_config_from_env


def test_load_config_requires_gerrit_base_url() -> None:
    with pytest.raises(ValueError):
        load_config_from_env(environ={})


def test_load_config_defaults() -> None:
    cfg = load_config_from_env(environ={"GERRIT_BASE_URL": "https://gerrit.example.com"})
    assert cfg.credentials.mode == "backend"
    assert cfg.gemini.model == "gemini-2.5-flash"
    assert str(cfg.gemini.base_url).rstrip("/") == "https://generativelanguage.googleapis.com"
    assert cfg.context.max_files == 10
    assert cfg.context.max_context_chars is None
    assert cfg.context.fetch_concurrency == 1
    assert cfg.gerrit.username is None


def test_load_config_overrides() -> None:
    environ = {
        "GERRIT_BASE_URL": "https://gerrit.example.com",
        "GERRIT_USERNAME": "bot",
        "GERRIT_HTTP_PASSWORD": "pw",
        "GEMINI_MODEL": "gemini-2.5-pro",
        "REVIEW_MAX_FILES": "5",
        "REVIEW_MAX_CONTEXT_CHARS": "20000",
        "REVIEW_FETCH_CONCURRENCY": "4",
        "HTTP_TIMEOUT_SECONDS": "60",
    }
    cfg = load_config_from_env(environ=environ)
    assert cfg.gerrit.username == "bot"
    assert cfg.gemini.model == "gemini-2.5-pro"
    assert cfg.context.max_files == 5
    assert cfg.context.max_context_chars == 20000
    assert cfg.context.fetch_concurrency == 4
    assert cfg.http_timeout_seconds == 60.0


def test_load_config_rejects_partial_gerrit_auth() -> None:
    environ = {"GERRIT_BASE_URL": "https://gerrit.example.com", "GERRIT_USERNAME": "bot"}
    with pytest.raises(ValueError):
        load_config_from_env(environ=environ)


def test_load_config_local_mode_requires_store_path() -> None:
    environ = {"GERRIT_BASE_URL": "https://gerrit.example.com", "CREDENTIAL_MODE": "local"}
    with pytest.raises(ValueError):
        load_config_from_env(environ=environ)


def test_load_config_local_mode_ok() -> None:
    environ = {
        "GERRIT_BASE_URL": "https://gerrit.example.com",
        "CREDENTIAL_MODE": "local",
        "LOCAL_STORE_PATH": "/tmp/keys.json",
    }
    cfg = load_config_from_env(environ=environ)
    assert cfg.credentials.mode == "local"
    assert cfg.credentials.local_store_path == "/tmp/keys.json"


def test_load_config_rejects_unknown_mode() -> None:
    environ = {"GERRIT_BASE_URL": "https://gerrit.example.com", "CREDENTIAL_MODE": "vault"}
    with pytest.raises(ValueError):
        load_config_from_env(environ=environ)


@pytest.mark.parametrize("value", ["0", "-1", "many"])
def test_load_config_rejects_invalid_max_files(value: str) -> None:
    environ = {"GERRIT_BASE_URL": "https://gerrit.example.com", "REVIEW_MAX_FILES": value}
    with pytest.raises(ValueError):
        load_config_from_env(environ=environ)


def test_load_config_rejects_invalid_url() -> None:
    with pytest.raises(ValueError):
        load_config_from_env(environ={"GERRIT_BASE_URL": "not a url"})
