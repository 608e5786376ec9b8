"""
应用配置加载。

设计目标：
- **严格**：缺少必要环境变量就直接报错（避免“看起来跑了其实没配置好”）
- **类型安全**：使用 Pydantic 校验 URL/数字等，减少运行时踩坑
- **可测试**：核心加载函数接收 `environ` 显式输入，便于单元测试
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field, HttpUrl

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


class GerritConfig(BaseModel):
    """Gerrit REST 连接配置。username/http_password 要么都有，要么都没有。"""

    base_url: HttpUrl
    username: str | None = None
    http_password: str | None = None


class GeminiConfig(BaseModel):
    """生成接口配置。"""

    base_url: HttpUrl = Field(default=DEFAULT_GEMINI_BASE_URL, validate_default=True)
    model: str = DEFAULT_GEMINI_MODEL


class CredentialConfig(BaseModel):
    """
    API key 的存放位置：
    - backend：Gerrit 账号下的 geminiToken（服务端存储）
    - local：本地 JSON key 文件
    """

    mode: Literal["backend", "local"] = "backend"
    local_store_path: str | None = None


class ContextConfig(BaseModel):
    """上下文收集的边界（文件数上限/总字符上限/并发）。"""

    max_files: int = Field(default=10, gt=0)
    max_context_chars: int | None = Field(default=None, gt=0)
    fetch_concurrency: int = Field(default=1, gt=0)


class AppConfig(BaseModel):
    """应用运行所需的完整配置。"""

    gerrit: GerritConfig
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    credentials: CredentialConfig = Field(default_factory=CredentialConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    http_timeout_seconds: float = Field(default=30.0, gt=0)


def _optional(environ: Mapping[str, str], key: str) -> str | None:
    value = environ.get(key)
    if value is None or not value.strip():
        return None
    return value.strip()


def _load_gerrit_config(environ: Mapping[str, str]) -> GerritConfig:
    base_url = _optional(environ, "GERRIT_BASE_URL")
    if base_url is None:
        raise ValueError("Missing required env vars: GERRIT_BASE_URL")

    username = _optional(environ, "GERRIT_USERNAME")
    http_password = _optional(environ, "GERRIT_HTTP_PASSWORD")
    if (username is None) != (http_password is None):
        raise ValueError("Incomplete Gerrit auth config: set both GERRIT_USERNAME and GERRIT_HTTP_PASSWORD or neither")

    return GerritConfig(base_url=base_url, username=username, http_password=http_password)


def _load_credential_config(environ: Mapping[str, str]) -> CredentialConfig:
    mode = _optional(environ, "CREDENTIAL_MODE") or "backend"
    if mode not in ("backend", "local"):
        raise ValueError(f"Invalid CREDENTIAL_MODE: {mode} (expected 'backend' or 'local')")

    local_store_path = _optional(environ, "LOCAL_STORE_PATH")
    if mode == "local" and local_store_path is None:
        raise ValueError("Missing required env vars: LOCAL_STORE_PATH (required when CREDENTIAL_MODE=local)")

    return CredentialConfig(mode=mode, local_store_path=local_store_path)


def load_config_from_env(environ: Mapping[str, str]) -> AppConfig:
    """
    从环境变量加载并校验配置。

    - **输入**：`environ`（例如 `os.environ`）
    - **输出**：`AppConfig`
    - **失败**：缺失/组合不完整/数值非法则抛 `ValueError`
      （pydantic 的 `ValidationError` 本身就是 `ValueError` 子类）
    """
    gerrit = _load_gerrit_config(environ)
    credentials = _load_credential_config(environ)

    gemini = GeminiConfig(
        base_url=_optional(environ, "GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL,
        model=_optional(environ, "GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
    )

    # 数值交给 Pydantic 做类型/范围校验（例如 "abc"、"0" 都会被拒绝）
    context_values: dict[str, str] = {}
    for env_key, field_name in (
        ("REVIEW_MAX_FILES", "max_files"),
        ("REVIEW_MAX_CONTEXT_CHARS", "max_context_chars"),
        ("REVIEW_FETCH_CONCURRENCY", "fetch_concurrency"),
    ):
        value = _optional(environ, env_key)
        if value is not None:
            context_values[field_name] = value
    context = ContextConfig.model_validate(context_values)

    timeout = _optional(environ, "HTTP_TIMEOUT_SECONDS")
    if timeout is None:
        return AppConfig(gerrit=gerrit, gemini=gemini, credentials=credentials, context=context)
    return AppConfig(
        gerrit=gerrit,
        gemini=gemini,
        credentials=credentials,
        context=context,
        http_timeout_seconds=timeout,
    )
