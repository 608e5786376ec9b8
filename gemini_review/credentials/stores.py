"""
API key 的存储后端（策略）。

两种部署形态：
- `LocalFileStore`：本地 JSON key 文件（对应浏览器 localStorage 的用法）
- `GerritTokenStore`：Gerrit 账号下的 geminiToken（服务端保存，多端共享）

约定：
- `load()` 只返回“原始值或 None”，不做缓存（缓存在 resolver 里统一做）
- 每个后端都能给出“怎么配置”的提示文案（`provisioning_hint`）
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

import anyio
import httpx

from gemini_review.gerrit.client import TOKEN_ENDPOINT
from gemini_review.gerrit.client import GerritClient

logger = logging.getLogger(__name__)

LOCAL_STORE_KEY = "GERRIT_GEMINI_API_KEY"


class CredentialStore(Protocol):
    """存储后端协议（用于依赖倒置，方便替换/测试）。"""

    async def load(self) -> str | None: ...

    def provisioning_hint(self) -> str: ...


class LocalFileStore:
    """本地 key 文件：`{"GERRIT_GEMINI_API_KEY": "..."}`。文件不存在/不可读都视为“没有”。"""

    def __init__(self, path: str | Path, key: str = LOCAL_STORE_KEY) -> None:
        self._path = Path(path).expanduser()
        self._key = key

    async def load(self) -> str | None:
        return await anyio.to_thread.run_sync(self._load_sync)

    def _load_sync(self) -> str | None:
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            # ValueError 同时覆盖 JSONDecodeError 和 UnicodeDecodeError（文件不是 UTF-8）
            logger.warning(f"Cannot read local key store {self._path}: {exc}")
            return None
        if not isinstance(data, dict):
            return None
        value = data.get(self._key)
        return value if isinstance(value, str) else None

    def provisioning_hint(self) -> str:
        return (
            "Missing Gemini API key. Store it in the local key file:\n"
            f"{self._path}: {{\"{self._key}\": \"YOUR_KEY_HERE\"}}"
        )


class GerritTokenStore:
    """
    Gerrit 服务端 token：GET /accounts/self/geminiToken -> {"token": "..."}。

    拉取失败（404/网络错误/格式不对）一律视为“没有”，只记日志不抛错：
    缺 key 是用户可修复的状态，不是崩溃。
    """

    def __init__(self, gerrit_client: GerritClient) -> None:
        self._gerrit_client = gerrit_client

    async def load(self) -> str | None:
        try:
            result = await self._gerrit_client.get_account_token()
        except (RuntimeError, ValueError, httpx.HTTPError) as exc:
            # ValueError 覆盖 JSON 解析失败和 pydantic 校验失败（例如 token 不是字符串）
            logger.warning(f"Cannot fetch Gemini token from Gerrit: {exc}")
            return None
        return result.token

    def provisioning_hint(self) -> str:
        return (
            "Missing Gemini API key. Store it server-side via:\n"
            f"PUT /a{TOKEN_ENDPOINT} {{\"token\": \"YOUR_KEY_HERE\"}}"
        )
