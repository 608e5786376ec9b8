"""
Credential Resolver。

- 从可插拔的存储后端取 API key，并在进程生命周期内缓存
- 缓存只记“成功拿到的值”：缺失不缓存，用户补配置后下一次请求就能生效
- 不建模过期/刷新：一次取到就一直有效，直到进程重启
"""

from __future__ import annotations

import logging

from gemini_review.credentials.stores import CredentialStore
from gemini_review.review.errors import CredentialMissingError

logger = logging.getLogger(__name__)


class CredentialResolver:
    """并发请求共享同一个实例；缓存写入一次之后只读。"""

    def __init__(self, store: CredentialStore) -> None:
        self._store = store
        self._cached: str | None = None

    async def resolve(self) -> str | None:
        """返回 API key；拿不到返回 None（由调用方决定怎么提示用户）。"""
        if self._cached is not None:
            return self._cached

        raw = await self._store.load()
        normalized = raw.strip() if isinstance(raw, str) else ""
        if not normalized:
            logger.info("Gemini API key not found in credential store")
            return None

        self._cached = normalized
        logger.info("Gemini API key resolved and cached")
        return normalized

    async def require(self) -> str:
        """同 `resolve()`，但缺失时抛 `CredentialMissingError`（message 带配置方法）。"""
        api_key = await self.resolve()
        if api_key is None:
            raise CredentialMissingError(self._store.provisioning_hint())
        return api_key
