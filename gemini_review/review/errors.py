"""
Review 流程的错误类型。

约定：
- 每个异常的 `str()` 就是最终展示给用户的文案（provider 直接透传给 listener）
- 所有错误对当前请求都是终态：不重试、不本地恢复
"""

from __future__ import annotations


class ReviewProviderError(RuntimeError):
    """provider 内部所有“预期内”错误的基类。"""

    pass


class CredentialMissingError(ReviewProviderError):
    """拿不到 API key：用户可自行修复，message 里必须写清楚怎么配置。"""

    pass


class ContextFetchError(ReviewProviderError):
    """拉取某个文件 diff 失败。底层原因不一定可读，所以对外只给通用文案。"""

    def __init__(self, path: str) -> None:
        super().__init__("Error fetching patch content")
        self.path = path


class GenerationApiError(ReviewProviderError):
    """生成接口返回非 2xx。"""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Gemini error {status_code}: {body}")
        self.status_code = status_code
        self.body = body
