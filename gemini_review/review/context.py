"""
Context Gatherer（非 AI）。

职责：
- 从请求的文件列表里取前 N 个（硬截断，不报错），跳过 `/COMMIT_MSG`
- 逐个拉取 diff，取每个 hunk 的“当前版本”内容，拼成一个带文件分隔头的上下文串

注意：
- 输出顺序永远是请求里的文件顺序，和 diff 拉取完成的先后无关
- 任一文件拉取失败，整个请求失败（不做部分上下文）
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import anyio

from gemini_review.gerrit.client import GerritClient
from gemini_review.gerrit.schemas import DiffInfo
from gemini_review.provider.schemas import FileInfo
from gemini_review.review.errors import ContextFetchError

logger = logging.getLogger(__name__)

COMMIT_MSG_PATH = "/COMMIT_MSG"
DEFAULT_MAX_FILES = 10
TRUNCATED_MARKER = "\n...TRUNCATED..."


def select_files(files: Sequence[FileInfo], max_files: int = DEFAULT_MAX_FILES) -> list[FileInfo]:
    """
    先按 max_files 截断，再去掉 commit message 伪文件。

    `/COMMIT_MSG` 也占一个名额：截断发生在过滤之前。
    """
    if max_files <= 0:
        raise ValueError("max_files must be > 0")
    return [f for f in files[:max_files] if f.path != COMMIT_MSG_PATH]


def extract_current_content(diff: DiffInfo) -> str:
    """每个 hunk 取新版本（b），没有则取未变更（ab）；纯删除 hunk 留一个空行。"""
    lines: list[str] = []
    for hunk in diff.content:
        current = hunk.current_lines()
        if current is None:
            lines.append("")
            continue
        lines.extend(current)
    return "\n".join(lines)


def format_file_block(path: str, content: str) -> str:
    return f"\n--- File: {path} ---\n{content}\n"


def _truncate_text(text: str, max_chars: int | None) -> str:
    """控制上下文总长度，避免超出模型上下文/预算。"""
    if max_chars is None or len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATED_MARKER


class ContextGatherer:
    """把一次请求的变更文件转成发给模型的上下文串。"""

    def __init__(
        self,
        gerrit_client: GerritClient,
        max_files: int = DEFAULT_MAX_FILES,
        max_context_chars: int | None = None,
        fetch_concurrency: int = 1,
    ) -> None:
        """
        - max_files: 最多纳入多少个文件（按请求顺序）
        - max_context_chars: 上下文总字符上限；None 表示不限制
        - fetch_concurrency: diff 并发拉取数；1 表示严格串行
        """
        if fetch_concurrency <= 0:
            raise ValueError("fetch_concurrency must be > 0")
        self._gerrit_client = gerrit_client
        self._max_files = max_files
        self._max_context_chars = max_context_chars
        self._fetch_concurrency = fetch_concurrency

    async def gather(self, change_number: int, files: Sequence[FileInfo]) -> str:
        selected = select_files(files, max_files=self._max_files)
        logger.info(f"Gathering context for change {change_number}: {len(selected)}/{len(files)} file(s)")

        if self._fetch_concurrency == 1:
            contents = [await self._fetch_content(change_number, f.path) for f in selected]
        else:
            contents = await self._fetch_concurrently(change_number, selected)

        blob = "".join(format_file_block(f.path, content) for f, content in zip(selected, contents))
        if self._max_context_chars is not None and len(blob) > self._max_context_chars:
            logger.warning(f"Context for change {change_number} truncated: {len(blob)} > {self._max_context_chars} chars")
        return _truncate_text(blob, self._max_context_chars)

    async def _fetch_content(self, change_number: int, path: str) -> str:
        try:
            diff = await self._gerrit_client.get_file_diff(change_number=change_number, path=path)
        except Exception as exc:
            logger.error(f"Diff fetch failed for change {change_number} file {path}: {exc}")
            raise ContextFetchError(path=path) from exc
        return extract_current_content(diff)

    async def _fetch_concurrently(self, change_number: int, selected: list[FileInfo]) -> list[str]:
        """有上限的并发拉取；结果按下标回填，保证顺序。"""
        limiter = anyio.CapacityLimiter(self._fetch_concurrency)
        contents: list[str] = [""] * len(selected)

        async def fetch_one(index: int, path: str) -> None:
            async with limiter:
                contents[index] = await self._fetch_content(change_number, path)

        try:
            async with anyio.create_task_group() as tg:
                for index, file in enumerate(selected):
                    tg.start_soon(fetch_one, index, file.path)
        except ExceptionGroup as group:
            # 对外和串行模式保持一致：抛出单个 ContextFetchError
            for exc in group.exceptions:
                if isinstance(exc, ContextFetchError):
                    raise exc
            raise
        return contents
