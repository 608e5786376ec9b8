"""
Gemini Client（直接调用 generateContent REST 接口）。

目标：
- **尽量薄**：只做协议适配与错误处理
- **单次调用**：一个 user 消息进，一段纯文本出（不流式、不多轮）
- **宽松解析**：响应结构缺字段/类型不对一律当作“没有文本”，不当成错误
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from gemini_review.review.errors import GenerationApiError

logger = logging.getLogger(__name__)

NO_TEXT_SENTINEL = "(No text returned by Gemini)"


class ContentPart(BaseModel):
    text: str


class Content(BaseModel):
    """generateContent 请求里的单条消息。"""

    role: str
    parts: list[ContentPart]


class GenerateContentRequest(BaseModel):
    contents: list[Content]


def extract_text(payload: object) -> str:
    """
    取第一个 candidate 的所有文本 part，按顺序直接拼接（无分隔符）。

    响应形如：
      {"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "world"}]}}]}
    """
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""

    texts: list[str] = []
    for part in parts:
        text = part.get("text") if isinstance(part, dict) else None
        if isinstance(text, str) and text:
            texts.append(text)
    return "".join(texts)


class GeminiClient:
    """Gemini generateContent 客户端（复用外部传入的 httpx.AsyncClient）。"""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient) -> None:
        """
        - base_url: 生成接口地址（默认 https://generativelanguage.googleapis.com）
        - http_client: 复用 httpx.AsyncClient 连接池
        """
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client

    def _url(self, model: str) -> str:
        return f"{self._base_url}/v1beta/models/{quote(model, safe='')}:generateContent"

    async def generate(self, api_key: str, model: str, prompt: str) -> str:
        """
        调用一次 generateContent 并返回纯文本。

        注意：
        - 非 2xx 抛 `GenerationApiError`（带状态码和响应体/状态短语）
        - 传输层错误（`httpx.HTTPError`）和非 JSON 响应体直接上抛，由 provider 统一处理
        - 成功但没有文本时返回固定哨兵字符串，不算错误
        """
        body = GenerateContentRequest(contents=[Content(role="user", parts=[ContentPart(text=prompt)])])
        logger.info(f"Gemini request: model={model}, prompt={len(prompt)} chars")
        response = await self._http_client.post(
            self._url(model),
            params={"key": api_key},
            json=body.model_dump(),
        )

        if not response.is_success:
            error_text = _read_error_text(response)
            logger.error(f"Gemini API error {response.status_code}: {error_text}")
            raise GenerationApiError(status_code=response.status_code, body=error_text)

        text = extract_text(response.json())
        if not text:
            logger.info("Gemini response contained no text")
            return NO_TEXT_SENTINEL

        logger.info(f"Gemini response: {len(text)} chars")
        return text


def _read_error_text(response: httpx.Response) -> str:
    """尽力读取错误响应体；读不到或为空时退回状态短语。"""
    try:
        text = response.text
    except (UnicodeDecodeError, LookupError):
        text = ""
    return text or response.reason_phrase
