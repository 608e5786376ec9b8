from __future__ import annotations

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from urllib.parse import unquote

import httpx
import pytest

from gemini_review.config import AppConfig
from gemini_review.config import ContextConfig
from gemini_review.config import CredentialConfig
from gemini_review.config import GeminiConfig
from gemini_review.config import GerritConfig
from gemini_review.provider.gemini import GeminiReviewProvider
from gemini_review.provider.gemini import build_gemini_provider

GERRIT_HOST = "gerrit.example.com"
GEMINI_HOST = "gemini.example.com"
DIFF_PREFIX = "/changes/"
FILES_MARKER = "/revisions/current/files/"
DIFF_SUFFIX = "/diff?context=ALL"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def gerrit_response(payload: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, text=")]}'\n" + json.dumps(payload))


def hello_world_body() -> dict[str, object]:
    return {"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "world"}]}}]}


@dataclass
class FakeBackend:
    """同时扮演 Gerrit 和 Gemini 的 httpx MockTransport handler。"""

    diffs: dict[str, dict[str, object]] = field(default_factory=dict)
    token: object = "secret-key"
    failing_paths: set[str] = field(default_factory=set)
    gemini_status: int = 200
    gemini_body: object = field(default_factory=hello_world_body)
    gemini_exception: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == GERRIT_HOST:
            return self._gerrit(request)
        if request.url.host == GEMINI_HOST:
            return self._gemini(request)
        return httpx.Response(404, text="unknown host")

    def _gerrit(self, request: httpx.Request) -> httpx.Response:
        raw = request.url.raw_path.decode("ascii")
        if raw.endswith("/accounts/self/geminiToken"):
            if self.token is None:
                return httpx.Response(404, text="Gemini token not set")
            return gerrit_response({"token": self.token})
        if raw.startswith(DIFF_PREFIX) and raw.endswith(DIFF_SUFFIX):
            encoded = raw[raw.index(FILES_MARKER) + len(FILES_MARKER) : -len(DIFF_SUFFIX)]
            path = unquote(encoded)
            if path in self.failing_paths:
                return httpx.Response(500, text="internal error")
            diff = self.diffs.get(path, {"content": [{"b": [f"content of {path}"]}]})
            return gerrit_response(diff)
        return httpx.Response(404, text="Not found")

    def _gemini(self, request: httpx.Request) -> httpx.Response:
        if self.gemini_exception is not None:
            raise self.gemini_exception
        if self.gemini_status >= 400 or isinstance(self.gemini_body, str):
            return httpx.Response(self.gemini_status, text=str(self.gemini_body))
        return httpx.Response(self.gemini_status, json=self.gemini_body)

    @property
    def gemini_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == GEMINI_HOST]

    @property
    def diff_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == GERRIT_HOST and FILES_MARKER in r.url.path]

    def prompts(self) -> list[str]:
        return [json.loads(r.content)["contents"][0]["parts"][0]["text"] for r in self.gemini_requests]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def http_client(backend: FakeBackend) -> AsyncIterator[httpx.AsyncClient]:
    """所有出站请求都走 FakeBackend；测试结束时关闭。"""
    async with httpx.AsyncClient(transport=httpx.MockTransport(backend.handle)) as client:
        yield client


def make_config(
    credentials: CredentialConfig | None = None,
    context: ContextConfig | None = None,
) -> AppConfig:
    return AppConfig(
        gerrit=GerritConfig(base_url=f"https://{GERRIT_HOST}"),
        gemini=GeminiConfig(base_url=f"https://{GEMINI_HOST}", model="gemini-2.5-flash"),
        credentials=credentials or CredentialConfig(),
        context=context or ContextConfig(),
    )


def make_provider(
    http_client: httpx.AsyncClient,
    credentials: CredentialConfig | None = None,
    context: ContextConfig | None = None,
) -> GeminiReviewProvider:
    return build_gemini_provider(config=make_config(credentials=credentials, context=context), http_client=http_client)
