"""
FastAPI 服务入口。

这里做三件事：
- 加载配置（严格校验环境变量）
- 组装外部依赖（HTTP Client / Gerrit Client / Gemini Client -> provider）
- 装配路由（health + provider 的 models/actions/chat）

注意：
- 业务流程不写在这里（由 `provider/gemini.py` 负责）
- `httpx.AsyncClient` 会被复用（避免每个请求新建连接），随 app 生命周期关闭
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import httpx
from fastapi import FastAPI

from gemini_review.config import load_config_from_env
from gemini_review.provider.gemini import GeminiReviewProvider
from gemini_review.provider.gemini import build_gemini_provider
from gemini_review.provider.recording import RecordingListener
from gemini_review.provider.schemas import Actions
from gemini_review.provider.schemas import ChatRequest
from gemini_review.provider.schemas import Models


Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]


def build_router_app(provider: GeminiReviewProvider, lifespan: Lifespan | None = None) -> FastAPI:
    """把 provider 暴露成 HTTP 接口（测试里可以直接注入 provider）。"""
    app = FastAPI(title="Gemini AI Review", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """健康检查：用于 k8s / LB 探活。"""
        return {"status": "ok"}

    @app.get("/models")
    async def models() -> Models:
        return await provider.get_models()

    @app.get("/actions")
    async def actions() -> Actions:
        return await provider.get_actions()

    @app.post("/chat")
    async def chat(request: ChatRequest) -> dict[str, object]:
        """
        跑完一次请求，按顺序返回 listener 收到的全部事件。

        provider 自己保证终态信号恰好一次，这里只负责记录和序列化。
        """
        listener = RecordingListener()
        await provider.chat_async(request, listener)
        return {"events": [e.to_dict() for e in listener.events]}

    return app


def build_app(environ: Mapping[str, str] | None = None) -> FastAPI:
    """创建并返回 FastAPI app（便于测试/复用）。"""

    # 1) 配置：缺失会直接抛错，启动失败（这是期望行为）
    config = load_config_from_env(os.environ if environ is None else environ)

    # 2) 可复用的 HTTP client：Gerrit API 与 Gemini 调用共用
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(config.http_timeout_seconds))

    # 3) provider：credential / context / prompt / generate 全部在里面装配
    provider = build_gemini_provider(config=config, http_client=http_client)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await http_client.aclose()

    return build_router_app(provider=provider, lifespan=lifespan)


def create_app() -> FastAPI:
    """Uvicorn factory 入口：`uvicorn gemini_review.main:create_app --factory`"""
    return build_app()
