"""
Gemini Review Provider（核心流程编排）。

流程由工程代码控制，LLM 只负责生成文本：
credential -> 中间状态 -> gather context -> compose prompt -> generate -> emit

注意：
- 任一阶段失败都直接走错误出口：一条 emit_error + done，不重试
- 这里是唯一把异常翻译成 listener 信号的地方（下游 client 一律直接抛错）
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from gemini_review.config import AppConfig
from gemini_review.credentials.resolver import CredentialResolver
from gemini_review.credentials.stores import CredentialStore
from gemini_review.credentials.stores import GerritTokenStore
from gemini_review.credentials.stores import LocalFileStore
from gemini_review.gerrit.client import GerritClient
from gemini_review.llm.client import GeminiClient
from gemini_review.provider.base import AiCodeReviewProvider
from gemini_review.provider.base import ChatResponseListener
from gemini_review.provider.base import ProviderCapabilities
from gemini_review.provider.emitter import ResponseEmitter
from gemini_review.provider.emitter import ReviewState
from gemini_review.provider.schemas import Action
from gemini_review.provider.schemas import Actions
from gemini_review.provider.schemas import ChatRequest
from gemini_review.provider.schemas import ModelInfo
from gemini_review.provider.schemas import Models
from gemini_review.review.context import ContextGatherer
from gemini_review.review.errors import ReviewProviderError
from gemini_review.review.prompt import compose_prompt
from gemini_review.review.prompts import EXPLAIN_CHANGE_PROMPT
from gemini_review.review.prompts import HELP_ME_REVIEW_PROMPT
from gemini_review.review.prompts import IMPROVE_COMMIT_MESSAGE

logger = logging.getLogger(__name__)

STATUS_TEXT = "_Gathering file contents and calling Gemini..."
UNEXPECTED_ERROR_TEXT = "Unexpected error while calling Gemini"
DOCUMENTATION_URL = "https://ai.google.dev/api/generate-content"


def build_actions() -> list[Action]:
    return [
        Action(
            id="review-change",
            display_text="Help me with review",
            initial_user_prompt=HELP_ME_REVIEW_PROMPT,
        ),
        Action(
            id="review-commit",
            display_text="Improve commit message",
            initial_user_prompt=IMPROVE_COMMIT_MESSAGE,
        ),
        Action(
            id="explain-change",
            display_text="Explain change",
            initial_user_prompt=EXPLAIN_CHANGE_PROMPT,
        ),
    ]


class GeminiReviewProvider(AiCodeReviewProvider):
    """单次、无状态的 review provider：每个请求都是一次全新的调用。"""

    capabilities = ProviderCapabilities(
        supports_add_context=False,
        supports_history=False,
        supports_more_menu=False,
        supports_this_change=True,
    )

    def __init__(
        self,
        credential_resolver: CredentialResolver,
        context_gatherer: ContextGatherer,
        gemini_client: GeminiClient,
        default_model: str,
    ) -> None:
        self._credential_resolver = credential_resolver
        self._context_gatherer = context_gatherer
        self._gemini_client = gemini_client
        self._default_model = default_model
        # 持有 fire-and-forget 任务的引用，避免被 GC 提前回收
        self._tasks: set[asyncio.Task[None]] = set()

    async def get_models(self) -> Models:
        return Models(
            models=[
                ModelInfo(
                    model_id=self._default_model,
                    short_text="Gemini",
                    full_display_text=f"Gemini ({self._default_model})",
                )
            ],
            default_model_id=self._default_model,
            documentation_url=DOCUMENTATION_URL,
            custom_actions=build_actions(),
        )

    async def get_actions(self) -> Actions:
        logger.info("getActions called")
        return Actions(actions=build_actions(), default_action_id="review-change")

    def chat(self, request: ChatRequest, listener: ChatResponseListener) -> None:
        """在当前事件循环上调度一次请求，立即返回。"""
        task = asyncio.get_running_loop().create_task(self.chat_async(request, listener))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        # chat() 的调用方拿不到 task，listener 回调抛出的异常只能在这里取出并记日志
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Review task failed after terminal signal", exc_info=exc)

    async def chat_async(self, request: ChatRequest, listener: ChatResponseListener) -> None:
        """
        跑完一次请求；返回前保证 listener 收到恰好一组终态信号。

        - credential 缺失：只发错误（带配置方法），不发中间状态、不拉 diff、不调模型
        - 其余失败：中间状态之后发错误
        """
        change_number = request.change.number
        emitter = ResponseEmitter(listener, request_label=f"change {change_number}")
        try:
            emitter.advance(ReviewState.AWAITING_CREDENTIAL)
            api_key = await self._credential_resolver.require()

            emitter.advance(ReviewState.GATHERING_CONTEXT)
            emitter.status(STATUS_TEXT)
            context = await self._context_gatherer.gather(change_number, request.files)

            emitter.advance(ReviewState.COMPOSING)
            prompt = compose_prompt(instruction=request.prompt, change_number=change_number, context=context)

            emitter.advance(ReviewState.GENERATING)
            model = request.model_name or self._default_model
            text = await self._gemini_client.generate(api_key=api_key, model=model, prompt=prompt)
        except ReviewProviderError as exc:
            logger.error(f"Review for change {change_number} failed in {emitter.state.value}: {exc}")
            emitter.fail(str(exc))
            return
        except Exception as exc:
            logger.exception(f"Unexpected failure reviewing change {change_number}")
            emitter.fail(str(exc) or UNEXPECTED_ERROR_TEXT)
            return

        logger.info(f"Review for change {change_number} succeeded: {len(text)} chars")
        emitter.succeed(text)


def build_credential_store(config: AppConfig, gerrit_client: GerritClient) -> CredentialStore:
    """按部署形态选择 key 的存储后端。"""
    if config.credentials.mode == "local":
        if config.credentials.local_store_path is None:
            raise ValueError("local credential mode requires local_store_path")
        return LocalFileStore(path=config.credentials.local_store_path)
    return GerritTokenStore(gerrit_client=gerrit_client)


def build_gemini_provider(config: AppConfig, http_client: httpx.AsyncClient) -> GeminiReviewProvider:
    """
    装配 provider：
    - 把外部依赖（GerritClient / GeminiClient）和业务编排绑定起来
    - http_client 由调用方创建并负责关闭（连接池复用）
    """
    gerrit_client = GerritClient(
        base_url=str(config.gerrit.base_url).rstrip("/"),
        http_client=http_client,
        username=config.gerrit.username,
        http_password=config.gerrit.http_password,
    )
    context_gatherer = ContextGatherer(
        gerrit_client=gerrit_client,
        max_files=config.context.max_files,
        max_context_chars=config.context.max_context_chars,
        fetch_concurrency=config.context.fetch_concurrency,
    )
    gemini_client = GeminiClient(base_url=str(config.gemini.base_url).rstrip("/"), http_client=http_client)
    return GeminiReviewProvider(
        credential_resolver=CredentialResolver(store=build_credential_store(config, gerrit_client)),
        context_gatherer=context_gatherer,
        gemini_client=gemini_client,
        default_model=config.gemini.model,
    )
