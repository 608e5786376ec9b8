"""
宿主面向 provider 的契约。

- `ProviderCapabilities`：静态能力声明（宿主据此决定展示哪些 UI）
- `ChatResponseListener`：宿主提供的回调，provider 通过它交付结果
- `AiCodeReviewProvider`：provider 必须实现的方法集合
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol

from gemini_review.provider.schemas import Actions
from gemini_review.provider.schemas import ChatRequest
from gemini_review.provider.schemas import ChatResponse
from gemini_review.provider.schemas import Models


@dataclass(frozen=True)
class ProviderCapabilities:
    """
    - supports_add_context：能否附加宿主之外的额外上下文
    - supports_history：能否接收多轮对话历史
    - supports_more_menu：是否提供 get_actions 之外的“更多”菜单
    - supports_this_change：能否针对当前 change 工作
    """

    supports_add_context: bool = False
    supports_history: bool = False
    supports_more_menu: bool = False
    supports_this_change: bool = True


class ChatResponseListener(Protocol):
    """每个请求：可选一次中间状态 emit_response，然后 (emit_response | emit_error) + done 各一次。"""

    def emit_response(self, response: ChatResponse) -> None: ...

    def emit_error(self, message: str) -> None: ...

    def done(self) -> None: ...


class AiCodeReviewProvider(ABC):
    """注册到宿主 AI review 面板的 provider。"""

    capabilities: ProviderCapabilities = ProviderCapabilities()

    @abstractmethod
    async def get_models(self) -> Models:
        """支持的模型列表和默认模型。"""
        ...

    @abstractmethod
    async def get_actions(self) -> Actions:
        """面板上的快捷动作。"""
        ...

    @abstractmethod
    def chat(self, request: ChatRequest, listener: ChatResponseListener) -> None:
        """发起一次请求并立即返回；结果只通过 listener 交付。"""
        ...
