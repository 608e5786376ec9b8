"""
Response Emitter：把一次请求的结果按固定协议交给 listener。

保证：
- 中间状态最多一次，且只能在终态之前
- 终态（成功响应 或 错误）恰好一次，后面紧跟恰好一次 done
- 终态之后的任何调用都被忽略（只记日志），listener 回调抛错也不会导致重复终态
"""

from __future__ import annotations

import enum
import logging

from gemini_review.provider.base import ChatResponseListener
from gemini_review.provider.schemas import build_chat_response

logger = logging.getLogger(__name__)


class ReviewState(enum.Enum):
    IDLE = "idle"
    AWAITING_CREDENTIAL = "awaiting_credential"
    GATHERING_CONTEXT = "gathering_context"
    COMPOSING = "composing"
    GENERATING = "generating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DONE = "done"


_ORDER = list(ReviewState)
_TERMINAL = (ReviewState.SUCCEEDED, ReviewState.FAILED)


class ResponseEmitter:
    """单个请求独占的 emitter（不在请求之间复用）。"""

    def __init__(self, listener: ChatResponseListener, request_label: str = "") -> None:
        self._listener = listener
        self._label = request_label
        self._state = ReviewState.IDLE
        self._status_sent = False

    @property
    def state(self) -> ReviewState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state in (*_TERMINAL, ReviewState.DONE)

    def advance(self, state: ReviewState) -> None:
        """推进到后续的非终态阶段；不允许回退或重复进入。"""
        if state in _TERMINAL or state is ReviewState.DONE:
            raise ValueError(f"Use succeed()/fail() to reach {state.value}")
        if _ORDER.index(state) <= _ORDER.index(self._state):
            raise ValueError(f"Invalid state transition {self._state.value} -> {state.value}")
        logger.debug(f"Review {self._label}: {self._state.value} -> {state.value}")
        self._state = state

    def status(self, text: str) -> None:
        """中间状态提示（例如“正在收集上下文”），最多一次。"""
        if self._status_sent or self.finished:
            return
        self._status_sent = True
        self._listener.emit_response(build_chat_response(text))

    def succeed(self, text: str) -> None:
        if self._enter_terminal(ReviewState.SUCCEEDED):
            try:
                self._listener.emit_response(build_chat_response(text))
            finally:
                self._done()

    def fail(self, message: str) -> None:
        if self._enter_terminal(ReviewState.FAILED):
            try:
                self._listener.emit_error(message)
            finally:
                self._done()

    def _enter_terminal(self, state: ReviewState) -> bool:
        if self.finished:
            logger.warning(f"Review {self._label}: ignoring {state.value} after {self._state.value}")
            return False
        logger.debug(f"Review {self._label}: {self._state.value} -> {state.value}")
        self._state = state
        return True

    def _done(self) -> None:
        self._state = ReviewState.DONE
        self._listener.done()
