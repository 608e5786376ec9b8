"""
把 listener 回调记录成事件列表。

用途：
- HTTP 层：一次请求跑完后把事件按顺序返回给调用方
- 测试：断言“恰好一个终态 + 恰好一个 done”
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from gemini_review.provider.schemas import ChatResponse


@dataclass(frozen=True)
class ListenerEvent:
    type: Literal["response", "error", "done"]
    response: ChatResponse | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, object]:
        if self.type == "response" and self.response is not None:
            return {"type": "response", "response": self.response.model_dump()}
        if self.type == "error":
            return {"type": "error", "message": self.message}
        return {"type": self.type}


@dataclass
class RecordingListener:
    events: list[ListenerEvent] = field(default_factory=list)

    def emit_response(self, response: ChatResponse) -> None:
        self.events.append(ListenerEvent(type="response", response=response))

    def emit_error(self, message: str) -> None:
        self.events.append(ListenerEvent(type="error", message=message))

    def done(self) -> None:
        self.events.append(ListenerEvent(type="done"))

    @property
    def responses(self) -> list[ChatResponse]:
        return [e.response for e in self.events if e.response is not None]

    @property
    def errors(self) -> list[str]:
        return [e.message for e in self.events if e.type == "error" and e.message is not None]

    @property
    def done_count(self) -> int:
        return sum(1 for e in self.events if e.type == "done")
