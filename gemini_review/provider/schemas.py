"""
Provider 与宿主（Gerrit AI code review 面板）之间的数据结构（Pydantic）。

字段名刻意保持和宿主的 JSON 一致（snake_case + `_number`），
这样 HTTP 层可以直接 `model_validate` / `model_dump`。
"""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field


class ChangeInfo(BaseModel):
    """被 review 的 change（只用到编号）。"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    number: int = Field(alias="_number")


class FileInfo(BaseModel):
    """变更文件描述：路径 + 变更状态（A/M/D/R...）。"""

    model_config = ConfigDict(frozen=True)

    path: str
    status: str | None = None


class ChatTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str
    text: str


class ChatRequest(BaseModel):
    """
    一次用户触发的 review 请求（宿主产生，provider 只读）。

    history 会被接收但不使用：provider 不支持多轮对话。
    """

    model_config = ConfigDict(frozen=True)

    prompt: str
    change: ChangeInfo
    files: tuple[FileInfo, ...] = ()
    model_name: str | None = None
    history: tuple[ChatTurn, ...] = ()


class ResponsePart(BaseModel):
    id: int
    text: str


class ChatResponse(BaseModel):
    """回给宿主的响应信封。references/citations 目前总是空的。"""

    response_parts: list[ResponsePart]
    references: list[dict[str, object]] = Field(default_factory=list)
    citations: list[dict[str, object]] = Field(default_factory=list)
    timestamp_millis: int


def build_chat_response(text: str) -> ChatResponse:
    """把一段文本包成单 part 的响应信封（带当前时间戳）。"""
    return ChatResponse(
        response_parts=[ResponsePart(id=0, text=text)],
        timestamp_millis=int(time.time() * 1000),
    )


class ModelInfo(BaseModel):
    model_id: str
    short_text: str
    full_display_text: str


class Action(BaseModel):
    """面板上的一个快捷动作：按钮文案 + 预置 prompt。"""

    id: str
    display_text: str
    enable_send_without_input: bool = True
    initial_user_prompt: str


class Actions(BaseModel):
    actions: list[Action]
    default_action_id: str


class Models(BaseModel):
    models: list[ModelInfo]
    default_model_id: str
    documentation_url: str | None = None
    custom_actions: list[Action] = Field(default_factory=list)
