"""
Gerrit REST API schemas（Pydantic）。

说明：
- 字段只覆盖 provider 用到的子集（DiffInfo + geminiToken）
- 其余字段一律忽略（Gerrit 返回的 DiffInfo 很大）
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DiffContent(BaseModel):
    """
    DiffInfo.content 里的单个 hunk。

    - ab：两边都有的行（未变更）
    - a：只在旧版本里的行（被删除）
    - b：只在新版本里的行（新增/修改后）
    """

    ab: list[str] | None = None
    a: list[str] | None = None
    b: list[str] | None = None
    skip: int | None = None

    def current_lines(self) -> list[str] | None:
        """优先取新版本（b），没有则退回未变更（ab）；纯删除 hunk 返回 None。"""
        if self.b:
            return self.b
        if self.ab:
            return self.ab
        return None


class DiffInfo(BaseModel):
    """GET .../files/{path}/diff 的返回结构（子集）。"""

    content: list[DiffContent] = Field(default_factory=list)
    change_type: str | None = None


class AccountToken(BaseModel):
    """GET /accounts/self/geminiToken 的返回结构。"""

    token: str | None = None
