"""
Gerrit REST API 客户端（外部系统连接器）。

约定：
- 这里只做“HTTP 调用 + 错误处理 + schema 校验”，不做业务决策。
- 发生错误时**直接抛错**，不要吞异常（由 provider 统一映射成 listener 信号）。
- Gerrit 的 JSON 响应带 `)]}'` 防 XSSI 前缀，解析前必须去掉。
"""

from __future__ import annotations

import json
from urllib.parse import quote

import httpx

from gemini_review.gerrit.schemas import AccountToken
from gemini_review.gerrit.schemas import DiffInfo

XSSI_PREFIX = ")]}'"
TOKEN_ENDPOINT = "/accounts/self/geminiToken"


def encode_path(path: str) -> str:
    """按 encodeURIComponent 的规则编码文件路径（`/` 也要编码）。"""
    return quote(path, safe="!~*'()")


def parse_gerrit_json(text: str) -> object:
    """去掉 XSSI 前缀后解析 JSON。"""
    stripped = text.lstrip()
    if stripped.startswith(XSSI_PREFIX):
        stripped = stripped[len(XSSI_PREFIX) :]
    return json.loads(stripped)


class GerritClient:
    """最小 Gerrit REST client。配置了账号密码时走 `/a/` 认证前缀 + basic auth。"""

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient,
        username: str | None = None,
        http_password: str | None = None,
    ) -> None:
        """
        - base_url: Gerrit 实例地址（不包含末尾 /）
        - http_client: 复用的 httpx.AsyncClient
        - username/http_password: Gerrit HTTP 凭证（Settings -> HTTP Credentials）
        """
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client
        self._auth: httpx.BasicAuth | None = None
        if username is not None and http_password is not None:
            self._auth = httpx.BasicAuth(username=username, password=http_password)

    def _url(self, endpoint: str) -> str:
        prefix = "/a" if self._auth is not None else ""
        return f"{self._base_url}{prefix}{endpoint}"

    async def _get_json(self, endpoint: str) -> object:
        if self._auth is not None:
            response = await self._http_client.get(self._url(endpoint), auth=self._auth)
        else:
            response = await self._http_client.get(self._url(endpoint))
        if response.status_code >= 400:
            raise RuntimeError(f"Gerrit API error {response.status_code}: {response.text}")
        return parse_gerrit_json(response.text)

    async def get_file_diff(self, change_number: int, path: str) -> DiffInfo:
        """
        获取当前 patch set 上单个文件的 diff（全量上下文）。

        - Gerrit API: GET /changes/{id}/revisions/current/files/{path}/diff?context=ALL
        - `context=ALL` 让 Gerrit 不做上下文截断，hunk 里就是整份文件
        """
        endpoint = f"/changes/{change_number}/revisions/current/files/{encode_path(path)}/diff?context=ALL"
        return DiffInfo.model_validate(await self._get_json(endpoint))

    async def get_account_token(self) -> AccountToken:
        """读取当前用户在服务端保存的 Gemini token（`{"token": "..."}`）。"""
        return AccountToken.model_validate(await self._get_json(TOKEN_ENDPOINT))
