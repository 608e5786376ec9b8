"""
本地 Mock Gerrit REST server（只覆盖 provider 用到的接口）。

用途：
- 在没有真实 Gerrit 的情况下，本地跑通：
  geminiToken -> file diff -> Gemini -> listener

接口：
- GET  /a/changes/{change}/revisions/current/files/{path}/diff
- GET  /a/accounts/self/geminiToken
- PUT  /a/accounts/self/geminiToken   body: {"token": "..."}

和真实 Gerrit 一样，JSON 响应带 `)]}'` 前缀。

启动：
  python -m gemini_review.dev.mock_gerrit_server
"""

from __future__ import annotations

import json

import uvicorn
from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Response
from pydantic import BaseModel

from gemini_review.gerrit.client import XSSI_PREFIX


class TokenInput(BaseModel):
    token: str | None = None


def gerrit_json(payload: object) -> Response:
    """按 Gerrit 的格式输出 JSON（带 XSSI 前缀）。"""
    body = f"{XSSI_PREFIX}\n{json.dumps(payload, ensure_ascii=False)}"
    return Response(content=body, media_type="application/json")


def _default_diff_response(path: str) -> dict[str, object]:
    return {
        "change_type": "MODIFIED",
        "content": [
            {"ab": [f"# {path}", "def add(a: int, b: int) -> int:"]},
            {"a": ["    return a + b"], "b": ["    # TODO: handle None inputs", "    return a + b"]},
            {"ab": [""]},
            {"b": ["def sub(a: int, b: int) -> int:", "    return a - b"]},
        ],
    }


app = FastAPI(title="Mock Gerrit API", version="0.1.0")

_tokens: dict[str, str] = {}


@app.get("/a/changes/{change}/revisions/current/files/{path:path}/diff")
async def get_file_diff(change: int, path: str) -> Response:
    _ = change
    return gerrit_json(_default_diff_response(path=path))


@app.get("/a/accounts/self/geminiToken")
async def get_token() -> Response:
    token = _tokens.get("self")
    if token is None:
        raise HTTPException(status_code=404, detail="Gemini token not set")
    return gerrit_json({"token": token})


@app.put("/a/accounts/self/geminiToken")
async def put_token(req: TokenInput) -> Response:
    if req.token is None:
        raise HTTPException(status_code=400, detail="Missing 'token'")
    token = req.token.strip()
    if not token:
        raise HTTPException(status_code=400, detail="Empty 'token'")
    # 每个账号只保留一个 token：新值直接覆盖旧值
    _tokens["self"] = token
    return Response(status_code=204)


def main() -> None:
    uvicorn.run(app, host="127.0.0.1", port=9002)


if __name__ == "__main__":
    main()
