"""
本地 Mock Gemini generateContent server。

用途：
- 在没有真实 Gemini key 的情况下，本地跑通完整闭环
- key 为 `rate-limited` 时返回 429，方便手工验证错误路径

启动：
  python -m gemini_review.dev.mock_gemini_server
"""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Query
from pydantic import BaseModel, Field


class MockPart(BaseModel):
    text: str | None = None


class MockContent(BaseModel):
    role: str
    parts: list[MockPart] = Field(default_factory=list)


class MockGenerateContentRequest(BaseModel):
    contents: list[MockContent] = Field(default_factory=list)


def _count_files(prompt: str) -> int:
    return sum(1 for line in prompt.splitlines() if line.startswith("--- File: "))


def _decide_mock_response(req: MockGenerateContentRequest) -> str:
    user_texts = [p.text for c in req.contents if c.role == "user" for p in c.parts if p.text]
    if not user_texts:
        raise HTTPException(status_code=400, detail="Mock server expects at least one user text part")
    prompt = "\n".join(user_texts)
    return f"[MOCK] Reviewed {_count_files(prompt)} file(s). Consider adding tests for the new code paths."


app = FastAPI(title="Mock Gemini API", version="0.1.0")


@app.post("/v1beta/models/{model}:generateContent")
async def generate_content(model: str, req: MockGenerateContentRequest, key: str = Query(...)) -> dict[str, object]:
    _ = model
    if key == "rate-limited":
        raise HTTPException(status_code=429, detail="Resource has been exhausted")
    text = _decide_mock_response(req=req)
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def main() -> None:
    uvicorn.run(app, host="127.0.0.1", port=9001)


if __name__ == "__main__":
    main()
