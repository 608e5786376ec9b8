from __future__ import annotations

import httpx
import pytest

from gemini_review.gerrit.client import GerritClient
from gemini_review.gerrit.client import encode_path
from gemini_review.gerrit.client import parse_gerrit_json


def test_parse_gerrit_json_strips_xssi_prefix() -> None:
    assert parse_gerrit_json(")]}'\n{\"token\": \"abc\"}") == {"token": "abc"}


def test_parse_gerrit_json_without_prefix() -> None:
    assert parse_gerrit_json("{\"a\": 1}") == {"a": 1}


def test_encode_path_encodes_slashes() -> None:
    assert encode_path("src/main/App.java") == "src%2Fmain%2FApp.java"
    assert encode_path("a b+c.txt") == "a%20b%2Bc.txt"


@pytest.mark.anyio
async def test_get_file_diff_requests_full_context() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=")]}'\n{\"content\": [{\"ab\": [\"x\"]}, {\"a\": [\"y\"], \"b\": [\"z\"]}]}")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = GerritClient(base_url="https://gerrit.example.com/", http_client=http_client)
        diff = await client.get_file_diff(change_number=42, path="src/a.py")

    assert [h.current_lines() for h in diff.content] == [["x"], ["z"]]
    assert seen[0].url.raw_path == b"/changes/42/revisions/current/files/src%2Fa.py/diff?context=ALL"
    assert "authorization" not in seen[0].headers


@pytest.mark.anyio
async def test_authenticated_client_uses_a_prefix_and_basic_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=")]}'\n{\"token\": \"k\"}")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = GerritClient(
            base_url="https://gerrit.example.com",
            http_client=http_client,
            username="bot",
            http_password="pw",
        )
        token = await client.get_account_token()

    assert token.token == "k"
    assert seen[0].url.path == "/a/accounts/self/geminiToken"
    assert seen[0].headers["authorization"].startswith("Basic ")


@pytest.mark.anyio
async def test_error_status_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="Not found")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = GerritClient(base_url="https://gerrit.example.com", http_client=http_client)
        with pytest.raises(RuntimeError, match="404"):
            await client.get_file_diff(change_number=1, path="a.py")
