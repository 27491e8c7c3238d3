"""Unit tests for the HTTP request executor."""

import asyncio

import pytest
from aiohttp import web

from knotty_mcp.server.executor import (
    MAX_BODY_CHARS,
    RequestExecutionError,
    RequestExecutor,
    redact_headers,
    truncate_body,
)


@pytest.fixture
def executor():
    return RequestExecutor()


async def echo(request):
    payload = await request.json() if request.can_read_body else None
    return web.json_response(
        {
            "method": request.method,
            "content_type": request.headers.get("Content-Type"),
            "payload": payload,
        },
        headers={"X-Custom": "yes"},
    )


class TestHelpers:
    def test_redact_authorization(self):
        headers = {"Authorization": "Bearer secret", "Accept": "*/*"}

        assert redact_headers(headers) == {
            "Authorization": "Bearer [REDACTED]",
            "Accept": "*/*",
        }
        assert headers["Authorization"] == "Bearer secret"

    def test_redact_schemeless_authorization(self):
        assert redact_headers({"authorization": "secret"}) == {
            "authorization": "[REDACTED]"
        }

    def test_small_body_untouched(self):
        body = {"items": [1, 2, 3]}

        assert truncate_body(body) is body

    def test_large_body_truncated(self):
        body = "x" * (MAX_BODY_CHARS + 10)

        truncated = truncate_body(body)

        assert truncated["_truncated"] is True
        assert len(truncated["_preview"]) == MAX_BODY_CHARS
        assert str(MAX_BODY_CHARS + 10) in truncated["_message"]


class TestExecute:
    @pytest.mark.asyncio
    async def test_get_json(self, http_site, executor):
        async with http_site({"/echo": echo}) as server:
            url = str(server.make_url("/echo"))
            try:
                result = await executor.execute(url)
            finally:
                await executor.close()

        assert result["status"] == 200
        assert result["status_text"] == "OK"
        assert result["body"]["method"] == "GET"
        assert result["headers"]["X-Custom"] == "yes"
        assert result["response_time_ms"] >= 0
        assert result["request_details"]["method"] == "GET"
        assert result["request_details"]["url"] == url
        assert "body" not in result["request_details"]

    @pytest.mark.asyncio
    async def test_post_json_body(self, http_site, executor):
        async with http_site({"/echo": echo}) as server:
            try:
                result = await executor.execute(
                    str(server.make_url("/echo")),
                    method="post",
                    body={"name": "Rex"},
                    headers={"X-Trace": "abc"},
                )
            finally:
                await executor.close()

        assert result["body"]["method"] == "POST"
        assert result["body"]["content_type"] == "application/json"
        assert result["body"]["payload"] == {"name": "Rex"}
        assert result["request_details"]["body"] == {"name": "Rex"}
        assert result["request_details"]["headers"]["X-Trace"] == "abc"

    @pytest.mark.asyncio
    async def test_bearer_token_redacted_in_details(self, http_site, executor):
        async def whoami(request):
            return web.Response(text=request.headers["Authorization"])

        async with http_site({"/whoami": whoami}) as server:
            try:
                result = await executor.execute(
                    str(server.make_url("/whoami")), auth_token="secret-token"
                )
            finally:
                await executor.close()

        assert result["body"] == "Bearer secret-token"
        assert result["request_details"]["headers"]["Authorization"] == "Bearer [REDACTED]"

    @pytest.mark.asyncio
    async def test_error_status_is_data(self, http_site, executor):
        async def missing(request):
            return web.json_response({"error": "not found"}, status=404)

        async with http_site({"/missing": missing}) as server:
            try:
                result = await executor.execute(str(server.make_url("/missing")))
            finally:
                await executor.close()

        assert result["status"] == 404
        assert result["body"] == {"error": "not found"}

    @pytest.mark.asyncio
    async def test_large_response_truncated(self, http_site, executor):
        async def large(request):
            return web.Response(text="x" * (MAX_BODY_CHARS + 10))

        async with http_site({"/large": large}) as server:
            try:
                result = await executor.execute(str(server.make_url("/large")))
            finally:
                await executor.close()

        assert result["body"]["_truncated"] is True

    @pytest.mark.asyncio
    async def test_redirects(self, http_site, executor):
        async def moved(request):
            raise web.HTTPFound("/target")

        async def target(request):
            return web.json_response({"arrived": True})

        async with http_site({"/moved": moved, "/target": target}) as server:
            url = str(server.make_url("/moved"))
            try:
                followed = await executor.execute(url)
                not_followed = await executor.execute(url, follow_redirects=False)
            finally:
                await executor.close()

        assert followed["status"] == 200
        assert followed["body"] == {"arrived": True}
        assert not_followed["status"] == 302

    @pytest.mark.asyncio
    async def test_timeout(self, http_site, executor):
        async def slow(request):
            await asyncio.sleep(1.0)
            return web.Response(text="late")

        async with http_site({"/slow": slow}) as server:
            try:
                with pytest.raises(RequestExecutionError) as exc_info:
                    await executor.execute(str(server.make_url("/slow")), timeout_ms=100)
            finally:
                await executor.close()

        assert exc_info.value.error_type == "timeout"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["not-a-url", "ftp://example.com/file", "http://"])
    async def test_invalid_url(self, executor, url):
        with pytest.raises(RequestExecutionError) as exc_info:
            await executor.execute(url)

        assert exc_info.value.error_type == "invalid_url"

    @pytest.mark.asyncio
    async def test_connection_refused(self, executor):
        try:
            with pytest.raises(RequestExecutionError) as exc_info:
                await executor.execute("http://127.0.0.1:1/")
        finally:
            await executor.close()

        assert exc_info.value.error_type == "connection_error"
