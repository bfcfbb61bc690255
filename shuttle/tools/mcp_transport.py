"""MCP transports: JSON-RPC over a subprocess's stdio or an SSE stream.

Both transports expose the same surface (``start``, ``request``, ``notify``,
``close``); they differ only in how a JSON-RPC payload leaves the process
and how responses come back.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 60.0
# per-line cap for stdio servers; asyncio defaults to 64 KiB
DEFAULT_STDIO_LIMIT = 16 * 1024 * 1024


class McpTransport(ABC):
    def __init__(self, request_timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        self.request_timeout = request_timeout
        self._request_id = 0
        self._pending: dict[int, asyncio.Future] = {}
        self.closed = False

    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    async def close(self) -> None: ...

    @abstractmethod
    async def _send(self, payload: dict[str, Any]) -> None: ...

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        if self.closed:
            raise ConnectionError("MCP transport closed")
        self._request_id += 1
        req_id = self._request_id
        future = asyncio.get_running_loop().create_future()
        self._pending[req_id] = future
        try:
            await self._send({"jsonrpc": "2.0", "id": req_id, "method": method, "params": params or {}})
            return await asyncio.wait_for(future, timeout=self.request_timeout)
        finally:
            self._pending.pop(req_id, None)

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        await self._send({"jsonrpc": "2.0", "method": method, "params": params or {}})

    def _handle_message(self, message: dict[str, Any]) -> None:
        if "id" in message and ("result" in message or "error" in message):
            future = self._pending.get(message["id"])
            if future is None or future.done():
                return
            if message.get("error"):
                error = message["error"]
                future.set_exception(RuntimeError(error.get("message", "MCP RPC error")))
            else:
                future.set_result(message.get("result") or {})
        elif "method" in message and "id" in message:
            logger.warning("Ignoring server request %s (not supported)", message["method"])
        elif "method" in message:
            logger.debug("MCP notification: %s", message["method"])

    def _fail_pending(self, reason: str) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(ConnectionError(reason))
        self._pending.clear()


class StdioTransport(McpTransport):
    """Spawns the server and speaks newline-delimited JSON-RPC over stdin/stdout."""

    def __init__(
        self,
        command: str,
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
        cwd: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        limit: int = DEFAULT_STDIO_LIMIT,
    ) -> None:
        super().__init__(request_timeout)
        self.command = command
        self.args = args or []
        self.env = {**os.environ, **env} if env else None
        self.cwd = cwd
        self.limit = limit
        self._proc: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._proc is not None:
            await self.close()
        logger.info("Starting MCP server: %s %s", self.command, " ".join(self.args))
        self._proc = await asyncio.create_subprocess_exec(
            self.command,
            *self.args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
            env=self.env,
            cwd=self.cwd,
            limit=self.limit,
        )
        self.closed = False
        self._reader_task = asyncio.create_task(self._read_loop())

    async def close(self) -> None:
        self.closed = True
        if self._reader_task:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None
        if self._proc and self._proc.returncode is None:
            try:
                self._proc.terminate()
            except ProcessLookupError:
                pass
            await self._proc.wait()
        self._proc = None
        self._fail_pending("MCP transport closed")

    async def _send(self, payload: dict[str, Any]) -> None:
        if not self._proc or not self._proc.stdin:
            raise ConnectionError("MCP stdio transport not started")
        self._proc.stdin.write((json.dumps(payload) + "\n").encode())
        await self._proc.stdin.drain()

    async def _read_loop(self) -> None:
        assert self._proc and self._proc.stdout
        reason = "MCP server closed its stdout"
        try:
            while True:
                line = await self._proc.stdout.readline()
                if not line:
                    break
                line_str = line.decode(errors="replace").strip()
                if not line_str:
                    continue
                try:
                    message = json.loads(line_str)
                except json.JSONDecodeError:
                    logger.warning("Invalid JSON from MCP server: %.200s", line_str)
                    continue
                self._handle_message(message)
        except Exception as e:
            # readline raises ValueError once a line outgrows ``limit``
            reason = f"MCP stdio stream failed: {e}"
            logger.warning("%s", reason)
        finally:
            self.closed = True
            self._fail_pending(reason)


class SseTransport(McpTransport):
    """Connects to a URL-addressed server using the MCP SSE transport.

    The server pushes an ``endpoint`` event naming the URL that accepts
    POSTed JSON-RPC messages; responses arrive as ``message`` events on the
    same stream.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(request_timeout)
        self.url = url
        self.headers = headers or {}
        self._client = client
        self._owns_client = client is None
        self._endpoint: asyncio.Future | None = None
        self._reader_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=self.headers, timeout=httpx.Timeout(30.0, read=None))
        self.closed = False
        self._endpoint = asyncio.get_running_loop().create_future()
        self._reader_task = asyncio.create_task(self._read_loop())
        await asyncio.wait_for(asyncio.shield(self._endpoint), timeout=self.request_timeout)

    async def close(self) -> None:
        self.closed = True
        if self._reader_task:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        self._fail_pending("MCP transport closed")

    async def _send(self, payload: dict[str, Any]) -> None:
        if self._client is None or self._endpoint is None or not self._endpoint.done():
            raise ConnectionError("MCP SSE transport not started")
        response = await self._client.post(self._endpoint.result(), json=payload)
        response.raise_for_status()

    async def _read_loop(self) -> None:
        assert self._client is not None and self._endpoint is not None
        try:
            async with self._client.stream(
                "GET", self.url, headers={"Accept": "text/event-stream"}
            ) as response:
                response.raise_for_status()
                event, data = "message", []
                async for line in response.aiter_lines():
                    if line == "":
                        if data:
                            self._dispatch(event, "\n".join(data))
                        event, data = "message", []
                    elif line.startswith(":"):
                        continue
                    elif line.startswith("event:"):
                        event = line[6:].strip()
                    elif line.startswith("data:"):
                        data.append(line[5:].lstrip())
        except Exception as e:
            logger.warning("MCP SSE stream failed: %s", e)
            if not self._endpoint.done():
                self._endpoint.set_exception(ConnectionError(str(e)))
        finally:
            if not self._endpoint.done():
                self._endpoint.set_exception(ConnectionError("SSE stream closed before endpoint event"))
            self.closed = True
            self._fail_pending("MCP SSE stream closed")

    def _dispatch(self, event: str, data: str) -> None:
        assert self._endpoint is not None
        if event == "endpoint":
            if not self._endpoint.done():
                self._endpoint.set_result(urljoin(self.url, data))
            return
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning("Invalid JSON on MCP SSE stream: %s", data)
            return
        self._handle_message(message)
