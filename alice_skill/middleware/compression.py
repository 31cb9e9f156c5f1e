"""gzip negotiation for request and response bodies.

Requests sent with ``Content-Encoding: gzip`` are inflated before the
application reads them. Responses to clients sending
``Accept-Encoding: gzip`` are deflated on the fly. Anything else passes
through untouched.
"""

import gzip
import io
import logging
import zlib
from typing import List, Optional, Tuple

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send


async def _send_empty(send: Send, status: int) -> None:
    await send({"type": "http.response.start", "status": status, "headers": [(b"content-length", b"0")]})
    await send({"type": "http.response.body", "body": b"", "more_body": False})


async def _read_body(receive: Receive) -> Optional[bytes]:
    """Drain the request body. Returns None if the client went away."""
    chunks: List[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return None
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            return b"".join(chunks)


def _plain_body_scope(scope: Scope, body: bytes) -> Scope:
    headers: List[Tuple[bytes, bytes]] = [
        (name, value)
        for name, value in scope["headers"]
        if name not in (b"content-encoding", b"content-length")
    ]
    headers.append((b"content-length", str(len(body)).encode("latin-1")))
    return dict(scope, headers=headers)


class GzipNegotiationMiddleware:
    def __init__(self, app: ASGIApp, compresslevel: int = 5, logger: Optional[logging.Logger] = None):
        self.app = app
        self.compresslevel = compresslevel
        self.logger = logger or logging.getLogger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)

        if "gzip" in headers.get("content-encoding", "").lower():
            compressed = await _read_body(receive)
            if compressed is None:
                return
            try:
                body = gzip.decompress(compressed)
            except (OSError, EOFError, zlib.error) as e:
                self.logger.debug("cannot decompress request body: %s", e)
                await _send_empty(send, 500)
                return
            scope = _plain_body_scope(scope, body)
            receive = _replay(body, receive)

        if "gzip" in headers.get("accept-encoding", "").lower():
            responder = GzipResponder(self.app, self.compresslevel)
            await responder(scope, receive, send)
            return

        await self.app(scope, receive, send)


def _replay(body: bytes, receive: Receive) -> Receive:
    delivered = False

    async def receive_plain() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        # later calls only ever wait for the disconnect
        return await receive()

    return receive_plain


class GzipResponder:
    """Compresses one response. Created per request, never reused."""

    def __init__(self, app: ASGIApp, compresslevel: int):
        self.app = app
        self.buffer = io.BytesIO()
        self.gzip_file = gzip.GzipFile(mode="wb", fileobj=self.buffer, compresslevel=compresslevel)
        self.closed = False
        self.send: Send = _unattached

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.send = send
        try:
            await self.app(scope, receive, self.send_with_gzip)
        finally:
            self.close()

    def _drain(self) -> bytes:
        data = self.buffer.getvalue()
        self.buffer.seek(0)
        self.buffer.truncate()
        return data

    def close(self) -> bytes:
        """Finish the gzip stream and return its tail. Only the first call does anything."""
        if self.closed:
            return b""
        self.closed = True
        self.gzip_file.close()
        data = self._drain()
        self.buffer.close()
        return data

    async def send_with_gzip(self, message: Message) -> None:
        message_type = message["type"]
        if message_type == "http.response.start":
            headers = MutableHeaders(raw=message["headers"])
            headers["Content-Encoding"] = "gzip"
            headers.add_vary_header("Accept-Encoding")
            if "content-length" in headers:
                del headers["Content-Length"]
            await self.send(message)
        elif message_type == "http.response.body":
            self.gzip_file.write(message.get("body", b""))
            if message.get("more_body", False):
                message["body"] = self._drain()
            else:
                message["body"] = self.close()
            await self.send(message)
        else:
            await self.send(message)


async def _unattached(message: Message) -> None:  # pragma: no cover
    raise RuntimeError("send awaitable not set")
