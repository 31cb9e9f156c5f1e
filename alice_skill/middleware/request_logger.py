import logging
import time
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send


class RequestLoggerMiddleware:
    """Logs every HTTP request with its status, duration and response size.

    The size counts bytes as they leave this middleware, so with the gzip
    middleware inside it the compressed size is reported.
    """

    def __init__(self, app: ASGIApp, logger: Optional[logging.Logger] = None):
        self.app = app
        self.logger = logger or logging.getLogger("alice_skill.access")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        path = scope["path"]
        stats = {"status": 0, "size": 0}

        async def send_with_stats(message: Message) -> None:
            if message["type"] == "http.response.start":
                stats["status"] = message["status"]
            elif message["type"] == "http.response.body":
                stats["size"] += len(message.get("body", b""))
            await send(message)

        self.logger.debug("%s %s started", method, path, extra={"method": method, "uri": path})
        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_with_stats)
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            # nothing sent means the app blew up; the server will answer 500
            status = stats["status"] or 500
            self.logger.info(
                "%s %s %d %.2fms %dB",
                method,
                path,
                status,
                duration_ms,
                stats["size"],
                extra={
                    "method": method,
                    "uri": path,
                    "status": status,
                    "duration_ms": duration_ms,
                    "size": stats["size"],
                },
            )
