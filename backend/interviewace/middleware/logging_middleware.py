"""
Pure ASGI middleware that logs every API request.

Logged per request: method, path, client, status code and duration. Request
and response bodies are kept (sanitized and truncated) for JSON traffic
only; event streams are passed through untouched so long-lived SSE
connections are never buffered.
"""

import json
import logging
import time
from typing import Iterable, Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

MAX_BODY_LOG_LENGTH = 5000


def _sanitize_body(raw: bytes) -> Optional[str]:
    """Decode a body, mask credentials if it is JSON, and truncate it."""
    if not raw:
        return None
    text = raw.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=MAX_BODY_LOG_LENGTH)
    return truncate_large_data(
        json.dumps(filter_sensitive_data(payload), ensure_ascii=False),
        max_length=MAX_BODY_LOG_LENGTH,
    )


def _error_reason(body_text: Optional[str]) -> Optional[str]:
    """Pull the human-readable reason out of an error response body."""
    if not body_text:
        return None
    try:
        payload = json.loads(body_text)
    except json.JSONDecodeError:
        return truncate_large_data(body_text, max_length=500)
    if isinstance(payload, dict):
        detail = payload.get("detail", payload)
        if isinstance(detail, dict):
            detail = detail.get("message") or detail.get("error") or detail
        return truncate_large_data(str(detail), max_length=500)
    return truncate_large_data(body_text, max_length=500)


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log all API requests and responses."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[Iterable[str]] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are not logged at all (e.g. health checks)
        """
        self.app = app
        self.exclude_paths = set(exclude_paths or ("/health", "/"))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        client = scope.get("client")
        request_id = id(scope)

        request_chunks = []
        response_chunks = []
        status_code = 0
        streaming = False

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code, streaming
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                headers = dict(message.get("headers", []))
                streaming = headers.get(b"content-type", b"").startswith(b"text/event-stream")
                if streaming:
                    logger.info(f"Event stream opened: {method} {path}")
            elif message["type"] == "http.response.body" and not streaming:
                response_chunks.append(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        request_body = _sanitize_body(b"".join(request_chunks))
        response_body = _sanitize_body(b"".join(response_chunks))
        error_reason = _error_reason(response_body) if status_code >= 400 else None

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Request body: {request_body or '-'} | Response body: {response_body or '-'}")

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        message = f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)"
        if error_reason:
            message += f" | error_reason={error_reason}"

        logger.log(
            log_level,
            message,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "client": client[0] if client else None,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "request_body": request_body,
                "response_body": response_body,
                "error_reason": error_reason,
            }}
        )
