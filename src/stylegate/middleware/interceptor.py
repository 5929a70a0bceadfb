# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Response interceptor: captures a downstream response before the client sees it.

Wraps the ASGI ``send`` callable for one request and owns the response until
it either releases it untouched or replaces its body:

    OPEN ──start──► PASS_THROUGH   (not a stylesheet, or 304)
      │        └──► ABORTED        (stylesheet, but neither 200 nor 304)
      └──start──► BUFFERING ──last body chunk──► TRANSFORMED ──► CLOSED

Nothing reaches the client while BUFFERING, so a failed transform can still
surface as a clean error response.
"""

from enum import Enum

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import Message, Send

from ..errors import TransformError
from ..metrics import RESPONSES_TOTAL
from ..transformer.invoker import TransformInvoker
from .conditional import Fingerprint, tag_etag
from .policy import InterceptionPolicy

logger = structlog.get_logger(__name__)

STYLESHEET_MEDIA_TYPE = "text/css"


class InterceptState(str, Enum):
    OPEN = "open"
    BUFFERING = "buffering"
    TRANSFORMED = "transformed"
    PASS_THROUGH = "pass_through"
    ABORTED = "aborted"
    CLOSED = "closed"


class ResponseInterceptor:
    """One interception lifecycle for one request."""

    def __init__(
        self,
        send: Send,
        *,
        path: str,
        method: str,
        policy: InterceptionPolicy,
        invoker: TransformInvoker,
        fingerprint: Fingerprint,
    ):
        self._send = send
        self.path = path
        self.method = method
        self.policy = policy
        self.invoker = invoker
        self.fingerprint = fingerprint
        self.state = InterceptState.OPEN
        self._start: Message | None = None
        self._chunks: list[bytes] = []

    async def send(self, message: Message) -> None:
        if self.state is InterceptState.OPEN:
            if message["type"] == "http.response.start":
                await self._on_start(message)
            else:
                await self._send(message)
            return

        if self.state is InterceptState.BUFFERING:
            if message["type"] != "http.response.body":
                self.state = InterceptState.ABORTED
                raise RuntimeError(f"Unexpected ASGI message while buffering: {message['type']}")
            self._chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                await self._finish()
            return

        await self._send(message)
        if (
            self.state in (InterceptState.PASS_THROUGH, InterceptState.ABORTED)
            and message["type"] == "http.response.body"
            and not message.get("more_body", False)
        ):
            self.state = InterceptState.CLOSED

    async def _on_start(self, message: Message) -> None:
        message.setdefault("headers", [])
        headers = Headers(raw=message["headers"])
        content_type = headers.get("content-type")
        status = message["status"]

        self.policy.observe(self.path, status, content_type)

        if status == 304:
            # Only reachable with a validator carrying the current fingerprint
            self._tag_etag(message)
            RESPONSES_TOTAL.labels(result="not_modified").inc()
            self.state = InterceptState.PASS_THROUGH
            await self._send(message)
            return

        if not self.policy.must_intercept(self.path, content_type):
            # Stale cache entry: this path no longer serves CSS
            logger.debug(
                "interception_released",
                path=self.path,
                status=status,
                content_type=content_type,
            )
            RESPONSES_TOTAL.labels(result="passthrough").inc()
            self.state = InterceptState.PASS_THROUGH
            await self._send(message)
            return

        if headers.get("content-encoding", "identity").lower() != "identity":
            logger.debug(
                "interception_aborted",
                path=self.path,
                reason="encoded_body",
                content_encoding=headers.get("content-encoding"),
            )
            RESPONSES_TOTAL.labels(result="aborted").inc()
            self.state = InterceptState.ABORTED
            await self._send(message)
            return

        if status != 200:
            logger.debug("interception_aborted", path=self.path, reason="status", status=status)
            RESPONSES_TOTAL.labels(result="aborted").inc()
            self.state = InterceptState.ABORTED
            await self._send(message)
            return

        if self.method == "HEAD":
            # No body to prefix; the transformed length is unknown
            self._tag_etag(message)
            del MutableHeaders(scope=message)["content-length"]
            RESPONSES_TOTAL.labels(result="passthrough").inc()
            self.state = InterceptState.PASS_THROUGH
            await self._send(message)
            return

        self._start = message
        self.state = InterceptState.BUFFERING

    async def _finish(self) -> None:
        body = b"".join(self._chunks)
        self._chunks = []

        try:
            transformed = await self.invoker.transform(self.path, body)
        except TransformError as e:
            logger.warning(
                "stylesheet_transform_failed",
                path=self.path,
                error=str(e.cause),
                size=len(body),
            )
            RESPONSES_TOTAL.labels(result="error").inc()
            self.state = InterceptState.ABORTED
            raise

        message = self._start
        headers = MutableHeaders(scope=message)
        headers["content-type"] = STYLESHEET_MEDIA_TYPE
        headers["content-length"] = str(len(transformed))
        self._tag_etag(message)

        self.state = InterceptState.TRANSFORMED
        await self._send(message)
        await self._send({"type": "http.response.body", "body": transformed, "more_body": False})
        self.state = InterceptState.CLOSED

        RESPONSES_TOTAL.labels(result="transformed").inc()
        logger.info(
            "stylesheet_prefixed",
            path=self.path,
            original_size=len(body),
            transformed_size=len(transformed),
            fingerprint=str(self.fingerprint),
        )

    def _tag_etag(self, message: Message) -> None:
        headers = MutableHeaders(scope=message)
        etag = headers.get("etag")
        if etag:
            headers["etag"] = tag_etag(etag, self.fingerprint)
