# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Autoprefixer Middleware.

Vendor-prefixes CSS produced by any downstream ASGI app (static files, an
on-the-fly compiler, a route) without breaking conditional GETs.

Pipeline per request:
  policy (suffix / cache) → rewrite If-None-Match → downstream app
  → interceptor (buffer, prefix, tag ETag) → client

Non-stylesheet responses stream straight through; only their content-type is
recorded so later requests for the same path can skip interception cheaply.
"""

from typing import Any

import structlog
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..cache import DEFAULT_MAX_SIZE, ContentTypeCache
from ..metrics import RESPONSES_TOTAL
from ..transformer.config import PrefixerConfig
from ..transformer.engine import Prefixer
from ..transformer.invoker import TransformInvoker
from .conditional import Fingerprint, rewrite_request_headers
from .interceptor import ResponseInterceptor
from .policy import InterceptionPolicy

logger = structlog.get_logger(__name__)

INTERCEPTED_METHODS = ("GET", "HEAD")


class AutoprefixerMiddleware:
    """Prefix stylesheet responses for a fixed browser configuration.

    Configure with a ``PrefixerConfig`` or its fields as keyword arguments:

        app.add_middleware(AutoprefixerMiddleware, browsers="Chrome > 30", cascade=False)

    Args:
        app: The downstream ASGI application.
        config: Prefixer configuration. Mutually exclusive with ``**options``.
        cache_size: Capacity of the path → content-type cache (default 100).
        prefixer: A ready-made prefixer; overrides ``config`` and ``**options``.
        **options: ``PrefixerConfig`` fields (``browsers``, ``cascade``, ``remove``).
    """

    def __init__(
        self,
        app: ASGIApp,
        config: PrefixerConfig | None = None,
        *,
        cache_size: int | None = None,
        prefixer: Prefixer | None = None,
        **options: Any,
    ) -> None:
        if config is not None and options:
            raise TypeError("Pass either a PrefixerConfig or prefixer options, not both")
        if prefixer is None:
            prefixer = Prefixer(config or PrefixerConfig(**options))

        self.app = app
        self.prefixer = prefixer
        self.fingerprint = Fingerprint.from_description(prefixer.info())
        self.cache = ContentTypeCache(cache_size or DEFAULT_MAX_SIZE)
        self.policy = InterceptionPolicy(self.cache)
        self.invoker = TransformInvoker(prefixer)

        logger.info(
            "autoprefixer_configured",
            fingerprint=str(self.fingerprint),
            browsers=list(prefixer.config.browsers),
            cache_size=self.cache.max_size,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path: str = scope["path"]
        method: str = scope["method"]

        if method not in INTERCEPTED_METHODS:
            await self.app(scope, receive, send)
            return

        if not self.policy.is_candidate(path):
            logger.debug("interception_skipped", path=path)
            RESPONSES_TOTAL.labels(result="skipped").inc()
            await self.app(scope, receive, self._observing(path, send))
            return

        scope = rewrite_request_headers(scope, self.fingerprint)
        extensions = scope.get("extensions")
        if extensions and "http.response.pathsend" in extensions:
            # The body must arrive as http.response.body messages to be buffered
            scope["extensions"] = {k: v for k, v in extensions.items() if k != "http.response.pathsend"}

        interceptor = ResponseInterceptor(
            send,
            path=path,
            method=method,
            policy=self.policy,
            invoker=self.invoker,
            fingerprint=self.fingerprint,
        )
        await self.app(scope, receive, interceptor.send)

    def _observing(self, path: str, send: Send) -> Send:
        """Wrap ``send`` to record the response content-type, nothing else."""

        async def send_observed(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = Headers(raw=message.get("headers", []))
                self.policy.observe(path, message["status"], headers.get("content-type"))
            await send(message)

        return send_observed
