# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Transform invoker: runs the prefixer over one buffered response body."""

import time

import structlog
from starlette.concurrency import run_in_threadpool

from ..errors import CssSyntaxError, TransformError
from ..metrics import TRANSFORM_DURATION_SECONDS, TRANSFORM_SIZE_DELTA_BYTES
from .engine import Prefixer

logger = structlog.get_logger(__name__)


class TransformInvoker:
    """Decode, prefix, encode. No retries and no caching of output."""

    def __init__(self, prefixer: Prefixer):
        self.prefixer = prefixer

    async def transform(self, path: str, body: bytes) -> bytes:
        """Prefix a UTF-8 stylesheet body.

        Raises:
            TransformError: If the body isn't UTF-8 or isn't valid CSS.
        """
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TransformError(path, e) from e

        start = time.monotonic()
        try:
            # CPU-bound; keep the event loop free for other requests
            result = await run_in_threadpool(self.prefixer.process, text)
        except CssSyntaxError as e:
            raise TransformError(path, e) from e
        finally:
            elapsed = time.monotonic() - start
            TRANSFORM_DURATION_SECONDS.observe(elapsed)

        transformed = result.encode("utf-8")
        TRANSFORM_SIZE_DELTA_BYTES.observe(len(transformed) - len(body))
        logger.debug("stylesheet_transformed", path=path, duration_ms=round(elapsed * 1000, 2))
        return transformed
