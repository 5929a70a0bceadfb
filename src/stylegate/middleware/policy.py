# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Interception policy: decides which responses are worth buffering.

Two decisions per request:

1. ``is_candidate(path)`` before the downstream app runs. Cheap: a suffix
   match or a cache lookup. Non-candidates never get buffered.
2. ``must_intercept(path, content_type)`` once the real response headers are
   known. A candidate admitted by a stale cache entry can still be released
   untouched at this point.

This assumes a URL rarely changes content-type without changing name; when
it does, the next observed response corrects the cache.
"""

import re

from ..cache import ContentTypeCache
from ..metrics import CONTENT_TYPE_CACHE_LOOKUPS_TOTAL

STYLESHEET_PATH = re.compile(r"\.(le|c)ss$", re.IGNORECASE)
STYLESHEET_CONTENT_TYPE = re.compile(r"text/css", re.IGNORECASE)


def is_stylesheet_path(path: str) -> bool:
    """Match ``.css`` and ``.less`` paths (query string must already be removed)."""
    return STYLESHEET_PATH.search(path) is not None


def is_stylesheet_content_type(content_type: str | None) -> bool:
    return bool(content_type) and STYLESHEET_CONTENT_TYPE.search(content_type) is not None


class InterceptionPolicy:
    """Interception decisions backed by a shared content-type cache."""

    def __init__(self, cache: ContentTypeCache):
        self.cache = cache

    def is_candidate(self, path: str) -> bool:
        if is_stylesheet_path(path):
            return True
        cached = self.cache.get(path)
        CONTENT_TYPE_CACHE_LOOKUPS_TOTAL.labels(result="miss" if cached is None else "hit").inc()
        return is_stylesheet_content_type(cached)

    def must_intercept(self, path: str, content_type: str | None) -> bool:
        return is_stylesheet_path(path) or is_stylesheet_content_type(content_type)

    def observe(self, path: str, status: int, content_type: str | None) -> None:
        """Record the content-type a real response carried for ``path``.

        304 responses carry no representation headers and are not recorded.
        """
        if status == 304:
            return
        self.cache.set(path, content_type or "")
