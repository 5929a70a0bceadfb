# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Content-Type Cache: bounded LRU of request path → content-type.

Lets the middleware decide up front whether an ambiguous URL (no ``.css`` /
``.less`` suffix) is worth intercepting. Entries are a heuristic: a path that
changes content-type is corrected the next time a real response is observed.
"""

import threading
from collections import OrderedDict

DEFAULT_MAX_SIZE = 100


class ContentTypeCache:
    """Least-recently-used mapping of request path to content-type.

    No time-based expiry: entries are only evicted by capacity pressure.
    Safe to share across in-flight requests.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._max_size = max_size
        self._data: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, path: str) -> str | None:
        """Return the cached content-type for ``path`` and refresh its recency."""
        with self._lock:
            content_type = self._data.get(path)
            if content_type is not None:
                self._data.move_to_end(path)
            return content_type

    def set(self, path: str, content_type: str) -> None:
        """Insert or refresh ``path``, evicting the oldest entry when full."""
        with self._lock:
            self._data[path] = content_type
            self._data.move_to_end(path)
            while len(self._data) > self._max_size:
                self._data.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
