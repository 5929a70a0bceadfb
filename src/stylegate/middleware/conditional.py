# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Conditional GET coordination across prefixer configurations.

Every ETag the middleware emits for a prefixed stylesheet carries the
fingerprint of the active configuration, inserted before the closing quote:

    "abc"  →  "abc-autoprefixer[0cc175b9c0f1b6a831c399e269772661]"

On the way in, only validators carrying the *current* fingerprint are handed
to the downstream app (suffix stripped), so it can answer 304 with its own
ETag comparison. Validators minted under another configuration are dropped,
which forces a fresh 200 and a re-prefix.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass

from starlette.datastructures import MutableHeaders
from starlette.types import Scope

MARKER = "-autoprefixer"

_DIGEST = re.compile(r"^[0-9a-f]{32}$")
_TAGGED = re.compile(r"^(?P<head>.*)-autoprefixer\[(?P<digest>[0-9a-f]{32})\](?P<tail>[\"-])$", re.DOTALL)
# One entity-tag per match; lists may omit the space after a comma
_LIST_TOKEN = re.compile(r'(?:W/)?"[^"\s]*"|[^\s,]+')


@dataclass(frozen=True)
class Fingerprint:
    """MD5 hex digest of a prefixer configuration's description."""

    digest: str

    def __post_init__(self):
        if not _DIGEST.match(self.digest):
            raise ValueError(f"Invalid fingerprint digest: {self.digest!r}")

    @classmethod
    def from_description(cls, description: str) -> Fingerprint:
        return cls(hashlib.md5(description.encode("utf-8")).hexdigest())

    @property
    def suffix(self) -> str:
        return f"{MARKER}[{self.digest}]"

    def __str__(self) -> str:
        return self.digest


@dataclass(frozen=True)
class TaggedETag:
    """An ETag split into its upstream value and an optional fingerprint."""

    base: str
    fingerprint: Fingerprint | None = None

    @classmethod
    def parse(cls, token: str) -> TaggedETag:
        match = _TAGGED.match(token)
        if match is None:
            return cls(token)
        return cls(match["head"] + match["tail"], Fingerprint(match["digest"]))

    def render(self) -> str:
        if self.fingerprint is None or not self.base:
            return self.base
        return self.base[:-1] + self.fingerprint.suffix + self.base[-1]


def tag_etag(etag: str, fingerprint: Fingerprint) -> str:
    """Insert ``fingerprint`` before the closing quote of ``etag``.

    Already-tagged values are returned as-is; a suffix from another
    configuration is replaced. Unquoted values are left alone.
    """
    parsed = TaggedETag.parse(etag)
    if parsed.fingerprint == fingerprint:
        return etag
    if not parsed.base.endswith('"'):
        return etag
    return TaggedETag(parsed.base, fingerprint).render()


def rewrite_if_none_match(value: str, fingerprint: Fingerprint) -> str | None:
    """Keep only validators minted under ``fingerprint``, with the suffix stripped.

    Returns None when no validator matches, meaning the header must go.
    """
    kept = []
    for token in _LIST_TOKEN.findall(value):
        parsed = TaggedETag.parse(token)
        if parsed.fingerprint == fingerprint:
            kept.append(parsed.base)
    return ", ".join(kept) or None


def rewrite_request_headers(scope: Scope, fingerprint: Fingerprint) -> Scope:
    """Return a copy of ``scope`` with conditional headers rewritten.

    ``If-Modified-Since`` is always removed: a date match would yield a 304
    for a body prefixed under a different configuration.
    """
    scope = dict(scope)
    headers = MutableHeaders(scope=scope)

    if_none_match = headers.get("if-none-match")
    if if_none_match is not None:
        rewritten = rewrite_if_none_match(if_none_match, fingerprint)
        if rewritten:
            headers["if-none-match"] = rewritten
        else:
            del headers["if-none-match"]

    if "if-modified-since" in headers:
        del headers["if-modified-since"]
    return scope
