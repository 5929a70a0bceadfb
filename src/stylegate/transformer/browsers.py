# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Browser queries: which browser versions a stylesheet must support.

Understands a small, explicit subset of the browserslist query language:

    Chrome > 30
    ie >= 9
    Safari 8
    ios_saf 7-8.4
    defaults

Browser names are case-insensitive. Anything else raises ``BrowserQueryError``
so a typo is rejected at configuration time, never silently ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from ..errors import BrowserQueryError

Version = tuple[int, ...]

BROWSER_NAMES: dict[str, str] = {
    "android": "Android",
    "chrome": "Chrome",
    "edge": "Edge",
    "firefox": "Firefox",
    "ie": "IE",
    "ios_saf": "iOS Safari",
    "opera": "Opera",
    "safari": "Safari",
}

ALIASES: dict[str, str] = {
    "ff": "firefox",
    "explorer": "ie",
    "ios": "ios_saf",
}

# Queries "defaults" expands to
DEFAULT_QUERIES: tuple[str, ...] = (
    "chrome >= 109",
    "edge >= 109",
    "firefox >= 115",
    "safari >= 15.6",
    "ios_saf >= 15.6",
    "opera >= 95",
    "android >= 119",
)

_VERSION = r"\d+(?:\.\d+)*"
_COMPARISON = re.compile(rf"^(?P<name>[a-z_]+)\s*(?P<op>>=|<=|>|<)\s*(?P<version>{_VERSION})$", re.I)
_RANGE = re.compile(rf"^(?P<name>[a-z_]+)\s+(?P<low>{_VERSION})\s*-\s*(?P<high>{_VERSION})$", re.I)
_EXACT = re.compile(rf"^(?P<name>[a-z_]+)\s+(?P<version>{_VERSION})$", re.I)


def parse_version(text: str) -> Version:
    """Parse ``"8.0"`` as ``(8,)``: trailing zero components carry no meaning."""
    parts = [int(part) for part in text.split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def format_version(version: Version) -> str:
    return ".".join(str(part) for part in version)


def normalize_browser(name: str, query: str) -> str:
    key = name.lower()
    key = ALIASES.get(key, key)
    if key not in BROWSER_NAMES:
        raise BrowserQueryError(query, "Unknown browser")
    return key


@dataclass(frozen=True)
class VersionRange:
    """A contiguous set of versions of one browser.

    ``None`` bounds are open-ended.
    """

    browser: str
    low: Version | None = None
    low_inclusive: bool = True
    high: Version | None = None
    high_inclusive: bool = True

    def is_empty(self) -> bool:
        if self.low is None or self.high is None:
            return False
        if self.low > self.high:
            return True
        return self.low == self.high and not (self.low_inclusive and self.high_inclusive)

    def overlaps(self, since: Version, until: Version) -> bool:
        """True if some version in this range lies within ``since``..``until``, inclusive."""
        if self.is_empty() or since > until:
            return False
        if self.low is not None:
            if self.low > until or (self.low == until and not self.low_inclusive):
                return False
        if self.high is not None:
            if self.high < since or (self.high == since and not self.high_inclusive):
                return False
        return True

    def describe(self) -> str:
        name = BROWSER_NAMES[self.browser]
        if self.low is not None and self.low == self.high:
            return f"{name} {format_version(self.low)}"
        if self.low is not None and self.high is not None:
            if self.low_inclusive and self.high_inclusive:
                return f"{name} {format_version(self.low)}-{format_version(self.high)}"
            low_op = ">=" if self.low_inclusive else ">"
            high_op = "<=" if self.high_inclusive else "<"
            return (
                f"{name} {low_op} {format_version(self.low)}, "
                f"{high_op} {format_version(self.high)}"
            )
        if self.low is not None:
            op = ">=" if self.low_inclusive else ">"
            return f"{name} {op} {format_version(self.low)}"
        if self.high is not None:
            op = "<=" if self.high_inclusive else "<"
            return f"{name} {op} {format_version(self.high)}"
        return f"{name} (all versions)"


def parse_query(query: str) -> list[VersionRange]:
    """Parse a single browser query into version ranges."""
    text = " ".join(query.split())
    if not text:
        raise BrowserQueryError(query, "Empty browser query")

    if text.lower() == "defaults":
        ranges: list[VersionRange] = []
        for default in DEFAULT_QUERIES:
            ranges.extend(parse_query(default))
        return ranges

    match = _COMPARISON.match(text)
    if match:
        browser = normalize_browser(match["name"], query)
        version = parse_version(match["version"])
        op = match["op"]
        if op.startswith(">"):
            return [VersionRange(browser, low=version, low_inclusive=op == ">=")]
        return [VersionRange(browser, high=version, high_inclusive=op == "<=")]

    match = _RANGE.match(text)
    if match:
        browser = normalize_browser(match["name"], query)
        low, high = parse_version(match["low"]), parse_version(match["high"])
        if low > high:
            raise BrowserQueryError(query, "Version range is reversed")
        return [VersionRange(browser, low=low, high=high)]

    match = _EXACT.match(text)
    if match:
        browser = normalize_browser(match["name"], query)
        version = parse_version(match["version"])
        return [VersionRange(browser, low=version, high=version)]

    raise BrowserQueryError(query)


class BrowserSelection:
    """The union of every version range selected by a list of queries."""

    def __init__(self, ranges: Iterable[VersionRange]):
        self._ranges = tuple(
            sorted({r for r in ranges if not r.is_empty()}, key=lambda r: (r.browser, r.describe()))
        )

    @classmethod
    def from_queries(cls, queries: Iterable[str]) -> BrowserSelection:
        ranges: list[VersionRange] = []
        for query in queries:
            ranges.extend(parse_query(query))
        return cls(ranges)

    @property
    def ranges(self) -> tuple[VersionRange, ...]:
        return self._ranges

    @property
    def browsers(self) -> list[str]:
        return sorted({r.browser for r in self._ranges})

    def needs(self, browser: str, until: Version, since: Version = (0,)) -> bool:
        """True if any selected version of ``browser`` lies within ``since``..``until``."""
        return any(r.browser == browser and r.overlaps(since, until) for r in self._ranges)

    def describe(self) -> list[str]:
        return [r.describe() for r in self._ranges]
