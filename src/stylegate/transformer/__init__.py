# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Stylesheet transformer.

Adds the vendor prefixes a browser selection needs. Configured once per
middleware instance; ``Prefixer.info()`` describes the effective config.
"""

from .browsers import BrowserSelection, VersionRange, parse_query
from .config import PrefixerConfig
from .engine import Prefixer, check_syntax
from .invoker import TransformInvoker

__all__ = [
    "BrowserSelection",
    "VersionRange",
    "parse_query",
    "PrefixerConfig",
    "Prefixer",
    "check_syntax",
    "TransformInvoker",
]
