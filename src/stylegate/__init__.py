"""stylegate - vendor-prefixing middleware for ASGI stylesheet responses."""

__version__ = "0.1.0"

from .errors import (
    BrowserQueryError,
    CssSyntaxError,
    StylegateError,
    TransformError,
)
from .middleware import AutoprefixerMiddleware
from .transformer import Prefixer, PrefixerConfig

__all__ = [
    "AutoprefixerMiddleware",
    "Prefixer",
    "PrefixerConfig",
    "StylegateError",
    "BrowserQueryError",
    "CssSyntaxError",
    "TransformError",
]
