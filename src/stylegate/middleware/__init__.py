"""Middleware components."""

from .autoprefixer import AutoprefixerMiddleware
from .conditional import Fingerprint, TaggedETag, rewrite_if_none_match, tag_etag
from .interceptor import InterceptState, ResponseInterceptor
from .policy import InterceptionPolicy, is_stylesheet_content_type, is_stylesheet_path

__all__ = [
    "AutoprefixerMiddleware",
    # Conditional GET
    "Fingerprint",
    "TaggedETag",
    "rewrite_if_none_match",
    "tag_etag",
    # Interception
    "InterceptState",
    "ResponseInterceptor",
    "InterceptionPolicy",
    "is_stylesheet_content_type",
    "is_stylesheet_path",
]
