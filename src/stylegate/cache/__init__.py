"""Request path → content-type cache."""

from .content_type_cache import DEFAULT_MAX_SIZE, ContentTypeCache

__all__ = ["ContentTypeCache", "DEFAULT_MAX_SIZE"]
