"""Prometheus metrics for the autoprefixer middleware."""

from prometheus_client import Counter, Histogram

from .config import get_settings

settings = get_settings()
prefix = settings.metrics_prefix


# =============================================================================
# Metrics Definitions
# =============================================================================

RESPONSES_TOTAL = Counter(
    f"{prefix}_responses_total",
    "Responses seen by the autoprefixer middleware",
    ["result"],  # result: "transformed", "passthrough", "not_modified", "aborted", "skipped", "error"
)

TRANSFORM_DURATION_SECONDS = Histogram(
    f"{prefix}_transform_duration_seconds",
    "Time spent prefixing a stylesheet",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

TRANSFORM_SIZE_DELTA_BYTES = Histogram(
    f"{prefix}_transform_size_delta_bytes",
    "Bytes added to a stylesheet by prefixing (negative when outdated prefixes are removed)",
    buckets=(-4096, -1024, -256, -64, 0, 64, 256, 1024, 4096, 16384, 65536),
)

CONTENT_TYPE_CACHE_LOOKUPS_TOTAL = Counter(
    f"{prefix}_content_type_cache_lookups_total",
    "Content-type cache lookups for paths without a stylesheet extension",
    ["result"],  # result: "hit", "miss"
)
