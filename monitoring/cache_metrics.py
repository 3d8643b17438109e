import time
from contextlib import asynccontextmanager

from prometheus_client import Counter, Histogram

# Read-through metrics
CACHE_HITS = Counter(
    'inventory_cache_hits_total',
    'Total number of pipeline cache hits',
    ['request_type']
)
CACHE_MISSES = Counter(
    'inventory_cache_misses_total',
    'Total number of pipeline cache misses',
    ['request_type']
)

# Store client metrics
CACHE_ERRORS = Counter(
    'inventory_cache_errors_total',
    'Total number of cache operation errors and timeouts',
    ['operation']
)
CACHE_OPERATION_DURATION = Histogram(
    'inventory_cache_operation_duration_seconds',
    'Duration of cache store operations',
    ['operation']
)

# Invalidation metrics
CACHE_INVALIDATIONS = Counter(
    'inventory_cache_invalidations_total',
    'Total number of write-triggered invalidations',
    ['subject']
)
UNMAPPED_INVALIDATION_SUBJECTS = Counter(
    'inventory_cache_unmapped_subjects_total',
    'Writes whose subject has no invalidation rule',
    ['subject']
)


@asynccontextmanager
async def track_cache_operation(operation: str):
    """Time a cache store operation and count it as an error if it raises."""
    start_time = time.perf_counter()
    try:
        yield
    except Exception:
        CACHE_ERRORS.labels(operation=operation).inc()
        raise
    finally:
        CACHE_OPERATION_DURATION.labels(operation=operation).observe(
            time.perf_counter() - start_time
        )
