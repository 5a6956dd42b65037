"""
Directory caching package.

Holds the single in-memory snapshot of the employee collection. Reads
coalesce into one upstream fetch; writes invalidate explicitly. A
pass-through implementation with the same surface is available for
running without a cache.
"""

from .snapshot_cache import (
    DirectorySnapshotCache,
    EmployeeCache,
    PassThroughDirectoryCache,
    build_cache,
)

__all__ = [
    "DirectorySnapshotCache",
    "EmployeeCache",
    "PassThroughDirectoryCache",
    "build_cache",
]
