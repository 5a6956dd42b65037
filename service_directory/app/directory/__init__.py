"""
Directory orchestration for the Directory Service.
"""

from .service import DirectoryService

__all__ = [
    "DirectoryService",
]
