"""
Adapters package for the Directory Service.

Contains the HTTP client for the upstream employee directory. The client
owns request shapes and envelope parsing; rate-limit retries live in the
transport it is given (see ``shared.retry``).
"""

from .directory_client import DirectoryClient

__all__ = [
    "DirectoryClient",
]
