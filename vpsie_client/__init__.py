"""
VPSie client - two-layer Python client for the VPSie API.

Layers:
- core: Request pipeline (build, send with retries, decode envelope) and types
- sdk: High-level VPSieClient with per-resource operations
"""

from vpsie_client.core import (
    APIError,
    CancelToken,
    ClientConfig,
    ErrorKind,
    ListOptions,
    RequestCancelledError,
    RetryPolicy,
)
from vpsie_client.sdk import VPSieClient

__version__ = "0.1.0"
__all__ = [
    "APIError",
    "CancelToken",
    "ClientConfig",
    "ErrorKind",
    "ListOptions",
    "RequestCancelledError",
    "RetryPolicy",
    "VPSieClient",
]
