"""
Core layer - request pipeline and raw types.

This layer provides:
- Request building with auth headers and query strings
- Transport with bounded retries and cancellation
- Envelope decoding and the error taxonomy
- Pagination helpers and typed dataclasses for API payloads
"""

from vpsie_client.core.client import APIClient, ClientConfig
from vpsie_client.core.envelope import decode
from vpsie_client.core.errors import (
    APIError,
    ConfigurationError,
    ErrorKind,
    RequestCancelledError,
    VPSieError,
)
from vpsie_client.core.retry import CancelToken, RetryPolicy, RetryState
from vpsie_client.core.types import (
    AttachedServer,
    Backup,
    BackupPolicy,
    CreateBackupPolicyRequest,
    CreateProjectRequest,
    DataShape,
    Domain,
    EnableAutoBackupRequest,
    FirewallGroup,
    FirewallGroupDetail,
    FirewallRule,
    ListOptions,
    PaginatedResponse,
    Project,
    RawResponse,
    RequestDescriptor,
    Server,
    UserLimit,
    has_more,
    next_page,
)

__all__ = [
    "APIClient",
    "APIError",
    "AttachedServer",
    "Backup",
    "BackupPolicy",
    "CancelToken",
    "ClientConfig",
    "ConfigurationError",
    "CreateBackupPolicyRequest",
    "CreateProjectRequest",
    "DataShape",
    "Domain",
    "EnableAutoBackupRequest",
    "ErrorKind",
    "FirewallGroup",
    "FirewallGroupDetail",
    "FirewallRule",
    "ListOptions",
    "PaginatedResponse",
    "Project",
    "RawResponse",
    "RequestCancelledError",
    "RequestDescriptor",
    "RetryPolicy",
    "RetryState",
    "Server",
    "UserLimit",
    "VPSieError",
    "decode",
    "has_more",
    "next_page",
]
