"""
Core types for the VPSie API.

Request/response descriptors, pagination helpers, and dataclasses for the
backup, firewall group, and project payloads.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Generic, TypeVar

# =============================================================================
# Pagination
# =============================================================================


T = TypeVar("T")

DEFAULT_PER_PAGE = 25


@dataclass(frozen=True)
class ListOptions:
    """Query options for list endpoints."""

    page: int = 1
    per_page: int = DEFAULT_PER_PAGE
    filters: tuple[tuple[str, str], ...] = ()

    @classmethod
    def with_filters(cls, page: int = 1, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> "ListOptions":
        """Build options from keyword filters (None values are dropped)."""
        pairs = tuple((k, str(v)) for k, v in filters.items() if v is not None)
        return cls(page=page, per_page=per_page, filters=pairs)

    def to_query(self) -> dict[str, Any]:
        """Convert to query parameters."""
        params: dict[str, Any] = {"page": self.page, "per_page": self.per_page}
        for key, value in self.filters:
            params[key] = value
        return params


def has_more(options: ListOptions, returned: int, total: int | None) -> bool:
    """
    Check whether another page exists after the one just fetched.

    Args:
        options: Options used to fetch the page
        returned: Number of items on the page
        total: Total item count reported by the API (None if not reported)

    Returns:
        True if the caller should fetch ``next_page(options)``

    """
    if returned <= 0:
        return False
    if total is None:
        return returned >= options.per_page
    return (options.page - 1) * options.per_page + returned < total


def next_page(options: ListOptions) -> ListOptions:
    """Options for the following page (same filters and page size)."""
    return replace(options, page=options.page + 1)


@dataclass
class PaginatedResponse(Generic[T]):
    """One page of a list endpoint."""

    data: list[T]
    total: int | None = None
    options: ListOptions | None = None

    def __iter__(self) -> Iterator[T]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def has_more(self) -> bool:
        """Check if there are more results."""
        return has_more(self.options or ListOptions(), len(self.data), self.total)

    def next_options(self) -> ListOptions:
        """Options to request the next page."""
        return next_page(self.options or ListOptions())


# =============================================================================
# Request / Response
# =============================================================================


class DataShape(str, Enum):
    """Shape of the envelope ``data`` field expected by a call site."""

    NONE = "none"
    OBJECT = "object"
    LIST = "list"
    ROWS = "rows"


@dataclass(frozen=True)
class RequestDescriptor:
    """A fully built outgoing request."""

    method: str
    url: str
    headers: Mapping[str, str]
    body: bytes | None = None


@dataclass(frozen=True)
class RawResponse:
    """Status and undecoded body of an HTTP response."""

    status: int
    body: bytes
    content_type: str = ""


# =============================================================================
# Backup Types
# =============================================================================


@dataclass
class Backup:
    """A server backup."""

    identifier: str
    name: str = ""
    hostname: str = ""
    note: str = ""
    backup_key: str = ""
    state: str = ""
    dc_identifier: str = ""
    vm_identifier: str = ""
    box_id: int = 0
    backup_sha1: str = ""
    os_full_name: str = ""
    vm_category: str = ""
    created_by: str = ""
    created_on: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Backup":
        """Create from API response dict."""
        return cls(
            identifier=data["identifier"],
            name=data.get("name") or "",
            hostname=data.get("hostname") or "",
            note=data.get("note") or "",
            backup_key=data.get("backupKey") or "",
            state=data.get("state") or "",
            dc_identifier=data.get("dcIdentifier") or "",
            vm_identifier=data.get("vmIdentifier") or "",
            box_id=data.get("boxId") or 0,
            backup_sha1=data.get("backupsha1") or "",
            os_full_name=data.get("osFullName") or "",
            vm_category=data.get("vmCategory") or "",
            created_by=data.get("created_by") or "",
            created_on=data.get("created_on") or "",
        )


@dataclass
class BackupPolicy:
    """A backup policy with the servers it is attached to."""

    identifier: str
    name: str = ""
    backup_plan: str = ""
    plan_every: int = 0
    keep: int = 0
    disabled: bool = False
    user_id: int = 0
    created_on: str = ""
    created_by: str = ""
    vms: list[str] = field(default_factory=list)
    vms_count: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BackupPolicy":
        """Create from API response dict (detail or list row)."""
        return cls(
            identifier=data["identifier"],
            name=data.get("name") or "",
            backup_plan=data.get("backupPlan") or "",
            plan_every=data.get("planEvery") or 0,
            keep=data.get("keep") or 0,
            disabled=bool(data.get("disabled")),
            user_id=data.get("userId") or 0,
            created_on=data.get("created_on") or "",
            created_by=data.get("created_by") or "",
            vms=data.get("vms") or [],
            vms_count=data.get("vmsCount"),
        )


@dataclass
class EnableAutoBackupRequest:
    """Request body for enabling automatic backups on a server."""

    vm_identifier: str
    period: str
    vm_id: int = 0
    auto_backup: int = 1
    weekly_backup: int = 0
    monthly_backup: int = 0
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        return {
            "vmIdentifier": self.vm_identifier,
            "vmId": self.vm_id,
            "period": self.period,
            "autoBackup": self.auto_backup,
            "weeklyBackup": self.weekly_backup,
            "monthlyBackup": self.monthly_backup,
            "tags": self.tags,
        }


@dataclass
class CreateBackupPolicyRequest:
    """Request body for creating a backup policy."""

    name: str
    backup_plan: str
    plan_every: int
    keep: int
    vms: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        # The API expects planEvery and keep as strings on create
        return {
            "name": self.name,
            "backupPlan": self.backup_plan,
            "planEvery": str(self.plan_every),
            "keep": str(self.keep),
            "vms": self.vms,
            "tags": self.tags,
        }


# =============================================================================
# Firewall Types
# =============================================================================


@dataclass
class FirewallRule:
    """A single inbound or outbound firewall rule."""

    action: str
    type: str
    proto: str = ""
    dport: str = ""
    sport: str = ""
    source: list[str] = field(default_factory=list)
    dest: list[str] = field(default_factory=list)
    macro: str = ""
    comment: str = ""
    enable: int = 1
    id: int | None = None
    group_id: int | None = None
    identifier: str | None = None
    created_on: str | None = None
    updated_on: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FirewallRule":
        """Create from API response dict."""
        return cls(
            action=data.get("action") or "",
            type=data.get("type") or "",
            proto=data.get("proto") or "",
            dport=data.get("dport") or "",
            sport=data.get("sport") or "",
            source=data.get("source") or [],
            dest=data.get("dest") or [],
            macro=data.get("macro") or "",
            comment=data.get("comment") or "",
            enable=data.get("enable", 1),
            id=data.get("id"),
            group_id=data.get("group_id"),
            identifier=data.get("identifier"),
            created_on=data.get("created_on"),
            updated_on=data.get("updated_on"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for create/update requests."""
        result: dict[str, Any] = {
            "action": self.action,
            "type": self.type,
            "dport": self.dport,
            "proto": self.proto,
            "sport": self.sport,
            "enable": self.enable,
            "macro": self.macro,
            "comment": self.comment,
        }
        if self.source:
            result["source"] = self.source
        if self.dest:
            result["dest"] = self.dest
        return result


@dataclass
class AttachedServer:
    """A server referenced by a firewall group."""

    identifier: str
    hostname: str = ""
    fullname: str = ""
    category: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AttachedServer":
        """Create from API response dict."""
        return cls(
            identifier=data.get("identifier") or "",
            hostname=data.get("hostname") or "",
            fullname=data.get("fullname") or "",
            category=data.get("category") or "",
        )


@dataclass
class FirewallGroup:
    """A firewall group summary."""

    id: int
    identifier: str
    group_name: str = ""
    user_name: str = ""
    inbound_count: int = 0
    outbound_count: int = 0
    vms: int = 0
    created_by: int | None = None
    created_on: str | None = None
    updated_on: str | None = None
    rules: list[FirewallRule] = field(default_factory=list)
    servers: list[AttachedServer] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FirewallGroup":
        """Create from API response dict."""
        return cls(
            id=data.get("id") or 0,
            identifier=data.get("identifier") or "",
            group_name=data.get("group_name") or "",
            user_name=data.get("user_name") or "",
            inbound_count=data.get("inbound_count") or 0,
            outbound_count=data.get("outbound_count") or 0,
            vms=data.get("vms") or 0,
            created_by=data.get("created_by"),
            created_on=data.get("created_on"),
            updated_on=data.get("updated_on"),
            rules=[FirewallRule.from_dict(r) for r in data.get("rules") or []],
            # List rows call this vmsData, detail payloads keep it beside the group
            servers=[AttachedServer.from_dict(s) for s in data.get("vmsData") or []],
        )


@dataclass
class FirewallGroupDetail:
    """A firewall group with its rules and attached servers."""

    group: FirewallGroup
    rules: list[FirewallRule] = field(default_factory=list)
    servers: list[AttachedServer] = field(default_factory=list)
    count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FirewallGroupDetail":
        """Create from API response dict."""
        return cls(
            group=FirewallGroup.from_dict(data.get("group") or {}),
            rules=[FirewallRule.from_dict(r) for r in data.get("rules") or []],
            servers=[AttachedServer.from_dict(s) for s in data.get("vms") or []],
            count=data.get("count") or 0,
        )


# =============================================================================
# Project Types
# =============================================================================


@dataclass
class Project:
    """A VPSie project."""

    id: int
    identifier: str
    name: str = ""
    description: str = ""
    is_default: bool = False
    created_by: int | None = None
    created_on: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Create from API response dict."""
        return cls(
            id=data.get("id") or 0,
            identifier=data["identifier"],
            name=data.get("name") or "",
            description=data.get("description") or "",
            is_default=bool(data.get("is_default")),
            created_by=data.get("created_by"),
            created_on=data.get("created_on"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class CreateProjectRequest:
    """Request body for creating a project."""

    name: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        return {"name": self.name, "description": self.description}


@dataclass
class Server:
    """A server (VM) as returned by project endpoints."""

    identifier: str
    hostname: str = ""
    fullname: str = ""
    category: str = ""
    state: str = ""
    dc_identifier: str = ""
    default_ip: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Server":
        """Create from API response dict."""
        return cls(
            identifier=data["identifier"],
            hostname=data.get("hostname") or "",
            fullname=data.get("fullname") or "",
            category=data.get("category") or "",
            state=data.get("state") or "",
            dc_identifier=data.get("dcIdentifier") or "",
            default_ip=data.get("defaultIP") or data.get("default_ip"),
        )


@dataclass
class Domain:
    """A DNS domain attached to a project."""

    identifier: str
    domain_name: str = ""
    ns_validated: bool = False
    created_on: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Domain":
        """Create from API response dict."""
        return cls(
            identifier=data["identifier"],
            domain_name=data.get("domainName") or data.get("domain_name") or "",
            ns_validated=bool(data.get("nsValidated")),
            created_on=data.get("created_on"),
        )


@dataclass
class UserLimit:
    """Per-account product limits."""

    backups: int = 0
    snapshots: int = 0
    firewalls: int = 0
    buckets: int = 0
    certificates: int = 0
    dns_domains: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserLimit":
        """Create from API response dict."""
        return cls(
            backups=data.get("backups_Limit") or 0,
            snapshots=data.get("snapshot_Limit") or 0,
            firewalls=data.get("firewall_Limit") or 0,
            buckets=data.get("buckets_Limit") or 0,
            certificates=data.get("certificates_Limit") or 0,
            dns_domains=data.get("dns_domains_Limit") or 0,
        )
