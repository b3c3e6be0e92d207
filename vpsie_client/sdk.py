"""
VPSie SDK - High-level client with typed resource operations.

This layer provides a clean, typed interface for the backup, firewall group,
and project endpoints. Built on top of the core APIClient.
"""

import builtins
import urllib.parse
import urllib.request
from collections.abc import Iterator

from vpsie_client.core.client import DEFAULT_TIMEOUT, APIClient, ClientConfig
from vpsie_client.core.retry import CancelToken, RetryPolicy
from vpsie_client.core.types import (
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
    Server,
    UserLimit,
)

API_ROOT = "/apps/v2"


class VPSieClient:
    """
    High-level VPSie API client with typed methods.

    Example:
        client = VPSieClient()  # token from VPSIE_ACCESS_TOKEN

        page = client.backups.list(ListOptions(per_page=50))
        for backup in page:
            print(backup.identifier, backup.state)

        client.firewall_groups.attach(group_id, server_id)
        client.projects.delete(project_id)

    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry: RetryPolicy | None = None,
        config: ClientConfig | None = None,
        opener: urllib.request.OpenerDirector | None = None,
    ):
        """
        Initialize the VPSie client.

        Args:
            token: Access token (or VPSIE_ACCESS_TOKEN env var)
            base_url: API base URL (or VPSIE_BASE_URL env var)
            timeout: Per-attempt request timeout in seconds
            retry: Retry policy for transient failures
            config: Complete configuration; overrides the other arguments
            opener: urllib opener used for sending requests

        """
        if config is None:
            config = ClientConfig.from_env(
                token=token,
                base_url=base_url,
                timeout=timeout,
                retry=retry or RetryPolicy(),
            )
        self._client = APIClient(config, opener=opener)

        # Sub-clients for different resources
        self.backups = BackupOperations(self._client)
        self.firewall_groups = FirewallGroupOperations(self._client)
        self.projects = ProjectOperations(self._client)

    @property
    def config(self) -> ClientConfig:
        """Get the client configuration."""
        return self._client.config


# =============================================================================
# Backup Operations (backups + backup policies)
# =============================================================================


class BackupOperations:
    """Operations for server backups and backup policies."""

    def __init__(self, client: APIClient):
        self._client = client

    def list(
        self,
        options: ListOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> PaginatedResponse[Backup]:
        """
        List backups in the account.

        Args:
            options: Page, page size and filters
            cancel: Optional cancellation token

        Returns:
            PaginatedResponse containing Backups

        """
        return self._client.get(
            f"{API_ROOT}/backups",
            options=options or ListOptions(),
            shape=DataShape.LIST,
            parser=Backup.from_dict,
            cancel=cancel,
        )

    def iterate(self, options: ListOptions | None = None, *, cancel: CancelToken | None = None) -> Iterator[Backup]:
        """Iterate through backups across all pages."""
        return self._client.paginate(
            f"{API_ROOT}/backups",
            options=options,
            shape=DataShape.LIST,
            parser=Backup.from_dict,
            cancel=cancel,
        )

    def list_by_server(
        self,
        server_id: str,
        options: ListOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> PaginatedResponse[Backup]:
        """
        List backups taken from one server.

        Args:
            server_id: Server (VM) identifier
            options: Page, page size and filters
            cancel: Optional cancellation token

        Returns:
            PaginatedResponse containing Backups

        """
        return self._client.get(
            f"{API_ROOT}/vm/backups/{server_id}",
            options=options or ListOptions(),
            shape=DataShape.LIST,
            parser=Backup.from_dict,
            cancel=cancel,
        )

    def get(self, identifier: str, *, cancel: CancelToken | None = None) -> Backup:
        """Get a backup by identifier."""
        return self._client.get(
            f"{API_ROOT}/backup/{identifier}",
            shape=DataShape.OBJECT,
            parser=Backup.from_dict,
            key="backup",
            cancel=cancel,
        )

    def create(
        self,
        vm_identifier: str,
        name: str,
        *,
        cancel: CancelToken | None = None,
    ) -> None:
        """
        Take a backup of a server.

        Args:
            vm_identifier: Server to back up
            name: Backup name
            cancel: Optional cancellation token

        """
        self._client.post(
            f"{API_ROOT}/backup/add",
            {"vmIdentifier": vm_identifier, "name": name},
            cancel=cancel,
        )

    def delete(
        self,
        identifier: str,
        reason: str = "",
        note: str = "",
        *,
        cancel: CancelToken | None = None,
    ) -> None:
        """
        Delete a backup.

        Args:
            identifier: The backup identifier
            reason: Deletion reason, recorded by the API for statistics
            note: Additional deletion note
            cancel: Optional cancellation token

        """
        body = {
            "backupIdentifier": identifier,
            "deleteStatistic": {"reason": reason, "note": note},
        }
        self._client.delete(f"{API_ROOT}/backup", body, cancel=cancel)

    def create_server_from_backup(self, identifier: str, *, cancel: CancelToken | None = None) -> None:
        """Provision a new server from an existing backup."""
        self._client.post(f"{API_ROOT}/backups/create", {"backupIdentifier": identifier}, cancel=cancel)

    def enable_auto_backup(self, request: EnableAutoBackupRequest, *, cancel: CancelToken | None = None) -> None:
        """Turn on scheduled backups for a server."""
        self._client.post(f"{API_ROOT}/backups/enable/auto", request, cancel=cancel)

    def rename(self, identifier: str, new_name: str, *, cancel: CancelToken | None = None) -> None:
        """Rename a backup."""
        self._client.put(
            f"{API_ROOT}/backups/update/name",
            {"identifier": identifier, "new_name": new_name},
            cancel=cancel,
        )

    # -------------------------------------------------------------------------
    # Backup policies
    # -------------------------------------------------------------------------

    def list_policies(
        self,
        options: ListOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> PaginatedResponse[BackupPolicy]:
        """
        List backup policies.

        Args:
            options: Page, page size and filters
            cancel: Optional cancellation token

        Returns:
            PaginatedResponse containing BackupPolicies (with vms_count set)

        """
        return self._client.get(
            f"{API_ROOT}/backups/policy/all",
            options=options or ListOptions(),
            shape=DataShape.ROWS,
            parser=BackupPolicy.from_dict,
            cancel=cancel,
        )

    def iterate_policies(
        self,
        options: ListOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> Iterator[BackupPolicy]:
        """Iterate through backup policies across all pages."""
        return self._client.paginate(
            f"{API_ROOT}/backups/policy/all",
            options=options,
            shape=DataShape.ROWS,
            parser=BackupPolicy.from_dict,
            cancel=cancel,
        )

    def get_policy(self, identifier: str, *, cancel: CancelToken | None = None) -> BackupPolicy:
        """Get a backup policy, including the servers it is attached to."""
        return self._client.get(
            f"{API_ROOT}/backups/policy/{identifier}",
            shape=DataShape.OBJECT,
            parser=BackupPolicy.from_dict,
            cancel=cancel,
        )

    def create_policy(self, request: CreateBackupPolicyRequest, *, cancel: CancelToken | None = None) -> None:
        """Create a backup policy."""
        self._client.post(f"{API_ROOT}/backups/policy/create", request, cancel=cancel)

    def delete_policy(self, policy_id: str, identifier: str, *, cancel: CancelToken | None = None) -> None:
        """
        Delete a backup policy.

        Args:
            policy_id: Numeric policy id, sent in the body
            identifier: Policy identifier, used in the path
            cancel: Optional cancellation token

        """
        self._client.delete(
            f"{API_ROOT}/backup/policy/{identifier}",
            {"policyId": policy_id},
            cancel=cancel,
        )

    def set_policy_retention(self, policy_id: str, keep: int, *, cancel: CancelToken | None = None) -> None:
        """Set how many backups a policy retains."""
        self._client.post(
            f"{API_ROOT}/backups/policy/keep",
            {"policyId": policy_id, "keep": keep},
            cancel=cancel,
        )

    def attach_policy(
        self,
        policy_id: str,
        vms: builtins.list[str],
        *,
        cancel: CancelToken | None = None,
    ) -> None:
        """Attach a backup policy to servers."""
        self._client.post(
            f"{API_ROOT}/backups/policy/attach",
            {"policyId": policy_id, "vms": vms},
            cancel=cancel,
        )

    def detach_policy(
        self,
        policy_id: str,
        vms: builtins.list[str],
        *,
        cancel: CancelToken | None = None,
    ) -> None:
        """Detach a backup policy from servers."""
        self._client.post(
            f"{API_ROOT}/backups/policy/detach",
            {"policyId": policy_id, "vms": vms},
            cancel=cancel,
        )


# =============================================================================
# Firewall Group Operations
# =============================================================================


FIREWALL_ROOT = f"{API_ROOT}/firewall"


class FirewallGroupOperations:
    """Operations for firewall groups and their server assignments."""

    def __init__(self, client: APIClient):
        self._client = client

    def create(
        self,
        group_name: str,
        rules: builtins.list[FirewallRule] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> None:
        """
        Create a firewall group.

        Args:
            group_name: Display name of the group
            rules: Initial inbound/outbound rules
            cancel: Optional cancellation token

        """
        body: dict = {"groupName": group_name}
        if rules:
            body["rules"] = [rule.to_dict() for rule in rules]
        self._client.post(f"{FIREWALL_ROOT}/create/group", body, cancel=cancel)

    def list(
        self,
        options: ListOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> PaginatedResponse[FirewallGroup]:
        """
        List firewall groups.

        Args:
            options: Page, page size and filters
            cancel: Optional cancellation token

        Returns:
            PaginatedResponse containing FirewallGroups with their rules

        """
        return self._client.get(
            f"{FIREWALL_ROOT}/groups",
            options=options or ListOptions(),
            shape=DataShape.LIST,
            parser=FirewallGroup.from_dict,
            cancel=cancel,
        )

    def iterate(
        self,
        options: ListOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> Iterator[FirewallGroup]:
        """Iterate through firewall groups across all pages."""
        return self._client.paginate(
            f"{FIREWALL_ROOT}/groups",
            options=options,
            shape=DataShape.LIST,
            parser=FirewallGroup.from_dict,
            cancel=cancel,
        )

    def get(self, group_id: str, *, cancel: CancelToken | None = None) -> FirewallGroupDetail:
        """Get a firewall group with its rules and attached servers."""
        return self._client.get(
            f"{FIREWALL_ROOT}/group/{group_id}",
            shape=DataShape.OBJECT,
            parser=FirewallGroupDetail.from_dict,
            cancel=cancel,
        )

    def delete(self, group_id: str, *, cancel: CancelToken | None = None) -> None:
        """Delete a firewall group."""
        self._client.delete(f"{FIREWALL_ROOT}/delete/group", {"groupId": group_id}, cancel=cancel)

    def update(self, group_id: str, rule: FirewallRule, *, cancel: CancelToken | None = None) -> None:
        """Add or replace a rule in a firewall group."""
        self._client.post(f"{FIREWALL_ROOT}/groups/{group_id}", rule, cancel=cancel)

    def assign(self, group_id: str, vm_id: str, *, cancel: CancelToken | None = None) -> None:
        """Assign a firewall group to a server."""
        self._client.post(f"{FIREWALL_ROOT}/setGroupVm", {"vmId": vm_id, "groupId": group_id}, cancel=cancel)

    def attach(self, group_id: str, vm_id: str, *, cancel: CancelToken | None = None) -> None:
        self._client.post(f"{FIREWALL_ROOT}/attach/group", {"vmId": vm_id, "groupId": group_id}, cancel=cancel)

    def detach(self, group_id: str, vm_id: str, *, cancel: CancelToken | None = None) -> None:
        self._client.post(f"{FIREWALL_ROOT}/detach/group", {"vmId": vm_id, "groupId": group_id}, cancel=cancel)

    def remove_from_server(self, group_id: str, vm_id: str, *, cancel: CancelToken | None = None) -> None:
        """Remove a firewall group from a server."""
        self._client.delete(
            f"{FIREWALL_ROOT}/firewall/removeGroupVm",
            {"groupId": group_id, "vmId": vm_id},
            cancel=cancel,
        )


# =============================================================================
# Project Operations
# =============================================================================


PROJECTS_ROOT = f"{API_ROOT}/projects"


class ProjectOperations:
    """Operations for managing projects."""

    def __init__(self, client: APIClient):
        self._client = client

    def list(
        self,
        options: ListOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> PaginatedResponse[Project]:
        """
        List projects in the account.

        Args:
            options: Page, page size and filters
            cancel: Optional cancellation token

        Returns:
            PaginatedResponse containing Projects

        """
        return self._client.get(
            PROJECTS_ROOT,
            options=options or ListOptions(),
            shape=DataShape.ROWS,
            parser=Project.from_dict,
            cancel=cancel,
        )

    def iterate(self, options: ListOptions | None = None, *, cancel: CancelToken | None = None) -> Iterator[Project]:
        """Iterate through projects across all pages."""
        return self._client.paginate(
            PROJECTS_ROOT,
            options=options,
            shape=DataShape.ROWS,
            parser=Project.from_dict,
            cancel=cancel,
        )

    def get(self, identifier: str, *, cancel: CancelToken | None = None) -> Project:
        """
        Get a project by identifier.

        Args:
            identifier: The project identifier
            cancel: Optional cancellation token

        Returns:
            Project details

        """
        return self._client.get(
            f"{PROJECTS_ROOT}/{identifier}",
            shape=DataShape.OBJECT,
            parser=Project.from_dict,
            cancel=cancel,
        )

    def create(self, request: CreateProjectRequest, *, cancel: CancelToken | None = None) -> None:
        """Create a project."""
        self._client.post(f"{PROJECTS_ROOT}/add", request, cancel=cancel)

    def set_default(self, identifier: str, *, cancel: CancelToken | None = None) -> None:
        """Make a project the account default."""
        self._client.post(f"{PROJECTS_ROOT}/set/default", {"projectIdentifier": identifier}, cancel=cancel)

    def list_other_servers(
        self,
        project_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> PaginatedResponse[Server]:
        """List servers that do not belong to the given project."""
        return self._client.get(
            f"{PROJECTS_ROOT}/another/vms?projectId={urllib.parse.quote(project_id)}",
            shape=DataShape.LIST,
            parser=Server.from_dict,
            cancel=cancel,
        )

    def move_servers(self, vm_identifier: str, project_id: str, *, cancel: CancelToken | None = None) -> None:
        """Move a server into a project."""
        self._client.post(
            f"{PROJECTS_ROOT}/move/vms",
            {"vmsIdentifiers": [vm_identifier], "projectId": project_id},
            cancel=cancel,
        )

    def assign_server(self, vm_identifier: str, project_id: str, *, cancel: CancelToken | None = None) -> None:
        self._client.post(
            f"{PROJECTS_ROOT}/vm",
            {"vmIdentifier": vm_identifier, "projectId": project_id},
            cancel=cancel,
        )

    def list_domains(
        self,
        project_identifier: str,
        *,
        cancel: CancelToken | None = None,
    ) -> PaginatedResponse[Domain]:
        """List DNS domains attached to a project."""
        return self._client.get(
            f"{API_ROOT}/domains/project/{project_identifier}",
            shape=DataShape.LIST,
            parser=Domain.from_dict,
            cancel=cancel,
        )

    def delete(self, project_id: str, *, cancel: CancelToken | None = None) -> None:
        """
        Delete a project.

        Args:
            project_id: The project ID
            cancel: Optional cancellation token

        """
        self._client.delete(f"{PROJECTS_ROOT}/{project_id}", cancel=cancel)

    def user_limits(self, *, cancel: CancelToken | None = None) -> UserLimit:
        """Get product limits for the account."""
        return self._client.get(
            f"{API_ROOT}/profile/product/limits",
            shape=DataShape.OBJECT,
            parser=UserLimit.from_dict,
            cancel=cancel,
        )
