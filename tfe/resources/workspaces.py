"""Workspaces.

API docs: https://developer.hashicorp.com/terraform/cloud-docs/api-docs/workspaces
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import quote

from tfe.errors import InvalidValueError, RequiredValueError
from tfe.resources.base import APIModel, ListOptions, Relation, Resource, ResourceList
from tfe.validations import require_id, valid_string, valid_string_id

EXECUTION_MODES = frozenset({"agent", "local", "remote"})


class WorkspaceActions(APIModel):
    is_destroyable: bool = False


class WorkspacePermissions(APIModel):
    can_destroy: bool = False
    can_force_unlock: bool = False
    can_lock: bool = False
    can_queue_apply: bool = False
    can_queue_destroy: bool = False
    can_queue_run: bool = False
    can_read_settings: bool = False
    can_unlock: bool = False
    can_update: bool = False
    can_update_variable: bool = False


class VCSRepo(APIModel):
    branch: str = ""
    identifier: str = ""
    ingress_submodules: bool = False
    oauth_token_id: str = ""
    repository_http_url: str = ""
    service_provider: str = ""


class Workspace(APIModel):
    id: str
    name: str = ""
    actions: WorkspaceActions | None = None
    allow_destroy_plan: bool = False
    auto_apply: bool = False
    created_at: datetime | None = None
    description: str = ""
    environment: str = ""
    execution_mode: str = ""
    file_triggers_enabled: bool = False
    locked: bool = False
    permissions: WorkspacePermissions | None = None
    queue_all_runs: bool = False
    resource_count: int = 0
    source: str = ""
    speculative_enabled: bool = False
    tag_names: list[str] = []
    terraform_version: str = ""
    trigger_prefixes: list[str] = []
    updated_at: datetime | None = None
    vcs_repo: VCSRepo | None = None
    working_directory: str = ""

    # Relations
    current_run: Relation | None = None
    organization: Relation | None = None
    project: Relation | None = None


class WorkspaceListOptions(ListOptions):
    search: str | None = None
    tags: list[str] | None = None
    include: list[str] | None = None

    def _extra_query(self) -> dict[str, Any]:
        return {
            "search[name]": self.search,
            "search[tags]": ",".join(self.tags) if self.tags else None,
            "include": self.include,
        }


class VCSRepoOptions(APIModel):
    branch: str | None = None
    identifier: str | None = None
    ingress_submodules: bool | None = None
    oauth_token_id: str | None = None


class _WorkspaceOptions(APIModel):
    name: str | None = None
    allow_destroy_plan: bool | None = None
    auto_apply: bool | None = None
    description: str | None = None
    execution_mode: str | None = None
    file_triggers_enabled: bool | None = None
    queue_all_runs: bool | None = None
    speculative_enabled: bool | None = None
    terraform_version: str | None = None
    trigger_prefixes: list[str] | None = None
    vcs_repo: VCSRepoOptions | None = None
    working_directory: str | None = None
    project_id: str | None = None

    def check(self) -> None:
        if self.name is not None and not valid_string_id(self.name):
            raise InvalidValueError("workspace name")
        if self.execution_mode is not None and self.execution_mode not in EXECUTION_MODES:
            raise InvalidValueError("execution mode")
        if self.project_id is not None and not valid_string_id(self.project_id):
            raise InvalidValueError("project ID")

    def relationships(self) -> dict[str, tuple[str, str] | None]:
        return {"project": ("projects", self.project_id) if self.project_id else None}


class WorkspaceCreateOptions(_WorkspaceOptions):
    def check(self) -> None:
        if not valid_string(self.name):
            raise RequiredValueError("workspace name")
        super().check()


class WorkspaceUpdateOptions(_WorkspaceOptions):
    pass


def _by_name(organization: str, workspace: str) -> str:
    return (
        f"organizations/{quote(organization, safe='')}"
        f"/workspaces/{quote(workspace, safe='')}"
    )


def _by_id(workspace_id: str) -> str:
    return f"workspaces/{quote(workspace_id, safe='')}"


class Workspaces(Resource):
    """``client.workspaces``"""

    def list(
        self, organization: str, options: WorkspaceListOptions | None = None
    ) -> ResourceList[Workspace]:
        """List the workspaces of an organization."""
        require_id(organization, "organization")
        return self._list(
            f"organizations/{quote(organization, safe='')}/workspaces", Workspace, options
        )

    def create(self, organization: str, options: WorkspaceCreateOptions) -> Workspace:
        require_id(organization, "organization")
        options.check()
        return self._send(
            "POST",
            f"organizations/{quote(organization, safe='')}/workspaces",
            Workspace,
            "workspaces",
            options.attributes(exclude={"project_id"}),
            options.relationships(),
        )

    def read(self, organization: str, workspace: str) -> Workspace:
        """Read a workspace by organization and workspace name."""
        require_id(organization, "organization")
        require_id(workspace, "workspace name")
        return self._get(_by_name(organization, workspace), Workspace)

    def read_by_id(self, workspace_id: str) -> Workspace:
        require_id(workspace_id, "workspace ID")
        return self._get(_by_id(workspace_id), Workspace)

    def update(
        self, organization: str, workspace: str, options: WorkspaceUpdateOptions
    ) -> Workspace:
        require_id(organization, "organization")
        require_id(workspace, "workspace name")
        options.check()
        return self._send(
            "PATCH",
            _by_name(organization, workspace),
            Workspace,
            "workspaces",
            options.attributes(exclude={"project_id"}),
            options.relationships(),
        )

    def update_by_id(self, workspace_id: str, options: WorkspaceUpdateOptions) -> Workspace:
        require_id(workspace_id, "workspace ID")
        options.check()
        return self._send(
            "PATCH",
            _by_id(workspace_id),
            Workspace,
            "workspaces",
            options.attributes(exclude={"project_id"}),
            options.relationships(),
        )

    def delete(self, organization: str, workspace: str) -> None:
        require_id(organization, "organization")
        require_id(workspace, "workspace name")
        self._transport.request("DELETE", _by_name(organization, workspace))

    def delete_by_id(self, workspace_id: str) -> None:
        require_id(workspace_id, "workspace ID")
        self._transport.request("DELETE", _by_id(workspace_id))
