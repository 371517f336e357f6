"""Runs: one plan (and optionally apply) of a workspace's configuration.

API docs: https://developer.hashicorp.com/terraform/cloud-docs/api-docs/run
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import quote

from pydantic import Field

from tfe.errors import InvalidValueError, RequiredValueError
from tfe.resources.base import APIModel, ListOptions, Relation, Resource, ResourceList
from tfe.validations import require_id, valid_string_id


class RunStatus(str, Enum):
    APPLIED = "applied"
    APPLY_QUEUED = "apply_queued"
    APPLYING = "applying"
    CANCELED = "canceled"
    CONFIRMED = "confirmed"
    COST_ESTIMATED = "cost_estimated"
    COST_ESTIMATING = "cost_estimating"
    DISCARDED = "discarded"
    ERRORED = "errored"
    FETCHING = "fetching"
    FETCHING_COMPLETED = "fetching_completed"
    PENDING = "pending"
    PLAN_QUEUED = "plan_queued"
    PLANNED = "planned"
    PLANNED_AND_FINISHED = "planned_and_finished"
    PLANNING = "planning"
    POLICY_CHECKED = "policy_checked"
    POLICY_CHECKING = "policy_checking"
    POLICY_OVERRIDE = "policy_override"
    POLICY_SOFT_FAILED = "policy_soft_failed"
    POST_PLAN_COMPLETED = "post_plan_completed"
    POST_PLAN_RUNNING = "post_plan_running"
    PRE_APPLY_RUNNING = "pre_apply_running"
    PRE_PLAN_RUNNING = "pre_plan_running"
    QUEUING = "queuing"


class RunSource(str, Enum):
    API = "tfe-api"
    CONFIGURATION_VERSION = "tfe-configuration-version"
    UI = "tfe-ui"


class RunActions(APIModel):
    is_cancelable: bool = False
    is_confirmable: bool = False
    is_discardable: bool = False
    is_force_cancelable: bool = False


class RunPermissions(APIModel):
    can_apply: bool = False
    can_cancel: bool = False
    can_discard: bool = False
    can_force_cancel: bool = False
    can_force_execute: bool = False


class RunStatusTimestamps(APIModel):
    applied_at: datetime | None = None
    applying_at: datetime | None = None
    canceled_at: datetime | None = None
    confirmed_at: datetime | None = None
    discarded_at: datetime | None = None
    errored_at: datetime | None = None
    force_canceled_at: datetime | None = None
    plan_queueable_at: datetime | None = None
    plan_queued_at: datetime | None = None
    planned_and_finished_at: datetime | None = None
    planned_at: datetime | None = None
    planning_at: datetime | None = None
    policy_checked_at: datetime | None = None


class Run(APIModel):
    id: str
    actions: RunActions | None = None
    auto_apply: bool = False
    created_at: datetime | None = None
    force_cancel_available_at: datetime | None = None
    has_changes: bool = False
    is_destroy: bool = False
    message: str = ""
    permissions: RunPermissions | None = None
    plan_only: bool = False
    refresh: bool = False
    refresh_only: bool = False
    source: RunSource | str = Field("", union_mode="left_to_right")
    status: RunStatus | str = Field("", union_mode="left_to_right")
    status_timestamps: RunStatusTimestamps | None = None
    target_addrs: list[str] | None = None

    # Relations
    apply: Relation | None = None
    configuration_version: Relation | None = None
    cost_estimate: Relation | None = None
    plan: Relation | None = None
    policy_checks: list[Relation] | None = None
    workspace: Relation | None = None


class RunListOptions(ListOptions):
    status: list[str] | None = None
    source: list[str] | None = None
    operation: list[str] | None = None
    include: list[str] | None = None

    def _extra_query(self) -> dict[str, Any]:
        return {
            "filter[status]": self.status,
            "filter[source]": self.source,
            "filter[operation]": self.operation,
            "include": self.include,
        }


class RunCreateOptions(APIModel):
    workspace_id: str | None = None
    configuration_version_id: str | None = None
    auto_apply: bool | None = None
    is_destroy: bool | None = None
    message: str | None = None
    plan_only: bool | None = None
    refresh: bool | None = None
    refresh_only: bool | None = None
    replace_addrs: list[str] | None = None
    target_addrs: list[str] | None = None

    def check(self) -> None:
        if self.workspace_id is None:
            raise RequiredValueError("workspace")
        if not valid_string_id(self.workspace_id):
            raise InvalidValueError("workspace ID")
        if self.configuration_version_id is not None and not valid_string_id(
            self.configuration_version_id
        ):
            raise InvalidValueError("configuration version ID")

    def relationships(self) -> dict[str, tuple[str, str] | None]:
        return {
            "workspace": ("workspaces", self.workspace_id) if self.workspace_id else None,
            "configuration-version": (
                ("configuration-versions", self.configuration_version_id)
                if self.configuration_version_id
                else None
            ),
        }


class RunActionOptions(APIModel):
    """Body of ``apply``, ``cancel``, ``force-cancel`` and ``discard`` actions."""

    comment: str | None = None


def _run_path(run_id: str) -> str:
    return f"runs/{quote(run_id, safe='')}"


class Runs(Resource):
    """``client.runs``"""

    def list(self, workspace_id: str, options: RunListOptions | None = None) -> ResourceList[Run]:
        """List the runs of a workspace, newest first."""
        require_id(workspace_id, "workspace ID")
        return self._list(f"workspaces/{quote(workspace_id, safe='')}/runs", Run, options)

    def create(self, options: RunCreateOptions) -> Run:
        """Queue a new run."""
        options.check()
        return self._send(
            "POST",
            "runs",
            Run,
            "runs",
            options.attributes(exclude={"workspace_id", "configuration_version_id"}),
            options.relationships(),
        )

    def read(self, run_id: str, include: list[str] | None = None) -> Run:
        require_id(run_id, "run ID")
        return self._get(_run_path(run_id), Run, params={"include": include})

    def apply(self, run_id: str, options: RunActionOptions | None = None) -> None:
        """Confirm a run that is paused waiting for confirmation."""
        self._run_action(run_id, "apply", options)

    def cancel(self, run_id: str, options: RunActionOptions | None = None) -> None:
        """Interrupt a run that is planning or applying."""
        self._run_action(run_id, "cancel", options)

    def force_cancel(self, run_id: str, options: RunActionOptions | None = None) -> None:
        """End a run that did not stop after :meth:`cancel`."""
        self._run_action(run_id, "force-cancel", options)

    def discard(self, run_id: str, options: RunActionOptions | None = None) -> None:
        """Skip the apply of a run waiting for confirmation."""
        self._run_action(run_id, "discard", options)

    def _run_action(self, run_id: str, action: str, options: RunActionOptions | None) -> None:
        require_id(run_id, "run ID")
        body = (options or RunActionOptions()).attributes()
        self._action(f"{_run_path(run_id)}/actions/{action}", body)
