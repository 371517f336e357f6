"""Sentinel policy checks of a run.

API docs: https://developer.hashicorp.com/terraform/cloud-docs/api-docs/policy-checks
"""

from __future__ import annotations

import io
import threading
from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import quote

from pydantic import Field

from tfe import logreader
from tfe.errors import ReadCanceledError
from tfe.jsonapi import CONTENT_TYPE_JSON, decode_document
from tfe.resources.base import APIModel, ListOptions, Resource, ResourceList, StatusTimestamps
from tfe.validations import require_id


class PolicyScope(str, Enum):
    ORGANIZATION = "organization"
    WORKSPACE = "workspace"


class PolicyStatus(str, Enum):
    CANCELED = "canceled"
    ERRORED = "errored"
    HARD_FAILED = "hard_failed"
    OVERRIDDEN = "overridden"
    PASSES = "passes"
    PENDING = "pending"
    QUEUED = "queued"
    SOFT_FAILED = "soft_failed"
    UNREACHABLE = "unreachable"


POLICY_CHECK_TERMINAL_STATUSES = frozenset(
    {
        PolicyStatus.CANCELED,
        PolicyStatus.ERRORED,
        PolicyStatus.HARD_FAILED,
        PolicyStatus.OVERRIDDEN,
        PolicyStatus.PASSES,
        PolicyStatus.SOFT_FAILED,
        PolicyStatus.UNREACHABLE,
    }
)


class PolicyActions(APIModel):
    is_overridable: bool = False


class PolicyPermissions(APIModel):
    can_override: bool = False


class PolicyResult(APIModel):
    advisory_failed: int = 0
    duration: int = 0
    hard_failed: int = 0
    passed: int = 0
    result: bool = False
    soft_failed: int = 0
    total_failed: int = 0


class PolicyStatusTimestamps(StatusTimestamps):
    hard_failed_at: datetime | None = None
    passed_at: datetime | None = None
    soft_failed_at: datetime | None = None


class PolicyCheck(APIModel):
    id: str
    actions: PolicyActions | None = None
    permissions: PolicyPermissions | None = None
    result: PolicyResult | None = None
    scope: PolicyScope | str = Field("", union_mode="left_to_right")
    status: PolicyStatus | str = Field("", union_mode="left_to_right")
    status_timestamps: PolicyStatusTimestamps | None = None


class PolicyCheckListOptions(ListOptions):
    include: list[str] | None = None

    def _extra_query(self) -> dict[str, Any]:
        return {"include": self.include}


class PolicyChecks(Resource):
    """``client.policy_checks``"""

    def list(
        self, run_id: str, options: PolicyCheckListOptions | None = None
    ) -> ResourceList[PolicyCheck]:
        """List the policy checks of a run."""
        require_id(run_id, "run ID")
        return self._list(f"runs/{quote(run_id, safe='')}/policy-checks", PolicyCheck, options)

    def read(self, policy_check_id: str) -> PolicyCheck:
        require_id(policy_check_id, "policy check ID")
        return self._get(f"policy-checks/{quote(policy_check_id, safe='')}", PolicyCheck)

    def override(self, policy_check_id: str) -> PolicyCheck:
        """Override a soft-mandatory or warning policy."""
        require_id(policy_check_id, "policy check ID")
        payload = self._transport.request_json(
            "POST", f"policy-checks/{quote(policy_check_id, safe='')}/actions/override"
        )
        return PolicyCheck.model_validate(decode_document(payload))

    def logs(self, policy_check_id: str, cancel: threading.Event | None = None) -> io.BytesIO:
        """Return the output of a policy check once it has finished.

        Policy check output is not streamed: the API only serves it in one
        piece from ``policy-checks/:id/output``.  This call polls the check
        every :data:`tfe.logreader.POLL_INTERVAL` seconds until its status is
        terminal, then downloads the output.

        Raises:
            ReadCanceledError: *cancel* was set while waiting.
        """
        require_id(policy_check_id, "policy check ID")
        cancel = cancel or threading.Event()
        check = self.read(policy_check_id)
        while check.status not in POLICY_CHECK_TERMINAL_STATUSES:
            if cancel.wait(logreader.POLL_INTERVAL):
                raise ReadCanceledError()
            check = self.read(policy_check_id)

        response = self._transport.request(
            "GET",
            f"policy-checks/{quote(policy_check_id, safe='')}/output",
            accept=CONTENT_TYPE_JSON,
        )
        return io.BytesIO(response.content)
