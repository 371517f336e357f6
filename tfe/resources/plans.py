"""Plans: the plan phase of a run.

API docs: https://developer.hashicorp.com/terraform/cloud-docs/api-docs/plans
"""

from __future__ import annotations

import threading
from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import quote

from pydantic import Field

from tfe.jsonapi import CONTENT_TYPE_JSON
from tfe.logreader import LogReader, open_log
from tfe.resources.base import APIModel, Resource, StatusTimestamps
from tfe.validations import require_id


class PlanStatus(str, Enum):
    CANCELED = "canceled"
    CREATED = "created"
    ERRORED = "errored"
    FINISHED = "finished"
    MFA_WAITING = "mfa_waiting"
    PENDING = "pending"
    QUEUED = "queued"
    RUNNING = "running"
    UNREACHABLE = "unreachable"


PLAN_TERMINAL_STATUSES = frozenset(
    {PlanStatus.CANCELED, PlanStatus.ERRORED, PlanStatus.FINISHED, PlanStatus.UNREACHABLE}
)


class PlanStatusTimestamps(StatusTimestamps):
    finished_at: datetime | None = None
    force_canceled_at: datetime | None = None
    started_at: datetime | None = None


class Plan(APIModel):
    id: str
    has_changes: bool = False
    log_read_url: str = ""
    resource_additions: int = 0
    resource_changes: int = 0
    resource_destructions: int = 0
    resource_imports: int = 0
    status: PlanStatus | str = Field("", union_mode="left_to_right")
    status_timestamps: PlanStatusTimestamps | None = None


class Plans(Resource):
    """``client.plans``"""

    def read(self, plan_id: str) -> Plan:
        """Read a plan by its ID."""
        require_id(plan_id, "plan ID")
        return self._get(f"plans/{quote(plan_id, safe='')}", Plan)

    def logs(self, plan_id: str, cancel: threading.Event | None = None) -> LogReader:
        """Follow the logs of a plan until it reaches a terminal status."""
        plan = self.read(plan_id)
        return open_log(self._transport, "plan", plan, self.read, PLAN_TERMINAL_STATUSES, cancel)

    def read_json_output(self, plan_id: str) -> dict[str, Any]:
        """Return the JSON execution plan (``terraform show -json`` format)."""
        require_id(plan_id, "plan ID")
        return self._transport.request_json(
            "GET", f"plans/{quote(plan_id, safe='')}/json-output", accept=CONTENT_TYPE_JSON
        )
