"""Applies: the apply phase of a run.

API docs: https://developer.hashicorp.com/terraform/cloud-docs/api-docs/applies
"""

from __future__ import annotations

import threading
from datetime import datetime
from enum import Enum
from urllib.parse import quote

from pydantic import Field

from tfe.logreader import LogReader, open_log
from tfe.resources.base import APIModel, Resource, StatusTimestamps
from tfe.validations import require_id


class ApplyStatus(str, Enum):
    CANCELED = "canceled"
    CREATED = "created"
    ERRORED = "errored"
    FINISHED = "finished"
    MFA_WAITING = "mfa_waiting"
    PENDING = "pending"
    QUEUED = "queued"
    RUNNING = "running"
    UNREACHABLE = "unreachable"


APPLY_TERMINAL_STATUSES = frozenset(
    {ApplyStatus.CANCELED, ApplyStatus.ERRORED, ApplyStatus.FINISHED, ApplyStatus.UNREACHABLE}
)


class ApplyStatusTimestamps(StatusTimestamps):
    finished_at: datetime | None = None
    force_canceled_at: datetime | None = None
    started_at: datetime | None = None


class Apply(APIModel):
    id: str
    log_read_url: str = ""
    resource_additions: int = 0
    resource_changes: int = 0
    resource_destructions: int = 0
    resource_imports: int = 0
    status: ApplyStatus | str = Field("", union_mode="left_to_right")
    status_timestamps: ApplyStatusTimestamps | None = None


class Applies(Resource):
    """``client.applies``"""

    def read(self, apply_id: str) -> Apply:
        """Read an apply by its ID."""
        require_id(apply_id, "apply ID")
        return self._get(f"applies/{quote(apply_id, safe='')}", Apply)

    def logs(self, apply_id: str, cancel: threading.Event | None = None) -> LogReader:
        """Follow the logs of an apply until it reaches a terminal status.

        The apply is read first, so a missing apply fails here rather than
        on the first read of the stream.
        """
        apply = self.read(apply_id)
        return open_log(self._transport, "apply", apply, self.read, APPLY_TERMINAL_STATUSES, cancel)
