"""Cost estimations run between plan and apply."""

from __future__ import annotations

import threading
from datetime import datetime
from enum import Enum
from urllib.parse import quote

from pydantic import Field

from tfe.logreader import LogReader, open_log
from tfe.resources.base import APIModel, Resource, StatusTimestamps
from tfe.validations import require_id


class CostEstimationStatus(str, Enum):
    CANCELED = "canceled"
    ERRORED = "errored"
    FINISHED = "finished"
    PENDING = "pending"
    QUEUED = "queued"
    SKIPPED_DUE_TO_TARGETING = "skipped_due_to_targeting"


COST_ESTIMATION_TERMINAL_STATUSES = frozenset(
    {
        CostEstimationStatus.CANCELED,
        CostEstimationStatus.ERRORED,
        CostEstimationStatus.FINISHED,
        CostEstimationStatus.SKIPPED_DUE_TO_TARGETING,
    }
)


class CostEstimationStatusTimestamps(StatusTimestamps):
    finished_at: datetime | None = None
    pending_at: datetime | None = None
    skipped_due_to_targeting_at: datetime | None = None


class CostEstimation(APIModel):
    id: str
    delta_monthly_cost: str = ""
    error_message: str = ""
    log_read_url: str = ""
    matched_resources_count: int = 0
    prior_monthly_cost: str = ""
    proposed_monthly_cost: str = ""
    resources_count: int = 0
    status: CostEstimationStatus | str = Field("", union_mode="left_to_right")
    status_timestamps: CostEstimationStatusTimestamps | None = None
    unmatched_resources_count: int = 0


class CostEstimations(Resource):
    """``client.cost_estimations``"""

    def read(self, cost_estimation_id: str) -> CostEstimation:
        require_id(cost_estimation_id, "cost estimation ID")
        return self._get(f"cost-estimations/{quote(cost_estimation_id, safe='')}", CostEstimation)

    def logs(self, cost_estimation_id: str, cancel: threading.Event | None = None) -> LogReader:
        estimation = self.read(cost_estimation_id)
        return open_log(
            self._transport,
            "cost estimation",
            estimation,
            self.read,
            COST_ESTIMATION_TERMINAL_STATUSES,
            cancel,
        )
