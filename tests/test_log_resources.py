"""Tests for the run phases that carry logs: applies, plans, cost estimations
and policy checks."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import httpx
import pytest

from tfe.errors import (
    InvalidValueError,
    MissingLogURLError,
    ReadCanceledError,
    ResourceNotFoundError,
)
from tfe.resources import (
    ApplyStatus,
    CostEstimationStatus,
    LoggedResource,
    PlanStatus,
    PolicyStatus,
)

from .conftest import API, ARCHIVIST, resource_doc

LOG_URL = f"{ARCHIVIST}/v1/object/log-token"


def _ok(doc: dict) -> httpx.Response:
    return httpx.Response(200, json=doc)


class TestApplies:
    def test_read(self, client, api):
        api.get(f"{API}/applies/apply-1").mock(
            return_value=_ok(
                resource_doc(
                    "applies",
                    "apply-1",
                    status="finished",
                    log_read_url=LOG_URL,
                    resource_additions=2,
                    status_timestamps={"finished-at": "2024-01-02T03:04:05Z"},
                )
            )
        )
        apply = client.applies.read("apply-1")
        assert apply.status is ApplyStatus.FINISHED
        assert apply.resource_additions == 2
        assert apply.status_timestamps.finished_at.year == 2024
        assert isinstance(apply, LoggedResource)

    def test_logs(self, client, api):
        api.get(f"{API}/applies/apply-1").mock(
            return_value=_ok(
                resource_doc("applies", "apply-1", status="finished", log_read_url=LOG_URL)
            )
        )
        api.get(LOG_URL).mock(
            side_effect=lambda request: httpx.Response(
                200, content=b"Apply complete!"[int(request.url.params["offset"]) :]
            )
        )
        assert client.applies.logs("apply-1").read() == b"Apply complete!"

    def test_missing_log_url(self, client, api):
        api.get(f"{API}/applies/apply-1").mock(
            return_value=_ok(resource_doc("applies", "apply-1", status="pending"))
        )
        with pytest.raises(MissingLogURLError, match="apply apply-1"):
            client.applies.logs("apply-1")

    def test_invalid_id(self, client):
        with pytest.raises(InvalidValueError, match="apply ID"):
            client.applies.read("apply 1")
        with pytest.raises(InvalidValueError, match="apply ID"):
            client.applies.logs("")


class TestPlans:
    def test_read(self, client, api):
        api.get(f"{API}/plans/plan-1").mock(
            return_value=_ok(
                resource_doc("plans", "plan-1", status="mfa_waiting", has_changes=True)
            )
        )
        plan = client.plans.read("plan-1")
        assert plan.status is PlanStatus.MFA_WAITING
        assert plan.has_changes

    def test_json_output(self, client, api):
        route = api.get(f"{API}/plans/plan-1/json-output").mock(
            return_value=_ok({"format_version": "1.2", "resource_changes": []})
        )
        assert client.plans.read_json_output("plan-1")["format_version"] == "1.2"
        assert route.calls.last.request.headers["Accept"] == "application/json"

    def test_not_found(self, client, api):
        api.get(f"{API}/plans/plan-404").mock(return_value=httpx.Response(404))
        with pytest.raises(ResourceNotFoundError):
            client.plans.logs("plan-404")


class TestCostEstimations:
    def test_read(self, client, api):
        api.get(f"{API}/cost-estimations/ce-1").mock(
            return_value=_ok(
                resource_doc(
                    "cost-estimates",
                    "ce-1",
                    status="skipped_due_to_targeting",
                    proposed_monthly_cost="12.50",
                )
            )
        )
        estimation = client.cost_estimations.read("ce-1")
        assert estimation.status is CostEstimationStatus.SKIPPED_DUE_TO_TARGETING
        assert estimation.proposed_monthly_cost == "12.50"

    def test_logs_skipped_estimation_ends_immediately(self, client, api):
        api.get(f"{API}/cost-estimations/ce-1").mock(
            return_value=_ok(
                resource_doc(
                    "cost-estimates",
                    "ce-1",
                    status="skipped_due_to_targeting",
                    log_read_url=LOG_URL,
                )
            )
        )
        api.get(LOG_URL).mock(return_value=httpx.Response(200, content=b""))
        cancel = MagicMock(spec=threading.Event)

        assert client.cost_estimations.logs("ce-1", cancel=cancel).read() == b""
        cancel.wait.assert_not_called()


class TestPolicyChecks:
    def test_list(self, client, api):
        route = api.get(f"{API}/runs/run-1/policy-checks").mock(
            return_value=_ok(
                {
                    "data": [
                        {
                            "id": "polchk-1",
                            "type": "policy-checks",
                            "attributes": {
                                "status": "soft_failed",
                                "scope": "organization",
                                "result": {"passed": 3, "soft-failed": 1, "total-failed": 1},
                                "actions": {"is-overridable": True},
                            },
                        }
                    ]
                }
            )
        )
        checks = client.policy_checks.list("run-1")
        check = checks.items[0]
        assert check.status is PolicyStatus.SOFT_FAILED
        assert check.result.soft_failed == 1
        assert check.actions.is_overridable
        assert route.called

    def test_override(self, client, api):
        route = api.post(f"{API}/policy-checks/polchk-1/actions/override").mock(
            return_value=_ok(resource_doc("policy-checks", "polchk-1", status="overridden"))
        )
        assert client.policy_checks.override("polchk-1").status is PolicyStatus.OVERRIDDEN
        assert route.called

    def test_logs_wait_for_terminal_status(self, client, api):
        statuses = iter(["queued", "pending", "passes"])
        api.get(f"{API}/policy-checks/polchk-1").mock(
            side_effect=lambda request: _ok(
                resource_doc("policy-checks", "polchk-1", status=next(statuses))
            )
        )
        output = api.get(f"{API}/policy-checks/polchk-1/output").mock(
            return_value=httpx.Response(200, content=b"Sentinel Result: true\n")
        )

        assert client.policy_checks.logs("polchk-1").read() == b"Sentinel Result: true\n"
        assert output.call_count == 1

    def test_passing_check_is_terminal(self, client, api):
        api.get(f"{API}/policy-checks/polchk-1").mock(
            return_value=_ok(resource_doc("policy-checks", "polchk-1", status="passes"))
        )
        api.get(f"{API}/policy-checks/polchk-1/output").mock(
            return_value=httpx.Response(200, content=b"Sentinel Result: true\n")
        )
        # A non-terminal status would wait on the already-set event and raise.
        cancel = threading.Event()
        cancel.set()

        assert client.policy_checks.read("polchk-1").status is PolicyStatus.PASSES
        reader = client.policy_checks.logs("polchk-1", cancel=cancel)
        assert reader.read() == b"Sentinel Result: true\n"

    def test_logs_canceled(self, client, api):
        api.get(f"{API}/policy-checks/polchk-1").mock(
            return_value=_ok(resource_doc("policy-checks", "polchk-1", status="pending"))
        )
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ReadCanceledError):
            client.policy_checks.logs("polchk-1", cancel=cancel)
