"""One facade per API resource, each exposed as an attribute of :class:`tfe.Client`."""

from tfe.resources.applies import Applies, Apply, ApplyStatus
from tfe.resources.base import ListOptions, LoggedResource, Pagination, Relation, ResourceList
from tfe.resources.cost_estimations import CostEstimation, CostEstimations, CostEstimationStatus
from tfe.resources.organizations import (
    Organization,
    OrganizationCreateOptions,
    OrganizationListOptions,
    Organizations,
    OrganizationUpdateOptions,
)
from tfe.resources.plans import Plan, Plans, PlanStatus
from tfe.resources.policy_checks import (
    PolicyCheck,
    PolicyCheckListOptions,
    PolicyChecks,
    PolicyStatus,
)
from tfe.resources.runs import (
    Run,
    RunActionOptions,
    RunCreateOptions,
    RunListOptions,
    Runs,
    RunStatus,
)
from tfe.resources.workspaces import (
    Workspace,
    WorkspaceCreateOptions,
    WorkspaceListOptions,
    Workspaces,
    WorkspaceUpdateOptions,
)

__all__ = [
    # Shared
    "ListOptions",
    "LoggedResource",
    "Pagination",
    "Relation",
    "ResourceList",
    # Organizations / workspaces
    "Organization",
    "OrganizationCreateOptions",
    "OrganizationListOptions",
    "OrganizationUpdateOptions",
    "Organizations",
    "Workspace",
    "WorkspaceCreateOptions",
    "WorkspaceListOptions",
    "WorkspaceUpdateOptions",
    "Workspaces",
    # Runs and their phases
    "Run",
    "RunActionOptions",
    "RunCreateOptions",
    "RunListOptions",
    "RunStatus",
    "Runs",
    "Plan",
    "PlanStatus",
    "Plans",
    "Apply",
    "ApplyStatus",
    "Applies",
    "CostEstimation",
    "CostEstimationStatus",
    "CostEstimations",
    "PolicyCheck",
    "PolicyCheckListOptions",
    "PolicyStatus",
    "PolicyChecks",
]
