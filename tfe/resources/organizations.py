"""Organizations.

API docs: https://developer.hashicorp.com/terraform/cloud-docs/api-docs/organizations
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import quote

from pydantic import model_validator

from tfe.errors import InvalidValueError, RequiredValueError
from tfe.resources.base import APIModel, ListOptions, Resource, ResourceList
from tfe.validations import require_id, valid_string, valid_string_id


class OrganizationPermissions(APIModel):
    can_create_team: bool = False
    can_create_workspace: bool = False
    can_destroy: bool = False
    can_update: bool = False
    can_update_oauth: bool = False


class Organization(APIModel):
    name: str = ""
    assessments_enforced: bool = False
    collaborator_auth_policy: str = ""
    cost_estimation_enabled: bool = False
    created_at: datetime | None = None
    email: str = ""
    external_id: str = ""
    owners_team_saml_role_id: str = ""
    permissions: OrganizationPermissions | None = None
    saml_enabled: bool = False
    session_remember: int | None = None
    session_timeout: int | None = None
    trial_expires_at: datetime | None = None
    two_factor_conformant: bool = False

    @model_validator(mode="before")
    @classmethod
    def _name_from_id(cls, data: Any) -> Any:
        # The organization name doubles as its resource id.
        if isinstance(data, dict) and not data.get("name") and data.get("id"):
            data = {**data, "name": data["id"]}
        return data


class OrganizationListOptions(ListOptions):
    query_text: str | None = None

    def _extra_query(self) -> dict[str, Any]:
        return {"q": self.query_text}


class OrganizationCreateOptions(APIModel):
    name: str
    email: str
    collaborator_auth_policy: str | None = None
    cost_estimation_enabled: bool | None = None
    owners_team_saml_role_id: str | None = None
    session_remember: int | None = None
    session_timeout: int | None = None

    def check(self) -> None:
        if not valid_string(self.name):
            raise RequiredValueError("name")
        if not valid_string_id(self.name):
            raise InvalidValueError("name")
        if not valid_string(self.email):
            raise RequiredValueError("email")


class OrganizationUpdateOptions(APIModel):
    name: str | None = None
    email: str | None = None
    collaborator_auth_policy: str | None = None
    cost_estimation_enabled: bool | None = None
    owners_team_saml_role_id: str | None = None
    session_remember: int | None = None
    session_timeout: int | None = None


def _path(organization: str) -> str:
    return f"organizations/{quote(organization, safe='')}"


class Organizations(Resource):
    """``client.organizations``"""

    def list(self, options: OrganizationListOptions | None = None) -> ResourceList[Organization]:
        """List the organizations visible to the current token."""
        return self._list("organizations", Organization, options)

    def create(self, options: OrganizationCreateOptions) -> Organization:
        options.check()
        return self._send(
            "POST", "organizations", Organization, "organizations", options.attributes()
        )

    def read(self, organization: str) -> Organization:
        require_id(organization, "organization")
        return self._get(_path(organization), Organization)

    def update(self, organization: str, options: OrganizationUpdateOptions) -> Organization:
        require_id(organization, "organization")
        if options.name is not None and not valid_string_id(options.name):
            raise InvalidValueError("name")
        return self._send(
            "PATCH", _path(organization), Organization, "organizations", options.attributes()
        )

    def delete(self, organization: str) -> None:
        require_id(organization, "organization")
        self._transport.request("DELETE", _path(organization))
