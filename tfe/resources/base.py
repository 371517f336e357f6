"""Shared data models and the facade base class for every API resource.

Attribute names on the wire are kebab-case (``log-read-url``); models use
snake_case fields with kebab-case aliases, so a decoded JSON:API resource
can be validated directly and option models can be dumped straight into a
request document.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from tfe.jsonapi import decode_document, encode_resource, pagination_meta

if TYPE_CHECKING:
    from tfe.transport import Transport


def kebab(name: str) -> str:
    return name.replace("_", "-")


class APIModel(BaseModel):
    """Base for everything decoded from or encoded into an API document."""

    model_config = ConfigDict(
        alias_generator=kebab,
        populate_by_name=True,
        extra="ignore",
    )

    def attributes(self, *, exclude: set[str] | None = None) -> dict[str, Any]:
        """Wire-named attribute values that are set (``None`` dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude=exclude, mode="json")


class Relation(APIModel):
    """Linkage to a related resource: ``{"id": ..., "type": ...}``."""

    id: str
    type: str | None = None


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


class ListOptions(APIModel):
    """Pagination options accepted by every list endpoint."""

    page_number: int | None = None
    page_size: int | None = None

    def query(self) -> dict[str, Any]:
        """Query parameters for this options object."""
        params: dict[str, Any] = {
            "page[number]": self.page_number,
            "page[size]": self.page_size,
        }
        params.update(self._extra_query())
        return params

    def _extra_query(self) -> dict[str, Any]:
        return {}


class Pagination(APIModel):
    current_page: int = 0
    prev_page: int | None = None
    next_page: int | None = None
    total_count: int = 0
    total_pages: int = 0


T = TypeVar("T", bound=APIModel)


class ResourceList(BaseModel, Generic[T]):
    """One page of a list endpoint."""

    items: list[T] = Field(default_factory=list)
    pagination: Pagination | None = None

    def __iter__(self) -> Iterator[T]:  # type: ignore[override]
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


# ---------------------------------------------------------------------------
# Log-bearing resources
# ---------------------------------------------------------------------------


@runtime_checkable
class LoggedResource(Protocol):
    """A remote entity whose log grows until its status becomes terminal.

    ``Apply``, ``Plan``, ``CostEstimation`` and ``PolicyCheck`` all satisfy
    this protocol.
    """

    id: str
    status: str
    log_read_url: str


class StatusTimestamps(APIModel):
    """Timestamps keyed by status; each resource adds its own fields."""

    queued_at: datetime | None = None
    errored_at: datetime | None = None
    canceled_at: datetime | None = None


# ---------------------------------------------------------------------------
# Facade base
# ---------------------------------------------------------------------------


class Resource:
    """Base class of the per-resource facades (``client.runs``, ``client.applies`` …)."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def _get(self, path: str, model: type[T], params: dict[str, Any] | None = None) -> T:
        payload = self._transport.request_json("GET", path, params=params)
        return model.model_validate(decode_document(payload))

    def _list(
        self, path: str, model: type[T], options: ListOptions | None = None
    ) -> ResourceList[T]:
        params = (options or ListOptions()).query()
        payload = self._transport.request_json("GET", path, params=params)
        items = decode_document(payload)
        if not isinstance(items, list):
            items = [items]
        meta = pagination_meta(payload)
        return ResourceList[model](  # type: ignore[valid-type]
            items=[model.model_validate(item) for item in items],
            pagination=Pagination.model_validate(meta) if meta is not None else None,
        )

    def _send(
        self,
        method: str,
        path: str,
        model: type[T],
        type_: str,
        attributes: dict[str, Any] | None = None,
        relationships: dict[str, tuple[str, str] | None] | None = None,
        id_: str | None = None,
    ) -> T:
        body = encode_resource(type_, attributes, relationships, id_)
        payload = self._transport.request_json(method, path, body=body)
        return model.model_validate(decode_document(payload))

    def _action(self, path: str, body: dict[str, Any] | None = None) -> None:
        """POST to an ``actions/*`` endpoint that answers without a document."""
        self._transport.request("POST", path, body=body)
