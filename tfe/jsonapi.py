"""JSON:API request/response codec.

The API speaks JSON:API (https://jsonapi.org): every resource travels as
``{"type", "id", "attributes", "relationships"}`` inside a top-level
``data`` member, lists carry pagination details in ``meta.pagination`` and
errors come back as an ``errors`` array.

This module only deals with documents as plain ``dict``/``list`` values.
Turning them into typed models is the job of :mod:`tfe.resources.base`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

CONTENT_TYPE_JSONAPI = "application/vnd.api+json"
CONTENT_TYPE_JSON = "application/json"

_INCLUDE_PARAM = "include"


# ---------------------------------------------------------------------------
# Query strings
# ---------------------------------------------------------------------------


def _comma_joined(key: str) -> bool:
    return key == _INCLUDE_PARAM or "filter[" in key


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Flatten *params* into sorted ``(key, value)`` pairs.

    ``None`` values are dropped.  List values repeat the key, except for
    ``include`` and ``filter[...]`` keys which the API expects as a single
    comma-separated value.
    """
    if not params:
        return []
    pairs: list[tuple[str, str]] = []
    for key in sorted(params):
        value = params[key]
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            values = [_query_value(v) for v in value]
            if not values:
                continue
            if _comma_joined(key):
                pairs.append((key, ",".join(values)))
            else:
                pairs.extend((key, v) for v in values)
        else:
            pairs.append((key, _query_value(value)))
    return pairs


# ---------------------------------------------------------------------------
# Request documents
# ---------------------------------------------------------------------------


def encode_resource(
    type_: str,
    attributes: Mapping[str, Any] | None = None,
    relationships: Mapping[str, tuple[str, str] | None] | None = None,
    id_: str | None = None,
) -> dict[str, Any]:
    """Build a single-resource request document.

    Args:
        type_:         JSON:API resource type, e.g. ``"workspaces"``.
        attributes:    Attribute values keyed by their wire name.  ``None``
                       values are omitted so the server keeps its defaults.
        relationships: ``name -> (type, id)`` linkage; ``None`` entries are
                       omitted.
        id_:           Resource id, for updates.
    """
    data: dict[str, Any] = {"type": type_}
    if id_ is not None:
        data["id"] = id_
    attrs = {k: v for k, v in (attributes or {}).items() if v is not None}
    if attrs:
        data["attributes"] = attrs
    rels = {
        name: {"data": {"type": link[0], "id": link[1]}}
        for name, link in (relationships or {}).items()
        if link is not None
    }
    if rels:
        data["relationships"] = rels
    return {"data": data}


# ---------------------------------------------------------------------------
# Response documents
# ---------------------------------------------------------------------------


def _linkage(rel: Any) -> Any:
    if not isinstance(rel, Mapping) or "data" not in rel:
        return None
    data = rel["data"]
    if isinstance(data, list):
        return [{"id": d.get("id"), "type": d.get("type")} for d in data]
    if isinstance(data, Mapping):
        return {"id": data.get("id"), "type": data.get("type")}
    return None


def decode_resource(obj: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten one resource object into ``{"id": ..., <attrs>, <relationships>}``."""
    flat: dict[str, Any] = dict(obj.get("attributes") or {})
    for name, rel in (obj.get("relationships") or {}).items():
        # attributes win on a name clash
        flat.setdefault(name, _linkage(rel))
    flat["id"] = obj.get("id")
    return flat


def decode_document(payload: Any) -> dict[str, Any] | list[dict[str, Any]]:
    """Decode the primary ``data`` of a response document.

    Raises:
        ValueError: if *payload* is not a JSON:API document.
    """
    if not isinstance(payload, Mapping) or "data" not in payload:
        raise ValueError("response is not a JSON:API document (missing 'data')")
    data = payload["data"]
    if isinstance(data, list):
        return [decode_resource(item) for item in data]
    if isinstance(data, Mapping):
        return decode_resource(data)
    raise ValueError(f"unexpected JSON:API 'data' member: {type(data).__name__}")


def decode_errors(payload: Any) -> list[str]:
    """Return human-readable messages from a JSON:API ``errors`` array.

    Each entry becomes ``title`` or ``"title\\n\\ndetail"``.  Returns an
    empty list when *payload* carries no errors.
    """
    if not isinstance(payload, Mapping):
        return []
    errors = payload.get("errors")
    if not isinstance(errors, list):
        return []
    messages: list[str] = []
    for err in errors:
        if isinstance(err, str):
            messages.append(err)
            continue
        if not isinstance(err, Mapping):
            continue
        title = err.get("title") or ""
        detail = err.get("detail") or ""
        messages.append(f"{title}\n\n{detail}" if detail else title)
    return messages


def pagination_meta(payload: Any) -> dict[str, Any] | None:
    """Return the raw ``meta.pagination`` object of a list response, if any."""
    if not isinstance(payload, Mapping):
        return None
    meta = payload.get("meta")
    if not isinstance(meta, Mapping):
        return None
    pagination = meta.get("pagination")
    return dict(pagination) if isinstance(pagination, Mapping) else None
