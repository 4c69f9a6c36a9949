"""Endpoint definitions, endpoint tables and URL path joining."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

logger = logging.getLogger("perch.endpoints")

DEFAULT_HTTP_METHOD = "get"

# Accepted spellings for each EndpointDef field, first match wins
_METHOD_KEYS = ("HTTPMethod", "http_method")
_SUBPATH_KEYS = ("URLSubpath", "url_subpath")


@dataclass(frozen=True, slots=True)
class EndpointDef:
    """A named (HTTP verb, URL subpath) pair.

    Table entries use the wire format::

        {
            "GET user": {"HTTPMethod": "get", "URLSubpath": "/users/:id"},
            "DELETE user": {"HTTPMethod": "delete", "URLSubpath": "/users/:id"},
        }

    ``HTTPMethod`` may be omitted and defaults to ``"get"``.
    """

    name: str
    url_subpath: str = ""
    http_method: str = DEFAULT_HTTP_METHOD

    @property
    def verb(self) -> str:
        """The HTTP method lower-cased, as servers name their registration calls."""
        return (self.http_method or DEFAULT_HTTP_METHOD).lower()

    @classmethod
    def from_mapping(cls, name: str, raw: Mapping[str, Any]) -> EndpointDef:
        http_method = _first(raw, _METHOD_KEYS) or DEFAULT_HTTP_METHOD
        url_subpath = _first(raw, _SUBPATH_KEYS) or ""
        return cls(name=name, url_subpath=str(url_subpath), http_method=str(http_method))


def _first(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def build_endpoint_table(
    raw: Mapping[str, Any] | None,
    *,
    owner: str = "[unknown]",
) -> Mapping[str, EndpointDef] | None:
    """Build a read-only endpoint table from its wire format.

    Returns ``None`` when there is no table at all. Entries that are not
    mappings are dropped with an error so they show up later as a missing
    definition for that one endpoint.
    """
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        logger.error(
            "%s::build_endpoint_table: endpoint table is not a mapping (%s)",
            owner,
            type(raw).__name__,
        )
        return None

    table: dict[str, EndpointDef] = {}
    for name, entry in raw.items():
        if isinstance(entry, EndpointDef):
            table[name] = entry
        elif isinstance(entry, Mapping):
            table[name] = EndpointDef.from_mapping(name, entry)
        else:
            logger.error(
                "%s::build_endpoint_table: endpoint %s definition is not a mapping, skipped",
                owner,
                name,
            )
    return MappingProxyType(table)


def join_paths(*parts: str | None) -> str:
    """Join URL path pieces with exactly one ``/`` between them.

    ``join_paths("/api/", "/users/:id")`` is ``"/api/users/:id"``. The
    result always starts with ``/``; a trailing ``/`` on the last
    non-empty piece is kept, unless that piece is just ``/``.
    """
    pieces = [p for p in parts if p]
    segments = [s for p in pieces for s in p.split("/") if s]
    path = "/" + "/".join(segments)
    if pieces and pieces[-1].strip("/") and pieces[-1].endswith("/"):
        path += "/"
    return path
