"""Structural protocols for the collaborators perch wires together.

perch never implements a server. Anything with the right shape works::

    server.get("/users/:id", handler)
    response.status(201).set({"X-Trace": "1"}).json({"id": 7})

No base class required. The layer checks the shape, not the lineage.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, TypeAlias, runtime_checkable

from perch.endpoints import EndpointDef

# Called by a processing method exactly once: ready(data, err=None, status=None)
ReadyCallback: TypeAlias = Callable[..., None]

# next() passes through, next(error) hands off to the framework's error pipeline
Next: TypeAlias = Callable[..., Any]

# (request, ready) -> anything; the return value is handed back to the server
ProcessingMethod: TypeAlias = Callable[[Any, ReadyCallback], Any]

# (request, response, next, data, err, status=None)
RenderMethod: TypeAlias = Callable[..., Any]

# (request, response, next) as registered on the server
RequestHandler: TypeAlias = Callable[[Any, Any, Next], Any]


class ResponseChannel(Protocol):
    """Response object handed to request handlers.

    ``status()`` and ``set()`` return a channel so calls can be chained;
    ``json()`` writes the body and ends the response.
    """

    def status(self, code: int) -> ResponseChannel: ...

    def set(self, headers: Mapping[str, str]) -> ResponseChannel: ...

    def json(self, payload: Any) -> Any: ...


class HTTPServer(Protocol):
    """Server handle exposing one registration callable per lowercase verb.

    Only ``get`` is required structurally; other verbs (``post``,
    ``delete``, ...) are looked up by name at registration time.
    """

    def get(self, url_path: str, handler: RequestHandler) -> Any: ...


@runtime_checkable
class EndpointSource(Protocol):
    """What ``render_responses_for`` needs from a service."""

    def get_iname(self) -> str: ...

    def get_endpoint_names(self) -> list[str] | None: ...

    def get_endpoint_def_for(self, endpoint_name: str) -> EndpointDef | None: ...

    def get_method_for_endpoint(self, endpoint_name: str) -> Callable[..., Any] | None: ...


def is_server_handle(obj: object) -> bool:
    """Whether ``obj`` can be a server handle at all (an object, not a scalar)."""
    return obj is not None and not isinstance(obj, (str, bytes, int, float))
