"""Test doubles for perch services.

In-memory stand-ins for the collaborators perch consumes: a server that
records registrations and can dispatch to them, a chainable response that
records what was written, and a ``next`` that records what it received.

Usage::

    server = RecordingServer()
    renderer = JSONRenderer("json", server)
    renderer.render_responses_for(users, "/api/")

    exchange = server.dispatch_sync("get", "/api/users/:id")
    assert exchange.response.payload == {"id": 7}
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import anyio

from perch.protocols import RequestHandler

HTTP_VERBS = ("get", "post", "put", "patch", "delete", "head", "options")


@dataclass(frozen=True, slots=True)
class RecordedRoute:
    """One ``server.<verb>(path, handler)`` registration."""

    verb: str
    path: str
    handler: RequestHandler


@dataclass(slots=True)
class SimpleRequest:
    """Minimal request object; perch itself only ever reads ``path``."""

    path: str = "/"
    method: str = "GET"
    params: dict[str, str] = field(default_factory=dict)
    body: Any = None


class RecordingResponse:
    """Chainable response channel that records every call in order."""

    __slots__ = ("calls", "headers", "payload", "status_code")

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.status_code: int = 200
        self.headers: dict[str, str] = {}
        self.payload: Any = None

    def status(self, code: int) -> RecordingResponse:
        self.calls.append(("status", code))
        self.status_code = code
        return self

    def set(self, headers: Mapping[str, str]) -> RecordingResponse:
        self.calls.append(("set", dict(headers)))
        self.headers.update(headers)
        return self

    def json(self, payload: Any) -> None:
        self.calls.append(("json", payload))
        self.payload = payload

    @property
    def written(self) -> bool:
        return any(name == "json" for name, _ in self.calls)


class RecordingNext:
    """``next`` callable that records its arguments."""

    __slots__ = ("calls",)

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def __call__(self, *args: Any) -> None:
        self.calls.append(args)

    @property
    def called(self) -> bool:
        return bool(self.calls)

    @property
    def error(self) -> Any:
        """The error passed on the last call, ``None`` for a pass-through."""
        if not self.calls or not self.calls[-1]:
            return None
        return self.calls[-1][0]


@dataclass(frozen=True, slots=True)
class Exchange:
    """Everything one dispatched request produced."""

    request: Any
    response: RecordingResponse
    next: RecordingNext
    result: Any


class RecordingServer:
    """Server handle exposing ``get``, ``post``, ... and recording registrations.

    Pass ``verbs`` to limit which registration calls exist, e.g. to check
    behaviour against a server that does not know ``patch``.
    """

    def __init__(self, verbs: tuple[str, ...] = HTTP_VERBS) -> None:
        self.routes: list[RecordedRoute] = []
        self._verbs = frozenset(v.lower() for v in verbs)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name not in self._verbs:
            raise AttributeError(name)
        return functools.partial(self._register, name)

    def _register(self, verb: str, path: str, handler: RequestHandler) -> None:
        self.routes.append(RecordedRoute(verb=verb, path=path, handler=handler))

    def paths(self, verb: str | None = None) -> list[str]:
        """Registered paths in registration order, optionally for one verb."""
        return [r.path for r in self.routes if verb is None or r.verb == verb.lower()]

    def find(self, verb: str, path: str) -> RecordedRoute | None:
        verb = verb.lower()
        for route in self.routes:
            if route.verb == verb and route.path == path:
                return route
        return None

    async def dispatch(self, verb: str, path: str, request: Any = None) -> Exchange:
        """Call the handler registered at (verb, path) with fresh recorders."""
        route = self.find(verb, path)
        if route is None:
            msg = f"no route registered for {verb.upper()} {path}"
            raise LookupError(msg)

        if request is None:
            request = SimpleRequest(path=path, method=verb.upper())
        response = RecordingResponse()
        next_ = RecordingNext()
        result = route.handler(request, response, next_)
        # Handlers may be coroutine functions; the server hands back whatever they return
        if inspect.isawaitable(result):
            result = await result
        return Exchange(request=request, response=response, next=next_, result=result)

    def dispatch_sync(self, verb: str, path: str, request: Any = None) -> Exchange:
        """:meth:`dispatch` from synchronous code."""
        return anyio.run(functools.partial(self.dispatch, verb, path, request))
