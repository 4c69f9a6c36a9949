"""ServerAppChunk: one part (chunk) of a server-side app.

A chunk handles requests to its own endpoints and can also render
responses for the endpoints of other services through
``render_responses_for()`` (see :mod:`perch.rendering`).

Its own endpoints map to *handler* methods that process and render in one
go::

    function(request, response, next)

Render methods, used for the endpoints of other services, follow the
renderer convention::

    function(request, response, next, data, err, status=None)

Override:

- :meth:`_map_endpoints_to_methods` (see :class:`~perch.service.Service`)
- :meth:`_map_endpoints_to_render_methods` to render for other services

Example::

    class Views(ServerAppChunk):
        def _map_endpoints_to_methods(self):
            return {"GET home": self.home}

        def _map_endpoints_to_render_methods(self):
            return {"GET user": self.user_view}

        def home(self, request, response, next):
            response.json({"page": "home"})

        def user_view(self, request, response, next, data, err, status=None):
            ...

    views = Views("views", {
        "server": server,
        "URLPathRoot": "/app/",
        "endpointTable": {"GET home": {"URLSubpath": "/"}},
    })
    views.render_responses_for(users, "/app/", ["GET user"])
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from perch.config import ChunkConfig
from perch.errors import ErrorCode, HandlerError
from perch.protocols import Next, RequestHandler, is_server_handle
from perch.rendering import RendersResponses
from perch.service import Service

_log = logging.getLogger("perch.app_chunk")


class ServerAppChunk(Service, RendersResponses):
    """Service that registers its own endpoint handlers on the server."""

    __slots__ = ("_endpoint_render_method_map", "_server", "_url_path_root")

    def __init__(
        self,
        name: str,
        config: ChunkConfig | Mapping[str, Any] | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        parsed = ChunkConfig.coerce(config)
        # Unparseable configs go to Service as-is, which invalidates on them
        self._server = parsed.server if parsed is not None else None
        self._url_path_root = (parsed.url_path_root if parsed is not None else None) or "/"
        self._endpoint_render_method_map: Mapping[str, Callable[..., Any]] = MappingProxyType({})

        super().__init__(name, parsed if parsed is not None else config, logger=logger or _log)

        if not self.is_valid():
            self._logger.error(
                "%s::ServerAppChunk::__init__: errors occurred while constructing, "
                "will not set up server app chunk",
                name,
            )
            return

        if not is_server_handle(self._server):
            self._logger.error(
                "%s::ServerAppChunk::__init__: server is invalid, server app chunk "
                "will not function properly",
                name,
            )
            self._invalidate("no server")
            return

        if not self._register_endpoint_handlers():
            self._logger.error(
                "%s::ServerAppChunk::__init__: registration of endpoint handlers was "
                "unsuccessful, server app chunk will not function properly",
                name,
            )
            self._invalidate("no endpoint handler could be registered")

        self._endpoint_render_method_map = MappingProxyType(
            dict(self._map_endpoints_to_render_methods() or {})
        )

    def get_http_server(self) -> Any:
        return self._server

    def get_render_method_for_endpoint(self, endpoint_name: str) -> Callable[..., Any] | None:
        return self._endpoint_render_method_map.get(endpoint_name)

    # -- Protected --

    def _map_endpoints_to_render_methods(self) -> Mapping[str, Callable[..., Any]]:
        self._logger.debug(
            "%s::ServerAppChunk::_map_endpoints_to_render_methods: this server app chunk "
            "does not render any responses for external endpoints",
            self._iname,
        )
        return {}

    def _register_endpoint_handlers(self) -> bool:
        me = f"{self._iname}::ServerAppChunk::_register_endpoint_handlers"

        endpoint_names = self.get_endpoint_names()
        if endpoint_names is None:
            self._logger.error("%s: unable to get endpoint names, can't register endpoints", me)
            return False

        if not endpoint_names:
            self._logger.info("%s: no endpoints provided, nothing to register", me)
            return True

        self._logger.info("%s: registering endpoint handlers ...", me)

        num_success = 0
        for endpoint_name in endpoint_names:
            endpoint_def = self.get_endpoint_def_for(endpoint_name)
            if endpoint_def is None:
                self._logger.error(
                    "%s: endpoint %s: no endpoint definition available, "
                    "unable to register endpoint handler",
                    me,
                    endpoint_name,
                )
                continue

            handler = self.get_method_for_endpoint(endpoint_name)
            if not callable(handler):
                self._logger.error(
                    "%s: endpoint %s: no endpoint handler available, "
                    "unable to register endpoint handler",
                    me,
                    endpoint_name,
                )
                continue

            url_path = self._register_endpoint_handler(
                endpoint_name,
                endpoint_def,
                self._url_path_root,
                self._create_validated_handler(endpoint_name, handler),
            )
            if url_path is None:
                self._logger.error("%s: endpoint %s: registration of handler failed", me, endpoint_name)
                continue

            self._logger.info("%s: endpoint %s: registered handler at [%s]", me, endpoint_name, url_path)
            num_success += 1

        if num_success < 1:
            self._logger.error("%s: unable to register any endpoint handlers", me)
            return False
        return True

    def _create_validated_handler(
        self,
        endpoint_name: str,
        handler: Callable[..., Any],
    ) -> RequestHandler:
        """Wrap ``handler`` so an invalid chunk answers with an error instead."""

        def validated(request: Any, response: Any, next: Next) -> Any:  # noqa: A002
            if not self.is_valid():
                next(
                    HandlerError(
                        message=(
                            f"Endpoint {endpoint_name}: server app chunk {self._iname} "
                            "is not valid, unable to handle request"
                        ),
                        code=ErrorCode.SERVER_APP_CHUNK_INVALID,
                    )
                )
                return False
            return handler(request, response, next)

        return validated
