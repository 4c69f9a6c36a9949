"""JSON renderer for service endpoints.

Usage::

    renderer = JSONRenderer("api-json", server, {"responseHeaders": {"Cache-Control": "no-store"}})
    renderer.render_responses_for(users, "/api/")

Errors are never rendered here: they are forwarded to ``next`` unchanged so
the framework's error pipeline formats them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from perch.config import RendererConfig
from perch.named import NamedInstance
from perch.protocols import Next, is_server_handle
from perch.rendering import RendersResponses

_log = logging.getLogger("perch.renderer")


class JSONRenderer(NamedInstance, RendersResponses):
    """Renders processing results as a JSON object payload."""

    __slots__ = ("_response_headers", "_server")

    def __init__(
        self,
        name: str,
        server: Any,
        config: RendererConfig | Mapping[str, Any] | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(name, logger=logger or _log)
        parsed = RendererConfig.coerce(config)
        if parsed is None:
            self._logger.error(
                "%s::JSONRenderer::__init__: configuration is not a mapping (%s), "
                "rendering without default response headers",
                name,
                type(config).__name__,
            )
            parsed = RendererConfig()

        self._server = server
        if not is_server_handle(server):
            self._logger.error(
                "%s::JSONRenderer::__init__: server is invalid, JSON renderer will not function properly",
                name,
            )
            self._invalidate("no server")

        self._response_headers = dict(parsed.response_headers) if parsed.response_headers else None

    def get_http_server(self) -> Any:
        return self._server

    def get_render_method_for_endpoint(self, endpoint_name: str) -> Callable[..., Any]:
        return self._render_json

    def _render_json(
        self,
        request: Any,
        response: Any,
        next: Next,  # noqa: A002
        data: Any = None,
        err: Any = None,
        status: int | None = None,
    ) -> None:
        if err is not None:
            next(err)
            return

        if isinstance(status, int) and not isinstance(status, bool):
            response = response.status(status)

        if self._response_headers:
            response = response.set(self._response_headers)

        # Top-level payload is always an object
        if not isinstance(data, Mapping):
            data = {"data": data}

        response.json(data)
