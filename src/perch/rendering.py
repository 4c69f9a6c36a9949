"""RendersResponses: render responses for the endpoints of a service.

Mix into any named class and call
``render_responses_for(service, root_path)``. For every endpoint of the
service, a handler is registered on the HTTP server that

1. calls the service's processing method ``(request, ready)``,
2. hands ``ready(data, err=None, status=None)`` results to the render
   method ``(request, response, next, data, err, status)``.

Override:

- :meth:`get_http_server` to supply the server to register routes on
- :meth:`get_render_method_for_endpoint` to pick the render method per
  endpoint

Registration is best effort per endpoint. A failing endpoint is logged and
skipped; the call succeeds when at least one route was registered.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from perch.endpoints import EndpointDef, join_paths
from perch.errors import ErrorCode, HandlerError
from perch.protocols import EndpointSource, Next, RequestHandler

_log = logging.getLogger("perch.rendering")

_UNKNOWN = "[Unknown class that RendersResponses]"

REQUIRED_SERVICE_METHODS = (
    "get_iname",
    "get_endpoint_names",
    "get_endpoint_def_for",
    "get_method_for_endpoint",
)


def _validity(obj: object) -> bool:
    """``obj.is_valid()`` when it has one, else valid."""
    is_valid = getattr(obj, "is_valid", None)
    return is_valid() if callable(is_valid) else True


class RendersResponses:
    """Mixin rendering responses for :class:`~perch.service.Service` endpoints."""

    __slots__ = ()

    def get_http_server(self) -> Any:
        self._rendering_logger().error(
            "%s::RendersResponses::get_http_server: method not implemented, "
            "don't know how to get HTTP server instance",
            self._rendering_name(),
        )
        return None

    def get_render_method_for_endpoint(self, endpoint_name: str) -> Callable[..., Any] | None:
        self._rendering_logger().error(
            "%s::RendersResponses::get_render_method_for_endpoint: method not implemented, "
            "don't know what method renders responses for endpoint %s",
            self._rendering_name(),
            endpoint_name,
        )
        return None

    def render_responses_for(
        self,
        service: EndpointSource,
        root_path: str | None = "/",
        endpoints: Sequence[str] | None = None,
    ) -> bool:
        """Register render handlers for ``endpoints`` of ``service`` (default: all).

        Returns ``True`` when at least one endpoint was set up, or when
        there was nothing to set up.
        """
        log = self._rendering_logger()
        me = f"{self._rendering_name()}::RendersResponses::render_responses_for"
        root_path = root_path or "/"

        if not isinstance(service, EndpointSource):
            log.error(
                "%s: the provided service does not adhere to the interface required "
                "for response rendering, required methods: %s",
                me,
                ", ".join(REQUIRED_SERVICE_METHODS),
            )
            return False

        service_name = service.get_iname()
        if isinstance(endpoints, Sequence) and not isinstance(endpoints, (str, bytes)):
            endpoint_names = list(endpoints)
        else:
            if endpoints is not None:
                log.warning(
                    "%s: endpoints subset is not a list of names (%s), "
                    "rendering for all endpoints of service %s",
                    me,
                    type(endpoints).__name__,
                    service_name,
                )
            endpoint_names = service.get_endpoint_names()

        if not isinstance(endpoint_names, list):
            log.error(
                "%s: no valid list of endpoint names given by service %s, "
                "unable to set up response rendering",
                me,
                service_name,
            )
            return False

        if not endpoint_names:
            log.warning(
                "%s: service %s has no endpoints to set up response rendering for, nothing to do",
                me,
                service_name,
            )
            return True

        log.info(
            "%s: setting up response rendering for %s service endpoints, with path root %s",
            me,
            service_name,
            root_path,
        )

        num_success = 0
        for endpoint_name in endpoint_names:
            url_path = self._setup_rendering_for(service, endpoint_name, root_path)
            if url_path is None:
                log.error("%s: endpoint %s: response rendering setup failed", me, endpoint_name)
                continue
            log.info("%s: endpoint %s: response rendering set up at %s", me, endpoint_name, url_path)
            num_success += 1

        if num_success < 1:
            log.error(
                "%s: unable to set up response rendering for any endpoints of service %s",
                me,
                service_name,
            )
            return False
        return True

    # -- Protected --

    def _rendering_name(self) -> str:
        get_iname = getattr(self, "get_iname", None)
        return (get_iname() if callable(get_iname) else None) or _UNKNOWN

    def _rendering_logger(self) -> logging.Logger:
        return getattr(self, "_logger", None) or _log

    def _setup_rendering_for(
        self,
        service: EndpointSource,
        endpoint_name: str,
        root_path: str,
    ) -> str | None:
        """Create and register the handler for one endpoint; the URL path or ``None``."""
        me = f"{self._rendering_name()}::RendersResponses::_setup_rendering_for"

        handler = self._create_endpoint_handler(service, endpoint_name)
        if handler is None:
            self._rendering_logger().error(
                "%s: endpoint %s: creation of endpoint handler failed, "
                "unable to set up response rendering",
                me,
                endpoint_name,
            )
            return None

        endpoint_def = service.get_endpoint_def_for(endpoint_name)
        if not isinstance(endpoint_def, EndpointDef):
            self._rendering_logger().error(
                "%s: endpoint %s: no endpoint definition, unable to set up response rendering",
                me,
                endpoint_name,
            )
            return None

        return self._register_endpoint_handler(endpoint_name, endpoint_def, root_path, handler)

    def _create_endpoint_handler(
        self,
        service: EndpointSource,
        endpoint_name: str,
    ) -> RequestHandler | None:
        """Chain the endpoint's processing method and its render method into one handler."""
        log = self._rendering_logger()
        me = f"{self._rendering_name()}::RendersResponses::_create_endpoint_handler"

        process = service.get_method_for_endpoint(endpoint_name)
        if not callable(process):
            log.error(
                "%s: endpoint %s: no processing method found for endpoint, "
                "unable to create endpoint handler",
                me,
                endpoint_name,
            )
            return None

        render = self.get_render_method_for_endpoint(endpoint_name)
        if not callable(render):
            log.error(
                "%s: endpoint %s: unable to get response rendering method, "
                "unable to create endpoint handler",
                me,
                endpoint_name,
            )
            return None

        def handler(request: Any, response: Any, next: Next) -> Any:  # noqa: A002
            log.debug(
                "%s: handling request for endpoint %s, path %s",
                self._rendering_name(),
                endpoint_name,
                getattr(request, "path", None) or "[NO PATH AVAILABLE]",
            )

            if not _validity(service):
                next(
                    HandlerError(
                        message=(
                            f"Service {service.get_iname()} invalid, unable to handle "
                            f"request to endpoint {endpoint_name}"
                        ),
                        code=ErrorCode.SERVICE_INVALID,
                    )
                )
                return False

            def ready(data: Any = None, err: Any = None, status: int | None = None) -> None:
                if not _validity(self):
                    next(
                        HandlerError(
                            message=(
                                f"Renderer {self._rendering_name()} invalid, unable to handle "
                                f"request to endpoint {endpoint_name}"
                            ),
                            code=ErrorCode.RENDERER_INVALID,
                        )
                    )
                    return
                render(request, response, next, data, err, status)

            # First process, then render
            return process(request, ready)

        return handler

    def _register_endpoint_handler(
        self,
        endpoint_name: str,
        endpoint_def: EndpointDef,
        root_path: str,
        handler: RequestHandler,
    ) -> str | None:
        """Register ``handler`` on the server; the URL path, or ``None`` on failure."""
        me = f"{self._rendering_name()}::RendersResponses::_register_endpoint_handler"

        verb = endpoint_def.verb
        url_path = join_paths(root_path, endpoint_def.url_subpath)

        server = self.get_http_server()
        register = getattr(server, verb, None) if server is not None else None
        if not callable(register):
            self._rendering_logger().error(
                "%s: endpoint %s: HTTP method [%s] not known by server, "
                "unable to register endpoint handler",
                me,
                endpoint_name,
                verb,
            )
            return None

        register(url_path, handler)
        return url_path
