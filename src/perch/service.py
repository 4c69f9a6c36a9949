"""Service: named endpoints mapped to handler methods.

A service owns an endpoint table (name -> verb + URL subpath) and a map
from endpoint name to the method serving it. Subclasses provide the map::

    class UserService(Service):
        def _map_endpoints_to_methods(self):
            return {
                "GET user": self.get_user,
                "DELETE user": self.delete_user,
            }

        def get_user(self, request, ready):
            ready({"id": request.params["id"]})

    users = UserService("users", {
        "endpointTable": {
            "GET user": {"HTTPMethod": "get", "URLSubpath": "/users/:id"},
            "DELETE user": {"HTTPMethod": "delete", "URLSubpath": "/users/:id"},
        },
    })

An endpoint method is either a *processing* method, ``(request, ready)``
with ``ready(data, err=None, status=None)``, whose results are handed to a
renderer (see :mod:`perch.rendering`), or a *handler* method,
``(request, response, next)``, that processes and renders in one go
(see :mod:`perch.app_chunk`).

Construction never raises. A service whose method map does not cover
every endpoint is marked invalid for good, and every request routed to it
is answered with an ``ERR_SERVICE_INVALID`` error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, Self, TypeVar

from perch.config import ServiceConfig
from perch.endpoints import EndpointDef, build_endpoint_table
from perch.named import NamedInstance

_log = logging.getLogger("perch.service")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Built(Generic[T]):
    """Outcome of :meth:`Service.build`.

    Either ``component`` is set and ``problems`` is empty, or
    ``component`` is ``None`` and ``problems`` says why.
    """

    component: T | None
    problems: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.component is not None


class Service(NamedInstance):
    """Base class for services handling requests to named endpoints.

    Override :meth:`_map_endpoints_to_methods`.
    """

    __slots__ = ("_endpoint_method_map", "_endpoint_table")

    def __init__(
        self,
        name: str,
        config: ServiceConfig | Mapping[str, Any] | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(name, logger=logger or _log)
        parsed = ServiceConfig.coerce(config)
        if parsed is None:
            self._logger.error(
                "%s::Service::__init__: configuration is not a mapping (%s), "
                "service will not function properly",
                name,
                type(config).__name__,
            )
            self._invalidate("config is not a mapping")
            parsed = ServiceConfig()
        config = parsed

        self._endpoint_table = build_endpoint_table(config.endpoint_table, owner=name)
        self._endpoint_method_map = self._map_endpoints_to_methods()

        if not self._endpoint_method_map_valid():
            self._logger.error(
                "%s::Service::__init__: mapping from endpoint definitions to methods "
                "is not valid, service will not function properly",
                name,
            )
            self._invalidate("endpoint method map is incomplete")

    @classmethod
    def build(cls, name: str, config: Any = None, **kwargs: Any) -> Built[Self]:
        """Construct and report the outcome instead of returning an inert object."""
        instance = cls(name, config, **kwargs)
        if instance.is_valid():
            return Built(component=instance)
        return Built(component=None, problems=instance.problems)

    def get_endpoint_names(self) -> list[str] | None:
        """Endpoint names in table order, or ``None`` without a table."""
        if self._endpoint_table is None:
            self._logger.error(
                "%s::Service::get_endpoint_names: no endpoint definitions available",
                self._iname,
            )
            return None
        return list(self._endpoint_table)

    def get_endpoint_def_for(self, endpoint_name: str) -> EndpointDef | None:
        if self._endpoint_table is None:
            return None
        return self._endpoint_table.get(endpoint_name)

    def get_method_for_endpoint(self, endpoint_name: str) -> Callable[..., Any] | None:
        """The method serving ``endpoint_name``, usually bound to this service."""
        if self._endpoint_method_map is None:
            return None
        return self._endpoint_method_map.get(endpoint_name)

    # -- Protected --

    def _map_endpoints_to_methods(self) -> Mapping[str, Callable[..., Any]] | None:
        """Map endpoint names to methods. Called once during construction."""
        self._logger.error(
            "%s::Service::_map_endpoints_to_methods: method not implemented, "
            "don't know what methods to map to defined endpoints",
            self._iname,
        )
        return None

    def _endpoint_method_map_valid(self) -> bool:
        endpoint_names = self.get_endpoint_names()
        if endpoint_names is None:
            self._logger.error(
                "%s::Service::_endpoint_method_map_valid: unable to get endpoint names, "
                "thus mapping not valid",
                self._iname,
            )
            return False

        valid = True
        for name in endpoint_names:
            if not callable(self.get_method_for_endpoint(name)):
                self._logger.error(
                    "%s::Service::_endpoint_method_map_valid: endpoint %s has no mapping "
                    "to a method, thus mapping not valid",
                    self._iname,
                    name,
                )
                self._problems.append(f"endpoint {name!r} has no method")
                valid = False
        return valid
