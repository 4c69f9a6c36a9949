"""perch: services and response rendering on top of an existing HTTP server.

Map named endpoints to methods, then let a renderer wire them onto the
server you already have.

Basic usage::

    from perch import JSONRenderer, Service

    class Users(Service):
        def _map_endpoints_to_methods(self):
            return {"GET user": self.get_user}

        def get_user(self, request, ready):
            ready({"id": request.params["id"]})

    users = Users("users", {"endpointTable": {"GET user": {"URLSubpath": "/users/:id"}}})

    renderer = JSONRenderer("json", app)   # app exposes app.get(path, handler)
    renderer.render_responses_for(users, "/api/")
"""

__version__ = "0.1.0"
__all__ = [
    "Built",
    "ChunkConfig",
    "ConfigurationError",
    "EndpointDef",
    "ErrorCode",
    "HandlerError",
    "JSONRenderer",
    "NamedInstance",
    "PerchError",
    "RendererConfig",
    "RendersResponses",
    "ServerAppChunk",
    "Service",
    "ServiceConfig",
    "join_paths",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name in ("Service", "Built"):
        from perch import service as _service

        return getattr(_service, name)

    if name == "RendersResponses":
        from perch.rendering import RendersResponses

        return RendersResponses

    if name == "JSONRenderer":
        from perch.json_renderer import JSONRenderer

        return JSONRenderer

    if name == "ServerAppChunk":
        from perch.app_chunk import ServerAppChunk

        return ServerAppChunk

    if name == "NamedInstance":
        from perch.named import NamedInstance

        return NamedInstance

    if name in ("EndpointDef", "join_paths"):
        from perch import endpoints as _endpoints

        return getattr(_endpoints, name)

    if name in ("ServiceConfig", "ChunkConfig", "RendererConfig"):
        from perch import config as _config

        return getattr(_config, name)

    if name in ("PerchError", "ConfigurationError", "ErrorCode", "HandlerError"):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
