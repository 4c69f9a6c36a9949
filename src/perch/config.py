"""Component configuration.

Frozen dataclasses, immutable after creation. Each config also parses the
plain-mapping form used by existing service definitions::

    config = ChunkConfig.from_mapping({
        "URLPathRoot": "/app/",
        "server": server,
        "endpointTable": {"GET home": {"URLSubpath": "/"}},
    })
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Self

from perch.errors import ConfigurationError

# Mapping-form key -> field name, for keys that differ from the field name
_ALIASES = {
    "endpointTable": "endpoint_table",
    "URLPathRoot": "url_path_root",
    "responseHeaders": "response_headers",
}


class _FromMapping:
    """Shared ``from_mapping`` / ``coerce`` for the config dataclasses."""

    __slots__ = ()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> Self:
        """Build a config from a plain mapping, ignoring unknown keys."""
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            msg = f"{cls.__name__} expects a mapping, got {type(raw).__name__}"
            raise ConfigurationError(msg)
        names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        kwargs: dict[str, Any] = {}
        for key, value in raw.items():
            name = _ALIASES.get(key, key)
            if name in names:
                kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def coerce(cls, config: Any) -> Self | None:
        """Return ``config`` unchanged if it already is one, else parse it.

        ``None`` when ``config`` is neither a config, a mapping nor ``None``;
        components treat that as a construction failure instead of raising.
        """
        if isinstance(config, cls):
            return config
        if config is not None and not isinstance(config, Mapping):
            return None
        return cls.from_mapping(config)


@dataclass(frozen=True, slots=True)
class ServiceConfig(_FromMapping):
    """Configuration for a :class:`~perch.service.Service`."""

    # Endpoint name -> {"HTTPMethod"?: str, "URLSubpath": str}
    endpoint_table: Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ChunkConfig(ServiceConfig):
    """Configuration for a :class:`~perch.app_chunk.ServerAppChunk`."""

    # Server handle exposing get/post/... registration calls
    server: Any = None
    url_path_root: str = "/"


@dataclass(frozen=True, slots=True)
class RendererConfig(_FromMapping):
    """Configuration for a :class:`~perch.json_renderer.JSONRenderer`."""

    # Headers sent with every rendered response
    response_headers: Mapping[str, str] | None = None
