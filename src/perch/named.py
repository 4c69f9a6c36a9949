"""Named instances with a terminal validity flag."""

import logging


class NamedInstance:
    """An object with an identifying name and a validity flag.

    The flag starts out valid and can only ever go to invalid. Each
    reason for invalidation is kept in :attr:`problems`.
    """

    __slots__ = ("__weakref__", "_iname", "_logger", "_problems", "_valid")

    def __init__(self, name: str, *, logger: logging.Logger | None = None) -> None:
        self._iname = name
        self._valid = True
        self._problems: list[str] = []
        self._logger = logger or logging.getLogger("perch")

    def get_iname(self) -> str:
        return self._iname

    def is_valid(self) -> bool:
        return self._valid

    @property
    def problems(self) -> tuple[str, ...]:
        """Reasons this instance was invalidated, in order."""
        return tuple(self._problems)

    def _invalidate(self, reason: str) -> None:
        self._valid = False
        self._problems.append(reason)

    def __repr__(self) -> str:
        state = "valid" if self._valid else "invalid"
        return f"<{type(self).__name__} {self._iname!r} ({state})>"
