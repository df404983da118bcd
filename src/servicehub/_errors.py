from __future__ import annotations

from typing import Any


class ResolutionError(RuntimeError):
    pass


class ServiceNotFoundError(ResolutionError):
    """Raised when an identifier has no entry and cannot be registered implicitly."""

    def __init__(self, identifier: Any) -> None:
        self.identifier = identifier
        msg = f"Service {describe(identifier)} was not found, it was never registered or has been removed."
        super().__init__(msg)


class CircularDependencyError(ResolutionError):
    """Raised when an identifier is requested again while it is still being constructed.

    `chain` lists the identifiers from the first request of the repeated one
    up to (and including) the repeated request.
    """

    def __init__(self, chain: list[Any]) -> None:
        self.chain = list(chain)
        msg = f"Circular dependency detected: {' -> '.join(describe(i) for i in self.chain)}"
        super().__init__(msg)


def describe(identifier: Any) -> str:
    if isinstance(identifier, type):
        return identifier.__qualname__
    return repr(identifier)
