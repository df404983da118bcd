"""Class declarations.

`service` only records how a class wants to be registered. Nothing touches a
container until the declaration is used, either by `Container.register_declared`
during bootstrap or by implicit registration on the first `Container.get`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from ._metadata import ServiceMetadata
from ._reflection import attach_manifest


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

C = TypeVar("C", bound=type)

DECLARATION_ATTRIBUTE = "__servicehub_service__"


def service(
    id: Any = None,  # noqa: A002
    *,
    factory: Callable[[], Any] | tuple[Any, str] | None = None,
    multiple: bool = False,
    parameters: Iterable[Any] | None = None,
) -> Callable[[C], C]:
    """Declare a class as the service for `id` (the class itself by default).

    Example:
      @service("wheel.factory")
      class WheelFactory: ...

      @service(parameters=[Engine, "car.color"])
      class Car:
          def __init__(self, engine, color): ...

    """

    def decorator(cls: C) -> C:
        declaration = ServiceMetadata(id=id, type=cls, factory=factory, multiple=multiple)
        setattr(cls, DECLARATION_ATTRIBUTE, declaration)
        if parameters is not None:
            attach_manifest(cls, parameters)
        return cls

    return decorator


def declaration_of(cls: type) -> ServiceMetadata | None:
    """Return a fresh copy of the declaration made on `cls` itself, if any."""
    declaration = cls.__dict__.get(DECLARATION_ATTRIBUTE)
    if declaration is None:
        return None
    return ServiceMetadata(
        id=declaration.id,
        type=declaration.type,
        factory=declaration.factory,
        multiple=declaration.multiple,
    )
