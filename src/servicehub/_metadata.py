from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._container import Container

T = TypeVar("T")


class _Empty:
    """Sentinel type for an entry that has not been instantiated yet."""

    _instance: _Empty | None = None

    def __new__(cls) -> _Empty:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"

    def __bool__(self) -> bool:
        return False


EMPTY: Any = _Empty()


class Token(Generic[T]):
    """Payload-free registry key.

    Tokens are compared by identity, so two tokens never collide even when
    they share a name. The type parameter only serves static typing of
    `Container.get`:

        DatabaseUrl = Token[str]("database.url")
        container.set(DatabaseUrl, "sqlite://")
    """

    __slots__ = ("name",)

    def __init__(self, name: str | None = None) -> None:
        self.name = name

    def __repr__(self) -> str:
        if self.name is None:
            return f"<Token at {id(self):#x}>"
        return f"Token({self.name!r})"


Identifier = Union[type, str, Token]


@dataclass
class ServiceMetadata:
    """Registry entry for one identifier.

    - `value` holds the instance, `EMPTY` until the entry is resolved.
    - `factory` is a callable taking no arguments, or a
      `(factory_class_id, method_name)` pair.
    - `type` is constructed from its manifest when there is no factory.
    """

    id: Any = None
    type: type | None = None
    factory: Callable[[], Any] | tuple[Any, str] | None = None
    value: Any = EMPTY
    multiple: bool = False

    def __post_init__(self) -> None:
        if self.id is None:
            if self.type is None:
                msg = "ServiceMetadata requires an `id` or a `type`."
                raise ValueError(msg)
            self.id = self.type

        if isinstance(self.factory, tuple):
            if len(self.factory) != 2 or not isinstance(self.factory[1], str):  # noqa: PLR2004
                msg = f"Factory pairs must be (factory_class_id, method_name), got {self.factory!r}"
                raise ValueError(msg)
        elif self.factory is not None and not callable(self.factory):
            msg = f"factory must be callable or a (class, method) pair, got {type(self.factory).__name__}"
            raise ValueError(msg)

    @property
    def instantiated(self) -> bool:
        return self.value is not EMPTY


@dataclass
class HandlerMetadata:
    """Override for one constructor argument or property of `object`.

    `value` is called with the container as its only argument on every
    resolution of the injection point, so zero-argument callables do not fit:

        HandlerMetadata(object=ExtraService, index=0, value=lambda container: 777)
        HandlerMetadata(object=Car, property_name="color", value=lambda container: container.get("car.color"))
    """

    object: type
    value: Callable[[Container], Any]
    index: int | None = None
    property_name: str | None = None

    def __post_init__(self) -> None:
        if (self.index is None) == (self.property_name is None):
            msg = "Provide either `index` or `property_name`, not both."
            raise ValueError(msg)

        if not inspect.isclass(self.object):
            msg = f"Handler target must be a class, got {self.object!r}"
            raise ValueError(msg)

    @property
    def key(self) -> tuple[type, int | str]:
        return (self.object, self.index if self.index is not None else self.property_name)  # type: ignore[return-value]
