from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._decorators import declaration_of
from ._errors import CircularDependencyError, ResolutionError, ServiceNotFoundError, describe
from ._metadata import EMPTY, HandlerMetadata, ServiceMetadata, Token
from ._reflection import Manifest, Parameter, reflect


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ._metadata import Identifier

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Container:
    """Service registry.

    - identifiers: classes, strings or `Token` instances
    - values: set directly, produced by factories, or constructed from the
      class manifest with handler overrides
    - one instance per entry, dropped by `remove` / `reset`
    """

    def __init__(self) -> None:
        self._services: dict[Any, ServiceMetadata] = {}
        self._multiple: dict[Any, list[ServiceMetadata]] = {}
        self._handlers: list[HandlerMetadata] = []
        self._resolving: list[ServiceMetadata] = []
        self._lock = threading.RLock()

    @overload
    def set(self, id: ServiceMetadata) -> Container: ...  # noqa: A002

    @overload
    def set(self, id: Identifier, value: object) -> Container: ...  # noqa: A002

    def set(self, id: Any, value: Any = EMPTY) -> Container:  # noqa: A002
        """Register an instance for an identifier, or a full `ServiceMetadata`.

        Example:
          container.set(Engine, Engine())
          container.set("engine.serial", "A-123")
          container.set(ServiceMetadata(id=Engine, factory=make_engine))

        An existing entry for the same identifier is replaced.
        """
        if isinstance(id, ServiceMetadata) and value is EMPTY:
            metadata = id
        else:
            metadata = ServiceMetadata(id=id, type=type(value) if inspect.isclass(id) else None, value=value)

        with self._lock:
            if metadata.multiple:
                self._multiple.setdefault(metadata.id, []).append(metadata)
            else:
                self._services[metadata.id] = metadata
        return self

    def provide(self, items: Iterable[ServiceMetadata | Mapping[str, Any] | tuple[Any, Any]]) -> Container:
        """Apply `set` to each item in order.

        Items are `ServiceMetadata`, mappings of its fields, or `(id, value)` pairs.
        """
        for item in items:
            if isinstance(item, ServiceMetadata):
                self.set(item)
            elif isinstance(item, Mapping) and set(item) == {"id", "value"}:
                self.set(item["id"], item["value"])
            elif isinstance(item, Mapping):
                self.set(ServiceMetadata(**item))
            else:
                identifier, value = item
                self.set(identifier, value)
        return self

    def register_service(
        self,
        id: Any = None,  # noqa: A002
        *,
        type: type | None = None,  # noqa: A002
        factory: Callable[[], Any] | tuple[Any, str] | None = None,
        multiple: bool = False,
    ) -> Container:
        """Register how a service is produced without producing it.

        Example:
          container.register_service(type=Car, factory=lambda: Car(Engine()))
          container.register_service(type=Car, factory=(CarFactory, "create_car"))

        """
        return self.set(ServiceMetadata(id=id, type=type, factory=factory, multiple=multiple))

    def register_declared(self, *classes: type) -> Container:
        """Register classes using their `service` declarations, if any."""
        for cls in classes:
            declaration = declaration_of(cls)
            self.set(declaration if declaration is not None else ServiceMetadata(type=cls))
        return self

    def register_handler(self, handler: HandlerMetadata) -> Container:
        """Append a handler; the first handler registered for an injection point wins."""
        with self._lock:
            if any(h.key == handler.key for h in self._handlers):
                target, point = handler.key
                logger.warning(
                    "A handler for %s[%r] is already registered; the earlier handler keeps precedence",
                    target.__qualname__,
                    point,
                )
            self._handlers.append(handler)
        return self

    def has(self, id: Any) -> bool:  # noqa: A002
        with self._lock:
            return id in self._services or bool(self._multiple.get(id))

    @overload
    def get(self, id: type[T]) -> T: ...  # noqa: A002

    @overload
    def get(self, id: Token[T]) -> T: ...  # noqa: A002

    @overload
    def get(self, id: str) -> Any: ...  # noqa: A002

    def get(self, id: Any) -> Any:  # noqa: A002
        """Resolve the identifier to an instance.

        - If an entry exists: return its value, producing it on first use.
        - If no entry exists and the identifier is a class: register it implicitly.
        - Otherwise raise `ServiceNotFoundError`.
        """
        with self._lock:
            metadata = self._services.get(id)
            if metadata is None:
                if not inspect.isclass(id):
                    raise ServiceNotFoundError(id)
                metadata = self._register_implicitly(id)

            if metadata.instantiated:
                return metadata.value

            return self._instantiate(metadata)

    def get_many(self, id: Any) -> list[Any]:  # noqa: A002
        """Resolve every entry registered with `multiple=True` for the identifier."""
        with self._lock:
            entries = self._multiple.get(id)
            if not entries:
                raise ServiceNotFoundError(id)

            return [entry.value if entry.instantiated else self._instantiate(entry) for entry in list(entries)]

    def remove(self, *ids: Any) -> Container:
        with self._lock:
            for identifier in ids:
                self._services.pop(identifier, None)
                self._multiple.pop(identifier, None)
        return self

    def reset(self) -> Container:
        """Drop every entry and handler. Classes are registered again on their next `get`."""
        with self._lock:
            self._services.clear()
            self._multiple.clear()
            self._handlers.clear()
        return self

    def _register_implicitly(self, cls: type) -> ServiceMetadata:
        declaration = declaration_of(cls)
        if declaration is None or declaration.id is not cls or declaration.multiple:
            declaration = ServiceMetadata(id=cls, type=cls)

        logger.debug("Implicitly registering %s", cls.__qualname__)
        self._services[cls] = declaration
        return declaration

    def _instantiate(self, metadata: ServiceMetadata) -> Any:
        for start, pending in enumerate(self._resolving):
            if pending is metadata:
                raise CircularDependencyError([entry.id for entry in self._resolving[start:]] + [metadata.id])

        self._resolving.append(metadata)
        try:
            value = self._produce(metadata)
        finally:
            self._resolving.pop()

        metadata.value = value
        return value

    def _produce(self, metadata: ServiceMetadata) -> Any:
        factory = metadata.factory
        if isinstance(factory, tuple):
            factory_id, method_name = factory
            return getattr(self.get(factory_id), method_name)()

        if factory is not None:
            return factory()

        if metadata.type is None:
            msg = f"Service {describe(metadata.id)} has neither a value, a factory nor a type to construct."
            raise ResolutionError(msg)

        return self._construct(metadata.type)

    def _construct(self, cls: type[T]) -> T:
        manifest = reflect(cls)
        logger.debug("Constructing %s", cls.__qualname__)

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for index, param in enumerate(manifest.parameters):
            value = self._resolve_parameter(cls, index, param)
            if param.name is None or param.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[param.name] = value

        instance = cls(*args, **kwargs)
        self._inject_properties(cls, instance, manifest)
        return instance

    def _resolve_parameter(self, cls: type, index: int, param: Parameter) -> Any:
        """Resolving param.

        Resolution precedence:
        1. handler registered for the parameter index
        2. explicit or registered identifier, or a non-builtin class
        3. default
        4. unregistered builtin constructed with no arguments, else identifier resolved as-is
        5. error.
        """
        handler = self._find_handler(cls, index)
        if handler is not None:
            return handler.value(self)

        identifier = param.identifier
        if identifier is not None and (
            param.explicit or identifier in self._services or _is_constructible_class(identifier)
        ):
            return self.get(identifier)

        if param.has_default:
            return param.default

        if identifier is None:
            msg = (
                f"Cannot satisfy constructor parameter '{param.name}' for {cls.__name__}. "
                f"No handler/annotation/default found."
            )
            raise ResolutionError(msg)

        if inspect.isclass(identifier):
            # unregistered builtin: built fresh, never cached as a service
            return identifier()

        return self.get(identifier)

    def _inject_properties(self, cls: type, instance: object, manifest: Manifest) -> None:
        handled: set[str] = set()
        for handler in self._handlers:
            name = handler.property_name
            if name is None or name in handled or not issubclass(cls, handler.object):
                continue
            setattr(instance, name, handler.value(self))
            handled.add(name)

        for name, identifier in manifest.properties.items():
            if name not in handled:
                setattr(instance, name, self.get(identifier))

    def _find_handler(self, cls: type, index: int) -> HandlerMetadata | None:
        for handler in self._handlers:
            if handler.object is cls and handler.index == index:
                return handler
        return None


def _is_constructible_class(identifier: Any) -> bool:
    return inspect.isclass(identifier) and getattr(identifier, "__module__", "") != "builtins"


container = Container()
