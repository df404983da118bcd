from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Any, get_args, get_origin, get_type_hints

from ._metadata import EMPTY


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


logger = logging.getLogger(__name__)

MANIFEST_ATTRIBUTE = "__servicehub_manifest__"


class Inject:
    """Marks an injection point.

    As a class attribute it declares an injectable property; the identifier is
    either given explicitly or taken from the attribute's annotation:

        class Car:
            engine: Engine = Inject()
            wheels = Inject("wheel.factory")

    Inside `Annotated` it names the identifier of a constructor parameter:

        def __init__(self, url: Annotated[str, Inject("database.url")]): ...
    """

    def __init__(self, identifier: Any = None) -> None:
        self.identifier = identifier
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: object, owner: type | None = None) -> Any:
        if instance is None:
            return self
        msg = f"Property '{self.name}' of {type(instance).__name__} has not been injected"
        raise AttributeError(msg)

    def __repr__(self) -> str:
        return f"Inject({self.identifier!r})"


@dataclass(frozen=True)
class Parameter:
    name: str | None
    identifier: Any = None
    default: Any = EMPTY
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_ONLY
    explicit: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not EMPTY


@dataclass(frozen=True)
class Manifest:
    """Dependencies of a class: ordered constructor parameters and injectable properties."""

    parameters: tuple[Parameter, ...] = ()
    properties: Mapping[str, Any] = field(default_factory=dict)


def attach_manifest(cls: type, parameters: Iterable[Any]) -> None:
    """Pin the constructor parameters of `cls` to the given identifiers, passed positionally."""
    params = tuple(Parameter(name=None, identifier=p, explicit=True) for p in parameters)
    setattr(cls, MANIFEST_ATTRIBUTE, params)


def reflect(cls: type) -> Manifest:
    explicit = cls.__dict__.get(MANIFEST_ATTRIBUTE)
    parameters = explicit if explicit is not None else _reflect_parameters(cls)
    return Manifest(parameters=parameters, properties=_reflect_properties(cls))


def _reflect_parameters(cls: type) -> tuple[Parameter, ...]:
    if cls.__module__ == "builtins":
        return ()

    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError):
        # builtins and extension types without introspectable signatures
        return ()

    hints = _get_init_type_hints(cls)
    parameters = []
    for name, p in sig.parameters.items():
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
            continue

        identifier, explicit = _identifier_from_annotation(hints.get(name))
        parameters.append(
            Parameter(
                name=name,
                identifier=identifier,
                default=p.default if p.default is not p.empty else EMPTY,
                kind=p.kind,
                explicit=explicit,
            )
        )
    return tuple(parameters)


def _reflect_properties(cls: type) -> dict[str, Any]:
    hints = _get_class_type_hints(cls)
    properties: dict[str, Any] = {}

    # walk from the most derived class so overrides win
    for klass in cls.__mro__:
        for name, attr in vars(klass).items():
            if name in properties or not isinstance(attr, Inject):
                continue
            identifier = attr.identifier
            if identifier is None:
                identifier, _ = _identifier_from_annotation(hints.get(name))
            if identifier is None:
                msg = f"Cannot determine what to inject into {cls.__name__}.{name}: annotate it or pass an identifier"
                raise TypeError(msg)
            properties[name] = identifier
    return properties


def _identifier_from_annotation(annotation: Any) -> tuple[Any, bool]:
    if annotation is None:
        return None, False

    if get_origin(annotation) is Annotated:
        base, *extras = get_args(annotation)
        for extra in extras:
            if isinstance(extra, Inject):
                return (extra.identifier if extra.identifier is not None else base), True
        return base, False

    return annotation, False


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init, include_extras=True)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints


def _get_class_type_hints(cls: type) -> dict[str, Any]:
    try:
        hints = get_type_hints(cls, include_extras=True)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) property hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
