"""Service container with constructor and property injection.

This package provides a small inversion-of-control registry that maps
identifiers (classes, names or typed tokens) to services, constructs classes
from their dependency manifest, and lets callers override single injection
points with handlers.

Exports:
- `Container`: the registry; `container` is the process-wide instance.
- `Token`: identity-compared key carrying the type of the service it names.
- `ServiceMetadata` / `HandlerMetadata`: registration records.
- `Inject`, `reflect`, `Manifest`, `Parameter`: dependency manifests.
- `service`, `declaration_of`: class declarations applied at bootstrap.
"""

from ._container import Container, container
from ._decorators import declaration_of, service
from ._errors import CircularDependencyError, ResolutionError, ServiceNotFoundError
from ._metadata import EMPTY, HandlerMetadata, ServiceMetadata, Token
from ._reflection import Inject, Manifest, Parameter, reflect


__all__ = [
    "EMPTY",
    "CircularDependencyError",
    "Container",
    "HandlerMetadata",
    "Inject",
    "Manifest",
    "Parameter",
    "ResolutionError",
    "ServiceMetadata",
    "ServiceNotFoundError",
    "Token",
    "container",
    "declaration_of",
    "reflect",
    "service",
]
