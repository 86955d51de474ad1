"""OpenAPI documentation and request validation for route tables."""

from routedoc.config import Options
from routedoc.document.components import COMPONENT_TYPES, ComponentStore
from routedoc.document.generate import MINIMUM_VIABLE_DOCUMENT, generate_document
from routedoc.document.registry import SchemaRegistry
from routedoc.errors import (
    ComponentNotFound,
    HTTPError,
    RequestValidationFailed,
    RoutedocError,
    UnknownComponent,
    UnsupportedContentType,
)
from routedoc.middleware import DEFAULT_ROUTE_PREFIX, OpenAPI
from routedoc.routing.router import Route, Router

__version__ = "0.1.0"

__all__ = [
    "COMPONENT_TYPES",
    "ComponentNotFound",
    "ComponentStore",
    "DEFAULT_ROUTE_PREFIX",
    "HTTPError",
    "MINIMUM_VIABLE_DOCUMENT",
    "OpenAPI",
    "Options",
    "RequestValidationFailed",
    "Route",
    "Router",
    "RoutedocError",
    "SchemaRegistry",
    "UnknownComponent",
    "UnsupportedContentType",
    "generate_document",
]
