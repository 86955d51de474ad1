"""Read-only snapshots of host routing trees.

The route walker never touches host internals directly. Each host is
turned into a tree of ``LayerNode`` at generation time:

- ``router``  - contributes a path prefix, children are its layers
- ``route``   - contributes one path per alternative, children are handlers
- ``handler`` - a terminal layer; documented when it has a method
"""

import re
from dataclasses import dataclass

from starlette.routing import Mount
from starlette.routing import Route as StarletteRoute

from routedoc.routing.pathspec import Key
from routedoc.routing.router import Layer, Router

# Same grammar as Starlette's own path parameters: {name} or {name:convertor}
_STARLETTE_PARAM_RE = re.compile(r"{([a-zA-Z_][a-zA-Z0-9_]*)(?::[a-zA-Z_][a-zA-Z0-9_]*)?}")


@dataclass(frozen=True)
class LayerNode:
    kind: str
    patterns: tuple = ()
    children: tuple = ()
    method: str | None = None
    handle: object = None


class TemplatePattern:
    """A Starlette path (``/users/{id:int}``) seen as a path pattern."""

    def __init__(self, source: str):
        self.source = source
        self.keys = [Key(name) for name in _STARLETTE_PARAM_RE.findall(source)]

    def __repr__(self):
        return f"TemplatePattern({self.source!r})"

    def template(self) -> str:
        return _STARLETTE_PARAM_RE.sub(r"{\1}", self.source)


def snapshot(host) -> list[LayerNode]:
    """Snapshot a routedoc ``Router`` or anything with Starlette ``routes``."""
    if isinstance(host, Router):
        return [_from_layer(layer) for layer in host.stack]

    routes = getattr(host, "routes", None)
    if routes is None:
        raise TypeError(f"Cannot read routes from {host!r}")
    nodes = []
    for route in routes:
        node = _from_starlette(route)
        if node is not None:
            nodes.append(node)
    return nodes


def _from_layer(layer: Layer) -> LayerNode:
    if layer.route is not None:
        handlers = tuple(
            LayerNode("handler", method=l.method, handle=l.handle) for l in layer.route.stack
        )
        return LayerNode("route", tuple(layer.patterns), handlers)
    if isinstance(layer.handle, Router):
        return LayerNode("router", tuple(layer.patterns), tuple(snapshot(layer.handle)))
    return LayerNode("handler", handle=layer.handle)


def _from_starlette(route) -> LayerNode | None:
    if isinstance(route, Mount):
        return LayerNode("router", (TemplatePattern(route.path),), tuple(snapshot(route)))
    if isinstance(route, StarletteRoute):
        methods = sorted(m.lower() for m in (route.methods or ()) if m != "HEAD")
        handlers = tuple(LayerNode("handler", method=m, handle=route.endpoint) for m in methods)
        return LayerNode("route", (TemplatePattern(route.path),), handlers)
    return None
