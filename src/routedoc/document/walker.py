"""Depth-first traversal of a routing snapshot."""

from collections.abc import Callable

from routedoc.document.registry import SchemaRegistry
from routedoc.routing.pathspec import Key
from routedoc.routing.snapshot import LayerNode

Visit = Callable[[str, tuple[Key, ...], LayerNode], None]


def walk(nodes, registry: SchemaRegistry, visit: Visit, base_path: str | None = None) -> None:
    """Call ``visit(path, keys, node)`` for every documented terminal layer.

    ``path`` is the full OpenAPI path template and ``keys`` the capture keys
    accumulated from every enclosing router and route.
    """
    for node in nodes:
        _walk(node, "", (), registry, visit, base_path)


def _walk(node: LayerNode, prefix: str, keys: tuple, registry, visit, base_path) -> None:
    if node.kind == "handler":
        if node.method and registry.lookup(node.handle) is not None:
            visit(strip_base_path(prefix or "/", base_path), keys, node)
        return

    for pattern in node.patterns:
        template = pattern.template()
        if node.kind == "router" and template == "/":
            template = ""
        path = join(prefix, template)
        for child in node.children:
            _walk(child, path, keys + tuple(pattern.keys), registry, visit, base_path)


def join(prefix: str, segment: str) -> str:
    if prefix.endswith("/") and segment.startswith("/"):
        return prefix + segment[1:]
    return prefix + segment


def strip_base_path(path: str, base_path: str | None) -> str:
    """Remove ``base_path`` from the start of ``path``, once."""
    if not base_path or base_path == "/" or not path.startswith(base_path):
        return path
    rest = path[len(base_path):]
    if rest and not rest.startswith("/") and not base_path.endswith("/"):
        return path
    if not rest.startswith("/"):
        rest = "/" + rest
    return rest
