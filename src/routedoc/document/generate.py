"""Compose a base document with the operations found on a live router."""

import copy
import logging

from routedoc.document.registry import SchemaRegistry
from routedoc.document.walker import walk
from routedoc.routing.snapshot import snapshot

logger = logging.getLogger(__name__)

MINIMUM_VIABLE_DOCUMENT = {
    "openapi": "3.0.0",
    "info": {
        "title": "API",
        "version": "1.0.0",
    },
    "paths": {},
}


def merge_base(base: dict | None) -> dict:
    """Shallow-merge ``base`` over the minimal defaults without sharing them."""
    base = base or {}
    defaults = copy.deepcopy(MINIMUM_VIABLE_DOCUMENT)
    return {
        "openapi": defaults["openapi"],
        **base,
        "info": {**defaults["info"], **(base.get("info") or {})},
        "paths": {**defaults["paths"], **(base.get("paths") or {})},
    }


def path_parameters(keys, declared: list | None) -> list[dict]:
    """Merge path capture keys with declared parameters by ``(name, in)``.

    A declared entry wins; autogenerated fields it omits are kept.
    """
    declared = declared or []
    params: list[dict] = []
    seen = set()
    for key in keys:
        ident = (str(key.name), "path")
        if ident in seen:
            continue
        seen.add(ident)
        match = next((p for p in declared if _ident(p) == ident), None)
        params.append({
            "name": key.name,
            "in": "path",
            "required": not key.optional,
            "schema": {"type": "string"},
            **(match or {}),
        })

    for p in declared:
        ident = _ident(p)
        if ident is None or ident not in seen:
            params.append(p)
            if ident is not None:
                seen.add(ident)
    return params


def _ident(param: dict) -> tuple[str, str] | None:
    if "name" not in param:
        return None
    return str(param["name"]), param.get("in")


def compose_operation(schema: dict, keys) -> dict:
    operation = dict(schema)
    if keys:
        operation["parameters"] = path_parameters(keys, schema.get("parameters"))
    return operation


def generate_document(
    base: dict | None,
    router=None,
    base_path: str | None = None,
    registry: SchemaRegistry | None = None,
) -> dict:
    """Build a new document from ``base`` and the routes found on ``router``.

    ``base`` is never mutated. Without a router the merged base is returned.
    """
    doc = merge_base(base)
    if router is None or registry is None:
        return doc

    paths = doc["paths"]

    def visit(path, keys, node):
        operation = registry.cached_operation(node.handle, path, node.method)
        if operation is None:
            operation = compose_operation(registry.lookup(node.handle), keys)
            registry.cache_operation(node.handle, path, node.method, operation)
        paths[path] = {**paths.get(path, {}), node.method: operation}

    walk(snapshot(router), registry, visit, base_path=base_path)
    logger.debug("Generated document with %d paths", len(paths))
    return doc
