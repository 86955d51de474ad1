"""Schema-directed type coercion of request data.

Textual request values (query strings, headers, path params) are converted
to the type the schema declares before validation. Values that cannot be
converted are left alone so the validator reports them.
"""

_MISSING = object()


def coerce(data, schema: dict, root: dict | None = None):
    """Coerce ``data`` in place where possible and return the result."""
    root = schema if root is None else root
    schema = _deref(schema, root)
    if not isinstance(schema, dict):
        return data

    types = schema.get("type")
    if types is not None:
        value = _coerce_scalar(data, types if isinstance(types, list) else [types])
        if value is not _MISSING:
            data = value

    if isinstance(data, dict):
        properties = schema.get("properties") or {}
        for name, subschema in properties.items():
            if name in data:
                data[name] = coerce(data[name], subschema, root)
    elif isinstance(data, list) and isinstance(schema.get("items"), dict):
        for i, item in enumerate(data):
            data[i] = coerce(item, schema["items"], root)

    for subschema in schema.get("allOf") or []:
        data = coerce(data, subschema, root)
    return data


def _deref(schema, root: dict, depth: int = 0):
    while isinstance(schema, dict) and "$ref" in schema and depth < 32:
        target = _pointer(root, schema["$ref"])
        if target is _MISSING:
            return schema
        schema = target
        depth += 1
    return schema


def _pointer(root: dict, ref: str):
    if not ref.startswith("#/"):
        return _MISSING
    node = root
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _json_type(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _matches(value, types: list[str]) -> bool:
    kind = _json_type(value)
    if kind in types:
        return True
    if kind == "integer" and "number" in types:
        return True
    return kind == "number" and "integer" in types and float(value).is_integer()


def _coerce_scalar(value, types: list[str]):
    if _matches(value, types):
        return _MISSING
    for target in types:
        converted = _convert(value, target)
        if converted is not _MISSING:
            return converted
    return _MISSING


def _convert(value, target: str):
    kind = _json_type(value)
    if target == "string":
        if kind == "boolean":
            return "true" if value else "false"
        if kind in ("integer", "number"):
            return str(value)
        if kind == "null":
            return ""
    elif target in ("number", "integer"):
        if kind == "boolean":
            return int(value)
        if kind == "null":
            return 0
        if kind == "string" and value.strip() == value and value:
            number = _parse_number(value)
            if number is _MISSING:
                return _MISSING
            if target == "integer":
                return int(number) if float(number).is_integer() else _MISSING
            return number
    elif target == "boolean":
        if value in ("true", 1) and kind != "boolean":
            return True
        if value in ("false", 0, None) and kind != "boolean":
            return False
    elif target == "null":
        if value in ("", 0, False) and kind != "null":
            return None
    elif target == "array" and kind in ("string", "integer", "number", "boolean", "null"):
        return [value]
    return _MISSING


def _parse_number(text: str):
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return _MISSING
    if number != number or number in (float("inf"), float("-inf")):
        return _MISSING
    return number
