"""Request-validation compiler.

An operation is turned into one JSON Schema describing the request as
``{headers, params, query, body}``, compiled once with ``jsonschema`` and
reused for every later request on the same route.
"""

import copy
import json
import logging

from jsonschema import Draft7Validator, validators

from routedoc.errors import UnsupportedContentType
from routedoc.validation.coerce import coerce
from routedoc.validation.keywords import resolve_keywords

logger = logging.getLogger(__name__)

BASE_REQUEST_SCHEMA = {
    "type": "object",
    "required": ["headers", "params", "query"],
    "properties": {
        "headers": {"type": "object", "required": [], "properties": {}},
        "params": {"type": "object", "required": [], "properties": {}},
        "query": {"type": "object", "required": [], "properties": {}},
        "body": {"type": "object", "required": [], "properties": {}},
    },
}

_LOCATIONS = {"path": "params", "query": "query", "header": "headers"}


def build_request_schema(operation: dict, components: dict | None = None) -> dict:
    """Synthesize the request schema for one operation."""
    schema = copy.deepcopy(BASE_REQUEST_SCHEMA)
    properties = schema["properties"]

    for param in operation.get("parameters") or []:
        location = _LOCATIONS.get(param.get("in"))
        if location is None or "name" not in param:
            continue
        name = str(param["name"])
        if location == "headers":
            name = name.lower()
        target = properties[location]
        target["properties"][name] = param.get("schema") or {}
        if param.get("required") and name not in target["required"]:
            target["required"].append(name)

    body = operation.get("requestBody")
    if body:
        for content_type, media in (body.get("content") or {}).items():
            if content_type != "application/json":
                raise UnsupportedContentType(content_type)
            properties["body"] = (media or {}).get("schema") or {}
        if body.get("required"):
            schema["required"].append("body")

    if components:
        schema["components"] = components
    return schema


def json_pointer(parts) -> str:
    return "".join("/" + str(p).replace("~", "~0").replace("/", "~1") for p in parts)


def format_error(error) -> dict:
    """Flatten a ``jsonschema`` error into a serializable issue."""
    return {
        "instancePath": json_pointer(error.absolute_path),
        "schemaPath": "#" + json_pointer(error.absolute_schema_path),
        "keyword": error.validator,
        "params": _error_params(error),
        "message": error.message,
    }


def _error_params(error) -> dict:
    keyword = error.validator
    value = error.validator_value
    if keyword == "required":
        instance = error.instance if isinstance(error.instance, dict) else {}
        missing = [p for p in value if p not in instance]
        name = next((p for p in missing if repr(p) in error.message), missing[0] if missing else None)
        return {"missingProperty": name}
    if keyword == "enum":
        return {"allowedValues": value}
    if keyword == "additionalProperties":
        return {"additionalProperty": error.message}
    if isinstance(value, (str, int, float, bool, list)) or value is None:
        return {keyword: value}
    return {}


class CompiledValidator:
    """A compiled request schema: ``validator(data) -> list of issues``."""

    def __init__(self, schema: dict, validator, coerce_types: bool = True):
        self.schema = schema
        self.validator = validator
        self.coerce_types = coerce_types

    def __call__(self, data) -> list[dict]:
        if self.coerce_types:
            coerce(data, self.schema)
        return [format_error(e) for e in self.validator.iter_errors(data)]


def compile_validator(schema: dict, *, coerce: bool = True, strict: bool = False, keywords=()) -> CompiledValidator:
    cls = Draft7Validator
    extra = resolve_keywords(keywords) if keywords else {}
    if extra:
        cls = validators.extend(Draft7Validator, extra)
    if strict:
        cls.check_schema(schema)
    validator = cls(schema, format_checker=Draft7Validator.FORMAT_CHECKER)
    return CompiledValidator(schema, validator, coerce_types=coerce)


def snapshot(data: dict) -> dict:
    """Detached JSON copy of request data."""
    return json.loads(json.dumps(data, default=str))


class RequestValidator:
    """Lazily compiles and caches the validator for one route.

    ``components`` is a callable returning the owning document's current
    ``components`` so references defined after the route still resolve.
    """

    def __init__(self, operation: dict, components=None, *, coerce: bool = True,
                 in_place: bool = False, strict: bool = False, keywords=()):
        self.operation = operation or {}
        self.components = components or (lambda: None)
        self.coerce = coerce
        self.in_place = in_place
        self.strict = strict
        self.keywords = keywords
        self._compiled: CompiledValidator | None = None

    def compile(self) -> CompiledValidator:
        if self._compiled is None:
            schema = build_request_schema(self.operation, self.components())
            self._compiled = compile_validator(
                schema, coerce=self.coerce, strict=self.strict, keywords=self.keywords
            )
            logger.debug("Compiled request validator for %s", self.operation.get("operationId", "<operation>"))
        return self._compiled

    def reset(self) -> None:
        self._compiled = None

    def validate(self, data: dict) -> list[dict]:
        """Validate request data; mutates ``data`` only in in-place mode."""
        validator = self.compile()
        if not self.in_place:
            data = snapshot(data)
        return validator(data)
