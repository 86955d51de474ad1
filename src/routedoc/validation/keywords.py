"""Extra JSON-Schema keywords that can be enabled per validated route.

Values are checked as they arrive from JSON. ``typeof`` uses JavaScript
type names, so ``null`` and arrays report as ``"object"``.
"""

import re

from jsonschema import ValidationError


def regexp(validator, value, instance, schema):
    """``regexp``: a regular expression with flags.

    Accepts ``"/pattern/flags"`` or ``{"pattern": ..., "flags": ...}``.
    """
    if not validator.is_type(instance, "string"):
        return
    pattern, flags = _parse_regexp(value)
    if not re.search(pattern, instance, flags):
        yield ValidationError(f"{instance!r} does not match regexp {value!r}")


def _parse_regexp(value) -> tuple[str, int]:
    if isinstance(value, dict):
        return value["pattern"], _flags(value.get("flags", ""))
    m = re.fullmatch(r"/(.*)/([a-z]*)", value, re.DOTALL)
    if m:
        return m.group(1), _flags(m.group(2))
    return value, 0


def _flags(letters: str) -> int:
    flags = 0
    for letter in letters:
        if letter == "i":
            flags |= re.IGNORECASE
        elif letter == "m":
            flags |= re.MULTILINE
        elif letter == "s":
            flags |= re.DOTALL
    return flags


def range_(validator, value, instance, schema):
    """``range``: ``[minimum, maximum]``, both inclusive."""
    if not validator.is_type(instance, "number"):
        return
    low, high = value
    if not low <= instance <= high:
        yield ValidationError(f"{instance!r} is not in range {low}..{high}")


def exclusive_range(validator, value, instance, schema):
    """``exclusiveRange``: ``[minimum, maximum]``, both exclusive."""
    if not validator.is_type(instance, "number"):
        return
    low, high = value
    if not low < instance < high:
        yield ValidationError(f"{instance!r} is not strictly between {low} and {high}")


def _typeof(instance) -> str:
    # JavaScript's typeof over JSON values
    if isinstance(instance, bool):
        return "boolean"
    if isinstance(instance, (int, float)):
        return "number"
    if isinstance(instance, str):
        return "string"
    return "object"


def typeof(validator, value, instance, schema):
    """``typeof``: a JavaScript type name or a list of them."""
    allowed = [value] if isinstance(value, str) else value
    if _typeof(instance) not in allowed:
        yield ValidationError(f"{instance!r} is not of typeof {value!r}")


def all_required(validator, value, instance, schema):
    """``allRequired``: every key listed in ``properties`` must be present."""
    if not value or not validator.is_type(instance, "object"):
        return
    for name in schema.get("properties") or {}:
        if name not in instance:
            yield ValidationError(f"{name!r} is a required property")


def any_required(validator, value, instance, schema):
    """``anyRequired``: at least one of the listed keys must be present."""
    if validator.is_type(instance, "object") and not any(name in instance for name in value):
        yield ValidationError(f"At least one of {value!r} is required")


def one_required(validator, value, instance, schema):
    """``oneRequired``: exactly one of the listed keys must be present."""
    if not validator.is_type(instance, "object"):
        return
    present = [name for name in value if name in instance]
    if len(present) != 1:
        yield ValidationError(f"Exactly one of {value!r} is required, found {present!r}")


def prohibited(validator, value, instance, schema):
    """``prohibited``: none of the listed keys may be present."""
    if not validator.is_type(instance, "object"):
        return
    for name in value:
        if name in instance:
            yield ValidationError(f"{name!r} is a prohibited property")


KEYWORDS = {
    "regexp": regexp,
    "range": range_,
    "exclusiveRange": exclusive_range,
    "typeof": typeof,
    "allRequired": all_required,
    "anyRequired": any_required,
    "oneRequired": one_required,
    "prohibited": prohibited,
}


def resolve_keywords(names) -> dict:
    """Map keyword names to validator callables."""
    if isinstance(names, str):
        names = [names]
    unknown = [n for n in names if n not in KEYWORDS]
    if unknown:
        raise ValueError(f"Unknown validation keywords: {', '.join(unknown)}")
    return {name: KEYWORDS[name] for name in names}
