"""Document serialization helpers."""

import json
from pathlib import Path
from urllib.parse import urlsplit

import yaml


def normalize(document: dict) -> dict:
    """JSON round-trip: integer keys (response codes) become strings."""
    return json.loads(json.dumps(document))


def to_json(document: dict, indent: int | None = 2) -> str:
    return json.dumps(document, indent=indent)


def to_yaml(document: dict) -> str:
    return yaml.safe_dump(normalize(document), sort_keys=False, allow_unicode=True)


def load_document(file_path: Path) -> dict:
    """Load a JSON or YAML document file."""
    text = Path(file_path).read_text(encoding="utf-8")
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"{file_path} is not a JSON or YAML document: {e}") from e
    if not isinstance(doc, dict):
        raise ValueError(f"{file_path} does not contain a document object")
    return doc


def extract_path(value: str) -> str:
    """Path (and query) of a URL; values that already are paths pass through."""
    if value.startswith("/"):
        return value
    parts = urlsplit(value)
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path
