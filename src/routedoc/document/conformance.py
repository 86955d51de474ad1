"""Check a generated document against the OpenAPI specification."""

from openapi_spec_validator import OpenAPIV30SpecValidator, OpenAPIV31SpecValidator

from routedoc.convert import normalize


def conformance_errors(document: dict) -> list[dict]:
    """Return one entry per conformance problem; empty when valid."""
    spec = normalize(document)
    version = str(spec.get("openapi", ""))
    cls = OpenAPIV31SpecValidator if version.startswith("3.1") else OpenAPIV30SpecValidator
    return [
        {
            "message": error.message,
            "path": list(error.absolute_path),
            "keyword": error.validator,
        }
        for error in cls(spec).iter_errors()
    ]
