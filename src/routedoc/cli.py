"""CLI entry point for routedoc."""

import importlib
import logging
import sys
from pathlib import Path

import click

from routedoc.config import Options
from routedoc.convert import load_document, to_json, to_yaml
from routedoc.document.conformance import conformance_errors
from routedoc.middleware import OpenAPI, find_openapi


def _import_object(ref: str):
    """Import ``module:attr`` (``attr`` may be dotted)."""
    module_name, _, attr = ref.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"Expected 'module:attribute', got {ref!r}")
    if "" not in sys.path and "." not in sys.path:
        sys.path.insert(0, ".")
    obj = importlib.import_module(module_name)
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


def _dump(document: dict, fmt: str) -> str:
    return to_yaml(document) if fmt == "yaml" else to_json(document) + "\n"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """routedoc: OpenAPI documents from live route tables."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("app_ref")
@click.option("--openapi", "openapi_ref", default=None, help="module:attr of the OpenAPI instance (default: the one mounted on the app).")
@click.option("--base-path", default=None, help="Strip this prefix from every discovered path.")
@click.option("--format", "fmt", default=None, type=click.Choice(["json", "yaml"]), help="Output format (default: from the output suffix, else json).")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write the document here instead of stdout.")
def generate(app_ref: str, openapi_ref: str | None, base_path: str | None, fmt: str | None, output: Path | None):
    """Generate the OpenAPI document for APP_REF (module:attr)."""
    app = _import_object(app_ref)
    oapi = _import_object(openapi_ref) if openapi_ref else find_openapi(app)
    if not isinstance(oapi, OpenAPI):
        raise click.ClickException("No OpenAPI middleware found; pass --openapi module:attr")
    if base_path is not None:
        oapi.options = Options.model_validate({**oapi.options.model_dump(), "base_path": base_path})

    document = oapi.refresh(app)
    if fmt is None:
        fmt = "yaml" if output is not None and output.suffix in (".yaml", ".yml") else "json"
    text = _dump(document, fmt)

    if output is None:
        click.echo(text, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Document with {len(document['paths'])} paths saved to {output}", err=True)


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
def validate(doc_path: Path):
    """Check a JSON or YAML document against the OpenAPI specification."""
    try:
        document = load_document(doc_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    errors = conformance_errors(document)
    if not errors:
        click.echo(f"{doc_path} is valid.")
        return
    for error in errors:
        location = "/".join(str(p) for p in error["path"]) or "<root>"
        click.echo(f"{location}: {error['message']}")
    raise click.ClickException(f"{len(errors)} problem(s) found in {doc_path}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file; .yaml/.yml writes YAML, anything else JSON.")
def convert(doc_path: Path, output: Path):
    """Convert a document between JSON and YAML."""
    try:
        document = load_document(doc_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    fmt = "yaml" if output.suffix in (".yaml", ".yml") else "json"
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(_dump(document, fmt), encoding="utf-8")
    click.echo(f"Converted {doc_path} to {output}")
