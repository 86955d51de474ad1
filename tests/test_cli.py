import json
import sys
import textwrap

import pytest
import yaml
from click.testing import CliRunner

from routedoc.cli import main

SAMPLE_APP = textwrap.dedent(
    """
    from starlette.responses import PlainTextResponse

    from routedoc import OpenAPI, Router

    app = Router()
    oapi = OpenAPI({"info": {"title": "Sample", "version": "0.1.0"}})
    app.use(oapi)

    bare = Router()
    standalone = OpenAPI()


    async def endpoint(request):
        return PlainTextResponse("ok")


    app.add("get", "/api/users/:id", oapi.path({"responses": {"200": {"description": "ok"}}}), endpoint)
    bare.add("get", "/things", standalone.path({"responses": {"200": {"description": "ok"}}}), endpoint)
    """
)

VALID_DOC = {
    "openapi": "3.0.0",
    "info": {"title": "Doc", "version": "1.0.0"},
    "paths": {"/ping": {"get": {"responses": {"200": {"description": "pong"}}}}},
}


@pytest.fixture
def sample_app(tmp_path, monkeypatch):
    (tmp_path / "cli_sample_app.py").write_text(SAMPLE_APP)
    monkeypatch.syspath_prepend(str(tmp_path))
    sys.modules.pop("cli_sample_app", None)
    yield "cli_sample_app"
    sys.modules.pop("cli_sample_app", None)


class TestCliGenerate:
    def test_generate_to_stdout(self, sample_app):
        result = CliRunner().invoke(main, ["generate", f"{sample_app}:app"])
        assert result.exit_code == 0, result.output
        doc = json.loads(result.stdout)
        assert doc["info"]["title"] == "Sample"
        assert list(doc["paths"]) == ["/api/users/{id}"]

    def test_generate_with_base_path(self, sample_app):
        result = CliRunner().invoke(main, ["generate", f"{sample_app}:app", "--base-path", "/api"])
        assert result.exit_code == 0, result.output
        assert list(json.loads(result.stdout)["paths"]) == ["/users/{id}"]

    def test_base_path_url_reduced_to_path(self, sample_app):
        result = CliRunner().invoke(
            main, ["generate", f"{sample_app}:app", "--base-path", "https://example.com/api/"]
        )
        assert result.exit_code == 0, result.output
        assert list(json.loads(result.stdout)["paths"]) == ["/users/{id}"]

    def test_generate_yaml_file(self, sample_app, tmp_path):
        output = tmp_path / "out" / "openapi.yaml"
        result = CliRunner().invoke(main, ["generate", f"{sample_app}:app", "-o", str(output)])
        assert result.exit_code == 0, result.output
        doc = yaml.safe_load(output.read_text())
        assert "/api/users/{id}" in doc["paths"]

    def test_explicit_openapi(self, sample_app):
        result = CliRunner().invoke(
            main, ["generate", f"{sample_app}:bare", "--openapi", f"{sample_app}:standalone", "--format", "yaml"]
        )
        assert result.exit_code == 0, result.output
        assert list(yaml.safe_load(result.stdout)["paths"]) == ["/things"]

    def test_no_openapi_found(self, sample_app):
        result = CliRunner().invoke(main, ["generate", f"{sample_app}:bare"])
        assert result.exit_code == 1
        assert "No OpenAPI middleware found" in result.output

    def test_bad_reference(self):
        result = CliRunner().invoke(main, ["generate", "no_colon_here"])
        assert result.exit_code == 2


class TestCliValidate:
    def test_valid(self, tmp_path):
        doc_path = tmp_path / "doc.json"
        doc_path.write_text(json.dumps(VALID_DOC))
        result = CliRunner().invoke(main, ["validate", str(doc_path)])
        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_invalid(self, tmp_path):
        doc_path = tmp_path / "doc.yaml"
        doc_path.write_text(yaml.safe_dump({"openapi": "3.0.0", "paths": {}}))
        result = CliRunner().invoke(main, ["validate", str(doc_path)])
        assert result.exit_code == 1
        assert "problem(s) found" in result.output

    def test_not_a_document(self, tmp_path):
        doc_path = tmp_path / "list.yaml"
        doc_path.write_text("- a\n- b\n")
        result = CliRunner().invoke(main, ["validate", str(doc_path)])
        assert result.exit_code == 1
        assert "does not contain a document object" in result.output


class TestCliConvert:
    def test_json_to_yaml(self, tmp_path):
        src = tmp_path / "doc.json"
        src.write_text(json.dumps(VALID_DOC))
        dest = tmp_path / "doc.yml"
        result = CliRunner().invoke(main, ["convert", str(src), "-o", str(dest)])
        assert result.exit_code == 0
        assert yaml.safe_load(dest.read_text()) == VALID_DOC

    def test_yaml_to_json(self, tmp_path):
        src = tmp_path / "doc.yaml"
        src.write_text(yaml.safe_dump(VALID_DOC))
        dest = tmp_path / "doc.json"
        result = CliRunner().invoke(main, ["convert", str(src), "-o", str(dest)])
        assert result.exit_code == 0
        assert json.loads(dest.read_text()) == VALID_DOC
