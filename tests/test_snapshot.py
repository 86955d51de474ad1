import pytest
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Mount, Route
from starlette.testclient import TestClient

from routedoc.middleware import OpenAPI
from routedoc.routing.pathspec import Key
from routedoc.routing.router import Router
from routedoc.routing.snapshot import TemplatePattern, snapshot

OK = {"responses": {"200": {"description": "ok"}}}


def make_starlette_app():
    oapi = OpenAPI()

    @oapi.doc({"summary": "Fetch a user", **OK})
    async def get_user(request):
        return PlainTextResponse(str(request.path_params["id"]))

    @oapi.doc({"summary": "Items", **OK})
    async def items(request):
        return PlainTextResponse("items")

    async def undocumented(request):
        return PlainTextResponse("hidden")

    app = Starlette(routes=[
        Route("/users/{id:int}", get_user),
        Mount("/api", routes=[Route("/items/{name}", items, methods=["GET", "POST"])]),
        Route("/hidden", undocumented),
        *oapi.starlette_routes(),
    ])
    return app, oapi


class TestTemplatePattern:
    def test_convertors_dropped(self):
        pattern = TemplatePattern("/users/{id:int}/files/{path:path}")
        assert pattern.template() == "/users/{id}/files/{path}"
        assert pattern.keys == [Key("id"), Key("path")]


class TestSnapshot:
    def test_router_layers(self):
        app = Router()
        sub = Router()
        app.use("/sub", sub)
        app.add("get", "/x", lambda r: None)

        mounted, route = snapshot(app)
        assert mounted.kind == "router"
        assert route.kind == "route"
        assert [child.method for child in route.children] == ["get"]

    def test_starlette_routes(self):
        app, _ = make_starlette_app()
        nodes = snapshot(app)
        user, mount = nodes[0], nodes[1]
        assert user.kind == "route"
        assert [child.method for child in user.children] == ["get"]
        assert mount.kind == "router"
        assert [child.method for child in mount.children[0].children] == ["get", "post"]

    def test_unreadable_host(self):
        with pytest.raises(TypeError):
            snapshot(object())


class TestStarletteDocument:
    def test_generate(self):
        app, oapi = make_starlette_app()
        paths = oapi.generate_document(app)["paths"]
        assert set(paths) == {"/users/{id}", "/api/items/{name}"}
        assert paths["/users/{id}"]["get"]["summary"] == "Fetch a user"
        assert [p["name"] for p in paths["/users/{id}"]["get"]["parameters"]] == ["id"]
        assert set(paths["/api/items/{name}"]) == {"get", "post"}

    def test_served_over_http(self):
        app, _ = make_starlette_app()
        client = TestClient(app)
        resp = client.get("/openapi.json")
        assert resp.status_code == 200
        assert "/api/items/{name}" in resp.json()["paths"]
        assert client.get("/users/7").text == "7"

    def test_component_endpoint(self):
        app, oapi = make_starlette_app()
        oapi.define("schemas", "User", {"type": "object"})
        client = TestClient(app)
        assert client.get("/openapi/components/schemas/User.json").json() == {"type": "object"}
        assert client.get("/openapi/components/schemas/Nope.json").status_code == 404
