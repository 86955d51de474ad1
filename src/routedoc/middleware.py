"""The documentation middleware applications mount on their router.

    app = Router()
    oapi = OpenAPI()
    app.use(oapi)

    @app.get("/users/:id", oapi.valid_path({...}))
    async def get_user(request): ...

The current document is served at ``/openapi.json`` and rebuilt from the
live router on every request for it.
"""

import json
import logging

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.routing import Route as StarletteRoute

from routedoc.config import Options
from routedoc.convert import to_yaml
from routedoc.document.components import ComponentStore
from routedoc.document.conformance import conformance_errors
from routedoc.document.generate import generate_document, merge_base
from routedoc.document.registry import SchemaRegistry
from routedoc.errors import ComponentNotFound, HTTPError, RequestValidationFailed
from routedoc.routing.router import Router
from routedoc.ui import render_redoc, render_swagger_ui
from routedoc.validation.compiler import RequestValidator

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_PREFIX = "/openapi"


class OpenAPI:
    """Schema registry, component store and documentation endpoints.

    ``OpenAPI(document)`` and ``OpenAPI(document, options)`` are accepted as
    shorthands for ``OpenAPI(None, document, options)``.
    """

    def __init__(self, route_prefix: str | dict | None = None, document: dict | None = None,
                 options: Options | dict | None = None):
        if route_prefix is not None and not isinstance(route_prefix, str):
            route_prefix, document, options = None, route_prefix, document if options is None else options

        self.route_prefix = route_prefix or DEFAULT_ROUTE_PREFIX
        self.options = options if isinstance(options, Options) else Options.model_validate(options or {})
        self._base = merge_base(document)
        self.document = merge_base(self._base)
        self.registry = SchemaRegistry()
        self.components = ComponentStore(self._base)
        self.router = Router()
        self._mount_endpoints()

    def __repr__(self):
        return f"OpenAPI({self.route_prefix!r})"

    async def __call__(self, request: Request, call_next, path: str | None = None):
        if path is not None:
            request.scope["mount_path"] = _mount_prefix(request.url.path, path)
        return await self.router.handle(request, call_next, path=path)

    # -- schemas ----------------------------------------------------------

    def path(self, schema: dict | None = None):
        """A no-op handler that attaches ``schema`` to the route it is in."""

        async def schema_marker(request, call_next):
            return await call_next()

        self.registry.attach(schema_marker, schema or {})
        return schema_marker

    def valid_path(self, schema: dict | None = None, *, strict: bool = False, keywords=()):
        """Like ``path``, and rejects requests that do not match ``schema``.

        Failures are passed on as ``RequestValidationFailed`` (HTTP 400).
        """
        schema = schema or {}
        validator = RequestValidator(
            schema,
            lambda: self.components.components,
            coerce=self.options.coerce,
            in_place=self.options.coerce_in_place,
            strict=strict,
            keywords=keywords,
        )

        async def validate_request(request, call_next):
            # Only validate inside a route, not from a use() mount.
            if request.scope.get("route") is None:
                return await call_next()
            data = await request_data(request)
            errors = validator.validate(data)
            if not errors:
                return await call_next()
            return await call_next(RequestValidationFailed(errors, validator.compile().schema))

        validate_request.validator = validator
        self.registry.attach(validate_request, schema)
        return validate_request

    def doc(self, schema: dict | None = None):
        """Decorator attaching ``schema`` to a native endpoint (Starlette routes)."""

        def decorator(endpoint):
            self.registry.attach(endpoint, schema or {})
            return endpoint

        return decorator

    # -- components -------------------------------------------------------

    def define(self, type: str, name: str, definition) -> dict:
        reference = self.components.define(type, name, definition)
        if "components" not in self.document:
            self.document = {**self.document, "components": self.components.components}
        return reference

    def reference(self, type: str, name: str) -> dict:
        return self.components.reference(type, name)

    def list_components(self, type: str) -> dict | None:
        return self.components.list(type)

    # -- document ---------------------------------------------------------

    def generate_document(self, router=None) -> dict:
        return generate_document(
            self._base, router, base_path=self.options.base_path, registry=self.registry
        )

    def refresh(self, router=None) -> dict:
        """Rebuild the document and swap it in."""
        self.document = self.generate_document(router)
        logger.debug("Regenerated document: %d paths", len(self.document["paths"]))
        return self.document

    # -- endpoints --------------------------------------------------------

    def _mount_endpoints(self):
        prefix = self.route_prefix
        self.router.add("get", f"{prefix}.json", self.serve_json)
        self.router.add("get", f"{prefix}.yaml", self.serve_yaml)
        self.router.add("get", f"{prefix}/components/:type/:name.json", self.serve_component)
        self.router.add("get", f"{prefix}/validate", self.serve_validation)

        ui = self.options.htmlui
        if not ui:
            return
        self.router.add("get", prefix, self._redirect_to(f"{prefix}/{ui[0]}"))
        if "redoc" in ui:
            self.router.add("get", f"{prefix}/redoc", self.redoc())
        if "swagger-ui" in ui:
            self.router.add("get", f"{prefix}/swagger-ui", self.swaggerui())

    def starlette_routes(self) -> list[StarletteRoute]:
        """The documentation endpoints as native Starlette routes."""
        prefix = self.route_prefix
        routes = [
            StarletteRoute(f"{prefix}.json", self.serve_json),
            StarletteRoute(f"{prefix}.yaml", self.serve_yaml),
            StarletteRoute(f"{prefix}/components/{{type}}/{{name}}.json", self.serve_component),
            StarletteRoute(f"{prefix}/validate", self.serve_validation),
        ]
        if "redoc" in self.options.htmlui:
            routes.append(StarletteRoute(f"{prefix}/redoc", self.redoc()))
        if "swagger-ui" in self.options.htmlui:
            routes.append(StarletteRoute(f"{prefix}/swagger-ui", self.swaggerui()))
        return routes

    async def serve_json(self, request: Request) -> Response:
        return JSONResponse(self.refresh(request.scope.get("router")))

    async def serve_yaml(self, request: Request) -> Response:
        document = self.refresh(request.scope.get("router"))
        return Response(to_yaml(document), media_type="application/yaml")

    async def serve_component(self, request: Request) -> Response:
        params = request.path_params
        try:
            definition = self.components.get(params["type"], params["name"])
        except ComponentNotFound as e:
            return JSONResponse(e.to_dict(), status_code=e.status_code)
        return JSONResponse(definition)

    async def serve_validation(self, request: Request) -> Response:
        document = self.refresh(request.scope.get("router"))
        details = conformance_errors(document)
        body = {"valid": not details}
        if details:
            body["details"] = details
        body["document"] = document
        return JSONResponse(body)

    def _document_url(self, request: Request) -> str:
        return f"{_mount(request)}{self.route_prefix}.json"

    def redoc(self, **config):
        async def redoc_page(request: Request) -> Response:
            return HTMLResponse(render_redoc(self._document_url(request), **config))

        return redoc_page

    def swaggerui(self, **config):
        async def swagger_ui_page(request: Request) -> Response:
            return HTMLResponse(render_swagger_ui(self._document_url(request), **config))

        return swagger_ui_page

    @staticmethod
    def _redirect_to(path: str):
        async def redirect(request: Request) -> Response:
            return RedirectResponse(f"{_mount(request)}{path}")

        return redirect


def _mount_prefix(full_path: str, remaining: str) -> str:
    """The part of ``full_path`` consumed by the enclosing mounts."""
    if remaining == "/":
        return full_path.rstrip("/")
    return full_path[: len(full_path) - len(remaining)]


def _mount(request: Request) -> str:
    scope = request.scope
    return scope["mount_path"] if "mount_path" in scope else scope.get("root_path", "")


async def request_data(request: Request) -> dict:
    """``{headers, params, query, body}`` for a request, cached on ``request.state.data``."""
    data = getattr(request.state, "data", None)
    if data is None:
        data = {
            "headers": dict(request.headers),
            "query": _query(request),
        }
        body = await request.body()
        if body and _is_json(request):
            try:
                data["body"] = json.loads(body)
            except ValueError as e:
                raise HTTPError(f"Invalid JSON body: {e}", status_code=400) from e
        request.state.data = data
    data["params"] = {str(k): v for k, v in request.path_params.items()}
    return data


def _query(request: Request) -> dict:
    query: dict = {}
    for key, value in request.query_params.multi_items():
        if key in query:
            existing = query[key]
            query[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            query[key] = value
    return query


def _is_json(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def find_openapi(router) -> OpenAPI | None:
    """First ``OpenAPI`` instance mounted anywhere on ``router``."""
    for layer in getattr(router, "stack", []):
        if isinstance(layer.handle, OpenAPI):
            return layer.handle
        if isinstance(layer.handle, Router):
            found = find_openapi(layer.handle)
            if found is not None:
                return found
    return None
