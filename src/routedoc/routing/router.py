"""Express-flavoured ASGI router built on Starlette requests and responses.

Handlers are told apart by their positional arity::

    endpoint(request)                    -> Response
    middleware(request, call_next)       -> Response
    error_handler(error, request, call_next) -> Response

``call_next(error=None)`` continues down the stack; passing an error (or
raising one) skips to the next error handler.
"""

import inspect
import logging
import re

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from routedoc.errors import HTTPError
from routedoc.routing.pathspec import PathPattern

logger = logging.getLogger(__name__)

METHODS = ("get", "post", "put", "patch", "delete", "options", "head")


def flatten(handlers) -> list:
    """Flatten arbitrarily nested lists/tuples of handlers."""
    result = []
    for h in handlers:
        if isinstance(h, (list, tuple)):
            result.extend(flatten(h))
        else:
            result.append(h)
    return result


def arity(handler) -> int:
    """Number of required positional parameters of a handler."""
    if isinstance(handler, Router):
        return 2
    params = inspect.signature(handler).parameters.values()
    return len([
        p for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    ])


def _accepts_path(handler) -> bool:
    # Mountable handlers take the path left over after the mount prefix.
    return "path" in inspect.signature(handler).parameters


def _is_path(value) -> bool:
    if isinstance(value, (str, re.Pattern)):
        return True
    return (
        isinstance(value, (list, tuple))
        and bool(value)
        and all(isinstance(v, (str, re.Pattern)) for v in value)
    )


async def _call(handler, *args, **kwargs):
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


class Layer:
    """One entry on a stack: path alternatives bound to a handler."""

    def __init__(self, path, handle, *, end=True, method=None, route=None, options=None):
        self.path = path
        self.handle = handle
        self.method = method
        self.route = route
        self.name = "router" if isinstance(handle, Router) else getattr(handle, "__name__", type(handle).__name__)
        alternatives = path if isinstance(path, (list, tuple)) else [path]
        self.patterns = [PathPattern(p, end=end, **(options or {})) for p in alternatives]

    def __repr__(self):
        return f"Layer({self.path!r}, {self.name})"

    def match(self, path: str):
        for pattern in self.patterns:
            m = pattern.match(path)
            if m is not None:
                return m
        return None

    async def handle_request(self, request: Request, call_next, remaining: str = "/"):
        if isinstance(self.handle, Router):
            return await self.handle.handle(request, call_next, path=remaining)
        if _accepts_path(self.handle):
            return await _call(self.handle, request, call_next, path=remaining)
        if arity(self.handle) == 1:
            return await _call(self.handle, request)
        return await _call(self.handle, request, call_next)

    async def handle_error(self, error, request: Request, call_next):
        return await _call(self.handle, error, request, call_next)

    @property
    def is_error_handler(self) -> bool:
        return not isinstance(self.handle, Router) and arity(self.handle) == 3


class Route:
    """A path with a per-method handler stack."""

    def __init__(self, path):
        self.path = path
        self.stack: list[Layer] = []
        self.methods: set[str] = set()

    def __repr__(self):
        return f"Route({self.path!r}, methods={sorted(self.methods)})"

    def add(self, method: str | None, *handlers) -> "Route":
        method = method.lower() if method else None
        for handler in flatten(handlers):
            self.stack.append(Layer("/", handler, method=method))
        self.methods.add(method or "_all")
        return self

    def get(self, *handlers):
        return self.add("get", *handlers)

    def post(self, *handlers):
        return self.add("post", *handlers)

    def put(self, *handlers):
        return self.add("put", *handlers)

    def patch(self, *handlers):
        return self.add("patch", *handlers)

    def delete(self, *handlers):
        return self.add("delete", *handlers)

    def options(self, *handlers):
        return self.add("options", *handlers)

    def head(self, *handlers):
        return self.add("head", *handlers)

    def all(self, *handlers):
        return self.add(None, *handlers)

    def handles(self, method: str) -> bool:
        method = method.lower()
        if "_all" in self.methods or method in self.methods:
            return True
        return method == "head" and "get" in self.methods

    async def dispatch(self, request: Request, call_next, error=None):
        method = request.method.lower()
        if method == "head" and "head" not in self.methods:
            method = "get"
        index = 0

        async def next_handler(err=None):
            nonlocal index
            while index < len(self.stack):
                layer = self.stack[index]
                index += 1
                if layer.method is not None and layer.method != method:
                    continue
                try:
                    if err is not None:
                        if layer.is_error_handler:
                            return await layer.handle_error(err, request, next_handler)
                        continue
                    if layer.is_error_handler:
                        continue
                    return await layer.handle_request(request, next_handler)
                except Exception as exc:
                    err = exc
            return await call_next(err)

        return await next_handler(error)


class Router:
    """Ordered layer stack; also an ASGI application."""

    def __init__(self, *, strict: bool = False, case_sensitive: bool = False, wildcards: str = "absorb"):
        self.stack: list[Layer] = []
        self.options = {"strict": strict, "sensitive": case_sensitive, "wildcards": wildcards}

    def __repr__(self):
        return f"Router(layers={len(self.stack)})"

    def use(self, *args) -> "Router":
        """Mount middleware or sub-routers under an optional path prefix."""
        path = "/"
        if args and _is_path(args[0]):
            path, args = args[0], args[1:]
        handlers = flatten(args)
        if not handlers:
            raise TypeError("use() requires at least one handler")
        for handler in handlers:
            self.stack.append(Layer(path, handler, end=False, options=self.options))
        return self

    def route(self, path) -> Route:
        route = Route(path)
        self.stack.append(Layer(path, route.dispatch, route=route, options=self.options))
        return route

    def add(self, method: str | None, path, *handlers) -> "Router":
        self.route(path).add(method, *handlers)
        return self

    def _decorator(self, method, path, handlers):
        def decorator(endpoint):
            self.add(method, path, *handlers, endpoint)
            return endpoint

        return decorator

    def get(self, path, *handlers):
        return self._decorator("get", path, handlers)

    def post(self, path, *handlers):
        return self._decorator("post", path, handlers)

    def put(self, path, *handlers):
        return self._decorator("put", path, handlers)

    def patch(self, path, *handlers):
        return self._decorator("patch", path, handlers)

    def delete(self, path, *handlers):
        return self._decorator("delete", path, handlers)

    def options(self, path, *handlers):
        return self._decorator("options", path, handlers)

    def head(self, path, *handlers):
        return self._decorator("head", path, handlers)

    def all(self, path, *handlers):
        return self._decorator(None, path, handlers)

    async def handle(self, request: Request, call_next, path: str | None = None, error=None):
        path = request.url.path if path is None else path
        parent_params = dict(request.path_params)
        index = 0

        async def next_layer(err=None):
            nonlocal index
            while index < len(self.stack):
                layer = self.stack[index]
                index += 1
                m = layer.match(path)
                if m is None:
                    continue
                if layer.route is not None and (err is not None or not layer.route.handles(request.method)):
                    continue

                request.scope["path_params"] = {**parent_params, **m.params}
                if layer.route is not None:
                    request.scope["route"] = layer.route
                else:
                    request.scope.pop("route", None)
                try:
                    if err is not None:
                        if layer.is_error_handler:
                            return await layer.handle_error(err, request, next_layer)
                        continue
                    if layer.is_error_handler:
                        continue
                    return await layer.handle_request(request, next_layer, m.remaining)
                except Exception as exc:
                    err = exc
            request.scope["path_params"] = parent_params
            return await call_next(err)

        return await next_layer(error)

    async def __call__(self, scope, receive, send):
        if scope["type"] == "lifespan":
            await _lifespan(receive, send)
            return
        if scope["type"] != "http":
            raise RuntimeError(f"Unsupported ASGI scope type: {scope['type']}")

        scope.setdefault("router", self)
        scope.setdefault("path_params", {})
        request = Request(scope, receive)
        response = await self.handle(request, final_handler)
        await response(scope, receive, send)


async def final_handler(error=None) -> Response:
    """Render whatever reaches the end of the outermost stack."""
    if error is None:
        return PlainTextResponse("Not Found", status_code=404)
    if isinstance(error, HTTPError):
        return JSONResponse(error.to_dict(), status_code=error.status_code)
    logger.exception("Unhandled error while handling request", exc_info=error)
    return PlainTextResponse("Internal Server Error", status_code=500)


async def _lifespan(receive, send):
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return
