"""Handler identity -> operation schema."""


class SchemaRegistry:
    """Schemas attached to route handlers, scoped to one middleware instance.

    Handlers are keyed by identity because a handler does not know its own
    path until the route tree is walked. Composed operations are cached per
    ``(handler, path, method)`` so repeated generation reuses them.
    """

    def __init__(self):
        self._schemas: dict[int, tuple[object, dict]] = {}
        self._operations: dict[tuple[int, str, str], dict] = {}

    def __contains__(self, handler) -> bool:
        return id(handler) in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def attach(self, handler, schema: dict) -> None:
        # Keep the handler alive so its id() stays unique.
        self._schemas[id(handler)] = (handler, schema)
        for key in [k for k in self._operations if k[0] == id(handler)]:
            del self._operations[key]

    def lookup(self, handler) -> dict | None:
        entry = self._schemas.get(id(handler))
        return entry[1] if entry else None

    def cached_operation(self, handler, path: str, method: str) -> dict | None:
        return self._operations.get((id(handler), path, method))

    def cache_operation(self, handler, path: str, method: str, operation: dict) -> None:
        self._operations[(id(handler), path, method)] = operation
