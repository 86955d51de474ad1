"""Named, reusable document fragments referenced by ``$ref``."""

from routedoc.errors import ComponentNotFound, UnknownComponent

COMPONENT_TYPES = (
    "schemas",
    "responses",
    "parameters",
    "examples",
    "requestBodies",
    "headers",
    "securitySchemes",
    "links",
    "callbacks",
)


def ref(type: str, name: str) -> dict:
    return {"$ref": f"#/components/{type}/{name}"}


class ComponentStore:
    """The ``components`` section of a document.

    The store writes into ``document["components"]``, creating it on first
    definition, so every document built from the same base sees it.
    """

    def __init__(self, document: dict):
        self.document = document
        self.schemas = TypedComponents(self, "schemas")
        self.responses = TypedComponents(self, "responses")
        self.parameters = TypedComponents(self, "parameters")
        self.examples = TypedComponents(self, "examples")
        self.request_bodies = TypedComponents(self, "requestBodies")
        self.headers = TypedComponents(self, "headers")
        self.security_schemes = TypedComponents(self, "securitySchemes")
        self.links = TypedComponents(self, "links")
        self.callbacks = TypedComponents(self, "callbacks")

    @property
    def components(self) -> dict | None:
        return self.document.get("components")

    def define(self, type: str, name: str, definition) -> dict:
        """Add (or replace) a component and return a reference to it."""
        if not type:
            raise TypeError("Component type is required")
        components = self.document.setdefault("components", {})
        components.setdefault(type, {})[name] = definition
        return ref(type, name)

    def reference(self, type: str, name: str) -> dict:
        if not type:
            raise TypeError("Component type is required")
        if name not in (self.list(type) or {}):
            raise UnknownComponent(type, name)
        return ref(type, name)

    def list(self, type: str) -> dict | None:
        return (self.components or {}).get(type)

    def get(self, type: str, name: str):
        """Raw definition for a request-time lookup."""
        collection = self.list(type) or {}
        if name not in collection:
            raise ComponentNotFound(type, name)
        return collection[name]

    def resolve(self, reference: dict):
        """Follow a local ``#/components/...`` reference."""
        pointer = reference["$ref"]
        parts = pointer.split("/")
        if len(parts) != 4 or parts[:2] != ["#", "components"]:
            raise ValueError(f"Not a local component reference: {pointer}")
        _, _, type, name = parts
        collection = self.list(type) or {}
        if name not in collection:
            raise UnknownComponent(type, name)
        return collection[name]


class TypedComponents:
    """``define`` / ``reference`` / ``list`` bound to one component type."""

    def __init__(self, store: ComponentStore, type: str):
        self.store = store
        self.type = type

    def define(self, name: str, definition) -> dict:
        return self.store.define(self.type, name, definition)

    def reference(self, name: str) -> dict:
        return self.store.reference(self.type, name)

    def list(self) -> dict | None:
        return self.store.list(self.type)
