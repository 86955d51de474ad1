import pytest

from routedoc.document.components import COMPONENT_TYPES, ComponentStore
from routedoc.document.registry import SchemaRegistry
from routedoc.errors import ComponentNotFound, UnknownComponent


class TestComponentStore:
    def test_define_returns_reference(self):
        doc = {}
        store = ComponentStore(doc)
        ref = store.define("schemas", "User", {"type": "object"})
        assert ref == {"$ref": "#/components/schemas/User"}
        assert doc["components"]["schemas"]["User"] == {"type": "object"}

    def test_reference_round_trip(self):
        store = ComponentStore({})
        definition = {"type": "string", "format": "email"}
        store.define("schemas", "Email", definition)

        ref = store.reference("schemas", "Email")
        assert ref == {"$ref": "#/components/schemas/Email"}
        assert store.resolve(ref) is definition

    def test_reference_unknown(self):
        store = ComponentStore({})
        with pytest.raises(UnknownComponent, match="Unknown schemas ref: Nope"):
            store.reference("schemas", "Nope")

    def test_unknown_component_is_a_lookup_error(self):
        with pytest.raises(LookupError):
            ComponentStore({}).reference("responses", "Missing")

    def test_list(self):
        store = ComponentStore({})
        assert store.list("schemas") is None
        store.define("schemas", "A", {})
        store.define("schemas", "B", {})
        assert set(store.list("schemas")) == {"A", "B"}

    def test_define_replaces(self):
        store = ComponentStore({})
        store.define("schemas", "A", {"type": "string"})
        store.define("schemas", "A", {"type": "integer"})
        assert store.list("schemas") == {"A": {"type": "integer"}}

    def test_existing_components_are_kept(self):
        doc = {"components": {"schemas": {"Existing": {"type": "null"}}}}
        store = ComponentStore(doc)
        assert store.reference("schemas", "Existing") == {"$ref": "#/components/schemas/Existing"}

    def test_get_raises_request_time_error(self):
        store = ComponentStore({})
        with pytest.raises(ComponentNotFound) as exc_info:
            store.get("schemas", "Ghost")
        assert exc_info.value.status_code == 404
        assert exc_info.value.to_dict()["message"] == "Component does not exist: schemas/Ghost"

    def test_resolve_rejects_foreign_refs(self):
        with pytest.raises(ValueError):
            ComponentStore({}).resolve({"$ref": "other.yaml#/User"})

    def test_type_is_required(self):
        with pytest.raises(TypeError):
            ComponentStore({}).define("", "A", {})


class TestTypedComponents:
    def test_every_kind_has_an_accessor(self):
        store = ComponentStore({})
        accessors = [
            store.schemas, store.responses, store.parameters, store.examples,
            store.request_bodies, store.headers, store.security_schemes,
            store.links, store.callbacks,
        ]
        assert [a.type for a in accessors] == list(COMPONENT_TYPES)

    def test_typed_define_reference_list(self):
        store = ComponentStore({})
        ref = store.request_bodies.define("NewUser", {"content": {}})
        assert ref == {"$ref": "#/components/requestBodies/NewUser"}
        assert store.request_bodies.reference("NewUser") == ref
        assert store.request_bodies.list() == {"NewUser": {"content": {}}}
        assert store.schemas.list() is None


class TestSchemaRegistry:
    def test_attach_and_lookup(self):
        registry = SchemaRegistry()

        def handler(request): ...

        assert registry.lookup(handler) is None
        registry.attach(handler, {"summary": "x"})
        assert registry.lookup(handler) == {"summary": "x"}
        assert handler in registry
        assert len(registry) == 1

    def test_attach_replaces_and_drops_cached_operations(self):
        registry = SchemaRegistry()

        def handler(request): ...

        registry.attach(handler, {"summary": "old"})
        registry.cache_operation(handler, "/a", "get", {"summary": "old"})
        assert registry.cached_operation(handler, "/a", "get") == {"summary": "old"}

        registry.attach(handler, {"summary": "new"})
        assert registry.lookup(handler) == {"summary": "new"}
        assert registry.cached_operation(handler, "/a", "get") is None

    def test_cache_is_per_path_and_method(self):
        registry = SchemaRegistry()

        def handler(request): ...

        registry.cache_operation(handler, "/a", "get", {"n": 1})
        assert registry.cached_operation(handler, "/b", "get") is None
        assert registry.cached_operation(handler, "/a", "post") is None
