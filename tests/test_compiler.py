from pathlib import Path

import pytest

from swagger_validator.schema.base import ParamLocation, ParamType
from swagger_validator.schema.compiler import compile_documents, merge_documents
from swagger_validator.schema.errors import SchemaCompileError
from swagger_validator.schema.loader import parse_document
from swagger_validator.validation.body import validate_body
from swagger_validator.validation.outcome import OK, Invalid

FIXTURES = Path(__file__).parent / "fixtures"

PET_SCHEMA = {
    "type": "object",
    "required": ["name", "tag"],
    "properties": {"name": {"type": "string"}, "tag": {"type": "string"}},
}


def _body_doc(*schemas: dict, definitions: dict | None = None) -> dict:
    parameters = [
        {"name": f"body{i}", "in": "body", "schema": schema} for i, schema in enumerate(schemas)
    ]
    return {
        "paths": {"/things": {"post": {"parameters": parameters}}},
        "definitions": definitions or {},
    }


class TestMergeDocuments:
    def test_later_document_wins_on_path_collision(self):
        a = parse_document({"basePath": "/a", "paths": {"/x": {"get": {}}}, "definitions": {"A": {}}})
        b = parse_document({"basePath": "/b", "paths": {"/x": {"post": {}}}, "definitions": {"B": {}}})
        merged = merge_documents([a, b])
        base_path, item = merged.paths["/x"]
        assert base_path == "/b"
        assert [m for m, _ in item.operations()] == ["post"]
        assert set(merged.definitions) == {"A", "B"}

    def test_each_path_keeps_its_document_base_path(self):
        a = parse_document({"basePath": "/a", "paths": {"/x": {"get": {}}}})
        b = parse_document({"paths": {"/y": {"get": {}}}})
        merged = merge_documents([a, b])
        assert merged.paths["/x"][0] == "/a"
        assert merged.paths["/y"][0] is None


class TestBodyProperties:
    def test_ref_body_resolves_definition(self):
        registry = compile_documents(FIXTURES / "swagger_test_spec.json")
        products = registry.get("post/products")
        assert dict(products.properties) == {
            "ID": {"type": "integer"},
            "display_name": {"type": "string"},
            "capacity": {"type": "integer"},
        }
        assert products.required == ("ID",)

    def test_nested_ref_resolved_transitively(self, pets_registry):
        post_pets = pets_registry.get("post/pets")
        assert post_pets.properties["id"] == {"type": "integer"}
        assert post_pets.properties["pet"] == PET_SCHEMA
        assert post_pets.required == ("id", "pet")

    def test_inline_body_schema(self):
        registry = compile_documents(
            _body_doc({"type": "object", "properties": {"name": {"type": "string"}}, "required": ["name"]})
        )
        operation = registry.get("post/things")
        assert dict(operation.properties) == {"name": {"type": "string"}}
        assert operation.required == ("name",)

    def test_multiple_body_params_merge_first_wins(self):
        registry = compile_documents(
            _body_doc(
                {"properties": {"x": {"type": "integer"}, "y": {"type": "string"}}, "required": ["x"]},
                {"properties": {"y": {"type": "integer"}, "z": {"type": "boolean"}}, "required": ["z", "x"]},
            )
        )
        operation = registry.get("post/things")
        assert dict(operation.properties) == {
            "x": {"type": "integer"},
            "y": {"type": "string"},
            "z": {"type": "boolean"},
        }
        assert operation.required == ("x", "z")

    def test_body_schema_has_no_required_when_empty(self):
        registry = compile_documents(FIXTURES / "swagger_test_spec.json")
        assert "required" not in registry.get("get/history").body_schema

    def test_refs_resolve_across_documents(self):
        registry = compile_documents(
            [FIXTURES / "swagger_test_spec_2.json", FIXTURES / "swagger_test_spec_3.json"]
        )
        stores = registry.get("put/stores")
        assert stores.properties["pets"] == {"type": "array", "items": PET_SCHEMA}

    def test_recursive_definition(self):
        node = {
            "type": "object",
            "required": ["value"],
            "properties": {
                "value": {"type": "integer"},
                "children": {"type": "array", "items": {"$ref": "#/definitions/Node"}},
            },
        }
        registry = compile_documents(_body_doc({"$ref": "#/definitions/Node"}, definitions={"Node": node}))
        operation = registry.get("post/things")
        assert operation.properties["children"]["items"] == {"$ref": "#/definitions/Node"}
        assert "Node" in operation.body_schema["definitions"]

        assert validate_body(operation, {"value": 1, "children": [{"value": 2, "children": []}]}) == OK
        assert validate_body(operation, {"value": 1, "children": [{"value": "x"}]}) == Invalid(
            "Type mismatch. Expected Integer but got String.", "#/children/0/value"
        )


class TestParameters:
    def test_query_params_not_folded_into_properties(self):
        registry = compile_documents(FIXTURES / "swagger_test_spec.json")
        history = registry.get("get/history")
        assert dict(history.properties) == {}
        assert [p.name for p in history.parameters] == ["limit", "offset"]
        assert all(p.location is ParamLocation.QUERY for p in history.parameters)

    def test_payload_schema_folds_typed_params(self):
        registry = compile_documents(FIXTURES / "swagger_test_spec.json")
        price = registry.get("get/estimates/price").payload_schema
        assert price["properties"] == {
            "start_latitude": {"type": "integer"},
            "start_longitude": {"type": "integer"},
            "end_latitude": {"type": "integer"},
            "end_longitude": {"type": "integer"},
        }
        assert price["required"] == ["start_latitude", "start_longitude", "end_latitude", "end_longitude"]

    def test_payload_schema_merges_body_and_params(self):
        registry = compile_documents(FIXTURES / "swagger_test_spec.json")
        products = registry.get("post/products").payload_schema
        assert set(products["properties"]) == {"ID", "display_name", "capacity", "latitude", "longitude"}
        assert products["required"] == ["ID"]

    def test_path_level_params_apply_to_every_operation(self, pets_registry):
        get_pet = pets_registry.get("get/pets/{id}")
        delete_pet = pets_registry.get("delete/pets/{id}")
        assert [p.name for p in get_pet.parameters] == ["id"]
        assert [p.name for p in delete_pet.parameters] == ["id", "force"]
        assert get_pet.parameters[0].type is ParamType.INTEGER

    def test_operation_param_overrides_path_level(self):
        registry = compile_documents(
            {
                "paths": {
                    "/pets/{id}": {
                        "parameters": [{"name": "id", "in": "path", "required": True, "type": "string"}],
                        "get": {"parameters": [{"name": "id", "in": "path", "required": True, "type": "integer"}]},
                    }
                }
            }
        )
        parameters = registry.get("get/pets/{id}").parameters
        assert len(parameters) == 1
        assert parameters[0].type is ParamType.INTEGER

    def test_ref_parameter_resolved(self, shapes_registry):
        shapes = shapes_registry.get("get/shapes")
        assert [p.name for p in shapes.parameters] == ["api_key", "filter[route]", "page[limit]"]
        assert shapes.parameters[0].required is True


class TestCompileErrors:
    def test_unresolvable_definition_ref(self):
        with pytest.raises(SchemaCompileError, match=r"Unresolvable \$ref '#/definitions/Missing'"):
            compile_documents(_body_doc({"$ref": "#/definitions/Missing"}))

    def test_ref_into_another_document_alone_fails(self):
        with pytest.raises(SchemaCompileError, match="Pet"):
            compile_documents(FIXTURES / "swagger_test_spec_3.json")

    def test_remote_ref_unsupported(self):
        with pytest.raises(SchemaCompileError, match=r"Unsupported \$ref"):
            compile_documents(_body_doc({"$ref": "other.json#/definitions/Pet"}))

    def test_unresolvable_parameter_ref(self):
        with pytest.raises(SchemaCompileError, match="no parameter named 'Missing'"):
            compile_documents({"paths": {"/x": {"get": {"parameters": [{"$ref": "#/parameters/Missing"}]}}}})

    def test_parameter_without_location(self):
        with pytest.raises(SchemaCompileError, match="missing 'name' or 'in'"):
            compile_documents({"paths": {"/x": {"get": {"parameters": [{"name": "q", "type": "string"}]}}}})

    def test_unknown_parameter_type(self):
        with pytest.raises(SchemaCompileError, match="Malformed"):
            compile_documents({"paths": {"/x": {"get": {"parameters": [{"name": "q", "in": "query", "type": "uuid"}]}}}})

    def test_invalid_property_schema(self):
        with pytest.raises(SchemaCompileError, match="Invalid schema for post/things"):
            compile_documents(_body_doc({"properties": {"x": {"type": "text"}}}))


class TestCompileDocuments:
    def test_keys_are_method_and_template(self, pets_registry):
        assert set(pets_registry.keys()) == {
            "get/pets",
            "post/pets",
            "get/pets/{id}",
            "delete/pets/{id}",
            "get/pets/cats",
        }

    def test_base_path_recorded(self, full_registry):
        assert full_registry.get("get/history").base_path == "/v1"
        assert full_registry.get("get/pets").base_path == "/api"
        assert full_registry.get("get/history").base_segments == ("v1",)

    def test_single_document_or_list(self):
        single = compile_documents(FIXTURES / "swagger_test_spec.json")
        listed = compile_documents([FIXTURES / "swagger_test_spec.json"])
        assert single.keys() == listed.keys()

    def test_compilation_is_idempotent(self):
        first = compile_documents([FIXTURES / "swagger_test_spec.json", FIXTURES / "swagger_test_spec_2.json"])
        second = compile_documents([FIXTURES / "swagger_test_spec.json", FIXTURES / "swagger_test_spec_2.json"])
        assert first.keys() == second.keys()
        for key in first.keys():
            assert first.get(key) == second.get(key)
            assert first.get(key).body_schema == second.get(key).body_schema

    def test_operations_are_immutable(self, pets_registry):
        operation = pets_registry.get("post/pets")
        with pytest.raises(TypeError):
            operation.properties["extra"] = {"type": "string"}


class TestBodyRequired:
    def test_follows_body_parameter_required_flag(self, full_registry):
        assert full_registry.get("post/pets").body_required
        assert not full_registry.get("put/stores").body_required
        assert not full_registry.get("get/pets").body_required
