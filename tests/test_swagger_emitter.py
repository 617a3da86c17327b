import json
import logging

import pytest
from pydantic import BaseModel

from api_doc_builder.config import DocsConfig
from api_doc_builder.docs.api_call import APICall
from api_doc_builder.docs.definitions import ModelDefinition
from api_doc_builder.docs.param import Param
from api_doc_builder.docs.registry import DocRegistry
from api_doc_builder.emitter.swagger import (
    SwaggerEmitter,
    nested_field_name,
    path_suffix,
    response_object_name,
)
from api_doc_builder.errors import DefinitionCollisionError, DuplicateRouteError


class Clinic(BaseModel):
    id: int
    name: str


def _config(**overrides) -> DocsConfig:
    return DocsConfig(app_name="Demo", app_url="https://demo.test", **overrides)


def _emitter(*calls: APICall, seed: bool = False, **config) -> SwaggerEmitter:
    registry = DocRegistry()
    if seed:
        registry.seed_default_headers()
    for call in calls:
        registry.register(call)
    return SwaggerEmitter(registry, _config(**config))


def _operation(schema: dict, path: str, method: str) -> dict:
    return schema["paths"][path][method]


class TestNestedFieldName:
    @pytest.mark.parametrize("given, expected", [
        ("a", "a[0]"),
        ("a.b", "a[0][b]"),
        ("a.b.c", "a[0][b][0][c]"),
        ("a.b.c.d", "a[0][b][0][c][0][d]"),
        ("clinics.staff.dogs.name", "clinics[0][staff][0][dogs][0][name]"),
    ])
    def test_rewrite(self, given, expected):
        assert nested_field_name(given) == expected


class TestHelpers:
    def test_path_suffix(self):
        assert path_suffix("api/v1/users", "/api/v1") == "/users"
        assert path_suffix("/api/v1/users/{id}", "/api/v1") == "/users/{id}"
        assert path_suffix("api/v2/users", "/api/v1") == "/api/v2/users"
        assert path_suffix("api/v10/users", "/api/v1") == "/api/v10/users"
        assert path_suffix("api/v1beta/users", "/api/v1") == "/api/v1beta/users"
        assert path_suffix("api/v1", "/api/v1") == "/"

    def test_response_object_name(self):
        call = APICall().set_group("user profiles").set_name("get/all items")
        assert response_object_name(call) == "UserProfilesGetallItemsResponse"


class TestSecurity:
    def _call(self) -> APICall:
        return (
            APICall()
            .set_method("GET")
            .set_route("api/v1/users")
            .set_group("Users")
            .set_name("List")
            .set_headers([Param("x-api-key", "String", "API Key")])
            .no_default_headers()
        )

    def test_api_flavor_hides_security_headers(self):
        schema, _ = _emitter(self._call()).build("api")
        operation = _operation(schema, "/users", "get")
        assert operation["parameters"] == []
        assert operation["security"] == [{"apiKey": []}]

    def test_postman_flavor_keeps_security_headers(self):
        schema, _ = _emitter(self._call()).build("postman")
        operation = _operation(schema, "/users", "get")
        assert [(p["name"], p["in"]) for p in operation["parameters"]] == [("x-api-key", "header")]
        assert operation["security"] == [{"apiKey": []}]
        assert schema["host"] == "{{domain}}"

    def test_default_headers_through_use(self):
        call = APICall().set_method("GET").set_route("api/v1/users").set_group("Users").set_name("List")
        schema, _ = _emitter(call, seed=True).build("api")
        operation = _operation(schema, "/users", "get")
        assert operation["security"] == [{"apiKey": []}, {"accessToken": []}]
        assert operation["parameters"] == []

    def test_postman_default_headers_skip_accept(self):
        call = APICall().set_method("GET").set_route("api/v1/users").set_group("Users").set_name("List")
        schema, _ = _emitter(call, seed=True).build("postman")
        names = [p["name"] for p in _operation(schema, "/users", "get")["parameters"]]
        assert names == ["x-api-key", "x-access-token"]


class TestParameters:
    def test_parameter_translation(self):
        call = (
            APICall()
            .set_method("POST")
            .set_route("api/v1/clinics")
            .set_group("Clinics")
            .set_name("Create")
            .set_params([
                Param("name"),
                Param("opened_at", "datetime").optional(),
                Param("staff", "Array"),
                Param("staff.name"),
                Param("clinic", "Model").set_model(Clinic),
                Param("id", "Integer").set_location(Param.LOCATION_PATH),
                "{String} raw Documentation only",
            ])
            .no_default_headers()
        )
        schema, _ = _emitter(call).build("api")
        parameters = _operation(schema, "/clinics", "post")["parameters"]

        assert parameters[0] == {
            "name": "name",
            "in": "formData",
            "required": True,
            "description": "Name",
            "type": "string",
        }
        assert parameters[1]["type"] == "datetime"
        assert parameters[1]["required"] is False
        assert parameters[2]["name"] == "staff[0][name]"
        assert parameters[3] == {
            "name": "body",
            "in": "body",
            "required": True,
            "description": "Clinic",
            "schema": {"$ref": "#/definitions/Clinic"},
        }
        assert parameters[4]["in"] == "path"
        assert len(parameters) == 5
        assert "Clinic" in schema["definitions"]

    def test_get_params_default_to_query(self):
        call = (
            APICall()
            .set_method("GET")
            .set_route("api/v1/clinics")
            .set_params([Param("q")])
            .no_default_headers()
        )
        schema, _ = _emitter(call).build("api")
        assert _operation(schema, "/clinics", "get")["parameters"][0]["in"] == "query"

    def test_consumes_default(self):
        call = APICall().set_method("POST").set_route("api/v1/clinics")
        schema, _ = _emitter(call).build("api")
        assert _operation(schema, "/clinics", "post")["consumes"] == ["application/x-www-form-urlencoded"]

    def test_consumes_explicit(self):
        call = APICall().set_method("POST").set_route("api/v1/clinics").set_consumes([APICall.CONSUME_JSON])
        schema, _ = _emitter(call).build("api")
        assert _operation(schema, "/clinics", "post")["consumes"] == ["application/json"]

    def test_use_pulls_in_params(self, caplog):
        paging = APICall().set_define("paging").set_params([Param("page", "Integer").optional()])
        call = (
            APICall()
            .set_method("GET")
            .set_route("api/v1/clinics")
            .set_use("paging")
            .set_use("missing_block")
            .no_default_headers()
        )
        with caplog.at_level(logging.WARNING):
            schema, _ = _emitter(paging, call).build("api")
        names = [p["name"] for p in _operation(schema, "/clinics", "get")["parameters"]]
        assert names == ["page"]
        assert "missing_block" in caplog.text

    def test_calls_without_route_are_skipped(self):
        schema, _ = _emitter(seed=True).build("api")
        assert schema["paths"] == {}


class TestOperation:
    def test_operation_shape(self):
        call = (
            APICall()
            .set_method("PUT")
            .set_route("api/v1/clinics/{id}")
            .set_group("Clinics")
            .set_name("Update")
        )
        schema, _ = _emitter(call).build("api")
        operation = _operation(schema, "/clinics/{id}", "put")
        assert operation["tags"] == ["Clinics"]
        assert operation["summary"] == "Update"
        assert operation["produces"] == ["application/json"]
        assert operation["description"] == ""
        assert operation["responses"]["200"]["schema"] == {"$ref": "#/definitions/SuccessResponse"}
        assert operation["responses"]["401"]["schema"] == {"$ref": "#/definitions/ApiErrorUnauthorized"}
        assert operation["responses"]["403"]["schema"] == {"$ref": "#/definitions/ApiErrorAccessDenied"}
        assert operation["responses"]["422"]["schema"] == {"$ref": "#/definitions/ApiError"}

    def test_document_header(self):
        schema, _ = _emitter().build("api")
        assert schema["swagger"] == "2.0"
        assert schema["info"]["title"] == "Demo Backend API"
        assert schema["host"] == "demo.test"
        assert schema["basePath"] == "/api/v1"
        assert set(schema["securityDefinitions"]) == {"apiKey", "accessToken"}

    def test_invalid_flavor(self):
        with pytest.raises(ValueError):
            _emitter().build("openapi3")


class TestSuccessResponses:
    def test_generic_success_response_adds_no_definition(self):
        call = APICall().set_method("GET").set_route("api/v1/clinics").set_group("Clinics").set_name("List")
        schema, _ = _emitter(call).build("api")
        assert _operation(schema, "/clinics", "get")["responses"]["200"]["schema"] == {
            "$ref": "#/definitions/SuccessResponse"
        }
        assert list(schema["definitions"]) == list(ModelDefinition().get_all_definitions())

    def test_success_object_definition(self):
        call = (
            APICall()
            .set_method("GET")
            .set_route("api/v1/clinics/{id}")
            .set_group("Clinics")
            .set_name("Get")
            .set_success_object(Clinic)
        )
        schema, _ = _emitter(call).build("api")
        assert _operation(schema, "/clinics/{id}", "get")["responses"]["200"]["schema"] == {
            "$ref": "#/definitions/ClinicsGetResponse"
        }
        payload = schema["definitions"]["ClinicsGetResponse"]["properties"]["payload"]
        assert payload == {"$ref": "#/definitions/Clinic"}

    def test_paginated_object_definition(self):
        call = (
            APICall()
            .set_method("GET")
            .set_route("api/v1/clinics")
            .set_group("Clinics")
            .set_name("List")
            .set_success_paginated_object(Clinic)
        )
        schema, _ = _emitter(call).build("api")
        properties = schema["definitions"]["ClinicsListResponse"]["properties"]
        assert properties["payload"]["type"] == "array"

    def test_name_collision_fails(self):
        first = APICall().set_method("GET").set_route("api/v1/users/{id}").set_group("Users").set_name("Get")
        second = APICall().set_method("GET").set_route("api/v1/people/{id}").set_group("Users").set_name("Get")
        emitter = _emitter(first.set_success_object(Clinic), second.set_success_object(Clinic))
        with pytest.raises(DefinitionCollisionError):
            emitter.build("api")


class TestDuplicateRoutes:
    def _calls(self):
        return (
            APICall().set_method("GET").set_route("api/v1/clinics").set_name("First"),
            APICall().set_method("GET").set_route("api/v1/clinics").set_name("Second"),
        )

    def test_last_one_wins_by_default(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema, _ = _emitter(*self._calls()).build("api")
        assert _operation(schema, "/clinics", "get")["summary"] == "Second"
        assert "more than once" in caplog.text

    def test_error_policy(self):
        with pytest.raises(DuplicateRouteError):
            _emitter(*self._calls(), duplicate_routes="error").build("api")


class TestEnvironment:
    def test_domain_and_first_value_wins(self):
        first = (
            APICall()
            .set_method("POST")
            .set_route("api/v1/users")
            .set_params([Param("email").set_default_value("first@example.com")])
        )
        second = (
            APICall()
            .set_method("PUT")
            .set_route("api/v1/users/{id}")
            .set_params([Param("email").set_default_value("second@example.com")])
        )
        _, environment = _emitter(first, second).build("postman")
        assert environment["_postman_variable_scope"] == "environment"
        assert environment["name"] == "Demo Environment"
        assert environment["values"][0]["key"] == "domain"
        assert environment["values"][0]["value"] == "demo.test"
        emails = [v for v in environment["values"] if v["key"] == "email"]
        assert len(emails) == 1
        assert emails[0]["value"] == "first@example.com"
        assert emails[0]["type"] == "String"
        assert emails[0]["enabled"] is True


class TestWrite:
    def _emitter(self):
        call = (
            APICall()
            .set_method("GET")
            .set_route("api/v1/clinics")
            .set_group("Clinics")
            .set_name("List")
            .set_success_paginated_object(Clinic)
        )
        return _emitter(call, seed=True)

    def test_build_is_deterministic(self):
        emitter = self._emitter()
        for flavor in ("api", "postman"):
            assert json.dumps(emitter.build(flavor)) == json.dumps(emitter.build(flavor))

    def test_write_api(self, tmp_path):
        written = self._emitter().write("api", tmp_path / "docs")
        assert written == [tmp_path / "docs" / "swagger.json"]
        schema = json.loads(written[0].read_text(encoding="utf-8"))
        assert "/clinics" in schema["paths"]

    def test_write_postman(self, tmp_path):
        written = self._emitter().write("postman", tmp_path)
        assert [p.name for p in written] == ["postman_collection.json", "postman_environment.json"]
        environment = json.loads(written[1].read_text(encoding="utf-8"))
        assert environment["values"][0]["key"] == "domain"

    def test_write_twice_is_identical(self, tmp_path):
        emitter = self._emitter()
        first = emitter.write("postman", tmp_path / "a")[0].read_bytes()
        second = emitter.write("postman", tmp_path / "b")[0].read_bytes()
        assert first == second
