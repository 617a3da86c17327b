import pytest

from api_doc_builder.docs.param import Param
from api_doc_builder.errors import FrozenDefinitionError


class TestParam:
    def test_defaults(self):
        p = Param("first_name")
        assert p.get_name() == "first_name"
        assert p.get_required() is True
        assert p.get_data_type() == "String"
        assert p.get_description() == "First name"
        assert p.get_location() is None
        assert p.get_default_value() is None

    def test_explicit_description_is_kept(self):
        p = Param("x-api-key", "String", "API Key")
        assert p.get_description() == "API Key"

    def test_fluent_builders(self):
        p = (
            Param("avatar")
            .optional()
            .data_type("file")
            .set_default_value("me.png")
            .description("Profile picture")
            .set_location(Param.LOCATION_FORM)
        )
        assert p.get_required() is False
        assert p.get_data_type() == "File"
        assert p.get_default_value() == "me.png"
        assert p.get_description() == "Profile picture"
        assert p.get_location() == "formData"

    def test_field_renames(self):
        p = Param().field("email")
        assert p.get_name() == "email"

    @pytest.mark.parametrize("given, expected", [
        ("string", "String"),
        ("INTEGER", "Integer"),
        ("datetime", "DateTime"),
        ("Model", "Model"),
        ("uuid", "Uuid"),
    ])
    def test_data_type_is_capitalized(self, given, expected):
        assert Param("id", given).get_data_type() == expected

    def test_frozen_param_rejects_changes(self):
        p = Param("email").freeze()
        with pytest.raises(FrozenDefinitionError):
            p.optional()
        assert p.get_required() is True

    def test_frozen_param_rejects_assignment(self):
        p = Param("email").freeze()
        with pytest.raises(FrozenDefinitionError):
            p.field_name = ""
        assert p.get_name() == "email"


class TestSwaggerDataType:
    @pytest.mark.parametrize("given, expected", [
        ("integer", "integer"),
        ("Integer", "integer"),
        ("float", "number"),
        ("DOUBLE", "number"),
        ("boolean", "boolean"),
        ("Array", "array"),
        ("object", "object"),
        ("Model", "object"),
        ("string", "string"),
        ("DateTime", "string"),
        ("file", "string"),
        ("date", "string"),
        ("text", "string"),
        ("something-else", "string"),
        ("", "string"),
    ])
    def test_mapping(self, given, expected):
        assert Param.get_swagger_data_type(given) == expected
