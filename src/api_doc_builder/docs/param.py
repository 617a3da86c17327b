"""A single documented request or response field."""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, PrivateAttr

from api_doc_builder.errors import FrozenDefinitionError

DATA_TYPES = [
    "String",
    "Integer",
    "Float",
    "Boolean",
    "Array",
    "Object",
    "Model",
    "DateTime",
    "File",
    "Date",
    "Text",
]

_CANONICAL_TYPES = {t.lower(): t for t in DATA_TYPES}

_SWAGGER_TYPES = {
    "integer": "integer",
    "float": "number",
    "double": "number",
    "boolean": "boolean",
    "array": "array",
    "object": "object",
    "model": "object",
}


def humanize(field_name: str) -> str:
    """`first_name` -> `First name`."""
    text = field_name.replace("_", " ")
    return text[:1].upper() + text[1:]


class Param(BaseModel):
    """A field of a documented API call.

    Built with chained calls, e.g.
    ``Param("email").optional().set_default_value("jane@example.com")``.
    A Param is frozen once the APICall that owns it is registered.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    LOCATION_HEADER: ClassVar[str] = "header"
    LOCATION_FORM: ClassVar[str] = "formData"
    LOCATION_COOKIE: ClassVar[str] = "cookie"
    LOCATION_PATH: ClassVar[str] = "path"
    LOCATION_QUERY: ClassVar[str] = "query"
    LOCATION_BODY: ClassVar[str] = "body"

    field_name: str | None = None
    is_required: bool = True
    type_name: str = "String"
    default: Any = None
    text: str = ""
    location: str | None = None
    model: Any = None

    _frozen: bool = PrivateAttr(default=False)

    def __init__(
        self,
        field_name: str | None = None,
        data_type: str = "String",
        description: str | None = None,
        location: str | None = None,
        **data: Any,
    ):
        if not description and field_name:
            description = humanize(field_name)
        super().__init__(
            field_name=field_name,
            type_name=data_type,
            text=description or "",
            location=location,
            **data,
        )

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise FrozenDefinitionError(
                f"Param `{self.field_name}` cannot be changed after registration"
            )

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_"):
            self._ensure_mutable()
        super().__setattr__(name, value)

    def freeze(self) -> "Param":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # Builders

    def required(self) -> "Param":
        self._ensure_mutable()
        self.is_required = True
        return self

    def optional(self) -> "Param":
        self._ensure_mutable()
        self.is_required = False
        return self

    def data_type(self, data_type: str) -> "Param":
        self._ensure_mutable()
        self.type_name = data_type
        return self

    def default_value(self, value: Any) -> "Param":
        self._ensure_mutable()
        self.default = value
        return self

    set_default_value = default_value

    def description(self, description: str) -> "Param":
        self._ensure_mutable()
        self.text = description
        return self

    def field(self, field_name: str) -> "Param":
        self._ensure_mutable()
        self.field_name = field_name
        return self

    def set_location(self, location: str) -> "Param":
        self._ensure_mutable()
        self.location = location
        return self

    def set_model(self, model: Any) -> "Param":
        self._ensure_mutable()
        self.model = model
        return self

    # Accessors

    def get_name(self) -> str | None:
        return self.field_name

    def get_required(self) -> bool:
        return self.is_required

    def get_data_type(self) -> str:
        """Type name in its capitalized form, e.g. `datetime` -> `DateTime`."""
        name = self.type_name or ""
        canonical = _CANONICAL_TYPES.get(name.lower())
        if canonical:
            return canonical
        return name[:1].upper() + name[1:]

    def get_default_value(self) -> Any:
        return self.default

    def get_description(self) -> str:
        return self.text

    def get_location(self) -> str | None:
        return self.location

    def get_model(self) -> Any:
        return self.model

    @staticmethod
    def get_swagger_data_type(data_type: str) -> str:
        """Map a documented type to a Swagger 2.0 primitive. Unknown types are strings."""
        return _SWAGGER_TYPES.get(str(data_type).lower(), "string")
