"""A documented API endpoint and its apiDoc comment block."""

import json
from types import MappingProxyType
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, PrivateAttr

from api_doc_builder.docs.param import Param
from api_doc_builder.errors import FrozenDefinitionError, MissingFieldNameError

# Labels used in generated docs; fixed, unlike http.HTTPStatus phrases across Python releases.
STATUS_TEXTS = {
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    103: "Early Hints",
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    208: "Already Reported",
    226: "IM Used",
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",
    421: "Misdirected Request",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    425: "Too Early",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    510: "Not Extended",
    511: "Network Authentication Required",
}


class Definition(BaseModel):
    """Title and description of a reusable definition block."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""


class Example(BaseModel):
    """A request/response example shown in the generated docs."""

    model_config = ConfigDict(frozen=True)

    text: str
    status_code: int
    message: str


def get_status_text_by_code(status_code: int, text: str | None = None) -> str:
    """Reverse an HTTP status code to its label. `text` wins when given."""
    if text:
        return text
    return STATUS_TEXTS.get(int(status_code), "Unknown")


class APICall(BaseModel):
    """Documentation facts for one route.

    Route handlers build an APICall with chained ``set_*`` calls and hand
    it to the doc registry, which freezes it on registration.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    CONSUME_JSON: ClassVar[str] = "application/json"
    CONSUME_MULTIPART_FORM: ClassVar[str] = "multipart/form-data"
    CONSUME_FORM_URLENCODED: ClassVar[str] = "application/x-www-form-urlencoded"

    version: str = "1.0.0"
    method: str = ""
    name: str | None = None
    route: str | None = None
    group: str | None = None
    description: str | None = None
    params: list[Param | str] = []
    success_params: list[Param | str] = []
    headers: list[Param | str] = []
    request_example: dict = {}
    define: Definition | None = None
    use: list[str] = []
    add_default_headers: bool = True
    success_examples: list[Example] = []
    error_examples: list[Example] = []
    success_object: Any = None
    success_paginated_object: Any = None
    consumes: list[str] = []

    _frozen: bool = PrivateAttr(default=False)

    def get_api_doc(self) -> str:
        """Compose the apiDoc block for this call."""
        lines = ["###"]

        if self.define is not None:
            lines.append(f"@apiDefine {self.define.title} {self.define.description}")

        if self.description:
            lines.append(f"@apiDescription {self.description}")

        lines.append(f"@apiVersion {self.version}")
        lines.append(f"@api {{{self.method}}} {self.route or ''} {self.name or ''}")
        lines.append(f"@apiGroup {ucwords(self.group or '')}")

        lines.extend(_render_fields("@apiParam", self.params))
        lines.extend(_render_fields("@apiSuccess", self.success_params))
        lines.extend(_render_fields("@apiHeader", self.headers))

        for defined_name in self.use:
            lines.append(f"@apiUse {defined_name}")

        if self.request_example:
            lines.append("@apiParamExample {json} Request Example ")
            lines.append(json.dumps(dict(self.request_example)))

        for example in self.success_examples:
            lines.append(
                "@apiSuccessExample {json} Success-Response / "
                f"HTTP {example.status_code} {example.message}"
            )
            lines.append(example.text)

        for example in self.error_examples:
            lines.append(
                "@apiErrorExample {json} Error-Response / "
                f"HTTP {example.status_code} {example.message}"
            )
            lines.append(example.text)

        lines.append("###")

        return "\r\n".join(lines)

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise FrozenDefinitionError(
                f"APICall `{self.method} {self.route}` cannot be changed after registration"
            )

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_"):
            self._ensure_mutable()
        super().__setattr__(name, value)

    def freeze(self) -> "APICall":
        """Freeze this call and every Param it owns.

        Collections are swapped for read-only views, so neither assignment
        nor in-place changes get through after this.
        """
        if self._frozen:
            return self
        for param in [*self.params, *self.success_params, *self.headers]:
            if isinstance(param, Param):
                param.freeze()
        self.params = tuple(self.params)
        self.success_params = tuple(self.success_params)
        self.headers = tuple(self.headers)
        self.use = tuple(self.use)
        self.success_examples = tuple(self.success_examples)
        self.error_examples = tuple(self.error_examples)
        self.consumes = tuple(self.consumes)
        self.request_example = MappingProxyType(dict(self.request_example))
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # Builders

    def set_route(self, route: str) -> "APICall":
        self._ensure_mutable()
        self.route = route
        return self

    def set_method(self, method: str) -> "APICall":
        self._ensure_mutable()
        self.method = method
        return self

    def set_group(self, group: str) -> "APICall":
        self._ensure_mutable()
        self.group = group
        return self

    def set_name(self, name: str) -> "APICall":
        self._ensure_mutable()
        self.name = name
        return self

    def set_description(self, description: str) -> "APICall":
        self._ensure_mutable()
        self.description = description
        return self

    def set_version(self, version: str) -> "APICall":
        self._ensure_mutable()
        self.version = version
        return self

    def set_params(self, params: list[Param | str]) -> "APICall":
        self._ensure_mutable()
        self.params = list(params)
        return self

    def set_success_params(self, success_params: list[Param | str]) -> "APICall":
        self._ensure_mutable()
        self.success_params = list(success_params)
        return self

    def set_headers(self, headers: list[Param | str]) -> "APICall":
        """Set the headers. Every Param given is moved to the header location."""
        self._ensure_mutable()
        for header in headers:
            if isinstance(header, Param):
                header.set_location(Param.LOCATION_HEADER)
        self.headers = list(headers)
        return self

    def set_define(self, title: str, description: str = "") -> "APICall":
        self._ensure_mutable()
        self.define = Definition(title=title, description=description)
        return self

    def set_use(self, defined_name: str) -> "APICall":
        self._ensure_mutable()
        self.use = [*self.use, defined_name]
        return self

    def no_default_headers(self) -> "APICall":
        self._ensure_mutable()
        self.add_default_headers = False
        return self

    def set_request_example(self, request_example: dict) -> "APICall":
        self._ensure_mutable()
        self.request_example = dict(request_example)
        return self

    def set_success_example(
        self, text: str, status_code: int = 200, message: str | None = None
    ) -> "APICall":
        self._ensure_mutable()
        example = Example(
            text=text,
            status_code=status_code,
            message=get_status_text_by_code(status_code, message),
        )
        self.success_examples = [*self.success_examples, example]
        return self

    def set_error_example(
        self, text: str, status_code: int = 404, message: str | None = None
    ) -> "APICall":
        self._ensure_mutable()
        example = Example(
            text=text,
            status_code=status_code,
            message=get_status_text_by_code(status_code, message),
        )
        self.error_examples = [*self.error_examples, example]
        return self

    def set_consumes(self, consumes: list[str]) -> "APICall":
        self._ensure_mutable()
        self.consumes = list(consumes)
        return self

    def set_success_object(self, success_object: Any) -> "APICall":
        self._ensure_mutable()
        self.success_object = success_object
        return self

    def set_success_paginated_object(self, success_paginated_object: Any) -> "APICall":
        self._ensure_mutable()
        self.success_paginated_object = success_paginated_object
        return self

    # Accessors

    def get_route(self) -> str | None:
        return self.route

    def get_method(self) -> str:
        return self.method

    def get_group(self) -> str | None:
        return self.group

    def get_name(self) -> str | None:
        return self.name

    def get_description(self) -> str | None:
        return self.description

    def get_version(self) -> str:
        return self.version

    def get_params(self) -> list[Param | str]:
        return list(self.params)

    def get_headers(self) -> list[Param | str]:
        return list(self.headers)

    def get_define(self) -> Definition | None:
        return self.define

    def get_use(self) -> list[str]:
        return list(self.use)

    def is_add_default_headers(self) -> bool:
        return self.add_default_headers

    def get_consumes(self) -> list[str]:
        return list(self.consumes)

    def get_success_object(self) -> Any:
        return self.success_object

    def get_success_paginated_object(self) -> Any:
        return self.success_paginated_object

    def get_request_example(self) -> dict:
        return dict(self.request_example)


def _render_fields(tag: str, fields: list[Param | str]) -> list[str]:
    lines = []
    for param in fields:
        if not isinstance(param, Param):
            lines.append(f"{tag} {param}")
            continue

        field_name = param.get_name()
        if not field_name:
            raise MissingFieldNameError()

        if not param.get_required():
            field_name = f"[{field_name}]"
        lines.append(f"{tag} {{{param.get_data_type()}}} {field_name} {param.get_description()}")
    return lines


def ucwords(text: str) -> str:
    """Upper-case the first character of each space separated word."""
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))
